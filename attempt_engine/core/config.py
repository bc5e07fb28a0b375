from pydantic_settings import BaseSettings
from typing import Optional, List

class Settings(BaseSettings):
    PROJECT_NAME: str = "Test Attempt Engine"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
    ]

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./attempts.db"

    # Countdown
    TIMER_TICK_SECONDS: int = 1
    RESUME_TIMER_FROM_START_TIME: bool = True

    # Completed or failed sessions kept readable after they leave the live map
    FINISHED_SESSION_RETENTION: int = 100

    # Sequence questions are shuffled with this seed when set (useful for demos)
    SHUFFLE_SEED: Optional[int] = None

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    class Config:
        env_file = ".env"

settings = Settings()
