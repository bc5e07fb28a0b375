from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from attempt_engine.core.config import settings
from attempt_engine.core.exceptions import EngineError
from attempt_engine.core.logging import configure_logging
from attempt_engine.core.scheduler import start_scheduler, stop_scheduler
from attempt_engine.endpoints import attempt, session
from attempt_engine.middleware.exceptions import (
    engine_exception_handler,
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from attempt_engine.middleware.logging import RequestLoggingMiddleware
from attempt_engine.services.engine import test_engine

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(RequestLoggingMiddleware)

app.add_exception_handler(EngineError, engine_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.include_router(attempt.router, prefix="/attempts", tags=["Attempts"])
app.include_router(session.router, prefix="/sessions", tags=["Sessions"])

@app.on_event("startup")
async def startup_event():
    configure_logging()
    start_scheduler()

@app.on_event("shutdown")
async def shutdown_event():
    test_engine.shutdown()
    stop_scheduler()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
