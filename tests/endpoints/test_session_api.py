from fastapi.testclient import TestClient

from tests.helpers.asserts import api_call, error_code
from tests.helpers.factories import sequence, single, text


def _begin(client, headers, test_id, attempt_id, event_id=1):
    return api_call(client, "POST", "/sessions", headers=headers, json={
        "test_id": test_id, "event_id": event_id, "attempt_id": attempt_id
    })


def test_full_session_flow(client: TestClient, participant_headers, make_test):
    """Open an attempt, answer every question type, submit, and try to submit again."""
    test_id = make_test([single(points=60, correct=2), sequence(points=0, count=3), text(points=40)])

    r_attempt = api_call(client, "POST", "/attempts", headers=participant_headers, json={"test_id": test_id, "event_id": 1})
    attempt_id = r_attempt.json()["data"]["id"]
    assert r_attempt.json()["data"]["status"] == "in_progress"

    state = _begin(client, participant_headers, test_id, attempt_id).json()["data"]
    assert state["phase"] == "in_progress"
    assert state["question_count"] == 3
    assert state["time_remaining"] is None
    choice_options = state["drafts"][0]["display_order"]

    r_draft = api_call(client, "PUT", f"/sessions/{attempt_id}/drafts/0", headers=participant_headers, json={
        "answer": {"question_type": "single_choice", "option_id": choice_options[2]}
    })
    assert r_draft.json()["data"]["filled"] is True

    state = api_call(client, "POST", f"/sessions/{attempt_id}/next", headers=participant_headers).json()["data"]
    assert state["current_index"] == 1
    assert state["drafts"][0]["saved"] is True

    api_call(client, "POST", f"/sessions/{attempt_id}/goto/2", headers=participant_headers)
    api_call(client, "PUT", f"/sessions/{attempt_id}/drafts/2", headers=participant_headers, json={
        "answer": {"question_type": "text", "text": "Rotate stock before restocking."}
    })
    mark = api_call(client, "POST", f"/sessions/{attempt_id}/marks/1", headers=participant_headers).json()["data"]
    assert mark == {"index": 1, "marked": True}

    progress = api_call(client, "GET", f"/sessions/{attempt_id}/progress", headers=participant_headers).json()["data"]
    assert [p["answered"] for p in progress] == [True, True, True]

    result = api_call(client, "POST", f"/sessions/{attempt_id}/submit", headers=participant_headers).json()["data"]
    assert result["score"] == 60
    assert result["pending_review"] is True
    assert result["passed"] is None

    r_again = client.post(f"/sessions/{attempt_id}/submit", headers=participant_headers)
    assert r_again.status_code == 409
    assert error_code(r_again) == "ALREADY_COMPLETED"

    state = api_call(client, "GET", f"/sessions/{attempt_id}", headers=participant_headers).json()["data"]
    assert state["phase"] == "completed"
    assert state["result"]["score"] == 60

    attempts = api_call(client, "GET", "/attempts", headers=participant_headers).json()["data"]
    assert attempts[0]["score"] == 60
    assert attempts[0]["status"] == "completed"


def test_restore_decision_over_http(client: TestClient, participant_headers, make_test, make_attempt):
    test_id = make_test([single(), single(), single()])
    attempt_id = make_attempt(test_id)

    state = _begin(client, participant_headers, test_id, attempt_id).json()["data"]
    api_call(client, "PUT", f"/sessions/{attempt_id}/drafts/0", headers=participant_headers, json={
        "answer": {"question_type": "single_choice", "option_id": state["drafts"][0]["display_order"][0]}
    })
    api_call(client, "POST", f"/sessions/{attempt_id}/next", headers=participant_headers)

    # reload from a new tab
    reloaded = _begin(client, participant_headers, test_id, attempt_id).json()["data"]
    assert reloaded["phase"] == "restore_decision"
    assert reloaded["resume_index"] == 1

    blocked = client.post(f"/sessions/{attempt_id}/next", headers=participant_headers)
    assert blocked.status_code == 409
    assert error_code(blocked) == "INVALID_SESSION_STATE"

    restored = api_call(client, "POST", f"/sessions/{attempt_id}/restore", headers=participant_headers, json={"restore": True}).json()["data"]
    assert restored["phase"] == "in_progress"
    assert restored["current_index"] == 1
    assert restored["drafts"][0]["filled"] is True


def test_errors_use_the_error_envelope(client: TestClient, participant_headers, make_test, make_attempt):
    test_id = make_test([single()])
    attempt_id = make_attempt(test_id, user_id=1)

    r_missing = client.get("/sessions/999", headers=participant_headers)
    assert r_missing.status_code == 404
    body = r_missing.json()
    assert body["error"]["code"] == "NOT_FOUND"
    assert body["request_id"]

    r_no_header = client.post("/sessions", json={"test_id": test_id, "event_id": 1, "attempt_id": attempt_id})
    assert r_no_header.status_code == 403

    _begin(client, participant_headers, test_id, attempt_id)
    r_foreign = client.get(f"/sessions/{attempt_id}", headers={"X-Participant-Id": "2"})
    assert r_foreign.status_code == 403
    assert error_code(r_foreign) == "UNAUTHORIZED"

    r_bad_answer = client.put(f"/sessions/{attempt_id}/drafts/0", headers=participant_headers, json={
        "answer": {"question_type": "text", "text": "not a choice"}
    })
    assert r_bad_answer.status_code == 422
    assert error_code(r_bad_answer) == "INVALID_ANSWER"

    r_malformed = client.put(f"/sessions/{attempt_id}/drafts/0", headers=participant_headers, json={
        "answer": {"question_type": "essay"}
    })
    assert r_malformed.status_code == 422
    assert error_code(r_malformed) == "VALIDATION_ERROR"


def test_load_failure_is_reported_in_session_state(client: TestClient, participant_headers, make_test, make_attempt):
    test_id = make_test([single()])
    attempt_id = make_attempt(test_id, event_id=1)

    state = _begin(client, participant_headers, test_id, attempt_id, event_id=2).json()["data"]

    assert state["phase"] == "error"
    assert state["error"]


def test_cancel_ends_the_session(client: TestClient, participant_headers, make_test, make_attempt):
    test_id = make_test([single(), single()], time_limit=10)
    attempt_id = make_attempt(test_id)
    state = _begin(client, participant_headers, test_id, attempt_id).json()["data"]
    assert state["time_remaining"] is not None

    cancelled = api_call(client, "DELETE", f"/sessions/{attempt_id}", headers=participant_headers).json()["data"]
    assert cancelled["phase"] == "cancelled"

    r_gone = client.get(f"/sessions/{attempt_id}", headers=participant_headers)
    assert r_gone.status_code == 404
