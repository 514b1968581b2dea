"""Tests for the Flask routes."""
import pytest

import app as app_module
from helper.sample_gestures import generate_scripted_sample


@pytest.fixture
def client(monkeypatch, authenticator):
    monkeypatch.setattr(app_module, "authenticator", authenticator)
    app_module.app.config["TESTING"] = True
    return app_module.app.test_client()


def register(client, gesture, identity="alice", **extra):
    return client.post(
        "/gestures/register", json={"identity": identity, "gestureData": gesture, **extra}
    )


def test_config_endpoint(client):
    data = client.get("/api/config").get_json()
    assert data["MIN_POSITIONS"] == 3
    assert data["MAX_POSITIONS"] == 10
    assert data["DEFAULT_TOLERANCE"] == {"position": 0.15, "timing": 0.2}


def test_register_and_validate(client, human_gesture):
    response = register(client, human_gesture, name="Wave")
    assert response.status_code == 201
    gesture = response.get_json()["data"]["gesture"]
    assert gesture["name"] == "Wave"
    assert gesture["sequenceLength"] == 5

    response = client.post(
        "/gestures/validate", json={"identity": "alice", "gestureData": human_gesture}
    )
    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["isValid"] is True
    assert data["outcome"] == "success"
    assert data["confidence"] == pytest.approx(1.0)


def test_duplicate_registration_conflicts(client, human_gesture):
    register(client, human_gesture)
    response = register(client, human_gesture)
    assert response.status_code == 409
    assert response.get_json()["reason"] == "template_exists"


def test_bad_tolerance_is_rejected(client, human_gesture):
    response = register(client, human_gesture, tolerance={"position": 0.9})
    assert response.status_code == 400


def test_shape_errors(client, human_gesture):
    human_gesture["timing"] = human_gesture["timing"][:-1]
    response = register(client, human_gesture)
    assert response.status_code == 400
    assert response.get_json() == {
        "success": False,
        "error": "positions and timing must have the same length (5 != 4)",
        "reason": "invalid_input_shape",
    }
    assert client.post("/gestures/register", json={}).status_code == 400


def test_failed_validation_reports_attempts(client, human_gesture):
    register(client, human_gesture)
    for p in human_gesture["positions"]:
        p["x"] += 0.3

    data = client.post(
        "/gestures/validate", json={"identity": "alice", "gestureData": human_gesture}
    ).get_json()["data"]
    assert data["isValid"] is False
    assert data["attemptsRemaining"] == 4


def test_locked_account(client, human_gesture):
    register(client, human_gesture)
    wrong = {
        "positions": [dict(p, x=p["x"] + 0.3) for p in human_gesture["positions"]],
        "timing": human_gesture["timing"],
    }
    for _ in range(5):
        client.post("/gestures/validate", json={"identity": "alice", "gestureData": wrong})

    response = client.post(
        "/gestures/validate", json={"identity": "alice", "gestureData": human_gesture}
    )
    assert response.status_code == 423
    assert response.get_json()["lockUntil"] is not None


def test_spoofing_is_forbidden(client, human_gesture):
    register(client, human_gesture)
    response = client.post(
        "/gestures/validate",
        json={"identity": "alice", "gestureData": generate_scripted_sample(interval_ms=300.0)},
    )
    assert response.status_code == 403
    body = response.get_json()
    assert body["reason"] == "suspected_spoofing"
    assert body["findings"][0]["reason"] == "too_perfect_timing"


def test_update_profile_and_delete(client, human_gesture):
    register(client, human_gesture)

    response = client.put(
        "/gestures/update",
        json={"identity": "alice", "gestureData": human_gesture, "name": "New"},
    )
    assert response.status_code == 200
    assert response.get_json()["data"]["gesture"]["name"] == "New"

    profile = client.get("/gestures/profile/alice").get_json()["data"]["gesture"]
    assert profile["name"] == "New"
    assert profile["tolerance"] == {"position": 0.15, "timing": 0.2}

    assert client.delete("/gestures/alice").status_code == 200
    assert client.get("/gestures/profile/alice").status_code == 404


def test_analyze(client, human_gesture):
    response = client.post("/gestures/analyze", json={"gestureData": human_gesture})
    analysis = response.get_json()["data"]["analysis"]
    assert analysis["complexity"] == 10
    assert analysis["securityScore"] == 100
    assert "handSize" in analysis["biometricData"]


def test_corrupt_template_hides_details(client, human_gesture, store):
    register(client, human_gesture)
    template = store.load_template("alice")
    template.encrypted_sample = "!!"
    store.save_template("alice", template)

    response = client.post(
        "/gestures/validate", json={"identity": "alice", "gestureData": human_gesture}
    )
    assert response.status_code == 500
    assert response.get_json()["error"] == "Stored gesture could not be read"


@pytest.mark.parametrize("bad_position", [5, None, "abc"])
def test_non_point_positions_are_bad_requests(client, human_gesture, bad_position):
    human_gesture["positions"][0] = bad_position
    response = register(client, human_gesture)
    assert response.status_code == 400
    assert response.get_json()["reason"] == "invalid_input_shape"


@pytest.mark.parametrize("tolerance", [{"position": "abc"}, [0.1, 0.2], {"timing": None}])
def test_malformed_tolerance_is_a_bad_request(client, human_gesture, tolerance):
    response = register(client, human_gesture, tolerance=tolerance)
    assert response.status_code == 400
    assert response.get_json()["reason"] == "invalid_config"
