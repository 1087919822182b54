import pytest
from fastapi.testclient import TestClient

from analysis.alert_engine import AlertEngine
from api.routes import get_pipeline
from conftest import FakeClock, slouched_keypoints, upright_keypoints
from core.pipeline import PosturePipeline
from core.rate_limiter import FrameRateLimiter
from core.session_store import SessionStore
import main
from main import app


@pytest.fixture
def pipeline():
    pipeline = PosturePipeline(
        store=SessionStore(capacity=20, clock=FakeClock()),
        alert_engine=AlertEngine({
            "window": 3,
            "threshold": 3,
            "poor_score": 60.0,
            "min_confidence": 0.5,
            "cooldown": 120.0,
            "check_every": 1,
            "message": "Poor posture detected! Please adjust your sitting position.",
            "severity": "high",
        }),
        rate_limiter=FrameRateLimiter(0.0),
        calibration_config={"required_frames": 1, "min_score": 0.5},
    )
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    yield pipeline
    app.dependency_overrides.clear()


@pytest.fixture
def client(pipeline):
    return TestClient(app)


def send_frame(ws, keypoints):
    ws.send_json({"event": "posture-data", "data": {"keypoints": keypoints}})


def test_root(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["endpoints"]["websocket"] == "/ws/posture"


def test_health_reports_active_connections(client, pipeline):
    pipeline.on_connect("a")

    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["activeConnections"] == 1


def test_session_endpoints(client, pipeline):
    pipeline.on_connect("a")

    listing = client.get("/api/sessions").json()
    single = client.get("/api/sessions/a")

    assert listing["activeConnections"] == 1
    assert listing["sessions"][0]["id"] == "a"
    assert single.status_code == 200
    assert single.json()["frameCount"] == 0
    assert client.get("/api/sessions/missing").status_code == 404


def test_websocket_session_lifecycle(client, pipeline):
    with client.websocket_connect("/ws/posture") as ws:
        hello = ws.receive_json()
        session_id = hello["data"]["id"]
        assert hello["event"] == "session"
        assert session_id in pipeline.store

        send_frame(ws, upright_keypoints())
        calibration = ws.receive_json()
        analysis = ws.receive_json()

        assert calibration["event"] == "calibration-complete"
        assert analysis["event"] == "posture-analysis"
        assert analysis["data"]["valid"] is True
        assert analysis["data"]["overallScore"] == pytest.approx(98.0)

    assert session_id not in pipeline.store


def test_websocket_alert(client, pipeline):
    # 不校准，按固定阈值评估
    pipeline.calibration_config = {"required_frames": 1, "min_score": 1.0}

    with client.websocket_connect("/ws/posture") as ws:
        ws.receive_json()
        events = []
        for _ in range(3):
            send_frame(ws, slouched_keypoints())
            events.append(ws.receive_json())
        alert = ws.receive_json()

    assert [e["event"] for e in events] == ["posture-analysis"] * 3
    assert all(e["data"]["overallScore"] < 60 for e in events)
    assert alert["event"] == "posture-alert"
    assert alert["data"]["severity"] == "high"
    assert set(alert["data"]["issues"]) == {"forward_head", "rounded_shoulders", "torso_lean"}


def test_websocket_missing_keypoints_yield_invalid_assessment(client):
    with client.websocket_connect("/ws/posture") as ws:
        ws.receive_json()
        send_frame(ws, [{"name": "nose", "x": 0.5, "y": 0.3, "score": 0.9}])
        analysis = ws.receive_json()

    assert analysis["data"] == {"overallScore": 0.0, "confidence": 0.0, "valid": False}


def test_websocket_bad_messages_do_not_close_connection(client):
    with client.websocket_connect("/ws/posture") as ws:
        ws.receive_json()

        ws.send_text("not json")
        assert ws.receive_json()["event"] == "error"

        ws.send_json({"event": "posture-data", "data": {"keypoints": "oops"}})
        assert ws.receive_json()["event"] == "error"

        ws.send_json({"event": "dance"})
        assert ws.receive_json()["event"] == "error"

        send_frame(ws, upright_keypoints())
        assert ws.receive_json()["event"] == "calibration-complete"
        assert ws.receive_json()["event"] == "posture-analysis"


def test_websocket_reset(client, pipeline):
    with client.websocket_connect("/ws/posture") as ws:
        session_id = ws.receive_json()["data"]["id"]
        send_frame(ws, upright_keypoints())
        ws.receive_json()
        ws.receive_json()

        ws.send_json({"event": "reset"})
        reply = ws.receive_json()

        assert reply == {"event": "reset-complete", "data": {"id": session_id}}
        session = pipeline.store.get(session_id)
        assert session.calibration is None
        assert session.frame_count == 0


def test_idle_sweep_task_stops_on_shutdown(pipeline):
    with TestClient(app) as client:
        assert client.get("/api/health").status_code == 200
        task = main.sweep_task
        assert task is not None and not task.done()

    assert task.done()
    assert task.cancelled()
