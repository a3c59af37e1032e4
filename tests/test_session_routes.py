import base64
import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from dal.translation_dal import TranslationDAL
from main import create_app
from models.controller_config import ControllerConfig
from services.realtime.providers import ProviderError
from services.realtime.session_store import SessionStore
from utils.database_init import AsyncDatabaseInitializer


class FakeClassifier:
    def __init__(self, labels) -> None:
        self.labels = list(labels)

    async def classify(self, image: bytes) -> str:
        return self.labels.pop(0)


class FakePolisher:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail

    async def refine(self, raw_text: str) -> str:
        if self.fail:
            raise ProviderError("Sentence polishing failed.")
        return raw_text.capitalize() + "."


def _png() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (32, 24), (0, 128, 0)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def store(tmp_path):
    return SessionStore(
        classifier_factory=lambda: FakeClassifier(["HELLO", "HELLO", "WORLD"]),
        polisher_factory=FakePolisher,
        config=ControllerConfig(capture_interval=3600),
        transcript=TranslationDAL(AsyncDatabaseInitializer(tmp_path)),
    )


@pytest.fixture
def client(store):
    with TestClient(create_app(session_store=store)) as test_client:
        yield test_client


def _capture(client, store, session_id: str, times: int) -> None:
    controller = store.get(session_id).controller
    for _ in range(times):
        client.portal.call(controller.capture_once)


def test_health_reports_store(client):
    body = client.get("/health").json()
    assert body["ok"] is True
    assert body["sessions"] == 0
    assert body["openai_available"] is False


def test_session_lifecycle_and_commands(client, store):
    created = client.post("/sessions", json={"camera_on": True}).json()
    session_id = created["session_id"]
    assert created["state"]["camera_on"] is True
    assert created["state"]["capturing"] is False

    started = client.post(f"/sessions/{session_id}/capture/start").json()["state"]
    assert started["capturing"] is True

    upload = client.post(
        f"/sessions/{session_id}/frames",
        files={"frame": ("frame.png", _png(), "image/png")},
    ).json()
    assert upload["accepted"] is True

    _capture(client, store, session_id, 3)
    state = client.get(f"/sessions/{session_id}").json()["state"]
    assert state["sentence"] == "HELLO WORLD"
    assert [e["text"] for e in state["history"]] == ["HELLO", "WORLD"]

    refined = client.post(f"/sessions/{session_id}/refine").json()["state"]
    assert refined["sentence"] == "Hello world."

    transcript = client.get(f"/sessions/{session_id}/transcript").json()["entries"]
    assert [e["text"] for e in transcript] == ["HELLO", "WORLD"]

    cleared = client.delete(f"/sessions/{session_id}/history").json()["state"]
    assert cleared["history"] == []
    assert cleared["sentence"] == "Hello world."
    cleared = client.delete(f"/sessions/{session_id}/sentence").json()["state"]
    assert cleared["sentence"] == ""

    off = client.post(f"/sessions/{session_id}/camera/toggle").json()["state"]
    assert off["camera_on"] is False
    assert off["capturing"] is False
    refused = client.post(f"/sessions/{session_id}/capture/toggle").json()["state"]
    assert refused["capturing"] is False

    ended = client.delete(f"/sessions/{session_id}").json()
    assert ended == {"session_id": session_id, "closed": True, "transcript_entries_removed": 2}
    assert client.get(f"/sessions/{session_id}").status_code == 404


def test_unknown_session_is_404(client):
    assert client.get("/sessions/missing").status_code == 404
    assert client.post("/sessions/missing/refine").status_code == 404
    assert client.delete("/sessions/missing").status_code == 404


def test_frame_upload_validation(client):
    session_id = client.post("/sessions").json()["session_id"]
    bad_type = client.post(
        f"/sessions/{session_id}/frames",
        files={"frame": ("notes.txt", b"hello", "text/plain")},
    )
    assert bad_type.status_code == 415
    empty = client.post(
        f"/sessions/{session_id}/frames",
        files={"frame": ("frame.png", b"", "image/png")},
    )
    assert empty.status_code == 400


def test_frames_are_dropped_while_camera_is_off(client):
    session_id = client.post("/sessions", json={"camera_on": False}).json()["session_id"]
    upload = client.post(
        f"/sessions/{session_id}/frames",
        files={"frame": ("frame.png", _png(), "image/png")},
    ).json()
    assert upload["accepted"] is False


def _reply(ws, request_id):
    while True:
        message = ws.receive_json()
        if message.get("request_id") == request_id:
            return message


def test_websocket_commands_and_state_push(client, store):
    session_id = client.post("/sessions").json()["session_id"]
    with client.websocket_connect(f"/ws/{session_id}") as ws:
        initial = ws.receive_json()
        assert initial["type"] == "state"
        assert initial["state"]["camera_on"] is True

        frame_b64 = "data:image/png;base64," + base64.b64encode(_png()).decode()
        ws.send_json({"type": "frame.push", "request_id": 1, "image_b64": frame_b64})
        assert _reply(ws, 1) == {"type": "frame.ack", "accepted": True, "request_id": 1}

        ws.send_json({"type": "capture.start", "request_id": 2})
        assert _reply(ws, 2)["state"]["capturing"] is True

        _capture(client, store, session_id, 1)
        ws.send_json({"type": "state.get", "request_id": 3})
        assert _reply(ws, 3)["state"]["sentence"] == "HELLO"

        ws.send_json({"type": "bogus", "request_id": 4})
        assert _reply(ws, 4) == {"type": "error", "request_id": 4, "detail": "Unsupported message type."}

        ws.send_json({"type": "frame.push", "request_id": 5, "image_b64": "%%%"})
        assert _reply(ws, 5)["type"] == "error"

        ws.send_text("not json")
        assert ws.receive_json() == {"type": "error", "detail": "Payload must be JSON"}


def test_websocket_unknown_session(client):
    with client.websocket_connect("/ws/missing") as ws:
        assert ws.receive_json() == {"type": "error", "detail": "Session not found"}


def test_refine_failure_leaves_sentence(tmp_path):
    store = SessionStore(
        classifier_factory=lambda: FakeClassifier(["GO"]),
        polisher_factory=lambda: FakePolisher(fail=True),
        config=ControllerConfig(capture_interval=3600),
    )
    with TestClient(create_app(session_store=store)) as client:
        session_id = client.post("/sessions").json()["session_id"]
        client.post(f"/sessions/{session_id}/capture/start")
        client.post(f"/sessions/{session_id}/frames", files={"frame": ("f.png", _png(), "image/png")})
        _capture(client, store, session_id, 1)
        state = client.post(f"/sessions/{session_id}/refine").json()["state"]
        assert state["sentence"] == "GO"
        assert state["last_error"] is None
        assert client.get(f"/sessions/{session_id}/transcript").status_code == 503
