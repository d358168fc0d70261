"""
Integration tests for the JSON-RPC API (api/main.py)
"""
import time

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from core.job_store import SessionStore
from tests.conftest import FakeToolkit, StubProvider, make_srt


class RpcSession:
    """Tiny JSON-RPC helper over TestClient."""

    def __init__(self, client: TestClient, path: str = "/rpc"):
        self.client = client
        self.path = path
        self._id = 0

    def raw(self, method, *params):
        self._id += 1
        response = self.client.post(self.path, json={
            "jsonrpc": "2.0", "method": method, "params": list(params), "id": self._id,
        })
        assert response.status_code == 200
        return response.json()

    def call(self, method, *params):
        payload = self.raw(method, *params)
        assert "error" not in payload, payload
        return payload["result"]

    def error_code(self, method, *params):
        return self.raw(method, *params)["error"]["code"]

    def wait_for_job(self, job_id, timeout=5.0):
        deadline = time.time() + timeout
        while time.time() < deadline:
            status = self.call("translation.status", job_id)
            if status["status"] in ("completed", "failed") or status["cancelled"]:
                return status
            time.sleep(0.02)
        pytest.fail(f"Job {job_id} did not finish")


@pytest.fixture
def provider():
    return StubProvider()


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def client(test_settings, provider, store):
    app = create_app(
        settings=test_settings,
        store=store,
        provider_factory=lambda api_key, model: provider,
        toolkit=FakeToolkit(),
    )
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def rpc(client):
    return RpcSession(client)


@pytest.fixture
def srt_path(tmp_path):
    path = tmp_path / "episode.srt"
    path.write_text(make_srt(7), encoding="utf-8")
    return path


class TestAPIBasics:
    """Test basic API functionality."""

    def test_ping(self, rpc):
        assert rpc.call("ping") == "pong"

    def test_root_path_is_rpc_too(self, client):
        assert RpcSession(client, "/").call("ping") == "pong"

    def test_info(self, rpc):
        info = rpc.call("info")
        assert info["name"] == "AI Subtitle Translator Server"
        assert "session.create" in info["endpoints"]

    def test_init(self, rpc):
        assert rpc.call("init") == {"success": True, "ffmpegPath": "/usr/bin/ffmpeg"}

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_sweeper_runs_with_app(self, client):
        assert client.app.state.sweeper.running


class TestProtocolErrors:
    """Test JSON-RPC error handling over HTTP."""

    def test_parse_error(self, client):
        response = client.post("/rpc", content=b"{not json", headers={"content-type": "application/json"})
        assert response.json()["error"]["code"] == -32700

    def test_invalid_request(self, client):
        response = client.post("/rpc", json={"method": "ping", "id": 1})
        assert response.json()["error"]["code"] == -32600

    def test_method_not_found(self, rpc):
        assert rpc.error_code("does.not.exist") == -32601

    def test_notification_returns_no_content(self, client):
        response = client.post("/rpc", json={"jsonrpc": "2.0", "method": "ping"})
        assert response.status_code == 204

    def test_batch_request(self, client):
        response = client.post("/rpc", json=[
            {"jsonrpc": "2.0", "method": "ping", "id": 1},
            {"jsonrpc": "2.0", "method": "session.get", "params": ["nope"], "id": 2},
        ])
        results = response.json()
        assert results[0]["result"] == "pong"
        assert results[1]["error"]["code"] == -32603

    def test_missing_params(self, rpc):
        assert rpc.error_code("session.get") == -32602
        assert rpc.error_code("translation.status") == -32602

    def test_unknown_ids(self, rpc):
        assert rpc.error_code("session.get", "nope") == -32603
        assert rpc.error_code("translation.status", "nope") == -32603


class TestTranslationWorkflow:
    """End-to-end workflow through the RPC surface."""

    def test_subtitle_file_workflow(self, rpc, provider, srt_path, tmp_path):
        session_id = rpc.call("session.create")["sessionId"]

        loaded = rpc.call("file.load", session_id, str(srt_path))
        assert loaded["type"] == "subtitle"

        started = rpc.call("translation.start", session_id, {
            "apiKey": "k", "language": "Ukrainian", "context": "Sitcom", "batchSize": 3,
        })
        status = rpc.wait_for_job(started["jobId"])

        assert status["status"] == "completed"
        assert status["progress"] == 100
        assert len(provider.calls) == 3  # 7 replicas, batches of 3

        result = rpc.call("translation.result", started["jobId"])
        assert result["translatedText"].count("TRANSLATED:") == 3

        output = tmp_path / "episode.uk.srt"
        saved = rpc.call("translation.save", started["jobId"], str(output))
        assert saved["success"] is True
        assert output.exists()

        sessions = rpc.call("sessions.list")["sessions"]
        assert sessions[0]["jobStatus"] == "completed"

    def test_video_workflow(self, rpc, tmp_path):
        video = tmp_path / "movie.mkv"
        video.write_bytes(b"\x00")
        session_id = rpc.call("session.create")["sessionId"]

        loaded = rpc.call("file.load", session_id, str(video))
        assert loaded["type"] == "video"

        subtitles = rpc.call("subtitles.list", session_id)["subtitles"]
        assert [s["id"] for s in subtitles] == [0, 1]

        extracted = rpc.call("subtitle.extract", session_id, 0)
        assert extracted["success"] is True

        started = rpc.call("translation.start", session_id, {"apiKey": "k", "language": "de"})
        assert rpc.wait_for_job(started["jobId"])["status"] == "completed"

    def test_translation_start_validation(self, rpc, srt_path):
        session_id = rpc.call("session.create")["sessionId"]
        rpc.call("file.load", session_id, str(srt_path))

        assert rpc.error_code("translation.start", session_id, {"language": "de"}) == -32602
        assert rpc.error_code("translation.start", session_id, {"apiKey": "k", "language": "de",
                                                                "batchSize": 0}) == -32602
        assert rpc.error_code("translation.start", session_id) == -32602

    def test_result_of_unfinished_job(self, rpc, provider, srt_path):
        provider.delay = 5
        session_id = rpc.call("session.create")["sessionId"]
        rpc.call("file.load", session_id, str(srt_path))
        started = rpc.call("translation.start", session_id, {"apiKey": "k", "language": "de"})

        assert rpc.error_code("translation.result", started["jobId"]) == -32603

        assert rpc.call("translation.cancel", started["jobId"]) == {"success": True}
        status = rpc.wait_for_job(started["jobId"])
        assert status["cancelled"] is True
        assert status["status"] != "completed"

    def test_session_clear_and_delete(self, rpc, store, srt_path):
        session_id = rpc.call("session.create")["sessionId"]
        rpc.call("file.load", session_id, str(srt_path))

        assert rpc.call("session.clear", session_id) == {"success": True}
        assert rpc.call("session.get", session_id)["loadedFile"] is None

        assert rpc.call("session.delete", session_id) == {"success": True}
        assert store.get_session(session_id) is None
