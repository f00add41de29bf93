"""End-to-end tests for the HTTP surface, driven through Flask's test client."""

import json

import pytest

from factorpool.api import create_app
from factorpool.config import Settings
from factorpool.coordinator import Coordinator
from factorpool.sources import FileResultSink
from tests.conftest import drain


@pytest.fixture
def app(coordinator):
    return create_app(Settings(keepalive_s=0.05), coordinator)


@pytest.fixture
def client(app):
    return app.test_client()


def post(client, path, **body):
    return client.post(path, json=body)


class TestEventStream:
    def test_hello_frame_and_disconnect(self, client, coordinator):
        coordinator.set_target(91)
        resp = client.get("/api/events")
        assert resp.status_code == 200
        assert resp.mimetype == "text/event-stream"
        first = next(iter(resp.response))
        first = first.decode() if isinstance(first, bytes) else first
        assert first.startswith("event: hello\n")
        worker_id = json.loads(first.split("data: ", 1)[1])["worker"]
        assert worker_id in coordinator.hub
        resp.close()
        assert worker_id not in coordinator.hub


class TestWorkerMessages:
    def test_request_task(self, client, coordinator):
        coordinator.set_target(91)
        channel = coordinator.connect()
        resp = post(client, "/api/request_task", worker=channel.worker_id)
        assert resp.status_code == 200
        assert resp.get_json() == {"ok": True, "task": {"start": "1", "end": "1000000"}, "factored": False}
        assert drain(channel)[-1] == ("new_task", {
            "number": "91", "start": "1", "end": "1000000", "totalRanges": "1",
        })

    def test_worker_id_header(self, client, coordinator):
        coordinator.set_target(91)
        channel = coordinator.connect()
        resp = client.post("/api/request_task", headers={"X-Worker-Id": channel.worker_id})
        assert resp.status_code == 200
        assert resp.get_json()["task"]["start"] == "1"

    def test_complete_then_factor(self, client, coordinator, sink):
        coordinator.set_target(91)
        a, b = coordinator.connect(), coordinator.connect()
        post(client, "/api/request_task", worker=a.worker_id)
        resp = post(client, "/api/task_complete", worker=a.worker_id, start="1", number="91")
        assert resp.get_json() == {"ok": True, "next": {"start": "1000001", "end": "2000000"}}
        resp = post(client, "/api/factor_found", worker=b.worker_id, factor="7")
        assert resp.get_json() == {"ok": True, "accepted": True}
        resp = post(client, "/api/factor_found", worker=a.worker_id, factor="13")
        assert resp.get_json() == {"ok": True, "accepted": False}
        assert sink.lines == ["91 = 7 × 13\n"]
        resp = post(client, "/api/request_task", worker=a.worker_id)
        assert resp.get_json()["factored"] is True

    def test_unknown_worker(self, client, coordinator):
        coordinator.set_target(91)
        resp = post(client, "/api/request_task", worker="ghost")
        assert resp.status_code == 404
        assert resp.get_json()["ok"] is False

    def test_no_target(self, client, coordinator):
        channel = coordinator.connect()
        assert post(client, "/api/request_task", worker=channel.worker_id).status_code == 409

    def test_malformed_completion(self, client, coordinator):
        coordinator.set_target(91)
        channel = coordinator.connect()
        resp = post(client, "/api/task_complete", worker=channel.worker_id, start="abc")
        assert resp.status_code == 400
        assert coordinator.snapshot().completed == 0

    def test_superscript_start_is_rejected(self, client, coordinator):
        coordinator.set_target(91)
        channel = coordinator.connect()
        resp = post(client, "/api/task_complete", worker=channel.worker_id, start="²")
        assert resp.status_code == 400
        resp = post(client, "/api/factor_found", worker=channel.worker_id, factor="7²")
        assert resp.status_code == 422

    def test_non_json_body(self, client, coordinator):
        coordinator.set_target(91)
        channel = coordinator.connect()
        resp = client.post("/api/task_complete", data="garbage",
                           headers={"X-Worker-Id": channel.worker_id})
        assert resp.status_code == 400

    def test_invalid_factor(self, client, coordinator):
        coordinator.set_target(91)
        channel = coordinator.connect()
        resp = post(client, "/api/factor_found", worker=channel.worker_id, factor="5")
        assert resp.status_code == 422
        assert coordinator.arbiter.result is None


class TestReadSide:
    def test_progress(self, client, coordinator, clock):
        coordinator.set_target(91)
        clock.advance(2)
        assert client.get("/api/progress").get_json() == {
            "progress": 0, "completed": 0, "total": 1, "elapsedMs": 2000,
        }

    def test_status_and_health(self, client, coordinator):
        assert client.get("/api/health").get_json() == {"ok": False, "workers": 0}
        coordinator.set_target(91)
        assert client.get("/api/health").get_json()["ok"] is True
        status = client.get("/api/status").get_json()
        assert status["number"] == "91"
        assert status["factored"] is False


def test_default_app_writes_results_file(tmp_path):
    settings = Settings(results_file=str(tmp_path / "results.txt"))
    app = create_app(settings)
    coord = app.extensions["factorpool"]
    assert isinstance(coord.arbiter.sink, FileResultSink)
    coord.set_target(91)
    channel = coord.connect()
    app.test_client().post("/api/factor_found", json={"worker": channel.worker_id, "factor": "7"})
    assert (tmp_path / "results.txt").read_text(encoding="utf-8") == "91 = 7 × 13\n"
    assert isinstance(coord, Coordinator)
