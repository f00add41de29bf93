import logging

from flask import Blueprint, Flask, Response, current_app, jsonify, request

from .config import Settings
from .coordinator import Coordinator
from .errors import InvalidFactor, MalformedMessage, NoTarget, UnknownWorker
from .hub import ConnectionHub
from .sources import FileResultSink

logger = logging.getLogger(__name__)

pool_bp = Blueprint("pool_bp", __name__)


def _coordinator() -> Coordinator:
    return current_app.extensions["factorpool"]


def _range_dict(r):
    return {"start": str(r.start), "end": str(r.end)} if r else None


def _worker_message():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    worker = request.headers.get("X-Worker-Id") or data.get("worker")
    return str(worker or ""), data


@pool_bp.errorhandler(MalformedMessage)
def _malformed(e):
    logger.warning(f"dropped malformed message on {request.path}: {e}")
    return jsonify({"ok": False, "error": str(e)}), 400


@pool_bp.errorhandler(UnknownWorker)
def _unknown(e):
    return jsonify({"ok": False, "error": str(e)}), 404


@pool_bp.errorhandler(NoTarget)
def _no_target(e):
    return jsonify({"ok": False, "error": str(e)}), 409


@pool_bp.errorhandler(InvalidFactor)
def _invalid_factor(e):
    return jsonify({"ok": False, "error": str(e)}), 422


# ------------------ worker channel ------------------
@pool_bp.get("/api/events")
def events():
    coord = _coordinator()
    channel = coord.connect()
    keepalive_s = current_app.config.get("KEEPALIVE_S", 15.0)
    frames = coord.hub.stream(channel, keepalive_s=keepalive_s,
                              on_close=lambda: coord.disconnect(channel.worker_id))
    return Response(frames, mimetype="text/event-stream",
                    headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"})


@pool_bp.post("/api/request_task")
def request_task():
    worker, _ = _worker_message()
    r = _coordinator().request_task(worker)
    return jsonify({"ok": True, "task": _range_dict(r), "factored": r is None})


@pool_bp.post("/api/task_complete")
def task_complete():
    worker, data = _worker_message()
    nxt = _coordinator().task_complete(worker, data)
    return jsonify({"ok": True, "next": _range_dict(nxt)})


@pool_bp.post("/api/factor_found")
def factor_found():
    worker, data = _worker_message()
    result = _coordinator().factor_found(worker, data)
    return jsonify({"ok": True, "accepted": result is not None})


# ------------------ read side ------------------
@pool_bp.get("/api/progress")
def progress():
    return jsonify(_coordinator().snapshot().as_payload())


@pool_bp.get("/api/status")
def status():
    return jsonify(_coordinator().status())


@pool_bp.get("/api/health")
def health():
    coord = _coordinator()
    return jsonify({"ok": coord.targets.current is not None, "workers": len(coord.hub)})


def create_app(settings: Settings | None = None, coordinator: Coordinator | None = None) -> Flask:
    settings = settings or Settings()
    if coordinator is None:
        coordinator = Coordinator(ConnectionHub(), FileResultSink(settings.results_file))
    app = Flask(__name__)
    app.config["KEEPALIVE_S"] = settings.keepalive_s
    app.extensions["factorpool"] = coordinator
    app.register_blueprint(pool_bp)
    return app
