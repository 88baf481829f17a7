"""
Read-only JSON surface over the rolling cache.

Every handler reads one cache snapshot and answers from it, so a response is
internally consistent even while a poll cycle is merging.
"""

from flask import Flask, jsonify
from flask_cors import CORS

from collectors.result_poller import ResultPoller
from collectors.rolling_cache import RollingCache
from predictors.heuristics import run_all
from predictors.windows import WINDOWS, compute_all_predictions

DEFAULT_PREVIEW_CHARS = 500


def create_app(
    cache: RollingCache,
    poller: ResultPoller,
    *,
    preview_chars: int = DEFAULT_PREVIEW_CHARS,
) -> Flask:
    app = Flask(__name__)
    CORS(app)

    @app.route("/")
    def home():
        return f"Draw cache is running ({len(cache)} entries)"

    @app.route("/history")
    def history():
        entries = cache.snapshot()
        return jsonify({
            "updatedAt": cache.last_update_ms,
            "size": len(entries),
            "list": [e.to_dict() for e in entries],
        })

    @app.route("/predictions")
    def predictions():
        entries = cache.snapshot()
        return jsonify({
            "updatedAt": cache.last_update_ms,
            "predictions": compute_all_predictions(entries, WINDOWS),
            "heuristics": run_all([e.number for e in entries]),
        })

    @app.route("/health")
    def health():
        return jsonify({
            "ok": True,
            "cacheSize": len(cache),
            "lastUpdate": cache.last_update_ms,
            "poller": poller.stats(),
        })

    @app.route("/debug-upstream")
    def debug_upstream():
        last = poller.client.last_result
        if last is None:
            return jsonify({
                "status": None,
                "error": "no upstream request made yet",
                "elapsedMs": None,
                "fetchedAt": None,
                "preview": "",
            })
        return jsonify({
            "status": last.status,
            "error": last.error,
            "elapsedMs": last.elapsed_ms,
            "fetchedAt": last.fetched_at_ms,
            "preview": last.preview(preview_chars),
        })

    @app.errorhandler(404)
    def not_found(exc):
        return jsonify({"error": "not found"}), 404

    return app
