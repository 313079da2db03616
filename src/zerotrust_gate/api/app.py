"""
Flask REST API for ZeroTrust-Gate.

Administrative surface over the engine: submit access requests, manage
policies, pull assessment reports and control the background monitor.
"""

from __future__ import annotations

import time

from flask import Flask, jsonify, request

from ..access import AccessRequest
from ..access.engine import ZeroTrustEngine
from ..assessment import AssessmentMonitor, MemorySink, ReportSink
from ..exceptions import (
    DuplicatePolicyError,
    PolicyNotFoundError,
    PolicyValidationError,
    ValidationError,
)
from ..policy.models import Policy


def create_app(
    engine: ZeroTrustEngine | None = None,
    report_sink: ReportSink | None = None,
    monitor_interval: float | None = None,
) -> Flask:
    """Create and configure the Flask application."""

    app = Flask(__name__)

    zt = engine or ZeroTrustEngine()
    sink = report_sink or MemorySink()
    monitor: AssessmentMonitor = zt.create_monitor(sink, interval=monitor_interval)
    app.extensions["zerotrust"] = {"engine": zt, "monitor": monitor, "sink": sink}

    @app.errorhandler(ValidationError)
    @app.errorhandler(PolicyValidationError)
    def bad_request(e):
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(PolicyNotFoundError)
    def not_found(e):
        return jsonify({"error": str(e)}), 404

    @app.errorhandler(DuplicatePolicyError)
    def conflict(e):
        return jsonify({"error": str(e)}), 409

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "healthy", "timestamp": time.time()})

    # --- Access ---

    @app.route("/api/v1/access/evaluate", methods=["POST"])
    def access_evaluate():
        data = request.get_json(silent=True) or {}
        decision = zt.evaluate(AccessRequest.from_dict(data))
        return jsonify(decision.to_dict())

    @app.route("/api/v1/access/decisions", methods=["GET"])
    def access_decisions():
        n = request.args.get("n", 50, type=int)
        return jsonify({"decisions": zt.recent_decisions(n)})

    @app.route("/api/v1/access/stats", methods=["GET"])
    def access_stats():
        return jsonify(zt.decision_stats())

    # --- Policy ---

    @app.route("/api/v1/policies", methods=["GET"])
    def policy_list():
        domain = request.args.get("domain")
        if domain:
            try:
                policies = zt.registry.list_by_domain(domain)
            except ValueError:
                return jsonify({"error": f"unknown domain: {domain}"}), 400
            return jsonify({"policies": [p.to_dict() for p in policies]})
        return jsonify(zt.registry.summary())

    @app.route("/api/v1/policies", methods=["POST"])
    def policy_define():
        data = request.get_json(silent=True) or {}
        policy = zt.define_policy(Policy.from_dict(data))
        return jsonify(policy.to_dict()), 201

    @app.route("/api/v1/policies/<policy_id>", methods=["GET"])
    def policy_get(policy_id: str):
        return jsonify(zt.registry.get(policy_id).to_dict())

    @app.route("/api/v1/policies/<policy_id>", methods=["PATCH"])
    def policy_update(policy_id: str):
        changes = request.get_json(silent=True) or {}
        if not isinstance(changes, dict):
            raise ValidationError("policy update must be a JSON object")
        policy = zt.update_policy(policy_id, **changes)
        return jsonify(policy.to_dict())

    @app.route("/api/v1/policies/<policy_id>/retire", methods=["POST"])
    def policy_retire(policy_id: str):
        return jsonify(zt.retire_policy(policy_id).to_dict())

    # --- Assessment ---

    @app.route("/api/v1/assessment", methods=["GET"])
    def assessment():
        recent = request.args.get("recent", None, type=int)
        return jsonify(zt.generate_report(recent).to_dict())

    @app.route("/api/v1/monitor/start", methods=["POST"])
    def monitor_start():
        started = monitor.start()
        return jsonify({"started": started, **monitor.status()})

    @app.route("/api/v1/monitor/stop", methods=["POST"])
    def monitor_stop():
        stopped = monitor.stop(timeout=10.0)
        return jsonify({"stopped": stopped, **monitor.status()})

    @app.route("/api/v1/monitor/status", methods=["GET"])
    def monitor_status():
        return jsonify(monitor.status())

    return app
