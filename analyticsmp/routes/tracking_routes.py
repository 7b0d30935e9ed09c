# analyticsmp/routes/tracking_routes.py
from flask import Blueprint, current_app, jsonify, request, session

from ..errors import ConfigurationError, TransportError
from ..utils.analytics import (
    generate_analytics_tracking_url,
    get_analytics_client_id,
    send_analytics_event,
)

tracking_bp = Blueprint("tracking", __name__)


@tracking_bp.before_request
def require_user():
    # The default scope is for CLI and background jobs, not browsers.
    user = session.get("user") or {}
    if not user.get("id"):
        return jsonify({"error": "Sign in required"}), 401


def _request_parameters() -> dict:
    """Hit parameters from a JSON body, form fields or query args."""
    if request.is_json:
        payload = request.get_json(silent=True)
        return dict(payload) if isinstance(payload, dict) else {}
    if request.method == "POST":
        return request.form.to_dict()
    return request.args.to_dict()


@tracking_bp.post("/events")
def submit_event():
    try:
        params = send_analytics_event(_request_parameters())
    except ConfigurationError as exc:
        return jsonify({"error": str(exc)}), 500
    except TransportError as exc:
        current_app.logger.warning("Analytics hit not delivered: %s", exc)
        return jsonify({"error": str(exc)}), 502

    return jsonify({"status": "sent", "cid": params["cid"]}), 202


@tracking_bp.get("/tracking-url")
def tracking_url():
    try:
        url = generate_analytics_tracking_url(_request_parameters())
    except ConfigurationError as exc:
        return jsonify({"error": str(exc)}), 500

    return jsonify({"url": url})


@tracking_bp.get("/client-id")
def client_id():
    return jsonify({"client_id": get_analytics_client_id()})
