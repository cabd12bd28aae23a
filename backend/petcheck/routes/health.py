"""
Health check routes – service status, readiness and liveness.
"""

import logging
import time
from datetime import datetime, timezone

from flask import Blueprint, jsonify

from petcheck.config import Config
from petcheck.services.container import get_services
from petcheck.utils.api import api_response

logger = logging.getLogger("petcheck.health")

health_bp = Blueprint("health", __name__)

_STARTED = time.monotonic()


@health_bp.route("", methods=["GET"])
def health():
    services = get_services()
    return jsonify(api_response({
        "status": "healthy",
        "service": "petcheck",
        "version": Config.APP_VERSION,
        "uptime": int(time.monotonic() - _STARTED),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "cache": type(services.cache).__name__,
            "catalog": {"drugs": len(services.catalog)},
            "openFda": {
                "baseUrl": Config.OPENFDA_BASE_URL,
                "apiKeyConfigured": bool(Config.OPENFDA_API_KEY),
            },
        },
    })), 200


@health_bp.route("/ready", methods=["GET"])
def ready():
    """Readiness: the cache store must answer a read."""
    try:
        get_services().cache.get("health:ready")
    except Exception as exc:
        logger.error("Readiness check failed: %s", exc)
        return jsonify(api_response({"ready": False, "reason": str(exc)})), 503
    return jsonify(api_response({"ready": True})), 200


@health_bp.route("/live", methods=["GET"])
def live():
    return jsonify(api_response({"alive": True})), 200
