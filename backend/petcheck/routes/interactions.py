"""
Drug interaction checker route.
Validates the request, runs the interaction engine and reports partial
lookup failures under meta.warnings. This is an information tool, NOT a
clinical decision support system.
"""

from flask import Blueprint, request, jsonify

from petcheck.models.interaction import INTERACTION_DISCLAIMER
from petcheck.services.container import get_services
from petcheck.utils.api import api_response
from petcheck.utils.validation import parse_interaction_request

interactions_bp = Blueprint("interactions", __name__)


@interactions_bp.route("/check", methods=["POST"])
def check_interactions():
    """
    Body: {
        "drugs": [{"name": "Rimadyl"}, {"name": "Prednisone"}],
        "species": "canine",
        "conditions": ["kidney disease"]
    }
    """
    check_request = parse_interaction_request(request.get_json(silent=True))

    warnings = []

    def on_lookup_error(category, exc):
        warnings.append({
            "category": category,
            "message": f"{category.replace('_', '-')} lookup unavailable; results may be incomplete",
        })

    result = get_services().engine.check_interactions(check_request, on_lookup_error=on_lookup_error)

    meta = {
        "totalInteractions": result.summary.total_interactions,
        "highestSeverity": result.summary.highest_severity.value,
        "checkedDrugs": list(result.checked_drugs),
        "warnings": warnings,
    }
    return jsonify(api_response(result.to_dict(), meta)), 200


@interactions_bp.route("/disclaimer", methods=["GET"])
def disclaimer():
    return jsonify(api_response({"disclaimer": INTERACTION_DISCLAIMER})), 200
