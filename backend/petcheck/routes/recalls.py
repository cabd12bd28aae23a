"""
Recall routes – FDA enforcement reports for drug products.
"""

from flask import Blueprint, jsonify

from petcheck.routes.query_params import int_arg, list_arg, str_arg
from petcheck.services.container import get_services
from petcheck.utils.api import api_response

recalls_bp = Blueprint("recalls", __name__)


@recalls_bp.route("", methods=["GET"])
def search_recalls():
    result = get_services().recalls.search(
        query=str_arg("q"),
        recall_class=list_arg("class"),
        status=list_arg("status"),
        date_from=str_arg("dateFrom"),
        date_to=str_arg("dateTo"),
        limit=int_arg("limit"),
        offset=int_arg("offset"),
    )
    meta = {
        "total": result["total"],
        "limit": result["limit"],
        "offset": result["offset"],
        "cached": result["cached"],
        "stale": result["stale"],
    }
    return jsonify(api_response(result, meta)), 200


@recalls_bp.route("/active", methods=["GET"])
def active_recalls():
    result = get_services().recalls.active(limit=int_arg("limit"))
    meta = {
        "total": result["total"],
        "activeOnly": True,
        "cached": result["cached"],
        "stale": result["stale"],
    }
    return jsonify(api_response(result["recalls"], meta)), 200


@recalls_bp.route("/check/<drug_name>", methods=["GET"])
def check_drug_recalls(drug_name):
    """Whether one drug currently has an ongoing recall."""
    drug_name = drug_name.strip()
    status = get_services().recalls.check_drug(drug_name)
    meta = {
        "drugName": drug_name,
        "checked": True,
        "hasActiveRecall": status["hasActiveRecall"],
        "activeRecallCount": len(status["recalls"]),
    }
    return jsonify(api_response(status, meta)), 200
