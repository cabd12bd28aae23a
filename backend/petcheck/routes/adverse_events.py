"""
Adverse event routes – proxied openFDA animal & veterinary event search.
"""

from flask import Blueprint, jsonify

from petcheck.routes.query_params import int_arg, list_arg, str_arg
from petcheck.services.container import get_services
from petcheck.utils.api import api_response

adverse_events_bp = Blueprint("adverse_events", __name__)


@adverse_events_bp.route("", methods=["GET"])
def search_adverse_events():
    result = get_services().adverse_events.search(
        species=list_arg("species"),
        drug_name=str_arg("drugName"),
        active_ingredient=str_arg("activeIngredient"),
        manufacturer=str_arg("manufacturer"),
        reaction=str_arg("reaction"),
        date_from=str_arg("dateFrom"),
        date_to=str_arg("dateTo"),
        limit=int_arg("limit"),
        offset=int_arg("offset"),
    )
    meta = {
        "total": result["total"],
        "limit": result["limit"],
        "offset": result["skip"],
        "cached": result["cached"],
        "stale": result["stale"],
    }
    return jsonify(api_response(result, meta)), 200


@adverse_events_bp.route("/count/<field>", methods=["GET"])
def count_adverse_events(field):
    """Term counts by species, reaction, outcome, drug, route or time_series."""
    result = get_services().adverse_events.aggregate(
        field,
        species=list_arg("species"),
        drug_name=str_arg("drugName"),
        active_ingredient=str_arg("activeIngredient"),
        manufacturer=str_arg("manufacturer"),
        reaction=str_arg("reaction"),
        date_from=str_arg("dateFrom"),
        date_to=str_arg("dateTo"),
        limit=int_arg("limit"),
    )
    meta = {
        "total": result["total"],
        "count": len(result["data"]),
        "cached": result["cached"],
        "stale": result["stale"],
    }
    return jsonify(api_response(result, meta)), 200


@adverse_events_bp.route("/summary/<drug_name>", methods=["GET"])
def adverse_event_summary(drug_name):
    drug_name = drug_name.strip()
    generic_name = str_arg("genericName")
    summary = get_services().adverse_events.drug_summary(drug_name, generic_name)
    meta = {
        "drugName": drug_name,
        "genericName": generic_name,
        "totalReports": summary["totalReports"],
    }
    return jsonify(api_response(summary, meta)), 200
