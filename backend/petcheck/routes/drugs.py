"""
Drug catalog routes – search, lookup by id and name normalization.
"""

from flask import Blueprint, request, jsonify

from petcheck.services.container import get_services
from petcheck.routes.query_params import int_arg, list_arg, str_arg
from petcheck.utils.api import AppError, ERROR_CODES, ValidationError, api_response
from petcheck.utils.validation import is_valid_drug_class, is_valid_route, resolve_species

drugs_bp = Blueprint("drugs", __name__)


@drugs_bp.route("", methods=["GET"])
def search_drugs():
    """?q=&species=&class=&route=&manufacturer=&limit=&offset= (lists comma-separated)."""
    errors = []

    species = []
    for value in list_arg("species"):
        resolved = resolve_species(value)
        if resolved is None:
            errors.append({"field": "species", "message": "Unknown species", "value": value})
        else:
            species.append(resolved.value)

    classes = list_arg("class")
    errors += [{"field": "class", "message": "Unknown drug class", "value": c}
               for c in classes if not is_valid_drug_class(c)]
    routes = list_arg("route")
    errors += [{"field": "route", "message": "Unknown route", "value": r}
               for r in routes if not is_valid_route(r)]
    if errors:
        raise ValidationError("Invalid search parameters", errors)

    result = get_services().catalog.search(
        query=str_arg("q"),
        species=species,
        drug_class=classes,
        route=routes,
        manufacturer=str_arg("manufacturer"),
        include_discontinued=request.args.get("includeDiscontinued", "").lower() == "true",
        limit=int_arg("limit"),
        offset=int_arg("offset"),
    )
    data = {**result, "drugs": [d.to_dict() for d in result["drugs"]]}
    meta = {"total": result["total"], "limit": result["limit"], "offset": result["offset"]}
    return jsonify(api_response(data, meta)), 200


@drugs_bp.route("/normalize", methods=["GET"])
def normalize():
    """Normalize a free-text drug name and resolve it against the catalog."""
    name = request.args.get("name", "").strip()
    if not name:
        raise ValidationError(
            "Drug name is required",
            [{"field": "name", "message": "Drug name is required", "value": name}],
            code=ERROR_CODES["MISSING_REQUIRED_FIELD"],
        )
    normalized, drug, confidence = get_services().catalog.resolve_drug_name(name)
    return jsonify(api_response({
        "original": name,
        "normalized": normalized,
        "matchedDrug": drug.to_dict() if drug else None,
        "confidence": confidence,
    })), 200


@drugs_bp.route("/<string:drug_id>", methods=["GET"])
def get_drug(drug_id):
    drug = get_services().catalog.get_drug_by_id(drug_id)
    if not drug:
        raise AppError(ERROR_CODES["DRUG_NOT_FOUND"], f"Drug '{drug_id}' not found.", 404)
    return jsonify(api_response(drug.to_dict())), 200
