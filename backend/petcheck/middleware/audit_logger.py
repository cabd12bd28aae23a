"""
Audit logger – after-request hook that writes every API call to the
audit_log table, including the error code of failed requests.
"""

import json
import logging
from flask import request
from petcheck.database import db
from petcheck.middleware.auth_middleware import get_current_user_id
from petcheck.models.models import AuditLog

logger = logging.getLogger("petcheck.audit")

SKIPPED_PATHS = ("/api/health",)


def audit_after_request(response):
    """Log every API request/response pair."""
    if not request.path.startswith("/api/") or request.path in SKIPPED_PATHS:
        return response

    try:
        req_body = None
        if request.is_json:
            body = request.get_json(silent=True)
            if isinstance(body, dict):
                body = {k: v for k, v in body.items() if k not in ("password", "token")}
            req_body = json.dumps(body)[:2000] if body is not None else None

        error_code = None
        resp_summary = None
        if response.is_json:
            resp_data = response.get_json(silent=True) or {}
            if isinstance(resp_data, dict) and not resp_data.get("success", True):
                error_code = (resp_data.get("error") or {}).get("code")
            resp_summary = json.dumps(resp_data)[:2000]

        entry = AuditLog(
            user_id=get_current_user_id(),
            endpoint=request.path,
            method=request.method,
            status_code=response.status_code,
            request_body=req_body,
            response_summary=resp_summary,
            error_code=error_code,
        )
        db.session.add(entry)
        db.session.commit()
    except Exception as exc:
        logger.warning("Audit logging failed: %s", exc)
        db.session.rollback()

    return response
