"""Query-string helpers shared by the GET endpoints."""

from typing import Optional

from flask import request

from petcheck.utils.api import ValidationError


def int_arg(name: str) -> Optional[int]:
    raw = request.args.get(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(
            f"Invalid {name} parameter",
            [{"field": name, "message": "Must be an integer", "value": raw}],
        )


def str_arg(name: str) -> Optional[str]:
    raw = request.args.get(name, "").strip()
    return raw or None


def list_arg(name: str) -> list[str]:
    """Comma-separated values, e.g. ?species=canine,feline."""
    raw = request.args.get(name, "")
    return [v.strip() for v in raw.split(",") if v.strip()]
