"""
String normalization utilities for drug names, species, cache keys and
openFDA query strings.

All functions are total: empty or missing input yields an empty result,
never an exception.
"""

import re
from datetime import date, datetime
from typing import Optional, Union

# Trailing dosage-form words, e.g. "Rimadyl Chewable Tablets" -> "rimadyl chewable"
_DOSAGE_FORM_RE = re.compile(
    r"\s+(tablets?|capsules?|injection|solution|suspension|gel|cream|ointment|spray|"
    r"drops?|powder|liquid|chewables?|paste|topical)$"
)
# Strength tokens with an optional ratio, e.g. "16mg", "1.5 mg/ml", "2%"
_UNIT = r"(?:mcg|mg|ml|g|%|iu)"
_STRENGTH_RE = re.compile(
    rf"(?<![\w.])\d+(?:\.\d+)?\s*{_UNIT}(?:\s*/\s*(?:\d+(?:\.\d+)?\s*)?{_UNIT})?(?![a-z0-9])"
)
_TRADEMARK_RE = re.compile(r"[®™©]")
_PARENTHETICAL_RE = re.compile(r"\s*\([^)]*\)\s*")
_WHITESPACE_RE = re.compile(r"\s+")

SPECIES_SYNONYMS = {
    "dogs": "dog",
    "canines": "canine",
    "cats": "cat",
    "felines": "feline",
    "horses": "horse",
    "equines": "equine",
    "cattle": "cattle",
    "cows": "cattle",
    "cow": "cattle",
    "bovines": "bovine",
    "pigs": "pig",
    "swine": "pig",
    "hogs": "pig",
    "hog": "pig",
    "sheep": "sheep",
    "lambs": "sheep",
    "lamb": "sheep",
    "goats": "goat",
    "birds": "bird",
    "poultry": "bird",
    "chickens": "bird",
    "chicken": "bird",
    "turkeys": "bird",
    "turkey": "bird",
    "rabbits": "rabbit",
    "bunnies": "rabbit",
    "bunny": "rabbit",
    "rodents": "rodent",
    "mice": "rodent",
    "mouse": "rodent",
    "rats": "rodent",
    "rat": "rodent",
    "hamsters": "rodent",
    "hamster": "rodent",
    "guinea pigs": "rodent",
    "guinea pig": "rodent",
    "fish": "fish",
    "fishes": "fish",
    "reptiles": "reptile",
    "snakes": "reptile",
    "snake": "reptile",
    "lizards": "reptile",
    "lizard": "reptile",
    "turtles": "reptile",
    "turtle": "reptile",
    "ferrets": "ferret",
    "ferret": "ferret",
}

# Elasticsearch reserved characters used by openFDA
_OPENFDA_RESERVED_RE = re.compile(r'[+\-=&|><!(){}\[\]^"~*?:\\/]')


def _normalize_drug_name_once(name: str) -> str:
    name = name.lower().strip()
    name = _TRADEMARK_RE.sub("", name)
    name = _PARENTHETICAL_RE.sub(" ", name)
    name = _STRENGTH_RE.sub("", name)
    name = _WHITESPACE_RE.sub(" ", name).strip()
    return _DOSAGE_FORM_RE.sub("", name).strip()


def normalize_drug_name(name: Optional[str]) -> str:
    """Canonical drug name for matching and cache keys.

    Each stripping step can expose another (a glyph hiding a dosage form,
    a suffix hiding a strength), so the pass is repeated until stable.
    That makes the function idempotent.
    """
    if not name or not isinstance(name, str):
        return ""
    current = name
    while True:
        nxt = _normalize_drug_name_once(current)
        if nxt == current:
            return nxt
        current = nxt


def normalize_species_name(name: Optional[str]) -> str:
    if not name or not isinstance(name, str):
        return ""
    normalized = name.lower().strip()
    return SPECIES_SYNONYMS.get(normalized, normalized)


def _render_scalar(value) -> str:
    if isinstance(value, str):
        return value.lower().strip()
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _render_cache_value(value) -> str:
    if isinstance(value, (list, tuple, set, frozenset)):
        return ",".join(sorted(r for r in (_render_scalar(v) for v in value) if r))
    return _render_scalar(value)


def create_cache_key(prefix: str, params: dict) -> str:
    """Deterministic cache key: ``prefix:k1:v1|k2:v2`` over sorted keys."""
    parts = []
    for key in sorted(params):
        value = params[key]
        if value is None:
            continue
        rendered = _render_cache_value(value)
        if rendered:
            parts.append(f"{key}:{rendered}")
    return f"{prefix}:{'|'.join(parts)}"


def slugify(text: Optional[str]) -> str:
    if not text:
        return ""
    slug = text.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug, flags=re.ASCII)
    slug = re.sub(r"[\s_-]+", "-", slug, flags=re.ASCII)
    return slug.strip("-")


def parse_date(date_str: Optional[str]) -> Optional[datetime]:
    """Parse openFDA ``YYYYMMDD`` first, then ISO-8601. None when neither fits."""
    if not date_str or not isinstance(date_str, str):
        return None
    date_str = date_str.strip()
    if re.fullmatch(r"\d{8}", date_str):
        try:
            return datetime(int(date_str[:4]), int(date_str[4:6]), int(date_str[6:8]))
        except ValueError:
            pass
    try:
        return datetime.fromisoformat(date_str.replace("Z", "+00:00"))
    except ValueError:
        return None


def format_date_for_open_fda(value: Union[date, datetime]) -> str:
    return f"{value.year}{value.month:02d}{value.day:02d}"


def escape_open_fda_query(query: Optional[str]) -> str:
    if not query:
        return ""
    return _OPENFDA_RESERVED_RE.sub(lambda m: "\\" + m.group(0), query)


def build_open_fda_search_query(params: dict) -> str:
    """Render ``field:"value"`` / ``field:(a+OR+b)`` clauses joined by ``+AND+``."""
    clauses = []
    for field_name, value in params.items():
        if not value:
            continue
        if isinstance(value, (list, tuple)):
            terms = [escape_open_fda_query(str(v)) for v in value if v]
            if terms:
                clauses.append(f"{field_name}:({'+OR+'.join(terms)})")
        else:
            clauses.append(f'{field_name}:"{escape_open_fda_query(str(value))}"')
    return "+AND+".join(clauses)


def build_open_fda_date_range(field_name: str, date_from: Optional[str] = None,
                              date_to: Optional[str] = None) -> str:
    """Range clause ``field:[from+TO+to]``; empty when both bounds are missing."""
    if not date_from and not date_to:
        return ""
    start = date_from or "19000101"
    end = date_to or format_date_for_open_fda(date.today())
    return f"{field_name}:[{start}+TO+{end}]"
