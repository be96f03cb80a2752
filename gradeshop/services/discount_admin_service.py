# gradeshop/services/discount_admin_service.py
from decimal import InvalidOperation
from sqlalchemy import func
from ..extensions import db
from ..utils.api import api_ok, api_error
from ..utils.money import D
from ..utils.timeutil import parse_iso8601
from ..model import DiscountCode

KINDS = ("percentage", "fixed", "free_shipping")

def _parse_bool(v, default=False):
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() in {"1", "true", "yes", "y", "on"}

def _parse_money(v, field):
    try:
        return D(v)
    except (InvalidOperation, ValueError, TypeError):
        raise ValueError(f"{field} must be numeric")

def _parse_usage_limit(v):
    # 0 / blank means unlimited
    if v is None or (isinstance(v, str) and v.strip() == ""):
        return None
    try:
        n = int(v)
    except (TypeError, ValueError):
        raise ValueError("usage_limit must be an integer")
    if n < 0:
        raise ValueError("usage_limit must be >= 0")
    return n or None

def _code_taken(code: str, exclude_id=None) -> bool:
    q = DiscountCode.query.filter(func.lower(DiscountCode.code) == code.lower())
    if exclude_id is not None:
        q = q.filter(DiscountCode.id != exclude_id)
    return q.first() is not None

def _fields_from_payload(data: dict, current: DiscountCode | None = None) -> dict:
    """Validate a create/update payload. Raises ValueError with a user message."""
    def pick(key, default=None):
        if key in data:
            return data.get(key)
        return getattr(current, key, default) if current else default

    code = (pick("code") or "").strip().upper()
    description = (pick("description") or "").strip()
    kind = (data.get("type") or (current.kind if current else "percentage") or "").lower().strip()

    if not code:
        raise ValueError("code is required")
    if not description:
        raise ValueError("description is required")
    if kind not in KINDS:
        raise ValueError("type must be 'percentage', 'fixed' or 'free_shipping'")

    if kind == "free_shipping":
        value = D(0)
    else:
        raw = data.get("value") if "value" in data else (current.value if current else None)
        if raw in (None, ""):
            raise ValueError("value is required")
        value = _parse_money(raw, "value")
        if value <= 0:
            raise ValueError("value must be > 0")
        if kind == "percentage" and value > 100:
            raise ValueError("percentage value must be <= 100")

    minimum_order = _parse_money(pick("minimum_order", 0) or 0, "minimum_order")
    if minimum_order < 0:
        raise ValueError("minimum_order must be >= 0")

    usage_limit = _parse_usage_limit(data["usage_limit"]) if "usage_limit" in data else (current.usage_limit if current else None)

    starts_at = parse_iso8601(data.get("starts_at")) if "starts_at" in data else (current.starts_at if current else None)
    ends_at = parse_iso8601(data.get("ends_at")) if "ends_at" in data else (current.ends_at if current else None)
    if data.get("starts_at") and not starts_at:
        raise ValueError("Invalid datetime format for starts_at")
    if data.get("ends_at") and not ends_at:
        raise ValueError("Invalid datetime format for ends_at")
    if starts_at and ends_at and ends_at < starts_at:
        raise ValueError("ends_at must not be before starts_at")

    return {
        "code": code,
        "description": description,
        "kind": kind,
        "value": value,
        "minimum_order": minimum_order,
        "usage_limit": usage_limit,
        "starts_at": starts_at,
        "ends_at": ends_at,
        "active": _parse_bool(data.get("active"), current.active if current else True),
        "stackable": _parse_bool(data.get("stackable"), current.stackable if current else False),
    }

def create_discount_from_payload(data: dict):
    try:
        fields = _fields_from_payload(data)
    except ValueError as e:
        return api_error(str(e)), 400

    if _code_taken(fields["code"]):
        return api_error("Discount code already exists"), 409

    d = DiscountCode(usage_count=0, **fields)
    db.session.add(d)
    db.session.commit()
    return api_ok("Discount code created", d.as_api()), 201

def update_discount_from_payload(d: DiscountCode, data: dict):
    try:
        fields = _fields_from_payload(data, current=d)
    except ValueError as e:
        return api_error(str(e)), 400

    if _code_taken(fields["code"], exclude_id=d.id):
        return api_error("Discount code already exists"), 409

    # usage_count survives edits
    for k, v in fields.items():
        setattr(d, k, v)
    db.session.commit()
    return api_ok("Discount code updated", d.as_api()), 200

def toggle_discount(d: DiscountCode):
    d.active = not d.active
    db.session.commit()
    return api_ok("Discount code status updated", d.as_api()), 200
