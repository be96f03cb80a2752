# gradeshop/order/routes.py
from datetime import datetime, timedelta
from flask import request, jsonify
from ..extensions import db
from ..model import Order, PaymentException, ORDER_STATUSES
from ..utils.api import api_ok, api_error
from ..utils.decorators import admin_required
from ..utils.timeutil import utcnow
from . import bp

def ok(msg, data=None, status=200):
    r = jsonify(api_ok(msg, data)); r.status_code = status; return r
def err(msg, status=400, data=None):
    r = jsonify(api_error(msg, data)); r.status_code = status; return r

def _to_int(v, default):
    try:
        return int(v)
    except (TypeError, ValueError):
        return default

@bp.get("")
@admin_required
def list_orders():
    """
    Query params:
      - page, per_page
      - status=paid|processing|shipped|completed|cancelled
      - email=...
      - start=YYYY-MM-DD
      - end=YYYY-MM-DD (inclusive)
    """
    q = Order.query

    status = request.args.get("status")
    email  = request.args.get("email")
    start  = request.args.get("start")
    end    = request.args.get("end")

    if status: q = q.filter(Order.status == status)
    if email:  q = q.filter(Order.email == email.strip().lower())

    try:
        if start:
            q = q.filter(Order.created_at >= datetime.fromisoformat(start))
        if end:
            # make end inclusive for the whole day
            q = q.filter(Order.created_at < datetime.fromisoformat(end) + timedelta(days=1))
    except ValueError:
        return err("start/end must be YYYY-MM-DD", 422)

    page = max(_to_int(request.args.get("page"), 1), 1)
    per  = min(max(_to_int(request.args.get("per_page"), 20), 1), 100)

    q = q.order_by(Order.created_at.desc())
    paged = q.paginate(page=page, per_page=per, error_out=False)

    return ok("orders", {
        "page": page,
        "per_page": per,
        "total": paged.total,
        "items": [o.as_api() for o in paged.items],
    })

@bp.get("/<code>")
@admin_required
def get_order(code: str):
    o = Order.query.filter_by(code=code).first()
    if not o: return err("order not found", 404)
    return ok("order", o.as_api())

@bp.patch("/<code>/status")
@admin_required
def update_status(code: str):
    o = Order.query.filter_by(code=code).first()
    if not o: return err("order not found", 404)
    data = request.get_json(silent=True) or {}
    status = (data.get("status") or "").strip().lower()
    if status not in ORDER_STATUSES:
        return err(f"status must be one of: {', '.join(ORDER_STATUSES)}", 422)
    o.status = status
    db.session.commit()
    return ok("order status updated", o.as_api())

# ---- payments awaiting manual reconciliation --------------------------------

@bp.get("/exceptions")
@admin_required
def list_exceptions():
    show_all = (request.args.get("all") or "").lower() == "true"
    q = PaymentException.query
    if not show_all:
        q = q.filter(PaymentException.resolved.is_(False))
    rows = q.order_by(PaymentException.created_at.desc()).limit(200).all()
    return ok("payment exceptions", {"items": [r.as_api() for r in rows], "total": len(rows)})

@bp.post("/exceptions/<int:exception_id>/resolve")
@admin_required
def resolve_exception(exception_id: int):
    row = db.session.get(PaymentException, exception_id)
    if not row: return err("payment exception not found", 404)
    data = request.get_json(silent=True) or {}
    note = (data.get("note") or "").strip()
    if not note:
        return err("note is required (e.g. refunded, order created manually)", 422)
    row.resolved = True
    row.resolution_note = note[:255]
    row.resolved_at = utcnow()
    db.session.commit()
    return ok("payment exception resolved", row.as_api())
