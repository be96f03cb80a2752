# gradeshop/discount/routes.py
from __future__ import annotations
import logging
from flask import request, jsonify
from ..extensions import db
from ..model import DiscountCode
from ..services.discount_admin_service import (
    create_discount_from_payload,
    update_discount_from_payload,
    toggle_discount,
)
from ..utils.api import api_ok, api_error
from ..utils.decorators import admin_required
from . import bp

logger = logging.getLogger(__name__)

def _get_or_404(discount_id: int):
    d = db.session.get(DiscountCode, discount_id)
    if not d:
        return None, (jsonify(api_error("discount code not found")), 404)
    return d, None

@bp.post("")
@admin_required
def create_discount():
    data = request.get_json(silent=True) or {}
    body, status = create_discount_from_payload(data)
    if status == 201:
        logger.info("discount code %s created", body["data"]["code"])
    return jsonify(body), status

@bp.get("")
@admin_required
def list_discounts():
    q = DiscountCode.query
    active = request.args.get("active")
    if active is not None:
        q = q.filter(DiscountCode.active == (active.lower() == "true"))

    items = q.order_by(DiscountCode.id.desc()).all()
    return jsonify(api_ok("ok", {"items": [d.as_api() for d in items], "total": len(items)})), 200

@bp.get("/<int:discount_id>")
@admin_required
def get_discount(discount_id: int):
    d, resp = _get_or_404(discount_id)
    if resp:
        return resp
    return jsonify(api_ok("ok", d.as_api())), 200

@bp.put("/<int:discount_id>")
@bp.patch("/<int:discount_id>")
@admin_required
def update_discount(discount_id: int):
    d, resp = _get_or_404(discount_id)
    if resp:
        return resp
    body, status = update_discount_from_payload(d, request.get_json(silent=True) or {})
    return jsonify(body), status

@bp.post("/<int:discount_id>/toggle")
@admin_required
def toggle(discount_id: int):
    d, resp = _get_or_404(discount_id)
    if resp:
        return resp
    body, status = toggle_discount(d)
    return jsonify(body), status

@bp.delete("/<int:discount_id>")
@admin_required
def delete_discount(discount_id: int):
    d, resp = _get_or_404(discount_id)
    if resp:
        return resp
    code = d.code
    db.session.delete(d)
    db.session.commit()
    logger.info("discount code %s deleted", code)
    return jsonify(api_ok("Discount code deleted", {"code": code})), 200
