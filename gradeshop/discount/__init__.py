from flask import Blueprint

bp = Blueprint("discount", __name__, url_prefix="/api/admin/discounts")

from . import routes  # noqa: E402,F401
