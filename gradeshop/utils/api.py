# --- gradeshop/utils/api.py ---
from .timeutil import utcnow

def _envelope(status: bool, message, data=None):
    return {
        "status": status,
        "message": message,
        "data": data if data is not None else {},
        "api_time": utcnow().strftime("%Y-%m-%d %H:%M:%S"),
    }

def api_ok(message, data=None):
    return _envelope(True, message, data)

def api_error(message, data=None):
    return _envelope(False, message, data)
