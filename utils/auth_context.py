from functools import wraps
from urllib.parse import quote
from flask import g, jsonify, redirect, request
from security.session import get_session_from_request

def load_admin_session():
    g.admin_session = get_session_from_request()

def is_admin() -> bool:
    return getattr(g, "admin_session", None) is not None

def admin_required(fn):
    """
    Pages under /admin bounce to the login form; API calls get a 401.
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if is_admin():
            return fn(*args, **kwargs)
        if request.path.startswith("/api/"):
            return jsonify(error="Authentication required"), 401
        return redirect("/admin/login?next=" + quote(request.full_path.rstrip("?"), safe=""))
    return wrapper
