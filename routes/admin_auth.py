from html import escape

from flask import Blueprint, request, jsonify, current_app, redirect

from security.csrf import issue_csrf_token, clear_csrf_token
from security.password import check_admin_password
from security.rate_limit import check_and_increment
from security.session import create_admin_session, revoke_session, set_session_cookie, clear_session_cookie
from utils.audit import log_event
from utils.auth_context import admin_required

admin_auth_bp = Blueprint("admin_auth", __name__, url_prefix="/admin")

LOGIN_PAGE = """
<html>
  <head><title>Admin login</title></head>
  <body style="font-family: system-ui; max-width: 420px; margin: 80px auto;">
    <h1>Practice admin</h1>
    {error}
    <form method="post" action="/admin/login">
      <input type="hidden" name="next" value="{next}">
      <label>Password <input type="password" name="password" autofocus></label>
      <button type="submit">Sign in</button>
    </form>
  </body>
</html>
"""


def _safe_next(value: str) -> str:
    # only same-site relative paths
    if not value or not value.startswith("/") or value.startswith("//"):
        return "/admin"
    return value


def _wants_json() -> bool:
    return request.is_json


@admin_auth_bp.get("/login")
def login_page():
    next_url = _safe_next(request.args.get("next", ""))
    return LOGIN_PAGE.format(error="", next=escape(next_url)), 200


@admin_auth_bp.post("/login")
def login():
    if _wants_json():
        data = request.get_json(silent=True) or {}
    else:
        data = request.form
    password = data.get("password") or ""
    next_url = _safe_next(data.get("next") or "")

    allowed, retry_after = check_and_increment("admin_login")
    if not allowed:
        log_event("ADMIN_LOGIN_RATE_LIMIT", actor="admin", metadata={"retry_after": retry_after})
        return jsonify(error="Too many login requests. Slow down.", retry_after_seconds=retry_after), 429

    if not check_admin_password(password):
        log_event("ADMIN_LOGIN_FAIL", actor="admin")
        if _wants_json():
            return jsonify(error="Invalid credentials"), 401
        page = LOGIN_PAGE.format(error="<p style=\"color: #b91c1c;\">Invalid password</p>", next=escape(next_url))
        return page, 401

    raw_token = create_admin_session()
    if _wants_json():
        resp = jsonify(message="Login OK", next=next_url)
    else:
        resp = redirect(next_url, code=303)
    set_session_cookie(resp, raw_token)
    issue_csrf_token(resp)

    log_event("ADMIN_LOGIN_SUCCESS", actor="admin")
    return resp


@admin_auth_bp.post("/logout")
@admin_required
def logout():
    cookie_name = current_app.config.get("AUTH_COOKIE_NAME", "admin_session")
    revoke_session(request.cookies.get(cookie_name))
    log_event("ADMIN_LOGOUT", actor="admin")

    resp = jsonify(message="Logged out")
    clear_session_cookie(resp)
    clear_csrf_token(resp)
    return resp, 200


@admin_auth_bp.get("")
@admin_required
def dashboard():
    return jsonify(
        message="Admin dashboard",
        practitioner=current_app.config.get("PRACTITIONER_NAME"),
        endpoints={
            "bookings": "/api/admin/bookings",
            "blocks": "/api/admin/blocks",
            "slots": "/api/availability/slots",
        },
    ), 200
