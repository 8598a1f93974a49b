from flask import request, abort
from werkzeug.security import check_password_hash
from flask_login import login_user, logout_user, login_required, current_user
from ...errors import AuthorizationError, ValidationError
from ...models.user import User
from .. import send_response
from . import bp
from functools import wraps

def role_required(*roles):
    def deco(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            if not current_user.is_authenticated or current_user.role not in roles:
                abort(403)
            return f(*args, **kwargs)
        return wrapper
    return deco

@bp.post("/login")
def login():
    payload = request.get_json(silent=True) or {}
    username = (payload.get("username") or "").strip()
    password = payload.get("password") or ""
    if not username or not password:
        raise ValidationError("Username and password are required")
    u = User.query.filter_by(username=username).one_or_none()
    if not u or not check_password_hash(u.password_hash, password):
        raise AuthorizationError("Incorrect username or password")
    login_user(u)
    return send_response({"user_id": u.id, "role": u.role, "school_id": u.school_id},
                         message="Logged in")

@bp.get("/logout")
@login_required
def logout():
    logout_user()
    return send_response(message="Logged out")
