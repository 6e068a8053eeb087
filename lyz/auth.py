from datetime import datetime, timedelta
from functools import wraps

from flask import current_app, g, jsonify, request
from jose import jwt, JWTError

ALGORITHM = "HS256"


def _encode(claims, lifetime):
    now = datetime.utcnow()
    claims = dict(claims)
    claims["iat"] = int(now.timestamp())
    claims["exp"] = int((now + lifetime).timestamp())
    return jwt.encode(claims, current_app.config["JWT_SECRET"], algorithm=ALGORITHM)


def generate_token(user):
    """Short-lived access token carrying the claims used for authorization"""
    return _encode(
        {
            "id": user.id,
            "email": user.email,
            "role": user.role,
            "company_id": user.company_id,
            "type": "access",
        },
        timedelta(minutes=current_app.config["JWT_EXPIRATION_MINUTES"]),
    )


def generate_refresh_token(user):
    return _encode(
        {"id": user.id, "type": "refresh"},
        timedelta(days=current_app.config["JWT_REFRESH_EXPIRATION_DAYS"]),
    )


def verify_token(token, expected_type="access"):
    """Return the claims of a valid token of the expected type, else None"""
    try:
        claims = jwt.decode(token, current_app.config["JWT_SECRET"], algorithms=[ALGORITHM])
    except JWTError:
        return None
    if claims.get("type") != expected_type:
        return None
    return claims


def token_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        auth = request.headers.get("Authorization", None)
        token = auth.split(" ")[1] if auth and " " in auth else auth
        if not token:
            return jsonify({"message": "No token provided"}), 401
        claims = verify_token(token)
        if not claims:
            return jsonify({"message": "Invalid or expired token"}), 403
        g.current_user = claims
        return f(*args, **kwargs)
    return decorated


def superadmin_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        claims = getattr(g, "current_user", None)
        if not claims:
            return jsonify({"message": "Authentication required"}), 401
        if claims.get("role") != "superadmin":
            return jsonify({"message": "Superadmin privileges required"}), 403
        return f(*args, **kwargs)
    return decorated


def is_superadmin():
    return g.current_user.get("role") == "superadmin"
