from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Optional

import jwt
from flask import request, jsonify, current_app
from loguru import logger

from utils.error_handlers import log_error, create_error_response

PRIVILEGED_ROLES = ("admin", "super")


@dataclass(frozen=True)
class CurrentUser:
    """Caller identity carried by an access token."""

    id: str
    role: Optional[str] = None
    company: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES


def decode_token(token, secret_key=None):
    """
    Decode an access token.

    Args:
        token (str): The token to decode.
        secret_key (str, optional): Secret key for JWT decoding. If not provided,
                                  will attempt to get from Flask app config.

    Returns:
        dict: The decoded token payload.

    Raises:
        ValueError: If the token is missing, malformed, expired or badly signed.
    """
    if not token or token == "null":
        raise ValueError("Missing or invalid token")
    try:
        secret = secret_key or current_app.config["SECRET_KEY"]
        return jwt.decode(token, secret, algorithms=["HS256"])
    except jwt.PyJWTError as e:
        logger.error(f"Token decode error: {str(e)}")
        raise ValueError(f"Failed to decode token: {str(e)}")


def generate_token(user_data: dict, secret_key=None, expires_in=timedelta(hours=1)):
    """
    Generate an access token with the claims the API reads.

    Issuing tokens to end users belongs to the identity service; this is used by
    tooling and tests.

    Args:
        user_data (dict): id, role and optionally company and email.
        secret_key (str, optional): Secret key for JWT encoding. If not provided,
                                  will attempt to get from Flask app config.
        expires_in (timedelta): The time duration before the token expires.

    Returns:
        str: The encoded JWT token.
    """
    payload = {
        "id": str(user_data["id"]),
        "role": user_data.get("role"),
        "company": str(user_data["company"]) if user_data.get("company") else None,
        "email": user_data.get("email"),
        "exp": datetime.now(timezone.utc) + expires_in,
    }

    secret = secret_key or current_app.config["SECRET_KEY"]
    return jwt.encode(payload, secret, algorithm="HS256")


def get_token(request):
    """
    Retrieve the token from the Authorization header, falling back to cookies.

    Returns:
        str: The token if found, or None if not present.
    """
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        parts = auth_header.split()
        return parts[1] if len(parts) > 1 else None

    token = request.cookies.get("token")
    if token and token != "null":
        return token

    return None


def token_required(f):
    """Pass the authenticated CurrentUser as the first argument of the route."""

    @wraps(f)
    def decorated(*args, **kwargs):
        token = get_token(request)
        if not token:
            return jsonify({"message": "Authentication required"}), 401

        try:
            claims = decode_token(token)
        except ValueError:
            return jsonify({"message": "Invalid or expired token"}), 401

        if not claims.get("id"):
            return jsonify({"message": "Invalid or expired token"}), 401

        user = CurrentUser(
            id=str(claims["id"]),
            role=claims.get("role"),
            company=str(claims["company"]) if claims.get("company") else None,
            email=claims.get("email"),
        )
        return f(user, *args, **kwargs)

    return decorated


def roles_required(*roles):
    """Decorator for routes restricted to the given roles."""

    def decorator(f):
        @wraps(f)
        def decorated_function(user, *args, **kwargs):
            if user.role not in roles:
                log_error(
                    ValueError(f"Role {user.role!r} not in {', '.join(roles)}"),
                    "Authorization error",
                )
                return jsonify(create_error_response("Access denied")), 403
            return f(user, *args, **kwargs)

        return decorated_function

    return decorator


def is_authorized_for_company(user: Optional[CurrentUser], company_id) -> bool:
    """
    Admins and supers may act on any company; everyone else only on their own.
    """
    if not user:
        return False
    if user.is_privileged:
        return True
    if not user.company:
        return False
    return str(user.company) == str(company_id)


def validate_input(required_fields):
    """Decorator for validating required request fields."""

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            data = request.get_json(silent=True) or {}
            missing_fields = [field for field in required_fields if field not in data]
            if missing_fields:
                error_message, _ = log_error(
                    ValueError(f"Missing required fields: {', '.join(missing_fields)}"),
                    "Input validation error",
                )
                return jsonify(create_error_response(error_message)), 400
            return f(*args, **kwargs)

        return decorated_function

    return decorator
