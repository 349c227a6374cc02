import datetime
import logging

import jwt
from flask import current_app

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


def get_jwt_token(user_data, secret_key=None, expires_in=datetime.timedelta(hours=24)):
    """Generate JWT token with user payload"""
    if not user_data:
        raise ValueError("User data must be provided to generate JWT token")

    expiration = datetime.datetime.now(datetime.timezone.utc) + expires_in
    payload = {"exp": expiration, **user_data}

    return jwt.encode(payload, secret_key or current_app.config["SECRET_KEY"], algorithm=ALGORITHM)


def decode_jwt(token, secret_key=None):
    """Decode and validate a JWT token. Returns the payload, or None if it is expired or invalid."""
    try:
        return jwt.decode(token, secret_key or current_app.config["SECRET_KEY"], algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.info("Token expired")
        return None
    except jwt.InvalidTokenError:
        logger.info("Invalid token provided")
        return None
