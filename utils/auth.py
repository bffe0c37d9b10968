# utils/auth.py
import jwt
from functools import wraps
from flask import request, jsonify
import logging
from config import Config

logger = logging.getLogger(__name__)


def decode_access_token(token):
    """Verify an access token issued by the login service and return its claims."""
    data = jwt.decode(token, Config.JWT_SECRET, algorithms=[Config.JWT_ALGORITHM])
    if 'userId' not in data:
        raise jwt.InvalidTokenError("Token has no userId claim")
    return data


def token_required(f):
    """Decorator to protect routes with JWT. Passes the user id as first argument."""
    @wraps(f)
    def decorated(*args, **kwargs):
        auth_header = request.headers.get('Authorization', '')
        if not auth_header.startswith('Bearer '):
            logger.warning(f"Missing or malformed Authorization header for {request.path}")
            return jsonify({'error': 'Missing or invalid authorization header'}), 401

        token = auth_header[len('Bearer '):].strip()
        try:
            data = decode_access_token(token)
            current_user_id = int(data['userId'])
        except jwt.ExpiredSignatureError:
            logger.warning("Token has expired.")
            return jsonify({'error': 'Token has expired'}), 401
        except (jwt.InvalidTokenError, TypeError, ValueError) as e:
            logger.warning(f"Invalid token: {e}")
            return jsonify({'error': 'Invalid or expired token'}), 401

        return f(current_user_id, *args, **kwargs)

    return decorated
