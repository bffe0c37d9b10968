# utils/rate_limit.py
import jwt
from flask import request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from config import Config
from utils.auth import decode_access_token


def user_or_ip_key():
    """Count requests per signed-in user, or per client address without a valid token."""
    auth_header = request.headers.get('Authorization', '')
    if not auth_header.startswith('Bearer '):
        return get_remote_address()
    try:
        data = decode_access_token(auth_header[len('Bearer '):].strip())
        return f"user:{int(data['userId'])}"
    except (jwt.InvalidTokenError, TypeError, ValueError):
        return get_remote_address()


def sync_rate_limit():
    # Read per request so the limit can be changed without rebuilding the app
    return Config.SYNC_RATE_LIMIT


limiter = Limiter(key_func=user_or_ip_key, storage_uri=Config.RATELIMIT_STORAGE_URI)
