"""
Security utilities: authenticated account context and public-endpoint rate limiting
"""

import logging
import time
from collections import defaultdict
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from firebase_admin import auth as firebase_auth

from wedding_manager.core.config import settings
from wedding_manager.services.firebase_client import verify_session_token
from wedding_manager.utils.errors import Unauthorized

logger = logging.getLogger(__name__)

# Simple in-memory rate limiter
rate_limiter = defaultdict(list)

security = HTTPBearer(auto_error=False)

@dataclass(frozen=True)
class AuthContext:
    """The organizer account every scoped read/write runs as"""
    account_id: str

def get_auth_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> AuthContext:
    """Resolve the caller's account from the session token"""
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Unauthorized")

    try:
        account_id = verify_session_token(credentials.credentials)
    except (ValueError, firebase_auth.InvalidIdTokenError) as e:
        logger.info(f"Rejected session token: {e}")
        raise Unauthorized("Unauthorized")

    return AuthContext(account_id=account_id)

def rate_limit_check(client_ip: str, limit: int = None) -> bool:
    """Simple rate limiting by IP address"""
    if limit is None:
        limit = settings.RATE_LIMIT_PER_MINUTE

    current_time = time.time()
    minute_ago = current_time - 60

    # Clean old requests, dropping addresses that went quiet
    for ip in list(rate_limiter):
        recent = [req_time for req_time in rate_limiter[ip] if req_time > minute_ago]
        if recent:
            rate_limiter[ip] = recent
        else:
            del rate_limiter[ip]

    if len(rate_limiter[client_ip]) >= limit:
        return False

    rate_limiter[client_ip].append(current_time)
    return True

def get_client_ip(request: Request) -> str:
    """Extract client IP from request"""
    # Forwarded IP first (reverse proxy setups)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"
