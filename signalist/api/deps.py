# signalist/api/deps.py
"""API dependencies: current user, repositories and the Finnhub client"""

from typing import Any, Dict, Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from bson import ObjectId

from signalist.core.security import decode_access_token
from signalist.core.config import settings
from signalist.db import get_repository
from signalist.db.repositories import UserRepository, WatchlistRepository
from signalist.logger import get_logger
from signalist.services.finnhub_client import FinnhubClient, get_finnhub_client
from signalist.watchlist.reconciler import WatchlistReconciler

log = get_logger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login", auto_error=False)


def get_user_repository() -> UserRepository:
    return get_repository(UserRepository)


def get_watchlist_repository() -> WatchlistRepository:
    return get_repository(WatchlistRepository)


def get_reconciler(
    repo: WatchlistRepository = Depends(get_watchlist_repository),
) -> WatchlistReconciler:
    return WatchlistReconciler(repo)


def get_finnhub() -> FinnhubClient:
    return get_finnhub_client()


async def _resolve_user(token: Optional[str], users: UserRepository) -> Optional[Dict[str, Any]]:
    """User document for a bearer token, or None when it does not resolve."""
    if not token:
        return None

    payload = decode_access_token(token)
    if not payload:
        log.warning("Token decode failed - invalid token")
        return None

    user_id = payload.get("sub")
    if not user_id or not ObjectId.is_valid(user_id):
        log.warning("Token has no valid 'sub' field")
        return None

    user = await users.find_by_id(user_id)
    if not user:
        log.warning(f"User not found: {user_id}")
        return None
    if not user.get("is_active", False):
        return None
    return user


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    users: UserRepository = Depends(get_user_repository),
) -> Dict[str, Any]:
    """Current user from the JWT; 401 when it cannot be resolved"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        user = await _resolve_user(token, users)
    except Exception as e:
        log.error(f"Error fetching user: {e}")
        raise credentials_exception
    if not user:
        raise credentials_exception
    return user


async def get_optional_user(
    token: Optional[str] = Depends(optional_oauth2_scheme),
    users: UserRepository = Depends(get_user_repository),
) -> Optional[Dict[str, Any]]:
    """Like get_current_user but returns None instead of raising"""
    try:
        return await _resolve_user(token, users)
    except Exception as e:
        log.error(f"Error fetching user: {e}")
        return None
