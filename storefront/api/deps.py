# storefront/api/deps.py
from functools import lru_cache

from fastapi import Header, HTTPException

from storefront.domain.results import ActionResult
from storefront.services.auth_client import AuthClient
from storefront.services.count_cache import CartCountCache, build_count_cache


@lru_cache
def get_auth_client() -> AuthClient:
    return AuthClient()


@lru_cache
def get_count_cache() -> CartCountCache | None:
    return build_count_cache()


def get_current_user_id(authorization: str | None = Header(None)) -> str | None:
    """
    Bearer token -> user id, None when anonymous.

    Never raises: each use case decides how to answer a missing user.
    """
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return get_auth_client().resolve_user_id(token.strip())


def unwrap(result: ActionResult):
    if not result.success:
        raise HTTPException(status_code=result.status_code, detail=result.error)
    return result.data
