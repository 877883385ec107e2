# storefront/services/auth_client.py
import requests
from requests import RequestException

from storefront.utils.retry import http_retry
from storefront.utils.settings import AUTH_SERVICE_URL, AUTH_TIMEOUT_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

_REJECTED = (401, 403, 404)


class AuthClient:
    """
    Resolves a session token to a user id through the auth provider.

    Anything other than a clean answer from the provider means "not logged
    in": a missing token, a rejected token, or an unreachable provider.
    """

    def __init__(self, base_url: str | None = None, timeout: int = AUTH_TIMEOUT_SECONDS):
        self.base_url = (base_url or AUTH_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def verify_session(self, token: str) -> dict:
        url = f"{self.base_url}/sessions/verify"
        logger.info(f"AuthClient POST {url}")

        resp = requests.post(url, json={"token": token}, timeout=self.timeout)
        if resp.status_code in _REJECTED:
            return {}
        resp.raise_for_status()
        return resp.json()

    def resolve_user_id(self, token: str | None) -> str | None:
        if not token:
            return None
        try:
            data = self.verify_session(token)
        except (RequestException, ValueError) as e:
            logger.warning(f"Session verification failed, treating as anonymous: {e}")
            return None
        user_id = data.get("user_id") if isinstance(data, dict) else None
        return str(user_id) if user_id else None
