# storefront/domain/results.py
from functools import wraps
from typing import Any

from pydantic import BaseModel

from storefront.domain.errors import StoreError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class ActionResult(BaseModel):
    """success/failure envelope returned by every public service call"""

    success: bool
    data: Any = None
    error: str | None = None
    status_code: int = 200

    @classmethod
    def ok(cls, data: Any = None) -> "ActionResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: StoreError) -> "ActionResult":
        return cls(success=False, error=error.message, status_code=error.status_code)


def action(default_message: str):
    """
    Wrap a service method so it never raises past its boundary.

    StoreError -> its own message, anything else -> default_message
    (internal detail is only logged).
    """

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return ActionResult.ok(fn(*args, **kwargs))
            except StoreError as e:
                logger.info(f"{fn.__qualname__} rejected: {e.message}")
                return ActionResult.fail(e)
            except Exception:
                logger.exception(f"{fn.__qualname__} failed unexpectedly")
                return ActionResult(success=False, error=default_message, status_code=500)

        return wrapper

    return decorator
