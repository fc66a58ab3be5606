"""FastAPI dependency that rejects duplicate submissions with a named lock."""

from __future__ import annotations

import datetime as dt
from typing import AsyncIterator, Callable, Optional

from fastapi import Depends, Request
from fastapi.responses import JSONResponse

from cachelock.core.locks import NULL_LOCK, Lock, build_lock_key
from cachelock.core.models import LockType, Result, StateCode
from cachelock.utils.logging import get_logger


USER_DUPLICATE_MESSAGE = "Your request is being processed, please do not submit it again."
GLOBAL_DUPLICATE_MESSAGE = "Another request is being processed, please try again later."

UserResolver = Callable[[Request], Optional[str]]

logger = get_logger("filters")


class DuplicateRequestError(Exception):
    """Raised when the lock guarding an endpoint is already held."""

    def __init__(self, key: str, lock_type: LockType) -> None:
        self.key = key
        self.lock_type = lock_type
        message = USER_DUPLICATE_MESSAGE if lock_type is LockType.USER else GLOBAL_DUPLICATE_MESSAGE
        super().__init__(message)

    @property
    def message(self) -> str:
        return self.args[0]


def header_user_resolver(header: str = "X-User-Id") -> UserResolver:
    def _resolve(request: Request) -> Optional[str]:
        return request.headers.get(header)

    return _resolve


def _create_lock(request: Request) -> Lock:
    factory = getattr(request.app.state, "lock_factory", None)
    if factory is None:
        return NULL_LOCK
    return factory()


def _user_id(request: Request) -> Optional[str]:
    resolver: Optional[UserResolver] = getattr(request.app.state, "user_resolver", None)
    if resolver is None:
        return None
    return resolver(request)


def request_lock_key(request: Request, key: Optional[str], lock_type: LockType) -> str:
    operation = key if key and key.strip() else request.url.path
    user_id = _user_id(request) if lock_type is LockType.USER else None
    return build_lock_key(operation, lock_type, user_id)


def lock_request(key: Optional[str] = None, *, lock_type: LockType = LockType.USER, interval: int = 0):
    """Guard an endpoint so only one matching request runs at a time.

    ``interval`` is the lock expiration in seconds; 0 means the lock is
    removed as soon as the endpoint finishes. With an interval the lock
    stays until it expires, which also throttles resubmission.

    Usage::

        @app.post("/orders", dependencies=[lock_request("orders:create")])
    """
    expiration = dt.timedelta(seconds=interval) if interval > 0 else None

    async def _guard(request: Request) -> AsyncIterator[None]:
        lock = _create_lock(request)
        lock_key = request_lock_key(request, key, lock_type)
        async with lock.hold(lock_key, expiration) as acquired:
            if not acquired:
                logger.info("Rejected duplicate request for lock %s", lock_key)
                raise DuplicateRequestError(lock_key, lock_type)
            yield

    return Depends(_guard)


async def duplicate_request_handler(request: Request, exc: DuplicateRequestError) -> JSONResponse:
    result = Result(code=StateCode.FAIL, message=exc.message)
    return JSONResponse(status_code=409, content=result.model_dump(mode="json"))
