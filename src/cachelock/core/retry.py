"""Retry policies built on tenacity."""

from __future__ import annotations

import abc
import asyncio
import datetime as dt
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Tuple, Type

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    stop_never,
    wait_none,
)


SleepDurationProvider = Callable[[int], dt.timedelta]


@dataclass(frozen=True)
class RetryOutcome:
    """Outcome of a failed attempt: either an exception or an unwanted result."""

    exception: Optional[BaseException] = None
    result: Any = None


RetryAction = Callable[[RetryOutcome, int], None]


def default_sleep_duration(attempt: int) -> dt.timedelta:
    return dt.timedelta(seconds=2 ** attempt)


class RetryPolicy(abc.ABC):
    """Fluent retry configuration. Configuration methods return ``self``."""

    @abc.abstractmethod
    def forever(self) -> "RetryPolicy":  # pragma: no cover - interface
        raise NotImplementedError

    @abc.abstractmethod
    def wait(self, sleep_duration_provider: Optional[SleepDurationProvider] = None) -> "RetryPolicy":  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    def on_retry(self, action: RetryAction) -> "RetryPolicy":  # pragma: no cover - interface
        raise NotImplementedError

    @abc.abstractmethod
    def execute(self, fn: Optional[Callable[..., Any]], *args: Any, **kwargs: Any) -> Any:  # pragma: no cover
        raise NotImplementedError

    @abc.abstractmethod
    async def execute_async(
        self, fn: Optional[Callable[..., Awaitable[Any]]], *args: Any, **kwargs: Any
    ) -> Any:  # pragma: no cover
        raise NotImplementedError


class TenacityRetryPolicy(RetryPolicy):
    """Retry ``fn`` on the given exception types and/or unwanted results.

    ``count`` is the number of retries after the first attempt. A missing or
    non-positive count means a single retry. Once retries run out the last
    exception is re-raised, or the last result is returned.
    """

    def __init__(
        self,
        retry_on: Tuple[Type[BaseException], ...] = (Exception,),
        count: Optional[int] = None,
        *,
        result_predicate: Optional[Callable[[Any], bool]] = None,
        sleep: Optional[Callable[[float], Any]] = None,
        async_sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> None:
        self._retry_on = retry_on
        self._count = count
        self._result_predicate = result_predicate
        self._forever = False
        self._wait = False
        self._sleep_duration_provider: Optional[SleepDurationProvider] = None
        self._on_retry: Optional[RetryAction] = None
        self._sleep = sleep or time.sleep
        self._async_sleep = async_sleep or asyncio.sleep

    def forever(self) -> "TenacityRetryPolicy":
        self._forever = True
        return self

    def wait(self, sleep_duration_provider: Optional[SleepDurationProvider] = None) -> "TenacityRetryPolicy":
        self._wait = True
        self._sleep_duration_provider = sleep_duration_provider
        return self

    def on_retry(self, action: RetryAction) -> "TenacityRetryPolicy":
        self._on_retry = action
        return self

    @property
    def retry_count(self) -> int:
        return self._count if self._count and self._count > 0 else 1

    def _retry_condition(self):
        condition = retry_if_exception_type(self._retry_on)
        if self._result_predicate is not None:
            condition = condition | retry_if_result(self._result_predicate)
        return condition

    def _wait_strategy(self):
        if not self._wait:
            return wait_none()
        provider = self._sleep_duration_provider or default_sleep_duration

        def _wait(retry_state: RetryCallState) -> float:
            return provider(retry_state.attempt_number).total_seconds()

        return _wait

    def _before_sleep(self, retry_state: RetryCallState) -> None:
        if self._on_retry is None:
            return
        outcome = retry_state.outcome
        if outcome is not None and outcome.failed:
            self._on_retry(RetryOutcome(exception=outcome.exception()), retry_state.attempt_number)
        else:
            result = outcome.result() if outcome is not None else None
            self._on_retry(RetryOutcome(result=result), retry_state.attempt_number)

    @staticmethod
    def _last_outcome(retry_state: RetryCallState) -> Any:
        return retry_state.outcome.result()

    def _options(self) -> dict:
        return {
            "retry": self._retry_condition(),
            "stop": stop_never if self._forever else stop_after_attempt(self.retry_count + 1),
            "wait": self._wait_strategy(),
            "before_sleep": self._before_sleep,
            "retry_error_callback": self._last_outcome,
        }

    def execute(self, fn: Optional[Callable[..., Any]], *args: Any, **kwargs: Any) -> Any:
        if fn is None:
            return None
        return Retrying(sleep=self._sleep, **self._options())(fn, *args, **kwargs)

    async def execute_async(
        self, fn: Optional[Callable[..., Awaitable[Any]]], *args: Any, **kwargs: Any
    ) -> Any:
        if fn is None:
            return None
        return await AsyncRetrying(sleep=self._async_sleep, **self._options())(fn, *args, **kwargs)


class EmptyRetryPolicy(RetryPolicy):
    """Policy that never retries."""

    def forever(self) -> "EmptyRetryPolicy":
        return self

    def wait(self, sleep_duration_provider: Optional[SleepDurationProvider] = None) -> "EmptyRetryPolicy":
        return self

    def on_retry(self, action: RetryAction) -> "EmptyRetryPolicy":
        return self

    def execute(self, fn: Optional[Callable[..., Any]], *args: Any, **kwargs: Any) -> Any:
        if fn is None:
            return None
        return fn(*args, **kwargs)

    async def execute_async(
        self, fn: Optional[Callable[..., Awaitable[Any]]], *args: Any, **kwargs: Any
    ) -> Any:
        if fn is None:
            return None
        return await fn(*args, **kwargs)


EMPTY_RETRY_POLICY = EmptyRetryPolicy()
