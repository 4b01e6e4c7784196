"""Retry helpers.

``RetryPolicy`` is the pure attempt-counting state machine. Content-quality
retries drive it through ``run_with_policy`` with no delay between
attempts; the ``retry`` decorator drives the same machine for transport
failures and sleeps with exponential backoff between attempts.
"""
from __future__ import annotations

import functools
import logging
import random
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Generic, Tuple, Type, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ── Attempt state machine ────────────────────────────────────────────────


@dataclass(frozen=True)
class RetryState:
    attempt: int = 0
    max_attempts: int = 2
    last_error: BaseException | None = None


@dataclass(frozen=True)
class Continue:
    state: RetryState


@dataclass(frozen=True)
class Succeed(Generic[T]):
    value: T
    attempts: int


@dataclass(frozen=True)
class Fail:
    error: BaseException
    attempts: int


Decision = Union[Continue, Succeed, Fail]


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: BaseException


Outcome = Union[Ok, Err]


class RetryExhausted(Exception):
    def __init__(self, last_error: BaseException, attempts: int) -> None:
        super().__init__(f"gave up after {attempts} attempts: {last_error}")
        self.last_error = last_error
        self.attempts = attempts


class RetryPolicy:
    """Bounded attempts, no I/O.

    ``step`` folds one attempt outcome into the state and decides what
    happens next.
    """

    def __init__(self, max_attempts: int) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts

    def start(self) -> RetryState:
        return RetryState(attempt=0, max_attempts=self.max_attempts)

    def step(self, state: RetryState, outcome: Outcome) -> Decision:
        attempt = state.attempt + 1
        if isinstance(outcome, Ok):
            return Succeed(outcome.value, attempt)
        if attempt >= state.max_attempts:
            return Fail(outcome.error, attempt)
        return Continue(replace(state, attempt=attempt, last_error=outcome.error))


def run_with_policy(
    policy: RetryPolicy,
    fn: Callable[[int], T],
    *,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
) -> Succeed:
    """Call ``fn(attempt_number)`` sequentially until the policy stops.

    Exceptions outside ``retry_on`` propagate immediately. Exhaustion raises
    ``RetryExhausted`` carrying the last error and the attempt count.
    """
    state = policy.start()
    while True:
        try:
            outcome: Outcome = Ok(fn(state.attempt + 1))
        except retry_on as exc:
            outcome = Err(exc)
        decision = policy.step(state, outcome)
        if isinstance(decision, Succeed):
            return decision
        if isinstance(decision, Fail):
            raise RetryExhausted(decision.error, decision.attempts) from decision.error
        logger.warning(
            "Attempt %d/%d failed (%s), retrying",
            decision.state.attempt,
            decision.state.max_attempts,
            decision.state.last_error,
        )
        state = decision.state


# ── Transport retries ────────────────────────────────────────────────────


def backoff_delay(
    failed_attempt: int,
    *,
    base_delay: float,
    max_delay: float,
    backoff_factor: float,
    jitter: bool,
) -> float:
    """Seconds to wait after the ``failed_attempt``-th failure (1-based)."""
    delay = min(base_delay * backoff_factor ** (failed_attempt - 1), max_delay)
    return delay * (0.5 + random.random()) if jitter else delay


def retry(
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    backoff_factor: float = 2.0,
    jitter: bool = True,
    retryable: Tuple[Type[BaseException], ...] = (Exception,),
) -> Callable:
    """Decorator: re-call on ``retryable`` errors, sleeping with backoff.

    The last error is re-raised unchanged once ``max_attempts`` is spent.
    """
    policy = RetryPolicy(max_attempts)

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            state = policy.start()
            while True:
                try:
                    return fn(*args, **kwargs)
                except retryable as exc:
                    decision = policy.step(state, Err(exc))
                    if isinstance(decision, Fail):
                        logger.error(
                            "%s gave up after %d attempts: %s",
                            fn.__qualname__, decision.attempts, exc,
                        )
                        raise
                    state = decision.state
                    delay = backoff_delay(
                        state.attempt,
                        base_delay=base_delay,
                        max_delay=max_delay,
                        backoff_factor=backoff_factor,
                        jitter=jitter,
                    )
                    logger.warning(
                        "%s attempt %d/%d failed (%s), retrying in %.1fs",
                        fn.__qualname__, state.attempt, max_attempts, exc, delay,
                    )
                    time.sleep(delay)

        return wrapper

    return decorator
