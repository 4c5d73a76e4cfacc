"""Retrying a call with a constant delay between attempts."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class ConstantBackoffConfig:
    """Delay and limits, in seconds, for constant backoff.

    ``max_retries`` counts retries after the first attempt; None means no limit.
    ``max_elapsed_time`` of zero means no time limit.
    """

    delay: float
    max_retries: int | None = None
    max_elapsed_time: float = 0.0


class PermanentError(Exception):
    """Wraps an error that must not be retried."""

    def __init__(self, error: BaseException):
        super().__init__(str(error))
        self.error = error


class RetryError(Exception):
    """Raised when retrying gives up."""

    def __init__(self, message: str, last_error: BaseException | None):
        detail = f"{message}: {last_error}" if last_error is not None else message
        super().__init__(detail)
        self.last_error = last_error


def mark_error_permanent(err: BaseException) -> PermanentError:
    """Mark an error so that ``retry`` stops at once instead of trying again."""
    return PermanentError(err)


def retry(function: Callable[[], T], config: ConstantBackoffConfig) -> T:
    """Call ``function`` until it succeeds, waiting ``config.delay`` between attempts."""
    started = time.monotonic()
    attempts = 0
    while True:
        attempts += 1
        try:
            return function()
        except PermanentError as err:
            raise RetryError("permanent error happened during retrying", err.error) from err.error
        except Exception as err:  # noqa: BLE001 - every other error is transient
            last_error = err
        if config.max_retries is not None and attempts > config.max_retries:
            break
        if config.max_elapsed_time and time.monotonic() - started + config.delay > config.max_elapsed_time:
            break
        time.sleep(config.delay)
    raise RetryError("all attempts failed", last_error) from last_error