"""
Review Poller - Store Publisher

PURPOSE:
    Wait for the store's automated code review to reach a verdict. The store
    has no push notification for this; the only way is to fetch the results
    again and again until they stop being "pending".

    Stage 5 fetches exactly once. This module is the scheduling
    layer on top: interval, attempt budget, optional exponential backoff and
    jitter, and cancellation through a threading.Event.

CALLED BY:
    Release tooling after stage_6_publish_binary.publish_extension_binary().

DESIGN DECISIONS:
    - Review duration is unbounded on the store's side, so the caller MUST
      pick max_attempts. There is no "wait forever" mode.
    - With a cancel_event the wait between attempts is cancel_event.wait(),
      so setting the event from another thread stops polling right away.
    - on_state(state, result) is called after every fetch, pending ones
      included, so callers can show progress.
"""

import logging
import random
import threading
import time
from typing import Callable, Optional

from _store_publisher.stage_5_code_review import (
    ReviewState,
    get_binary_review_results,
    latest_review_result,
    review_state,
)
from _store_publisher.store_api import StoreAPI
from _store_publisher.store_errors import ReviewCancelledError, ReviewTimeoutError
from _store_publisher.store_models import BinaryReviewResult

logger = logging.getLogger(__name__)


def poll_review(
    api: StoreAPI,
    extension_id: int,
    binary_id: int,
    interval: float = 10.0,
    max_attempts: int = 60,
    backoff: float = 1.0,
    max_interval: float = 60.0,
    jitter: float = 0.0,
    cancel_event: Optional[threading.Event] = None,
    on_state: Optional[Callable[[ReviewState, Optional[BinaryReviewResult]], None]] = None,
) -> BinaryReviewResult:
    """
    Fetch review results until they are no longer pending.

    Args:
        interval: Seconds to wait after the first pending fetch.
        max_attempts: Total number of fetches before giving up.
        backoff: Multiplier applied to the wait after each pending fetch
                 (1.0 keeps a fixed interval).
        max_interval: Upper bound for a single wait, before jitter.
        jitter: Up to this many random seconds are added to every wait.
        cancel_event: Set it to stop polling.
        on_state: Called with (state, result) after each fetch.

    Returns:
        The terminal (succeeded or failed) review result.

    Raises:
        ReviewTimeoutError: still pending after max_attempts fetches.
        ReviewCancelledError: cancel_event was set.
        StoreRequestError: a fetch failed. Not retried.
        ValueError: a timing argument is out of range.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    if interval < 0 or max_interval < 0 or jitter < 0:
        raise ValueError("interval, max_interval and jitter must not be negative")
    if backoff <= 0:
        raise ValueError("backoff must be positive")

    next_delay = min(interval, max_interval)

    for attempt in range(max_attempts):
        if cancel_event is not None and cancel_event.is_set():
            raise ReviewCancelledError("Code review polling was cancelled")

        result = latest_review_result(
            get_binary_review_results(api, extension_id, binary_id)
        )
        state = review_state(result)
        logger.debug(
            "Review of binary %d: %s (attempt %d/%d)",
            binary_id, state.value, attempt + 1, max_attempts,
        )

        if on_state is not None:
            on_state(state, result)

        if state is not ReviewState.PENDING:
            logger.info("Code review of binary %d finished: %s", binary_id, state.value)
            return result

        if attempt == max_attempts - 1:
            break

        delay = next_delay
        next_delay = min(next_delay * backoff, max_interval)
        if jitter:
            delay += random.uniform(0, jitter)

        if cancel_event is not None:
            if cancel_event.wait(delay):
                raise ReviewCancelledError("Code review polling was cancelled")
        else:
            time.sleep(delay)

    raise ReviewTimeoutError(max_attempts)
