"""
Stage 5: Code Review - Store Publisher

PURPOSE:
    After a binary is uploaded the store runs an automated code review on it.
    The review runs asynchronously on the store's side: we can only ask for
    it to start and then look at the results, which move from "pending" to
    a final verdict at some point we don't control.

    This stage provides:
    - trigger_code_review():       POST /plugins/{id}/reviews (no result body)
    - get_binary_review_results(): one GET of .../checkresults, no waiting
    - classification helpers:      has_passed / is_pending / has_warnings /
                                   review_state
    - get_summary():               a readable digest of failed or warning
                                   sub-checks

CALLED BY:
    stage_6_publish_binary.py (trigger) and review_poller.py (fetch +
    classify in a loop).

DEPENDS ON:
    - nh3 to strip markup from sub-check messages (the store sends HTML)

REVIEW TYPE CODES:
    The result's type is dual-keyed: a numeric id and a string name. The
    store has changed which one it fills reliably, so success matches on
    EITHER key:
        id 3 / "automaticcodereviewsucceeded"  -> succeeded
        id 4                                    -> pending
        anything else                           -> failed / other

DESIGN DECISIONS:
    - No sleeping and no retries in this module. Polling (interval,
      attempt budget, cancellation) lives in review_poller.py so the
      single fetch stays trivially testable.
    - "Has warnings" looks at every sub-check, passed or not.
"""

import logging
from enum import Enum
from typing import List, Optional

import nh3

from _store_publisher.store_api import StoreAPI
from _store_publisher.store_models import BinaryReviewResult

logger = logging.getLogger(__name__)

REVIEW_SUCCEEDED_ID = 3
REVIEW_SUCCEEDED_NAME = "automaticcodereviewsucceeded"
REVIEW_PENDING_ID = 4


class ReviewState(Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def trigger_code_review(api: StoreAPI, extension_id: int):
    """Ask the store to (re)start the automated review for the current binary."""
    api.post("trigger_code_review", f"{api.extension_path(extension_id)}/reviews")
    logger.info("Triggered code review for extension %d", extension_id)


def get_binary_review_results(
    api: StoreAPI, extension_id: int, binary_id: int
) -> List[BinaryReviewResult]:
    """Fetch the current review results of a binary. Single request, no waiting."""
    payload = api.get(
        "get_binary_review_results",
        f"{api.extension_path(extension_id)}/binaries/{binary_id}/checkresults",
    )
    return [BinaryReviewResult.from_dict(item) for item in payload or []]


def latest_review_result(results: List[BinaryReviewResult]) -> Optional[BinaryReviewResult]:
    """The store lists review runs oldest first; the last one is current."""
    return results[-1] if results else None


# ---------------------------------------------------------------------------
# CLASSIFICATION
# ---------------------------------------------------------------------------


def has_passed(review: BinaryReviewResult) -> bool:
    return (
        review.type.id == REVIEW_SUCCEEDED_ID
        or (review.type.name or "").lower() == REVIEW_SUCCEEDED_NAME
    )


def is_pending(review: BinaryReviewResult) -> bool:
    return review.type.id == REVIEW_PENDING_ID


def has_warnings(review: BinaryReviewResult) -> bool:
    return any(result.has_warnings for result in review.sub_check_results)


def review_state(review: Optional[BinaryReviewResult]) -> ReviewState:
    """
    Map a result onto PENDING / SUCCEEDED / FAILED.

    No result at all means the store hasn't registered the review yet,
    which we treat as pending.
    """
    if review is None:
        return ReviewState.PENDING
    if has_passed(review):
        return ReviewState.SUCCEEDED
    if is_pending(review):
        return ReviewState.PENDING
    return ReviewState.FAILED


def get_summary(review: BinaryReviewResult) -> str:
    """
    Build a plain-text digest of every sub-check that failed or warned.

    Each entry is "=== {sub check} ===" followed by the message with all
    markup (and script/style content) removed, then a blank line.
    Sub-checks that passed cleanly contribute nothing.
    """
    message = ""

    for result in review.sub_check_results:
        if result.passed and not result.has_warnings:
            continue

        message += f"=== {result.sub_check} ===\n"
        message += f"{nh3.clean(result.message, tags=set())}\n\n"

    return message
