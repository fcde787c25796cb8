from __future__ import annotations

import pytest

from _store_publisher.stage_5_code_review import (
    ReviewState,
    get_binary_review_results,
    get_summary,
    has_passed,
    has_warnings,
    is_pending,
    latest_review_result,
    review_state,
    trigger_code_review,
)
from _store_publisher.store_errors import StoreRequestError
from _store_publisher.store_models import BinaryReviewResult

from tests.helpers import EXTENSION_ID, review_payload

CHECKRESULTS = "/plugins/7/binaries/99/checkresults"


def _review(type_id: int, type_name: str = "", sub_checks=None) -> BinaryReviewResult:
    return BinaryReviewResult.from_dict(review_payload(type_id, type_name, sub_checks))


def _sub_check(name: str, passed: bool, warnings: bool = False, message: str = "") -> dict:
    return {
        "subCheck": name,
        "status": "ok" if passed else "failed",
        "passed": passed,
        "message": message,
        "hasWarnings": warnings,
    }


class TestClassification:
    def test_pending_by_id(self):
        review = _review(4)
        assert is_pending(review) is True
        assert has_passed(review) is False
        assert review_state(review) is ReviewState.PENDING

    def test_passed_by_id(self):
        review = _review(3, "somethingelse")
        assert has_passed(review) is True
        assert review_state(review) is ReviewState.SUCCEEDED

    @pytest.mark.parametrize("name", ["automaticcodereviewsucceeded", "AutomaticCodeReviewSucceeded"])
    def test_passed_by_name_only(self, name):
        review = _review(0, name)
        assert has_passed(review) is True
        assert is_pending(review) is False

    def test_other_types_are_failed(self):
        review = _review(5, "automaticcodereviewfailed")
        assert has_passed(review) is False
        assert is_pending(review) is False
        assert review_state(review) is ReviewState.FAILED

    def test_missing_result_counts_as_pending(self):
        assert review_state(None) is ReviewState.PENDING

    @pytest.mark.parametrize(
        "type_id, state",
        [(4, ReviewState.PENDING), (3, ReviewState.SUCCEEDED), (5, ReviewState.FAILED)],
    )
    def test_null_type_name_falls_back_to_id(self, type_id, state):
        review = BinaryReviewResult.from_dict({"type": {"id": type_id, "name": None}})
        assert review_state(review) is state


class TestWarnings:
    def test_single_warning_flags_the_review(self):
        review = _review(
            3,
            sub_checks=[
                _sub_check("phpstan", passed=True),
                _sub_check("sonarqube", passed=True, warnings=True),
            ],
        )
        assert has_passed(review) is True
        assert has_warnings(review) is True

    def test_warning_on_failed_sub_check(self):
        review = _review(5, sub_checks=[_sub_check("phpstan", passed=False, warnings=True)])
        assert has_warnings(review) is True

    def test_no_warnings(self):
        review = _review(5, sub_checks=[_sub_check("phpstan", passed=False)])
        assert has_warnings(review) is False


class TestSummary:
    def test_only_failed_sub_check_is_listed_and_sanitized(self):
        review = _review(
            5,
            sub_checks=[
                _sub_check("clean", passed=True, message="<b>all good</b>"),
                _sub_check("phpstan", passed=False, message="<script>x</script>hello"),
            ],
        )

        summary = get_summary(review)

        assert summary == "=== phpstan ===\nhello\n\n"

    def test_passed_with_warnings_is_listed(self):
        review = _review(
            3,
            sub_checks=[
                _sub_check("sonarqube", passed=True, warnings=True, message="<p>deprecated call</p>"),
                _sub_check("phpstan", passed=False, message="<ul><li>error</li></ul>"),
            ],
        )

        summary = get_summary(review)

        assert summary == "=== sonarqube ===\ndeprecated call\n\n=== phpstan ===\nerror\n\n"

    def test_clean_review_has_empty_summary(self):
        assert get_summary(_review(3, sub_checks=[_sub_check("phpstan", passed=True)])) == ""

    def test_null_sub_check_name_gives_empty_header(self):
        review = _review(5, sub_checks=[{"subCheck": None, "passed": False, "message": "x"}])

        assert get_summary(review) == "===  ===\nx\n\n"


class TestRemoteCalls:
    def test_trigger_code_review(self, api, session):
        session.add("POST", "/plugins/7/reviews", None)

        assert trigger_code_review(api, EXTENSION_ID) is None
        assert session.paths() == [("POST", "/plugins/7/reviews")]

    def test_fetch_results_once(self, api, session):
        session.add(
            "GET",
            CHECKRESULTS,
            [review_payload(4), review_payload(3, sub_checks=[_sub_check("phpstan", True)])],
        )

        results = get_binary_review_results(api, EXTENSION_ID, 99)

        assert len(session.calls) == 1
        assert [r.type.id for r in results] == [4, 3]
        assert results[1].sub_check_results[0].sub_check == "phpstan"
        assert latest_review_result(results) is results[1]

    def test_no_results_yet(self, api, session):
        session.add("GET", CHECKRESULTS, [])

        results = get_binary_review_results(api, EXTENSION_ID, 99)

        assert results == []
        assert latest_review_result(results) is None

    def test_fetch_error_is_labelled(self, api, session):
        session.add("GET", CHECKRESULTS, {"message": "forbidden"}, status=403)

        with pytest.raises(StoreRequestError) as exc_info:
            get_binary_review_results(api, EXTENSION_ID, 99)

        assert exc_info.value.label == "get_binary_review_results"
        assert exc_info.value.status_code == 403
