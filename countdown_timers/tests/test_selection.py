"""Tests for candidate selection: filtering, ranking, malformed records."""

import datetime
import itertools

from countdown_timers.models import CountdownTimer
from countdown_timers.services.selection import (
    filter_candidates,
    matches_target,
    normalize_collection_ids,
    normalize_product_id,
    select_timer,
)
from countdown_timers.tests.conftest import NOW, build_timer

PRODUCT = "gid://shopify/Product/111"
OTHER_PRODUCT = "gid://shopify/Product/222"
COLLECTION = "gid://shopify/Collection/900"

HOUR = datetime.timedelta(hours=1)


def _timer(pk, **overrides):
    timer = build_timer(**overrides)
    timer.pk = pk
    return timer


# ---------------------------------------------------------------------------
# ID normalisation
# ---------------------------------------------------------------------------


class TestNormalisation:
    def test_bare_product_id_becomes_gid(self):
        assert normalize_product_id("111") == PRODUCT

    def test_product_gid_unchanged(self):
        assert normalize_product_id(PRODUCT) == PRODUCT

    def test_collection_ids_normalised_and_blank_dropped(self):
        assert normalize_collection_ids(["900", " ", COLLECTION]) == {COLLECTION}


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


class TestFilterCandidates:
    def test_inside_window_is_candidate(self):
        timer = _timer(1)
        assert [t for t, _ in filter_candidates([timer], NOW, "111")] == [timer]

    def test_not_started_excluded(self):
        timer = _timer(1, start_at=NOW + HOUR, end_at=NOW + 2 * HOUR)
        assert filter_candidates([timer], NOW, "111") == []

    def test_ended_excluded(self):
        timer = _timer(1, start_at=NOW - 2 * HOUR, end_at=NOW - HOUR)
        assert filter_candidates([timer], NOW, "111") == []

    def test_window_bounds_inclusive(self):
        starts_now = _timer(1, start_at=NOW, end_at=NOW + HOUR)
        ends_now = _timer(2, start_at=NOW - HOUR, end_at=NOW)
        assert len(filter_candidates([starts_now, ends_now], NOW, "111")) == 2

    def test_iso_string_instants_accepted(self):
        timer = _timer(
            1,
            start_at="2025-06-01T00:00:00Z",
            end_at="2025-06-02T00:00:00.000Z",
        )
        assert len(filter_candidates([timer], NOW, "111")) == 1

    def test_malformed_instant_excluded_not_raised(self):
        bad = _timer(1, start_at="not-a-date")
        missing = _timer(2, end_at=None)
        good = _timer(3)
        result = filter_candidates([bad, missing, good], NOW, "111")
        assert [t.pk for t, _ in result] == [3]


class TestMatchesTarget:
    def test_all_scope_matches_any_product(self):
        timer = _timer(1)
        assert matches_target(timer, OTHER_PRODUCT, set()) is True

    def test_product_scope_requires_membership(self):
        timer = _timer(
            1,
            target_scope=CountdownTimer.TargetScope.PRODUCT,
            product_ids=[PRODUCT],
        )
        assert matches_target(timer, PRODUCT, set()) is True
        assert matches_target(timer, OTHER_PRODUCT, set()) is False

    def test_collection_scope_requires_intersection(self):
        timer = _timer(
            1,
            target_scope=CountdownTimer.TargetScope.COLLECTION,
            collection_ids=[COLLECTION],
        )
        assert matches_target(timer, PRODUCT, {COLLECTION}) is True
        assert matches_target(timer, PRODUCT, {"gid://shopify/Collection/1"}) is False
        assert matches_target(timer, PRODUCT, set()) is False

    def test_unknown_scope_never_matches(self):
        timer = _timer(1, target_scope="vendor")
        assert matches_target(timer, PRODUCT, {COLLECTION}) is False


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


class TestSelectTimer:
    def test_no_candidates_returns_none(self):
        assert select_timer([], NOW, "111") is None

    def test_product_scope_beats_all_regardless_of_end(self):
        general = _timer(1, end_at=NOW + HOUR)
        specific = _timer(
            2,
            end_at=NOW + 30 * HOUR,
            target_scope=CountdownTimer.TargetScope.PRODUCT,
            product_ids=[PRODUCT],
        )
        assert select_timer([general, specific], NOW, "111") is specific

    def test_collection_scope_beats_all(self):
        general = _timer(1, end_at=NOW + HOUR)
        specific = _timer(
            2,
            end_at=NOW + 10 * HOUR,
            target_scope=CountdownTimer.TargetScope.COLLECTION,
            collection_ids=[COLLECTION],
        )
        assert select_timer([general, specific], NOW, "111", ["900"]) is specific

    def test_sooner_ending_wins_among_equally_specific(self):
        later = _timer(1, end_at=NOW + 2 * HOUR)
        sooner = _timer(2, end_at=NOW + HOUR)
        assert select_timer([later, sooner], NOW, "111") is sooner

    def test_newest_wins_on_equal_end(self):
        older = _timer(1, created_at=NOW - 3 * HOUR)
        newer = _timer(2, created_at=NOW - HOUR)
        assert select_timer([older, newer], NOW, "111") is newer

    def test_result_independent_of_input_order(self):
        timers = [
            _timer(1, end_at=NOW + 3 * HOUR),
            _timer(2, end_at=NOW + HOUR, created_at=NOW - 5 * HOUR),
            _timer(3, end_at=NOW + HOUR, created_at=NOW - 2 * HOUR),
            _timer(
                4,
                end_at=NOW + 9 * HOUR,
                target_scope=CountdownTimer.TargetScope.PRODUCT,
                product_ids=[OTHER_PRODUCT],
            ),
            _timer(5, start_at="garbage"),
        ]
        winners = {
            select_timer(list(order), NOW, "111").pk
            for order in itertools.permutations(timers)
        }
        assert winners == {3}

    def test_full_tie_is_still_deterministic(self):
        a = _timer(1)
        b = _timer(2)
        assert select_timer([a, b], NOW, "111") is select_timer([b, a], NOW, "111")

    def test_does_not_mutate_records(self):
        timer = _timer(1)
        select_timer([timer], NOW, "111")
        assert timer.view_count == 0
