"""Unit tests for the compatibility filter."""

from itertools import product
from uuid import uuid4

import pytest

from core.exceptions import ValidationError
from domain.entities.profile import MAX_AGE, MIN_AGE
from domain.services.compatibility import DiscoveryFilters, filter_candidates, is_candidate

DEFAULT_FILTERS = DiscoveryFilters(age_min=18, age_max=30, gender="all", interests=())

GENDERS = ["man", "woman", "non-binary"]
PREFERENCES = ["men", "women", "non-binary", "everyone", "everybody", None, "aliens"]


class TestMutualOrientation:
    def test_man_seeking_women_sees_woman_seeking_everyone(self, make_profile, event_id):
        me = make_profile(event_id, gender_identity="man", interested_in="women")
        other = make_profile(event_id, gender_identity="woman", age=25, interested_in="everyone")

        assert is_candidate(me, other, DEFAULT_FILTERS) is True

    def test_excluded_when_other_is_not_interested_in_my_gender(self, make_profile, event_id):
        me = make_profile(event_id, gender_identity="man", interested_in="women")
        other = make_profile(event_id, gender_identity="woman", age=25, interested_in="women")

        assert is_candidate(me, other, DEFAULT_FILTERS) is False

    def test_excluded_when_i_am_not_interested_in_their_gender(self, make_profile, event_id):
        me = make_profile(event_id, gender_identity="man", interested_in="men")
        other = make_profile(event_id, gender_identity="woman", interested_in="men")

        assert is_candidate(me, other, DEFAULT_FILTERS) is False

    def test_legacy_everybody_spelling_is_everyone(self, make_profile, event_id):
        me = make_profile(event_id, gender_identity="non-binary", interested_in="everybody")
        other = make_profile(event_id, gender_identity="man", interested_in="non-binary")

        assert is_candidate(me, other, DEFAULT_FILTERS) is True

    def test_missing_preference_satisfies_nothing(self, make_profile, event_id):
        me = make_profile(event_id, gender_identity="man", interested_in=None)
        other = make_profile(event_id, gender_identity="woman", interested_in="everyone")

        assert is_candidate(me, other, DEFAULT_FILTERS) is False

    def test_symmetric_for_every_orientation_pair(self, make_profile, event_id):
        for (g1, p1), (g2, p2) in product(product(GENDERS, PREFERENCES), repeat=2):
            a = make_profile(event_id, gender_identity=g1, interested_in=p1)
            b = make_profile(event_id, gender_identity=g2, interested_in=p2)

            assert is_candidate(a, b, DEFAULT_FILTERS) == is_candidate(b, a, DEFAULT_FILTERS)


class TestFilters:
    def test_self_is_never_a_candidate(self, make_profile, event_id):
        me = make_profile(event_id)

        assert is_candidate(me, me, DEFAULT_FILTERS) is False

    def test_hidden_profile_is_excluded(self, make_profile, event_id):
        me = make_profile(event_id)
        other = make_profile(event_id, is_visible=False)

        assert is_candidate(me, other, DEFAULT_FILTERS) is False

    def test_age_band_is_inclusive(self, make_profile, event_id):
        me = make_profile(event_id)
        filters = DiscoveryFilters(age_min=21, age_max=30)

        assert is_candidate(me, make_profile(event_id, age=21), filters) is True
        assert is_candidate(me, make_profile(event_id, age=30), filters) is True
        assert is_candidate(me, make_profile(event_id, age=20), filters) is False
        assert is_candidate(me, make_profile(event_id, age=31), filters) is False

    @pytest.mark.parametrize("age", [MIN_AGE, MAX_AGE])
    def test_default_filters_cover_every_accepted_age(self, make_profile, event_id, age):
        me = make_profile(event_id)
        other = make_profile(event_id, age=age)

        assert is_candidate(me, other, DiscoveryFilters()) is True

    def test_gender_filter(self, make_profile, event_id):
        me = make_profile(event_id, gender_identity="woman", interested_in="everyone")
        filters = DiscoveryFilters(gender="non-binary")

        assert is_candidate(me, make_profile(event_id, gender_identity="non-binary"), filters)
        assert not is_candidate(me, make_profile(event_id, gender_identity="woman"), filters)

    def test_interest_filter_requires_overlap(self, make_profile, event_id):
        me = make_profile(event_id)
        filters = DiscoveryFilters(interests=("music", "hiking"))

        assert is_candidate(me, make_profile(event_id, interests=["hiking", "art"]), filters)
        assert not is_candidate(me, make_profile(event_id, interests=["art"]), filters)
        assert not is_candidate(me, make_profile(event_id, interests=[]), filters)

    def test_filters_reject_inverted_age_range(self):
        with pytest.raises(ValidationError):
            DiscoveryFilters(age_min=40, age_max=30)

    def test_filters_reject_more_than_three_interests(self):
        with pytest.raises(ValidationError):
            DiscoveryFilters(interests=("a", "b", "c", "d"))

    def test_filters_accept_lists(self):
        filters = DiscoveryFilters(interests=["music"])

        assert filters.interests == ("music",)


class TestFilterCandidates:
    def test_keeps_input_order_and_removes_blocked(self, make_profile, event_id):
        me = make_profile(event_id)
        first = make_profile(event_id, first_name="First")
        blocked = make_profile(event_id, first_name="Blocked")
        hidden = make_profile(event_id, is_visible=False)
        last = make_profile(event_id, first_name="Last")

        result = filter_candidates(
            me,
            [first, blocked, me, hidden, last],
            DiscoveryFilters(),
            exclude={blocked.session_id},
        )

        assert [p.first_name for p in result] == ["First", "Last"]

    def test_empty_pool(self, make_profile):
        me = make_profile(uuid4())

        assert filter_candidates(me, [], DiscoveryFilters()) == []
