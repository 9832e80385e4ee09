from decimal import Decimal

import pytest

from moviebooking.models.user import MembershipLevel
from moviebooking.services import membership
from moviebooking.services.membership import tier_for

TIER_ORDER = [
    MembershipLevel.BASIC,
    MembershipLevel.SILVER,
    MembershipLevel.GOLD,
    MembershipLevel.DIAMOND,
]


@pytest.mark.parametrize(
    "points,expected",
    [
        (0, MembershipLevel.BASIC),
        (199, MembershipLevel.BASIC),
        (200, MembershipLevel.SILVER),
        (599, MembershipLevel.SILVER),
        (600, MembershipLevel.GOLD),
        (1199, MembershipLevel.GOLD),
        (1200, MembershipLevel.DIAMOND),
        (10_000_000, MembershipLevel.DIAMOND),
    ],
)
def test_tier_boundaries_belong_to_the_higher_tier(points, expected):
    assert tier_for(points) == expected


def test_tier_is_monotonic_in_points():
    ranks = [TIER_ORDER.index(tier_for(p)) for p in range(0, 2500)]
    assert ranks == sorted(ranks)


def test_tier_never_derives_premium():
    assert all(tier_for(p) != MembershipLevel.PREMIUM for p in range(0, 5000, 7))


def test_negative_points_rejected():
    with pytest.raises(ValueError):
        tier_for(-1)


@pytest.mark.parametrize(
    "amount,points",
    [(0, 0), (9999, 0), (10000, 1), (19999.99, 1), (Decimal("300000.00"), 30), (250000, 25)],
)
def test_points_for_amount_rounds_down(amount, points):
    assert membership.points_for_amount(amount) == points


def test_add_points_recomputes_level_in_the_same_write(db, make_user):
    user = make_user(points=150)

    user = membership.add_points(db, user.id, 600000)

    assert user.membership_points == 210
    assert user.membership_level == MembershipLevel.SILVER


def test_add_points_keeps_premium_but_records_raw_points(db, make_user):
    user = make_user(points=100, level=MembershipLevel.PREMIUM)

    user = membership.add_points(db, user.id, 20_000_000)

    assert user.membership_points == 2100
    assert user.membership_level == MembershipLevel.PREMIUM


def test_revoke_premium_falls_back_to_points_tier(db, make_user):
    user = make_user(points=700)
    membership.grant_premium(db, user.id)

    user = membership.revoke_premium(db, user.id)

    assert user.membership_level == MembershipLevel.GOLD


def test_discount_rates():
    assert membership.discount_rate(MembershipLevel.BASIC) == Decimal("0")
    assert membership.discount_rate(MembershipLevel.SILVER) == Decimal("0.10")
    assert membership.discount_rate(MembershipLevel.GOLD) == Decimal("0.15")
    assert membership.discount_rate(MembershipLevel.DIAMOND) == Decimal("0.25")
    assert membership.discount_rate(MembershipLevel.PREMIUM) == Decimal("1")


def test_membership_progress(make_user):
    progress = membership.membership_progress(make_user(points=450))
    assert progress["level"] == MembershipLevel.SILVER
    assert progress["next_level_points"] == 600
    assert progress["points_to_next_level"] == 150

    progress = membership.membership_progress(make_user(points=5, level=MembershipLevel.PREMIUM))
    assert progress["is_unlimited"] is True
    assert progress["next_level_points"] is None
