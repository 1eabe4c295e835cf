import pytest
from datetime import datetime, timedelta, timezone
from typing import Any, cast

from walletpolicy.policy import (
    Requirement,
    Sigs,
    SigsReq,
    SpendingCondition,
    TimelockReq,
    after_years,
)


NOW = datetime(2024, 3, 15, 12, 30, tzinfo=timezone.utc)


def test_requirement_default_ordering_and_parse():
    assert Requirement.default() is Requirement.ALLOW
    assert Requirement.ALLOW < Requirement.REQUIRE < Requirement.DENY
    assert Requirement.parse('Require') is Requirement.REQUIRE
    assert Requirement.parse(' deny ') is Requirement.DENY
    with pytest.raises(ValueError, match='unknown requirement'):
        Requirement.parse('maybe')


def test_sigs_req_constructors_and_coercion():
    assert SigsReq.all().kind is Sigs.ALL and SigsReq.all().count is None
    assert SigsReq.any().kind is Sigs.ANY
    k = SigsReq.at_least(cast(Any, '3'))  # runtime coercion; cast for type-checker
    assert k.count == 3
    assert k == SigsReq.at_least(3)
    assert hash(k) == hash(SigsReq.at_least(3))


@pytest.mark.parametrize('count', [0, -2, cast(Any, 'x'), None])
def test_sigs_req_rejects_bad_count(count: Any) -> None:
    with pytest.raises(ValueError, match='threshold'):
        SigsReq(Sigs.AT_LEAST, count)


def test_sigs_req_all_any_take_no_count():
    with pytest.raises(ValueError):
        SigsReq(Sigs.ALL, 2)


def test_sigs_req_threshold_resolution():
    assert SigsReq.all().threshold(5) == 5
    assert SigsReq.all().threshold() is None
    assert SigsReq.any().threshold(5) == 1
    assert SigsReq.at_least(3).threshold(5) == 3


def test_sigs_req_normalized_keeps_tags_distinct_until_asked():
    assert SigsReq.at_least(2) != SigsReq.all()
    assert SigsReq.at_least(2).normalized(2) == SigsReq.all()
    assert SigsReq.at_least(1).normalized(4) == SigsReq.any()
    assert SigsReq.at_least(2).normalized(3) == SigsReq.at_least(2)
    assert SigsReq.all().normalized(3) == SigsReq.all()


def test_after_years_keeps_calendar_position():
    later = after_years(NOW, 5)
    assert later == datetime(2029, 3, 15, 12, 30, tzinfo=timezone.utc)


def test_after_years_clamps_leap_day():
    leap = datetime(2024, 2, 29, 8, 0, tzinfo=timezone.utc)
    assert after_years(leap, 3) == datetime(2027, 2, 28, 8, 0, tzinfo=timezone.utc)
    assert after_years(leap, 4) == datetime(2028, 2, 29, 8, 0, tzinfo=timezone.utc)


def test_timelock_anytime_and_locktime():
    assert TimelockReq.anytime().is_anytime
    assert TimelockReq.anytime().locktime() is None
    t = TimelockReq.after_time(NOW)
    assert not t.is_anytime
    assert t.locktime() == int(NOW.timestamp())


def test_timelock_normalizes_to_utc():
    cet = timezone(timedelta(hours=1))
    t = TimelockReq.after_time(datetime(2024, 3, 15, 13, 30, tzinfo=cet))
    assert t == TimelockReq.after_time(NOW)
    assert t.after is not None and t.after.tzinfo == timezone.utc


def test_timelock_rejects_naive_instant():
    with pytest.raises(ValueError, match='timezone-aware'):
        TimelockReq.after_time(datetime(2024, 1, 1))


def test_timelock_accepts_early_instants():
    early = datetime(1975, 1, 1, tzinfo=timezone.utc)
    assert TimelockReq.after_time(early).locktime() == int(early.timestamp())


def test_after_years_past_last_representable_year():
    with pytest.raises(ValueError, match='last representable year 9999'):
        after_years(datetime(9996, 6, 1, tzinfo=timezone.utc), 5)
    assert after_years(datetime(9994, 6, 1, tzinfo=timezone.utc), 5).year == 9999


def test_timelock_ordering():
    early = TimelockReq.after_time(NOW)
    late = TimelockReq.after_time(after_years(NOW, 1))
    assert TimelockReq.anytime() < early < late
    assert not late < early
    assert not early < early
    assert not TimelockReq.anytime() < TimelockReq.anytime()
    assert early <= early and early <= late and late >= early
    assert TimelockReq.anytime() <= TimelockReq.anytime()
    assert sorted([late, TimelockReq.anytime(), early]) == [TimelockReq.anytime(), early, late]
    assert max(early, late) == late


def test_spending_condition_default_is_strictest():
    cond = SpendingCondition()
    assert cond == SpendingCondition(SigsReq.all(), TimelockReq.anytime())
    assert str(cond) == 'all signatures at any time'


def test_spending_condition_describe():
    cond = SpendingCondition(SigsReq.at_least(3), TimelockReq.after_time(NOW))
    assert cond.describe() == 'at least 3 signatures after 2024-03-15'
    assert SpendingCondition(SigsReq.any()).describe() == 'any signature at any time'
