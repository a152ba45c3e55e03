from datetime import date

import pytest

from fred_loader.db import utils


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2020-01-01", date(2020, 1, 1)),
        ("1776-07-04", date(1776, 7, 4)),
        ("2020-1-1", None),
        ("2020-02-30", None),
        ("01/02/2020", None),
        ("2020-01-01T00:00:00", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_observation_date(raw, expected):
    assert utils.parse_observation_date(raw) == expected


def test_drop_rules_floor_and_sentinel():
    rules = utils.rules_for("drop")
    assert rules is utils.DROP_RULES
    assert rules.floor == date(1970, 1, 1)
    resolved, substituted = rules.resolve("garbage")
    assert substituted
    assert rules.below_floor(resolved)
    assert not rules.below_floor(date(1970, 1, 1))


def test_keep_rules_have_no_floor():
    rules = utils.rules_for(utils.DateFloorPolicy.KEEP)
    assert rules.floor is None
    assert rules.missing_date == date(1900, 1, 1)
    assert not rules.below_floor(date(1, 1, 1))
    assert rules.wide_dates


def test_rules_only_accept_dates_the_column_can_hold():
    assert utils.DROP_RULES.representable(date(1970, 1, 1))
    assert not utils.DROP_RULES.wide_dates
    keep = utils.KEEP_RULES
    assert keep.representable(keep.missing_date)
    assert keep.representable(date(1900, 1, 1))
    assert not keep.representable(date(1899, 12, 31))


def test_unknown_policy_is_rejected():
    with pytest.raises(ValueError):
        utils.rules_for("sometimes")


def test_split_table():
    assert utils.split_table("fred.unrate") == ("fred", "unrate")
    assert utils.split_table("unrate") == (None, "unrate")


def test_format_observation_date_pads_years():
    assert utils.format_observation_date(date(1899, 12, 31)) == "1899-12-31"
