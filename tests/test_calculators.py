import os
import sys

import pandas as pd
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from loancalc.calculators import (
    amortize,
    arm_cap_schedule,
    arm_rate_changes,
    arm_rate_path,
    arm_total_interest,
    interest_for_period,
    monthly_payment,
    nz,
    parse_arm_type,
    principal_from_payment,
    simulate_arm,
    yearly_schedule,
)


def test_zero_rate_payment_is_straight_line():
    assert monthly_payment(120000, 0, 10) == 1000


def test_zero_term_payment_is_zero():
    assert monthly_payment(100000, 6.5, 0) == 0.0


def test_amortization_inverse_roundtrip():
    principal = 400000
    rate = 6.5
    term = 30
    pmt = monthly_payment(principal, rate, term)
    back = principal_from_payment(pmt, rate, term)
    assert abs(back - principal) < 1.5


def test_nz_handles_garbage():
    assert nz(None) == 0.0
    assert nz(float("nan"), 5.0) == 5.0
    assert nz("abc") == 0.0
    assert nz("12.5") == 12.5


@pytest.mark.parametrize("principal,rate,years", [(250000, 6.5, 30), (100000, 0, 15), (75000, 3.25, 10)])
def test_amortization_identity(principal, rate, years):
    res = amortize(principal, rate, years)
    schedule = res["schedule"]
    assert len(schedule) == years * 12
    assert res["total_principal"] == pytest.approx(principal, rel=1e-6)
    assert schedule["balance"].iloc[-1] == pytest.approx(0.0, abs=1e-4)
    assert res["payoff_month"] == years * 12


def test_amortize_zero_rate_has_no_interest():
    res = amortize(12000, 0, 1)
    assert res["payment"] == 1000
    assert res["total_interest"] == 0
    assert len(res["schedule"]) == 12


def test_extra_payments_shorten_the_loan():
    base = amortize(300000, 6.5, 30)
    extra = amortize(300000, 6.5, 30, extra_monthly=300, extra_onetime=10000, extra_onetime_month=60)
    assert extra["payoff_month"] < base["payoff_month"]
    assert extra["total_interest"] < base["total_interest"]
    assert extra["total_principal"] == pytest.approx(300000, rel=1e-6)
    month60 = extra["schedule"].loc[extra["schedule"]["month"] == 60, "principal"].iloc[0]
    month59 = extra["schedule"].loc[extra["schedule"]["month"] == 59, "principal"].iloc[0]
    assert month60 - month59 > 9000


def test_amortize_empty_loan():
    res = amortize(0, 6.5, 30)
    assert res["payoff_month"] == 0
    assert res["schedule"].empty


def test_yearly_schedule_rolls_up_months():
    res = amortize(200000, 5.0, 15)
    yearly = yearly_schedule(res["schedule"])
    assert list(yearly.columns) == ["year", "period", "payment", "principal", "interest", "balance"]
    assert len(yearly) == 15
    assert yearly["period"].iloc[0] == "Year 1"
    assert yearly["principal"].sum() == pytest.approx(200000, rel=1e-6)
    assert yearly["interest"].sum() == pytest.approx(res["total_interest"])


def test_yearly_schedule_empty():
    assert yearly_schedule(pd.DataFrame()).empty


def test_interest_for_period_matches_schedule():
    res = amortize(300000, 6.0, 30)
    first_year = res["schedule"]["interest"].head(12).sum()
    assert interest_for_period(300000, 6.0, res["payment"], 12) == pytest.approx(first_year)
    assert interest_for_period(300000, 6.0, res["payment"], 0) == 0


def test_parse_arm_type():
    assert parse_arm_type("7/6") == (7, 6)
    assert parse_arm_type("bogus") == (5, 1)
    assert parse_arm_type("0/1") == (5, 1)


def test_arm_cap_schedule_stops_at_lifetime_cap():
    steps = arm_cap_schedule(5.5, 2.0, 2.0, 5.0, 5, 1, 30)
    assert [(s.year, s.max_rate) for s in steps] == [(6, 7.5), (7, 9.5), (8, 10.5)]


def test_arm_rate_path_respects_caps_and_floor():
    worst = arm_rate_path(5.5, 10, 5, arm_rate_changes("worst", 2.0), 5.0)
    assert worst[:5] == [5.5] * 5
    assert worst[5] == 7.5
    assert max(worst) == 10.5

    falling = arm_rate_path(5.5, 10, 5, (-3.0,), 5.0)
    assert min(falling) == 3.5


def test_arm_rate_changes_known_and_default():
    assert arm_rate_changes("up") == (1.0, 1.0, 0.5, 0.5, 0.0)
    assert arm_rate_changes("unknown") == arm_rate_changes("default")


def test_simulate_arm_constant_rate_matches_fixed_payment():
    path = [6.0] * 30
    arm = simulate_arm(250000, 30, path)
    assert len(arm) == 30
    assert arm["payment"].iloc[0] == pytest.approx(monthly_payment(250000, 6.0, 30))
    assert arm["payment"].iloc[-1] == pytest.approx(arm["payment"].iloc[0], rel=1e-6)
    assert arm["balance"].iloc[-1] == pytest.approx(0.0, abs=1e-4)


def test_arm_total_interest_equal_rates_matches_fixed():
    fixed = monthly_payment(300000, 6.0, 30) * 360 - 300000
    assert arm_total_interest(300000, 30, 5, 6.0, 6.0) == pytest.approx(fixed, rel=1e-6)
    assert arm_total_interest(300000, 30, 5, 6.0, 8.0) > fixed
