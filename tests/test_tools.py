import math
from datetime import date

import pytest

from loancalc.calculators import monthly_payment
from loancalc.tools import (
    amortization_table,
    arm_vs_fixed,
    buydown,
    dti_program_status,
    dti_ratios,
    heloc_vs_refi,
    ownership_breakdown,
    pmi_removal,
    points_breakeven,
    program_eligibility,
    refinance_breakeven,
    rent_vs_buy,
    sell_vs_rent,
    total_cost_of_ownership,
    what_if,
)
from loancalc.utils import add_months


def test_dti_ratios():
    d = dti_ratios(10000, 2500, 1000)
    assert d["front_end"] == pytest.approx(25)
    assert d["back_end"] == pytest.approx(35)
    assert dti_ratios(0, 2500)["back_end"] == 0


def test_dti_program_status():
    assert dti_program_status(25, 35)["Conventional"] == "eligible"
    status = dti_program_status(30, 38)
    assert status["Conventional"] == "marginal"
    assert status["FHA"] == "eligible"
    assert dti_program_status(40, 50)["Conventional"] == "ineligible"


def test_program_eligibility_defaults():
    res = program_eligibility(700, 10, 35)
    assert res["Conventional"] == "eligible"
    assert res["FHA"] == "eligible"
    assert res["VA"] == "ineligible"
    assert res["USDA"] == "ineligible"
    assert res["HECM (Reverse)"] == "ineligible"
    assert res["Jumbo"] == "marginal"


def test_program_eligibility_rural_veteran_senior():
    res = program_eligibility(600, 5, 40, military="veteran", location="rural", income_level="low", age=65)
    assert res["Conventional"] == "marginal"
    assert res["FHA"] == "eligible"
    assert res["VA"] == "eligible"
    assert res["USDA"] == "marginal"
    assert res["HECM (Reverse)"] == "eligible"
    assert res["Jumbo"] == "ineligible"


def test_rent_vs_buy():
    res = rent_vs_buy(5, 2000, 400000, security_deposit=2000)
    assert len(res["yearly"]) == 5
    assert res["rent_paid"] == pytest.approx(res["rent_total"] - 2000)
    assert res["difference"] == pytest.approx(res["rent_total"] - res["buy_net_cost"])
    assert res["winner"] == ("buy" if res["difference"] > 0 else "rent")


def test_rent_vs_buy_flat_rent():
    res = rent_vs_buy(2, 1000, 300000, rent_increase_pct=0)
    assert res["rent_total"] == pytest.approx(24000)


def test_rent_vs_buy_past_term_stops_at_home_value():
    res = rent_vs_buy(35, 2000, 400000, term_years=30)
    assert res["equity"] == pytest.approx(400000 * 1.03 ** 35)
    assert res["yearly"]["equity"].iloc[29] <= res["yearly"]["equity"].iloc[30]


def test_total_cost_of_ownership_and_breakdown():
    tco = total_cost_of_ownership(400000, 6.5, closing_costs=8000)
    assert len(tco) == 30
    assert tco["down_payment"].iloc[0] == 80000
    assert tco["down_payment"].iloc[1] == 0
    assert tco["equity"].iloc[-1] == pytest.approx(tco["home_value"].iloc[-1], rel=1e-6)
    assert (tco["net_cost"] == tco["total_paid"] - tco["equity"]).all()

    five = ownership_breakdown(tco, 5)
    assert five["year"] == 5
    assert five["upfront"] == 88000
    assert five["mortgage"] == pytest.approx(monthly_payment(320000, 6.5, 30) * 60)
    assert ownership_breakdown(tco.iloc[0:0], 5) == {}


def test_amortization_table_with_and_without_extra():
    plain = amortization_table(300000, 6.5)
    assert plain["interest_saved"] == 0
    assert plain["months_saved"] == 0
    assert plain["yearly_with_extra"] is None
    assert len(plain["yearly"]) == 30

    extra = amortization_table(300000, 6.5, extra_monthly=200, extra_onetime=5000)
    assert extra["interest_saved"] > 0
    assert extra["months_saved"] > 0
    assert extra["yearly_with_extra"] is not None
    assert len(extra["yearly_with_extra"]) < 30


def test_arm_vs_fixed():
    res = arm_vs_fixed(400000, 7.0, 6.0, scenario="up")
    assert res["fixed_years"] == 5
    assert res["initial_monthly_savings"] > 0
    assert res["arm_max_payment"] >= res["arm_initial_payment"]
    assert len(res["yearly"]) == 30
    assert res["arm_saves_5yr"]
    assert res["yearly"]["rate"].max() <= 11.0


def test_heloc_vs_refi():
    res = heloc_vs_refi(300000, 3.5, 50000)
    assert res["refi_loan_amount"] == 358000
    assert res["heloc_io_payment"] == pytest.approx(50000 * 0.085 / 12)
    assert res["recommendation"] in ("heloc", "refi")
    assert res["difference"] == pytest.approx(abs(res["refi_total_cost"] - res["heloc_total_cost"]))


def test_pmi_removal_milestones():
    start = date(2025, 1, 1)
    res = pmi_removal(400000, 360000, 6.5, start, monthly_pmi=150, appreciation_pct=0)
    assert res["month_80"] < res["month_78"]
    assert res["date_80"] == add_months(start, res["month_80"])
    assert res["pmi_cost_to_80"] == 150 * res["month_80"]
    assert res["early_removal_savings"] == pytest.approx(150 * (res["month_78"] - res["month_80"]))
    assert not res["ltv_path"].empty

    faster = pmi_removal(400000, 360000, 6.5, start, monthly_pmi=150, appreciation_pct=0, extra_payment=300)
    assert faster["month_80"] < res["month_80"]


def test_points_breakeven():
    res = points_breakeven(300000, 7.0, 6.75, 1.0)
    assert res["points_cost"] == 3000
    assert res["monthly_savings"] > 0
    assert res["breakeven_months"] == math.ceil(3000 / res["monthly_savings"])
    assert res["worth_it"]
    assert list(res["timeframes"]["years"]) == [3, 5, 7, 10, 15, 30]

    never = points_breakeven(300000, 7.0, 7.25, 1.0)
    assert math.isinf(never["breakeven_months"])
    assert not never["worth_it"]


def test_refinance_breakeven_verdicts():
    today = date(2025, 1, 15)
    res = refinance_breakeven(300000, 7.5, 6.0, today=today, closing_costs=4000)
    assert res["verdict"] == "great"
    assert res["breakeven_date"] == add_months(today, res["breakeven_months"])

    rolled = refinance_breakeven(300000, 7.5, 6.0, today=today, closing_costs=4000, roll_costs=True)
    assert rolled["new_loan_amount"] == 304000
    assert rolled["effective_costs"] == 0
    assert rolled["breakeven_months"] == 0

    worse = refinance_breakeven(300000, 6.0, 7.5, today=today, closing_costs=4000)
    assert worse["verdict"] == "increase"
    assert worse["breakeven_date"] is None
    assert worse["lifetime_savings"] == 0


def test_refinance_breakeven_requires_today():
    with pytest.raises(TypeError):
        refinance_breakeven(300000, 7.5, 6.0, closing_costs=4000)

    first = refinance_breakeven(300000, 7.5, 6.0, date(2030, 6, 1), closing_costs=4000)
    again = refinance_breakeven(300000, 7.5, 6.0, date(2030, 6, 1), closing_costs=4000)
    assert first["breakeven_date"] == again["breakeven_date"]


def test_buydown():
    res = buydown(300000, 7.0, "2-1")
    sched = res["schedule"]
    assert list(sched["year"]) == ["1", "2", "3-30"]
    assert list(sched["rate"]) == [5.0, 6.0, 7.0]
    assert res["total_cost"] == pytest.approx(sched["savings"].sum())
    assert res["full_payment"] == pytest.approx(monthly_payment(300000, 7.0, 30))

    with pytest.raises(ValueError):
        buydown(300000, 7.0, "4-3-2-1")


def test_what_if():
    base = what_if()
    assert base["loan_amount"] == 360000
    assert not base["pmi_likely"]
    assert base["payoff_month"] == 360

    extra = what_if(extra_monthly=500, down_pct=10)
    assert extra["pmi_likely"]
    assert extra["payoff_month"] < 360
    assert extra["interest_saved"] > 0
    assert extra["payoff_years"] * 12 + extra["payoff_extra_months"] == extra["payoff_month"]


def test_sell_vs_rent():
    res = sell_vs_rent(500000, 250000, 4.0, 1500, 300000, 3000)
    assert res["selling_costs"] == pytest.approx(40000)
    assert res["taxable_gain"] == 0
    assert res["net_sell_proceeds"] == pytest.approx(210000)
    assert res["recommendation"] in ("sell", "keep")

    investor = sell_vs_rent(500000, 250000, 4.0, 1500, 300000, 3000, primary_residence=False)
    assert investor["taxable_gain"] == pytest.approx(200000)
    assert investor["capital_gains_tax"] == pytest.approx(30000)
