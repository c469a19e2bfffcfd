"""Homeowner decision tools.

Stand-alone calculators that sit next to the scenario engine: DTI screening,
rent vs buy, amortization with extra payments, ARM vs fixed, HELOC vs cash-out
refinance, PMI removal, points and refinance breakeven, total cost of
ownership, temporary buydowns, a what-if payment simulator and sell vs keep
as a rental. Every function is pure and returns plain dicts and DataFrames.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Dict, Optional

import pandas as pd

from loancalc.calculators import (
    amortize,
    arm_rate_changes,
    arm_rate_path,
    monthly_payment,
    nz,
    parse_arm_type,
    simulate_arm,
    yearly_schedule,
)
from loancalc.compare import points_breakeven_months, refinance_breakeven_months
from loancalc.presets import (
    BUYDOWN_TYPES,
    CAPITAL_GAINS_EXCLUSION,
    DTI_MARGINAL_FACTOR,
    DTI_PROGRAM_LIMITS,
    HECM_MIN_AGE,
    POINTS_TIMEFRAMES,
    PROGRAM_ELIGIBILITY,
    RENT_VS_BUY_DEFAULTS,
    SELL_VS_RENT_EXPENSE_GROWTH,
)
from loancalc.utils import add_months


# ---------------------------------------------------------------------------
# Qualification
# ---------------------------------------------------------------------------


def dti_ratios(total_income, housing_total, other_debts=0.0) -> Dict[str, float]:
    """Front-end and back-end debt-to-income ratios in percent."""

    inc = nz(total_income)
    housing = nz(housing_total)
    debts = housing + nz(other_debts)
    return {
        "total_income": inc,
        "housing_total": housing,
        "total_debts": debts,
        "front_end": 0.0 if inc <= 0 else housing / inc * 100,
        "back_end": 0.0 if inc <= 0 else debts / inc * 100,
    }


def dti_program_status(front_end, back_end, limits=DTI_PROGRAM_LIMITS, marginal_factor=DTI_MARGINAL_FACTOR):
    """Classify each program as ``eligible``, ``marginal`` or ``ineligible``.

    A ratio over the program limit is marginal; over the limit times
    ``marginal_factor`` it is ineligible.
    """

    fe, be = nz(front_end), nz(back_end)
    status = {}
    for name, lim in limits.items():
        if fe <= lim["FE"] and be <= lim["BE"]:
            status[name] = "eligible"
        elif fe > lim["FE"] * marginal_factor or be > lim["BE"] * marginal_factor:
            status[name] = "ineligible"
        else:
            status[name] = "marginal"
    return status


def _tiered(credit, down_pct, dti, tiers):
    for tier in ("eligible", "marginal"):
        min_credit, min_down, max_dti = tiers[tier]
        if credit >= min_credit and down_pct >= min_down and dti <= max_dti:
            return tier
    return "ineligible"


def program_eligibility(
    credit_score,
    down_pct,
    dti,
    military="none",
    location="suburban",
    income_level="moderate",
    age=0,
    thresholds=PROGRAM_ELIGIBILITY,
) -> Dict[str, str]:
    """Rough loan-program screening from a handful of borrower facts."""

    credit = int(nz(credit_score))
    down = nz(down_pct)
    ratio = nz(dti)

    result = {
        "Conventional": _tiered(credit, down, ratio, thresholds["Conventional"]),
        "FHA": _tiered(credit, down, ratio, thresholds["FHA"]),
    }
    result["VA"] = "ineligible" if military == "none" else _tiered(credit, down, ratio, thresholds["VA"])
    if location != "rural" or income_level == "high":
        result["USDA"] = "ineligible"
    else:
        result["USDA"] = _tiered(credit, down, ratio, thresholds["USDA"])
    result["HECM (Reverse)"] = "eligible" if nz(age) >= HECM_MIN_AGE else "ineligible"
    result["Jumbo"] = _tiered(credit, down, ratio, thresholds["Jumbo"])
    return result


# ---------------------------------------------------------------------------
# Rent vs buy / ownership
# ---------------------------------------------------------------------------


def rent_vs_buy(
    years,
    monthly_rent,
    home_price,
    rent_increase_pct=3.0,
    renters_insurance=0.0,
    security_deposit=0.0,
    down_pct=20.0,
    rate=6.5,
    term_years=30,
    property_tax_pct=1.2,
    appreciation_pct=3.0,
    defaults=RENT_VS_BUY_DEFAULTS,
):
    """Cumulative cost of renting against the net cost of buying.

    The buy side counts down payment, closing costs, P&I, taxes, insurance and
    maintenance, less the equity built (appreciated value minus balance).
    """

    years = int(years)
    price = nz(home_price)
    down_payment = price * nz(down_pct) / 100
    loan = price - down_payment
    pmt = monthly_payment(loan, rate, term_years)
    r = nz(rate) / 100 / 12

    rent_total = nz(security_deposit)
    rent = nz(monthly_rent)
    buy_total = down_payment + price * defaults["closing_cost_pct"] / 100
    balance = loan
    value = price
    rows = []
    for year in range(1, years + 1):
        rent_total += rent * 12 + nz(renters_insurance) * 12
        rent *= 1 + nz(rent_increase_pct) / 100

        buy_total += (
            pmt * 12
            + value * nz(property_tax_pct) / 100
            + value * defaults["insurance_pct"] / 100
            + value * defaults["maintenance_pct"] / 100
        )
        for _ in range(12):
            balance = max(0.0, balance - (pmt - balance * r))
        value *= 1 + nz(appreciation_pct) / 100
        equity = value - max(0.0, balance)
        rows.append(
            {"year": year, "rent_cost": rent_total, "buy_net_cost": buy_total - equity, "equity": equity}
        )

    yearly = pd.DataFrame(rows, columns=["year", "rent_cost", "buy_net_cost", "equity"])
    buy_net = rows[-1]["buy_net_cost"] if rows else 0.0
    difference = rent_total - buy_net
    return {
        "rent_total": rent_total,
        "rent_paid": rent_total - nz(security_deposit),
        "buy_total": buy_total,
        "buy_net_cost": buy_net,
        "equity": rows[-1]["equity"] if rows else 0.0,
        "difference": difference,
        "winner": "buy" if difference > 0 else "rent",
        "yearly": yearly,
    }


def total_cost_of_ownership(
    home_price,
    rate,
    down_pct=20.0,
    term_years=30,
    tax_rate_pct=1.2,
    annual_insurance=0.0,
    maintenance_pct=1.0,
    monthly_hoa=0.0,
    closing_costs=0.0,
    appreciation_pct=3.0,
) -> pd.DataFrame:
    """Year-by-year ownership cost, home value, equity and net cost."""

    price = nz(home_price)
    down_payment = price * nz(down_pct) / 100
    loan = price - down_payment
    pmt = monthly_payment(loan, rate, term_years)
    r = nz(rate) / 100 / 12

    balance = loan
    total_paid = down_payment + nz(closing_costs)
    value = price
    rows = []
    for year in range(1, int(term_years) + 1):
        item = {
            "year": year,
            "down_payment": down_payment if year == 1 else 0.0,
            "closing_costs": nz(closing_costs) if year == 1 else 0.0,
            "mortgage": pmt * 12,
            "taxes": value * nz(tax_rate_pct) / 100,
            "insurance": nz(annual_insurance),
            "maintenance": value * nz(maintenance_pct) / 100,
            "hoa": nz(monthly_hoa) * 12,
        }
        total_paid += item["mortgage"] + item["taxes"] + item["insurance"] + item["maintenance"] + item["hoa"]
        for _ in range(12):
            balance = max(0.0, balance - (pmt - balance * r))
        value *= 1 + nz(appreciation_pct) / 100
        equity = value - balance
        item.update(total_paid=total_paid, home_value=value, equity=equity, net_cost=total_paid - equity)
        rows.append(item)
    return pd.DataFrame(rows)


def ownership_breakdown(tco: pd.DataFrame, year) -> Dict[str, float]:
    """Cumulative cost buckets through ``year`` of a TCO table."""

    if tco.empty:
        return {}
    upto = tco.iloc[: max(1, min(int(year), len(tco)))]
    last = upto.iloc[-1]
    return {
        "year": int(last["year"]),
        "upfront": float(tco.iloc[0]["down_payment"] + tco.iloc[0]["closing_costs"]),
        "mortgage": float(upto["mortgage"].sum()),
        "taxes": float(upto["taxes"].sum()),
        "insurance": float(upto["insurance"].sum()),
        "maintenance": float(upto["maintenance"].sum()),
        "hoa": float(upto["hoa"].sum()),
        "total_paid": float(last["total_paid"]),
        "equity": float(last["equity"]),
        "net_cost": float(last["net_cost"]),
    }


# ---------------------------------------------------------------------------
# Payment schedules
# ---------------------------------------------------------------------------


def amortization_table(loan_amount, rate, term_years=30, extra_monthly=0.0, extra_onetime=0.0, extra_year=5):
    """Yearly amortization with and without extra payments.

    The one-time extra payment lands in the last month of ``extra_year``.
    """

    base = amortize(loan_amount, rate, term_years)
    has_extra = nz(extra_monthly) > 0 or nz(extra_onetime) > 0
    extra = (
        amortize(
            loan_amount,
            rate,
            term_years,
            extra_monthly=extra_monthly,
            extra_onetime=extra_onetime,
            extra_onetime_month=int(extra_year) * 12,
        )
        if has_extra
        else base
    )
    return {
        "payment": base["payment"],
        "total_interest": base["total_interest"],
        "total_paid": base["total_paid"],
        "total_interest_with_extra": extra["total_interest"],
        "interest_saved": base["total_interest"] - extra["total_interest"],
        "payoff_month": extra["payoff_month"],
        "months_saved": base["payoff_month"] - extra["payoff_month"],
        "yearly": yearly_schedule(base["schedule"]),
        "yearly_with_extra": yearly_schedule(extra["schedule"]) if has_extra else None,
    }


def arm_vs_fixed(
    loan_amount,
    fixed_rate,
    arm_initial_rate,
    term_years=30,
    arm_type="5/1",
    periodic_cap=2.0,
    lifetime_cap=5.0,
    scenario="stable",
):
    """Compare a fixed-rate loan with an ARM under a named rate scenario."""

    fixed_years, _ = parse_arm_type(arm_type)
    fixed_pmt = monthly_payment(loan_amount, fixed_rate, term_years)
    path = arm_rate_path(
        arm_initial_rate, term_years, fixed_years, arm_rate_changes(scenario, periodic_cap), lifetime_cap
    )
    arm = simulate_arm(loan_amount, term_years, path)
    arm_initial_pmt = monthly_payment(loan_amount, arm_initial_rate, term_years)

    fixed_5yr = fixed_pmt * 60
    arm_5yr = float(arm["payment"].head(5).sum() * 12)
    arm["fixed_payment"] = fixed_pmt
    return {
        "fixed_payment": fixed_pmt,
        "fixed_total_interest": fixed_pmt * int(term_years) * 12 - nz(loan_amount),
        "fixed_5yr_cost": fixed_5yr,
        "arm_initial_payment": arm_initial_pmt,
        "arm_max_payment": float(arm["payment"].max()) if not arm.empty else 0.0,
        "arm_total_interest": float(arm["interest"].sum()),
        "arm_5yr_cost": arm_5yr,
        "initial_monthly_savings": fixed_pmt - arm_initial_pmt,
        "arm_saves_5yr": arm_5yr < fixed_5yr,
        "fixed_years": fixed_years,
        "yearly": arm,
    }


def heloc_vs_refi(
    current_balance,
    current_rate,
    cash_needed,
    remaining_years=25,
    heloc_rate=8.5,
    heloc_draw_years=10,
    heloc_repay_years=20,
    heloc_closing=500.0,
    refi_rate=6.75,
    refi_term=30,
    refi_closing=8000.0,
):
    """Keep the first mortgage and add a HELOC, or roll everything into a cash-out refi.

    The HELOC is interest-only through the draw period, then amortizes over
    the repayment period.
    """

    balance = nz(current_balance)
    cash = nz(cash_needed)
    current_pmt = monthly_payment(balance, current_rate, remaining_years)
    current_interest = current_pmt * int(remaining_years) * 12 - balance

    heloc_io = cash * nz(heloc_rate) / 100 / 12
    heloc_repay_pmt = monthly_payment(cash, heloc_rate, heloc_repay_years)
    heloc_interest = heloc_io * int(heloc_draw_years) * 12 + (
        heloc_repay_pmt * int(heloc_repay_years) * 12 - cash
    )

    new_loan = balance + cash + nz(refi_closing)
    refi_pmt = monthly_payment(new_loan, refi_rate, refi_term)
    refi_interest = refi_pmt * int(refi_term) * 12 - new_loan

    heloc_total = heloc_interest + current_interest + nz(heloc_closing)
    refi_total = refi_interest + nz(refi_closing)
    return {
        "current_payment": current_pmt,
        "heloc_io_payment": heloc_io,
        "heloc_combined_payment": current_pmt + heloc_io,
        "heloc_repay_payment": heloc_repay_pmt,
        "heloc_total_interest": heloc_interest,
        "heloc_total_cost": heloc_total,
        "refi_loan_amount": new_loan,
        "refi_payment": refi_pmt,
        "refi_payment_change": refi_pmt - current_pmt,
        "refi_total_interest": refi_interest,
        "refi_total_cost": refi_total,
        "recommendation": "heloc" if heloc_total < refi_total else "refi",
        "difference": abs(refi_total - heloc_total),
    }


def pmi_removal(
    home_price,
    loan_amount,
    rate,
    start: date,
    term_years=30,
    monthly_pmi=0.0,
    appreciation_pct=3.0,
    extra_payment=0.0,
):
    """Months until the loan reaches 80% and 78% LTV.

    Home value appreciates monthly at ``(1 + appreciation) ** (1/12)``. PMI
    cost runs to the milestone, or the full term when it is never reached.
    """

    pmt = monthly_payment(loan_amount, rate, term_years)
    r = nz(rate) / 100 / 12
    n = int(nz(term_years)) * 12
    balance = nz(loan_amount)
    value = nz(home_price)
    growth = (1 + nz(appreciation_pct) / 100) ** (1 / 12)

    milestones: Dict[float, Optional[dict]] = {80.0: None, 78.0: None}
    rows = []
    for month in range(1, n + 1):
        value *= growth
        balance = max(0.0, balance - (pmt - balance * r + nz(extra_payment)))
        ltv = balance / value * 100 if value > 0 else math.inf
        if month % 12 == 0 or month <= 60:
            rows.append({"month": month, "ltv": ltv, "equity": value - balance})
        for target, hit in milestones.items():
            if hit is None and ltv <= target:
                milestones[target] = {"month": month, "home_value": value, "balance": balance}

    def cost_to(target):
        hit = milestones[target]
        return nz(monthly_pmi) * (hit["month"] if hit else n)

    def when(target):
        hit = milestones[target]
        return add_months(start, hit["month"]) if hit else None

    return {
        "payment": pmt,
        "month_80": milestones[80.0]["month"] if milestones[80.0] else None,
        "month_78": milestones[78.0]["month"] if milestones[78.0] else None,
        "date_80": when(80.0),
        "date_78": when(78.0),
        "milestone_80": milestones[80.0],
        "milestone_78": milestones[78.0],
        "pmi_cost_to_80": cost_to(80.0),
        "pmi_cost_to_78": cost_to(78.0),
        "early_removal_savings": cost_to(78.0) - cost_to(80.0),
        "ltv_path": pd.DataFrame(rows, columns=["month", "ltv", "equity"]),
    }


def points_breakeven(loan_amount, rate_no_points, rate_with_points, points, term_years=30, horizon_years=7):
    """Whether buying discount points pays off within ``horizon_years``."""

    cost = nz(loan_amount) * nz(points) / 100
    pmt_no = monthly_payment(loan_amount, rate_no_points, term_years)
    pmt_yes = monthly_payment(loan_amount, rate_with_points, term_years)
    savings = pmt_no - pmt_yes
    months = points_breakeven_months(cost, savings)
    timeframes = pd.DataFrame(
        [
            {
                "years": y,
                "monthly_savings": savings,
                "total_savings": savings * y * 12,
                "net_benefit": savings * y * 12 - cost,
            }
            for y in POINTS_TIMEFRAMES
            if y <= int(term_years)
        ],
        columns=["years", "monthly_savings", "total_savings", "net_benefit"],
    )
    return {
        "points_cost": cost,
        "payment_without_points": pmt_no,
        "payment_with_points": pmt_yes,
        "monthly_savings": savings,
        "breakeven_months": months,
        "worth_it": months < int(horizon_years) * 12,
        "timeframes": timeframes,
    }


def refinance_breakeven(
    current_balance,
    current_rate,
    new_rate,
    today: date,
    current_term_years=28,
    new_term_years=30,
    closing_costs=0.0,
    roll_costs=False,
):
    """Months until a rate-and-term refinance recovers its closing costs.

    Rolled-in costs raise the new loan amount and are not counted as cash
    outlay. ``verdict`` is ``increase`` when the payment does not drop, then
    ``great`` (24 months or less), ``consider`` (48 or less) or ``long``.
    ``breakeven_date`` counts forward from ``today``.
    """

    balance = nz(current_balance)
    current_pmt = monthly_payment(balance, current_rate, current_term_years)
    new_loan = balance + nz(closing_costs) if roll_costs else balance
    new_pmt = monthly_payment(new_loan, new_rate, new_term_years)
    savings = current_pmt - new_pmt
    outlay = 0.0 if roll_costs else nz(closing_costs)
    months = refinance_breakeven_months(outlay, savings)

    if savings <= 0:
        verdict = "increase"
    elif months <= 24:
        verdict = "great"
    elif months <= 48:
        verdict = "consider"
    else:
        verdict = "long"
    finite = not math.isinf(months)
    return {
        "current_payment": current_pmt,
        "new_loan_amount": new_loan,
        "new_payment": new_pmt,
        "monthly_savings": savings,
        "effective_costs": outlay,
        "breakeven_months": months,
        "breakeven_date": add_months(today, months) if finite else None,
        "lifetime_savings": savings * (int(new_term_years) * 12 - months) if finite else 0.0,
        "verdict": verdict,
    }


def buydown(loan_amount, note_rate, buydown_type="2-1", term_years=30):
    """Temporary buydown schedule and the subsidy needed to fund it."""

    reductions = BUYDOWN_TYPES.get(buydown_type)
    if reductions is None:
        raise ValueError(f"Unknown buydown type {buydown_type!r}")
    full = monthly_payment(loan_amount, note_rate, term_years)
    rows = []
    for idx, cut in enumerate(reductions, start=1):
        reduced_rate = nz(note_rate) - cut
        pmt = monthly_payment(loan_amount, reduced_rate, term_years)
        rows.append({"year": str(idx), "rate": reduced_rate, "payment": pmt, "savings": (full - pmt) * 12})
    rows.append(
        {"year": f"{len(reductions) + 1}-{int(term_years)}", "rate": nz(note_rate), "payment": full, "savings": 0.0}
    )
    schedule = pd.DataFrame(rows, columns=["year", "rate", "payment", "savings"])
    return {
        "full_payment": full,
        "total_cost": float(schedule["savings"].sum()),
        "schedule": schedule,
    }


def what_if(home_price=450000.0, rate=6.5, down_pct=20.0, extra_monthly=0.0, term_years=30):
    """Payment, payoff and interest for one slider position."""

    price = nz(home_price)
    down_payment = price * nz(down_pct) / 100
    loan = price - down_payment
    base = amortize(loan, rate, term_years)
    run = amortize(loan, rate, term_years, extra_monthly=extra_monthly) if nz(extra_monthly) > 0 else base
    yearly = yearly_schedule(run["schedule"])[["year", "principal", "interest"]]
    return {
        "loan_amount": loan,
        "down_payment": down_payment,
        "monthly_payment": base["payment"],
        "total_interest": run["total_interest"],
        "interest_saved": base["total_interest"] - run["total_interest"],
        "payoff_month": run["payoff_month"],
        "payoff_years": run["payoff_month"] // 12,
        "payoff_extra_months": run["payoff_month"] % 12,
        "pmi_likely": nz(down_pct) < 20,
        "yearly": yearly,
    }


def sell_vs_rent(
    home_value,
    mortgage_balance,
    mortgage_rate,
    current_payment,
    purchase_price,
    monthly_rent,
    remaining_term_years=25,
    selling_costs_pct=8.0,
    cap_gains_rate_pct=15.0,
    primary_residence=True,
    filing_status="single",
    annual_property_tax=0.0,
    annual_insurance=0.0,
    monthly_hoa=0.0,
    maintenance_pct=1.0,
    management_fee_pct=0.0,
    vacancy_pct=5.0,
    rent_increase_pct=3.0,
    appreciation_pct=3.0,
    alternative_return_pct=7.0,
    years=10,
):
    """Sell now and invest the proceeds, or keep the home as a rental.

    Rental expenses grow at a fixed 1.5% a year against ``rent_increase_pct``
    for rent. Wealth on the rental side is future equity plus cumulative cash
    flow.
    """

    value = nz(home_value)
    balance = nz(mortgage_balance)
    rent = nz(monthly_rent)
    vacancy = nz(vacancy_pct) / 100
    years = int(years)

    selling_costs = value * nz(selling_costs_pct) / 100
    gross = value - selling_costs - balance
    gain = value - nz(purchase_price)
    exclusion = CAPITAL_GAINS_EXCLUSION.get(filing_status, CAPITAL_GAINS_EXCLUSION["single"]) if primary_residence else 0.0
    taxable_gain = max(0.0, gain - exclusion)
    cap_gains_tax = taxable_gain * nz(cap_gains_rate_pct) / 100
    net_proceeds = gross - cap_gains_tax
    invested = net_proceeds * (1 + nz(alternative_return_pct) / 100) ** years

    monthly_expenses = (
        nz(current_payment)
        + nz(annual_property_tax) / 12
        + nz(annual_insurance) / 12
        + value * nz(maintenance_pct) / 100 / 12
        + rent * nz(management_fee_pct) / 100
        + nz(monthly_hoa)
    )
    monthly_cash_flow = rent * (1 - vacancy) - monthly_expenses

    total_cash_flow = 0.0
    yearly_rent = rent * 12
    yearly_expenses = monthly_expenses * 12
    for _ in range(years):
        total_cash_flow += yearly_rent * (1 - vacancy) - yearly_expenses
        yearly_rent *= 1 + nz(rent_increase_pct) / 100
        yearly_expenses *= 1 + SELL_VS_RENT_EXPENSE_GROWTH

    future_value = value * (1 + nz(appreciation_pct) / 100) ** years
    r = nz(mortgage_rate) / 100 / 12
    future_balance = balance
    for _ in range(min(years * 12, int(remaining_term_years) * 12)):
        future_balance = max(0.0, future_balance - (nz(current_payment) - future_balance * r))
    future_equity = future_value - future_balance
    rent_wealth = future_equity + total_cash_flow

    gross_rent = rent * 12
    noi = (
        gross_rent * (1 - vacancy)
        - nz(annual_property_tax)
        - nz(annual_insurance)
        - value * nz(maintenance_pct) / 100
        - gross_rent * nz(management_fee_pct) / 100
        - nz(monthly_hoa) * 12
    )
    equity_now = value - balance
    annual_cash_flow = monthly_cash_flow * 12
    difference = invested - rent_wealth
    larger = max(invested, rent_wealth)

    return {
        "selling_costs": selling_costs,
        "gross_proceeds": gross,
        "taxable_gain": taxable_gain,
        "capital_gains_tax": cap_gains_tax,
        "net_sell_proceeds": net_proceeds,
        "invested_future_value": invested,
        "monthly_expenses": monthly_expenses,
        "monthly_cash_flow": monthly_cash_flow,
        "total_cash_flow": total_cash_flow,
        "future_home_value": future_value,
        "future_mortgage_balance": future_balance,
        "future_equity": future_equity,
        "rent_total_wealth": rent_wealth,
        "cap_rate": noi / value * 100 if value > 0 else 0.0,
        "cash_on_cash": annual_cash_flow / equity_now * 100 if equity_now > 0 else 0.0,
        "gross_rent_yield": gross_rent / value * 100 if value > 0 else 0.0,
        "total_roi": (annual_cash_flow + value * nz(appreciation_pct) / 100) / equity_now * 100
        if equity_now > 0
        else 0.0,
        "recommendation": "sell" if invested > rent_wealth else "keep",
        "difference": abs(difference),
        "difference_pct": abs(difference) / larger * 100 if larger > 0 else 0.0,
    }
