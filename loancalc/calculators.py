from __future__ import annotations

import logging
import math
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

import pandas as pd

from loancalc.models import (
    ARMScenario,
    ArmCapStep,
    ArmProjection,
    PMIQuote,
    ProgramFees,
    ScenarioBase,
    VAScenario,
)
from loancalc.presets import (
    APR_SOLVER,
    ARM_DEFAULTS,
    ARM_RATE_SCENARIOS,
    FHA_TABLES,
    FINANCE_CHARGE_LENDER_FEES,
    PMI_LTV_BANDS,
    PMI_LTV_THRESHOLD,
    PMI_PROGRAM_FACTORS,
    PMI_RATE_TABLE,
    USDA_TABLE,
    VA_TABLE,
)
from loancalc.utils import credit_score_tier, effective_credit_score

logger = logging.getLogger("loancalc.calculators")


def nz(x, default=0.0):
    """Return a float for ``x`` or a fallback value.

    Form values arrive as ``None``, ``NaN`` or stray strings when a field is
    left blank. This mirrors the spreadsheet ``NZ()`` function so later math
    never has to guard against a missing value.
    """

    try:
        if x is None or (isinstance(x, float) and math.isnan(x)):
            return default
        return float(x)
    except (TypeError, ValueError):
        return default


def compute_ltv(purchase_price, base_loan):
    """Compute loan-to-value percentage."""

    if nz(purchase_price) == 0:
        return 0.0
    return 100.0 * nz(base_loan) / nz(purchase_price)


# ---------------------------------------------------------------------------
# Amortization
# ---------------------------------------------------------------------------


def _num_payments(term_years) -> int:
    return int(round(nz(term_years) * 12))


def monthly_payment(principal, annual_rate_pct, term_years):
    """Calculate the fully amortizing monthly payment for a loan.

    ``principal`` is the starting loan amount, ``annual_rate_pct`` is the
    nominal yearly interest rate (e.g. ``6.5`` for 6.5%), and ``term_years`` is
    the amortization period in years. A zero rate pays the loan off in equal
    straight-line installments.
    """

    L = nz(principal)
    r = nz(annual_rate_pct) / 100 / 12
    n = _num_payments(term_years)
    if n <= 0:
        return 0.0
    if r == 0:
        return L / n
    return (r * L) / (1 - (1 + r) ** (-n))


def principal_from_payment(payment, annual_rate_pct, term_years):
    """Reverse amortization to find the loan amount for a given payment."""

    P = nz(payment)
    r = nz(annual_rate_pct) / 100 / 12
    n = _num_payments(term_years)
    if n <= 0:
        return 0.0
    if r == 0:
        return P * n
    return P * (1 - (1 + r) ** (-n)) / r


def amortize(
    principal,
    annual_rate_pct,
    term_years,
    extra_monthly=0.0,
    extra_onetime=0.0,
    extra_onetime_month=0,
    payment=None,
):
    """Walk a loan month by month.

    Each month ``interest = balance * r`` and ``principal = payment - interest``
    plus any constant ``extra_monthly``; ``extra_onetime`` is added in month
    ``extra_onetime_month``. Principal never exceeds the remaining balance.
    ``payoff_month`` is the first month the balance reaches zero, or the
    nominal term when it never does.

    Returns a dict with ``payment``, ``total_interest``, ``total_principal``,
    ``total_paid``, ``payoff_month`` and a monthly ``schedule`` DataFrame.
    """

    L = nz(principal)
    r = nz(annual_rate_pct) / 100 / 12
    n = _num_payments(term_years)
    pmt = monthly_payment(L, annual_rate_pct, term_years) if payment is None else nz(payment)
    extra = nz(extra_monthly)
    onetime = nz(extra_onetime)

    balance = L
    rows = []
    payoff_month = None
    for month in range(1, n + 1):
        if balance <= 0:
            break
        interest = balance * r
        princ = pmt - interest + extra
        if onetime > 0 and month == int(extra_onetime_month):
            princ += onetime
        princ = min(princ, balance)
        balance -= princ
        if 0 < balance <= 1e-6:
            princ += balance
            balance = 0.0
        rows.append(
            {
                "month": month,
                "payment": interest + princ,
                "principal": princ,
                "interest": interest,
                "balance": balance,
            }
        )
        if balance <= 0 and payoff_month is None:
            payoff_month = month

    schedule = pd.DataFrame(rows, columns=["month", "payment", "principal", "interest", "balance"])
    total_interest = float(schedule["interest"].sum()) if rows else 0.0
    total_principal = float(schedule["principal"].sum()) if rows else 0.0
    if payoff_month is None:
        payoff_month = n if rows else 0
    return {
        "payment": pmt,
        "total_interest": total_interest,
        "total_principal": total_principal,
        "total_paid": total_interest + total_principal,
        "payoff_month": payoff_month,
        "schedule": schedule,
    }


def yearly_schedule(schedule: pd.DataFrame) -> pd.DataFrame:
    """Aggregate a monthly schedule from :func:`amortize` into loan years."""

    cols = ["year", "period", "payment", "principal", "interest", "balance"]
    if schedule is None or schedule.empty:
        return pd.DataFrame(columns=cols)
    out = schedule.copy()
    out["year"] = (out["month"] - 1) // 12 + 1
    agg = (
        out.groupby("year")
        .agg(
            payment=("payment", "sum"),
            principal=("principal", "sum"),
            interest=("interest", "sum"),
            balance=("balance", "last"),
        )
        .reset_index()
    )
    agg["balance"] = agg["balance"].clip(lower=0)
    agg["period"] = "Year " + agg["year"].astype(str)
    return agg[cols]


def interest_for_period(principal, annual_rate_pct, payment, months):
    """Interest paid over the first ``months`` payments."""

    balance = nz(principal)
    r = nz(annual_rate_pct) / 100 / 12
    pmt = nz(payment)
    total = 0.0
    for _ in range(max(0, int(months))):
        if balance <= 0:
            break
        interest = balance * r
        balance -= min(pmt - interest, balance)
        total += interest
    return total


# ---------------------------------------------------------------------------
# Program fees
# ---------------------------------------------------------------------------


def fha_fees(loan_amount, upfront_rate_pct=FHA_TABLES["ufmip_pct"], annual_rate_pct=FHA_TABLES["annual_pct"]):
    """FHA upfront MIP and monthly MIP."""

    L = nz(loan_amount)
    return ProgramFees(
        upfront_label="Upfront MIP",
        upfront=L * nz(upfront_rate_pct) / 100,
        monthly_mi=L * nz(annual_rate_pct) / 100 / 12,
    )


def va_funding_fee_pct(
    transaction_type,
    down_pct,
    first_use,
    service_type="regular",
    cash_out=0.0,
    table=VA_TABLE,
):
    """Funding fee percentage for VA loans.

    Cash-out refinances price like a purchase with under 5% down; a
    rate-reduction refinance (no cash out) pays the flat IRRRL rate. The
    Reserves/National Guard rate only replaces the first-use purchase rate
    below 5% down.
    """

    if transaction_type == "refinance":
        if nz(cash_out) > 0:
            return table["first_0_5"] if first_use else table["subseq_0_5"]
        return table["irrrl"]
    down = nz(down_pct)
    if first_use:
        if down >= 10:
            return table["first_10+"]
        if down >= 5:
            return table["first_5_10"]
        if service_type == "reserves":
            return table["reserves_first_0_5"]
        return table["first_0_5"]
    if down >= 10:
        return table["subseq_10+"]
    if down >= 5:
        return table["subseq_5_10"]
    return table["subseq_0_5"]


def va_funding_fee(scenario: VAScenario) -> float:
    """Dollar funding fee for a VA scenario (0 when exempt)."""

    if scenario.va_exempt:
        return 0.0
    if scenario.va_funding_fee_rate > 0:
        pct = scenario.va_funding_fee_rate
    else:
        pct = va_funding_fee_pct(
            scenario.transaction_type,
            scenario.down_payment_pct,
            scenario.first_time_va,
            scenario.service_type,
            scenario.cash_out,
        )
    return nz(scenario.loan_amount) * pct / 100


def usda_fees(loan_amount, upfront_rate_pct=USDA_TABLE["guarantee_pct"], annual_rate_pct=USDA_TABLE["annual_pct"]):
    """USDA upfront guarantee fee and monthly annual fee."""

    L = nz(loan_amount)
    return ProgramFees(
        upfront_label="USDA Guarantee Fee",
        upfront=L * nz(upfront_rate_pct) / 100,
        monthly_mi=L * nz(annual_rate_pct) / 100 / 12,
    )


def pmi_rate_pct(ltv, credit_score, loan_program="standard"):
    """Annual PMI percentage from the score/LTV grid with program reductions."""

    bands = PMI_RATE_TABLE[credit_score_tier(credit_score)]
    idx = len(PMI_LTV_BANDS)
    for i, floor in enumerate(PMI_LTV_BANDS):
        if ltv > floor:
            idx = i
            break
    return bands[idx] * PMI_PROGRAM_FACTORS.get(loan_program, 1.0)


def conventional_pmi(loan_amount, home_price, credit_score, loan_program="standard", rate_override=0.0) -> PMIQuote:
    """Estimate private mortgage insurance.

    Not required at or below 80% LTV. An override rate is used verbatim;
    otherwise the rate comes from :func:`pmi_rate_pct`.
    """

    ltv = compute_ltv(home_price, loan_amount)
    if ltv <= PMI_LTV_THRESHOLD:
        return PMIQuote(required=False, ltv=ltv)
    if nz(rate_override) > 0:
        rate = nz(rate_override)
    else:
        rate = pmi_rate_pct(ltv, credit_score, loan_program)
    annual = nz(loan_amount) * rate / 100
    return PMIQuote(required=True, ltv=ltv, rate_pct=rate, monthly=annual / 12, annual=annual)


def scenario_pmi(scenario: ScenarioBase, rate_override=0.0) -> PMIQuote:
    score = effective_credit_score(scenario.credit_score, scenario.credit_score2, scenario.borrower_count)
    return conventional_pmi(
        scenario.loan_amount, scenario.home_price, score, scenario.loan_program, rate_override
    )


# ---------------------------------------------------------------------------
# ARM
# ---------------------------------------------------------------------------


def parse_arm_type(arm_type) -> Tuple[int, int]:
    """``"5/1"`` -> ``(5, 1)``; anything malformed falls back to 5/1."""

    try:
        fixed, adj = (int(part) for part in str(arm_type).split("/"))
    except ValueError:
        fixed, adj = 0, 0
    if fixed <= 0 or adj <= 0:
        logger.warning("Unrecognized ARM type %r, using %s", arm_type, ARM_DEFAULTS["arm_type"])
        return ARM_DEFAULTS["fixed_years"], ARM_DEFAULTS["adjustment_years"]
    return fixed, adj


def arm_cap_schedule(initial_rate, initial_cap, periodic_cap, lifetime_cap, fixed_years, adjustment_years, term_years):
    """Highest reachable rate at each adjustment.

    The first adjustment moves at most ``initial_cap``, later ones at most
    ``periodic_cap``, and none past ``initial_rate + lifetime_cap``.
    """

    ceiling = initial_rate + lifetime_cap
    steps: List[ArmCapStep] = []
    year = fixed_years + 1
    rate = min(initial_rate + initial_cap, ceiling)
    while year <= term_years:
        steps.append(ArmCapStep(year=year, max_rate=rate))
        if rate >= ceiling:
            break
        rate = min(rate + periodic_cap, ceiling)
        year += adjustment_years
    return tuple(steps)


def arm_projection(scenario: ARMScenario) -> ArmProjection:
    fixed_years, adjustment_years = parse_arm_type(scenario.arm_type)
    return ArmProjection(
        arm_type=scenario.arm_type,
        fixed_years=fixed_years,
        adjustment_years=adjustment_years,
        initial_rate=scenario.arm_initial_rate,
        index=scenario.arm_index,
        index_rate=scenario.arm_index_rate,
        margin=scenario.arm_margin,
        fully_indexed_rate=scenario.arm_index_rate + scenario.arm_margin,
        worst_case_rate=scenario.arm_initial_rate + scenario.arm_lifetime_cap,
        caps={
            "initial": scenario.arm_initial_cap,
            "periodic": scenario.arm_periodic_cap,
            "lifetime": scenario.arm_lifetime_cap,
        },
        cap_schedule=arm_cap_schedule(
            scenario.arm_initial_rate,
            scenario.arm_initial_cap,
            scenario.arm_periodic_cap,
            scenario.arm_lifetime_cap,
            fixed_years,
            adjustment_years,
            scenario.term_years,
        ),
    )


def arm_total_interest(loan_amount, term_years, fixed_years, initial_rate, fully_indexed_rate):
    """Lifetime interest estimate for an ARM.

    Amortizes at ``initial_rate`` through the fixed period, then re-amortizes
    the remaining balance at ``fully_indexed_rate`` over the remaining term.
    Caps are not walked here; they only bound the displayed rate schedule.
    """

    balance = nz(loan_amount)
    total_months = _num_payments(term_years)
    fixed_months = min(int(fixed_years) * 12, total_months)
    r_fixed = nz(initial_rate) / 100 / 12
    pmt_fixed = monthly_payment(balance, initial_rate, term_years)

    total_interest = 0.0
    for _ in range(fixed_months):
        interest = balance * r_fixed
        total_interest += interest
        balance -= pmt_fixed - interest

    if balance > 0 and fixed_months < total_months:
        adj_months = total_months - fixed_months
        r_adj = nz(fully_indexed_rate) / 100 / 12
        pmt_adj = monthly_payment(balance, fully_indexed_rate, adj_months / 12)
        for _ in range(adj_months):
            interest = balance * r_adj
            total_interest += interest
            balance = max(0.0, balance - (pmt_adj - interest))
    return total_interest


def arm_rate_changes(scenario: str, periodic_cap=2.0) -> Tuple[float, ...]:
    """Yearly rate moves for a named rate-change scenario."""

    if scenario == "worst":
        return (float(periodic_cap),) * 5
    return ARM_RATE_SCENARIOS.get(scenario, ARM_RATE_SCENARIOS["default"])


def arm_rate_path(
    initial_rate,
    term_years,
    fixed_years,
    rate_changes: Sequence[float],
    lifetime_cap,
    floor_drop=ARM_DEFAULTS["floor_drop"],
) -> List[float]:
    """Rate in force for each loan year.

    After the fixed period the rate moves by ``rate_changes`` (the last entry
    repeats), bounded below by ``initial - floor_drop`` and above by
    ``initial + lifetime_cap``.
    """

    initial = nz(initial_rate)
    ceiling = initial + nz(lifetime_cap)
    floor = initial - nz(floor_drop)
    current = initial
    path = []
    for year in range(1, int(term_years) + 1):
        if year > fixed_years and rate_changes:
            idx = min(year - fixed_years - 1, len(rate_changes) - 1)
            current = min(ceiling, max(floor, current + rate_changes[idx]))
        path.append(current)
    return path


def simulate_arm(loan_amount, term_years, rate_path: Sequence[float]) -> pd.DataFrame:
    """Re-amortize the balance each year at that year's rate."""

    balance = nz(loan_amount)
    term = int(term_years)
    rows = []
    for year, rate in enumerate(rate_path, start=1):
        pmt = monthly_payment(balance, rate, term - year + 1)
        r = rate / 100 / 12
        year_interest = 0.0
        for _ in range(12):
            interest = balance * r
            balance -= pmt - interest
            year_interest += interest
        rows.append(
            {"year": year, "rate": rate, "payment": pmt, "interest": year_interest, "balance": max(0.0, balance)}
        )
    return pd.DataFrame(rows, columns=["year", "rate", "payment", "interest", "balance"])


# ---------------------------------------------------------------------------
# Closing costs
# ---------------------------------------------------------------------------


def closing_costs(scenario: ScenarioBase, program: Optional[ProgramFees] = None) -> Dict[str, object]:
    """Aggregate fees, prepaids and credits into totals and cash to close.

    Net figures are never clamped here: credits larger than fees produce a
    negative ``total_fees`` that still nets into ``cash_to_close``.
    """

    program = program or ProgramFees()
    loan = nz(scenario.loan_amount)
    pre = scenario.prepaids

    points_cost = loan * nz(scenario.discount_points) / 100 if scenario.buying_points else 0.0
    closing_items: Dict[str, float] = {}
    for block in (scenario.lender_fees, scenario.third_party_fees, scenario.title_fees, scenario.other_fees):
        closing_items.update(block.items())
    total_closing = sum(closing_items.values())

    custom = tuple(f for f in scenario.custom_fees if f.name and f.amount > 0)
    custom_total = sum(f.amount for f in scenario.custom_fees)

    monthly_taxes = nz(pre.annual_taxes) / 12
    monthly_insurance = nz(pre.annual_insurance) / 12
    prepaid_taxes = monthly_taxes * pre.tax_months
    prepaid_insurance = monthly_insurance * pre.insurance_months
    daily_interest = loan * nz(scenario.interest_rate) / 100 / 365
    prepaid_interest = daily_interest * pre.prepaid_interest_days
    prepaid_items = {
        "Prepaid Taxes": prepaid_taxes,
        "Prepaid Insurance": prepaid_insurance,
        "Prepaid Interest": prepaid_interest,
    }
    total_prepaids = prepaid_taxes + prepaid_insurance + prepaid_interest

    fee_subtotal = total_closing + custom_total + total_prepaids + points_cost + program.upfront
    total_credits = scenario.credits.total()
    total_fees = fee_subtotal - total_credits

    if scenario.transaction_type == "purchase":
        cash_to_close = nz(scenario.down_payment) + total_fees
    else:
        cash_to_close = total_fees - nz(scenario.cash_out)

    fees: Dict[str, float] = {}
    if program.upfront_label:
        fees[program.upfront_label] = program.upfront
    if points_cost > 0:
        fees["Discount Points"] = points_cost
    fees.update(closing_items)
    fees.update(prepaid_items)

    return {
        "total_closing_costs": total_closing,
        "custom_fees_total": custom_total,
        "custom_fees": custom,
        "points_cost": points_cost,
        "upfront_program_fee": program.upfront,
        "monthly_taxes": monthly_taxes,
        "monthly_insurance": monthly_insurance,
        "prepaid_interest": prepaid_interest,
        "total_prepaids": total_prepaids,
        "fee_subtotal": fee_subtotal,
        "total_credits": total_credits,
        "total_fees": total_fees,
        "cash_to_close": cash_to_close,
        "fees": fees,
    }


def finance_charges(scenario: ScenarioBase, costs: Dict[str, object]) -> float:
    """Prepaid finance charges counted against the amount financed.

    Points, the upfront program fee, prepaid interest and the lender's own
    origination-type fees. Escrowed taxes and insurance, title, third-party
    and recording/transfer charges are excluded.
    """

    lender = sum(nz(getattr(scenario.lender_fees, name)) for name in FINANCE_CHARGE_LENDER_FEES)
    return costs["points_cost"] + costs["upfront_program_fee"] + costs["prepaid_interest"] + lender


# ---------------------------------------------------------------------------
# APR
# ---------------------------------------------------------------------------


class AprSolution(NamedTuple):
    apr: float
    iterations: int
    converged: bool
    ok: bool


def solve_apr(finance_charges, monthly_payment, num_payments, loan_amount) -> AprSolution:
    """Newton-Raphson APR.

    Finds the annual rate at which the present value of ``num_payments``
    payments equals ``loan_amount - finance_charges``. The rate is held in
    ``[min_rate, max_rate]`` throughout. A non-positive amount financed,
    payment or term returns ``ok=False`` with an APR of 0.
    """

    amount_financed = nz(loan_amount) - nz(finance_charges)
    pmt = nz(monthly_payment)
    n = int(nz(num_payments))
    if amount_financed <= 0 or pmt <= 0 or n <= 0:
        logger.debug("APR skipped: financed=%.2f payment=%.2f n=%d", amount_financed, pmt, n)
        return AprSolution(0.0, 0, False, False)

    lo, hi = APR_SOLVER["min_rate"], APR_SOLVER["max_rate"]
    tol = APR_SOLVER["tolerance"]
    rate = min(max(pmt * n / amount_financed - 1, lo), hi)
    converged = False
    iterations = 0
    for iterations in range(1, APR_SOLVER["max_iterations"] + 1):
        m = rate / 12
        factor = (1 + m) ** (-n)
        pv = pmt * (1 - factor) / m
        diff = pv - amount_financed
        if abs(diff) < tol:
            converged = True
            break
        d_pv = pmt * (n * (1 + m) ** (-n - 1) / m - (1 - factor) / (m * m)) / 12
        rate = min(max(rate - diff / d_pv, lo), hi)

    if converged:
        logger.debug("APR converged to %.5f%% after %d iterations", rate * 100, iterations)
    else:
        logger.warning("APR solver did not converge after %d iterations (last rate %.5f%%)", iterations, rate * 100)
    return AprSolution(rate * 100, iterations, converged, True)


def calculate_apr(finance_charges, monthly_payment, num_payments, loan_amount) -> float:
    """APR as an annual percent; 0 for degenerate inputs."""

    return solve_apr(finance_charges, monthly_payment, num_payments, loan_amount).apr
