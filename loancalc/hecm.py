"""HECM reverse-mortgage sizing.

The principal limit factor (PLF) is supplied by the caller; actuarial PLF
tables are not modelled. Tenure payments use a 240-month annuity halved as a
conservative stand-in for true tenure pricing. At a zero rate the payment is
the straight 240-month split, unhalved.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

import pandas as pd

from loancalc.calculators import nz
from loancalc.models import AdvisorScore, HECMProjection, HECMResult, HECMScenario
from loancalc.presets import (
    HECM_APPRECIATION_PCT,
    HECM_MIN_AGE,
    HECM_ORIGINATION,
    HECM_PROGRAMS,
    HECM_PROJECTION_YEARS,
    HECM_TENURE,
)

logger = logging.getLogger("loancalc.hecm")

MONTHLY_PAYMENT_TYPES = ("tenure", "term", "modified-tenure", "modified-term")


def hecm_origination_fee(home_value, fha_limit):
    """FHA origination fee on the max claim amount.

    2% of the first $200,000 with a $2,500 floor, 1% above that, capped at
    $6,000. Lender credits are applied by the caller.
    """

    mca = min(nz(home_value), nz(fha_limit))
    o = HECM_ORIGINATION
    if mca <= o["tier_break"]:
        fee = max(o["minimum"], mca * o["first_tier_pct"] / 100)
    else:
        fee = o["base_above_break"] + (mca - o["tier_break"]) * o["second_tier_pct"] / 100
    return min(fee, o["cap"])


def hecm_initial_mip(home_value, fha_limit, mip_pct=2.0):
    return min(nz(home_value), nz(fha_limit)) * nz(mip_pct) / 100


def loc_growth(initial_amount, rate, years, annual_mip_rate=0.5):
    """Line of credit after ``years`` of growth at note rate plus annual MIP."""
    return nz(initial_amount) * (1 + (nz(rate) + nz(annual_mip_rate)) / 100) ** years


def balance_projection(initial_balance, rate, years, annual_mip_rate=0.5):
    """Loan balance after ``years`` of accrual at note rate plus annual MIP."""
    return nz(initial_balance) * (1 + (nz(rate) + nz(annual_mip_rate)) / 100) ** years


def _annuity_factor(monthly_rate, months):
    growth = (1 + monthly_rate) ** months
    return monthly_rate * growth / (growth - 1)


def tenure_payment(net_principal_limit, expected_rate):
    months = HECM_TENURE["assumed_months"]
    m = nz(expected_rate) / 100 / 12
    if m == 0:
        return nz(net_principal_limit) / months
    return nz(net_principal_limit) * _annuity_factor(m, months) * HECM_TENURE["conservative_factor"]


def term_payment(net_principal_limit, expected_rate, term_months):
    months = int(nz(term_months))
    if months <= 0:
        return 0.0
    m = nz(expected_rate) / 100 / 12
    if m == 0:
        return nz(net_principal_limit) / months
    return nz(net_principal_limit) * _annuity_factor(m, months)


def _monthly_for(payment_type, amount, scenario: HECMScenario):
    if "tenure" in payment_type:
        return tenure_payment(amount, scenario.interest_rate)
    return term_payment(amount, scenario.interest_rate, scenario.term_months)


def _disburse(scenario: HECMScenario, available) -> Tuple[float, float, float]:
    """Split the available principal into (cash, line of credit, monthly payment)."""

    ptype = scenario.payment_type
    requested = scenario.desired_cash_draw + scenario.desired_loc_amount
    if not scenario.use_max_available and requested > 0:
        if requested > available:
            ratio = available / requested
            cash = float(round(scenario.desired_cash_draw * ratio))
            loc = float(round(scenario.desired_loc_amount * ratio))
            logger.info("Requested draws %.2f exceed available %.2f, pro-rating", requested, available)
        else:
            cash = scenario.desired_cash_draw
            loc = scenario.desired_loc_amount
        remaining = available - cash - loc
        monthly = 0.0
        if remaining > 0 and ptype in MONTHLY_PAYMENT_TYPES:
            monthly = _monthly_for(ptype, remaining, scenario)
        return cash, loc, monthly

    if ptype == "lump-sum":
        return available, 0.0, 0.0
    if ptype == "line-of-credit":
        return 0.0, available, 0.0
    if ptype in ("tenure", "term"):
        return 0.0, 0.0, _monthly_for(ptype, available, scenario)
    half = available * 0.5
    return 0.0, half, _monthly_for(ptype, half, scenario)


def hecm_projection(
    year,
    initial_balance,
    loc_amount,
    home_value,
    rate,
    annual_mip_rate,
    appreciation_pct=HECM_APPRECIATION_PCT,
) -> HECMProjection:
    balance = balance_projection(initial_balance, rate, year, annual_mip_rate)
    future_value = nz(home_value) * (1 + appreciation_pct / 100) ** year
    return HECMProjection(
        year=year,
        loc_balance=loc_growth(loc_amount, rate, year, annual_mip_rate) if loc_amount > 0 else 0.0,
        loan_balance=balance,
        home_value=future_value,
        equity=max(0.0, future_value - balance),
        interest_and_mip=balance - nz(initial_balance),
    )


def compute_hecm_result(scenario: HECMScenario, years=HECM_PROJECTION_YEARS) -> HECMResult:
    """Size a HECM (or proprietary reverse mortgage) scenario."""

    program = HECM_PROGRAMS.get(scenario.loan_program, HECM_PROGRAMS["hecm-standard"])
    proprietary = not program["fha_limited"]
    age_eligible = proprietary or scenario.borrower_age >= HECM_MIN_AGE
    if not age_eligible:
        logger.warning(
            "Borrower age %.0f is below the HECM minimum of %d", scenario.borrower_age, HECM_MIN_AGE
        )

    home_value = scenario.home_value
    limit = home_value if proprietary else scenario.fha_limit
    max_claim = min(home_value, limit)
    principal_limit = max_claim * scenario.plf / 100

    initial_mip = 0.0 if proprietary else hecm_initial_mip(home_value, limit, program["mip_pct"])
    origination_net = hecm_origination_fee(home_value, limit) - scenario.lender_credit
    origination = max(0.0, origination_net)
    total_closing = initial_mip + origination + scenario.third_party_costs + scenario.counseling_fee
    set_asides = scenario.lesa_amount + scenario.service_fee_setaside + scenario.repairs_setaside
    annual_charges = (
        scenario.annual_taxes + scenario.annual_insurance + scenario.annual_hoa + scenario.annual_flood
    )

    npl_raw = principal_limit - total_closing - scenario.existing_mortgage - set_asides
    cash, loc, monthly = _disburse(scenario, max(0.0, npl_raw))

    effective_rate = scenario.initial_rate if scenario.hecm_type == "adjustable" else scenario.interest_rate
    annual_mip_rate = program["annual_mip_pct"]
    initial_balance = total_closing + scenario.existing_mortgage
    projections = tuple(
        hecm_projection(y, initial_balance, loc, home_value, effective_rate, annual_mip_rate) for y in years
    )

    return HECMResult(
        scenario_name=scenario.scenario_name,
        loan_program=scenario.loan_program,
        program_name=program["name"],
        payment_type=scenario.payment_type,
        age_eligible=age_eligible,
        home_value=home_value,
        max_claim_amount=max_claim,
        principal_limit=principal_limit,
        initial_mip=initial_mip,
        origination_fee=origination,
        origination_fee_net=origination_net,
        third_party_costs=scenario.third_party_costs,
        counseling_fee=scenario.counseling_fee,
        total_closing_costs=total_closing,
        total_set_asides=set_asides,
        existing_mortgage=scenario.existing_mortgage,
        net_principal_limit_raw=npl_raw,
        net_principal_limit=max(0.0, npl_raw),
        cash_to_borrower=max(0.0, cash),
        loc_amount=max(0.0, loc),
        monthly_payment=monthly,
        interest_rate=scenario.interest_rate,
        effective_rate=effective_rate,
        annual_mip_rate=annual_mip_rate,
        initial_balance=initial_balance,
        total_annual_charges=annual_charges,
        annual_mip_amount=initial_balance * annual_mip_rate / 100,
        projections=projections,
    )


def projections_frame(result: HECMResult) -> pd.DataFrame:
    return pd.DataFrame([p.model_dump() for p in result.projections]).set_index("year")


def compare_hecm_results(first: HECMResult, second: HECMResult, years=10) -> AdvisorScore:
    """Score two HECM results head to head.

    Net principal limit and equity at ``years`` are worth two points, cash at
    closing, closing costs and note rate one point each. Ties go to ``first``.
    Equity is projected at ``effective_rate``, so an adjustable loan grows at
    its initial rate rather than the note rate.
    """

    scores = [0, 0]
    reasons: Tuple[List[str], List[str]] = ([], [])

    def award(values, points, higher_wins, reason):
        a, b = values
        if a == b:
            return
        winner = 0 if (a > b) == higher_wins else 1
        scores[winner] += points
        reasons[winner].append(reason(abs(a - b)))

    award(
        (first.net_principal_limit, second.net_principal_limit),
        2,
        True,
        lambda d: f"${d:,.0f} more available proceeds",
    )
    award(
        (first.cash_to_borrower, second.cash_to_borrower),
        1,
        True,
        lambda d: f"${d:,.0f} more cash at closing",
    )
    award(
        (first.total_closing_costs, second.total_closing_costs),
        1,
        False,
        lambda d: f"${d:,.0f} lower upfront costs",
    )
    award(
        (first.interest_rate, second.interest_rate),
        1,
        False,
        lambda d: f"Lower interest rate by {d:.2f}%",
    )
    equity = tuple(
        hecm_projection(years, r.initial_balance, r.loc_amount, r.home_value, r.effective_rate, r.annual_mip_rate).equity
        for r in (first, second)
    )
    award(equity, 2, True, lambda d: f"Preserves ${d:,.0f} more equity at {years} years")

    return AdvisorScore(
        winner=0 if scores[0] >= scores[1] else 1,
        scores=(scores[0], scores[1]),
        reasons=reasons,
    )
