"""Forward-loan entry point.

``compute_loan_result`` turns one scenario variant into a frozen
:class:`~loancalc.models.LoanResult`. Program-specific charges are selected
through :data:`PROGRAM_FEE_HANDLERS`, keyed by scenario class, so every member
of :data:`~loancalc.models.LoanScenario` must have an entry there.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Mapping

from loancalc.calculators import (
    arm_projection,
    arm_total_interest,
    calculate_apr,
    closing_costs,
    finance_charges,
    fha_fees,
    monthly_payment,
    scenario_pmi,
    usda_fees,
    va_funding_fee,
)
from loancalc.models import (
    ARMScenario,
    ConventionalScenario,
    FHAScenario,
    LoanResult,
    LoanScenario,
    ProgramFees,
    USDAScenario,
    VAScenario,
)

logger = logging.getLogger("loancalc.engine")


def _conventional_fees(scenario: ConventionalScenario) -> ProgramFees:
    pmi = scenario_pmi(scenario, scenario.pmi_rate_override)
    return ProgramFees(monthly_mi=pmi.monthly, pmi=pmi)


def _fha_fees(scenario: FHAScenario) -> ProgramFees:
    return fha_fees(scenario.loan_amount, scenario.upfront_mip_rate, scenario.annual_mip_rate)


def _va_fees(scenario: VAScenario) -> ProgramFees:
    fee = va_funding_fee(scenario)
    # an exempt or zero fee is left off the itemized fee list
    return ProgramFees(upfront_label="VA Funding Fee" if fee > 0 else "", upfront=fee)


def _usda_fees(scenario: USDAScenario) -> ProgramFees:
    return usda_fees(scenario.loan_amount, scenario.usda_upfront_rate, scenario.usda_annual_rate)


def _arm_fees(scenario: ARMScenario) -> ProgramFees:
    pmi = scenario_pmi(scenario, scenario.pmi_rate_override)
    return ProgramFees(monthly_mi=pmi.monthly, pmi=pmi)


PROGRAM_FEE_HANDLERS: Dict[type, Callable[..., ProgramFees]] = {
    ConventionalScenario: _conventional_fees,
    FHAScenario: _fha_fees,
    VAScenario: _va_fees,
    USDAScenario: _usda_fees,
    ARMScenario: _arm_fees,
}


def program_fees(scenario: LoanScenario) -> ProgramFees:
    handler = PROGRAM_FEE_HANDLERS.get(type(scenario))
    if handler is None:
        raise TypeError(f"No program fee handler for {type(scenario).__name__}")
    return handler(scenario)


def compute_loan_result(scenario: LoanScenario) -> LoanResult:
    """Compute the full cost breakdown for one forward-loan scenario."""

    program = program_fees(scenario)
    logger.debug("Computing %s scenario %r", scenario.loan_type, scenario.scenario_name)
    loan = scenario.loan_amount
    n = scenario.term_years * 12

    monthly_pi = monthly_payment(loan, scenario.interest_rate, scenario.term_years)
    costs = closing_costs(scenario, program)

    arm = None
    if isinstance(scenario, ARMScenario):
        arm = arm_projection(scenario)
        total_interest = arm_total_interest(
            loan,
            scenario.term_years,
            arm.fixed_years,
            scenario.arm_initial_rate or scenario.interest_rate,
            arm.fully_indexed_rate,
        )
    else:
        total_interest = monthly_pi * n - loan

    monthly_mi = program.monthly_mi
    monthly_taxes = costs["monthly_taxes"]
    monthly_insurance = costs["monthly_insurance"]
    monthly_hoa = scenario.prepaids.monthly_hoa
    total_monthly = monthly_pi + monthly_taxes + monthly_insurance + monthly_mi + monthly_hoa
    total_loan_cost = (
        loan
        + total_interest
        + costs["total_fees"]
        + (monthly_mi + monthly_taxes + monthly_insurance + monthly_hoa) * n
    )

    charges = finance_charges(scenario, costs)
    apr = calculate_apr(charges, monthly_pi, n, loan)

    return LoanResult(
        scenario_name=scenario.scenario_name,
        loan_type=scenario.loan_type,
        loan_program=scenario.loan_program,
        transaction_type=scenario.transaction_type,
        borrower_count=scenario.borrower_count,
        loan_amount=loan,
        home_price=scenario.home_price,
        down_payment=scenario.down_payment,
        down_payment_pct=scenario.down_payment_pct,
        interest_rate=scenario.interest_rate,
        term_years=scenario.term_years,
        monthly_pi=monthly_pi,
        monthly_mi=monthly_mi,
        monthly_taxes=monthly_taxes,
        monthly_insurance=monthly_insurance,
        monthly_hoa=monthly_hoa,
        total_monthly=total_monthly,
        total_closing_costs=costs["total_closing_costs"],
        custom_fees_total=costs["custom_fees_total"],
        points_cost=costs["points_cost"],
        upfront_program_fee=costs["upfront_program_fee"],
        total_prepaids=costs["total_prepaids"],
        fee_subtotal=costs["fee_subtotal"],
        total_credits=costs["total_credits"],
        total_fees=costs["total_fees"],
        cash_to_close=costs["cash_to_close"],
        finance_charges=charges,
        apr=apr,
        total_interest=total_interest,
        total_loan_cost=total_loan_cost,
        fees=costs["fees"],
        custom_fees=costs["custom_fees"],
        pmi=program.pmi,
        arm=arm,
    )


def compute_results(scenarios: Mapping[str, LoanScenario]) -> Dict[str, LoanResult]:
    """Compute every scenario, keyed by the caller's scenario id."""

    return {key: compute_loan_result(scenario) for key, scenario in scenarios.items()}
