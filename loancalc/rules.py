from __future__ import annotations
from typing import Literal, List, Dict, Any
from pydantic import BaseModel, Field

from loancalc.models import ARMScenario, HECMResult, HECMScenario, LoanResult, ScenarioBase
from loancalc.presets import PMI_LTV_THRESHOLD
from loancalc.utils import effective_credit_score


class RuleResult(BaseModel):
    code: str
    severity: Literal["info", "warn", "critical"]
    message: str
    context: Dict[str, Any] = Field(default_factory=dict)


def evaluate_loan_rules(scenario: ScenarioBase, result: LoanResult) -> List[RuleResult]:
    res: List[RuleResult] = []

    if result.loan_amount <= 0:
        res.append(
            RuleResult(
                code="ZERO_LOAN",
                severity="critical",
                message="No loan amount entered; payment and APR are not meaningful.",
            )
        )

    if scenario.transaction_type == "purchase" and scenario.home_price > 0:
        expected = scenario.home_price - scenario.down_payment
        if abs(expected - scenario.loan_amount) > 1.0:
            res.append(
                RuleResult(
                    code="LOAN_AMOUNT_MISMATCH",
                    severity="warn",
                    message="Loan amount does not equal price less down payment.",
                    context={"expected": expected, "loan_amount": scenario.loan_amount},
                )
            )

    if result.loan_amount > 0 and result.apr == 0:
        res.append(
            RuleResult(
                code="APR_DEGENERATE",
                severity="warn",
                message="APR could not be solved for these inputs.",
            )
        )

    if result.pmi is not None and result.pmi.required:
        res.append(
            RuleResult(
                code="PMI_REQUIRED",
                severity="info",
                message="LTV above 80%; private mortgage insurance applies.",
                context={"ltv": result.pmi.ltv, "monthly": result.pmi.monthly},
            )
        )
        if result.pmi.ltv > 95:
            res.append(
                RuleResult(
                    code="HIGH_LTV",
                    severity="warn",
                    message="LTV above 95% is outside most conventional guidelines.",
                    context={"ltv": result.pmi.ltv, "threshold": PMI_LTV_THRESHOLD},
                )
            )

    if result.total_fees < 0:
        res.append(
            RuleResult(
                code="NEGATIVE_NET_FEES",
                severity="info",
                message="Credits exceed closing costs; net fees shown as $0.",
                context={"total_fees": result.total_fees},
            )
        )

    if scenario.transaction_type == "refinance" and scenario.cash_out > 0:
        res.append(
            RuleResult(
                code="CASH_OUT_REFI",
                severity="info",
                message="Cash-out refinance; pricing and funding fees may differ.",
                context={"cash_out": scenario.cash_out},
            )
        )

    if isinstance(scenario, ARMScenario) and result.arm is not None:
        res.append(
            RuleResult(
                code="ARM_WORST_CASE",
                severity="info",
                message="Adjustable rate can reach the lifetime cap.",
                context={"initial_rate": result.arm.initial_rate, "worst_case_rate": result.arm.worst_case_rate},
            )
        )

    score = effective_credit_score(scenario.credit_score, scenario.credit_score2, scenario.borrower_count)
    if score < 620:
        res.append(
            RuleResult(
                code="LOW_CREDIT",
                severity="warn",
                message="Qualifying credit score below 620.",
                context={"score": score},
            )
        )

    return res


def evaluate_hecm_rules(scenario: HECMScenario, result: HECMResult) -> List[RuleResult]:
    res: List[RuleResult] = []

    if not result.age_eligible:
        res.append(
            RuleResult(
                code="AGE_INELIGIBLE",
                severity="critical",
                message="Youngest borrower must be 62 or older for a HECM.",
                context={"age": scenario.borrower_age},
            )
        )

    if result.net_principal_limit_raw < 0:
        res.append(
            RuleResult(
                code="NPL_NEGATIVE",
                severity="critical",
                message="Costs and payoffs exceed the principal limit; borrower must bring funds.",
                context={"shortfall": -result.net_principal_limit_raw},
            )
        )

    requested = scenario.desired_cash_draw + scenario.desired_loc_amount
    if not scenario.use_max_available and requested > result.net_principal_limit:
        res.append(
            RuleResult(
                code="DRAW_PRORATED",
                severity="warn",
                message="Requested draws exceed available proceeds and were reduced proportionally.",
                context={"requested": requested, "available": result.net_principal_limit},
            )
        )

    if result.max_claim_amount < result.home_value:
        res.append(
            RuleResult(
                code="FHA_LIMIT_APPLIED",
                severity="info",
                message="Home value exceeds the FHA lending limit; max claim is capped.",
                context={"home_value": result.home_value, "max_claim": result.max_claim_amount},
            )
        )

    if result.origination_fee_net < 0:
        res.append(
            RuleResult(
                code="LENDER_CREDIT_EXCEEDS_FEE",
                severity="info",
                message="Lender credit exceeds the origination fee.",
                context={"excess": -result.origination_fee_net},
            )
        )

    return res


def has_blocking(res: List[RuleResult]) -> bool:
    return any(r.severity == "critical" for r in res)
