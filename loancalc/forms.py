"""Coerce raw form dictionaries into scenario models.

Saved scenarios and web forms carry camelCase string fields. Numbers follow
the ``parseFloat(x) || default`` rule: a leading numeric prefix is read, and an
empty, zero or unparsable value falls back to the field default. Negative fee
amounts are clamped to zero before validation.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Dict, Iterable, Mapping, Optional

from pydantic import TypeAdapter

from loancalc.config import get_settings
from loancalc.models import (
    Credits,
    CustomFee,
    HECMScenario,
    LenderFees,
    LoanScenario,
    OtherFees,
    Prepaids,
    ThirdPartyFees,
    TitleFees,
)
from loancalc.presets import HECM_PROGRAMS, LOAN_PROGRAMS, LOAN_TYPES

logger = logging.getLogger("loancalc.forms")

_FLOAT_PREFIX = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INT_PREFIX = re.compile(r"\s*[+-]?\d+")

_scenario_adapter = TypeAdapter(LoanScenario)


def parse_float(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, (int, float)):
        num = float(value)
    else:
        m = _FLOAT_PREFIX.match(str(value))
        if not m:
            return default
        num = float(m.group(0))
    if num == 0 or math.isnan(num):
        return default
    return num


def parse_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return default
        num = int(value)
    else:
        m = _INT_PREFIX.match(str(value))
        if not m:
            return default
        num = int(m.group(0))
    return num or default


def _flag(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("yes", "true", "on", "1")
    return bool(value)


def _fee(raw: Mapping[str, Any], key: str) -> float:
    return max(0.0, parse_float(raw.get(key), 0.0))


def _block(model, raw: Mapping[str, Any], keys: Mapping[str, str]):
    return model(**{field: _fee(raw, key) for field, key in keys.items()})


LENDER_FEE_KEYS = {
    "origination": "originationFee",
    "processing": "processingFee",
    "underwriting": "underwritingFee",
    "application": "applicationFee",
    "commitment": "commitmentFee",
    "rate_lock": "rateLockFee",
}
THIRD_PARTY_FEE_KEYS = {
    "appraisal": "appraisalFee",
    "credit_report": "creditReport",
    "flood_cert": "floodCert",
    "tax_service": "taxServiceFee",
    "survey": "survey",
    "pest_inspection": "pestInspection",
    "home_inspection": "homeInspection",
}
TITLE_FEE_KEYS = {
    "lenders_title_insurance": "titleInsurance",
    "owners_title_insurance": "ownersTitleInsurance",
    "title_search": "titleSearch",
    "settlement": "settlementFee",
    "escrow": "escrowFees",
    "recording": "recordingFees",
    "transfer_taxes": "transferTaxes",
    "attorney": "attorneyFees",
    "notary": "notaryFees",
    "courier": "courierFees",
}
OTHER_FEE_KEYS = {
    "hoa_transfer": "hoaTransferFee",
    "hoa_certification": "hoaCertification",
    "other": "otherFees",
}
CREDIT_KEYS = {"lender": "lenderCredit", "seller": "sellerCredit", "other": "otherCredits"}


def _custom_fees(items: Optional[Iterable[Mapping[str, Any]]]):
    fees = []
    for item in items or ():
        fees.append(CustomFee(name=str(item.get("name") or ""), amount=max(0.0, parse_float(item.get("amount"), 0.0))))
    return tuple(fees)


def coerce_loan_fields(
    raw: Mapping[str, Any],
    loan_type: Optional[str] = None,
    loan_program: Optional[str] = None,
    transaction_type: Optional[str] = None,
    borrower_count: Optional[int] = None,
    custom_fees: Optional[Iterable[Mapping[str, Any]]] = None,
) -> LoanScenario:
    """Build a forward-loan scenario from raw form fields.

    Selector state (loan type, program, transaction type, borrower count,
    custom fees) may be passed explicitly or read from ``raw``. An unknown
    loan type raises ``ValueError``; other unknown selector values fall back
    to their defaults.
    """

    loan_type = loan_type or raw.get("loanType") or "conventional"
    if loan_type not in LOAN_TYPES:
        raise ValueError(f"Unknown loan type {loan_type!r}")

    program = loan_program or raw.get("loanProgram") or "standard"
    if program not in LOAN_PROGRAMS:
        logger.warning("Unknown loan program %r, using standard", program)
        program = "standard"
    if loan_type != "conventional" and program in ("homeready", "homepossible"):
        program = "standard"

    transaction = transaction_type or raw.get("transactionType") or "purchase"
    if transaction not in ("purchase", "refinance"):
        transaction = "purchase"
    count = borrower_count if borrower_count is not None else parse_int(raw.get("borrowerCount"), 1)

    fields: Dict[str, Any] = {
        "loan_type": loan_type,
        "scenario_name": str(raw.get("scenarioName") or ""),
        "loan_program": program,
        "transaction_type": transaction,
        "borrower_count": 2 if count == 2 else 1,
        "home_price": parse_float(raw.get("homePrice"), 0.0),
        "loan_amount": parse_float(raw.get("loanAmount"), 0.0),
        "down_payment": parse_float(raw.get("downPayment"), 0.0),
        "down_payment_pct": parse_float(raw.get("downPaymentPercent"), 0.0),
        "interest_rate": parse_float(raw.get("interestRate"), 0.0),
        "term_years": parse_int(raw.get("loanTerm"), 30),
        "credit_score": parse_int(raw.get("creditScore"), 700),
        "credit_score2": parse_int(raw.get("creditScore2"), 700),
        "buying_points": _flag(raw.get("buyingPoints"), False),
        "discount_points": max(0.0, parse_float(raw.get("discountPoints"), 0.0)),
        "current_balance": parse_float(raw.get("currentBalance"), 0.0),
        "current_rate": parse_float(raw.get("currentRate"), 0.0),
        "cash_out": max(0.0, parse_float(raw.get("cashOut"), 0.0)),
        "lender_fees": _block(LenderFees, raw, LENDER_FEE_KEYS),
        "third_party_fees": _block(ThirdPartyFees, raw, THIRD_PARTY_FEE_KEYS),
        "title_fees": _block(TitleFees, raw, TITLE_FEE_KEYS),
        "other_fees": _block(OtherFees, raw, OTHER_FEE_KEYS),
        "custom_fees": _custom_fees(custom_fees if custom_fees is not None else raw.get("customFees")),
        "credits": _block(Credits, raw, CREDIT_KEYS),
        "prepaids": Prepaids(
            annual_taxes=_fee(raw, "annualTaxes"),
            annual_insurance=_fee(raw, "annualInsurance"),
            monthly_hoa=_fee(raw, "monthlyHOA"),
            tax_months=max(0, parse_int(raw.get("taxMonths"), 3)),
            insurance_months=max(0, parse_int(raw.get("insuranceMonths"), 14)),
            prepaid_interest_days=max(0, parse_int(raw.get("prepaidInterestDays"), 15)),
        ),
    }

    if loan_type in ("conventional", "arm"):
        fields["pmi_rate_override"] = max(0.0, parse_float(raw.get("pmiRateOverride"), 0.0))
    if loan_type == "fha":
        fields["upfront_mip_rate"] = max(0.0, parse_float(raw.get("upfrontMIPRate"), 1.75))
        fields["annual_mip_rate"] = max(0.0, parse_float(raw.get("annualMIPRate"), 0.55))
    elif loan_type == "va":
        service = raw.get("serviceType") or "regular"
        fields.update(
            va_exempt=_flag(raw.get("vaExempt"), False),
            first_time_va=_flag(raw.get("firstTimeVA"), False),
            service_type=service if service in ("regular", "reserves") else "regular",
            va_funding_fee_rate=max(0.0, parse_float(raw.get("vaFundingFeeRate"), 0.0)),
        )
    elif loan_type == "usda":
        fields["usda_upfront_rate"] = max(0.0, parse_float(raw.get("usdaUpfrontRate"), 1.0))
        fields["usda_annual_rate"] = max(0.0, parse_float(raw.get("usdaAnnualRate"), 0.35))
    elif loan_type == "arm":
        fields.update(
            arm_type=str(raw.get("armType") or "5/1"),
            arm_initial_rate=parse_float(raw.get("armInitialRate"), 5.5),
            arm_index=str(raw.get("armIndex") or "sofr"),
            arm_index_rate=parse_float(raw.get("armIndexRate"), 5.0),
            arm_margin=parse_float(raw.get("armMargin"), 2.75),
            arm_initial_cap=parse_float(raw.get("armInitialCap"), 2.0),
            arm_periodic_cap=parse_float(raw.get("armPeriodicCap"), 2.0),
            arm_lifetime_cap=parse_float(raw.get("armLifetimeCap"), 5.0),
        )

    return _scenario_adapter.validate_python(fields)


def coerce_hecm_fields(raw: Mapping[str, Any], scenario_id: Any = None) -> HECMScenario:
    """Build a HECM scenario from raw form fields."""

    program = raw.get("loanProgram") or "hecm-standard"
    if program not in HECM_PROGRAMS:
        logger.warning("Unknown HECM program %r, using hecm-standard", program)
        program = "hecm-standard"
    hecm_type = raw.get("hecmType") if raw.get("hecmType") in ("fixed", "adjustable") else "fixed"
    payment_type = raw.get("paymentType") or "lump-sum"
    if payment_type not in ("lump-sum", "line-of-credit", "tenure", "term", "modified-tenure", "modified-term"):
        payment_type = "lump-sum"
    use_max = raw.get("useMaxAvailable")
    default_name = f"Scenario {scenario_id}" if scenario_id is not None else ""

    return HECMScenario(
        scenario_name=str(raw.get("scenarioName") or default_name),
        hecm_type=hecm_type,
        loan_program=program,
        borrower_age=parse_float(raw.get("borrowerAge"), 70.0),
        spouse_age=parse_float(raw.get("spouseAge"), 0.0),
        home_value=parse_float(raw.get("homeValue"), 0.0),
        property_type=str(raw.get("propertyType") or "single-family"),
        existing_mortgage=_fee(raw, "existingMortgage"),
        interest_rate=parse_float(raw.get("interestRate"), 6.5),
        initial_rate=parse_float(raw.get("initialRate"), 5.5),
        margin=parse_float(raw.get("margin"), 2.0),
        lender_credit=_fee(raw, "lenderCredit"),
        fha_limit=parse_float(raw.get("fhaLimit"), get_settings().fha_limit),
        plf=parse_float(raw.get("plf"), 52.4),
        payment_type=payment_type,
        term_months=int(parse_float(raw.get("termMonths"), 120)),
        third_party_costs=max(0.0, parse_float(raw.get("thirdPartyCosts"), 3500.0)),
        counseling_fee=max(0.0, parse_float(raw.get("counselingFee"), 125.0)),
        lesa_amount=_fee(raw, "lesaAmount"),
        service_fee_setaside=_fee(raw, "serviceFeeSetaside"),
        repairs_setaside=_fee(raw, "repairsSetaside"),
        annual_taxes=_fee(raw, "annualTaxes"),
        annual_insurance=_fee(raw, "annualInsurance"),
        annual_hoa=_fee(raw, "annualHoa"),
        annual_flood=_fee(raw, "annualFlood"),
        desired_cash_draw=_fee(raw, "desiredCashDraw"),
        desired_loc_amount=_fee(raw, "desiredLocAmount"),
        use_max_available=_flag(use_max, True),
    )
