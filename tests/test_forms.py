import pytest

from loancalc.config import get_settings
from loancalc.forms import coerce_hecm_fields, coerce_loan_fields, parse_float, parse_int
from loancalc.models import ARMScenario, ConventionalScenario, FHAScenario, VAScenario


def test_parse_float_prefix_and_defaults():
    assert parse_float("6.5%") == 6.5
    assert parse_float("  450000abc") == 450000
    assert parse_float("", 30) == 30
    assert parse_float("0", 30) == 30
    assert parse_float(None, 1.5) == 1.5
    assert parse_float("abc", 2.0) == 2.0
    assert parse_float(True, 3.0) == 3.0
    assert parse_float(-250) == -250


def test_parse_int_truncates():
    assert parse_int("15.9") == 15
    assert parse_int(7.8) == 7
    assert parse_int("", 30) == 30
    assert parse_int(float("nan"), 4) == 4


def test_conventional_defaults():
    s = coerce_loan_fields({"loanAmount": "320000", "interestRate": "6.5"})
    assert isinstance(s, ConventionalScenario)
    assert s.term_years == 30
    assert s.credit_score == 700
    assert s.prepaids.tax_months == 3
    assert s.prepaids.insurance_months == 14
    assert s.prepaids.prepaid_interest_days == 15


def test_fees_are_clamped_and_mapped():
    s = coerce_loan_fields(
        {"originationFee": "1,000", "appraisalFee": "-50", "titleInsurance": "900", "sellerCredit": "2000"}
    )
    assert s.lender_fees.origination == 1
    assert s.third_party_fees.appraisal == 0
    assert s.title_fees.lenders_title_insurance == 900
    assert s.credits.seller == 2000


def test_selectors_from_arguments():
    s = coerce_loan_fields(
        {"upfrontMIPRate": "", "annualMIPRate": "0.5"},
        loan_type="fha",
        transaction_type="refinance",
        borrower_count=2,
        custom_fees=[{"name": "Doc prep", "amount": "150"}],
    )
    assert isinstance(s, FHAScenario)
    assert s.upfront_mip_rate == 1.75
    assert s.annual_mip_rate == 0.5
    assert s.transaction_type == "refinance"
    assert s.borrower_count == 2
    assert s.custom_fees[0].name == "Doc prep"
    assert s.custom_fees[0].amount == 150


def test_unknown_loan_type_raises():
    with pytest.raises(ValueError):
        coerce_loan_fields({}, loan_type="balloon")


def test_program_fallbacks():
    assert coerce_loan_fields({"loanProgram": "mystery"}).loan_program == "standard"
    assert coerce_loan_fields({}, loan_type="fha", loan_program="homeready").loan_program == "standard"
    assert coerce_loan_fields({}, loan_program="homeready").loan_program == "homeready"


def test_va_flags():
    s = coerce_loan_fields({"vaExempt": "yes", "firstTimeVA": "false", "serviceType": "navy"}, loan_type="va")
    assert isinstance(s, VAScenario)
    assert s.va_exempt
    assert not s.first_time_va
    assert s.service_type == "regular"


def test_arm_defaults():
    s = coerce_loan_fields({}, loan_type="arm")
    assert isinstance(s, ARMScenario)
    assert s.arm_type == "5/1"
    assert s.arm_initial_rate == 5.5
    assert s.arm_margin == 2.75
    assert (s.arm_initial_cap, s.arm_periodic_cap, s.arm_lifetime_cap) == (2.0, 2.0, 5.0)


def test_hecm_defaults(monkeypatch):
    monkeypatch.delenv("LOANCALC_FHA_LIMIT", raising=False)
    get_settings.cache_clear()
    s = coerce_hecm_fields({"homeValue": "450000"}, scenario_id=2)
    assert s.scenario_name == "Scenario 2"
    assert s.borrower_age == 70
    assert s.plf == 52.4
    assert s.counseling_fee == 125
    assert s.third_party_costs == 3500
    assert s.fha_limit == 1209750
    assert s.use_max_available
    assert s.payment_type == "lump-sum"


def test_hecm_fha_limit_from_environment(monkeypatch):
    monkeypatch.setenv("LOANCALC_FHA_LIMIT", "1149825")
    get_settings.cache_clear()
    try:
        s = coerce_hecm_fields({})
        assert s.fha_limit == 1149825
    finally:
        get_settings.cache_clear()


def test_hecm_invalid_selectors_normalized():
    s = coerce_hecm_fields(
        {"hecmType": "variable", "paymentType": "balloon", "loanProgram": "other", "useMaxAvailable": "no"}
    )
    assert s.hecm_type == "fixed"
    assert s.payment_type == "lump-sum"
    assert s.loan_program == "hecm-standard"
    assert not s.use_max_available
