import pytest

from loancalc.calculators import (
    conventional_pmi,
    fha_fees,
    pmi_rate_pct,
    usda_fees,
    va_funding_fee,
    va_funding_fee_pct,
)
from loancalc.models import VAScenario
from loancalc.utils import credit_score_tier, effective_credit_score


def test_va_funding_fee_table():
    assert va_funding_fee_pct("purchase", 3, first_use=False) == 3.30
    assert va_funding_fee_pct("purchase", 3, first_use=True) == 2.15
    assert va_funding_fee_pct("purchase", 3, first_use=True, service_type="reserves") == 2.40
    assert va_funding_fee_pct("purchase", 7, first_use=True) == 1.50
    assert va_funding_fee_pct("purchase", 10, first_use=False) == 1.25


def test_va_reserves_rate_only_below_five_percent_first_use():
    assert va_funding_fee_pct("purchase", 5, first_use=True, service_type="reserves") == 1.50
    assert va_funding_fee_pct("purchase", 3, first_use=False, service_type="reserves") == 3.30


def test_va_refinance_rates():
    assert va_funding_fee_pct("refinance", 0, first_use=False) == 0.50
    assert va_funding_fee_pct("refinance", 0, first_use=True, cash_out=20000) == 2.15
    assert va_funding_fee_pct("refinance", 0, first_use=False, cash_out=20000) == 3.30


def test_va_funding_fee_dollars_and_exemption():
    s = VAScenario(loan_amount=300000, down_payment_pct=0, first_time_va=True)
    assert va_funding_fee(s) == pytest.approx(6450)
    assert va_funding_fee(s.model_copy(update={"va_exempt": True})) == 0.0
    assert va_funding_fee(s.model_copy(update={"va_funding_fee_rate": 1.0})) == pytest.approx(3000)


def test_pmi_not_required_at_eighty_ltv():
    quote = conventional_pmi(320000, 400000, 760)
    assert not quote.required
    assert quote.monthly == 0
    assert quote.ltv == pytest.approx(80.0)


def test_pmi_required_just_above_eighty_ltv():
    quote = conventional_pmi(320040, 400000, 760)
    assert quote.required
    assert quote.rate_pct == pytest.approx(0.19)
    assert quote.monthly == pytest.approx(320040 * 0.19 / 100 / 12)


def test_pmi_rate_bands_and_program_reduction():
    assert pmi_rate_pct(97, 760) == 0.58
    assert pmi_rate_pct(92, 700) == 0.83
    assert pmi_rate_pct(88, 650) == 1.00
    assert pmi_rate_pct(97, 760, "homeready") == pytest.approx(0.58 * 0.75)
    assert pmi_rate_pct(97, 760, "affordable") == pytest.approx(0.58 * 0.80)
    assert pmi_rate_pct(97, 760, "firsttime") == 0.58


def test_pmi_override_is_used_verbatim():
    quote = conventional_pmi(380000, 400000, 620, rate_override=0.5)
    assert quote.rate_pct == 0.5
    assert quote.annual == pytest.approx(1900)


def test_fha_fees():
    fees = fha_fees(300000)
    assert fees.upfront_label == "Upfront MIP"
    assert fees.upfront == pytest.approx(5250)
    assert fees.monthly_mi == pytest.approx(137.5)


def test_usda_fees():
    fees = usda_fees(240000)
    assert fees.upfront_label == "USDA Guarantee Fee"
    assert fees.upfront == pytest.approx(2400)
    assert fees.monthly_mi == pytest.approx(70)


def test_credit_score_helpers():
    assert effective_credit_score(760, 640, 2) == 640
    assert effective_credit_score(760, 640, 1) == 760
    assert credit_score_tier(745) == 740
    assert credit_score_tier(600) == 0
    assert credit_score_tier("bad") == 0
