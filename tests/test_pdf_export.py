import pathlib
import sys

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

import pytest
from export.pdf_export import build_comparison_pdf, build_hecm_pdf

from loancalc import compute_hecm_result, compute_loan_result
from loancalc.models import ConventionalScenario, CustomFee, FHAScenario, HECMScenario, LenderFees
from loancalc.rules import RuleResult

BRANDING = {"title": "Loan Options", "mlo": "J. Smith", "nmls": "123456", "borrower": "Pat & Sam"}


@pytest.fixture
def results():
    base = dict(home_price=400000, down_payment=40000, down_payment_pct=10, loan_amount=360000, interest_rate=6.5)
    return [
        compute_loan_result(
            ConventionalScenario(
                scenario_name="Conventional",
                lender_fees=LenderFees(origination=1500),
                custom_fees=(CustomFee(name="Doc prep", amount=150),),
                **base,
            )
        ),
        compute_loan_result(FHAScenario(scenario_name="FHA", **base)),
    ]


def test_requires_override_with_critical(tmp_path, results):
    warnings = [RuleResult(code="ZERO_LOAN", severity="critical", message="No loan amount entered.")]
    with pytest.raises(ValueError):
        build_comparison_pdf(str(tmp_path / "out.pdf"), BRANDING, results, warnings=warnings)
    assert not (tmp_path / "out.pdf").exists()


def test_comparison_pdf_written(tmp_path, results):
    out = tmp_path / "compare.pdf"
    warnings = [{"code": "ZERO_LOAN", "severity": "critical", "message": "No loan amount entered."}]
    build_comparison_pdf(
        str(out), BRANDING, results, warnings=warnings, months=60, override_reason="Borrower <confirmed> terms"
    )
    assert out.read_bytes().startswith(b"%PDF")


def test_single_result_without_branding(tmp_path, results):
    out = tmp_path / "single.pdf"
    build_comparison_pdf(str(out), {}, results[:1])
    assert out.read_bytes().startswith(b"%PDF")


def test_hecm_pdf(tmp_path):
    scenario = HECMScenario(scenario_name="Standard", home_value=450000)
    out = tmp_path / "hecm.pdf"
    build_hecm_pdf(str(out), BRANDING, [compute_hecm_result(scenario)])
    assert out.read_bytes().startswith(b"%PDF")

    with pytest.raises(ValueError):
        build_hecm_pdf(
            str(out),
            BRANDING,
            [compute_hecm_result(scenario)],
            warnings=[{"code": "AGE_INELIGIBLE", "severity": "critical", "message": "Too young"}],
        )
