from __future__ import annotations

from typing import Annotated, ClassVar, Dict, List, Literal, Optional, Tuple, Union

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field


LoanProgram = Literal["standard", "homeready", "homepossible", "firsttime", "affordable"]
TransactionType = Literal["purchase", "refinance"]
HECMPaymentType = Literal[
    "lump-sum", "line-of-credit", "tenure", "term", "modified-tenure", "modified-term"
]
HECMProgram = Literal["hecm-standard", "hecm-purchase", "hecm-refi", "proprietary"]


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True)


class _FeeBlock(_Record):
    """Named fee amounts with display labels in ``LABELS``."""

    LABELS: ClassVar[Dict[str, str]] = {}

    def items(self) -> Dict[str, float]:
        return {label: float(getattr(self, field)) for field, label in self.LABELS.items()}

    def total(self) -> float:
        return sum(self.items().values())


class LenderFees(_FeeBlock):
    origination: float = Field(0.0, ge=0)
    processing: float = Field(0.0, ge=0)
    underwriting: float = Field(0.0, ge=0)
    application: float = Field(0.0, ge=0)
    commitment: float = Field(0.0, ge=0)
    rate_lock: float = Field(0.0, ge=0)

    LABELS: ClassVar[Dict[str, str]] = {
        "origination": "Origination Fee",
        "processing": "Processing Fee",
        "underwriting": "Underwriting Fee",
        "application": "Application Fee",
        "commitment": "Commitment Fee",
        "rate_lock": "Rate Lock Fee",
    }


class ThirdPartyFees(_FeeBlock):
    appraisal: float = Field(0.0, ge=0)
    credit_report: float = Field(0.0, ge=0)
    flood_cert: float = Field(0.0, ge=0)
    tax_service: float = Field(0.0, ge=0)
    survey: float = Field(0.0, ge=0)
    pest_inspection: float = Field(0.0, ge=0)
    home_inspection: float = Field(0.0, ge=0)

    LABELS: ClassVar[Dict[str, str]] = {
        "appraisal": "Appraisal Fee",
        "credit_report": "Credit Report",
        "flood_cert": "Flood Certification",
        "tax_service": "Tax Service Fee",
        "survey": "Survey",
        "pest_inspection": "Pest Inspection",
        "home_inspection": "Home Inspection",
    }


class TitleFees(_FeeBlock):
    lenders_title_insurance: float = Field(0.0, ge=0)
    owners_title_insurance: float = Field(0.0, ge=0)
    title_search: float = Field(0.0, ge=0)
    settlement: float = Field(0.0, ge=0)
    escrow: float = Field(0.0, ge=0)
    recording: float = Field(0.0, ge=0)
    transfer_taxes: float = Field(0.0, ge=0)
    attorney: float = Field(0.0, ge=0)
    notary: float = Field(0.0, ge=0)
    courier: float = Field(0.0, ge=0)

    LABELS: ClassVar[Dict[str, str]] = {
        "lenders_title_insurance": "Title Insurance (Lender)",
        "owners_title_insurance": "Title Insurance (Owner)",
        "title_search": "Title Search",
        "settlement": "Settlement Fee",
        "escrow": "Escrow Fees",
        "recording": "Recording Fees",
        "transfer_taxes": "Transfer Taxes",
        "attorney": "Attorney Fees",
        "notary": "Notary Fees",
        "courier": "Courier/Wire Fees",
    }


class OtherFees(_FeeBlock):
    hoa_transfer: float = Field(0.0, ge=0)
    hoa_certification: float = Field(0.0, ge=0)
    other: float = Field(0.0, ge=0)

    LABELS: ClassVar[Dict[str, str]] = {
        "hoa_transfer": "HOA Transfer Fee",
        "hoa_certification": "HOA Certification",
        "other": "Other Fees",
    }


class CustomFee(_Record):
    name: str = ""
    amount: float = Field(0.0, ge=0)


class Credits(_Record):
    lender: float = Field(0.0, ge=0)
    seller: float = Field(0.0, ge=0)
    other: float = Field(0.0, ge=0)

    def total(self) -> float:
        return self.lender + self.seller + self.other


class Prepaids(_Record):
    annual_taxes: float = Field(0.0, ge=0)
    annual_insurance: float = Field(0.0, ge=0)
    monthly_hoa: float = Field(0.0, ge=0)
    tax_months: int = Field(3, ge=0)
    insurance_months: int = Field(14, ge=0)
    prepaid_interest_days: int = Field(15, ge=0)


class ScenarioBase(_Record):
    scenario_name: str = ""
    loan_program: LoanProgram = "standard"
    transaction_type: TransactionType = "purchase"
    home_price: float = 0.0
    loan_amount: float = 0.0
    down_payment: float = 0.0
    down_payment_pct: float = 0.0
    interest_rate: float = 0.0
    term_years: int = 30
    borrower_count: Literal[1, 2] = 1
    credit_score: int = 700
    credit_score2: int = 700
    buying_points: bool = False
    discount_points: float = Field(0.0, ge=0)
    current_balance: float = 0.0
    current_rate: float = 0.0
    cash_out: float = Field(0.0, ge=0)
    lender_fees: LenderFees = Field(default_factory=LenderFees)
    third_party_fees: ThirdPartyFees = Field(default_factory=ThirdPartyFees)
    title_fees: TitleFees = Field(default_factory=TitleFees)
    other_fees: OtherFees = Field(default_factory=OtherFees)
    custom_fees: Tuple[CustomFee, ...] = ()
    credits: Credits = Field(default_factory=Credits)
    prepaids: Prepaids = Field(default_factory=Prepaids)


class ConventionalScenario(ScenarioBase):
    loan_type: Literal["conventional"] = "conventional"
    pmi_rate_override: float = Field(0.0, ge=0)


class FHAScenario(ScenarioBase):
    loan_type: Literal["fha"] = "fha"
    upfront_mip_rate: float = Field(1.75, ge=0)
    annual_mip_rate: float = Field(0.55, ge=0)


class VAScenario(ScenarioBase):
    loan_type: Literal["va"] = "va"
    va_exempt: bool = False
    first_time_va: bool = False
    service_type: Literal["regular", "reserves"] = "regular"
    va_funding_fee_rate: float = Field(0.0, ge=0)


class USDAScenario(ScenarioBase):
    loan_type: Literal["usda"] = "usda"
    usda_upfront_rate: float = Field(1.0, ge=0)
    usda_annual_rate: float = Field(0.35, ge=0)


class ARMScenario(ScenarioBase):
    loan_type: Literal["arm"] = "arm"
    arm_type: str = "5/1"
    arm_initial_rate: float = 5.5
    arm_index: str = "sofr"
    arm_index_rate: float = 5.0
    arm_margin: float = 2.75
    arm_initial_cap: float = 2.0
    arm_periodic_cap: float = 2.0
    arm_lifetime_cap: float = 5.0
    pmi_rate_override: float = Field(0.0, ge=0)


LoanScenario = Annotated[
    Union[ConventionalScenario, FHAScenario, VAScenario, USDAScenario, ARMScenario],
    Field(discriminator="loan_type"),
]


class PMIQuote(_Record):
    required: bool
    ltv: float
    rate_pct: float = 0.0
    monthly: float = 0.0
    annual: float = 0.0


class ProgramFees(_Record):
    """Upfront and monthly program charges for one loan type."""

    upfront_label: str = ""
    upfront: float = 0.0
    monthly_mi: float = 0.0
    pmi: Optional[PMIQuote] = None


class ArmCapStep(_Record):
    year: int
    max_rate: float


class ArmProjection(_Record):
    arm_type: str
    fixed_years: int
    adjustment_years: int
    initial_rate: float
    index: str
    index_rate: float
    margin: float
    fully_indexed_rate: float
    worst_case_rate: float
    caps: Dict[str, float]
    cap_schedule: Tuple[ArmCapStep, ...] = ()


class LoanResult(_Record):
    scenario_name: str = ""
    loan_type: str
    loan_program: str = "standard"
    transaction_type: str = "purchase"
    borrower_count: int = 1
    loan_amount: float = 0.0
    home_price: float = 0.0
    down_payment: float = 0.0
    down_payment_pct: float = 0.0
    interest_rate: float = 0.0
    term_years: int = 30
    monthly_pi: float = 0.0
    monthly_mi: float = 0.0
    monthly_taxes: float = 0.0
    monthly_insurance: float = 0.0
    monthly_hoa: float = 0.0
    total_monthly: float = 0.0
    total_closing_costs: float = 0.0
    custom_fees_total: float = 0.0
    points_cost: float = 0.0
    upfront_program_fee: float = 0.0
    total_prepaids: float = 0.0
    fee_subtotal: float = 0.0
    total_credits: float = 0.0
    total_fees: float = 0.0
    cash_to_close: float = 0.0
    finance_charges: float = 0.0
    apr: float = 0.0
    total_interest: float = 0.0
    total_loan_cost: float = 0.0
    fees: Dict[str, float] = Field(default_factory=dict)
    custom_fees: Tuple[CustomFee, ...] = ()
    pmi: Optional[PMIQuote] = None
    arm: Optional[ArmProjection] = None

    @property
    def display_name(self) -> str:
        return self.scenario_name or self.loan_type.upper()

    @property
    def total_fees_display(self) -> float:
        return max(0.0, self.total_fees)


class HECMScenario(_Record):
    scenario_name: str = ""
    hecm_type: Literal["fixed", "adjustable"] = "fixed"
    loan_program: HECMProgram = "hecm-standard"
    borrower_age: float = 70.0
    spouse_age: float = 0.0
    home_value: float = 0.0
    property_type: str = "single-family"
    existing_mortgage: float = Field(0.0, ge=0)
    interest_rate: float = 6.5
    initial_rate: float = 5.5
    margin: float = 2.0
    lender_credit: float = Field(0.0, ge=0)
    fha_limit: float = 1209750.0
    plf: float = 52.4
    payment_type: HECMPaymentType = "lump-sum"
    term_months: int = 120
    third_party_costs: float = Field(3500.0, ge=0)
    counseling_fee: float = Field(0.0, ge=0)
    lesa_amount: float = Field(0.0, ge=0)
    service_fee_setaside: float = Field(0.0, ge=0)
    repairs_setaside: float = Field(0.0, ge=0)
    annual_taxes: float = Field(0.0, ge=0)
    annual_insurance: float = Field(0.0, ge=0)
    annual_hoa: float = Field(0.0, ge=0)
    annual_flood: float = Field(0.0, ge=0)
    desired_cash_draw: float = Field(0.0, ge=0)
    desired_loc_amount: float = Field(0.0, ge=0)
    use_max_available: bool = True


class HECMProjection(_Record):
    year: int
    loc_balance: float
    loan_balance: float
    home_value: float
    equity: float
    interest_and_mip: float


class HECMResult(_Record):
    scenario_name: str = ""
    loan_program: str = "hecm-standard"
    program_name: str = ""
    payment_type: str = "lump-sum"
    age_eligible: bool = True
    home_value: float = 0.0
    max_claim_amount: float = 0.0
    principal_limit: float = 0.0
    initial_mip: float = 0.0
    origination_fee: float = 0.0
    origination_fee_net: float = 0.0
    third_party_costs: float = 0.0
    counseling_fee: float = 0.0
    total_closing_costs: float = 0.0
    total_set_asides: float = 0.0
    existing_mortgage: float = 0.0
    net_principal_limit_raw: float = 0.0
    net_principal_limit: float = 0.0
    cash_to_borrower: float = 0.0
    loc_amount: float = 0.0
    monthly_payment: float = 0.0
    interest_rate: float = 0.0
    effective_rate: float = 0.0
    annual_mip_rate: float = 0.0
    initial_balance: float = 0.0
    total_annual_charges: float = 0.0
    annual_mip_amount: float = 0.0
    projections: Tuple[HECMProjection, ...] = ()

    @property
    def display_name(self) -> str:
        return self.scenario_name or self.program_name


class MetricComparison(_Record):
    metric: str
    label: str
    lower_is_better: bool
    values: Tuple[float, ...]
    best_index: Optional[int] = None
    best_value: Optional[float] = None
    has_difference: bool = False
    deltas: Tuple[float, ...] = ()


class PairwiseDelta(_Record):
    first: int
    second: int
    deltas: Dict[str, float]


class Comparison(_Record):
    names: Tuple[str, ...] = ()
    metrics: Tuple[MetricComparison, ...] = ()
    pairwise: Tuple[PairwiseDelta, ...] = ()

    def best(self, metric: str) -> Optional[int]:
        for m in self.metrics:
            if m.metric == metric:
                return m.best_index
        raise KeyError(metric)

    def table(self) -> pd.DataFrame:
        rows = {m.label: list(m.values) for m in self.metrics}
        return pd.DataFrame.from_dict(rows, orient="index", columns=list(self.names))


class AdvisorScore(_Record):
    winner: int
    scores: Tuple[int, int]
    reasons: Tuple[List[str], List[str]]
