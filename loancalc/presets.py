DISCLAIMER = (
    "This tool implements common loan-cost calculations aligned with agency practice "
    "(program-aware MI/MIP/funding fees, Regulation Z style APR, HECM sizing from a supplied PLF). "
    "Results are estimates only; Loan Estimates, lender pricing, and HUD counseling prevail. "
    "Reverse-mortgage tenure payments use a simplified annuity, not actuarial pricing."
)

LOAN_TYPES = ("conventional", "fha", "va", "usda", "arm")
LOAN_PROGRAMS = ("standard", "homeready", "homepossible", "firsttime", "affordable")

# Annual PMI percentage by minimum credit score. Each tuple is ordered by LTV
# band: >95, >90, >85, <=85.
PMI_RATE_TABLE = {
    760: (0.58, 0.41, 0.28, 0.19),
    740: (0.73, 0.53, 0.37, 0.25),
    720: (0.90, 0.65, 0.46, 0.32),
    700: (1.15, 0.83, 0.59, 0.40),
    680: (1.40, 1.05, 0.75, 0.52),
    0: (1.85, 1.40, 1.00, 0.70),
}
PMI_LTV_BANDS = (95.0, 90.0, 85.0)
PMI_LTV_THRESHOLD = 80.0
PMI_PROGRAM_FACTORS = {"homeready": 0.75, "homepossible": 0.75, "affordable": 0.80}

FHA_TABLES = {"ufmip_pct": 1.75, "annual_pct": 0.55}
USDA_TABLE = {"guarantee_pct": 1.0, "annual_pct": 0.35}
VA_TABLE = {
    "first_0_5": 2.15,
    "first_5_10": 1.50,
    "first_10+": 1.25,
    "subseq_0_5": 3.30,
    "subseq_5_10": 1.50,
    "subseq_10+": 1.25,
    "reserves_first_0_5": 2.40,
    "irrrl": 0.50,
}

ARM_DEFAULTS = {
    "arm_type": "5/1",
    "fixed_years": 5,
    "adjustment_years": 1,
    "floor_drop": 2.0,
}
# Yearly rate moves applied after the fixed period; the last value repeats.
ARM_RATE_SCENARIOS = {
    "down": (-0.5, -0.25, 0.0, 0.0, 0.0),
    "stable": (0.25, 0.25, 0.0, 0.0, 0.0),
    "up": (1.0, 1.0, 0.5, 0.5, 0.0),
    "default": (0.5, 0.5, 0.0, 0.0, 0.0),
}

APR_SOLVER = {
    "max_iterations": 100,
    "tolerance": 0.01,
    "min_rate": 0.001,
    "max_rate": 0.5,
}

# Lender fees that Regulation Z treats as prepaid finance charges.
FINANCE_CHARGE_LENDER_FEES = (
    "origination",
    "processing",
    "underwriting",
    "application",
    "commitment",
)

HECM_PROGRAMS = {
    "hecm-standard": {"name": "HECM Standard", "mip_pct": 2.0, "annual_mip_pct": 0.5, "fha_limited": True},
    "hecm-purchase": {"name": "HECM for Purchase", "mip_pct": 2.0, "annual_mip_pct": 0.5, "fha_limited": True},
    "hecm-refi": {"name": "HECM-to-HECM Refinance", "mip_pct": 2.0, "annual_mip_pct": 0.5, "fha_limited": True},
    "proprietary": {"name": "Proprietary/Jumbo Reverse", "mip_pct": 0.0, "annual_mip_pct": 0.0, "fha_limited": False},
}
HECM_ORIGINATION = {
    "tier_break": 200000.0,
    "minimum": 2500.0,
    "first_tier_pct": 2.0,
    "base_above_break": 4000.0,
    "second_tier_pct": 1.0,
    "cap": 6000.0,
}
HECM_TENURE = {"assumed_months": 240, "conservative_factor": 0.5}
HECM_MIN_AGE = 62
HECM_PROJECTION_YEARS = (5, 10, 15, 20)
HECM_APPRECIATION_PCT = 3.0
HECM_FHA_LIMIT = 1209750.0

# Front-end / back-end DTI limits (percent) by program.
DTI_PROGRAM_LIMITS = {
    "Conventional": {"FE": 28.0, "BE": 36.0},
    "FHA": {"FE": 31.0, "BE": 43.0},
    "VA": {"FE": 41.0, "BE": 41.0},
    "USDA": {"FE": 29.0, "BE": 41.0},
}
DTI_MARGINAL_FACTOR = 1.15

RENT_VS_BUY_DEFAULTS = {
    "closing_cost_pct": 3.0,
    "insurance_pct": 0.5,
    "maintenance_pct": 1.0,
}

POINTS_TIMEFRAMES = (3, 5, 7, 10, 15, 30)
BUYDOWN_TYPES = {
    "3-2-1": (3.0, 2.0, 1.0),
    "2-1": (2.0, 1.0),
    "1-1": (1.0, 1.0),
    "1-0": (1.0,),
}

CAPITAL_GAINS_EXCLUSION = {"single": 250000.0, "married": 500000.0}
SELL_VS_RENT_EXPENSE_GROWTH = 0.015

# Metrics compared across forward-loan results: (field, label, lower_is_better)
COMPARISON_METRICS = (
    ("loan_amount", "Loan Amount", True),
    ("interest_rate", "Interest Rate", True),
    ("monthly_pi", "Monthly P&I", True),
    ("monthly_mi", "Monthly MI/PMI", True),
    ("monthly_hoa", "Monthly HOA", True),
    ("total_monthly", "Total Monthly (PITI)", True),
    ("total_fees", "Total Closing Costs", True),
    ("total_credits", "Total Credits", False),
    ("cash_to_close", "Cash to Close", True),
    ("apr", "APR", True),
    ("total_interest", "Total Interest (Life)", True),
    ("total_loan_cost", "Total Cost (Life of Loan)", True),
)

# Program screening thresholds: (min credit, min down %, max DTI) for the
# "eligible" and "marginal" tiers. VA/USDA/HECM gates are applied in code.
PROGRAM_ELIGIBILITY = {
    "Conventional": {"eligible": (620, 3.0, 45.0), "marginal": (580, 5.0, 50.0)},
    "FHA": {"eligible": (580, 3.5, 43.0), "marginal": (500, 10.0, 50.0)},
    "VA": {"eligible": (0, 0.0, 41.0), "marginal": (0, 0.0, 50.0)},
    "USDA": {"eligible": (640, 0.0, 41.0), "marginal": (580, 0.0, 44.0)},
    "Jumbo": {"eligible": (700, 20.0, 43.0), "marginal": (680, 10.0, 45.0)},
}
