"""Loan cost engine.

This module also exposes the package version for runtime display."""

from loancalc.compare import compare_results, points_breakeven_months, project_net_cost
from loancalc.engine import compute_loan_result
from loancalc.hecm import compute_hecm_result

__all__ = [
    "__version__",
    "compute_loan_result",
    "compute_hecm_result",
    "compare_results",
    "project_net_cost",
    "points_breakeven_months",
]

# Keep in sync with the version declared in ``pyproject.toml``
__version__ = "0.1.0"
