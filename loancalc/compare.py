"""Comparison and projection reducers over computed loan results.

Ties are broken by first occurrence: when several results share the best
value, the earliest one in the input wins. NaN values never win.
"""

from __future__ import annotations

import logging
import math
from itertools import combinations
from typing import Dict, Optional, Sequence

import pandas as pd

from loancalc.calculators import interest_for_period, nz
from loancalc.config import get_settings
from loancalc.models import Comparison, LoanResult, MetricComparison, PairwiseDelta
from loancalc.presets import COMPARISON_METRICS
from loancalc.utils import time_label

logger = logging.getLogger("loancalc.compare")


def _name(result: LoanResult, index: int) -> str:
    return result.scenario_name or f"Scenario {index + 1}"


def best_index(values: Sequence[float], lower_is_better: bool = True) -> Optional[int]:
    """Index of the best value, first occurrence on ties; ``None`` when nothing qualifies."""

    best = None
    for i, v in enumerate(values):
        if v is None or (isinstance(v, float) and math.isnan(v)):
            continue
        if best is None or (v < values[best] if lower_is_better else v > values[best]):
            best = i
    return best


def compare_results(results: Sequence[LoanResult], metrics=COMPARISON_METRICS) -> Comparison:
    """Best-by-metric table plus deltas between every pair of results.

    Per-metric ``deltas`` are each value minus the best value; pairwise
    deltas are ``second - first``.
    """

    results = list(results)
    rows = []
    for field, label, lower in metrics:
        values = tuple(float(getattr(r, field)) for r in results)
        idx = best_index(values, lower)
        best = values[idx] if idx is not None else None
        rows.append(
            MetricComparison(
                metric=field,
                label=label,
                lower_is_better=lower,
                values=values,
                best_index=idx,
                best_value=best,
                has_difference=len(set(values)) > 1,
                deltas=tuple(v - best for v in values) if best is not None else (),
            )
        )

    pairwise = tuple(
        PairwiseDelta(
            first=i,
            second=j,
            deltas={
                field: float(getattr(results[j], field)) - float(getattr(results[i], field))
                for field, _, _ in metrics
            },
        )
        for i, j in combinations(range(len(results)), 2)
    )
    logger.debug("Compared %d results over %d metrics", len(results), len(rows))
    return Comparison(
        names=tuple(_name(r, i) for i, r in enumerate(results)),
        metrics=tuple(rows),
        pairwise=pairwise,
    )


def project_net_cost(result: LoanResult, months) -> float:
    """Cash to close plus ``months`` of full monthly payments."""
    return result.cash_to_close + result.total_monthly * max(0, int(nz(months)))


def net_cost_comparison(results: Sequence[LoanResult], months=None) -> pd.DataFrame:
    """Cash to close, monthly payment and net cost over ``months`` per scenario.

    ``months`` defaults to the configured comparison horizon.
    """

    if months is None:
        months = get_settings().comparison_months

    cols = ["scenario", "cash_to_close", "monthly_payment", "total_monthly_payments", "total_cost"]
    rows = [
        {
            "scenario": _name(r, i),
            "cash_to_close": r.cash_to_close,
            "monthly_payment": r.total_monthly,
            "total_monthly_payments": r.total_monthly * int(months),
            "total_cost": project_net_cost(r, months),
        }
        for i, r in enumerate(results)
    ]
    frame = pd.DataFrame(rows, columns=cols)
    for col in ("cash_to_close", "monthly_payment", "total_cost"):
        idx = best_index(list(frame[col]))
        frame[f"best_{col}"] = [i == idx for i in range(len(frame))]
    frame.attrs["label"] = time_label(int(months))
    return frame


def period_cost_breakdown(result: LoanResult, months) -> Dict[str, float]:
    """Upfront fees, payments, interest and principal over the first ``months``.

    Net cost here is closing costs plus interest paid, the money that does not
    build equity.
    """

    months = max(0, int(nz(months)))
    payment = result.monthly_pi + result.monthly_mi
    interest = interest_for_period(result.loan_amount, result.interest_rate, result.monthly_pi, months)
    return {
        "months": months,
        "closing_costs": result.total_fees,
        "total_payments": payment * months,
        "interest_paid": interest,
        "principal_paid": payment * months - interest,
        "net_cost": result.total_fees + interest,
    }


def cost_over_time(results: Sequence[LoanResult], years: int = 30) -> pd.DataFrame:
    """Cumulative cost by year: cash to close plus twelve monthly payments a year."""

    data = {
        _name(r, i): [project_net_cost(r, y * 12) for y in range(1, int(years) + 1)]
        for i, r in enumerate(results)
    }
    frame = pd.DataFrame(data, index=pd.RangeIndex(1, int(years) + 1, name="year"))
    return frame


def points_breakeven_months(points_cost, monthly_savings):
    """Months to recover points; ``math.inf`` when the points never pay back."""

    savings = nz(monthly_savings)
    if savings <= 0:
        return math.inf
    cost = nz(points_cost)
    if cost <= 0:
        return 0
    return math.ceil(cost / savings)


def refinance_breakeven_months(closing_costs, monthly_savings):
    """Months to recover refinance costs; ``math.inf`` when savings are not positive."""
    return points_breakeven_months(closing_costs, monthly_savings)


def recommendations(results: Sequence[LoanResult]) -> Dict[str, Optional[int]]:
    """Index of the lowest monthly payment, cash to close, interest, APR and total cost."""

    fields = {
        "lowest_monthly": "total_monthly",
        "lowest_cash_to_close": "cash_to_close",
        "lowest_total_interest": "total_interest",
        "lowest_apr": "apr",
        "lowest_total_cost": "total_loan_cost",
    }
    return {key: best_index([getattr(r, field) for r in results]) for key, field in fields.items()}
