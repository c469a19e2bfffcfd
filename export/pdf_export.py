"""PDF reports for computed loan and HECM comparisons.

Renderers take already-computed records; no calculation happens here apart
from formatting. If critical warnings are present an ``override_reason`` is
required and printed on the report.
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence

from reportlab.lib.pagesizes import LETTER
from reportlab.lib import colors
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from reportlab.lib.styles import getSampleStyleSheet
from xml.sax.saxutils import escape

from loancalc.compare import compare_results, period_cost_breakdown, recommendations
from loancalc.models import Comparison, HECMResult, LoanResult
from loancalc.presets import DISCLAIMER
from loancalc.utils import time_label

GRID = TableStyle(
    [
        ('BACKGROUND', (0, 0), (-1, 0), colors.lightgrey),
        ('BOX', (0, 0), (-1, -1), 1, colors.black),
        ('INNERGRID', (0, 0), (-1, -1), 0.5, colors.grey),
    ]
)

PERCENT_METRICS = {"interest_rate", "apr"}


def _money(v: float) -> str:
    return f"${v:,.2f}"


def _warning_dicts(warnings) -> List[Dict[str, Any]]:
    out = []
    for w in warnings or []:
        out.append(w.model_dump() if hasattr(w, "model_dump") else dict(w))
    return out


def _check_override(warnings: List[Dict[str, Any]], override_reason: Optional[str]) -> None:
    if any(w.get("severity") == "critical" for w in warnings) and not override_reason:
        raise ValueError("override_reason required when critical warnings exist")


def _header(styles, branding: dict, default_title: str) -> list:
    story = [Paragraph(f"<b>{escape(branding.get('title', default_title))}</b>", styles['Title']), Spacer(1, 6)]
    if branding.get("mlo"):
        mlo = f"MLO: {escape(branding['mlo'])}  |  NMLS: {escape(str(branding.get('nmls', '')))}"
        story.append(Paragraph(mlo, styles['Normal']))
    if branding.get("contact"):
        story.append(Paragraph(f"Contact: {escape(branding['contact'])}", styles['Normal']))
    if branding.get("borrower"):
        story.append(Paragraph(f"Prepared for: {escape(branding['borrower'])}", styles['Normal']))
    story.append(Spacer(1, 12))
    return story


def _section(styles, title: str, rows: list, col_widths=None) -> list:
    t = Table(rows, hAlign='LEFT', colWidths=col_widths)
    t.setStyle(GRID)
    return [Paragraph(f"<b>{escape(title)}</b>", styles['Heading3']), Spacer(1, 6), t, Spacer(1, 12)]


def _footer(styles, warnings: List[Dict[str, Any]], override_reason: Optional[str]) -> list:
    story = []
    if warnings:
        rows = [["Code", "Severity", "Message"]] + [
            [w.get("code", ""), w.get("severity", ""), w.get("message", "")] for w in warnings
        ]
        story += _section(styles, "Warnings", rows)
    if override_reason:
        story.append(Paragraph(f"Override Reason: {escape(override_reason)}", styles['Normal']))
    story += [Spacer(1, 12), Paragraph(f"<font size=8>{DISCLAIMER}</font>", styles['Normal'])]
    return story


def build_comparison_pdf(
    out_path: str,
    branding: dict,
    results: Sequence[LoanResult],
    comparison: Optional[Comparison] = None,
    warnings: Optional[list] = None,
    months: Optional[int] = None,
    override_reason: Optional[str] = None,
) -> None:
    warning_rows = _warning_dicts(warnings)
    _check_override(warning_rows, override_reason)

    results = list(results)
    comparison = comparison or compare_results(results)
    styles = getSampleStyleSheet()
    doc = SimpleDocTemplate(out_path, pagesize=LETTER, leftMargin=36, rightMargin=36, topMargin=36, bottomMargin=36)
    story = _header(styles, branding, "Loan Comparison")

    rows = [["Metric"] + list(comparison.names)]
    for m in comparison.metrics:
        fmt = (lambda v: f"{v:.3f}%") if m.metric in PERCENT_METRICS else _money
        rows.append([m.label] + [fmt(v) + (" *" if i == m.best_index else "") for i, v in enumerate(m.values)])
    story += _section(styles, "Side-by-Side Comparison (* best)", rows)

    for r in results:
        fee_rows = [["Fee", "Amount"]] + [[k, _money(v)] for k, v in r.fees.items() if v]
        fee_rows += [[f.name, _money(f.amount)] for f in r.custom_fees]
        fee_rows.append(["Total Fees", _money(r.total_fees_display)])
        story += _section(styles, f"Fees: {r.display_name}", fee_rows, col_widths=[320, 200])

    if months:
        label = time_label(int(months))
        period = [period_cost_breakdown(r, months) for r in results]
        keys = [
            ("closing_costs", "Closing Costs (Upfront)"),
            ("total_payments", f"Total Payments ({label})"),
            ("interest_paid", f"Interest Paid ({label})"),
            ("principal_paid", f"Principal Paid ({label})"),
            ("net_cost", f"Net Cost ({label})"),
        ]
        rows = [[f"Cost Analysis ({label})"] + list(comparison.names)]
        rows += [[title] + [_money(p[key]) for p in period] for key, title in keys]
        story += _section(styles, f"Cost Comparison Over {label}", rows)

    if len(results) > 1:
        picks = recommendations(results)
        rec_rows = [["Priority", "Scenario"]] + [
            [key.replace("_", " ").capitalize(), comparison.names[idx]]
            for key, idx in picks.items()
            if idx is not None
        ]
        story += _section(styles, "Summary & Recommendations", rec_rows, col_widths=[240, 280])

    story += _footer(styles, warning_rows, override_reason)
    doc.build(story)


def build_hecm_pdf(
    out_path: str,
    branding: dict,
    results: Sequence[HECMResult],
    warnings: Optional[list] = None,
    override_reason: Optional[str] = None,
) -> None:
    warning_rows = _warning_dicts(warnings)
    _check_override(warning_rows, override_reason)

    results = list(results)
    styles = getSampleStyleSheet()
    doc = SimpleDocTemplate(out_path, pagesize=LETTER, leftMargin=36, rightMargin=36, topMargin=36, bottomMargin=36)
    story = _header(styles, branding, "Reverse Mortgage Analysis")

    fields = [
        ("program_name", "Program"),
        ("max_claim_amount", "Max Claim Amount"),
        ("principal_limit", "Principal Limit"),
        ("initial_mip", "Initial MIP"),
        ("origination_fee", "Origination Fee"),
        ("third_party_costs", "Third-Party Costs"),
        ("total_closing_costs", "Total Closing Costs"),
        ("net_principal_limit", "Net Principal Limit"),
        ("cash_to_borrower", "Cash at Closing"),
        ("loc_amount", "Line of Credit"),
        ("monthly_payment", "Monthly Payment"),
    ]
    rows = [["Item"] + [r.display_name for r in results]]
    for field, label in fields:
        rows.append(
            [label] + [str(getattr(r, field)) if field == "program_name" else _money(getattr(r, field)) for r in results]
        )
    story += _section(styles, "Scenario Summary", rows)

    for r in results:
        proj = [["Year", "Loan Balance", "Line of Credit", "Home Value", "Equity"]] + [
            [str(p.year), _money(p.loan_balance), _money(p.loc_balance), _money(p.home_value), _money(p.equity)]
            for p in r.projections
        ]
        story += _section(styles, f"Projections: {r.display_name}", proj)

    story += _footer(styles, warning_rows, override_reason)
    doc.build(story)
