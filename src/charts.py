"""
Chart and table transforms for the financial report dashboard.

All functions are pure: they derive frames and plotly figures from a
Report or the static expense history and keep no state of their own.

Percentages are amount / total * 100 with one decimal place. A zero (or
non-finite) total yields no percentage, displayed as an em dash, rather
than NaN or infinity.
"""

import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

import config
from expense_data import EXPENSE_CATEGORIES, EXPENSE_HISTORY
from report_client import Report

NO_PERCENTAGE = "—"

BREAKDOWN_COLUMNS = ["id", "label", "amount", "percentage", "percentage_label"]


# ============================================================================
# Formatting
# ============================================================================

def _group_indian(digits: str) -> str:
    # 12345678 -> 1,23,45,678
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_inr(amount: float) -> str:
    """
    Format an amount in rupees with Indian digit grouping.

    Examples:
        >>> format_inr(1000)
        '₹1,000'
        >>> format_inr(150000.5)
        '₹1,50,000.5'
    """
    value = float(amount)
    sign = "-" if value < 0 else ""
    whole, frac = f"{abs(value):.2f}".split(".")
    frac = frac.rstrip("0")
    text = f"{sign}₹{_group_indian(whole)}"
    return f"{text}.{frac}" if frac else text


def percentage(amount: float, total: float) -> Optional[float]:
    """Share of total in percent, or None when total is zero or not finite."""
    if total == 0 or not math.isfinite(total):
        return None
    return amount / total * 100


def format_percentage(value: Optional[float]) -> str:
    if value is None:
        return NO_PERCENTAGE
    return f"{value:.1f}%"


def summary_cards(report: Report) -> List[Tuple[str, str]]:
    """Label/value pairs for the three summary cards."""
    return [
        ("Total Earnings", format_inr(report.total_earnings)),
        ("Total Expenses", format_inr(report.total_expenses)),
        ("Balance", format_inr(report.balance)),
    ]


# ============================================================================
# Report Breakdowns
# ============================================================================

def breakdown_frame(items: Sequence[Any], total: float, label_attr: str) -> pd.DataFrame:
    """
    Build the breakdown table for earnings or expenses.

    Args:
        items: EarningItem or ExpenseItem sequence
        total: Report total the percentages are computed against
        label_attr: Item attribute used as the row label ('platform' or 'type')

    Returns:
        DataFrame with id, label, amount, percentage, percentage_label
    """
    rows = []
    for item in items:
        share = percentage(item.amount, total)
        rows.append({
            "id": item.id,
            "label": getattr(item, label_attr),
            "amount": item.amount,
            "percentage": share,
            "percentage_label": format_percentage(share),
        })
    return pd.DataFrame(rows, columns=BREAKDOWN_COLUMNS)


def earnings_frame(report: Report) -> pd.DataFrame:
    return breakdown_frame(report.earnings, report.total_earnings, "platform")


def expenses_frame(report: Report) -> pd.DataFrame:
    return breakdown_frame(report.expenses, report.total_expenses, "type")


def slice_colors(count: int, color_offset: int = 0) -> List[str]:
    palette = config.CHART_COLORS
    return [palette[(i + color_offset) % len(palette)] for i in range(count)]


def build_distribution_pie(frame: pd.DataFrame, title: str, color_offset: int = 0) -> go.Figure:
    """
    Pie chart of a breakdown frame, one slice per row labelled with its name.

    Args:
        frame: Output of breakdown_frame
        title: Chart title
        color_offset: Starting index into the chart palette

    Returns:
        plotly Figure
    """
    fig = go.Figure(
        go.Pie(
            labels=frame["label"].tolist(),
            values=frame["amount"].tolist(),
            customdata=frame["percentage_label"].tolist(),
            marker=dict(colors=slice_colors(len(frame), color_offset)),
            textinfo="label",
            textposition="inside",
            insidetextfont=dict(color="white"),
            hovertemplate="%{label}: ₹%{value:,}<br>%{customdata}<extra></extra>",
            sort=False,
        )
    )
    fig.update_layout(
        title=title,
        height=320,
        margin=dict(l=10, r=10, t=40, b=10),
        legend=dict(orientation="v", x=1.0, y=0.5, yanchor="middle"),
    )

    if frame.empty:
        fig.add_annotation(text="No data", showarrow=False, x=0.5, y=0.5, xref="paper", yref="paper")

    return fig


# ============================================================================
# Category-wise Expenses
# ============================================================================

def expense_category_frame(records: Sequence[Dict[str, Any]] = EXPENSE_HISTORY) -> pd.DataFrame:
    """Flatten expense history into one row per date and one column per category."""
    rows = []
    for record in records:
        categories = record.get("expenseCategory", {})
        row = {"date": record["date"]}
        for category in EXPENSE_CATEGORIES:
            row[category] = categories.get(category, 0)
        rows.append(row)
    return pd.DataFrame(rows, columns=["date", *EXPENSE_CATEGORIES])


def build_expense_category_chart(frame: pd.DataFrame) -> go.Figure:
    """Line chart with one series per expense category."""
    fig = px.line(
        frame,
        x="date",
        y=list(EXPENSE_CATEGORIES),
        color_discrete_map=config.EXPENSE_CATEGORY_COLORS,
        markers=True,
        labels={"value": "Amount (₹)", "date": "Date", "variable": "Category"},
    )
    fig.for_each_trace(lambda trace: trace.update(name=config.EXPENSE_CATEGORY_LABELS[trace.name]))
    fig.update_layout(
        title="Category-wise Expenses",
        height=320,
        margin=dict(l=10, r=10, t=40, b=10),
        hovermode="x unified",
    )
    return fig
