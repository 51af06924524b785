"""
Chart Generator - readiness charts for reports and the API.

All outputs are base64-encoded PNG images suitable for embedding in DOCX
reports and serving via API:
  - Category performance (horizontal bar, coloured by status band)
  - Framework scores (bar)
  - Top gap deficits (horizontal bar)
"""

import base64
import io
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

from backend.readiness.context import ScoreResult  # noqa: E402

logger = logging.getLogger(__name__)

COLORS = {
    "primary": "#4C8EDA",
    "danger": "#F16667",
    "warning": "#FFC454",
    "success": "#8DCC93",
    "bg": "#FFFFFF",
    "text": "#1A1A2E",
    "grid": "#E5E5E5",
}


def _setup_style():
    plt.rcParams.update({
        "figure.facecolor": COLORS["bg"],
        "axes.facecolor": COLORS["bg"],
        "axes.edgecolor": COLORS["grid"],
        "axes.labelcolor": COLORS["text"],
        "xtick.color": COLORS["text"],
        "ytick.color": COLORS["text"],
        "text.color": COLORS["text"],
        "font.family": "sans-serif",
        "font.size": 10,
        "axes.grid": True,
        "grid.alpha": 0.3,
        "grid.color": COLORS["grid"],
    })


def _fig_to_bytes(fig) -> bytes:
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=150, bbox_inches="tight", facecolor=COLORS["bg"])
    plt.close(fig)
    buf.seek(0)
    return buf.read()


def _fig_to_base64(fig) -> str:
    return base64.b64encode(_fig_to_bytes(fig)).decode("utf-8")


def _band_color(value: float) -> str:
    if value < 70:
        return COLORS["danger"]
    if value < 85:
        return COLORS["warning"]
    return COLORS["success"]


# ---------------------------------------------------------------------------
# Charts
# ---------------------------------------------------------------------------

def category_performance(result: ScoreResult) -> Optional[str]:
    """Per-category performance, heaviest category on top."""
    factors = list(result.weighted_breakdown.weighting_factors)
    if not factors:
        return None
    _setup_style()
    names = [f.category for f in reversed(factors)]
    values = [f.performance for f in reversed(factors)]
    fig, ax = plt.subplots(figsize=(8, max(3, len(names) * 0.45)))
    bars = ax.barh(names, values, color=[_band_color(v) for v in values],
                   edgecolor="white", height=0.6)
    for bar, val in zip(bars, values):
        ax.text(bar.get_width() + 1, bar.get_y() + bar.get_height() / 2,
                f"{val:.0f}%", va="center", fontsize=8, fontweight="bold")
    ax.axvline(70, color=COLORS["danger"], linestyle="--", linewidth=1)
    ax.axvline(85, color=COLORS["success"], linestyle="--", linewidth=1)
    ax.set_xlim(0, 110)
    ax.set_xlabel("Performance (%)")
    ax.set_title("Category Performance", fontsize=13, fontweight="bold", pad=12)
    fig.tight_layout()
    return _fig_to_base64(fig)


def framework_scores(result: ScoreResult) -> Optional[str]:
    if not result.framework_scores:
        return None
    _setup_style()
    labels = list(result.framework_scores.keys())
    values = [fs.score for fs in result.framework_scores.values()]
    fig, ax = plt.subplots(figsize=(7, 4))
    bars = ax.bar(labels, values, color=[_band_color(v) for v in values],
                  edgecolor="white", width=0.5)
    for bar, val in zip(bars, values):
        ax.text(bar.get_x() + bar.get_width() / 2, bar.get_height() + 1,
                f"{val}%", ha="center", va="bottom", fontsize=9, fontweight="bold")
    ax.set_ylim(0, 110)
    ax.set_ylabel("Score (%)")
    ax.set_title("Framework Scores", fontsize=13, fontweight="bold", pad=12)
    fig.tight_layout()
    return _fig_to_base64(fig)


def top_gap_deficits(result: ScoreResult) -> Optional[str]:
    gaps = list(result.top_gaps)
    if not gaps:
        return None
    _setup_style()
    labels = [f"{g.question_id} {g.clause_ref}" for g in reversed(gaps)]
    deficits = [g.deficit for g in reversed(gaps)]
    colors = [COLORS["danger"] if g.critical else COLORS["primary"] for g in reversed(gaps)]
    fig, ax = plt.subplots(figsize=(8, max(3, len(gaps) * 0.6)))
    ax.barh(labels, deficits, color=colors, edgecolor="white", height=0.5)
    ax.set_xlabel("Weighted points lost")
    ax.set_title("Top Gaps by Deficit", fontsize=13, fontweight="bold", pad=12)
    fig.tight_layout()
    return _fig_to_base64(fig)


def generate_all_charts(result: ScoreResult) -> List[Dict[str, Any]]:
    """Returns a list of dicts: {chart_id, title, base64_png}. Empty charts are skipped."""
    chart_specs: List[Tuple[str, str, Callable[[ScoreResult], Optional[str]]]] = [
        ("category_performance", "Category Performance", category_performance),
        ("framework_scores", "Framework Scores", framework_scores),
        ("top_gaps", "Top Gaps by Deficit", top_gap_deficits),
    ]
    charts = []
    for chart_id, title, gen_fn in chart_specs:
        b64 = gen_fn(result)
        if b64:
            charts.append({"chart_id": chart_id, "title": title, "base64_png": b64})
    logger.debug("Generated %d chart(s)", len(charts))
    return charts
