"""
Render the wrapped card to PNG.

Drawing happens on a single full-figure axes in pixel coordinates (origin
top-left) using matplotlib's Agg backend, without pyplot global state.
"""

import io
from datetime import date
from typing import List, Optional, Tuple

from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from matplotlib.patches import FancyBboxPatch

from opencode_wrapped.core.stats import YearlyStats
from opencode_wrapped.terminal.format import format_cost, format_number
from .heatmap import draw_heatmap

WIDTH = 1200
HEIGHT = 1500
DPI = 100
PADDING = 60

# Points per pixel at DPI
FONT_SCALE = 72 / DPI

COLORS = {
    "background": "#0D0D0D",
    "surface": "#222222",
    "text": "#F1ECEC",
    "text_secondary": "#EEEEEE",
    "text_muted": "#9A9494",
}


def _text(ax, x, y, s, size, color=COLORS["text"], weight="normal", ha="left", va="top"):
    ax.text(x, y, s, fontsize=size * FONT_SCALE, color=color, fontweight=weight,
            ha=ha, va=va, family="monospace")


def _label(ax, x, y, s):
    _text(ax, x, y, s.upper(), 24, color=COLORS["text_secondary"])


def _stat_box(ax, x, y, width, height, label, value):
    ax.add_patch(FancyBboxPatch(
        (x, y), width, height,
        boxstyle="round,pad=0,rounding_size=12",
        linewidth=0,
        facecolor=COLORS["surface"],
    ))
    center = x + width / 2
    _text(ax, center, y + 28, label.upper(), 22, color=COLORS["text_secondary"], ha="center")
    _text(ax, center, y + height - 24, value, 40, weight="bold", ha="center", va="bottom")


def _ranked_list(ax, x, y, title, names):
    _label(ax, x, y, title)
    for i, name in enumerate(names):
        row_y = y + 50 + i * 48
        _text(ax, x, row_y, str(i + 1), 32, color=COLORS["text_secondary"], weight="bold")
        _text(ax, x + 48, row_y + 4, name, 28, weight="medium")


def stat_rows(stats: YearlyStats) -> List[List[Tuple[str, str]]]:
    """Stat boxes laid out as two rows; the Zen cost box only appears with first-party usage."""
    second_row = [
        ("Projects", format_number(stats.total_projects)),
        ("Streak", f"{stats.max_streak}d"),
    ]
    if stats.has_first_party_usage:
        second_row.append(("OpenCode Zen Cost", format_cost(stats.first_party_cost)))

    return [
        [
            ("Sessions", format_number(stats.total_sessions)),
            ("Messages", format_number(stats.total_messages)),
            ("Tokens", format_number(stats.total_tokens)),
        ],
        second_row,
    ]


def generate_image(stats: YearlyStats, today: Optional[date] = None) -> bytes:
    """Render ``stats`` as a PNG.

    Args:
        stats: Stats to render
        today: Reference date for the heatmap's end (defaults to today)

    Returns:
        PNG bytes of a WIDTH x HEIGHT image
    """
    fig = Figure(figsize=(WIDTH / DPI, HEIGHT / DPI), dpi=DPI, facecolor=COLORS["background"])
    FigureCanvasAgg(fig)
    ax = fig.add_axes((0, 0, 1, 1))
    ax.set_xlim(0, WIDTH)
    ax.set_ylim(HEIGHT, 0)
    ax.set_facecolor(COLORS["background"])
    ax.axis("off")

    left = PADDING
    content_width = WIDTH - 2 * PADDING

    # Header
    _text(ax, left, 80, "opencode", 64, weight="bold")
    _text(ax, left, 160, f"wrapped {stats.year}", 48, color=COLORS["text_secondary"])

    # Started / most active day
    top = 290
    _label(ax, left, top, "Started")
    _text(ax, left, top + 40, f"{stats.days_since_first_session} Days Ago", 56, weight="bold")
    if stats.most_active_day:
        column_x = left + content_width / 2
        _label(ax, column_x, top, "Most Active Day")
        _text(ax, column_x, top + 40, stats.most_active_day.formatted_date, 56, weight="bold")

    # Activity
    top = 470
    _label(ax, left, top, "Activity")
    heatmap_height = draw_heatmap(
        ax, left, top + 44, stats.daily_activity, stats.year,
        max_streak_days=stats.max_streak_days, today=today, font_scale=FONT_SCALE,
    )

    # Top models and providers
    top = top + 44 + heatmap_height + 60
    _ranked_list(ax, left, top, "Top Models", [m.name for m in stats.top_models])
    _ranked_list(ax, left + content_width / 2, top, "Providers", [p.name for p in stats.top_providers])

    # Stats grid
    box_height = 130
    box_gap = 20
    rows = stat_rows(stats)
    grid_top = HEIGHT - 110 - len(rows) * box_height - (len(rows) - 1) * box_gap
    for row_index, row in enumerate(rows):
        box_width = (content_width - (len(row) - 1) * box_gap) / len(row)
        row_y = grid_top + row_index * (box_height + box_gap)
        for col_index, (label, value) in enumerate(row):
            _stat_box(ax, left + col_index * (box_width + box_gap), row_y, box_width, box_height, label, value)

    # Footer
    _text(ax, WIDTH - PADDING, HEIGHT - 40, "opencode.ai", 24, color=COLORS["text_muted"], ha="right", va="bottom")

    buffer = io.BytesIO()
    fig.savefig(buffer, format="png", dpi=DPI, facecolor=COLORS["background"])
    return buffer.getvalue()
