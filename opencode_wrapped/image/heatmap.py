"""
Activity heatmap drawn onto a matplotlib axes.

The axes is expected to use pixel coordinates with y growing downwards
(see generator.py). Days belonging to the longest streak use an accent
palette.
"""

from datetime import date
from typing import AbstractSet, List, Mapping, Optional, Tuple

from matplotlib.axes import Axes
from matplotlib.patches import FancyBboxPatch

from opencode_wrapped.core.dates import MONTH_ABBR, generate_weeks_for_year, get_intensity_level

HEATMAP_COLORS = {
    0: "#1A1A1A",
    1: "#4B4646",
    2: "#656363",
    3: "#B7B1B1",
    4: "#F1ECEC",
}

STREAK_COLORS = {
    0: "#1a1f1a",
    1: "#2d4a2a",
    2: "#3f7a35",
    3: "#56a03d",
    4: "#6cc644",
}

LABEL_COLOR = "#8A8F98"
CELL_SIZE = 17
CELL_GAP = 3
LEGEND_CELL_SIZE = 14
MONTH_LABEL_HEIGHT = 24


def get_month_labels(weeks: List[List[str]], cell_size: int = CELL_SIZE, gap: int = CELL_GAP) -> List[Tuple[int, float]]:
    """x offsets for month labels, placed at the first week containing that month."""
    labels = []
    last_month = -1
    for week_index, week in enumerate(weeks):
        first = next((d for d in week if d), None)
        if not first:
            continue
        month = int(first.split("-")[1]) - 1
        if month != last_month:
            labels.append((month, week_index * (cell_size + gap)))
            last_month = month
    return labels


def _cell(ax: Axes, x: float, y: float, size: float, color: str) -> None:
    ax.add_patch(FancyBboxPatch(
        (x, y), size, size,
        boxstyle="round,pad=0,rounding_size=3",
        linewidth=0,
        facecolor=color,
    ))


def draw_heatmap(
    ax: Axes,
    x: float,
    y: float,
    daily_activity: Mapping[str, int],
    year: int,
    max_streak_days: Optional[AbstractSet[str]] = None,
    today: Optional[date] = None,
    font_scale: float = 1.0,
) -> float:
    """Draw month labels, the week grid and a legend.

    Args:
        ax: Target axes in pixel coordinates
        x: Left edge
        y: Top edge
        daily_activity: Day-key to message count
        year: Year being drawn
        max_streak_days: Day-keys to highlight
        today: Reference date for the current year
        font_scale: Points per pixel for the figure's dpi

    Returns:
        Total height used, in pixels
    """
    weeks = generate_weeks_for_year(year, today)
    max_count = max(daily_activity.values(), default=0)
    streak_days = max_streak_days or frozenset()
    step = CELL_SIZE + CELL_GAP

    for month, offset in get_month_labels(weeks):
        ax.text(x + offset, y, MONTH_ABBR[month], fontsize=14 * font_scale,
                color=LABEL_COLOR, va="top", ha="left", family="monospace")

    grid_top = y + MONTH_LABEL_HEIGHT
    for week_index, week in enumerate(weeks):
        for day_index, day_key in enumerate(week):
            if not day_key:
                continue
            count = daily_activity.get(day_key, 0)
            palette = STREAK_COLORS if day_key in streak_days else HEATMAP_COLORS
            color = palette[get_intensity_level(count, max_count)]
            _cell(ax, x + week_index * step, grid_top + day_index * step, CELL_SIZE, color)

    legend_top = grid_top + 7 * step + 8
    ax.text(x, legend_top + LEGEND_CELL_SIZE / 2, "Less", fontsize=12 * font_scale,
            color=LABEL_COLOR, va="center", ha="left", family="monospace")
    legend_x = x + 44
    for level in range(5):
        _cell(ax, legend_x + level * (LEGEND_CELL_SIZE + 8), legend_top, LEGEND_CELL_SIZE, HEATMAP_COLORS[level])
    ax.text(legend_x + 5 * (LEGEND_CELL_SIZE + 8), legend_top + LEGEND_CELL_SIZE / 2, "More",
            fontsize=12 * font_scale, color=LABEL_COLOR, va="center", ha="left", family="monospace")

    return legend_top + LEGEND_CELL_SIZE - y
