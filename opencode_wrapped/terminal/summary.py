"""
Terminal summary of the yearly stats.
"""

from typing import List

from rich.console import Console
from rich.panel import Panel

from opencode_wrapped.core.stats import YearlyStats
from .format import format_cost, format_number


def build_summary_lines(stats: YearlyStats) -> List[str]:
    """Plain-text lines shown after the scan completes."""
    lines = [
        f"Sessions:  {format_number(stats.total_sessions)}",
        f"Messages:  {format_number(stats.total_messages)}",
        f"Tokens:    {format_number(stats.total_tokens)}",
        f"Projects:  {format_number(stats.total_projects)}",
        f"Streak:    {stats.max_streak} days",
    ]

    if stats.has_first_party_usage:
        lines.append(f"Zen Cost:  {format_cost(stats.first_party_cost)}")
    if stats.estimated_cost > 0:
        lines.append(f"Est. Cost: {format_cost(stats.estimated_cost)}")

    if stats.most_active_day:
        lines.append(f"Most Active: {stats.most_active_day.formatted_date}")
    if stats.weekday_activity and stats.weekday_activity.max_count > 0:
        lines.append(f"Busiest Weekday: {stats.weekday_activity.most_active_day_name}")

    if stats.top_models:
        lines.append(f"Top Model: {stats.top_models[0].name}")

    return lines


def render_summary(console: Console, stats: YearlyStats) -> None:
    """Print the summary lines in a titled panel."""
    body = "\n".join(build_summary_lines(stats))
    console.print(Panel(body, title=f"Your {stats.year} in Code", expand=False))
