"""
Shared fixtures.
"""

from datetime import datetime

import pytest

from opencode_wrapped.core.stats import (
    ModelUsage,
    MostActiveDay,
    ProviderUsage,
    WeekdayActivity,
    YearlyStats,
)


@pytest.fixture
def sample_stats():
    """A populated YearlyStats for rendering tests."""
    return YearlyStats(
        year=2024,
        first_session_date=datetime(2024, 2, 3, 9, 30),
        days_since_first_session=320,
        total_sessions=142,
        total_messages=3520,
        total_projects=12,
        total_input_tokens=1_200_000,
        total_output_tokens=340_000,
        total_tokens=1_540_000,
        first_party_cost=12.5,
        estimated_cost=1534.2,
        top_models=(
            ModelUsage(id="claude-sonnet-4", name="Claude Sonnet 4", provider_id="anthropic", count=2000, percentage=67),
            ModelUsage(id="gpt-4o", name="GPT-4o", provider_id="openai", count=1000, percentage=33),
        ),
        top_providers=(
            ProviderUsage(id="anthropic", name="Anthropic", count=2000, percentage=67),
            ProviderUsage(id="openai", name="OpenAI", count=1000, percentage=33),
        ),
        max_streak=3,
        current_streak=0,
        max_streak_days=frozenset({"2024-03-04", "2024-03-05", "2024-03-06"}),
        daily_activity={"2024-03-04": 10, "2024-03-05": 40, "2024-03-06": 5, "2024-07-19": 12},
        most_active_day=MostActiveDay(date="2024-03-05", count=40, formatted_date="Mar 5"),
        weekday_activity=WeekdayActivity(
            counts=(0, 10, 40, 5, 0, 12, 0),
            most_active_day=2,
            most_active_day_name="Tuesday",
            max_count=40,
        ),
    )
