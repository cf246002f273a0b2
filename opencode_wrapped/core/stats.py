"""
Yearly statistics aggregation.

Reduces sessions, messages and projects into a single YearlyStats value:
token and cost totals, model/provider rankings, daily and weekday activity,
and activity streaks.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from .dates import (
    WEEKDAY_NAMES,
    day_key_from_millis,
    days_between,
    format_day_key,
    format_short_date,
    local_datetime,
    parse_day_key,
    weekday_index,
)
from .pricing import PricingResolver, calculate_message_cost
from opencode_wrapped.storage.models import MessageRecord, ProjectRecord, SessionRecord

FIRST_PARTY_PROVIDER = "opencode"
TOP_N = 3
MS_PER_DAY = 24 * 60 * 60 * 1000


@dataclass(frozen=True)
class ModelUsage:
    """A ranked model entry."""
    id: str
    name: str
    provider_id: str
    count: int
    percentage: int


@dataclass(frozen=True)
class ProviderUsage:
    """A ranked provider entry."""
    id: str
    name: str
    count: int
    percentage: int


@dataclass(frozen=True)
class MostActiveDay:
    """The busiest day of the year."""
    date: str
    count: int
    formatted_date: str


@dataclass(frozen=True)
class WeekdayActivity:
    """Message counts per weekday, Sunday first."""
    counts: Tuple[int, int, int, int, int, int, int]
    most_active_day: int
    most_active_day_name: str
    max_count: int


@dataclass(frozen=True)
class StreakResult:
    """Longest and current runs of consecutive active days."""
    max_streak: int
    current_streak: int
    max_streak_days: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class YearlyStats:
    """Aggregated usage for one calendar year."""
    year: int
    first_session_date: datetime
    days_since_first_session: int
    total_sessions: int
    total_messages: int
    total_projects: int
    total_input_tokens: int
    total_output_tokens: int
    total_tokens: int
    first_party_cost: float
    estimated_cost: float
    top_models: Tuple[ModelUsage, ...]
    top_providers: Tuple[ProviderUsage, ...]
    max_streak: int
    current_streak: int
    max_streak_days: FrozenSet[str]
    # Read-only view, sorted by day-key; left out of the hash
    daily_activity: Mapping[str, int] = field(default_factory=dict, hash=False)
    most_active_day: Optional[MostActiveDay] = None
    weekday_activity: Optional[WeekdayActivity] = None

    def __post_init__(self):
        if not isinstance(self.daily_activity, MappingProxyType):
            object.__setattr__(self, "daily_activity", MappingProxyType(dict(self.daily_activity)))

    @property
    def has_activity(self) -> bool:
        """False when nothing was recorded during the year."""
        return self.total_sessions > 0 or self.total_messages > 0

    @property
    def has_first_party_usage(self) -> bool:
        return self.first_party_cost > 0

    @property
    def total_cost(self) -> float:
        return self.first_party_cost + self.estimated_cost


def compute_yearly_stats(
    year: int,
    sessions: Sequence[SessionRecord],
    messages: Sequence[MessageRecord],
    projects: Sequence[ProjectRecord],
    pricing: PricingResolver,
    first_party_provider: str = FIRST_PARTY_PROVIDER,
    now: Optional[datetime] = None,
) -> YearlyStats:
    """Compute the yearly statistics.

    ``sessions`` and ``messages`` may cover any number of years; records
    are filtered to ``year`` by local creation date. The full session
    history is used for days-since-first-session and the full message
    history for the current streak, so a streak running across New Year is
    reported even for the previous year.

    Ranking ties keep the order in which ids first appear in ``messages``,
    so callers should pass records in a deterministic order (the repository
    sorts by creation time, then id).

    Args:
        year: Calendar year to summarise
        sessions: Session records
        messages: Message records
        projects: Project records (counted only)
        pricing: Resolver used for estimated cost and display names
        first_party_provider: Provider whose messages carry their own cost
        now: Reference time (defaults to the current local time)

    Returns:
        YearlyStats for ``year``
    """
    now = now or datetime.now()

    year_sessions = [s for s in sessions if local_datetime(s.created_ms).year == year]
    year_messages = [m for m in messages if local_datetime(m.created_ms).year == year]

    if sessions:
        first_ms = min(s.created_ms for s in sessions)
        first_session_date = local_datetime(first_ms)
        now_ms = int(now.timestamp() * 1000)
        days_since_first_session = max(0, (now_ms - first_ms) // MS_PER_DAY)
    else:
        first_session_date = now
        days_since_first_session = 0

    total_input_tokens = 0
    total_output_tokens = 0
    first_party_cost = 0.0
    estimated_cost = 0.0
    model_counts: Dict[str, int] = {}
    provider_counts: Dict[str, int] = {}
    daily_activity: Dict[str, int] = {}
    weekday_counts = [0] * 7

    for message in year_messages:
        if message.tokens is not None:
            total_input_tokens += message.tokens.input
            total_output_tokens += message.tokens.output

        if message.provider_id == first_party_provider:
            if message.cost is not None:
                first_party_cost += message.cost
        elif message.model_id and message.tokens is not None:
            model_pricing = pricing.get_price_entry(message.model_id)
            if model_pricing is not None:
                estimated_cost += calculate_message_cost(message.tokens, model_pricing)

        if message.is_assistant:
            if message.model_id:
                model_counts[message.model_id] = model_counts.get(message.model_id, 0) + 1
            if message.provider_id:
                provider_counts[message.provider_id] = provider_counts.get(message.provider_id, 0) + 1

        created = local_datetime(message.created_ms)
        key = format_day_key(created)
        daily_activity[key] = daily_activity.get(key, 0) + 1
        weekday_counts[weekday_index(created)] += 1

    daily_activity = dict(sorted(daily_activity.items()))

    all_active_days = {day_key_from_millis(m.created_ms) for m in messages}
    streaks = calculate_streaks(daily_activity.keys(), all_active_days, now)

    return YearlyStats(
        year=year,
        first_session_date=first_session_date,
        days_since_first_session=days_since_first_session,
        total_sessions=len(year_sessions),
        total_messages=len(year_messages),
        total_projects=len(projects),
        total_input_tokens=total_input_tokens,
        total_output_tokens=total_output_tokens,
        total_tokens=total_input_tokens + total_output_tokens,
        first_party_cost=first_party_cost,
        estimated_cost=estimated_cost,
        top_models=_rank_models(model_counts, pricing),
        top_providers=_rank_providers(provider_counts, pricing),
        max_streak=streaks.max_streak,
        current_streak=streaks.current_streak,
        max_streak_days=streaks.max_streak_days,
        daily_activity=daily_activity,
        most_active_day=find_most_active_day(daily_activity),
        weekday_activity=build_weekday_activity(weekday_counts),
    )


def rank_counts(counts: Dict[str, int], limit: int = TOP_N) -> List[Tuple[str, int]]:
    """Sort ids by descending count, keeping first-seen order on ties."""
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)[:limit]


def _percentage(count: int, total: int) -> int:
    return round(count / total * 100) if total else 0


def _rank_models(counts: Dict[str, int], pricing: PricingResolver) -> Tuple[ModelUsage, ...]:
    total = sum(counts.values())
    return tuple(
        ModelUsage(
            id=model_id,
            name=pricing.get_display_name(model_id),
            provider_id=pricing.get_model_provider(model_id),
            count=count,
            percentage=_percentage(count, total),
        )
        for model_id, count in rank_counts(counts)
    )


def _rank_providers(counts: Dict[str, int], pricing: PricingResolver) -> Tuple[ProviderUsage, ...]:
    total = sum(counts.values())
    return tuple(
        ProviderUsage(
            id=provider_id,
            name=pricing.get_provider_display_name(provider_id),
            count=count,
            percentage=_percentage(count, total),
        )
        for provider_id, count in rank_counts(counts)
    )


def calculate_streaks(
    year_active_days: Iterable[str],
    all_active_days: Set[str],
    now: Optional[datetime] = None,
) -> StreakResult:
    """Find the longest streak in the year and the streak running now.

    Args:
        year_active_days: Day-keys with activity inside the requested year
        all_active_days: Day-keys with activity in any year
        now: Reference time for the current streak

    Returns:
        StreakResult; the earliest run wins when two runs tie for longest
    """
    active = sorted(set(year_active_days))
    if not active:
        return StreakResult(max_streak=0, current_streak=0, max_streak_days=frozenset())

    max_streak = 1
    max_start = 0
    run_length = 1
    run_start = 0

    for i in range(1, len(active)):
        if days_between(active[i - 1], active[i]) == 1:
            run_length += 1
            if run_length > max_streak:
                max_streak = run_length
                max_start = run_start
        else:
            run_length = 1
            run_start = i

    max_streak_days = frozenset(active[max_start:max_start + max_streak])

    return StreakResult(
        max_streak=max_streak,
        current_streak=current_streak(all_active_days, now),
        max_streak_days=max_streak_days,
    )


def current_streak(active_days: Set[str], now: Optional[datetime] = None) -> int:
    """Length of the run ending today, or yesterday if today is idle."""
    today = (now or datetime.now()).date()
    yesterday = today - timedelta(days=1)

    if format_day_key(today) in active_days:
        anchor = today
    elif format_day_key(yesterday) in active_days:
        anchor = yesterday
    else:
        return 0

    return count_streak_backwards(active_days, anchor)


def count_streak_backwards(active_days: Set[str], start: date) -> int:
    """Count consecutive active days going back from ``start`` (inclusive)."""
    streak = 0
    day = start
    while format_day_key(day) in active_days:
        streak += 1
        day -= timedelta(days=1)
    return streak


def find_most_active_day(daily_activity: Mapping[str, int]) -> Optional[MostActiveDay]:
    """Busiest day; the earliest date wins a tie."""
    best_key = None
    best_count = 0

    for key in sorted(daily_activity):
        count = daily_activity[key]
        if count > best_count:
            best_key = key
            best_count = count

    if best_key is None:
        return None

    return MostActiveDay(
        date=best_key,
        count=best_count,
        formatted_date=format_short_date(parse_day_key(best_key)),
    )


def build_weekday_activity(counts: Sequence[int]) -> WeekdayActivity:
    """Summarise the weekday histogram; the lowest index wins a tie."""
    most_active = 0
    max_count = 0
    for i, count in enumerate(counts):
        if count > max_count:
            max_count = count
            most_active = i

    return WeekdayActivity(
        counts=tuple(counts),
        most_active_day=most_active,
        most_active_day_name=WEEKDAY_NAMES[most_active],
        max_count=max_count,
    )
