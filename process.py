from collections import defaultdict
from datetime import date, datetime, timedelta
import math
import time
from typing import Dict, List, Optional, Set, Tuple, Union
from config import DEFAULT_TIMEZONE
from structs import (
    ActivitySummary,
    Contest,
    HeatmapCell,
    ProblemKey,
    ProblemStats,
    RatingChange,
    StreakInfo,
    Submission,
    TagStats,
    Verdict,
)
from utils import as_date, local_date, today as local_today

# (minimum daily count, level), highest first
ACTIVITY_LEVELS = [(10, 4), (6, 3), (3, 2), (1, 1)]

PREDICTION_MIN_CONTESTS = 3
PREDICTION_WINDOW = 5

def accuracy(solved: int, total: int) -> float:
    if total == 0:
        return 0.0
    return solved / total * 100

def calculate_problem_stats(submissions: List[Submission]) -> ProblemStats:
    solved_keys: Set[ProblemKey] = set()
    seen_keys: Set[ProblemKey] = set()
    by_difficulty: Dict[int, int] = {}
    tag_total: Dict[str, Set[ProblemKey]] = defaultdict(set)
    tag_solved: Dict[str, Set[ProblemKey]] = defaultdict(set)

    for submission in submissions:
        key = submission.problem.key
        is_solved = submission.outcome == Verdict.SOLVED
        seen_keys.add(key)
        if is_solved:
            solved_keys.add(key)

        # solved submissions per rating; unsolved ones still open the bucket
        rating = submission.problem.rating
        if rating:
            by_difficulty[rating] = by_difficulty.get(rating, 0) + (1 if is_solved else 0)

        for tag in submission.problem.tags:
            tag_total[tag].add(key)
            if is_solved:
                tag_solved[tag].add(key)

    by_tag = {}
    for tag, keys in tag_total.items():
        solved = len(tag_solved[tag])
        by_tag[tag] = TagStats(solved=solved, total=len(keys), accuracy=accuracy(solved, len(keys)))

    return ProblemStats(
        total=len(seen_keys),
        solved=len(solved_keys),
        attempted=len(seen_keys),
        byDifficulty=by_difficulty,
        byTag=by_tag,
    )

def success_rate(stats: ProblemStats) -> float:
    return accuracy(stats.solved, stats.total)

def weak_tags(stats: ProblemStats, limit: int = 5, min_total: int = 3) -> List[Tuple[str, TagStats]]:
    """Tags with under 50% accuracy and enough attempts to mean something, weakest first."""
    tags = [(tag, s) for tag, s in stats.byTag.items() if s.accuracy < 50 and s.total >= min_total]
    tags.sort(key=lambda item: item[1].accuracy)
    return tags[:limit]

def strong_tags(stats: ProblemStats, limit: int = 5, min_total: int = 3) -> List[Tuple[str, TagStats]]:
    """Tags above 75% accuracy, strongest first."""
    tags = [(tag, s) for tag, s in stats.byTag.items() if s.accuracy > 75 and s.total >= min_total]
    tags.sort(key=lambda item: item[1].accuracy, reverse=True)
    return tags[:limit]

def activity_level(count: int) -> int:
    for threshold, level in ACTIVITY_LEVELS:
        if count >= threshold:
            return level
    return 0

def daily_counts(submissions: List[Submission], tz=DEFAULT_TIMEZONE) -> Dict[date, int]:
    counts: Dict[date, int] = defaultdict(int)
    for submission in submissions:
        counts[local_date(submission.creationTimeSeconds, tz)] += 1
    return counts

def generate_heatmap_data(
    submissions: List[Submission],
    start_date: Union[date, datetime],
    end_date: Union[date, datetime],
    tz=DEFAULT_TIMEZONE,
) -> List[HeatmapCell]:
    counts = daily_counts(submissions, tz)
    start, end = as_date(start_date), as_date(end_date)

    cells = []
    day = start
    while day <= end:
        count = counts.get(day, 0)
        cells.append(HeatmapCell(date=day, count=count, level=activity_level(count)))
        day += timedelta(days=1)
    return cells

def calculate_streak(
    submissions: List[Submission],
    today: Optional[date] = None,
    tz=DEFAULT_TIMEZONE,
) -> StreakInfo:
    if not submissions:
        return StreakInfo()

    today = today or local_today(tz)
    last_activity = max(s.creationTimeSeconds for s in submissions)
    days = sorted({local_date(s.creationTimeSeconds, tz) for s in submissions}, reverse=True)

    current = 0
    if (today - days[0]).days <= 1:
        current = 1
        for prev_day, day in zip(days, days[1:]):
            if (prev_day - day).days != 1:
                break
            current += 1

    longest = run = 1
    for prev_day, day in zip(days, days[1:]):
        run = run + 1 if (prev_day - day).days == 1 else 1
        longest = max(longest, run)

    return StreakInfo(current=current, longest=longest, lastActivity=last_activity)

def predict_rating(rating_history: List[RatingChange]) -> Optional[int]:
    """Last rating plus the mean change over the recent contests; None below three contests."""
    if len(rating_history) < PREDICTION_MIN_CONTESTS:
        return None

    recent = rating_history[-PREDICTION_WINDOW:]
    avg_change = sum(r.delta for r in recent) / len(recent)
    # half up, not banker's rounding
    return math.floor(rating_history[-1].newRating + avg_change + 0.5)

def activity_summary(submissions: List[Submission], year: int, tz=DEFAULT_TIMEZONE) -> ActivitySummary:
    start, end = date(year, 1, 1), date(year, 12, 31)
    heatmap = generate_heatmap_data(submissions, start, end, tz)
    years = sorted({local_date(s.creationTimeSeconds, tz).year for s in submissions}, reverse=True)
    return ActivitySummary(
        year=year,
        submissions=sum(cell.count for cell in heatmap),
        activeDays=sum(1 for cell in heatmap if cell.count > 0),
        availableYears=years,
        streak=calculate_streak(submissions, tz=tz),
    )

def calendar_contests(
    contests: List[Contest],
    now: Optional[float] = None,
    window_days: int = 7,
) -> List[Contest]:
    """Upcoming contests plus those started in the last `window_days`, newest first."""
    now = time.time() if now is None else now
    cutoff = now - window_days * 24 * 60 * 60
    selected = [
        c for c in contests
        if c.phase == "BEFORE" or (c.startTimeSeconds and c.startTimeSeconds > cutoff)
    ]
    selected.sort(key=lambda c: c.startTimeSeconds or 0, reverse=True)
    return selected
