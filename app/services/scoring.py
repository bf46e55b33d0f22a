"""
Weekly and monthly scoring for approved participants.
"""
import calendar
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Union

from app.core.config import settings
from app.services.fpl_client import FplClient

logger = logging.getLogger(__name__)


@dataclass
class Participant:
    """Read-only snapshot of an approved user, safe to hand to worker threads."""
    user_id: int
    name: str
    email: str
    company: Optional[str]
    entry_id: int

    @classmethod
    def from_user(cls, user) -> "Participant":
        return cls(
            user_id=user.id,
            name=user.name,
            email=user.email,
            company=user.company,
            entry_id=user.entry_id
        )


@dataclass
class FetchSuccess:
    participant: Participant
    value: Any


@dataclass
class FetchFailure:
    participant: Participant
    reason: str


FetchOutcome = Union[FetchSuccess, FetchFailure]


@dataclass
class WeeklyPoints:
    event_id: int
    points: int


@dataclass
class LeaderboardRow:
    user_id: int
    name: str
    email: str
    company: Optional[str]
    entry_id: int
    event_id: int
    points: int
    rank: int = 0
    error: Optional[str] = None


@dataclass
class GameweekPoints:
    event_id: int
    points: int


@dataclass
class MonthlyRow:
    user_id: int
    name: str
    email: str
    company: Optional[str]
    entry_id: int
    month_points: int
    season_total: int
    per_gw: List[GameweekPoints]
    gw_wins: int = 0
    rank: int = 0
    error: Optional[str] = None

    def points_for(self, event_id: int) -> int:
        for gw in self.per_gw:
            if gw.event_id == event_id:
                return gw.points
        return 0


@dataclass
class MonthlyLeaderboard:
    event_ids: List[int]
    rows: List[MonthlyRow] = field(default_factory=list)
    winner: Optional[MonthlyRow] = None


def month_bounds(year: int, month: int):
    """First and last second of a calendar month in UTC."""
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1, 0, 0, 0, tzinfo=timezone.utc)
    end = datetime(year, month, last_day, 23, 59, 59, tzinfo=timezone.utc)
    return start, end


def count_gameweek_wins(rows: List[MonthlyRow], event_ids: List[int]) -> None:
    """
    Credit a win to every row holding the top score of each gameweek.
    Tied leaders all receive the credit.
    """
    for row in rows:
        row.gw_wins = 0
    if not rows:
        return

    for event_id in event_ids:
        top = max(row.points_for(event_id) for row in rows)
        for row in rows:
            if row.points_for(event_id) == top:
                row.gw_wins += 1


def rank_monthly_rows(rows: List[MonthlyRow]) -> List[MonthlyRow]:
    """Sort by month points, then season total, then gameweek wins. Stable for full ties."""
    ranked = sorted(
        rows,
        key=lambda r: (-r.month_points, -r.season_total, -r.gw_wins)
    )
    for i, row in enumerate(ranked, 1):
        row.rank = i
    return ranked


def rank_weekly_rows(rows: List[LeaderboardRow]) -> List[LeaderboardRow]:
    ranked = sorted(rows, key=lambda r: (-r.points, r.name.casefold(), r.name))
    for i, row in enumerate(ranked, 1):
        row.rank = i
    return ranked


class ScoringService:

    def __init__(self, client: FplClient, max_workers: int = settings.FPL_MAX_WORKERS):
        self.client = client
        self.max_workers = max_workers

    def fan_out(
        self,
        participants: List[Participant],
        fetch: Callable[[Participant], Any]
    ) -> List[FetchOutcome]:
        """
        Run `fetch` for every participant concurrently and wait for all of
        them. A failing call is captured as a FetchFailure and never aborts
        the batch. Outcomes keep the participants' order.
        """
        if not participants:
            return []

        workers = max(1, min(self.max_workers, len(participants)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [(p, executor.submit(fetch, p)) for p in participants]

            outcomes: List[FetchOutcome] = []
            for participant, future in futures:
                try:
                    outcomes.append(FetchSuccess(participant, future.result()))
                except Exception as e:
                    logger.error(
                        f"Failed to get points for user {participant.name} "
                        f"({participant.entry_id}): {e}"
                    )
                    outcomes.append(FetchFailure(participant, str(e) or "Failed to fetch data"))
        return outcomes

    def weekly_points(self, entry_id: int, gameweek: Optional[int] = None) -> WeeklyPoints:
        """Points scored by one entry in `gameweek` (default: the current one)."""
        event_id = gameweek if gameweek else self.client.get_current_event_id()
        history = self.client.get_entry_history(entry_id)

        row = next((r for r in history.get("current", []) if r.get("event") == event_id), None)
        return WeeklyPoints(event_id=event_id, points=row["points"] if row else 0)

    def weekly_leaderboard(
        self,
        participants: List[Participant],
        gameweek: Optional[int] = None
    ) -> List[LeaderboardRow]:
        if not participants:
            return []

        # Resolved once for the whole batch.
        try:
            event_id = gameweek if gameweek else self.client.get_current_event_id()
        except Exception as e:
            logger.error(f"Failed to resolve the current gameweek: {e}")
            reason = str(e) or "Failed to fetch data"
            outcomes: List[FetchOutcome] = [FetchFailure(p, reason) for p in participants]
            event_id = 0
        else:
            outcomes = self.fan_out(participants, lambda p: self.weekly_points(p.entry_id, event_id))

        rows = []
        for outcome in outcomes:
            p = outcome.participant
            if isinstance(outcome, FetchSuccess):
                rows.append(LeaderboardRow(
                    user_id=p.user_id, name=p.name, email=p.email, company=p.company,
                    entry_id=p.entry_id, event_id=outcome.value.event_id,
                    points=outcome.value.points
                ))
            else:
                rows.append(LeaderboardRow(
                    user_id=p.user_id, name=p.name, email=p.email, company=p.company,
                    entry_id=p.entry_id, event_id=event_id, points=0,
                    error=outcome.reason
                ))

        return rank_weekly_rows(rows)

    def monthly_leaderboard(
        self,
        participants: List[Participant],
        year: int,
        month: int
    ) -> MonthlyLeaderboard:
        start, end = month_bounds(year, month)
        event_ids = self.client.get_gameweeks_in_range(start, end)

        # Pre-season or off-season month
        if not event_ids:
            return MonthlyLeaderboard(event_ids=[])

        outcomes = self.fan_out(participants, lambda p: self.client.get_entry_history(p.entry_id))

        rows = [self._monthly_row(outcome, event_ids) for outcome in outcomes]
        count_gameweek_wins(rows, event_ids)
        ranked = rank_monthly_rows(rows)

        return MonthlyLeaderboard(
            event_ids=event_ids,
            rows=ranked,
            winner=ranked[0] if ranked else None
        )

    @staticmethod
    def _monthly_row(outcome: FetchOutcome, event_ids: List[int]) -> MonthlyRow:
        p = outcome.participant

        if isinstance(outcome, FetchFailure):
            return MonthlyRow(
                user_id=p.user_id, name=p.name, email=p.email, company=p.company,
                entry_id=p.entry_id, month_points=0, season_total=0,
                per_gw=[GameweekPoints(event_id, 0) for event_id in event_ids],
                error=outcome.reason
            )

        history: List[Dict[str, Any]] = outcome.value.get("current", [])
        by_event = {r.get("event"): r for r in history}
        per_gw = [
            GameweekPoints(event_id, by_event.get(event_id, {}).get("points", 0))
            for event_id in event_ids
        ]

        return MonthlyRow(
            user_id=p.user_id, name=p.name, email=p.email, company=p.company,
            entry_id=p.entry_id,
            month_points=sum(gw.points for gw in per_gw),
            season_total=history[-1].get("total_points", 0) if history else 0,
            per_gw=per_gw
        )
