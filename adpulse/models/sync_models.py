"""AdPulse — Sync Result Models.

Typed outcomes for each unit of work. Store and account failures are
non-fatal, but they are reported here instead of only being logged.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel


class TokenType(str, Enum):
    """Credential kinds stored in config_tokens."""

    SHORT_LIVED = "short_lived"
    LONG_LIVED = "long_lived"
    API_KEY = "api_key"


class TokenExchangeOutcome(str, Enum):
    SKIPPED = "skipped"  # nothing to exchange
    EXCHANGED = "exchanged"
    FAILED = "failed"


class TimeRange(BaseModel):
    """Inclusive reporting window, dates as YYYY-MM-DD."""

    since: str
    until: str

    @classmethod
    def single_day(cls, day: str) -> "TimeRange":
        return cls(since=day, until=day)

    def to_param(self) -> str:
        """JSON form expected by the Graph API ``time_range`` parameter."""
        return json.dumps({"since": self.since, "until": self.until})

    def __str__(self) -> str:
        if self.since == self.until:
            return self.since
        return f"{self.since}..{self.until}"


# A Graph API date preset ("today", "yesterday", ...) or an explicit range
DateParam = Union[str, TimeRange]


class UpsertResult(BaseModel):
    """Outcome of one bulk upsert call."""

    table: str
    rows: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class FetchResult(BaseModel):
    """Outcome of one fetcher call (one date param, all accounts)."""

    fetcher: str
    date_param: str
    skipped: bool = False  # no token available
    accounts_processed: List[str] = []
    failed_accounts: Dict[str, str] = {}
    upserts: List[UpsertResult] = []

    @property
    def ok(self) -> bool:
        return (
            not self.skipped
            and not self.failed_accounts
            and all(u.ok for u in self.upserts)
        )

    @property
    def row_count(self) -> int:
        return sum(u.rows for u in self.upserts)


class DayResult(BaseModel):
    """Outcome of one day iteration of the sync loop."""

    date: str
    ads: Optional[FetchResult] = None
    audience: Optional[FetchResult] = None
    errors: List[str] = []

    @property
    def ok(self) -> bool:
        if self.errors:
            return False
        return all(r is not None and r.ok for r in (self.ads, self.audience))


class SyncReport(BaseModel):
    """Summary of a full sync run."""

    started_at: datetime
    finished_at: Optional[datetime] = None
    exchange: TokenExchangeOutcome = TokenExchangeOutcome.SKIPPED
    days: List[DayResult] = []

    @property
    def failed_days(self) -> List[str]:
        return [d.date for d in self.days if not d.ok]
