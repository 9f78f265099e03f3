"""User statistics queries and their SQL rendering."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from .metadata import Timestamp

logger = logging.getLogger(__name__)

_SQL_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
_SELECT = "SELECT email, name FROM user_stats WHERE "


@dataclass
class User:
    email: str
    name: str


@dataclass(frozen=True)
class TimeQuery:
    lower: Optional[Timestamp] = None
    upper: Optional[Timestamp] = None


@dataclass
class IdQuery:
    ids: List[int] = field(default_factory=list)


@dataclass
class QueryRequest:
    """A structured query over user statistics, rendered to SQL."""

    timestamps: Dict[str, TimeQuery] = field(default_factory=dict)
    ids: Dict[str, IdQuery] = field(default_factory=dict)

    @classmethod
    def new_with_dt(cls, name: str, lower: datetime, upper: datetime) -> "QueryRequest":
        """Query for `name` between two datetimes, truncated to whole seconds."""
        query = TimeQuery(
            lower=Timestamp(Timestamp.from_datetime(lower).seconds),
            upper=Timestamp(Timestamp.from_datetime(upper).seconds),
        )
        return cls(timestamps={name: query})

    def to_sql(self) -> str:
        sql = _SELECT + " AND ".join(
            time_query(name, tq.lower, tq.upper) for name, tq in self.timestamps.items()
        )
        id_str = " AND ".join(ids_query(name, iq.ids) for name, iq in self.ids.items())
        if id_str:
            sql += " AND " + id_str
        logger.info("Generated sql: %s", sql)
        return sql

    def __str__(self) -> str:
        return self.to_sql()


@dataclass
class RawQueryRequest:
    query: str


def _fmt(ts: Timestamp) -> str:
    return ts.to_datetime().strftime(_SQL_TIME_FORMAT)


def time_query(name: str, lower: Optional[Timestamp], upper: Optional[Timestamp]) -> str:
    if lower is None and upper is None:
        return "TRUE"
    if lower is None:
        return f"{name} <= '{_fmt(upper)}'"
    if upper is None:
        return f"{name} >= '{_fmt(lower)}'"
    return f"{name} BETWEEN '{_fmt(lower)}' AND '{_fmt(upper)}'"


def ids_query(name: str, ids: Sequence[int]) -> str:
    if not ids:
        return "TRUE"
    return f"array{list(ids)!r} && {name}"