"""Content metadata: fake content generation and the materialize service."""

import enum
import random
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator, Iterable, Iterator, List, Optional, Sequence

from .config import AppConfig

PLACEHOLDER_IMAGE = "https://images.example.com/400x320"
PLACEHOLDER_AVATAR = "https://images.example.com/200x200"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_NANOS_PER_SECOND = 1_000_000_000
_SECONDS_PER_DAY = 86_400

_FIRST_NAMES = [
    "Alice", "Bruno", "Chloe", "Daniel", "Elena", "Felix", "Grace", "Hugo",
    "Ines", "Jonas", "Kara", "Liam", "Maya", "Noah", "Olga", "Pablo",
]
_LAST_NAMES = [
    "Anders", "Baker", "Castillo", "Dalton", "Evans", "Fischer", "Garcia",
    "Hansen", "Ito", "Jensen", "Keller", "Lopez", "Moreau", "Novak",
]
_LOREM = (
    "lorem ipsum dolor sit amet consectetur adipiscing elit sed do eiusmod "
    "tempor incididunt ut labore et dolore magna aliqua enim minim veniam quis "
    "nostrud exercitation ullamco laboris nisi aliquip ex ea commodo consequat"
).split()


class ContentType(enum.IntEnum):
    UNSPECIFIED = 0
    SHORT = 1
    MOVIE = 2
    VLOG = 3
    AI_GENERATED = 4


@dataclass(frozen=True, order=True)
class Timestamp:
    """A point in time as seconds and nanoseconds since the Unix epoch."""

    seconds: int
    nanos: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.nanos < _NANOS_PER_SECOND:
            raise ValueError(f"nanos out of range: {self.nanos}")

    @classmethod
    def now(cls) -> "Timestamp":
        return cls.from_datetime(datetime.now(timezone.utc))

    @classmethod
    def from_datetime(cls, value: datetime) -> "Timestamp":
        """Convert a datetime; naive values are taken as UTC."""
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        delta = value - _EPOCH
        return cls(
            seconds=delta.days * _SECONDS_PER_DAY + delta.seconds,
            nanos=delta.microseconds * 1000,
        )

    def to_datetime(self) -> datetime:
        return _EPOCH + timedelta(seconds=self.seconds, microseconds=self.nanos // 1000)


def _fake_name() -> str:
    return f"{random.choice(_FIRST_NAMES)} {random.choice(_LAST_NAMES)}"


def _fake_sentence(low: int, high: int) -> str:
    words = random.choices(_LOREM, k=random.randrange(low, high))
    return " ".join(words).capitalize() + "."


def _created_at() -> Timestamp:
    now = datetime.now(timezone.utc)
    start = now - timedelta(days=365)
    offset = random.uniform(0, (now - start).total_seconds())
    return Timestamp.from_datetime(start + timedelta(seconds=offset))


@dataclass
class Publisher:
    id: int
    name: str
    avatar: str

    @classmethod
    def fake(cls) -> "Publisher":
        return cls(
            id=random.randrange(1000, 200000),
            name=_fake_name(),
            avatar=PLACEHOLDER_AVATAR,
        )


@dataclass
class Content:
    id: int
    name: str
    description: str
    publishers: List[Publisher] = field(default_factory=list)
    url: str = ""
    image: str = ""
    content_type: ContentType = ContentType.UNSPECIFIED
    created_at: Optional[Timestamp] = None
    views: int = 0
    likes: int = 0
    dislikes: int = 0

    @classmethod
    def materialize(cls, content_id: int) -> "Content":
        """Produce plausible random metadata for the given content id."""
        return cls(
            id=content_id,
            name=_fake_name(),
            description=_fake_sentence(3, 7),
            publishers=[Publisher.fake() for _ in range(1, random.randrange(1, 10))],
            url=PLACEHOLDER_IMAGE,
            image=PLACEHOLDER_IMAGE,
            content_type=random.choice(list(ContentType)),
            created_at=_created_at(),
            views=random.randrange(200, 10000),
            likes=random.randrange(100, 5000),
            dislikes=random.randrange(10, 2000),
        )

    def to_body(self) -> str:
        return f"Content: {self!r}"


@dataclass(frozen=True)
class MaterializeRequest:
    id: int

    @classmethod
    def new_with_ids(cls, ids: Iterable[int]) -> Iterator["MaterializeRequest"]:
        """Yield one request per distinct id."""
        return iter(dict.fromkeys(cls(content_id) for content_id in ids))


@dataclass(frozen=True)
class Tpl:
    """Renders a list of contents into a message body."""

    contents: Sequence[Content]

    def to_body(self) -> str:
        return f"Content: {list(self.contents)!r}"


async def _aiterate(items: Any) -> AsyncIterator[Any]:
    if hasattr(items, "__aiter__"):
        async for item in items:
            yield item
    else:
        for item in items:
            yield item


class MetadataService:
    """Turns a stream of content ids into a stream of content metadata."""

    def __init__(self, config: AppConfig) -> None:
        self.config = config

    async def materialize(self, requests: Any) -> AsyncIterator[Content]:
        """Yield content for each request; an exception item ends the stream."""
        async for request in _aiterate(requests):
            if isinstance(request, BaseException):
                return
            yield Content.materialize(request.id)