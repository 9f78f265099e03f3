"""The CRM service: composes user stats, content metadata and notifications."""

import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator, List, Protocol, Sequence

from .config import AppConfig
from .metadata import Content, MaterializeRequest, MetadataService
from .notification import NotificationService, SendError, SendRequest
from .user_stat import QueryRequest

logger = logging.getLogger(__name__)

WELCOME_SUBJECT = "Welcome"


class UserStatsSource(Protocol):
    def query(self, query: QueryRequest) -> Any:
        """Return an (async) iterable of users, or an awaitable of one."""


@dataclass
class WelcomeRequest:
    id: str
    interval: int
    content_ids: List[int] = field(default_factory=list)


@dataclass(frozen=True)
class WelcomeResponse:
    id: str


async def _welcome_requests(
    users: Any, sender: str, contents: Sequence[Content]
) -> AsyncIterator[SendRequest]:
    if hasattr(users, "__aiter__"):
        iterator: Any = users
    else:
        async def _wrap() -> AsyncIterator[Any]:
            for user in users:
                yield user

        iterator = _wrap()
    async for user in iterator:
        if isinstance(user, BaseException):
            return
        yield SendRequest.welcome(WELCOME_SUBJECT, sender, [user.email], contents)


class CrmService:
    """Runs customer engagement campaigns over the backing services."""

    def __init__(
        self,
        config: AppConfig,
        user_stat: UserStatsSource,
        notification: NotificationService,
        metadata: MetadataService,
    ) -> None:
        self.config = config
        self.user_stat = user_stat
        self.notification = notification
        self.metadata = metadata

    async def welcome(self, request: WelcomeRequest) -> WelcomeResponse:
        """E-mail the chosen contents to users who signed up `interval` days ago."""
        lower = datetime.now(timezone.utc) - timedelta(days=request.interval)
        upper = lower + timedelta(days=1)
        query = QueryRequest.new_with_dt("created_at", lower, upper)
        users = self.user_stat.query(query)
        if inspect.isawaitable(users):
            users = await users

        contents = [
            content
            async for content in self.metadata.materialize(
                MaterializeRequest.new_with_ids(request.content_ids)
            )
        ]
        sender = self.config.server.sender_email

        async for result in self.notification.send(
            _welcome_requests(users, sender, contents)
        ):
            if isinstance(result, SendError):
                logger.warning("failed to send message: %s", result)

        return WelcomeResponse(id=request.id)