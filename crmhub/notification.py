"""Notification delivery for e-mail, SMS and in-app messages."""

import asyncio
import contextlib
import inspect
import logging
import random
import string
import uuid
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Iterable, List, Optional, Sequence, Union

from .config import AppConfig
from .metadata import Content, Timestamp, Tpl

logger = logging.getLogger(__name__)

CHANNEL_SIZE = 1024
QUEUE_SIZE = CHANNEL_SIZE * 100
DEFAULT_DELIVERY_DELAY = 0.2

_WORDS = (
    "lorem ipsum dolor sit amet consectetur adipiscing elit sed do eiusmod "
    "tempor incididunt ut labore et dolore magna aliqua"
).split()


class SendError(Exception):
    """A message could not be accepted or delivered."""

    def __init__(self, message: str, code: str = "internal") -> None:
        super().__init__(message)
        self.code = code


def _sentence(low: int, high: int) -> str:
    words = random.choices(_WORDS, k=random.randrange(low, high))
    return " ".join(words).capitalize() + "."


def _email_address() -> str:
    local = "".join(random.choices(string.ascii_lowercase, k=8))
    return f"{local}@example.com"


def _phone_number() -> str:
    return "+1" + "".join(random.choices(string.digits, k=10))


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class EmailMessage:
    message_id: str
    sender: str
    recipients: List[str]
    subject: str
    body: str

    @classmethod
    def fake(cls) -> "EmailMessage":
        return cls(
            message_id=_new_id(),
            sender=_email_address(),
            recipients=[_email_address()],
            subject="Hello",
            body=_sentence(5, 10),
        )


@dataclass
class SmsMessage:
    message_id: str
    sender: str
    recipients: List[str]
    body: str

    @classmethod
    def fake(cls) -> "SmsMessage":
        return cls(
            message_id=_new_id(),
            sender=_phone_number(),
            recipients=[_phone_number()],
            body=_sentence(5, 10),
        )


@dataclass
class InAppMessage:
    message_id: str
    device_id: str
    title: str
    body: str

    @classmethod
    def fake(cls) -> "InAppMessage":
        return cls(
            message_id=_new_id(),
            device_id=_new_id(),
            title=_sentence(3, 7),
            body=_sentence(5, 10),
        )


Message = Union[EmailMessage, SmsMessage, InAppMessage]


@dataclass
class SendRequest:
    msg: Optional[Message] = None

    @classmethod
    def welcome(
        cls,
        subject: str,
        sender: str,
        recipients: Iterable[str],
        contents: Sequence[Content],
    ) -> "SendRequest":
        """Build an e-mail request whose body lists the given contents."""
        return cls(
            msg=EmailMessage(
                message_id=_new_id(),
                subject=subject,
                sender=sender,
                recipients=list(recipients),
                body=Tpl(contents).to_body(),
            )
        )


@dataclass(frozen=True)
class SendResponse:
    message_id: str
    sent_at: Timestamp = field(default_factory=Timestamp.now)


async def _aiterate(items: Any) -> AsyncIterator[Any]:
    if hasattr(items, "__aiter__"):
        async for item in items:
            yield item
    else:
        for item in items:
            yield item


class NotificationService:
    """Queues messages and hands them to a transport in the background."""

    def __init__(
        self,
        config: AppConfig,
        transport: Optional[Callable[[Message], Any]] = None,
        delivery_delay: float = DEFAULT_DELIVERY_DELAY,
    ) -> None:
        self.config = config
        self._transport = transport
        self._delay = delivery_delay
        self._queue: "asyncio.Queue[Message]" = asyncio.Queue(QUEUE_SIZE)
        self._worker: Optional["asyncio.Task[None]"] = None
        self._closed = False

    async def __aenter__(self) -> "NotificationService":
        self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def start(self) -> None:
        """Start the background delivery worker; needs a running event loop."""
        if self._closed:
            raise SendError("service is closed")
        if self._worker is None:
            self._worker = asyncio.get_running_loop().create_task(self._run())

    async def close(self) -> None:
        """Deliver what is queued, then stop the worker."""
        self._closed = True
        if self._worker is None:
            return
        await self._queue.join()
        self._worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._worker
        self._worker = None

    async def _run(self) -> None:
        while True:
            message = await self._queue.get()
            try:
                logger.info("Sending message: %r", message)
                if self._transport is not None:
                    result = self._transport(message)
                    if inspect.isawaitable(result):
                        await result
                await asyncio.sleep(self._delay)
            except Exception:
                logger.warning("Failed to deliver message %s", message.message_id, exc_info=True)
            finally:
                self._queue.task_done()

    async def deliver(self, message: Message) -> SendResponse:
        """Queue one message for delivery."""
        if self._closed:
            logger.warning("Failed to send message: service is closed")
            raise SendError("Failed to send message")
        self.start()
        await self._queue.put(message)
        return SendResponse(message_id=message.message_id, sent_at=Timestamp.now())

    async def send(self, requests: Any) -> AsyncIterator[Union[SendResponse, SendError]]:
        """Yield a response or a SendError per request; an exception item ends the stream."""
        async for request in _aiterate(requests):
            if isinstance(request, BaseException):
                return
            if request.msg is None:
                result: Union[SendResponse, SendError] = SendError(
                    "msg is required", code="invalid_argument"
                )
            else:
                try:
                    result = await self.deliver(request.msg)
                except SendError as exc:
                    result = exc
            yield result