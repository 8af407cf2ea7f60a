"""
In-memory stand-ins for the outbound sinks.

Nothing here touches the network or the filesystem.
"""

from __future__ import annotations

from courtbook.errors import UpstreamFailure
from courtbook.models import NotificationPayload


class RecordingNotificationSink:
    """Keeps every payload it is asked to send."""

    def __init__(self) -> None:
        self.sent: list[NotificationPayload] = []
        self.closed = False

    async def send(self, payload: NotificationPayload) -> None:
        self.sent.append(payload)

    async def close(self) -> None:
        self.closed = True

    @property
    def recipients(self) -> list[str | None]:
        return [p.email for p in self.sent]


class FailingNotificationSink:
    """Fails every send, like an unreachable mailer."""

    def __init__(self) -> None:
        self.attempts = 0

    async def send(self, payload: NotificationPayload) -> None:
        self.attempts += 1
        raise UpstreamFailure("mailer unreachable")

    async def close(self) -> None:
        pass


class InMemoryDocumentSink:
    """Keeps stored documents in a dict keyed by URL."""

    def __init__(self) -> None:
        self.documents: dict[str, tuple[bytes, str]] = {}
        self.fail_next = False

    async def store(self, name: str, content: bytes, content_type: str) -> str:
        if self.fail_next:
            self.fail_next = False
            raise OSError("disk full")
        url = f"memory://{name}"
        self.documents[url] = (content, content_type)
        return url

    async def remove(self, url: str) -> None:
        self.documents.pop(url, None)
