"""Publishing batch requests to, and pulling them from, a message topic.

A topic is any object with ``send(body)``; a receiver is any object with
``receive()``, returning a message with ``body``, ``ack()`` and ``nack()``,
and ``shutdown()``.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Protocol

from scorecron.messages import MessageParseError, ScorecardBatchRequest

_log = logging.getLogger(__name__)


class PublishError(Exception):
    """One or more messages could not be published."""


class SubscriberError(Exception):
    """The subscription failed."""


class _Topic(Protocol):
    def send(self, body: bytes) -> Any: ...


class _Message(Protocol):
    body: bytes

    def ack(self) -> Any: ...

    def nack(self) -> Any: ...


class _Receiver(Protocol):
    def receive(self) -> _Message: ...

    def shutdown(self) -> Any: ...


def parse_json_to_request(data: bytes | str) -> ScorecardBatchRequest:
    """Decode a batch request; raise MessageParseError on bad input."""
    try:
        return ScorecardBatchRequest.from_json(data)
    except MessageParseError as exc:
        raise MessageParseError(f"error during protojson.Unmarshal: {exc}") from exc


class Publisher:
    """Sends requests to a topic in the background and reports failures on close."""

    def __init__(self, topic: _Topic, max_workers: int | None = None) -> None:
        self._topic = topic
        self._executor = ThreadPoolExecutor(max_workers=max_workers)
        self._futures: list[Future[None]] = []
        self._lock = threading.Lock()
        self.total_errors = 0

    def _send(self, body: bytes) -> None:
        try:
            self._topic.send(body)
        except Exception as exc:  # any send failure is counted, not raised
            _log.error("Error when publishing message %s: %s", body, exc)
            with self._lock:
                self.total_errors += 1
            return
        _log.info("Successfully published message")

    def publish(self, request: ScorecardBatchRequest) -> None:
        """Encode ``request`` and queue it for sending."""
        body = request.to_json()
        try:
            future = self._executor.submit(self._send, body)
        except RuntimeError as exc:
            raise PublishError("publisher is closed") from exc
        self._futures.append(future)

    def close(self) -> None:
        """Wait for all sends; raise PublishError if any failed."""
        wait(self._futures)
        self._futures.clear()
        self._executor.shutdown(wait=True)
        if self.total_errors > 0:
            raise PublishError(f"total errors when publishing: {self.total_errors}")

    def __enter__(self) -> Publisher:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class Subscriber:
    """Pulls batch requests one at a time from a receiver."""

    def __init__(self, receiver: _Receiver) -> None:
        self._receiver = receiver
        self._message: _Message | None = None

    def synchronous_pull(self) -> ScorecardBatchRequest | None:
        """Return the next request, or None when the receiver fails."""
        try:
            message = self._receiver.receive()
        except Exception as exc:  # a failed receive ends the subscription
            _log.error("error during Receive: %s", exc)
            return None
        self._message = message
        return parse_json_to_request(message.body)

    def _current(self) -> _Message:
        if self._message is None:
            raise SubscriberError("no message has been received")
        return self._message

    def ack(self) -> None:
        """Acknowledge the last received message."""
        self._current().ack()

    def nack(self) -> None:
        """Reject the last received message so it is redelivered."""
        self._current().nack()

    def close(self) -> None:
        """Shut the subscription down."""
        try:
            self._receiver.shutdown()
        except Exception as exc:
            raise SubscriberError(f"error during subscription.Shutdown: {exc}") from exc