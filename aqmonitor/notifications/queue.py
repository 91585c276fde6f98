"""Serialized, paced delivery of messages to a transport.

DeliveryQueue accepts MessageRequests from any number of threads and hands
them to the transport one at a time, in submission order, with a fixed pause
between consecutive sends. Each submitter gets a Future that resolves to a
DeliveryOutcome; failures are reported there and never stop the queue.

State machine (guarded by the same lock as the queue contents):

    IDLE --submit--> DRAINING --queue empty--> IDLE

Only a submit that observes IDLE starts a worker thread, so concurrent
submitters can never start two workers. The queue lives in memory: messages
still pending when the process is killed are lost. close() stops intake and
waits for everything already accepted to be attempted.
"""

import itertools
import threading
import time
from collections import deque
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Deque, Dict, Optional

from aqmonitor.domain.models import DeliveryOutcome, MessageRequest
from aqmonitor.logging import get_logger
from aqmonitor.logging.context import get_log_context, log_context

from .models import DeliveryError, QueueClosedError, QueueFullError
from .transport import Transport

logger = get_logger(__name__, component="delivery")

DEFAULT_PACING_INTERVAL = 1.0


class QueueState(str, Enum):
    """Whether a worker is currently draining the queue."""

    IDLE = "idle"
    DRAINING = "draining"


@dataclass
class _QueuedMessage:
    message_id: int
    request: MessageRequest
    handle: "Future[DeliveryOutcome]"
    log_fields: Dict[str, Any] = field(default_factory=dict)


class DeliveryQueue:
    """Single-consumer FIFO queue in front of a transport.

    Guarantees:
    - At most one transport.send() in flight at any time
    - Sends happen in exactly the order submit() accepted them
    - At least ``pacing_interval`` seconds between the end of one attempt and
      the start of the next
    - Every accepted message is attempted exactly once; its Future always
      resolves with a DeliveryOutcome (never an exception)
    - If the worker thread itself dies, messages it had not reached resolve
      as failures and the next submit starts a new worker

    There is no timeout on individual sends: a transport that hangs stalls
    every message behind it.
    """

    def __init__(
        self,
        transport: Transport,
        pacing_interval: float = DEFAULT_PACING_INTERVAL,
        max_pending: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the queue.

        Args:
            transport: Where messages are sent
            pacing_interval: Seconds to wait after each attempt
            max_pending: Reject submissions once this many are waiting
                (None keeps the queue unbounded)
            sleep: Pause function used for pacing (injectable for tests)
        """
        if pacing_interval < 0:
            raise ValueError("pacing_interval cannot be negative")
        if max_pending is not None and max_pending < 1:
            raise ValueError("max_pending must be at least 1")

        self.transport = transport
        self.pacing_interval = pacing_interval
        self.max_pending = max_pending
        self._sleep = sleep

        self._lock = threading.Lock()
        self._pending: Deque[_QueuedMessage] = deque()
        self._state = QueueState.IDLE
        self._closed = False
        self._worker: Optional[threading.Thread] = None
        self._idle = threading.Condition(self._lock)
        self._ids = itertools.count(1)

    @property
    def state(self) -> QueueState:
        with self._lock:
            return self._state

    @property
    def pending_count(self) -> int:
        """Messages accepted but not yet picked up by the worker."""
        with self._lock:
            return len(self._pending)

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def submit(self, request: MessageRequest) -> "Future[DeliveryOutcome]":
        """Append a message to the tail of the queue.

        Returns immediately. The returned Future is already marked running,
        so it cannot be cancelled.

        Args:
            request: Message to deliver

        Returns:
            Future resolving to the DeliveryOutcome

        Raises:
            QueueClosedError: If close() has been called
            QueueFullError: If the queue is bounded and full
        """
        handle: "Future[DeliveryOutcome]" = Future()
        handle.set_running_or_notify_cancel()

        with self._lock:
            if self._closed:
                raise QueueClosedError("Delivery queue is closed")
            if self.max_pending is not None and len(self._pending) >= self.max_pending:
                raise QueueFullError(
                    f"Delivery queue is full ({self.max_pending} messages pending)"
                )

            item = _QueuedMessage(
                message_id=next(self._ids),
                request=request,
                handle=handle,
                log_fields=get_log_context(),
            )
            self._pending.append(item)
            depth = len(self._pending)

            if self._state is QueueState.IDLE:
                self._state = QueueState.DRAINING
                self._worker = threading.Thread(
                    target=self._drain, name="delivery-queue-worker", daemon=True
                )
                self._worker.start()
                started = True
            else:
                started = False

        logger.debug(
            "Message queued",
            extra={
                "event": "delivery.queue.submitted",
                "message_id": item.message_id,
                "queue_depth": depth,
                "worker_started": started,
            },
        )
        return handle

    def close(self, timeout: Optional[float] = None) -> bool:
        """Stop accepting messages and wait for accepted ones to be attempted.

        Idempotent. Messages already accepted are never dropped.

        Args:
            timeout: Maximum seconds to wait (None waits indefinitely)

        Returns:
            True if the queue is drained, False if the timeout expired first
        """
        with self._lock:
            if not self._closed:
                self._closed = True
                logger.info(
                    "Delivery queue closing",
                    extra={"event": "delivery.queue.closing", "queue_depth": len(self._pending)},
                )

        return self.wait_until_idle(timeout)

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until the worker has drained the queue and exited.

        Returns:
            True if idle, False if the timeout expired first
        """
        with self._idle:
            return self._idle.wait_for(
                lambda: self._state is QueueState.IDLE, timeout=timeout
            )

    def _drain(self) -> None:
        """Worker loop: one message at a time until the queue is empty."""
        logger.debug("Delivery worker started", extra={"event": "delivery.queue.draining"})

        item: Optional[_QueuedMessage] = None
        try:
            while True:
                with self._lock:
                    if not self._pending:
                        self._state = QueueState.IDLE
                        self._worker = None
                        self._idle.notify_all()
                        break
                    item = self._pending.popleft()

                with log_context(**{**item.log_fields, "message_id": item.message_id}):
                    item.handle.set_result(self._attempt(item))
                item = None

                if self.pacing_interval > 0:
                    self._sleep(self.pacing_interval)
        except BaseException as e:
            self._abandon(item, e)
            raise

        logger.debug("Delivery queue idle", extra={"event": "delivery.queue.idle"})

    def _abandon(self, current: Optional[_QueuedMessage], cause: BaseException) -> None:
        """Fail everything still waiting and return to IDLE after the worker dies.

        A later submit then starts a fresh worker.
        """
        error = DeliveryError(f"Delivery worker stopped: {type(cause).__name__}")
        error.__cause__ = cause
        logger.critical(
            f"Delivery worker stopped unexpectedly: {type(cause).__name__}",
            extra={"event": "delivery.queue.worker_died", "error_type": type(cause).__name__},
        )

        stranded = [current] if current is not None else []
        while True:
            for item in stranded:
                if not item.handle.done():
                    item.handle.set_result(DeliveryOutcome.failure(item.request, error))
            with self._lock:
                if not self._pending:
                    self._state = QueueState.IDLE
                    self._worker = None
                    self._idle.notify_all()
                    return
                stranded = list(self._pending)
                self._pending.clear()

    def _attempt(self, item: _QueuedMessage) -> DeliveryOutcome:
        request = item.request
        try:
            self.transport.send(request.recipient_address, request.subject, request.body)
        except Exception as e:
            # Transport bugs are reported like delivery failures
            error = e if isinstance(e, DeliveryError) else DeliveryError(
                f"{type(e).__name__}: {e}"
            )
            if error is not e:
                error.__cause__ = e
            logger.error(
                f"Error sending email: {error}",
                extra={
                    "event": "delivery.send.failure",
                    "subject": request.subject,
                    "error_type": type(e).__name__,
                },
            )
            return DeliveryOutcome.failure(request, error)

        logger.info(
            f"Email sent: {request.subject}",
            extra={"event": "delivery.send.success", "subject": request.subject},
        )
        return DeliveryOutcome.success(request)
