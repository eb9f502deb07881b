"""
Outbound event delivery.

Events are handed to a transport on a worker pool so the award path never
waits on a consumer. Failed sends are retried with exponential backoff; once
the attempts are used up the event is kept as a dead letter. The tender's own
status remains the source of truth either way.
"""

import threading
import time
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Optional

import requests
import structlog

from tendering.core.config import ConfigManager, NotificationConfig, get_config
from tendering.core.errors import DeliveryError
from tendering.core.logging import get_logger
from tendering.data.models.events import TenderEvent

Transport = Callable[[TenderEvent], Any]


class LoggingTransport:
    """Writes events to the structured log; used when no webhook is configured."""

    def __init__(self, logger: Optional[structlog.BoundLogger] = None) -> None:
        self.logger = get_logger("event_transport", logger)

    def __call__(self, event: TenderEvent) -> None:
        self.logger.info("tender_event", **event.model_dump(mode="json"))


class WebhookTransport:
    """POSTs each event as JSON to a consumer endpoint."""

    def __init__(
        self,
        url: str,
        session: Optional[requests.Session] = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self.url = url
        self.session = session or requests.Session()
        self.timeout_seconds = timeout_seconds

    def __call__(self, event: TenderEvent) -> None:
        try:
            response = self.session.post(
                self.url,
                json=event.model_dump(mode="json"),
                headers={"Idempotency-Key": event.tender_id},
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise DeliveryError(f"POST {self.url} failed: {exc}") from exc
        if response.status_code >= 400:
            raise DeliveryError(f"POST {self.url} returned {response.status_code}")


class EventPublisher:
    """Fire-and-forget event publisher with retry."""

    history_limit = 1000

    def __init__(
        self,
        transport: Optional[Transport] = None,
        config: Optional[NotificationConfig] = None,
        config_manager: Optional[ConfigManager] = None,
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[structlog.BoundLogger] = None,
    ) -> None:
        """
        Initialize the publisher.

        Args:
            transport: Callable that delivers one event. Defaults to a webhook
                when AWARD_WEBHOOK_URL is set, otherwise to the log.
            config: Retry settings (defaults to the configured notifications section)
            config_manager: Optional config manager (defaults to global instance)
            sleep: Backoff sleep function
            logger: Optional structured logger
        """
        self.logger = get_logger("event_publisher", logger)
        if config is None or transport is None:
            config_manager = config_manager or get_config()
            config = config or config_manager.get_notification_config()
            if transport is None:
                url = config_manager.env.award_webhook_url
                transport = WebhookTransport(url) if url else LoggingTransport()

        self.transport = transport
        self.config = config
        self.sleep = sleep
        self.delivered: deque[TenderEvent] = deque(maxlen=self.history_limit)
        self.dead_letters: list[TenderEvent] = []
        self._lock = threading.Lock()
        self._inflight: set[Future] = set()
        self._executor = ThreadPoolExecutor(
            max_workers=config.workers, thread_name_prefix="tender-events"
        )

    def backoff_delay(self, attempt: int) -> float:
        """Delay after the given failed attempt (1-based)."""
        delay = self.config.backoff_base_seconds * (2 ** (attempt - 1))
        return min(delay, self.config.backoff_max_seconds)

    def publish(self, event: TenderEvent) -> Future:
        """
        Queue an event for delivery.

        Returns:
            Future resolving to True when delivered, False when dead-lettered
        """
        future = self._executor.submit(self._deliver, event)
        with self._lock:
            self._inflight.add(future)
        future.add_done_callback(self._forget)
        self.logger.info(
            "event_queued",
            event_type=event.event_type,
            tender_id=event.tender_id,
            event_id=event.event_id,
        )
        return future

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._inflight.discard(future)

    def _deliver(self, event: TenderEvent) -> bool:
        log = self.logger.bind(
            event_type=event.event_type, tender_id=event.tender_id, event_id=event.event_id
        )
        for attempt in range(1, self.config.max_attempts + 1):
            try:
                self.transport(event)
            except Exception as exc:
                if attempt == self.config.max_attempts:
                    log.error("event_delivery_abandoned", attempts=attempt, error=str(exc))
                    with self._lock:
                        self.dead_letters.append(event)
                    return False
                delay = self.backoff_delay(attempt)
                log.warning(
                    "event_delivery_retry", attempt=attempt, delay_seconds=delay, error=str(exc)
                )
                self.sleep(delay)
            else:
                with self._lock:
                    self.delivered.append(event)
                log.info("event_delivered", attempts=attempt)
                return True
        return False

    def flush(self, timeout: Optional[float] = None) -> None:
        """Wait for queued deliveries to finish."""
        with self._lock:
            pending = list(self._inflight)
        wait(pending, timeout=timeout)

    def close(self, wait_for_pending: bool = True) -> None:
        self._executor.shutdown(wait=wait_for_pending)
