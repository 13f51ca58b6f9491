"""Notification hub delivering events to a dynamic set of observers."""

from __future__ import annotations

import itertools
import logging
import threading
import time
from collections.abc import Callable
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeAlias

from compositor.config import HubConfig

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)

Observer: TypeAlias = Callable[[Any], object]


@dataclass(eq=False)
class Subscription:
    """Handle for one registration of an observer with a hub."""

    observer: Observer
    id: int
    hub: NotificationHub = field(repr=False)
    active: bool = True

    def unsubscribe(self) -> bool:
        """Remove this subscription from its hub."""
        return self.hub.unsubscribe(self)


@dataclass(frozen=True)
class PublishResult:
    """What happened to each subscription during one publish.

    Attributes:
        delivered: Observers that ran to completion
        skipped: Observers not invoked because the deadline passed
        failed: Observers that raised, with the exception raised

    """

    delivered: tuple[Subscription, ...] = ()
    skipped: tuple[Subscription, ...] = ()
    failed: tuple[tuple[Subscription, Exception], ...] = ()

    @property
    def complete(self) -> bool:
        """Whether every subscription in the snapshot was invoked."""
        return not self.skipped


class NotificationHub:
    """Broadcasts events to subscribers in subscription order.

    Each publish delivers to the subscribers present when it started.
    Subscribing or unsubscribing while a publish is running, from a
    callback or from another thread, only affects later publishes.
    """

    def __init__(self, config: HubConfig | None = None) -> None:
        self.config = config or HubConfig()
        self._subscriptions: list[Subscription] = []
        self._lock = threading.RLock()
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._subscriptions)

    @property
    def subscriptions(self) -> tuple[Subscription, ...]:
        """Active subscriptions in subscription order."""
        with self._lock:
            return tuple(self._subscriptions)

    def subscribe(self, observer: Observer) -> Subscription:
        """Register observer and return its handle.

        Subscribing the same observer twice yields two independent handles.
        """
        if not callable(observer):
            msg = f"Observer must be callable, got {type(observer).__name__}"
            raise TypeError(msg)
        with self._lock:
            subscription = Subscription(observer=observer, id=next(self._ids), hub=self)
            self._subscriptions.append(subscription)
        logger.debug("Subscribed %r", subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        """Remove a subscription.

        Returns:
            True if it was active, False if it had already been removed

        """
        with self._lock:
            for index, existing in enumerate(self._subscriptions):
                if existing is subscription:
                    del self._subscriptions[index]
                    subscription.active = False
                    logger.debug("Unsubscribed %r", subscription)
                    return True
        return False

    @contextmanager
    def subscribed(self, observer: Observer) -> Iterator[Subscription]:
        """Keep observer subscribed for the duration of a with block."""
        subscription = self.subscribe(observer)
        try:
            yield subscription
        finally:
            self.unsubscribe(subscription)

    def _limit(
        self,
        start: float,
        timeout: float | None,
        deadline: float | None,
    ) -> float | None:
        if timeout is None and deadline is None:
            timeout = self.config.default_timeout
        bounds: list[float] = []
        if deadline is not None:
            bounds.append(deadline)
        if timeout is not None:
            bounds.append(start + timeout)
        return min(bounds) if bounds else None

    def publish(
        self,
        event: Any,
        *,
        timeout: float | None = None,
        deadline: float | None = None,
    ) -> PublishResult:
        """Deliver event to every current subscriber, in subscription order.

        Delivery is synchronous. The deadline is checked before each
        observer is invoked; an observer already running is not interrupted.

        Args:
            event: Passed unchanged to each observer
            timeout: Seconds from now after which remaining observers are skipped
            deadline: Absolute time.monotonic() value with the same effect.
                The earlier of timeout and deadline applies.

        Returns:
            PublishResult listing delivered, skipped, and failed subscriptions

        """
        start = time.monotonic()
        limit = self._limit(start, timeout, deadline)
        with self._lock:
            snapshot = tuple(self._subscriptions)

        delivered: list[Subscription] = []
        failed: list[tuple[Subscription, Exception]] = []
        skipped: tuple[Subscription, ...] = ()
        for index, subscription in enumerate(snapshot):
            if limit is not None and time.monotonic() >= limit:
                skipped = snapshot[index:]
                logger.debug(
                    "Deadline passed, skipping %d of %d subscribers",
                    len(skipped),
                    len(snapshot),
                )
                break
            try:
                subscription.observer(event)
            except Exception as e:
                if self.config.error_policy == "raise":
                    raise
                logger.exception("Observer %r failed", subscription)
                failed.append((subscription, e))
            else:
                delivered.append(subscription)

        return PublishResult(
            delivered=tuple(delivered),
            skipped=skipped,
            failed=tuple(failed),
        )
