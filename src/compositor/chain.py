"""Chain of responsibility with short-circuiting delegation."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, NamedTuple, TypeAlias

from compositor.errors import StructureError

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)

Predicate: TypeAlias = Callable[[Any], bool]
Action: TypeAlias = Callable[[Any], Any]


@dataclass(frozen=True, eq=False)
class Handler:
    """A predicate deciding whether to act and the action to take."""

    predicate: Predicate
    action: Action
    name: str | None = None

    def __repr__(self) -> str:
        label = self.name or getattr(self.action, "__name__", "handler")
        return f"Handler({label})"


class ChainResult(NamedTuple):
    """Outcome of passing a request down a chain."""

    handled: bool
    result: Any = None


class HandlerChain:
    """Ordered handlers; the first whose predicate accepts a request acts on it.

    Links live in an immutable tuple replaced wholesale on every change, so
    a `handle` call in flight keeps walking the links it started with.
    """

    def __init__(self, handlers: tuple[Handler, ...] | list[Handler] = ()) -> None:
        self._links: tuple[Handler, ...] = ()
        self._lock = threading.Lock()
        for handler in handlers:
            self.append(handler)

    def __len__(self) -> int:
        return len(self._links)

    def __iter__(self) -> Iterator[Handler]:
        return iter(self._links)

    @property
    def handlers(self) -> tuple[Handler, ...]:
        """Handlers in delegation order."""
        return self._links

    def append(
        self,
        handler: Handler | Predicate,
        action: Action | None = None,
        *,
        name: str | None = None,
    ) -> Handler:
        """Link a handler at the tail of the chain.

        Accepts either a Handler or a predicate followed by an action.

        Returns:
            The linked handler

        Raises:
            StructureError: If the handler is already in the chain

        """
        if not isinstance(handler, Handler):
            if action is None:
                msg = "append() needs an action when given a bare predicate"
                raise TypeError(msg)
            handler = Handler(predicate=handler, action=action, name=name)
        with self._lock:
            if any(existing is handler for existing in self._links):
                msg = (
                    f"{handler!r} is already linked; "
                    "linking it again would form a cycle"
                )
                raise StructureError(msg)
            self._links = (*self._links, handler)
        logger.debug("Linked %r at position %d", handler, len(self._links) - 1)
        return handler

    def handler(
        self,
        predicate: Predicate,
        *,
        name: str | None = None,
    ) -> Callable[[Action], Action]:
        """Link the decorated function as the action for predicate.

        Example:
            @chain.handler(lambda n: n % 2 == 0)
            def even(n):
                return "even"

        """

        def decorator(action: Action) -> Action:
            self.append(predicate, action, name=name)
            return action

        return decorator

    def remove(self, handler: Handler) -> None:
        """Unlink a handler, keeping the others in their relative order.

        Raises:
            StructureError: If the handler is not in the chain

        """
        with self._lock:
            remaining = tuple(h for h in self._links if h is not handler)
            if len(remaining) == len(self._links):
                msg = f"{handler!r} is not linked in this chain"
                raise StructureError(msg)
            self._links = remaining
        logger.debug("Unlinked %r", handler)

    def handle(self, request: Any) -> ChainResult:
        """Pass request down the chain until a handler accepts it.

        Returns:
            ChainResult(True, result) from the first accepting handler, or
            ChainResult(False, None) if none accepted

        """
        for handler in self._links:
            if handler.predicate(request):
                return ChainResult(handled=True, result=handler.action(request))
        return ChainResult(handled=False)
