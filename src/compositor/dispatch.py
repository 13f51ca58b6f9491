"""Operation dispatch over the node graph.

A Dispatcher holds a table keyed by (operation, variant tag). Dispatching
an operation on a node looks up the node's own tag, runs the registered
behavior, and for composites continues into the children in insertion
order, parent first.

Example:
    dispatcher = Dispatcher()
    dispatcher.register("size", "leaf", lambda n: n.payload)
    dispatcher.register("size", "composite", lambda n: 0)

    total = sum(r for _, r in dispatcher.collect("size", tree))

"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, TypeAlias

from compositor.config import DispatcherConfig
from compositor.errors import UnresolvedVariantError
from compositor.nodes import Composite, Node

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)

Behavior: TypeAlias = Callable[[Node], Any]


@dataclass(frozen=True)
class Resolution:
    """A behavior registered for one variant tag under an operation."""

    behavior: Behavior
    recurse: bool


class Operation:
    """A named action with one resolution per variant tag."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._resolutions: dict[str, Resolution] = {}

    def __repr__(self) -> str:
        return f"Operation({self.name!r}, tags={list(self._resolutions)})"

    def __contains__(self, tag: str) -> bool:
        return tag in self._resolutions

    @property
    def tags(self) -> tuple[str, ...]:
        """Variant tags with a registered resolution, in registration order."""
        return tuple(self._resolutions)

    def add(self, tag: str, resolution: Resolution) -> None:
        """Set the resolution for a tag, replacing any previous one."""
        self._resolutions[tag] = resolution

    def resolve(self, tag: str) -> Resolution:
        """Look up the resolution for a tag.

        Raises:
            UnresolvedVariantError: If no behavior is registered for tag

        """
        try:
            return self._resolutions[tag]
        except KeyError:
            raise UnresolvedVariantError(self.name, tag) from None


def _tag_of(tag: str | type[Node]) -> str:
    if isinstance(tag, type):
        return tag.tag
    return tag


class Dispatcher:
    """Routes operations to per-variant behaviors across a node graph.

    Registration is serialized internally. Structural mutation of a graph
    while it is being dispatched over must be serialized by the caller.
    """

    def __init__(self, config: DispatcherConfig | None = None) -> None:
        self.config = config or DispatcherConfig()
        self._operations: dict[str, Operation] = {}
        self._lock = threading.Lock()

    def register(
        self,
        operation: str,
        tag: str | type[Node],
        behavior: Behavior,
        *,
        recurse: bool | None = None,
    ) -> None:
        """Register the behavior for (operation, tag).

        Re-registering the same pair replaces the previous behavior.

        Args:
            operation: Operation name
            tag: Variant tag, or a node class whose tag is used
            behavior: Called with the node being visited
            recurse: False if the behavior dispatches into children itself.
                None uses the configured default.

        """
        tag = _tag_of(tag)
        resolution = Resolution(
            behavior=behavior,
            recurse=self.config.recurse if recurse is None else recurse,
        )
        with self._lock:
            op = self._operations.get(operation)
            if op is None:
                op = self._operations[operation] = Operation(operation)
            if tag in op:
                logger.debug("Replacing resolution for %s/%s", operation, tag)
            op.add(tag, resolution)

    def resolution(
        self,
        operation: str,
        tag: str | type[Node],
        *,
        recurse: bool | None = None,
    ) -> Callable[[Behavior], Behavior]:
        """Register the decorated function as a behavior.

        Example:
            @dispatcher.resolution("render", "leaf")
            def render_leaf(node):
                return str(node.payload)

        """

        def decorator(behavior: Behavior) -> Behavior:
            self.register(operation, tag, behavior, recurse=recurse)
            return behavior

        return decorator

    def operation(self, name: str) -> Operation:
        """Get a registered operation by name.

        Raises:
            KeyError: If nothing was ever registered under name

        """
        if name not in self._operations:
            available = list(self._operations)
            msg = (
                f"Operation '{name}' not registered. "
                f"Available operations: {available}"
            )
            raise KeyError(msg)
        return self._operations[name]

    def operations(self) -> tuple[str, ...]:
        """Names of all registered operations."""
        return tuple(self._operations)

    def _resolve(self, operation: str, tag: str) -> Resolution:
        op = self._operations.get(operation)
        if op is None:
            raise UnresolvedVariantError(operation, tag)
        return op.resolve(tag)

    def _traverse(self, operation: str, node: Node) -> Iterator[tuple[Node, Any]]:
        stack: list[Node] = [node]
        while stack:
            current = stack.pop()
            resolution = self._resolve(operation, current.tag)
            yield current, resolution.behavior(current)
            if resolution.recurse and isinstance(current, Composite):
                stack.extend(reversed(current.children))

    def dispatch(self, operation: str, node: Node) -> Any:
        """Run an operation over node and, for composites, its descendants.

        Behaviors are resolved as nodes are reached, so behaviors for nodes
        visited before an unresolved one have already run when the error is
        raised. Call `unresolved` first to check a graph without side effects.

        Returns:
            The result of the behavior invoked on node itself

        Raises:
            UnresolvedVariantError: When a visited node's tag has no behavior

        """
        visits = self._traverse(operation, node)
        _, result = next(visits)
        for _ in visits:
            pass
        return result

    def collect(self, operation: str, node: Node) -> list[tuple[Node, Any]]:
        """Run an operation and return every (node, result) in visit order."""
        return list(self._traverse(operation, node))

    def unresolved(self, operation: str, node: Node) -> list[str]:
        """Tags reachable from node that have no behavior under operation.

        Follows the same recursion rules as dispatch without invoking any
        behavior. Tags are listed once, in the order first encountered.
        """
        op = self._operations.get(operation)
        missing: list[str] = []
        stack: list[Node] = [node]
        while stack:
            current = stack.pop()
            if op is None or current.tag not in op:
                if current.tag not in missing:
                    missing.append(current.tag)
                recurse = self.config.recurse
            else:
                recurse = op.resolve(current.tag).recurse
            if recurse and isinstance(current, Composite):
                stack.extend(reversed(current.children))
        return missing


class Visitor:
    """Base class for operations written as visit_<tag> methods.

    Subclass, set `operation`, and define one method per variant tag.
    Methods are registered on the dispatcher when the visitor is created.
    Set `recurse = False` to dispatch into children from the methods
    themselves via `visit`.

    Example:
        class Render(Visitor):
            operation = "render"

            def visit_leaf(self, node):
                self.lines.append(str(node.payload))

            def visit_composite(self, node):
                self.lines.append("+")

    """

    operation: ClassVar[str]
    recurse: ClassVar[bool | None] = None

    def __init__(self, dispatcher: Dispatcher | None = None) -> None:
        self.dispatcher = dispatcher or Dispatcher()
        self.bind(self.dispatcher)

    def bind(self, dispatcher: Dispatcher) -> None:
        """Register every visit_<tag> method under this visitor's operation."""
        for name in dir(type(self)):
            if name.startswith("visit_"):
                dispatcher.register(
                    self.operation,
                    name.removeprefix("visit_"),
                    getattr(self, name),
                    recurse=self.recurse,
                )

    def visit(self, node: Node) -> Any:
        """Dispatch this visitor's operation on node."""
        return self.dispatcher.dispatch(self.operation, node)
