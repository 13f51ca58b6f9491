"""Node graph: tagged leaves and composites."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, dataclass_transform

from compositor.errors import CycleError, StructureError

if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass_transform(eq_default=False, kw_only_default=True)
@dataclass(eq=False, kw_only=True)
class Node:
    """Base for graph nodes.

    Every concrete node class carries a variant tag used for dispatch.
    Subclasses become keyword-only dataclasses with their own tag::

        class File(Leaf, tag="file"):
            size: int

    Nodes compare by identity. A node has at most one parent at a time.
    """

    tag: ClassVar[str]

    parent: Composite | None = field(
        default=None,
        init=False,
        repr=False,
    )

    def __init_subclass__(cls, tag: str | None = None, **kwargs: Any) -> None:
        """Make the subclass a dataclass and set its variant tag."""
        super().__init_subclass__(**kwargs)
        dataclass(eq=False, kw_only=True)(cls)
        cls.tag = tag if tag is not None else cls.__name__.lower().removesuffix("node")

    @property
    def is_composite(self) -> bool:
        """Whether this node can own children."""
        return isinstance(self, Composite)

    def ancestors(self) -> Iterator[Composite]:
        """Yield the parent chain, nearest first."""
        current = self.parent
        while current is not None:
            yield current
            current = current.parent

    def root(self) -> Node:
        """Return the topmost ancestor, or the node itself if detached."""
        top: Node = self
        for ancestor in self.ancestors():
            top = ancestor
        return top


class Leaf(Node, tag="leaf"):
    """A node that owns no children."""

    payload: Any = None


class Composite(Node, tag="composite"):
    """A node owning an ordered sequence of children."""

    payload: Any = None
    _children: list[Node] = field(default_factory=list, init=False, repr=False)

    @property
    def children(self) -> tuple[Node, ...]:
        """Children in insertion order."""
        return tuple(self._children)

    def add(self, child: Node) -> None:
        """Append a child.

        Args:
            child: Node to adopt. It must not currently have a parent.

        Raises:
            CycleError: If child is this composite or one of its ancestors
            StructureError: If child is not a Node or already has a parent

        """
        if not isinstance(child, Node):
            msg = f"Expected a Node, got {type(child).__name__}"
            raise StructureError(msg)
        if child is self or any(a is child for a in self.ancestors()):
            msg = f"Adding {child!r} under {self!r} would create a cycle"
            raise CycleError(msg)
        if child.parent is not None:
            msg = (
                f"{child!r} already belongs to {child.parent!r}. "
                "Remove it from its parent first."
            )
            raise StructureError(msg)
        self._children.append(child)
        child.parent = self

    def remove(self, child: Node) -> None:
        """Remove a child, ending this composite's ownership of it.

        Raises:
            StructureError: If child is not currently a child of this composite

        """
        for index, existing in enumerate(self._children):
            if existing is child:
                del self._children[index]
                child.parent = None
                return
        msg = f"{child!r} is not a child of {self!r}"
        raise StructureError(msg)


def new_leaf(payload: Any = None) -> Leaf:
    """Create a detached leaf carrying payload."""
    return Leaf(payload=payload)


def new_composite(payload: Any = None) -> Composite:
    """Create a detached, empty composite."""
    return Composite(payload=payload)


def _require_composite(node: Node, action: str) -> Composite:
    if not isinstance(node, Composite):
        msg = f"Cannot {action} on {type(node).__name__} (variant '{node.tag}')"
        raise StructureError(msg)
    return node


def add_child(parent: Node, child: Node) -> None:
    """Append child to parent's children.

    Raises:
        StructureError: If parent is not a composite or child already has a parent
        CycleError: If child is parent or one of its ancestors

    """
    _require_composite(parent, "add a child").add(child)


def remove_child(parent: Node, child: Node) -> None:
    """Remove child from parent's children.

    Raises:
        StructureError: If parent is not a composite or child is not present

    """
    _require_composite(parent, "remove a child").remove(child)


def children(node: Node) -> tuple[Node, ...]:
    """Return a composite's children in insertion order.

    Raises:
        StructureError: If node is not a composite

    """
    return _require_composite(node, "list children").children


def walk(node: Node) -> Iterator[Node]:
    """Pre-order walk over node and its descendants."""
    stack: list[Node] = [node]
    while stack:
        current = stack.pop()
        yield current
        if isinstance(current, Composite):
            stack.extend(reversed(current._children))


def depth(node: Node) -> int:
    """Number of ancestors above node."""
    return sum(1 for _ in node.ancestors())
