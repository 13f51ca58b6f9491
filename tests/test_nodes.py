"""Tests for compositor.nodes module."""

import pytest

from compositor.errors import CycleError, StructureError
from compositor.nodes import (
    Composite,
    Leaf,
    add_child,
    children,
    depth,
    new_composite,
    new_leaf,
    remove_child,
    walk,
)


class TestNodeBasics:
    """Test construction and variant tags."""

    def test_new_leaf_carries_payload(self) -> None:
        """Test that new_leaf stores its payload."""
        leaf = new_leaf(42)
        assert isinstance(leaf, Leaf)
        assert leaf.payload == 42
        assert leaf.parent is None

    def test_new_composite_starts_empty(self) -> None:
        """Test that a new composite has no children."""
        composite = new_composite()
        assert isinstance(composite, Composite)
        assert children(composite) == ()

    def test_builtin_tags(self) -> None:
        """Test the tags of the built-in variants."""
        assert Leaf.tag == "leaf"
        assert Composite.tag == "composite"
        assert new_leaf().tag == "leaf"
        assert new_composite().tag == "composite"

    def test_is_composite(self) -> None:
        """Test the variant predicate."""
        assert new_composite().is_composite
        assert not new_leaf().is_composite

    def test_nodes_compare_by_identity(self) -> None:
        """Test that equal payloads do not make nodes equal."""
        first = new_leaf(1)
        second = new_leaf(1)
        assert first != second
        assert first == first  # noqa: PLR0124
        assert len({first, second}) == 2


class TestNodeTags:
    """Test custom variants and their tags."""

    def test_custom_tag(self) -> None:
        """Test explicitly setting a custom tag."""

        class Document(Leaf, tag="document"):
            title: str = ""

        node = Document(title="readme")
        assert node.tag == "document"
        assert node.title == "readme"

    def test_automatic_tag_strips_node_suffix(self) -> None:
        """Test tag derivation from the class name."""

        class SectionNode(Composite):
            heading: str = ""

        assert SectionNode.tag == "section"

    def test_custom_fields_are_keyword_only(self) -> None:
        """Test that required fields can follow the inherited payload."""

        class Sized(Leaf, tag="sized"):
            size: int

        node = Sized(size=3)
        assert node.size == 3
        assert node.payload is None
        with pytest.raises(TypeError):
            Sized(3)  # type: ignore[misc]

    def test_unrelated_classes_may_share_a_tag(self) -> None:
        """Test that declaring a tag twice is not a process-wide error."""

        class First(Leaf, tag="file"):
            pass

        class Second(Leaf, tag="file"):
            pass

        assert First.tag == Second.tag == "file"
        assert First is not Second


class TestAddChild:
    """Test adding children."""

    def test_children_keep_insertion_order(self) -> None:
        """Test that children come back in the order they were added."""
        parent = new_composite()
        nodes = [new_leaf(i) for i in range(5)]
        for node in nodes:
            add_child(parent, node)
        assert children(parent) == tuple(nodes)

    def test_add_sets_parent(self) -> None:
        """Test that adding a child links it to its parent."""
        parent = new_composite()
        child = new_leaf()
        add_child(parent, child)
        assert child.parent is parent

    def test_add_to_leaf_raises(self) -> None:
        """Test that only composites accept children."""
        with pytest.raises(StructureError, match="Leaf"):
            add_child(new_leaf(), new_leaf())

    def test_add_non_node_raises(self) -> None:
        """Test that arbitrary objects cannot be added."""
        with pytest.raises(StructureError, match="Expected a Node"):
            add_child(new_composite(), "not a node")  # type: ignore[arg-type]

    def test_second_parent_raises(self) -> None:
        """Test that a node cannot have two parents."""
        first = new_composite()
        second = new_composite()
        child = new_leaf()
        add_child(first, child)
        with pytest.raises(StructureError, match="already belongs"):
            add_child(second, child)
        assert children(second) == ()
        assert child.parent is first

    def test_readding_same_child_raises(self) -> None:
        """Test that a child cannot be added twice to the same parent."""
        parent = new_composite()
        child = new_leaf()
        add_child(parent, child)
        with pytest.raises(StructureError):
            add_child(parent, child)
        assert children(parent) == (child,)

    def test_children_snapshot_is_detached(self) -> None:
        """Test that the returned sequence does not track later changes."""
        parent = new_composite()
        snapshot = children(parent)
        add_child(parent, new_leaf())
        assert snapshot == ()


class TestCycles:
    """Test cycle detection."""

    def test_add_to_itself_raises(self) -> None:
        """Test that a composite cannot contain itself."""
        node = new_composite()
        with pytest.raises(CycleError):
            add_child(node, node)

    @pytest.mark.parametrize("levels", [1, 2, 3, 4, 5, 8])
    def test_add_ancestor_below_descendant_raises(self, levels: int) -> None:
        """Test that a composite cannot be added below its own descendants."""
        root = new_composite()
        current = root
        for _ in range(levels):
            nested = new_composite()
            add_child(current, nested)
            current = nested

        with pytest.raises(CycleError):
            add_child(current, root)
        assert children(current) == ()

    def test_add_intermediate_ancestor_raises(self) -> None:
        """Test cycles through an ancestor that itself has a parent."""
        root = new_composite()
        middle = new_composite()
        bottom = new_composite()
        add_child(root, middle)
        add_child(middle, bottom)
        with pytest.raises(CycleError):
            add_child(bottom, middle)

    def test_cycle_error_is_structure_error(self) -> None:
        """Test the error hierarchy."""
        assert issubclass(CycleError, StructureError)


class TestRemoveChild:
    """Test removing children."""

    def test_add_then_remove_round_trip(self) -> None:
        """Test that add followed by remove restores the children."""
        parent = new_composite()
        for i in range(3):
            add_child(parent, new_leaf(i))
        before = children(parent)

        child = new_composite()
        add_child(parent, child)
        remove_child(parent, child)

        assert children(parent) == before

    def test_remove_keeps_order_of_the_rest(self) -> None:
        """Test that removing a middle child keeps the others in order."""
        parent = new_composite()
        a, b, c = new_leaf("a"), new_leaf("b"), new_leaf("c")
        for node in (a, b, c):
            add_child(parent, node)
        remove_child(parent, b)
        assert children(parent) == (a, c)

    def test_removed_child_can_be_readopted(self) -> None:
        """Test that removal ends ownership so the node can move."""
        first = new_composite()
        second = new_composite()
        child = new_leaf()
        add_child(first, child)
        remove_child(first, child)
        assert child.parent is None
        add_child(second, child)
        assert child.parent is second

    def test_remove_absent_child_raises(self) -> None:
        """Test that removing a non-child raises."""
        with pytest.raises(StructureError, match="not a child"):
            remove_child(new_composite(), new_leaf())

    def test_remove_from_leaf_raises(self) -> None:
        """Test that removing from a leaf raises."""
        with pytest.raises(StructureError):
            remove_child(new_leaf(), new_leaf())

    def test_children_of_leaf_raises(self) -> None:
        """Test that leaves have no children to list."""
        with pytest.raises(StructureError):
            children(new_leaf())


class TestNavigation:
    """Test walking and ancestry helpers."""

    def test_walk_is_pre_order(self) -> None:
        """Test that walk yields parents before children, left to right."""
        root = new_composite("root")
        left = new_composite("left")
        add_child(root, left)
        add_child(left, new_leaf("left.1"))
        add_child(left, new_leaf("left.2"))
        add_child(root, new_leaf("right"))

        assert [n.payload for n in walk(root)] == [
            "root",
            "left",
            "left.1",
            "left.2",
            "right",
        ]

    def test_ancestors_root_and_depth(self) -> None:
        """Test the parent chain helpers."""
        root = new_composite()
        middle = new_composite()
        leaf = new_leaf()
        add_child(root, middle)
        add_child(middle, leaf)

        assert list(leaf.ancestors()) == [middle, root]
        assert leaf.root() is root
        assert root.root() is root
        assert depth(leaf) == 2
        assert depth(root) == 0
