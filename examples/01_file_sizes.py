"""
File Size Report
================

A file tree demonstrating:
- Custom node variants
- A Visitor that controls its own recursion
- A pre-order listing through the Dispatcher
- A hub notified when the tree changes
"""

from compositor import (
    Composite,
    Dispatcher,
    Leaf,
    NotificationHub,
    Visitor,
    add_child,
    depth,
)


# ============================================================================
# Define Nodes
# ============================================================================

class File(Leaf, tag="file"):
    """A file with a size in bytes."""
    name: str
    size: int


class Folder(Composite, tag="folder"):
    """A folder holding files and folders."""
    name: str


# ============================================================================
# Operations
# ============================================================================

class DiskUsage(Visitor):
    """Total bytes below a node."""

    operation = "disk_usage"
    recurse = False

    def visit_file(self, node: File) -> int:
        return node.size

    def visit_folder(self, node: Folder) -> int:
        return sum(self.visit(child) for child in node.children)


def listing(dispatcher: Dispatcher, root: Folder) -> list[str]:
    """Indented names, parents before children."""
    dispatcher.register("label", File, lambda n: f"{n.name} ({n.size} B)")
    dispatcher.register("label", Folder, lambda n: f"{n.name}/")
    return [
        "  " * depth(node) + label
        for node, label in dispatcher.collect("label", root)
    ]


# ============================================================================
# Example
# ============================================================================

def main():
    root = Folder(name="project")
    src = Folder(name="src")
    add_child(root, src)
    add_child(src, File(name="app.py", size=4200))
    add_child(src, File(name="util.py", size=900))
    add_child(root, File(name="README.md", size=1300))

    dispatcher = Dispatcher()
    usage = DiskUsage(dispatcher)

    for line in listing(dispatcher, root):
        print(line)
    print()

    hub = NotificationHub()
    hub.subscribe(lambda tree: print(f"Total: {usage.visit(tree)} B"))

    hub.publish(root)
    add_child(src, File(name="big.bin", size=10_000))
    hub.publish(root)


if __name__ == "__main__":
    main()
