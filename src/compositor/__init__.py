"""compositor - Dispatch-and-composition core for Python 3.12+."""

import logging

from compositor.chain import (
    ChainResult,
    Handler,
    HandlerChain,
)
from compositor.config import (
    DispatcherConfig,
    HubConfig,
)
from compositor.decoration import (
    AddOn,
    CachingAddOn,
    Decorated,
    DecorationStack,
    LoggingAddOn,
    wrap,
)
from compositor.dispatch import (
    Dispatcher,
    Operation,
    Visitor,
)
from compositor.errors import (
    CompositorError,
    CycleError,
    DecorationError,
    StructureError,
    UnresolvedVariantError,
)
from compositor.hub import (
    NotificationHub,
    PublishResult,
    Subscription,
)
from compositor.nodes import (
    Composite,
    Leaf,
    Node,
    add_child,
    children,
    depth,
    new_composite,
    new_leaf,
    remove_child,
    walk,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Decoration
    "AddOn",
    "CachingAddOn",
    # Handler chain
    "ChainResult",
    # Node graph
    "Composite",
    # Errors
    "CompositorError",
    "CycleError",
    "Decorated",
    "DecorationError",
    "DecorationStack",
    # Dispatch
    "Dispatcher",
    # Configuration
    "DispatcherConfig",
    "Handler",
    "HandlerChain",
    "HubConfig",
    "Leaf",
    "LoggingAddOn",
    "Node",
    # Notification hub
    "NotificationHub",
    "Operation",
    "PublishResult",
    "StructureError",
    "Subscription",
    "UnresolvedVariantError",
    "Visitor",
    "add_child",
    "children",
    "depth",
    "new_composite",
    "new_leaf",
    "remove_child",
    "walk",
    "wrap",
]
