"""Decoration stack: layering add-on behavior around a base callable.

An add-on is any callable taking `(proceed, *args, **kwargs)`. It runs its
own logic around a single call to `proceed`, which invokes the wrapped
behavior with exactly the arguments it is given. `wrap(wrap(base, a), b)`
therefore runs b's pre-logic, then a's, then base, then a's post-logic,
then b's. Swapping a and b swaps that order, so stacking is not
commutative.
"""

from __future__ import annotations

import functools
import logging
import threading
from collections import OrderedDict
from collections.abc import Callable
from typing import Any, ClassVar, TypeAlias

from compositor.errors import DecorationError, StructureError

logger = logging.getLogger(__name__)

Behavior: TypeAlias = Callable[..., Any]
Proceed: TypeAlias = Callable[..., Any]

_ownership_lock = threading.Lock()


class AddOn:
    """Base class for add-ons with before/after hooks.

    Override `before` to rewrite the arguments and `after` to rewrite the
    result. Subclasses that may return without calling the inner behavior
    must set `short_circuits = True` and override `__call__`.
    """

    short_circuits: ClassVar[bool] = False

    def before(
        self,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> tuple[tuple[Any, ...], dict[str, Any]]:
        """Return the arguments to call the inner behavior with."""
        return args, kwargs

    def after(self, result: Any) -> Any:
        """Return the value the decorated call should produce."""
        return result

    def __call__(self, proceed: Proceed, *args: Any, **kwargs: Any) -> Any:
        args, kwargs = self.before(args, kwargs)
        return self.after(proceed(*args, **kwargs))


class Decorated:
    """A behavior wrapped by exactly one add-on.

    Calling it calls the add-on, which must call the inner behavior exactly
    once unless the add-on declares `short_circuits`.
    """

    def __init__(self, inner: Behavior, add_on: Behavior) -> None:
        if not callable(inner) or not callable(add_on):
            msg = "wrap() needs a callable inner behavior and a callable add-on"
            raise TypeError(msg)
        functools.update_wrapper(self, inner, updated=())
        self.inner = inner
        self.add_on = add_on
        self._owner: Decorated | None = None
        if isinstance(inner, Decorated):
            with _ownership_lock:
                if inner._owner is not None:
                    msg = f"{inner!r} is already wrapped by {inner._owner!r}"
                    raise StructureError(msg)
                inner._owner = self

    def __repr__(self) -> str:
        label = getattr(self.add_on, "__name__", type(self.add_on).__name__)
        return f"Decorated({label} around {self.inner!r})"

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        calls = 0

        def proceed(*inner_args: Any, **inner_kwargs: Any) -> Any:
            nonlocal calls
            calls += 1
            if calls > 1:
                msg = f"{self.add_on!r} invoked its inner behavior more than once"
                raise DecorationError(msg)
            return self.inner(*inner_args, **inner_kwargs)

        result = self.add_on(proceed, *args, **kwargs)
        if calls == 0 and not getattr(self.add_on, "short_circuits", False):
            msg = (
                f"{self.add_on!r} returned without invoking its inner behavior. "
                "Set short_circuits = True on add-ons that may skip it."
            )
            raise DecorationError(msg)
        return result

    def unwrap(self) -> Behavior:
        """The undecorated base behavior."""
        inner = self.inner
        while isinstance(inner, Decorated):
            inner = inner.inner
        return inner


def wrap(inner: Behavior, add_on: Behavior) -> Decorated:
    """Wrap inner with add_on.

    Args:
        inner: Base behavior or another decorated behavior
        add_on: Callable taking (proceed, *args, **kwargs)

    Returns:
        A callable with inner's signature

    Raises:
        StructureError: If inner is already wrapped by another decoration

    """
    return Decorated(inner, add_on)


class DecorationStack:
    """A base behavior with add-ons pushed on top, innermost first."""

    def __init__(self, base: Behavior) -> None:
        self.base = base
        self._top: Behavior = base
        self._add_ons: list[Behavior] = []

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self._top(*args, **kwargs)

    def push(self, add_on: Behavior) -> DecorationStack:
        """Wrap the current top of the stack with add_on."""
        self._top = wrap(self._top, add_on)
        self._add_ons.append(add_on)
        return self

    @property
    def top(self) -> Behavior:
        """The outermost behavior."""
        return self._top

    def layers(self) -> tuple[Behavior, ...]:
        """Add-ons from innermost to outermost."""
        return tuple(self._add_ons)


class LoggingAddOn(AddOn):
    """Logs each call and its result."""

    def __init__(
        self,
        name: str,
        *,
        log: logging.Logger | None = None,
        level: int = logging.INFO,
    ) -> None:
        self.__name__ = name
        self.log = log or logger
        self.level = level

    def __call__(self, proceed: Proceed, *args: Any, **kwargs: Any) -> Any:
        self.log.log(
            self.level,
            "%s called with args=%r kwargs=%r",
            self.__name__,
            args,
            kwargs,
        )
        result = proceed(*args, **kwargs)
        self.log.log(self.level, "%s returned %r", self.__name__, result)
        return result


class CachingAddOn(AddOn):
    """Returns a remembered result for arguments seen before.

    Arguments must be hashable. Concurrent first calls with the same
    arguments may each reach the inner behavior; the first stored result
    wins.

    Args:
        maxsize: Keep at most this many results, evicting the least
            recently used. None keeps every result.

    """

    short_circuits = True

    def __init__(self, maxsize: int | None = None) -> None:
        if maxsize is not None and maxsize < 1:
            msg = f"maxsize must be a positive integer or None, got {maxsize}"
            raise ValueError(msg)
        self.maxsize = maxsize
        self._cache: OrderedDict[Any, Any] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def _key(args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
        return (args, frozenset(kwargs.items()))

    def __call__(self, proceed: Proceed, *args: Any, **kwargs: Any) -> Any:
        key = self._key(args, kwargs)
        with self._lock:
            if key in self._cache:
                self.hits += 1
                self._cache.move_to_end(key)
                return self._cache[key]
            self.misses += 1
        result = proceed(*args, **kwargs)
        with self._lock:
            result = self._cache.setdefault(key, result)
            if self.maxsize is not None and len(self._cache) > self.maxsize:
                self._cache.popitem(last=False)
            return result

    def clear(self) -> None:
        """Forget every remembered result."""
        with self._lock:
            self._cache.clear()
