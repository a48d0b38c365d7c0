"""
Handler declaration and binding

Methods are marked with ``@action_handler``. The marks are collected once per
class, when the class is created, into a ``__action_handlers__`` table (via
the ``HandlerOwner`` mixin or the ``@handler_owner`` class decorator). The bus
only reads that table; it does not scan instances.

A ``HandlerBinding`` is what the bus actually stores: one callable for one
event, the owner held weakly, and a ``BindingToken`` that identifies the
binding for removal and for log records.
"""

from __future__ import annotations

import itertools
import logging
import weakref
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Iterable, Mapping, TypeVar

from .descriptors import ArgumentKey, as_keys

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])
C = TypeVar("C", bound=type)

Callback = Callable[..., Any]

MARK_ATTRIBUTE = "__action_events__"
TABLE_ATTRIBUTE = "__action_handlers__"

_serials = itertools.count(1)


@dataclass(frozen=True)
class HandlerSpec:
    """One declared handler of a class."""

    event: str
    attribute: str
    keys: tuple[ArgumentKey[Any], ...] = ()


def action_handler(
    event: str,
    args: Mapping[str, Any] | Iterable[ArgumentKey[Any]] | None = None,
) -> Callable[[F], F]:
    """
    Mark a method as the handler of ``event``.

    ``args`` documents the keys the handler reads, as ``{name: type}`` or as
    ``ArgumentKey`` objects. It is not validated at dispatch time; it feeds
    ``describe`` and ``event_constants``.

    The decorator can be stacked to listen to several events.
    """
    if not isinstance(event, str):
        raise TypeError(f"Event name must be a str, got {type(event).__name__}")
    keys = as_keys(args)

    def decorator(func: F) -> F:
        target = func.__func__ if isinstance(func, (staticmethod, classmethod)) else func
        marks = getattr(target, MARK_ATTRIBUTE, ())
        setattr(target, MARK_ATTRIBUTE, marks + ((event, keys),))
        return func

    return decorator


def collect_specs(cls: type) -> tuple[HandlerSpec, ...]:
    """Build the handler table of ``cls`` from marked attributes along its MRO."""
    table: dict[str, tuple[HandlerSpec, ...]] = {}
    for base in reversed(cls.__mro__):
        for name, value in vars(base).items():
            target = value.__func__ if isinstance(value, (staticmethod, classmethod)) else value
            marks = getattr(target, MARK_ATTRIBUTE, None) if callable(target) else None
            if marks:
                table[name] = tuple(HandlerSpec(event, name, keys) for event, keys in marks)
            elif name in table:
                # overridden without a mark
                del table[name]
    return tuple(spec for specs in table.values() for spec in specs)


def handler_owner(cls: C) -> C:
    """
    Class decorator equivalent of subclassing ``HandlerOwner``.

    Only the decorated class gets a table. Subclasses must be decorated too,
    otherwise they register with the inherited table and their own handlers
    are ignored.
    """
    setattr(cls, TABLE_ATTRIBUTE, collect_specs(cls))
    return cls


class HandlerOwner:
    """Mixin that builds the handler table when a subclass is defined."""

    __action_handlers__: ClassVar[tuple[HandlerSpec, ...]] = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.__action_handlers__ = collect_specs(cls)


def handler_table(owner: Any) -> tuple[HandlerSpec, ...] | None:
    """Return the declared table of ``owner``'s class, or None if it has none."""
    cls = type(owner)
    table = getattr(cls, TABLE_ATTRIBUTE, None)
    if table is not None and TABLE_ATTRIBUTE not in vars(cls) and collect_specs(cls) != table:
        logger.warning(
            "%s inherits the handler table of a base class and its own handlers are "
            "ignored; decorate it with @handler_owner",
            cls.__qualname__,
        )
    return table


@dataclass(frozen=True, eq=False)
class BindingToken:
    """Identity of one registered binding. Compared by identity only."""

    event: str
    label: str
    serial: int = field(default_factory=lambda: next(_serials))

    def __str__(self) -> str:
        return f"#{self.serial} {self.label}"


@dataclass(frozen=True, eq=False)
class HandlerBinding:
    event: str
    token: BindingToken
    keys: tuple[ArgumentKey[Any], ...] = ()
    _callback: Callback | None = field(default=None, repr=False)
    _method_ref: weakref.WeakMethod | None = field(default=None, repr=False)
    _owner_ref: weakref.ref | None = field(default=None, repr=False)

    @classmethod
    def for_owner(cls, owner: Any, spec: HandlerSpec) -> HandlerBinding:
        """
        Bind ``spec`` on ``owner``.

        Raises:
            AttributeError: the attribute does not exist on the owner
            TypeError: the attribute is not callable, or the owner cannot be
                weakly referenced
        """
        callback = getattr(owner, spec.attribute)
        if not callable(callback):
            raise TypeError(f"{spec.attribute} is not callable")
        owner_ref = weakref.ref(owner)
        method_ref = None
        if getattr(callback, "__self__", None) is owner:
            method_ref = weakref.WeakMethod(callback)
            callback = None
        token = BindingToken(spec.event, f"{type(owner).__qualname__}.{spec.attribute}")
        return cls(spec.event, token, spec.keys, callback, method_ref, owner_ref)

    @classmethod
    def for_callable(cls, event: str, callback: Callback) -> HandlerBinding:
        label = getattr(callback, "__qualname__", None) or repr(callback)
        return cls(event, BindingToken(event, label), (), callback)

    @property
    def owner(self) -> Any:
        """The owner object, or None for free callables and collected owners."""
        return self._owner_ref() if self._owner_ref is not None else None

    @property
    def alive(self) -> bool:
        return self._owner_ref is None or self._owner_ref() is not None

    def belongs_to(self, owner: Any) -> bool:
        return self._owner_ref is not None and self._owner_ref() is owner

    def resolve(self) -> Callback | None:
        """Return the callable to invoke, or None if its owner was collected."""
        if self._method_ref is not None:
            return self._method_ref()
        if not self.alive:
            return None
        return self._callback

    def __str__(self) -> str:
        return str(self.token)


@dataclass(frozen=True)
class Subscription:
    """Handle for the bindings created by one registration call."""

    tokens: tuple[BindingToken, ...] = ()

    @property
    def events(self) -> tuple[str, ...]:
        return tuple(dict.fromkeys(token.event for token in self.tokens))

    def __contains__(self, token: object) -> bool:
        return any(token is own for own in self.tokens)

    def __len__(self) -> int:
        return len(self.tokens)

    def __bool__(self) -> bool:
        return bool(self.tokens)
