"""Named-event bus: register owners, execute events, isolate handler failures."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from .arguments import Arguments
from .config import BusConfig
from .errors import ActionBusError, InvocationError, RegistrationError
from .handlers import Callback, HandlerBinding, Subscription, handler_table

logger = logging.getLogger(__name__)

ErrorObserver = Callable[[ActionBusError], None]


class EventBus:
    """
    Event bus mapping event names to ordered handler bindings.

    Buckets are immutable tuples replaced under a lock on every write, so
    ``execute`` reads one consistent snapshot without locking and a dispatch
    in progress never sees a half-applied registration.
    """

    def __init__(
        self, config: BusConfig | None = None, on_error: ErrorObserver | None = None
    ) -> None:
        self.config = config or BusConfig()
        self._on_error = on_error
        self._buckets: dict[str, tuple[HandlerBinding, ...]] = {}
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self.config.name

    # -- registration ------------------------------------------------------

    def register(self, owner: Any) -> Subscription:
        """
        Register every handler declared on ``owner``'s class.

        A handler that cannot be bound is logged and skipped; the others are
        still registered. Registering the same owner twice registers its
        handlers twice.

        Returns:
            Subscription covering the bindings that were created
        """
        specs = handler_table(owner)
        if specs is None:
            logger.warning(
                "[%s] %s declares no action handlers; nothing registered",
                self.name,
                type(owner).__qualname__,
            )
            return Subscription()

        bindings = []
        for spec in specs:
            try:
                bindings.append(HandlerBinding.for_owner(owner, spec))
            except Exception as exc:
                self._report(
                    RegistrationError(type(owner).__qualname__, spec.event, spec.attribute, exc),
                    exc,
                )
        self._add(bindings)
        return Subscription(tuple(binding.token for binding in bindings))

    def subscribe(self, event_name: str, callback: Callback) -> Subscription:
        """Register a free callable (function, closure) under ``event_name``."""
        if not callable(callback):
            raise TypeError("event handler must be callable")
        binding = HandlerBinding.for_callable(event_name, callback)
        self._add([binding])
        return Subscription((binding.token,))

    def unregister(self, target: Any) -> int:
        """
        Remove bindings of an owner object or of a ``Subscription``.

        Buckets left empty are deleted.

        Returns:
            number of bindings removed
        """
        if isinstance(target, Subscription):
            tokens = {id(token) for token in target.tokens}

            def matches(binding: HandlerBinding) -> bool:
                return id(binding.token) in tokens

        else:

            def matches(binding: HandlerBinding) -> bool:
                return binding.belongs_to(target)

        removed = 0
        with self._lock:
            for event_name, bucket in list(self._buckets.items()):
                kept = tuple(binding for binding in bucket if not matches(binding))
                if len(kept) == len(bucket):
                    continue
                removed += len(bucket) - len(kept)
                if kept:
                    self._buckets[event_name] = kept
                else:
                    del self._buckets[event_name]
        logger.debug("[%s] Unregistered %d binding(s)", self.name, removed)
        return removed

    def _add(self, bindings: list[HandlerBinding]) -> None:
        if not bindings:
            return
        with self._lock:
            for binding in bindings:
                bucket = self._buckets.get(binding.event, ())
                self._buckets[binding.event] = bucket + (binding,)
        for binding in bindings:
            logger.debug("[%s] Registered %s for %s", self.name, binding, binding.event)

    # -- dispatch ----------------------------------------------------------

    def execute(self, event_name: str, args: Arguments) -> None:
        """
        Invoke every binding of ``event_name`` in registration order.

        Unknown events are a no-op. A failing handler is logged and reported
        to the error observer, and the remaining handlers still run.
        """
        bucket = self._buckets.get(event_name)
        if not bucket:
            if self.config.log_unhandled_events:
                logger.debug("[%s] No handlers for %s", self.name, event_name)
            return

        for binding in bucket:
            callback = binding.resolve()
            if callback is None:
                logger.debug("[%s] Skipping %s: owner was collected", self.name, binding)
                continue
            try:
                callback(args)
            except Exception as exc:
                self._report(InvocationError(event_name, binding.token, exc), exc)

    def _report(self, error: ActionBusError, exc: Exception) -> None:
        logger.error(
            "[%s] %s",
            self.name,
            error,
            exc_info=(type(exc), exc, exc.__traceback__) if self.config.log_tracebacks else None,
        )
        if self._on_error is None:
            return
        try:
            self._on_error(error)
        except Exception:
            logger.exception("[%s] Error observer failed", self.name)

    # -- introspection -----------------------------------------------------

    def event_names(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._buckets)

    def has_event(self, event_name: str) -> bool:
        return event_name in self._buckets

    def __contains__(self, event_name: object) -> bool:
        return event_name in self._buckets

    def bindings(self, event_name: str) -> tuple[HandlerBinding, ...]:
        return self._buckets.get(event_name, ())

    def handler_count(self, event_name: str) -> int:
        return len(self._buckets.get(event_name, ()))

    def event_count(self) -> int:
        return len(self._buckets)

    def remove_event(self, event_name: str) -> None:
        with self._lock:
            self._buckets.pop(event_name, None)

    def clear(self) -> None:
        with self._lock:
            self._buckets.clear()

    def __repr__(self) -> str:
        return f"EventBus(name={self.name!r}, events={self.event_count()})"
