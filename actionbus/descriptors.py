"""
Event descriptors

Typed argument keys and per-event descriptors derived from declared handler
tables. ``event_constants`` turns those tables into a namespace of constants
so publishers can write ``Events.UserLogin.ID`` and
``args.get(Events.UserLogin.USERNAME)`` instead of repeating strings and types.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Generic, Iterable, Mapping, TypeVar

T = TypeVar("T")

_WORD_SPLIT = re.compile(r"[._-]")


@dataclass(frozen=True)
class ArgumentKey(Generic[T]):
    """A parameter name paired with the type its value is expected to have."""

    name: str
    type: type[T]

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class EventDescriptor:
    name: str
    keys: tuple[ArgumentKey[Any], ...] = field(default_factory=tuple)

    def key(self, name: str) -> ArgumentKey[Any] | None:
        for key in self.keys:
            if key.name == name:
                return key
        return None


def as_keys(args: Mapping[str, Any] | Iterable[ArgumentKey[Any]] | None) -> tuple[ArgumentKey[Any], ...]:
    """Normalize a ``{name: type}`` mapping or an iterable of keys."""
    if not args:
        return ()
    if isinstance(args, Mapping):
        return tuple(ArgumentKey(name, type_) for name, type_ in args.items())
    keys = tuple(args)
    for key in keys:
        if not isinstance(key, ArgumentKey):
            raise TypeError(f"Expected ArgumentKey, got {type(key).__name__}")
    return keys


def describe(*owner_classes: type) -> dict[str, EventDescriptor]:
    """
    Collect one descriptor per event name from the given handler owner classes.

    Keys are merged across every handler of the same event; when two handlers
    declare the same key name, the first declaration wins.
    """
    merged: dict[str, dict[str, ArgumentKey[Any]]] = {}
    for owner_class in owner_classes:
        for spec in getattr(owner_class, "__action_handlers__", ()):
            keys = merged.setdefault(spec.event, {})
            for key in spec.keys:
                keys.setdefault(key.name, key)
    return {
        event: EventDescriptor(event, tuple(keys.values())) for event, keys in merged.items()
    }


def pascal_case(event: str) -> str:
    return "".join(part[0].upper() + part[1:].lower() for part in _WORD_SPLIT.split(event) if part)


def constant_name(key: str) -> str:
    return re.sub(r"\W", "_", key).upper()


def event_constants(*owner_classes: type, name: str = "Events") -> type:
    """
    Build a namespace class holding ``ID`` and key constants for every event.

    Raises:
        ValueError: two keys of one event map to the same constant (or to
            ``ID``), or two events map to the same class name
    """
    descriptors = describe(*owner_classes)
    namespace: dict[str, Any] = {"__descriptors__": descriptors}
    owners: dict[str, str] = {}
    for descriptor in descriptors.values():
        attrs: dict[str, Any] = {"ID": descriptor.name}
        for key in descriptor.keys:
            constant = constant_name(key.name)
            if constant in attrs:
                taken = "the event name" if constant == "ID" else repr(attrs[constant].name)
                raise ValueError(
                    f'Key {key.name!r} of event "{descriptor.name}" maps to constant '
                    f"{constant}, already used by {taken}"
                )
            attrs[constant] = key
        class_name = re.sub(r"\W", "", pascal_case(descriptor.name))
        if not class_name.isidentifier():
            class_name = f"Event{class_name}"
        if class_name in owners:
            raise ValueError(
                f'Events "{owners[class_name]}" and "{descriptor.name}" both map to class '
                f"{class_name}"
            )
        owners[class_name] = descriptor.name
        namespace[class_name] = type(class_name, (), attrs)
    return type(name, (), namespace)
