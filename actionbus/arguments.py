"""
Arguments - per-dispatch parameter bundle

A producer creates one ``Arguments`` per ``execute`` call, tags it with the
emitter and registers values under string keys. Handlers read the values back
through type-checked accessors. Absence and type mismatch are separate
failures: ``MissingKeyError`` and ``TypeMismatchError``.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Mapping, TypeVar, overload

from .descriptors import ArgumentKey
from .errors import MissingKeyError, NotASequenceError, TypeMismatchError

T = TypeVar("T")

_MISSING = object()
_NOT_SEQUENCES = (str, bytes, bytearray)


class Arguments:
    """Emitter-tagged, type-checked key/value bundle passed to handlers."""

    __slots__ = ("_emitter", "_values")

    def __init__(self, emitter: Any, values: Mapping[str, Any] | None = None) -> None:
        self._emitter = emitter
        self._values: dict[str, Any] = {}
        for key, value in (values or {}).items():
            self.register_value(key, value)

    @classmethod
    def create(cls, emitter: Any, values: Mapping[str, Any] | None = None) -> Arguments:
        return cls(emitter, values)

    # -- writing -----------------------------------------------------------

    def register_value(self, key: str | ArgumentKey[Any], value: Any) -> Arguments:
        """
        Store ``value`` under ``key``, replacing any previous value.

        No type constraint is applied at write time. ``None`` removes the key.

        Returns:
            self, so registrations can be chained
        """
        name = str(key)
        if value is None:
            self._values.pop(name, None)
        else:
            self._values[name] = value
        return self

    # -- single values -----------------------------------------------------

    @overload
    def get(self, key: ArgumentKey[T]) -> T: ...
    @overload
    def get(self, key: str, type_: type[T]) -> T: ...

    def get(self, key, type_=None):
        """
        Return the value stored under ``key``.

        Raises:
            MissingKeyError: no value for ``key``
            TypeMismatchError: the value is not an instance of ``type_``
        """
        name, type_ = _resolve(key, type_)
        value = self._values.get(name, _MISSING)
        if value is _MISSING:
            raise MissingKeyError(name)
        return _check(name, value, type_)

    def get_optional(self, key, type_=None):
        """Like ``get`` but returns ``None`` when the key is absent."""
        name, type_ = _resolve(key, type_)
        value = self._values.get(name, _MISSING)
        if value is _MISSING:
            return None
        return _check(name, value, type_)

    def get_or_default(self, key, type_=None, default=None):
        name, type_ = _resolve(key, type_)
        value = self._values.get(name, _MISSING)
        if value is _MISSING:
            return default
        return _check(name, value, type_)

    # -- sequences ---------------------------------------------------------

    def get_list(self, key, element_type=None) -> list[Any]:
        """
        Return the sequence stored under ``key`` as a new list.

        Every element must be an instance of ``element_type``; a single
        mismatching element fails the whole call.

        Raises:
            MissingKeyError: no value for ``key``
            NotASequenceError: the value is not a list-like sequence
            TypeMismatchError: an element has the wrong type
        """
        name, element_type = _resolve(key, element_type)
        value = self._values.get(name, _MISSING)
        if value is _MISSING:
            raise MissingKeyError(name)
        return _check_list(name, value, element_type)

    def get_optional_list(self, key, element_type=None) -> list[Any] | None:
        name, element_type = _resolve(key, element_type)
        value = self._values.get(name, _MISSING)
        if value is _MISSING:
            return None
        return _check_list(name, value, element_type)

    def get_list_or_default(self, key, element_type=None, default=None):
        name, element_type = _resolve(key, element_type)
        value = self._values.get(name, _MISSING)
        if value is _MISSING:
            return default
        return _check_list(name, value, element_type)

    # -- introspection -----------------------------------------------------

    def contains_key(self, key: str | ArgumentKey[Any]) -> bool:
        return str(key) in self._values

    def __contains__(self, key: object) -> bool:
        return isinstance(key, (str, ArgumentKey)) and self.contains_key(key)

    def __len__(self) -> int:
        return len(self._values)

    def keys(self) -> list[str]:
        return list(self._values)

    def keys_and_types(self) -> dict[str, type]:
        """Snapshot of every present key and the runtime type of its value, for debugging."""
        return {key: type(value) for key, value in self._values.items()}

    @property
    def emitter(self) -> Any:
        return self._emitter

    def emitter_as(self, type_: type[T]) -> T:
        if not isinstance(self._emitter, type_):
            actual = type(self._emitter)
            raise TypeMismatchError(
                None,
                type_,
                actual,
                f"Emitter is not of type {getattr(type_, '__qualname__', type_)} "
                f"(got {actual.__name__})",
            )
        return self._emitter

    def __repr__(self) -> str:
        return f"Arguments(emitter={self._emitter!r}, keys={list(self._values)!r})"


def _resolve(key: str | ArgumentKey[Any], type_: Any) -> tuple[str, Any]:
    if isinstance(key, ArgumentKey):
        return key.name, type_ if type_ is not None else key.type
    if type_ is None:
        raise TypeError(f"An expected type is required to read key {key!r}")
    return key, type_


def _check(name: str, value: Any, type_: Any) -> Any:
    if not isinstance(value, type_):
        raise TypeMismatchError(name, type_, type(value))
    return value


def _check_list(name: str, value: Any, element_type: Any) -> list[Any]:
    if not isinstance(value, Sequence) or isinstance(value, _NOT_SEQUENCES):
        raise NotASequenceError(name, type(value))
    for index, item in enumerate(value):
        if not isinstance(item, element_type):
            raise TypeMismatchError(
                name,
                element_type,
                type(item),
                f"Item {index} in list {name} is not of type "
                f"{getattr(element_type, '__qualname__', element_type)} "
                f"(got {type(item).__name__})",
            )
    return list(value)
