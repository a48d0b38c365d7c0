"""Structured error hierarchy for registration, dispatch and argument access."""

from __future__ import annotations

from typing import Any


class ActionBusError(Exception):
    def __init__(self, code: str, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.cause = cause


class RegistrationError(ActionBusError):
    def __init__(
        self, owner_type: str, event: str, attribute: str, cause: Exception | None = None
    ) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(
            "REGISTRATION_FAILED",
            f'Cannot bind {owner_type}.{attribute} to event "{event}"{detail}',
            cause,
        )
        self.owner_type = owner_type
        self.event = event
        self.attribute = attribute


class InvocationError(ActionBusError):
    def __init__(self, event: str, binding: Any, cause: Exception) -> None:
        super().__init__(
            "INVOCATION_FAILED",
            f'Handler {binding} failed for event "{event}": {cause}',
            cause,
        )
        self.event = event
        self.binding = binding


class ArgumentError(ActionBusError):
    def __init__(self, code: str, key: str | None, message: str) -> None:
        super().__init__(code, message)
        self.key = key


class MissingKeyError(ArgumentError, KeyError):
    def __init__(self, key: str) -> None:
        super().__init__("ARGUMENT_MISSING", key, f"No value found for key: {key}")

    def __str__(self) -> str:
        # KeyError would repr() the message
        return Exception.__str__(self)


class TypeMismatchError(ArgumentError, TypeError):
    def __init__(
        self,
        key: str | None,
        expected: Any,
        actual: type,
        message: str | None = None,
        code: str = "ARGUMENT_TYPE_MISMATCH",
    ) -> None:
        if message is None:
            message = (
                f"Value for key {key} is not of type {_type_name(expected)} "
                f"(got {actual.__name__})"
            )
        super().__init__(code, key, message)
        self.expected = expected
        self.actual = actual


class NotASequenceError(TypeMismatchError):
    def __init__(self, key: str, actual: type) -> None:
        super().__init__(
            key,
            list,
            actual,
            f"Value for key {key} is not a list (got {actual.__name__})",
            code="ARGUMENT_NOT_SEQUENCE",
        )


def _type_name(type_: Any) -> str:
    if isinstance(type_, tuple):
        return " | ".join(_type_name(t) for t in type_)
    return getattr(type_, "__qualname__", repr(type_))
