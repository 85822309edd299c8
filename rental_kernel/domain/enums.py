"""
Strict enum parsing (``rental_kernel.domain.enums``).

Stored status and frequency columns are plain strings.  Every read goes
through ``parse_enum``; an unknown value raises
``UnrecognizedEnumValueError`` and never falls back to a default member.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import TypeVar

from rental_kernel.exceptions import UnrecognizedEnumValueError

E = TypeVar("E", bound=Enum)


def parse_enum(
    enum_cls: type[E],
    value: E | str | None,
    allowed: Iterable[E] | None = None,
) -> E:
    """
    Resolve ``value`` to a member of ``enum_cls``.

    Args:
        enum_cls: Target enum class (values are strings).
        value: A member, its string value, or None.
        allowed: Optional subset of members that are valid in this context
            (e.g. rental contracts cannot be "suspended").

    Raises:
        UnrecognizedEnumValueError: unknown, empty, or disallowed value.
    """
    permitted = tuple(allowed) if allowed is not None else tuple(enum_cls)
    permitted_values = tuple(m.value for m in permitted)

    if isinstance(value, enum_cls):
        member = value
    elif isinstance(value, str):
        try:
            member = enum_cls(value.strip().lower())
        except ValueError:
            raise UnrecognizedEnumValueError(
                enum_cls.__name__, value, permitted_values
            ) from None
    else:
        raise UnrecognizedEnumValueError(enum_cls.__name__, value, permitted_values)

    if member not in permitted:
        raise UnrecognizedEnumValueError(enum_cls.__name__, value, permitted_values)
    return member
