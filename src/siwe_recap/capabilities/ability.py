# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Grammar for ability strings (``namespace/action``) and resources.

Namespace and action share one grammar: non-empty, every character either
alphanumeric or one of ``- _ . + *``. An ability is exactly one namespace and
one action joined by a single ``/``.

Examples:
    >>> parse_ability("kv/list")
    Ability(namespace='kv', action='list')
    >>> str(parse_ability("credential/present"))
    'credential/present'
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from ..errors import InvalidAbility, InvalidNamespace, InvalidResourceIdentifier

__all__ = (
    "ALLOWED_CHARS",
    "Ability",
    "is_utf8",
    "parse_ability",
    "validate_action",
    "validate_namespace",
    "validate_resource",
)

ALLOWED_CHARS = frozenset("-_.+*")
SEPARATOR = "/"


def is_utf8(value: str) -> bool:
    """False for strings holding lone surrogates, which have no UTF-8 form."""
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _is_token(value: Any) -> bool:
    return (
        isinstance(value, str)
        and bool(value)
        and is_utf8(value)
        and all(ch.isalnum() or ch in ALLOWED_CHARS for ch in value)
    )


def validate_namespace(value: Any) -> None:
    """Raise InvalidNamespace unless value is a well-formed namespace."""
    if not _is_token(value):
        raise InvalidNamespace(
            f"Invalid namespace {value!r}: must be non-empty and contain only "
            "alphanumeric characters or one of '-_.+*'",
            details={"namespace": value},
        )


def validate_action(value: Any) -> None:
    """Raise InvalidAbility unless value is a well-formed action name."""
    if not _is_token(value):
        raise InvalidAbility(
            f"Invalid action {value!r}: must be non-empty and contain only "
            "alphanumeric characters or one of '-_.+*'",
            details={"action": value},
        )


def validate_resource(value: Any) -> None:
    """Resources are opaque; the only requirement is a non-empty UTF-8 string."""
    if not isinstance(value, str) or not value or not is_utf8(value):
        raise InvalidResourceIdentifier(
            f"Invalid resource {value!r}: must be a non-empty UTF-8 string",
            details={"resource": value},
        )


class Ability(BaseModel):
    """A namespaced action, e.g. ``kv/get``.

    Frozen and hashable, so it can key the ability mapping of an attenuation.
    Instances order by the byte-wise order of their wire form.
    """

    model_config = ConfigDict(frozen=True)

    namespace: str
    action: str

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, data: Any) -> Any:
        """Accept the wire form ``"namespace/action"`` directly."""
        if isinstance(data, str):
            namespace, _, action = _split(data)
            return {"namespace": namespace, "action": action}
        return data

    @field_validator("namespace", mode="before")
    def _validate_namespace(cls, value: Any) -> Any:  # noqa: N805
        validate_namespace(value)
        return value

    @field_validator("action", mode="before")
    def _validate_action(cls, value: Any) -> Any:  # noqa: N805
        validate_action(value)
        return value

    @classmethod
    def parse(cls, value: str | Ability) -> Ability:
        """Parse the wire form; existing instances pass through unchanged."""
        if isinstance(value, Ability):
            return value
        return cls.model_validate(value)

    def __str__(self) -> str:
        return f"{self.namespace}{SEPARATOR}{self.action}"

    def __repr__(self) -> str:
        return f"Ability(namespace={self.namespace!r}, action={self.action!r})"

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Ability):
            return NotImplemented
        return str(self) < str(other)


def _split(value: str) -> tuple[str, str, str]:
    if SEPARATOR not in value:
        raise InvalidAbility(
            f"Invalid ability {value!r}: missing '{SEPARATOR}' separator",
            details={"ability": value},
        )
    return value.partition(SEPARATOR)


def parse_ability(value: Any) -> Ability:
    """Parse ``namespace/action`` into an Ability.

    Raises:
        InvalidAbility: not a string, no separator, or a malformed action
            (a second ``/`` makes the action malformed).
        InvalidNamespace: empty or malformed namespace.
    """
    if isinstance(value, Ability):
        return value
    if not isinstance(value, str):
        raise InvalidAbility(
            f"Invalid ability {value!r}: expected a string",
            details={"ability": value},
        )
    return Ability.parse(value)
