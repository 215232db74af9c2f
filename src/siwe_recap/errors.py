# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Error taxonomy for ReCap building, encoding and verification.

Every error is a non-retryable ``lionherd_core.errors.ValidationError``:
canonicalization and verification are pass/fail, so nothing here recovers
on retry. Grouped by the stage that raises them:

- builder time: ``InvalidNamespace``, ``InvalidAbility``,
  ``InvalidResourceIdentifier``, ``InvalidProofReference``
- encode time: ``EncodingError``
- assembly time: ``DuplicateRecapURN``, ``InvalidDelegeeField``
- decode time: ``MissingOrMisplacedRecapURN``, ``MalformedRecapPayload``
- verify time: ``StatementCapabilityMismatch``
"""

from __future__ import annotations

from typing import Any

from lionherd_core.errors import ConfigurationError, ValidationError

__all__ = (
    "DuplicateRecapURN",
    "EncodingError",
    "InvalidAbility",
    "InvalidDelegeeField",
    "InvalidNamespace",
    "InvalidProofReference",
    "InvalidResourceIdentifier",
    "MalformedRecapPayload",
    "MissingOrMisplacedRecapURN",
    "RecapError",
    "StatementCapabilityMismatch",
)


class RecapError(ValidationError):
    """Base error for every failure raised by this package."""

    default_message = "ReCap error"


# =========================================================================
# Builder-time
# =========================================================================


class InvalidNamespace(RecapError):
    default_message = "Invalid ability namespace"


class InvalidAbility(RecapError):
    default_message = "Invalid ability"


class InvalidResourceIdentifier(RecapError):
    default_message = "Invalid resource identifier"


class InvalidProofReference(RecapError):
    default_message = "Invalid proof reference"


# =========================================================================
# Encode / assembly time
# =========================================================================


class EncodingError(RecapError):
    """Grants hold values that have no canonical JSON/UTF-8 form."""

    default_message = "Attenuation cannot be canonically encoded"


class DuplicateRecapURN(RecapError):
    """Host message already carries a recap token."""

    default_message = "Message already contains a ReCap resource"


class InvalidDelegeeField(RecapError, ConfigurationError):
    """Configured delegee field is absent from the host message."""

    default_message = "Host message has no field naming the delegee"
    default_retryable = False


# =========================================================================
# Decode / verify time
# =========================================================================


class MissingOrMisplacedRecapURN(RecapError):
    """The last resource of the message is not a recap token."""

    default_message = "ReCap resource must be the last entry of the resource list"


class MalformedRecapPayload(RecapError):
    default_message = "ReCap payload could not be decoded"


class StatementCapabilityMismatch(RecapError):
    """Signed statement does not render the embedded capabilities."""

    default_message = "Statement does not match the encoded capabilities"

    def __init__(
        self,
        message: str | None = None,
        *,
        expected: str,
        actual: str | None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        details["expected"] = expected
        details["actual"] = actual
        super().__init__(message, details=details)
        self.expected = expected
        self.actual = actual
