# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Relying-party side: recover the attenuation and check the signed text.

The statement check is what binds the prose a wallet user read to the grant
that will be enforced. A message whose statement is not an exact rendering of
its recap token must be rejected even if its signature is valid.
"""

from __future__ import annotations

import logging

from ..capabilities.attenuation import Attenuation
from ..config import DEFAULT_CONFIG, RESOURCE_PREFIX, RecapConfig
from ..errors import MissingOrMisplacedRecapURN, StatementCapabilityMismatch
from ..translation.codec import decode, is_recap_resource
from ..translation.statement import to_statement
from .assembler import delegee_of
from .message import SiweMessage

__all__ = ("extract_attenuation", "is_verified", "statement_matches", "verify")

logger = logging.getLogger(__name__)


def extract_attenuation(message: SiweMessage) -> Attenuation:
    """Decode the recap token, which must be the last resource.

    Raises:
        MissingOrMisplacedRecapURN: no resources, or last one is not a recap token
        MalformedRecapPayload: token payload cannot be decoded
    """
    if not message.resources or not is_recap_resource(message.resources[-1]):
        raise MissingOrMisplacedRecapURN(
            f"Last resource is not a {RESOURCE_PREFIX!r} token",
            details={"resources": list(message.resources)},
        )
    return decode(message.resources[-1])


def statement_matches(statement: str | None, expected: str, separator: str = "\n\n") -> bool:
    """True if statement is expected, or ends with separator + expected."""
    if not expected:
        return True
    if statement is None:
        return False
    return statement == expected or statement.endswith(separator + expected)


def verify(message: SiweMessage, *, config: RecapConfig | None = None) -> Attenuation | None:
    """Extract the attenuation and confirm the statement renders it exactly.

    Returns:
        The verified Attenuation, or None for a plain sign-in message that
        carries no recap token at all.

    Raises:
        MissingOrMisplacedRecapURN: a recap token exists but is not last
        MalformedRecapPayload: token payload cannot be decoded
        StatementCapabilityMismatch: statement does not end with the rendering
    """
    config = config or DEFAULT_CONFIG

    if not any(is_recap_resource(r) for r in message.resources):
        logger.debug("No ReCap resource present, nothing to verify")
        return None

    attenuation = extract_attenuation(message)
    expected = to_statement(attenuation, delegee_of(message, config))
    if not statement_matches(message.statement, expected, config.statement_separator):
        logger.warning("ReCap statement does not match encoded capabilities")
        raise StatementCapabilityMismatch(expected=expected, actual=message.statement)

    logger.debug(f"Verified ReCap statement for {len(attenuation.att)} resources")
    return attenuation


def is_verified(message: SiweMessage, *, config: RecapConfig | None = None) -> bool:
    """Boolean form of ``verify``; decode errors still raise."""
    try:
        verify(message, config=config)
    except StatementCapabilityMismatch:
        return False
    return True
