# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging

from ..capabilities.attenuation import Attenuation
from ..config import DEFAULT_CONFIG, RecapConfig
from ..errors import DuplicateRecapURN, InvalidDelegeeField
from ..translation.codec import encode, is_recap_resource
from ..translation.statement import merge_statement, to_statement
from .message import SiweMessage

__all__ = ("build_message", "delegee_of")

logger = logging.getLogger(__name__)


def delegee_of(message: SiweMessage, config: RecapConfig = DEFAULT_CONFIG) -> str:
    """Identifier of the party receiving the delegation (the message ``uri`` by default)."""
    value = getattr(message, config.delegee_field, None)
    if value is None:
        raise InvalidDelegeeField(
            f"Message has no '{config.delegee_field}' field to name the delegee",
            details={"delegee_field": config.delegee_field},
        )
    return str(value)


def build_message(
    message: SiweMessage,
    attenuation: Attenuation,
    *,
    config: RecapConfig | None = None,
) -> SiweMessage:
    """Attach attenuation to message as a recap token plus statement suffix.

    The token is appended after any existing resources; the generated
    sentence follows the existing statement. An empty attenuation returns the
    message unchanged. The input message is never modified.

    Raises:
        DuplicateRecapURN: message already carries a recap token
        EncodingError: restrictions cannot be canonically encoded
    """
    config = config or DEFAULT_CONFIG

    if config.reject_duplicate_recap:
        existing = [r for r in message.resources if is_recap_resource(r)]
        if existing:
            raise DuplicateRecapURN(details={"existing": existing})

    if attenuation.is_empty:
        logger.info("Empty attenuation, message left as plain sign-in")
        return message.model_copy()

    token = encode(attenuation)
    statement = merge_statement(
        message.statement,
        to_statement(attenuation, delegee_of(message, config)),
        config.statement_separator,
    )
    logger.debug(
        f"Attached ReCap token covering {len(attenuation.att)} resources "
        f"and {len(attenuation.prf)} proofs"
    )
    return message.model_copy(
        update={"statement": statement, "resources": (*message.resources, token)}
    )
