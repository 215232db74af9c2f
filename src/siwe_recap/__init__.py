# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""ReCap: capability delegations for Sign-In with Ethereum messages.

Build a grant set, attach it to a SIWE message, and verify it on receipt:

    attenuation = AttenuationBuilder().add_ability("urn:credential:type:type1", "credential/present").finish()
    message = build_message(message, attenuation)
    verify(message)
"""

from .capabilities import (
    Ability,
    Attenuation,
    AttenuationBuilder,
    Restriction,
    parse_ability,
    validate_action,
    validate_namespace,
    validate_resource,
)
from .config import DEFAULT_CONFIG, RESOURCE_PREFIX, RecapConfig
from .delegation import (
    SiweMessage,
    build_message,
    extract_attenuation,
    is_verified,
    verify,
)
from .errors import (
    DuplicateRecapURN,
    EncodingError,
    InvalidAbility,
    InvalidDelegeeField,
    InvalidNamespace,
    InvalidProofReference,
    InvalidResourceIdentifier,
    MalformedRecapPayload,
    MissingOrMisplacedRecapURN,
    RecapError,
    StatementCapabilityMismatch,
)
from .translation import decode, encode, to_statement

__version__ = "0.1.0"

__all__ = (
    # Capabilities
    "Ability",
    "Attenuation",
    "AttenuationBuilder",
    "Restriction",
    "parse_ability",
    "validate_action",
    "validate_namespace",
    "validate_resource",
    # Translation
    "decode",
    "encode",
    "to_statement",
    # Delegation
    "SiweMessage",
    "build_message",
    "extract_attenuation",
    "is_verified",
    "verify",
    # Config
    "DEFAULT_CONFIG",
    "RESOURCE_PREFIX",
    "RecapConfig",
    # Errors
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
