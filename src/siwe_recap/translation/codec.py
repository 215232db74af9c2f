# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Canonical wire form of an Attenuation: ``urn:recap:<base64url>``.

The payload is compact UTF-8 JSON ``{"att":{...},"prf":[...]}`` with
resources, abilities and restriction keys sorted; restriction sequences and
proofs keep their order. The signature covers the token, so equal grant sets
must always produce identical bytes.
"""

from __future__ import annotations

import base64
import json
import logging
import re
from typing import Any

from ..capabilities.attenuation import Attenuation
from ..config import RESOURCE_PREFIX
from ..errors import EncodingError, MalformedRecapPayload, MissingOrMisplacedRecapURN, RecapError

__all__ = (
    "canonical_bytes",
    "decode",
    "decode_payload",
    "encode",
    "is_recap_resource",
)

logger = logging.getLogger(__name__)

_BASE64URL = re.compile(r"[A-Za-z0-9_-]*")


def is_recap_resource(resource: Any) -> bool:
    """Check if resource is a recap token."""
    return isinstance(resource, str) and resource.startswith(RESOURCE_PREFIX)


def canonical_bytes(attenuation: Attenuation) -> bytes:
    """Serialize attenuation to its canonical JSON bytes.

    Raises:
        EncodingError: restriction values that JSON or UTF-8 cannot represent
            (non-finite floats, arbitrary objects, lone surrogates)
    """
    try:
        return attenuation.canonical_json().encode("utf-8")
    except (TypeError, ValueError) as e:
        raise EncodingError(f"Cannot encode restrictions as canonical JSON: {e}", cause=e) from e


def encode(attenuation: Attenuation) -> str:
    """Encode attenuation as a ``urn:recap:`` token."""
    encoded = base64.urlsafe_b64encode(canonical_bytes(attenuation)).rstrip(b"=")
    return RESOURCE_PREFIX + encoded.decode("ascii")


def decode_payload(data: str) -> Attenuation:
    """Decode the base64url part of a token (prefix already stripped).

    Raises:
        MalformedRecapPayload: bad alphabet, length, trailing bits, UTF-8,
            JSON or shape
    """
    if not _BASE64URL.fullmatch(data) or len(data) % 4 == 1:
        raise MalformedRecapPayload(
            "ReCap payload is not unpadded base64url",
            details={"payload": data},
        )
    raw = base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))
    # the decoder ignores unused trailing bits; only one spelling is accepted
    if base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii") != data:
        raise MalformedRecapPayload(
            "ReCap payload has non-zero trailing bits",
            details={"payload": data},
        )
    try:
        obj = json.loads(raw.decode("utf-8"), parse_constant=_reject_constant)
        attenuation = Attenuation.from_json_obj(obj)
        # escaped lone surrogates survive json.loads but have no UTF-8 form
        canonical_bytes(attenuation)
        return attenuation
    except (UnicodeDecodeError, ValueError, TypeError, RecapError) as e:
        logger.warning(f"Rejected malformed ReCap payload: {e}")
        raise MalformedRecapPayload(
            f"ReCap payload could not be decoded: {e}",
            details={"payload": data},
            cause=e,
        ) from e


def decode(token: str) -> Attenuation:
    """Decode a full ``urn:recap:`` token back into an Attenuation.

    Raises:
        MissingOrMisplacedRecapURN: token lacks the recap prefix
        MalformedRecapPayload: payload cannot be decoded
    """
    if not is_recap_resource(token):
        raise MissingOrMisplacedRecapURN(
            f"Expected a resource starting with {RESOURCE_PREFIX!r}, got {token!r}",
            details={"resource": token},
        )
    return decode_payload(token[len(RESOURCE_PREFIX) :])


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")
