# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

__all__ = ("SiweMessage",)


class SiweMessage(BaseModel):
    """Host Sign-In with Ethereum message, as far as ReCap is concerned.

    Only ``statement`` and ``resources`` are read or rewritten here. Every
    other field, including unknown extras, is opaque and carried through
    unchanged; parsing, rendering and signing belong to the SIWE layer.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    domain: str
    address: str
    statement: str | None = None
    uri: str
    version: str = "1"
    chain_id: int = 1
    nonce: str
    issued_at: str
    expiration_time: str | None = None
    not_before: str | None = None
    request_id: str | None = None
    resources: tuple[str, ...] = Field(default_factory=tuple)
