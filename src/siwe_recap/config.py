# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = ("DEFAULT_CONFIG", "RESOURCE_PREFIX", "RecapConfig")

RESOURCE_PREFIX = "urn:recap:"


class RecapConfig(BaseModel):
    """Knobs for assembling and verifying ReCap messages.

    The wire format itself (prefix, canonical JSON, base64url) is fixed and
    not configurable; only how the token is spliced into a host message is.
    """

    model_config = ConfigDict(frozen=True)

    statement_separator: str = Field(
        default="\n\n",
        description="Inserted between a host statement and the generated sentence",
    )
    delegee_field: str = Field(
        default="uri",
        description="Host message field naming the requester in the statement preamble",
    )
    reject_duplicate_recap: bool = Field(
        default=True,
        description="Refuse to build on a message that already carries a recap token",
    )

    @field_validator("statement_separator")
    def _validate_separator(cls, value: str) -> str:  # noqa: N805
        if not value:
            raise ValueError("statement_separator must not be empty.")
        return value

    @field_validator("delegee_field")
    def _validate_delegee_field(cls, value: str) -> str:  # noqa: N805
        if value in {"statement", "resources"}:
            raise ValueError("delegee_field cannot name a field rewritten by the assembler.")
        return value


DEFAULT_CONFIG = RecapConfig()
