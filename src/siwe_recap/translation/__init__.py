# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Attenuation to token and to statement."""

from .codec import canonical_bytes, decode, decode_payload, encode, is_recap_resource
from .statement import merge_statement, statement_lines, to_statement

__all__ = (
    "canonical_bytes",
    "decode",
    "decode_payload",
    "encode",
    "is_recap_resource",
    "merge_statement",
    "statement_lines",
    "to_statement",
)
