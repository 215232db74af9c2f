# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Splicing ReCaps into SIWE messages and verifying them back out."""

from .assembler import build_message, delegee_of
from .message import SiweMessage
from .verifier import extract_attenuation, is_verified, statement_matches, verify

__all__ = (
    "SiweMessage",
    "build_message",
    "delegee_of",
    "extract_attenuation",
    "is_verified",
    "statement_matches",
    "verify",
)
