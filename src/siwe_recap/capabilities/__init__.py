# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Abilities, resources and the attenuation grant set."""

from .ability import (
    Ability,
    parse_ability,
    validate_action,
    validate_namespace,
    validate_resource,
)
from .attenuation import Attenuation, AttenuationBuilder, Restriction

__all__ = (
    "Ability",
    "Attenuation",
    "AttenuationBuilder",
    "Restriction",
    "parse_ability",
    "validate_action",
    "validate_namespace",
    "validate_resource",
)
