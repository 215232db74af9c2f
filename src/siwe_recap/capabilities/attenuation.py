# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Attenuation model and its value-returning builder.

An attenuation is the full grant set carried by one ReCap token:

    att: resource -> ability -> (restriction, ...)
    prf: (proof reference, ...)

Restrictions ("note bene" caveats) are string-keyed JSON objects. An empty
restriction sequence means the ability is granted unconditionally; several
entries are alternatives, any one of which satisfies the grant.

Ordering:
---------
Builders keep insertion order. Canonical (byte-wise sorted) order is applied
only by the codec and the statement generator, so two attenuations built from
the same grants in a different order compare equal and encode identically.
Restriction sequences and proofs are ordered data and never re-sorted.

Immutability:
-------------
A finished Attenuation is frozen all the way down: grant maps and
restriction objects are read-only ``MappingProxyType`` views and JSON
arrays become tuples. Equality and hashing follow the canonical JSON text,
so two attenuations compare equal exactly when they encode to the same
token (``True``, ``1`` and ``1.0`` are distinct restriction values).
"""

from __future__ import annotations

import copy
import json
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..errors import InvalidProofReference
from .ability import Ability, is_utf8, parse_ability, validate_resource

if TYPE_CHECKING:
    from ..config import RecapConfig
    from ..delegation.message import SiweMessage

__all__ = ("Attenuation", "AttenuationBuilder", "Grants", "Restriction")

Restriction = Mapping[str, Any]
Grants = dict[str, dict[str, tuple[dict[str, Any], ...]]]


def _copy_restrictions(restrictions: Iterable[Restriction]) -> tuple[dict[str, Any], ...]:
    """Detach caller-owned restriction objects and check their shape."""
    if isinstance(restrictions, Mapping) or isinstance(restrictions, str | bytes):
        raise TypeError(
            f"restrictions must be a sequence of mappings, got {type(restrictions).__name__}"
        )
    copied = []
    for restriction in restrictions:
        if not isinstance(restriction, Mapping):
            raise TypeError(f"restriction must be a mapping, got {type(restriction).__name__}")
        for key in restriction:
            if not isinstance(key, str):
                raise TypeError(f"restriction keys must be strings, got {key!r}")
        copied.append(_thaw(restriction))
    return tuple(copied)


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, list | tuple):
        return tuple(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    """Plain, caller-owned dict/list copy of a (possibly frozen) JSON value."""
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [_thaw(item) for item in value]
    return copy.deepcopy(value)


def _validate_proof(ref: Any) -> str:
    if not isinstance(ref, str) or not ref or not is_utf8(ref):
        raise InvalidProofReference(
            f"Invalid proof reference {ref!r}: must be a non-empty UTF-8 string",
            details={"proof": ref},
        )
    return ref


class Attenuation(BaseModel):
    """Finished, immutable grant set.

    Ability keys are stored in their wire form (``namespace/action``); query
    helpers accept either that string or an ``Ability``.
    """

    model_config = ConfigDict(frozen=True)

    att: Grants = Field(default_factory=dict)
    prf: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _check_grammar(self) -> Self:
        for resource, abilities in self.att.items():
            validate_resource(resource)
            for ability in abilities:
                parse_ability(ability)
        for ref in self.prf:
            _validate_proof(ref)
        object.__setattr__(
            self,
            "att",
            MappingProxyType(
                {
                    resource: MappingProxyType(
                        {name: _freeze(rs) for name, rs in abilities.items()}
                    )
                    for resource, abilities in self.att.items()
                }
            ),
        )
        return self

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Attenuation):
            return NotImplemented
        try:
            return self.canonical_json() == other.canonical_json()
        except (TypeError, ValueError):
            # no canonical form, so no token to disagree with
            return self.to_json_obj() == other.to_json_obj()

    def __hash__(self) -> int:
        try:
            return hash(self.canonical_json())
        except (TypeError, ValueError) as e:
            raise TypeError(f"unhashable Attenuation: {e}") from e

    @property
    def is_empty(self) -> bool:
        """True when nothing is granted (proofs alone grant nothing)."""
        return not self.att

    @property
    def resources(self) -> list[str]:
        """Resource keys in canonical order."""
        return sorted(self.att)

    def can(self, resource: str, ability: str | Ability) -> tuple[Restriction, ...] | None:
        """Restrictions under which ability is granted on resource, None if not granted."""
        abilities = self.att.get(resource)
        if abilities is None:
            return None
        return abilities.get(str(parse_ability(ability)))

    def abilities_for(self, resource: str) -> dict[Ability, tuple[Restriction, ...]] | None:
        """Abilities granted on resource, keyed by parsed Ability."""
        abilities = self.att.get(resource)
        if abilities is None:
            return None
        return {Ability.parse(name): abilities[name] for name in sorted(abilities)}

    def iter_grants(self) -> Iterator[tuple[str, Ability, tuple[Restriction, ...]]]:
        """Yield (resource, ability, restrictions) in canonical order."""
        for resource in sorted(self.att):
            abilities = self.att[resource]
            for name in sorted(abilities):
                yield resource, Ability.parse(name), abilities[name]

    def to_json_obj(self) -> dict[str, Any]:
        """Plain JSON shape ``{"att": {...}, "prf": [...]}`` in canonical key order."""
        return {
            "att": {
                resource: {
                    name: [_thaw(r) for r in self.att[resource][name]]
                    for name in sorted(self.att[resource])
                }
                for resource in sorted(self.att)
            },
            "prf": list(self.prf),
        }

    def canonical_json(self) -> str:
        """Compact JSON text with every object key sorted; the signed payload.

        Raises:
            TypeError, ValueError: restriction values JSON cannot represent
        """
        return json.dumps(
            self.to_json_obj(),
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )

    @classmethod
    def from_json_obj(cls, data: Any) -> Attenuation:
        """Validate the plain JSON shape produced by ``to_json_obj``.

        Raises:
            TypeError: structural mismatch (wrong container types, missing keys)
            RecapError: a resource, ability or proof violates the grammar
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"payload must be an object, got {type(data).__name__}")
        missing = {"att", "prf"} - set(data)
        if missing:
            raise TypeError(f"payload is missing {sorted(missing)}")
        extra = set(data) - {"att", "prf"}
        if extra:
            raise TypeError(f"payload has unexpected fields {sorted(extra)}")

        att, prf = data["att"], data["prf"]
        if not isinstance(att, Mapping):
            raise TypeError("'att' must be an object")
        if not isinstance(prf, list):
            raise TypeError("'prf' must be an array")

        builder = AttenuationBuilder()
        for resource, abilities in att.items():
            if not isinstance(abilities, Mapping):
                raise TypeError(f"abilities for {resource!r} must be an object")
            for ability, restrictions in abilities.items():
                if not isinstance(restrictions, list):
                    raise TypeError(f"restrictions for {resource!r} {ability!r} must be an array")
                builder = builder.add_ability(resource, ability, restrictions)
            if not abilities:
                validate_resource(resource)
                builder = builder._with_resource(resource)
        return builder.add_proofs(prf).finish()


class AttenuationBuilder(BaseModel):
    """Accumulates grants and proofs; every method returns a new builder.

    Usage:
        attenuation = (
            AttenuationBuilder()
            .add_ability("kepler:ens:example.eth://default/kv", "kv/get")
            .add_ability("kepler:ens:example.eth://default/kv", "kv/list")
            .add_proof("bafybeigdyrzt5sfp7udm7hu76uh7y26nf3efuylqabf3oclgtqy55fbzdi")
            .finish()
        )

    Nested mappings are copied only along the path being changed, so older
    builder values stay valid and unchanged.
    """

    model_config = ConfigDict(frozen=True)

    grants: Grants = Field(default_factory=dict)
    proofs: tuple[str, ...] = ()

    def add_ability(
        self,
        resource: str,
        ability: str | Ability,
        restrictions: Iterable[Restriction] = (),
    ) -> AttenuationBuilder:
        """Grant ability on resource.

        Restrictions for an already granted (resource, ability) pair are
        appended to the existing alternatives, duplicates included.

        Raises:
            InvalidResourceIdentifier, InvalidNamespace, InvalidAbility
        """
        validate_resource(resource)
        name = str(parse_ability(ability))
        added = _copy_restrictions(restrictions)

        abilities = dict(self.grants.get(resource, {}))
        abilities[name] = abilities.get(name, ()) + added
        grants = dict(self.grants)
        grants[resource] = abilities
        return self.model_copy(update={"grants": grants})

    def add_abilities(
        self,
        resource: str,
        abilities: Mapping[str | Ability, Iterable[Restriction]]
        | Iterable[tuple[str | Ability, Iterable[Restriction]]],
    ) -> AttenuationBuilder:
        """Grant several abilities on one resource; fails as a whole on any bad token."""
        items = abilities.items() if isinstance(abilities, Mapping) else abilities
        builder = self
        for ability, restrictions in items:
            builder = builder.add_ability(resource, ability, restrictions)
        return builder

    def add_proof(self, ref: str) -> AttenuationBuilder:
        """Append an opaque proof reference; duplicates are kept."""
        return self.model_copy(update={"proofs": (*self.proofs, _validate_proof(ref))})

    def add_proofs(self, refs: Iterable[str]) -> AttenuationBuilder:
        refs = tuple(_validate_proof(ref) for ref in refs)
        return self.model_copy(update={"proofs": self.proofs + refs})

    def merge(self, other: AttenuationBuilder | Attenuation) -> AttenuationBuilder:
        """Union of both grant sets; restrictions concatenate, proofs append."""
        if isinstance(other, Attenuation):
            grants, proofs = other.att, other.prf
        else:
            grants, proofs = other.grants, other.proofs

        builder = self
        for resource, abilities in grants.items():
            if not abilities:
                builder = builder._with_resource(resource)
            for name, restrictions in abilities.items():
                builder = builder.add_ability(resource, name, restrictions)
        return builder.add_proofs(proofs)

    def finish(self) -> Attenuation:
        """Freeze the accumulated grants into an Attenuation."""
        return Attenuation(att=self.grants, prf=self.proofs)

    def build_message(
        self, message: SiweMessage, *, config: RecapConfig | None = None
    ) -> SiweMessage:
        """Shortcut for ``build_message(message, self.finish())``."""
        from ..delegation.assembler import build_message

        return build_message(message, self.finish(), config=config)

    def _with_resource(self, resource: str) -> AttenuationBuilder:
        # resource with no abilities; only reachable when decoding or merging
        if resource in self.grants:
            return self
        grants = dict(self.grants)
        grants[resource] = {}
        return self.model_copy(update={"grants": grants})
