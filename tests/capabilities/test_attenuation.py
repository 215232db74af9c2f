# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Tests for Attenuation and AttenuationBuilder.

Test Surface:
    - AttenuationBuilder (add_ability, add_abilities, add_proof(s), merge, finish)
    - Builder purity (older values unchanged, no aliasing of caller data)
    - Restriction merge policy (concatenate, duplicates kept)
    - Attenuation queries (can, abilities_for, resources, iter_grants, is_empty)
    - Attenuation.from_json_obj / to_json_obj
    - Immutability of finished attenuations and canonical equality
"""

from __future__ import annotations

import pytest

from siwe_recap.capabilities import Ability, Attenuation, AttenuationBuilder
from siwe_recap.translation import encode
from siwe_recap.errors import (
    InvalidAbility,
    InvalidNamespace,
    InvalidProofReference,
    InvalidResourceIdentifier,
)

KV = "kepler:ens:example.eth://default/kv"
CRED = "urn:credential:type:type1"


# =============================================================================
# Builder
# =============================================================================


class TestAddAbility:
    def test_default_restrictions_are_unconditional(self):
        attenuation = AttenuationBuilder().add_ability(KV, "kv/get").finish()
        assert attenuation.att == {KV: {"kv/get": ()}}

    def test_accepts_ability_instance(self):
        attenuation = AttenuationBuilder().add_ability(KV, Ability.parse("kv/get")).finish()
        assert attenuation.can(KV, "kv/get") == ()

    def test_same_pair_concatenates_restrictions(self):
        attenuation = (
            AttenuationBuilder()
            .add_ability(KV, "kv/get", [{"path": "a"}])
            .add_ability(KV, "kv/get", [{"path": "b"}, {"path": "a"}])
            .finish()
        )
        assert attenuation.can(KV, "kv/get") == ({"path": "a"}, {"path": "b"}, {"path": "a"})

    @pytest.mark.parametrize(
        ("resource", "ability", "error"),
        [
            ("", "kv/get", InvalidResourceIdentifier),
            (KV, "kv", InvalidAbility),
            (KV, "/get", InvalidNamespace),
            (KV, "kv/", InvalidAbility),
        ],
    )
    def test_rejects_bad_tokens(self, resource, ability, error):
        with pytest.raises(error):
            AttenuationBuilder().add_ability(resource, ability)

    def test_rejects_non_mapping_restriction(self):
        with pytest.raises(TypeError):
            AttenuationBuilder().add_ability(KV, "kv/get", ["not-a-mapping"])

    def test_rejects_single_mapping_instead_of_sequence(self):
        with pytest.raises(TypeError):
            AttenuationBuilder().add_ability(KV, "kv/get", {"path": "a"})


class TestBuilderPurity:
    def test_add_ability_returns_new_builder(self):
        base = AttenuationBuilder().add_ability(KV, "kv/get")
        extended = base.add_ability(KV, "kv/put")

        assert base.finish().att == {KV: {"kv/get": ()}}
        assert extended.finish().att == {KV: {"kv/get": (), "kv/put": ()}}

    def test_failed_call_leaves_builder_usable(self):
        base = AttenuationBuilder().add_ability(KV, "kv/get")
        with pytest.raises(InvalidAbility):
            base.add_ability(KV, "kv-put")
        assert base.finish().att == {KV: {"kv/get": ()}}

    def test_caller_restrictions_are_copied(self):
        restriction = {"paths": ["a"]}
        attenuation = AttenuationBuilder().add_ability(KV, "kv/get", [restriction]).finish()
        restriction["paths"].append("b")
        assert attenuation.can(KV, "kv/get") == ({"paths": ("a",)},)

    def test_finish_detaches_from_builder(self):
        restriction = {"n": 1}
        builder = AttenuationBuilder().add_ability(KV, "kv/get", [restriction])
        first = builder.finish()
        builder.grants[KV]["kv/get"][0]["n"] = 2
        assert first.can(KV, "kv/get") == ({"n": 1},)


class TestFrozenAttenuation:
    @pytest.fixture
    def attenuation(self):
        return (
            AttenuationBuilder()
            .add_ability(KV, "kv/get", [{"n": 1, "paths": ["a"], "meta": {"k": "v"}}])
            .finish()
        )

    def test_grant_map_is_read_only(self, attenuation):
        with pytest.raises(TypeError):
            attenuation.att[CRED] = {}  # type: ignore[index]

    def test_ability_map_is_read_only(self, attenuation):
        with pytest.raises(TypeError):
            attenuation.att[KV]["kv/put"] = ()  # type: ignore[index]

    def test_restriction_is_read_only(self, attenuation):
        (restriction,) = attenuation.can(KV, "kv/get")
        with pytest.raises(TypeError):
            restriction["n"] = 2  # type: ignore[index]
        with pytest.raises(TypeError):
            restriction["meta"]["k"] = "w"  # type: ignore[index]
        with pytest.raises(AttributeError):
            restriction["paths"].append("b")

    def test_failed_mutation_leaves_token_unchanged(self, attenuation):
        token = encode(attenuation)
        with pytest.raises(TypeError):
            attenuation.att[KV]["kv/get"][0]["n"] = 2  # type: ignore[index]
        assert encode(attenuation) == token

    def test_to_json_obj_is_a_detached_copy(self, attenuation):
        obj = attenuation.to_json_obj()
        obj["att"][KV]["kv/get"][0]["paths"].append("b")
        assert attenuation.can(KV, "kv/get")[0]["paths"] == ("a",)

    def test_frozen_restrictions_merge_into_new_builder(self, attenuation):
        merged = AttenuationBuilder().merge(attenuation)
        merged.grants[KV]["kv/get"][0]["paths"].append("b")
        assert attenuation.can(KV, "kv/get")[0]["paths"] == ("a",)
        assert merged.finish() != attenuation


class TestAddAbilities:
    def test_mapping_form(self):
        attenuation = (
            AttenuationBuilder()
            .add_abilities(KV, {"kv/get": [], "kv/list": [{"prefix": "x"}]})
            .finish()
        )
        assert attenuation.att == {KV: {"kv/get": (), "kv/list": ({"prefix": "x"},)}}

    def test_pairs_form(self):
        attenuation = AttenuationBuilder().add_abilities(KV, [("kv/get", []), ("kv/put", [])]).finish()
        assert set(attenuation.att[KV]) == {"kv/get", "kv/put"}

    def test_all_or_nothing(self):
        base = AttenuationBuilder()
        with pytest.raises(InvalidAbility):
            base.add_abilities(KV, {"kv/get": [], "bad": []})
        assert base.finish().is_empty


class TestProofs:
    def test_add_proof_keeps_order_and_duplicates(self):
        attenuation = (
            AttenuationBuilder().add_proof("bafy1").add_proof("bafy2").add_proof("bafy1").finish()
        )
        assert attenuation.prf == ("bafy1", "bafy2", "bafy1")

    def test_add_proofs(self):
        attenuation = AttenuationBuilder().add_proofs(["bafy1", "bafy2"]).finish()
        assert attenuation.prf == ("bafy1", "bafy2")

    @pytest.mark.parametrize("ref", ["", None, 3, "bafy\ud800"])
    def test_rejects_invalid_proof(self, ref):
        with pytest.raises(InvalidProofReference):
            AttenuationBuilder().add_proof(ref)


class TestMerge:
    def test_merge_unions_grants_and_appends_proofs(self):
        left = AttenuationBuilder().add_ability(KV, "kv/get", [{"a": 1}]).add_proof("p1")
        right = (
            AttenuationBuilder()
            .add_ability(KV, "kv/get", [{"b": 2}])
            .add_ability(CRED, "credential/present")
            .add_proof("p2")
        )
        merged = left.merge(right).finish()

        assert merged.can(KV, "kv/get") == ({"a": 1}, {"b": 2})
        assert merged.can(CRED, "credential/present") == ()
        assert merged.prf == ("p1", "p2")

    def test_merge_accepts_finished_attenuation(self):
        other = AttenuationBuilder().add_ability(CRED, "credential/present").finish()
        merged = AttenuationBuilder().merge(other).finish()
        assert merged == other


# =============================================================================
# Attenuation
# =============================================================================


class TestAttenuation:
    def test_structural_equality_ignores_insertion_order(self):
        a = AttenuationBuilder().add_ability(KV, "kv/get").add_ability(CRED, "credential/present")
        b = AttenuationBuilder().add_ability(CRED, "credential/present").add_ability(KV, "kv/get")
        assert a.finish() == b.finish()

    @pytest.mark.parametrize(("left", "right"), [(True, 1), (1, 1.0), (True, 1.0), (0, False)])
    def test_equality_follows_canonical_encoding(self, left, right):
        a = AttenuationBuilder().add_ability(KV, "kv/get", [{"v": left}]).finish()
        b = AttenuationBuilder().add_ability(KV, "kv/get", [{"v": right}]).finish()
        assert encode(a) != encode(b)
        assert a != b
        assert len({a, b}) == 2

    def test_equal_attenuations_hash_equal(self):
        a = AttenuationBuilder().add_ability(KV, "kv/get", [{"x": 1, "y": [1]}]).finish()
        b = AttenuationBuilder().add_ability(KV, "kv/get", [{"y": (1,), "x": 1}]).finish()
        assert a == b
        assert hash(a) == hash(b)
        assert encode(a) == encode(b)

    def test_unencodable_attenuation_is_unhashable(self):
        attenuation = AttenuationBuilder().add_ability(KV, "kv/get", [{"v": float("nan")}]).finish()
        with pytest.raises(TypeError):
            hash(attenuation)

    def test_restriction_order_matters_for_equality(self):
        a = AttenuationBuilder().add_ability(KV, "kv/get", [{"x": 1}, {"x": 2}]).finish()
        b = AttenuationBuilder().add_ability(KV, "kv/get", [{"x": 2}, {"x": 1}]).finish()
        assert a != b

    def test_empty(self):
        assert Attenuation().is_empty
        assert AttenuationBuilder().add_proof("p").finish().is_empty
        assert not AttenuationBuilder().add_ability(KV, "kv/get").finish().is_empty

    def test_can_when_not_granted_then_none(self):
        attenuation = AttenuationBuilder().add_ability(KV, "kv/get").finish()
        assert attenuation.can(KV, "kv/put") is None
        assert attenuation.can(CRED, "kv/get") is None

    def test_can_validates_ability(self):
        attenuation = AttenuationBuilder().add_ability(KV, "kv/get").finish()
        with pytest.raises(InvalidAbility):
            attenuation.can(KV, "kvget")

    def test_abilities_for(self):
        attenuation = (
            AttenuationBuilder().add_ability(KV, "kv/put").add_ability(KV, "kv/get").finish()
        )
        abilities = attenuation.abilities_for(KV)
        assert [str(a) for a in abilities] == ["kv/get", "kv/put"]
        assert attenuation.abilities_for(CRED) is None

    def test_resources_and_iter_grants_are_sorted(self):
        attenuation = (
            AttenuationBuilder()
            .add_ability(CRED, "credential/present")
            .add_ability(KV, "kv/put")
            .add_ability(KV, "kv/get")
            .finish()
        )
        assert attenuation.resources == [KV, CRED]
        assert [(r, str(a)) for r, a, _ in attenuation.iter_grants()] == [
            (KV, "kv/get"),
            (KV, "kv/put"),
            (CRED, "credential/present"),
        ]

    def test_frozen(self):
        attenuation = Attenuation()
        with pytest.raises(Exception):
            attenuation.prf = ("x",)  # type: ignore[misc]

    def test_direct_construction_checks_grammar(self):
        with pytest.raises(InvalidAbility):
            Attenuation(att={KV: {"kvget": ()}})


class TestJsonShape:
    def test_to_json_obj(self):
        attenuation = (
            AttenuationBuilder()
            .add_ability(KV, "kv/list")
            .add_ability(KV, "kv/get", [{"max": 3}])
            .add_proof("bafy")
            .finish()
        )
        assert attenuation.to_json_obj() == {
            "att": {KV: {"kv/get": [{"max": 3}], "kv/list": []}},
            "prf": ["bafy"],
        }

    def test_from_json_obj_inverts_to_json_obj(self):
        attenuation = (
            AttenuationBuilder()
            .add_ability(CRED, "credential/present", [{"issuer": "did:web:example.com"}])
            .add_ability(KV, "kv/get")
            .add_proofs(["p1", "p1"])
            .finish()
        )
        assert Attenuation.from_json_obj(attenuation.to_json_obj()) == attenuation

    def test_from_json_obj_keeps_resource_without_abilities(self):
        attenuation = Attenuation.from_json_obj({"att": {KV: {}}, "prf": []})
        assert attenuation.att == {KV: {}}

    @pytest.mark.parametrize(
        "data",
        [
            [],
            {"att": {}},
            {"prf": []},
            {"att": {}, "prf": [], "extra": 1},
            {"att": [], "prf": []},
            {"att": {}, "prf": {}},
            {"att": {KV: []}, "prf": []},
            {"att": {KV: {"kv/get": {}}}, "prf": []},
            {"att": {KV: {"kv/get": [1]}}, "prf": []},
        ],
    )
    def test_from_json_obj_rejects_bad_shape(self, data):
        with pytest.raises(TypeError):
            Attenuation.from_json_obj(data)

    def test_from_json_obj_rejects_bad_ability(self):
        with pytest.raises(InvalidAbility):
            Attenuation.from_json_obj({"att": {KV: {"kvget": []}}, "prf": []})
