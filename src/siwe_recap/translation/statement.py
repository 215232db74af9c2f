# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Human-readable rendering of an Attenuation.

Format:
    I further authorize <delegee> to perform the following actions on my
    behalf: (1) "<namespace>": <action>, <action> for "<resource>", "<resource>".
    (2) ...

Resources sharing the exact same action set within a namespace collapse into
one clause. Restrictions are not rendered. Every sort is plain code-point
order, which equals UTF-8 byte order, so output never depends on locale.
"""

from __future__ import annotations

from collections import defaultdict

from ..capabilities.attenuation import Attenuation

__all__ = ("PREAMBLE_TEMPLATE", "merge_statement", "statement_lines", "to_statement")

PREAMBLE_TEMPLATE = "I further authorize {delegee} to perform the following actions on my behalf: "


def _line_groups(attenuation: Attenuation) -> list[tuple[str, tuple[str, ...], list[str]]]:
    """(namespace, actions, resources) groups in rendering order."""
    # namespace -> resource -> actions
    by_namespace: dict[str, dict[str, set[str]]] = defaultdict(lambda: defaultdict(set))
    for resource, ability, _ in attenuation.iter_grants():
        by_namespace[ability.namespace][resource].add(ability.action)

    groups = []
    for namespace in sorted(by_namespace):
        by_actions: dict[tuple[str, ...], list[str]] = defaultdict(list)
        for resource, actions in by_namespace[namespace].items():
            by_actions[tuple(sorted(actions))].append(resource)

        entries = [(actions, sorted(resources)) for actions, resources in by_actions.items()]
        entries.sort(key=lambda entry: (", ".join(entry[1]), ", ".join(entry[0])))
        groups.extend((namespace, actions, resources) for actions, resources in entries)
    return groups


def statement_lines(attenuation: Attenuation) -> list[str]:
    """Numbered clauses, one per (namespace, action set) group."""
    lines = []
    for n, (namespace, actions, resources) in enumerate(_line_groups(attenuation), start=1):
        targets = ", ".join(f'"{resource}"' for resource in resources)
        lines.append(f'({n}) "{namespace}": {", ".join(actions)} for {targets}.')
    return lines


def to_statement(attenuation: Attenuation, delegee: str) -> str:
    """Full ReCap sentence, or "" when nothing is granted."""
    lines = statement_lines(attenuation)
    if not lines:
        return ""
    return PREAMBLE_TEMPLATE.format(delegee=delegee) + " ".join(lines)


def merge_statement(original: str | None, generated: str, separator: str = "\n\n") -> str | None:
    """Append the generated sentence to a host statement."""
    if not generated:
        return original
    if not original:
        return generated
    return f"{original}{separator}{generated}"
