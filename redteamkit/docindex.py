"""Index of attack techniques by platform and MITRE ATT&CK tactic."""

from __future__ import annotations

import os
from typing import Any, Iterable, Mapping, Optional

import yaml

from redteamkit.platform import Platform
from redteamkit.tactics import tactic_to_string
from redteamkit.technique import AttackTechnique

__all__ = ["TechniqueIndex", "build_index", "generate_yaml"]

TechniqueIndex = dict[Optional[Platform], dict[str, list[AttackTechnique]]]


def build_index(techniques: Iterable[AttackTechnique]) -> TechniqueIndex:
    """Group techniques by platform, then by tactic name, keeping their order.

    A technique mapped to several tactics appears under each of them; a
    technique without tactics does not appear at all.
    """
    index: TechniqueIndex = {}
    for technique in techniques:
        for tactic in technique.mitre_attack_tactics:
            tactics_map = index.setdefault(technique.platform, {})
            tactics_map.setdefault(tactic_to_string(tactic), []).append(technique)
    return index


def _platform_key(platform: Optional[Platform]) -> str:
    if platform is None:
        raise ValueError("platform name not formatted")
    return platform.format_name()


def _yaml_document(index: Mapping[Optional[Platform], Mapping[str, list[AttackTechnique]]]) -> dict[str, Any]:
    document: dict[str, Any] = {}
    for platform_name, tactics_map in sorted(
        ((_platform_key(platform), tactics) for platform, tactics in index.items()),
        key=lambda item: item[0],
    ):
        document[platform_name] = {
            tactic: [technique.to_yaml_dict() for technique in tactics_map[tactic]]
            for tactic in sorted(tactics_map)
        }
    return document


def generate_yaml(
    path: str | os.PathLike[str],
    index: Mapping[Optional[Platform], Mapping[str, list[AttackTechnique]]],
) -> None:
    """Write the index as YAML to ``path``, replacing any existing file."""
    document = _yaml_document(index)
    with open(path, "w", encoding="utf-8") as handle:
        yaml.safe_dump(
            document,
            handle,
            sort_keys=False,
            indent=4,
            allow_unicode=True,
            default_flow_style=False,
        )