"""Registry of known attack techniques."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from redteamkit.platform import Platform
from redteamkit.tactics import Tactic
from redteamkit.technique import AttackTechnique

__all__ = ["AttackTechniqueFilter", "Registry", "get_registry"]


@dataclass(frozen=True)
class AttackTechniqueFilter:
    """Selects techniques by platform and tactic; unset criteria match all."""

    platform: Optional[Platform] = None
    tactic: Tactic = Tactic.UNSPECIFIED

    def matches(self, technique: AttackTechnique) -> bool:
        """Return whether the technique satisfies every set criterion."""
        platform_matches = self.platform is None or technique.platform == self.platform
        tactic_matches = (
            self.tactic == Tactic.UNSPECIFIED or self.tactic in technique.mitre_attack_tactics
        )
        return platform_matches and tactic_matches


class Registry:
    """An ordered collection of attack techniques."""

    def __init__(self) -> None:
        self._techniques: list[AttackTechnique] = []

    def register(self, technique: AttackTechnique) -> None:
        """Add a technique to the registry."""
        self._techniques.append(technique)

    def get_by_name(self, name: str) -> Optional[AttackTechnique]:
        """Return the first technique with the given ID, or None."""
        return next((t for t in self._techniques if t.id == name), None)

    def filter(self, technique_filter: Optional[AttackTechniqueFilter] = None) -> list[AttackTechnique]:
        """Return the techniques matching the filter, in registration order."""
        if technique_filter is None:
            return list(self._techniques)
        return [t for t in self._techniques if technique_filter.matches(t)]

    def techniques(self) -> list[AttackTechnique]:
        """Return every registered technique, in registration order."""
        return list(self._techniques)

    def __len__(self) -> int:
        return len(self._techniques)

    def __iter__(self):
        return iter(self._techniques)


_registry = Registry()


def get_registry() -> Registry:
    """Return the process-wide registry."""
    return _registry