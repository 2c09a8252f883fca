"""Attack technique definitions and their lifecycle states."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from redteamkit.platform import Platform
from redteamkit.tactics import Tactic, tactic_to_string

__all__ = ["AttackTechniqueState", "AttackTechnique", "TechniqueAction"]

TechniqueAction = Callable[[Mapping[str, str], Any], None]


class AttackTechniqueState(str, Enum):
    """Where a technique is in its warm-up / detonation lifecycle."""

    COLD = "COLD"
    WARM = "WARM"
    DETONATED = "DETONATED"

    def __str__(self) -> str:
        return self.value


@dataclass(eq=False)
class AttackTechnique:
    """An attack technique that can be warmed up, detonated and reverted.

    ``detonate`` and ``revert`` receive the Terraform outputs and a cloud
    provider factory, and raise on failure.
    """

    id: str
    friendly_name: str = ""
    description: str = ""
    detection: str = ""
    is_slow: bool = False
    mitre_attack_tactics: list[Tactic] = field(default_factory=list)
    platform: Optional[Platform] = None
    prerequisites_terraform_code: Optional[bytes] = None
    detonate: Optional[TechniqueAction] = None
    is_idempotent: bool = False
    revert: Optional[TechniqueAction] = None

    def __str__(self) -> str:
        return self.id

    def to_yaml_dict(self) -> dict[str, Any]:
        """Return the fields published in the YAML index, in index order."""
        if self.platform is None:
            raise ValueError("platform name not formatted")
        return {
            "id": self.id,
            "name": self.friendly_name,
            "isSlow": self.is_slow,
            "mitreAttackTactics": [tactic_to_string(t) for t in self.mitre_attack_tactics],
            "platform": self.platform.format_name(),
            "isIdempotent": self.is_idempotent,
        }