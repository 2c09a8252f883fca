"""MITRE ATT&CK tactics known to the attack technique catalogue."""

from __future__ import annotations

from enum import IntEnum

__all__ = ["Tactic", "tactic_from_string", "tactic_to_string", "all_tactics"]


class Tactic(IntEnum):
    """A MITRE ATT&CK tactic. UNSPECIFIED means no tactic was given."""

    UNSPECIFIED = 0
    INITIAL_ACCESS = 1
    EXECUTION = 2
    PERSISTENCE = 3
    PRIVILEGE_ESCALATION = 4
    DEFENSE_EVASION = 5
    CREDENTIAL_ACCESS = 6
    DISCOVERY = 7
    LATERAL_MOVEMENT = 8
    COLLECTION = 9
    EXFILTRATION = 10
    IMPACT = 11

    def __str__(self) -> str:
        return tactic_to_string(self)


_TACTIC_NAMES: dict[Tactic, str] = {
    Tactic.UNSPECIFIED: "Unknown",
    Tactic.INITIAL_ACCESS: "Initial Access",
    Tactic.EXECUTION: "Execution",
    Tactic.PERSISTENCE: "Persistence",
    Tactic.PRIVILEGE_ESCALATION: "Privilege Escalation",
    Tactic.DEFENSE_EVASION: "Defense Evasion",
    Tactic.CREDENTIAL_ACCESS: "Credential Access",
    Tactic.DISCOVERY: "Discovery",
    Tactic.LATERAL_MOVEMENT: "Lateral Movement",
    Tactic.COLLECTION: "Collection",
    Tactic.EXFILTRATION: "Exfiltration",
    Tactic.IMPACT: "Impact",
}


def tactic_from_string(name: str) -> Tactic:
    """Return the tactic whose display name matches ``name``, ignoring case."""
    lower_name = name.lower()
    for tactic, tactic_name in _TACTIC_NAMES.items():
        if tactic_name.lower() == lower_name:
            return tactic
    raise ValueError(f"unknown MITRE ATT&CK tactic: {name}")


def tactic_to_string(tactic: Tactic | int) -> str:
    """Return the display name of a tactic."""
    return _TACTIC_NAMES[Tactic(tactic)]


def all_tactics() -> list[Tactic]:
    """Return every tactic in catalogue order, UNSPECIFIED first."""
    return list(Tactic)