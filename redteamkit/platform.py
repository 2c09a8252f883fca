"""Cloud platforms that attack techniques target."""

from __future__ import annotations

from enum import Enum

__all__ = ["Platform", "platform_from_string"]


class Platform(str, Enum):
    """A platform an attack technique runs against."""

    AWS = "AWS"
    EKS = "EKS"
    KUBERNETES = "kubernetes"
    AZURE = "azure"
    ENTRA_ID = "entra-id"
    GCP = "GCP"

    def __str__(self) -> str:
        return self.value

    def format_name(self) -> str:
        """Return the human-friendly name of the platform."""
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES: dict[Platform, str] = {
    Platform.AWS: "AWS",
    Platform.AZURE: "Azure",
    Platform.ENTRA_ID: "Entra ID",
    Platform.GCP: "GCP",
    Platform.KUBERNETES: "Kubernetes",
    Platform.EKS: "EKS",
}


def platform_from_string(name: str) -> Platform:
    """Return the platform whose identifier matches ``name``, ignoring case."""
    lower_name = name.lower()
    for platform in Platform:
        if platform.value.lower() == lower_name:
            return platform
    raise ValueError(f"unknown platform: {name}")