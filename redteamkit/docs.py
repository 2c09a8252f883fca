"""Documentation generation: coverage matrices, YAML index and detonation logs."""

from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Sequence

from redteamkit.docindex import build_index, generate_yaml
from redteamkit.platform import Platform
from redteamkit.registry import get_registry
from redteamkit.technique import AttackTechnique

__all__ = [
    "MITRE_TACTIC_ORDER",
    "DetonationLogs",
    "render_coverage_matrices",
    "generate_coverage_matrices",
    "find_detonation_logs",
    "format_description",
    "format_platform_name",
    "main",
]

MITRE_TACTIC_ORDER = (
    "Reconnaissance",
    "Resource Development",
    "Initial Access",
    "Execution",
    "Persistence",
    "Privilege Escalation",
    "Defense Evasion",
    "Credential Access",
    "Discovery",
    "Lateral Movement",
    "Collection",
    "Command and Control",
    "Exfiltration",
    "Impact",
)

_COVERAGE_PLATFORMS = (
    Platform.AWS,
    Platform.AZURE,
    Platform.GCP,
    Platform.KUBERNETES,
    Platform.ENTRA_ID,
    Platform.EKS,
)

_COVERAGE_HEADER = """
<style>
    .table-container {
        max-width: 80%; /* Ensures it doesn't go beyond the page */
        padding: 10px;
        margin-bottom: 20px;
    }
    table {
        width: 100%;
        border-collapse: collapse;
        margin: 20px 0;
        font-size: 16px;
        white-space: nowrap; /* Prevents text wrapping in cells */
    }
    th, td {
        border: 1px solid #ddd;
        padding: 8px;
        text-align: center;
    }
    .md-sidebar.md-sidebar--secondary { display: none; }
    .md-content { min-width: 100%; }
</style>

# MITRE ATT&CK Coverage by Platform

This provides coverage matrices of MITRE ATT&CK tactics and techniques currently covered by Stratus Red Team for different cloud platforms.
"""

COVERAGE_FILE_NAME = "mitre-attack-coverage-matrices.md"


@dataclass
class DetonationLogs:
    """Recorded logs of a detonation, prepared for the technique's page."""

    event_names: list[str] = field(default_factory=list)
    raw_logs: str = ""
    event_name_lines: list[int] = field(default_factory=list)


def format_platform_name(platform: Platform | str) -> str:
    """Return the display name of a platform; raise ValueError if unknown."""
    try:
        return Platform(platform).format_name()
    except ValueError:
        raise ValueError(f"unknown platform {platform}") from None


def format_description(description: str) -> str:
    """Render the Warm-up and Detonation headings in small caps."""
    description = description.replace(
        "Warm-up:", '<span style="font-variant: small-caps;">Warm-up</span>:'
    )
    return description.replace(
        "Detonation:", '<span style="font-variant: small-caps;">Detonation</span>:'
    )


def _technique_cell(technique: AttackTechnique) -> str:
    platform_name = technique.platform.format_name() if technique.platform is not None else ""
    return f'<a href="../{platform_name}/{technique.id}">{technique.friendly_name}</a>'


def _render_platform(platform: Platform, tactics_map: Mapping[str, list[AttackTechnique]]) -> str:
    sorted_tactics = [tactic for tactic in MITRE_TACTIC_ORDER if tactic in tactics_map]
    columns = [[_technique_cell(t) for t in tactics_map[tactic]] for tactic in sorted_tactics]
    max_rows = max((len(column) for column in columns), default=0)

    parts = [
        f"<h2>{platform.format_name()}</h2>\n",
        '<div class="table-container">',
        "<table>\n",
        "<thead><tr>",
        *(f"<th>{tactic}</th>" for tactic in sorted_tactics),
        "</tr></thead>\n<tbody>\n",
    ]
    for row_number in range(max_rows):
        parts.append("<tr>")
        for column in columns:
            cell = column[row_number] if row_number < len(column) else ""
            parts.append(f"<td>{cell}</td>")
        parts.append("</tr>\n")
    parts.append("</tbody>\n</table>\n</div>\n")
    return "".join(parts)


def render_coverage_matrices(index: Mapping[Optional[Platform], Mapping[str, list[AttackTechnique]]]) -> str:
    """Return the Markdown page holding one coverage table per platform."""
    sections = [_render_platform(platform, index.get(platform, {})) for platform in _COVERAGE_PLATFORMS]
    return _COVERAGE_HEADER + "".join(sections)


def generate_coverage_matrices(
    index: Mapping[Optional[Platform], Mapping[str, list[AttackTechnique]]],
    docs_directory: str | os.PathLike[str],
) -> Path:
    """Write the coverage matrices page under ``docs_directory``; return its path."""
    output_path = Path(docs_directory) / "attack-techniques" / COVERAGE_FILE_NAME
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_coverage_matrices(index), encoding="utf-8")
    print(f"Generated MITRE ATT&CK coverage markdown file: {output_path}")
    return output_path


def find_detonation_logs(
    technique_id: str, logs_directory: str | os.PathLike[str]
) -> Optional[DetonationLogs]:
    """Load ``<technique_id>.json`` from the logs directory.

    Return None when the file does not exist or is not valid JSON.
    """
    path = Path(logs_directory) / f"{technique_id}.json"
    try:
        data = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None

    try:
        events = json.loads(data)
    except json.JSONDecodeError as exc:
        print(
            f"unable to parse JSON detonation logs for technique {technique_id}: {exc}",
            file=sys.stderr,
        )
        return None

    event_names = sorted(
        {
            f"{event['eventSource'].removesuffix('.amazonaws.com')}:{event['eventName']}"
            for event in events
        }
    )

    raw_logs = data.replace("\n", "\n\t")
    event_name_lines = [
        line_number
        for line_number, line in enumerate(raw_logs.split("\n"), start=1)
        if '"eventName":' in line
    ]
    return DetonationLogs(event_names=event_names, raw_logs=raw_logs, event_name_lines=event_name_lines)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Generate the coverage matrices and the YAML index into a docs directory."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 1:
        print("specify the docs output directory", file=sys.stderr)
        return 1
    docs_directory = Path(args[0])

    index = build_index(get_registry().techniques())

    try:
        generate_coverage_matrices(index, docs_directory)
    except (OSError, ValueError) as exc:
        print("Could not generate MITRE ATT&CK coverage file", file=sys.stderr)
        print(exc, file=sys.stderr)
        return 1

    try:
        generate_yaml(docs_directory / "index.yaml", index)
    except (OSError, ValueError) as exc:
        print("Could not generate YAML index", file=sys.stderr)
        print(exc, file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())