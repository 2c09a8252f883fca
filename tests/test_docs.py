import json

import pytest
import yaml

from redteamkit.docindex import build_index
from redteamkit.docs import (
    COVERAGE_FILE_NAME,
    DetonationLogs,
    find_detonation_logs,
    format_description,
    format_platform_name,
    generate_coverage_matrices,
    main,
    render_coverage_matrices,
)
from redteamkit.platform import Platform
from redteamkit.tactics import Tactic
from redteamkit.technique import AttackTechnique


def _index():
    return build_index(
        [
            AttackTechnique(
                id="aws.exfiltration.a",
                friendly_name="Exfil A",
                platform=Platform.AWS,
                mitre_attack_tactics=[Tactic.EXFILTRATION],
            ),
            AttackTechnique(
                id="aws.persistence.b",
                friendly_name="Persist B",
                platform=Platform.AWS,
                mitre_attack_tactics=[Tactic.PERSISTENCE],
            ),
            AttackTechnique(
                id="aws.persistence.c",
                friendly_name="Persist C",
                platform=Platform.AWS,
                mitre_attack_tactics=[Tactic.PERSISTENCE],
            ),
            AttackTechnique(
                id="entra-id.persistence.d",
                friendly_name="Persist D",
                platform=Platform.ENTRA_ID,
                mitre_attack_tactics=[Tactic.PERSISTENCE],
            ),
        ]
    )


def test_render_lists_platforms_in_fixed_order():
    content = render_coverage_matrices(_index())
    headings = ["<h2>AWS</h2>", "<h2>Azure</h2>", "<h2>GCP</h2>", "<h2>Kubernetes</h2>", "<h2>Entra ID</h2>", "<h2>EKS</h2>"]
    positions = [content.index(heading) for heading in headings]
    assert positions == sorted(positions)
    assert content.startswith("\n<style>")
    assert "# MITRE ATT&CK Coverage by Platform" in content


def test_render_orders_tactics_like_mitre():
    content = render_coverage_matrices(_index())
    aws_section = content.split("<h2>Azure</h2>")[0]
    assert aws_section.index("<th>Persistence</th>") < aws_section.index("<th>Exfiltration</th>")


def test_render_cells_link_to_technique_pages():
    content = render_coverage_matrices(_index())
    assert '<a href="../AWS/aws.persistence.b">Persist B</a>' in content
    assert '<a href="../Entra ID/entra-id.persistence.d">Persist D</a>' in content


def test_render_pads_shorter_columns_with_empty_cells():
    content = render_coverage_matrices(_index())
    aws_section = content.split("<h2>Azure</h2>")[0]
    rows = [line for line in aws_section.splitlines() if line.startswith("<tr><td>")]
    assert len(rows) == 2
    assert rows[1].endswith("<td></td></tr>")
    assert "Persist C" in rows[1]


def test_render_empty_platform_has_empty_table():
    content = render_coverage_matrices({})
    assert content.count("<thead><tr></tr></thead>") == 6
    assert "<td>" not in content


def test_generate_coverage_matrices_writes_file(tmp_path):
    path = generate_coverage_matrices(_index(), tmp_path)
    assert path == tmp_path / "attack-techniques" / COVERAGE_FILE_NAME
    assert path.read_text() == render_coverage_matrices(_index())


def test_generate_coverage_matrices_replaces_existing(tmp_path):
    target = tmp_path / "attack-techniques" / COVERAGE_FILE_NAME
    target.parent.mkdir(parents=True)
    target.write_text("old")
    generate_coverage_matrices({}, tmp_path)
    assert "old" not in target.read_text()


def test_find_detonation_logs(tmp_path):
    events = [
        {"eventSource": "s3.amazonaws.com", "eventName": "GetObject"},
        {"eventSource": "iam.amazonaws.com", "eventName": "CreateUser"},
        {"eventSource": "s3.amazonaws.com", "eventName": "GetObject"},
    ]
    data = json.dumps(events, indent=2)
    (tmp_path / "my-technique.json").write_text(data)

    logs = find_detonation_logs("my-technique", tmp_path)

    assert logs.event_names == ["iam:CreateUser", "s3:GetObject"]
    assert logs.raw_logs == data.replace("\n", "\n\t")
    lines = logs.raw_logs.split("\n")
    assert len(logs.event_name_lines) == 3
    assert all('"eventName":' in lines[n - 1] for n in logs.event_name_lines)


def test_find_detonation_logs_missing_file(tmp_path):
    assert find_detonation_logs("absent", tmp_path) is None


def test_find_detonation_logs_invalid_json(tmp_path):
    (tmp_path / "broken.json").write_text("{not json")
    assert find_detonation_logs("broken", tmp_path) is None


def test_detonation_logs_defaults():
    logs = DetonationLogs()
    assert logs.event_names == [] and logs.raw_logs == "" and logs.event_name_lines == []


def test_format_description():
    result = format_description("Warm-up: x\nDetonation: y")
    assert result == (
        '<span style="font-variant: small-caps;">Warm-up</span>: x\n'
        '<span style="font-variant: small-caps;">Detonation</span>: y'
    )


def test_format_description_leaves_other_text():
    assert format_description("nothing special") == "nothing special"


@pytest.mark.parametrize(
    "platform, expected",
    [(Platform.AWS, "AWS"), ("azure", "Azure"), (Platform.ENTRA_ID, "Entra ID"), ("kubernetes", "Kubernetes")],
)
def test_format_platform_name(platform, expected):
    assert format_platform_name(platform) == expected


def test_format_platform_name_unknown():
    with pytest.raises(ValueError, match="unknown platform"):
        format_platform_name("mainframe")


def test_main_requires_directory(capsys):
    assert main([]) == 1
    assert "specify the docs output directory" in capsys.readouterr().err


def test_main_rejects_extra_arguments():
    assert main(["a", "b"]) == 1


def test_main_generates_files(tmp_path):
    assert main([str(tmp_path)]) == 0
    coverage = (tmp_path / "attack-techniques" / COVERAGE_FILE_NAME).read_text()
    assert "# MITRE ATT&CK Coverage by Platform" in coverage
    loaded = yaml.safe_load((tmp_path / "index.yaml").read_text())
    assert isinstance(loaded, dict)
    assert set(loaded) <= {"AWS", "Azure", "GCP", "Kubernetes", "Entra ID", "EKS"}