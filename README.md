# redteamkit

A toolkit for describing cloud attack techniques, keeping track of their
lifecycle, and producing documentation about them.

Each technique has a platform (AWS, Azure, GCP, Kubernetes, Entra ID or EKS)
and is mapped to one or more MITRE ATT&CK tactics. A technique goes through
three states (`AttackTechniqueState`):

- `COLD`: nothing has been created yet.
- `WARM`: the prerequisites have been created with Terraform.
- `DETONATED`: the attack has been run against the prerequisites.

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## Describing techniques

```python
from redteamkit.platform import Platform
from redteamkit.tactics import Tactic
from redteamkit.technique import AttackTechnique
from redteamkit.registry import AttackTechniqueFilter, get_registry

registry = get_registry()
registry.register(
    AttackTechnique(
        id="k8s.credential-access.dump-secrets",
        friendly_name="Dump All Secrets",
        platform=Platform.KUBERNETES,
        mitre_attack_tactics=[Tactic.CREDENTIAL_ACCESS],
        is_idempotent=True,
    )
)

registry.get_by_name("k8s.credential-access.dump-secrets")
registry.filter(AttackTechniqueFilter(platform=Platform.KUBERNETES))
registry.filter(AttackTechniqueFilter(tactic=Tactic.PERSISTENCE))
```

`get_by_name` returns `None` when no technique has that ID. A filter criterion
left unset matches every technique.

Platform and tactic names are parsed case-insensitively with
`platform_from_string` and `tactic_from_string`; unknown names raise
`ValueError`. `Platform.format_name()` and `tactic_to_string()` give the
display names, and `all_tactics()` lists every tactic.

`AttackTechnique.detonate` and `AttackTechnique.revert` are callables taking
the Terraform outputs (a `dict[str, str]`) and a provider factory object; they
raise to signal failure.

## Running a technique

`redteamkit.runner.Runner` drives a technique through its lifecycle:

- `warm_up()` writes the technique's Terraform code to its state directory,
  asks the Terraform manager to apply it, persists the outputs and returns
  them. A technique without Terraform code returns `{}`. An already warm
  technique is not warmed up again unless `force=True`; a detonated one is
  never warmed up again. If applying fails, `destroy` is attempted.
- `detonate()` warms up if needed, then calls the technique's `detonate`. A
  technique that is not idempotent cannot be detonated twice unless
  `force=True`.
- `revert()` calls the technique's `revert`; it refuses unless the technique
  is `DETONATED` or `force=True`.
- `clean_up()` reverts if needed, destroys the prerequisites and removes the
  technique's state directory. It refuses on a `COLD` technique unless
  `force=True`; with `force=True` a failed revert is ignored.

`Runner.state` and `Runner.unique_execution_id` report the current state and
the correlation identifier. Failures are raised as `RunnerError`.

State and Terraform outputs are kept by a
`redteamkit.state.FileSystemStateManager`, by default under
`~/.stratus-red-team/<technique id>/` (`main.tf`, `.state`,
`.terraform-outputs`). Its file operations go through a `FileSystem` object,
`LocalFileSystem` by default, so another can be supplied.

The Terraform manager is any object with `init_and_apply(directory)` returning
the outputs and `destroy(directory)` (the `TerraformManager` protocol).
`parse_terraform_outputs` strips the quotes Terraform puts around string
outputs, and `terraform_error_message` gives a friendlier message when the
AWS region is missing.

When no correlation identifier is given, `correlation_id_from_env()` reads
`STRATUS_RED_TEAM_DETONATION_ID`; if it is unset or not a valid UUID, a random
one is generated. `redteamkit.utils.user_agent_for()` turns that identifier
into a `stratus-red-team_<uuid>` user agent.

## Helpers

`redteamkit.utils` holds small helpers: `random_string`, `random_hex_string`,
`md5_hash_base64`, `sha256_hash`, `file_exists`, `coalesce_error`,
`is_error_due_to_ebs_encryption_by_default` (recognises AWS errors raised when
sharing snapshots or images encrypted with the default key) and
`attacker_principal()`, which reads `STRATUS_RED_TEAM_ATTACKER_EMAIL`, lower-cases
it and returns it as a `user:` principal, falling back to
`user:attacker@example.com`.

## Generating documentation

```
redteamkit-docs path/to/docs
```

The command indexes the techniques in the process-wide registry and writes,
under the given directory:

- `attack-techniques/mitre-attack-coverage-matrices.md`: one table per
  platform, tactics as columns in MITRE ATT&CK order;
- `index.yaml`: the techniques by platform and tactic, each with `id`, `name`,
  `isSlow`, `mitreAttackTactics`, `platform` and `isIdempotent`.

It exits with status 1 if the directory argument is missing or a file cannot
be written. The same pieces are available from Python:
`redteamkit.docindex.build_index` and `generate_yaml`, and
`redteamkit.docs.render_coverage_matrices`, `generate_coverage_matrices`,
`find_detonation_logs`, `format_description` and `format_platform_name`.

## What this package does not do

- It ships no attack techniques: the registry starts empty, so the
  documentation command produces empty tables until techniques are registered
  in the same process.
- It does not install or run Terraform; the caller supplies the Terraform
  manager.
- It has no clients for AWS, Azure, GCP, Kubernetes or Entra ID, and does not
  check that the user is authenticated; the provider factory passed to
  techniques is whatever the caller gives.
- The documentation command writes no per-technique pages or per-platform
  index pages.