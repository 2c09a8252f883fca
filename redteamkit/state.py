"""On-disk persistence of attack technique state and Terraform outputs."""

from __future__ import annotations

import json
import logging
import os
import shutil
from pathlib import Path
from typing import Optional, Protocol

from redteamkit.technique import AttackTechnique, AttackTechniqueState
from redteamkit.utils import file_exists

__all__ = [
    "STATE_DIRECTORY_NAME",
    "TERRAFORM_OUTPUTS_FILE_NAME",
    "TECHNIQUE_STATE_FILE_NAME",
    "TERRAFORM_FILE_NAME",
    "FileSystem",
    "LocalFileSystem",
    "FileSystemStateManager",
    "default_state_manager",
]

logger = logging.getLogger(__name__)

STATE_DIRECTORY_NAME = ".stratus-red-team"
TERRAFORM_OUTPUTS_FILE_NAME = ".terraform-outputs"
TECHNIQUE_STATE_FILE_NAME = ".state"
TERRAFORM_FILE_NAME = "main.tf"


class FileSystem(Protocol):
    """The file operations the state manager relies on."""

    def file_exists(self, path: str) -> bool: ...

    def create_directory(self, path: str, mode: int) -> None: ...

    def remove_directory(self, path: str) -> None: ...

    def write_file(self, path: str, content: bytes, mode: int) -> None: ...

    def read_file(self, path: str) -> bytes: ...


class LocalFileSystem:
    """File operations on the local disk."""

    def file_exists(self, path: str) -> bool:
        return file_exists(path)

    def create_directory(self, path: str, mode: int) -> None:
        os.mkdir(path, mode)

    def remove_directory(self, path: str) -> None:
        """Remove a path and everything below it; a missing path is fine."""
        if not os.path.lexists(path):
            return
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        else:
            os.remove(path)

    def write_file(self, path: str, content: bytes, mode: int) -> None:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
        with os.fdopen(fd, "wb") as handle:
            handle.write(content)

    def read_file(self, path: str) -> bytes:
        return Path(path).read_bytes()


class FileSystemStateManager:
    """Keeps the state of one attack technique in a directory of its own."""

    def __init__(
        self,
        technique: AttackTechnique,
        root_directory: Optional[str | os.PathLike[str]] = None,
        file_system: Optional[FileSystem] = None,
    ) -> None:
        if root_directory is None:
            root_directory = Path.home() / STATE_DIRECTORY_NAME
        self.root_directory = os.fspath(root_directory)
        self.technique = technique
        self.file_system: FileSystem = file_system if file_system is not None else LocalFileSystem()

    @property
    def technique_directory(self) -> str:
        return os.path.join(self.root_directory, self.technique.id)

    @property
    def _state_file(self) -> str:
        return os.path.join(self.technique_directory, TECHNIQUE_STATE_FILE_NAME)

    @property
    def _outputs_file(self) -> str:
        return os.path.join(self.technique_directory, TERRAFORM_OUTPUTS_FILE_NAME)

    def _ensure_directory(self, path: str) -> None:
        if self.file_system.file_exists(path):
            return
        try:
            self.file_system.create_directory(path, 0o744)
        except OSError as exc:
            raise RuntimeError(f"Unable to create persistent directory: {exc}") from exc

    def initialize(self) -> None:
        """Create the root and technique directories when missing."""
        if not self.file_system.file_exists(self.root_directory):
            logger.info("Creating %s as it doesn't exist yet", self.root_directory)
        self._ensure_directory(self.root_directory)
        self._ensure_directory(self.technique_directory)

    def extract_technique(self) -> None:
        """Write the technique's Terraform code into its directory."""
        terraform_file = os.path.join(self.technique_directory, TERRAFORM_FILE_NAME)
        code = self.technique.prerequisites_terraform_code or b""
        self.file_system.write_file(terraform_file, code, 0o644)

    def cleanup_technique(self) -> None:
        """Remove the technique's directory."""
        self.file_system.remove_directory(self.technique_directory)

    def read_terraform_outputs(self) -> dict[str, str]:
        """Return the persisted Terraform outputs, or an empty dict."""
        if not self.file_system.file_exists(self._outputs_file):
            return {}
        raw = self.file_system.read_file(self._outputs_file)
        outputs = json.loads(raw)
        if not isinstance(outputs, dict):
            raise ValueError("persisted Terraform outputs are not a JSON object")
        return {str(key): str(value) for key, value in outputs.items()}

    def write_terraform_outputs(self, outputs: dict[str, str]) -> None:
        """Persist Terraform outputs as compact JSON."""
        content = json.dumps(outputs, sort_keys=True, separators=(",", ":")).encode()
        self.file_system.write_file(self._outputs_file, content, 0o744)

    def read_technique_state(self) -> Optional[AttackTechniqueState]:
        """Return the persisted state, or None when nothing was recorded."""
        try:
            raw = self.file_system.read_file(self._state_file)
        except OSError:
            return None
        if not raw:
            return None
        return AttackTechniqueState(raw.decode())

    def write_technique_state(self, state: AttackTechniqueState) -> None:
        """Persist the technique's state."""
        self.file_system.write_file(self._state_file, AttackTechniqueState(state).value.encode(), 0o744)


def default_state_manager(technique: AttackTechnique) -> FileSystemStateManager:
    """Return an initialized state manager rooted in the user's home directory."""
    manager = FileSystemStateManager(technique)
    manager.initialize()
    return manager