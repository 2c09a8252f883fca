import os

import pytest

from redteamkit.state import (
    FileSystemStateManager,
    LocalFileSystem,
    default_state_manager,
)
from redteamkit.technique import AttackTechnique, AttackTechniqueState

ROOT = "/root/.stratus-red-team"


def noop(params, providers):
    return None


class FakeFileSystem:
    def __init__(self, exists=lambda path: False, files=None):
        self.exists = exists
        self.files = dict(files or {})
        self.calls = []

    def file_exists(self, path):
        self.calls.append(("file_exists", path))
        return self.exists(path)

    def create_directory(self, path, mode):
        self.calls.append(("create_directory", path))

    def remove_directory(self, path):
        self.calls.append(("remove_directory", path))

    def write_file(self, path, content, mode):
        self.calls.append(("write_file", path, content))

    def read_file(self, path):
        self.calls.append(("read_file", path))
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path]

    def called(self, *call):
        return call in self.calls

    def created(self):
        return [c[1] for c in self.calls if c[0] == "create_directory"]


def make_manager(fs, technique_id="my-technique", code=None):
    technique = AttackTechnique(id=technique_id, detonate=noop, prerequisites_terraform_code=code)
    return FileSystemStateManager(technique, ROOT, fs)


def test_creates_root_directory_if_not_exists():
    fs = FakeFileSystem()
    make_manager(fs, "foo").initialize()
    assert fs.created() == [ROOT, ROOT + "/foo"]


def test_does_not_create_root_directory_if_exists():
    fs = FakeFileSystem(exists=lambda p: p in (ROOT, ROOT + "/foo"))
    make_manager(fs, "foo").initialize()
    assert fs.created() == []


def test_extracts_technique_terraform_file():
    fs = FakeFileSystem(exists=lambda p: p == ROOT)
    manager = make_manager(fs, code=b"terraform")
    manager.initialize()
    manager.extract_technique()
    assert fs.created() == [ROOT + "/my-technique"]
    assert fs.called("write_file", ROOT + "/my-technique/main.tf", b"terraform")


def test_retrieves_technique_outputs():
    outputs_file = ROOT + "/my-technique/.terraform-outputs"
    fs = FakeFileSystem(exists=lambda p: p == outputs_file, files={outputs_file: b'{"foo": "bar"}'})
    manager = make_manager(fs)
    manager.initialize()
    assert manager.read_terraform_outputs() == {"foo": "bar"}


def test_missing_outputs_are_empty():
    fs = FakeFileSystem()
    manager = make_manager(fs)
    assert manager.read_terraform_outputs() == {}


def test_invalid_outputs_raise():
    outputs_file = ROOT + "/my-technique/.terraform-outputs"
    fs = FakeFileSystem(exists=lambda p: p == outputs_file, files={outputs_file: b"not json"})
    with pytest.raises(ValueError):
        make_manager(fs).read_terraform_outputs()


def test_writes_technique_outputs():
    fs = FakeFileSystem()
    manager = make_manager(fs)
    manager.initialize()
    manager.write_terraform_outputs({"bar": "foo"})
    assert fs.called("write_file", ROOT + "/my-technique/.terraform-outputs", b'{"bar":"foo"}')


def test_reads_technique_state():
    fs = FakeFileSystem(exists=lambda p: True, files={ROOT + "/my-technique/.state": b"COLD"})
    manager = make_manager(fs)
    manager.initialize()
    assert manager.read_technique_state() is AttackTechniqueState.COLD


def test_missing_technique_state_is_none():
    fs = FakeFileSystem(exists=lambda p: True)
    assert make_manager(fs).read_technique_state() is None


def test_sets_technique_state():
    fs = FakeFileSystem(exists=lambda p: True)
    manager = make_manager(fs)
    manager.initialize()
    manager.write_technique_state(AttackTechniqueState.DETONATED)
    assert fs.called("write_file", ROOT + "/my-technique/.state", b"DETONATED")


def test_sets_state_when_technique_dir_does_not_exist():
    fs = FakeFileSystem(exists=lambda p: p == ROOT)
    manager = make_manager(fs)
    manager.initialize()
    manager.write_technique_state(AttackTechniqueState.DETONATED)
    assert fs.created() == [ROOT + "/my-technique"]
    assert fs.called("write_file", ROOT + "/my-technique/.state", b"DETONATED")


def test_cleanup_technique():
    fs = FakeFileSystem(exists=lambda p: True)
    manager = make_manager(fs)
    manager.initialize()
    manager.cleanup_technique()
    assert fs.called("remove_directory", ROOT + "/my-technique")


def test_local_file_system_round_trip(tmp_path):
    fs = LocalFileSystem()
    directory = str(tmp_path / "dir")
    assert fs.file_exists(directory) is False
    fs.create_directory(directory, 0o744)
    target = os.path.join(directory, "file")
    fs.write_file(target, b"content", 0o644)
    assert fs.read_file(target) == b"content"
    fs.remove_directory(directory)
    assert fs.file_exists(directory) is False


def test_local_remove_missing_directory_is_silent(tmp_path):
    fs = LocalFileSystem()
    missing = str(tmp_path / "missing")
    fs.remove_directory(missing)
    assert fs.file_exists(missing) is False


def test_full_cycle_on_disk(tmp_path):
    technique = AttackTechnique(id="disk-technique", prerequisites_terraform_code=b"resource")
    manager = FileSystemStateManager(technique, tmp_path / "state")
    manager.initialize()
    manager.extract_technique()
    manager.write_terraform_outputs({"a": "1"})
    manager.write_technique_state(AttackTechniqueState.WARM)
    assert (tmp_path / "state" / "disk-technique" / "main.tf").read_bytes() == b"resource"
    assert manager.read_terraform_outputs() == {"a": "1"}
    assert manager.read_technique_state() is AttackTechniqueState.WARM
    manager.cleanup_technique()
    assert not (tmp_path / "state" / "disk-technique").exists()


def test_default_state_manager_uses_home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    manager = default_state_manager(AttackTechnique(id="home-technique"))
    assert manager.root_directory == str(tmp_path / ".stratus-red-team")
    assert (tmp_path / ".stratus-red-team" / "home-technique").is_dir()