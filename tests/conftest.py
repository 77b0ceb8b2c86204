import pytest

from run_os_image import process
from run_os_image.errors import SubprocessFailure
from run_os_image.main import parse_arguments


class CommandRecorder:
    """Stands in for process.run_command, recording each argument list."""

    def __init__(self):
        self.calls = []
        self.failures = {}

    def fail_when(self, predicate, returncode=101):
        """Makes commands matching `predicate` fail with `returncode`."""
        self.failures[predicate] = returncode

    def __call__(self, args, config):
        args = [str(arg) for arg in args]
        self.calls.append(args)
        for predicate, returncode in self.failures.items():
            if predicate(args):
                raise SubprocessFailure(args, returncode, "error: could not compile `os`\n")
        return None


@pytest.fixture
def make_config(tmp_path):
    """Builds a configuration dict rooted at a temporary project directory."""
    def _make(*argv):
        return parse_arguments(["--project-root", str(tmp_path), *argv])
    return _make


@pytest.fixture
def recorded_commands(monkeypatch):
    """Replaces subprocess execution of build tools with a recorder."""
    recorder = CommandRecorder()
    monkeypatch.setattr(process, "run_command", recorder)
    return recorder


@pytest.fixture
def exec_calls(monkeypatch):
    """Replaces process replacement with a recorder; every executable is found on PATH."""
    calls = []
    monkeypatch.setattr(process.shutil, "which", lambda name: f"/usr/bin/{name}")
    monkeypatch.setattr(process.os, "execvp", lambda file, args: calls.append(list(args)))
    return calls


@pytest.fixture
def firmware_files(tmp_path):
    """
    Creates an OVMF installation under tmp_path and returns
    (code_candidates, vars_candidates, scratch_path).
    """
    vendor = tmp_path / "edk2-ovmf" / "x64"
    generic = tmp_path / "OVMF"
    vendor.mkdir(parents=True)
    generic.mkdir()
    (tmp_path / "scratch").mkdir()
    (vendor / "OVMF_CODE.4m.fd").write_bytes(b"vendor-code")
    (vendor / "OVMF_VARS.4m.fd").write_bytes(b"vendor-vars-template")
    (generic / "OVMF_CODE.fd").write_bytes(b"generic-code")
    (generic / "OVMF_VARS.fd").write_bytes(b"generic-vars-template")

    code_candidates = (str(vendor / "OVMF_CODE.4m.fd"), str(generic / "OVMF_CODE.fd"))
    vars_candidates = (str(vendor / "OVMF_VARS.4m.fd"), str(generic / "OVMF_VARS.fd"))
    return code_candidates, vars_candidates, str(tmp_path / "scratch" / "OVMF_VARS.fd")
