"""
Staleness detection for the kernel artifact.

Cargo does not record the kernel's linker script as a dependency, so editing
it leaves an old binary in place. This module compares the one tracked build
input against the artifact and, when the input is newer, removes the
artifact and cleans that single crate so the next build starts from scratch.
Every other input is left to cargo's own tracking.
"""

from pathlib import Path

from . import config as app_config
from . import process
from .errors import FilesystemError
from .logging_utils import debug_log, info


class BuildTarget:
    """
    A compiled artifact identified by crate name and target triple.

    Attributes:
        crate: The workspace crate that produces the artifact.
        triple: The target triple; together with the profile it fixes the output path.
        profile: The cargo profile directory ("debug" or "release").
        layout_descriptor: The build input tracked for staleness (the linker script).
        project_root: The workspace root all paths are anchored to.
    """

    def __init__(self, project_root, crate=app_config.KERNEL_CRATE, triple=app_config.KERNEL_TARGET,
                 profile=app_config.KERNEL_PROFILE, layout_descriptor=app_config.KERNEL_LAYOUT_DESCRIPTOR):
        self.project_root = Path(project_root)
        self.crate = crate
        self.triple = triple
        self.profile = profile
        self.layout_descriptor = self.project_root / layout_descriptor

    @property
    def artifact_path(self):
        return self.project_root / "target" / self.triple / self.profile / self.crate

    def __repr__(self):
        return f"BuildTarget(crate={self.crate!r}, triple={self.triple!r}, artifact={str(self.artifact_path)!r})"


def kernel_target(config):
    """Returns the BuildTarget of the kernel for the configured project root."""
    return BuildTarget(config["project_root"])


def needs_invalidation(build_input, artifact):
    """
    Decides whether `artifact` is older than `build_input` and must be rebuilt.

    A missing artifact never needs invalidation: the normal build creates it.
    Otherwise the input must be strictly newer; equal timestamps keep the
    artifact. Filesystem errors are raised as FilesystemError.
    """
    build_input, artifact = Path(build_input), Path(artifact)
    try:
        artifact_mtime = artifact.stat().st_mtime_ns
    except FileNotFoundError:
        return False
    except OSError as e:
        raise FilesystemError(f"Cannot stat artifact '{artifact}': {e}") from e
    try:
        return build_input.stat().st_mtime_ns > artifact_mtime
    except OSError as e:
        raise FilesystemError(f"Cannot compare modification times of '{build_input}' and '{artifact}': {e}") from e


def invalidate_if_stale(target, config):
    """
    Deletes a stale artifact and cleans its crate, forcing a full rebuild of
    just that unit. Returns True if the artifact was invalidated.
    """
    debug_file = config.get("debug_file")
    stale = needs_invalidation(target.layout_descriptor, target.artifact_path)
    debug_log(debug_file, f"freshness: {target!r} stale={stale}")
    if not stale:
        return False

    info(f"{target.layout_descriptor.name} is newer than {target.artifact_path.name}; forcing a rebuild of '{target.crate}'.")
    try:
        target.artifact_path.unlink(missing_ok=True)
    except OSError as e:
        raise FilesystemError(f"Cannot remove stale artifact '{target.artifact_path}': {e}") from e

    process.run_command([config["cargo_executable"], "clean", "-p", target.crate, "--target", target.triple], config)
    return True
