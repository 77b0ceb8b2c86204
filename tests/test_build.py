import os

import pytest

from run_os_image import build
from run_os_image.errors import SubprocessFailure
from run_os_image.freshness import BuildTarget

BASE_NS = 1_700_000_000 * 1_000_000_000

KERNEL_BUILD = ["cargo", "build", "-p", "os", "--target", "x86_64-unknown-none"]
KERNEL_CLEAN = ["cargo", "clean", "-p", "os", "--target", "x86_64-unknown-none"]
IMAGE_CLEAN = ["cargo", "clean", "-p", "boot"]
IMAGE_BUILD = ["cargo", "build", "-p", "boot"]


def write_kernel(tmp_path, layout_mtime_ns, artifact_mtime_ns):
    """Creates os/linker.ld and a sentinel kernel artifact with the given mtimes."""
    target = BuildTarget(tmp_path)
    target.layout_descriptor.parent.mkdir(parents=True)
    target.layout_descriptor.write_text("SECTIONS {}\n")
    target.artifact_path.parent.mkdir(parents=True)
    target.artifact_path.write_bytes(b"sentinel")
    os.utime(target.layout_descriptor, ns=(layout_mtime_ns, layout_mtime_ns))
    os.utime(target.artifact_path, ns=(artifact_mtime_ns, artifact_mtime_ns))
    return target


class TestSetup:
    """Tests for the one-time toolchain setup."""

    def test_installs_components_and_targets_on_nightly(self, make_config, recorded_commands):
        """Components and targets are added to the nightly toolchain."""
        build.setup_toolchain(make_config("setup"))
        assert recorded_commands.calls == [
            ["rustup", "component", "add", "llvm-tools-preview", "--toolchain", "nightly"],
            ["rustup", "target", "add", "x86_64-unknown-none", "--toolchain", "nightly"],
        ]

    def test_install_failure_propagates(self, make_config, recorded_commands):
        """The first failing rustup call stops setup."""
        recorded_commands.fail_when(lambda args: args[0] == "rustup", returncode=1)
        with pytest.raises(SubprocessFailure):
            build.setup_toolchain(make_config("setup"))
        assert len(recorded_commands.calls) == 1


class TestBuildKernel:
    """Tests for compiling the kernel with linker script tracking."""

    def test_older_layout_does_not_delete_artifact(self, tmp_path, make_config, recorded_commands):
        """An older linker script leaves the artifact to cargo."""
        target = write_kernel(tmp_path, BASE_NS, BASE_NS + 10**9)

        assert build.build_kernel(make_config("build")) == target.artifact_path
        assert target.artifact_path.read_bytes() == b"sentinel"
        assert recorded_commands.calls == [KERNEL_BUILD]

    def test_newer_layout_cleans_before_building(self, tmp_path, make_config, recorded_commands):
        """A newer linker script deletes the artifact and cleans the crate first."""
        target = write_kernel(tmp_path, BASE_NS + 10**9, BASE_NS)

        build.build_kernel(make_config("build"))
        assert not target.artifact_path.exists()
        assert recorded_commands.calls == [KERNEL_CLEAN, KERNEL_BUILD]

    def test_first_build_without_artifact(self, tmp_path, make_config, recorded_commands):
        """A fresh checkout goes straight to cargo build."""
        build.build_kernel(make_config("build"))
        assert recorded_commands.calls == [KERNEL_BUILD]

    def test_custom_cargo_executable(self, make_config, recorded_commands):
        """--cargo-executable replaces the cargo on PATH."""
        build.build_kernel(make_config("--cargo-executable", "/opt/cargo/bin/cargo", "build"))
        assert recorded_commands.calls[0][0] == "/opt/cargo/bin/cargo"


class TestBuildImage:
    """Tests for packaging the kernel into disk images."""

    def test_packaging_always_follows_kernel_build(self, make_config, recorded_commands):
        """The packager runs after the kernel build."""
        build.build_image(make_config("image"))
        assert recorded_commands.calls == [KERNEL_BUILD, IMAGE_CLEAN, IMAGE_BUILD]

    def test_packaging_is_forced_on_every_invocation(self, make_config, recorded_commands):
        """Repeated builds repackage each time."""
        config = make_config("image")
        build.build_image(config)
        build.build_image(config)
        assert recorded_commands.calls.count(IMAGE_CLEAN) == 2
        assert recorded_commands.calls.count(IMAGE_BUILD) == 2

    def test_verbose_packaging_streams_cargo_detail(self, make_config, recorded_commands):
        """image-verbose asks cargo for build script output."""
        build.build_image(make_config("image-verbose"))
        assert recorded_commands.calls[-1] == IMAGE_BUILD + ["-vv"]

    def test_compile_failure_aborts_before_packaging(self, make_config, recorded_commands):
        """A kernel that fails to compile is never packaged."""
        recorded_commands.fail_when(lambda args: args == KERNEL_BUILD)
        with pytest.raises(SubprocessFailure) as excinfo:
            build.build_image(make_config("image"))
        assert excinfo.value.returncode == 101
        assert recorded_commands.calls == [KERNEL_BUILD]

    def test_returns_image_path_per_mode(self, tmp_path, make_config, recorded_commands):
        """Both images are reported under the project root."""
        paths = build.build_image(make_config("image"))
        assert paths == {"bios": tmp_path.resolve() / "os-bios.img", "uefi": tmp_path.resolve() / "os-uefi.img"}
