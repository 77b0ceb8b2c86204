from pathlib import Path

from . import config as app_config
from . import freshness, process
from .logging_utils import info


def setup_toolchain(config):
    """Installs the nightly components and targets the kernel and bootloader need."""
    rustup = config["rustup_executable"]
    info(f"Installing {app_config.TOOLCHAIN} toolchain components...")
    for component in app_config.TOOLCHAIN_COMPONENTS:
        process.run_command([rustup, "component", "add", component, "--toolchain", app_config.TOOLCHAIN], config)
    for target in app_config.TOOLCHAIN_TARGETS:
        process.run_command([rustup, "target", "add", target, "--toolchain", app_config.TOOLCHAIN], config)
    info("Toolchain is ready.")


def build_kernel(config):
    """Compiles the kernel, first discarding it if its linker script changed."""
    target = freshness.kernel_target(config)
    freshness.invalidate_if_stale(target, config)

    info(f"Building kernel '{target.crate}' for {target.triple}...")
    process.run_command([config["cargo_executable"], "build", "-p", target.crate, "--target", target.triple], config)
    info(f"Kernel built: {target.artifact_path}")
    return target.artifact_path


def force_repackage(config):
    """
    Re-runs the image packager unconditionally.

    The packager's build script reads the kernel binary, which cargo does not
    see as one of its inputs, so a cached run could leave an image holding the
    previous kernel. Cleaning the packaging crate makes cargo execute the
    build script again.
    """
    cargo = config["cargo_executable"]
    verbose = config.get("verbose", False)

    info("Building disk image...")
    process.run_command([cargo, "clean", "-p", app_config.IMAGE_CRATE], config)
    build_args = [cargo, "build", "-p", app_config.IMAGE_CRATE]
    if verbose:
        build_args.append("-vv")
    process.run_command(build_args, config)


def image_paths(config):
    """Returns the disk image path for every boot mode."""
    root = Path(config["project_root"])
    return {mode: root / filename for mode, filename in app_config.IMAGE_FILENAMES.items()}


def build_image(config):
    """Builds the kernel, then packages it into the bootable disk images."""
    build_kernel(config)
    force_repackage(config)
    paths = image_paths(config)
    for mode, path in paths.items():
        info(f"Disk image ({mode}): {path}")
    return paths
