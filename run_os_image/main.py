import argparse
import contextlib
import os
import sys
from pathlib import Path

from . import build, launch, config as app_config
from .errors import ConfigurationError, FilesystemError, SubprocessFailure
from .logging_utils import debug_log

COMMANDS = ["setup", "build", "image", "image-verbose", "run", "run-uefi", "run-bios", "launch"]
# Commands that end by booting the image, with the mode they force (None: taken from the command line).
LAUNCH_COMMANDS = {"run": None, "run-uefi": "uefi", "run-bios": "bios", "launch": None}
# Commands that build the disk image before anything else.
IMAGE_COMMANDS = ["image", "image-verbose", "run", "run-uefi", "run-bios"]
# Commands that accept an explicit boot mode argument.
MODE_ARGUMENT_COMMANDS = ["run", "launch"]

EPILOG = """\
commands:
  setup          install the nightly toolchain components (run once)
  build          build the kernel, rebuilding it if os/linker.ld changed
  image          build, then always re-package the disk images
  image-verbose  same as image, streaming all cargo output
  run [MODE]     image, then boot in MODE ('uefi' or 'bios', default 'uefi')
  run-uefi       image, then boot with UEFI firmware
  run-bios       image, then boot with legacy BIOS
  launch [MODE]  boot an already built image without building
"""


def parse_arguments(argv=None):
    """Parses the command line into the configuration dict every stage receives."""
    parser = argparse.ArgumentParser(description="Build the kernel disk image and boot it in QEMU.", epilog=EPILOG,
                                     formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("command", choices=COMMANDS, metavar="COMMAND", help="One of: " + ", ".join(COMMANDS))
    parser.add_argument("mode", nargs="?", help="Boot mode for 'run' and 'launch': 'uefi' (default) or 'bios'.")
    parser.add_argument("--project-root", default=None, help="Cargo workspace root. Defaults to the current directory.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Stream all subprocess output instead of only the final status.")
    parser.add_argument("--debug-file", dest="debug_file_path", default=None, help="Write timestamped diagnostic messages to this file.")

    parser.add_argument("--memory", default=app_config.MEMORY, help="RAM for the VM.")
    parser.add_argument("--cpu-model", default=app_config.CPU_MODEL, help="CPU model to emulate.")
    parser.add_argument("--machine-type", default=app_config.MACHINE_TYPE, help="QEMU machine type.")

    suppressed_args = {
        "qemu_executable": app_config.QEMU_EXECUTABLE, "cargo_executable": app_config.CARGO_EXECUTABLE,
        "rustup_executable": app_config.RUSTUP_EXECUTABLE, "ovmf_vars_scratch": app_config.OVMF_VARS_SCRATCH,
    }
    for arg, default_val in suppressed_args.items():
        cli_arg = f"--{arg.replace('_', '-')}"
        parser.add_argument(cli_arg, default=default_val, help=argparse.SUPPRESS)
    # Repeatable; any use replaces the built-in candidate list.
    parser.add_argument("--ovmf-code-candidate", action="append", default=None, help=argparse.SUPPRESS)
    parser.add_argument("--ovmf-vars-candidate", action="append", default=None, help=argparse.SUPPRESS)

    args = parser.parse_args(argv)
    if args.mode is not None and args.command not in MODE_ARGUMENT_COMMANDS:
        parser.error(f"'{args.command}' does not take a boot mode argument.")

    config = vars(args)
    config["project_root"] = Path(config["project_root"] or os.getcwd()).resolve()
    if args.command == "image-verbose":
        config["verbose"] = True
    config["ovmf_code_candidates"] = tuple(config.pop("ovmf_code_candidate") or app_config.OVMF_CODE_CANDIDATES)
    config["ovmf_vars_candidates"] = tuple(config.pop("ovmf_vars_candidate") or app_config.OVMF_VARS_CANDIDATES)
    config["debug_file"] = None
    return config


def run_pipeline(config):
    """
    Runs the stages the selected command needs, strictly in order.

    The boot mode is validated first, so a bad mode fails before anything is
    built or searched for. Launching replaces the process and does not return.
    """
    command = config["command"]
    if not config["project_root"].is_dir():
        raise ConfigurationError(f"Project root is not a directory: {config['project_root']}")

    mode = None
    if command in LAUNCH_COMMANDS:
        mode = launch.BootMode.parse(LAUNCH_COMMANDS[command] or config["mode"])
    debug_log(config.get("debug_file"), f"command={command} mode={mode} root={config['project_root']}")

    if command == "setup":
        build.setup_toolchain(config)
    elif command == "build":
        build.build_kernel(config)
    elif command in IMAGE_COMMANDS:
        build.build_image(config)

    if mode is not None:
        launch.launch(mode, config)


def _open_debug_file(path):
    if not path:
        return contextlib.nullcontext()
    try:
        return open(path, "a", encoding="utf-8")
    except OSError as e:
        raise FilesystemError(f"Cannot open debug file '{path}': {e}") from e


def main(argv=None):
    """Parses command-line arguments and runs the requested pipeline."""
    config = parse_arguments(argv)

    try:
        with _open_debug_file(config["debug_file_path"]) as debug_file:
            config["debug_file"] = debug_file
            run_pipeline(config)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        if e.hint:
            for line in e.hint.splitlines():
                print(f"       {line}", file=sys.stderr)
        sys.exit(app_config.EXIT_CONFIGURATION_ERROR)
    except SubprocessFailure as e:
        print(f"Error: {e}", file=sys.stderr)
        # Negative status: killed by a signal, reported as a shell would.
        sys.exit(e.returncode if e.returncode > 0 else 128 - e.returncode)
    except FilesystemError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(app_config.EXIT_FAILURE)
    except KeyboardInterrupt:
        print("\nInterrupted")
        sys.exit(app_config.EXIT_INTERRUPTED)
