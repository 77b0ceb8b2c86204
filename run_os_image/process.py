import os
import shutil
import subprocess
import sys

from . import config as app_config
from .errors import ConfigurationError, SubprocessFailure
from .logging_utils import debug_log, warning


def format_command(args):
    """Formats an argument list one argument per line, shell-continuation style."""
    formatted_command = f"{args[0]} \\\n"
    formatted_command += " \\\n".join([f"    {subprocess.list2cmdline([str(arg)])}" for arg in args[1:]])
    return formatted_command


def run_command(args, config):
    """
    Runs an external build tool to completion inside the project root.

    In verbose mode the tool's output streams straight to the terminal. In
    quiet mode stdout and stderr are captured together; the captured text is
    attached to the raised SubprocessFailure and written to stderr, so a
    failure is never silent.

    Returns the completed process on success.
    """
    args = [str(arg) for arg in args]
    verbose = config.get("verbose", False)
    debug_log(config.get("debug_file"), f"run (verbose={verbose}, cwd={config['project_root']}): {' '.join(args)}")

    try:
        if verbose:
            print(f"--- {' '.join(args)} ---", flush=True)
            result = subprocess.run(args, cwd=config["project_root"])
        else:
            result = subprocess.run(args, cwd=config["project_root"], stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True)
    except FileNotFoundError:
        raise ConfigurationError(f"Executable '{args[0]}' not found.", hint="Install the Rust toolchain (https://rustup.rs) and run 'setup'.")
    except OSError as e:
        raise ConfigurationError(f"Cannot execute '{args[0]}': {e}", hint="Check that the file is an executable program and that you may run it.") from e

    debug_log(config.get("debug_file"), f"exit status {result.returncode}: {args[0]}")
    if result.returncode != 0:
        output = None if verbose else result.stdout
        if output:
            sys.stderr.write(output)
            sys.stderr.flush()
        raise SubprocessFailure(args, result.returncode, output)
    return result


def unbuffered_prefix():
    """Returns the stdbuf prefix that disables stdio buffering, if stdbuf is installed."""
    stdbuf = shutil.which(app_config.STDBUF_EXECUTABLE)
    if not stdbuf:
        warning(f"'{app_config.STDBUF_EXECUTABLE}' not found; serial output may be buffered.")
        return []
    return [stdbuf] + app_config.STDBUF_ARGS


def exec_qemu(args, config):
    """
    Replaces the current process with QEMU.

    Nothing runs after a successful call: the emulator inherits stdin, stdout,
    stderr and the process id, so its exit status becomes ours.
    """
    if not shutil.which(str(args[0])):
        raise ConfigurationError(f"QEMU executable '{args[0]}' not found.", hint="Install QEMU for x86_64 (e.g., 'qemu-system-x86').")
    command = unbuffered_prefix() + [str(arg) for arg in args]

    print("--- Starting QEMU with the following command ---", flush=True)
    print(format_command(args), flush=True)
    print("-" * 50, flush=True)
    debug_log(config.get("debug_file"), f"exec: {' '.join(command)}")

    sys.stdout.flush()
    sys.stderr.flush()
    try:
        os.execvp(command[0], command)
    except OSError as e:
        raise ConfigurationError(f"Cannot execute '{command[0]}': {e}", hint="Install QEMU for x86_64 (e.g., 'qemu-system-x86').") from e
