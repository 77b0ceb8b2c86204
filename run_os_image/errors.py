"""
Error types raised by the build and launch pipeline.

Every stage either succeeds completely or raises one of these; there is no
recovery path. Only `main.main()` catches them and turns them into an exit
status and a diagnostic on stderr.
"""


class OrchestratorError(Exception):
    """Base class for all pipeline failures."""


class ConfigurationError(OrchestratorError):
    """
    Invalid mode, unresolvable firmware, missing prebuilt image or missing
    executable. Raised before any subprocess is spawned.

    Attributes:
        hint: Optional remediation text shown below the error message.
    """

    def __init__(self, message, hint=None):
        super().__init__(message)
        self.hint = hint


class SubprocessFailure(OrchestratorError):
    """
    An external tool (rustup, cargo, the packager) exited with a non-zero status.

    Attributes:
        command: The argument list that was executed.
        returncode: The exit status, propagated as the pipeline's own.
        output: Captured combined output in quiet mode, otherwise None.
    """

    def __init__(self, command, returncode, output=None):
        super().__init__(f"Command '{command[0]}' failed with exit code {returncode}: {' '.join(str(a) for a in command)}")
        self.command = command
        self.returncode = returncode
        self.output = output


class FilesystemError(OrchestratorError):
    """Permission or I/O failure while checking artifacts or copying firmware."""
