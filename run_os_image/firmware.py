import os
import shutil
from collections import namedtuple

from .errors import ConfigurationError, FilesystemError
from .logging_utils import debug_log, info

# The UEFI firmware pair: read-only code image and the pristine variables template.
ResolvedFirmware = namedtuple("ResolvedFirmware", ["code", "vars_template"])


def find_first_existing(candidates, debug_file=None):
    """Returns the first candidate path that is an existing file, or None."""
    for candidate in candidates:
        found = os.path.isfile(candidate)
        debug_log(debug_file, f"firmware candidate: {candidate} exists={found}")
        if found:
            return candidate
    return None


def resolve_firmware(code_candidates, vars_candidates, debug_file=None):
    """
    Resolves the OVMF code and variables files from their candidate lists.

    The two lists are searched independently; in each, the first existing path
    wins. Raises ConfigurationError if either list has no existing file.
    """
    code = find_first_existing(code_candidates, debug_file)
    vars_template = find_first_existing(vars_candidates, debug_file)

    if not code or not vars_template:
        tried = []
        if not code:
            tried.extend(code_candidates)
        if not vars_template:
            tried.extend(vars_candidates)
        missing = " and ".join(name for name, path in (("CODE", code), ("VARS", vars_template)) if not path)
        hint = "Attempted paths:\n" + "\n".join(f"  {path}" for path in tried)
        hint += "\nPlease install your distribution's UEFI package (e.g., ovmf, edk2-ovmf)."
        raise ConfigurationError(f"Cannot find OVMF firmware ({missing}).", hint=hint)

    info(f"Using OVMF firmware: {code}")
    return ResolvedFirmware(code, vars_template)


def prepare_vars_scratch(vars_template, scratch_path):
    """
    Copies the variables template over the writable scratch file.

    The copy is unconditional, so every run starts with pristine UEFI
    variables and writes made by a previous session are discarded.
    """
    try:
        shutil.copyfile(vars_template, scratch_path)
    except OSError as e:
        raise FilesystemError(f"Cannot copy UEFI variables template '{vars_template}' to '{scratch_path}': {e}") from e
    info(f"Fresh UEFI variables file: {scratch_path}")
    return scratch_path
