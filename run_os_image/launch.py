from enum import Enum
from pathlib import Path

from . import config as app_config
from . import firmware, process
from .errors import ConfigurationError
from .logging_utils import debug_log, info


class BootMode(Enum):
    """The firmware interface QEMU presents to the disk image."""
    BIOS = "bios"
    UEFI = "uefi"

    @classmethod
    def parse(cls, value):
        """
        Maps a command-line mode string to a BootMode.

        None selects the default (UEFI). Matching is exact and case-sensitive.
        """
        if value is None:
            value = app_config.DEFAULT_BOOT_MODE
        for mode in cls:
            if mode.value == value:
                return mode
        raise ConfigurationError(f"Unknown mode: {value}. Use 'bios' or 'uefi'.")

    @property
    def uses_firmware(self):
        return self is BootMode.UEFI


class LaunchSpec:
    """
    The QEMU parameters for a single run.

    Built fresh for every launch and never persisted. `firmware` and
    `vars_path` are only set for UEFI boots.
    """

    def __init__(self, qemu_executable, disk_image, memory=app_config.MEMORY, cpu_model=app_config.CPU_MODEL,
                 machine_type=app_config.MACHINE_TYPE, firmware=None, vars_path=None):
        self.qemu_executable = qemu_executable
        self.disk_image = Path(disk_image)
        self.memory = memory
        self.cpu_model = cpu_model
        self.machine_type = machine_type
        self.firmware = firmware
        self.vars_path = vars_path

    def common_args(self):
        return [
            "-m", self.memory, "-cpu", self.cpu_model, "-machine", self.machine_type,
            "-serial", app_config.SERIAL_TARGET, "-display", app_config.DISPLAY_TYPE,
            "-drive", f"file={self.disk_image},format={app_config.DRIVE_FORMAT}",
        ]

    def firmware_args(self):
        """The two pflash drives: read-only firmware code, then the writable variables copy."""
        if not self.firmware:
            return []
        return [
            "-drive", f"if=pflash,format={app_config.DRIVE_FORMAT},readonly=on,file={self.firmware.code}",
            "-drive", f"if=pflash,format={app_config.DRIVE_FORMAT},readonly=off,file={self.vars_path}",
        ]

    def to_args(self):
        """Constructs the list of arguments for the QEMU command."""
        return [self.qemu_executable] + self.common_args() + self.firmware_args()


def resolve_image(mode, config):
    """Returns the prebuilt disk image for `mode`; never builds it."""
    image = Path(config["project_root"]) / app_config.IMAGE_FILENAMES[mode.value]
    if not image.is_file():
        raise ConfigurationError(f"Disk image '{image.name}' not found in {image.parent}.",
                                 hint="Build it first: run-os-image image")
    return image


def build_launch_spec(mode, config):
    """
    Resolves everything a run needs and returns the LaunchSpec.

    For UEFI the firmware pair is resolved and the variables template is
    copied over the scratch file before the spec is returned.
    """
    debug_file = config.get("debug_file")
    image = resolve_image(mode, config)
    debug_log(debug_file, f"launch: mode={mode.value} image={image}")

    resolved, vars_path = None, None
    if mode.uses_firmware:
        resolved = firmware.resolve_firmware(config["ovmf_code_candidates"], config["ovmf_vars_candidates"], debug_file)
        vars_path = firmware.prepare_vars_scratch(resolved.vars_template, config["ovmf_vars_scratch"])
    else:
        info("Using Legacy BIOS boot.")

    return LaunchSpec(
        config["qemu_executable"], image,
        memory=config["memory"], cpu_model=config["cpu_model"], machine_type=config["machine_type"],
        firmware=resolved, vars_path=vars_path,
    )


def launch(mode, config):
    """Launches QEMU as the final step of the pipeline. Does not return on success."""
    if not isinstance(mode, BootMode):
        mode = BootMode.parse(mode)
    spec = build_launch_spec(mode, config)
    info(f"Booting {spec.disk_image.name} in {mode.name} mode.")
    process.exec_qemu(spec.to_args(), config)
