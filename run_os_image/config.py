# --- Global Configuration & Executable Paths ---

# The command for the Rust toolchain installer, used by 'setup'.
RUSTUP_EXECUTABLE = "rustup"
# The command for the Cargo build tool, used to compile the kernel and package the image.
CARGO_EXECUTABLE = "cargo"
# The QEMU binary that runs the disk image.
QEMU_EXECUTABLE = "qemu-system-x86_64"
# Disables stdio buffering of the emulator so serial output is not delivered in bursts.
STDBUF_EXECUTABLE = "stdbuf"
STDBUF_ARGS = ["-o0", "-e0"]

# --- Toolchain Configuration ---

# The toolchain channel the kernel and bootloader require.
TOOLCHAIN = "nightly"
# Components and targets installed by 'setup'.
TOOLCHAIN_COMPONENTS = ["llvm-tools-preview"]
TOOLCHAIN_TARGETS = ["x86_64-unknown-none"]

# --- Kernel Build Unit ---

# The workspace crate holding the kernel.
KERNEL_CRATE = "os"
# The target triple the kernel is compiled for; fixes the artifact path.
KERNEL_TARGET = "x86_64-unknown-none"
# The cargo profile directory the kernel artifact lands in.
KERNEL_PROFILE = "debug"
# Linker script of the kernel, relative to the project root. Cargo does not track it.
KERNEL_LAYOUT_DESCRIPTOR = "os/linker.ld"

# --- Image Packaging ---

# The workspace crate whose build script writes the disk images.
IMAGE_CRATE = "boot"
# Disk image filenames per boot mode, relative to the project root.
IMAGE_FILENAMES = {
    "bios": "os-bios.img",
    "uefi": "os-uefi.img",
}

# --- Boot Modes ---

BOOT_MODES = ["bios", "uefi"]
# Mode used when none is given on the command line.
DEFAULT_BOOT_MODE = "uefi"

# --- UEFI Firmware ---

# Ordered OVMF firmware locations; vendor-specific layouts first, generic ones after.
OVMF_CODE_CANDIDATES = (
    "/usr/share/edk2-ovmf/x64/OVMF_CODE.4m.fd",
    "/usr/share/OVMF/OVMF_CODE.fd",
    "/usr/share/OVMF/OVMF_CODE.rom",
)
OVMF_VARS_CANDIDATES = (
    "/usr/share/edk2-ovmf/x64/OVMF_VARS.4m.fd",
    "/usr/share/OVMF/OVMF_VARS.fd",
    "/usr/share/OVMF/OVMF_VARS.rom",
)
# Writable copy of the variables template, recreated before every UEFI run.
OVMF_VARS_SCRATCH = "/tmp/OVMF_VARS.fd"

# --- Emulator Configuration ---

# The amount of RAM given to the guest.
MEMORY = "512M"
# The CPU model to emulate.
CPU_MODEL = "qemu64"
# The machine type; legacy BIOS (SeaBIOS) is implied by it.
MACHINE_TYPE = "q35"
# No graphical window; the serial port is the console.
DISPLAY_TYPE = "none"
SERIAL_TARGET = "stdio"
# Disk images are plain raw files.
DRIVE_FORMAT = "raw"

# --- Exit Codes ---

EXIT_FAILURE = 1
EXIT_CONFIGURATION_ERROR = 2
EXIT_INTERRUPTED = 130
