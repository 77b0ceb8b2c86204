#!/usr/bin/env python3
"""
Shared logging utilities for run-os-image.

Provides timestamped debug logging to file for diagnostic purposes, and the
`Info:`/`Warning:` console messages used throughout the pipeline.
"""

import sys
import time


def debug_log(debug_file, message):
    """
    Write a timestamped debug message to the debug file if enabled.

    The file is flushed after every line so nothing is lost when the
    emulator replaces the current process.

    Args:
        debug_file: An open file handle for writing debug messages,
                    or None if debug logging is disabled.
        message: The debug message string to write.

    Returns:
        None
    """
    if debug_file:
        try:
            timestamp = time.time()
            debug_file.write(f"[{timestamp:.6f}] {message}\n")
            debug_file.flush()
        except (ValueError, OSError):
            # File might already be closed during interpreter shutdown
            pass


def info(message):
    print(f"Info: {message}", flush=True)


def warning(message):
    print(f"Warning: {message}", file=sys.stderr, flush=True)
