"""Filesystem module.

Handles scanning local and device directory trees.
"""

from .scanner import DirectoryScanner, ScanStatistics

__all__ = [
    "DirectoryScanner",
    "ScanStatistics",
]
