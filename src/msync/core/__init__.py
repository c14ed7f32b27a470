"""Core business logic modules for msync.

This package contains the sync engine organized by concern:
- tags: embedded metadata codec and rating conversion
- device: debug-bridge transport and device sessions
- filesystem: local and device directory scanning
- sync: staging, matching and orchestration
"""

__all__: list[str] = []
