# SPDX-License-Identifier: MIT
"""
Validator configuration.

Size limits are fixed policy; only the per-validator document cap and the
strict-mode default are configurable.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

DEFAULT_MAX = 64 * 1024
ABSOLUTE_MAX = 1024 * 1024
KERNEL_MAX = 1024

# Bump arena handed to the kernel for each strict-mode call
DEFAULT_ARENA_SIZE = 64 * 1024
ARENA_BASE = 0x1000


def clamp_doc_size(size: int) -> int:
    """
    Clamp a requested document cap to the absolute maximum.

    Raises:
        ValueError: If the size is not a positive integer
    """
    if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
        raise ValueError(f"max_doc_size must be a positive integer, got {size!r}")
    return min(size, ABSOLUTE_MAX)


@dataclass(frozen=True)
class ValidatorConfig:
    """
    Immutable validator settings.

    Attributes:
        max_doc_size: Largest accepted document in bytes (at most ABSOLUTE_MAX)
        strict: Whether small documents go through the structural kernel
    """

    max_doc_size: int = DEFAULT_MAX
    strict: bool = True

    def __post_init__(self) -> None:
        if clamp_doc_size(self.max_doc_size) != self.max_doc_size:
            raise ValueError(
                f"max_doc_size {self.max_doc_size} exceeds absolute maximum {ABSOLUTE_MAX}"
            )

    def with_max_doc_size(self, size: int) -> "ValidatorConfig":
        """Return a copy with a new document cap, clamped to ABSOLUTE_MAX."""
        return replace(self, max_doc_size=clamp_doc_size(size))
