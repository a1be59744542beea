# SPDX-License-Identifier: MIT
"""
AISP Structural Validator

Boundary adapter between the orchestrator and a structural kernel. Turns
the kernel's pointer/status-code ABI into Python calls that take bytes,
return handles and raise ParseError on malformed input.

Usage:
    structural = StructuralValidator()
    structural.init()

    with structural.session() as ctx:
        handle = structural.parse(ctx, data)
        code = structural.validate(handle)
        score = structural.ambiguity(handle)
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from .config import DEFAULT_ARENA_SIZE, KERNEL_MAX
from .kernel import (
    PARSE_ERROR_MESSAGES,
    PARSE_OUT_OF_MEMORY,
    STATUS_OK,
    VALIDATION_MESSAGES,
    Arena,
    ArenaExhaustedError,
    ReferenceKernel,
    StructuralKernel,
    ValidationContext,
)

logger = logging.getLogger(__name__)


class ParseError(Exception):
    """Raised when the kernel rejects a buffer as malformed."""

    def __init__(self, message: str, offset: int = 0, code: int = 0) -> None:
        self.offset = offset
        self.code = code
        super().__init__(f"{message} at offset {offset}")


class KernelUninitializedError(RuntimeError):
    """Raised when strict validation is requested before init()."""

    def __init__(self) -> None:
        super().__init__("AISP kernel not initialized. Call init() first.")


@dataclass(frozen=True)
class DocumentHandle:
    """A document parsed inside one validation context."""

    context: ValidationContext
    document_id: int


class StructuralValidator:
    """
    Strict-mode validator backed by a structural kernel.

    Each call runs inside its own ValidationContext, so one instance can
    serve concurrent callers.
    """

    def __init__(
        self,
        kernel: Optional[StructuralKernel] = None,
        arena_size: int = DEFAULT_ARENA_SIZE,
    ) -> None:
        self.kernel = kernel if kernel is not None else ReferenceKernel()
        self.arena_size = arena_size
        self._status: Optional[int] = None
        self._init_lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._status == STATUS_OK

    def init(self) -> int:
        """
        Initialize the kernel at most once.

        Returns:
            The kernel's init status (0 on success). Later calls return the
            stored status without touching the kernel again.
        """
        with self._init_lock:
            if self._status is None:
                self._status = self.kernel.init()
                logger.info(
                    "Structural kernel %s initialized (status %d)",
                    type(self.kernel).__name__,
                    self._status,
                )
            return self._status

    def _require_init(self) -> None:
        if not self.initialized:
            raise KernelUninitializedError()

    @contextmanager
    def session(self) -> Iterator[ValidationContext]:
        """Open a fresh context with a private arena, disposed on exit."""
        self._require_init()
        with ValidationContext(arena=Arena(self.arena_size)) as ctx:
            yield ctx

    def parse(self, ctx: ValidationContext, buffer: bytes) -> DocumentHandle:
        """
        Copy ``buffer`` into the context arena and parse it.

        Raises:
            KernelUninitializedError: If init() has not succeeded
            ParseError: If the kernel rejects the buffer
        """
        self._require_init()
        try:
            ptr = ctx.arena.alloc(len(buffer), 1)
        except ArenaExhaustedError as e:
            raise ParseError(str(e), offset=0, code=PARSE_OUT_OF_MEMORY)
        ctx.arena.write(ptr, buffer)

        document_id = self.kernel.parse(ctx, ptr, len(buffer))
        if document_id < 0:
            code = self.kernel.error_code(ctx)
            offset = self.kernel.error_offset(ctx)
            message = ctx.detail or PARSE_ERROR_MESSAGES.get(code, "Parse error")
            logger.debug("Parse failed: code=%d offset=%d", code, offset)
            raise ParseError(message, offset=offset, code=code)
        return DocumentHandle(context=ctx, document_id=document_id)

    def validate(self, handle: DocumentHandle) -> int:
        self._require_init()
        return self.kernel.validate(handle.context, handle.document_id)

    def ambiguity(self, handle: DocumentHandle) -> float:
        self._require_init()
        score = self.kernel.ambiguity(handle.context, handle.document_id)
        return min(1.0, max(0.0, score))

    def describe(self, handle: DocumentHandle, code: int) -> str:
        """Human-readable message for a validate() outcome code."""
        message = VALIDATION_MESSAGES.get(code, f"Structural violation {code}")
        detail = handle.context.detail
        return f"{message}: {detail}" if detail else message


def fits_kernel(size: int) -> bool:
    """Return True if a document of ``size`` bytes may use strict mode."""
    return size <= KERNEL_MAX
