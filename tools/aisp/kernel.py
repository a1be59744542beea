# SPDX-License-Identifier: MIT
"""
AISP Structural Kernel

The kernel is the size-bounded structural parser used in strict mode. It is
exposed through a narrow pointer-and-status-code ABI:

    init()                          -> status
    parse(ctx, ptr, length)         -> document id (negative on error)
    validate(ctx, document_id)      -> outcome code (0 = valid)
    error_offset(ctx)               -> byte offset of the last parse error
    error_code(ctx)                 -> code of the last parse error
    ambiguity(ctx, document_id)     -> score in [0, 1]

All per-call state lives in a ValidationContext, which owns its own bump
arena. Kernel objects hold no per-call state and can be shared between
threads.

ReferenceKernel is a pure-Python implementation that checks the top-level
document shape: a header line followed by tagged, delimited blocks.
"""

from __future__ import annotations

import logging
import re
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .config import ARENA_BASE, DEFAULT_ARENA_SIZE, KERNEL_MAX
from .symbols import (
    BLOCK_CLOSE,
    BLOCK_OPEN,
    BLOCK_TAGS,
    BODY_DELIMITERS,
    EVIDENCE_TAG,
    HEADER_SYMBOL,
    SYMBOL_CATALOG,
    header_start,
)

logger = logging.getLogger(__name__)


class KernelError(Exception):
    """Raised when the kernel ABI is misused."""


class ArenaExhaustedError(KernelError):
    """Raised when an allocation does not fit in the arena."""

    def __init__(self, requested: int, available: int) -> None:
        self.requested = requested
        self.available = available
        super().__init__(
            f"Arena exhausted: requested {requested} bytes, {available} available"
        )


# =============================================================================
# Status Codes
# =============================================================================

STATUS_OK = 0

# Parse error codes (reported through error_code())
PARSE_INVALID_ENCODING = 1
PARSE_MISSING_HEADER = 2
PARSE_MALFORMED_HEADER = 3
PARSE_UNTERMINATED_TAG = 4
PARSE_INVALID_TAG = 5
PARSE_MISSING_BODY = 6
PARSE_UNTERMINATED_BODY = 7
PARSE_TOO_LARGE = 8
PARSE_OUT_OF_MEMORY = 9

PARSE_ERROR_MESSAGES: Dict[int, str] = {
    PARSE_INVALID_ENCODING: "Invalid UTF-8",
    PARSE_MISSING_HEADER: f"Missing AISP header ({HEADER_SYMBOL})",
    PARSE_MALFORMED_HEADER: "Malformed header",
    PARSE_UNTERMINATED_TAG: f"Unterminated block tag (missing {BLOCK_CLOSE})",
    PARSE_INVALID_TAG: "Invalid block tag",
    PARSE_MISSING_BODY: "Block has no body",
    PARSE_UNTERMINATED_BODY: "Unterminated block body",
    PARSE_TOO_LARGE: f"Document exceeds kernel limit of {KERNEL_MAX} bytes",
    PARSE_OUT_OF_MEMORY: "Kernel arena exhausted",
}

# Validation outcome codes (returned by validate())
VALID = 0
INVALID_MISSING_BLOCK = 1
INVALID_DUPLICATE_BLOCK = 2
INVALID_EMPTY_BLOCK = 3
INVALID_EVIDENCE = 4

VALIDATION_MESSAGES: Dict[int, str] = {
    VALID: "Structurally valid",
    INVALID_MISSING_BLOCK: "Missing required block",
    INVALID_DUPLICATE_BLOCK: "Duplicate block",
    INVALID_EMPTY_BLOCK: "Empty block body",
    INVALID_EVIDENCE: "Evidence density out of range",
}


# =============================================================================
# Arena
# =============================================================================


class Arena:
    """
    Bump allocator over a fixed-size byte buffer.

    Pointers are integer addresses starting at ``base``. Allocation only
    moves the cursor forward; ``reset`` rewinds it, ``dispose`` releases
    the buffer for good.
    """

    def __init__(self, capacity: int = DEFAULT_ARENA_SIZE, base: int = ARENA_BASE) -> None:
        if capacity <= 0:
            raise ValueError(f"Arena capacity must be positive, got {capacity}")
        self.base = base
        self.capacity = capacity
        self._memory: Optional[bytearray] = bytearray(capacity)
        self._cursor = base

    @property
    def disposed(self) -> bool:
        return self._memory is None

    @property
    def used(self) -> int:
        return self._cursor - self.base

    def _buffer(self) -> bytearray:
        if self._memory is None:
            raise KernelError("Arena has been disposed")
        return self._memory

    def alloc(self, size: int, align: int = 1) -> int:
        """
        Reserve ``size`` bytes aligned to ``align`` and return the pointer.

        Raises:
            ValueError: If align is not a power of two or size is negative
            ArenaExhaustedError: If the allocation does not fit
        """
        self._buffer()
        if align <= 0 or align & (align - 1):
            raise ValueError(f"Alignment must be a power of two, got {align}")
        if size < 0:
            raise ValueError(f"Allocation size must be non-negative, got {size}")

        aligned = (self._cursor + align - 1) & ~(align - 1)
        end = self.base + self.capacity
        if aligned + size > end:
            raise ArenaExhaustedError(size, max(0, end - aligned))
        self._cursor = aligned + size
        return aligned

    def write(self, ptr: int, data: bytes) -> None:
        offset = self._offset(ptr, len(data))
        self._buffer()[offset:offset + len(data)] = data

    def read(self, ptr: int, length: int) -> bytes:
        offset = self._offset(ptr, length)
        return bytes(self._buffer()[offset:offset + length])

    def _offset(self, ptr: int, length: int) -> int:
        offset = ptr - self.base
        if offset < 0 or length < 0 or offset + length > self.capacity:
            raise KernelError(f"Access out of arena bounds: ptr={ptr:#x} length={length}")
        return offset

    def reset(self) -> None:
        """Rewind the cursor and clear the memory."""
        memory = self._buffer()
        memory[: self.used] = bytes(self.used)
        self._cursor = self.base

    def dispose(self) -> None:
        self._memory = None
        self._cursor = self.base


# =============================================================================
# Parsed Document Model
# =============================================================================


@dataclass(frozen=True)
class Block:
    """A top-level block: ``⟦tag:name⟧{body}``."""

    tag: str
    name: Optional[str]
    body: str
    offset: int  # byte offset of the opening delimiter


@dataclass(frozen=True)
class ParsedDocument:
    """Structure recovered by the reference kernel."""

    version: str
    name: str
    date: Optional[str]
    blocks: Tuple[Block, ...] = ()

    def blocks_by_tag(self) -> Dict[str, List[Block]]:
        grouped: Dict[str, List[Block]] = {}
        for block in self.blocks:
            grouped.setdefault(block.tag, []).append(block)
        return grouped


@dataclass
class ValidationContext:
    """
    Per-call kernel state.

    Owns the arena and every piece of state the kernel mutates: the
    document table, the last parse error and the last violation detail.
    Entering the context resets it; leaving disposes the arena.
    """

    arena: Arena = field(default_factory=Arena)
    documents: Dict[int, ParsedDocument] = field(default_factory=dict)
    error_offset: int = 0
    error_code: int = STATUS_OK
    detail: str = ""
    _next_id: int = 1

    def reset(self) -> None:
        self.arena.reset()
        self.documents.clear()
        self.error_offset = 0
        self.error_code = STATUS_OK
        self.detail = ""
        self._next_id = 1

    def register(self, document: ParsedDocument) -> int:
        document_id = self._next_id
        self._next_id += 1
        self.documents[document_id] = document
        return document_id

    def document(self, document_id: int) -> ParsedDocument:
        try:
            return self.documents[document_id]
        except KeyError:
            raise KernelError(f"Unknown document id: {document_id}")

    def fail(self, code: int, offset: int, detail: str = "") -> int:
        self.error_code = code
        self.error_offset = offset
        self.detail = detail
        return -code

    def close(self) -> None:
        self.documents.clear()
        self.arena.dispose()

    def __enter__(self) -> "ValidationContext":
        self.reset()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


# =============================================================================
# Kernel ABI
# =============================================================================


class StructuralKernel(ABC):
    """Capability implemented by every structural kernel."""

    @abstractmethod
    def init(self) -> int:
        """Prepare the kernel; return STATUS_OK on success."""

    @abstractmethod
    def parse(self, ctx: ValidationContext, ptr: int, length: int) -> int:
        """Parse ``length`` bytes at ``ptr``; return a document id or a negative code."""

    @abstractmethod
    def validate(self, ctx: ValidationContext, document_id: int) -> int:
        """Check structural rules; return VALID or a violation code."""

    @abstractmethod
    def ambiguity(self, ctx: ValidationContext, document_id: int) -> float:
        """Residual interpretive uncertainty of a parsed document, in [0, 1]."""

    def error_offset(self, ctx: ValidationContext) -> int:
        return ctx.error_offset

    def error_code(self, ctx: ValidationContext) -> int:
        return ctx.error_code


# =============================================================================
# Reference Kernel
# =============================================================================

# Header line: 𝔸5.1.name@2026-01-09
HEADER_RE = re.compile(
    re.escape(HEADER_SYMBOL)
    + r"(\d+(?:\.\d+)*)\.([A-Za-z_][\w-]*)(?:@(\d{4}-\d{2}-\d{2}))?"
)

# Evidence density declaration: δ≜0.82
EVIDENCE_DELTA_RE = re.compile(r"δ\s*≜\s*(-?[0-9]*\.?[0-9]+)")

STATEMENT_SPLIT_RE = re.compile(r"[;\n]")

# Bytes reserved per block in the arena-side block table
BLOCK_RECORD_SIZE = 16


def _byte_offset(text: str, index: int) -> int:
    """Convert a character index into a UTF-8 byte offset."""
    return len(text[:index].encode("utf-8"))


def split_statements(body: str) -> List[str]:
    """Split a block body into ``;``/newline separated statements."""
    return [s.strip() for s in STATEMENT_SPLIT_RE.split(body) if s.strip()]


class _Malformed(Exception):
    def __init__(self, code: int, index: int, detail: str = "") -> None:
        self.code = code
        self.index = index
        self.detail = detail
        super().__init__(detail or PARSE_ERROR_MESSAGES[code])


class ReferenceKernel(StructuralKernel):
    """
    Pure-Python structural kernel.

    Grammar::

        document := ws* header preamble (block | text)*
        header   := "𝔸" version "." name ["@" date]
        block    := "⟦" tag [":" name] "⟧" ws* body
        body     := "{" ... "}" | "⟨" ... "⟩"
    """

    def __init__(self, max_length: int = KERNEL_MAX) -> None:
        self.max_length = max_length
        self._initialized = False
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._initialized

    def init(self) -> int:
        with self._lock:
            if not self._initialized:
                self._initialized = True
                logger.debug("Reference kernel ready (max %d bytes)", self.max_length)
        return STATUS_OK

    # -------------------------------------------------------------------------
    # parse
    # -------------------------------------------------------------------------

    def parse(self, ctx: ValidationContext, ptr: int, length: int) -> int:
        if length > self.max_length:
            return ctx.fail(PARSE_TOO_LARGE, self.max_length)

        raw = ctx.arena.read(ptr, length)
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            return ctx.fail(PARSE_INVALID_ENCODING, e.start)

        try:
            document = self._parse_text(text)
        except _Malformed as e:
            return ctx.fail(e.code, _byte_offset(text, e.index), e.detail)

        try:
            ctx.arena.alloc(BLOCK_RECORD_SIZE * len(document.blocks), 8)
        except ArenaExhaustedError as e:
            return ctx.fail(PARSE_OUT_OF_MEMORY, length, str(e))

        document_id = ctx.register(document)
        logger.debug(
            "Parsed document %d: %d block(s)", document_id, len(document.blocks)
        )
        return document_id

    def _parse_text(self, text: str) -> ParsedDocument:
        start = header_start(text)
        if not text.startswith(HEADER_SYMBOL, start):
            raise _Malformed(PARSE_MISSING_HEADER, start)

        header = HEADER_RE.match(text, start)
        if not header:
            raise _Malformed(PARSE_MALFORMED_HEADER, start)
        version, name, date = header.groups()

        blocks: List[Block] = []
        index = header.end()
        while True:
            index = text.find(BLOCK_OPEN, index)
            if index < 0:
                break
            block, index = self._parse_block(text, index)
            blocks.append(block)

        return ParsedDocument(version=version, name=name, date=date, blocks=tuple(blocks))

    def _parse_block(self, text: str, start: int) -> Tuple[Block, int]:
        close = text.find(BLOCK_CLOSE, start + 1)
        if close < 0:
            raise _Malformed(PARSE_UNTERMINATED_TAG, start)

        label = text[start + 1:close]
        tag, _, block_name = label.partition(":")
        if len(tag) != 1 or not tag.isalpha():
            raise _Malformed(PARSE_INVALID_TAG, start, f"Invalid block tag: {label!r}")

        body_start = close + 1
        while body_start < len(text) and text[body_start].isspace():
            body_start += 1
        if body_start >= len(text) or text[body_start] not in BODY_DELIMITERS:
            raise _Malformed(PARSE_MISSING_BODY, start, f"Block {BLOCK_OPEN}{tag} has no body")

        opener = text[body_start]
        closer = BODY_DELIMITERS[opener]
        depth = 0
        for index in range(body_start, len(text)):
            ch = text[index]
            if ch == opener:
                depth += 1
            elif ch == closer:
                depth -= 1
                if depth == 0:
                    block = Block(
                        tag=tag,
                        name=block_name or None,
                        body=text[body_start + 1:index],
                        offset=_byte_offset(text, start),
                    )
                    return block, index + 1

        raise _Malformed(
            PARSE_UNTERMINATED_BODY,
            body_start,
            f"Block {BLOCK_OPEN}{tag} body is missing {closer}",
        )

    # -------------------------------------------------------------------------
    # validate
    # -------------------------------------------------------------------------

    def validate(self, ctx: ValidationContext, document_id: int) -> int:
        document = ctx.document(document_id)
        grouped = document.blocks_by_tag()

        for tag in BLOCK_TAGS:
            if tag not in grouped:
                ctx.detail = f"{BLOCK_OPEN}{tag} ({BLOCK_TAGS[tag]})"
                return INVALID_MISSING_BLOCK

        for tag, blocks in grouped.items():
            if len(blocks) > 1:
                ctx.detail = f"{BLOCK_OPEN}{tag} appears {len(blocks)} times"
                return INVALID_DUPLICATE_BLOCK

        for block in document.blocks:
            if not block.body.strip():
                ctx.detail = f"{BLOCK_OPEN}{block.tag} at offset {block.offset}"
                return INVALID_EMPTY_BLOCK

        for block in grouped[EVIDENCE_TAG]:
            for match in EVIDENCE_DELTA_RE.finditer(block.body):
                declared = float(match.group(1))
                if not 0.0 <= declared <= 1.0:
                    ctx.detail = f"δ≜{match.group(1)}"
                    return INVALID_EVIDENCE

        ctx.detail = ""
        return VALID

    # -------------------------------------------------------------------------
    # ambiguity
    # -------------------------------------------------------------------------

    def ambiguity(self, ctx: ValidationContext, document_id: int) -> float:
        """
        1 - |uniquely read statements| / |statements|.

        A statement reads uniquely when at least one catalog symbol pins
        its interpretation. A document with no statements is fully
        ambiguous.
        """
        document = ctx.document(document_id)
        statements = [
            statement
            for block in document.blocks
            for statement in split_statements(block.body)
        ]
        if not statements:
            return 1.0

        unique = sum(
            1 for statement in statements
            if any(symbol in statement for symbol in SYMBOL_CATALOG)
        )
        return 1.0 - unique / len(statements)
