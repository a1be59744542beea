# SPDX-License-Identifier: MIT
"""Tests for the AISP kernel module: arena, context and reference kernel."""

import unittest

from tools.aisp.kernel import (
    INVALID_DUPLICATE_BLOCK,
    INVALID_EMPTY_BLOCK,
    INVALID_EVIDENCE,
    INVALID_MISSING_BLOCK,
    PARSE_INVALID_ENCODING,
    PARSE_INVALID_TAG,
    PARSE_MALFORMED_HEADER,
    PARSE_MISSING_BODY,
    PARSE_MISSING_HEADER,
    PARSE_TOO_LARGE,
    PARSE_UNTERMINATED_BODY,
    PARSE_UNTERMINATED_TAG,
    STATUS_OK,
    VALID,
    Arena,
    ArenaExhaustedError,
    KernelError,
    ReferenceKernel,
    ValidationContext,
    split_statements,
)
from tools.aisp.tests.samples import HEADER, make_document


class TestArena(unittest.TestCase):
    """Test the bump allocator."""

    def test_alloc_starts_at_base(self) -> None:
        """First allocation returns the base pointer."""
        arena = Arena(64)
        self.assertEqual(arena.alloc(3), 0x1000)
        self.assertEqual(arena.used, 3)

    def test_alignment_rounding(self) -> None:
        """Pointers are rounded up to the requested alignment."""
        arena = Arena(64)
        arena.alloc(3, 1)
        self.assertEqual(arena.alloc(4, 8), 0x1008)
        self.assertEqual(arena.alloc(1, 4), 0x100C)
        self.assertEqual(arena.used, 13)

    def test_invalid_alignment(self) -> None:
        """Alignment must be a power of two."""
        arena = Arena(64)
        with self.assertRaises(ValueError):
            arena.alloc(4, 3)
        with self.assertRaises(ValueError):
            arena.alloc(4, 0)

    def test_exhaustion(self) -> None:
        """Allocations past capacity raise."""
        arena = Arena(16)
        arena.alloc(10)
        with self.assertRaises(ArenaExhaustedError) as ctx:
            arena.alloc(8)
        self.assertEqual(ctx.exception.requested, 8)
        self.assertEqual(ctx.exception.available, 6)

    def test_write_read(self) -> None:
        """Bytes written at a pointer read back unchanged."""
        arena = Arena(32)
        ptr = arena.alloc(5)
        arena.write(ptr, b"hello")
        self.assertEqual(arena.read(ptr, 5), b"hello")

    def test_out_of_bounds_access(self) -> None:
        """Reads outside the arena raise KernelError."""
        arena = Arena(8)
        with self.assertRaises(KernelError):
            arena.read(0x0FFF, 2)
        with self.assertRaises(KernelError):
            arena.write(0x1006, b"abcd")

    def test_reset(self) -> None:
        """Reset rewinds the cursor and clears memory."""
        arena = Arena(16)
        ptr = arena.alloc(4)
        arena.write(ptr, b"data")
        arena.reset()
        self.assertEqual(arena.used, 0)
        self.assertEqual(arena.alloc(4), ptr)
        self.assertEqual(arena.read(ptr, 4), b"\x00\x00\x00\x00")

    def test_dispose(self) -> None:
        """A disposed arena refuses further use."""
        arena = Arena(16)
        arena.dispose()
        self.assertTrue(arena.disposed)
        with self.assertRaises(KernelError):
            arena.alloc(1)
        with self.assertRaises(KernelError):
            arena.reset()


class TestValidationContext(unittest.TestCase):
    """Test per-call kernel state."""

    def test_register_ids_start_at_one(self) -> None:
        """Document ids are positive and sequential per context."""
        ctx = ValidationContext()
        kernel = ReferenceKernel()
        first = _parse(kernel, ctx, make_document())
        second = _parse(kernel, ctx, make_document())
        self.assertEqual((first, second), (1, 2))

    def test_unknown_document(self) -> None:
        """Looking up an unknown id raises KernelError."""
        ctx = ValidationContext()
        with self.assertRaises(KernelError):
            ctx.document(7)

    def test_context_manager_disposes(self) -> None:
        """Leaving the context disposes its arena."""
        with ValidationContext(arena=Arena(64)) as ctx:
            ctx.arena.alloc(8)
        self.assertTrue(ctx.arena.disposed)

    def test_reset_clears_state(self) -> None:
        """Reset forgets documents and the last error."""
        ctx = ValidationContext()
        kernel = ReferenceKernel()
        _parse(kernel, ctx, "no header")
        _parse(kernel, ctx, make_document())
        ctx.reset()
        self.assertEqual(ctx.documents, {})
        self.assertEqual(ctx.error_code, STATUS_OK)
        self.assertEqual(ctx.arena.used, 0)


def _parse(kernel: ReferenceKernel, ctx: ValidationContext, source) -> int:
    """Copy a document into the context arena and parse it."""
    data = source.encode("utf-8") if isinstance(source, str) else source
    ptr = ctx.arena.alloc(len(data))
    ctx.arena.write(ptr, data)
    return kernel.parse(ctx, ptr, len(data))


class TestReferenceKernelParse(unittest.TestCase):
    """Test the reference kernel's parser."""

    def setUp(self) -> None:
        """Set up test fixtures."""
        self.kernel = ReferenceKernel()
        self.assertEqual(self.kernel.init(), STATUS_OK)
        self.ctx = ValidationContext()

    def assertParseError(self, source, code: int, offset: int) -> None:
        """Parsing fails with the given code and byte offset."""
        result = _parse(self.kernel, self.ctx, source)
        self.assertLess(result, 0)
        self.assertEqual(self.kernel.error_code(self.ctx), code)
        self.assertEqual(self.kernel.error_offset(self.ctx), offset)

    def test_init_idempotent(self) -> None:
        """Repeated init succeeds."""
        self.assertEqual(self.kernel.init(), STATUS_OK)
        self.assertTrue(self.kernel.initialized)

    def test_parse_complete_document(self) -> None:
        """A well-formed document parses into its blocks."""
        document_id = _parse(self.kernel, self.ctx, make_document(bindings=2))
        self.assertGreater(document_id, 0)

        document = self.ctx.document(document_id)
        self.assertEqual(document.version, "5.1")
        self.assertEqual(document.name, "sample")
        self.assertEqual(document.date, "2026-01-09")
        self.assertEqual([b.tag for b in document.blocks], ["Ω", "Σ", "Γ", "Λ", "Ε"])
        self.assertEqual(document.blocks[0].name, "Meta")
        self.assertIsNone(document.blocks[4].name)
        self.assertEqual(document.blocks[1].body, "Unit:ℕ; T0≜ℕ; T1≜ℕ")
        self.assertEqual(document.blocks[4].body, "φ:98")

    def test_header_after_whitespace(self) -> None:
        """Leading whitespace before the header is allowed."""
        self.assertGreater(_parse(self.kernel, self.ctx, "\n  " + make_document()), 0)

    def test_header_after_byte_order_mark(self) -> None:
        """A leading BOM is skipped like whitespace."""
        self.assertGreater(_parse(self.kernel, self.ctx, "\ufeff" + make_document()), 0)
        self.assertGreater(_parse(self.kernel, self.ctx, " \ufeff\n" + make_document()), 0)

    def test_header_without_date(self) -> None:
        """The date suffix is optional."""
        document_id = _parse(self.kernel, self.ctx, "𝔸5.1.nodate\n⟦Ω⟧{a:ℕ}")
        self.assertIsNone(self.ctx.document(document_id).date)

    def test_nested_body_delimiters(self) -> None:
        """Nested braces stay inside the block body."""
        document_id = _parse(self.kernel, self.ctx, HEADER + "\n⟦Σ:Types⟧{S≜{a,b}; T≜ℕ}")
        self.assertEqual(self.ctx.document(document_id).blocks[0].body, "S≜{a,b}; T≜ℕ")

    def test_missing_header(self) -> None:
        """Documents must start with the header symbol."""
        self.assertParseError("⟦Ω:Meta⟧{a:b}", PARSE_MISSING_HEADER, 0)
        self.assertParseError("  hello", PARSE_MISSING_HEADER, 2)

    def test_malformed_header(self) -> None:
        """The header needs a version and a name."""
        self.assertParseError("𝔸abc\n⟦Ω⟧{a}", PARSE_MALFORMED_HEADER, 0)

    def test_invalid_utf8(self) -> None:
        """Undecodable bytes report their byte offset."""
        data = "𝔸5.1.x".encode("utf-8") + b"\xff"
        self.assertParseError(data, PARSE_INVALID_ENCODING, len(data) - 1)

    def test_unterminated_tag(self) -> None:
        """A block opener without a closing bracket fails."""
        source = HEADER + "\n⟦Ω:Meta{a:b}"
        offset = len((HEADER + "\n").encode("utf-8"))
        self.assertParseError(source, PARSE_UNTERMINATED_TAG, offset)

    def test_invalid_tag(self) -> None:
        """Block tags are a single letter."""
        source = HEADER + "\n⟦12:Bad⟧{a}"
        offset = len((HEADER + "\n").encode("utf-8"))
        self.assertParseError(source, PARSE_INVALID_TAG, offset)
        self.assertIn("12:Bad", self.ctx.detail)

    def test_missing_body(self) -> None:
        """A block must be followed by a delimited body."""
        source = HEADER + "\n⟦Γ:Rules⟧ x≥0"
        offset = len((HEADER + "\n").encode("utf-8"))
        self.assertParseError(source, PARSE_MISSING_BODY, offset)

    def test_unterminated_body(self) -> None:
        """An unclosed body reports the offset of its opener."""
        source = make_document().replace("⟦Λ:Funcs⟧{f:ℕ}", "⟦Λ:Funcs⟧{f:ℕ")
        data = source.encode("utf-8")
        offset = data.index(b"{", data.index("⟦Λ".encode("utf-8")))
        self.assertParseError(source, PARSE_UNTERMINATED_BODY, offset)

    def test_too_large(self) -> None:
        """Buffers above the kernel limit are refused."""
        source = make_document(padding=2000)
        self.assertParseError(source, PARSE_TOO_LARGE, 1024)


class TestReferenceKernelValidate(unittest.TestCase):
    """Test the reference kernel's structural rules."""

    def setUp(self) -> None:
        """Set up test fixtures."""
        self.kernel = ReferenceKernel()
        self.kernel.init()
        self.ctx = ValidationContext()

    def _validate(self, source: str) -> int:
        document_id = _parse(self.kernel, self.ctx, source)
        self.assertGreater(document_id, 0)
        return self.kernel.validate(self.ctx, document_id)

    def test_valid_document(self) -> None:
        """A complete document is valid."""
        self.assertEqual(self._validate(make_document(bindings=4)), VALID)
        self.assertEqual(self.ctx.detail, "")

    def test_missing_block(self) -> None:
        """Every required block must be present."""
        code = self._validate(make_document(blocks=("Ω", "Σ", "Γ", "Ε")))
        self.assertEqual(code, INVALID_MISSING_BLOCK)
        self.assertIn("⟦Λ", self.ctx.detail)

    def test_duplicate_block(self) -> None:
        """A tag may appear only once."""
        code = self._validate(make_document() + "⟦Ω:Meta⟧{again:yes}\n")
        self.assertEqual(code, INVALID_DUPLICATE_BLOCK)
        self.assertIn("2 times", self.ctx.detail)

    def test_empty_block(self) -> None:
        """Block bodies may not be blank."""
        code = self._validate(make_document().replace("{x≥0}", "{   }"))
        self.assertEqual(code, INVALID_EMPTY_BLOCK)

    def test_evidence_delta_range(self) -> None:
        """Declared evidence density must lie in [0, 1]."""
        self.assertEqual(
            self._validate(make_document().replace("⟨φ:98⟩", "⟨δ≜0.82;φ≜98⟩")),
            VALID,
        )
        self.assertEqual(
            self._validate(make_document().replace("⟨φ:98⟩", "⟨δ≜1.5;φ≜98⟩")),
            INVALID_EVIDENCE,
        )

    def test_marker_in_preamble_prose_is_a_block(self) -> None:
        """Strict parsing treats every opener after the header as a block."""
        source = make_document().replace("\n⟦Ω", "\nSee ⟦Ω:Meta⟧{note} first.\n⟦Ω", 1)
        self.assertEqual(self._validate(source), INVALID_DUPLICATE_BLOCK)


class TestReferenceKernelAmbiguity(unittest.TestCase):
    """Test the ambiguity score."""

    def setUp(self) -> None:
        """Set up test fixtures."""
        self.kernel = ReferenceKernel()
        self.kernel.init()
        self.ctx = ValidationContext()

    def _ambiguity(self, source: str) -> float:
        document_id = _parse(self.kernel, self.ctx, source)
        return self.kernel.ambiguity(self.ctx, document_id)

    def test_split_statements(self) -> None:
        """Statements split on semicolons and newlines."""
        self.assertEqual(split_statements(" a; b\n c ;; \n"), ["a", "b", "c"])

    def test_sample_document(self) -> None:
        """Only the prose-only meta statement is ambiguous."""
        # statements: domain:sample, Unit:ℕ, T0≜ℕ..T3≜ℕ, x≥0, f:ℕ, φ:98
        self.assertAlmostEqual(self._ambiguity(make_document(bindings=4)), 1 / 9)

    def test_fully_symbolic(self) -> None:
        """Every statement pinned by a symbol gives zero ambiguity."""
        self.assertEqual(self._ambiguity(HEADER + "\n⟦Σ⟧{a≜ℕ; b≜ℤ}"), 0.0)

    def test_no_statements(self) -> None:
        """A document without statements is fully ambiguous."""
        self.assertEqual(self._ambiguity(HEADER + "\nno blocks at all"), 1.0)

    def test_range(self) -> None:
        """Ambiguity stays in [0, 1]."""
        for n in (0, 3, 30):
            score = self._ambiguity(make_document(bindings=n))
            self.assertGreaterEqual(score, 0.0)
            self.assertLessEqual(score, 1.0)


if __name__ == "__main__":
    unittest.main()
