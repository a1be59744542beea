# SPDX-License-Identifier: MIT
"""
AISP Document Validator

Validates AISP documents and scores their semantic density. Small
documents go through the structural kernel (strict mode); larger ones,
or callers that opt out of strict mode, get presence and threshold checks
(heuristic mode). Density and tier are reported on every outcome except
size rejections.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from .config import ValidatorConfig
from .density import DensityResult, calculate_semantic_density, missing_blocks
from .kernel import VALID, StructuralKernel
from .structural import ParseError, StructuralValidator, fits_kernel
from .symbols import CATALOG_VERSION, HEADER_SYMBOL, header_start
from .tiers import MINIMUM_PASSING_DELTA, Tier, tier_from_delta

logger = logging.getLogger(__name__)

Source = Union[str, bytes]

# Outcome error codes outside the kernel's range
ERROR_NONE = 0
ERROR_HEURISTIC = -3
ERROR_SIZE_EXCEEDED = -4

# Heuristic-mode ambiguity scores
AMBIGUITY_NO_HEADER = 1.0
AMBIGUITY_INCOMPLETE = 0.5
AMBIGUITY_PASSING = 0.01


class SizeExceededError(Exception):
    """Raised when a document is larger than the configured maximum."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"Document too large ({size} bytes, max {limit} bytes)")


class Mode(Enum):
    STRICT = "strict"
    HEURISTIC = "heuristic"

    def __str__(self) -> str:
        return self.value


class FailureKind(Enum):
    """Why a document was rejected."""

    SIZE_EXCEEDED = "size_exceeded"
    PARSE_ERROR = "parse_error"
    STRUCTURAL = "structural_validation"
    MISSING_HEADER = "missing_header"
    MISSING_BLOCKS = "missing_blocks"
    BELOW_THRESHOLD = "below_threshold"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Document:
    """Immutable document bytes plus a decoded text view."""

    data: bytes
    text: str

    @classmethod
    def from_source(cls, source: Source) -> "Document":
        if isinstance(source, bytes):
            return cls(data=source, text=source.decode("utf-8", errors="replace"))
        return cls(data=source.encode("utf-8", errors="surrogatepass"), text=source)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class CheckResult:
    """Verdict of one validation strategy."""

    valid: bool
    ambiguity: Optional[float] = None
    error_code: int = ERROR_NONE
    error: Optional[str] = None
    error_offset: Optional[int] = None
    missing_blocks: Tuple[str, ...] = ()
    failure: Optional[FailureKind] = None


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of validating one document."""

    valid: bool
    error_code: int
    tier: Optional[Tier] = None
    delta: Optional[float] = None
    pure_density: Optional[float] = None
    ambiguity: Optional[float] = None
    mode: Optional[Mode] = None
    doc_size: Optional[int] = None
    error: Optional[str] = None
    error_offset: Optional[int] = None
    missing_blocks: Tuple[str, ...] = ()
    failure: Optional[FailureKind] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert outcome to dictionary for JSON serialization."""
        result: Dict[str, Any] = {"valid": self.valid}
        if self.tier is not None:
            result.update(self.tier.to_dict())
        if self.delta is not None:
            result["delta"] = self.delta
        if self.pure_density is not None:
            result["pure_density"] = self.pure_density
        if self.ambiguity is not None:
            result["ambiguity"] = self.ambiguity
        result["error_code"] = self.error_code
        if self.mode is not None:
            result["mode"] = str(self.mode)
        if self.doc_size is not None:
            result["doc_size"] = self.doc_size
        if self.error is not None:
            result["error"] = self.error
        if self.error_offset is not None:
            result["error_offset"] = self.error_offset
        if self.missing_blocks:
            result["missing_blocks"] = list(self.missing_blocks)
        if self.failure is not None:
            result["failure"] = str(self.failure)
        return result

    def to_json(self) -> str:
        """Convert outcome to JSON string."""
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)


# =============================================================================
# Validation Strategies
# =============================================================================


class DocumentValidator(ABC):
    """Common capability of the strict and heuristic paths."""

    mode: Mode

    @abstractmethod
    def check(self, document: Document, density: DensityResult) -> CheckResult:
        """Judge a size-accepted document whose density is already known."""


class StrictValidator(DocumentValidator):
    """Delegates to the structural kernel: parse, then validate."""

    mode = Mode.STRICT

    def __init__(self, structural: StructuralValidator) -> None:
        self.structural = structural

    def check(self, document: Document, density: DensityResult) -> CheckResult:
        with self.structural.session() as ctx:
            try:
                handle = self.structural.parse(ctx, document.data)
            except ParseError as e:
                return CheckResult(
                    valid=False,
                    error_code=e.code,
                    error=f"Parse error: {e}",
                    error_offset=e.offset,
                    failure=FailureKind.PARSE_ERROR,
                )

            code = self.structural.validate(handle)
            ambiguity = self.structural.ambiguity(handle)
            if code != VALID:
                return CheckResult(
                    valid=False,
                    ambiguity=ambiguity,
                    error_code=code,
                    error=self.structural.describe(handle, code),
                    failure=FailureKind.STRUCTURAL,
                )
            return CheckResult(valid=True, ambiguity=ambiguity)


class HeuristicValidator(DocumentValidator):
    """Header, block presence and density threshold checks."""

    mode = Mode.HEURISTIC

    def check(self, document: Document, density: DensityResult) -> CheckResult:
        if not document.text.startswith(HEADER_SYMBOL, header_start(document.text)):
            return CheckResult(
                valid=False,
                ambiguity=AMBIGUITY_NO_HEADER,
                error_code=ERROR_HEURISTIC,
                error=f"Missing AISP header ({HEADER_SYMBOL})",
                failure=FailureKind.MISSING_HEADER,
            )

        missing = tuple(missing_blocks(document.text))
        if missing:
            return CheckResult(
                valid=False,
                ambiguity=AMBIGUITY_INCOMPLETE,
                error_code=ERROR_HEURISTIC,
                error=f"Missing required blocks: {', '.join(missing)}",
                missing_blocks=missing,
                failure=FailureKind.MISSING_BLOCKS,
            )

        if density.delta < MINIMUM_PASSING_DELTA:
            return CheckResult(
                valid=False,
                ambiguity=AMBIGUITY_INCOMPLETE,
                error_code=ERROR_HEURISTIC,
                error=(
                    f"Density {density.delta:.2f} below minimum "
                    f"{MINIMUM_PASSING_DELTA:.2f}"
                ),
                failure=FailureKind.BELOW_THRESHOLD,
            )

        return CheckResult(valid=True, ambiguity=AMBIGUITY_PASSING)


# =============================================================================
# Orchestrator
# =============================================================================


def check_size(size: int, limit: int) -> None:
    """
    Raises:
        SizeExceededError: If size is above limit
    """
    if size > limit:
        raise SizeExceededError(size, limit)


class Validator:
    """
    Validation orchestrator.

    SizeCheck -> DensityCompute -> ModeSelect -> strategy check -> Merge.
    """

    def __init__(
        self,
        config: Optional[ValidatorConfig] = None,
        kernel: Optional[StructuralKernel] = None,
    ) -> None:
        self.config = config if config is not None else ValidatorConfig()
        self.structural = StructuralValidator(kernel)
        self.strict_validator = StrictValidator(self.structural)
        self.heuristic_validator = HeuristicValidator()

    @property
    def initialized(self) -> bool:
        return self.structural.initialized

    def init(self, max_doc_size: Optional[int] = None) -> int:
        """
        Initialize the structural kernel (idempotent).

        Args:
            max_doc_size: Optional new document cap, clamped to ABSOLUTE_MAX

        Returns:
            0 on success
        """
        if max_doc_size is not None:
            self.set_max_doc_size(max_doc_size)
        return self.structural.init()

    def set_max_doc_size(self, size: int) -> None:
        self.config = self.config.with_max_doc_size(size)

    def select(self, doc_size: int, strict: Optional[bool] = None) -> DocumentValidator:
        """Pick the strategy for a document purely from its size."""
        use_strict = self.config.strict if strict is None else strict
        if use_strict and fits_kernel(doc_size):
            return self.strict_validator
        return self.heuristic_validator

    def validate(self, source: Source, strict: Optional[bool] = None) -> ValidationOutcome:
        """
        Validate an AISP document.

        Args:
            source: Document text or raw UTF-8 bytes
            strict: Override the configured strict flag for this call;
                False forces heuristic mode

        Returns:
            ValidationOutcome with validity, tier, density and diagnostics

        Raises:
            KernelUninitializedError: If strict mode is selected before init()
        """
        document = Document.from_source(source)

        try:
            check_size(document.size, self.config.max_doc_size)
        except SizeExceededError as e:
            logger.debug("Rejected oversized document: %s", e)
            return ValidationOutcome(
                valid=False,
                error_code=ERROR_SIZE_EXCEEDED,
                doc_size=document.size,
                error=str(e),
                failure=FailureKind.SIZE_EXCEEDED,
            )

        density = calculate_semantic_density(document.text)
        tier = tier_from_delta(density.delta)

        validator = self.select(document.size, strict)
        logger.debug(
            "Validating %d-byte document in %s mode (delta=%.3f, tier=%s)",
            document.size,
            validator.mode,
            density.delta,
            tier.tier_name,
        )
        result = validator.check(document, density)

        return ValidationOutcome(
            valid=result.valid,
            error_code=result.error_code,
            tier=tier,
            delta=density.delta,
            pure_density=density.pure_density,
            ambiguity=result.ambiguity,
            mode=validator.mode,
            doc_size=document.size if validator.mode is Mode.HEURISTIC else None,
            error=result.error,
            error_offset=result.error_offset,
            missing_blocks=result.missing_blocks,
            failure=result.failure,
        )

    def is_valid(self, source: Source) -> bool:
        return self.validate(source).valid

    def get_density(self, source: Source) -> Optional[float]:
        return self.validate(source).delta

    def get_tier(self, source: Source) -> Optional[Tier]:
        return self.validate(source).tier

    def validate_file(self, path: Union[str, Path], strict: Optional[bool] = None) -> ValidationOutcome:
        return self.validate(Path(path).read_bytes(), strict=strict)

    def debug(self, source: Source) -> Dict[str, Any]:
        return debug_document(source)

    def debug_file(self, path: Union[str, Path]) -> Dict[str, Any]:
        return debug_document(Path(path).read_bytes())


# =============================================================================
# Module-level helpers
# =============================================================================


def validate_document(
    source: Source,
    strict: Optional[bool] = None,
    config: Optional[ValidatorConfig] = None,
) -> ValidationOutcome:
    """
    Validate one document with a freshly initialized validator.

    ``strict`` overrides ``config.strict`` only when given.
    """
    validator = Validator(config)
    validator.init()
    return validator.validate(source, strict=strict)


def debug_document(source: Source) -> Dict[str, Any]:
    """
    Density breakdown without validation or size checks.

    Returns:
        Tier fields, delta, pure density, both component scores, the
        raw counters behind them and the symbol catalog version
    """
    document = Document.from_source(source)
    density = calculate_semantic_density(document.text)
    result: Dict[str, Any] = tier_from_delta(density.delta).to_dict()
    result.update(
        {
            "delta": density.delta,
            "pure_density": density.pure_density,
            "block_score": density.block_score,
            "binding_score": density.binding_score,
            "breakdown": density.breakdown(),
            "catalog_version": CATALOG_VERSION,
        }
    )
    return result

