# SPDX-License-Identifier: MIT
"""
AISP Reference Validator

A Python package for validating AISP documents and scoring their semantic
density against the five quality tiers.

Usage:
    from tools.aisp import Validator, debug_document

    validator = Validator()
    validator.init()

    # Validate a document
    outcome = validator.validate(content)

    # Inspect the density breakdown
    report = debug_document(content)
"""

from .config import (
    ABSOLUTE_MAX,
    DEFAULT_MAX,
    KERNEL_MAX,
    ValidatorConfig,
)

from .density import (
    BindingTally,
    DensityResult,
    SymbolScan,
    calculate_pure_density,
    calculate_semantic_density,
    count_bindings,
    detect_blocks,
    scan_symbols,
    score_density,
)

from .tiers import Tier, tier_from_delta

from .kernel import (
    Arena,
    ArenaExhaustedError,
    KernelError,
    ReferenceKernel,
    StructuralKernel,
    ValidationContext,
)

from .structural import (
    DocumentHandle,
    KernelUninitializedError,
    ParseError,
    StructuralValidator,
)

from .validator import (
    FailureKind,
    Mode,
    SizeExceededError,
    ValidationOutcome,
    Validator,
    debug_document,
    validate_document,
)

from .symbols import CATALOG_VERSION, REQUIRED_BLOCKS, SUPPORTED_EXTENSIONS, SYMBOL_CATALOG

__version__ = "0.1.0"
__all__ = [
    # Configuration
    "ABSOLUTE_MAX",
    "DEFAULT_MAX",
    "KERNEL_MAX",
    "ValidatorConfig",
    # Density exports
    "BindingTally",
    "DensityResult",
    "SymbolScan",
    "calculate_pure_density",
    "calculate_semantic_density",
    "count_bindings",
    "detect_blocks",
    "scan_symbols",
    "score_density",
    "Tier",
    "tier_from_delta",
    # Kernel exports
    "Arena",
    "ArenaExhaustedError",
    "KernelError",
    "ReferenceKernel",
    "StructuralKernel",
    "ValidationContext",
    "DocumentHandle",
    "KernelUninitializedError",
    "ParseError",
    "StructuralValidator",
    # Validator exports
    "FailureKind",
    "Mode",
    "SizeExceededError",
    "ValidationOutcome",
    "Validator",
    "debug_document",
    "validate_document",
    # Catalog
    "CATALOG_VERSION",
    "REQUIRED_BLOCKS",
    "SUPPORTED_EXTENSIONS",
    "SYMBOL_CATALOG",
]
