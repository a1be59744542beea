# SPDX-License-Identifier: MIT
"""
AISP Symbol Catalog

Fixed symbol tables shared by the density scorer, the heuristic validator
and the reference kernel. Density scores are only comparable across
implementations when these tables match exactly.
"""

from __future__ import annotations

from typing import Dict, Tuple

# Catalog version; bump whenever a table below changes.
CATALOG_VERSION = "5.1"


# =============================================================================
# Symbol Catalog
# =============================================================================

SYMBOL_CATALOG: Tuple[str, ...] = (
    # Block delimiters
    "⟦", "⟧",
    # Operators
    "≜", "≔", "≡", "≢",
    # Quantifiers
    "∀", "∃",
    # Lambda
    "λ",
    # Logic
    "⇒", "⇔", "→", "↔", "∧", "∨", "¬", "⊕",
    # Sets
    "∈", "∉", "⊆", "⊇", "∩", "∪", "∅", "𝒫",
    # Relations
    "≤", "≥", "<", ">",
    # Types
    "ℕ", "ℤ", "ℝ", "𝔹", "𝕊",
    # Document
    "𝔸",
    # Tier symbols
    "◊", "⊘",
    # Tuples
    "⟨", "⟩",
    # Greek domain markers
    "α", "β", "γ", "δ", "ε", "φ", "τ", "ρ",
    "Ω", "Σ", "Γ", "Λ", "Ε", "Θ", "Χ", "Δ", "Π",
)

HEADER_SYMBOL = "𝔸"

# Byte-order mark; skipped along with leading whitespace before the header
BYTE_ORDER_MARK = "\ufeff"

BLOCK_OPEN = "⟦"
BLOCK_CLOSE = "⟧"

# Body delimiters accepted after a block tag
BODY_DELIMITERS: Dict[str, str] = {"{": "}", "⟨": "⟩"}


# =============================================================================
# Required Blocks
# =============================================================================

# Tag letters are Greek capitals; "Ε" is epsilon, not Latin E.
BLOCK_TAGS: Dict[str, str] = {
    "Ω": "Meta",
    "Σ": "Types",
    "Γ": "Rules",
    "Λ": "Funcs",
    "Ε": "Evidence",
}

REQUIRED_BLOCKS: Tuple[str, ...] = tuple(BLOCK_OPEN + tag for tag in BLOCK_TAGS)

EVIDENCE_TAG = "Ε"


# =============================================================================
# Binding Operators
# =============================================================================

BINDING_CATEGORIES: Dict[str, Tuple[str, ...]] = {
    "definitions": ("≜",),
    "assignments": ("≔",),
    "quantifiers": ("∀", "∃"),
    "lambdas": ("λ",),
    "implications": ("⇒", "⇔", "→", "↔"),
    "set_operators": ("∈", "⊆", "∩", "∪", "∅"),
}


# =============================================================================
# File Dispatch
# =============================================================================

SUPPORTED_EXTENSIONS: Tuple[str, ...] = (".aisp", ".md", ".txt", ".spec", ".aisp5")


def is_supported_file(name: str) -> bool:
    """Return True if a file name carries one of the supported extensions."""
    return name.lower().endswith(SUPPORTED_EXTENSIONS)


# =============================================================================
# Header
# =============================================================================


def header_start(text: str) -> int:
    """Index of the first character that is neither whitespace nor a BOM."""
    index = 0
    while index < len(text) and (text[index].isspace() or text[index] == BYTE_ORDER_MARK):
        index += 1
    return index
