# SPDX-License-Identifier: MIT
"""
AISP Density Scoring

Computes the semantic density (delta) of a document from two signals:
block coverage and binding-operator richness. Also reports the pure
symbol/token ratio for diagnostics.

    delta = 0.4 * block_score + 0.6 * binding_score

All functions here are pure and safe to call concurrently.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Tuple

from .symbols import BINDING_CATEGORIES, REQUIRED_BLOCKS, SYMBOL_CATALOG

# Fixed policy constants; changing them breaks score compatibility.
BLOCK_WEIGHT = 0.4
BINDING_WEIGHT = 0.6
BINDING_SATURATION = 20


@dataclass(frozen=True)
class SymbolScan:
    """Result of scanning a document for catalog symbols."""

    symbol_count: int
    token_count: int
    inventory: Dict[str, int] = field(default_factory=dict)

    @property
    def pure_density(self) -> float:
        if self.token_count == 0:
            return 0.0
        return self.symbol_count / self.token_count


@dataclass(frozen=True)
class BindingTally:
    """Counts of binding operators per category."""

    definitions: int = 0
    assignments: int = 0
    quantifiers: int = 0
    lambdas: int = 0
    implications: int = 0
    set_operators: int = 0

    @property
    def total(self) -> int:
        return (
            self.definitions
            + self.assignments
            + self.quantifiers
            + self.lambdas
            + self.implications
            + self.set_operators
        )

    def to_dict(self) -> Dict[str, int]:
        return {name: getattr(self, name) for name in BINDING_CATEGORIES}


@dataclass(frozen=True)
class DensityResult:
    """Combined density signals for one document."""

    blocks_found: Tuple[str, ...]
    bindings: BindingTally
    scan: SymbolScan

    @property
    def block_score(self) -> float:
        return len(self.blocks_found) / len(REQUIRED_BLOCKS)

    @property
    def binding_score(self) -> float:
        return binding_score(self.bindings.total)

    @property
    def delta(self) -> float:
        return score_density(self.block_score, self.bindings.total)

    @property
    def pure_density(self) -> float:
        return self.scan.pure_density

    def breakdown(self) -> Dict[str, Any]:
        """Detailed counters behind the scores, for debugging output."""
        result: Dict[str, Any] = {
            "blocks_found": len(self.blocks_found),
            "blocks_required": len(REQUIRED_BLOCKS),
        }
        result.update(self.bindings.to_dict())
        result["total_bindings"] = self.bindings.total
        result["symbol_count"] = self.scan.symbol_count
        result["token_count"] = self.scan.token_count
        return result


# =============================================================================
# Symbol Scanner
# =============================================================================


def count_occurrences(text: str, symbols: Iterable[str]) -> int:
    """Sum of non-overlapping occurrences of each symbol in text."""
    return sum(text.count(symbol) for symbol in symbols)


def count_tokens(text: str) -> int:
    """Count whitespace-separated, non-empty runs."""
    return len(text.split())


def scan_symbols(text: str) -> SymbolScan:
    """
    Scan text for catalog symbols and whitespace tokens.

    Each catalog symbol is counted independently, so a character that is
    part of several entries is never double counted (entries are distinct
    code points).

    Args:
        text: Document text

    Returns:
        SymbolScan with the symbol inventory and token count
    """
    inventory: Dict[str, int] = {}
    for symbol in SYMBOL_CATALOG:
        count = text.count(symbol)
        if count:
            inventory[symbol] = count

    return SymbolScan(
        symbol_count=sum(inventory.values()),
        token_count=count_tokens(text),
        inventory=inventory,
    )


def calculate_pure_density(text: str) -> float:
    """Ratio of catalog symbols to whitespace tokens (0 for empty text)."""
    return scan_symbols(text).pure_density


# =============================================================================
# Block Detector
# =============================================================================


def detect_blocks(text: str) -> Tuple[str, ...]:
    """
    Return the required block markers present anywhere in text.

    Detection is plain substring presence. A marker quoted inside prose
    still counts as found.
    """
    return tuple(marker for marker in REQUIRED_BLOCKS if marker in text)


def missing_blocks(text: str) -> List[str]:
    """Return the required block markers absent from text, in catalog order."""
    return [marker for marker in REQUIRED_BLOCKS if marker not in text]


def block_score(text: str) -> float:
    return len(detect_blocks(text)) / len(REQUIRED_BLOCKS)


# =============================================================================
# Binding Counter
# =============================================================================


def count_bindings(text: str) -> BindingTally:
    """Count binding operators in each of the six categories."""
    counts = {
        name: count_occurrences(text, members)
        for name, members in BINDING_CATEGORIES.items()
    }
    return BindingTally(**counts)


# =============================================================================
# Density Scorer
# =============================================================================


def binding_score(total_bindings: int) -> float:
    """Linear in the binding count, saturating at 1.0."""
    return min(1.0, total_bindings / BINDING_SATURATION)


def score_density(block_score: float, total_bindings: int) -> float:
    """
    Combine block coverage and binding count into delta.

    Args:
        block_score: Fraction of required blocks present, in [0, 1]
        total_bindings: Number of binding operators in the document

    Returns:
        delta in [0, 1]
    """
    return (block_score * BLOCK_WEIGHT) + (binding_score(total_bindings) * BINDING_WEIGHT)


def calculate_semantic_density(text: str) -> DensityResult:
    """Run the scanner, block detector and binding counter over text."""
    return DensityResult(
        blocks_found=detect_blocks(text),
        bindings=count_bindings(text),
        scan=scan_symbols(text),
    )
