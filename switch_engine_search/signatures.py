"""Known periodic population-delta signatures of switch engine puffers."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

Triple = Tuple[int, int, int]


class OutcomeClass(Enum):
    """Recognized debris-producing behaviors."""
    BLOCK_MAKER = "block-maker"
    GLIDER_MAKER_LEFT = "glider-maker-left"
    GLIDER_MAKER_RIGHT = "glider-maker-right"


class CatalogError(ValueError):
    """Two outcome classes claim the same signature."""


@dataclass(frozen=True)
class Signature:
    """Population deltas ``(pd[q], pd[q-1], pd[q-2])`` and the class they identify."""
    deltas: Triple
    outcome: OutcomeClass


class SignatureCatalog:
    """Immutable lookup table from delta triples to outcome classes."""

    def __init__(self, entries: Iterable[Signature]):
        self._entries: Tuple[Signature, ...] = tuple(entries)
        table: Dict[Triple, OutcomeClass] = {}
        for sig in self._entries:
            key = tuple(sig.deltas)
            if len(key) != 3:
                raise CatalogError(f"Signature must have three deltas: {sig.deltas}")
            existing = table.get(key)
            if existing is not None and existing is not sig.outcome:
                raise CatalogError(
                    f"Signature {key} is claimed by both {existing.value} and {sig.outcome.value}"
                )
            table[key] = sig.outcome
        self._table = table

    def lookup(self, deltas: Triple) -> Optional[OutcomeClass]:
        """Return the class for a delta triple, or None if it is not known."""
        return self._table.get(tuple(deltas))

    def classes(self) -> List[OutcomeClass]:
        """Outcome classes in the order they first appear in the catalog."""
        seen: List[OutcomeClass] = []
        for sig in self._entries:
            if sig.outcome not in seen:
                seen.append(sig.outcome)
        return seen

    def signatures_for(self, outcome: OutcomeClass) -> List[Triple]:
        return [tuple(sig.deltas) for sig in self._entries if sig.outcome is outcome]

    def __len__(self):
        return len(self._table)

    def __iter__(self):
        return iter(self._entries)


def _rotations(outcome: OutcomeClass, *triples: Triple) -> List[Signature]:
    return [Signature(t, outcome) for t in triples]


# Each cycle is listed at every phase the loop can first be detected in.
DEFAULT_SIGNATURES: Tuple[Signature, ...] = tuple(
    _rotations(OutcomeClass.BLOCK_MAKER,
               (29, 5, -2), (5, -2, 29), (-2, 29, 5))
    + _rotations(OutcomeClass.GLIDER_MAKER_LEFT,
                 (3, 25, 77), (25, 77, -46), (77, -46, 3), (-46, 3, 25))
    + _rotations(OutcomeClass.GLIDER_MAKER_RIGHT,
                 (106, 6, 1), (6, 1, -54), (1, -54, 106), (-54, 106, 6))
)

DEFAULT_CATALOG = SignatureCatalog(DEFAULT_SIGNATURES)
