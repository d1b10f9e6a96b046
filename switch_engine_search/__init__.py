"""Switch Engine Puffer Search - find unknown switch engine puffers in Conway's Game of Life."""

from .automaton import GridEngine, Rect, Rule
from .config import SearchConfig
from .search import SearchState, run_search
from .signatures import DEFAULT_CATALOG, OutcomeClass, SignatureCatalog
from .storage import OutcomeRecorder
from .trial import TrialOutcome, TrialRunner

__all__ = [
    "GridEngine",
    "Rect",
    "Rule",
    "SearchConfig",
    "SearchState",
    "run_search",
    "DEFAULT_CATALOG",
    "OutcomeClass",
    "SignatureCatalog",
    "OutcomeRecorder",
    "TrialOutcome",
    "TrialRunner",
]
