"""Run one seed-perturb-advance-classify trial."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .automaton import Engine, EngineError, Rect
from .config import SearchConfig
from .rle import parse_rle
from .signatures import DEFAULT_CATALOG, OutcomeClass, SignatureCatalog

# Quanta of deltas needed before a signature can be matched.
SIGNATURE_LENGTH = 3


class OutcomeKind(Enum):
    DIED = "died"
    MATCHED = "matched"
    UNIDENTIFIED = "unidentified"


@dataclass
class TrialState:
    """Per-trial bookkeeping: quantum counter, populations and their deltas."""
    q: int = 0
    population: List[int] = field(default_factory=lambda: [0])
    pd: List[int] = field(default_factory=lambda: [0])

    def record(self, population: int):
        """Store the population for the current quantum and its delta."""
        self.population.append(population)
        self.pd.append(population - self.population[self.q - 1])

    def signature(self):
        """The latest three deltas, newest first."""
        q = self.q
        return self.pd[q], self.pd[q - 1], self.pd[q - 2]


@dataclass(frozen=True)
class TrialOutcome:
    """How a trial ended and at which quantum."""
    kind: OutcomeKind
    quantum: int
    outcome_class: Optional[OutcomeClass] = None
    population: tuple = ()

    @classmethod
    def died(cls, state: TrialState) -> "TrialOutcome":
        return cls(OutcomeKind.DIED, state.q, population=tuple(state.population))

    @classmethod
    def matched(cls, state: TrialState, outcome_class: OutcomeClass) -> "TrialOutcome":
        return cls(OutcomeKind.MATCHED, state.q, outcome_class, tuple(state.population))

    @classmethod
    def unidentified(cls, state: TrialState) -> "TrialOutcome":
        return cls(OutcomeKind.UNIDENTIFIED, state.q, population=tuple(state.population))


class TrialRunner:
    """Seeds the switch engine, perturbs it, and classifies what it turns into.

    Survival is judged by a single anchor cell at the predicted engine position.
    An engine knocked off its straight path is therefore reported as dead.
    """

    def __init__(
        self,
        engine: Engine,
        config: Optional[SearchConfig] = None,
        catalog: SignatureCatalog = DEFAULT_CATALOG,
    ):
        self.engine = engine
        self.config = config or SearchConfig()
        self.catalog = catalog
        self.seed_pattern = parse_rle(self.config.seed_rle)
        self._reset_quanta = frozenset(self.config.reset_quanta)

    def _place_seed(self):
        # Everything except the anchor cell, which the seed sets anyway.
        self.engine.clear_region(Rect(0, 0, 1, 1), outside=True)
        x, y = self.config.seed_offset
        self.engine.place_pattern(self.seed_pattern, x, y)
        if not self.engine.get_cell(0, 0):
            raise EngineError(f"Seed placed at ({x}, {y}) does not cover the anchor cell (0, 0)")

    def run_trial(self, trial_index: int) -> TrialOutcome:
        """Run one trial to completion and classify it."""
        cfg = self.config
        engine = self.engine

        engine.reset_generation_counter()
        self._place_seed()
        engine.randomize_region(cfg.perturbation_rect(trial_index), cfg.density_percent)

        state = TrialState()
        while True:
            state.q += 1
            engine.advance(cfg.gens_per_quantum)

            x, y = cfg.anchor(state.q)
            if not engine.get_cell(x, y):
                return TrialOutcome.died(state)

            state.record(engine.get_population())

            if state.q >= SIGNATURE_LENGTH:
                outcome_class = self.catalog.lookup(state.signature())
                if outcome_class is not None:
                    return TrialOutcome.matched(state, outcome_class)

            if state.q in self._reset_quanta:
                engine.clear_region(cfg.protect_rect(state.q), outside=True)

            if state.q >= cfg.max_quantums:
                return TrialOutcome.unidentified(state)
