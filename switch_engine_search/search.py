"""Search loop and run statistics for the switch engine puffer search."""

import signal
import time
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Optional

from .signatures import OutcomeClass

# Status line groups: a label, then the classes whose shares it sums.
# Groups of more than one class also show each member share in brackets.
STATUS_GROUPS = (
    ("bm", (OutcomeClass.BLOCK_MAKER,)),
    ("gm", (OutcomeClass.GLIDER_MAKER_LEFT, OutcomeClass.GLIDER_MAKER_RIGHT)),
)


@dataclass(frozen=True)
class SearchState:
    """Run statistics. Every update returns a new state.

    ``first_index`` is the trial index this run started from, so a run
    continuing in an old output directory does not reuse pattern names.
    """
    start_time: float
    first_index: int = 0
    trials: int = 0
    died: int = 0
    found: int = 0
    counts: Dict[OutcomeClass, int] = field(default_factory=dict)

    def count(self, outcome_class: OutcomeClass) -> int:
        return self.counts.get(outcome_class, 0)

    def with_matched(self, outcome_class: OutcomeClass) -> "SearchState":
        counts = dict(self.counts)
        counts[outcome_class] = counts.get(outcome_class, 0) + 1
        return replace(self, counts=counts)

    def with_died(self) -> "SearchState":
        return replace(self, died=self.died + 1)

    def with_found(self) -> "SearchState":
        return replace(self, found=self.found + 1)

    def next_trial(self) -> "SearchState":
        return replace(self, trials=self.trials + 1)

    @property
    def next_index(self) -> int:
        return self.first_index + self.trials


def format_status(state: SearchState, now: float) -> Optional[str]:
    """Status line for the operator, or None if there is nothing to report yet."""
    secs = now - state.start_time
    if secs < 1 or state.trials < 1:
        return None

    def pct(n: int) -> str:
        return f"{100.0 * n / state.trials:.1f}%"

    parts = [f"Runs:{state.trials}"]
    grouped = set()
    for label, classes in STATUS_GROUPS:
        part = f"{label}:{pct(sum(state.count(c) for c in classes))}"
        if len(classes) > 1:
            part += " (" + ",".join(pct(state.count(c)) for c in classes) + ")"
        parts.append(part)
        grouped.update(classes)
    for outcome_class in OutcomeClass:
        if outcome_class not in grouped:
            parts.append(f"{outcome_class.value}:{pct(state.count(outcome_class))}")
    parts.append(f"died:{pct(state.died)}")
    parts.append(f"runs/sec:{state.trials / secs:.1f}")
    parts.append(f"found:{state.found}")
    return " ".join(parts)


class ShutdownFlag:
    """Cooperative stop request, polled by the search loop between trials."""

    def __init__(self):
        self.requested = False

    def request(self, signum=None, frame=None):
        if not self.requested:
            print("\nStop requested, finishing the current trial...")
        self.requested = True

    def __call__(self) -> bool:
        return self.requested

    @contextmanager
    def installed(self, signals=(signal.SIGINT, signal.SIGTERM)):
        """Route the given signals to ``request`` while the block runs."""
        previous = {sig: signal.signal(sig, self.request) for sig in signals}
        try:
            yield self
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)


def run_search(
    runner,
    recorder,
    status_every: int = 1024,
    state: Optional[SearchState] = None,
    should_stop: Optional[Callable[[], bool]] = None,
    max_trials: Optional[int] = None,
    report: Callable[[str], None] = print,
    clock: Callable[[], float] = time.monotonic,
) -> SearchState:
    """Run trials until stopped, returning the final statistics.

    Trial indices continue from ``state.next_index``. ``should_stop`` is checked
    before each trial, so a stop request lets the in-flight trial finish.
    """
    if state is None:
        state = SearchState(start_time=clock())

    run = 0
    while max_trials is None or run < max_trials:
        if should_stop is not None and should_stop():
            break

        trial_index = state.next_index
        outcome = runner.run_trial(trial_index)
        state = recorder.record(state, trial_index, outcome).next_trial()
        run += 1

        if state.trials % status_every == 0:
            line = format_status(state, clock())
            if line is not None:
                report(line)

    return state
