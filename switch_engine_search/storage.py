"""Persistence of unidentified trials and outcome bookkeeping."""

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from .automaton import Engine
from .search import SearchState
from .trial import OutcomeKind, TrialOutcome
from .visualize import save_snapshot

logger = logging.getLogger(__name__)

PATTERN_SUFFIX = ".rle"
FOUND_LOG_NAME = "found.json"


class StorageError(RuntimeError):
    """The output location cannot be created or written."""


def prepare_output_dir(output_dir: str, engine: Engine) -> Path:
    """Create the output directory and prove a pattern can be written there."""
    path = Path(output_dir)
    logger.info("Testing to make sure output directory (%s) exists...", path)
    try:
        path.mkdir(parents=True, exist_ok=True)
        probe = path / f"test{PATTERN_SUFFIX}"
        engine.save_pattern(probe)
        probe.unlink()
    except OSError as e:
        raise StorageError(f"Cannot write patterns to {path}: {e}") from e
    return path


@dataclass
class FoundTrial:
    """An unidentified trial worth a human look."""
    trial_index: int
    quantum: int
    population: List[int]
    pattern_file: str
    found_at: str

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> "FoundTrial":
        return cls(**data)


class FoundLog:
    """JSON manifest of every unidentified trial in an output directory."""

    def __init__(self, filepath: str = FOUND_LOG_NAME):
        self.filepath = Path(filepath)
        self.entries: List[FoundTrial] = []
        self._load()

    def _load(self):
        """Load entries from file."""
        if not self.filepath.exists():
            self.entries = []
            return
        try:
            with open(self.filepath, "r") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise TypeError(f"expected a JSON object, got {type(data).__name__}")
            self.entries = [FoundTrial.from_dict(e) for e in data.get("found", [])]
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            logger.warning("Ignoring unreadable found log %s: %s", self.filepath, e)
            self.entries = []

    def save(self):
        """Save entries to file."""
        self.filepath.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "version": "1.0",
            "updated_at": datetime.now().isoformat(),
            "found": [e.to_dict() for e in self.entries],
        }
        with open(self.filepath, "w") as f:
            json.dump(data, f, indent=2)

    def add(self, trial_index: int, outcome: TrialOutcome, pattern_file: str) -> FoundTrial:
        entry = FoundTrial(
            trial_index=trial_index,
            quantum=outcome.quantum,
            population=list(outcome.population),
            pattern_file=pattern_file,
            found_at=datetime.now().isoformat(),
        )
        self.entries.append(entry)
        self.save()
        return entry

    def __len__(self):
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)


def next_trial_index(output_dir: str, found_log: Optional[FoundLog] = None) -> int:
    """First trial index not yet used by a pattern in ``output_dir``.

    Counts both numbered pattern files and manifest entries, so a search
    restarted in the same directory never overwrites earlier finds.
    """
    used = [int(p.stem) for p in Path(output_dir).glob(f"*{PATTERN_SUFFIX}") if p.stem.isdigit()]
    if found_log is not None:
        used.extend(e.trial_index for e in found_log)
    return max(used) + 1 if used else 0


class OutcomeRecorder:
    """Counts every outcome and saves the pattern of each unidentified trial."""

    def __init__(
        self,
        engine: Engine,
        output_dir: str = "out",
        found_log: Optional[FoundLog] = None,
        snapshots: bool = False,
    ):
        self.engine = engine
        self.output_dir = Path(output_dir)
        self.found_log = found_log
        self.snapshots = snapshots

    def pattern_path(self, trial_index: int) -> Path:
        return self.output_dir / f"{trial_index}{PATTERN_SUFFIX}"

    def record(self, state: SearchState, trial_index: int, outcome: TrialOutcome) -> SearchState:
        """Return ``state`` updated with ``outcome``."""
        if outcome.kind is OutcomeKind.DIED:
            return state.with_died()
        if outcome.kind is OutcomeKind.MATCHED:
            return state.with_matched(outcome.outcome_class)

        self._save_found(trial_index, outcome)
        return state.with_found()

    def _save_found(self, trial_index: int, outcome: TrialOutcome):
        path = self.pattern_path(trial_index)
        try:
            self.engine.save_pattern(path)
        except OSError as e:
            logger.warning("Could not save unidentified trial %d to %s: %s", trial_index, path, e)
            return
        logger.info("Unidentified trial %d saved to %s", trial_index, path)

        if self.snapshots:
            try:
                save_snapshot(self.engine, path.with_suffix(".png"))
            except OSError as e:
                logger.warning("Could not save snapshot for trial %d: %s", trial_index, e)

        if self.found_log is not None:
            try:
                self.found_log.add(trial_index, outcome, path.name)
            except OSError as e:
                logger.warning("Could not update %s: %s", self.found_log.filepath, e)
