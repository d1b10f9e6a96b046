"""Search parameters, loadable from a JSON file."""

import json
from dataclasses import asdict, dataclass, fields, replace as replace_fields
from pathlib import Path
from typing import Dict, Optional, Tuple

from .automaton import Rect, Rule

SEED_RLE = "bobo$o$bo2bo$3b3o!"

# Cells the switch engine occupies around its anchor, in any direction.
ENGINE_FOOTPRINT = 8


@dataclass(frozen=True)
class SearchConfig:
    """Immutable configuration for one search process."""
    # A quantum is the number of generations run between checks.
    gens_per_quantum: int = 96
    # Engine movement per quantum (positive is toward the lower right).
    displacement: Tuple[int, int] = (-8, -8)
    max_quantums: int = 100
    # Quanta at which everything far from the engine is cleared away.
    reset_quanta: Tuple[int, ...] = (16, 40, 80)
    protect_size: int = 180
    protect_offset: int = 80

    seed_rle: str = SEED_RLE
    # Must put the anchor cell (0, 0) on.
    seed_offset: Tuple[int, int] = (0, -1)

    # Field of random cells placed behind the engine, before jitter.
    perturbation: Tuple[int, int, int, int] = (-3, 14, 20, 11)
    jitter_moduli: Tuple[int, int] = (7, 5)
    density_percent: float = 34.0

    status_every: int = 1024
    output_dir: str = "out"
    snapshots: bool = False
    found_log: bool = True

    rule: str = "B3/S23"
    grid_size: int = 1024
    origin: Tuple[int, int] = (880, 880)
    seed: Optional[int] = None

    def __post_init__(self):
        if self.gens_per_quantum < 1:
            raise ValueError("gens_per_quantum must be positive")
        if self.max_quantums < 1:
            raise ValueError("max_quantums must be positive")
        if self.status_every < 1:
            raise ValueError("status_every must be positive")
        if not 0 <= self.density_percent <= 100:
            raise ValueError("density_percent must be between 0 and 100")
        if any(m < 1 for m in self.jitter_moduli):
            raise ValueError("jitter_moduli must be positive")
        Rule.from_string(self.rule)

        if not ENGINE_FOOTPRINT <= self.protect_offset <= self.protect_size - ENGINE_FOOTPRINT:
            raise ValueError(
                f"protect_offset must leave {ENGINE_FOOTPRINT} cells on both sides of the engine "
                f"inside protect_size ({self.protect_size})"
            )
        for q in self.reset_quanta:
            if not 1 <= q <= self.max_quantums:
                raise ValueError(f"reset quantum {q} is outside 1..{self.max_quantums}")
            if not self._fits_grid(self.protect_rect(q)):
                raise ValueError(f"reset square at quantum {q} falls outside the grid")
        ax, ay = self.anchor(self.max_quantums)
        if not self._fits_grid(Rect(ax, ay, 1, 1)):
            raise ValueError(
                f"engine leaves the grid before quantum {self.max_quantums}; "
                f"enlarge grid_size or move origin"
            )

    def _fits_grid(self, rect: Rect) -> bool:
        ox, oy = self.origin
        return (0 <= rect.x + ox and rect.right + ox <= self.grid_size
                and 0 <= rect.y + oy and rect.bottom + oy <= self.grid_size)

    def perturbation_rect(self, trial_index: int) -> Rect:
        """Random field for a trial, with its size jittered by the trial index."""
        x, y, width, height = self.perturbation
        mod_w, mod_h = self.jitter_moduli
        return Rect(x, y, width + trial_index % mod_w, height + trial_index % mod_h)

    def anchor(self, q: int) -> Tuple[int, int]:
        """Predicted position of the anchor cell after ``q`` quanta."""
        dx, dy = self.displacement
        return q * dx, q * dy

    def protect_rect(self, q: int) -> Rect:
        """Square kept alive by the reset at quantum ``q``."""
        ax, ay = self.anchor(q)
        return Rect(ax - self.protect_offset, ay - self.protect_offset,
                    self.protect_size, self.protect_size)

    def replace(self, **overrides) -> "SearchConfig":
        """Copy with the given fields changed; ``None`` values are ignored."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace_fields(self, **changes)

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> "SearchConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
        values = {k: tuple(v) if isinstance(v, list) else v for k, v in data.items()}
        return cls(**values)

    @classmethod
    def from_json(cls, filepath: str) -> "SearchConfig":
        """Load a config file; missing keys keep their defaults."""
        with open(filepath, "r") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{filepath}: expected a JSON object")
        return cls.from_dict(data)

    def save(self, filepath: str):
        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
