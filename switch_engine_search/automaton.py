"""Grid automaton engine consumed by the puffer search.

The search only talks to the engine through the ``Engine`` protocol. ``GridEngine``
is a concrete numpy implementation on a bounded plane with dead borders.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Set, Tuple

import numpy as np
from scipy import ndimage

from . import rle


class EngineError(RuntimeError):
    """The engine could not perform a requested grid operation."""


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in plane coordinates (y grows downward)."""
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height


@dataclass
class Rule:
    """Outer-totalistic rule in Birth/Survival notation (e.g., B3/S23 for Game of Life)."""
    birth: Set[int]  # Neighbor counts that cause birth
    survival: Set[int]  # Neighbor counts that allow survival

    @classmethod
    def from_string(cls, rule_str: str) -> "Rule":
        """Parse rule from string like 'B3/S23' or 'B36/S125'."""
        rule_str = rule_str.upper().replace(" ", "")
        birth_part = ""
        survival_part = ""

        if "/" in rule_str:
            parts = rule_str.split("/")
            for part in parts:
                if part.startswith("B"):
                    birth_part = part[1:]
                elif part.startswith("S"):
                    survival_part = part[1:]
        else:
            # Handle format like "B3S23"
            if "S" in rule_str:
                idx = rule_str.index("S")
                birth_part = rule_str[1:idx] if rule_str.startswith("B") else ""
                survival_part = rule_str[idx+1:]
            elif rule_str.startswith("B"):
                birth_part = rule_str[1:]

        birth = set(int(c) for c in birth_part if c.isdigit())
        survival = set(int(c) for c in survival_part if c.isdigit())

        if any(n > 8 for n in birth | survival):
            raise ValueError(f"Neighbor counts must be 0-8: {rule_str}")
        if 0 in birth:
            raise ValueError(f"B0 rules are not supported: {rule_str}")

        return cls(birth=birth, survival=survival)

    def to_string(self) -> str:
        """Convert to standard notation like 'B3/S23'."""
        b_str = "".join(str(i) for i in sorted(self.birth))
        s_str = "".join(str(i) for i in sorted(self.survival))
        return f"B{b_str}/S{s_str}"

    def lookup_tables(self) -> Tuple[np.ndarray, np.ndarray]:
        """Boolean tables indexed by neighbor count: (birth, survival)."""
        birth = np.zeros(9, dtype=bool)
        survival = np.zeros(9, dtype=bool)
        birth[sorted(self.birth)] = True
        survival[sorted(self.survival)] = True
        return birth, survival


GAME_OF_LIFE = Rule.from_string("B3/S23")

_NEIGHBORS = np.array([[1, 1, 1], [1, 0, 1], [1, 1, 1]], dtype=np.uint8)


class Engine(Protocol):
    """Operations the search harness needs from an automaton engine."""

    def clear_region(self, rect: Rect, outside: bool = False) -> None: ...

    def place_pattern(self, pattern: np.ndarray, x: int, y: int) -> None: ...

    def randomize_region(self, rect: Rect, density_percent: float) -> None: ...

    def advance(self, n: int) -> None: ...

    def get_cell(self, x: int, y: int) -> bool: ...

    def get_population(self) -> int: ...

    def save_pattern(self, path) -> None: ...

    def reset_generation_counter(self) -> None: ...


class GridEngine:
    """Bounded 2D automaton with Moore neighborhood and dead borders.

    Plane coordinate (x, y) lives at ``grid[y + origin_y, x + origin_x]``.
    Cells that would be born outside the array are dropped.

    ``_box`` holds array bounds ``(r0, r1, c0, c1)`` (ends exclusive) that
    contain every live cell, or None when the grid is empty. Stepping and
    population counts only look inside it.
    """

    def __init__(
        self,
        size: int = 1024,
        origin: Tuple[int, int] = (880, 880),
        rule: Optional[Rule] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.width = size
        self.height = size
        self.origin_x, self.origin_y = origin
        self.rule = rule or GAME_OF_LIFE
        self.rng = rng if rng is not None else np.random.default_rng()
        self.grid = np.zeros((self.height, self.width), dtype=np.uint8)
        self.generation = 0
        self._box: Optional[Tuple[int, int, int, int]] = None
        self._birth, self._survival = self.rule.lookup_tables()

    def _slices(self, rect: Rect) -> Tuple[slice, slice]:
        """Array slices for a plane rectangle, clipped to the grid."""
        c0 = min(max(rect.x + self.origin_x, 0), self.width)
        c1 = min(max(rect.right + self.origin_x, 0), self.width)
        r0 = min(max(rect.y + self.origin_y, 0), self.height)
        r1 = min(max(rect.bottom + self.origin_y, 0), self.height)
        return slice(r0, r1), slice(c0, c1)

    def _grow_box(self, rows: slice, cols: slice):
        if rows.start >= rows.stop or cols.start >= cols.stop:
            return
        if self._box is None:
            self._box = (rows.start, rows.stop, cols.start, cols.stop)
            return
        r0, r1, c0, c1 = self._box
        self._box = (min(r0, rows.start), max(r1, rows.stop),
                     min(c0, cols.start), max(c1, cols.stop))

    def _fit_box(self, r0: int, c0: int, window: np.ndarray):
        """Shrink the box to the live cells of ``window``, whose corner is (r0, c0)."""
        live = np.argwhere(window)
        if live.size == 0:
            self._box = None
            return
        (lr0, lc0), (lr1, lc1) = live.min(axis=0), live.max(axis=0)
        self._box = (r0 + int(lr0), r0 + int(lr1) + 1, c0 + int(lc0), c0 + int(lc1) + 1)

    def clear_region(self, rect: Rect, outside: bool = False):
        """Kill every cell inside ``rect``, or outside it when ``outside`` is set."""
        rows, cols = self._slices(rect)
        if not outside:
            self.grid[rows, cols] = 0
            return
        if self._box is None:
            return
        kept = self.grid[rows, cols].copy()
        r0, r1, c0, c1 = self._box
        self.grid[r0:r1, c0:c1] = 0
        self.grid[rows, cols] = kept
        r0, r1 = max(r0, rows.start), min(r1, rows.stop)
        c0, c1 = max(c0, cols.start), min(c1, cols.stop)
        self._box = (r0, r1, c0, c1) if r0 < r1 and c0 < c1 else None

    def place_pattern(self, pattern: np.ndarray, x: int, y: int):
        """OR a pattern onto the grid with its top-left corner at (x, y)."""
        ph, pw = pattern.shape
        c0, r0 = x + self.origin_x, y + self.origin_y
        if c0 < 0 or r0 < 0 or c0 + pw > self.width or r0 + ph > self.height:
            raise EngineError(f"Pattern of size {pw}x{ph} at ({x}, {y}) does not fit the grid")
        self.grid[r0:r0 + ph, c0:c0 + pw] |= pattern.astype(np.uint8)
        self._grow_box(slice(r0, r0 + ph), slice(c0, c0 + pw))

    def randomize_region(self, rect: Rect, density_percent: float):
        """Set each cell in ``rect`` alive with probability ``density_percent``/100."""
        rows, cols = self._slices(rect)
        shape = self.grid[rows, cols].shape
        fill = (self.rng.random(shape) < density_percent / 100.0).astype(np.uint8)
        self.grid[rows, cols] = fill
        self._grow_box(rows, cols)

    def step(self):
        """Advance simulation by one generation, touching only the live bounding box."""
        self.generation += 1
        if self._box is None:
            return
        r0, r1, c0, c1 = self._box
        r0, c0 = max(r0 - 1, 0), max(c0 - 1, 0)
        r1, c1 = min(r1 + 1, self.height), min(c1 + 1, self.width)

        window = self.grid[r0:r1, c0:c1]
        neighbors = ndimage.convolve(window, _NEIGHBORS, mode="constant", cval=0)
        born = self._birth[neighbors] & (window == 0)
        survives = self._survival[neighbors] & (window == 1)
        nxt = (born | survives).astype(np.uint8)
        self.grid[r0:r1, c0:c1] = nxt
        self._fit_box(r0, c0, nxt)

    def advance(self, n: int):
        """Run simulation for ``n`` generations."""
        for _ in range(n):
            self.step()

    def get_cell(self, x: int, y: int) -> bool:
        c, r = x + self.origin_x, y + self.origin_y
        if not (0 <= c < self.width and 0 <= r < self.height):
            return False
        return bool(self.grid[r, c])

    def get_population(self) -> int:
        """Count live cells."""
        if self._box is None:
            return 0
        r0, r1, c0, c1 = self._box
        return int(np.sum(self.grid[r0:r1, c0:c1]))

    def live_bounds(self) -> Optional[Rect]:
        """Bounding rectangle of the live cells in plane coordinates, or None if empty."""
        if self._box is None:
            return None
        r0, r1, c0, c1 = self._box
        self._fit_box(r0, c0, self.grid[r0:r1, c0:c1])
        if self._box is None:
            return None
        r0, r1, c0, c1 = self._box
        return Rect(c0 - self.origin_x, r0 - self.origin_y, c1 - c0, r1 - r0)

    def live_cells(self) -> Tuple[Optional[Rect], np.ndarray]:
        """The bounding rectangle and the cropped cell array inside it."""
        bounds = self.live_bounds()
        if bounds is None:
            return None, np.zeros((0, 0), dtype=np.uint8)
        rows, cols = self._slices(bounds)
        return bounds, self.grid[rows, cols].copy()

    def save_pattern(self, path):
        """Write the live cells to ``path`` as RLE."""
        bounds, cells = self.live_cells()
        position = (bounds.x, bounds.y) if bounds else (0, 0)
        text = rle.format_rle(cells, rule=self.rule.to_string(),
                              position=position, generation=self.generation)
        Path(path).write_text(text)

    def reset_generation_counter(self):
        self.generation = 0
