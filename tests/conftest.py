"""Shared fixtures: a scripted engine that replays population histories."""

import pytest

from switch_engine_search.config import SearchConfig


class ScriptedEngine:
    """Engine stub that replays a population sequence and records every call.

    ``populations[i]`` is reported after quantum ``i + 1``. The anchor cell
    reads alive for quanta ``<= alive_until`` (always, if None). The seed
    anchor at (0, 0) always reads alive before the first advance.
    """

    def __init__(self, populations=(), alive_until=None):
        self.populations = list(populations)
        self.alive_until = alive_until
        self.quantum = 0
        self.calls = []
        self.saved = []

    def count(self, name):
        return sum(1 for call in self.calls if call[0] == name)

    def reset_generation_counter(self):
        self.calls.append(("reset_generation_counter",))
        self.quantum = 0

    def clear_region(self, rect, outside=False):
        self.calls.append(("clear_region", rect, outside))

    def place_pattern(self, pattern, x, y):
        self.calls.append(("place_pattern", x, y))

    def randomize_region(self, rect, density_percent):
        self.calls.append(("randomize_region", rect, density_percent))

    def advance(self, n):
        self.calls.append(("advance", n))
        self.quantum += 1

    def get_cell(self, x, y):
        self.calls.append(("get_cell", x, y))
        if self.quantum == 0:
            return (x, y) == (0, 0)
        return self.alive_until is None or self.quantum <= self.alive_until

    def get_population(self):
        self.calls.append(("get_population", self.quantum))
        return self.populations[self.quantum - 1]

    def save_pattern(self, path):
        self.calls.append(("save_pattern", path))
        self.saved.append(path)


# Populations whose deltas end in (77, 25, 3) at quanta 3, 4, 5.
GLIDER_LEFT_POPULATIONS = [100, 110, 187, 212, 215, 300, 400]

# Deltas of 10 every quantum, which no signature uses.
STEADY_POPULATIONS = [10 * (i + 1) for i in range(200)]


class JitterScriptedEngine(ScriptedEngine):
    """Picks a script from the jittered perturbation width of each trial."""

    def randomize_region(self, rect, density_percent):
        super().randomize_region(rect, density_percent)
        kind = rect.width % 3
        if kind == 0:
            self.populations, self.alive_until = STEADY_POPULATIONS, 1
        elif kind == 1:
            self.populations, self.alive_until = GLIDER_LEFT_POPULATIONS, None
        else:
            self.populations, self.alive_until = STEADY_POPULATIONS, None


@pytest.fixture
def small_config(tmp_path):
    """Short trials on a small grid, writing into a temp directory."""
    return SearchConfig(
        max_quantums=5,
        reset_quanta=(2, 4),
        status_every=1,
        output_dir=str(tmp_path / "out"),
        grid_size=256,
        origin=(150, 150),
        seed=1234,
    )
