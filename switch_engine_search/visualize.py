"""PNG snapshots of found patterns."""

from typing import Optional

import numpy as np
from PIL import Image

# Margin of dead cells drawn around a pattern.
BORDER = 2


def render_grid_fast(grid: np.ndarray, cell_size: int = 4) -> np.ndarray:
    """Fast vectorized grid rendering."""
    h, w = grid.shape

    # Create base image with dead cell color
    img = np.full((h * cell_size, w * cell_size, 3), 30, dtype=np.uint8)

    # Upscale grid using repeat
    upscaled = np.repeat(np.repeat(grid, cell_size, axis=0), cell_size, axis=1)

    # Set live cells to white
    img[upscaled == 1] = 255

    return img


def save_image(grid: np.ndarray, filepath, cell_size: int = 4, max_pixels: Optional[int] = 2048):
    """Save a cell array as PNG, shrinking cells so neither side exceeds ``max_pixels``."""
    grid = np.pad(grid, BORDER)
    if max_pixels:
        cell_size = max(1, min(cell_size, max_pixels // max(grid.shape)))
    img = Image.fromarray(render_grid_fast(grid, cell_size))
    img.save(filepath)


def save_snapshot(engine, filepath, cell_size: int = 4):
    """Save the live part of an engine's grid as PNG."""
    _, cells = engine.live_cells()
    save_image(cells, filepath, cell_size=cell_size)
