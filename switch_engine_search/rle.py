"""Run-length encoded (RLE) pattern files, the portable Life pattern format."""

import re
from typing import List, Optional, Tuple

import numpy as np

LINE_WIDTH = 70

_HEADER = re.compile(r"^\s*x\s*=\s*(\d+)\s*,\s*y\s*=\s*(\d+)", re.IGNORECASE)
_TOKEN = re.compile(r"(\d*)([a-zA-Z.$!])")


def parse_rle(text: str) -> np.ndarray:
    """Parse an RLE pattern into a (height, width) uint8 array.

    Accepts a bare body such as ``bobo$o$bo2bo$3b3o!`` or a full file with
    ``#`` comment lines and an ``x = .., y = ..`` header. Any letter other
    than ``b`` counts as a live cell.
    """
    width = height = 0
    body_lines = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        header = _HEADER.match(stripped)
        if header:
            width, height = int(header.group(1)), int(header.group(2))
            continue
        body_lines.append(stripped)
    body = "".join(body_lines)

    rows: List[List[int]] = [[]]
    pos = 0
    for match in _TOKEN.finditer(body):
        if match.start() != pos and body[pos:match.start()].strip():
            raise ValueError(f"Unexpected RLE text: {body[pos:match.start()]!r}")
        pos = match.end()
        count = int(match.group(1)) if match.group(1) else 1
        tag = match.group(2)
        if tag == "!":
            break
        if tag == "$":
            rows.extend([] for _ in range(count))
        elif tag in "b.":
            rows[-1].extend([0] * count)
        else:
            rows[-1].extend([1] * count)
    else:
        if body.strip():
            raise ValueError("RLE pattern is missing its terminating '!'")

    width = max([width] + [len(r) for r in rows])
    height = max(height, len(rows))
    grid = np.zeros((height, width), dtype=np.uint8)
    for y, row in enumerate(rows):
        grid[y, :len(row)] = row
    return grid


def _row_runs(row: np.ndarray) -> List[Tuple[int, str]]:
    """Runs of (count, tag) for one row with trailing dead cells dropped."""
    live = np.flatnonzero(row)
    if live.size == 0:
        return []
    row = row[:live[-1] + 1]
    runs: List[Tuple[int, str]] = []
    for cell in row:
        tag = "o" if cell else "b"
        if runs and runs[-1][1] == tag:
            runs[-1] = (runs[-1][0] + 1, tag)
        else:
            runs.append((1, tag))
    return runs


def _token(count: int, tag: str) -> str:
    return f"{count}{tag}" if count > 1 else tag


def format_rle(
    cells: np.ndarray,
    rule: str = "B3/S23",
    position: Optional[Tuple[int, int]] = None,
    generation: Optional[int] = None,
) -> str:
    """Encode a cell array as RLE text.

    ``position`` and ``generation`` are written on an extended ``#CXRLE``
    line so the pattern reloads at its original plane coordinates.
    """
    height, width = cells.shape
    lines = []
    if position is not None:
        extended = f"#CXRLE Pos={position[0]},{position[1]}"
        if generation is not None:
            extended += f" Gen={generation}"
        lines.append(extended)
    lines.append(f"x = {width}, y = {height}, rule = {rule}")

    tokens = []
    pending_rows = 0
    for y in range(height):
        if y > 0:
            pending_rows += 1
        runs = _row_runs(cells[y])
        if not runs:
            continue
        if pending_rows:
            tokens.append(_token(pending_rows, "$"))
            pending_rows = 0
        tokens.extend(_token(count, tag) for count, tag in runs)
    tokens.append("!")

    current = ""
    for token in tokens:
        if len(current) + len(token) > LINE_WIDTH:
            lines.append(current)
            current = ""
        current += token
    lines.append(current)
    return "\n".join(lines) + "\n"
