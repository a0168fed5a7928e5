from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterator

logger = logging.getLogger(__name__)

# choose(n) -> index in [0, n)
RandomChoice = Callable[[int], int]


class ConstructionError(ValueError):
    """Raised when a grid is requested with non-positive dimensions."""


class OutOfBoundsError(ValueError):
    """Raised when a coordinate outside the grid is queried."""


class Direction(Enum):
    UP = (0, -1)
    RIGHT = (1, 0)
    DOWN = (0, 1)
    LEFT = (-1, 0)

    @property
    def delta(self) -> tuple[int, int]:
        return self.value

    @property
    def opposite(self) -> "Direction":
        return {
            Direction.UP: Direction.DOWN,
            Direction.DOWN: Direction.UP,
            Direction.RIGHT: Direction.LEFT,
            Direction.LEFT: Direction.RIGHT,
        }[self]


def _all_walls() -> Dict[Direction, bool]:
    return {d: True for d in Direction}


@dataclass(eq=False)
class Cell:
    x: int
    y: int
    walls: Dict[Direction, bool] = field(default_factory=_all_walls)
    visited: bool = False

    @property
    def pos(self) -> tuple[int, int]:
        return (self.x, self.y)

    def has_wall(self, direction: Direction) -> bool:
        return self.walls[direction]


class Grid:
    """
    Rectangular collection of cells indexed by (column, row).

    Every cell starts fully walled. The only way to remove a wall is
    open_passage(), which clears both sides of the shared edge.
    """

    def __init__(self, width: int, height: int):
        if not isinstance(width, int) or not isinstance(height, int):
            raise ConstructionError(f"Grid dimensions must be integers, got {width!r}x{height!r}")
        if width <= 0 or height <= 0:
            raise ConstructionError(f"Grid dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self._rows: list[list[Cell]] = [[Cell(x, y) for x in range(width)] for y in range(height)]

    @classmethod
    def create(cls, width: int, height: int) -> "Grid":
        return cls(width, height)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def cell_at(self, x: int, y: int) -> Cell:
        if not self.in_bounds(x, y):
            raise OutOfBoundsError(f"Out of bounds position: ({x}, {y})")
        return self._rows[y][x]

    def cells(self) -> Iterator[Cell]:
        for row in self._rows:
            yield from row

    def neighbors_of(self, cell: Cell) -> list[Cell]:
        out: list[Cell] = []
        for direction in Direction:
            dx, dy = direction.delta
            nx, ny = cell.x + dx, cell.y + dy
            if self.in_bounds(nx, ny):
                out.append(self._rows[ny][nx])
        return out

    def open_passage(self, a: Cell, b: Cell) -> None:
        direction = _direction_between(a, b)
        if direction is None:
            raise ValueError(f"Cells {a.pos} and {b.pos} are not adjacent")
        a.walls[direction] = False
        b.walls[direction.opposite] = False

    def open_directions(self, cell: Cell) -> set[Direction]:
        return {d for d in Direction if not cell.walls[d]}

    def passage_count(self) -> int:
        # Only look right and down so each shared edge is counted once.
        count = 0
        for cell in self.cells():
            if cell.x + 1 < self.width and not cell.walls[Direction.RIGHT]:
                count += 1
            if cell.y + 1 < self.height and not cell.walls[Direction.DOWN]:
                count += 1
        return count


def _direction_between(a: Cell, b: Cell) -> Direction | None:
    for direction in Direction:
        dx, dy = direction.delta
        if (a.x + dx, a.y + dy) == (b.x, b.y):
            return direction
    return None


def seeded_choice(seed: int | None) -> RandomChoice:
    rng = random.Random(seed)
    return rng.randrange


def generate_maze(grid: Grid, choose: RandomChoice) -> Grid:
    """Carve a perfect maze into a fully walled grid.

    Iterative backtracker: pop the top cell, and if it still has unvisited
    neighbours push it back before pushing the chosen neighbour. A cell with
    no unvisited neighbours is dropped, which unwinds the stack.
    """
    start = grid.cell_at(0, 0)
    start.visited = True
    stack: list[Cell] = [start]

    while stack:
        current = stack.pop()
        unvisited = [n for n in grid.neighbors_of(current) if not n.visited]
        if not unvisited:
            continue

        stack.append(current)
        idx = choose(len(unvisited))
        if not 0 <= idx < len(unvisited):
            raise ValueError(f"Random choice returned {idx}, expected 0 <= index < {len(unvisited)}")
        nxt = unvisited[idx]
        grid.open_passage(current, nxt)
        nxt.visited = True
        stack.append(nxt)

    logger.debug("Generated %dx%d maze with %d passages", grid.width, grid.height, grid.passage_count())
    return grid


def build_maze(width: int, height: int, choose: RandomChoice | None = None) -> Grid:
    """Create a fresh grid and carve it. Defaults to the module-level random source."""
    grid = Grid.create(width, height)
    return generate_maze(grid, choose if choose is not None else random.randrange)
