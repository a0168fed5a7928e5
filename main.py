from __future__ import annotations

import argparse
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Sequence

from maze import Direction, Grid, RandomChoice, build_maze, seeded_choice

logger = logging.getLogger(__name__)

DEFAULT_DURATION_SECONDS = 60

# Cell sizes in pixels over a square board, as offered by the difficulty picker.
BOARD_SIZE = 400
DIFFICULTY_CELL_SIZES = {"easy": 40, "medium": 20, "hard": 10}
DIFFICULTIES = {
    name: (BOARD_SIZE // cell_size, BOARD_SIZE // cell_size)
    for name, cell_size in DIFFICULTY_CELL_SIZES.items()
}
DEFAULT_DIFFICULTY = "easy"


class TimerStatus(Enum):
    RUNNING = "running"
    EXPIRED = "expired"


@dataclass
class SessionState:
    """
    Solved-maze counter plus a countdown that moves RUNNING -> EXPIRED once.
    """

    duration: int = DEFAULT_DURATION_SECONDS
    solved_count: int = 0
    remaining: int = field(init=False)
    status: TimerStatus = field(init=False)

    def __post_init__(self) -> None:
        if self.duration < 0:
            raise ValueError(f"Timer duration must not be negative, got {self.duration}")
        self.remaining = self.duration
        self.status = TimerStatus.EXPIRED if self.duration == 0 else TimerStatus.RUNNING

    @property
    def is_expired(self) -> bool:
        return self.status is TimerStatus.EXPIRED

    def tick(self) -> bool:
        """Count down one second. Returns True only on the tick that expires the timer."""
        if self.is_expired:
            return False
        self.remaining -= 1
        if self.remaining <= 0:
            self.remaining = 0
            self.status = TimerStatus.EXPIRED
            return True
        return False

    def record_win(self) -> int:
        self.solved_count += 1
        return self.solved_count

    def summary(self) -> str:
        return f"Time is up! Mazes solved: {self.solved_count}"


class PlayerState:
    def __init__(self, grid: Grid):
        self.grid = grid
        self.x = 0
        self.y = 0

    @property
    def pos(self) -> tuple[int, int]:
        return (self.x, self.y)

    @property
    def goal(self) -> tuple[int, int]:
        return (self.grid.width - 1, self.grid.height - 1)

    def reset(self) -> None:
        self.x = 0
        self.y = 0

    def attach(self, grid: Grid) -> None:
        self.grid = grid
        self.reset()

    def move(self, direction: Direction) -> bool:
        # Rim walls are never opened, so a wall check is also a bounds check.
        cell = self.grid.cell_at(self.x, self.y)
        if cell.has_wall(direction):
            return False
        dx, dy = direction.delta
        self.x += dx
        self.y += dy
        return True

    def check_win(self) -> bool:
        return self.pos == self.goal


@dataclass(frozen=True)
class GameConfig:
    width: int = DIFFICULTIES[DEFAULT_DIFFICULTY][0]
    height: int = DIFFICULTIES[DEFAULT_DIFFICULTY][1]
    duration_seconds: int = DEFAULT_DURATION_SECONDS
    seed: int | None = None


@dataclass(frozen=True)
class Command:
    """
    Normalized command object consumed by the engine.
    """

    verb: str
    args: list[str] = field(default_factory=list)


@dataclass
class GameView:
    """
    UI-agnostic state projection returned by the engine.
    """

    pos: dict[str, int]
    goal: dict[str, int]
    width: int
    height: int
    available_moves: list[str]
    solved_count: int
    remaining_seconds: int
    is_expired: bool


@dataclass
class GameOutput:
    """
    Wrapper for state + user-facing messages from engine commands.
    """

    view: GameView
    messages: list[str] = field(default_factory=list)


class GameEngine:
    """Single owner of the active grid, the player and the session."""

    def __init__(self, *, config: GameConfig, choose: RandomChoice | None = None):
        self.config = config
        self._choose = choose if choose is not None else seeded_choice(config.seed)
        self.session = SessionState(duration=config.duration_seconds)
        self.grid = build_maze(config.width, config.height, self._choose)
        self.player = PlayerState(self.grid)

    def _make_view(self) -> GameView:
        x, y = self.player.pos
        gx, gy = self.player.goal
        return GameView(
            pos={"x": x, "y": y},
            goal={"x": gx, "y": gy},
            width=self.grid.width,
            height=self.grid.height,
            available_moves=sorted(d.name.lower() for d in self.grid.open_directions(self.grid.cell_at(x, y))),
            solved_count=self.session.solved_count,
            remaining_seconds=self.session.remaining,
            is_expired=self.session.is_expired,
        )

    def view(self) -> GameView:
        return self._make_view()

    def regenerate(self, width: int, height: int) -> GameOutput:
        # Build the replacement completely before swapping it in.
        grid = build_maze(width, height, self._choose)
        self.grid = grid
        self.player.attach(grid)
        logger.info("New %dx%d maze", width, height)
        return GameOutput(view=self._make_view())

    def set_difficulty(self, name: str) -> GameOutput:
        dims = DIFFICULTIES.get(name.strip().lower())
        if dims is None:
            choices = ", ".join(DIFFICULTIES)
            return GameOutput(view=self._make_view(), messages=[f"Unknown difficulty. Choose one of: {choices}."])
        return self.regenerate(*dims)

    def _maybe_win(self) -> bool:
        if not self.player.check_win():
            return False
        solved = self.session.record_win()
        logger.info("Maze solved (%d so far)", solved)
        self.regenerate(self.grid.width, self.grid.height)
        return True

    def move(self, direction: Direction) -> GameOutput:
        if self.session.is_expired:
            return GameOutput(view=self._make_view(), messages=["The round is over."])

        messages: list[str] = []
        if not self.player.move(direction):
            messages.append("Blocked path.")
        if self._maybe_win():
            messages.append(f"Maze solved! Total: {self.session.solved_count}")
        return GameOutput(view=self._make_view(), messages=messages)

    def tick(self) -> GameOutput:
        messages: list[str] = []
        if self.session.tick():
            logger.info("Timer expired with %d mazes solved", self.session.solved_count)
            messages.append(self.session.summary())
        return GameOutput(view=self._make_view(), messages=messages)

    def _direction_from_token(self, token: str | None) -> Direction | None:
        if token is None:
            return None
        t = token.strip().upper()
        if t == "U":
            t = "UP"
        elif t == "R":
            t = "RIGHT"
        elif t == "D":
            t = "DOWN"
        elif t == "L":
            t = "LEFT"
        return Direction.__members__.get(t)

    def handle(self, command: Command) -> GameOutput:
        verb = (command.verb or "").strip().lower()
        args = command.args or []

        if verb in {"look", "map"}:
            return GameOutput(view=self._make_view())

        if verb == "difficulty":
            if not args:
                return GameOutput(view=self._make_view(), messages=["Usage: difficulty <name>"])
            return self.set_difficulty(args[0])

        if verb == "new":
            if len(args) != 2:
                return GameOutput(view=self._make_view(), messages=["Usage: new <width> <height>"])
            try:
                return self.regenerate(int(args[0]), int(args[1]))
            except ValueError:
                return GameOutput(view=self._make_view(), messages=["Maze size must be two positive integers."])

        if verb == "go":
            direction = self._direction_from_token(args[0] if args else None)
        elif verb in {"up", "right", "down", "left", "u", "r", "d", "l"}:
            direction = self._direction_from_token(verb)
        else:
            return GameOutput(view=self._make_view(), messages=["Unknown command."])

        if direction is None:
            return GameOutput(view=self._make_view(), messages=["Invalid direction."])
        return self.move(direction)


def format_time(seconds: int) -> str:
    minutes, secs = divmod(max(0, seconds), 60)
    return f"{minutes:02d}:{secs:02d}"


def render_status(view: GameView) -> str:
    return f"Time: {format_time(view.remaining_seconds)}  Mazes Solved: {view.solved_count}"


def render_grid(grid: Grid, player: tuple[int, int], goal: tuple[int, int]) -> str:
    lines: list[str] = []
    for y in range(grid.height):
        top = ""
        middle = ""
        for x in range(grid.width):
            cell = grid.cell_at(x, y)
            top += "+" + ("---" if cell.has_wall(Direction.UP) else "   ")
            middle += "|" if cell.has_wall(Direction.LEFT) else " "
            if (x, y) == player:
                middle += " @ "
            elif (x, y) == goal:
                middle += " X "
            else:
                middle += "   "
        last = grid.cell_at(grid.width - 1, y)
        lines.append(top + "+")
        lines.append(middle + ("|" if last.has_wall(Direction.RIGHT) else " "))

    bottom = ""
    for x in range(grid.width):
        bottom += "+" + ("---" if grid.cell_at(x, grid.height - 1).has_wall(Direction.DOWN) else "   ")
    lines.append(bottom + "+")
    return "\n".join(lines)


class TickClock:
    """Converts elapsed wall-clock time into whole-second timer ticks."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._anchor = clock()

    def elapsed_ticks(self) -> int:
        ticks = int(self._clock() - self._anchor)
        if ticks > 0:
            self._anchor += ticks
        return ticks


def _positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {raw!r}")
    if value <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Timed maze runner: reach the bottom-right corner before time runs out.")
    parser.add_argument("--difficulty", choices=list(DIFFICULTIES), default=DEFAULT_DIFFICULTY, help="Maze size preset.")
    parser.add_argument("--width", type=_positive_int, default=None, help="Maze width in cells (overrides --difficulty).")
    parser.add_argument("--height", type=_positive_int, default=None, help="Maze height in cells (overrides --difficulty).")
    parser.add_argument("--seconds", type=_positive_int, default=DEFAULT_DURATION_SECONDS, help="Length of the round in seconds.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for maze generation (default: random).")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging verbosity.",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> GameConfig:
    preset_w, preset_h = DIFFICULTIES[args.difficulty]
    return GameConfig(
        width=args.width if args.width is not None else preset_w,
        height=args.height if args.height is not None else preset_h,
        duration_seconds=args.seconds,
        seed=args.seed,
    )


def _parse_line(line: str) -> Command:
    parts = line.split()
    if not parts:
        return Command(verb="look")
    return Command(verb=parts[0], args=parts[1:])


def _print_output(engine: GameEngine, out: GameOutput) -> None:
    print(render_grid(engine.grid, engine.player.pos, engine.player.goal))
    print(render_status(out.view))
    for msg in out.messages:
        print(msg)


def run(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    engine = GameEngine(config=config_from_args(args))
    clock = TickClock()
    print("Move with up/right/down/left (or u/r/d/l). 'difficulty <name>', 'new <w> <h>', 'quit'.")
    _print_output(engine, GameOutput(view=engine.view()))

    while True:
        try:
            line = input("> ")
        except EOFError:
            break
        if line.strip().lower() in {"quit", "q", "exit"}:
            break

        # The timer keeps running while the player is typing.
        messages: list[str] = []
        for _ in range(clock.elapsed_ticks()):
            messages.extend(engine.tick().messages)
        if engine.session.is_expired:
            print("\n".join(messages) if messages else engine.session.summary())
            break

        out = engine.handle(_parse_line(line))
        out.messages[:0] = messages
        _print_output(engine, out)

    return 0


if __name__ == "__main__":
    raise SystemExit(run())
