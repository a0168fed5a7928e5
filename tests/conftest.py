import importlib
from typing import Callable, Sequence

import pytest


def import_required(module_name: str):
    """
    Import a project module with a clearer failure message than ModuleNotFoundError.
    """
    try:
        return importlib.import_module(module_name)
    except ModuleNotFoundError as e:
        pytest.fail(
            f"Required module '{module_name}.py' could not be imported. "
            f"Original error: {e}"
        )


@pytest.fixture
def maze_module():
    return import_required("maze")


@pytest.fixture
def main_module():
    return import_required("main")


def _scripted_choice(values: Sequence[int]) -> Callable[[int], int]:
    """
    Replay a fixed sequence of choices, clamped into range, cycling when exhausted.
    Records every n it was asked about so tests can inspect the call pattern.
    """
    state = {"i": 0}
    calls: list[int] = []

    def choose(n: int) -> int:
        calls.append(n)
        value = values[state["i"] % len(values)] if values else 0
        state["i"] += 1
        return value % n

    choose.calls = calls  # type: ignore[attr-defined]
    return choose


@pytest.fixture
def scripted_choice():
    return _scripted_choice


@pytest.fixture
def make_engine(main_module):
    def factory(width: int = 5, height: int = 5, seconds: int = 60, seed: int | None = 7, choose=None):
        config = main_module.GameConfig(width=width, height=height, duration_seconds=seconds, seed=seed)
        return main_module.GameEngine(config=config, choose=choose)

    return factory
