from __future__ import annotations

import pytest

from board import EMPTY, Board
from pieces import Path, Piece
from square import BOARD_COLS, Date, Direction, Square, SquareIndexError

_DELTAS = {
    Direction.UP: (-1, 0),
    Direction.DOWN: (1, 0),
    Direction.LEFT: (0, -1),
    Direction.RIGHT: (0, 1),
}


def _cell_offsets(path: Path) -> set[tuple[int, int]]:
    row = col = 0
    cells = {(0, 0)}
    for step in path:
        dr, dc = _DELTAS[step]
        row, col = row + dr, col + dc
        cells.add((row, col))
    return cells


def solve_for(date: Date) -> Board | None:
    """Depth-first search for one board that leaves exactly `date` uncovered."""
    keep = (date.month, date.day)
    paths = {
        piece: [Path.from_orientation(piece, r, m) for r, m in piece.orientations()]
        for piece in Piece
    }

    def anchors(path: Path, target: int):
        row, col = divmod(target, BOARD_COLS)
        for dr, dc in _cell_offsets(path):
            r, c = row - dr, col - dc
            if 0 <= r < 7 and 0 <= c < BOARD_COLS:
                try:
                    yield Square.from_index(r * BOARD_COLS + c)
                except SquareIndexError:
                    continue

    def search(board: Board, remaining: list[Piece]) -> Board | None:
        if not remaining:
            return board
        target = next(
            (i for i, status in enumerate(board.cells) if status is EMPTY and i not in keep),
            None,
        )
        if target is None:
            return None
        for piece in remaining:
            rest = [p for p in remaining if p is not piece]
            for path in paths[piece]:
                for start in anchors(path, target):
                    placed = board.place(piece, start, path)
                    if placed is None or placed.status(target) is not piece:
                        continue
                    if any(placed.status(square) is not EMPTY for square in keep):
                        continue
                    found = search(placed, rest)
                    if found is not None:
                        return found
        return None

    return search(Board.new(), list(Piece))


@pytest.fixture(scope="session")
def solved_date() -> Date:
    return Date(Square.OCT, Square.D18)


@pytest.fixture(scope="session")
def solve():
    """Memoized `solve_for` that fails the test when a date has no tiling."""
    found: dict[Date, Board] = {}

    def solved(date: Date) -> Board:
        if date not in found:
            board = solve_for(date)
            assert board is not None, f"no tiling leaves {date} uncovered"
            found[date] = board
        return found[date]

    return solved


@pytest.fixture(scope="session")
def solved_board(solve, solved_date) -> Board:
    return solve(solved_date)


def pytest_addoption(parser):
    parser.addoption("--runslow", action="store_true", default=False, help="run exhaustive generation tests")


def pytest_collection_modifyitems(config, items):
    if config.getoption("--runslow"):
        return
    skip_slow = pytest.mark.skip(reason="needs --runslow")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)
