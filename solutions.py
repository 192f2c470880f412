# solutions.py
# Flat-file solution store and date classification

from __future__ import annotations

import logging
import os
from collections import defaultdict
from typing import Iterable, Union

from tqdm import tqdm

from board import Board
from compact import RECORD_SIZE, CompactBoard
from pieces import Piece
from placements import PlacementError
from search import DEFAULT_PIECE_ORDER, ProgressSink, generate
from square import Date

logger = logging.getLogger(__name__)

DEFAULT_SOLUTIONS_FILE = "solutions.apad"

PathLike = Union[str, "os.PathLike[str]"]


class DataError(Exception):
    """Solutions could not be stored or loaded."""


class BoardDataError(DataError):
    """A stored record does not describe a consistent board."""


class IoDataError(DataError):
    def __init__(self, kind: str, message: str):
        super().__init__(message)
        self.kind = kind

    @classmethod
    def wrap(cls, error: OSError) -> IoDataError:
        return cls(type(error).__name__, str(error))


class TruncatedDataError(IoDataError):
    def __init__(self, length: int):
        super().__init__(
            "UnexpectedEof",
            f"{length} bytes is not a whole number of {RECORD_SIZE}-byte records",
        )
        self.length = length


def write_boards(boards: Iterable[Board], destination: PathLike, progress: bool = False) -> None:
    """Write one compact record per board, back to back, with no header."""
    boards = list(boards)
    try:
        with open(destination, "wb") as f:
            for board in tqdm(boards, desc="Writing", unit="board", disable=not progress):
                try:
                    f.write(CompactBoard.from_board(board).to_bytes())
                except PlacementError as e:
                    raise BoardDataError(f"cannot encode board: {e}") from e
    except OSError as e:
        raise IoDataError.wrap(e) from e
    logger.info("Wrote %d boards to %s", len(boards), destination)


def decode_boards(data: bytes) -> list[Board]:
    """Decode a buffer of compact records; a partial trailing record is an error."""
    if len(data) % RECORD_SIZE:
        raise TruncatedDataError(len(data))

    boards = []
    for offset in range(0, len(data), RECORD_SIZE):
        record = data[offset:offset + RECORD_SIZE]
        try:
            boards.append(CompactBoard.from_bytes(record).to_board())
        except PlacementError as e:
            raise BoardDataError(f"record {offset // RECORD_SIZE} is inconsistent: {e}") from e
    return boards


def read_boards(source: PathLike) -> list[Board]:
    try:
        with open(source, "rb") as f:
            data = f.read()
    except OSError as e:
        raise IoDataError.wrap(e) from e

    boards = decode_boards(data)
    logger.info("Read %d boards from %s", len(boards), source)
    return boards


def classify(boards: Iterable[Board]) -> dict[Date, list[Board]]:
    """Group boards by the date they solve; boards with no date are dropped."""
    solutions: dict[Date, list[Board]] = defaultdict(list)
    for board in boards:
        date = board.solved_for()
        if date is not None:
            solutions[date].append(board)
    return dict(solutions)


def collect_solutions(boards: Iterable[Board]) -> list[Board]:
    """Date-solving boards from a stream, sorted for a stable file layout."""
    return sorted((board for board in boards if board.solved_for() is not None), key=Board.sort_key)


def generate_solutions(
    pieces: Iterable[Piece] = DEFAULT_PIECE_ORDER,
    progress: ProgressSink | None = None,
    processes: int | None = None,
) -> list[Board]:
    return collect_solutions(generate(Board.new(), pieces, progress, processes=processes))
