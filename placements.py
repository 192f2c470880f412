# placements.py
# Recover how each piece was placed on a finished board

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from pieces import Path, Piece, Rotation
from square import Square


class PlacementError(ValueError):
    """Board occupancy does not correspond to a valid set of placements."""

    def __init__(self, message: str = "placement does not produce a valid board"):
        super().__init__(message)


@dataclass(frozen=True)
class Placement:
    piece: Piece
    square: Square  # anchor square
    rotation: Rotation
    mirror: bool

    @property
    def path(self) -> Path:
        return Path.from_orientation(self.piece, self.rotation, self.mirror)


class _Occupancy(Protocol):
    def status(self, square: Square) -> object: ...


def find_orientation(board: _Occupancy, piece: Piece, start: Square) -> tuple[Rotation, bool] | None:
    """First orientation whose path, walked from `start`, stays on `piece`.

    Candidates are tried in `Piece.orientations()` order, so boards whose
    pieces happen to be self-symmetric always recover the same answer.
    """
    if board.status(start) is not piece:
        return None

    for rotation, mirror in piece.orientations():
        square: Square | None = start
        for direction in Path.from_orientation(piece, rotation, mirror):
            square = square.step(direction)
            if square is None or board.status(square) is not piece:
                break
        else:
            return rotation, mirror

    return None
