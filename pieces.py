# pieces.py
# Piece definitions + rotations/flips

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Iterable, Iterator

from square import Direction

U, D, L, R = Direction.UP, Direction.DOWN, Direction.LEFT, Direction.RIGHT


class Rotation(IntEnum):
    """Quarter turns applied to a canonical path."""

    ZERO = 0
    QUARTER = 1
    HALF = 2
    THREE_QUARTER = 3

    @classmethod
    def all_by_symmetry(cls, symmetry: int) -> list[Rotation]:
        """Rotations that produce distinct shapes for a given symmetry order."""
        if symmetry % 4 == 0:
            return [cls.ZERO]
        if symmetry % 4 == 2:
            return [cls.ZERO, cls.QUARTER]
        return list(cls)


class Piece(Enum):
    # Enumeration order is the order of the compact record
    O = 0
    L = 1
    N = 2
    P = 3
    U = 4
    V = 5
    Y = 6
    Z = 7

    @property
    def index(self) -> int:
        return self.value

    @property
    def rotational_symmetry(self) -> int:
        return 2 if self in (Piece.O, Piece.Z) else 1

    @property
    def mirror_symmetric(self) -> bool:
        return self in (Piece.O, Piece.U, Piece.V)

    @property
    def square_count(self) -> int:
        return 6 if self is Piece.O else 5

    def orientations(self) -> list[tuple[Rotation, bool]]:
        """Distinct (rotation, mirror) pairs, in canonical trial order."""
        mirrors = [False] if self.mirror_symmetric else [False, True]
        rotations = Rotation.all_by_symmetry(self.rotational_symmetry)
        return [(rotation, mirror) for mirror in mirrors for rotation in rotations]

    def __str__(self) -> str:
        return f"{self.name}-piece"


# Canonical shapes as walks from the anchor square
PIECE_PATHS: dict[Piece, tuple[Direction, ...]] = {
    Piece.O: (U, U, R, D, D),
    Piece.L: (D, D, D, R),
    Piece.N: (U, R, U, U),
    Piece.P: (U, U, R, D),
    Piece.U: (D, R, R, U),
    Piece.V: (R, R, U, U),
    Piece.Y: (U, U, U, D, L),
    Piece.Z: (R, D, D, R),
}

_QUARTER_TURN: dict[Direction, Direction] = {U: L, D: R, L: D, R: U}
_MIRROR: dict[Direction, Direction] = {U: U, D: D, L: R, R: L}


@dataclass(frozen=True)
class Path:
    steps: tuple[Direction, ...]

    @classmethod
    def of(cls, piece: Piece) -> Path:
        return cls(PIECE_PATHS[piece])

    @classmethod
    def from_orientation(cls, piece: Piece, rotation: Rotation, mirror: bool) -> Path:
        path = cls.of(piece)
        if mirror:
            path = path.mirror()
        return path.rotate(rotation)

    def rotate(self, amount: Rotation | int) -> Path:
        steps: Iterable[Direction] = self.steps
        for _ in range(int(amount) % 4):
            steps = [_QUARTER_TURN[step] for step in steps]
        return Path(tuple(steps))

    def mirror(self) -> Path:
        return Path(tuple(_MIRROR[step] for step in self.steps))

    def __iter__(self) -> Iterator[Direction]:
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    def __str__(self) -> str:
        return "".join(step.value for step in self.steps)
