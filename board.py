# board.py
# Board state, placement and date extraction

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import total_ordering
from typing import Union

from pieces import Path, Piece
from placements import Placement, PlacementError, find_orientation
from square import BOARD_COLS, BOARD_SIZE, HOLES, Date, Square, SquareIndexError


class Cell(Enum):
    EMPTY = "empty"
    NONEXISTENT = "nonexistent"


# A square is either one of the two cell markers or the piece covering it
Status = Union[Cell, Piece]

EMPTY = Cell.EMPTY
NONEXISTENT = Cell.NONEXISTENT


def _status_rank(status: Status) -> int:
    if status is EMPTY:
        return 0
    if status is NONEXISTENT:
        return 1
    return 2 + status.index


@total_ordering
@dataclass(frozen=True, eq=True)
class Board:
    cells: tuple[Status, ...]

    def __post_init__(self):
        if len(self.cells) != BOARD_SIZE:
            raise ValueError(f"board needs {BOARD_SIZE} cells, got {len(self.cells)}")

    @classmethod
    def new(cls) -> Board:
        """Starting board: everything empty except the two padding holes."""
        return cls(tuple(NONEXISTENT if i in HOLES else EMPTY for i in range(BOARD_SIZE)))

    def status(self, square: Square | int) -> Status:
        return self.cells[square]

    def sort_key(self) -> tuple[int, ...]:
        return tuple(_status_rank(status) for status in self.cells)

    def __lt__(self, other: Board) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def place(self, piece: Piece, start: Square, path: Path) -> Board | None:
        """New board with `piece` walked along `path` from `start`, or None.

        Every landing square must be empty on this board. Paths may revisit
        a square they already covered.
        """
        square: Square | None = start
        if self.cells[square] is not EMPTY:
            return None

        covered = [square]
        for direction in path:
            square = square.step(direction)
            if square is None or self.cells[square] is not EMPTY:
                return None
            covered.append(square)

        cells = list(self.cells)
        for square in covered:
            cells[square] = piece
        return Board(tuple(cells))

    def solved_for(self) -> Date | None:
        """The date spelled by exactly two uncovered squares, if any."""
        statuses = iter(enumerate(self.cells))

        first = next((i for i, status in statuses if status is EMPTY), None)
        if first is None:
            return None
        second = next((i for i, status in statuses if status is EMPTY), None)
        if second is None:
            return None
        if any(status is EMPTY for _, status in statuses):
            return None

        try:
            date = Date(Square.from_index(first), Square.from_index(second))
        except SquareIndexError:
            return None

        return date if date.is_valid() else None

    def placed_pieces(self) -> list[Piece]:
        present = set(self.cells)
        return [piece for piece in Piece if piece in present]

    def placements(self) -> list[Placement]:
        """Recover the anchor and orientation of every piece on the board.

        Pieces with no squares are left out. Raises PlacementError if the
        board has the wrong holes, a piece has the wrong number of squares,
        or a piece's squares match none of its orientations.
        """
        if any(self.cells[i] is not NONEXISTENT for i in HOLES):
            raise PlacementError("padding squares must be nonexistent")
        if self.cells.count(NONEXISTENT) > len(HOLES):
            raise PlacementError("board has extra nonexistent squares")

        placed: list[Piece] = []
        for piece in Piece:
            count = self.cells.count(piece)
            if count == 0:
                continue
            if count != piece.square_count:
                raise PlacementError(f"{piece} covers {count} squares, expected {piece.square_count}")
            placed.append(piece)

        found: dict[Piece, Placement] = {}
        for square in Square:
            piece = self.cells[square]
            if not isinstance(piece, Piece) or piece in found:
                continue
            orientation = find_orientation(self, piece, square)
            if orientation is not None:
                rotation, mirror = orientation
                found[piece] = Placement(piece, square, rotation, mirror)

        result = []
        for piece in placed:
            if piece not in found:
                raise PlacementError(f"no orientation of the {piece} matches the board")
            result.append(found[piece])
        return result

    def _corners(self, row: int, col: int) -> tuple[Status, Status, Status, Status]:
        # Statuses of the four squares meeting at grid corner (row, col):
        # up-left, up-right, down-left, down-right
        a = b = c = d = NONEXISTENT
        square = col + BOARD_COLS * row
        if row > 0 and col > 0 and square < BOARD_SIZE + 8:
            a = self.cells[square - 8]
        if row > 0 and col < 7 and square < BOARD_SIZE + 7:
            b = self.cells[square - 7]
        if row < 7 and col > 0 and square < BOARD_SIZE + 1:
            c = self.cells[square - 1]
        if row < 7 and col < 7 and square < BOARD_SIZE:
            d = self.cells[square]
        return a, b, c, d

    def _corner_glyph(self, row: int, col: int, glyphs: dict[str, str]) -> str:
        a, b, c, d = self._corners(row, col)
        n = NONEXISTENT

        if a is n and b is n and c is n and d is n:
            return glyphs["blank_last"] if row == 7 else ""
        if a is n and b is n and d is n:
            return glyphs["edge_top"]
        if b is n and c is n and d is n:
            return glyphs["edge_bottom"]
        if b is n and d is n:
            return glyphs["edge_straight"] if a == c else glyphs["edge_tee"]

        if a == b == c == d:
            return glyphs["none"]
        if a == b and c == d:
            return glyphs["horizontal"]
        if a == c and b == d:
            return glyphs["vertical"]
        if a == b == c:
            return glyphs["down_right"]
        if a == b == d:
            return glyphs["down_left"]
        if a == c == d:
            return glyphs["up_right"]
        if b == c == d:
            return glyphs["up_left"]
        if a == b:
            return glyphs["tee_down"]
        if a == c:
            return glyphs["tee_right"]
        if b == d:
            return glyphs["tee_left"]
        if c == d:
            return glyphs["tee_up"]
        return glyphs["cross"]

    def __str__(self) -> str:
        lines = ["╭───────────────────────────╮"]

        for row in range(8):
            line = "│ " + "".join(self._corner_glyph(row, col, _FULL_GLYPHS) for col in range(8))
            lines.append(line + "│")

            if row == 7:
                break

            line = "│ "
            for col in range(8):
                if row < 2 and col == 6:
                    continue
                if row == 6 and col == 7:
                    line += "  "
                    continue
                if col == 7:
                    line += "│ "
                    continue

                _, _, left, here = self._corners(row, col)
                line += " " if left == here else "│"
                label = ""
                if here is EMPTY:
                    try:
                        label = str(Square.from_index(col + BOARD_COLS * row))
                    except SquareIndexError:
                        pass
                line += f"{label:^3}"
            lines.append(line + ("╰───╮" if row == 1 else "│"))

        lines.append("╰───────────────────────────────╯")
        return "\n".join(lines)

    def to_mini_string(self) -> str:
        """Compact outline of the board, two characters per square."""
        return "".join(
            self._corner_glyph(row, col, _MINI_GLYPHS) for row in range(8) for col in range(8)
        )


_FULL_GLYPHS: dict[str, str] = {
    "blank_last": "    ",
    "edge_top": "┐ ",
    "edge_bottom": "┘ ",
    "edge_straight": "│ ",
    "edge_tee": "┤ ",
    "none": "    ",
    "horizontal": "────",
    "vertical": "│   ",
    "down_right": "┌───",
    "down_left": "┐   ",
    "up_right": "└───",
    "up_left": "┘   ",
    "tee_down": "┬───",
    "tee_right": "├───",
    "tee_left": "┤   ",
    "tee_up": "┴───",
    "cross": "┼───",
}

_MINI_GLYPHS: dict[str, str] = {
    "blank_last": "  ",
    "edge_top": "┐\n",
    "edge_bottom": "┘\n",
    "edge_straight": "│\n",
    "edge_tee": "┤\n",
    "none": "  ",
    "horizontal": "──",
    "vertical": "│ ",
    "down_right": "┌─",
    "down_left": "┐ ",
    "up_right": "└─",
    "up_left": "┘ ",
    "tee_down": "┬─",
    "tee_right": "├─",
    "tee_left": "┤ ",
    "tee_up": "┴─",
    "cross": "┼─",
}
