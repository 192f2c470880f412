# compact.py
# Nine-byte binary record for a board

from __future__ import annotations

from dataclasses import dataclass

from board import Board
from pieces import Path, Piece, Rotation
from placements import PlacementError
from square import Square, SquareIndexError

RECORD_SIZE = 9
NOT_PLACED = 0b111111

PIECE_COUNT = len(Piece)


@dataclass(frozen=True)
class CompactBoard:
    """Per piece, in enumeration order: anchor square, rotation and mirror.

    Byte 0 holds one mirror bit per piece, most significant bit first.
    Bytes 1-8 hold the rotation in the top two bits and the anchor square
    index in the low six, with 63 meaning the piece is not on the board.
    """

    squares: tuple[Square | None, ...] = (None,) * PIECE_COUNT
    rotations: tuple[Rotation, ...] = (Rotation.ZERO,) * PIECE_COUNT
    mirrors: tuple[bool, ...] = (False,) * PIECE_COUNT

    def __post_init__(self):
        for field in (self.squares, self.rotations, self.mirrors):
            if len(field) != PIECE_COUNT:
                raise ValueError(f"compact board needs {PIECE_COUNT} entries per field")

    @classmethod
    def from_board(cls, board: Board) -> CompactBoard:
        squares: list[Square | None] = [None] * PIECE_COUNT
        rotations = [Rotation.ZERO] * PIECE_COUNT
        mirrors = [False] * PIECE_COUNT

        for placement in board.placements():
            i = placement.piece.index
            squares[i] = placement.square
            rotations[i] = placement.rotation
            mirrors[i] = placement.mirror

        return cls(tuple(squares), tuple(rotations), tuple(mirrors))

    def to_board(self) -> Board:
        """Replay every placement onto a fresh board, re-checking overlaps."""
        board = Board.new()
        for piece in Piece:
            square = self.squares[piece.index]
            if square is None:
                continue
            path = Path.from_orientation(piece, self.rotations[piece.index], self.mirrors[piece.index])
            placed = board.place(piece, square, path)
            if placed is None:
                raise PlacementError(f"{piece} does not fit at {square.name}")
            board = placed
        return board

    def to_bytes(self) -> bytes:
        record = bytearray(RECORD_SIZE)

        for mirror in self.mirrors:
            record[0] = (record[0] << 1) | int(mirror)

        for i in range(PIECE_COUNT):
            square = self.squares[i]
            anchor = NOT_PLACED if square is None else int(square)
            record[i + 1] = (int(self.rotations[i]) << 6) | anchor

        return bytes(record)

    @classmethod
    def from_bytes(cls, data: bytes) -> CompactBoard:
        if len(data) != RECORD_SIZE:
            raise ValueError(f"compact record must be {RECORD_SIZE} bytes, got {len(data)}")

        squares: list[Square | None] = []
        rotations = []
        mirrors = []
        for i in range(PIECE_COUNT):
            anchor = data[i + 1] & NOT_PLACED
            if anchor == NOT_PLACED:
                squares.append(None)
            else:
                try:
                    squares.append(Square.from_index(anchor))
                except SquareIndexError as e:
                    raise PlacementError(f"record has no square {anchor}") from e
            rotations.append(Rotation((data[i + 1] >> 6) & 0b11))
            mirrors.append(bool((data[0] >> (7 - i)) & 1))

        return cls(tuple(squares), tuple(rotations), tuple(mirrors))


def encode(board: Board) -> bytes:
    return CompactBoard.from_board(board).to_bytes()


def decode(data: bytes) -> Board:
    return CompactBoard.from_bytes(data).to_board()
