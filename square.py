# square.py
# Board squares, stepping rules and calendar dates

from __future__ import annotations

import calendar
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Iterator

BOARD_COLS = 7
BOARD_SIZE = 45

# Padding squares at the end of the two month rows
HOLES: frozenset[int] = frozenset({6, 13})


class Direction(Enum):
    UP = "U"
    DOWN = "D"
    LEFT = "L"
    RIGHT = "R"


_OFFSETS: dict[Direction, int] = {
    Direction.UP: -BOARD_COLS,
    Direction.DOWN: BOARD_COLS,
    Direction.LEFT: -1,
    Direction.RIGHT: 1,
}


class SquareIndexError(IndexError):
    """An integer that does not name a usable square."""


class Square(IntEnum):
    JAN = 0
    FEB = 1
    MAR = 2
    APR = 3
    MAY = 4
    JUN = 5
    JUL = 7
    AUG = 8
    SEP = 9
    OCT = 10
    NOV = 11
    DEC = 12
    D01 = 14
    D02 = 15
    D03 = 16
    D04 = 17
    D05 = 18
    D06 = 19
    D07 = 20
    D08 = 21
    D09 = 22
    D10 = 23
    D11 = 24
    D12 = 25
    D13 = 26
    D14 = 27
    D15 = 28
    D16 = 29
    D17 = 30
    D18 = 31
    D19 = 32
    D20 = 33
    D21 = 34
    D22 = 35
    D23 = 36
    D24 = 37
    D25 = 38
    D26 = 39
    D27 = 40
    D28 = 41
    D29 = 42
    D30 = 43
    D31 = 44

    @classmethod
    def from_index(cls, index: int) -> Square:
        if index < 0 or index >= BOARD_SIZE or index in HOLES:
            raise SquareIndexError(f"no square at index {index}")
        return cls(index)

    def step(self, direction: Direction) -> Square | None:
        """Neighbour in `direction`, or None off the board or into a hole."""
        col = self.value % BOARD_COLS
        if direction is Direction.UP and self.value < BOARD_COLS:
            return None
        if direction is Direction.LEFT and col == 0:
            return None
        if direction is Direction.RIGHT and col == BOARD_COLS - 1:
            return None

        target = self.value + _OFFSETS[direction]
        if target >= BOARD_SIZE or target in HOLES:
            return None
        return Square(target)

    def __str__(self) -> str:
        if self <= Square.DEC:
            return self.name.title()
        return str(self.value - Square.D01 + 1)

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)


MONTHS: tuple[Square, ...] = tuple(s for s in Square if s <= Square.DEC)
DAYS: tuple[Square, ...] = tuple(s for s in Square if s >= Square.D01)

_THIRTY_DAY_MONTHS = frozenset({Square.APR, Square.JUN, Square.SEP, Square.NOV})


@dataclass(frozen=True, order=True)
class Date:
    month: Square
    day: Square

    @classmethod
    def from_calendar(cls, month: int, day: int) -> Date:
        """Date for 1-based calendar numbers (month 1-12, day 1-31)."""
        if not 1 <= month <= 12 or not 1 <= day <= 31:
            raise SquareIndexError(f"no squares for {month}/{day}")
        return cls(MONTHS[month - 1], DAYS[day - 1])

    @property
    def month_number(self) -> int:
        return MONTHS.index(self.month) + 1

    @property
    def day_number(self) -> int:
        return self.day - Square.D01 + 1

    def is_valid(self) -> bool:
        if self.month > Square.DEC or self.day < Square.D01:
            return False
        if self.month in _THIRTY_DAY_MONTHS and self.day == Square.D31:
            return False
        if self.month == Square.FEB and self.day in (Square.D30, Square.D31):
            return False
        return True

    def next(self) -> Date:
        if not self.is_valid():
            return Date(Square.JAN, Square.D01)

        if self.day < Square.D31:
            following = Date(self.month, Square(self.day + 1))
            if following.is_valid():
                return following

        index = MONTHS.index(self.month)
        return Date(MONTHS[(index + 1) % 12], Square.D01)

    def prev(self) -> Date:
        if not self.is_valid():
            return Date(Square.JAN, Square.D01)

        if self.day > Square.D01:
            return Date(self.month, Square(self.day - 1))

        month = MONTHS[(MONTHS.index(self.month) - 1) % 12]
        # Leap-year February, so Mar 1 steps back to Feb 29
        length = calendar.monthrange(2000, MONTHS.index(month) + 1)[1]
        return Date(month, DAYS[length - 1])

    def __str__(self) -> str:
        return f"{self.month} {self.day}"


def valid_dates() -> Iterator[Date]:
    """Every valid date from Jan 1 to Dec 31, in order."""
    date = Date(Square.JAN, Square.D01)
    while True:
        yield date
        date = date.next()
        if date == Date(Square.JAN, Square.D01):
            return
