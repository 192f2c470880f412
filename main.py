from __future__ import annotations

import argparse
import calendar
import logging
import os
import random
import sys
from datetime import date as calendar_date, timedelta
from typing import Dict, List, Optional

import pygame
from tqdm import tqdm

from board import Board
from gui import WINDOW_WIDTH, WINDOW_HEIGHT, BG, draw_board, draw_empty_message, draw_top_bar
from pieces import Piece
from search import DEFAULT_PIECE_ORDER
from solutions import (
    DEFAULT_SOLUTIONS_FILE,
    DataError,
    classify,
    generate_solutions,
    read_boards,
    write_boards,
)
from square import Date

logger = logging.getLogger("main")

_MONTHS: Dict[str, int] = {}
for _number in range(1, 13):
    _MONTHS[calendar.month_name[_number].lower()] = _number
    _MONTHS[calendar.month_abbr[_number].lower()] = _number


def _date_from(day: calendar_date) -> Date:
    return Date.from_calendar(day.month, day.day)


def _parse_offset(text: str, today: calendar_date) -> Date:
    text = text.strip()
    if not text:
        return _date_from(today)
    if text[0] not in "+-":
        raise argparse.ArgumentTypeError("could not parse date offset")
    try:
        days = int(text[1:].strip())
    except ValueError:
        raise argparse.ArgumentTypeError("date offset must be an integer") from None
    if text[0] == "-":
        days = -days
    return _date_from(today + timedelta(days=days))


def _parse_month_day(text: str) -> Date:
    month_text = ""
    for char in text:
        if not char.isalpha():
            break
        month_text += char
    if month_text not in _MONTHS:
        raise argparse.ArgumentTypeError("invalid month")

    rest = text[len(month_text):]
    if rest[:1].isspace() or rest[:1] == ",":
        rest = rest[1:]
    try:
        day = int(rest)
    except ValueError:
        raise argparse.ArgumentTypeError("could not determine day") from None
    if not 1 <= day <= 31:
        raise argparse.ArgumentTypeError("day must be in range 1-31")

    date = Date.from_calendar(_MONTHS[month_text], day)
    if not date.is_valid():
        raise argparse.ArgumentTypeError("invalid date")
    return date


def parse_date_or_today(value: str, today: Optional[calendar_date] = None) -> Date:
    """Parse 'today', 'today+N', '+N', '-N' or a month name and day."""
    today = today or calendar_date.today()
    normalized = value.strip().lower()
    if normalized.startswith("today"):
        return _parse_offset(normalized[len("today"):], today)
    if normalized[:1] in ("+", "-"):
        return _parse_offset(normalized, today)
    return _parse_month_day(normalized)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Calendar puzzle solution generator and viewer.")
    parser.add_argument(
        "mode",
        nargs="?",
        choices=("generate", "random", "view"),
        default="random",
        help="Generate the solution set, show a random solution, or browse solutions (default: %(default)s)",
    )
    parser.add_argument(
        "-d", "--date",
        type=parse_date_or_today,
        default="today",
        help="Date to show solutions for, e.g. 'jan 5', 'today+3' (default: %(default)s)",
    )
    parser.add_argument(
        "-f", "--file",
        default=DEFAULT_SOLUTIONS_FILE,
        help="Where to store or look for solutions (default: %(default)s)",
    )
    parser.add_argument(
        "-j", "--processes",
        type=int,
        default=None,
        help="Worker processes for `generate`; 0 searches in threads only (default: one per core)",
    )
    parser.add_argument(
        "-ll", "--log-level",
        default="WARNING",
        help="Logging output level: CRITICAL, ERROR, WARNING, INFO or DEBUG (default: %(default)s)",
        dest="log_level",
        metavar="level",
    )
    return parser


def setup_logging(level: str):
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("{asctime} [{levelname:5}] {name} - {message}", "%H:%M:%S", style="{"))
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))


def generate(file: str, processes: Optional[int] = None) -> List[Board]:
    bars = {
        piece: tqdm(desc=f"{piece}", unit=" boards", position=i, leave=True)
        for i, piece in enumerate(DEFAULT_PIECE_ORDER)
    }

    def advance(piece: Piece):
        bars[piece].update()

    try:
        solutions = generate_solutions(DEFAULT_PIECE_ORDER, progress=advance, processes=processes)
    finally:
        for bar in bars.values():
            bar.close()

    print(f"{len(solutions)} valid solutions found")
    write_boards(solutions, file, progress=True)
    print(f"Wrote solutions to `{file}`")
    return solutions


def load_solutions(file: str) -> Dict[Date, List[Board]]:
    if not os.path.exists(file):
        raise DataError(f"file `{file}` not found; run `generate` first")
    return classify(read_boards(file))


def show_random(solutions: Dict[Date, List[Board]], date: Date, rng: Optional[random.Random] = None) -> Optional[Board]:
    boards = solutions.get(date)
    if not boards:
        return None
    return (rng or random).choice(boards)


def view(solutions: Dict[Date, List[Board]], start: Date):
    pygame.init()
    screen = pygame.display.set_mode((WINDOW_WIDTH, WINDOW_HEIGHT))
    pygame.display.set_caption("Calendar Puzzle")

    title_font = pygame.font.SysFont("SF Pro Display", 32, bold=True)
    label_font = pygame.font.SysFont("SF Pro Text", 24)
    cell_font = pygame.font.SysFont("SF Pro Text", 24, bold=True)
    body_font = pygame.font.SysFont("SF Pro Text", 18)

    clock = pygame.time.Clock()
    date = start
    selected: Dict[Date, int] = {}

    running = True
    while running:
        clock.tick(30)
        boards = solutions.get(date, [])
        current = selected.get(date, 0)

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key == pygame.K_RIGHT and current < len(boards) - 1:
                    selected[date] = current + 1
                elif event.key == pygame.K_LEFT and current > 0:
                    selected[date] = current - 1
                elif event.key == pygame.K_DOWN:
                    date = date.next()
                elif event.key == pygame.K_UP:
                    date = date.prev()

        boards = solutions.get(date, [])
        current = selected.get(date, 0)

        screen.fill(BG)
        draw_top_bar(screen, title_font, label_font, current, len(boards), date)
        if boards:
            draw_board(screen, cell_font, boards[current])
        else:
            draw_empty_message(screen, body_font, date)
        pygame.display.flip()

    pygame.quit()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    logger.info("Mode %s for %s using %s", args.mode, args.date, args.file)

    try:
        if args.mode == "generate":
            generate(args.file, args.processes)
            return 0

        solutions = load_solutions(args.file)
    except DataError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if args.mode == "view":
        view(solutions, args.date)
        return 0

    board = show_random(solutions, args.date)
    if board is None:
        print(f"No solutions found for date {args.date}", file=sys.stderr)
        return 1
    print(board)
    return 0


if __name__ == "__main__":
    sys.exit(main())
