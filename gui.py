# gui.py

from __future__ import annotations

from typing import Dict, Tuple

import pygame

from board import EMPTY, Board
from pieces import Piece
from square import BOARD_COLS, BOARD_SIZE, Date, Square, SquareIndexError

BOARD_ROWS = 7

CELL_SIZE = 64
TOP_BAR_HEIGHT = 120

WINDOW_WIDTH = BOARD_COLS * CELL_SIZE
WINDOW_HEIGHT = BOARD_ROWS * CELL_SIZE + TOP_BAR_HEIGHT

# Colors – higher contrast, refined dark mode
BG = (15, 15, 17)
CARD_BG = (30, 30, 34)
TEXT_MAIN = (245, 245, 250)
TEXT_SECONDARY = (230, 230, 235)
ILLEGAL = (45, 45, 49)

DATE_BORDER = (220, 90, 90)

PIECE_COLORS: Dict[Piece, Tuple[int, int, int]] = {
    Piece.O: (60, 200, 80),
    Piece.L: (45, 140, 255),
    Piece.N: (255, 190, 60),
    Piece.P: (190, 70, 210),
    Piece.U: (90, 220, 220),
    Piece.V: (250, 80, 80),
    Piece.Y: (210, 145, 50),
    Piece.Z: (110, 120, 255),
}


def cell_rect(index: int, offset: Tuple[int, int] = (0, 0)) -> pygame.Rect:
    """Screen rectangle of the board square at `index`, inside its margin."""
    row, col = divmod(index, BOARD_COLS)
    x = col * CELL_SIZE + offset[0]
    y = TOP_BAR_HEIGHT + row * CELL_SIZE + offset[1]
    return pygame.Rect(x + 2, y + 2, CELL_SIZE - 4, CELL_SIZE - 4)


def draw_top_bar(
    screen: pygame.Surface,
    title_font: pygame.font.Font,
    label_font: pygame.font.Font,
    current_idx: int,
    total_solutions: int,
    date: Date,
):
    pygame.draw.rect(screen, BG, (0, 0, WINDOW_WIDTH, TOP_BAR_HEIGHT))

    card_rect = pygame.Rect(16, 16, WINDOW_WIDTH - 32, TOP_BAR_HEIGHT - 32)
    pygame.draw.rect(screen, CARD_BG, card_rect, border_radius=16)

    title_surf = title_font.render("Calendar Puzzle", True, TEXT_MAIN)
    screen.blit(title_surf, (card_rect.x + 20, card_rect.y + 12))

    date_surf = label_font.render(str(date), True, TEXT_MAIN)
    date_x = card_rect.right - date_surf.get_width() - 20
    screen.blit(date_surf, (date_x, card_rect.y + 12))

    if total_solutions:
        sol_text = f"Solution {current_idx + 1} of {total_solutions}"
    else:
        sol_text = "No solutions"
    sol_surf = label_font.render(sol_text, True, TEXT_SECONDARY)
    screen.blit(sol_surf, (card_rect.x + 20, card_rect.y + 48))


def _blit_centered(screen: pygame.Surface, text_surf: pygame.Surface, rect: pygame.Rect):
    screen.blit(text_surf, text_surf.get_rect(center=rect.center))


def draw_board(
    screen: pygame.Surface,
    cell_font: pygame.font.Font,
    board: Board,
    offset: Tuple[int, int] = (0, 0),
):
    """
    Draws the board.
    Uncovered squares are the date and get a highlighted border and their label.
    offset: (dx, dy) applied to the whole board.
    """
    for index in range(BOARD_ROWS * BOARD_COLS):
        rect = cell_rect(index, offset)

        if index >= BOARD_SIZE:
            pygame.draw.rect(screen, ILLEGAL, rect, border_radius=12)
            continue

        status = board.status(index)

        if isinstance(status, Piece):
            pygame.draw.rect(screen, PIECE_COLORS[status], rect, border_radius=12)
            _blit_centered(screen, cell_font.render(status.name, True, (255, 255, 255)), rect)
            continue

        if status is not EMPTY:
            pygame.draw.rect(screen, ILLEGAL, rect, border_radius=12)
            continue

        try:
            label = str(Square.from_index(index)).upper()
        except SquareIndexError:
            label = ""
        pygame.draw.rect(screen, BG, rect, border_radius=12)
        pygame.draw.rect(screen, DATE_BORDER, rect, width=2, border_radius=12)
        _blit_centered(screen, cell_font.render(label, True, TEXT_MAIN), rect)


def draw_empty_message(screen: pygame.Surface, body_font: pygame.font.Font, date: Date):
    w, h = screen.get_size()
    surf = body_font.render(f"No solutions stored for {date}", True, TEXT_SECONDARY)
    screen.blit(surf, surf.get_rect(center=(w // 2, TOP_BAR_HEIGHT + (h - TOP_BAR_HEIGHT) // 2)))
