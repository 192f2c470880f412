import threading

import pytest

from board import EMPTY, NONEXISTENT, Board
from pieces import Path, Piece, Rotation
from search import (
    DEFAULT_PIECE_ORDER,
    THREAD_PREFIX,
    Channel,
    ChannelClosed,
    can_finish,
    generate,
    place_batch,
)
from solutions import classify
from square import BOARD_SIZE, HOLES, Date, Square


def without(board, removed):
    """`board` replayed onto a new board, leaving out the `removed` pieces."""
    partial = Board.new()
    for placement in board.placements():
        if placement.piece not in removed:
            partial = partial.place(placement.piece, placement.square, placement.path)
    return partial


def board_with_empty(indices):
    cells = []
    for i in range(BOARD_SIZE):
        if i in HOLES:
            cells.append(NONEXISTENT)
        elif i in indices:
            cells.append(EMPTY)
        else:
            cells.append(Piece.O)
    return Board(tuple(cells))


def pipeline_threads():
    return [t for t in threading.enumerate() if t.name.startswith(f"{THREAD_PREFIX}-")]


def test_channel_ends_when_every_sender_closes():
    channel = Channel()
    first = channel.sender()
    second = channel.sender()

    first.send(1)
    first.close()
    second.send_all([2, 3])
    second.close()

    assert list(channel) == [1, 2, 3]


def test_channel_rejects_use_after_close():
    channel = Channel()
    with channel.sender() as tx:
        tx.send("x")

    with pytest.raises(ChannelClosed):
        tx.send("y")
    with pytest.raises(ChannelClosed):
        channel.sender()
    tx.close()  # closing twice is harmless
    assert list(channel) == ["x"]


def test_default_order_places_every_piece_once():
    assert sorted(DEFAULT_PIECE_ORDER, key=lambda p: p.index) == list(Piece)


def test_no_pieces_yields_the_starting_board():
    assert list(generate(Board.new(), [])) == [Board.new()]


def test_can_finish_on_new_board():
    sizes = tuple(p.square_count for p in Piece)
    assert can_finish(Board.new(), sizes)
    assert not can_finish(Board.new(), sizes + (5,))


def test_can_finish_counts_squares_no_piece_can_use():
    # a 2x2 pocket at the top left and a 2x3 block further down
    board = board_with_empty({0, 1, 7, 8, 28, 29, 30, 35, 36, 37})
    assert can_finish(board, (6,))
    assert can_finish(board, (5,))
    assert not can_finish(board, (5, 5))
    assert not can_finish(board, (5, 5, 5))


def test_place_batch_applies_the_remaining_pieces_check():
    rest = tuple(p.square_count for p in Piece if p is not Piece.L)
    path = Path.from_orientation(Piece.L, Rotation.ZERO, True)
    everything = place_batch([Board.new()], Piece.L, path, None)
    pruned = place_batch([Board.new()], Piece.L, path, rest)

    # anchored on Feb, the mirrored L walls off Jan, Jul and 1
    walled = Board.new().place(Piece.L, Square.FEB, path)
    assert walled in everything
    assert walled not in pruned
    assert set(pruned) < set(everything)
    assert all(can_finish(board, rest) for board in pruned)


@pytest.mark.parametrize("piece", [Piece.L, Piece.O, Piece.Z])
def test_single_stage_matches_serial_placement(piece):
    expected = []
    for rotation, mirror in piece.orientations():
        path = Path.from_orientation(piece, rotation, mirror)
        for start in Square:
            board = Board.new().place(piece, start, path)
            if board is not None:
                expected.append(board)

    calls = []
    boards = list(generate(Board.new(), [piece], progress=calls.append, processes=0))

    assert sorted(boards) == sorted(expected)
    assert len(set(boards)) == len(boards)
    assert calls == [piece] * len(boards)


def test_progress_counts_boards_leaving_each_stage(solved_board):
    removed = [Piece.P, Piece.Y]
    partial = without(solved_board, removed)

    after_first = list(generate(partial, removed[:1], processes=0))
    calls = []
    boards = list(generate(partial, removed, progress=calls.append, processes=0, prune=False))

    assert solved_board in boards
    assert len(set(boards)) == len(boards)
    assert all(board.placed_pieces() == list(Piece) for board in boards)
    assert calls.count(Piece.P) == len(after_first)
    assert calls.count(Piece.Y) == len(boards)


def test_pruning_keeps_every_full_placement(solved_board):
    removed = [Piece.N, Piece.Z, Piece.L]
    partial = without(solved_board, removed)

    pruned = list(generate(partial, removed, processes=0))
    unpruned = list(generate(partial, removed, processes=0, prune=False))

    assert sorted(pruned) == sorted(unpruned)
    assert solved_board in pruned


def test_process_pool_matches_threads(solved_board):
    removed = [Piece.U, Piece.V, Piece.P]
    partial = without(solved_board, removed)

    in_pool = list(generate(partial, removed, processes=2))
    in_threads = list(generate(partial, removed, processes=0))

    assert sorted(in_pool) == sorted(in_threads)
    assert solved_board in in_pool
    assert pipeline_threads() == []


@pytest.mark.parametrize(
    "date",
    [
        Date(Square.JAN, Square.D01),
        Date(Square.FEB, Square.D29),
        Date(Square.DEC, Square.D25),
    ],
)
def test_regenerating_four_pieces(solve, date):
    solved = solve(date)
    removed = DEFAULT_PIECE_ORDER[-4:]
    partial = without(solved, removed)
    assert partial.placed_pieces() == sorted(set(Piece) - set(removed), key=lambda p: p.index)

    boards = list(generate(partial, removed, processes=0))

    assert solved in boards
    assert len(set(boards)) == len(boards)
    assert all(board.placed_pieces() == list(Piece) for board in boards)
    assert solved in classify(boards)[date]


def test_nothing_fits_on_a_full_board(solved_board):
    assert list(generate(solved_board, [Piece.L], processes=0)) == []


def test_closing_early_stops_the_pipeline():
    boards = generate(Board.new(), DEFAULT_PIECE_ORDER[:4], processes=0)
    assert isinstance(next(boards), Board)
    assert pipeline_threads() != []

    boards.close()
    assert pipeline_threads() == []


def test_stage_failure_is_raised():
    def broken_sink(piece):
        raise RuntimeError(f"cannot count {piece}")

    with pytest.raises(RuntimeError, match="cannot count"):
        list(generate(Board.new(), [Piece.L, Piece.O], progress=broken_sink, processes=0))
    assert pipeline_threads() == []
