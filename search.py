# search.py
# Staged enumeration of every full placement, one stage per piece

from __future__ import annotations

import logging
import multiprocessing
import queue
import threading
from collections import deque
from concurrent.futures import Executor, ProcessPoolExecutor
from functools import lru_cache
from itertools import islice
from typing import Callable, Generic, Iterable, Iterator, TypeVar

from board import EMPTY, Board
from pieces import Path, Piece
from square import Direction, Square

logger = logging.getLogger(__name__)

T = TypeVar("T")

ProgressSink = Callable[[Piece], None]

DEFAULT_PIECE_ORDER: tuple[Piece, ...] = (
    Piece.O,
    Piece.Z,
    Piece.V,
    Piece.U,
    Piece.Y,
    Piece.N,
    Piece.P,
    Piece.L,
)

# Boards handed to a pool process per task, and tasks each worker keeps in flight
BATCH_SIZE = 64
MAX_PENDING = 4

THREAD_PREFIX = "generate"

_CLOSED = object()

_NEIGHBOURS: dict[Square, tuple[Square, ...]] = {}
for _square in Square:
    _NEIGHBOURS[_square] = tuple(n for n in map(_square.step, Direction) if n is not None)


class ChannelClosed(RuntimeError):
    pass


class Channel(Generic[T]):
    """Unbounded FIFO that ends once every sender handle has been closed.

    Create all senders before starting the threads that use them; the
    channel closes as soon as the open-sender count drops to zero.
    """

    def __init__(self):
        self._queue: queue.SimpleQueue = queue.SimpleQueue()
        self._lock = threading.Lock()
        self._open = 0
        self._closed = False

    def sender(self) -> Sender[T]:
        with self._lock:
            if self._closed:
                raise ChannelClosed("channel already closed")
            self._open += 1
        return Sender(self)

    def _release(self) -> None:
        with self._lock:
            self._open -= 1
            if self._open == 0:
                self._closed = True
                self._queue.put(_CLOSED)

    def __iter__(self) -> Iterator[T]:
        while True:
            item = self._queue.get()
            if item is _CLOSED:
                return
            yield item


class Sender(Generic[T]):
    def __init__(self, channel: Channel[T]):
        self._channel = channel
        self._open = True

    def send(self, item: T) -> None:
        if not self._open:
            raise ChannelClosed("send on closed sender")
        self._channel._queue.put(item)

    def send_all(self, items: Iterable[T]) -> None:
        for item in items:
            self.send(item)

    def close(self) -> None:
        if self._open:
            self._open = False
            self._channel._release()

    def __enter__(self) -> Sender[T]:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


@lru_cache(maxsize=None)
def _coverable(region: int, sizes: tuple[int, ...]) -> int:
    """Most squares of a `region`-square area that some subset of `sizes` fills."""
    totals = {0}
    for size in sizes:
        totals |= {total + size for total in totals if total + size <= region}
    return max(totals)


def can_finish(board: Board, sizes: tuple[int, ...]) -> bool:
    """False when pieces of `sizes` provably cannot all be placed on `board`.

    Pieces are connected, so each one lands inside a single empty region.
    Squares a region cannot use are left empty for good, and there are
    only as many of those to spare as the final board will have empty.
    """
    spare = board.cells.count(EMPTY) - sum(sizes)
    if spare < 0:
        return False

    seen: set[Square] = set()
    wasted = 0
    for square in Square:
        if square in seen or board.cells[square] is not EMPTY:
            continue
        seen.add(square)
        stack = [square]
        region = 0
        while stack:
            region += 1
            for neighbour in _NEIGHBOURS[stack.pop()]:
                if neighbour not in seen and board.cells[neighbour] is EMPTY:
                    seen.add(neighbour)
                    stack.append(neighbour)
        wasted += region - _coverable(region, sizes)
        if wasted > spare:
            return False
    return True


def place_batch(
    boards: list[Board],
    piece: Piece,
    path: Path,
    remaining: tuple[int, ...] | None,
) -> list[Board]:
    """Every board from `boards` with `piece` walked along `path` from any square.

    With `remaining` set, boards that cannot also take pieces of those
    sizes are dropped.
    """
    placed = []
    for board in boards:
        for start in Square:
            board_after = board.place(piece, start, path)
            if board_after is None:
                continue
            if remaining is not None and not can_finish(board_after, remaining):
                continue
            placed.append(board_after)
    return placed


def _batched(items: Iterable[T], size: int) -> Iterator[list[T]]:
    iterator = iter(items)
    while True:
        batch = list(islice(iterator, size))
        if not batch:
            return
        yield batch


class _Pipeline:
    """Threads, pool and shutdown state shared by one `generate` run."""

    def __init__(self, executor: Executor | None):
        self.executor = executor
        self.stop = threading.Event()
        self.errors: list[BaseException] = []
        self.threads: list[threading.Thread] = []

    def spawn(self, name: str, target: Callable[..., None], *args) -> None:
        def run():
            try:
                target(*args)
            except Exception as e:
                logger.exception("pipeline thread %s failed", name)
                self.errors.append(e)
                self.stop.set()

        thread = threading.Thread(target=run, name=f"{THREAD_PREFIX}-{name}", daemon=True)
        self.threads.append(thread)
        thread.start()

    def place_everywhere(
        self,
        piece: Piece,
        path: Path,
        remaining: tuple[int, ...] | None,
        boards: Channel[Board],
        out: Sender[Board],
    ) -> None:
        pending: deque = deque()
        with out:
            for batch in _batched(boards, BATCH_SIZE):
                if self.stop.is_set():
                    break
                if self.executor is None:
                    out.send_all(place_batch(batch, piece, path, remaining))
                    continue
                pending.append(self.executor.submit(place_batch, batch, piece, path, remaining))
                while pending and (len(pending) > MAX_PENDING or pending[0].done()):
                    out.send_all(pending.popleft().result())

            while pending and not self.stop.is_set():
                out.send_all(pending.popleft().result())
            for future in pending:
                future.cancel()

    def fan_out(
        self,
        boards: Channel[Board],
        forks: list[Sender[Board]],
        progress: ProgressSink | None,
        previous: Piece | None,
    ) -> None:
        try:
            for board in boards:
                if self.stop.is_set():
                    break
                for fork in forks:
                    fork.send(board)
                if progress is not None and previous is not None:
                    progress(previous)
        finally:
            for fork in forks:
                fork.close()

    def forward(self, boards: Channel[Board], out: Sender[Board], progress: ProgressSink | None, last: Piece) -> None:
        with out:
            for board in boards:
                if self.stop.is_set():
                    break
                out.send(board)
                if progress is not None:
                    progress(last)

    def shutdown(self) -> None:
        self.stop.set()
        for thread in self.threads:
            thread.join()
        if self.executor is not None:
            self.executor.shutdown(cancel_futures=True)


def _executor(processes: int | None) -> Executor | None:
    if processes == 0:
        return None
    # Pipeline threads are already running, so never fork
    return ProcessPoolExecutor(max_workers=processes, mp_context=multiprocessing.get_context("spawn"))


def generate(
    starting_board: Board,
    pieces: Iterable[Piece],
    progress: ProgressSink | None = None,
    processes: int | None = None,
    prune: bool = True,
) -> Iterator[Board]:
    """Every board reachable by placing `pieces`, one stage per piece.

    Each stage fans every incoming board out to one worker thread per
    distinct orientation of its piece. A worker hands its boards in
    batches to a process pool of `processes` workers (all cores when
    None, or the worker thread itself when 0), where every square is
    tried as the anchor, and passes the results to the next stage.
    Stages shut down in cascade as their inputs run dry. Output order is
    unspecified.

    With `prune`, stages before the last drop boards whose empty regions
    cannot take the pieces still to come. The boards that come out of
    the last stage are the same either way.

    Closing the iterator early stops every stage and waits for its
    threads. An exception in any stage is raised from the iterator once
    the surviving stages have drained.
    """
    pieces = list(pieces)
    pipeline = _Pipeline(_executor(processes) if pieces else None)

    try:
        source: Channel[Board] = Channel()
        with source.sender() as tx:
            tx.send(starting_board)

        inbound = source
        previous: Piece | None = None

        for stage, piece in enumerate(pieces):
            rest = tuple(p.square_count for p in pieces[stage + 1:])
            remaining = rest if prune and rest else None

            outbound: Channel[Board] = Channel()
            orientations = piece.orientations()
            logger.debug("stage %s: %d orientations", piece, len(orientations))

            workers = []
            forks = []
            for rotation, mirror in orientations:
                fork: Channel[Board] = Channel()
                forks.append(fork.sender())
                path = Path.from_orientation(piece, rotation, mirror)
                name = f"{piece.name}-{rotation.name.lower()}{'-m' if mirror else ''}"
                workers.append((name, path, fork, outbound.sender()))

            for name, path, fork, out in workers:
                pipeline.spawn(name, pipeline.place_everywhere, piece, path, remaining, fork, out)
            pipeline.spawn(f"{piece.name}-fanout", pipeline.fan_out, inbound, forks, progress, previous)

            inbound = outbound
            previous = piece

        if previous is None:
            yield from inbound
            return

        result: Channel[Board] = Channel()
        pipeline.spawn("collect", pipeline.forward, inbound, result.sender(), progress, previous)
        yield from result

        if pipeline.errors:
            raise pipeline.errors[0]
    finally:
        pipeline.shutdown()
