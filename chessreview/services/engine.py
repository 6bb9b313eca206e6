from __future__ import annotations

import asyncio
import concurrent.futures
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import suppress
from dataclasses import dataclass
from typing import Callable, Optional

import chess
import chess.engine

from chessreview.core.config import get_settings
from chessreview.core.errors import (
    EngineTimeout,
    EngineUnavailable,
    InvalidInputFormat,
    ProtocolParseAnomaly,
    SearchPreempted,
)
from chessreview.core.logging import get_logger

MATE_SCORE_CP = 10000

BOOT_ERRORS = (
    OSError,
    chess.engine.EngineError,
    asyncio.TimeoutError,
    concurrent.futures.TimeoutError,
)

logger = get_logger("chessreview.engine")

SampleCallback = Callable[["AnalysisSample"], None]
EngineOpener = Callable[..., chess.engine.SimpleEngine]


@dataclass(frozen=True)
class EngineConfig:
    sources: tuple[str, ...]
    handshake_timeout: float
    search_timeout: float
    boot_attempts: int
    hash_mb: int
    threads: int


@dataclass(frozen=True)
class EngineMetadata:
    name: str
    source: str


@dataclass(frozen=True)
class AnalysisSample:
    fen: str
    score_cp: int
    best_move: Optional[str]
    depth: int
    pv: tuple[str, ...]


def white_to_move(fen: str) -> bool:
    fields = fen.split()
    return len(fields) < 2 or fields[1] == "w"


def fold_score(score: chess.engine.PovScore, fen: str) -> int:
    relative = score.relative.score(mate_score=MATE_SCORE_CP)
    return relative if white_to_move(fen) else -relative


def terminal_score(board: chess.Board) -> int:
    if board.is_checkmate():
        return -MATE_SCORE_CP if board.turn == chess.WHITE else MATE_SCORE_CP
    return 0


class SampleBuilder:
    """Accumulates streamed engine records into one white-positive sample."""

    def __init__(self, fen: str) -> None:
        self.fen = fen
        self.score_cp: Optional[int] = None
        self.best_move: Optional[str] = None
        self.depth = 0
        self.pv: tuple[str, ...] = ()

    @property
    def ready(self) -> bool:
        return self.score_cp is not None and self.best_move is not None

    def feed(self, info: chess.engine.InfoDict) -> None:
        score = info.get("score")
        pv = [move.uci() for move in info.get("pv") or [] if move]
        if score is None and not pv:
            raise ProtocolParseAnomaly(f"Engine record without score or pv: {sorted(info)}")

        if score is not None:
            self.score_cp = fold_score(score, self.fen)
        if pv:
            self.pv = tuple(pv)
            self.best_move = pv[0]
        depth = info.get("depth")
        if depth is not None:
            self.depth = int(depth)

    def feed_best_move(self, move: Optional[chess.Move]) -> None:
        if not move:
            return
        self.best_move = move.uci()

    def sample(self) -> AnalysisSample:
        return AnalysisSample(
            fen=self.fen,
            score_cp=self.score_cp if self.score_cp is not None else 0,
            best_move=self.best_move,
            depth=self.depth,
            pv=self.pv,
        )

    def finish(self, board: chess.Board, interrupted: bool = False) -> AnalysisSample:
        if self.score_cp is None:
            if not board.is_game_over():
                if interrupted:
                    raise SearchPreempted(f"Search was stopped before any score: {self.fen}")
                raise EngineUnavailable(f"Engine returned no evaluation for {self.fen}")
            self.score_cp = terminal_score(board)
        return self.sample()


class EngineClient:
    def __init__(self, config: EngineConfig, opener: Optional[EngineOpener] = None) -> None:
        self.config = config
        self.metadata: Optional[EngineMetadata] = None
        self._opener = opener or chess.engine.SimpleEngine.popen_uci
        self._engine: Optional[chess.engine.SimpleEngine] = None
        self._boot_lock = threading.Lock()
        self._active_lock = threading.Lock()
        self._active: Optional[chess.engine.SimpleAnalysisResult] = None
        # Bumped by every stop(); a search submitted under an older value is stale.
        self._generation = 0
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="engine-search")

    @property
    def is_ready(self) -> bool:
        return self._engine is not None

    def init(self) -> EngineMetadata:
        with self._boot_lock:
            if self._engine is not None and self.metadata is not None:
                return self.metadata

            deadline = time.monotonic() + self.config.handshake_timeout
            failures: list[str] = []
            for source in self.config.sources:
                for attempt in range(1, self.config.boot_attempts + 1):
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        failures.append(f"{source}: handshake deadline passed")
                        break
                    try:
                        engine = self._handshake(source, remaining)
                    except BOOT_ERRORS as exc:
                        failures.append(f"{source}: {str(exc) or type(exc).__name__}")
                        logger.warning(
                            "engine.source_failed",
                            extra={
                                "event": "engine.source_failed",
                                "source": source,
                                "attempt": attempt,
                                "error_message": str(exc),
                            },
                        )
                        continue

                    self._engine = engine
                    self.metadata = EngineMetadata(
                        name=engine.id.get("name", "unknown"),
                        source=source,
                    )
                    logger.info(
                        "engine.ready",
                        extra={
                            "event": "engine.ready",
                            "source": source,
                            "engine_name": self.metadata.name,
                        },
                    )
                    return self.metadata

            logger.error(
                "engine.unavailable",
                extra={"event": "engine.unavailable", "failures": failures},
            )
            raise EngineUnavailable(
                "No engine source completed the handshake: " + "; ".join(failures or ["none configured"])
            )

    def _handshake(self, source: str, timeout: float) -> chess.engine.SimpleEngine:
        engine = self._opener(source, timeout=timeout)
        try:
            wanted = {"Hash": self.config.hash_mb, "Threads": self.config.threads}
            options = {name: value for name, value in wanted.items() if name in engine.options}
            if options:
                engine.configure(options)
            engine.ping()
        except BaseException:
            with suppress(*BOOT_ERRORS):
                engine.close()
            raise
        return engine

    def submit(
        self,
        fen: str,
        depth: int,
        on_sample: Optional[SampleCallback] = None,
        *,
        preempt: bool = True,
        game: Optional[object] = None,
    ) -> Future[AnalysisSample]:
        try:
            chess.Board(fen)
        except ValueError as exc:
            raise InvalidInputFormat(f"Invalid FEN: {fen}") from exc
        if depth < 1:
            raise InvalidInputFormat("Search depth must be at least 1.")
        if preempt:
            self.stop()
        with self._active_lock:
            ticket = self._generation
        return self._executor.submit(self._search, fen, depth, on_sample, game, ticket)

    def evaluate(
        self,
        fen: str,
        depth: int,
        *,
        preempt: bool = True,
        game: Optional[object] = None,
    ) -> AnalysisSample:
        return self._await(self.submit(fen, depth, preempt=preempt, game=game), fen)

    def stream(
        self,
        fen: str,
        depth: int,
        on_sample: SampleCallback,
        *,
        preempt: bool = True,
    ) -> AnalysisSample:
        return self._await(self.submit(fen, depth, on_sample, preempt=preempt), fen)

    def _await(self, future: Future[AnalysisSample], fen: str) -> AnalysisSample:
        try:
            return future.result(timeout=self.config.search_timeout)
        except concurrent.futures.TimeoutError as exc:
            future.cancel()
            self.stop()
            logger.error(
                "engine.timeout",
                extra={
                    "event": "engine.timeout",
                    "fen": fen,
                    "timeout_sec": self.config.search_timeout,
                },
            )
            raise EngineTimeout(
                f"Engine gave no result within {self.config.search_timeout:g}s."
            ) from exc

    def stop(self) -> None:
        with self._active_lock:
            self._generation += 1
            active = self._active
        if active is not None:
            active.stop()
            logger.info("engine.search_cancelled", extra={"event": "engine.search_cancelled"})

    def _require_engine(self) -> chess.engine.SimpleEngine:
        if self._engine is None:
            self.init()
        assert self._engine is not None
        return self._engine

    def _discard_engine(self) -> None:
        with self._boot_lock:
            engine, self._engine, self.metadata = self._engine, None, None
        if engine is not None:
            with suppress(*BOOT_ERRORS):
                engine.close()

    def _stale(self, ticket: int) -> bool:
        with self._active_lock:
            return ticket != self._generation

    def _search(
        self,
        fen: str,
        depth: int,
        on_sample: Optional[SampleCallback],
        game: Optional[object],
        ticket: int,
    ) -> AnalysisSample:
        if self._stale(ticket):
            raise SearchPreempted(f"Search was stopped before it started: {fen}")
        engine = self._require_engine()
        try:
            return self._run_search(engine, fen, depth, on_sample, game, ticket)
        except chess.engine.EngineError as exc:
            logger.warning(
                "engine.restarting",
                extra={"event": "engine.restarting", "fen": fen, "error_message": str(exc)},
            )
            self._discard_engine()
        try:
            return self._run_search(self._require_engine(), fen, depth, on_sample, game, ticket)
        except chess.engine.EngineError as exc:
            self._discard_engine()
            raise EngineUnavailable(f"Engine failed during search: {exc}") from exc

    def _run_search(
        self,
        engine: chess.engine.SimpleEngine,
        fen: str,
        depth: int,
        on_sample: Optional[SampleCallback],
        game: Optional[object],
        ticket: int,
    ) -> AnalysisSample:
        board = chess.Board(fen)
        builder = SampleBuilder(fen)
        with engine.analysis(board, chess.engine.Limit(depth=depth), game=game) as analysis:
            with self._active_lock:
                self._active = analysis
                stopped_early = ticket != self._generation
            if stopped_early:
                analysis.stop()
            try:
                completed = True
                for info in analysis:
                    try:
                        builder.feed(info)
                    except ProtocolParseAnomaly as exc:
                        logger.debug(
                            "engine.record_ignored",
                            extra={"event": "engine.record_ignored", "detail": str(exc)},
                        )
                        continue
                    if on_sample is not None and builder.ready:
                        on_sample(builder.sample())
                    if builder.ready and builder.depth >= depth:
                        completed = False
                        break
                if completed:
                    builder.feed_best_move(analysis.wait().move)
            finally:
                with self._active_lock:
                    self._active = None
        return builder.finish(board, interrupted=self._stale(ticket))

    def close(self) -> None:
        self.stop()
        self._executor.shutdown(wait=True, cancel_futures=True)
        with self._boot_lock:
            engine, self._engine = self._engine, None
        if engine is not None:
            with suppress(*BOOT_ERRORS):
                engine.quit()
        logger.info("engine.closed", extra={"event": "engine.closed"})


def get_engine_config() -> EngineConfig:
    settings = get_settings()
    return EngineConfig(
        sources=settings.engine_sources,
        handshake_timeout=settings.engine_handshake_timeout,
        search_timeout=settings.engine_search_timeout,
        boot_attempts=settings.engine_boot_attempts,
        hash_mb=settings.engine_hash_mb,
        threads=settings.engine_threads,
    )


_client_lock = threading.Lock()
_client: Optional[EngineClient] = None


def get_engine_client() -> EngineClient:
    global _client
    with _client_lock:
        if _client is None:
            _client = EngineClient(get_engine_config())
        return _client


def shutdown_engine_client() -> None:
    global _client
    with _client_lock:
        client, _client = _client, None
    if client is not None:
        client.close()
