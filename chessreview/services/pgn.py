import io
from dataclasses import dataclass, field

import chess
import chess.pgn

from chessreview.core.errors import InvalidInputFormat
from chessreview.services.evaluation import BLACK, WHITE


@dataclass(frozen=True)
class ParsedMove:
    ply: int
    side: str
    move_san: str
    move_uci: str
    fen_before: str
    fen_after: str


@dataclass(frozen=True)
class ParsedGame:
    starting_fen: str
    moves: tuple[ParsedMove, ...]
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def final_fen(self) -> str:
        return self.moves[-1].fen_after if self.moves else self.starting_fen


def parse_pgn(pgn: str) -> ParsedGame:
    if not pgn or not pgn.strip():
        raise InvalidInputFormat("PGN is empty.")

    try:
        game = chess.pgn.read_game(io.StringIO(pgn))
    except ValueError as exc:
        raise InvalidInputFormat(f"Unable to parse PGN: {exc}") from exc
    if game is None:
        raise InvalidInputFormat("Unable to parse PGN.")
    if game.errors:
        raise InvalidInputFormat(f"Unable to parse PGN: {game.errors[0]}")

    board = game.board()
    starting_fen = board.fen()
    parsed: list[ParsedMove] = []

    for ply, move in enumerate(game.mainline_moves(), start=1):
        side = WHITE if board.turn == chess.WHITE else BLACK
        fen_before = board.fen()
        move_san = board.san(move)
        board.push(move)
        parsed.append(
            ParsedMove(
                ply=ply,
                side=side,
                move_san=move_san,
                move_uci=move.uci(),
                fen_before=fen_before,
                fen_after=board.fen(),
            )
        )

    if not parsed:
        raise InvalidInputFormat("PGN contains no moves.")

    return ParsedGame(
        starting_fen=starting_fen,
        moves=tuple(parsed),
        headers=dict(game.headers),
    )
