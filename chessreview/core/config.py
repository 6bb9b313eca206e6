import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

HANDSHAKE_TIMEOUT_MIN = 8.0
HANDSHAKE_TIMEOUT_MAX = 25.0


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_list(name: str, default: str) -> tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        raw = default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class Settings:
    cors_origins: str
    engine_sources: tuple[str, ...]
    engine_handshake_timeout: float
    engine_search_timeout: float
    engine_boot_attempts: int
    engine_hash_mb: int
    engine_threads: int
    analysis_depth: int
    live_depth: int
    puzzle_reply_delay: float
    coach_api_key: str
    coach_base_url: str
    coach_model: str
    coach_timeout: float


def get_settings() -> Settings:
    return Settings(
        cors_origins=os.getenv("CORS_ORIGINS", "http://localhost:3000"),
        engine_sources=_get_list(
            "ENGINE_SOURCES",
            "stockfish,/usr/games/stockfish,/usr/local/bin/stockfish,/opt/homebrew/bin/stockfish",
        ),
        engine_handshake_timeout=_clamp(
            _get_float("ENGINE_HANDSHAKE_TIMEOUT", 15.0),
            HANDSHAKE_TIMEOUT_MIN,
            HANDSHAKE_TIMEOUT_MAX,
        ),
        engine_search_timeout=_get_float("ENGINE_SEARCH_TIMEOUT", 60.0),
        engine_boot_attempts=max(_get_int("ENGINE_BOOT_ATTEMPTS", 1), 1),
        engine_hash_mb=_get_int("ENGINE_HASH_MB", 32),
        engine_threads=_get_int("ENGINE_THREADS", 1),
        analysis_depth=_get_int("ANALYSIS_DEPTH", 13),
        live_depth=_get_int("LIVE_DEPTH", 18),
        puzzle_reply_delay=_get_float("PUZZLE_REPLY_DELAY", 0.5),
        coach_api_key=os.getenv("COACH_API_KEY", ""),
        coach_base_url=os.getenv("COACH_BASE_URL", "https://api.openai.com"),
        coach_model=os.getenv("COACH_MODEL", "gpt-5-mini"),
        coach_timeout=_get_float("COACH_TIMEOUT", 30.0),
    )
