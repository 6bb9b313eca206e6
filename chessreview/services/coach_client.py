import json
import threading
from typing import Any, Optional, Sequence

import httpx

from chessreview.core.config import get_settings
from chessreview.core.logging import get_logger

logger = get_logger("chessreview.coach")

HINT_HISTORY_WINDOW = 5

COACH_SYSTEM_PROMPT = (
    "You are a high-level chess coach. "
    "Give a concise, encouraging tactical hint or strategic observation for the player "
    "whose turn it is. Ground your advice in the engine's recommendation if provided. "
    "Keep it under 3 sentences."
)


class CoachResponseError(Exception):
    pass


class CoachNotConfigured(CoachResponseError):
    pass


def build_hint_prompt(
    fen: str,
    last_move: str,
    history: Sequence[Any],
    best_move: Optional[str] = None,
) -> str:
    recent = list(history)[-HINT_HISTORY_WINDOW:]
    return (
        f"Current position (FEN): {fen}.\n"
        f"Last move played: {last_move or 'None'}.\n"
        f"Engine suggests: {best_move or 'Unknown'}.\n"
        f"Previous history: {json.dumps(recent, ensure_ascii=True, default=str)}."
    )


class CoachClient:
    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str,
        timeout: float,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=timeout)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def hint(
        self,
        fen: str,
        last_move: str,
        history: Sequence[Any],
        best_move: Optional[str] = None,
    ) -> str:
        if not self.configured:
            raise CoachNotConfigured("COACH_API_KEY is not configured.")
        payload: dict[str, Any] = {
            "model": self.model,
            "input": [
                {"role": "system", "content": COACH_SYSTEM_PROMPT},
                {"role": "user", "content": build_hint_prompt(fen, last_move, history, best_move)},
            ],
            "max_output_tokens": 150,
        }
        if not self.model.startswith("gpt-5"):
            payload["temperature"] = 0.7
        try:
            response = self._client.post(
                f"{self.base_url}/v1/responses",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            message = f"Coach request failed ({exc.response.status_code})."
            try:
                body = exc.response.json()
            except json.JSONDecodeError:
                body = None
            if isinstance(body, dict):
                error_message = body.get("error", {}).get("message")
                if isinstance(error_message, str) and error_message:
                    message = error_message
            else:
                text = exc.response.text.strip()
                if text:
                    message = text.splitlines()[0]
            logger.warning(
                "coach.request_failed",
                extra={"event": "coach.request_failed", "status_code": exc.response.status_code},
            )
            raise CoachResponseError(message) from exc
        except httpx.HTTPError as exc:
            message = "Coach request failed."
            detail = str(exc).strip()
            if detail:
                message = f"Coach request failed: {detail}"
            logger.warning("coach.request_failed", extra={"event": "coach.request_failed"})
            raise CoachResponseError(message) from exc
        return self._extract_text(data)

    def close(self) -> None:
        self._client.close()

    @staticmethod
    def _extract_text(payload: dict[str, Any]) -> str:
        if isinstance(payload.get("output_text"), str) and payload["output_text"].strip():
            return payload["output_text"].strip()

        parts: list[str] = []
        for item in payload.get("output") or []:
            for content in item.get("content", []):
                if isinstance(content, dict) and isinstance(content.get("text"), str):
                    parts.append(content["text"])
        text = "".join(parts).strip()
        if not text:
            raise CoachResponseError("Coach response did not include any text.")
        return text


_client_lock = threading.Lock()
_client: Optional[CoachClient] = None


def get_coach_client() -> CoachClient:
    global _client
    with _client_lock:
        if _client is None:
            settings = get_settings()
            _client = CoachClient(
                api_key=settings.coach_api_key,
                base_url=settings.coach_base_url,
                model=settings.coach_model,
                timeout=settings.coach_timeout,
            )
        return _client


def shutdown_coach_client() -> None:
    global _client
    with _client_lock:
        client, _client = _client, None
    if client is not None:
        client.close()
