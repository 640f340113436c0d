from typing import Any, Dict, Optional

from .protocols import Renderer
from .store import MessageStore

LEVELS: Dict[str, int] = {
    "debug": 10,
    "info": 20,
    "success": 25,
    "warning": 30,
    "error": 40,
}


class MessageBus:
    def __init__(self, store: MessageStore):
        self._store = store
        self._renderer: Optional[Renderer] = None
        self._threshold = LEVELS["info"]

    @property
    def store(self) -> MessageStore:
        return self._store

    def set_renderer(self, renderer: Optional[Renderer]) -> None:
        self._renderer = renderer

    def set_level(self, level: str) -> None:
        if level not in LEVELS:
            raise ValueError(f"Unknown message level: {level}")
        self._threshold = LEVELS[level]

    def render_to_string(self, msg_id: str, **kwargs: Any) -> str:
        return self._store.get(msg_id, **kwargs)

    def _render(self, level: str, msg_id: str, **kwargs: Any) -> None:
        if not self._renderer or LEVELS[level] < self._threshold:
            return
        self._renderer.render(self._store.get(msg_id, **kwargs), level)

    def debug(self, msg_id: str, **kwargs: Any) -> None:
        self._render("debug", msg_id, **kwargs)

    def info(self, msg_id: str, **kwargs: Any) -> None:
        self._render("info", msg_id, **kwargs)

    def success(self, msg_id: str, **kwargs: Any) -> None:
        self._render("success", msg_id, **kwargs)

    def warning(self, msg_id: str, **kwargs: Any) -> None:
        self._render("warning", msg_id, **kwargs)

    def error(self, msg_id: str, **kwargs: Any) -> None:
        self._render("error", msg_id, **kwargs)
