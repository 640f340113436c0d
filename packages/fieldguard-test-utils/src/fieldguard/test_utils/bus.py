from contextlib import contextmanager
from typing import Any, Dict, List, Optional

# No top-level imports of fieldguard packages to avoid coverage warnings


class SpyRenderer:
    def __init__(self):
        self.messages: List[Dict[str, Any]] = []

    def render(self, message: str, level: str) -> None:
        # The spy logic acts on record(), but satisfy the interface
        pass

    def record(self, level: str, msg_id: str, params: Dict[str, Any]):
        self.messages.append({"level": level, "id": msg_id, "params": params})


class SpyBus:
    def __init__(self):
        self._spy_renderer = SpyRenderer()

    @contextmanager
    def patch(self, monkeypatch: Any):
        # Lazy import inside the context manager
        import fieldguard.common

        # The singleton instance we need to mutate
        real_bus = fieldguard.common.bus

        def intercept_render(level: str, msg_id: str, **kwargs: Any) -> None:
            self._spy_renderer.record(level, msg_id, kwargs)

        monkeypatch.setattr(real_bus, "_render", intercept_render)
        monkeypatch.setattr(real_bus, "_renderer", self._spy_renderer)

        yield self

    def get_messages(self) -> List[Dict[str, Any]]:
        return self._spy_renderer.messages

    def ids(self, level: Optional[str] = None) -> List[str]:
        return [
            m["id"] for m in self.get_messages() if level is None or m["level"] == level
        ]

    def assert_id_called(self, msg_id: str, level: Optional[str] = None):
        if msg_id not in self.ids(level):
            raise AssertionError(
                f"Message with ID '{msg_id}' was not sent.\n"
                f"Captured IDs: {self.ids()}"
            )

    def assert_id_not_called(self, msg_id: str):
        if msg_id in self.ids():
            raise AssertionError(f"Message with ID '{msg_id}' was unexpectedly sent.")
