from typing import Protocol


class Renderer(Protocol):
    """
    Protocol for renderers that present resolved messages to the user.
    """

    def render(self, message: str, level: str) -> None: ...
