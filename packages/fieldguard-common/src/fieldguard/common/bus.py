import os
from pathlib import Path

from .messaging import MessageBus, MessageStore


def _detect_lang() -> str:
    """Detects the message language from the environment."""
    # 1. Explicit override
    env_lang = os.getenv("FIELDGUARD_LANG")
    if env_lang:
        return env_lang

    # 2. System LANG (e.g. en_US.UTF-8 -> en)
    sys_lang = os.getenv("LANG")
    if sys_lang:
        base_lang = sys_lang.split(".")[0].split("_")[0]
        if base_lang and base_lang not in ("C", "POSIX"):
            return base_lang

    return "en"


_assets_root = Path(__file__).parent / "assets"

bus = MessageBus(store=MessageStore(_assets_root, _detect_lang()))

__all__ = ["bus"]
