import json
import logging
from pathlib import Path
from typing import Any, Dict

log = logging.getLogger(__name__)

DEFAULT_LANG = "en"


def _flatten(prefix: str, value: Any, into: Dict[str, str]) -> None:
    if isinstance(value, dict):
        for key, child in value.items():
            _flatten(f"{prefix}.{key}" if prefix else key, child, into)
    else:
        into[prefix] = str(value)


class MessageStore:
    """
    Resolves dotted message ids to templates loaded from JSON assets.

    Every `<assets_root>/<lang>/<name>.json` file contributes its keys under
    the `<name>.` prefix; nested objects add further dotted segments. Keys
    missing for the requested language fall back to English, and unknown ids
    render as the id itself.
    """

    def __init__(self, assets_root: Path, lang: str = DEFAULT_LANG):
        self.assets_root = assets_root
        self.lang = lang
        self._messages: Dict[str, str] = {}
        self._load(DEFAULT_LANG)
        if lang != DEFAULT_LANG:
            self._load(lang)

    def _load(self, lang: str) -> None:
        lang_dir = self.assets_root / lang
        if not lang_dir.is_dir():
            log.debug(f"No message assets for language '{lang}'")
            return
        for json_file in sorted(lang_dir.glob("*.json")):
            with json_file.open("r", encoding="utf-8") as f:
                _flatten(json_file.stem, json.load(f), self._messages)

    def add(self, msg_id: str, template: str) -> None:
        self._messages[msg_id] = template

    def __contains__(self, msg_id: object) -> bool:
        return msg_id in self._messages

    def get(self, msg_id: str, **kwargs: Any) -> str:
        template = self._messages.get(msg_id)
        if template is None:
            return msg_id
        try:
            return template.format(**kwargs)
        except (KeyError, IndexError) as e:
            log.debug(f"Message '{msg_id}' is missing argument {e}")
            return template
