from typing import Dict, FrozenSet, Iterator, List, Optional, Set

from fieldguard.spec import FieldKey, RegistryFrozenError, WhitelistEntry


class WhitelistRegistry:
    """
    Maps a FieldKey to the set of function names allowed to mutate it.

    The registry is built during the collection phase and frozen before the
    scan phase starts. A field without an entry is unrestricted; a field with
    an empty entry may not be mutated by any function.
    """

    def __init__(self):
        self._entries: Dict[FieldKey, Set[str]] = {}
        self._frozen_view: Optional[Dict[FieldKey, FrozenSet[str]]] = None

    @classmethod
    def from_entries(cls, entries: List[WhitelistEntry]) -> "WhitelistRegistry":
        registry = cls()
        for entry in entries:
            registry.declare(entry.field_key)
            for name in entry.functions:
                registry.insert(entry.field_key, name)
        return registry

    @property
    def is_frozen(self) -> bool:
        return self._frozen_view is not None

    def _ensure_mutable(self, key: FieldKey) -> None:
        if self.is_frozen:
            raise RegistryFrozenError(
                f"Cannot modify whitelist of '{key}': registry is frozen."
            )

    def declare(self, key: FieldKey) -> None:
        self._ensure_mutable(key)
        self._entries.setdefault(key, set())

    def insert(self, key: FieldKey, name: str) -> None:
        self._ensure_mutable(key)
        self._entries.setdefault(key, set()).add(name)

    def freeze(self) -> "WhitelistRegistry":
        if self._frozen_view is None:
            self._frozen_view = {
                key: frozenset(names) for key, names in self._entries.items()
            }
        return self

    def lookup(self, key: FieldKey) -> Optional[FrozenSet[str]]:
        if self._frozen_view is not None:
            return self._frozen_view.get(key)
        names = self._entries.get(key)
        return frozenset(names) if names is not None else None

    def entries(self) -> Iterator[WhitelistEntry]:
        for key in sorted(self._entries):
            yield WhitelistEntry(field_key=key, functions=self.lookup(key))

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
