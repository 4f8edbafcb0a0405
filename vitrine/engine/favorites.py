"""Client-local favorites, shared across every storefront."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from vitrine.config import FavoritesConfig

logger = logging.getLogger(__name__)


class FavoritesStore:
    """A persistent set of favorited listing ids.

    The set lives in a JSON document under one global key, so favorites are
    not scoped by tenant. If the file cannot be read or written the store
    keeps working in memory for the rest of the session.
    """

    def __init__(self, path: Path | str | None, key: str = "favorites"):
        self.path = Path(path).expanduser() if path else None
        self.key = key
        self._ids: list[str] = []
        self.persistent = self.path is not None
        self._load()

    @classmethod
    def from_config(cls, config: FavoritesConfig) -> FavoritesStore:
        return cls(config.path, config.key)

    def _read_document(self) -> dict:
        if self.path is None or not self.path.exists():
            return {}
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        return data if isinstance(data, dict) else {}

    def _load(self) -> None:
        try:
            doc = self._read_document()
        except (OSError, ValueError) as e:
            logger.warning("Favorites storage unavailable, using memory only: %s", e)
            self.persistent = False
            return
        raw = doc.get(self.key) or []
        seen: set[str] = set()
        for item in raw if isinstance(raw, list) else []:
            item = str(item)
            if item not in seen:
                seen.add(item)
                self._ids.append(item)

    def _save(self) -> None:
        if not self.persistent or self.path is None:
            return
        try:
            doc = self._read_document()
            doc[self.key] = self._ids
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(doc, f)
            tmp.replace(self.path)
        except (OSError, ValueError) as e:
            logger.warning("Could not persist favorites, keeping them in memory: %s", e)
            self.persistent = False

    def is_favorited(self, listing_id: str) -> bool:
        return listing_id in self._ids

    def toggle(self, listing_id: str) -> bool:
        """Flip membership of `listing_id`. Returns the new membership."""
        if listing_id in self._ids:
            self._ids.remove(listing_id)
            added = False
        else:
            self._ids.append(listing_id)
            added = True
        self._save()
        return added

    def ids(self) -> list[str]:
        return list(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, listing_id: object) -> bool:
        return listing_id in self._ids
