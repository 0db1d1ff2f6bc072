"""Favorite items, persisted as a JSON file."""

import json
from pathlib import Path

import aiofiles
from pydantic import ValidationError

from catalog_browser.errors import FavoritesError
from catalog_browser.extractor.listing import CatalogItem


class FavoritesStore:
    """Favorite catalog items keyed by ``url``."""

    def __init__(self, path: Path):
        self.path = Path(path).expanduser()

    async def load(self) -> list[CatalogItem]:
        """Read all favorites; a missing file means none."""
        if not self.path.exists():
            return []
        async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
            content = await f.read()
        if not content.strip():
            return []
        try:
            data = json.loads(content)
            return [CatalogItem.model_validate(entry) for entry in data]
        except (json.JSONDecodeError, TypeError, ValidationError) as e:
            raise FavoritesError(f"Unreadable favorites file {self.path}: {e}") from e

    async def _save(self, items: list[CatalogItem]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        content = json.dumps(
            [item.model_dump(mode="json") for item in items],
            ensure_ascii=False,
            indent=2,
        )
        async with aiofiles.open(self.path, "w", encoding="utf-8") as f:
            await f.write(content)

    async def has(self, url: str) -> bool:
        return any(item.url == url for item in await self.load())

    async def add(self, item: CatalogItem) -> bool:
        """Add an item. Returns False when its url is already present."""
        items = await self.load()
        if any(existing.url == item.url for existing in items):
            return False
        items.append(item)
        await self._save(items)
        return True

    async def remove(self, url: str) -> bool:
        """Remove by url. Returns False when nothing matched."""
        items = await self.load()
        kept = [item for item in items if item.url != url]
        if len(kept) == len(items):
            return False
        await self._save(kept)
        return True

    async def toggle(self, item: CatalogItem) -> bool:
        """Add or remove an item; True when it is a favorite afterwards."""
        if await self.remove(item.url):
            return False
        await self.add(item)
        return True
