"""Template category taxonomy, loaded from a JSON data file."""

import json
import logging
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator

from .types import Category

logger = logging.getLogger(__name__)

DEFAULT_TAXONOMY_PATH = Path(__file__).parent / "data" / "taxonomy.json"


class Taxonomy(BaseModel):
    """Ordered, immutable set of categories.

    Declaration order is significant: it breaks ties when categories are
    ranked.
    """

    model_config = ConfigDict(frozen=True)

    categories: tuple[Category, ...]
    display_names: dict[str, str] = {}

    @field_validator("categories")
    @classmethod
    def _lowercase_keywords(cls, categories: tuple[Category, ...]) -> tuple[Category, ...]:
        return tuple(
            c.model_copy(update={"keywords": tuple(k.lower() for k in c.keywords)})
            for c in categories
        )

    def keys(self) -> list[str]:
        return [c.key for c in self.categories]

    def get(self, key: str) -> Category | None:
        for category in self.categories:
            if category.key == key:
                return category
        return None

    def display_name(self, key: str) -> str | None:
        return self.display_names.get(key)

    def select(self, keys: list[str] | None) -> "Taxonomy":
        """Return a taxonomy restricted to *keys*, keeping declaration order."""
        if not keys:
            return self
        wanted = set(keys)
        unknown = wanted - set(self.keys())
        if unknown:
            logger.warning("Ignoring unknown categories: %s", ", ".join(sorted(unknown)))
        return Taxonomy(
            categories=tuple(c for c in self.categories if c.key in wanted),
            display_names=self.display_names,
        )


@lru_cache(maxsize=8)
def _read_taxonomy(path: str) -> Taxonomy:
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    return Taxonomy.model_validate(raw)


def load_taxonomy(
    path: str | None = None,
    categories: list[str] | None = None,
) -> Taxonomy:
    """Load the taxonomy file and optionally restrict it to some categories.

    Args:
        path: Alternative taxonomy JSON file. Defaults to the bundled one.
        categories: Category keys to keep. ``None`` keeps all of them.
    """
    taxonomy = _read_taxonomy(str(path or DEFAULT_TAXONOMY_PATH))
    return taxonomy.select(categories)
