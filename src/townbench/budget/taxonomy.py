"""Budget category taxonomy loaded from YAML."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

import yaml


_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[3] / "config" / "taxonomy.yml"


class Taxonomy:
    """Immutable two-level category -> subcategory lookup table.

    Category order follows the config file and is the order in which
    category rankings are produced.
    """

    def __init__(self, categories: Mapping[str, list[str] | tuple[str, ...]]) -> None:
        self._categories: Mapping[str, tuple[str, ...]] = MappingProxyType(
            {str(cat): tuple(str(s) for s in subs or ()) for cat, subs in categories.items()}
        )

    @classmethod
    def from_yaml(cls, config_path: str | Path | None = None) -> Taxonomy:
        path = Path(config_path) if config_path else _DEFAULT_CONFIG_PATH
        with open(path) as fh:
            raw = yaml.safe_load(fh) or {}
        categories = raw.get("categories") or {}
        if not isinstance(categories, dict):
            raise ValueError(f"Taxonomy file {path} must map categories to lists")
        return cls(categories)

    @property
    def categories(self) -> tuple[str, ...]:
        return tuple(self._categories)

    def subcategories(self, category: str) -> tuple[str, ...]:
        return self._categories.get(category, ())

    def is_valid(self, category: str, subcategory: str | None = None) -> bool:
        if category not in self._categories:
            return False
        if subcategory is None:
            return True
        return subcategory in self._categories[category]

    def as_dict(self) -> dict[str, list[str]]:
        return {cat: list(subs) for cat, subs in self._categories.items()}

    def __contains__(self, category: object) -> bool:
        return category in self._categories

    def __len__(self) -> int:
        return len(self._categories)
