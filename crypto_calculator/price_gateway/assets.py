"""
Catalog of supported assets and their CoinGecko identifiers.

The mapping is data, loaded from a JSON file, so it can be extended without
touching the gateway.
"""

import json
import logging
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Final

from ..shared.errors import UnsupportedAssetError

BUNDLED_ASSET_MAP: Final[Path] = Path(__file__).with_name("assets.json")

logger = logging.getLogger(__name__)


class AssetCatalog(Mapping[str, str]):
    """Read-only, exact-match mapping from internal asset keys to upstream ids."""

    def __init__(self, mapping: Mapping[str, str]):
        self._mapping = dict(mapping)

    @classmethod
    def from_file(cls, path: str | Path | None = None) -> "AssetCatalog":
        """Load the catalog from a JSON object of ``{asset: upstream_id}``."""
        path = Path(path) if path else BUNDLED_ASSET_MAP
        data = json.loads(path.read_text(encoding="utf-8"))

        if not isinstance(data, dict) or not all(
            isinstance(key, str) and isinstance(value, str) and key and value
            for key, value in data.items()
        ):
            raise ValueError(f"Asset map {path} must be an object of non-empty strings")

        logger.info(f"Loaded {len(data)} assets from {path}")
        return cls(data)

    def __getitem__(self, asset: str) -> str:
        return self._mapping[asset]

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def resolve(self, asset: str) -> str:
        """Return the upstream id for ``asset`` or raise UnsupportedAssetError."""
        try:
            return self._mapping[asset]
        except KeyError:
            raise UnsupportedAssetError(asset) from None
