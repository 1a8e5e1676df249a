from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional

from services.errors import CatalogLoadError, UnknownIntersectionError
from settings import get_settings

logger = logging.getLogger(__name__)


class CameraCatalog:
    """Static lookup of intersection cameras keyed by intersection name."""

    def __init__(self, entries: Iterable[Mapping[str, Any]]) -> None:
        cameras: Dict[str, Mapping[str, Any]] = {}
        for entry in entries:
            if not isinstance(entry, Mapping):
                raise CatalogLoadError(f"Camera entry must be an object: {entry!r}")
            name = entry.get("name")
            if not isinstance(name, str) or not name:
                raise CatalogLoadError(f"Camera entry without a name: {entry!r}")
            if "location" not in entry:
                raise CatalogLoadError(f"Camera {name!r} has no location.")
            cameras[name] = MappingProxyType(dict(entry))
        self._cameras = MappingProxyType(cameras)

    @classmethod
    def from_path(cls, path: Path) -> "CameraCatalog":
        try:
            raw = path.read_text(encoding="utf-8")
            data = json.loads(raw)
        except OSError as exc:
            raise CatalogLoadError(f"Unable to read camera data from {path}.") from exc
        except json.JSONDecodeError as exc:
            raise CatalogLoadError(f"Camera data in {path} is not valid JSON.") from exc

        if not isinstance(data, list):
            raise CatalogLoadError(f"Camera data in {path} must be a JSON array.")
        return cls(data)

    def __len__(self) -> int:
        return len(self._cameras)

    def location_for(self, name: str) -> Any:
        camera = self._cameras.get(name)
        if camera is None:
            raise UnknownIntersectionError(name)
        return camera["location"]


@lru_cache
def build_default_catalog(path: Optional[str] = None) -> CameraCatalog:
    settings = get_settings()
    catalog_path = settings.camera_data_path if path is None else path
    catalog = CameraCatalog.from_path(Path(catalog_path))
    logger.info("Loaded %d intersection cameras from %s", len(catalog), catalog_path)
    return catalog
