from __future__ import annotations

import csv
import json
import logging
import math
import threading
from io import StringIO
from pathlib import Path
from typing import Iterator, Mapping

from .conversions import lab_to_rgb_float, rgb_to_hsv
from .models import LAB, Shade

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = (
    Path(__file__).resolve().parents[2] / "data" / "vita_classical_lab.json"
)


class CatalogLoadError(ValueError):
    pass


class ShadeCatalog:
    """Lazily loaded, read-only table of reference shades.

    The first ``load()`` reads the backing file; callers that arrive while that
    read is in flight wait on the same lock and share its result.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else DEFAULT_CATALOG_PATH
        self._lock = threading.Lock()
        self._shades: tuple[Shade, ...] | None = None
        self._index: dict[str, Shade] = {}

    @classmethod
    def from_records(cls, records: Mapping[str, Mapping[str, object]]) -> ShadeCatalog:
        catalog = cls(path=None)
        shades = tuple(
            _parse_shade(name, record, f"records[{name!r}]")
            for name, record in records.items()
        )
        catalog._install(shades)
        return catalog

    def load(self) -> list[Shade]:
        if self._shades is None:
            with self._lock:
                if self._shades is None:
                    shades = load_shades(self.path)
                    self._install(shades)
                    logger.info(f"Loaded {len(shades)} reference shades from {self.path}")
        return list(self._shades or ())

    def reset(self) -> None:
        with self._lock:
            self._shades = None
            self._index = {}

    def get(self, name: str) -> Shade | None:
        self.load()
        return self._index.get(name)

    @property
    def names(self) -> list[str]:
        return [shade.name for shade in self.load()]

    def __len__(self) -> int:
        return len(self.load())

    def __iter__(self) -> Iterator[Shade]:
        return iter(self.load())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def _install(self, shades: tuple[Shade, ...]) -> None:
        self._index = {shade.name: shade for shade in shades}
        self._shades = shades


_default_catalog: ShadeCatalog | None = None
_default_lock = threading.Lock()


def default_catalog() -> ShadeCatalog:
    global _default_catalog
    with _default_lock:
        if _default_catalog is None:
            _default_catalog = ShadeCatalog()
        return _default_catalog


def load_shades(path_like: str | Path) -> tuple[Shade, ...]:
    path = Path(path_like)
    if not path.exists():
        raise CatalogLoadError(f"shade catalog does not exist: {path}")

    if path.suffix.lower() == ".json":
        shades = _load_json(path)
    elif path.suffix.lower() == ".csv":
        shades = _load_csv(path)
    else:
        raise CatalogLoadError(
            f"unsupported catalog format '{path.suffix}'. Use .json or .csv"
        )

    if not shades:
        raise CatalogLoadError(f"shade catalog has no usable entries: {path}")
    return shades


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise CatalogLoadError(f"shade catalog at {path} could not be read: {exc}") from exc


def _load_json(path: Path) -> tuple[Shade, ...]:
    text = _read_text(path)
    try:
        payload = json.loads(text, object_pairs_hook=_reject_duplicates)
    except json.JSONDecodeError as exc:
        raise CatalogLoadError(f"shade catalog at {path} is not valid json") from exc

    if not isinstance(payload, dict):
        raise CatalogLoadError(
            f"json catalog at {path} must be an object keyed by shade name"
        )

    shades: list[Shade] = []
    for name, record in payload.items():
        if not isinstance(record, dict):
            raise CatalogLoadError(
                f"invalid catalog entry at {path}:{name} (expected object)"
            )
        shades.append(_parse_shade(name, record, f"{path}:{name}"))
    return tuple(shades)


def _load_csv(path: Path) -> tuple[Shade, ...]:
    reader = csv.DictReader(StringIO(_read_text(path), newline=""))
    if not reader.fieldnames:
        raise CatalogLoadError(f"catalog csv has no header: {path}")

    shades: list[Shade] = []
    seen: set[str] = set()
    for idx, row in enumerate(reader, start=2):
        normalized = {
            str(key).strip(): value for key, value in row.items() if key is not None
        }
        name = (normalized.pop("name", None) or "").strip()
        if name in seen:
            raise CatalogLoadError(f"{path}:{idx}: duplicate shade name '{name}'")
        seen.add(name)
        shades.append(_parse_shade(name, normalized, f"{path}:{idx}"))
    return tuple(shades)


def _reject_duplicates(pairs: list[tuple[str, object]]) -> dict[str, object]:
    result: dict[str, object] = {}
    for key, value in pairs:
        if key in result:
            raise CatalogLoadError(f"duplicate key '{key}' in shade catalog")
        result[key] = value
    return result


def _parse_shade(name: str, record: Mapping[str, object], location: str) -> Shade:
    name = str(name).strip()
    if not name:
        raise CatalogLoadError(f"{location}: missing shade name")

    missing = [key for key in ("L", "a", "b") if record.get(key) is None]
    if missing:
        raise CatalogLoadError(
            f"{location}: missing required LAB field(s) {', '.join(missing)}"
        )

    if any(isinstance(record[key], bool) for key in ("L", "a", "b")):
        raise CatalogLoadError(f"{location}: LAB values must be numbers, not booleans")
    try:
        lab: LAB = (float(record["L"]), float(record["a"]), float(record["b"]))
    except (TypeError, ValueError) as exc:
        raise CatalogLoadError(
            f"{location}: invalid LAB values, expected numeric L/a/b"
        ) from exc
    if not all(math.isfinite(v) for v in lab):
        raise CatalogLoadError(f"{location}: LAB values must be finite")

    rgb = lab_to_rgb_float(lab)
    return Shade(name=name, lab=lab, hsv=rgb_to_hsv(*rgb))
