from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol

import numpy as np
from PIL import Image

from .calibration import CalibrationError
from .models import CalibrationOffset


class SupportsToDict(Protocol):
    def to_dict(self) -> dict[str, Any]:
        ...


def read_image_rgb(image_path: str | Path) -> np.ndarray:
    path = Path(image_path)
    with Image.open(path) as image:
        rgb = image.convert("RGB")
        return np.asarray(rgb, dtype=np.uint8)


def save_mask_image(mask: np.ndarray, output_path: str | Path) -> None:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    mask_img = Image.fromarray(mask.astype(np.uint8) * 255)
    mask_img.save(path)


def write_result_json(result: SupportsToDict, output_path: str | Path) -> None:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
    path.write_text(payload + "\n", encoding="utf-8")


def read_calibration_json(path_like: str | Path) -> CalibrationOffset:
    path = Path(path_like)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise CalibrationError(f"calibration file {path} is not valid json") from exc
    if not isinstance(payload, dict):
        raise CalibrationError(f"calibration file {path} must hold a json object")

    try:
        return CalibrationOffset.from_dict(payload)
    except (KeyError, TypeError, ValueError) as exc:
        raise CalibrationError(f"invalid calibration file {path}: {exc}") from exc
