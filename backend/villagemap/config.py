from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field


def _repo_root() -> Path:
    # .../backend/villagemap/config.py -> repo root is 2 levels up
    return Path(__file__).resolve().parents[2]


def api_base_url() -> str:
    return (os.getenv("VILLAGEMAP_API_BASE_URL") or "http://localhost:5000/api").rstrip("/")


def http_timeout_s() -> float:
    return _float_env("VILLAGEMAP_HTTP_TIMEOUT_S", 30.0)


def debounce_s() -> float:
    return max(0.0, _float_env("VILLAGEMAP_DEBOUNCE_MS", 250.0) / 1000.0)


def view_config_path() -> Path:
    return Path(
        os.getenv("VILLAGEMAP_VIEW_CONFIG") or (_repo_root() / "config" / "map_view.yaml")
    )


def _float_env(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


class MapCenter(BaseModel):
    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)


class MapDefaultView(BaseModel):
    center: MapCenter = Field(default_factory=lambda: MapCenter(lat=20.5937, lon=78.9629))
    zoom: float = Field(default=6.0, ge=0.0, le=24.0)


class PixelViewport(BaseModel):
    width: int = Field(default=900, gt=0)
    height: int = Field(default=600, gt=0)


class MapViewConfig(BaseModel):
    """
    Display defaults for the village map (initial view, fit behaviour, base style).
    """

    defaultView: MapDefaultView = Field(default_factory=MapDefaultView)
    maxZoom: float = Field(default=18.0, ge=0.0, le=24.0)
    fitPaddingPx: int = Field(default=20, ge=0)
    viewport: PixelViewport = Field(default_factory=PixelViewport)
    mapStyle: str = "open-street-map"


def load_view_config(path: Path) -> MapViewConfig:
    if not path.exists():
        return MapViewConfig()
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid map view yaml root: {path}")
    return MapViewConfig.model_validate(data)


@lru_cache(maxsize=1)
def get_view_config() -> MapViewConfig:
    return load_view_config(view_config_path())
