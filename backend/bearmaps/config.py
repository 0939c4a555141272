"""
Map server configuration.
Defaults describe the Berkeley tile pyramid; every field can be overridden
through BEARMAPS_* environment variables.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple


# Bounding box of the root tile, as the images in img/ were scraped.
# Longitude is the x-axis, latitude the y-axis.
ROOT_ULLAT = 37.892195547244356
ROOT_ULLON = -122.2998046875
ROOT_LRLAT = 37.82280243352756
ROOT_LRLON = -122.2119140625

TILE_SIZE = 256
MAX_DEPTH = 7

ROUTE_STROKE_WIDTH_PX = 5
ROUTE_STROKE_COLOR = (108, 181, 230, 200)  # cyan, half transparent


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    return float(value) if value not in (None, "") else default


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    return int(value) if value not in (None, "") else default


@dataclass
class MapServerConfig:
    """Configuration for the route and raster services"""

    root_ullon: float = ROOT_ULLON
    root_ullat: float = ROOT_ULLAT
    root_lrlon: float = ROOT_LRLON
    root_lrlat: float = ROOT_LRLAT

    tile_size: int = TILE_SIZE
    max_depth: int = MAX_DEPTH

    img_root: str = "img"
    graph_path: Optional[str] = None

    route_stroke_width: int = ROUTE_STROKE_WIDTH_PX
    route_stroke_color: Tuple[int, int, int, int] = ROUTE_STROKE_COLOR

    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @property
    def root_bounds(self) -> Tuple[float, float, float, float]:
        """(ullon, ullat, lrlon, lrlat) of the root tile"""
        return self.root_ullon, self.root_ullat, self.root_lrlon, self.root_lrlat

    @classmethod
    def from_env(cls) -> "MapServerConfig":
        """Build a config from BEARMAPS_* environment variables"""
        origins = os.environ.get("BEARMAPS_CORS_ORIGINS", "*")
        return cls(
            root_ullon=_env_float("BEARMAPS_ROOT_ULLON", ROOT_ULLON),
            root_ullat=_env_float("BEARMAPS_ROOT_ULLAT", ROOT_ULLAT),
            root_lrlon=_env_float("BEARMAPS_ROOT_LRLON", ROOT_LRLON),
            root_lrlat=_env_float("BEARMAPS_ROOT_LRLAT", ROOT_LRLAT),
            tile_size=_env_int("BEARMAPS_TILE_SIZE", TILE_SIZE),
            max_depth=_env_int("BEARMAPS_MAX_DEPTH", MAX_DEPTH),
            img_root=os.environ.get("BEARMAPS_IMG_ROOT", "img"),
            graph_path=os.environ.get("BEARMAPS_GRAPH_PATH") or None,
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            log_level=os.environ.get("BEARMAPS_LOG_LEVEL", "INFO"),
        )
