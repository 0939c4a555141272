from pydantic import BaseModel, Field
from typing import Optional, List


class RasterRequest(BaseModel):
    """Query box corners and the viewport size in pixels"""
    ullon: float = Field(..., description="Upper left longitude")
    ullat: float = Field(..., description="Upper left latitude")
    lrlon: float = Field(..., description="Lower right longitude")
    lrlat: float = Field(..., description="Lower right latitude")
    w: float = Field(..., description="Viewport width in pixels")
    h: float = Field(..., description="Viewport height in pixels")
    render: bool = Field(True, description="Include the composed PNG as base64")

    class Config:
        json_schema_extra = {
            "example": {
                "ullon": -122.2998046875,
                "ullat": 37.892195547244356,
                "lrlon": -122.2119140625,
                "lrlat": 37.82280243352756,
                "w": 1024,
                "h": 768
            }
        }


class RasterResponse(BaseModel):
    render_grid: List[int]
    raster_ul_lon: Optional[float] = None
    raster_ul_lat: Optional[float] = None
    raster_lr_lon: Optional[float] = None
    raster_lr_lat: Optional[float] = None
    raster_width: int = 0
    raster_height: int = 0
    depth: int = 0
    rows: int = 0
    cols: int = 0
    query_success: bool = False
    message: Optional[str] = None
    b64_encoded_image_data: Optional[str] = None
