from pydantic import BaseModel, Field
from typing import Optional, List


class Coordinate(BaseModel):
    lon: float = Field(..., ge=-180, le=180, description="Longitude")
    lat: float = Field(..., ge=-90, le=90, description="Latitude")


class RouteRequest(BaseModel):
    start: Coordinate
    end: Coordinate

    class Config:
        json_schema_extra = {
            "example": {
                "start": {"lon": -122.2585, "lat": 37.8702},
                "end": {"lon": -122.2468, "lat": 37.8584}
            }
        }


class RouteResponse(BaseModel):
    found: bool
    route: List[int]
    cost: Optional[float] = Field(None, description="Total planar edge weight; null when no route exists")
    explored: int = Field(0, ge=0, description="Nodes expanded by the search")


class CurrentRouteResponse(BaseModel):
    route: List[int]
    points: List[Coordinate]
