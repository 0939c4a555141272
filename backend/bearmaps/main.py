from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
import base64
import logging

from bearmaps.config import MapServerConfig
from bearmaps.models.route import (
    RouteRequest, RouteResponse, CurrentRouteResponse, Coordinate
)
from bearmaps.models.raster import RasterRequest, RasterResponse
from bearmaps.services.map_service import MapService

settings = MapServerConfig.from_env()

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)

app = FastAPI(
    title="BearMaps API",
    description="Shortest routes and map tile rasters",
    version="1.0.0"
)

# Not an authenticated server, so any origin may call it
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Shared service; a malformed graph file stops the server from starting
logger.info("Loading map service...")
map_service = MapService.from_config(settings)
logger.info("Map service ready")


@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "bearmaps-api", **map_service.stats()}


@app.post("/api/route", response_model=RouteResponse)
def find_route(request: RouteRequest):
    """Compute the shortest route and make it the current route"""
    try:
        result = map_service.find_and_set_route(
            request.start.lon, request.start.lat,
            request.end.lon, request.end.lat
        )
    except Exception as e:
        logger.error(f"Error computing route: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Routing error: {str(e)}")

    return RouteResponse(
        found=result.found,
        route=result.node_ids,
        cost=result.cost if result.found else None,
        explored=result.expanded
    )


@app.get("/api/route", response_model=CurrentRouteResponse)
async def get_current_route():
    """Get the current route"""
    route = map_service.current_route
    points = [Coordinate(lon=lon, lat=lat) for lon, lat in map_service.route_points()]
    return CurrentRouteResponse(route=route, points=points)


@app.delete("/api/route")
async def clear_route():
    """Clear the current route"""
    map_service.clear_route()
    return True


@app.post("/api/raster", response_model=RasterResponse)
def get_raster(request: RasterRequest):
    """Select the tiles for a viewport and optionally compose them into a PNG"""
    try:
        if request.render:
            result, image = map_service.render_raster(
                request.ullon, request.ullat, request.lrlon, request.lrlat, request.w, request.h
            )
        else:
            result = map_service.raster(
                request.ullon, request.ullat, request.lrlon, request.lrlat, request.w, request.h
            )
            image = None
    except Exception as e:
        logger.error(f"Error rastering query: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Raster error: {str(e)}")

    response = RasterResponse(**result.to_dict())
    if image is not None:
        response.b64_encoded_image_data = base64.b64encode(image).decode("ascii")
    return response


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=4567)
