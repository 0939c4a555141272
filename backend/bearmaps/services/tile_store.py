"""
Tile image lookup on disk
"""
import logging
import os

logger = logging.getLogger(__name__)

ROOT_IMAGE_NAME = "root.png"


class TileImageNotFoundError(FileNotFoundError):
    """Raised when no image file exists for a tile id"""


class TileImageStore:
    """
    Maps tile image ids to PNG bytes under `img_root`.
    The root tile (id 0) is stored as root.png, every other tile as <id>.png.
    """

    def __init__(self, img_root: str = "img"):
        self.img_root = os.path.abspath(img_root)
        logger.info(f"[TILE STORE] Image directory: {self.img_root}")

    def path_for(self, image_id: int) -> str:
        name = ROOT_IMAGE_NAME if image_id == 0 else f"{image_id}.png"
        return os.path.join(self.img_root, name)

    def exists(self, image_id: int) -> bool:
        return os.path.isfile(self.path_for(image_id))

    def get(self, image_id: int) -> bytes:
        path = self.path_for(image_id)
        try:
            with open(path, "rb") as f:
                return f.read()
        except FileNotFoundError:
            raise TileImageNotFoundError(f"No image for tile {image_id} at {path}") from None
