"""Process-wide image service used by the Lambda handlers."""

from functools import lru_cache

from core.config import ServiceSettings
from core.services.image_service import ImageService


@lru_cache(maxsize=1)
def get_image_service() -> ImageService:
    """Build the image service once per execution environment (cold start)."""
    return ImageService.from_settings(ServiceSettings.from_env())
