# storefront/services/image_storage.py
import io

import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

from storefront.domain.errors import ServiceUnavailableError
from storefront.utils.logging import get_logger
from storefront.utils.settings import (
    CLOUDINARY_CLOUD_NAME,
    CLOUDINARY_API_KEY,
    CLOUDINARY_API_SECRET,
    IMAGE_STORAGE_TIMEOUT_SECONDS,
)

logger = get_logger(__name__)

ALLOWED_CONTENT_TYPES = ("image/jpeg", "image/png", "image/webp")
FOLDER = "items"


class ImageStorage:
    """
    Item images on Cloudinary.

    upload(bytes) -> {"url", "public_id"}
    delete(public_id)

    Any SDK failure (network, timeout, rejected request) surfaces as
    ServiceUnavailableError. Nothing is retried here, the SDK's HTTP pool
    already retries failed connections.
    """

    def __init__(
        self,
        cloud_name: str | None = None,
        api_key: str | None = None,
        api_secret: str | None = None,
        timeout: int | None = None,
    ):
        self.cloud_name = cloud_name or CLOUDINARY_CLOUD_NAME
        self.api_key = api_key if api_key is not None else CLOUDINARY_API_KEY
        self.api_secret = api_secret if api_secret is not None else CLOUDINARY_API_SECRET
        self.timeout = timeout or IMAGE_STORAGE_TIMEOUT_SECONDS

    def _options(self) -> dict:
        # per call credentials, the global cloudinary.config() is left alone
        return {
            "cloud_name": self.cloud_name,
            "api_key": self.api_key,
            "api_secret": self.api_secret,
            "timeout": self.timeout,
        }

    def upload(self, data: bytes, filename: str, content_type: str) -> dict:
        logger.info(f"Uploading {filename} ({content_type}, {len(data)} bytes)")
        try:
            result = cloudinary.uploader.upload(
                io.BytesIO(data),
                folder=FOLDER,
                filename=filename,
                resource_type="image",
                **self._options(),
            )
        except CloudinaryError as e:
            logger.error(f"Image upload failed: {e}")
            raise ServiceUnavailableError("Image storage unavailable") from e

        logger.info(f"Uploaded image {result['public_id']}")
        return {"url": result["secure_url"], "public_id": result["public_id"]}

    def delete(self, public_id: str):
        try:
            result = cloudinary.uploader.destroy(public_id, resource_type="image", **self._options())
        except CloudinaryError as e:
            logger.error(f"Image delete failed for {public_id}: {e}")
            raise ServiceUnavailableError("Image storage unavailable") from e

        if result.get("result") != "ok":
            # "not found" means there is nothing left to delete
            logger.warning(f"Image {public_id} delete returned {result.get('result')}")
            return
        logger.info(f"Deleted image {public_id}")
