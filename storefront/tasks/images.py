# storefront/tasks/images.py
from storefront.celery_worker import celery_app
from storefront.domain.errors import ServiceUnavailableError
from storefront.services.image_storage import ImageStorage
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="storefront.tasks.images.delete_image_task")
def delete_image_task(public_id: str) -> dict:
    """
    Delete an image that no catalog item points to anymore.
    Best effort: a failure is logged, the item change was already committed.
    """
    logger.info(f"Delete image task started for {public_id}")

    try:
        ImageStorage().delete(public_id)
    except ServiceUnavailableError as e:
        logger.warning(f"Failed to delete image {public_id}: {e}")
        return {"public_id": public_id, "status": "failed"}

    return {"public_id": public_id, "status": "deleted"}


def schedule_image_delete(public_id: str):
    delete_image_task.delay(public_id)
