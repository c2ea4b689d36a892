"""Job queue adapter for translation fill jobs."""
import logging

from kombu.exceptions import OperationalError

from transfill.services.exceptions import StoreUnavailable

logger = logging.getLogger(__name__)


class CeleryQueue:
    """Enqueue {key, text, lang} payloads onto a Celery task.

    Delivery is at-least-once (acks_late); consumption is the Celery worker.
    """

    def __init__(self, task):
        self.task = task

    def enqueue(self, payload: dict):
        try:
            self.task.apply_async(kwargs=payload)
        except OperationalError as e:
            raise StoreUnavailable(f"Broker unavailable: {e}") from e
