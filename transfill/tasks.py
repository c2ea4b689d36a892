# transfill/tasks.py

import logging

from celery import shared_task

from transfill.services.exceptions import StoreUnavailable

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    acks_late=True,
    autoretry_for=(StoreUnavailable,),
    retry_backoff=30,
    retry_kwargs={"max_retries": 3},
)
def fill_translation(self, key: str, text: str, lang: str) -> None:
    """
    Translate and persist one (key, lang) pair.
    Provider errors are absorbed by the filler; only an unreachable
    translations table fails the job so Celery can retry it.
    """
    from transfill.services import get_translation_service

    logger.debug(f"fill_translation ({key}, {lang}) attempt {self.request.retries + 1}")
    get_translation_service().filler.fill(key, text, lang)
