"""Background fill: translate a cold (key, lang) and persist it once."""
import logging

from transfill.services.cache import dispatch_key, failure_key, value_key
from transfill.services.exceptions import (
    ProviderError,
    ProviderRateLimited,
    ProviderTooLarge,
    StoreUnavailable,
)

logger = logging.getLogger(__name__)


class TranslationFiller:
    """Runs queued fill jobs. Safe to run any number of times per job.

    Provider failures are logged and absorbed; the next cold read re-queues
    the job once the backoff window has passed. Only StoreUnavailable from
    the translations table propagates so the queue can retry.
    """

    def __init__(self, store, provider, cache=None, cache_ttl=86400, dispatch_ttl=60, backoff_max=3600):
        self.store = store
        self.provider = provider
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.dispatch_ttl = dispatch_ttl
        self.backoff_max = backoff_max

    def fill(self, key: str, text: str, lang: str) -> None:
        existing = self.store.find_one(key, lang)
        if existing is not None:
            logger.debug(f"Translation ({key}, {lang}) already stored, skipping")
            self._warm_cache(key, lang, existing.value)
            return

        if self.provider is None:
            logger.warning(f"Translation disabled, not filling ({key}, {lang})")
            return

        try:
            translated = self.provider.translate(text, lang)
        except ProviderTooLarge as e:
            logger.warning(f"Text too large to translate ({key}, {lang}): {e}")
            self._back_off(key, lang, permanent=True)
            return
        except ProviderRateLimited as e:
            logger.warning(f"Rate limited translating ({key}, {lang}): {e}")
            self._back_off(key, lang)
            return
        except ProviderError as e:
            logger.error(f"Translation failed for ({key}, {lang}): {e}")
            self._back_off(key, lang)
            return

        if self.store.insert_if_absent(key, lang, translated):
            logger.info(f"Stored translation ({key}, {lang})")
        else:
            # Lost the race to another filler; serve the stored winner
            winner = self.store.find_one(key, lang)
            if winner is not None:
                translated = winner.value

        self._warm_cache(key, lang, translated)
        self._reset_failures(key, lang)

    def _warm_cache(self, key, lang, value):
        if self.cache is None:
            return
        try:
            self.cache.put(value_key(key, lang), value, self.cache_ttl)
        except StoreUnavailable as e:
            logger.warning(f"Cache warm failed for ({key}, {lang}): {e}")

    def backoff_seconds(self, failures: int) -> int:
        """Dispatch window after `failures` consecutive failed fills."""
        return min(self.dispatch_ttl * 2 ** failures, self.backoff_max)

    def _back_off(self, key, lang, permanent=False):
        """Hold the dispatch marker so cold reads don't re-queue immediately."""
        if self.cache is None:
            return
        try:
            if permanent:
                window = self.backoff_max
            else:
                failures = self.cache.incr(failure_key(key, lang), self.backoff_max)
                window = self.backoff_seconds(failures)
            self.cache.put(dispatch_key(key, lang), '1', window)
            logger.info(f"Backing off fills for ({key}, {lang}) for {window}s")
        except StoreUnavailable as e:
            logger.warning(f"Could not record backoff for ({key}, {lang}): {e}")

    def _reset_failures(self, key, lang):
        if self.cache is None:
            return
        try:
            self.cache.delete(failure_key(key, lang))
        except StoreUnavailable as e:
            logger.warning(f"Could not reset failure count for ({key}, {lang}): {e}")
