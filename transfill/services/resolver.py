"""Request-path translation lookup.

FAST PATHS (no provider call, ever):
- Master language or blank text: source text returned as-is
- Cached translation
- Durable translation (cache is re-populated)

COLD PATH:
- A fill job is queued (at most once per dispatch window) and the source
  text is returned so the request never waits on the provider.
"""
import logging

from transfill.services.cache import dispatch_key, value_key
from transfill.services.exceptions import StoreUnavailable
from transfill.services.language import normalize_language

logger = logging.getLogger(__name__)


class TranslationResolver:
    """Answers "what is the value for (key, lang)?" from cache and table."""

    def __init__(self, cache, store, queue, master_language='en', cache_ttl=86400, dispatch_ttl=60):
        self.cache = cache
        self.store = store
        self.queue = queue
        self.master_language = master_language
        self.cache_ttl = cache_ttl
        self.dispatch_ttl = dispatch_ttl

    def resolve(self, key: str, text: str, lang: str) -> str:
        """Return the translated value, or `text` until one is available.

        Args:
            key: Stable translation key (e.g. 'product.title.5')
            text: Source text in the master language
            lang: Target language code

        Returns:
            Cached or stored translation, else the untranslated text
        """
        lang = normalize_language(lang) or self.master_language
        if lang == self.master_language or not text or not text.strip():
            return text

        cache_key = value_key(key, lang)
        try:
            cached = self.cache.get(cache_key)
        except StoreUnavailable as e:
            logger.warning(f"Cache read failed for ({key}, {lang}), falling through: {e}")
            cached = None
        if cached is not None:
            return cached

        try:
            record = self.store.find_one(key, lang)
        except StoreUnavailable as e:
            logger.warning(f"Translation table read failed for ({key}, {lang}): {e}")
            record = None

        if record is not None:
            try:
                self.cache.put(cache_key, record.value, self.cache_ttl)
            except StoreUnavailable as e:
                logger.warning(f"Cache write failed for ({key}, {lang}): {e}")
            return record.value

        self._dispatch(key, text, lang)
        return text

    def _dispatch(self, key, text, lang):
        """Queue a fill job unless one was queued within the dispatch window."""
        try:
            if not self.cache.add(dispatch_key(key, lang), '1', self.dispatch_ttl):
                logger.debug(f"Fill for ({key}, {lang}) already dispatched")
                return
        except StoreUnavailable as e:
            # Without the marker a duplicate job is possible, but harmless
            logger.warning(f"Dispatch marker unavailable for ({key}, {lang}): {e}")

        try:
            self.queue.enqueue({'key': key, 'text': text, 'lang': lang})
            logger.info(f"Queued translation fill for ({key}, {lang})")
        except StoreUnavailable as e:
            logger.error(f"Could not queue translation fill for ({key}, {lang}): {e}")
            # Release the marker so the next cold read can queue again
            try:
                self.cache.delete(dispatch_key(key, lang))
            except StoreUnavailable as delete_error:
                logger.warning(f"Could not release dispatch marker for ({key}, {lang}): {delete_error}")

    def resolve_many(self, items: dict, lang: str) -> dict:
        """Resolve a {key: text} mapping for one language."""
        return {key: self.resolve(key, text, lang) for key, text in items.items()}

    def translate_fields(self, record: dict, prefix: str, fields, lang: str) -> dict:
        """Translate selected fields of a serialized object in place.

        Each field is looked up under '{prefix}.{field}', e.g. the title of
        product 5 under 'product.5.title'.
        """
        if not lang:
            return record

        for field in fields:
            text = record.get(field)
            if text:
                record[field] = self.resolve(f"{prefix}.{field}", text, lang)

        return record
