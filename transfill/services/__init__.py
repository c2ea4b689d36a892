"""Translation service wiring.

One TranslationService is built per process in create_app() and stored in
app.extensions['transfill']. Routes and Celery tasks look it up there
instead of reaching for module-level clients.
"""
from dataclasses import dataclass

from flask import current_app

from transfill.services.filler import TranslationFiller
from transfill.services.resolver import TranslationResolver


@dataclass
class TranslationService:
    resolver: TranslationResolver
    filler: TranslationFiller


def build_translation_service(app) -> TranslationService:
    """Create the resolver/filler pair and their collaborators from app config."""
    from transfill import db
    from transfill.services.cache import build_cache
    from transfill.services.providers import build_provider
    from transfill.services.queue import CeleryQueue
    from transfill.services.store import TranslationStore
    from transfill.tasks import fill_translation

    config = app.config
    cache = build_cache(config)
    store = TranslationStore(db.session)

    resolver = TranslationResolver(
        cache=cache,
        store=store,
        queue=CeleryQueue(fill_translation),
        master_language=config['MASTER_LANGUAGE'],
        cache_ttl=config['TRANSLATION_CACHE_TTL'],
        dispatch_ttl=config['TRANSLATION_DISPATCH_TTL'],
    )
    filler = TranslationFiller(
        store=store,
        provider=build_provider(config),
        cache=cache,
        cache_ttl=config['TRANSLATION_CACHE_TTL'],
        dispatch_ttl=config['TRANSLATION_DISPATCH_TTL'],
        backoff_max=config['TRANSLATION_BACKOFF_MAX'],
    )
    return TranslationService(resolver=resolver, filler=filler)


def get_translation_service() -> TranslationService:
    return current_app.extensions['transfill']
