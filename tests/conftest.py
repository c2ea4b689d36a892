"""
Pytest configuration and fixtures for testing the translation service.
"""

import os
import sys
import threading
import pytest
from faker import Faker

# Add the parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from transfill import create_app, db
from transfill.services import TranslationService
from transfill.services.cache import MemoryCache
from transfill.services.filler import TranslationFiller
from transfill.services.resolver import TranslationResolver
from transfill.services.store import TranslationStore

fake = Faker()


class FakeProvider:
    """Translation provider double that records calls."""

    def __init__(self, translations=None, error=None):
        self.translations = translations or {}
        self.error = error
        self.calls = []
        self._lock = threading.Lock()

    def translate(self, text, target_lang):
        with self._lock:
            self.calls.append((text, target_lang))
        if self.error is not None:
            raise self.error
        return self.translations.get((text, target_lang), f'[{target_lang}] {text}')


class RecordingQueue:
    """Queue double that keeps enqueued payloads."""

    def __init__(self):
        self.jobs = []

    def enqueue(self, payload):
        self.jobs.append(payload)

    def drain(self, filler):
        """Deliver every queued job to the filler, like a worker would."""
        jobs, self.jobs = self.jobs, []
        for job in jobs:
            filler.fill(**job)
        return len(jobs)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    os.environ['FLASK_ENV'] = 'testing'

    app = create_app('testing')

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client for each test function."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create a fresh database session for each test."""
    with app.app_context():
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        yield db.session
        db.session.rollback()


@pytest.fixture
def cache():
    return MemoryCache()


@pytest.fixture
def store(db_session):
    return TranslationStore(db_session)


@pytest.fixture
def queue():
    return RecordingQueue()


@pytest.fixture
def provider():
    return FakeProvider(translations={('Hello', 'bn'): 'হ্যালো'})


@pytest.fixture
def resolver(cache, store, queue):
    return TranslationResolver(cache=cache, store=store, queue=queue)


@pytest.fixture
def filler(cache, store, provider):
    return TranslationFiller(store=store, provider=provider, cache=cache)


@pytest.fixture
def service(app, resolver, filler):
    """Install test collaborators as the app's translation service."""
    original = app.extensions['transfill']
    app.extensions['transfill'] = TranslationService(resolver=resolver, filler=filler)
    yield app.extensions['transfill']
    app.extensions['transfill'] = original


@pytest.fixture
def translation_key():
    return f"product.{fake.random_int(min=1, max=99999)}.title"


@pytest.fixture
def make_provider():
    """Factory for provider doubles with custom behaviour."""
    return FakeProvider
