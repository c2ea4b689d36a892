"""Test suite for the Celery fill task and queue adapter."""
import pytest
from unittest.mock import MagicMock
from kombu.exceptions import OperationalError

from transfill.models import Translation
from transfill.services.exceptions import StoreUnavailable
from transfill.services.queue import CeleryQueue
from transfill.tasks import fill_translation


class TestCeleryQueue:

    def test_enqueue_sends_kwargs(self):
        task = MagicMock()
        CeleryQueue(task).enqueue({'key': 'greeting.hello', 'text': 'Hello', 'lang': 'bn'})

        task.apply_async.assert_called_once_with(
            kwargs={'key': 'greeting.hello', 'text': 'Hello', 'lang': 'bn'}
        )

    def test_broker_errors_become_store_unavailable(self):
        task = MagicMock()
        task.apply_async.side_effect = OperationalError('broker down')

        with pytest.raises(StoreUnavailable):
            CeleryQueue(task).enqueue({'key': 'k', 'text': 't', 'lang': 'bn'})


class TestFillTranslationTask:
    """The task runs the app's filler inside an app context."""

    def test_task_fills_translation(self, service, db_session):
        result = fill_translation.apply(kwargs={'key': 'greeting.hello', 'text': 'Hello', 'lang': 'bn'})

        assert result.successful()
        record = Translation.query.filter_by(key='greeting.hello', lang='bn').one()
        assert record.value == 'হ্যালো'

    def test_task_is_idempotent(self, service, provider, db_session):
        payload = {'key': 'greeting.hello', 'text': 'Hello', 'lang': 'bn'}
        fill_translation.apply(kwargs=payload)
        fill_translation.apply(kwargs=payload)

        assert Translation.query.filter_by(key='greeting.hello', lang='bn').count() == 1
        assert len(provider.calls) == 1

    def test_task_retries_on_store_unavailable(self, service):
        service.filler.store = MagicMock()
        service.filler.store.find_one.side_effect = StoreUnavailable('db down')

        assert fill_translation.retry_kwargs == {'max_retries': 3}
        assert StoreUnavailable in fill_translation.autoretry_for

        result = fill_translation.apply(kwargs={'key': 'greeting.hello', 'text': 'Hello', 'lang': 'bn'})
        assert not result.successful()

    def test_task_options(self):
        assert fill_translation.acks_late is True
