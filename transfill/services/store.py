"""Durable key/value store over the translations table."""
import logging
from datetime import datetime

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from transfill.models import Translation
from transfill.services.exceptions import DuplicateRecord, StoreUnavailable

logger = logging.getLogger(__name__)

# Dialects with INSERT ... ON CONFLICT DO NOTHING
_UPSERT_INSERTS = {
    'sqlite': sqlite_insert,
    'postgresql': pg_insert,
}


class TranslationStore:
    """Reads and conditionally inserts Translation rows.

    The unique constraint on (key, lang) is the only serialization point
    between concurrent fillers, so inserts never rely on a prior existence
    check.
    """

    def __init__(self, session):
        self.session = session

    def find_one(self, key: str, lang: str):
        """Return the Translation for (key, lang) or None."""
        try:
            return self.session.query(Translation).filter_by(key=key, lang=lang).first()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreUnavailable(f"Translation lookup failed for ({key}, {lang}): {e}") from e

    def insert(self, key: str, lang: str, value: str):
        """Insert a new Translation. Raises DuplicateRecord if (key, lang) exists."""
        record = Translation(key=key, lang=lang, value=value)
        try:
            self.session.add(record)
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise DuplicateRecord(f"Translation ({key}, {lang}) already exists") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreUnavailable(f"Translation insert failed for ({key}, {lang}): {e}") from e
        return record

    def insert_if_absent(self, key: str, lang: str, value: str) -> bool:
        """Insert (key, lang, value) unless a row already exists.

        Returns True if this call created the row, False on conflict.
        """
        dialect = self.session.get_bind().dialect.name
        insert = _UPSERT_INSERTS.get(dialect)

        if insert is None:
            try:
                self.insert(key, lang, value)
            except DuplicateRecord:
                logger.debug(f"Translation ({key}, {lang}) inserted concurrently")
                return False
            return True

        now = datetime.utcnow()
        stmt = insert(Translation.__table__).values(
            key=key,
            lang=lang,
            value=value,
            created_at=now,
            updated_at=now,
        ).on_conflict_do_nothing(index_elements=['key', 'lang'])

        try:
            result = self.session.execute(stmt)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreUnavailable(f"Translation insert failed for ({key}, {lang}): {e}") from e

        if result.rowcount == 0:
            logger.debug(f"Translation ({key}, {lang}) inserted concurrently")
            return False
        return True
