"""Durable translation records keyed by (key, lang)."""
from datetime import datetime
from transfill import db


class Translation(db.Model):
    """One translated value per translation key and target language."""
    __tablename__ = 'translations'

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(255), nullable=False)  # e.g. 'product.title.5'
    lang = db.Column(db.String(10), nullable=False, index=True)
    value = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint('key', 'lang', name='uq_translations_key_lang'),
    )

    def __repr__(self):
        return f'<Translation {self.key} [{self.lang}]>'

    def to_dict(self):
        return {
            'key': self.key,
            'lang': self.lang,
            'value': self.value,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
