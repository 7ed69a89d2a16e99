# models/base.py
from datetime import datetime

from admissions.extensions import db


class BaseModel(db.Model):
    """Base model class with common functionality."""

    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    created_at = db.Column(db.DateTime, default=datetime.now, nullable=False, index=True)

    def to_dict(self, exclude=None):
        """Convert model instance to a JSON-friendly dictionary keyed by column name."""
        exclude = set(exclude or ())
        result = {}

        # Attribute keys can differ from column names (e.g. activity_logs.metadata)
        for attr in self.__mapper__.column_attrs:
            column_name = attr.columns[0].name
            if column_name in exclude:
                continue
            value = getattr(self, attr.key)
            if isinstance(value, datetime):
                result[column_name] = value.isoformat()
            else:
                result[column_name] = value

        return result
