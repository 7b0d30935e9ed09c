# analyticsmp/models.py

from datetime import datetime
from sqlalchemy import UniqueConstraint
from . import db


# =====================================================
# USER PROPERTY (Durable per-scope key/value store)
# =====================================================
class UserProperty(db.Model):
    __tablename__ = "user_property"

    id = db.Column(db.Integer, primary_key=True)

    # "user:<id>" for signed-in users, the configured default scope otherwise
    scope = db.Column(db.String(120), nullable=False, index=True)

    key = db.Column(db.String(120), nullable=False)
    value = db.Column(db.String(500), nullable=False)

    created_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True
    )
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    __table_args__ = (
        UniqueConstraint("scope", "key", name="uq_user_property_scope_key"),
    )

    def __repr__(self):
        return f"<UserProperty {self.scope} {self.key}>"
