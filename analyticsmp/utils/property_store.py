from typing import Protocol

from flask import current_app, has_request_context, session

from .. import db
from ..models import UserProperty


class PropertyStore(Protocol):
    def get_property(self, key: str) -> str | None: ...

    def set_property(self, key: str, value: str) -> None: ...


class DatabasePropertyStore:
    """Durable properties for one scope, kept in the ``user_property`` table.

    Requires an application context. Database errors are not caught here.
    """

    def __init__(self, scope: str):
        self.scope = scope

    def get_property(self, key: str) -> str | None:
        prop = UserProperty.query.filter_by(scope=self.scope, key=key).first()
        return prop.value if prop else None

    def set_property(self, key: str, value: str) -> None:
        prop = UserProperty.query.filter_by(scope=self.scope, key=key).first()
        if prop:
            prop.value = value
        else:
            db.session.add(UserProperty(scope=self.scope, key=key, value=value))

        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

    def __repr__(self):
        return f"<DatabasePropertyStore {self.scope}>"


class MemoryPropertyStore:
    """Process-local properties, for scripts and tests."""

    def __init__(self, initial: dict | None = None):
        self._values = dict(initial or {})

    def get_property(self, key: str) -> str | None:
        return self._values.get(key)

    def set_property(self, key: str, value: str) -> None:
        self._values[key] = value


def current_scope() -> str:
    user = session.get("user") if has_request_context() else None
    if user and user.get("id"):
        return f"user:{user['id']}"
    return current_app.config.get("ANALYTICS_DEFAULT_SCOPE") or "script"


def default_property_store() -> DatabasePropertyStore:
    return DatabasePropertyStore(current_scope())
