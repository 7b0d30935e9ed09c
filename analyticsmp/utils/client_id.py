import logging
import threading
import uuid
from typing import Callable

from .property_store import PropertyStore, default_property_store

logger = logging.getLogger(__name__)

CLIENT_ID_PROPERTY = "clientId"


class ClientIdManager:
    """
    Hands out one client ID per user for the life of the stored property.

    The client ID plays the role of the analytics cookie on a browser: it is
    generated once, saved under ``clientId`` in the property store and reused
    for every later hit. The first value read or created is cached on the
    instance, so a manager stands for exactly one user. Build one per user
    (or per request) when serving several users from one process.
    """

    def __init__(self, store_factory: Callable[[], PropertyStore] = default_property_store):
        self._store_factory = store_factory
        self._client_id: str | None = None
        self._lock = threading.Lock()

    def get_client_id(self, store: PropertyStore | None = None) -> str:
        if self._client_id:
            return self._client_id

        with self._lock:
            if self._client_id:
                return self._client_id

            store = store or self._store_factory()
            client_id = store.get_property(CLIENT_ID_PROPERTY)

            if client_id:
                self._client_id = client_id
                return client_id

            # Cached before the write: if persisting fails the error propagates,
            # but later calls in this process keep using the same ID.
            self._client_id = str(uuid.uuid4())
            store.set_property(CLIENT_ID_PROPERTY, self._client_id)
            logger.debug("Created analytics client ID %s in %r", self._client_id, store)
            return self._client_id

    def reset(self):
        with self._lock:
            self._client_id = None
