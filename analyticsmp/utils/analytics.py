"""
Calls to the Google Analytics Measurement Protocol (v1).

https://developers.google.com/analytics/devguides/collection/protocol/v1/

Hits are either POSTed to the collect endpoint from the server
(``send_analytics_event``) or rendered as a GET URL that can be embedded as a
tracking beacon, e.g. in emails (``generate_analytics_tracking_url``).
"""
import threading
from typing import Any, Mapping
from urllib.parse import quote

from flask import current_app, g

from .client_id import ClientIdManager
from .dispatch import Dispatcher, UrlFetchDispatcher, build_dispatcher
from .parameters import ParameterNormalizer, TrackingConfig, wire_params
from .property_store import DatabasePropertyStore, PropertyStore, current_scope

EXTENSION_KEY = "analyticsmp"


class AnalyticsTracker:
    def __init__(
        self,
        config: TrackingConfig,
        dispatcher: Dispatcher | None = None,
        client_ids: ClientIdManager | None = None,
    ):
        self.config = config
        self.dispatcher = dispatcher or UrlFetchDispatcher()
        self.client_ids = client_ids or ClientIdManager()
        self.normalizer = ParameterNormalizer(config, self.client_ids)

    def get_client_id(self, store: PropertyStore | None = None) -> str:
        return self.client_ids.get_client_id(store)

    def submit_event(self, parameters: Mapping[str, Any] | None, store: PropertyStore | None = None) -> dict:
        """POST one hit. Returns the parameters actually sent."""
        params = wire_params(self.normalizer.normalize(parameters, store, via_http_post=True))
        self.dispatcher.post(self.config.endpoint, params)
        return params

    def build_tracking_url(self, parameters: Mapping[str, Any] | None, store: PropertyStore | None = None) -> str:
        """
        Build a GET collect URL for the hit, e.g. for an email beacon:
        https://developers.google.com/analytics/devguides/collection/protocol/v1/email
        """
        params = wire_params(self.normalizer.normalize(parameters, store))

        url_params = []
        for key, value in params.items():
            if value == "":
                url_params.append(key)
            else:
                url_params.append(f"{key}={quote(value, safe='')}")

        return f"{self.config.endpoint}?" + "&".join(url_params)


def init_app(app, dispatcher: Dispatcher | None = None):
    app.extensions[EXTENSION_KEY] = {
        "dispatcher": dispatcher or build_dispatcher(app.config),
        # scope -> ClientIdManager, shared by every request of this process
        "client_ids": {},
        "client_ids_lock": threading.Lock(),
    }


def client_id_manager(scope: str) -> ClientIdManager:
    """The process-wide manager for one property scope."""
    ext = current_app.extensions[EXTENSION_KEY]
    with ext["client_ids_lock"]:
        manager = ext["client_ids"].get(scope)
        if manager is None:
            manager = ClientIdManager(store_factory=lambda: DatabasePropertyStore(scope))
            ext["client_ids"][scope] = manager
        return manager


def make_tracker(client_ids: ClientIdManager | None = None) -> AnalyticsTracker:
    ext = current_app.extensions[EXTENSION_KEY]
    return AnalyticsTracker(
        TrackingConfig.from_mapping(current_app.config),
        dispatcher=ext["dispatcher"],
        client_ids=client_ids,
    )


def get_tracker(scope: str | None = None) -> AnalyticsTracker:
    scope = scope or current_scope()
    trackers = g.setdefault("analytics_trackers", {})
    if scope not in trackers:
        trackers[scope] = make_tracker(client_id_manager(scope))
    return trackers[scope]


def _tracker_for(store: PropertyStore | None) -> AnalyticsTracker:
    if store is None:
        return get_tracker()
    if isinstance(store, DatabasePropertyStore):
        return get_tracker(store.scope)
    # Caller-owned store outside the database: no process-wide cache for it.
    return make_tracker()


def send_analytics_event(parameters: Mapping[str, Any] | None = None, store: PropertyStore | None = None) -> dict:
    return _tracker_for(store).submit_event(parameters, store)


def generate_analytics_tracking_url(parameters: Mapping[str, Any] | None = None, store: PropertyStore | None = None) -> str:
    return _tracker_for(store).build_tracking_url(parameters, store)


def get_analytics_client_id(store: PropertyStore | None = None) -> str:
    return _tracker_for(store).get_client_id(store)
