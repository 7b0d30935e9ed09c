import re
import threading
import time
from urllib.parse import parse_qsl, urlsplit

import pytest

from analyticsmp.errors import ConfigurationError, TransportError
from analyticsmp.utils.analytics import (
    AnalyticsTracker,
    generate_analytics_tracking_url,
    get_analytics_client_id,
    get_tracker,
    send_analytics_event,
)
from analyticsmp.utils.client_id import ClientIdManager
from analyticsmp.utils.dispatch import UrlFetchDispatcher
from analyticsmp.utils.parameters import TrackingConfig
from analyticsmp.utils.property_store import DatabasePropertyStore
from analyticsmp.models import UserProperty
from conftest import TRACKING_ID, CountingStore, RecordingDispatcher

COLLECT_URL = "https://www.google-analytics.com/collect"


def _tracker(dispatcher=None, tracking_id=TRACKING_ID):
    return AnalyticsTracker(TrackingConfig(tracking_id=tracking_id), dispatcher=dispatcher)


def test_tracking_url_for_event(store):
    url = _tracker().build_tracking_url({"ec": "Installed", "ea": "en-US"}, store)
    query = urlsplit(url).query
    pairs = query.split("&")

    assert url.startswith(COLLECT_URL + "?")
    assert "&amp;" not in url
    assert f"tid={TRACKING_ID}" in pairs
    assert f"cid={store.get_property('clientId')}" in pairs
    assert "t=event" in pairs
    assert "el" in pairs
    assert "v=1" in pairs
    assert any(re.fullmatch(r"z=\d+", pair) for pair in pairs)
    assert "ec=Installed" in pairs
    assert "ea=en-US" in pairs
    assert not any(pair.split("=")[0] in ("aip", "ds") for pair in pairs)


def test_tracking_url_keeps_parameter_order(store):
    url = _tracker().build_tracking_url({"ec": "a", "ea": "b"}, store)
    keys = [key for key, _ in parse_qsl(urlsplit(url).query, keep_blank_values=True)]

    assert keys[:2] == ["ec", "ea"]


def test_tracking_url_percent_encodes_values(store):
    url = _tracker().build_tracking_url({"dp": "/a b?c=d&e", "dt": "Café"}, store)

    assert "dp=%2Fa%20b%3Fc%3Dd%26e" in url
    assert "dt=Caf%C3%A9" in url


def test_tracking_url_keeps_zero_values(store):
    url = _tracker().build_tracking_url({"ev": 0}, store)
    assert "ev=0" in urlsplit(url).query.split("&")


def test_booleans_and_nulls_serialize_the_same_in_both_modes(store):
    dispatcher = RecordingDispatcher()
    tracker = _tracker(dispatcher)

    pairs = urlsplit(tracker.build_tracking_url({"ni": True, "je": False, "cd1": None}, store)).query.split("&")
    sent = tracker.submit_event({"ni": True, "je": False, "cd1": None}, store)

    assert "ni=true" in pairs
    assert "je=false" in pairs
    assert "cd1" in pairs
    assert (sent["ni"], sent["je"], sent["cd1"]) == ("true", "false", "")
    assert dispatcher.calls[0][1] == sent


def test_tracking_url_does_no_http(store):
    dispatcher = RecordingDispatcher()
    _tracker(dispatcher).build_tracking_url({}, store)
    assert dispatcher.calls == []


def test_tracking_url_requires_tracking_id(store):
    with pytest.raises(ConfigurationError):
        _tracker(tracking_id=None).build_tracking_url({"ec": "x"}, store)
    assert store.sets == 0


def test_submit_event_posts_normalized_parameters(store):
    dispatcher = RecordingDispatcher()
    sent = _tracker(dispatcher).submit_event({"ec": "Installed", "ea": "en-US"}, store)

    assert len(dispatcher.calls) == 1
    url, data = dispatcher.calls[0]
    assert url == COLLECT_URL
    assert data == sent
    assert data["aip"] == "1"
    assert data["ds"] == "urlFetch"
    assert data["ec"] == "Installed"


def test_submit_event_without_backoff_makes_one_attempt_on_error(store, monkeypatch):
    calls = []

    def failing_post(self, url, data):
        calls.append(url)
        raise TransportError("Collect request failed: HTTP 503", status=503)

    monkeypatch.setattr(UrlFetchDispatcher, "post", failing_post)

    with pytest.raises(TransportError):
        _tracker().submit_event({}, store)
    assert len(calls) == 1


def test_submit_event_missing_tracking_id_sends_nothing():
    dispatcher = RecordingDispatcher()
    store = CountingStore()

    with pytest.raises(ConfigurationError):
        _tracker(dispatcher, tracking_id=None).submit_event({}, store)
    assert dispatcher.calls == []
    assert store.gets == 0


def test_tracker_shares_client_id_between_modes(store):
    tracker = _tracker(RecordingDispatcher())
    sent = tracker.submit_event({}, store)
    url = tracker.build_tracking_url({}, store)

    assert f"cid={sent['cid']}" in urlsplit(url).query.split("&")
    assert tracker.get_client_id() == sent["cid"]


def test_injected_client_id_manager(store):
    manager = ClientIdManager()
    tracker = AnalyticsTracker(TrackingConfig(tracking_id=TRACKING_ID), client_ids=manager)

    assert tracker.get_client_id(store) == manager.get_client_id()


def test_app_helpers_use_default_scope(app, dispatcher):
    with app.app_context():
        sent = send_analytics_event({"ec": "Installed"})
        url = generate_analytics_tracking_url({"t": "pageview", "dp": "/welcome"})
        client_id = get_analytics_client_id()

        stored = UserProperty.query.filter_by(scope="script", key="clientId").one()

    assert sent["cid"] == client_id == stored.value
    assert f"cid={client_id}" in url
    assert dispatcher.calls[0][1]["ec"] == "Installed"


def test_app_helpers_share_client_id_manager_across_contexts(app):
    with app.app_context():
        assert get_tracker() is get_tracker()
        first = get_tracker()

    with app.app_context():
        second = get_tracker()
        other_scope = get_tracker("user:9")

    assert second is not first
    assert second.client_ids is first.client_ids
    assert other_scope.client_ids is not first.client_ids


def test_concurrent_first_calls_in_separate_contexts_agree(app, monkeypatch):
    original_get = DatabasePropertyStore.get_property

    def slow_get(self, key):
        value = original_get(self, key)
        time.sleep(0.2)
        return value

    monkeypatch.setattr(DatabasePropertyStore, "get_property", slow_get)
    results = []
    start = threading.Barrier(2)

    def first_call():
        start.wait()
        with app.app_context():
            results.append(get_analytics_client_id())

    threads = [threading.Thread(target=first_call) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(results) == 2
    assert len(set(results)) == 1
    with app.app_context():
        assert UserProperty.query.filter_by(scope="script").count() == 1


def test_app_helpers_accept_explicit_store(app, store):
    with app.app_context():
        client_id = get_analytics_client_id(store)
        assert UserProperty.query.count() == 0

    assert store.get_property("clientId") == client_id
