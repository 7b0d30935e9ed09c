import copy
import random
from dataclasses import dataclass
from typing import Any, Mapping

from ..config import COLLECT_URL
from ..errors import ConfigurationError
from .client_id import ClientIdManager
from .property_store import PropertyStore

TRACKING_ID_REQUIRED = "A valid Google Analytics tracking ID is required"
PROTOCOL_VERSION = "1"
CACHE_BUSTER_RANGE = 10 ** 8


@dataclass(frozen=True)
class TrackingConfig:
    tracking_id: str | None = None
    endpoint: str = COLLECT_URL
    data_source: str = "urlFetch"

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> "TrackingConfig":
        return cls(
            tracking_id=config.get("ANALYTICS_TRACKING_ID") or None,
            endpoint=config.get("ANALYTICS_ENDPOINT") or COLLECT_URL,
            data_source=config.get("ANALYTICS_DATA_SOURCE") or "urlFetch",
        )


class ParameterNormalizer:
    """
    Adds the mandatory Measurement Protocol fields to a hit.

    Full parameter reference:
    https://developers.google.com/analytics/devguides/collection/protocol/v1/parameters
    """

    def __init__(self, config: TrackingConfig, client_ids: ClientIdManager):
        self.config = config
        self.client_ids = client_ids

    def normalize(
        self,
        parameters: Mapping[str, Any] | None,
        store: PropertyStore | None = None,
        via_http_post: bool = False,
    ) -> dict:
        params = copy.deepcopy(dict(parameters or {}))

        # Checked before the client ID lookup so a doomed hit never writes to the store.
        if not params.get("tid"):
            if not self.config.tracking_id:
                raise ConfigurationError(TRACKING_ID_REQUIRED)
            params["tid"] = self.config.tracking_id

        params["cid"] = self.client_ids.get_client_id(store)

        # One of pageview, screenview, event, transaction, item, social, exception, timing.
        params["t"] = params.get("t") or "event"

        # Events without a label are hidden from some reports.
        if params["t"] == "event" and not params.get("el"):
            params["el"] = ""

        params["v"] = PROTOCOL_VERSION
        params["z"] = random.randrange(CACHE_BUSTER_RANGE)

        if via_http_post:
            params["ds"] = params.get("ds") or self.config.data_source
            # Hits sent from the server never carry the end user's IP.
            params["aip"] = "1"

        return params


def wire_value(value: Any) -> str:
    """Text sent for one parameter value, shared by the POST body and GET URL."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def wire_params(params: Mapping[str, Any]) -> dict:
    return {key: wire_value(value) for key, value in params.items()}
