"""
Remote solver delegate.

POSTs the current inputs to an external optimize endpoint and accepts the
configuration it returns under `assignment` or `bestAssignment`. Any failure
(transport error, timeout, non-2xx status, unparseable body, missing or
invalid configuration) is logged and answered by the local exhaustive search
instead, so callers always get an OptimizeResult and never an exception.

Request body:
    {"assignment": {...}, "params": {...}, "lruEdits": {...}, "network": {...}}
"""

import logging
from dataclasses import astuple
from typing import Mapping, Optional

import requests

from planner import config
from planner.entities import ProductOverride
from planner.evaluator import evaluate
from planner.network import NetworkModel
from planner.optimizer import (
    STATUS_REMOTE,
    LocalExhaustiveSolver,
    OptimizeResult,
    OptimizerStrategy,
)
from planner.scenario import (
    Configuration,
    Parameters,
    configuration_from_dict,
    configuration_to_dict,
    overrides_to_dict,
)

logger = logging.getLogger(__name__)

RESULT_FIELDS = ("assignment", "bestAssignment")


class RemoteSolverFailure(Exception):
    """The delegated solver answered, but not with a usable configuration."""


def build_payload(network, configuration, parameters, overrides=None) -> dict:
    return {
        "assignment": configuration_to_dict(configuration),
        "params": parameters.to_dict(),
        "lruEdits": overrides_to_dict(overrides or {}),
        "network": network.to_dict(),
    }


def parse_response(network: NetworkModel, body) -> Configuration:
    """Extract and validate the returned configuration. Raises RemoteSolverFailure."""
    if not isinstance(body, dict):
        raise RemoteSolverFailure(f"Expected a JSON object, got {type(body).__name__}")
    raw = next((body[k] for k in RESULT_FIELDS if body.get(k)), None)
    if raw is None:
        raise RemoteSolverFailure(f"Response has none of {', '.join(RESULT_FIELDS)}")
    try:
        configuration = configuration_from_dict(raw)
    except (KeyError, TypeError, AttributeError) as e:
        raise RemoteSolverFailure(f"Malformed configuration: {e!r}") from e
    for product_id, a in configuration.items():
        if not all(isinstance(v, str) for v in astuple(a)):
            raise RemoteSolverFailure(f"{product_id}: ids and modes must be strings")
    valid, reason = network.validate_configuration(configuration)
    if not valid:
        raise RemoteSolverFailure(reason)
    return configuration


class RemoteSolver(OptimizerStrategy):
    """Delegate to an HTTP solver; fall back to `fallback` on any failure."""

    name = "remote"

    def __init__(
        self,
        url: str = config.REMOTE_URL,
        timeout: float = config.REMOTE_TIMEOUT,
        fallback: Optional[OptimizerStrategy] = None,
        http: Optional[requests.Session] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.fallback = fallback or LocalExhaustiveSolver()
        self._http = http or requests.Session()

    def _request(self, payload: dict):
        resp = self._http.post(self.url, json=payload, timeout=self.timeout)
        if not 200 <= resp.status_code < 300:
            raise RemoteSolverFailure(f"HTTP {resp.status_code} from {self.url}")
        return resp.json()

    def solve(
        self,
        network: NetworkModel,
        configuration: Configuration,
        parameters: Parameters,
        overrides: Optional[Mapping[str, ProductOverride]] = None,
    ) -> OptimizeResult:
        if not self.url:
            logger.warning("No remote solver URL configured, using local search")
            return self.fallback.solve(network, configuration, parameters, overrides)

        payload = build_payload(network, configuration, parameters, overrides)
        try:
            body = self._request(payload)
            remote_config = parse_response(network, body)
        except (requests.RequestException, ValueError, RemoteSolverFailure) as e:
            logger.warning("Remote solver failed (%s), falling back to local search", e)
            return self.fallback.solve(network, configuration, parameters, overrides)

        return OptimizeResult(
            status=STATUS_REMOTE,
            configuration=remote_config,
            evaluation=evaluate(network, remote_config, parameters, overrides),
            source="remote",
        )
