"""Thin client for the external clustering service."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

import requests

from src.config import ServiceConfig, get_service_config
from src.explorer.models import ClusteringResult, PointRecord
from src.explorer.payloads import parse_clustering_response

LOGGER = logging.getLogger(__name__)


class ClusteringServiceError(RuntimeError):
    """The clustering service could not produce a usable result."""


class ClusteringServiceClient:
    """Requests a merge tree and step log for one dataset/algorithm selection."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._config = config or get_service_config()
        self._session = session or requests.Session()
        self._session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

    @staticmethod
    def build_request(dataset: str, algorithm: str, points: Sequence[PointRecord]) -> Dict[str, Any]:
        return {
            "dataset": dataset,
            "algorithm": algorithm,
            "dataPoints": [{"x": p.x, "y": p.y, "data": p.attributes} for p in points],
        }

    def cluster(self, dataset: str, algorithm: str, points: Sequence[PointRecord]) -> ClusteringResult:
        url = self._config.cluster_endpoint
        body = self.build_request(dataset, algorithm, points)
        try:
            response = self._session.post(url, json=body, timeout=self._config.timeout_seconds)
        except requests.RequestException as exc:
            LOGGER.error("Clustering request to %s failed: %s", url, exc)
            raise ClusteringServiceError(f"clustering service unreachable: {exc}") from exc

        if response.status_code != 200:
            LOGGER.error(
                "Clustering service returned %s for dataset=%s algorithm=%s: %s",
                response.status_code, dataset, algorithm, response.text[:200],
            )
            raise ClusteringServiceError(
                f"clustering service returned HTTP {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            LOGGER.error("Clustering service sent a non-JSON body: %s", exc)
            raise ClusteringServiceError("clustering service sent an invalid response") from exc

        try:
            result = parse_clustering_response(payload)
        except ValueError as exc:
            LOGGER.error("Clustering response could not be parsed: %s", exc)
            raise ClusteringServiceError(f"malformed clustering response: {exc}") from exc

        LOGGER.info(
            "Clustered dataset=%s algorithm=%s: %d points, %d steps",
            dataset, algorithm, len(points), len(result.steps),
        )
        return result
