"""Flask routes exposing partitions, cluster layout and hit-testing."""
from __future__ import annotations

import json
import logging
import math
from typing import Any, Dict, Optional, Tuple

from flask import Blueprint, Response, current_app, request

from src.config import LayoutSettings
from src.explorer.builder import build_explorer_view
from src.explorer.colors import ColorPolicy
from src.explorer.dendrogram_view import DendrogramGeometry, build_dendrogram_geometry
from src.explorer.hit_test import HitTester
from src.explorer.interaction import HeightAxis
from src.explorer.models import ClusteringResult, ExplorerViewData
from src.explorer.partition import clusters_at_cut
from src.explorer.payloads import (
    parse_clustering_response,
    parse_points,
    parse_steps,
    parse_tree,
)
from src.explorer.replay import clusters_at_step
from src.explorer.service import ClusteringServiceClient, ClusteringServiceError
from src.explorer.transform import Padding, Viewport

logger = logging.getLogger(__name__)

explorer_bp = Blueprint("explorer", __name__, url_prefix="/api/explorer")


def _sanitize_json_value(value: Any) -> Any:
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return None
    if isinstance(value, dict):
        return {k: _sanitize_json_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_sanitize_json_value(v) for v in value]
    return value


def safe_jsonify(payload: Any, *, status: int = 200) -> Response:
    """JSON response with NaN/Infinity turned into null."""
    data = json.dumps(_sanitize_json_value(payload))
    return Response(data, status=status, mimetype="application/json")


def _error(message: str, status: int) -> Response:
    return safe_jsonify({"error": message}, status=status)


def _json_body() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValueError("request body must be a JSON object")
    return payload


def _layout_settings() -> LayoutSettings:
    return current_app.config.get("LAYOUT_SETTINGS") or LayoutSettings()


def _parse_range(value: Any, name: str) -> Optional[Tuple[float, float]]:
    if value is None:
        return None
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ValueError(f"{name} must be a [min, max] pair")
    return float(value[0]), float(value[1])


def _parse_viewport(value: Any) -> Viewport:
    if not isinstance(value, dict):
        raise ValueError("viewport must be an object with width and height")
    padding = value.get("padding")
    if padding is not None and not isinstance(padding, dict):
        raise ValueError("viewport padding must be an object with top, right, bottom and left")
    return Viewport(
        width=float(value["width"]),
        height=float(value["height"]),
        padding=Padding(**{k: float(v) for k, v in padding.items()}) if padding else Padding(),
    )


def _parse_cut_height(payload: Dict[str, Any]) -> Optional[float]:
    raw = payload.get("cut_height")
    if raw is None:
        return None
    cut_height = float(raw)
    if not math.isfinite(cut_height):
        raise ValueError("cut_height must be finite")
    return cut_height


def _serialize_view(view: ExplorerViewData) -> dict:
    def serialize_cluster(c):
        stats = view.cluster_stats[c.cluster_index] if view.cluster_stats else {}
        return {
            "id": c.cluster_index,
            "pointIndices": list(c.member_indices),
            "center": {"x": c.center[0], "y": c.center[1]},
            "radius": c.radius,
            "enclosingRadius": c.enclosing_radius,
            "color": c.color,
            "stats": stats,
        }

    return {
        "mode": view.mode,
        "step": view.step,
        "totalSteps": view.total_steps,
        "currentHeight": view.current_height,
        "cutHeight": view.cut_height,
        "unclustered": not view.partition,
        "partition": view.partition,
        "clusters": [serialize_cluster(c) for c in view.clusters],
        "points": [
            {"x": x, "y": y, "color": color}
            for (x, y), color in zip(view.point_pixels, view.point_colors)
        ],
        "connections": [list(pair) for pair in view.connections],
    }


def _serialize_dendrogram(geometry: DendrogramGeometry) -> dict:
    return {
        "orderedLabels": geometry.ordered_labels,
        "leafRows": geometry.leaf_rows,
        "maxHeight": geometry.max_height,
        "cutHeight": geometry.cut_height,
        "cutX": geometry.cut_x,
        "segments": [
            {
                "height": s.height,
                "step": s.step_index,
                "x": s.x,
                "yLeft": s.y_left,
                "yRight": s.y_right,
                "yMid": s.y_mid,
                "xLeftChild": s.x_left_child,
                "xRightChild": s.x_right_child,
            }
            for s in geometry.segments
        ],
    }


def _build_view(payload: Dict[str, Any], result: ClusteringResult):
    points = parse_points(payload.get("points"))
    palette = payload.get("palette")
    view = build_explorer_view(
        result,
        points,
        _parse_viewport(payload.get("viewport")),
        cut_height=_parse_cut_height(payload),
        step=int(payload.get("step", 0)),
        x_range=_parse_range(payload.get("x_range"), "x_range"),
        y_range=_parse_range(payload.get("y_range"), "y_range"),
        color_policy=ColorPolicy.from_palette(palette) if palette else None,
        settings=_layout_settings(),
        stat_fields=tuple(payload.get("fields") or ()),
    )
    return view, points


def _view_response(payload: Dict[str, Any], result: ClusteringResult) -> dict:
    view, points = _build_view(payload, result)
    body = _serialize_view(view)
    dendrogram_viewport = payload.get("dendrogram_viewport")
    if dendrogram_viewport:
        geometry = build_dendrogram_geometry(
            result.tree,
            [p.id for p in points],
            width=float(dendrogram_viewport["width"]),
            height=float(dendrogram_viewport["height"]),
            steps=result.steps,
            current_step=view.step,
            cut_height=view.cut_height,
        )
        body["dendrogram"] = _serialize_dendrogram(geometry)
    return body


def _get_clustering_client() -> ClusteringServiceClient:
    client = current_app.config.get("CLUSTERING_CLIENT")
    if client is None:
        client = ClusteringServiceClient()
        current_app.config["CLUSTERING_CLIENT"] = client
    return client


@explorer_bp.route("/partition", methods=["POST"])
def post_partition():
    """Partition only: ``{dendrogram, n_points, cut_height}`` or ``{steps, n_points, step}``."""
    try:
        payload = _json_body()
        n_points = int(payload["n_points"])
        if n_points < 0:
            raise ValueError("n_points must be non-negative")
        cut_height = _parse_cut_height(payload)
        if cut_height is not None:
            tree = parse_tree(payload.get("dendrogram"))
            clusters = clusters_at_cut(tree, cut_height, n_points)
            mode = "cut"
        else:
            steps = parse_steps(payload.get("steps"))
            clusters = clusters_at_step(steps, int(payload.get("step", 0)), n_points)
            mode = "step"
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("Rejected partition request: %s", exc)
        return _error(str(exc), 400)

    return safe_jsonify({"mode": mode, "clusters": clusters, "unclustered": not clusters})


@explorer_bp.route("/view", methods=["POST"])
def post_view():
    """Full scatter-plot view for a previously fetched clustering result."""
    try:
        payload = _json_body()
        result = parse_clustering_response(payload.get("result") or {})
        body = _view_response(payload, result)
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("Rejected view request: %s", exc)
        return _error(str(exc), 400)
    return safe_jsonify(body)


@explorer_bp.route("/hit", methods=["POST"])
def post_hit():
    """Resolve ``pointer: {x, y}`` against the same geometry ``/view`` would draw."""
    try:
        payload = _json_body()
        result = parse_clustering_response(payload.get("result") or {})
        pointer = payload["pointer"]
        x, y = float(pointer["x"]), float(pointer["y"])
        view, _ = _build_view(payload, result)
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("Rejected hit request: %s", exc)
        return _error(str(exc), 400)

    hit = HitTester.from_view(view, point_radius=_layout_settings().point_hit_radius).hit(x, y)
    return safe_jsonify({"kind": hit.kind, "index": hit.index})


@explorer_bp.route("/cut-height", methods=["POST"])
def post_cut_height():
    """Pixel x on the dendrogram canvas -> clamped cut height."""
    try:
        payload = _json_body()
        axis = HeightAxis(
            width=float(payload["width"]),
            height=float(payload.get("height", 0.0)),
            max_height=float(payload["max_height"]),
        )
        x = float(payload["x"])
    except (KeyError, TypeError, ValueError) as exc:
        return _error(str(exc), 400)
    return safe_jsonify({"cut_height": axis.to_height(x)})


@explorer_bp.route("/cluster", methods=["POST"])
def post_cluster():
    """Ask the clustering service for a fresh result, then return its initial view."""
    try:
        payload = _json_body()
        dataset = str(payload["dataset"])
        algorithm = str(payload["algorithm"])
        points = parse_points(payload.get("points"))
    except (KeyError, TypeError, ValueError) as exc:
        return _error(str(exc), 400)

    try:
        result = _get_clustering_client().cluster(dataset, algorithm, points)
    except ClusteringServiceError as exc:
        return _error(str(exc), 502)

    try:
        body = _view_response(payload, result)
    except (KeyError, TypeError, ValueError) as exc:
        return _error(str(exc), 400)
    body["finalClusters"] = result.final_clusters
    return safe_jsonify(body)
