"""Utilities for rendering chains and skeletons with pyglet."""

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple, cast

import numpy as np
import pyglet

from .vector import ArrayF64


@dataclass
class FigureVisuals:
    """Container returned by :func:`create_figure_batch`.

    batch: The pyglet batch that owns the vertex lists.
    entries: Mapping of semantic names (``points``/``segments``) to the
        vertex lists created for rendering. Entries with no geometry are
        omitted.
    """

    batch: "pyglet.graphics.Batch"
    entries: Dict[str, Any]


def prepare_coordinates(
    points: ArrayF64,
    *,
    translate: Tuple[float, float, float] = (0.0, 0.0, 0.0),
    scale: float = 1.0,
) -> np.ndarray:
    coords = np.array(points, dtype=np.float32).reshape(-1, 3)
    coords *= scale
    coords += np.asarray(translate, dtype=np.float32)
    return coords


def segment_vertices(
    coords: np.ndarray, connections: Iterable[Tuple[int, int]]
) -> List[float]:
    """Flatten the endpoints of every drawable connection into one list.

    Connections referring to joints outside ``coords`` are skipped.
    """

    vertices: List[float] = []
    for start, end in sorted(connections):
        if start >= len(coords) or end >= len(coords):
            continue
        vertices.extend(float(v) for v in coords[start])
        vertices.extend(float(v) for v in coords[end])
    return vertices


def create_figure_batch(
    points: ArrayF64,
    connections: FrozenSet[Tuple[int, int]],
    *,
    batch: Optional["pyglet.graphics.Batch"] = None,
    group: Optional["pyglet.graphics.Group"] = None,
    point_color: Tuple[int, int, int, int] = (255, 80, 80, 255),
    segment_color: Tuple[int, int, int, int] = (80, 160, 255, 255),
    translate: Tuple[float, float, float] = (0.0, 0.0, 0.0),
    scale: float = 1.0,
) -> FigureVisuals:
    """Create pyglet vertex lists that render one figure.

    Callers can add the batch to a pyglet window's draw routine via
    ``batch.draw()``.
    """

    coords = prepare_coordinates(points, translate=translate, scale=scale)

    working_batch = batch or pyglet.graphics.Batch()
    shader = pyglet.graphics.get_default_shader()
    entries: Dict[str, Any] = {}

    if len(coords):
        color_vec = [component / 255.0 for component in point_color]
        entries["points"] = shader.vertex_list(
            len(coords),
            pyglet.gl.GL_POINTS,
            batch=working_batch,
            group=cast(Any, group),
            position=("f", coords.flatten().tolist()),
            colors=("f", color_vec * len(coords)),
        )

    vertices = segment_vertices(coords, connections)
    vertex_count = len(vertices) // 3
    if vertex_count:
        color_vec = [component / 255.0 for component in segment_color]
        entries["segments"] = shader.vertex_list(
            vertex_count,
            pyglet.gl.GL_LINES,
            batch=working_batch,
            group=cast(Any, group),
            position=("f", vertices),
            colors=("f", color_vec * vertex_count),
        )

    return FigureVisuals(batch=working_batch, entries=entries)


def dispose_figure_visuals(visuals: FigureVisuals) -> None:
    for vertex_list in visuals.entries.values():
        vertex_list.delete()
    visuals.entries.clear()


__all__ = [
    "FigureVisuals",
    "create_figure_batch",
    "dispose_figure_visuals",
    "prepare_coordinates",
    "segment_vertices",
]
