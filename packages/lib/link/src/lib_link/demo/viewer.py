"""2 体の姿勢を読み込み、キーボードで関節を動かしながら linking number を表示するデモ。

Keys:
    N / P           next / previous pose
    TAB             select the next joint (SHIFT+TAB: switch figure)
    S               toggle between chains and skeletons
    arrows          move the selected joint in X / Y
    PAGEUP/PAGEDOWN move the selected joint in Z
    ESC / Q         quit
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional

import pyglet
from lib_link import (
    Handle,
    LoaderConfig,
    PoseSession,
    load_pose_collection,
)
from lib_link.data import CHAIN_CONNECTIONS, SKELETON18_CONNECTIONS
from lib_link.util_3d import FigureVisuals, create_figure_batch, dispose_figure_visuals
from pyglet import graphics, window
from pyglet.math import Mat4, Vec3
from pyglet.window import key

_MOVE_KEYS = {
    key.LEFT: (-1.0, 0.0, 0.0),
    key.RIGHT: (1.0, 0.0, 0.0),
    key.UP: (0.0, 1.0, 0.0),
    key.DOWN: (0.0, -1.0, 0.0),
    key.PAGEUP: (0.0, 0.0, 1.0),
    key.PAGEDOWN: (0.0, 0.0, -1.0),
}

_COLORS = {
    1: ((231, 76, 60, 255), (231, 76, 60, 255)),
    2: ((52, 152, 219, 255), (52, 152, 219, 255)),
}


class LinkViewer:
    """pyglet window that drives a :class:`PoseSession` from the keyboard."""

    def __init__(
        self,
        session: PoseSession,
        *,
        step: float = 0.05,
        debug: bool = False,
    ) -> None:
        if step <= 0:
            raise ValueError("step must be positive")

        self.session = session
        self._step = step
        self._debug = debug
        self._pose_index = 0
        self._figure = 1
        self._joint = 0
        self._use_skeleton = False

        self.window = window.Window(
            width=960,
            height=720,
            caption="Link Viewer",
            resizable=True,
        )
        self.window.projection = Mat4.perspective_projection(
            fov=60.0,
            aspect=self.window.width / self.window.height,
            z_near=0.1,
            z_far=100.0,
        )
        self.window.view = Mat4.look_at(
            Vec3(6.0, 4.0, 8.0),
            Vec3(0.0, 1.5, 0.0),
            Vec3(0.0, 1.0, 0.0),
        )

        self.batch = graphics.Batch()
        self.visuals: List[FigureVisuals] = []
        self._register_handlers()
        self._rebuild()

    @property
    def handle(self) -> Handle:
        if self._use_skeleton:
            return Handle.SKELETON1 if self._figure == 1 else Handle.SKELETON2
        return Handle.CHAIN1 if self._figure == 1 else Handle.CHAIN2

    def _register_handlers(self) -> None:
        @self.window.event
        def on_draw() -> None:
            self.window.clear()
            self.batch.draw()

        @self.window.event
        def on_key_press(symbol: int, modifiers: int) -> None:
            if symbol in (key.ESCAPE, key.Q):
                pyglet.app.exit()
            elif symbol in (key.N, key.P):
                self._cycle_pose(1 if symbol == key.N else -1)
            elif symbol == key.TAB:
                if modifiers & key.MOD_SHIFT:
                    self._figure = 2 if self._figure == 1 else 1
                    self._joint = 0
                else:
                    count = len(self.session.structure(self.handle))
                    self._joint = (self._joint + 1) % count
                self._rebuild()
            elif symbol == key.S:
                self._use_skeleton = not self._use_skeleton
                self._joint = 0
                self._rebuild()
            elif symbol in _MOVE_KEYS:
                if not self.session.dragging:
                    self.session.begin_drag()
                direction = _MOVE_KEYS[symbol]
                delta = tuple(component * self._step for component in direction)
                self.session.move_joint(self.handle, self._joint, delta)
                self._rebuild()

        @self.window.event
        def on_key_release(symbol: int, modifiers: int) -> None:
            if symbol in _MOVE_KEYS and self.session.dragging:
                if self.session.end_drag():
                    print("LinkViewer: figures overlapped, drag reverted")
                self._rebuild()

    def _cycle_pose(self, step: int) -> None:
        count = len(self.session.collection)
        if count == 0:
            return
        self._pose_index = (self._pose_index + step) % count
        self.session.load_pose(self._pose_index)
        self._rebuild()

    def _rebuild(self) -> None:
        for visuals in self.visuals:
            dispose_figure_visuals(visuals)
        self.visuals = []

        session = self.session
        figures = (
            (1, session.chain1.joints, session.skeleton1.joints),
            (2, session.chain2.joints, session.skeleton2.joints),
        )
        for figure, chain, skeleton in figures:
            point_color, segment_color = _COLORS[figure]
            if self._use_skeleton:
                points, connections = skeleton, SKELETON18_CONNECTIONS
            else:
                points, connections = chain, CHAIN_CONNECTIONS
            self.visuals.append(
                create_figure_batch(
                    points,
                    connections,
                    batch=self.batch,
                    point_color=point_color,
                    segment_color=segment_color,
                )
            )
            if figure == self._figure:
                self.visuals.append(
                    create_figure_batch(
                        points[self._joint : self._joint + 1],
                        frozenset(),
                        batch=self.batch,
                        point_color=(255, 255, 0, 255),
                    )
                )

        link = session.current_linking()
        nearest = session.nearest_pose()
        nearest_name = nearest.pose.display_name if nearest else "-"
        self.window.set_caption(
            f"Link Viewer  link={link:.1f}  nearest={nearest_name}  "
            f"[{self.handle.value} #{self._joint}]"
        )
        if self._debug:
            print(f"LinkViewer: link={link:.1f} state={session.state}")

    def close(self) -> None:
        for visuals in self.visuals:
            dispose_figure_visuals(visuals)
        self.visuals = []

    def run(self) -> None:
        try:
            pyglet.app.run()
        finally:
            self.close()


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--precomputed",
        type=Path,
        default=None,
        help="JSON file of precomputed pose records (default: none).",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Do not fetch the pose database over the network.",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=300,
        help="Maximum number of poses decoded from the database (default: 300).",
    )
    parser.add_argument(
        "--step",
        type=float,
        default=0.05,
        help="Distance a joint moves per key press (default: 0.05).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode.",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    config = LoaderConfig(precomputed_path=args.precomputed, limit=args.limit)
    if args.offline:
        config.url = None
    result = load_pose_collection(config)

    viewer = LinkViewer(PoseSession(result.collection), step=args.step, debug=args.debug)
    viewer.run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
