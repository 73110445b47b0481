#!/usr/bin/env python3
"""hilbert_gradient.py

Trace a Hilbert space-filling curve with a two-rule L-system and render the
path as a colour-gradient PNG.

Key features:
- Lazy expansion of the Hilbert productions using an explicit frame stack
  (the full expansion is never materialised).
- Grid turtle that turns the movement stream into one pixel per cell.
- Gradient renderer on top of Pillow.
- Optional JSON configuration.

Run:
  python hilbert_gradient.py render out.png --order 8
  python hilbert_gradient.py validate config.json
  python hilbert_gradient.py moves --order 2
  python hilbert_gradient.py --help
"""

from __future__ import annotations

import argparse
import itertools
import json
import os
import sys
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, BinaryIO, Union, cast

from PIL import Image, ImageColor

Position = tuple[int, int]
Color = tuple[int, int, int, int]

DEFAULT_ORDER = 8
MAX_CONFIG_ORDER = 12
DEFAULT_START_COLOR: Color = (0xE3, 0x0B, 0x5D, 0xFF)
DEFAULT_END_COLOR: Color = (0x00, 0x00, 0x00, 0x00)
OUTPUT_MODES = ("RGB", "RGBA")


# -------------------------
# Errors / Validation
# -------------------------


class ConfigError(ValueError):
    pass


class InvalidOrder(ConfigError):
    pass


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ConfigError(msg)


def _as_int(x: Any, path: str) -> int:
    _require(
        isinstance(x, int) and not isinstance(x, bool), f"{path} must be an integer"
    )
    return int(x)


def _as_str(x: Any, path: str) -> str:
    _require(isinstance(x, str), f"{path} must be a string")
    return cast(str, x)


def _as_dict(x: Any, path: str) -> dict[str, Any]:
    _require(isinstance(x, dict), f"{path} must be an object")
    return cast(dict[str, Any], x)


def _as_color(x: Any, path: str) -> Color:
    s = _as_str(x, path)
    try:
        rgb = ImageColor.getrgb(s)
    except ValueError as e:
        raise ConfigError(f"{path}: {e}") from e
    if len(rgb) == 3:
        return (rgb[0], rgb[1], rgb[2], 255)
    return cast(Color, tuple(rgb))


def check_order(order: Any) -> int:
    """Return `order` if it is a usable curve order, else raise InvalidOrder."""
    if not isinstance(order, int) or isinstance(order, bool):
        raise InvalidOrder(f"order must be an integer, got {type(order).__name__}")
    if order < 1:
        raise InvalidOrder(f"order must be >= 1, got {order}")
    return order


# -------------------------
# Geometry primitives
# -------------------------


class Direction(Enum):
    UP = "up"
    RIGHT = "right"
    DOWN = "down"
    LEFT = "left"


class Turn(Enum):
    LEFT = "+"
    RIGHT = "-"


class Forward(Enum):
    FORWARD = "F"


class Invoke(Enum):
    A = "A"
    B = "B"


Movement = Union[Turn, Forward]
Symbol = Union[Turn, Forward, Invoke]

# Clockwise order.
_COMPASS = (Direction.UP, Direction.RIGHT, Direction.DOWN, Direction.LEFT)

# Unit step per direction, y grows downward.
_STEPS: dict[Direction, tuple[int, int]] = {
    Direction.UP: (0, -1),
    Direction.RIGHT: (1, 0),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
}


def turn(direction: Direction, t: Turn) -> Direction:
    """Direction after a quarter turn, clockwise for RIGHT."""
    delta = 1 if t is Turn.RIGHT else -1
    return _COMPASS[(_COMPASS.index(direction) + delta) % 4]


def step(position: Position, direction: Direction) -> Position:
    dx, dy = _STEPS[direction]
    return (position[0] + dx, position[1] + dy)


# -------------------------
# Rule grammar
# -------------------------

_F = Forward.FORWARD
_L = Turn.LEFT
_R = Turn.RIGHT

# fmt: off
RULE_A: tuple[Symbol, ...] = (
    _L, Invoke.B, _F, _R, Invoke.A, _F, Invoke.A, _R, _F, Invoke.B, _L,
)
RULE_B: tuple[Symbol, ...] = (
    _R, Invoke.A, _F, _L, Invoke.B, _F, Invoke.B, _L, _F, Invoke.A, _R,
)
# fmt: on

RULES: dict[Invoke, tuple[Symbol, ...]] = {Invoke.A: RULE_A, Invoke.B: RULE_B}


def format_moves(moves: Iterable[Symbol]) -> str:
    """Render symbols in L-system notation, e.g. ``+F-F-F+``."""
    return "".join(m.value for m in moves)


# -------------------------
# Streaming expansion
# -------------------------


@dataclass
class ExpansionFrame:
    rule: Invoke
    cursor: int = 0


class HilbertPath:
    """Yield the movements of a Hilbert curve of the given order, one at a time.

    Nested rule invocations are tracked on an explicit stack of
    (rule, cursor) frames. An invocation is expanded only while the stack is
    at most ``max_depth`` frames deep; deeper invocations produce nothing.
    Order 1 expands no invocations at all.

    Instances are single-use iterators.
    """

    def __init__(self, order: int) -> None:
        self.order = check_order(order)
        self.max_depth = order - 1
        self._stack: list[ExpansionFrame] = [ExpansionFrame(Invoke.A)]

    @property
    def depth(self) -> int:
        return len(self._stack)

    def __iter__(self) -> HilbertPath:
        return self

    def __next__(self) -> Movement:
        stack = self._stack
        while stack:
            frame = stack[-1]
            rule = RULES[frame.rule]
            if frame.cursor >= len(rule):
                stack.pop()
                continue

            symbol = rule[frame.cursor]
            frame.cursor += 1

            if isinstance(symbol, Invoke):
                if len(stack) <= self.max_depth:
                    stack.append(ExpansionFrame(symbol))
                continue
            return symbol
        raise StopIteration


# -------------------------
# Turtle
# -------------------------


class _Status(Enum):
    RUNNING = "running"
    CLOSING = "closing"
    DONE = "done"


class HilbertPixels:
    """Yield every grid position visited by the Hilbert curve of ``order``.

    The turtle starts at (0, 0) facing DOWN. Each forward move yields the
    position it leaves; once the movement stream runs out the final position
    is yielded as well, so exactly ``4 ** order`` positions come out.
    """

    def __init__(self, order: int) -> None:
        self._path = HilbertPath(order)
        self.position: Position = (0, 0)
        self.direction = Direction.DOWN
        self._status = _Status.RUNNING

    def __iter__(self) -> HilbertPixels:
        return self

    def __next__(self) -> Position:
        if self._status is _Status.RUNNING:
            candidate = self.position
            for move in self._path:
                if isinstance(move, Turn):
                    self.direction = turn(self.direction, move)
                    continue
                self.position = step(self.position, self.direction)
                return candidate
            self._status = _Status.CLOSING

        if self._status is _Status.CLOSING:
            self._status = _Status.DONE
            return self.position

        raise StopIteration


# -------------------------
# Rendering
# -------------------------


def blend(c1: Color, c2: Color, ratio: float) -> Color:
    """Mix two colours; ``ratio`` is the share of ``c1``, the rest is ``c2``.

    Channels are truncated, not rounded.
    """
    if not 0.0 <= ratio <= 1.0:
        raise ValueError(f"blend ratio must be within [0, 1], got {ratio}")
    # Double precision. Matches a float32 mix exactly up to order 8 (every
    # product fits in 24 bits); above that a channel may differ by one.
    other = 1.0 - ratio
    r, g, b, a = (int(x * ratio + y * other) for x, y in zip(c1, c2))
    return (r, g, b, a)


def curve_size(order: int) -> int:
    return 2 ** check_order(order)


def render_gradient(
    order: int,
    start: Color = DEFAULT_START_COLOR,
    end: Color = DEFAULT_END_COLOR,
) -> Image.Image:
    """Paint the Hilbert curve of ``order`` onto a new RGBA image.

    Pixel ``i`` of ``N = 4 ** order`` gets ``blend(start, end, i / N)``, i.e.
    ``start * i / N + end * (1 - i / N)``: the first pixel is exactly ``end``
    and the colour moves towards ``start`` along the curve.
    """
    size = curve_size(order)
    pixel_count = size * size
    image = Image.new("RGBA", (size, size))

    for index, position in enumerate(HilbertPixels(order)):
        image.putpixel(position, blend(start, end, index / pixel_count))
    return image


def _ensure_parent_dir(path: str) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)) or ".", exist_ok=True)


def write_png(image: Image.Image, out: str | BinaryIO, *, mode: str = "RGB") -> None:
    """Encode ``image`` as PNG into a path or a writable binary file."""
    _require(mode in OUTPUT_MODES, f"image.mode must be one of {OUTPUT_MODES}")
    if image.mode != mode:
        image = image.convert(mode)
    if isinstance(out, str):
        _ensure_parent_dir(out)
    image.save(out, format="PNG")


# -------------------------
# Config parsing
# -------------------------


@dataclass(frozen=True)
class RenderConfig:
    name: str = "Hilbert gradient"
    order: int = DEFAULT_ORDER
    start_color: Color = DEFAULT_START_COLOR
    end_color: Color = DEFAULT_END_COLOR
    mode: str = "RGB"

    @property
    def size(self) -> int:
        return curve_size(self.order)


def _as_order(x: Any, path: str) -> int:
    order = _as_int(x, path)
    if not 1 <= order <= MAX_CONFIG_ORDER:
        raise InvalidOrder(f"{path} must be between 1 and {MAX_CONFIG_ORDER}")
    return order


def parse_config(obj: dict[str, Any]) -> RenderConfig:
    obj = _as_dict(obj, "root")

    name = _as_str(obj.get("name", "Hilbert gradient"), "name")
    order = _as_order(obj.get("order", DEFAULT_ORDER), "order")

    gradient = _as_dict(obj.get("gradient", {}), "gradient")
    start = DEFAULT_START_COLOR
    end = DEFAULT_END_COLOR
    if "start" in gradient:
        start = _as_color(gradient["start"], "gradient.start")
    if "end" in gradient:
        end = _as_color(gradient["end"], "gradient.end")

    image = _as_dict(obj.get("image", {}), "image")
    mode = _as_str(image.get("mode", "RGB"), "image.mode")
    _require(mode in OUTPUT_MODES, f"image.mode must be one of {OUTPUT_MODES}")

    return RenderConfig(
        name=name, order=order, start_color=start, end_color=end, mode=mode
    )


def load_json(path: str) -> dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        try:
            return cast(dict[str, Any], json.load(f))
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e


def _hex(c: Color) -> str:
    return "#" + "".join(f"{v:02x}" for v in c)


# -------------------------
# CLI / Help
# -------------------------

HELP_EPILOG = r"""
CONFIG JSON SYNTAX (render --config, validate)

All keys are optional.

  name: string (default "Hilbert gradient")
      A human-readable label, printed by `validate`.

  order: integer 1..12 (default 8)
      Curve order. The image is 2**order pixels square and every pixel is
      visited exactly once.

  gradient: object
    gradient.start: colour (default "#e30b5dff")
        Colour approached by the last pixel on the curve.
    gradient.end: colour (default "#00000000")
        Colour of the first pixel on the curve.

      Colours are anything Pillow understands: "#rgb", "#rrggbb",
      "#rrggbbaa", "rgb(...)", or names like "white". Colours without an
      alpha channel are fully opaque.

  image: object
    image.mode: "RGB" | "RGBA" (default "RGB")
        Channels written to the PNG. "RGB" drops the gradient's alpha.

Example

    {
      "order": 6,
      "gradient": {"start": "#ffcc00", "end": "#003366"},
      "image": {"mode": "RGB"}
    }

Command-line flags override values from --config.
"""


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="hilbert_gradient.py",
        description="Render a Hilbert curve as a colour-gradient PNG.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=HELP_EPILOG,
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    pr = sub.add_parser(
        "render",
        help="Render the gradient curve to a PNG file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    pr.add_argument("output", help="Path to write the PNG output.")
    pr.add_argument("--config", default=None, help="Optional JSON config.")
    pr.add_argument(
        "--order", type=int, default=None, help=f"Curve order (default {DEFAULT_ORDER})."
    )
    pr.add_argument(
        "--start-color", default=None, help="Colour approached by the last pixel."
    )
    pr.add_argument("--end-color", default=None, help="Colour of the first pixel.")
    pr.add_argument("--mode", choices=OUTPUT_MODES, default=None, help="PNG mode.")

    pv = sub.add_parser(
        "validate",
        help="Validate a JSON config and print a brief summary.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    pv.add_argument("config", help="Path to the input JSON config.")

    pm = sub.add_parser(
        "moves",
        help="Print the movement string of the curve (+ left, - right, F forward).",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    pm.add_argument("--order", type=int, default=1, help="Curve order (default 1).")
    pm.add_argument(
        "--limit", type=int, default=None, help="Print at most this many symbols."
    )

    return p


# -------------------------
# Commands
# -------------------------


def resolve_config(
    config_path: str | None,
    *,
    order: int | None = None,
    start_color: str | None = None,
    end_color: str | None = None,
    mode: str | None = None,
) -> RenderConfig:
    cfg_obj: dict[str, Any] = load_json(config_path) if config_path else {}
    cfg = parse_config(cfg_obj)

    return RenderConfig(
        name=cfg.name,
        order=cfg.order if order is None else _as_order(order, "--order"),
        start_color=(
            cfg.start_color
            if start_color is None
            else _as_color(start_color, "--start-color")
        ),
        end_color=(
            cfg.end_color if end_color is None else _as_color(end_color, "--end-color")
        ),
        mode=cfg.mode if mode is None else mode,
    )


def cmd_render(output_path: str, cfg: RenderConfig) -> None:
    image = render_gradient(cfg.order, cfg.start_color, cfg.end_color)
    write_png(image, output_path, mode=cfg.mode)


_VALIDATE_PIXEL_LIMIT = 10_000


def cmd_validate(config_path: str) -> None:
    cfg = parse_config(load_json(config_path))

    print(f"name: {cfg.name}")
    print(f"order: {cfg.order}")
    print(f"size: {cfg.size}x{cfg.size}")
    print(f"pixels: {cfg.size * cfg.size}")
    print(f"gradient: {_hex(cfg.start_color)} -> {_hex(cfg.end_color)}")
    print(f"mode: {cfg.mode}")

    # Walk the start of the curve to catch a broken path before a long render.
    sample = list(itertools.islice(HilbertPixels(cfg.order), _VALIDATE_PIXEL_LIMIT))
    for (x0, y0), (x1, y1) in zip(sample, sample[1:]):
        if abs(x1 - x0) + abs(y1 - y0) != 1:
            raise RuntimeError(
                f"curve is discontinuous at {(x0, y0)} -> {(x1, y1)}"
            )
    truncated = len(sample) < cfg.size * cfg.size
    label = f"{len(sample)}+" if truncated else str(len(sample))
    print(f"pixels (walked): {label}")


def cmd_moves(order: int, limit: int | None) -> None:
    moves: Iterable[Movement] = HilbertPath(_as_order(order, "--order"))
    if limit is not None:
        _require(limit >= 0, "--limit must be >= 0")
        moves = itertools.islice(moves, limit)
    print(format_moves(moves))


def main(argv: list[str] | None = None) -> int:
    ap = build_argparser()
    args = ap.parse_args(argv)

    try:
        if args.cmd == "render":
            cfg = resolve_config(
                args.config,
                order=args.order,
                start_color=args.start_color,
                end_color=args.end_color,
                mode=args.mode,
            )
            cmd_render(args.output, cfg)
        elif args.cmd == "validate":
            cmd_validate(args.config)
        elif args.cmd == "moves":
            cmd_moves(args.order, args.limit)
        else:
            raise AssertionError("unreachable")
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"File error: {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
