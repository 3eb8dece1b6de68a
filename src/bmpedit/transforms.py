from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum
import logging
from typing import Callable, Dict, Iterator, Optional, Sequence, Tuple, Union

import cv2
import numpy as np

from .config import TransformConfig
from .image import ensure_image, to_channels

logger = logging.getLogger(__name__)

Number = Union[int, float]

WHITE = (255, 255, 255)
BLACK = (0, 0, 0)


class Selector(IntEnum):
    VIGNETTE = 1
    CLARENDON = 2
    GRAYSCALE = 3
    ROTATE_90 = 4
    ROTATE = 5
    ENLARGE = 6
    HIGH_CONTRAST = 7
    LIGHTEN = 8
    DARKEN = 9
    POSTERIZE = 10


# Per-pixel transforms

def _gray_levels(img: np.ndarray) -> np.ndarray:
    """Integer mean of the three channels, (H, W) int64."""
    return img.astype(np.int64).sum(axis=2) // 3


def vignette(img: np.ndarray, config: Optional[TransformConfig] = None) -> np.ndarray:
    """
    Darken toward the edges.

    Default mode keeps the classic formula: factor = (rows - d) / rows with
    d = int(distance to (rows//2, cols//2)). It ignores the column count, so
    wide images go negative at the far left/right and are then clamped or
    wrapped. ``vignette_corrected`` scales by the true half-diagonal instead.
    """
    cfg = config or TransformConfig()
    img = ensure_image(img)
    rows, cols = img.shape[:2]
    r = np.arange(rows, dtype=np.float64)[:, None]
    c = np.arange(cols, dtype=np.float64)[None, :]

    if cfg.vignette_corrected:
        cy, cx = (rows - 1) / 2.0, (cols - 1) / 2.0
        max_d = float(np.hypot(cy, cx))
        d = np.hypot(r - cy, c - cx)
        factor = 1.0 - d / max_d if max_d > 0 else np.ones_like(d)
    else:
        d = np.floor(np.sqrt((r - rows // 2) ** 2 + (c - cols // 2) ** 2))
        factor = (rows - d) / rows

    return to_channels(img * factor[..., None], cfg.channel_policy)


def clarendon(img: np.ndarray, factor: float, config: Optional[TransformConfig] = None) -> np.ndarray:
    """Light pixels (avg >= 170) lighter, dark ones (avg < 90) darker, midtones kept."""
    cfg = config or TransformConfig()
    img = ensure_image(img)
    avg = _gray_levels(img)[..., None]
    c = img.astype(np.float64)
    out = np.where(avg >= 170, 255.0 - (255.0 - c) * factor,
                   np.where(avg < 90, c * factor, c))
    return to_channels(out, cfg.channel_policy)


def grayscale(img: np.ndarray, config: Optional[TransformConfig] = None) -> np.ndarray:
    img = ensure_image(img)
    gray = _gray_levels(img).astype(np.uint8)
    return np.repeat(gray[..., None], 3, axis=2)


def high_contrast(img: np.ndarray, config: Optional[TransformConfig] = None) -> np.ndarray:
    img = ensure_image(img)
    out = np.zeros_like(img)
    out[_gray_levels(img) >= 255 // 2] = 255
    return out


def lighten(img: np.ndarray, factor: float, config: Optional[TransformConfig] = None) -> np.ndarray:
    """c -> 255 - (255 - c) * factor. factor 0 gives white, 1 is identity."""
    cfg = config or TransformConfig()
    img = ensure_image(img)
    return to_channels(255.0 - (255.0 - img.astype(np.float64)) * factor, cfg.channel_policy)


def darken(img: np.ndarray, factor: float, config: Optional[TransformConfig] = None) -> np.ndarray:
    """c -> c * factor. factor 0 gives black, 1 is identity."""
    cfg = config or TransformConfig()
    img = ensure_image(img)
    return to_channels(img.astype(np.float64) * factor, cfg.channel_policy)


def posterize(img: np.ndarray, config: Optional[TransformConfig] = None) -> np.ndarray:
    """Snap every pixel to white, black, or the pure primary of its strongest channel."""
    img = ensure_image(img)
    ch = img.astype(np.int64)
    total = ch.sum(axis=2)
    top = ch.max(axis=2)
    red, green = ch[..., 0], ch[..., 1]

    # order matters: first match wins, blue is the fallback
    conditions = [total >= 550, total <= 150, top == red, top == green]
    colors = [WHITE, BLACK, (255, 0, 0), (0, 255, 0)]
    out = np.empty_like(img)
    for k in range(3):
        out[..., k] = np.select(conditions, [col[k] for col in colors], default=(0, 0, 255)[k])
    return out


# Geometric transforms

def rotate_90(img: np.ndarray, config: Optional[TransformConfig] = None) -> np.ndarray:
    """Clockwise quarter turn: (row, col) -> (col, rows - 1 - row)."""
    img = ensure_image(img)
    return cv2.rotate(np.ascontiguousarray(img), cv2.ROTATE_90_CLOCKWISE)


def rotate(img: np.ndarray, quarter_turns: int, config: Optional[TransformConfig] = None) -> np.ndarray:
    """
    Rotate clockwise by quarter_turns * 90 degrees.

    Negative turns go counter-clockwise: the angle is reduced with floor
    modulo, so -1 is 270, -2 is 180 and -3 is 90. (Truncating ``%`` would
    send every negative multiple except -4k to three turns.)
    """
    img = ensure_image(img)
    angle = (int(quarter_turns) * 90) % 360
    out = img.copy()
    for _ in range(angle // 90):
        out = rotate_90(out)
    return out


def enlarge(img: np.ndarray, x_scale: int, y_scale: int,
            config: Optional[TransformConfig] = None) -> np.ndarray:
    """Nearest-neighbour upscale: out[r, c] = img[r // y_scale, c // x_scale]."""
    img = ensure_image(img)
    if x_scale < 1 or y_scale < 1:
        raise ValueError(f"scales must be >= 1, got x={x_scale}, y={y_scale}")
    return np.repeat(np.repeat(img, int(y_scale), axis=0), int(x_scale), axis=1)


# Registry

@dataclass(frozen=True)
class ParamSpec:
    name: str
    kind: type = float          # int | float
    prompt: str = ""
    minimum: Optional[Number] = None


@dataclass(frozen=True)
class TransformSpec:
    selector: Selector
    name: str
    fn: Callable[..., np.ndarray]
    params: Tuple[ParamSpec, ...] = ()


@dataclass
class TransformResult:
    image: np.ndarray
    error: Optional[str] = None   # usage error; image is then the untouched input

    @property
    def ok(self) -> bool:
        return self.error is None


class TransformRegistry:
    """Selector -> TransformSpec lookup with parameter checking."""

    def __init__(self, specs: Sequence[TransformSpec] = ()) -> None:
        self._specs: Dict[int, TransformSpec] = {}
        for spec in specs:
            self.register(spec)

    def register(self, spec: TransformSpec) -> None:
        if int(spec.selector) in self._specs:
            raise ValueError(f"Selector {int(spec.selector)} already registered")
        self._specs[int(spec.selector)] = spec

    def get(self, selector: int) -> Optional[TransformSpec]:
        return self._specs.get(int(selector))

    def __contains__(self, selector: int) -> bool:
        return int(selector) in self._specs

    def __iter__(self) -> Iterator[TransformSpec]:
        return iter(sorted(self._specs.values(), key=lambda s: int(s.selector)))

    def __len__(self) -> int:
        return len(self._specs)

    @staticmethod
    def coerce_params(spec: TransformSpec, params: Sequence[Number]) -> Tuple[Number, ...]:
        """Check count and types. Raises ValueError with a user-facing message."""
        if len(params) != len(spec.params):
            raise ValueError(
                f"{spec.name} takes {len(spec.params)} parameter(s), got {len(params)}"
            )
        values = []
        for p, raw in zip(spec.params, params):
            try:
                value = float(raw)
            except (TypeError, ValueError):
                raise ValueError(f"{p.name} must be a number, got {raw!r}") from None
            if not np.isfinite(value):
                raise ValueError(f"{p.name} must be finite, got {raw!r}")
            if p.kind is int:
                if not value.is_integer():
                    raise ValueError(f"{p.name} must be a whole number, got {raw!r}")
                value = int(value)
            if p.minimum is not None and value < p.minimum:
                raise ValueError(f"{p.name} must be >= {p.minimum}, got {raw!r}")
            values.append(value)
        return tuple(values)

    def apply(self, selector: int, img: np.ndarray, params: Sequence[Number] = (),
              config: Optional[TransformConfig] = None) -> TransformResult:
        spec = self.get(selector) if isinstance(selector, (int, np.integer)) else None
        if spec is None:
            return _usage_error(img, f"Unknown transform selector: {selector!r}")
        try:
            values = self.coerce_params(spec, params)
        except ValueError as e:
            return _usage_error(img, str(e))

        out = spec.fn(img, *values, config=config or TransformConfig())
        logger.debug("Applied %s%s -> %s", spec.name, values, out.shape)
        return TransformResult(image=out)


def _usage_error(img: np.ndarray, message: str) -> TransformResult:
    logger.warning("%s", message)
    return TransformResult(image=img, error=message)


_FACTOR = ParamSpec("factor", float, "Enter scaling factor")

DEFAULT_REGISTRY = TransformRegistry([
    TransformSpec(Selector.VIGNETTE, "Vignette", vignette),
    TransformSpec(Selector.CLARENDON, "Clarendon", clarendon, (_FACTOR,)),
    TransformSpec(Selector.GRAYSCALE, "Grayscale", grayscale),
    TransformSpec(Selector.ROTATE_90, "Rotate 90 degrees", rotate_90),
    TransformSpec(Selector.ROTATE, "Rotate multiple 90 degrees", rotate,
                  (ParamSpec("quarter_turns", int, "Enter a multiple of 90 degrees"),)),
    TransformSpec(Selector.ENLARGE, "Enlarge", enlarge,
                  (ParamSpec("x_scale", int, "Enter an x value to expand the width", 1),
                   ParamSpec("y_scale", int, "Enter a y value to expand the height", 1))),
    TransformSpec(Selector.HIGH_CONTRAST, "High contrast", high_contrast),
    TransformSpec(Selector.LIGHTEN, "Lighten", lighten,
                  (ParamSpec("factor", float, "Enter a factor to lighten the image by"),)),
    TransformSpec(Selector.DARKEN, "Darken", darken,
                  (ParamSpec("factor", float, "Enter a factor to darken the image by"),)),
    TransformSpec(Selector.POSTERIZE, "Black, white, red, green, blue", posterize),
])


def apply_transform(selector: int, img: np.ndarray, params: Sequence[Number] = (),
                    config: Optional[TransformConfig] = None) -> TransformResult:
    """Run transform ``selector`` (1-10) from the default registry."""
    return DEFAULT_REGISTRY.apply(selector, img, params, config)
