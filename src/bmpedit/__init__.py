from .config import TransformConfig, SessionConfig
from .image import Pixel, EmptyImageError, EMPTY_IMAGE, new_image, from_pixels, to_pixels, ensure_image
from .codec import BitmapHeader, decode_bitmap, encode_bitmap, read_bitmap, write_bitmap, read_header
from .transforms import (
    Selector, TransformSpec, ParamSpec, TransformResult, TransformRegistry,
    DEFAULT_REGISTRY, apply_transform,
)
from .session import EditSession
from .viz import Visualizer

__all__ = [
    "TransformConfig", "SessionConfig",
    "Pixel", "EmptyImageError", "EMPTY_IMAGE", "new_image", "from_pixels", "to_pixels", "ensure_image",
    "BitmapHeader", "decode_bitmap", "encode_bitmap", "read_bitmap", "write_bitmap", "read_header",
    "Selector", "TransformSpec", "ParamSpec", "TransformResult", "TransformRegistry",
    "DEFAULT_REGISTRY", "apply_transform",
    "EditSession",
    "Visualizer",
]
