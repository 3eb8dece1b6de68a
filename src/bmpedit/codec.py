"""
Uncompressed BMP reading and writing.

Reads 24-bit and 32-bit (alpha dropped) bottom-up bitmaps into RGB uint8
buffers and writes 24-bit bitmaps with a 14-byte file header and a 40-byte
BITMAPINFOHEADER. Invalid input decodes to ``EMPTY_IMAGE`` instead of raising.
"""
from __future__ import annotations
from dataclasses import dataclass
import logging
import os
import struct

import numpy as np

from .image import EMPTY_IMAGE, dimensions, ensure_image, is_empty

logger = logging.getLogger(__name__)

FILE_HEADER_SIZE = 14
INFO_HEADER_SIZE = 40
HEADER_SIZE = FILE_HEADER_SIZE + INFO_HEADER_SIZE
PIXELS_PER_METER = 2835     # 72 dpi
SUPPORTED_BPP = (24, 32)

_FILE_HEADER = struct.Struct("<2sIHHI")
_INFO_HEADER = struct.Struct("<IIIHHIIIIII")


@dataclass(frozen=True)
class BitmapHeader:
    signature: bytes
    file_size: int
    pixel_offset: int
    header_size: int
    width: int
    height: int
    planes: int
    bits_per_pixel: int
    compression: int
    data_size: int
    x_pixels_per_meter: int
    y_pixels_per_meter: int
    colors_used: int
    colors_important: int

    @classmethod
    def parse(cls, data: bytes) -> "BitmapHeader":
        if len(data) < HEADER_SIZE:
            raise ValueError(f"Need {HEADER_SIZE} header bytes, got {len(data)}")
        signature, file_size, _r1, _r2, pixel_offset = _FILE_HEADER.unpack_from(data, 0)
        (header_size, width, height, planes, bpp, compression, data_size,
         xppm, yppm, colors_used, colors_important) = _INFO_HEADER.unpack_from(data, FILE_HEADER_SIZE)
        return cls(
            signature=signature, file_size=file_size, pixel_offset=pixel_offset,
            header_size=header_size, width=width, height=height, planes=planes,
            bits_per_pixel=bpp, compression=compression, data_size=data_size,
            x_pixels_per_meter=xppm, y_pixels_per_meter=yppm,
            colors_used=colors_used, colors_important=colors_important,
        )

    @property
    def bytes_per_pixel(self) -> int:
        return self.bits_per_pixel // 8

    @property
    def scanline_size(self) -> int:
        return self.width * self.bytes_per_pixel

    @property
    def padding(self) -> int:
        # each row is padded to a multiple of 4 bytes
        return (4 - self.scanline_size % 4) % 4

    @property
    def row_size(self) -> int:
        return self.scanline_size + self.padding

    @property
    def expected_file_size(self) -> int:
        return self.pixel_offset + self.row_size * self.height

    @property
    def is_consistent(self) -> bool:
        return self.file_size == self.expected_file_size

    def as_dict(self) -> dict:
        return {
            "signature": self.signature.decode("latin-1"),
            "file_size": self.file_size,
            "data_offset": self.pixel_offset,
            "header_size": self.header_size,
            "width": self.width,
            "height": self.height,
            "planes": self.planes,
            "bpp": self.bits_per_pixel,
            "compression": self.compression,
            "data_size": self.data_size,
            "x_ppm": self.x_pixels_per_meter,
            "y_ppm": self.y_pixels_per_meter,
            "colors_used": self.colors_used,
            "colors_important": self.colors_important,
            "row_padding": self.padding,
        }


def _reject(reason: str) -> np.ndarray:
    logger.warning("Not a supported bitmap: %s", reason)
    return EMPTY_IMAGE.copy()


def decode_bitmap(data: bytes) -> np.ndarray:
    """Bitmap bytes -> (H, W, 3) RGB uint8. Returns an empty buffer if invalid."""
    if len(data) < HEADER_SIZE:
        return _reject(f"only {len(data)} bytes")
    hdr = BitmapHeader.parse(data)
    if hdr.signature != b"BM":
        return _reject(f"bad signature {hdr.signature!r}")
    if hdr.bits_per_pixel not in SUPPORTED_BPP:
        return _reject(f"unsupported bpp {hdr.bits_per_pixel}")
    if not hdr.is_consistent:
        return _reject(
            f"file size {hdr.file_size} != offset {hdr.pixel_offset} + "
            f"{hdr.row_size} * {hdr.height}"
        )
    if len(data) < hdr.file_size:
        return _reject(f"truncated: {len(data)} of {hdr.file_size} bytes")
    if hdr.width == 0 or hdr.height == 0:
        return EMPTY_IMAGE.copy()

    rows = np.frombuffer(
        data, dtype=np.uint8, count=hdr.row_size * hdr.height, offset=hdr.pixel_offset
    ).reshape(hdr.height, hdr.row_size)
    px = rows[:, :hdr.scanline_size].reshape(hdr.height, hdr.width, hdr.bytes_per_pixel)
    # rows are stored bottom-to-top, pixels as B, G, R(, A)
    return px[::-1, :, 2::-1].copy()


def encode_bitmap(img: np.ndarray) -> bytes:
    """(H, W, 3) RGB buffer -> 24-bit bitmap bytes."""
    img = ensure_image(img)
    height, width = dimensions(img)
    padding = (4 - (width * 3) % 4) % 4
    data_size = (width * 3 + padding) * height

    file_header = _FILE_HEADER.pack(b"BM", HEADER_SIZE + data_size, 0, 0, HEADER_SIZE)
    info_header = _INFO_HEADER.pack(
        INFO_HEADER_SIZE,
        width,
        height,
        1,                  # color planes
        24,                 # bits per pixel
        0,                  # BI_RGB
        data_size,
        PIXELS_PER_METER,
        PIXELS_PER_METER,
        0,                  # palette colors
        0,                  # important colors
    )

    rows = img[::-1, :, ::-1].reshape(height, width * 3)
    if padding:
        rows = np.pad(rows, ((0, 0), (0, padding)))
    return file_header + info_header + rows.tobytes()


def read_header(path: str | os.PathLike) -> BitmapHeader:
    with open(path, "rb") as f:
        head = f.read(HEADER_SIZE)
    return BitmapHeader.parse(head)


def read_bitmap(path: str | os.PathLike) -> np.ndarray:
    """Load a bitmap from disk. Missing or invalid files give an empty buffer."""
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        logger.warning("Could not read %s: %s", path, e)
        return EMPTY_IMAGE.copy()
    img = decode_bitmap(data)
    if not is_empty(img):
        logger.debug("Read %s (%dx%d)", path, img.shape[1], img.shape[0])
    return img


def write_bitmap(path: str | os.PathLike, img: np.ndarray) -> bool:
    """Save as 24-bit bitmap. Returns False if the destination can't be opened."""
    data = encode_bitmap(img)
    try:
        with open(path, "wb") as f:
            f.write(data)
    except OSError as e:
        logger.error("Could not write %s: %s", path, e)
        return False
    logger.debug("Wrote %s (%d bytes)", path, len(data))
    return True
