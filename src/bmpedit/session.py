from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence
import logging
import os

import numpy as np

from .codec import read_bitmap, write_bitmap
from .config import SessionConfig
from .helpers import same_file
from .image import is_empty
from .transforms import Number, TransformResult, apply_transform

logger = logging.getLogger(__name__)


@dataclass
class EditSession:
    """
    Current file + working image for one editing run.

    ``image`` is what was loaded, ``current`` is the working copy that
    successive transforms chain on.
    """
    config: SessionConfig = field(default_factory=SessionConfig)
    source_path: Optional[Path] = None
    image: Optional[np.ndarray] = None
    current: Optional[np.ndarray] = None

    @property
    def loaded(self) -> bool:
        return self.current is not None

    def open(self, path: str | os.PathLike) -> bool:
        """Load a bitmap. On failure the previous state is kept."""
        img = read_bitmap(path)
        if is_empty(img):
            return False
        self.source_path = Path(path)
        self.image = img
        self.current = img
        logger.info("Opened %s (%dx%d)", path, img.shape[1], img.shape[0])
        return True

    def apply(self, selector: int, params: Sequence[Number] = ()) -> TransformResult:
        if self.current is None:
            raise RuntimeError("No image loaded")
        result = apply_transform(selector, self.current, params, self.config.transform)
        if result.ok:
            self.current = result.image
        return result

    def reset(self) -> None:
        self.current = self.image

    def save(self, path: str | os.PathLike) -> bool:
        """Write the working image. Refuses to overwrite the source file."""
        if self.current is None:
            raise RuntimeError("No image loaded")
        if self.source_path is not None and same_file(path, self.source_path):
            logger.error("Refusing to overwrite the original image %s", path)
            return False
        return write_bitmap(path, self.current)
