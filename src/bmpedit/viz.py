from __future__ import annotations
from typing import Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np


class Visualizer:
    """Plot helpers (only used when --show). No implicit showing in library paths."""

    @staticmethod
    def show_side_by_side(
        images: Sequence[np.ndarray],
        titles: Optional[Sequence[str]] = None,
        figsize: Tuple[int, int] = (12, 6),
        show: bool = True,
    ) -> plt.Figure:
        n = len(images)
        titles = titles or [f"Image {i+1}" for i in range(n)]

        fig, axes = plt.subplots(1, n, figsize=figsize)
        if n == 1:
            axes = [axes]

        for ax, img, title in zip(axes, images, titles):
            ax.imshow(img, interpolation="nearest")
            ax.set_title(f"{title} ({img.shape[1]}x{img.shape[0]})")
            ax.axis("off")

        fig.tight_layout()
        if show:
            plt.show()
        return fig

    def show_before_after(self, before: np.ndarray, after: np.ndarray,
                          label: str = "Processed", show: bool = True) -> plt.Figure:
        return self.show_side_by_side([before, after], ["Original", label], show=show)
