"""Loss curve for a finished training run."""

from __future__ import annotations

import math
from pathlib import Path
from typing import List, Mapping, Tuple

# Losses spanning more than this ratio are drawn on a log axis.
_LOG_SCALE_RATIO = 100.0


class PlotAdapter:
    """Collect epoch losses and render ``loss.png`` on :meth:`close`.

    Non-finite epochs are left out of the curve. When ``cutoff`` is given it is
    drawn as a dashed horizontal line so early stops are easy to read off.
    """

    def __init__(
        self,
        run_dir: str | Path,
        enable_plots: bool = False,
        *,
        cutoff: float | None = None,
        label: str | None = None,
    ):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self.cutoff = cutoff
        self.label = label
        self._history: List[Tuple[int, float]] = []

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        if not self.enable_plots:
            return
        loss = metrics.get("loss")
        if loss is None or not math.isfinite(float(loss)):
            return
        self._history.append((int(epoch), float(loss)))

    __call__ = on_epoch

    def use_log_scale(self) -> bool:
        losses = [loss for _, loss in self._history]
        if not losses or min(losses) <= 0.0:
            return False
        return max(losses) / min(losses) > _LOG_SCALE_RATIO

    def close(self) -> Path | None:
        """Write the curve and return its path, or ``None`` when nothing was plotted."""

        if not self.enable_plots or not self._history:
            return None
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # imported lazily for headless safety

        self.run_dir.mkdir(parents=True, exist_ok=True)
        epochs, losses = zip(*self._history)
        fig, ax = plt.subplots()
        ax.plot(epochs, losses, marker="o", markersize=3, label="epoch loss")
        if self.cutoff is not None:
            ax.axhline(self.cutoff, linestyle="--", color="grey", label=f"cutoff {self.cutoff:g}")
            ax.legend()
        if self.use_log_scale():
            ax.set_yscale("log")
        ax.set_xlabel("Epoch")
        ax.set_ylabel("Average loss")
        ax.set_title(f"Training loss ({self.label})" if self.label else "Training loss")
        plot_path = self.run_dir / "loss.png"
        fig.savefig(plot_path)
        plt.close(fig)
        return plot_path


__all__ = ["PlotAdapter"]
