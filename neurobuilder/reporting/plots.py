"""Training curve figure for a run directory."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Mapping

PLOT_NAME = "loss.png"


class PlotAdapter:
    """Epoch callback that renders the run's curves when the run ends.

    The loss goes in the first panel. Any other metric reported by the
    trainer (``accuracy``, ``mae``, ``rmse``) gets a second panel. Nothing is
    collected or written unless ``enable_plots`` is set.
    """

    def __init__(self, run_dir: str | Path, enable_plots: bool = False):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self.epochs: List[int] = []
        self.series: Dict[str, List[float]] = {}

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        if not self.enable_plots:
            return
        self.epochs.append(int(epoch))
        for name, value in metrics.items():
            if isinstance(value, (int, float)):
                self.series.setdefault(name, []).append(float(value))

    __call__ = on_epoch

    def close(self, *, cancelled: bool = False) -> str | None:
        """Write the figure and return its path, or ``None`` when disabled or empty."""

        if not self.enable_plots or not self.epochs:
            return None
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # headless backend must be chosen first

        extras = sorted(name for name in self.series if name != "loss")
        fig, axes = plt.subplots(1, 2 if extras else 1, figsize=(10 if extras else 6, 4))
        loss_ax = axes[0] if extras else axes
        loss_ax.plot(self.epochs, self.series.get("loss", []), label="loss")
        loss_ax.set_xlabel("Epoch")
        loss_ax.set_ylabel("MSE")
        if extras:
            metric_ax = axes[1]
            for name in extras:
                metric_ax.plot(self.epochs, self.series[name], label=name)
            metric_ax.set_xlabel("Epoch")
            metric_ax.legend()

        last = self.epochs[-1]
        if cancelled:
            loss_ax.axvline(last, color="red", linestyle="--")
            fig.suptitle(f"Training cancelled at epoch {last}")
        else:
            fig.suptitle(f"Training over {last} epochs")

        self.run_dir.mkdir(parents=True, exist_ok=True)
        plot_path = self.run_dir / PLOT_NAME
        fig.savefig(plot_path)
        plt.close(fig)
        return str(plot_path)


__all__ = ["PLOT_NAME", "PlotAdapter"]
