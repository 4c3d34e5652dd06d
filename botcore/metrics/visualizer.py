#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StrategyTemplateEngine - Fitness Visualization

Charts for a run's balance history:
- Normalized balance curve with its least-squares line
- Extrapolation of the line to twice the history length
"""

from pathlib import Path
from typing import Any, Optional, Tuple

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402

from botcore.metrics.fitness import FitnessEvaluator, extract_balances  # noqa: E402


class FitnessVisualizer:
    """Plots a balance history against the line the fitness score is built on."""

    def __init__(self, figsize: Tuple[int, int] = (12, 6)):
        self.figsize = figsize

    def plot_fitness(
        self,
        history: Any,
        title: str = 'Balance Fitness',
        save_path: Optional[str] = None,
        show: bool = False
    ) -> Optional['plt.Figure']:
        """
        Plot the normalized curve, fitted line and extrapolation.

        Args:
            history: Balance history in any shape accepted by the fitness function
            title: Chart title
            save_path: Optional output image path
            show: Whether to display the figure

        Returns:
            matplotlib Figure, or None when the history is too short to fit
        """
        result = FitnessEvaluator().evaluate(history)
        if not result.accepted:
            return None

        balances = np.asarray(extract_balances(history), dtype=float)
        normalized = balances / balances[0] - 1
        n = len(normalized)

        x = np.arange(n)
        x_ext = np.arange(2 * n + 1)

        fig, ax = plt.subplots(1, 1, figsize=self.figsize)
        ax.plot(x, normalized, 'b-', linewidth=1.5, label='Balance (relative)')
        ax.plot(x_ext, result.fit.slope * x_ext + result.fit.intercept,
                'r--', linewidth=1.0, label='Least squares')
        ax.scatter([2 * n], [result.extrapolated], color='red', zorder=3,
                   label=f'Extrapolated {result.extrapolated:.4f}')
        ax.axhline(y=0, color='gray', linestyle=':', alpha=0.5)
        ax.set_title(f"{title} (score={result.score:.4f}, n={n})")
        ax.set_xlabel('Closed trade #')
        ax.set_ylabel('Return vs. start')
        ax.legend(loc='upper left')
        ax.grid(True, alpha=0.3)
        fig.tight_layout()

        if save_path:
            Path(save_path).parent.mkdir(parents=True, exist_ok=True)
            fig.savefig(save_path, dpi=120)
        if show:
            plt.show()
        else:
            plt.close(fig)
        return fig
