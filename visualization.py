"""
TSP Solver - Visualization Module
Create visualizations of routes and solver progress.
"""

import matplotlib.pyplot as plt
import numpy as np
from typing import Sequence
from tsp_core import City


class TSPVisualizer:
    """Visualize TSP routes and optimization progress."""

    def __init__(self, figsize=(12, 8), show: bool = True):
        self.figsize = figsize
        self.show = show

    def _finish(self, fig, save_path: str, label: str):
        plt.tight_layout()

        if save_path:
            fig.savefig(save_path, dpi=150, bbox_inches='tight')
            print(f"{label} saved to {save_path}")

        if self.show:
            plt.show()
        else:
            plt.close(fig)

    def plot_route(
        self,
        route: Sequence[City],
        distance: float,
        title: str = "TSP Route",
        save_path: str = None,
        unit: str = "km",
    ):
        """
        Plot a closed route.

        Args:
            route: Cities in visiting order (as read from the input)
            distance: Route length shown in the title
            title: Plot title
            save_path: Optional path to save the figure
            unit: Distance unit; an empty unit means planar coordinates
        """
        fig, ax = plt.subplots(figsize=self.figsize)

        if len(route) == 0:
            ax.text(0.5, 0.5, 'No cities in route',
                   ha='center', va='center', fontsize=16)
            self._finish(fig, save_path, "Route")
            return fig

        geographic = bool(unit)
        if geographic:
            # Latitude on the vertical axis, longitude on the horizontal one
            horizontal = [city.y for city in route]
            vertical = [city.x for city in route]
        else:
            horizontal = [city.x for city in route]
            vertical = [city.y for city in route]

        ax.scatter(horizontal, vertical,
                  c='red', s=60, zorder=3, edgecolors='darkred', linewidth=1)
        ax.plot(horizontal + horizontal[:1], vertical + vertical[:1],
                'b-', linewidth=2, alpha=0.6, zorder=1)

        for city, h, v in zip(route, horizontal, vertical):
            ax.annotate(city.name, (h, v),
                       fontsize=8, xytext=(4, 4), textcoords='offset points')

        # Highlight start city
        ax.scatter(horizontal[:1], vertical[:1],
                  c='green', s=200, zorder=4,
                  marker='*', edgecolors='darkgreen', linewidth=1.5)

        ax.set_title(f"{title}\nTotal Distance: {distance:.2f} {unit}".rstrip(),
                    fontsize=14, weight='bold')
        ax.set_xlabel('Longitude' if geographic else 'x', fontsize=12)
        ax.set_ylabel('Latitude' if geographic else 'y', fontsize=12)
        ax.grid(True, alpha=0.3)

        self._finish(fig, save_path, "Route")
        return fig

    def plot_convergence(
        self,
        history: Sequence[float],
        title: str = "Convergence History",
        save_path: str = None,
        unit: str = "km",
    ):
        """
        Step plot of the best distance per generation.

        Generations that improved on their predecessor are marked, and the
        title reports the relative gain from generation 0.
        """
        fig, ax = plt.subplots(figsize=(10, 6))

        if len(history) == 0:
            ax.text(0.5, 0.5, 'No generations recorded',
                   ha='center', va='center', fontsize=16)
            self._finish(fig, save_path, "Convergence plot")
            return fig

        distances = np.asarray(history, dtype=float)
        generations = np.arange(len(distances))
        improved = np.flatnonzero(np.diff(distances) < 0) + 1

        ax.step(generations, distances, where='post', color='tab:blue',
                linewidth=2, label='Best distance')
        ax.scatter(generations[improved], distances[improved], color='tab:orange',
                   s=25, zorder=3, label=f'Improvements ({len(improved)})')

        initial, final = distances[0], distances[-1]
        gain = (initial - final) / initial * 100 if initial else 0.0
        suffix = f" {unit}" if unit else ""

        ax.set_xlabel('Generation', fontsize=12)
        ax.set_ylabel(f'Best Distance ({unit})' if unit else 'Best Distance', fontsize=12)
        ax.set_title(f"{title}\n{initial:.2f} -> {final:.2f}{suffix} ({gain:.1f}% shorter)",
                    fontsize=14, weight='bold')
        ax.set_xlim(0, max(len(distances) - 1, 1))
        ax.grid(True, alpha=0.3)
        ax.legend(loc='upper right', fontsize=10)

        self._finish(fig, save_path, "Convergence plot")
        return fig
