"""Diagnostic plots for Gamma-Poisson results.

Rendering is optional: install the ``plot`` extra for matplotlib.  Each
function draws on the given axes (or a fresh figure) and returns the axes,
so callers decide whether to show or save.
"""

from __future__ import annotations

from typing import Optional

from bayescompare.stats.gamma_poisson import GammaPoissonResult, PoissonFit, ZeroOneCheck


def _axes(ax):
    if ax is None:
        import matplotlib.pyplot as plt

        _, ax = plt.subplots()
    return ax


def plot_frequency_table(table: dict[int, int], title: str = "", ax=None):
    """Spike histogram of a value -> count table."""
    ax = _axes(ax)
    values = list(table.keys())
    counts = list(table.values())
    ax.vlines(values, 0, counts, linewidth=1)
    ax.set_title(title)
    ax.set_xlabel("value")
    ax.set_ylabel("count")
    return ax


def plot_poisson_fit(fit: PoissonFit, title: str = "", ax=None):
    """Fixed-rate Poisson pmf (red spikes) against empirical relative frequencies."""
    ax = _axes(ax)
    shifted = [x + 0.2 for x in fit.support]
    ax.vlines(shifted, 0, fit.pmf, colors="red", label=f"Poisson({fit.mean:g})")
    ax.plot(fit.support, fit.empirical, "o", color="black", label="observed")
    ax.set_title(title)
    ax.set_xlabel("count")
    ax.set_ylabel("probability")
    ax.legend()
    return ax


def plot_zero_one_check(check: ZeroOneCheck, title: str = "", ax=None):
    """Scatter of simulated (zeros, ones) pairs with the observed pair in red."""
    ax = _axes(ax)
    ax.scatter(check.zeros, check.ones, s=1, color="black", alpha=0.5)
    ax.scatter([check.observed_zeros], [check.observed_ones], color="red", zorder=3)
    ax.set_title(title)
    ax.set_xlabel("number of zeros")
    ax.set_ylabel("number of ones")
    return ax


def plot_gamma_poisson_diagnostics(result: GammaPoissonResult, fig=None):
    """Draw every diagnostic for ``result`` on one figure and return the figure."""
    import matplotlib.pyplot as plt

    n_panels = 3 + (2 if result.poisson_fit_1 is not None else 0)
    if fig is None:
        fig = plt.figure(figsize=(5 * n_panels, 4))
    axes = fig.subplots(1, n_panels)

    plot_frequency_table(result.y_tilde1_table, "y_tilde1", ax=axes[0])
    plot_frequency_table(result.y_tilde2_table, "y_tilde2", ax=axes[1])
    panel = 2
    fits: list[tuple[Optional[PoissonFit], str]] = [
        (result.poisson_fit_1, "group 1 Poisson fit"),
        (result.poisson_fit_2, "group 2 Poisson fit"),
    ]
    for fit, title in fits:
        if fit is not None:
            plot_poisson_fit(fit, title, ax=axes[panel])
            panel += 1
    plot_zero_one_check(result.zero_one_check, "zeros vs ones", ax=axes[panel])

    fig.tight_layout()
    return fig
