"""
Visualization Module
====================

Style setup and the plots shared by the analysis scripts: Aiken's V
intervals per dimension, scree plots and matrix heatmaps.
"""

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend for saving plots

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from typing import Optional

from . import config


def setup_style() -> None:
    """
    Configure matplotlib and seaborn style settings.

    Sets:
    - Seaborn whitegrid style
    - Consistent font sizes
    """
    plt.style.use('seaborn-v0_8-whitegrid')
    plt.rcParams.update({
        'figure.figsize': (10, 6),
        'font.size': 10,
        'axes.titlesize': 12,
        'axes.labelsize': 11,
        'legend.fontsize': 10,
    })


def get_colors() -> dict:
    """
    Return consistent color palette for plots.

    Returns:
        Dictionary with named colors
    """
    return {
        'primary': '#3498db',      # Blue
        'accent': '#e74c3c',       # Red
        'neutral': '#95a5a6',      # Gray
        'highlight': '#f39c12',    # Orange
    }


def get_cmap(style: str = 'diverging') -> str:
    """
    Return appropriate colormap name.

    Parameters:
        style: 'diverging' for correlation/loadings, 'sequential' for ratios

    Returns:
        Colormap name string
    """
    if style == 'diverging':
        return 'RdBu_r'
    elif style == 'sequential':
        return 'Blues'
    else:
        return 'viridis'


def create_figure(nrows: int = 1, ncols: int = 1, figsize: Optional[tuple] = None) -> tuple:
    """
    Create figure with subplots using consistent settings.

    Parameters:
        nrows: Number of subplot rows
        ncols: Number of subplot columns
        figsize: Optional figure size (width, height)

    Returns:
        Tuple of (fig, axes)
    """
    if figsize is None:
        figsize = (5 * ncols, 5 * nrows)

    fig, axes = plt.subplots(nrows, ncols, figsize=figsize)
    fig.set_facecolor('white')
    return fig, axes


def plot_aiken_intervals(
    results: pd.DataFrame,
    dimension: str,
    ax: Optional[plt.Axes] = None,
    dimension_col: Optional[str] = None,
    item_col: str = 'item'
) -> plt.Axes:
    """
    Plot Aiken's V point estimates with CI bars for one dimension.

    Dashed reference lines mark config.AIKEN_MIN_ACCEPTABLE (red) and
    config.AIKEN_GOOD (gray). Items are listed top to bottom in table order.

    Parameters:
        results: Output from aiken.compute_item_statistics()
        dimension: Dimension to plot
        ax: Optional axes to draw on
        dimension_col: Dimension column. Defaults to config.DIMENSION_COL
        item_col: Item identifier column used for the tick labels

    Returns:
        The axes drawn on
    """
    if dimension_col is None:
        dimension_col = config.DIMENSION_COL

    subset = results[results[dimension_col] == dimension]
    if subset.empty:
        raise ValueError(f"No results for dimension '{dimension}'")

    # Reversed so the first item is drawn at the top
    subset = subset.iloc[::-1]

    if ax is None:
        _, ax = create_figure(figsize=(6, max(3, 0.35 * len(subset) + 1)))

    colors = get_colors()
    y = np.arange(len(subset))
    v = subset['V'].to_numpy()

    ax.errorbar(
        v, y,
        xerr=[v - subset['ci_lower'].to_numpy(), subset['ci_upper'].to_numpy() - v],
        fmt='o', color=colors['primary'], ecolor=colors['primary'], capsize=3
    )
    ax.axvline(config.AIKEN_GOOD, color=colors['neutral'], linestyle='--')
    ax.axvline(config.AIKEN_MIN_ACCEPTABLE, color=colors['accent'], linestyle='--')

    for xi, yi in zip(v, y):
        ax.annotate(f"{xi:.2f}", (xi, yi), textcoords='offset points',
                    xytext=(0, 6), ha='center', fontsize=8)

    ax.set_yticks(y)
    ax.set_yticklabels(subset[item_col].tolist())
    ax.set_xlim(min(0.4, float(subset['ci_lower'].min()) - 0.05), 1.0)
    ax.set_xlabel(f"Aiken's V ({str(dimension).capitalize()})")
    ax.set_ylabel('Item')

    return ax


def plot_aiken_by_dimension(
    results: pd.DataFrame,
    dimensions: Optional[list[str]] = None,
    dimension_col: Optional[str] = None,
    item_col: str = 'item'
) -> plt.Figure:
    """
    Side-by-side Aiken's V interval plots, one panel per dimension.

    Parameters:
        results: Output from aiken.compute_item_statistics()
        dimensions: Dimensions to plot. Defaults to all, in table order
        dimension_col: Dimension column. Defaults to config.DIMENSION_COL
        item_col: Item identifier column used for the tick labels

    Returns:
        Matplotlib figure

    Raises:
        ValueError: no dimension to plot
    """
    if dimension_col is None:
        dimension_col = config.DIMENSION_COL
    if dimensions is None:
        dimensions = list(pd.unique(results[dimension_col]))
    if not dimensions:
        raise ValueError("No Aiken's V results to plot")

    n_items = max(int((results[dimension_col] == d).sum()) for d in dimensions)
    fig, axes = create_figure(1, len(dimensions),
                              figsize=(6 * len(dimensions), max(3, 0.35 * n_items + 1)))
    axes = np.atleast_1d(axes)

    for ax, dimension in zip(axes, dimensions):
        plot_aiken_intervals(results, dimension, ax=ax,
                             dimension_col=dimension_col, item_col=item_col)

    fig.tight_layout()
    return fig


def plot_scree(
    eigenvalues: np.ndarray,
    random_eigenvalues: Optional[np.ndarray] = None
) -> plt.Figure:
    """
    Scree plot with Kaiser line and optional parallel-analysis curve.

    Parameters:
        eigenvalues: Observed eigenvalues, descending
        random_eigenvalues: Optional eigenvalue threshold from parallel analysis

    Returns:
        Matplotlib figure
    """
    colors = get_colors()
    fig, ax = create_figure(figsize=(10, 6))
    factors = range(1, len(eigenvalues) + 1)

    ax.plot(factors, eigenvalues, 'o-', color=colors['primary'],
            linewidth=2, markersize=8, label='Observed')
    if random_eigenvalues is not None:
        ax.plot(factors, random_eigenvalues, 's--', color=colors['highlight'],
                label='Parallel analysis')
    ax.axhline(y=1, color=colors['accent'], linestyle='--', label='Kaiser Criterion (eigenvalue=1)')
    ax.set_xlabel('Factor Number')
    ax.set_ylabel('Eigenvalue')
    ax.set_title('Scree Plot')
    ax.set_xticks(list(factors))
    ax.legend()

    return fig


def plot_heatmap(
    matrix: pd.DataFrame,
    title: str,
    style: str = 'diverging'
) -> plt.Figure:
    """
    Annotated heatmap for correlation, loading or HTMT matrices.

    Parameters:
        matrix: Square or rectangular DataFrame
        title: Plot title
        style: Colormap style passed to get_cmap()

    Returns:
        Matplotlib figure
    """
    n_rows, n_cols = matrix.shape
    fig, ax = create_figure(figsize=(max(6, 0.6 * n_cols + 3), max(5, 0.4 * n_rows + 2)))

    kwargs = {'vmin': -1, 'vmax': 1, 'center': 0} if style == 'diverging' else {'vmin': 0, 'vmax': 1}
    sns.heatmap(matrix, annot=n_cols <= 12, fmt='.2f', cmap=get_cmap(style),
                linewidths=0.5, ax=ax, **kwargs)
    ax.set_title(title)

    return fig
