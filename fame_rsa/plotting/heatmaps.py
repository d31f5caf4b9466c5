#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
DSM heatmap plotting.

Provides:
- plot_dsm(): Standalone DSM figure
- plot_dsm_on_ax(): DSM on existing axes (for panels)
- add_category_bars(): Colored trial-type bars along DSM axes
"""

from pathlib import Path
from typing import List, Optional, Sequence

import numpy as np
import matplotlib.pyplot as plt
import seaborn as sns


def add_category_bars(
    ax,
    colors: Sequence[str],
    axis: str = 'both',
    params: dict = None
):
    """
    Add colored category bars outside the DSM heatmap.

    Consecutive trials with the same color are drawn as one rectangle.

    Parameters
    ----------
    ax : matplotlib.axes.Axes
        Axes containing the DSM heatmap
    colors : sequence of str
        Color for each trial, in DSM order
    axis : str, default='both'
        'x', 'y', or 'both'
    params : dict, optional
        PLOT_PARAMS override
    """
    from .style import PLOT_PARAMS
    if params is None:
        params = PLOT_PARAMS

    if len(colors) == 0:
        return

    groups = []
    start = 0
    for i in range(1, len(colors) + 1):
        if i == len(colors) or colors[i] != colors[start]:
            groups.append((start, i, colors[start]))
            start = i

    thickness = params['dsm_category_bar_thickness']
    offset = params['dsm_category_bar_offset']

    for g_start, g_end, color in groups:
        if axis in ('x', 'both'):
            ax.add_patch(plt.Rectangle(
                (g_start, offset), g_end - g_start, thickness,
                facecolor=color, edgecolor='none', clip_on=False,
                transform=ax.get_xaxis_transform(),
            ))
        if axis in ('y', 'both'):
            ax.add_patch(plt.Rectangle(
                (offset, g_start), thickness, g_end - g_start,
                facecolor=color, edgecolor='none', clip_on=False,
                transform=ax.get_yaxis_transform(),
            ))


def plot_dsm_on_ax(
    ax: plt.Axes,
    dsm: np.ndarray,
    chunks: Optional[Sequence[int]] = None,
    colors: Optional[Sequence[str]] = None,
    title: Optional[str] = None,
    subtitle: Optional[str] = None,
    cmap=None,
    vmin: Optional[float] = None,
    vmax: Optional[float] = None,
    center: Optional[float] = None,
    show_colorbar: bool = True,
    colorbar_label: str = "Dissimilarity",
    params: dict = None
) -> None:
    """
    Plot a trial × trial matrix on existing axes.

    NaN entries (e.g., within-run pairs of the target DSM) are left unpainted
    and show the ``dsm_nan_color`` background.

    Parameters
    ----------
    ax : plt.Axes
        Axes to plot on
    dsm : np.ndarray
        Square matrix (n_trials × n_trials)
    chunks : sequence of int, optional
        Run index per trial. When given, ticks read 'Sn(k)' at each run's
        midpoint and run boundaries are outlined.
    colors : sequence of str, optional
        Color per trial for category bars
    title, subtitle : str, optional
        Axis title and subtitle
    cmap : colormap, optional
        Default CMAP_DSM
    vmin, vmax, center : float, optional
        Color scaling, passed to seaborn
    show_colorbar : bool, default=True
    colorbar_label : str, default="Dissimilarity"
    params : dict, optional
        PLOT_PARAMS override
    """
    from .style import PLOT_PARAMS
    from .colors import CMAP_DSM
    from .helpers import hide_ticks, run_tick_positions, set_axis_title, style_spines
    if params is None:
        params = PLOT_PARAMS

    dsm = np.asarray(dsm, dtype=float)
    if dsm.ndim != 2 or dsm.shape[0] != dsm.shape[1]:
        raise ValueError(f"Expected a square matrix, got shape {dsm.shape}")
    if cmap is None:
        cmap = CMAP_DSM

    nan_mask = ~np.isfinite(dsm)
    ax.set_facecolor(params['dsm_nan_color'])

    heatmap = sns.heatmap(
        dsm,
        mask=nan_mask,
        cmap=cmap,
        vmin=vmin,
        vmax=vmax,
        center=center,
        cbar=show_colorbar,
        cbar_kws={'label': colorbar_label, 'shrink': 0.8} if show_colorbar else None,
        xticklabels=False,
        yticklabels=False,
        square=True,
        ax=ax,
    )

    if show_colorbar:
        cbar = heatmap.collections[0].colorbar
        cbar.ax.tick_params(labelsize=params['font_size_tick'])
        cbar.set_label(colorbar_label, fontsize=params['font_size_label'])

    if chunks is not None:
        centers, labels, boundaries = run_tick_positions(chunks)
        ax.set_xticks(centers)
        ax.set_xticklabels(labels, rotation=90, fontsize=params['font_size_tick'])
        ax.set_yticks(centers)
        ax.set_yticklabels(labels, rotation=0, fontsize=params['font_size_tick'])
        for b in boundaries:
            ax.axhline(b, color='white', linewidth=params['run_boundary_linewidth'])
            ax.axvline(b, color='white', linewidth=params['run_boundary_linewidth'])
    else:
        hide_ticks(ax, hide_x=True, hide_y=True)

    if colors is not None:
        add_category_bars(ax, colors, axis='both', params=params)

    if title or subtitle:
        set_axis_title(ax, title, subtitle=subtitle, params=params)

    style_spines(ax, visible_spines=['left', 'right', 'top', 'bottom'], params=params)


def plot_dsm(
    dsm: np.ndarray,
    title: str,
    output_path: Optional[Path] = None,
    chunks: Optional[Sequence[int]] = None,
    colors: Optional[Sequence[str]] = None,
    subtitle: Optional[str] = None,
    cmap=None,
    vmin: Optional[float] = None,
    vmax: Optional[float] = None,
    center: Optional[float] = None,
    colorbar_label: str = "Dissimilarity",
    params: dict = None
) -> plt.Figure:
    """
    Plot a trial × trial matrix as a standalone figure.

    Parameters
    ----------
    dsm : np.ndarray
        Square matrix to plot
    title : str
        Figure title
    output_path : Path, optional
        Where to save the figure (PNG unless the suffix says otherwise).
        When given, the figure is closed after saving.
    chunks, colors, subtitle, cmap, vmin, vmax, center, colorbar_label
        See ``plot_dsm_on_ax``
    params : dict, optional
        PLOT_PARAMS override

    Returns
    -------
    plt.Figure

    Example
    -------
    >>> fig = plot_dsm(target_dsm, "Target DSM", chunks=ds.sa['chunks'],
    ...                output_path=Path("sub-001_roi-wb_desc-target_dsm.png"))
    """
    from .style import PLOT_PARAMS, apply_figure_rc, figure_size
    from .helpers import save_figure
    if params is None:
        params = PLOT_PARAMS

    apply_figure_rc(params)
    fig, ax = plt.subplots(figsize=figure_size(columns=1, aspect=1.0),
                           facecolor=params['facecolor'])

    plot_dsm_on_ax(
        ax=ax,
        dsm=dsm,
        chunks=chunks,
        colors=colors,
        title=title,
        subtitle=subtitle,
        cmap=cmap,
        vmin=vmin,
        vmax=vmax,
        center=center,
        colorbar_label=colorbar_label,
        params=params,
    )

    if output_path is not None:
        output_path = Path(output_path)
        fmt = output_path.suffix.lstrip('.') or 'png'
        save_figure(fig, output_path, formats=(fmt,), params=params)

    return fig


__all__: List[str] = [
    'add_category_bars',
    'plot_dsm_on_ax',
    'plot_dsm',
]
