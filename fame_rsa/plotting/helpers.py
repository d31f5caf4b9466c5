#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Helper utilities for DSM figures.

Provides:
- style_spines(): Spine styling
- hide_ticks(): Hide tick marks and labels
- set_axis_title(): Bold title with optional subtitle
- run_tick_positions(): Midpoint and boundary of each run along a DSM axis
- save_figure(): Centralized figure saving
"""

from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import matplotlib.pyplot as plt


def style_spines(ax, visible_spines: Sequence[str] = ('left', 'bottom'), params: dict = None):
    """
    Show only the given spines, with the shared line width.
    """
    from .style import PLOT_PARAMS
    if params is None:
        params = PLOT_PARAMS

    for spine_loc in ['left', 'right', 'top', 'bottom']:
        spine = ax.spines[spine_loc]
        spine.set_visible(spine_loc in visible_spines)
        if spine_loc in visible_spines:
            spine.set_linewidth(params['spine_linewidth'])
            spine.set_edgecolor('black')


def hide_ticks(ax, hide_x: bool = True, hide_y: bool = True):
    """
    Fully hide tick marks and labels on the given axes.
    """
    if hide_x:
        ax.tick_params(axis='x', which='both', bottom=False, top=False, labelbottom=False)
    if hide_y:
        ax.tick_params(axis='y', which='both', left=False, right=False, labelleft=False)


def set_axis_title(
    ax: plt.Axes,
    title: Optional[str] = None,
    subtitle: Optional[str] = None,
    params: dict = None
) -> None:
    """
    Set title (bold) and optional subtitle (normal weight) above the plot area.
    """
    from .style import PLOT_PARAMS
    if params is None:
        params = PLOT_PARAMS

    pad_pts = params.get('title_pad', 10.0)

    if title and subtitle:
        ax.set_title(f"{title}\n", fontsize=params['font_size_title'],
                     fontweight='bold', pad=pad_pts)
        ax.text(0.5, 1.0, subtitle, transform=ax.transAxes,
                fontsize=params['font_size_label'], ha='center', va='bottom')
    elif title:
        ax.set_title(title, fontsize=params['font_size_title'], fontweight='bold', pad=pad_pts)
    elif subtitle:
        ax.set_title(subtitle, fontsize=params['font_size_label'], pad=pad_pts)


def run_tick_positions(chunks: Sequence[int]) -> Tuple[List[float], List[str], List[int]]:
    """
    Tick positions and labels for runs along a trial-ordered DSM axis.

    Trials of a run are assumed contiguous (design-matrix order).

    Parameters
    ----------
    chunks : sequence of int
        Run index per trial

    Returns
    -------
    centers : list of float
        Midpoint of each run, in heatmap cell coordinates
    labels : list of str
        'Sn(k)' per run
    boundaries : list of int
        Cell index where each run after the first starts

    Example
    -------
    >>> run_tick_positions([1, 1, 2, 2, 2])
    ([1.0, 3.5], ['Sn(1)', 'Sn(2)'], [2])
    """
    chunks = np.asarray(chunks).ravel()
    if chunks.size == 0:
        return [], [], []

    starts = np.flatnonzero(np.r_[True, chunks[1:] != chunks[:-1]])
    ends = np.r_[starts[1:], chunks.size]

    centers = [float((s + e) / 2.0) for s, e in zip(starts, ends)]
    labels = [f"Sn({chunks[s]})" for s in starts]
    boundaries = [int(s) for s in starts[1:]]
    return centers, labels, boundaries


def save_figure(
    fig: plt.Figure,
    path_stem: Union[str, Path],
    formats: Tuple[str, ...] = ('png',),
    dpi: Optional[int] = None,
    params: dict = None
) -> List[Path]:
    """
    Save a figure in one or more formats and close it.

    Parameters
    ----------
    fig : plt.Figure
        Figure to save
    path_stem : str or Path
        Output path; its suffix is replaced per format
    formats : tuple, default=('png',)
        Output formats
    dpi : int, optional
        Raster resolution (default: params['dpi'])
    params : dict, optional
        PLOT_PARAMS override

    Returns
    -------
    list of Path
        Saved file paths
    """
    from .style import PLOT_PARAMS
    if params is None:
        params = PLOT_PARAMS

    path_stem = Path(path_stem)
    path_stem.parent.mkdir(parents=True, exist_ok=True)

    save_kwargs = {
        'bbox_inches': 'tight',
        'pad_inches': 0.1,
        'facecolor': params['facecolor'],
        'dpi': dpi if dpi is not None else params['dpi'],
    }

    saved_files = []
    for fmt in formats:
        out = path_stem.with_suffix(f'.{fmt}')
        fig.savefig(out, format=fmt, **save_kwargs)
        saved_files.append(out)

    plt.close(fig)
    return saved_files
