#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Plotting style configuration for DSM figures.

Provides:
- PLOT_PARAMS: Centralized parameter dictionary
- apply_figure_rc(): Apply rcParams to matplotlib/seaborn
- figure_size(): Figure dimensions from journal column widths
"""

from typing import Literal, Optional, Tuple
import warnings

import matplotlib
import seaborn as sns

# =============================================================================
# Physical Constants
# =============================================================================

MM_TO_INCHES = 1 / 25.4
_SINGLE_COL_MM = 89.0
_DOUBLE_COL_MM = 183.0
_MAX_HEIGHT_MM = 170.0

# =============================================================================
# PLOT_PARAMS Dictionary
# =============================================================================

_BASE_LINEWIDTH = 0.3  # points

PLOT_PARAMS = {
    # Font sizes
    'font_size_title': 7.0,
    'font_size_label': 6.0,
    'font_size_tick': 5.0,
    'font_size_legend': 5.0,

    # Line widths
    'base_linewidth': _BASE_LINEWIDTH,
    'spine_linewidth': _BASE_LINEWIDTH,
    'axes_linewidth': _BASE_LINEWIDTH,
    'run_boundary_linewidth': _BASE_LINEWIDTH * 2,
    'tick_major_size': 3.0,
    'tick_major_width': _BASE_LINEWIDTH,

    # Spacing
    'title_pad': 10.0,

    # Export
    'dpi': 300,
    'facecolor': 'white',

    # DSM-specific
    'dsm_category_bar_offset': -0.04,
    'dsm_category_bar_thickness': 0.025,
    'dsm_nan_color': '#d9d9d9',
}


def apply_figure_rc(params: dict = None) -> None:
    """
    Apply the shared rcParams to matplotlib/seaborn.

    Sets font family and sizes, line widths, tick geometry, white
    backgrounds, editable text in vector output and constrained layout.

    Parameters
    ----------
    params : dict, optional
        PLOT_PARAMS override. If None, uses global PLOT_PARAMS.
    """
    if params is None:
        params = PLOT_PARAMS

    rc = matplotlib.rcParams
    rc['font.family'] = 'sans-serif'
    rc['font.sans-serif'] = ['Arial', 'Helvetica', 'DejaVu Sans']

    rc['font.size'] = params['font_size_label']
    rc['axes.titlesize'] = params['font_size_title']
    rc['axes.labelsize'] = params['font_size_label']
    rc['xtick.labelsize'] = params['font_size_tick']
    rc['ytick.labelsize'] = params['font_size_tick']
    rc['legend.fontsize'] = params['font_size_legend']

    rc['axes.linewidth'] = params['axes_linewidth']
    rc['xtick.major.width'] = params['tick_major_width']
    rc['ytick.major.width'] = params['tick_major_width']
    rc['xtick.major.size'] = params['tick_major_size']
    rc['ytick.major.size'] = params['tick_major_size']

    rc['axes.grid'] = False
    rc['savefig.transparent'] = False
    rc['figure.facecolor'] = params['facecolor']
    rc['axes.facecolor'] = 'white'

    rc['pdf.fonttype'] = 42
    rc['svg.fonttype'] = 'none'

    rc['figure.constrained_layout.use'] = True
    rc['savefig.dpi'] = params['dpi']

    sns.set_style('ticks', {
        'axes.grid': False,
        'axes.linewidth': params['axes_linewidth'],
    })


def figure_size(
    columns: Literal[1, 2],
    height_mm: Optional[float] = None,
    aspect: Optional[float] = None
) -> Tuple[float, float]:
    """
    Compute figure size in inches from a column width.

    Parameters
    ----------
    columns : 1 or 2
        Figure width: 1=89mm (single column), 2=183mm (double column)
    height_mm : float, optional
        Figure height in millimeters (capped at 170mm). Overrides ``aspect``.
    aspect : float, optional
        Width/height ratio, used when ``height_mm`` is None

    Returns
    -------
    figsize : (width_inches, height_inches)

    Examples
    --------
    >>> figure_size(columns=1, aspect=1.0)
    (3.5039..., 3.5039...)
    """
    if columns == 1:
        width_mm = _SINGLE_COL_MM
    elif columns == 2:
        width_mm = _DOUBLE_COL_MM
    else:
        raise ValueError(f"columns must be 1 or 2, got {columns}")

    if height_mm is None:
        height_mm = width_mm / (aspect if aspect is not None else 1.618)

    if height_mm > _MAX_HEIGHT_MM:
        warnings.warn(f"height_mm={height_mm:.1f} exceeds {_MAX_HEIGHT_MM}mm; capping.")
        height_mm = _MAX_HEIGHT_MM

    return (width_mm * MM_TO_INCHES, height_mm * MM_TO_INCHES)
