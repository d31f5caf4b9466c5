"""
Plotting utilities for trial-by-trial DSM figures.

Organization:
- style.py: PLOT_PARAMS, rcParams, figure sizing
- colors.py: Colormaps and trial-type palette
- helpers.py: Spines, titles, run ticks, saving
- heatmaps.py: DSM heatmaps
"""

# Style and configuration
from .style import (
    PLOT_PARAMS,
    apply_figure_rc,
    figure_size,
)

# Colors
from .colors import (
    CMAP_BRAIN,
    CMAP_DSM,
    COLORS_TRIAL_TYPE,
    trial_type_colors,
)

# Helpers
from .helpers import (
    style_spines,
    hide_ticks,
    set_axis_title,
    run_tick_positions,
    save_figure,
)

# Heatmaps
from .heatmaps import (
    add_category_bars,
    plot_dsm_on_ax,
    plot_dsm,
)

__all__ = [
    'PLOT_PARAMS',
    'apply_figure_rc',
    'figure_size',
    'CMAP_BRAIN',
    'CMAP_DSM',
    'COLORS_TRIAL_TYPE',
    'trial_type_colors',
    'style_spines',
    'hide_ticks',
    'set_axis_title',
    'run_tick_positions',
    'save_figure',
    'add_category_bars',
    'plot_dsm_on_ax',
    'plot_dsm',
]
