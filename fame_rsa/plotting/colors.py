#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Color palettes and colormaps for DSM figures.

Provides:
- CMAP_BRAIN: Diverging colormap for similarity matrices (cyan-purple, center=0)
- CMAP_DSM: Sequential colormap for dissimilarity matrices
- COLORS_TRIAL_TYPE: One colorblind-safe color per trial type
- trial_type_colors(): Per-trial colors from category codes
"""

from typing import List, Mapping, Sequence, Tuple

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.colors import LinearSegmentedColormap


def _make_brain_cmap():
    """
    Diverging colormap: cyan/teal below zero, RdPu above.

    Use with ``center=0`` and symmetric vmin/vmax.
    """
    center = plt.cm.RdPu(0)[:3]
    neg = np.linspace([0.0, 0.5, 0.7], center, 256)
    pos = plt.cm.RdPu(np.linspace(0, 1, 256))[:, :3]
    return LinearSegmentedColormap.from_list("brain_rdm", np.vstack((neg, pos)))


CMAP_BRAIN = _make_brain_cmap()

# Dissimilarities are non-negative
CMAP_DSM = 'mako_r'

# Wong (2011) colorblind-safe subset, keyed by trial-type name
COLORS_TRIAL_TYPE = {
    'target': '#0072B2',
    'relatedLure': '#E69F00',
    'unrelatedLure': '#009E73',
    'unlabeled': '#BBBBBB',
}


def trial_type_colors(
    codes: Sequence[int],
    trial_types: Mapping[str, Tuple[str, int]],
    palette: Mapping[str, str] = None,
) -> List[str]:
    """
    Map category codes to colors, in trial order.

    Parameters
    ----------
    codes : sequence of int
        Category code per trial (0 = unlabeled)
    trial_types : mapping
        name -> (substring, code), e.g. CONFIG['TRIAL_TYPES']
    palette : mapping, optional
        name -> color (default: COLORS_TRIAL_TYPE)

    Returns
    -------
    list of str
    """
    if palette is None:
        palette = COLORS_TRIAL_TYPE

    by_code = {code: palette.get(name, COLORS_TRIAL_TYPE['unlabeled'])
               for name, (_, code) in trial_types.items()}
    fallback = palette.get('unlabeled', COLORS_TRIAL_TYPE['unlabeled'])
    return [by_code.get(int(c), fallback) for c in codes]
