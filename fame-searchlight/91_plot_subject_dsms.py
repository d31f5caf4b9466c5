#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Plot Subject DSMs
=================

Re-draws the target DSM and the pattern-similarity matrix of every subject
from the TSVs written by 01_rsa_searchlight.py, without re-running the
searchlight. Useful after changing figure styling.

Inputs
------
- RSA_Results/<subject>/sub-<subject>_roi-<roi>_trials.tsv
- RSA_Results/<subject>/sub-<subject>_roi-<roi>_target-dsm.tsv
- RSA_Results/<subject>/sub-<subject>_roi-<roi>_pattern-similarity.tsv (optional)

Outputs
-------
- Same directory, .png next to each TSV
- results/plot_subject_dsms/: log and a copy of this script

Usage
-----
python fame-searchlight/91_plot_subject_dsms.py
"""

import os
import sys
from pathlib import Path

# Add parent (repo root) to sys.path for 'fame_rsa'
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
script_dir = Path(__file__).parent

import matplotlib
matplotlib.use('Agg')

import pandas as pd

from fame_rsa import CONFIG, setup_analysis, log_script_end, load_matrix_tsv
from fame_rsa.io_utils import subject_artifact_path
from fame_rsa.plotting import CMAP_BRAIN, plot_dsm, trial_type_colors


config, output_dir, logger = setup_analysis(
    analysis_name="plot_subject_dsms",
    results_base=script_dir / "results",
    script_file=__file__,
    suppress_warnings=CONFIG['SUPPRESS_WARNINGS'],
)

results_root = Path(config['RSA_RESULTS'])
if not results_root.is_dir():
    raise FileNotFoundError(f"Missing RSA results directory: {results_root}")

roi_label = config['ROI_LABEL']
subject_dirs = sorted(d for d in results_root.iterdir() if d.is_dir())
logger.info(f"Found {len(subject_dirs)} subject directories in {results_root}")

n_plotted = 0
for subject_dir in subject_dirs:
    subject_id = subject_dir.name
    trials_path = subject_artifact_path(subject_id, subject_dir, roi_label, 'trials', 'tsv')
    dsm_path = subject_artifact_path(subject_id, subject_dir, roi_label, 'target-dsm', 'tsv')
    if not (trials_path.is_file() and dsm_path.is_file()):
        logger.warning(f"{subject_id}: no saved trial table / target DSM, skipping")
        continue

    trials = pd.read_csv(trials_path, sep='\t')
    chunks = trials['chunks'].to_numpy()
    colors = trial_type_colors(trials['trial_type_code'].to_numpy(), config['TRIAL_TYPES'])

    target_dsm = load_matrix_tsv(dsm_path).to_numpy(dtype=float)
    plot_dsm(
        target_dsm,
        title=f"Target DSM: {subject_id}",
        subtitle="|trial type i - trial type j|, within-run pairs excluded",
        output_path=dsm_path.with_suffix('.png'),
        chunks=chunks,
        colors=colors,
    )

    sim_path = subject_artifact_path(subject_id, subject_dir, roi_label, 'pattern-similarity', 'tsv')
    if sim_path.is_file():
        similarity = load_matrix_tsv(sim_path).to_numpy(dtype=float)
        plot_dsm(
            similarity,
            title=f"Pattern similarity: {subject_id}",
            subtitle=f"ROI {roi_label}, Pearson r",
            output_path=sim_path.with_suffix('.png'),
            chunks=chunks,
            colors=colors,
            cmap=CMAP_BRAIN,
            vmin=-1.0,
            vmax=1.0,
            center=0.0,
            colorbar_label="Correlation (r)",
        )

    n_plotted += 1
    logger.info(f"{subject_id}: figures written to {subject_dir}")

logger.info(f"Plotted DSMs for {n_plotted} subjects")
log_script_end(logger)
