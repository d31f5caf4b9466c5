#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Subject-level RSA Searchlight — Trial-Type Dissimilarity

METHODS
=======

Rationale
---------
Representational similarity analysis (RSA) tests whether the geometry of
neural activity patterns follows a hypothesized dissimilarity structure. Here
the hypothesis is ordinal: target, related lure and unrelated lure trials lie
on a line, so that two trials are as dissimilar as their trial-type codes are
far apart. A searchlight maps where in the brain local patterns follow this
structure.

Data
----
Single-trial beta estimates from a least-squares-all GLM estimated in SPM
(one regressor per trial; models/SingleTrialModel/<subject>/SPM.mat). Only the
first basis function of each trial regressor ('Sn(<run>) <label>*bf(1)') is
used; nuisance and constant regressors are ignored. Betas are restricted to a
whole-brain mask (ROIs/rrwholebrain_mask.nii, resliced to the functional
space). Voxels with any non-finite beta or zero variance across trials are
removed.

Target DSM
----------
Each trial receives a code from substrings of its regressor name:
trialtype-target = 1, trialtype-relatedLure = 2, trialtype-unrelatedLure = 3,
anything else = 0. The target dissimilarity between trials i and j is
|code_i - code_j|. Pairs of trials from the same run are excluded (NaN) so
that run-specific signal cannot drive the correlation; the diagonal is 0.

Searchlight
-----------
Around every voxel, a sphere of the 100 nearest voxels (Euclidean distance in
voxel space) is formed. Within each sphere:
1. Each voxel is centered (mean across trials subtracted).
2. The neural DSM is the correlation distance (1 - Pearson r) between every
   pair of trial patterns (scipy.spatial.distance.pdist).
3. The neural DSM is Spearman-correlated with the target DSM across all
   cross-run trial pairs.
The resulting rho is assigned to the sphere's center voxel.

Outputs
-------
Per subject, in RSA_Results/<subject>/:
- sub-<subject>_trialtype_searchlight.nii: Spearman rho per voxel (0 outside
  the usable mask)
- sub-<subject>_roi-<roi>_trials.tsv: trial table (label, run, trial-type code)
- sub-<subject>_roi-<roi>_target-dsm.tsv / .png: target DSM
- sub-<subject>_roi-<roi>_pattern-similarity.tsv / .png: trial × trial
  pattern correlation within the mask
Batch log and a copy of this script: results/rsa_searchlight/.

Group-level inference on the subject maps is performed separately.
"""

import os
import sys
from pathlib import Path

# Add parent (repo root) to sys.path for 'fame_rsa'
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
script_dir = Path(__file__).parent

import matplotlib
matplotlib.use('Agg')

from fame_rsa import CONFIG, setup_analysis, log_script_end, find_subject_ids
from fame_rsa.pipeline import run_rsa_searchlight


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

# Subjects to process; None runs every subject directory holding an SPM.mat
SUBJECTS = None


# -----------------------------------------------------------------------------
# Main workflow
# -----------------------------------------------------------------------------

config, output_dir, logger = setup_analysis(
    analysis_name="rsa_searchlight",
    results_base=script_dir / "results",
    script_file=__file__,
    extra_config={'SUBJECTS': SUBJECTS},
    suppress_warnings=CONFIG['SUPPRESS_WARNINGS'],
)

subjects = SUBJECTS or find_subject_ids(config['STUDY_PATH'], config['SPM_FILENAME'])
if not subjects:
    raise FileNotFoundError(f"No subjects with {config['SPM_FILENAME']} under {config['STUDY_PATH']}")
logger.info(f"Processing {len(subjects)} subjects from {config['STUDY_PATH']}")

# Subjects run one after another; a failing subject stops the batch
outputs = {}
for subject_id in subjects:
    outputs[subject_id] = run_rsa_searchlight(subject_id, config)

logger.info("Searchlight maps:")
for subject_id, path in outputs.items():
    logger.info(f"  {subject_id}: {path}")

log_script_end(logger)
