"""
Central repository for all shared constants, trial-type definitions, and paths.

All constants are exported via the CONFIG dictionary, which is the single source
of truth for all configuration values used across the RSA analyses.

Usage
-----
>>> from fame_rsa import CONFIG
>>> print(CONFIG['SEARCHLIGHT_NVOXELS'])
100
>>> print(CONFIG['ROI_MASK'])
PosixPath('/gpfs/group/nad12/default/nad12/FAME8/RSA/ROIs/rrwholebrain_mask.nii')

Note: All dataset paths are set here in constants and should be
configured explicitly. Pipeline functions take a ``config`` argument, so a
modified copy of CONFIG (e.g., ``{**CONFIG, 'STUDY_PATH': ...}``) can be passed
instead of editing this file. The only environment override is the log level
(FAME_LOG_LEVEL, see logging_utils).
"""

from pathlib import Path

# ============================================================================
# Repository Paths (computed first for use in CONFIG)
# ============================================================================
_REPO_ROOT = Path(__file__).parent.parent  # Root of this git repository

# ============================================================================
# External Study Data Root
# ============================================================================
# IMPORTANT: Users must configure this path to their local study location
_STUDY_ROOT = Path("/gpfs/group/nad12/default/nad12/FAME8/RSA")

# ============================================================================
# Intermediate Path Construction (private - build CONFIG paths from these)
# ============================================================================

_ROI_DIR = _STUDY_ROOT / "ROIs"
_ROI_LABEL = "rrwholebrain_mask"

# Single-trial SPM models live in <models>/SingleTrialModel/<subject>/SPM.mat
_STUDY_PATH = _STUDY_ROOT / "models" / "SingleTrialModel"

# Results are written next to the model directory
_RSA_RESULTS = _STUDY_PATH.parent / "RSA_Results"

# ============================================================================
# CONFIG Dictionary - All Constants in One Place
# ============================================================================

CONFIG = {
    # ========================================================================
    # Repository Structure
    # ========================================================================
    'REPO_ROOT': _REPO_ROOT,

    # ========================================================================
    # Inputs
    # ========================================================================
    'STUDY_ROOT': _STUDY_ROOT,
    'ROI_DIR': _ROI_DIR,                                  # Directory holding ROI masks
    'ROI_LABEL': _ROI_LABEL,                              # Mask file stem
    'ROI_MASK': _ROI_DIR / f"{_ROI_LABEL}.nii",           # Full path to ROI mask
    'STUDY_PATH': _STUDY_PATH,                            # Single-trial SPM models
    'SPM_FILENAME': "SPM.mat",                            # Model file inside each subject dir

    # ========================================================================
    # Outputs
    # ========================================================================
    'RSA_RESULTS': _RSA_RESULTS,                          # One sub-directory per subject

    # ========================================================================
    # Trial Types (hypothesis: linear dissimilarity among trial types)
    # ========================================================================
    # name -> (label substring, category code). Unmatched trials get code 0.
    'TRIAL_TYPES': {
        'target': ('trialtype-target', 1),
        'relatedLure': ('trialtype-relatedLure', 2),
        'unrelatedLure': ('trialtype-unrelatedLure', 3),
    },

    # ========================================================================
    # Searchlight Parameters
    # ========================================================================
    'SEARCHLIGHT_NVOXELS': 100,                           # Features per sphere
    'SEARCHLIGHT_RADIUS': None,                           # Voxels; used only if NVOXELS is None
    'DSM_METRIC': 'correlation',                          # scipy pdist metric (1 - r)
    'CORRELATION_TYPE': 'spearman',                       # Neural vs target DSM
    'CENTER_DATA': True,                                  # Demean features before DSM
    'N_JOBS': 1,                                          # joblib workers over centers

    # ========================================================================
    # Run-level Parameters
    # ========================================================================
    'RANDOM_SEED': 42,                                    # Reproducibility seed
    'SUPPRESS_WARNINGS': True,                            # FutureWarning/UserWarning filter
    'SAVE_PATTERN_SIMILARITY': True,                      # Trial x trial rho matrix (TSV)
    'SAVE_FIGURES': True,                                 # DSM heatmaps (PNG)
}

__all__ = [
    'CONFIG',
]
