"""
Trial-type RSA searchlight for single-trial fMRI models.

This package provides:
- constants: CONFIG dictionary with all paths and parameters
- logging_utils: Logging and analysis setup functions
- io_utils: Subject paths, output naming, matrix TSVs
- spm_utils: Single-trial beta discovery from SPM.mat
- neuro_utils: NIfTI and mask handling
- dataset: VolumeDataset (trials × voxels with attributes)
- rsa_utils: Trial-type codes, target DSM, pattern similarity
- searchlight: Spherical neighborhoods, target-DSM correlation, traversal
- plotting: DSM heatmaps
- pipeline: run_rsa_searchlight (one subject, end to end)

Example Usage
-------------
>>> from fame_rsa import CONFIG, run_rsa_searchlight
>>> out = run_rsa_searchlight('s001', CONFIG)
"""

__version__ = "0.1.0"

# Configuration
from .constants import CONFIG

# Logging and setup
from .logging_utils import setup_logging, setup_analysis, log_script_start, log_script_end

# IO utilities
from .io_utils import (
    find_subject_ids,
    get_subject_output_dir,
    searchlight_output_path,
    save_matrix_tsv,
    load_matrix_tsv,
)

# Model input and datasets
from .spm_utils import load_spm_single_trial_model
from .neuro_utils import load_nifti, load_roi_mask, save_brain_map
from .dataset import (
    VolumeDataset,
    fmri_dataset,
    remove_useless_features,
    slice_features,
    check_dataset,
    map_to_image,
)

# RSA utilities
from .rsa_utils import (
    trial_type_vector,
    create_model_rdm,
    build_target_dsm,
    compute_pattern_dsm,
    compute_pattern_similarity,
)

# Searchlight
from .searchlight import (
    Neighborhood,
    SphericalNeighborhood,
    TargetDSMCorrelation,
    run_searchlight,
)

# Plotting
from .plotting import PLOT_PARAMS, apply_figure_rc, plot_dsm, plot_dsm_on_ax

# Pipeline
from .pipeline import run_rsa_searchlight

__all__ = [
    # Configuration
    'CONFIG',
    # Logging and setup
    'setup_logging',
    'setup_analysis',
    'log_script_start',
    'log_script_end',
    # IO utilities
    'find_subject_ids',
    'get_subject_output_dir',
    'searchlight_output_path',
    'save_matrix_tsv',
    'load_matrix_tsv',
    # Model input and datasets
    'load_spm_single_trial_model',
    'load_nifti',
    'load_roi_mask',
    'save_brain_map',
    'VolumeDataset',
    'fmri_dataset',
    'remove_useless_features',
    'slice_features',
    'check_dataset',
    'map_to_image',
    # RSA utilities
    'trial_type_vector',
    'create_model_rdm',
    'build_target_dsm',
    'compute_pattern_dsm',
    'compute_pattern_similarity',
    # Searchlight
    'Neighborhood',
    'SphericalNeighborhood',
    'TargetDSMCorrelation',
    'run_searchlight',
    # Plotting
    'PLOT_PARAMS',
    'apply_figure_rc',
    'plot_dsm',
    'plot_dsm_on_ax',
    # Pipeline
    'run_rsa_searchlight',
]
