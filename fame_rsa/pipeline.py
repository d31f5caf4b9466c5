"""
Per-subject trial-type RSA searchlight.

``run_rsa_searchlight`` is the single entry point used by the batch scripts:

1. Load single-trial betas (SPM.mat) inside the ROI mask
2. Give every trial a unique target id; drop unusable features; check
3. Build the target DSM (trial-type distance, across runs only)
4. Build spherical neighborhoods and the target-DSM correlation measure
5. Run the searchlight and write ``sub-<id>_trialtype_searchlight.nii``

Side outputs (trial table, target DSM, pattern similarity, figures) go to the
same subject directory, controlled by CONFIG flags.
"""

from pathlib import Path
import logging

import numpy as np

from .constants import CONFIG
from .dataset import (
    check_dataset,
    fmri_dataset,
    map_to_image,
    remove_useless_features,
    slice_features,
)
from .io_utils import (
    get_spm_path,
    get_subject_output_dir,
    save_matrix_tsv,
    searchlight_output_path,
    subject_artifact_path,
)
from .neuro_utils import save_brain_map
from .rsa_utils import (
    build_target_dsm,
    compute_pattern_similarity,
    count_trial_types,
    trial_type_vector,
)
from .searchlight import SphericalNeighborhood, TargetDSMCorrelation, run_searchlight

logger = logging.getLogger(__name__)


def build_neighborhood(config: dict) -> SphericalNeighborhood:
    """
    Neighborhood provider from CONFIG: fixed voxel count, else fixed radius.
    """
    nvoxels = config.get('SEARCHLIGHT_NVOXELS')
    if nvoxels is not None:
        return SphericalNeighborhood(count=nvoxels)
    radius = config.get('SEARCHLIGHT_RADIUS')
    if radius is None:
        raise ValueError("Set either SEARCHLIGHT_NVOXELS or SEARCHLIGHT_RADIUS in config")
    return SphericalNeighborhood(radius=radius)


def _save_side_outputs(subject_id, ds, target_dsm, codes, output_dir, config):
    """Trial table, target DSM and (optionally) pattern similarity, with figures."""
    roi_label = config.get('ROI_LABEL', Path(config['ROI_MASK']).stem)
    trial_ids = ds.sa['targets'].astype(str).tolist()
    chunks = ds.sa['chunks'].to_numpy()

    trials = ds.sa[['targets', 'chunks', 'labels']].copy()
    trials['trial_type_code'] = codes
    trials['beta_path'] = ds.sa['beta_path'].astype(str)
    trials_path = subject_artifact_path(subject_id, output_dir, roi_label, 'trials', 'tsv')
    trials.to_csv(trials_path, sep='\t', index=False)
    logger.info(f"Saved trial table: {trials_path.name}")

    dsm_path = subject_artifact_path(subject_id, output_dir, roi_label, 'target-dsm', 'tsv')
    save_matrix_tsv(target_dsm, dsm_path, labels=trial_ids)
    logger.info(f"Saved target DSM: {dsm_path.name}")

    similarity = None
    if config.get('SAVE_PATTERN_SIMILARITY', True):
        similarity = compute_pattern_similarity(ds.samples)
        sim_path = subject_artifact_path(subject_id, output_dir, roi_label, 'pattern-similarity', 'tsv')
        save_matrix_tsv(similarity, sim_path, labels=trial_ids)
        logger.info(f"Saved pattern similarity: {sim_path.name}")

    if config.get('SAVE_FIGURES', True):
        from .plotting import CMAP_BRAIN, plot_dsm, trial_type_colors

        colors = trial_type_colors(codes, config['TRIAL_TYPES'])
        plot_dsm(
            target_dsm,
            title=f"Target DSM: {subject_id}",
            subtitle="|trial type i - trial type j|, within-run pairs excluded",
            output_path=subject_artifact_path(subject_id, output_dir, roi_label, 'target-dsm', 'png'),
            chunks=chunks,
            colors=colors,
        )
        if similarity is not None:
            plot_dsm(
                similarity,
                title=f"Pattern similarity: {subject_id}",
                subtitle=f"ROI {roi_label}, Pearson r",
                output_path=subject_artifact_path(subject_id, output_dir, roi_label, 'pattern-similarity', 'png'),
                chunks=chunks,
                colors=colors,
                cmap=CMAP_BRAIN,
                vmin=-1.0,
                vmax=1.0,
                center=0.0,
                colorbar_label="Correlation (r)",
            )


def run_rsa_searchlight(subject_id: str, config: dict = CONFIG) -> Path:
    """
    Run the trial-type RSA searchlight for one subject.

    Parameters
    ----------
    subject_id : str
        Subject directory name under ``config['STUDY_PATH']``
    config : dict, default=CONFIG
        Paths and analysis parameters (see ``fame_rsa.constants``)

    Returns
    -------
    Path
        The written searchlight map,
        ``RSA_RESULTS/<subject>/sub-<subject>_trialtype_searchlight.nii``

    Raises
    ------
    FileNotFoundError
        If the model, mask or any beta image is missing
    ValueError
        If the dataset is inconsistent, no single-trial betas are found, or
        a trial label matches several trial types

    Notes
    -----
    Voxels of the mask that were removed as unusable are written as 0 in the
    output map, the same as voxels outside the mask.
    """
    logger.info(f"=== Subject {subject_id} ===")
    output_dir = get_subject_output_dir(subject_id, config)

    # --- Dataset ---
    ds = fmri_dataset(get_spm_path(subject_id, config), config['ROI_MASK'])
    ds.sa['targets'] = np.arange(1, ds.nsamples + 1)
    ds = remove_useless_features(ds)
    check_dataset(ds)
    if ds.nfeatures == 0:
        raise ValueError(f"No usable features left in the ROI for subject {subject_id}")

    # --- Target DSM ---
    labels = ds.sa['labels'].tolist()
    chunks = ds.sa['chunks'].to_numpy()
    codes = trial_type_vector(labels, config['TRIAL_TYPES'])
    counts = count_trial_types(codes, config['TRIAL_TYPES'])
    logger.info(f"Trial types: {counts}")
    if counts['unlabeled']:
        logger.warning(f"{counts['unlabeled']} trials match no trial type (code 0)")

    target_dsm = build_target_dsm(labels, chunks, config['TRIAL_TYPES'])
    n_valid = int(np.isfinite(target_dsm[np.triu_indices_from(target_dsm, k=1)]).sum())
    logger.info(f"Target DSM: {target_dsm.shape[0]} trials, {n_valid} cross-run pairs")

    _save_side_outputs(subject_id, ds, target_dsm, codes, output_dir, config)

    # --- Searchlight ---
    nbrhood = build_neighborhood(config).build(ds)
    measure = TargetDSMCorrelation(
        target_dsm,
        type=config.get('CORRELATION_TYPE', 'spearman'),
        center_data=config.get('CENTER_DATA', True),
        metric=config.get('DSM_METRIC', 'correlation'),
    )
    values = run_searchlight(ds, nbrhood, measure, n_jobs=config.get('N_JOBS', 1))

    # --- Output map ---
    result_img = map_to_image(values, slice_features(ds, nbrhood.center_ids))
    out_path = save_brain_map(
        result_img.get_fdata(dtype=np.float32),
        searchlight_output_path(subject_id, output_dir),
        ds.mask_img,
    )
    logger.info(f"Saved searchlight map: {out_path}")
    return out_path


__all__ = [
    'build_neighborhood',
    'run_rsa_searchlight',
]
