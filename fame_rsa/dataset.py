"""
Volume dataset: trial-by-voxel samples with per-trial and per-voxel attributes.

A ``VolumeDataset`` bundles
- ``samples``: (n_trials × n_features) activation estimates
- ``sa``: per-sample attributes (DataFrame; ``targets``, ``chunks``, ``labels``)
- ``fa``: per-feature attributes (DataFrame; voxel indices ``i``, ``j``, ``k``)
- ``mask_img``: the acquisition geometry the features came from

Features can be removed or subset at will; the voxel indices in ``fa`` are
what allows results to be written back into the original volume.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Sequence, Union
import logging

import numpy as np
import pandas as pd
import nibabel as nib

from .neuro_utils import (
    binary_mask_img,
    clean_voxels,
    extract_masked_data,
    get_roi_coordinates,
    load_roi_mask,
    reconstruct_brain_map,
)
from .spm_utils import load_spm_single_trial_model

logger = logging.getLogger(__name__)


@dataclass
class VolumeDataset:
    """Trial-by-voxel data with sample/feature attribute tables."""

    samples: np.ndarray
    sa: pd.DataFrame
    fa: pd.DataFrame
    mask_img: nib.Nifti1Image

    @property
    def nsamples(self) -> int:
        return self.samples.shape[0]

    @property
    def nfeatures(self) -> int:
        return self.samples.shape[1]

    @property
    def shape(self):
        return self.samples.shape

    @property
    def voxel_indices(self) -> np.ndarray:
        """(n_features × 3) integer voxel coordinates."""
        return self.fa[['i', 'j', 'k']].to_numpy(dtype=int)


def fmri_dataset(spm_mat_path: Union[str, Path], mask: Union[str, Path]) -> VolumeDataset:
    """
    Load single-trial betas from an SPM model, restricted to a mask.

    Parameters
    ----------
    spm_mat_path : str or Path
        Path to the subject's SPM.mat
    mask : str or Path
        Path to a binary (or resliced, thresholded at > 0) ROI mask

    Returns
    -------
    VolumeDataset
        One sample per single-trial beta with ``labels`` (regressor names),
        ``chunks`` (run index) and ``beta_path`` sample attributes

    Raises
    ------
    FileNotFoundError
        If the model, mask or any beta image is missing
    ValueError
        If the beta images and the mask differ in shape or affine
    """
    model = load_spm_single_trial_model(spm_mat_path)

    mask_data, mask_src = load_roi_mask(mask)
    mask_img = binary_mask_img(mask_data, mask_src)
    logger.info(f"ROI mask {Path(mask).name}: {int(mask_data.sum())} voxels")

    samples = extract_masked_data(model['beta_path'].tolist(), mask_img)

    coords = get_roi_coordinates(mask_data)
    fa = pd.DataFrame(coords, columns=['i', 'j', 'k'])

    sa = model[['labels', 'condition', 'chunks', 'beta_path']].reset_index(drop=True)

    ds = VolumeDataset(samples=np.asarray(samples), sa=sa, fa=fa, mask_img=mask_img)
    logger.info(f"Loaded dataset: {ds.nsamples} samples × {ds.nfeatures} features")
    return ds


def remove_useless_features(ds: VolumeDataset) -> VolumeDataset:
    """
    Drop features with any non-finite value or no variance across samples.
    """
    _, keep = clean_voxels(ds.samples)
    n_removed = int((~keep).sum())
    if n_removed:
        logger.info(f"Removed {n_removed} of {ds.nfeatures} features (non-finite or constant)")
    return slice_features(ds, np.flatnonzero(keep))


def slice_features(ds: VolumeDataset, idx: Sequence[int]) -> VolumeDataset:
    """
    Sub-dataset holding only the given feature indices (in the given order).
    """
    idx = np.asarray(idx, dtype=int)
    return VolumeDataset(
        samples=ds.samples[:, idx],
        sa=ds.sa,
        fa=ds.fa.iloc[idx].reset_index(drop=True),
        mask_img=ds.mask_img,
    )


def check_dataset(ds: VolumeDataset) -> None:
    """
    Validate dataset consistency; raise ValueError on the first problem found.

    Checks
    ------
    - samples is a 2D numeric array
    - one row in ``sa`` per sample, one row in ``fa`` per feature
    - ``targets`` and ``chunks`` sample attributes are present
    - voxel indices lie inside the mask geometry
    """
    samples = ds.samples
    if samples.ndim != 2:
        raise ValueError(f"samples must be 2D, got shape {samples.shape}")
    if not np.issubdtype(samples.dtype, np.number):
        raise ValueError(f"samples must be numeric, got dtype {samples.dtype}")
    if len(ds.sa) != samples.shape[0]:
        raise ValueError(f"sa has {len(ds.sa)} rows for {samples.shape[0]} samples")
    if len(ds.fa) != samples.shape[1]:
        raise ValueError(f"fa has {len(ds.fa)} rows for {samples.shape[1]} features")

    for col in ('targets', 'chunks'):
        if col not in ds.sa.columns:
            raise ValueError(f"Missing sample attribute '{col}'")

    if samples.shape[1]:
        coords = ds.voxel_indices
        dims = np.asarray(ds.mask_img.shape[:3])
        if (coords < 0).any() or (coords >= dims).any():
            raise ValueError("Feature voxel indices fall outside the mask volume")


def map_to_image(values, ds: VolumeDataset, fill_value=0) -> nib.Nifti1Image:
    """
    Put one value per feature back into the dataset's volume geometry.

    Parameters
    ----------
    values : array-like, shape (n_features,)
        Per-feature values (e.g., searchlight correlations)
    ds : VolumeDataset
        Dataset whose ``fa`` voxel indices and ``mask_img`` define the geometry
    fill_value : float, default=0
        Value for voxels that are not features of ``ds``

    Returns
    -------
    nibabel.Nifti1Image
        3D float32 image with the mask's shape and affine
    """
    values = np.asarray(values).ravel()
    if values.shape[0] != ds.nfeatures:
        raise ValueError(f"Got {values.shape[0]} values for {ds.nfeatures} features")

    volume = reconstruct_brain_map(values, ds.voxel_indices, ds.mask_img.shape, fill_value=fill_value)
    header = ds.mask_img.header.copy()
    header.set_data_dtype(np.float32)
    return nib.Nifti1Image(volume, ds.mask_img.affine, header)


__all__ = [
    'VolumeDataset',
    'fmri_dataset',
    'remove_useless_features',
    'slice_features',
    'check_dataset',
    'map_to_image',
]
