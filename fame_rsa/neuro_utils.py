"""
NIfTI helpers for masks, single-trial betas and searchlight maps.

- Masks: resliced ROI images binarized at > 0
- Betas: masked with nilearn, which rejects images whose shape or affine
  differ from the mask
- Maps: per-voxel values written back into the mask geometry as float32
"""

import logging
from pathlib import Path
from typing import Sequence, Tuple, Union

import numpy as np
import nibabel as nib

logger = logging.getLogger(__name__)


def load_nifti(file_path):
    """
    nibabel image from a .nii / .nii.gz path; FileNotFoundError if absent.
    """
    file_path = Path(file_path)
    if not file_path.is_file():
        raise FileNotFoundError(f"NIfTI file not found: {file_path}")
    return nib.load(str(file_path))


def load_roi_mask(roi_path, threshold=0.0):
    """
    Boolean 3D mask from an ROI image.

    Parameters
    ----------
    roi_path : str or Path
        ROI image; a trailing singleton 4th dimension is dropped
    threshold : float, default=0.0
        Voxels with a finite value above this are in the mask. Resliced masks
        carry interpolated values, so any positive value counts by default.

    Returns
    -------
    mask : np.ndarray of bool
    img : nibabel.Nifti1Image
        The image as loaded (geometry reference)

    Raises
    ------
    ValueError
        If the image is not 3D or no voxel passes the threshold

    Example
    -------
    >>> mask, mask_img = load_roi_mask('ROIs/rrwholebrain_mask.nii')
    >>> int(mask.sum())
    """
    img = load_nifti(roi_path)
    data = np.asanyarray(img.dataobj)
    if data.ndim == 4 and data.shape[3] == 1:
        data = data[..., 0]
    if data.ndim != 3:
        raise ValueError(f"ROI mask must be 3D, got shape {data.shape}: {roi_path}")

    mask = np.isfinite(data) & (data > threshold)
    if not mask.any():
        raise ValueError(f"ROI mask has no voxels above {threshold}: {roi_path}")

    logger.debug(f"ROI mask {Path(roi_path).name}: {int(mask.sum())} voxels")
    return mask, img


def binary_mask_img(mask: np.ndarray, reference_img: nib.Nifti1Image) -> nib.Nifti1Image:
    """
    Wrap a boolean mask into a uint8 image sharing the reference geometry.
    """
    header = reference_img.header.copy()
    header.set_data_dtype(np.uint8)
    return nib.Nifti1Image(mask.astype(np.uint8), reference_img.affine, header)


def extract_masked_data(imgs: Sequence[Union[str, Path]], mask_img: nib.Nifti1Image) -> np.ndarray:
    """
    Extract voxel data inside a mask from a series of 3D images.

    Parameters
    ----------
    imgs : sequence of str or Path
        Beta images (one per trial), all sharing the mask geometry
    mask_img : nibabel.Nifti1Image
        Binary mask image

    Returns
    -------
    np.ndarray
        Data matrix of shape (n_images, n_voxels_in_mask), float32. Non-finite
        values are preserved so that unusable voxels can be dropped later.

    Raises
    ------
    ValueError
        From nilearn, if any image's shape or affine differs from the mask's
    """
    from nilearn.masking import apply_mask

    paths = [str(p) for p in imgs]
    for p in paths:
        if not Path(p).exists():
            raise FileNotFoundError(f"NIfTI file not found: {p}")

    return apply_mask(paths, mask_img, dtype=np.float32, ensure_finite=False)


def get_roi_coordinates(mask):
    """(n_voxels, 3) voxel indices of a boolean mask, in ``data[mask]`` order."""
    return np.array(np.where(mask)).T


def clean_voxels(
    data: np.ndarray,
    var_thresh: float = 0.0,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Drop voxel columns that cannot enter a correlation.

    A column (voxel) of ``data`` (trials × voxels) is kept when every value is
    finite and, with more than one row, its variance exceeds ``var_thresh``.

    Returns
    -------
    cleaned : np.ndarray
    keep : np.ndarray of bool, shape (n_voxels,)
    """
    if data.ndim != 2:
        raise ValueError(f"Expected a 2D trials × voxels array, got shape {data.shape}")

    finite_mask = np.all(np.isfinite(data), axis=0)
    keep_mask = finite_mask.copy()
    if data.shape[0] > 1:
        # variance only over finite columns; others are already excluded
        variance = np.zeros(data.shape[1])
        variance[finite_mask] = np.var(data[:, finite_mask], axis=0)
        keep_mask &= variance > float(var_thresh)

    return data[:, keep_mask], keep_mask


def reconstruct_brain_map(values, coords, shape, fill_value=0):
    """
    Reconstruct a full brain volume from per-voxel values.

    Parameters
    ----------
    values : np.ndarray
        1D array of voxel values
    coords : np.ndarray
        Voxel indices (n_voxels, 3) matching ``values``
    shape : tuple
        Output volume shape (3D)
    fill_value : float, default=0
        Value to use for voxels without a value

    Returns
    -------
    np.ndarray
        Full 3D brain volume (float32)
    """
    values = np.asarray(values, dtype=np.float32)
    coords = np.asarray(coords, dtype=int)
    if values.shape[0] != coords.shape[0]:
        raise ValueError(
            f"Got {values.shape[0]} values for {coords.shape[0]} voxel coordinates"
        )

    full_volume = np.full(tuple(shape[:3]), fill_value, dtype=np.float32)
    full_volume[coords[:, 0], coords[:, 1], coords[:, 2]] = values
    return full_volume


def save_brain_map(data, output_path, reference_img):
    """
    Write a 3D float32 map in the geometry of ``reference_img``.

    The reference header is reused with its data type switched to float32, so
    a uint8 mask header does not quantize correlations. Returns the written
    path; ValueError if the map and reference shapes differ.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    data = np.asarray(data, dtype=np.float32)
    if data.shape[:3] != tuple(reference_img.shape[:3]):
        raise ValueError(
            f"Map shape {data.shape} does not match reference {reference_img.shape}"
        )

    header = reference_img.header.copy()
    header.set_data_dtype(np.float32)
    new_img = nib.Nifti1Image(data, reference_img.affine, header)

    nib.save(new_img, str(output_path))
    return output_path


__all__ = [
    'load_nifti',
    'load_roi_mask',
    'binary_mask_img',
    'extract_masked_data',
    'get_roi_coordinates',
    'clean_voxels',
    'reconstruct_brain_map',
    'save_brain_map',
]
