"""
Searchlight RSA: spherical neighborhoods, target-DSM correlation, traversal.

Three pieces, used together by the per-subject pipeline:

- ``SphericalNeighborhood``: for every feature (center), the set of nearby
  features forming one searchlight sphere, either a fixed number of nearest
  voxels (``count``) or all voxels within a radius (``radius``, in voxels).
- ``TargetDSMCorrelation``: a measure that correlates the neural DSM of a
  (sub-)dataset with a target DSM, ignoring NaN target entries.
- ``run_searchlight``: applies a measure to every neighborhood and returns
  one value per center.

Example
-------
>>> nbrhood = SphericalNeighborhood(count=100).build(ds)
>>> measure = TargetDSMCorrelation(target_dsm, type='spearman', center_data=True)
>>> rho = run_searchlight(ds, nbrhood, measure, n_jobs=4)
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np
from joblib import Parallel, delayed
from scipy.spatial.distance import pdist
from scipy.stats import rankdata
from sklearn.neighbors import NearestNeighbors

from .rsa_utils import condensed

logger = logging.getLogger(__name__)


# =============================================================================
# Neighborhoods
# =============================================================================

class Neighborhood:
    """
    Feature neighborhoods of a dataset.

    Attributes
    ----------
    center_ids : np.ndarray
        Feature index of each searchlight center
    neighbors : list of np.ndarray
        Feature indices belonging to each center's sphere (center included)
    radius : np.ndarray
        Sphere radius per center, in voxels
    nvoxels : np.ndarray
        Number of features per sphere
    """

    def __init__(self, center_ids, neighbors, radius):
        self.center_ids = np.asarray(center_ids, dtype=int)
        self.neighbors = [np.asarray(n, dtype=int) for n in neighbors]
        self.radius = np.asarray(radius, dtype=float)
        self.nvoxels = np.array([len(n) for n in self.neighbors], dtype=int)

        if not (len(self.center_ids) == len(self.neighbors) == len(self.radius)):
            raise ValueError("center_ids, neighbors and radius must have equal lengths")

    def __len__(self):
        return len(self.center_ids)

    def __getitem__(self, i):
        return self.neighbors[i]


class SphericalNeighborhood:
    """
    Spherical searchlight neighborhoods in voxel space.

    Parameters
    ----------
    count : int, optional
        Number of features per sphere (nearest voxels to each center; the
        center itself included)
    radius : float, optional
        Sphere radius in voxels (all features within this distance)

    Exactly one of ``count`` and ``radius`` must be given.
    """

    def __init__(self, count: Optional[int] = None, radius: Optional[float] = None):
        if (count is None) == (radius is None):
            raise ValueError("Specify exactly one of 'count' or 'radius'")
        if count is not None and int(count) < 1:
            raise ValueError(f"count must be positive, got {count}")
        if radius is not None and float(radius) < 0:
            raise ValueError(f"radius must be non-negative, got {radius}")

        self.count = None if count is None else int(count)
        self.radius = None if radius is None else float(radius)

    def __repr__(self):
        if self.count is not None:
            return f"SphericalNeighborhood(count={self.count})"
        return f"SphericalNeighborhood(radius={self.radius})"

    def build(self, ds, center_ids: Optional[Sequence[int]] = None) -> Neighborhood:
        """
        Compute the neighborhood of every center (default: every feature).

        Parameters
        ----------
        ds : VolumeDataset
            Dataset providing voxel indices (``ds.voxel_indices``)
        center_ids : sequence of int, optional
            Subset of feature indices to use as centers

        Returns
        -------
        Neighborhood
        """
        coords = ds.voxel_indices.astype(float)
        n_features = coords.shape[0]
        if n_features == 0:
            raise ValueError("Dataset has no features to build neighborhoods on")

        if center_ids is None:
            center_ids = np.arange(n_features)
        center_ids = np.asarray(center_ids, dtype=int)
        centers = coords[center_ids]

        nn = NearestNeighbors(algorithm='kd_tree').fit(coords)

        if self.count is not None:
            k = self.count
            if k > n_features:
                logger.warning(
                    f"Requested {k} voxels per searchlight but dataset has "
                    f"{n_features} features; using all of them"
                )
                k = n_features
            distances, indices = nn.kneighbors(centers, n_neighbors=k)
            neighbors = list(indices.astype(np.int32))
            radius = distances[:, -1]
        else:
            _, indices = nn.radius_neighbors(centers, radius=self.radius, sort_results=True)
            neighbors = list(indices)
            radius = np.full(len(center_ids), self.radius)

        nbrhood = Neighborhood(center_ids, neighbors, radius)
        logger.info(
            f"{self!r}: {len(nbrhood)} centers, "
            f"{nbrhood.nvoxels.mean():.1f} voxels/sphere, "
            f"radius {nbrhood.radius.mean():.2f} voxels (mean)"
        )
        return nbrhood


# =============================================================================
# Measures
# =============================================================================

class TargetDSMCorrelation:
    """
    Correlation between a dataset's neural DSM and a target DSM.

    Parameters
    ----------
    target_dsm : np.ndarray
        Square, symmetric (n_samples × n_samples) target dissimilarity matrix.
        NaN entries mark pairs excluded from the correlation.
    type : {'spearman', 'pearson'}, default='spearman'
        Correlation type
    center_data : bool, default=True
        Subtract each feature's mean across samples before computing the
        neural DSM
    metric : str, default='correlation'
        ``scipy.spatial.distance.pdist`` metric for the neural DSM

    Notes
    -----
    Only the pairs below (equivalently above) the diagonal are used. A
    correlation that is undefined (constant vector, non-finite neural DSM)
    is returned as NaN.
    """

    _TYPES = ('spearman', 'pearson')

    def __init__(self, target_dsm, type: str = 'spearman', center_data: bool = True,
                 metric: str = 'correlation'):
        target_dsm = np.asarray(target_dsm, dtype=float)
        if target_dsm.ndim != 2 or target_dsm.shape[0] != target_dsm.shape[1]:
            raise ValueError(f"target_dsm must be square, got shape {target_dsm.shape}")
        if not np.allclose(target_dsm, target_dsm.T, equal_nan=True):
            raise ValueError("target_dsm must be symmetric")

        type = str(type).lower()
        if type not in self._TYPES:
            raise ValueError(f"Unknown correlation type '{type}', expected one of {self._TYPES}")

        self.target_dsm = target_dsm
        self.type = type
        self.center_data = bool(center_data)
        self.metric = metric

        target_vec = condensed(target_dsm)
        self._pair_mask = np.isfinite(target_vec)
        self._target = self._prepare(target_vec[self._pair_mask])

        if not self._pair_mask.any():
            logger.warning("target_dsm has no valid (finite) pairs; all correlations will be NaN")

    @property
    def nsamples(self) -> int:
        return self.target_dsm.shape[0]

    def _prepare(self, vec: np.ndarray) -> Optional[np.ndarray]:
        """Rank (Spearman), center and unit-normalize a vector; None if constant."""
        if self.type == 'spearman':
            vec = rankdata(vec)
        vec = vec - vec.mean() if vec.size else vec
        norm = np.linalg.norm(vec)
        if norm == 0:
            return None
        return vec / norm

    def __call__(self, data) -> float:
        samples = np.asarray(getattr(data, 'samples', data), dtype=float)
        if samples.shape[0] != self.nsamples:
            raise ValueError(
                f"Dataset has {samples.shape[0]} samples but target_dsm is "
                f"{self.nsamples} × {self.nsamples}"
            )

        if self._target is None:
            return np.nan

        if self.center_data:
            samples = samples - samples.mean(axis=0)

        neural = pdist(samples, metric=self.metric)[self._pair_mask]
        if not np.all(np.isfinite(neural)):
            return np.nan

        neural = self._prepare(neural)
        if neural is None:
            return np.nan

        return float(np.dot(neural, self._target))


# =============================================================================
# Searchlight
# =============================================================================

def _run_block(samples: np.ndarray, neighbors: List[np.ndarray], measure) -> np.ndarray:
    return np.array([measure(samples[:, idx]) for idx in neighbors], dtype=float)


def run_searchlight(ds, nbrhood: Neighborhood, measure, n_jobs: int = 1,
                    n_blocks: Optional[int] = None) -> np.ndarray:
    """
    Apply a measure in every searchlight neighborhood.

    Parameters
    ----------
    ds : VolumeDataset
        Full dataset (all features)
    nbrhood : Neighborhood
        Neighborhoods built on ``ds``
    measure : callable
        Maps an (n_samples × n_sphere_features) array to a scalar
    n_jobs : int, default=1
        joblib workers; blocks of centers are distributed over workers
    n_blocks : int, optional
        Number of center blocks (default: 10 for progress reporting when
        serial, 4 per worker when parallel)

    Returns
    -------
    np.ndarray
        One value per center, in ``nbrhood.center_ids`` order
    """
    n_centers = len(nbrhood)
    if n_centers == 0:
        return np.array([], dtype=float)

    if n_blocks is None:
        n_blocks = 10 if n_jobs == 1 else 4 * max(1, abs(int(n_jobs)))
    n_blocks = max(1, min(int(n_blocks), n_centers))
    blocks = np.array_split(np.arange(n_centers), n_blocks)

    logger.info(f"Running searchlight over {n_centers} centers ({n_blocks} blocks, n_jobs={n_jobs})")

    samples = ds.samples
    if n_jobs == 1:
        results = []
        done = 0
        for block in blocks:
            results.append(_run_block(samples, [nbrhood[i] for i in block], measure))
            done += len(block)
            logger.debug(f"  searchlight {done}/{n_centers} centers ({100.0 * done / n_centers:.0f}%)")
    else:
        results = Parallel(n_jobs=n_jobs)(
            delayed(_run_block)(samples, [nbrhood[i] for i in block], measure)
            for block in blocks
        )

    values = np.concatenate(results)

    n_nan = int(np.isnan(values).sum())
    if n_nan:
        logger.warning(f"{n_nan} of {n_centers} searchlight values are NaN (undefined correlation)")
    finite = values[np.isfinite(values)]
    if finite.size:
        logger.info(
            f"Searchlight done: mean={finite.mean():.4f}, "
            f"min={finite.min():.4f}, max={finite.max():.4f}"
        )
    return values


__all__ = [
    'Neighborhood',
    'SphericalNeighborhood',
    'TargetDSMCorrelation',
    'run_searchlight',
]
