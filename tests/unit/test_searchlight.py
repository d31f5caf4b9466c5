#!/usr/bin/env python3
"""
Unit tests for searchlight neighborhoods, the target-DSM measure and traversal.
"""

import pytest
import numpy as np
import pandas as pd
import nibabel as nib
from scipy.spatial.distance import pdist
from scipy.stats import pearsonr, spearmanr

from fame_rsa.dataset import VolumeDataset
from fame_rsa.rsa_utils import condensed
from fame_rsa.searchlight import (
    Neighborhood,
    SphericalNeighborhood,
    TargetDSMCorrelation,
    run_searchlight,
)


def make_grid_dataset(shape=(5, 5, 5), n_samples=6, seed=0):
    """Dataset covering every voxel of a small volume."""
    rng = np.random.default_rng(seed)
    mask = np.ones(shape, dtype=bool)
    coords = np.array(np.where(mask)).T
    samples = rng.standard_normal((n_samples, len(coords)))
    return VolumeDataset(
        samples=samples,
        sa=pd.DataFrame({'targets': np.arange(1, n_samples + 1),
                         'chunks': np.repeat([1, 2], n_samples // 2)}),
        fa=pd.DataFrame(coords, columns=['i', 'j', 'k']),
        mask_img=nib.Nifti1Image(mask.astype(np.uint8), np.eye(4)),
    )


@pytest.fixture
def grid_ds():
    return make_grid_dataset()


@pytest.fixture
def target_dsm():
    """6 trials, 2 runs: codes 1,2,3 | 1,2,3; within-run pairs NaN."""
    codes = np.array([1, 2, 3, 1, 2, 3], dtype=float)
    chunks = np.array([1, 1, 1, 2, 2, 2])
    dsm = np.abs(codes[:, None] - codes[None, :])
    dsm[chunks[:, None] == chunks[None, :]] = np.nan
    np.fill_diagonal(dsm, 0.0)
    return dsm


def _index_of(ds, ijk):
    return int(np.flatnonzero((ds.voxel_indices == ijk).all(axis=1))[0])


class TestSphericalNeighborhood:
    """Tests for neighborhood construction."""

    def test_requires_exactly_one_of_count_radius(self):
        with pytest.raises(ValueError, match="exactly one"):
            SphericalNeighborhood()
        with pytest.raises(ValueError, match="exactly one"):
            SphericalNeighborhood(count=10, radius=2)

    def test_count_gives_fixed_size(self, grid_ds):
        nbrhood = SphericalNeighborhood(count=19).build(grid_ds)
        assert len(nbrhood) == grid_ds.nfeatures
        assert np.all(nbrhood.nvoxels == 19)

    def test_count_neighbors_are_nearest(self, grid_ds):
        center = _index_of(grid_ds, (2, 2, 2))
        nbrhood = SphericalNeighborhood(count=7).build(grid_ds)

        members = {tuple(grid_ds.voxel_indices[i]) for i in nbrhood[center]}
        expected = {(2, 2, 2), (1, 2, 2), (3, 2, 2), (2, 1, 2), (2, 3, 2), (2, 2, 1), (2, 2, 3)}
        assert members == expected
        assert nbrhood[center][0] == center
        assert nbrhood.radius[center] == pytest.approx(1.0)

    def test_count_larger_than_dataset_uses_all(self, grid_ds):
        nbrhood = SphericalNeighborhood(count=10_000).build(grid_ds)
        assert np.all(nbrhood.nvoxels == grid_ds.nfeatures)

    def test_radius_mode(self, grid_ds):
        nbrhood = SphericalNeighborhood(radius=1.5).build(grid_ds)
        interior = _index_of(grid_ds, (2, 2, 2))
        corner = _index_of(grid_ds, (0, 0, 0))
        assert nbrhood.nvoxels[interior] == 19  # self + 6 faces + 12 edges
        assert nbrhood.nvoxels[corner] == 7
        assert nbrhood[interior][0] == interior

    def test_subset_of_centers(self, grid_ds):
        nbrhood = SphericalNeighborhood(count=5).build(grid_ds, center_ids=[0, 10])
        np.testing.assert_array_equal(nbrhood.center_ids, [0, 10])
        assert len(nbrhood.neighbors) == 2

    def test_neighborhood_length_check(self):
        with pytest.raises(ValueError, match="equal lengths"):
            Neighborhood([0, 1], [[0]], [1.0, 1.0])


class TestTargetDSMCorrelation:
    """Tests for the measure."""

    def test_matches_scipy_spearman_on_valid_pairs(self, target_dsm):
        rng = np.random.default_rng(4)
        x = rng.standard_normal((6, 20))
        measure = TargetDSMCorrelation(target_dsm, type='spearman', center_data=True)

        neural = pdist(x - x.mean(axis=0), 'correlation')
        target = condensed(target_dsm)
        valid = np.isfinite(target)
        expected = spearmanr(neural[valid], target[valid])[0]

        assert measure(x) == pytest.approx(expected)

    def test_pearson_without_centering(self, target_dsm):
        rng = np.random.default_rng(5)
        x = rng.standard_normal((6, 20))
        measure = TargetDSMCorrelation(target_dsm, type='pearson', center_data=False)

        neural = pdist(x, 'correlation')
        target = condensed(target_dsm)
        valid = np.isfinite(target)
        expected = pearsonr(neural[valid], target[valid])[0]

        assert measure(x) == pytest.approx(expected)

    def test_accepts_dataset(self, grid_ds, target_dsm):
        measure = TargetDSMCorrelation(target_dsm)
        assert measure(grid_ds) == pytest.approx(measure(grid_ds.samples))

    def test_result_in_range(self, target_dsm):
        rng = np.random.default_rng(6)
        measure = TargetDSMCorrelation(target_dsm)
        for _ in range(5):
            assert -1.0 <= measure(rng.standard_normal((6, 12))) <= 1.0

    def test_constant_target_gives_nan(self):
        dsm = np.ones((4, 4))
        np.fill_diagonal(dsm, 0)
        measure = TargetDSMCorrelation(dsm)
        assert np.isnan(measure(np.random.default_rng(7).standard_normal((4, 8))))

    def test_nonsquare_target_raises(self):
        with pytest.raises(ValueError, match="square"):
            TargetDSMCorrelation(np.zeros((3, 4)))

    def test_asymmetric_target_raises(self):
        dsm = np.array([[0, 1, 2], [1, 0, 1], [0, 1, 0]], dtype=float)
        with pytest.raises(ValueError, match="symmetric"):
            TargetDSMCorrelation(dsm)

    def test_unknown_type_raises(self, target_dsm):
        with pytest.raises(ValueError, match="correlation type"):
            TargetDSMCorrelation(target_dsm, type='kendall')

    def test_sample_count_mismatch_raises(self, target_dsm):
        measure = TargetDSMCorrelation(target_dsm)
        with pytest.raises(ValueError, match="samples"):
            measure(np.zeros((5, 3)))


class TestRunSearchlight:
    """Tests for the traversal."""

    def test_one_value_per_center(self, grid_ds, target_dsm):
        nbrhood = SphericalNeighborhood(count=10).build(grid_ds)
        values = run_searchlight(grid_ds, nbrhood, TargetDSMCorrelation(target_dsm))
        assert values.shape == (grid_ds.nfeatures,)
        assert np.all(np.isfinite(values))

    def test_values_match_direct_measure(self, grid_ds, target_dsm):
        nbrhood = SphericalNeighborhood(count=10).build(grid_ds)
        measure = TargetDSMCorrelation(target_dsm)
        values = run_searchlight(grid_ds, nbrhood, measure, n_blocks=3)
        for c in (0, 17, 124):
            assert values[c] == pytest.approx(measure(grid_ds.samples[:, nbrhood[c]]))

    def test_parallel_matches_serial(self, grid_ds, target_dsm):
        nbrhood = SphericalNeighborhood(count=10).build(grid_ds)
        measure = TargetDSMCorrelation(target_dsm)
        serial = run_searchlight(grid_ds, nbrhood, measure, n_jobs=1)
        parallel = run_searchlight(grid_ds, nbrhood, measure, n_jobs=2)
        np.testing.assert_allclose(parallel, serial)
