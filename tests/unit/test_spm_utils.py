#!/usr/bin/env python3
"""
Unit tests for single-trial beta discovery from SPM.mat.
"""

import pytest
import numpy as np

from fame_rsa.spm_utils import load_spm_single_trial_model

from tests.conftest import write_spm_mat


class TestLoadSpmSingleTrialModel:
    """Tests for load_spm_single_trial_model."""

    def test_only_first_basis_trial_regressors(self, study):
        model = load_spm_single_trial_model(study['spm_mat'])
        assert len(model) == study['n_trials']
        assert model['labels'].str.contains('trialtype-').all()
        assert not model['labels'].str.contains('constant').any()

    def test_chunks_and_conditions(self, study):
        model = load_spm_single_trial_model(study['spm_mat'])
        assert model['chunks'].tolist() == [run for run, _ in study['trials']]
        assert model['condition'].iloc[0] == 'trialtype-target_trial-001'

    def test_beta_index_and_paths(self, study):
        model = load_spm_single_trial_model(study['spm_mat'])
        # run 1: 9 trials then 2 nuisance regressors; run 2 starts at column 12
        assert model['beta_index'].tolist()[:3] == [1, 2, 3]
        assert model['beta_index'].iloc[9] == 12
        assert all(p.parent == study['subject_dir'] for p in model['beta_path'])
        assert all(p.is_file() for p in model['beta_path'])

    def test_stale_swd_falls_back_to_spm_dir(self, tmp_path):
        names = ['Sn(1) trialtype-target_trial-001*bf(1)', 'Sn(1) constant']
        spm_mat = write_spm_mat(tmp_path / "SPM.mat", names,
                                ['beta_0001.nii', 'beta_0002.nii'], '/no/such/dir')
        model = load_spm_single_trial_model(spm_mat)
        assert model['beta_path'].iloc[0] == tmp_path / 'beta_0001.nii'

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="SPM.mat"):
            load_spm_single_trial_model(tmp_path / "SPM.mat")

    def test_no_trial_regressors_raises(self, tmp_path):
        spm_mat = write_spm_mat(tmp_path / "SPM.mat", ['Sn(1) R1', 'Sn(1) constant'],
                                ['beta_0001.nii', 'beta_0002.nii'], tmp_path)
        with pytest.raises(ValueError, match="No single-trial regressors"):
            load_spm_single_trial_model(spm_mat)

    def test_vbeta_length_mismatch_raises(self, tmp_path):
        spm_mat = write_spm_mat(
            tmp_path / "SPM.mat",
            ['Sn(1) trialtype-target_trial-001*bf(1)', 'Sn(1) constant'],
            ['beta_0001.nii', 'beta_0002.nii', 'beta_0003.nii'],
            tmp_path,
        )
        with pytest.raises(ValueError, match="Vbeta"):
            load_spm_single_trial_model(spm_mat)
