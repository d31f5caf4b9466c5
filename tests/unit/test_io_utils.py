#!/usr/bin/env python3
"""
Unit tests for paths, matrix TSVs, analysis setup and DSM figures.
"""

import logging

import pytest
import numpy as np

from fame_rsa import CONFIG
from fame_rsa.io_utils import (
    find_subject_ids,
    get_spm_path,
    get_subject_output_dir,
    load_matrix_tsv,
    save_matrix_tsv,
    searchlight_output_path,
    subject_artifact_path,
)
from fame_rsa.logging_utils import setup_analysis, setup_logging
from fame_rsa.plotting import plot_dsm, run_tick_positions, trial_type_colors


class TestPaths:
    """Tests for path conventions."""

    def test_searchlight_output_name(self, tmp_path):
        assert searchlight_output_path('s001', tmp_path).name == "sub-s001_trialtype_searchlight.nii"
        assert searchlight_output_path('sub-s001', tmp_path).name == "sub-s001_trialtype_searchlight.nii"

    def test_artifact_name(self, tmp_path):
        path = subject_artifact_path('s001', tmp_path, 'rrwholebrain_mask', 'target-dsm', 'tsv')
        assert path.name == "sub-s001_roi-rrwholebrain_mask_target-dsm.tsv"

    def test_output_dir_created_once(self, tmp_path):
        config = {'RSA_RESULTS': tmp_path / "RSA_Results"}
        first = get_subject_output_dir('s001', config)
        second = get_subject_output_dir('s001', config)
        assert first == second == tmp_path / "RSA_Results" / "s001"
        assert first.is_dir()

    def test_spm_path(self, tmp_path):
        config = {'STUDY_PATH': tmp_path, 'SPM_FILENAME': 'SPM.mat'}
        assert get_spm_path('s002', config) == tmp_path / 's002' / 'SPM.mat'

    def test_find_subject_ids(self, study):
        (study['study_path'] / "s002").mkdir()  # no SPM.mat
        assert find_subject_ids(study['study_path']) == ['s001']

    def test_find_subject_ids_missing_dir(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            find_subject_ids(tmp_path / "nope")


class TestMatrixTsv:
    """Tests for labelled matrix TSVs."""

    def test_nan_survives_round_trip(self, tmp_path):
        m = np.array([[0.0, np.nan], [np.nan, 0.0]])
        path = save_matrix_tsv(m, tmp_path / "m.tsv", labels=['1', '2'])
        assert 'n/a' in path.read_text()
        back = load_matrix_tsv(path)
        assert back.shape == (2, 2)
        assert np.isnan(back.to_numpy()[0, 1])

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_matrix_tsv(tmp_path / "missing.tsv")


class TestSetupAnalysis:
    """Tests for analysis setup and logging."""

    def test_creates_dir_log_and_script_copy(self, tmp_path):
        script = tmp_path / "01_fake_script.py"
        script.write_text("print('hi')\n")

        config, output_dir, logger = setup_analysis(
            "unit_analysis", tmp_path / "results", str(script), extra_config={'X': 1}
        )
        logger.info("hello")
        for h in logger.handlers:
            h.flush()

        assert output_dir == tmp_path / "results" / "unit_analysis"
        assert (output_dir / "01_fake_script.py").is_file()
        assert "hello" in (output_dir / "analysis.log").read_text()
        assert config['X'] == 1
        assert config['OUTPUT_DIR'] == output_dir
        assert config['SEARCHLIGHT_NVOXELS'] == CONFIG['SEARCHLIGHT_NVOXELS']

    def test_log_level_from_env(self, monkeypatch):
        monkeypatch.setenv("FAME_LOG_LEVEL", "DEBUG")
        logger = setup_logging(console=False)
        assert logger.level == logging.DEBUG
        assert logger.name == "fame_rsa"


class TestPlotting:
    """Tests for DSM figures."""

    def test_run_tick_positions(self):
        centers, labels, boundaries = run_tick_positions([1, 1, 2, 2, 2])
        assert centers == [1.0, 3.5]
        assert labels == ['Sn(1)', 'Sn(2)']
        assert boundaries == [2]

    def test_trial_type_colors(self):
        colors = trial_type_colors([1, 0, 3], CONFIG['TRIAL_TYPES'])
        assert len(colors) == 3
        assert colors[0] != colors[2]

    def test_plot_dsm_writes_png(self, tmp_path):
        dsm = np.array([[0.0, np.nan, 1.0], [np.nan, 0.0, 2.0], [1.0, 2.0, 0.0]])
        out = tmp_path / "dsm.png"
        plot_dsm(dsm, "Target DSM", output_path=out, chunks=[1, 1, 2])
        assert out.is_file() and out.stat().st_size > 0

    def test_plot_dsm_rejects_non_square(self):
        with pytest.raises(ValueError, match="square"):
            plot_dsm(np.zeros((2, 3)), "bad")
