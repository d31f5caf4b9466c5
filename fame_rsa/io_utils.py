"""
Input/output utilities for locating models and saving analysis results.

This module provides centralized functions for resolving per-subject input and
output locations, copying scripts, and reading/writing the labelled matrices
(target DSMs, pattern similarity) that accompany each searchlight map.

Layout
------
- Inputs:  <STUDY_PATH>/<subject>/SPM.mat
- Outputs: <RSA_RESULTS>/<subject>/sub-<subject>_trialtype_searchlight.nii
"""

from pathlib import Path
from typing import Optional, List, Sequence
import shutil
import warnings
import logging

import numpy as np
import pandas as pd


def copy_script_to_results(script_path, results_dir, logger: Optional[logging.Logger] = None):
    """
    Keep a copy of the running script beside its outputs.

    A missing script only produces a warning (returns None). An existing copy
    is overwritten; copying a file onto itself is skipped.
    """
    script_path, results_dir = Path(script_path), Path(results_dir)

    if not script_path.is_file():
        msg = f"Script file not found: {script_path}"
        if logger:
            logger.warning(msg)
        else:
            warnings.warn(msg)
        return None

    results_dir.mkdir(parents=True, exist_ok=True)
    dest_path = results_dir / script_path.name
    if dest_path.resolve() != script_path.resolve():
        shutil.copy2(script_path, dest_path)
        if logger:
            logger.info(f"Script copied to {dest_path}")
    return dest_path


def strip_sub_prefix(subject_id: str) -> str:
    """
    Return the bare subject code: 'sub-s001' -> 's001', 's001' -> 's001'.
    """
    s = str(subject_id).strip()
    if s.startswith('sub-'):
        return s.split('sub-', 1)[-1]
    return s


def get_spm_path(subject_id: str, config: dict) -> Path:
    """
    Path to a subject's single-trial model file (STUDY_PATH/<subject>/SPM.mat).
    """
    return Path(config['STUDY_PATH']) / str(subject_id) / config.get('SPM_FILENAME', 'SPM.mat')


def get_subject_output_dir(subject_id: str, config: dict) -> Path:
    """
    Resolve (and create on demand) the subject's RSA output directory.

    Parameters
    ----------
    subject_id : str
        Subject identifier exactly as it appears under STUDY_PATH
    config : dict
        Configuration with an 'RSA_RESULTS' entry

    Returns
    -------
    Path
        RSA_RESULTS/<subject_id>, guaranteed to exist
    """
    output_dir = Path(config['RSA_RESULTS']) / str(subject_id)
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def searchlight_output_path(subject_id: str, output_dir: Path) -> Path:
    """
    Fixed naming convention for the searchlight map:
    sub-<subject>_trialtype_searchlight.nii
    """
    code = strip_sub_prefix(subject_id)
    return Path(output_dir) / f"sub-{code}_trialtype_searchlight.nii"


def subject_artifact_path(subject_id: str, output_dir: Path, roi_label: str, desc: str, ext: str) -> Path:
    """
    Naming convention for per-subject side outputs, e.g.
    sub-s001_roi-rrwholebrain_mask_target-dsm.tsv
    """
    code = strip_sub_prefix(subject_id)
    return Path(output_dir) / f"sub-{code}_roi-{roi_label}_{desc}.{ext}"


def find_subject_ids(study_path: Path, spm_filename: str = "SPM.mat") -> List[str]:
    """
    List subjects (directory names) under study_path that contain a model file.

    Parameters
    ----------
    study_path : Path
        Directory holding one sub-directory per subject
    spm_filename : str, default='SPM.mat'
        Model file that must be present in the subject directory

    Returns
    -------
    list of str
        Sorted subject directory names

    Raises
    ------
    FileNotFoundError
        If study_path does not exist
    """
    study_path = Path(study_path)
    if not study_path.is_dir():
        raise FileNotFoundError(f"Study directory not found: {study_path}")

    return sorted(
        d.name for d in study_path.iterdir()
        if d.is_dir() and (d / spm_filename).is_file()
    )


def save_matrix_tsv(matrix: np.ndarray, path: Path, labels: Optional[Sequence[str]] = None) -> Path:
    """
    Write a square matrix as a TSV with row/column labels (NaN written as 'n/a').
    """
    matrix = np.asarray(matrix)
    if labels is None:
        labels = [str(i + 1) for i in range(matrix.shape[0])]
    labels = list(labels)

    df = pd.DataFrame(matrix, index=labels, columns=labels)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, sep='\t', na_rep='n/a', index_label='trial')
    return path


def load_matrix_tsv(path: Path) -> pd.DataFrame:
    """
    Read back a matrix written by save_matrix_tsv.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Matrix TSV not found: {path}")
    return pd.read_csv(path, sep='\t', index_col=0, na_values=['n/a'])


__all__ = [
    'copy_script_to_results',
    'strip_sub_prefix',
    'get_spm_path',
    'get_subject_output_dir',
    'searchlight_output_path',
    'subject_artifact_path',
    'find_subject_ids',
    'save_matrix_tsv',
    'load_matrix_tsv',
]
