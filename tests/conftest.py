"""
Shared fixtures: a tiny single-trial study on disk.

Layout written under tmp_path:
    ROIs/testmask.nii
    models/SingleTrialModel/s001/SPM.mat
    models/SingleTrialModel/s001/beta_0001.nii ...
"""

import matplotlib
matplotlib.use('Agg')

import numpy as np
import nibabel as nib
import pytest
import scipy.io as sio

from fame_rsa import CONFIG

VOLUME_SHAPE = (7, 7, 7)
N_RUNS = 2
TRIALS_PER_RUN = ['target', 'relatedLure', 'unrelatedLure'] * 3
CODES = {'target': 1, 'relatedLure': 2, 'unrelatedLure': 3}
NAN_VOXEL = (2, 2, 2)
CONSTANT_VOXEL = (4, 4, 4)


def _affine():
    affine = np.diag([3.0, 3.0, 3.0, 1.0])
    affine[:3, 3] = [-10.0, -10.0, -10.0]
    return affine


def _mask_data():
    data = np.zeros(VOLUME_SHAPE, dtype=np.float32)
    data[1:6, 1:6, 1:6] = 0.8  # resliced masks carry interpolated values
    return data


def write_spm_mat(path, regressor_names, beta_fnames, swd):
    """Write a minimal SPM.mat holding xX.name, Vbeta(i).fname and swd."""
    vbeta = np.zeros((len(beta_fnames),), dtype=[('fname', 'O')])
    for i, fname in enumerate(beta_fnames):
        vbeta[i]['fname'] = fname

    spm = {
        'swd': str(swd),
        'xX': {'name': np.array(regressor_names, dtype=object)},
        'Vbeta': vbeta,
    }
    sio.savemat(str(path), {'SPM': spm})
    return path


@pytest.fixture
def mask_path(tmp_path):
    roi_dir = tmp_path / "ROIs"
    roi_dir.mkdir()
    path = roi_dir / "testmask.nii"
    nib.save(nib.Nifti1Image(_mask_data(), _affine()), str(path))
    return path


@pytest.fixture
def study(tmp_path, mask_path):
    """
    One subject with 2 runs × 9 trials plus nuisance regressors.

    Trial patterns carry the trial-type code along a fixed spatial pattern,
    so the searchlight should find a positive correlation everywhere. One
    voxel has a NaN beta and one is constant across trials.
    """
    rng = np.random.default_rng(0)
    study_path = tmp_path / "models" / "SingleTrialModel"
    subject_dir = study_path / "s001"
    subject_dir.mkdir(parents=True)

    spatial = rng.standard_normal(VOLUME_SHAPE)

    names, fnames, trials = [], [], []
    beta_i = 0
    for run in range(1, N_RUNS + 1):
        for t, trial_type in enumerate(TRIALS_PER_RUN, start=1):
            names.append(f"Sn({run}) trialtype-{trial_type}_trial-{t:03d}*bf(1)")
            trials.append((run, trial_type))
            beta_i += 1
            fnames.append(f"beta_{beta_i:04d}.nii")
        for nuisance in ('R1', 'R2'):
            names.append(f"Sn({run}) {nuisance}")
            beta_i += 1
            fnames.append(f"beta_{beta_i:04d}.nii")
    for run in range(1, N_RUNS + 1):
        names.append(f"Sn({run}) constant")
        beta_i += 1
        fnames.append(f"beta_{beta_i:04d}.nii")

    trial_iter = iter(trials)
    for name, fname in zip(names, fnames):
        if name.endswith('*bf(1)'):
            _, trial_type = next(trial_iter)
            data = CODES[trial_type] * spatial + 0.3 * rng.standard_normal(VOLUME_SHAPE)
        else:
            data = rng.standard_normal(VOLUME_SHAPE)
        if name.startswith('Sn(1) trialtype-target_trial-001'):
            data[NAN_VOXEL] = np.nan
        data[CONSTANT_VOXEL] = 5.0
        nib.save(nib.Nifti1Image(data.astype(np.float32), _affine()), str(subject_dir / fname))

    write_spm_mat(subject_dir / "SPM.mat", names, fnames, subject_dir)

    return {
        'root': tmp_path,
        'study_path': study_path,
        'subject_id': 's001',
        'subject_dir': subject_dir,
        'spm_mat': subject_dir / "SPM.mat",
        'mask_path': mask_path,
        'n_trials': len(trials),
        'trials': trials,
    }


@pytest.fixture
def study_config(study):
    """CONFIG pointed at the synthetic study, with a small searchlight."""
    return {
        **CONFIG,
        'STUDY_PATH': study['study_path'],
        'RSA_RESULTS': study['root'] / "models" / "RSA_Results",
        'ROI_DIR': study['mask_path'].parent,
        'ROI_LABEL': 'testmask',
        'ROI_MASK': study['mask_path'],
        'SEARCHLIGHT_NVOXELS': 15,
        'SEARCHLIGHT_RADIUS': None,
        'N_JOBS': 1,
    }
