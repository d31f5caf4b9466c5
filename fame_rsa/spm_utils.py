"""
SPM I/O utilities for locating single-trial GLM beta images.

This module provides functions for:
- Loading SPM.mat files
- Mapping design-matrix regressors to beta images
- Deriving run (chunk) indices and trial labels for every single-trial beta
"""

import re
import numpy as np
import pandas as pd
import scipy.io as sio
from pathlib import Path
import logging

logger = logging.getLogger(__name__)

# "Sn(3) trialtype-target_trial-012*bf(1)" -> run 3, condition "trialtype-target_trial-012".
# Only the first basis function of each task condition is a trial estimate;
# motion, constant and higher-order basis regressors do not match.
_REGRESSOR_PATTERN = re.compile(r"Sn\((\d+)\)\s+(.*?)\*bf\(1\)$")


def load_spm_single_trial_model(spm_mat_path) -> pd.DataFrame:
    """
    Load SPM.mat and return one row per single-trial beta image.

    Parameters
    ----------
    spm_mat_path : str or Path
        Path to the subject's SPM.mat (single-trial model)

    Returns
    -------
    pd.DataFrame
        Columns, in design-matrix order:
        - beta_index: 1-based column index in the design matrix
        - beta_path: Path to the beta image
        - labels: full regressor name (e.g., 'Sn(1) trialtype-target_trial-001*bf(1)')
        - condition: regressor name without session/basis decoration
        - chunks: run (session) index, 1-based

    Raises
    ------
    FileNotFoundError
        If SPM.mat file is not found
    ValueError
        If no single-trial regressors are found in the design
    AttributeError
        If expected fields are missing from SPM structure

    Example
    -------
    >>> model = load_spm_single_trial_model('models/SingleTrialModel/s001/SPM.mat')
    >>> model[['labels', 'chunks']].head()
    """
    spm_mat_path = Path(spm_mat_path)
    if not spm_mat_path.is_file():
        raise FileNotFoundError(f"SPM.mat not found: {spm_mat_path}")

    logger.debug(f"Loading SPM.mat from: {spm_mat_path}")

    spm_dict = sio.loadmat(spm_mat_path.as_posix(), struct_as_record=False, squeeze_me=True)
    SPM = spm_dict["SPM"]

    # squeeze_me collapses single-element arrays to scalars
    beta_info = np.atleast_1d(SPM.Vbeta)
    regressor_names = [str(n) for n in np.atleast_1d(SPM.xX.name)]

    if len(beta_info) != len(regressor_names):
        raise ValueError(
            f"SPM.Vbeta has {len(beta_info)} entries but design has "
            f"{len(regressor_names)} regressors: {spm_mat_path}"
        )

    spm_dir = _get_spm_dir(SPM, spm_mat_path.parent)

    rows = []
    for i, reg_name in enumerate(regressor_names):
        m = _REGRESSOR_PATTERN.match(reg_name.strip())
        if not m:
            continue
        rows.append({
            'beta_index': i + 1,
            'beta_path': spm_dir / _get_beta_filename(beta_info[i]),
            'labels': reg_name,
            'condition': m.group(2),
            'chunks': int(m.group(1)),
        })

    if not rows:
        raise ValueError(f"No single-trial regressors ('Sn(k) <name>*bf(1)') in {spm_mat_path}")

    model = pd.DataFrame(rows)
    logger.info(
        f"Found {len(model)} single-trial betas across "
        f"{model['chunks'].nunique()} runs in {spm_mat_path.parent.name}"
    )
    return model


def _get_spm_dir(spm_obj, fallback: Path) -> Path:
    """Extract SPM working directory robustly across SPM versions.

    SPM.swd records where the model was estimated; when that directory no
    longer exists (model moved or copied) the SPM.mat location is used.
    """
    swd = getattr(spm_obj, "swd", None)
    if isinstance(swd, str) and swd and Path(swd).is_dir():
        return Path(swd)
    return Path(fallback)


def _get_beta_filename(beta_struct) -> str:
    """
    Get beta filename from SPM Vbeta structure.

    Handles different SPM versions which may have 'fname' or 'filename' field.

    Raises
    ------
    AttributeError
        If neither 'fname' nor 'filename' field is found
    """
    fname = getattr(beta_struct, "fname", None)
    if fname is not None:
        return str(fname)

    fname = getattr(beta_struct, "filename", None)
    if fname is not None:
        return str(fname)

    available = [f for f in dir(beta_struct) if not f.startswith("_")]
    raise AttributeError(
        f"Beta structure has no 'fname' or 'filename' field. "
        f"Available fields: {available}"
    )


__all__ = [
    'load_spm_single_trial_model',
]
