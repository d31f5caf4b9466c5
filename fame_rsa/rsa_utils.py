"""
Representational Similarity Analysis (RSA) utilities.

This module provides the matrix-building blocks of the trial-type RSA:
- Deriving trial categories from regressor labels
- Creating model RDMs from category or feature values
- Building the target DSM with within-run comparisons masked out
- Computing neural pattern dissimilarity / similarity among trials

Conventions
-----------
- DSM entries that must not enter a correlation are NaN.
- Matrices are square (n_trials × n_trials) and symmetric.
"""

import numpy as np
from typing import Dict, Mapping, Sequence, Tuple
from scipy.spatial.distance import pdist, squareform


def trial_type_vector(
    labels: Sequence[str],
    trial_types: Mapping[str, Tuple[str, int]],
) -> np.ndarray:
    """
    Assign a category code to every trial from substrings of its label.

    Parameters
    ----------
    labels : sequence of str
        Trial labels (e.g., 'Sn(1) trialtype-target_trial-004*bf(1)')
    trial_types : mapping
        name -> (substring, code), e.g. CONFIG['TRIAL_TYPES']

    Returns
    -------
    np.ndarray
        Integer vector (n_trials,). Code of the matching trial type, or 0
        when no pattern occurs in the label.

    Raises
    ------
    ValueError
        If a label contains more than one trial-type pattern

    Example
    -------
    >>> trial_type_vector(
    ...     ['trialtype-target', 'trialtype-relatedLure', 'fixation'],
    ...     {'target': ('trialtype-target', 1), 'relatedLure': ('trialtype-relatedLure', 2)},
    ... )
    array([1, 2, 0])
    """
    codes = np.zeros(len(labels), dtype=int)

    for i, label in enumerate(labels):
        label = str(label)
        hits = [(name, code) for name, (pattern, code) in trial_types.items() if pattern in label]
        if len(hits) > 1:
            raise ValueError(
                f"Label '{label}' matches several trial types: {[name for name, _ in hits]}"
            )
        if hits:
            codes[i] = hits[0][1]

    return codes


def count_trial_types(codes: np.ndarray, trial_types: Mapping[str, Tuple[str, int]]) -> Dict[str, int]:
    """
    Number of trials per trial type (plus 'unlabeled' for code 0).
    """
    codes = np.asarray(codes)
    counts = {name: int(np.sum(codes == code)) for name, (_, code) in trial_types.items()}
    counts['unlabeled'] = int(np.sum(codes == 0))
    return counts


def create_model_rdm(
    category_values: np.ndarray,
    is_categorical: bool = True
) -> np.ndarray:
    """
    Create a model RDM from stimulus category or feature values.

    For categorical variables the RDM is binary: 0 if same category, 1 if
    different. For continuous (or ordinal) variables, the RDM is the absolute
    difference between values.

    Parameters
    ----------
    category_values : np.ndarray
        1D array of category labels or feature values for each trial
    is_categorical : bool, default=True
        If True, treats values as categorical (0/1 RDM)
        If False, treats as continuous (absolute difference RDM)

    Returns
    -------
    np.ndarray
        Model RDM matrix (n_trials × n_trials), symmetric with zeros on the
        diagonal

    Example
    -------
    >>> create_model_rdm(np.array([1, 2, 1]), is_categorical=False)
    array([[0, 1, 0],
           [1, 0, 1],
           [0, 1, 0]])
    """
    vals = np.asarray(category_values).ravel()

    if is_categorical:
        rdm = (vals[:, None] != vals[None, :]).astype(int)
    else:
        rdm = np.abs(vals[:, None] - vals[None, :])

    return rdm


def within_run_mask(chunks: Sequence[int]) -> np.ndarray:
    """
    Boolean (n_trials × n_trials) matrix, True where both trials share a run.
    """
    chunks = np.asarray(chunks).ravel()
    return chunks[:, None] == chunks[None, :]


def build_target_dsm(
    labels: Sequence[str],
    chunks: Sequence[int],
    trial_types: Mapping[str, Tuple[str, int]],
) -> np.ndarray:
    """
    Hypothesis DSM: linear dissimilarity among trial types, across runs only.

    Steps
    -----
    1. Category code per trial (target=1, related lure=2, unrelated lure=3, else 0)
    2. Absolute pairwise difference of codes
    3. Same-run pairs set to NaN (excluded from any correlation)
    4. Diagonal forced to 0

    Parameters
    ----------
    labels : sequence of str
        Trial labels
    chunks : sequence of int
        Run index per trial
    trial_types : mapping
        name -> (substring, code)

    Returns
    -------
    np.ndarray
        Float (n_trials × n_trials) symmetric matrix

    Raises
    ------
    ValueError
        If labels and chunks differ in length

    Example
    -------
    >>> tt = {'target': ('trialtype-target', 1), 'relatedLure': ('trialtype-relatedLure', 2)}
    >>> build_target_dsm(
    ...     ['trialtype-target', 'trialtype-relatedLure', 'trialtype-target'], [1, 1, 2], tt)
    array([[ 0., nan,  0.],
           [nan,  0.,  1.],
           [ 0.,  1.,  0.]])
    """
    if len(labels) != len(chunks):
        raise ValueError(f"Got {len(labels)} labels but {len(chunks)} chunks")

    codes = trial_type_vector(labels, trial_types)
    target_dsm = create_model_rdm(codes, is_categorical=False).astype(float)

    target_dsm[within_run_mask(chunks)] = np.nan
    np.fill_diagonal(target_dsm, 0.0)

    return target_dsm


def compute_pattern_dsm(samples: np.ndarray, metric: str = 'correlation') -> np.ndarray:
    """
    Neural DSM among trials (rows of ``samples``) as a square matrix.

    With the default 'correlation' metric entries are ``1 - r``, in [0, 2].
    """
    samples = np.asarray(samples, dtype=float)
    return squareform(pdist(samples, metric=metric), checks=False)


def compute_pattern_similarity(samples: np.ndarray) -> np.ndarray:
    """
    Trial × trial pattern similarity (Pearson r between voxel patterns).

    Computed as ``1 - (1 - r)``, i.e. the correlation-distance DSM converted
    back to similarity, with the diagonal set to 1.
    """
    rho = 1.0 - compute_pattern_dsm(samples, metric='correlation')
    np.fill_diagonal(rho, 1.0)
    return rho


def condensed(matrix: np.ndarray) -> np.ndarray:
    """Upper triangle (k=1) of a square matrix, in scipy ``pdist`` order."""
    matrix = np.asarray(matrix)
    return matrix[np.triu_indices(matrix.shape[0], k=1)]


__all__ = [
    'trial_type_vector',
    'count_trial_types',
    'create_model_rdm',
    'within_run_mask',
    'build_target_dsm',
    'compute_pattern_dsm',
    'compute_pattern_similarity',
    'condensed',
]
