import numpy as np
from typing import Dict, List, Sequence, Tuple, Union
import gbkit
from ..data import METRICS
from ._dataset import Dataset, check_dims


class DataTooSparseError(RuntimeError):
    """Raised when a dataset has too few entries and features for any distance"""


def distances(
    dset: Dataset,
    metrics: Union[str, Sequence[str]] = METRICS,
    standardize: bool = False,
) -> Tuple[List[str], List[str], Dict[str, np.ndarray]]:
    """
    Pairwise distances / correlations between features and between entries.

    Only cells that are both non-missing and finite are used; see
    `gbkit.data.pairwise_distances` for the per-pair rules.

    Parameters
    ----------
    dset : Dataset
        dataset to summarise
    metrics : Union[str, Sequence[str]]
        subset of "euclidean", "correlation", "mad", "rmsd", "chi_square"
    standardize : bool
        whether to center and scale each feature before computing the distances

    Returns
    -------
    Tuple[List[str], List[str], Dict[str, np.ndarray]]
        feature names, entry names, and the matrices keyed as "<axis>|<metric>",
        axis being "features" or "entries". "<axis>|counts" holds the number of
        usable positions of each pair. The features matrices are only computed
        when there are at least 2 features, and likewise for entries.

    Raises
    ------
    ValueError
        if `dset` is corrupted or `metrics` is empty or unknown
    DataTooSparseError
        if there are fewer than 2 entries and fewer than 2 features
    """
    if not check_dims(dset):
        raise ValueError(
            f"gbkit.dataset.distances: {type(dset).__name__} is corrupted."
        )
    metrics = gbkit.data.check_metrics(metrics)

    mat = dset.values.filled(np.nan)
    if standardize:
        mat = gbkit.data.standardize(mat)

    n, p = mat.shape
    res: Dict[str, np.ndarray] = {}
    for axis, m, n_vec in [("features", mat.T, p), ("entries", mat, n)]:
        if n_vec < 2:
            continue
        gbkit.logger.info(
            f"gbkit.dataset.distances: {n_vec} x {n_vec} {axis} matrices "
            f"for {', '.join(metrics)}"
        )
        for key, val in gbkit.data.pairwise_distances(m, metrics).items():
            res[f"{axis}|{key}"] = val

    if len(res) == 0:
        raise DataTooSparseError(
            f"gbkit.dataset.distances: {type(dset).__name__} with {n} entries and "
            f"{p} features is too sparse to compute any distance."
        )
    return list(dset.features), list(dset.entries), res
