import numpy as np
from typing import Callable, Dict, List, Sequence, Union

METRICS = ("euclidean", "correlation", "mad", "rmsd", "chi_square")

# correlation is undefined below this sample variance
MIN_VARIANCE = 1e-7


def check_metrics(metrics: Union[str, Sequence[str]]) -> List[str]:
    """Deduplicate `metrics` (keeping the first occurrence) and validate them

    Parameters
    ----------
    metrics : Union[str, Sequence[str]]
        metric name or list of metric names

    Returns
    -------
    List[str]
        unique metric names in the order given

    Raises
    ------
    ValueError
        if no metric is given or any metric is not recognised
    """
    if isinstance(metrics, str):
        metrics = [metrics]
    metrics = list(dict.fromkeys(metrics))
    if len(metrics) == 0:
        raise ValueError(
            "Please supply at least 1 distance metric. Choose from: "
            + ", ".join(METRICS)
        )
    unknown = [m for m in metrics if m not in METRICS]
    if len(unknown) > 0:
        raise ValueError(
            f"Unrecognised metric(s): {', '.join(map(str, unknown))}. "
            f"Please choose from: {', '.join(METRICS)}"
        )
    return metrics


def standardize(mat: np.ndarray) -> np.ndarray:
    """
    Center and scale each column using its finite entries only.

    Missing (NaN) and infinite entries are left untouched, as are all entries of
    a column without finite values. The sample standard deviation (ddof=1) is
    used, so a column with a single finite value becomes NaN.

    Parameters
    ----------
    mat : np.ndarray
        (n_row, n_col) matrix

    Returns
    -------
    np.ndarray
        standardized copy of `mat`
    """
    mat = np.array(mat, dtype=np.float64, copy=True)
    for j in range(mat.shape[1]):
        idx = np.isfinite(mat[:, j])
        if not np.any(idx):
            continue
        y = mat[idx, j]
        with np.errstate(divide="ignore", invalid="ignore"):
            mean = y.mean()
            std = np.sqrt(np.sum((y - mean) ** 2) / (len(y) - 1))
            mat[idx, j] = (y - mean) / std
    return mat


def _euclidean(u: np.ndarray, v: np.ndarray) -> float:
    return np.sqrt(np.sum((u - v) ** 2))


def _correlation(u: np.ndarray, v: np.ndarray) -> float:
    if (np.var(u, ddof=1) < MIN_VARIANCE) or (np.var(v, ddof=1) < MIN_VARIANCE):
        return -np.inf
    du, dv = u - u.mean(), v - v.mean()
    r = np.sum(du * dv) / np.sqrt(np.sum(du * du) * np.sum(dv * dv))
    return np.clip(r, -1.0, 1.0)


def _mad(u: np.ndarray, v: np.ndarray) -> float:
    return np.mean(np.abs(u - v))


def _rmsd(u: np.ndarray, v: np.ndarray) -> float:
    return np.sqrt(np.mean((u - v) ** 2))


def _chi_square(u: np.ndarray, v: np.ndarray) -> float:
    # only the second vector appears in the denominator
    return np.sum((u - v) ** 2 / (v + np.finfo(np.float64).eps))


_METRIC_FUNCS: Dict[str, Callable[[np.ndarray, np.ndarray], float]] = {
    "euclidean": _euclidean,
    "correlation": _correlation,
    "mad": _mad,
    "rmsd": _rmsd,
    "chi_square": _chi_square,
}

_SYMMETRIC_METRICS = {"euclidean", "correlation", "mad", "rmsd"}


def pairwise_distances(
    mat: np.ndarray, metrics: Union[str, Sequence[str]] = METRICS
) -> Dict[str, np.ndarray]:
    """
    Pairwise distances / correlations between the rows of `mat`.

    For every ordered pair of rows (i, j), only the columns where both rows are
    finite are used. Pairs sharing fewer than 2 such columns are left at -inf for
    every metric, and so are correlations involving a row with a sample variance
    below 1e-7 over the shared columns.

    Parameters
    ----------
    mat : np.ndarray
        (n_vec, n_dim) matrix, missing values encoded as NaN
    metrics : Union[str, Sequence[str]]
        subset of "euclidean", "correlation", "mad", "rmsd", "chi_square"

    Returns
    -------
    Dict[str, np.ndarray]
        (n_vec, n_vec) matrix for each metric, and "counts" holding the number of
        shared finite columns of each pair
    """
    metrics = check_metrics(metrics)
    mat = np.asarray(mat, dtype=np.float64)
    assert mat.ndim == 2, "`mat` must be a 2-dimensional matrix"
    n_vec = mat.shape[0]
    usable = np.isfinite(mat)

    res = {m: np.full((n_vec, n_vec), -np.inf) for m in metrics}
    counts = np.zeros((n_vec, n_vec))
    with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
        for i in range(n_vec):
            for j in range(i, n_vec):
                idx = usable[i] & usable[j]
                n_usable = np.sum(idx)
                counts[i, j] = counts[j, i] = n_usable
                if n_usable < 2:
                    continue
                u, v = mat[i, idx], mat[j, idx]
                for m in metrics:
                    if m in _SYMMETRIC_METRICS:
                        res[m][i, j] = res[m][j, i] = _METRIC_FUNCS[m](u, v)
                    else:
                        res[m][i, j] = _METRIC_FUNCS[m](u, v)
                        res[m][j, i] = _METRIC_FUNCS[m](v, u)
    res["counts"] = counts
    return res
