import pandas as pd
import numpy as np
from typing import (
    Optional,
    Sequence,
    Tuple,
    Union,
)


def normalize_indices(
    index, entry_names: Sequence[str], feature_names: Sequence[str]
) -> Tuple[Optional[np.ndarray], Optional[np.ndarray]]:
    """Normalize the indices to return the entry positions and feature positions

    Parameters
    ----------
    index :
        indexer passed to `dset[...]`, either a single indexer for entries or a
        tuple (entries, features)
    entry_names : Sequence[str]
        names of the entries
    feature_names : Sequence[str]
        names of the features

    Returns
    -------
    Tuple[Optional[np.ndarray], Optional[np.ndarray]]
        positions of the entries and of the features, None stands for all

    Raises
    ------
    ValueError
        if more than two indexers are given
    """
    # deal with tuples of length 1
    if isinstance(index, tuple) and len(index) == 1:
        index = index[0]

    if isinstance(index, tuple):
        if len(index) > 2:
            raise ValueError(
                "data can only be sliced in entries (first dim) and features (second dim)"
            )

    entry_ax, feature_ax = unpack_index(index)
    entry_ax = _normalize_index(entry_ax, pd.Index(entry_names))
    feature_ax = _normalize_index(feature_ax, pd.Index(feature_names))
    return entry_ax, feature_ax


# convert the indexer (integer, slice, string, array) to the actual positions
# reference: https://github.com/theislab/anndata/blob/566f8fe56f0dce52b7b3d0c96b51d22ea7498156/anndata/_core/index.py#L16
def _normalize_index(
    indexer: Union[
        slice,
        int,
        str,
        np.ndarray,
    ],
    index: pd.Index,
) -> Optional[np.ndarray]:  # ndarray of int
    """Convert the indexer (integer, slice, string, array) to the actual positions

    Parameters
    ----------
    indexer : Union[slice, int, str, np.ndarray]
        positions, names, boolean flags or a slice
    index : pd.Index
        names along the dimension

    Returns
    -------
    Optional[np.ndarray]
        positions, None if the indexer selects everything
    """

    if isinstance(indexer, slice):
        if indexer == slice(None):
            return None
        start, stop = indexer.start, indexer.stop
        if isinstance(start, str):
            start = index.get_loc(start)
        # string slices are inclusive
        if isinstance(stop, str):
            stop = index.get_loc(stop) + 1
        return np.arange(len(index))[slice(start, stop, indexer.step)]
    elif isinstance(indexer, (np.integer, int)):
        return _wrap_negative(np.array([indexer]), len(index))
    elif isinstance(indexer, str):
        return np.array([index.get_loc(indexer)])
    elif isinstance(indexer, (Sequence, np.ndarray, pd.Index)):
        if not isinstance(indexer, (np.ndarray, pd.Index)):
            indexer = np.array(indexer)
        indexer = np.ravel(indexer)
        if len(indexer) == 0:
            return np.array([], dtype=int)
        if issubclass(indexer.dtype.type, np.integer):
            return _wrap_negative(np.asarray(indexer), len(index))
        elif issubclass(indexer.dtype.type, np.bool_):
            if indexer.shape != index.shape:
                raise IndexError(
                    f"Boolean index does not match Dataset's shape along this "
                    f"dimension. Boolean index has shape {indexer.shape} while "
                    f"Dataset index has shape {index.shape}."
                )
            return np.where(indexer)[0]
        else:  # indexer should be string array
            positions = index.get_indexer(indexer)
            if np.any(positions < 0):
                not_found = indexer[positions < 0]
                raise KeyError(
                    f"Values {list(not_found)}, from {list(indexer)}, "
                    "are not valid entry / feature names or indices."
                )
            return positions
    else:
        raise IndexError(f"Unknown indexer {indexer!r} of type {type(indexer)}")


def _wrap_negative(positions: np.ndarray, n: int) -> np.ndarray:
    # -n .. -1 count from the end, anything further is left for the range check
    return np.where((positions < 0) & (positions >= -n), positions + n, positions)


def unpack_index(index):
    if not isinstance(index, tuple):
        return index, slice(None)
    elif len(index) == 2:
        return index
    elif len(index) == 1:
        return index[0], slice(None)
    else:
        raise IndexError("invalid number of indices")
