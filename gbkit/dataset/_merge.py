import numpy as np
from tqdm import tqdm
from typing import Sequence, Tuple
import gbkit
from ._dataset import Dataset, Genomes, Phenomes, check_dims


def _check_weights(conflict_resolution: Sequence[float]) -> Tuple[float, float]:
    weights = np.asarray(conflict_resolution, dtype=np.float64)
    if weights.ndim != 1 or len(weights) != 2:
        raise ValueError(
            "gbkit.dataset.merge: `conflict_resolution` must hold exactly 2 weights, "
            f"got {conflict_resolution}."
        )
    if np.any(weights < 0) or not np.isclose(weights.sum(), 1.0):
        raise ValueError(
            "gbkit.dataset.merge: `conflict_resolution` weights must be non-negative "
            f"and sum up to 1, got {conflict_resolution}."
        )
    return float(weights[0]), float(weights[1])


def _union(x: Sequence[str], y: Sequence[str]) -> np.ndarray:
    """Names of `x`, then names of `y` not in `x`, in order"""
    return np.array(list(dict.fromkeys(list(x) + list(y))), dtype=object)


def _positions(names: Sequence[str], merged: Sequence[str]) -> np.ndarray:
    """Position in `names` of each name of `merged`, -1 when absent"""
    lookup = {name: i for i, name in enumerate(names)}
    return np.array([lookup.get(name, -1) for name in merged], dtype=int)


def _align(
    dset: Dataset, row_pos: np.ndarray, col_pos: np.ndarray
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Project the cells of `dset` onto merged axes.

    Parameters
    ----------
    dset : Dataset
        source dataset
    row_pos : np.ndarray
        position in `dset` of each merged entry, -1 when absent
    col_pos : np.ndarray
        position in `dset` of each merged feature, -1 when absent

    Returns
    -------
    Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]
        (present, data, missing, mask) over the merged axes. Cells not present in
        `dset` are NaN, missing and not usable.
    """
    shape = (len(row_pos), len(col_pos))
    present = np.outer(row_pos >= 0, col_pos >= 0)
    data = np.full(shape, np.nan)
    missing = np.ones(shape, dtype=bool)
    mask = np.zeros(shape, dtype=bool)

    rows, cols = np.where(row_pos >= 0)[0], np.where(col_pos >= 0)[0]
    dst = np.ix_(rows, cols)
    src = np.ix_(row_pos[rows], col_pos[cols])
    data[dst] = np.ma.getdata(dset.values)[src]
    missing[dst] = dset.missing[src]
    mask[dst] = dset.mask[src]
    return present, data, missing, mask


def merge_datasets(
    a: Dataset,
    b: Dataset,
    conflict_resolution: Tuple[float, float] = (0.5, 0.5),
    verbose: bool = False,
    chunk_size: int = 1024,
) -> Dataset:
    """
    Merge two datasets of the same type over the union of their entries and features.

    Entries and features of `a` come first, followed by those only in `b`.
    For each merged cell:

    - present in both and equal (both missing, or the same value, NaN being equal
      to NaN): the value and mask of `a`
    - present in both and different: `w1 * a + w2 * b` if both are non-missing,
      otherwise the non-missing one; the mask is round(w1 * mask_a + w2 * mask_b)
    - present in one of them: its value and mask
    - present in none: missing and not usable

    Populations of common entries are kept when equal and replaced by
    "CONFLICT (pop_a, pop_b)" otherwise.

    Parameters
    ----------
    a : Dataset
        first dataset
    b : Dataset
        second dataset, of the same type as `a`
    conflict_resolution : Tuple[float, float]
        weights (w1, w2) of `a` and `b` for conflicting cells, summing up to 1
    verbose : bool
        whether to show a progress bar
    chunk_size : int
        number of merged entries resolved at a time

    Returns
    -------
    Dataset
        merged dataset, of the same type as the inputs
    """
    a_ok, b_ok = check_dims(a), check_dims(b)
    if not (a_ok or b_ok):
        raise ValueError("gbkit.dataset.merge: both datasets are corrupted.")
    elif not a_ok:
        raise ValueError("gbkit.dataset.merge: the first dataset is corrupted.")
    elif not b_ok:
        raise ValueError("gbkit.dataset.merge: the second dataset is corrupted.")
    if type(a) is not type(b):
        raise ValueError(
            "gbkit.dataset.merge: cannot merge a "
            f"{type(a).__name__} with a {type(b).__name__}."
        )
    w1, w2 = _check_weights(conflict_resolution)

    entries = _union(a.entries, b.entries)
    features = _union(a.features, b.features)
    row_a, row_b = _positions(a.entries, entries), _positions(b.entries, entries)
    col_a, col_b = _positions(a.features, features), _positions(b.features, features)

    populations = np.empty(len(entries), dtype=object)
    n_pop_conflict = 0
    for i in range(len(entries)):
        if row_a[i] >= 0 and row_b[i] >= 0:
            pop_a, pop_b = a.populations[row_a[i]], b.populations[row_b[i]]
            if pop_a == pop_b:
                populations[i] = pop_a
            else:
                populations[i] = f"CONFLICT ({pop_a}, {pop_b})"
                n_pop_conflict += 1
        elif row_a[i] >= 0:
            populations[i] = a.populations[row_a[i]]
        else:
            populations[i] = b.populations[row_b[i]]

    present_a, data_a, miss_a, mask_a = _align(a, row_a, col_a)
    present_b, data_b, miss_b, mask_b = _align(b, row_b, col_b)

    data = np.full(present_a.shape, np.nan)
    missing = np.ones(present_a.shape, dtype=bool)
    mask = np.zeros(present_a.shape, dtype=bool)
    n_conflict = 0

    chunks = gbkit.data.make_chunks(len(entries), chunk_size)
    for start, stop in tqdm(
        gbkit.data.index_over_chunks(chunks),
        desc="gbkit.dataset.merge",
        total=len(chunks),
        disable=not verbose,
    ):
        s = slice(start, stop)
        pa, xa, ma, ka = present_a[s], data_a[s], miss_a[s], mask_a[s]
        pb, xb, mb, kb = present_b[s], data_b[s], miss_b[s], mask_b[s]
        both = pa & pb
        same_value = (xa == xb) | (np.isnan(xa) & np.isnan(xb))
        equal = both & ((ma & mb) | (~ma & ~mb & same_value))
        conflict = both & ~equal

        # cells of a only, or equal in both
        from_a = (pa & ~pb) | equal
        data[s][from_a] = xa[from_a]
        missing[s][from_a] = ma[from_a]
        mask[s][from_a] = ka[from_a]

        from_b = pb & ~pa
        data[s][from_b] = xb[from_b]
        missing[s][from_b] = mb[from_b]
        mask[s][from_b] = kb[from_b]

        with np.errstate(invalid="ignore", over="ignore"):
            weighted = w1 * xa + w2 * xb
            resolved_mask = np.round(w1 * ka + w2 * kb).astype(bool)
        resolved = np.where(ma, xb, np.where(mb, xa, weighted))
        data[s][conflict] = resolved[conflict]
        missing[s][conflict] = False
        mask[s][conflict] = resolved_mask[conflict]
        n_conflict += int(conflict.sum())

    if n_pop_conflict > 0 or n_conflict > 0:
        gbkit.logger.info(
            f"gbkit.dataset.merge: {n_pop_conflict} population conflicts and "
            f"{n_conflict} conflicting cells resolved with weights ({w1}, {w2})"
        )

    merged = type(a)._from_fields(
        entries=entries,
        populations=populations,
        features=features,
        values=np.ma.MaskedArray(data, mask=missing),
        mask=mask,
    )
    if not check_dims(merged):
        raise RuntimeError(
            f"gbkit.dataset.merge: error merging the two {type(a).__name__}."
        )
    return merged


def merge_genomes_phenomes(
    genomes: Genomes, phenomes: Phenomes, keep_all: bool = True
) -> Tuple[Genomes, Phenomes]:
    """
    Align a Genomes and a Phenomes onto the same list of entries.

    Parameters
    ----------
    genomes : Genomes
        genomes to align
    phenomes : Phenomes
        phenomes to align
    keep_all : bool
        if True, keep the union of the entries (entries of `genomes`, then those
        only in `phenomes`); otherwise keep the entries of `genomes` also in
        `phenomes`. Rows absent from a source are missing and not usable.

    Returns
    -------
    Tuple[Genomes, Phenomes]
        aligned genomes and phenomes, sharing entries and populations. The
        population of an entry is taken from `genomes` when available.
    """
    if not isinstance(genomes, Genomes) or not isinstance(phenomes, Phenomes):
        raise ValueError(
            "gbkit.dataset.merge_genomes_phenomes: expected a Genomes and a Phenomes, "
            f"got a {type(genomes).__name__} and a {type(phenomes).__name__}."
        )
    if not check_dims(genomes):
        raise ValueError("gbkit.dataset.merge_genomes_phenomes: Genomes is corrupted.")
    if not check_dims(phenomes):
        raise ValueError("gbkit.dataset.merge_genomes_phenomes: Phenomes is corrupted.")

    if keep_all:
        entries = _union(genomes.entries, phenomes.entries)
    else:
        common = set(phenomes.entries)
        entries = np.array([e for e in genomes.entries if e in common], dtype=object)
    row_g = _positions(genomes.entries, entries)
    row_p = _positions(phenomes.entries, entries)
    populations = np.array(
        [
            genomes.populations[ig] if ig >= 0 else phenomes.populations[ip]
            for ig, ip in zip(row_g, row_p)
        ],
        dtype=object,
    )
    gbkit.logger.info(
        f"gbkit.dataset.merge_genomes_phenomes: {len(entries)} entries, "
        f"{np.sum(row_g < 0)} missing from the genomes and {np.sum(row_p < 0)} "
        "missing from the phenomes"
    )

    res = []
    for dset, rows in zip([genomes, phenomes], [row_g, row_p]):
        _, data, missing, mask = _align(dset, rows, np.arange(dset.n_feature))
        res.append(
            type(dset)._from_fields(
                entries=entries,
                populations=populations,
                features=dset.features,
                values=np.ma.MaskedArray(data, mask=missing),
                mask=mask,
            )
        )
    return res[0], res[1]
