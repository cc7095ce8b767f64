import numpy as np
from typing import Optional, Sequence
import gbkit
from ._dataset import Dataset, Genomes, check_dims


def _check_indices(idx: Optional[Sequence[int]], n: int, name: str) -> np.ndarray:
    """Sorted unique positions within [0, n), all positions if `idx` is None"""
    if idx is None:
        return np.arange(n)
    idx = np.ravel(np.asarray(idx))
    if idx.size == 0:
        return np.array([], dtype=int)
    if not issubclass(idx.dtype.type, np.integer):
        raise ValueError(
            f"gbkit.dataset.slice: `{name}` must be integer positions, got {idx.dtype}."
        )
    if (idx.min() < 0) or (idx.max() >= n):
        raise ValueError(
            f"gbkit.dataset.slice: `{name}` accepts positions from 0 to {n - 1}, "
            f"got positions from {idx.min()} to {idx.max()}."
        )
    return np.unique(idx)


def slice_dataset(
    dset: Dataset,
    idx_entries: Optional[Sequence[int]] = None,
    idx_features: Optional[Sequence[int]] = None,
) -> Dataset:
    """
    Subset a dataset by entry and feature positions.

    Positions are deduplicated and sorted, so the result always follows the order
    of `dset`.

    Parameters
    ----------
    dset : Dataset
        dataset to slice
    idx_entries : Sequence[int], optional
        0-based positions of the entries to keep, all entries if None
    idx_features : Sequence[int], optional
        0-based positions of the features to keep, all features if None

    Returns
    -------
    Dataset
        new dataset of the same type as `dset`, sharing no storage with it

    Raises
    ------
    ValueError
        if `dset` is corrupted or if a position is out of range
    """
    if not check_dims(dset):
        raise ValueError(f"gbkit.dataset.slice: {type(dset).__name__} is corrupted.")
    n, p = dset.shape
    idx_entries = _check_indices(idx_entries, n, "idx_entries")
    idx_features = _check_indices(idx_features, p, "idx_features")

    ix = np.ix_(idx_entries, idx_features)
    sliced = type(dset)._from_fields(
        entries=dset.entries[idx_entries],
        populations=dset.populations[idx_entries],
        features=dset.features[idx_features],
        values=dset.values[ix],
        mask=dset.mask[ix],
    )
    if not check_dims(sliced):
        raise RuntimeError(
            f"gbkit.dataset.slice: error slicing the {type(dset).__name__}."
        )
    return sliced


def filter_dataset(dset: Dataset) -> Dataset:
    """
    Keep the entries and the features whose mask is true everywhere.

    An entry (feature) is dropped if any cell of its full row (column) is masked,
    including cells in features (entries) that are dropped themselves.

    Parameters
    ----------
    dset : Dataset
        dataset to filter

    Returns
    -------
    Dataset
        filtered dataset with an all-true mask
    """
    if not check_dims(dset):
        raise ValueError(f"gbkit.dataset.filter: {type(dset).__name__} is corrupted.")
    idx_entries = np.where(np.all(dset.mask, axis=1))[0]
    idx_features = np.where(np.all(dset.mask, axis=0))[0]
    gbkit.logger.info(
        f"gbkit.dataset.filter: kept {len(idx_entries)}/{dset.n_entry} entries and "
        f"{len(idx_features)}/{dset.n_feature} features"
    )
    return slice_dataset(dset, idx_entries=idx_entries, idx_features=idx_features)


def filter_genomes(
    genomes: Genomes,
    maf: float = 0.0,
    max_entry_sparsity: float = 1.0,
    max_locus_sparsity: float = 1.0,
    chr_pos_allele_ids: Optional[Sequence[str]] = None,
) -> Genomes:
    """
    Filter entries and loci-alleles of a Genomes by sparsity and allele frequency.

    Steps, in order:

    1. drop entries whose fraction of missing / non-finite allele frequencies is
       above `max_entry_sparsity`
    2. over the kept entries, drop loci-alleles whose fraction of missing /
       non-finite allele frequencies is above `max_locus_sparsity`
    3. drop loci-alleles whose mean allele frequency is outside [maf, 1 - maf]
    4. if `chr_pos_allele_ids` is given, drop loci-alleles whose (chromosome,
       position, allele) is not listed

    Parameters
    ----------
    genomes : Genomes
        genomes to filter
    maf : float
        minimum allele frequency, within [0, 0.5]
    max_entry_sparsity : float
        maximum fraction of unusable allele frequencies per entry
    max_locus_sparsity : float
        maximum fraction of unusable allele frequencies per locus-allele
    chr_pos_allele_ids : Sequence[str], optional
        loci-alleles to keep, as "chrom\\tpos\\tallele" or full descriptors

    Returns
    -------
    Genomes
        filtered genomes
    """
    if not isinstance(genomes, Genomes):
        raise ValueError(
            f"gbkit.dataset.filter_genomes: expected Genomes, got {type(genomes).__name__}."
        )
    if not check_dims(genomes):
        raise ValueError("gbkit.dataset.filter_genomes: Genomes is corrupted.")
    if not (0.0 <= maf <= 0.5):
        raise ValueError(f"gbkit.dataset.filter_genomes: `maf`={maf} is not in [0, 0.5].")
    for name, val in zip(
        ["max_entry_sparsity", "max_locus_sparsity"],
        [max_entry_sparsity, max_locus_sparsity],
    ):
        if not (0.0 <= val <= 1.0):
            raise ValueError(
                f"gbkit.dataset.filter_genomes: `{name}`={val} is not in [0, 1]."
            )
    if genomes.n_entry == 0 or genomes.n_feature == 0:
        raise ValueError("gbkit.dataset.filter_genomes: Genomes is empty.")

    freq = genomes.allele_frequencies.filled(np.nan)
    usable = np.isfinite(freq)

    idx_entries = np.where(1.0 - usable.mean(axis=1) <= max_entry_sparsity)[0]
    if len(idx_entries) == 0:
        raise ValueError(
            "gbkit.dataset.filter_genomes: all entries are sparser than "
            f"`max_entry_sparsity`={max_entry_sparsity}."
        )
    freq, usable = freq[idx_entries, :], usable[idx_entries, :]

    n_usable = usable.sum(axis=0)
    mean_freq = np.divide(
        np.where(usable, freq, 0.0).sum(axis=0),
        n_usable,
        out=np.full(freq.shape[1], np.nan),
        where=n_usable > 0,
    )
    keep = (1.0 - usable.mean(axis=0) <= max_locus_sparsity) & (
        (mean_freq >= maf) & (mean_freq <= 1.0 - maf)
    )
    if chr_pos_allele_ids is not None:
        wanted = set(gbkit.data.parse_chr_pos_allele(x) for x in chr_pos_allele_ids)
        keep &= np.array(
            [
                gbkit.data.parse_chr_pos_allele(x) in wanted
                for x in genomes.loci_alleles
            ],
            dtype=bool,
        )
    idx_features = np.where(keep)[0]
    if len(idx_features) == 0:
        raise ValueError(
            "gbkit.dataset.filter_genomes: no locus-allele passes the filters."
        )
    gbkit.logger.info(
        f"gbkit.dataset.filter_genomes: kept {len(idx_entries)}/{genomes.n_entry} "
        f"entries and {len(idx_features)}/{genomes.n_feature} loci-alleles"
    )
    return slice_dataset(genomes, idx_entries=idx_entries, idx_features=idx_features)
