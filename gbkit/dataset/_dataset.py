import numpy as np
import pandas as pd
import xarray as xr
from typing import (
    Any,
    Dict,
    List,
    Optional,
    Sequence,
    Tuple,
    Union,
)
import gbkit
from ..data import METRICS
from ._index import normalize_indices


def _as_names(x) -> np.ndarray:
    """Copy a sequence of names into a 1-dimensional object array"""
    return np.array(list(x) if np.ndim(x) == 1 else x, dtype=object)


def _as_values(x) -> np.ma.MaskedArray:
    """
    Copy `x` into a float64 masked array whose mask flags the missing cells.

    Masked cells of a masked array, and None / pd.NA elements of any other array
    are missing. NaN and infinite values are kept as they are.
    """
    if isinstance(x, np.ma.MaskedArray):
        return np.ma.MaskedArray(
            np.ma.getdata(x).astype(np.float64),
            mask=np.ma.getmaskarray(x).copy(),
        )
    arr = np.asarray(x)
    if arr.dtype == object:
        missing = np.array(
            [(v is None) or (v is pd.NA) for v in arr.flat], dtype=bool
        ).reshape(arr.shape)
        data = np.where(missing, np.nan, arr).astype(np.float64)
    else:
        missing = np.zeros(arr.shape, dtype=bool)
        data = arr.astype(np.float64)
    return np.ma.MaskedArray(data, mask=missing)


class Dataset(object):
    """
    Entry x feature matrix of measurements with missing values and a usability mask.

    - entries: unique names of the n samples
    - populations: population of each entry
    - features: unique names of the p measured columns
    - values: (n, p) float masked array, masked cells are missing. NaN and inf are
      legitimate values
    - mask: (n, p) boolean array flagging the cells usable for downstream analyses,
      independent of missingness

    All fields can be assigned directly; assignments are copied but not validated.
    Use `check_dims` to validate. Operations returning a dataset (slice, filter,
    merge, ...) never modify their inputs and never share storage with them.

    Genomes and Phenomes are the two named flavours of this container.
    """

    _feature_label = "feature"

    def __init__(
        self,
        n: int = 1,
        p: int = 2,
        entries: Optional[Sequence[str]] = None,
        populations: Optional[Sequence[str]] = None,
        features: Optional[Sequence[str]] = None,
        values: Optional[Any] = None,
        mask: Optional[np.ndarray] = None,
    ):
        # dimensions are inferred from the provided fields
        if values is not None and np.ndim(values) == 2:
            n, p = np.shape(values)
        else:
            if entries is not None:
                n = len(entries)
            if features is not None:
                p = len(features)

        self.entries = [""] * n if entries is None else entries
        self.populations = [""] * n if populations is None else populations
        self.features = [""] * p if features is None else features
        self.values = np.ma.masked_all((n, p)) if values is None else values
        self.mask = np.ones((n, p), dtype=bool) if mask is None else mask

    @classmethod
    def _from_fields(
        cls,
        entries: Sequence[str],
        populations: Sequence[str],
        features: Sequence[str],
        values: Any,
        mask: np.ndarray,
    ) -> "Dataset":
        """Create an instance of `cls` from its fields, whatever `cls.__init__` is"""
        dset = cls.__new__(cls)
        Dataset.__init__(
            dset,
            entries=entries,
            populations=populations,
            features=features,
            values=values,
            mask=mask,
        )
        return dset

    @property
    def entries(self) -> np.ndarray:
        """Names of the entries"""
        return self._entries

    @entries.setter
    def entries(self, value) -> None:
        self._entries = _as_names(value)

    @property
    def populations(self) -> np.ndarray:
        """Population of each entry"""
        return self._populations

    @populations.setter
    def populations(self, value) -> None:
        self._populations = _as_names(value)

    @property
    def features(self) -> np.ndarray:
        """Names of the features"""
        return self._features

    @features.setter
    def features(self, value) -> None:
        self._features = _as_names(value)

    @property
    def values(self) -> np.ma.MaskedArray:
        """(n_entry, n_feature) measurements, masked where missing"""
        return self._values

    @values.setter
    def values(self, value) -> None:
        self._values = _as_values(value)

    @property
    def mask(self) -> np.ndarray:
        """(n_entry, n_feature) usability of each cell"""
        return self._mask

    @mask.setter
    def mask(self, value) -> None:
        self._mask = np.array(value, dtype=bool)

    @property
    def shape(self) -> Tuple[int, ...]:
        return self._values.shape

    @property
    def n_entry(self) -> int:
        """Number of entries."""
        return self._values.shape[0]

    @property
    def n_feature(self) -> int:
        """Number of features."""
        return self._values.shape[1]

    @property
    def missing(self) -> np.ndarray:
        """(n_entry, n_feature) boolean matrix of missing cells"""
        return np.ma.getmaskarray(self._values)

    def __repr__(self) -> str:
        label = self._feature_label
        descr = (
            f"gbkit.{type(self).__name__} object with n_entry x n_{label} = "
            f"{self.shape[0]} x {self.shape[1] if len(self.shape) > 1 else '?'}"
        )
        if len(self.entries) > 0:
            descr += f"\n\tentries: '{self.entries[0]}' ... '{self.entries[-1]}'"
        if len(self.features) > 0:
            descr += f"\n\t{label}s: '{self.features[0]}' ... '{self.features[-1]}'"
        return descr

    def __eq__(self, other) -> bool:
        """Structural equality of every field, NaN being equal to NaN"""
        if type(self) is not type(other):
            return NotImplemented
        return bool(
            np.array_equal(self.entries, other.entries)
            and np.array_equal(self.populations, other.populations)
            and np.array_equal(self.features, other.features)
            and np.array_equal(self.missing, other.missing)
            and np.array_equal(
                self.values.filled(0.0), other.values.filled(0.0), equal_nan=True
            )
            and np.array_equal(self.mask, other.mask)
        )

    __hash__ = None

    def __getitem__(self, index) -> "Dataset":
        """Returns a sliced copy of the object, ordered as in the dataset.

        Negative integer positions count from the end, as for numpy arrays;
        `slice_dataset` itself only accepts positions in [0, n).
        """
        if not self.check_dims():
            raise ValueError(f"{type(self).__name__} is corrupted.")
        entry_idx, feature_idx = normalize_indices(index, self.entries, self.features)
        return gbkit.dataset.slice_dataset(
            self, idx_entries=entry_idx, idx_features=feature_idx
        )

    def check_dims(self) -> bool:
        """See `gbkit.dataset.check_dims`"""
        return check_dims(self)

    def clone(self) -> "Dataset":
        """Deep copy, sharing no storage with the original"""
        return type(self)._from_fields(
            entries=self.entries,
            populations=self.populations,
            features=self.features,
            values=self.values,
            mask=self.mask,
        )

    def dimensions(self) -> Dict[str, int]:
        """
        Summary counts of the dataset.

        Returns
        -------
        Dict[str, int]
            n_entries (unique entries), n_populations (unique populations),
            n_features, n_total (number of cells), n_zeroes, n_missing, n_nan and
            n_inf (number of cells of each kind)
        """
        if not self.check_dims():
            raise ValueError(
                f"gbkit.dataset.dimensions: {type(self).__name__} is corrupted."
            )
        missing = self.missing
        present = np.ma.getdata(self.values)[~missing]
        return {
            "n_entries": len(set(self.entries)),
            "n_populations": len(set(self.populations)),
            "n_features": len(self.features),
            "n_total": int(missing.size),
            "n_zeroes": int(np.sum(present == 0.0)),
            "n_missing": int(np.sum(missing)),
            "n_nan": int(np.sum(np.isnan(present))),
            "n_inf": int(np.sum(np.isinf(present))),
        }

    def tabularise(self) -> pd.DataFrame:
        """
        One row per entry: `id` (1, 2, ...), `entries`, `populations` and one
        nullable Float64 column per feature. Missing cells are <NA>, NaN stays NaN.
        """
        if not self.check_dims():
            raise ValueError(
                f"gbkit.dataset.tabularise: {type(self).__name__} is corrupted."
            )
        df_ids = pd.DataFrame(
            {
                "id": np.arange(1, self.n_entry + 1),
                "entries": self.entries.astype(str),
                "populations": self.populations.astype(str),
            }
        )
        data = np.ma.getdata(self.values)
        missing = self.missing
        df_values = pd.DataFrame(
            {
                j: pd.arrays.FloatingArray(data[:, j].copy(), missing[:, j].copy())
                for j in range(self.n_feature)
            }
        )
        df_values.columns = list(self.features)
        return pd.concat([df_ids, df_values], axis=1)

    def to_xarray(self) -> xr.Dataset:
        """
        Labelled copy as a xr.Dataset with `values` (missing as NaN), `missing` and
        `mask` over dimensions (entry, feature), and `population` as a coordinate
        of the entries.
        """
        if not self.check_dims():
            raise ValueError(
                f"gbkit.dataset.to_xarray: {type(self).__name__} is corrupted."
            )
        dims = ("entry", "feature")
        return xr.Dataset(
            data_vars={
                "values": (dims, self.values.filled(np.nan)),
                "missing": (dims, self.missing.copy()),
                "mask": (dims, self.mask.copy()),
            },
            coords={
                "entry": self.entries.astype(str),
                "feature": self.features.astype(str),
                "population": ("entry", self.populations.astype(str)),
            },
            attrs={"kind": type(self).__name__},
        )

    @classmethod
    def from_xarray(cls, ds: xr.Dataset) -> "Dataset":
        """Inverse of `to_xarray`"""
        ds = ds.transpose("entry", "feature")
        values = ds["values"].values
        if "missing" in ds:
            missing = ds["missing"].values.astype(bool)
        else:
            missing = np.isnan(values)
        if "mask" in ds:
            mask = ds["mask"].values
        else:
            mask = np.ones(values.shape, dtype=bool)
        if "population" in ds.coords:
            populations = ds["population"].values
        else:
            populations = [""] * values.shape[0]
        return cls._from_fields(
            entries=ds["entry"].values,
            populations=populations,
            features=ds["feature"].values,
            values=np.ma.MaskedArray(values, mask=missing),
            mask=mask,
        )

    def slice(self, idx_entries=None, idx_features=None) -> "Dataset":
        """See `gbkit.dataset.slice_dataset`"""
        return gbkit.dataset.slice_dataset(
            self, idx_entries=idx_entries, idx_features=idx_features
        )

    def filter(self) -> "Dataset":
        """See `gbkit.dataset.filter_dataset`"""
        return gbkit.dataset.filter_dataset(self)

    def merge(
        self,
        other: "Dataset",
        conflict_resolution: Tuple[float, float] = (0.5, 0.5),
        verbose: bool = False,
    ) -> "Dataset":
        """See `gbkit.dataset.merge_datasets`"""
        return gbkit.dataset.merge_datasets(
            self, other, conflict_resolution=conflict_resolution, verbose=verbose
        )

    def distances(
        self,
        metrics: Union[str, Sequence[str]] = METRICS,
        standardize: bool = False,
    ) -> Tuple[List[str], List[str], Dict[str, np.ndarray]]:
        """See `gbkit.dataset.distances`"""
        return gbkit.dataset.distances(self, metrics=metrics, standardize=standardize)

    def add_composite_feature(self, name: str, formula: str) -> "Dataset":
        """See `gbkit.dataset.add_composite_feature`"""
        return gbkit.dataset.add_composite_feature(self, name, formula)


class Genomes(Dataset):
    """
    Allele frequencies of entries across loci-alleles.

    Each locus-allele is described as "chrom\\tpos\\tall|alleles\\tallele", e.g.
    "chr1\\t12345\\tA|T\\tA". `loci_alleles` and `allele_frequencies` are the
    genomic names of `features` and `values`.

    Examples
    --------
    >>> genomes = Genomes(n=2, p=2)
    >>> genomes.entries = ["entry_1", "entry_2"]
    >>> genomes.populations = ["pop_1", "pop_1"]
    >>> genomes.loci_alleles = ["chr1\\t12345\\tA|T\\tA", "chr2\\t678910\\tC|D\\tD"]
    >>> genomes.allele_frequencies = [[0.5, 0.25], [0.9, None]]
    >>> genomes.check_dims()
    True
    """

    _feature_label = "loci_allele"

    def __init__(
        self,
        n: int = 1,
        p: int = 2,
        entries: Optional[Sequence[str]] = None,
        populations: Optional[Sequence[str]] = None,
        loci_alleles: Optional[Sequence[str]] = None,
        allele_frequencies: Optional[Any] = None,
        mask: Optional[np.ndarray] = None,
    ):
        super().__init__(
            n=n,
            p=p,
            entries=entries,
            populations=populations,
            features=loci_alleles,
            values=allele_frequencies,
            mask=mask,
        )

    @property
    def loci_alleles(self) -> np.ndarray:
        return self.features

    @loci_alleles.setter
    def loci_alleles(self, value) -> None:
        self.features = value

    @property
    def allele_frequencies(self) -> np.ma.MaskedArray:
        return self.values

    @allele_frequencies.setter
    def allele_frequencies(self, value) -> None:
        self.values = value

    def parse_loci_alleles(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Chromosome, position and allele of each locus-allele"""
        return gbkit.data.parse_loci_alleles(self.loci_alleles)

    def loci(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """
        Chromosome, position, and the range of locus-alleles [start, stop) of each
        locus, loci being runs of consecutive locus-alleles at the same position.
        """
        if not self.check_dims():
            raise ValueError("gbkit.Genomes.loci: Genomes is corrupted.")
        chromosomes, positions, _ = self.parse_loci_alleles()
        return gbkit.data.locus_runs(chromosomes, positions)

    def dimensions(self) -> Dict[str, int]:
        """
        Summary counts of the dataset, see `Dataset.dimensions`. In addition,
        n_loci_alleles, and when all loci-alleles are well-formed descriptors,
        n_chr, n_loci and max_n_alleles.
        """
        dims = super().dimensions()
        dims["n_loci_alleles"] = dims["n_features"]
        try:
            chromosomes, positions, _ = self.parse_loci_alleles()
            n_alleles = gbkit.data.count_alleles(self.loci_alleles)
        except ValueError as e:
            gbkit.logger.warning(
                f"gbkit.Genomes.dimensions: loci statistics are not available, {e}"
            )
            return dims
        dims["n_chr"] = len(set(chromosomes))
        dims["n_loci"] = len(set(zip(chromosomes, positions)))
        dims["max_n_alleles"] = int(n_alleles.max()) if len(n_alleles) > 0 else 0
        return dims


class Phenomes(Dataset):
    """
    Phenotype values of entries across traits.

    `traits` and `phenotypes` are the phenotypic names of `features` and `values`.

    Examples
    --------
    >>> phenomes = Phenomes(n=2, t=2)
    >>> phenomes.entries = ["entry_1", "entry_2"]
    >>> phenomes.populations = ["pop_A", "pop_B"]
    >>> phenomes.traits = ["height", "yield"]
    >>> phenomes.phenotypes = [[200.0, 2.5], [150.0, None]]
    >>> phenomes.mask = [[True, True], [True, False]]
    >>> phenomes.check_dims()
    True
    """

    _feature_label = "trait"

    def __init__(
        self,
        n: int = 1,
        t: int = 2,
        entries: Optional[Sequence[str]] = None,
        populations: Optional[Sequence[str]] = None,
        traits: Optional[Sequence[str]] = None,
        phenotypes: Optional[Any] = None,
        mask: Optional[np.ndarray] = None,
    ):
        super().__init__(
            n=n,
            p=t,
            entries=entries,
            populations=populations,
            features=traits,
            values=phenotypes,
            mask=mask,
        )

    @property
    def traits(self) -> np.ndarray:
        return self.features

    @traits.setter
    def traits(self, value) -> None:
        self.features = value

    @property
    def phenotypes(self) -> np.ma.MaskedArray:
        return self.values

    @phenotypes.setter
    def phenotypes(self, value) -> None:
        self.values = value

    def dimensions(self) -> Dict[str, int]:
        """Summary counts of the dataset, see `Dataset.dimensions`, plus n_traits"""
        dims = super().dimensions()
        dims["n_traits"] = dims["n_features"]
        return dims


def check_dims(dset: Dataset) -> bool:
    """
    Check that the fields of a dataset are consistent with each other:

    - entries, populations and rows of values / mask have the same length
    - features and columns of values / mask have the same length
    - entries are unique, features are unique

    Parameters
    ----------
    dset : Dataset
        dataset to check

    Returns
    -------
    bool
        whether the dataset is valid
    """
    values, mask = dset.values, dset.mask
    if (np.ndim(values) != 2) or (np.ndim(mask) != 2):
        return False
    if any(np.ndim(x) != 1 for x in [dset.entries, dset.populations, dset.features]):
        return False
    n, p = values.shape
    if (
        (n != len(dset.entries))
        or (n != len(set(dset.entries)))
        or (n != len(dset.populations))
        or (p != len(dset.features))
        or (p != len(set(dset.features)))
        or ((n, p) != mask.shape)
    ):
        return False
    return True


def dimensions(dset: Dataset) -> Dict[str, int]:
    """See `Dataset.dimensions`"""
    return dset.dimensions()


def tabularise(dset: Dataset) -> pd.DataFrame:
    """See `Dataset.tabularise`"""
    return dset.tabularise()


def clone(dset: Dataset) -> Dataset:
    """See `Dataset.clone`"""
    return dset.clone()
