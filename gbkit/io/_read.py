import numpy as np
import pandas as pd
import gbkit
from typing import Optional

# cell contents read as missing values
MISSING_STRINGS = ("NA", "", "missing")

_KINDS = {
    "dataset": "Dataset",
    "genomes": "Genomes",
    "phenomes": "Phenomes",
}


def _parse_values(df: pd.DataFrame) -> np.ma.MaskedArray:
    """Convert a table of strings to floats, masking the missing cells"""
    cells = df.values.astype(str)
    missing = np.isin(cells, MISSING_STRINGS)
    data = np.full(cells.shape, np.nan)
    for (i, j), cell in np.ndenumerate(cells):
        if missing[i, j]:
            continue
        try:
            data[i, j] = float(cell)
        except ValueError:
            raise ValueError(
                f"gbkit.io.read_tsv: cannot parse {cell!r} of entry "
                f"{df.index[i]!r} and feature {df.columns[j]!r} as a number."
            )
    return np.ma.MaskedArray(data, mask=missing)


def _read_table(path: str, sep: str) -> pd.DataFrame:
    """Read a table of strings, refusing repeated column names"""
    header = pd.read_csv(
        path, sep=sep, header=None, nrows=1, dtype=str, keep_default_na=False
    ).iloc[0]
    duplicated = header[header.duplicated()].unique()
    if len(duplicated) > 0:
        raise ValueError(
            f"gbkit.io.read_tsv: {path} has repeated columns {list(duplicated)}."
        )
    return pd.read_csv(path, sep=sep, dtype=str, keep_default_na=False)


def read_tsv(
    path: str,
    kind: str = "phenomes",
    mask_path: Optional[str] = None,
    sep: str = "\t",
) -> "gbkit.Dataset":
    """
    Read a dataset written in the `tabularise` layout.

    Parameters
    ----------
    path : str
        path to the table with columns "entries", "populations" (optional), "id"
        (optional, ignored) and one column per feature. Cells "NA", "missing" and
        empty cells are missing values; "NaN", "Inf" and "-Inf" are read as such
    kind : str
        "phenomes", "genomes" or "dataset"
    mask_path : str, optional
        path to a table of the same layout holding the mask as 1 / 0 or
        true / false, all cells are usable if not provided
    sep : str
        column delimiter

    Returns
    -------
    gbkit.Dataset
        a gbkit.Phenomes, gbkit.Genomes or gbkit.Dataset depending on `kind`
    """
    if kind not in _KINDS:
        raise ValueError(
            f"gbkit.io.read_tsv: `kind` must be one of {', '.join(_KINDS)}, got {kind!r}."
        )
    df = _read_table(path, sep)
    if "entries" not in df.columns:
        raise ValueError(f"gbkit.io.read_tsv: {path} has no `entries` column.")
    entries = df["entries"].values
    if "populations" in df.columns:
        populations = df["populations"].values
    else:
        populations = [""] * len(df)
    df = df.drop(columns=[c for c in ["id", "entries", "populations"] if c in df])
    df.index = entries
    values = _parse_values(df)

    if mask_path is None:
        mask = np.ones(values.shape, dtype=bool)
    else:
        df_mask = _read_table(mask_path, sep)
        df_mask = df_mask.set_index("entries")
        if not df_mask.index.equals(pd.Index(entries)):
            raise ValueError(
                f"gbkit.io.read_tsv: entries of {mask_path} do not match {path}."
            )
        if not set(df.columns).issubset(df_mask.columns):
            raise ValueError(
                f"gbkit.io.read_tsv: features of {mask_path} do not match {path}."
            )
        mask = (
            df_mask[df.columns].apply(lambda col: col.str.lower()).isin(["1", "true"])
        ).values

    cls = getattr(gbkit, _KINDS[kind])
    dset = cls._from_fields(
        entries=entries,
        populations=populations,
        features=df.columns.values,
        values=values,
        mask=mask,
    )
    gbkit.logger.info(f"gbkit.io.read_tsv: read {dset!r}")
    if not dset.check_dims():
        raise ValueError(
            f"gbkit.io.read_tsv: {path} does not hold a valid {_KINDS[kind]}, "
            "check that entries and features are unique."
        )
    return dset
