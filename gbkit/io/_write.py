import numpy as np
import pandas as pd
import gbkit
from typing import Dict, Optional, Sequence


def _format_values(dset: "gbkit.Dataset") -> np.ndarray:
    data = np.ma.getdata(dset.values)
    cells = np.array([repr(float(x)) for x in data.flat], dtype=object)
    cells = cells.reshape(data.shape)
    cells[dset.missing] = "NA"
    return cells


def write_tsv(
    dset: "gbkit.Dataset", path: str, mask_path: Optional[str] = None
) -> None:
    """
    Write a dataset in the `tabularise` layout, missing values as "NA".

    Parameters
    ----------
    dset : gbkit.Dataset
        dataset to write
    path : str
        path to the output table
    mask_path : str, optional
        path to the output mask table (1 / 0), the mask is not written if None
    """
    if not dset.check_dims():
        raise ValueError(f"gbkit.io.write_tsv: {type(dset).__name__} is corrupted.")
    features = [str(f) for f in dset.features]
    df_ids = pd.DataFrame(
        {
            "id": np.arange(1, dset.n_entry + 1),
            "entries": dset.entries.astype(str),
            "populations": dset.populations.astype(str),
        }
    )
    df = pd.concat(
        [df_ids, pd.DataFrame(_format_values(dset), columns=features)], axis=1
    )
    df.to_csv(path, sep="\t", index=False)
    gbkit.logger.info(f"gbkit.io.write_tsv: wrote {dset.shape} values to {path}")

    if mask_path is not None:
        df_mask = pd.concat(
            [
                df_ids[["entries"]],
                pd.DataFrame(dset.mask.astype(int), columns=features),
            ],
            axis=1,
        )
        df_mask.to_csv(mask_path, sep="\t", index=False)


def write_distances(
    dist: Dict[str, np.ndarray],
    features: Sequence[str],
    entries: Sequence[str],
    out_prefix: str,
) -> None:
    """
    Write each matrix returned by `gbkit.dataset.distances` to
    <out_prefix>.<axis>.<metric>.tsv

    Parameters
    ----------
    dist : Dict[str, np.ndarray]
        matrices keyed as "<axis>|<metric>"
    features : Sequence[str]
        feature names, labels of the "features" matrices
    entries : Sequence[str]
        entry names, labels of the "entries" matrices
    out_prefix : str
        prefix of the output files
    """
    for key, mat in dist.items():
        axis, metric = key.split("|")
        names = features if axis == "features" else entries
        path = f"{out_prefix}.{axis}.{metric}.tsv"
        df = pd.DataFrame(mat, index=list(names), columns=list(names))
        df.rename_axis(axis).to_csv(path, sep="\t")
        gbkit.logger.info(f"gbkit.io.write_distances: wrote {path}")
