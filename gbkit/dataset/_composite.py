import numpy as np
import gbkit
from ._dataset import Dataset, check_dims


def add_composite_feature(dset: Dataset, name: str, formula: str) -> Dataset:
    """
    Add (or overwrite) a feature computed from other features.

    Parameters
    ----------
    dset : Dataset
        dataset holding the features referred to in `formula`
    name : str
        name of the composite feature. If a feature with this name exists, its
        values are overwritten and its mask is kept; otherwise a new usable
        feature is appended
    formula : str
        arithmetic formula over feature names, e.g. "(height + `leaf width`) / 2",
        see `gbkit.data.Formula` for the syntax

    Returns
    -------
    Dataset
        new dataset with the composite feature. An entry is missing in the
        composite feature if it is missing in any feature used by `formula`

    Examples
    --------
    >>> phenomes = gbkit.Phenomes(
    ...     entries=["e1", "e2"],
    ...     populations=["p1", "p1"],
    ...     traits=["A", "B"],
    ...     phenotypes=[[1.0, 2.0], [3.0, None]],
    ... )
    >>> add_composite_feature(phenomes, "A_B", "A * B").traits
    array(['A', 'B', 'A_B'], dtype=object)
    """
    if not check_dims(dset):
        raise ValueError(
            f"gbkit.dataset.add_composite_feature: {type(dset).__name__} is corrupted."
        )
    f = gbkit.data.Formula(formula)
    feature_idx = {feature: j for j, feature in enumerate(dset.features)}
    unknown = [v for v in f.variables if v not in feature_idx]
    if len(unknown) > 0:
        raise ValueError(
            f"gbkit.dataset.add_composite_feature: unknown feature(s) "
            f"{', '.join(unknown)} in formula {formula!r}."
        )

    data = np.ma.getdata(dset.values)
    missing = dset.missing
    lookup = {v: data[:, feature_idx[v]] for v in f.variables}
    new_values = f.evaluate(lookup, n=dset.n_entry)
    new_missing = np.zeros(dset.n_entry, dtype=bool)
    for v in f.variables:
        new_missing |= missing[:, feature_idx[v]]
    # missing rows are stored as NaN under the missing flag
    new_values[new_missing] = np.nan

    out = dset.clone()
    matches = np.where(out.features == name)[0]
    if len(matches) > 1:
        raise RuntimeError(
            f"gbkit.dataset.add_composite_feature: feature {name!r} is duplicated."
        )
    if len(matches) == 1:
        j = matches[0]
        gbkit.logger.info(
            f"gbkit.dataset.add_composite_feature: overwriting feature {name!r} "
            f"with {formula!r}"
        )
        data, missing = np.ma.getdata(out.values).copy(), out.missing.copy()
        data[:, j], missing[:, j] = new_values, new_missing
        out.values = np.ma.MaskedArray(data, mask=missing)
    else:
        out = type(dset)._from_fields(
            entries=out.entries,
            populations=out.populations,
            features=np.append(out.features, np.array([name], dtype=object)),
            values=np.ma.concatenate(
                [
                    out.values,
                    np.ma.MaskedArray(new_values[:, None], mask=new_missing[:, None]),
                ],
                axis=1,
            ),
            mask=np.concatenate(
                [out.mask, np.ones((dset.n_entry, 1), dtype=bool)], axis=1
            ),
        )
    if not check_dims(out):
        raise RuntimeError(
            f"gbkit.dataset.add_composite_feature: error adding feature {name!r}."
        )
    return out
