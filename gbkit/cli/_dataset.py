import gbkit
import pandas as pd
from ..data import METRICS
from ._utils import log_params, as_list


def _read(path: str, kind: str, mask_path: str = None) -> gbkit.Dataset:
    return gbkit.io.read_tsv(path, kind=kind, mask_path=mask_path)


def summarize(path: str, kind: str = "phenomes", out: str = None):
    """Summary counts of a dataset

    Parameters
    ----------
    path : str
        path to the dataset table
    kind : str
        "phenomes", "genomes" or "dataset"
    out : str, optional
        path to the output table of counts, only logged if None
    """
    log_params("summarize", locals())
    dims = _read(path, kind).dimensions()
    for k, v in dims.items():
        gbkit.logger.info(f"{k}: {v}")
    if out is not None:
        pd.Series(dims, name="count").rename_axis("dimension").to_csv(out, sep="\t")


def subset(
    path: str,
    out: str,
    kind: str = "phenomes",
    entries: str = None,
    features: str = None,
    mask_path: str = None,
    out_mask: str = None,
):
    """Subset a dataset by entry and feature names

    Parameters
    ----------
    path : str
        path to the dataset table
    out : str
        path to the output table
    kind : str
        "phenomes", "genomes" or "dataset"
    entries : str, optional
        comma-separated names of the entries to keep, all entries by default
    features : str, optional
        comma-separated names of the features to keep, all features by default
    mask_path : str, optional
        path to the mask table
    out_mask : str, optional
        path to the output mask table
    """
    log_params("subset", locals())
    dset = _read(path, kind, mask_path)
    entries, features = as_list(entries), as_list(features)
    dset = dset[
        slice(None) if entries is None else entries,
        slice(None) if features is None else features,
    ]
    gbkit.io.write_tsv(dset, out, mask_path=out_mask)


def mask_filter(
    path: str,
    mask_path: str,
    out: str,
    kind: str = "phenomes",
    out_mask: str = None,
):
    """Keep the entries and features which are usable everywhere in the mask

    Parameters
    ----------
    path : str
        path to the dataset table
    mask_path : str
        path to the mask table
    out : str
        path to the output table
    kind : str
        "phenomes", "genomes" or "dataset"
    out_mask : str, optional
        path to the output mask table
    """
    log_params("mask-filter", locals())
    dset = _read(path, kind, mask_path).filter()
    gbkit.io.write_tsv(dset, out, mask_path=out_mask)


def filter_genomes(
    path: str,
    out: str,
    maf: float = 0.0,
    max_entry_sparsity: float = 1.0,
    max_locus_sparsity: float = 1.0,
    ids: str = None,
):
    """Filter genomes by sparsity and minor allele frequency

    Parameters
    ----------
    path : str
        path to the genomes table
    out : str
        path to the output table
    maf : float
        minimum allele frequency
    max_entry_sparsity : float
        maximum fraction of missing allele frequencies per entry
    max_locus_sparsity : float
        maximum fraction of missing allele frequencies per locus-allele
    ids : str, optional
        path to a file listing the loci-alleles to keep, one
        "chrom<TAB>pos<TAB>allele" per line
    """
    log_params("filter-genomes", locals())
    genomes = _read(path, "genomes")
    if ids is not None:
        with open(ids) as f:
            ids = [line.rstrip("\n") for line in f if len(line.strip()) > 0]
        gbkit.logger.info(f"Read {len(ids)} loci-alleles to keep")
    genomes = gbkit.dataset.filter_genomes(
        genomes,
        maf=maf,
        max_entry_sparsity=max_entry_sparsity,
        max_locus_sparsity=max_locus_sparsity,
        chr_pos_allele_ids=ids,
    )
    gbkit.io.write_tsv(genomes, out)


def merge(
    path1: str,
    path2: str,
    out: str,
    kind: str = "phenomes",
    weights: str = "0.5,0.5",
    verbose: bool = False,
):
    """Merge two datasets, resolving conflicting cells with weights

    Parameters
    ----------
    path1 : str
        path to the first dataset table
    path2 : str
        path to the second dataset table
    out : str
        path to the output table
    kind : str
        "phenomes", "genomes" or "dataset"
    weights : str
        comma-separated weights of the first and second dataset
    verbose : bool
        whether to show a progress bar
    """
    log_params("merge", locals())
    weights = [float(w) for w in as_list(weights)]
    dset = _read(path1, kind).merge(
        _read(path2, kind), conflict_resolution=weights, verbose=verbose
    )
    gbkit.io.write_tsv(dset, out)


def distance(
    path: str,
    out_prefix: str,
    kind: str = "phenomes",
    metrics: str = ",".join(METRICS),
    standardize: bool = False,
):
    """Pairwise distances between features and between entries

    Parameters
    ----------
    path : str
        path to the dataset table
    out_prefix : str
        prefix of the output files, <out_prefix>.<axis>.<metric>.tsv
    kind : str
        "phenomes", "genomes" or "dataset"
    metrics : str
        comma-separated metrics among euclidean, correlation, mad, rmsd, chi_square
    standardize : bool
        whether to standardize each feature first
    """
    log_params("distance", locals())
    features, entries, dist = _read(path, kind).distances(
        metrics=as_list(metrics), standardize=standardize
    )
    gbkit.io.write_distances(dist, features, entries, out_prefix)


def composite(
    path: str,
    name: str,
    formula: str,
    out: str,
    kind: str = "phenomes",
):
    """Add a feature computed from other features

    Parameters
    ----------
    path : str
        path to the dataset table
    name : str
        name of the new feature
    formula : str
        formula over feature names, e.g. "(A + B) / 2"
    out : str
        path to the output table
    kind : str
        "phenomes", "genomes" or "dataset"
    """
    log_params("composite", locals())
    dset = _read(path, kind).add_composite_feature(name, formula)
    gbkit.io.write_tsv(dset, out)
