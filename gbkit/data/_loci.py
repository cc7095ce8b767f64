import numpy as np
from typing import List, Sequence, Tuple


def parse_chr_pos_allele(name: str) -> Tuple[str, int, str]:
    """Extract (chromosome, position, allele) from a locus-allele descriptor

    Both the full "chrom\\tpos\\tall|alleles\\tallele" form and the short
    "chrom\\tpos\\tallele" form are accepted.

    Parameters
    ----------
    name : str
        tab-separated locus-allele descriptor

    Returns
    -------
    Tuple[str, int, str]
        chromosome, position and allele

    Raises
    ------
    ValueError
        if the descriptor does not have 3 or 4 tab-separated fields, or if the
        position is not an integer
    """
    fields = str(name).split("\t")
    if len(fields) == 4:
        chrom, pos, _, allele = fields
    elif len(fields) == 3:
        chrom, pos, allele = fields
    else:
        raise ValueError(
            f"Locus-allele `{name!r}` must have 3 or 4 tab-separated fields, "
            f"got {len(fields)}."
        )
    try:
        pos = int(pos)
    except ValueError:
        raise ValueError(f"Position `{pos}` of locus-allele `{name!r}` is not an integer.")
    return chrom, pos, allele


def parse_loci_alleles(
    loci_alleles: Sequence[str],
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Split locus-allele descriptors into chromosomes, positions and alleles

    Each descriptor is "chrom\\tpos\\tall|alleles\\tallele", e.g.
    "chr1\\t12345\\tA|T\\tA".

    Parameters
    ----------
    loci_alleles : Sequence[str]
        locus-allele descriptors

    Returns
    -------
    chromosomes : np.ndarray
        chromosome of each locus-allele
    positions : np.ndarray
        position of each locus-allele
    alleles : np.ndarray
        allele of each locus-allele
    """
    chromosomes: List[str] = []
    positions: List[int] = []
    alleles: List[str] = []
    for name in loci_alleles:
        if len(str(name).split("\t")) != 4:
            raise ValueError(
                f"Locus-allele `{name!r}` is not of the form "
                "'chrom\\tpos\\tall|alleles\\tallele'."
            )
        chrom, pos, allele = parse_chr_pos_allele(name)
        chromosomes.append(chrom)
        positions.append(pos)
        alleles.append(allele)
    return (
        np.array(chromosomes, dtype=object),
        np.array(positions, dtype=np.int64),
        np.array(alleles, dtype=object),
    )


def count_alleles(loci_alleles: Sequence[str]) -> np.ndarray:
    """Number of alleles segregating at the locus of each locus-allele"""
    counts = []
    for name in loci_alleles:
        fields = str(name).split("\t")
        if len(fields) != 4:
            raise ValueError(f"Locus-allele `{name!r}` does not list its alleles.")
        counts.append(len(fields[2].split("|")))
    return np.array(counts, dtype=np.int64)


def locus_runs(
    chromosomes: np.ndarray, positions: np.ndarray
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Group consecutive locus-alleles sharing the same chromosome and position.

    Parameters
    ----------
    chromosomes : np.ndarray
        chromosome of each locus-allele
    positions : np.ndarray
        position of each locus-allele

    Returns
    -------
    chromosomes, positions : np.ndarray
        chromosome and position of each locus
    starts, stops : np.ndarray
        locus-alleles of the i-th locus are in [starts[i], stops[i])
    """
    assert len(chromosomes) == len(positions)
    n = len(chromosomes)
    if n == 0:
        empty = np.array([], dtype=np.int64)
        return np.array([], dtype=object), empty, empty, empty
    is_new = np.ones(n, dtype=bool)
    is_new[1:] = (chromosomes[1:] != chromosomes[:-1]) | (
        positions[1:] != positions[:-1]
    )
    starts = np.where(is_new)[0]
    stops = np.append(starts[1:], n)
    return (
        np.asarray(chromosomes, dtype=object)[starts],
        np.asarray(positions)[starts],
        starts,
        stops,
    )
