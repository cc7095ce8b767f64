import numpy as np
import pytest
import gbkit

LOCI_ALLELES = [
    "chr1\t100\tA|T\tA",
    "chr1\t100\tA|T\tT",
    "chr1\t200\tC|G|T\tC",
    "chr1\t200\tC|G|T\tG",
    "chr2\t50\tA|C\tA",
    "chr2\t75\tG|T\tG",
]


@pytest.fixture
def phenomes():
    """10 entries x 3 traits, no missing value"""
    rng = np.random.default_rng(1234)
    return gbkit.Phenomes(
        entries=[f"entry_{i + 1}" for i in range(10)],
        populations=["pop_1"] * 5 + ["pop_2"] * 5,
        traits=["A", "B", "C"],
        phenotypes=rng.normal(loc=10.0, scale=2.0, size=(10, 3)),
    )


@pytest.fixture
def genomes():
    """4 entries x 6 loci-alleles over 4 loci, 3 missing values"""
    return gbkit.Genomes(
        entries=["entry_1", "entry_2", "entry_3", "entry_4"],
        populations=["pop_1", "pop_1", "pop_2", "pop_2"],
        loci_alleles=LOCI_ALLELES,
        allele_frequencies=[
            [0.2, 0.8, 0.5, 0.3, 0.0, 0.9],
            [0.4, 0.6, 0.1, 0.6, 0.0, None],
            [0.6, 0.4, None, None, 0.0, 0.8],
            [1.0, 0.0, 0.2, 0.2, 0.0, 0.7],
        ],
    )
