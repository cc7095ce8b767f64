"""
gbkit.data is for array-level computation: pairwise statistics, formulas and
locus-allele descriptors.

These functions do not depend on gbkit.Dataset and can be used on their own.
"""

from ._distance import METRICS, check_metrics, standardize, pairwise_distances
from ._formula import Formula, tokenize, FUNCTIONS
from ._loci import parse_chr_pos_allele, parse_loci_alleles, count_alleles, locus_runs
from ._utils import index_over_chunks, make_chunks
