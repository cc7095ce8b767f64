from ._dataset import (
    Dataset,
    Genomes,
    Phenomes,
    check_dims,
    dimensions,
    tabularise,
    clone,
)
from ._index import normalize_indices
from ._slice import slice_dataset, filter_dataset, filter_genomes
from ._merge import merge_datasets, merge_genomes_phenomes
from ._distance import distances, DataTooSparseError
from ._composite import add_composite_feature
