from ._logging import logger, set_log_level
from .dataset import Dataset, Genomes, Phenomes
from . import data, dataset, io, cli
from .version import __version__

__all__ = [
    "data",
    "dataset",
    "io",
    "cli",
    "Dataset",
    "Genomes",
    "Phenomes",
]
