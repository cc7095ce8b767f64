from ._read import read_tsv
from ._write import write_tsv, write_distances
