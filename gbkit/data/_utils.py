import numpy as np
from typing import List


def index_over_chunks(chunks: List[int]):
    """
    iterate over consecutive chunks of rows

    Parameters
    ----------
    chunks: List[int]
        Number of rows in each chunk

    Returns
    -------
    generator
        generator of chunk indices so one can access the chunk with
        mat[start : stop, :]
    """
    indices = np.insert(np.cumsum(chunks), 0, 0)
    for i in range(len(indices) - 1):
        start, stop = indices[i], indices[i + 1]
        yield start, stop


def make_chunks(n: int, chunk_size: int) -> List[int]:
    """Split `n` rows into chunks of at most `chunk_size` rows"""
    assert chunk_size > 0, "`chunk_size` must be positive"
    chunks = [chunk_size] * (n // chunk_size)
    if n % chunk_size > 0:
        chunks.append(n % chunk_size)
    return chunks
