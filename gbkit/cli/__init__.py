#!/usr/bin/env python

import fire
from ._utils import log_params
from ._dataset import (
    summarize,
    subset,
    mask_filter,
    filter_genomes,
    merge,
    distance,
    composite,
)


def cli():
    """
    Entry point for the gbkit command line interface.
    """
    fire.Fire()


if __name__ == "__main__":
    fire.Fire()
