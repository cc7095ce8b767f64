# flake8: noqa
from setuptools import setup, find_packages
from pathlib import Path

long_description = (Path(__file__).parent / "README.md").read_text()

exec(open("gbkit/version.py").read())

setup(
    name="gbkit",
    version=__version__,
    description="Entry x feature containers for genomic and phenomic breeding data",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "pandas",
        "tqdm",
        "xarray",
        "structlog",
        "fire",
    ],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["gbkit=gbkit.cli:cli"]},
    classifiers=[
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
        "Intended Audience :: Science/Research",
    ],
    long_description=long_description,
    long_description_content_type="text/markdown",
)
