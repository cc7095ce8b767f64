import os
import numpy as np
import pandas as pd
import pytest
import gbkit


def test_phenomes_roundtrip(phenomes, tmp_path):
    phenomes.phenotypes[0, 0] = np.ma.masked
    phenomes.phenotypes[1, 1] = np.nan
    phenomes.phenotypes[2, 2] = -np.inf
    phenomes.mask[3, 0] = False
    path, mask_path = str(tmp_path / "phenomes.tsv"), str(tmp_path / "mask.tsv")
    gbkit.io.write_tsv(phenomes, path, mask_path=mask_path)

    df = pd.read_csv(path, sep="\t", keep_default_na=False, dtype=str)
    assert list(df.columns) == ["id", "entries", "populations", "A", "B", "C"]
    assert df.loc[0, "A"] == "NA"

    res = gbkit.io.read_tsv(path, kind="phenomes", mask_path=mask_path)
    assert isinstance(res, gbkit.Phenomes)
    assert res == phenomes

    # without a mask, all cells are usable
    res = gbkit.io.read_tsv(path)
    assert np.all(res.mask)


def test_genomes_roundtrip(genomes, tmp_path):
    path = str(tmp_path / "genomes.tsv")
    gbkit.io.write_tsv(genomes, path)
    res = gbkit.io.read_tsv(path, kind="genomes")
    assert isinstance(res, gbkit.Genomes)
    assert list(res.loci_alleles) == list(genomes.loci_alleles)
    assert res == genomes


def test_read_tsv(tmp_path):
    path = str(tmp_path / "table.tsv")
    with open(path, "w") as f:
        f.write("entries\tx\ty\n")
        f.write("e1\t1.5\tmissing\n")
        f.write("e2\tNaN\t\n")
        f.write("e3\tInf\tNA\n")
    dset = gbkit.io.read_tsv(path, kind="dataset")
    assert type(dset) is gbkit.Dataset
    assert list(dset.populations) == ["", "", ""]
    assert np.array_equal(dset.missing, [[False, True], [False, True], [False, True]])
    assert np.isnan(dset.values[1, 0])
    assert np.isinf(dset.values[2, 0])

    with pytest.raises(ValueError, match="kind"):
        gbkit.io.read_tsv(path, kind="table")

    with open(path, "w") as f:
        f.write("entries\tx\n")
        f.write("e1\tabc\n")
    with pytest.raises(ValueError, match="cannot parse"):
        gbkit.io.read_tsv(path)

    with open(path, "w") as f:
        f.write("x\ty\n")
        f.write("1\t2\n")
    with pytest.raises(ValueError, match="entries"):
        gbkit.io.read_tsv(path)


def test_write_distances(phenomes, tmp_path):
    features, entries, dist = phenomes.distances(metrics=["euclidean"])
    prefix = str(tmp_path / "dist")
    gbkit.io.write_distances(dist, features, entries, prefix)
    for axis in ["features", "entries"]:
        for m in ["euclidean", "counts"]:
            assert os.path.exists(f"{prefix}.{axis}.{m}.tsv")
    df = pd.read_csv(f"{prefix}.features.euclidean.tsv", sep="\t", index_col=0)
    assert list(df.index) == features
    assert list(df.columns) == features
    assert np.allclose(df.values, dist["features|euclidean"])


def test_read_tsv_repeated_columns(phenomes, tmp_path):
    path = str(tmp_path / "table.tsv")
    with open(path, "w") as f:
        f.write("entries\tA\tA\n")
        f.write("e1\t1\t2\n")
    with pytest.raises(ValueError, match="repeated columns"):
        gbkit.io.read_tsv(path)

    path = str(tmp_path / "phenomes.tsv")
    mask_path = str(tmp_path / "mask.tsv")
    gbkit.io.write_tsv(phenomes, path)
    with open(mask_path, "w") as f:
        f.write("entries\tA\tB\tC\tC\n")
        for e in phenomes.entries:
            f.write(f"{e}\t1\t1\t1\t0\n")
    with pytest.raises(ValueError, match="repeated columns"):
        gbkit.io.read_tsv(path, mask_path=mask_path)
