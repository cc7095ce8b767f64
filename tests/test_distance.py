import numpy as np
import pytest
import gbkit


def test_distances_keys(phenomes):
    features, entries, dist = gbkit.dataset.distances(phenomes)
    assert features == list(phenomes.traits)
    assert entries == list(phenomes.entries)
    expected = [
        f"{axis}|{m}"
        for axis in ["features", "entries"]
        for m in list(gbkit.data.METRICS) + ["counts"]
    ]
    assert sorted(dist.keys()) == sorted(expected)
    assert dist["features|euclidean"].shape == (3, 3)
    assert dist["entries|euclidean"].shape == (10, 10)


def test_distances_values(phenomes):
    _, _, dist = phenomes.distances(metrics=["euclidean", "mad", "rmsd", "chi_square"])
    mat = np.ma.getdata(phenomes.phenotypes)
    u, v = mat[:, 0], mat[:, 1]
    assert dist["features|euclidean"][0, 1] == pytest.approx(np.linalg.norm(u - v))
    assert dist["features|mad"][0, 1] == pytest.approx(np.mean(np.abs(u - v)))
    assert dist["features|rmsd"][0, 1] == pytest.approx(np.sqrt(np.mean((u - v) ** 2)))
    eps = np.finfo(float).eps
    assert dist["features|chi_square"][0, 1] == pytest.approx(
        np.sum((u - v) ** 2 / (v + eps))
    )
    # only the second vector is in the denominator
    assert dist["features|chi_square"][1, 0] == pytest.approx(
        np.sum((v - u) ** 2 / (u + eps))
    )
    assert dist["features|euclidean"][1, 0] == dist["features|euclidean"][0, 1]
    assert np.allclose(np.diag(dist["entries|euclidean"]), 0.0)


def test_distances_correlation(phenomes):
    phenomes.phenotypes[:, 1] = 0.0
    _, _, dist = phenomes.distances(metrics="correlation")
    corr = dist["features|correlation"]
    assert corr[0, 0] == pytest.approx(1.0)
    assert corr[2, 2] == pytest.approx(1.0)
    assert np.all(corr[1, :] == -np.inf)
    assert np.all(corr[:, 1] == -np.inf)
    mat = np.ma.getdata(phenomes.phenotypes)
    assert corr[0, 2] == pytest.approx(np.corrcoef(mat[:, 0], mat[:, 2])[0, 1])


def test_distances_counts(phenomes):
    phenomes.phenotypes[0, 0] = np.ma.masked
    phenomes.phenotypes[1, 1] = np.nan
    phenomes.phenotypes[2, 1] = np.inf
    _, _, dist = phenomes.distances(metrics=["mad"])
    counts = dist["features|counts"]
    assert np.array_equal(counts, counts.T)
    assert counts[0, 0] == 9
    assert counts[1, 1] == 8
    assert counts[0, 1] == 7
    assert counts[0, 2] == 9
    assert counts[2, 2] == 10
    counts = dist["entries|counts"]
    assert np.array_equal(counts, counts.T)
    assert counts[0, 3] == 2
    assert counts[3, 4] == 3


def test_distances_too_few_usable():
    phenomes = gbkit.Phenomes(
        entries=["e1", "e2", "e3"],
        populations=["p", "p", "p"],
        traits=["A", "B", "C"],
        phenotypes=[[1.0, 2.0, 3.0], [4.0, None, np.nan], [0.5, 1.5, 7.0]],
    )
    _, _, dist = phenomes.distances()
    assert dist["entries|counts"][0, 1] == 1
    for m in gbkit.data.METRICS:
        assert dist[f"entries|{m}"][0, 1] == -np.inf
        assert dist[f"entries|{m}"][1, 0] == -np.inf
    assert np.isfinite(dist["entries|euclidean"][0, 2])


def test_distances_axes():
    phenomes = gbkit.Phenomes(
        entries=["e1"], populations=["p"], traits=["A", "B"], phenotypes=[[1.0, 2.0]]
    )
    _, _, dist = phenomes.distances(metrics=["euclidean"])
    assert list(dist.keys()) == ["features|euclidean", "features|counts"]

    phenomes = gbkit.Phenomes(
        entries=["e1"], populations=["p"], traits=["A"], phenotypes=[[1.0]]
    )
    with pytest.raises(gbkit.dataset.DataTooSparseError):
        phenomes.distances()
    with pytest.raises(RuntimeError):
        phenomes.distances()


def test_distances_metrics(phenomes):
    _, _, dist = phenomes.distances(metrics=["mad", "euclidean", "mad"])
    assert list(dist.keys()) == [
        "features|mad",
        "features|euclidean",
        "features|counts",
        "entries|mad",
        "entries|euclidean",
        "entries|counts",
    ]
    with pytest.raises(ValueError):
        phenomes.distances(metrics=[])
    with pytest.raises(ValueError, match="Unrecognised"):
        phenomes.distances(metrics=["manhattan"])


def test_standardize(phenomes):
    phenomes.phenotypes[0, 0] = np.ma.masked
    phenomes.phenotypes[1, 0] = np.inf
    mat = phenomes.phenotypes.filled(np.nan)
    std = gbkit.data.standardize(mat)
    col = std[2:, 0]
    assert np.mean(col) == pytest.approx(0.0)
    assert np.std(col, ddof=1) == pytest.approx(1.0)
    assert np.isnan(std[0, 0])
    assert np.isinf(std[1, 0])
    # the input is left untouched
    assert mat[2, 0] == phenomes.phenotypes[2, 0]

    _, _, dist = phenomes.distances(metrics=["euclidean"], standardize=True)
    _, _, dist_raw = phenomes.distances(metrics=["euclidean"])
    assert not np.allclose(dist["features|euclidean"], dist_raw["features|euclidean"])
    assert phenomes.phenotypes[2, 0] == mat[2, 0]


def test_pairwise_distances():
    mat = np.array([[1.0, 2.0, 3.0], [2.0, 4.0, 6.0], [np.nan, 1.0, 0.0]])
    res = gbkit.data.pairwise_distances(mat, ["correlation", "euclidean"])
    assert res["correlation"][0, 1] == pytest.approx(1.0)
    assert res["counts"][0, 2] == 2
    assert res["euclidean"][0, 2] == pytest.approx(np.sqrt(1.0 + 9.0))
