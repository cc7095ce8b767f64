import numpy as np
import pytest
import gbkit


def test_merge_self(phenomes):
    merged = gbkit.dataset.merge_datasets(phenomes, phenomes)
    assert merged.check_dims()
    assert merged == phenomes


def test_merge_overlap(phenomes):
    a = phenomes.slice(idx_entries=np.arange(0, 7), idx_features=[0, 1])
    b = phenomes.slice(idx_entries=np.arange(4, 10), idx_features=[1, 2])
    merged = a.merge(b)
    assert isinstance(merged, gbkit.Phenomes)
    assert merged.shape == (10, 3)
    assert list(merged.entries) == list(phenomes.entries)
    assert list(merged.traits) == ["A", "B", "C"]
    assert list(merged.populations) == list(phenomes.populations)
    assert set(merged.entries) == set(a.entries) | set(b.entries)

    # entries 8-10 have no A, entries 1-4 have no C
    assert merged.missing.sum() == 7
    assert np.all(merged.missing[7:, 0])
    assert np.all(merged.missing[:4, 2])
    assert not np.any(merged.mask[merged.missing])
    assert np.all(merged.mask[~merged.missing])
    present = ~merged.missing
    assert np.array_equal(
        np.ma.getdata(merged.phenotypes)[present],
        np.ma.getdata(phenomes.phenotypes)[present],
    )


def test_merge_conflict(phenomes):
    a = phenomes.slice(idx_entries=np.arange(0, 7))
    b = phenomes.slice(idx_entries=np.arange(4, 10))
    b.phenotypes = b.phenotypes + 1.0
    expected = np.ma.getdata(phenomes.phenotypes)

    merged = a.merge(b)
    values = np.ma.getdata(merged.phenotypes)
    assert np.allclose(values[4:7], expected[4:7] + 0.5)
    assert np.allclose(values[:4], expected[:4])
    assert np.allclose(values[7:], expected[7:] + 1.0)

    merged = a.merge(b, conflict_resolution=(1.0, 0.0))
    assert np.allclose(np.ma.getdata(merged.phenotypes)[4:7], expected[4:7])

    merged = a.merge(b, conflict_resolution=(0.25, 0.75), verbose=True)
    assert np.allclose(np.ma.getdata(merged.phenotypes)[4:7], expected[4:7] + 0.75)


def test_merge_conflict_mask(phenomes):
    a = phenomes.slice(idx_entries=np.arange(0, 7))
    b = phenomes.slice(idx_entries=np.arange(4, 10))
    b.phenotypes[0, 0] = 100.0
    b.mask[0, 0] = False

    # round half to even
    merged = a.merge(b, conflict_resolution=(0.5, 0.5))
    assert merged.phenotypes[4, 0] == pytest.approx(
        0.5 * phenomes.phenotypes[4, 0] + 50.0
    )
    assert not merged.mask[4, 0]

    merged = a.merge(b, conflict_resolution=(0.6, 0.4))
    assert merged.mask[4, 0]

    # equal cells keep the mask of the first dataset
    b = phenomes.slice(idx_entries=np.arange(4, 10))
    b.mask[0, 1] = False
    merged = a.merge(b)
    assert merged.mask[4, 1]
    merged = b.merge(a)
    assert not merged.mask[0, 1]


def test_merge_missing(phenomes):
    a = phenomes.slice(idx_entries=np.arange(0, 7))
    b = phenomes.slice(idx_entries=np.arange(4, 10))
    a.phenotypes[4, 0] = np.ma.masked
    a.phenotypes[5, 1] = np.ma.masked
    b.phenotypes[1, 1] = np.ma.masked
    a.phenotypes[6, 2] = np.nan
    b.phenotypes[2, 2] = np.nan

    merged = a.merge(b)
    # only one side is missing: the other side is kept
    assert not merged.missing[4, 0]
    assert merged.phenotypes[4, 0] == phenomes.phenotypes[4, 0]
    # missing on both sides
    assert merged.missing[5, 1]
    # NaN on both sides is not a conflict
    assert np.isnan(merged.phenotypes[6, 2])
    assert merged.missing.sum() == 1


def test_merge_populations(phenomes):
    a = phenomes.slice(idx_entries=np.arange(0, 7))
    b = phenomes.slice(idx_entries=np.arange(4, 10))
    b.populations[0] = "pop_x"
    merged = a.merge(b)
    assert merged.populations[4] == "CONFLICT (pop_1, pop_x)"
    assert merged.populations[5] == "pop_2"


def test_merge_invalid(phenomes, genomes):
    for weights in [(0.5, 0.6), (1.0,), (-0.5, 1.5), (0.2, 0.3, 0.5)]:
        with pytest.raises(ValueError):
            phenomes.merge(phenomes, conflict_resolution=weights)

    with pytest.raises(ValueError, match="cannot merge"):
        gbkit.dataset.merge_datasets(phenomes, genomes)

    corrupted = phenomes.clone()
    corrupted.entries = ["entry_1"] * 10
    with pytest.raises(ValueError, match="first dataset is corrupted"):
        corrupted.merge(phenomes)
    with pytest.raises(ValueError, match="second dataset is corrupted"):
        phenomes.merge(corrupted)
    with pytest.raises(ValueError, match="both datasets are corrupted"):
        corrupted.merge(corrupted)


def test_merge_chunks(phenomes):
    a = phenomes.slice(idx_entries=np.arange(0, 7))
    b = phenomes.slice(idx_entries=np.arange(4, 10))
    b.phenotypes = b.phenotypes * 2.0
    assert gbkit.dataset.merge_datasets(
        a, b, chunk_size=3
    ) == gbkit.dataset.merge_datasets(a, b)


def test_merge_genomes_phenomes(genomes, phenomes):
    g, p = gbkit.dataset.merge_genomes_phenomes(genomes, phenomes)
    assert isinstance(g, gbkit.Genomes) and isinstance(p, gbkit.Phenomes)
    assert list(g.entries) == list(phenomes.entries)
    assert list(p.entries) == list(phenomes.entries)
    assert np.array_equal(g.populations, p.populations)
    assert list(g.populations[:4]) == list(genomes.populations)
    assert list(g.populations[4:]) == list(phenomes.populations[4:])
    assert np.all(g.missing[4:]) and not np.any(g.mask[4:])
    assert np.array_equal(g.missing[:4], genomes.missing)
    assert np.array_equal(p.phenotypes, phenomes.phenotypes)
    assert list(g.loci_alleles) == list(genomes.loci_alleles)

    g, p = gbkit.dataset.merge_genomes_phenomes(genomes, phenomes, keep_all=False)
    assert list(g.entries) == list(genomes.entries)
    assert list(p.entries) == list(genomes.entries)
    assert np.array_equal(
        np.ma.getdata(p.phenotypes), np.ma.getdata(phenomes.phenotypes)[:4]
    )
    assert g.check_dims() and p.check_dims()

    with pytest.raises(ValueError):
        gbkit.dataset.merge_genomes_phenomes(phenomes, genomes)


def test_merge_copy(phenomes):
    a = phenomes.slice(idx_entries=np.arange(0, 7))
    b = phenomes.slice(idx_entries=np.arange(4, 10))
    b.phenotypes = b.phenotypes + 1.0
    a_before, b_before = a.clone(), b.clone()
    merged = a.merge(b)
    for i in [0, 5, 9]:
        merged.phenotypes[i, 0] = -100.0
        merged.mask[i, 0] = False
    merged.entries[0] = "renamed"
    merged.populations[9] = "renamed"
    merged.features[1] = "renamed"
    assert a == a_before
    assert b == b_before
