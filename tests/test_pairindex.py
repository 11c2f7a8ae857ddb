"""Unit tests for pair index and enumerator modules."""

from pytest import fixture, raises

import matchedpairs as mp
from matchedpairs.interfaces import FragmentationRecord, KeySet, MolIndex


@fixture
def index(canonicalizer):
    dictionary = mp.fragments.FragmentDictionary(canonicalizer)
    for identifier, atoms in (
        ("key", 6),
        ("a", 1),
        ("b", 1),
        ("c", 2),
        ("other", 6),
    ):
        dictionary.intern(identifier, atoms)
    pair_index = mp.pairindex.PairIndex(dictionary)
    key = KeySet(dictionary.get("key"))
    for value, molecule in (("a", 0), ("b", 1), ("c", 2)):
        pair_index.add(
            FragmentationRecord(key, dictionary.get(value), MolIndex(molecule))
        )
    pair_index.add(
        FragmentationRecord(
            KeySet(dictionary.get("other")), dictionary.get("a"), MolIndex(3)
        )
    )
    return pair_index


class TestPairIndex:
    def test_buckets(self, index):
        """Test that observations are grouped by value size."""
        assert index.sizes() == [1, 2]
        assert index.max_value_atoms == 2
        assert len(index) == 4
        assert len(index.bucket(1)[KeySet(mp.interfaces.FragIndex(1))]) == 2
        assert index.bucket(5) == {}

    def test_lookup(self, index):
        """Test observations of a key-set across sizes."""
        found = index.lookup(KeySet(mp.interfaces.FragIndex(1)))
        assert [molecule for _, molecule in found] == [0, 1, 2]
        assert KeySet(mp.interfaces.FragIndex(5)) in index
        assert KeySet(mp.interfaces.FragIndex(2)) not in index

    def test_add_hydrogen(self, index):
        """Test that consecutive R-H observations are merged."""
        key = KeySet(mp.interfaces.FragIndex(5))
        assert index.add_hydrogen(key, MolIndex(4))
        assert not index.add_hydrogen(key, MolIndex(5))
        assert index.bucket(0)[key] == [(0, 4)]

    def test_empty(self, canonicalizer):
        """Test an index without observations."""
        dictionary = mp.fragments.FragmentDictionary(canonicalizer)
        assert mp.pairindex.PairIndex(dictionary).max_value_atoms == -1


class TestEnumerator:
    def test_pairs(self, index):
        """Test pairs of same-size and cross-size buckets."""
        pairs = list(mp.enumerator.Enumerator(index))
        found = {(p.value1, p.value2): p for p in pairs}
        # a <-> b, a <-> c, b <-> c
        assert len(pairs) == 6
        assert set(found) == {(2, 3), (3, 2), (2, 4), (4, 2), (3, 4), (4, 3)}
        assert all(p.value1 != p.value2 for p in pairs)
        assert found[(2, 4)].key.value1_atoms == 1
        assert found[(2, 4)].key.value2_atoms == 2
        assert found[(2, 3)].examples[0].molecule1 == 0
        assert found[(3, 2)].examples[0].molecule1 == 1

    def test_no_self_pairs(self, canonicalizer):
        """Test that a value is never paired with itself."""
        dictionary = mp.fragments.FragmentDictionary(canonicalizer)
        key = KeySet(dictionary.intern("key", 6))
        value = dictionary.intern("a", 1)
        pair_index = mp.pairindex.PairIndex(dictionary)
        pair_index.add(FragmentationRecord(key, value, MolIndex(0)))
        pair_index.add(FragmentationRecord(key, value, MolIndex(1)))
        assert list(mp.enumerator.Enumerator(pair_index)) == []

    def test_examples_merged(self, canonicalizer):
        """Test that examples of one transformation share a pair."""
        dictionary = mp.fragments.FragmentDictionary(canonicalizer)
        a = dictionary.intern("a", 1)
        b = dictionary.intern("b", 2)
        pair_index = mp.pairindex.PairIndex(dictionary)
        for i, key in enumerate(("k1", "k2")):
            keys = KeySet(dictionary.intern(key, 6))
            pair_index.add(FragmentationRecord(keys, a, MolIndex(2 * i)))
            pair_index.add(FragmentationRecord(keys, b, MolIndex(2 * i + 1)))
        found = {
            (p.value1, p.value2): p
            for p in mp.enumerator.Enumerator(pair_index)
        }
        assert len(found[(a, b)].examples) == 2
        assert found[(a, b)].row()[5:] == (2, "0,1|2,3")

    def test_processes(self, index):
        """Test that output does not depend on the number of processes."""
        serial = [p.row() for p in mp.enumerator.Enumerator(index, 1)]
        parallel = [p.row() for p in mp.enumerator.Enumerator(index, 2)]
        assert serial == parallel

    def test_invalid_processes(self, index):
        with raises(ValueError):
            mp.enumerator.Enumerator(index, 0)

    def test_run(self, index):
        """Test that pairs are spooled as rows."""
        with mp.utils.RowSpool() as spool:
            count = mp.enumerator.Enumerator(index).run(spool)
            assert count == len(spool) == 6
            assert all(len(row.split("\t")) == 7 for row in spool)

    def test_combinations(self, index):
        """Test that the R-H bucket is never crossed with itself."""
        index.add_hydrogen(KeySet(mp.interfaces.FragIndex(1)), MolIndex(4))
        combinations = mp.enumerator.Enumerator(index).combinations()
        assert (0, 0) not in combinations
        assert len(combinations) == 8
        assert (0, 1) in combinations and (2, 0) in combinations
