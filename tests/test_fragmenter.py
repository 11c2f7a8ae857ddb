"""Unit tests for fragmenter module."""

import itertools

from pytest import fixture, mark

import matchedpairs as mp
from matchedpairs.interfaces import MolIndex


@fixture
def dictionary(canonicalizer):
    return mp.fragments.FragmentDictionary(canonicalizer)


def _named(dictionary, records):
    return {
        (tuple(dictionary[k] for k in record.keys), dictionary[record.value])
        for record in records
    }


class TestFragmenter:
    def test_toluene(self, dictionary, canonicalizer, canonical):
        """Test the single record of toluene."""
        fragmenter = mp.fragmenter.Fragmenter(dictionary)
        result = fragmenter.fragment(
            canonicalizer.parse("Cc1ccccc1"), MolIndex(0)
        )
        assert _named(dictionary, result.records) == {
            ((canonical("[1*]c1ccccc1"),), canonical("[1*]C"))
        }
        assert all(r.molecule == 0 for r in result.records)
        assert len(result.clean_fragments) == 2

    def test_ethylbenzene(self, dictionary, canonicalizer, canonical):
        """Test that small keys are skipped."""
        fragmenter = mp.fragmenter.Fragmenter(dictionary)
        result = fragmenter.fragment(
            canonicalizer.parse("CCc1ccccc1"), MolIndex(1)
        )
        assert _named(dictionary, result.records) == {
            ((canonical("[1*]c1ccccc1"),), canonical("[1*]CC")),
            ((canonical("[1*]Cc1ccccc1"),), canonical("[1*]C")),
        }

    def test_keys_min_atoms(self, dictionary, canonicalizer):
        """Test that no key smaller than the minimum is produced."""
        fragmenter = mp.fragmenter.Fragmenter(dictionary, keys_min_atoms=7)
        result = fragmenter.fragment(
            canonicalizer.parse("Cc1ccccc1"), MolIndex(0)
        )
        assert result.records == ()

    def test_value_max_atoms(self, dictionary, canonicalizer, canonical):
        """Test that no value larger than the maximum is produced."""
        fragmenter = mp.fragmenter.Fragmenter(dictionary, value_max_atoms=1)
        result = fragmenter.fragment(
            canonicalizer.parse("CCc1ccccc1"), MolIndex(0)
        )
        assert _named(dictionary, result.records) == {
            ((canonical("[1*]Cc1ccccc1"),), canonical("[1*]C"))
        }

    def test_both_directions(self, dictionary, canonicalizer, canonical):
        """Test that a cut with two large sides yields both records."""
        fragmenter = mp.fragmenter.Fragmenter(dictionary, double_cuts=False)
        result = fragmenter.fragment(
            canonicalizer.parse("c1ccccc1Oc1ccncc1"), MolIndex(0)
        )
        named = _named(dictionary, result.records)
        phenyl = canonical("[1*]c1ccccc1")
        pyridyloxy = canonical("[1*]Oc1ccncc1")
        assert ((phenyl,), pyridyloxy) in named
        assert ((pyridyloxy,), phenyl) in named

    def test_symmetric_cuts(self, dictionary, canonicalizer):
        """Test that symmetry-equivalent cuts each give their records."""
        fragmenter = mp.fragmenter.Fragmenter(dictionary, double_cuts=False)
        result = fragmenter.fragment(
            canonicalizer.parse("c1ccccc1CCc1ccccc1"), MolIndex(0)
        )
        # phenyl/phenethyl both ways per ring bond, benzyl/benzyl twice
        assert len(result.records) == 6
        assert len(set(result.records)) == 3

    def test_repeated_value(self, dictionary, canonicalizer, canonical):
        """Test one methyl record per methyl group of p-xylene."""
        fragmenter = mp.fragmenter.Fragmenter(dictionary)
        result = fragmenter.fragment(
            canonicalizer.parse("Cc1ccc(C)cc1"), MolIndex(0)
        )
        assert [dictionary[r.value] for r in result.records] == [
            canonical("[1*]C"),
            canonical("[1*]C"),
        ]

    @mark.parametrize(
        "smiles",
        ["c1ccccc1CCc1ccncc1", "c1ccccc1CCc1ccccc1", "c1ccccc1OCCOc1ccncc1"],
    )
    def test_double_cut_order(self, dictionary, canonicalizer, smiles):
        """Test that the double-cut record ignores the bond order given."""
        fragmenter = mp.fragmenter.Fragmenter(dictionary)
        molecule = canonicalizer.parse(smiles)
        for first, second in itertools.combinations(
            molecule.rotatable_bonds(), 2
        ):
            assert fragmenter.double_cut(
                molecule, first, second
            ) == fragmenter.double_cut(molecule, second, first)

    def test_double_cut(self, dictionary, canonicalizer, canonical):
        """Test the linker record of a double cut."""
        fragmenter = mp.fragmenter.Fragmenter(dictionary)
        result = fragmenter.fragment(
            canonicalizer.parse("c1ccccc1CCc1ccncc1"), MolIndex(0)
        )
        doubles = [r for r in result.records if len(r.keys) == 2]
        assert len(doubles) == 3
        assert all(r.cut_type == mp.interfaces.CutType.DOUBLE for r in doubles)
        (record,) = [
            r for r in doubles if dictionary.atom_count(r.value) == 2
        ]
        assert {dictionary[k] for k in record.keys} == {
            canonical("[1*]c1ccccc1"),
            canonical("[1*]c1ccncc1"),
        }
        assert dictionary.atom_count(record.value) == 2

    @mark.parametrize("smiles,expected", [("c1ccccc1", 1), ("Cc1ccccc1", 4)])
    def test_hydrogen_variants(self, dictionary, canonicalizer, smiles, expected):
        """Test one R-H record per unique substitution site."""
        fragmenter = mp.fragmenter.Fragmenter(dictionary)
        records = fragmenter.hydrogen_variants(
            canonicalizer.parse(smiles), MolIndex(0)
        )
        assert len(records) == expected
        assert all(r.value == dictionary.hydrogen for r in records)


class TestOtherCanonicalizer:
    @fixture
    def hexane(self):
        atoms = tuple(
            mp.graph.Atom("C", hydrogens=3 if i in (0, 5) else 2)
            for i in range(6)
        )
        bonds = tuple(mp.graph.Bond(i, i + 1) for i in range(5))
        return mp.graph.MolGraph(atoms, bonds)

    def test_single_cuts(self, hash_canonicalizer, hexane):
        """Test fragmentation without a chemistry toolkit."""
        dictionary = mp.fragments.FragmentDictionary(hash_canonicalizer)
        fragmenter = mp.fragmenter.Fragmenter(
            dictionary, keys_min_atoms=2, double_cuts=False
        )
        result = fragmenter.fragment(hexane, MolIndex(0))
        # end bonds and inner bonds come in symmetric pairs, the middle
        # bond gives propyl/propyl twice
        assert len(result.records) == 8
        assert len(set(result.records)) == 4
        assert len(dictionary) == 6
        sizes = sorted(
            (dictionary.atom_count(r.keys.first), dictionary.atom_count(r.value))
            for r in result.records
        )
        assert sizes == [
            (2, 4), (2, 4), (3, 3), (3, 3), (4, 2), (4, 2), (5, 1), (5, 1)
        ]

    def test_double_cut_order(self, hash_canonicalizer, hexane):
        dictionary = mp.fragments.FragmentDictionary(hash_canonicalizer)
        fragmenter = mp.fragmenter.Fragmenter(dictionary, keys_min_atoms=2)
        for first, second in itertools.combinations(range(5), 2):
            assert fragmenter.double_cut(
                hexane, first, second
            ) == fragmenter.double_cut(hexane, second, first)

    def test_fingerprint(self, hash_canonicalizer, hexane):
        """Test that fingerprints only need the canonicalizer interface."""
        dictionary = mp.fragments.FragmentDictionary(hash_canonicalizer)
        fragmenter = mp.fragmenter.Fragmenter(dictionary, keys_min_atoms=2)
        fragmenter.fragment(hexane, MolIndex(0))
        assert all(
            len(dictionary.fingerprint(i)) == mp.fragments.FINGERPRINT_RADII
            for i in range(len(dictionary))
        )
