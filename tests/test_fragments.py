"""Unit tests for fragments module."""

from pytest import fixture, raises

import matchedpairs as mp


class TestFragmentDictionary:
    @fixture
    def dictionary(self, canonicalizer):
        return mp.fragments.FragmentDictionary(canonicalizer)

    def test_hydrogen_first(self, dictionary, canonicalizer):
        """Test that index 0 holds the R-H fragment."""
        assert len(dictionary) == 1
        assert dictionary.hydrogen == 0
        assert dictionary[0] == canonicalizer.canonicalize(
            mp.graph.hydrogen_fragment()
        )
        assert dictionary.atom_count(0) == 0

    def test_intern(self, dictionary, canonical):
        """Test that identical identifiers share one index."""
        phenyl = canonical("[1*]c1ccccc1")
        index = dictionary.intern(phenyl)
        assert index == 1
        assert dictionary.intern(phenyl) == index
        assert dictionary.get(phenyl) == index
        assert phenyl in dictionary
        assert dictionary.get(canonical("[1*]C")) is None
        assert dictionary.atom_count(index) == 6

    def test_unseeded(self, canonicalizer):
        """Test that an unseeded dictionary starts empty."""
        dictionary = mp.fragments.FragmentDictionary(canonicalizer, seed=False)
        assert len(dictionary) == 0

    def test_load(self, canonicalizer):
        """Test that stored fingerprints are kept as given."""
        dictionary = mp.fragments.FragmentDictionary(canonicalizer, seed=False)
        dictionary.load("[1*][H]", 0, ("a", "b", "c", "d", "e"))
        assert dictionary.fingerprint(0) == ("a", "b", "c", "d", "e")
        with raises(ValueError):
            dictionary.load("[1*][H]", 0, ("a", "b", "c", "d", "e"))
        with raises(ValueError):
            dictionary.load("[1*]C", 1, ("a", "b"))

    def test_fingerprint(self, dictionary, canonical):
        """Test fingerprint spheres of a small fragment."""
        methyl = dictionary.intern(canonical("[1*]C"))
        fingerprint = dictionary.fingerprint(methyl)
        assert len(fingerprint) == mp.fragments.FINGERPRINT_RADII
        assert len(set(fingerprint)) == 1


class TestRootedFingerprint:
    def test_spheres(self, canonicalizer):
        """Test that spheres agree up to the first differing atom."""
        phenyl = mp.fragments.rooted_fingerprint(
            canonicalizer.parse("[1*]c1ccccc1"), canonicalizer
        )
        pyridyl = mp.fragments.rooted_fingerprint(
            canonicalizer.parse("[1*]c1ccncc1"), canonicalizer
        )
        assert phenyl[:3] == pyridyl[:3]
        assert phenyl[3] != pyridyl[3]

    def test_hydrogen_counts_ignored(self, canonicalizer):
        """Test that hydrogen counts do not change the first sphere."""
        methyl = mp.fragments.rooted_fingerprint(
            canonicalizer.parse("[1*]C"), canonicalizer
        )
        ethyl = mp.fragments.rooted_fingerprint(
            canonicalizer.parse("[1*]CC"), canonicalizer
        )
        assert methyl[0] == ethyl[0]
        assert methyl[1] != ethyl[1]
