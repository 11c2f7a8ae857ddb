"""Unit tests for graph module."""

from pytest import mark, raises

import matchedpairs as mp


class TestMolGraph:
    def test_rotatable_bonds(self, canonicalizer):
        """Test that ring and multiple bonds are never rotatable."""
        ethylbenzene = canonicalizer.parse("CCc1ccccc1")
        assert len(ethylbenzene.rotatable_bonds()) == 2
        assert canonicalizer.parse("c1ccccc1").rotatable_bonds() == ()
        assert canonicalizer.parse("C=C").rotatable_bonds() == ()

    def test_cut(self, canonicalizer, canonical):
        """Test that both ends of a cut bond are capped with markers."""
        toluene = canonicalizer.parse("Cc1ccccc1")
        (bond,) = toluene.rotatable_bonds()
        pieces = toluene.cut((bond,))
        assert len(pieces) == 2
        assert {canonicalizer.canonicalize(p.graph) for p in pieces} == {
            canonical("[1*]C"),
            canonical("[1*]c1ccccc1"),
        }
        assert sum(len(p.origin) for p in pieces) == len(toluene)

    def test_cut_leaves_receiver(self, canonicalizer):
        """Test that cutting returns new graphs."""
        toluene = canonicalizer.parse("Cc1ccccc1")
        atoms = len(toluene)
        toluene.cut(toluene.rotatable_bonds())
        assert len(toluene) == atoms
        assert toluene.markers() == ()

    @mark.parametrize(
        "fragment,expected",
        [("[1*]c1ccccc1", "c1ccccc1"), ("[1*]CC", "CC")],
    )
    def test_hydrogenated(self, canonicalizer, canonical, fragment, expected):
        """Test replacement of markers by hydrogen."""
        capped = canonicalizer.parse(fragment).hydrogenated()
        assert capped.markers() == ()
        assert canonicalizer.canonicalize(capped) == canonical(expected)

    def test_heavy_atom_count(self, canonicalizer):
        """Test that markers and hydrogens are not counted."""
        assert canonicalizer.parse("[1*]c1ccccc1").heavy_atom_count == 6
        assert mp.graph.hydrogen_fragment().heavy_atom_count == 0

    def test_hydrogen_variants(self, canonicalizer):
        """Test one variant per hydrogen-bearing atom."""
        variants = list(canonicalizer.parse("Cc1ccccc1").hydrogen_variants())
        assert len(variants) == 6
        assert all(len(v.markers()) == 1 for v in variants)

    def test_distances(self, canonicalizer):
        """Test sphere distances from the marker."""
        fragment = canonicalizer.parse("[1*]CCCC")
        distances = fragment.distances(fragment.markers(), 2)
        assert sorted(distances.values()) == [0, 1, 2]


class TestGraft:
    def test_single(self, canonicalizer, canonical):
        """Test joining a value to one key."""
        joined = mp.graph.graft(
            canonicalizer.parse("[1*]C"), [canonicalizer.parse("[1*]c1ccccc1")]
        )
        assert canonicalizer.canonicalize(joined) == canonical("Cc1ccccc1")

    def test_double(self, canonicalizer, canonical):
        """Test joining a linker to two keys."""
        joined = mp.graph.graft(
            canonicalizer.parse("[1*]CC[2*]"),
            [
                canonicalizer.parse("[1*]c1ccccc1"),
                canonicalizer.parse("[1*]c1ccncc1"),
            ],
        )
        assert canonicalizer.canonicalize(joined) == canonical(
            "c1ccccc1CCc1ccncc1"
        )

    def test_hydrogen(self, canonicalizer, canonical):
        """Test that the R-H value restores the unsubstituted molecule."""
        joined = mp.graph.graft(
            mp.graph.hydrogen_fragment(), [canonicalizer.parse("[1*]c1ccccc1")]
        )
        assert canonicalizer.canonicalize(joined) == canonical("c1ccccc1")

    def test_marker_mismatch(self, canonicalizer):
        """Test that every value marker needs a key."""
        with raises(ValueError):
            mp.graph.graft(
                canonicalizer.parse("[1*]CC[2*]"),
                [canonicalizer.parse("[1*]c1ccccc1")],
            )
