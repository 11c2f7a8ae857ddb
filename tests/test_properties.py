"""Unit tests for properties module."""

from pytest import approx, mark

from matchedpairs.properties import RDKitPropertyCalculator, normalize_name


@mark.parametrize(
    "name,expected",
    [
        ("Heavy Atoms", "heavyatoms"),
        ("cLogP", "clogp"),
        ("rotatable_bonds", "rotatablebonds"),
    ],
)
def test_normalize_name(name, expected):
    assert normalize_name(name) == expected


class TestRDKitPropertyCalculator:
    def test_supports(self):
        calculator = RDKitPropertyCalculator()
        assert calculator.supports("MW")
        assert calculator.supports("cLogP")
        assert calculator.supports("Heavy atoms")
        assert not calculator.supports("pIC50")

    @mark.parametrize(
        "name,smiles,expected",
        [
            ("mw", "c1ccccc1", 78.11),
            ("heavy_atoms", "Cc1ccccc1", 7),
            ("donors", "OCCN", 2),
            ("rings", "c1ccccc1C1CC1", 2),
            ("aromatic rings", "c1ccccc1C1CC1", 1),
            ("charge", "CC(=O)[O-]", -1),
        ],
    )
    def test_values(self, name, smiles, expected):
        value = RDKitPropertyCalculator()(name, smiles)
        assert value == approx(expected, abs=0.01)

    def test_unknown(self):
        calculator = RDKitPropertyCalculator()
        assert calculator("pIC50", "CCO") is None
        assert calculator("mw", "C1CC") is None
