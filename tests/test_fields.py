"""Unit tests for fields module."""

from pytest import approx, mark

from matchedpairs import fields


class TestParseValue:
    @mark.parametrize(
        "raw,number,comparator",
        [
            ("1.5", 1.5, ""),
            (" 2 ", 2.0, ""),
            ("<10", 10.0, "<"),
            (">= 3e-2", 0.03, ">="),
            ("-.5", -0.5, ""),
        ],
    )
    def test_numbers(self, raw, number, comparator):
        """Test parsing of plain and qualified numbers."""
        parsed = fields.parse_value(raw)
        assert parsed.number == approx(number)
        assert parsed.comparator == comparator
        assert parsed.exact == (comparator == "")

    @mark.parametrize("raw", ["", "N/A", "?", None, "active", "1.2.3", "nan"])
    def test_not_numbers(self, raw):
        """Test that null markers and text give no value."""
        assert fields.parse_value(raw) is None

    def test_exact_number(self):
        assert fields.exact_number("4.2") == approx(4.2)
        assert fields.exact_number("<4.2") is None


class TestFormatNumber:
    @mark.parametrize(
        "number,places,expected",
        [
            (2.5, 2, "2.5"),
            (3.0, 2, "3"),
            (1.23456, 2, "1.23"),
            (-0.001, 2, "0"),
            (7.1234, 3, "7.123"),
            (100.0, 1, "100"),
        ],
    )
    def test_format(self, number, places, expected):
        assert fields.format_number(number, places) == expected


class TestPotency:
    def test_micromolar(self):
        """Test conversion of a concentration to its potency."""
        parsed = fields.to_potency(fields.ParsedValue(10.0), "_uM")
        assert parsed.number == approx(5.0)
        assert parsed.comparator == ""

    def test_comparator_inverted(self):
        """Test that the comparator flips with the logarithm."""
        parsed = fields.to_potency(fields.ParsedValue(1.0, "<"), "_nM")
        assert parsed.number == approx(9.0)
        assert parsed.comparator == ">"

    def test_non_positive(self):
        assert fields.to_potency(fields.ParsedValue(0.0), "_mM") is None

    def test_unit(self):
        assert fields.potency_unit("IC50_uM") == "_uM"
        assert fields.potency_unit("logD") is None


class TestDataField:
    def test_plain(self):
        field = fields.DataField.from_source_name("logD")
        assert field.name == field.long_name == "logD"
        assert field.category == fields.DEFAULT_CATEGORY
        assert not field.calculated

    def test_categorized(self):
        """Test names of the form category, name, long name."""
        field = fields.DataField.from_source_name(
            "Calculated\tmw\tMolecular weight"
        )
        assert field.name == "mw"
        assert field.long_name == "Molecular weight"
        assert field.calculated

    def test_potency_renamed(self):
        """Test that concentration fields are renamed to potencies."""
        field = fields.DataField.from_source_name("Activity\tIC50_uM\t")
        assert field.name == "pIC50"
        assert field.long_name == "pIC50"
        assert field.category == "Activity"

    def test_percentiles(self):
        """Test that percentiles are rounded outward."""
        field = fields.DataField("x", "x").with_percentiles([1.0, 1.5, 2.0])
        assert field.percentile5 == approx(1.0)
        assert field.percentile95 == approx(2.0)
        empty = field.with_percentiles([])
        assert empty.percentile5 is None
        assert empty.percentile95 is None


class TestFieldClassifier:
    def test_downgrade(self):
        """Test that one text value makes a field text for good."""
        classifier = fields.FieldClassifier(["a", "b"])
        classifier.observe(["1", "2"])
        classifier.observe(["N/A", "high"])
        classifier.observe(["<3", "4"])
        assert classifier.kind(0) is fields.FieldKind.NUMERIC
        assert classifier.kind(1) is fields.FieldKind.TEXT
        assert classifier.numeric_fields() == [0]

    def test_format(self):
        """Test persisted text of field values."""
        classifier = fields.FieldClassifier(["logD", "IC50_uM"])
        assert classifier.format(0, "1.234") == "1.23"
        assert classifier.format(0, "") == ""
        assert classifier.format(1, "10") == "5"
        assert classifier.format(1, "<10") == ">5"
        assert classifier.format(1, "0") == ""
