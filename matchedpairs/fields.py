"""Contains field value classification, formatting and metadata."""

import collections.abc
import dataclasses
import enum
import math
import re
import typing

import numpy as np

NULL_VALUES = frozenset(("", "N/A", "?", "\ufffd"))
DEFAULT_CATEGORY = "Other"
CALCULATED_CATEGORY = "Calculated"

# suffix -> factor converting the value to molar
POTENCY_UNITS = {"_uM": 1e-6, "_nM": 1e-9, "_mM": 1e-3}

_INVERTED = {"<": ">", ">": "<", "<=": ">=", ">=": "<="}
_NUMBER = re.compile(
    r"^(?P<cmp><=|>=|<|>)?\s*"
    r"(?P<num>[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)$"
)


def split_source_name(source_name: str) -> tuple[str, str, str]:
    """Split "category<TAB>name<TAB>long name" into its parts."""
    parts = source_name.split("\t")
    if len(parts) >= 3:
        return parts[0] or DEFAULT_CATEGORY, parts[1], parts[2] or parts[1]
    if len(parts) == 2:
        return parts[0] or DEFAULT_CATEGORY, parts[1], parts[1]
    return DEFAULT_CATEGORY, parts[0], parts[0]


class FieldKind(enum.Enum):
    NUMERIC = "numeric"
    TEXT = "text"


@typing.final
@dataclasses.dataclass(frozen=True, slots=True)
class ParsedValue:
    """
    Numeric field value, optionally qualified by a comparator.

    Attributes
    ----------
    number : float
    comparator : str
        One of "<", ">", "<=", ">=", or "" for an exact value.
    """

    number: float
    comparator: str = ""

    @property
    def exact(self) -> bool:
        return not self.comparator


def is_null(raw: typing.Optional[str]) -> bool:
    return raw is None or raw.strip() in NULL_VALUES


def parse_value(raw: typing.Optional[str]) -> typing.Optional[ParsedValue]:
    """
    Parse raw field value.

    Parameters
    ----------
    raw : typing.Optional[str]
        Field value as read from the input.

    Returns
    -------
    typing.Optional[ParsedValue]
        Parsed value, None for null markers and non-numeric text.
    """
    if is_null(raw):
        return None
    match = _NUMBER.match(raw.strip())
    if match is None:
        return None
    number = float(match.group("num"))
    if not math.isfinite(number):
        return None
    return ParsedValue(number, match.group("cmp") or "")


def exact_number(raw: typing.Optional[str]) -> typing.Optional[float]:
    """Return value of a field holding an unqualified number, else None."""
    parsed = parse_value(raw)
    if parsed is None or not parsed.exact:
        return None
    return parsed.number


def format_number(number: float, places: int = 2) -> str:
    """Format number with at most `places` decimals, trailing zeros cut."""
    text = f"{number:.{places}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return text


def potency_unit(name: str) -> typing.Optional[str]:
    """Return concentration unit suffix of a field name, if any."""
    for suffix in POTENCY_UNITS:
        if name.endswith(suffix):
            return suffix
    return None


def to_potency(
    parsed: ParsedValue, unit: str
) -> typing.Optional[ParsedValue]:
    """
    Convert concentration to negative decadic logarithm of molar value.

    Comparators are inverted, since the transform reverses the order of
    values.  Non-positive concentrations have no potency.
    """
    molar = parsed.number * POTENCY_UNITS[unit]
    if molar <= 0:
        return None
    return ParsedValue(
        round(-math.log10(molar), 3),
        _INVERTED.get(parsed.comparator, parsed.comparator),
    )


@typing.final
@dataclasses.dataclass(frozen=True, slots=True)
class DataField:
    """
    Metadata of a numeric data field.

    Attributes
    ----------
    name : str
        Field name as written.
    long_name : str
        Descriptive name.
    category : str
        Grouping category, "Other" by default.
    percentile5 : typing.Optional[float]
    percentile95 : typing.Optional[float]
    """

    name: str
    long_name: str
    category: str = DEFAULT_CATEGORY
    percentile5: typing.Optional[float] = None
    percentile95: typing.Optional[float] = None

    @classmethod
    def from_source_name(cls, source_name: str) -> "DataField":
        """
        Create field from an input field name.

        Names of the form "category<TAB>name<TAB>long name" are split;
        concentration fields are renamed to their potency scale.
        """
        category, name, long_name = split_source_name(source_name)
        unit = potency_unit(name)
        if unit is not None:
            if long_name == name:
                long_name = "p" + name[: -len(unit)]
            name = "p" + name[: -len(unit)]
        return cls(name, long_name, category)

    @property
    def calculated(self) -> bool:
        return self.category.lower() == CALCULATED_CATEGORY.lower()

    def with_percentiles(
        self, numbers: collections.abc.Sequence[float]
    ) -> "DataField":
        """
        Return copy holding the 5th and 95th percentile of numbers.

        Percentiles are rounded outward to one decimal.
        """
        if len(numbers) == 0:
            return dataclasses.replace(self, percentile5=None, percentile95=None)
        p5, p95 = np.percentile(np.asarray(numbers, dtype=float), [5, 95])
        return dataclasses.replace(
            self,
            percentile5=math.floor(float(p5) * 10) / 10,
            percentile95=math.ceil(float(p95) * 10) / 10,
        )


class FieldClassifier:
    """
    Classifies input fields as numeric or text across a whole collection.

    A field starts out numeric and is downgraded to text by the first value
    which is neither null nor a (comparator-qualified) number; a downgraded
    field never becomes numeric again.

    Parameters
    ----------
    names : collections.abc.Sequence[str]
        Input field names.
    """

    __slots__ = ("_names", "_kinds", "_fields", "_units")

    def __init__(self, names: collections.abc.Sequence[str]) -> None:
        self._names = tuple(names)
        self._kinds = [FieldKind.NUMERIC] * len(self._names)
        self._fields = tuple(DataField.from_source_name(n) for n in self._names)
        self._units = tuple(
            potency_unit(split_source_name(n)[1]) for n in self._names
        )

    @property
    def names(self) -> tuple[str, ...]:
        return self._names

    def observe(self, values: collections.abc.Sequence[str]) -> None:
        for i, raw in enumerate(values[: len(self._kinds)]):
            if self._kinds[i] is FieldKind.TEXT or is_null(raw):
                continue
            if parse_value(raw) is None:
                self._kinds[i] = FieldKind.TEXT

    def kind(self, i: int) -> FieldKind:
        return self._kinds[i]

    def numeric_fields(self) -> list[int]:
        """Return positions of fields which stayed numeric."""
        return [i for i, k in enumerate(self._kinds) if k is FieldKind.NUMERIC]

    def field(self, i: int) -> DataField:
        return self._fields[i]

    def format(self, i: int, raw: typing.Optional[str]) -> str:
        """
        Return persisted text of a value of field i.

        Parameters
        ----------
        i : int
            Field position.
        raw : typing.Optional[str]
            Input value.

        Returns
        -------
        str
            Formatted number with its comparator, or "" for null values.
        """
        parsed = parse_value(raw)
        if parsed is None:
            return ""
        unit = self._units[i]
        if unit is not None:
            parsed = to_potency(parsed, unit)
            if parsed is None:
                return ""
            return parsed.comparator + format_number(parsed.number, 3)
        return parsed.comparator + format_number(parsed.number)
