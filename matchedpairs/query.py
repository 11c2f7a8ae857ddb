"""Contains the query engine answering lookups on a loaded data set."""

import collections.abc
import dataclasses
import json
import logging
import random
import typing

import numpy as np

from matchedpairs import dataset, fields, fragments, graph, interfaces

logger = logging.getLogger(__name__)

SIMILARITY_IDENTICAL = 6
NEUTRAL_BAND = 0.1
SORT_BY_EXAMPLES = "examples"
SORT_BY_SIMILARITY = "similarity"


@typing.final
@dataclasses.dataclass(frozen=True, slots=True)
class ExampleMolecule:
    """
    Molecule taking part in a transformation example.

    Attributes
    ----------
    index : typing.Optional[matchedpairs.interfaces.MolIndex]
        Molecule index, None for a virtual molecule.
    structure_id : str
    coordinates : str
    name : str
        Name of the first row of the structure, empty if virtual.
    values : tuple[str, ...]
        Formatted field values of the first row.
    numbers : tuple[typing.Optional[float], ...]
        Field values averaged over duplicate rows.
    """

    index: typing.Optional[interfaces.MolIndex]
    structure_id: str
    coordinates: str
    name: str
    values: tuple[str, ...]
    numbers: tuple[typing.Optional[float], ...]

    @property
    def virtual(self) -> bool:
        return self.index is None


@typing.final
@dataclasses.dataclass(frozen=True, slots=True)
class Example:
    molecule1: ExampleMolecule
    molecule2: ExampleMolecule
    similarity: int


@typing.final
@dataclasses.dataclass(frozen=True, slots=True)
class ThresholdStatistics:
    """
    Statistics of property deltas of examples at or above a similarity.

    Attributes
    ----------
    n : int
    average : typing.Optional[float]
        None if n is 0.
    sd : typing.Optional[float]
        Sample standard deviation, None if n is at most 1.
    increase : int
        Deltas of at least +0.1.
    decrease : int
        Deltas of at most -0.1.
    neutral : int
        Deltas strictly between -0.1 and +0.1.
    """

    n: int
    average: typing.Optional[float]
    sd: typing.Optional[float]
    increase: int
    decrease: int
    neutral: int


@typing.final
@dataclasses.dataclass(frozen=True, slots=True)
class FieldStatistics:
    """
    Delta statistics of one data field.

    Attributes
    ----------
    field : matchedpairs.fields.DataField
    thresholds : tuple[ThresholdStatistics, ...]
        Entry i covers examples with similarity of at least i, for i in 0..5.
    """

    field: fields.DataField
    thresholds: tuple[ThresholdStatistics, ...]


@typing.final
@dataclasses.dataclass(frozen=True, slots=True)
class Transformation:
    """
    Replacement of value1 by value2 together with its evidence.

    Attributes
    ----------
    value1 : str
    value1_atoms : int
    value2 : str
    value2_atoms : int
    cut_type : matchedpairs.interfaces.CutType
    n_examples : int
        Number of stored example pairs.
    similarity : int
        Largest radius at which the rooted fingerprints of both values agree.
    target_exists : bool
        True if the transformed query molecule is part of the data set.
    examples : tuple[Example, ...]
        Examples by decreasing similarity, a virtual example first if the
        target does not exist.
    statistics : tuple[FieldStatistics, ...]
        One entry per data field.
    """

    value1: str
    value1_atoms: int
    value2: str
    value2_atoms: int
    cut_type: interfaces.CutType
    n_examples: int
    similarity: int
    target_exists: bool
    examples: tuple[Example, ...]
    statistics: tuple[FieldStatistics, ...]

    @property
    def delta_atoms(self) -> int:
        return self.value2_atoms - self.value1_atoms

    def to_dict(self) -> dict[str, typing.Any]:
        """Return JSON-compatible representation."""
        return {
            "value1": self.value1,
            "value2": self.value2,
            "n": self.n_examples,
            "delta_atoms": self.delta_atoms,
            "similarity": self.similarity,
            "current": self.target_exists,
            "compounds": [
                [e.molecule1.name, e.molecule2.name] for e in self.examples
            ],
            "similarities": [e.similarity for e in self.examples],
            "structures": [
                [e.molecule1.structure_id, e.molecule2.structure_id]
                for e in self.examples
            ],
            "coordinates": [
                [e.molecule1.coordinates, e.molecule2.coordinates]
                for e in self.examples
            ],
            "datas": [
                {
                    f"similarity{i}": {
                        "n": t.n,
                        "increase": t.increase,
                        "decrease": t.decrease,
                        "neutral": t.neutral,
                        "average": _rounded(t.average),
                        "sd": _rounded(t.sd),
                    }
                    for i, t in enumerate(s.thresholds)
                }
                for s in self.statistics
            ],
        }


def _rounded(value: typing.Optional[float]) -> typing.Optional[float]:
    return None if value is None else round(value, 2)


def delta_statistics(
    deltas: collections.abc.Sequence[float],
) -> ThresholdStatistics:
    """
    Summarize property deltas.

    Parameters
    ----------
    deltas : collections.abc.Sequence[float]
        Differences value2 - value1 of one field.

    Returns
    -------
    ThresholdStatistics
    """
    n = len(deltas)
    array = np.asarray(deltas, dtype=float)
    average = float(np.mean(array)) if n else None
    sd = float(np.std(array, ddof=1)) if n > 1 else None
    increase = int(np.count_nonzero(array >= NEUTRAL_BAND))
    decrease = int(np.count_nonzero(array <= -NEUTRAL_BAND))
    return ThresholdStatistics(
        n, average, sd, increase, decrease, n - increase - decrease
    )


def fingerprint_similarity(
    first: collections.abc.Sequence[collections.abc.Sequence[str]],
    second: collections.abc.Sequence[collections.abc.Sequence[str]],
) -> int:
    """
    Return largest radius at which all paired fingerprints agree.

    Parameters
    ----------
    first : collections.abc.Sequence[collections.abc.Sequence[str]]
        Rooted fingerprints, one per fragment.
    second : collections.abc.Sequence[collections.abc.Sequence[str]]
        Rooted fingerprints to compare with, paired by position.

    Returns
    -------
    int
        Radius in 1..5, or 0 if even the first spheres differ.
    """
    if len(first) != len(second):
        return 0
    for radius in range(fragments.FINGERPRINT_RADII, 0, -1):
        if all(a[radius - 1] == b[radius - 1] for a, b in zip(first, second)):
            return radius
    return 0


class QueryEngine:
    """
    Read-only lookups on a loaded data set.

    Fragments are identified by their canonical identifiers; identifiers
    which are not part of the data set give empty results.  Safe for
    concurrent use once constructed.

    Parameters
    ----------
    data : matchedpairs.dataset.MMPDataset
        Loaded data set.
    calculator : typing.Optional[matchedpairs.interfaces.PropertyCalculator]
        (default: None)
        Fills "Calculated" fields of virtual molecules.
    """

    __slots__ = ("_data", "_dictionary", "_canonicalizer", "_calculator")

    def __init__(
        self,
        data: dataset.MMPDataset,
        calculator: typing.Optional[interfaces.PropertyCalculator] = None,
    ) -> None:
        self._data = data
        self._dictionary = data.dictionary
        self._canonicalizer = data.dictionary.canonicalizer
        self._calculator = calculator

    @property
    def data(self) -> dataset.MMPDataset:
        return self._data

    @property
    def name(self) -> str:
        return self._data.name

    def _keyset(
        self, keys: collections.abc.Sequence[str]
    ) -> typing.Optional[interfaces.KeySet]:
        if len(keys) not in (1, 2):
            raise ValueError(f"Expected one or two keys, got {len(keys)}")
        indices = [self._dictionary.get(key) for key in keys]
        if any(index is None for index in indices):
            return None
        return interfaces.KeySet.of(indices)

    def _observed_keyset(
        self, keys: collections.abc.Sequence[str]
    ) -> typing.Optional[interfaces.KeySet]:
        # double-cut keys are stored in one canonical order only
        keyset = self._keyset(keys)
        if keyset is not None and self._data.observations(keyset):
            return keyset
        if len(keys) == 2:
            swapped = self._keyset((keys[1], keys[0]))
            if swapped is not None and self._data.observations(swapped):
                return swapped
        return None

    def _stored_order(
        self, keys: collections.abc.Sequence[str], value1: str
    ) -> tuple[tuple[str, ...], str]:
        observed = self._observed_keyset(keys)
        if (
            len(keys) != 2
            or observed is None
            or observed == self._keyset(keys)
        ):
            return tuple(keys), value1
        # marker #n of the value attaches to key n
        swapped = self._canonicalizer.parse(value1).relabel_markers(
            {1: 2, 2: 1}
        )
        return (keys[1], keys[0]), self._canonicalizer.canonicalize(swapped)

    def chemical_space_size(self, keys: collections.abc.Sequence[str]) -> int:
        """
        Count distinct molecules observed with a key-set.

        Parameters
        ----------
        keys : collections.abc.Sequence[str]
            Identifiers of one or two keys.

        Returns
        -------
        int
        """
        keyset = self._observed_keyset(keys)
        if keyset is None:
            return 0
        return len({molecule for _, molecule in self._data.observations(keyset)})

    def chemical_space(
        self, keys: collections.abc.Sequence[str]
    ) -> list[dataset.MoleculeEntry]:
        """
        Return rows of the molecules observed with a key-set.

        Molecules appear in order of first observation, every row of a
        duplicated structure included.

        Parameters
        ----------
        keys : collections.abc.Sequence[str]
            Identifiers of one or two keys.

        Returns
        -------
        list[matchedpairs.dataset.MoleculeEntry]
        """
        keyset = self._observed_keyset(keys)
        if keyset is None:
            return []
        molecules = dict.fromkeys(
            molecule for _, molecule in self._data.observations(keyset)
        )
        return [
            entry
            for molecule in molecules
            for entry in self._data.group(molecule)
        ]

    def transformations_size(
        self,
        value1: str,
        min_delta: typing.Optional[int] = None,
        max_delta: typing.Optional[int] = None,
    ) -> int:
        """Count stored transformations of value1 within the size delta."""
        index = self._dictionary.get(value1)
        if index is None:
            return 0
        atoms = self._dictionary.atom_count(index)
        return sum(
            len(pairs)
            for size, pairs in self._data.pairs_of(index).items()
            if _in_range(size - atoms, min_delta, max_delta)
        )

    def transformations(
        self,
        keys: collections.abc.Sequence[str],
        value1: str,
        molecule_id: typing.Optional[str] = None,
        min_delta: typing.Optional[int] = None,
        max_delta: typing.Optional[int] = None,
        sort_by: str = SORT_BY_EXAMPLES,
    ) -> list[Transformation]:
        """
        List replacements of value1 in a molecule made of keys and value1.

        Double-cut keys given in the reverse of their stored order are
        swapped, and the R-group markers of value1 relabeled to match.
        Results use the stored order.

        Parameters
        ----------
        keys : collections.abc.Sequence[str]
            Identifiers of one or two keys, the constant part.
        value1 : str
            Identifier of the part to replace.
        molecule_id : typing.Optional[str] (default: None)
            Structure identifier of the query molecule; built from keys and
            value1 if None.
        min_delta : typing.Optional[int] (default: None)
            Minimum heavy atom change of the replacement, unbounded if None.
        max_delta : typing.Optional[int] (default: None)
            Maximum heavy atom change of the replacement, unbounded if None.
        sort_by : str (default: "examples")
            "examples" orders by decreasing number of examples,
            "similarity" by decreasing fingerprint similarity of the values.

        Returns
        -------
        list[Transformation]

        Raises
        ------
        ValueError
            If sort_by is unknown or the number of keys is not one or two.
        """
        if sort_by not in (SORT_BY_EXAMPLES, SORT_BY_SIMILARITY):
            raise ValueError(f"Unknown sort order {sort_by!r}")
        keys, value1 = self._stored_order(keys, value1)
        keyset = self._keyset(keys)
        value1_index = self._dictionary.get(value1)
        if value1_index is None:
            return []
        value1_atoms = self._dictionary.atom_count(value1_index)
        value1_fp = self._dictionary.fingerprint(value1_index)
        key_fps = [self._fingerprint(key) for key in keys]
        molecules: dict[int, ExampleMolecule] = {}
        current: typing.Optional[ExampleMolecule] = None

        found = []
        for size, pairs in sorted(self._data.pairs_of(value1_index).items()):
            if not _in_range(size - value1_atoms, min_delta, max_delta):
                continue
            for pair in pairs:
                if pair.cut_type != len(keys):
                    continue
                examples = [
                    Example(
                        self._example_molecule(m1, molecules),
                        self._example_molecule(m2, molecules),
                        self._example_similarity(
                            pair, m1, m2, keyset, key_fps
                        ),
                    )
                    for m1, m2 in pair.examples
                ]
                examples.sort(key=lambda e: e.similarity, reverse=True)
                target = self._target(keyset, pair.value2)
                if target is None:
                    if current is None:
                        current = self._query_molecule(
                            keys, value1, molecule_id, molecules
                        )
                    examples.insert(
                        0,
                        Example(
                            current,
                            self._virtual_molecule(
                                self.molecule_from_key_value(
                                    keys, self._dictionary[pair.value2]
                                ),
                                molecules,
                            ),
                            SIMILARITY_IDENTICAL,
                        ),
                    )
                found.append(
                    Transformation(
                        value1=value1,
                        value1_atoms=value1_atoms,
                        value2=self._dictionary[pair.value2],
                        value2_atoms=pair.value2_atoms,
                        cut_type=pair.cut_type,
                        n_examples=len(pair.examples),
                        similarity=fingerprint_similarity(
                            [value1_fp],
                            [self._dictionary.fingerprint(pair.value2)],
                        ),
                        target_exists=target is not None,
                        examples=tuple(examples),
                        statistics=self._statistics(examples),
                    )
                )
        if sort_by == SORT_BY_EXAMPLES:
            found.sort(key=lambda t: t.n_examples, reverse=True)
        else:
            found.sort(key=lambda t: t.similarity, reverse=True)
        logger.debug(
            "%s transformations of %r in data set %r",
            len(found),
            value1,
            self.name,
        )
        return found

    def transformations_table(
        self,
        keys: collections.abc.Sequence[str],
        value1: str,
        min_delta: typing.Optional[int] = None,
        max_delta: typing.Optional[int] = None,
    ) -> list[tuple[str, str, int, bool]]:
        """Return (value1, value2, examples, target exists) rows."""
        return [
            (t.value1, t.value2, t.n_examples, t.target_exists)
            for t in self.transformations(
                keys, value1, min_delta=min_delta, max_delta=max_delta
            )
        ]

    def transformations_json(
        self,
        keys: collections.abc.Sequence[str],
        value1: str,
        molecule_id: typing.Optional[str] = None,
        min_delta: typing.Optional[int] = None,
        max_delta: typing.Optional[int] = None,
        sort_by: str = SORT_BY_EXAMPLES,
    ) -> str:
        """Serialize `transformations` as a JSON document."""
        found = self.transformations(
            keys, value1, molecule_id, min_delta, max_delta, sort_by
        )
        return json.dumps(
            {"transformations": [t.to_dict() for t in found]}, indent=1
        )

    def _fingerprint(self, identifier: str) -> tuple[str, ...]:
        index = self._dictionary.get(identifier)
        if index is None:
            return self._dictionary.fingerprint_of(identifier)
        return self._dictionary.fingerprint(index)

    def _target(
        self,
        keyset: typing.Optional[interfaces.KeySet],
        value2: interfaces.FragIndex,
    ) -> typing.Optional[interfaces.MolIndex]:
        if keyset is None:
            return None
        for value, molecule in self._data.observations(keyset):
            if value == value2:
                return molecule
        return None

    def _example_similarity(
        self,
        pair: dataset.StoredPair,
        molecule1: int,
        molecule2: int,
        keyset: typing.Optional[interfaces.KeySet],
        key_fps: collections.abc.Sequence[collections.abc.Sequence[str]],
    ) -> int:
        second = set(self._data.keysets_of(pair.value2, molecule2))
        connecting = [
            keys
            for keys in self._data.keysets_of(pair.value1, molecule1)
            if keys in second
        ]
        if keyset is not None and keyset in connecting:
            return SIMILARITY_IDENTICAL
        return max(
            (
                fingerprint_similarity(
                    [self._dictionary.fingerprint(k) for k in keys], key_fps
                )
                for keys in connecting
            ),
            default=0,
        )

    def _statistics(
        self, examples: collections.abc.Sequence[Example]
    ) -> tuple[FieldStatistics, ...]:
        statistics = []
        for i, field in enumerate(self._data.data_fields):
            deltas = []
            for example in examples:
                first = example.molecule1.numbers[i]
                second = example.molecule2.numbers[i]
                if first is not None and second is not None:
                    deltas.append(
                        (example.similarity, round(second - first, 6))
                    )
            statistics.append(
                FieldStatistics(
                    field,
                    tuple(
                        delta_statistics(
                            [d for similarity, d in deltas if similarity >= t]
                        )
                        for t in range(fragments.FINGERPRINT_RADII + 1)
                    ),
                )
            )
        return tuple(statistics)

    def _example_molecule(
        self, index: int, cache: dict[int, ExampleMolecule]
    ) -> ExampleMolecule:
        if index not in cache:
            first = self._data.group(index)[0]
            cache[index] = ExampleMolecule(
                first.index,
                first.structure_id,
                first.coordinates,
                first.name,
                first.values,
                self._data.numbers(index),
            )
        return cache[index]

    def _query_molecule(
        self,
        keys: collections.abc.Sequence[str],
        value1: str,
        molecule_id: typing.Optional[str],
        cache: dict[int, ExampleMolecule],
    ) -> ExampleMolecule:
        structure_id = molecule_id or self.molecule_from_key_value(keys, value1)
        return self._virtual_molecule(structure_id, cache)

    def _virtual_molecule(
        self, structure_id: str, cache: dict[int, ExampleMolecule]
    ) -> ExampleMolecule:
        # structures which are part of the data set keep their own data
        index = self._data.index_of(structure_id)
        if index is not None:
            return self._example_molecule(index, cache)
        numbers = tuple(
            self._calculate(field, structure_id)
            for field in self._data.data_fields
        )
        return ExampleMolecule(
            None,
            structure_id,
            "",
            "",
            tuple("" if n is None else fields.format_number(n) for n in numbers),
            numbers,
        )

    def _calculate(
        self, field: fields.DataField, structure_id: str
    ) -> typing.Optional[float]:
        if self._calculator is None or not field.calculated:
            return None
        for name in (field.name, field.long_name):
            if self._calculator.supports(name):
                return self._calculator(name, structure_id)
        return None

    def molecule_from_key_value(
        self, keys: collections.abc.Sequence[str], value: str
    ) -> str:
        """
        Return structure identifier of value joined to keys.

        Parameters
        ----------
        keys : collections.abc.Sequence[str]
            Identifiers of one or two keys; key n is attached to R-group
            marker #n of the value.
        value : str
            Identifier of the value.

        Returns
        -------
        str
        """
        parse = self._canonicalizer.parse
        joined = graph.graft(parse(value), [parse(key) for key in keys])
        return self._canonicalizer.canonicalize(joined)

    def structure_id_from_name(self, name: str) -> typing.Optional[str]:
        """Return structure of the first row with a given name."""
        for entry in self._data.rows:
            if entry.name == name:
                return entry.structure_id
        return None

    def data_fields(self) -> tuple[fields.DataField, ...]:
        return self._data.data_fields

    def describe(self) -> dict[str, typing.Any]:
        """Return name, date, molecule count and a random molecule name."""
        rows = self._data.rows
        return {
            "name": self._data.name,
            "date": self._data.info.date,
            "molecules": self._data.molecule_count,
            "random_molecule_name": random.choice(rows).name if rows else None,
        }


def _in_range(
    delta: int, minimum: typing.Optional[int], maximum: typing.Optional[int]
) -> bool:
    return (minimum is None or delta >= minimum) and (
        maximum is None or delta <= maximum
    )
