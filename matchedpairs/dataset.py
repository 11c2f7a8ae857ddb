"""Contains the read-side representation of a persisted data set."""

import collections.abc
import dataclasses
import typing

import numpy as np

from matchedpairs import fields, fragments, interfaces
from matchedpairs.pairindex import Observation


@typing.final
@dataclasses.dataclass(frozen=True, slots=True)
class DatasetInfo:
    """
    Header of a persisted data set.

    Attributes
    ----------
    name : str
        Short name of the data set.
    date : str
        Creation date as written ("DD/MM/YYYY").
    version : str
        File format version.
    keys_min_atoms : int
        Minimum key heavy atom count used when the data set was built.
    """

    name: str
    date: str
    version: str
    keys_min_atoms: int


@typing.final
@dataclasses.dataclass(frozen=True, slots=True)
class MoleculeEntry:
    """
    One row of the Molecules block.

    Attributes
    ----------
    index : matchedpairs.interfaces.MolIndex
    structure_id : str
    coordinates : str
    name : str
    values : tuple[str, ...]
        Formatted values of the numeric data fields.
    """

    index: interfaces.MolIndex
    structure_id: str
    coordinates: str
    name: str
    values: tuple[str, ...]


@typing.final
@dataclasses.dataclass(frozen=True, slots=True)
class StoredPair:
    """
    One row of the Pairs block.

    Attributes
    ----------
    value1 : matchedpairs.interfaces.FragIndex
    value1_atoms : int
    value2 : matchedpairs.interfaces.FragIndex
    value2_atoms : int
    cut_type : matchedpairs.interfaces.CutType
    examples : tuple[tuple[MolIndex, MolIndex], ...]
        (molecule1, molecule2) index pairs.
    """

    value1: interfaces.FragIndex
    value1_atoms: int
    value2: interfaces.FragIndex
    value2_atoms: int
    cut_type: interfaces.CutType
    examples: tuple[tuple[interfaces.MolIndex, interfaces.MolIndex], ...]


class MMPDataset:
    """
    Indexed, read-only view of a persisted data set.

    Populated by the reader; molecules are grouped by structure, fragments
    are indexed forward (key-set to observations) and in reverse
    ((value, molecule) to key-sets), and pairs are grouped by value1 and
    then by value2 size.

    Parameters
    ----------
    info : DatasetInfo
        Header of the data set.
    data_fields : collections.abc.Sequence[matchedpairs.fields.DataField]
        Metadata of the numeric data fields, in column order.
    dictionary : matchedpairs.fragments.FragmentDictionary
        Fragment dictionary of the data set.
    """

    __slots__ = (
        "_info",
        "_fields",
        "_dictionary",
        "_rows",
        "_groups",
        "_structures",
        "_forward",
        "_reverse",
        "_pairs",
        "_record_count",
        "_pair_count",
    )

    def __init__(
        self,
        info: DatasetInfo,
        data_fields: collections.abc.Sequence[fields.DataField],
        dictionary: fragments.FragmentDictionary,
    ) -> None:
        self._info = info
        self._fields = tuple(data_fields)
        self._dictionary = dictionary
        self._rows: list[MoleculeEntry] = []
        self._groups: list[list[MoleculeEntry]] = []
        self._structures: dict[str, interfaces.MolIndex] = {}
        self._forward: dict[interfaces.KeySet, list[Observation]] = {}
        self._reverse: dict[Observation, list[interfaces.KeySet]] = {}
        self._pairs: dict[
            interfaces.FragIndex, dict[int, list[StoredPair]]
        ] = {}
        self._record_count = 0
        self._pair_count = 0

    def add_molecule(self, entry: MoleculeEntry) -> None:
        """
        Add row of the Molecules block.

        Raises
        ------
        ValueError
            If the row opens a new structure out of order, or repeats an
            index under a different structure.
        """
        if entry.index == len(self._groups):
            if entry.structure_id in self._structures:
                raise ValueError(
                    f"Structure of molecule {entry.index} already has index "
                    f"{self._structures[entry.structure_id]}"
                )
            self._groups.append([])
            self._structures[entry.structure_id] = entry.index
        elif not 0 <= entry.index < len(self._groups):
            raise ValueError(
                f"Molecule index {entry.index} out of order, expected at most "
                f"{len(self._groups)}"
            )
        elif self._groups[entry.index][0].structure_id != entry.structure_id:
            raise ValueError(
                f"Molecule index {entry.index} is shared by different "
                "structures"
            )
        self._groups[entry.index].append(entry)
        self._rows.append(entry)

    def add_record(self, record: interfaces.FragmentationRecord) -> None:
        """Add row of the Fragments block."""
        observation = (record.value, record.molecule)
        self._forward.setdefault(record.keys, []).append(observation)
        self._reverse.setdefault(observation, []).append(record.keys)
        self._record_count += 1

    def add_pair(self, pair: StoredPair) -> None:
        """Add row of the Pairs block."""
        self._pairs.setdefault(pair.value1, {}).setdefault(
            pair.value2_atoms, []
        ).append(pair)
        self._pair_count += 1

    @property
    def info(self) -> DatasetInfo:
        return self._info

    @property
    def name(self) -> str:
        return self._info.name

    @property
    def data_fields(self) -> tuple[fields.DataField, ...]:
        return self._fields

    @property
    def dictionary(self) -> fragments.FragmentDictionary:
        return self._dictionary

    @property
    def rows(self) -> collections.abc.Sequence[MoleculeEntry]:
        return self._rows

    @property
    def molecule_count(self) -> int:
        """Number of unique structures."""
        return len(self._groups)

    @property
    def record_count(self) -> int:
        return self._record_count

    @property
    def pair_count(self) -> int:
        return self._pair_count

    def group(self, index: int) -> collections.abc.Sequence[MoleculeEntry]:
        """Return rows sharing the structure of molecule index."""
        return self._groups[index]

    def index_of(
        self, structure_id: str
    ) -> typing.Optional[interfaces.MolIndex]:
        return self._structures.get(structure_id)

    def field_index(self, name: str) -> typing.Optional[int]:
        """Return position of the field with given name or long name."""
        for i, field in enumerate(self._fields):
            if name in (field.name, field.long_name):
                return i
        return None

    def observations(
        self, keys: interfaces.KeySet
    ) -> collections.abc.Sequence[Observation]:
        """Return (value, molecule) observations of a key-set."""
        return self._forward.get(keys, ())

    def keysets_of(
        self, value: int, molecule: int
    ) -> collections.abc.Sequence[interfaces.KeySet]:
        """Return key-sets of the records holding value in molecule."""
        return self._reverse.get((value, molecule), ())

    def pairs_of(
        self, value1: int
    ) -> collections.abc.Mapping[int, collections.abc.Sequence[StoredPair]]:
        """Return pairs starting from value1, keyed by value2 size."""
        return self._pairs.get(value1, {})

    def numbers(self, index: int) -> tuple[typing.Optional[float], ...]:
        """
        Return field values of a molecule, averaged over duplicate rows.

        Only unqualified numbers take part; a field with no such value in
        any row of the structure is None.

        Parameters
        ----------
        index : int
            Molecule index.

        Returns
        -------
        tuple[typing.Optional[float], ...]
            One value per data field.
        """
        group = self._groups[index]
        averaged = []
        for i in range(len(self._fields)):
            values = [
                number
                for number in (fields.exact_number(e.values[i]) for e in group)
                if number is not None
            ]
            averaged.append(float(np.mean(values)) if values else None)
        return tuple(averaged)
