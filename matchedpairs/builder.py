"""Contains the pipeline which builds a matched molecular pair data set."""

import collections.abc
import dataclasses
import logging
import typing

from matchedpairs import (
    enumerator,
    fields,
    fragmenter,
    fragments,
    interfaces,
    pairindex,
    utils,
)
from matchedpairs.exceptions import InvalidMoleculeError

logger = logging.getLogger(__name__)


@typing.final
@dataclasses.dataclass(frozen=True, slots=True)
class MoleculeRow:
    """
    Input row of a data set.

    Attributes
    ----------
    index : matchedpairs.interfaces.MolIndex
        Index of the unique structure; duplicates share one index.
    structure_id : str
    coordinates : str
    name : str
    field_data : tuple[str, ...]
        Raw field values.
    """

    index: interfaces.MolIndex
    structure_id: str
    coordinates: str
    name: str
    field_data: tuple[str, ...]


class MMPBuilder:
    """
    Accumulates molecules and enumerates their matched molecular pairs.

    Molecules are fragmented as they are added; only the first row of each
    structure is fragmented.  Calling `finish` runs the hydrogen replacement
    pass and the enumeration, after which no more molecules can be added.
    Fragmentation records and pairs are spooled to temporary files.

    Parameters
    ----------
    dataset_name : str
        Short name of the data set.
    canonicalizer : matchedpairs.interfaces.Canonicalizer
        Canonical identifier oracle.
    keys_min_atoms : int (default: 4)
        Minimum heavy atom count of a key.
    value_max_atoms : typing.Optional[int] (default: None)
        Maximum heavy atom count of a value.
    hydrogen_variants : bool (default: False)
        Generate R-H records from whole-molecule hydrogen variants instead of
        the data set level hydrogen replacement pass.
    np : int (default: 1)
        Number of processes used for enumeration.
    field_names : collections.abc.Sequence[str] (default: ())
        Names of the fields of each added record.
    """

    __slots__ = (
        "_name",
        "_dictionary",
        "_fragmenter",
        "_index",
        "_hydrogen_variants",
        "_np",
        "_rows",
        "_structures",
        "_clean",
        "_classifier",
        "_records",
        "_pairs",
        "_finished",
    )

    def __init__(
        self,
        dataset_name: str,
        canonicalizer: interfaces.Canonicalizer,
        keys_min_atoms: int = fragmenter.KEYS_MIN_ATOMS,
        value_max_atoms: typing.Optional[int] = None,
        hydrogen_variants: bool = False,
        np: int = 1,
        field_names: collections.abc.Sequence[str] = (),
    ) -> None:
        self._name = dataset_name
        self._dictionary = fragments.FragmentDictionary(canonicalizer)
        self._fragmenter = fragmenter.Fragmenter(
            self._dictionary, keys_min_atoms, value_max_atoms
        )
        self._index = pairindex.PairIndex(self._dictionary)
        self._hydrogen_variants = hydrogen_variants
        self._np = np
        self._rows: list[MoleculeRow] = []
        self._structures: dict[str, interfaces.MolIndex] = {}
        self._clean: list[tuple[fragmenter.CleanFragment, ...]] = []
        self._classifier = fields.FieldClassifier(field_names)
        self._records = utils.RowSpool()
        self._pairs = utils.RowSpool()
        self._finished = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def dictionary(self) -> fragments.FragmentDictionary:
        return self._dictionary

    @property
    def index(self) -> pairindex.PairIndex:
        return self._index

    @property
    def keys_min_atoms(self) -> int:
        return self._fragmenter.keys_min_atoms

    @property
    def classifier(self) -> fields.FieldClassifier:
        return self._classifier

    @property
    def field_names(self) -> tuple[str, ...]:
        return self._classifier.names

    @property
    def rows(self) -> collections.abc.Sequence[MoleculeRow]:
        return self._rows

    @property
    def molecule_count(self) -> int:
        """Number of unique structures."""
        return len(self._structures)

    @property
    def records(self) -> utils.RowSpool:
        """Spooled fragmentation records, in persisted row format."""
        return self._records

    @property
    def pairs(self) -> utils.RowSpool:
        """Spooled matched pairs, in persisted row format."""
        return self._pairs

    @property
    def finished(self) -> bool:
        return self._finished

    def molecule_index(
        self, structure_id: str
    ) -> typing.Optional[interfaces.MolIndex]:
        return self._structures.get(structure_id)

    def set_field_names(self, names: collections.abc.Sequence[str]) -> None:
        """Declare field names; only possible before rows are added."""
        names = tuple(names)
        if names == self._classifier.names:
            return
        if self._rows:
            raise ValueError(
                "Field names cannot change once molecules have been added"
            )
        self._classifier = fields.FieldClassifier(names)

    def add_source(self, source: interfaces.MoleculeSource) -> int:
        """
        Add every record of an input source.

        Parameters
        ----------
        source : matchedpairs.interfaces.MoleculeSource

        Returns
        -------
        int
            Number of rows added.
        """
        self.set_field_names(source.field_names)
        added = 0
        for record in source:
            if self.add(record) is not None:
                added += 1
            if added and added % 1000 == 0:
                logger.info("%s rows added", added)
        logger.info(
            "Added %s rows, %s unique structures, %s fragments",
            added,
            self.molecule_count,
            len(self._dictionary),
        )
        return added

    def add(
        self, record: interfaces.MoleculeRecord
    ) -> typing.Optional[interfaces.MolIndex]:
        """
        Add one input row.

        Parameters
        ----------
        record : matchedpairs.interfaces.MoleculeRecord

        Returns
        -------
        typing.Optional[matchedpairs.interfaces.MolIndex]
            Index of the row's structure, None if the row was skipped.
        """
        if self._finished:
            raise RuntimeError("Cannot add molecules after enumeration")
        structure_id = record.structure_id
        if not structure_id:
            logger.warning(
                "Skipping %r: missing structure identifier", record.name
            )
            return None
        index = self._structures.get(structure_id)
        if index is None:
            index = interfaces.MolIndex(len(self._structures))
            try:
                result = self._fragmenter.fragment(record.molecule, index)
                variants = (
                    self._fragmenter.hydrogen_variants(record.molecule, index)
                    if self._hydrogen_variants
                    else ()
                )
            except InvalidMoleculeError as err:
                logger.warning("Skipping %r: %s", record.name, err)
                return None
            self._structures[structure_id] = index
            for fragmentation in result.records + variants:
                self._add_record(fragmentation)
            if not self._hydrogen_variants:
                self._clean.append(result.clean_fragments)

        n_fields = len(self._classifier.names)
        values = tuple(record.field_data[:n_fields]) + ("",) * max(
            0, n_fields - len(record.field_data)
        )
        self._classifier.observe(values)
        self._rows.append(
            MoleculeRow(
                index, structure_id, record.coordinates, record.name, values
            )
        )
        return index

    def _add_record(self, record: interfaces.FragmentationRecord) -> None:
        self._index.add(record)
        self._records.append(record_row(record))

    def _add_hydrogen_replacements(self) -> int:
        # fragments whose hydrogen-capped form is itself a data set molecule
        added = 0
        for clean_fragments in self._clean:
            for clean in clean_fragments:
                if clean.atoms < self._fragmenter.keys_min_atoms:
                    continue
                target = self._structures.get(clean.hydrogen_form)
                if target is None:
                    continue
                keys = interfaces.KeySet(
                    self._dictionary.intern(clean.fragment, clean.atoms)
                )
                if self._index.add_hydrogen(keys, target):
                    self._records.append(
                        record_row(
                            interfaces.FragmentationRecord(
                                keys, self._dictionary.hydrogen, target
                            )
                        )
                    )
                    added += 1
        self._clean.clear()
        logger.info("Added %s hydrogen replacement records", added)
        return added

    def finish(self) -> int:
        """
        Run hydrogen replacement and pair enumeration.

        Returns
        -------
        int
            Number of matched pairs.
        """
        if self._finished:
            return len(self._pairs)
        if not self._hydrogen_variants:
            self._add_hydrogen_replacements()
        count = enumerator.Enumerator(self._index, self._np).run(self._pairs)
        self._finished = True
        return count

    def close(self) -> None:
        self._records.close()
        self._pairs.close()

    def __enter__(self) -> "MMPBuilder":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def record_row(record: interfaces.FragmentationRecord) -> tuple[object, ...]:
    """Return fields of the persisted fragments row of a record."""
    keys = record.keys
    return (
        keys.first,
        "" if keys.second is None else keys.second,
        record.value,
        int(record.cut_type),
        record.molecule,
    )
