"""Contains input sources which read molecule records."""

import collections.abc
import logging
import os
import typing

import pandas as pd
import rdkit.Chem.rdchem
import rdkit.Chem.rdmolfiles

from matchedpairs import datatypes, interfaces
from matchedpairs.exceptions import InvalidMoleculeError

logger = logging.getLogger(__name__)


def _record(
    mol: typing.Optional[rdkit.Chem.rdchem.Mol],
    name: str,
    values: collections.abc.Sequence[str],
    canonicalizer: interfaces.Canonicalizer,
) -> typing.Optional[datatypes.MoleculeRecordBasic]:
    if mol is None:
        logger.warning("Skipping %r: structure cannot be parsed", name)
        return None
    try:
        return datatypes.MoleculeRecordBasic.from_rdkit(
            mol, name, values, canonicalizer
        )
    except InvalidMoleculeError as err:
        logger.warning("Skipping %r: %s", name, err)
        return None


class RecordListSource(interfaces.MoleculeSource):
    """
    In-memory rows of (name, SMILES, field values).

    Parameters
    ----------
    entries : collections.abc.Iterable[
              tuple[str, str, collections.abc.Sequence[str]]]
        Rows to read.
    field_names : collections.abc.Sequence[str] (default: ())
        Names of the field values of each row.
    canonicalizer : typing.Optional[matchedpairs.interfaces.Canonicalizer]
        (default: None)
        Oracle producing structure identifiers, RDKit if None.
    """

    __slots__ = ("_entries", "_field_names", "_canonicalizer")

    def __init__(
        self,
        entries: collections.abc.Iterable[
            tuple[str, str, collections.abc.Sequence[str]]
        ],
        field_names: collections.abc.Sequence[str] = (),
        canonicalizer: typing.Optional[interfaces.Canonicalizer] = None,
    ) -> None:
        self._entries = list(entries)
        self._field_names = tuple(field_names)
        if canonicalizer is None:
            canonicalizer = datatypes.RDKitCanonicalizer()
        self._canonicalizer = canonicalizer

    @property
    def field_names(self) -> tuple[str, ...]:
        return self._field_names

    def __iter__(self) -> collections.abc.Iterator[interfaces.MoleculeRecord]:
        for name, smiles, values in self._entries:
            record = _record(
                rdkit.Chem.rdmolfiles.MolFromSmiles(smiles),
                name,
                [str(v) for v in values],
                self._canonicalizer,
            )
            if record is not None:
                yield record


class SDFileSource(interfaces.MoleculeSource):
    """
    Records of an SD file.

    The field names are the union of the SD data items of all records, in
    order of first appearance; the molecule title is used as name.

    Parameters
    ----------
    path : typing.Union[str, os.PathLike]
    canonicalizer : typing.Optional[matchedpairs.interfaces.Canonicalizer]
        (default: None)
    """

    __slots__ = ("_path", "_canonicalizer", "_field_names")

    def __init__(
        self,
        path: typing.Union[str, os.PathLike],
        canonicalizer: typing.Optional[interfaces.Canonicalizer] = None,
    ) -> None:
        self._path = os.fspath(path)
        if canonicalizer is None:
            canonicalizer = datatypes.RDKitCanonicalizer()
        self._canonicalizer = canonicalizer
        self._field_names: typing.Optional[tuple[str, ...]] = None

    @property
    def field_names(self) -> tuple[str, ...]:
        if self._field_names is None:
            names: dict[str, None] = {}
            for mol in rdkit.Chem.rdmolfiles.SDMolSupplier(self._path):
                if mol is not None:
                    names.update(dict.fromkeys(mol.GetPropNames()))
            self._field_names = tuple(names)
        return self._field_names

    def __iter__(self) -> collections.abc.Iterator[interfaces.MoleculeRecord]:
        field_names = self.field_names
        supplier = rdkit.Chem.rdmolfiles.SDMolSupplier(self._path)
        for i, mol in enumerate(supplier):
            name = f"{os.path.basename(self._path)}:{i + 1}"
            values: list[str] = []
            if mol is not None:
                if mol.HasProp("_Name") and mol.GetProp("_Name").strip():
                    name = mol.GetProp("_Name").strip()
                values = [
                    mol.GetProp(field) if mol.HasProp(field) else ""
                    for field in field_names
                ]
            record = _record(mol, name, values, self._canonicalizer)
            if record is not None:
                yield record


class TableSource(interfaces.MoleculeSource):
    """
    Records of a delimited text table holding a SMILES column.

    Every column other than the SMILES and name columns is a field.

    Parameters
    ----------
    path : typing.Union[str, os.PathLike]
    canonicalizer : typing.Optional[matchedpairs.interfaces.Canonicalizer]
        (default: None)
    smiles_column : str (default: "smiles")
    name_column : typing.Optional[str] (default: "name")
        Column holding molecule names; rows are numbered if absent.
    sep : typing.Optional[str] (default: None)
        Delimiter, detected from the file if None.
    """

    __slots__ = ("_table", "_canonicalizer", "_smiles_column", "_name_column")

    def __init__(
        self,
        path: typing.Union[str, os.PathLike],
        canonicalizer: typing.Optional[interfaces.Canonicalizer] = None,
        smiles_column: str = "smiles",
        name_column: typing.Optional[str] = "name",
        sep: typing.Optional[str] = None,
    ) -> None:
        self._table = pd.read_csv(
            path,
            sep=sep,
            engine="python" if sep is None else "c",
            dtype=str,
            keep_default_na=False,
        )
        if smiles_column not in self._table.columns:
            raise ValueError(f"Table has no {smiles_column!r} column")
        if name_column not in self._table.columns:
            name_column = None
        if canonicalizer is None:
            canonicalizer = datatypes.RDKitCanonicalizer()
        self._canonicalizer = canonicalizer
        self._smiles_column = smiles_column
        self._name_column = name_column

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(
            str(column)
            for column in self._table.columns
            if column not in (self._smiles_column, self._name_column)
        )

    def __iter__(self) -> collections.abc.Iterator[interfaces.MoleculeRecord]:
        field_names = self.field_names
        for i, row in enumerate(self._table.to_dict("records")):
            name = (
                row[self._name_column] if self._name_column else str(i + 1)
            )
            record = _record(
                rdkit.Chem.rdmolfiles.MolFromSmiles(row[self._smiles_column]),
                name,
                [row[field] for field in field_names],
                self._canonicalizer,
            )
            if record is not None:
                yield record
