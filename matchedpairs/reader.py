"""Contains the reader of the persisted matched molecular pair format."""

import collections.abc
import logging
import os
import re
import typing

from matchedpairs import (
    dataset,
    fields,
    fragmenter,
    fragments,
    interfaces,
    writer,
)
from matchedpairs.exceptions import MMPFormatError

logger = logging.getLogger(__name__)

ATTRIBUTE = re.compile(r'<(.*?)="(.*?)">')
ROWCOUNT = re.compile(r"<(.*?rowcount)=([0-9]*?)>")
_COLUMN_ATTRIBUTE = re.compile(r'(\w+)="(.*?)"')

ROWCOUNT_TAGS = (
    "moleculesrowcount",
    "mmpuniquefragmentsrowcount",
    "mmpfragmentsrowcount",
    "mmprowcount",
)


class _Lines:
    """Line source which counts lines and fails on a short read."""

    __slots__ = ("_stream", "number")

    def __init__(self, stream: typing.TextIO) -> None:
        self._stream = stream
        self.number = 0

    def next(self) -> str:
        line = self._stream.readline()
        if not line:
            raise MMPFormatError("Unexpected end of file", self.number)
        self.number += 1
        return line.rstrip("\r\n")

    def expect(self, text: str) -> None:
        line = self.next()
        if line != text:
            raise MMPFormatError(
                f"Expected {text!r}, found {line[:40]!r}", self.number
            )

    def error(self, message: str) -> MMPFormatError:
        return MMPFormatError(message, self.number)

    def integer(self, text: str) -> int:
        try:
            return int(text)
        except ValueError as err:
            raise MMPFormatError(
                f"Expected an integer, found {text!r}", self.number
            ) from err


def _read_header(lines: _Lines) -> tuple[dict[str, str], dict[str, int]]:
    lines.expect("<matchedmolecularpairs-fileinfo>")
    attributes: dict[str, str] = {}
    counts: dict[str, int] = {}
    while True:
        line = lines.next()
        if line == "</matchedmolecularpairs-fileinfo>":
            break
        match = ROWCOUNT.match(line)
        if match is not None:
            counts[match.group(1)] = lines.integer(match.group(2))
            continue
        match = ATTRIBUTE.match(line)
        if match is not None:
            attributes[match.group(1)] = match.group(2)
    missing = [tag for tag in ROWCOUNT_TAGS if tag not in counts]
    if missing:
        raise lines.error(f"Missing row counts: {', '.join(missing)}")
    return attributes, counts


def _read_column_properties(
    lines: _Lines,
) -> dict[str, dict[str, str]]:
    # column name -> attributes of its columnName tag
    lines.expect("<column properties>")
    columns: dict[str, dict[str, str]] = {}
    while True:
        line = lines.next()
        if line == "</column properties>":
            return columns
        if line.startswith("<columnName="):
            attributes = dict(_COLUMN_ATTRIBUTE.findall(line))
            columns[attributes.get("columnName", "")] = attributes


def _read_rows(
    lines: _Lines, block: str, count: int, width: int
) -> collections.abc.Iterator[list[str]]:
    closing = f"</{block}>"
    for i in range(count):
        line = lines.next()
        if line == closing:
            raise lines.error(
                f"Block {block} holds {i} rows, header declares {count}"
            )
        row = line.split("\t")
        if len(row) != width:
            raise lines.error(
                f"Row of {block} has {len(row)} columns, expected {width}"
            )
        yield row
    line = lines.next()
    if line != closing:
        raise lines.error(
            f"Block {block} holds more than the {count} declared rows"
        )


def _percentile(
    lines: _Lines, text: typing.Optional[str]
) -> typing.Optional[float]:
    if not text:
        return None
    try:
        return float(text)
    except ValueError as err:
        raise lines.error(f"Invalid percentile {text!r}") from err


def _read_molecules(
    lines: _Lines,
    count: int,
    info: dataset.DatasetInfo,
    dictionary: fragments.FragmentDictionary,
) -> dataset.MMPDataset:
    lines.expect("<molecules>")
    columns = _read_column_properties(lines)
    header = lines.next().split("\t")
    fixed = len(writer.MOLECULES_COLUMNS)
    if tuple(header[:fixed]) != writer.MOLECULES_COLUMNS:
        raise lines.error("Unexpected column names in molecules block")
    data_fields = []
    for name in header[fixed:]:
        attributes = columns.get(name, {})
        data_fields.append(
            fields.DataField(
                name,
                attributes.get("longName") or name,
                attributes.get("category") or fields.DEFAULT_CATEGORY,
                _percentile(lines, attributes.get("percentile5")),
                _percentile(lines, attributes.get("percentile95")),
            )
        )
    data = dataset.MMPDataset(info, data_fields, dictionary)
    for row in _read_rows(lines, "molecules", count, len(header)):
        entry = dataset.MoleculeEntry(
            interfaces.MolIndex(lines.integer(row[0])),
            row[2],
            row[1],
            row[3],
            tuple(row[fixed:]),
        )
        try:
            data.add_molecule(entry)
        except ValueError as err:
            raise lines.error(str(err)) from err
    return data


def _read_fragments(
    lines: _Lines, count: int, dictionary: fragments.FragmentDictionary
) -> None:
    lines.expect("<mmpUniqueFragments>")
    _read_column_properties(lines)
    columns = writer.FRAGMENTS_UNIQUE_COLUMNS
    if tuple(lines.next().split("\t")) != columns:
        raise lines.error("Unexpected column names in fragments block")
    for row in _read_rows(lines, "mmpUniqueFragments", count, len(columns)):
        try:
            dictionary.load(row[0], lines.integer(row[1]), row[2:])
        except ValueError as err:
            raise lines.error(str(err)) from err
    if count == 0 or dictionary.atom_count(0) != 0:
        raise lines.error("Fragment 0 must be the R-H fragment")


def _fragment_index(
    lines: _Lines, text: str, dictionary: fragments.FragmentDictionary
) -> interfaces.FragIndex:
    index = lines.integer(text)
    if not 0 <= index < len(dictionary):
        raise lines.error(f"Fragment index {index} is not in the dictionary")
    return interfaces.FragIndex(index)


def _molecule_index(
    lines: _Lines, text: str, data: dataset.MMPDataset
) -> interfaces.MolIndex:
    index = lines.integer(text)
    if not 0 <= index < data.molecule_count:
        raise lines.error(f"Molecule index {index} is out of range")
    return interfaces.MolIndex(index)


def _cut_type(lines: _Lines, text: str, keys: int) -> interfaces.CutType:
    value = lines.integer(text)
    if value != keys:
        raise lines.error(f"Cut type {value} does not match {keys} keys")
    return interfaces.CutType(value)


def _read_records(
    lines: _Lines, count: int, data: dataset.MMPDataset
) -> None:
    lines.expect("<mmpFragments>")
    _read_column_properties(lines)
    columns = writer.FRAGMENTS_COLUMNS
    if tuple(lines.next().split("\t")) != columns:
        raise lines.error("Unexpected column names in records block")
    dictionary = data.dictionary
    for row in _read_rows(lines, "mmpFragments", count, len(columns)):
        indices = [_fragment_index(lines, row[0], dictionary)]
        if row[1]:
            indices.append(_fragment_index(lines, row[1], dictionary))
        keys = interfaces.KeySet.of(indices)
        _cut_type(lines, row[3], len(keys))
        data.add_record(
            interfaces.FragmentationRecord(
                keys,
                _fragment_index(lines, row[2], dictionary),
                _molecule_index(lines, row[4], data),
            )
        )


def _read_pairs(lines: _Lines, count: int, data: dataset.MMPDataset) -> None:
    lines.expect("<matchedMolecularPairs>")
    _read_column_properties(lines)
    columns = writer.PAIRS_COLUMNS
    if tuple(lines.next().split("\t")) != columns:
        raise lines.error("Unexpected column names in pairs block")
    dictionary = data.dictionary
    for row in _read_rows(lines, "matchedMolecularPairs", count, len(columns)):
        examples = []
        for example in row[6].split("|") if row[6] else ():
            molecules = example.split(",")
            if len(molecules) != 2:
                raise lines.error(f"Malformed example {example!r}")
            examples.append(
                (
                    _molecule_index(lines, molecules[0], data),
                    _molecule_index(lines, molecules[1], data),
                )
            )
        if lines.integer(row[5]) != len(examples):
            raise lines.error(
                f"Pair declares {row[5]} examples, lists {len(examples)}"
            )
        cut_type = lines.integer(row[4])
        if cut_type not in (1, 2):
            raise lines.error(f"Invalid cut type {cut_type}")
        data.add_pair(
            dataset.StoredPair(
                _fragment_index(lines, row[0], dictionary),
                lines.integer(row[1]),
                _fragment_index(lines, row[2], dictionary),
                lines.integer(row[3]),
                interfaces.CutType(cut_type),
                tuple(examples),
            )
        )


def read(
    stream: typing.TextIO, canonicalizer: interfaces.Canonicalizer
) -> dataset.MMPDataset:
    """
    Load persisted data set from a text stream.

    Parameters
    ----------
    stream : typing.TextIO
        Source, positioned at the file header.
    canonicalizer : matchedpairs.interfaces.Canonicalizer
        Oracle used for fingerprints of query fragments.

    Returns
    -------
    matchedpairs.dataset.MMPDataset

    Raises
    ------
    matchedpairs.exceptions.MMPFormatError
        If the data is truncated, malformed or inconsistent.
    """
    lines = _Lines(stream)
    attributes, counts = _read_header(lines)
    info = dataset.DatasetInfo(
        name=attributes.get("dataset", ""),
        date=attributes.get("date", ""),
        version=attributes.get("version", ""),
        keys_min_atoms=lines.integer(
            attributes.get("keysminatoms", str(fragmenter.KEYS_MIN_ATOMS))
        ),
    )
    dictionary = fragments.FragmentDictionary(canonicalizer, seed=False)
    data = _read_molecules(lines, counts["moleculesrowcount"], info, dictionary)
    _read_fragments(lines, counts["mmpuniquefragmentsrowcount"], dictionary)
    _read_records(lines, counts["mmpfragmentsrowcount"], data)
    _read_pairs(lines, counts["mmprowcount"], data)
    logger.info(
        "Read data set %r: %s molecules, %s fragments, %s records, %s pairs",
        info.name,
        len(data.rows),
        len(dictionary),
        data.record_count,
        data.pair_count,
    )
    return data


def read_file(
    path: typing.Union[str, os.PathLike],
    canonicalizer: interfaces.Canonicalizer,
) -> dataset.MMPDataset:
    """Load persisted data set from a file, see `read`."""
    with open(path, encoding="utf-8") as fin:
        return read(fin, canonicalizer)
