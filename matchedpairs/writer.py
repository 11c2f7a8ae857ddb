"""Contains the writer of the persisted matched molecular pair format."""

import datetime
import logging
import os
import typing

from matchedpairs import builder, fields, fragments

logger = logging.getLogger(__name__)

VERSION = "1.1"

MOLECULES_COLUMNS = (
    "moleculeIndex",
    "idcoordinates2D",
    "molecule",
    "moleculeName",
)
FRAGMENTS_UNIQUE_COLUMNS = ("fragmentID", "fragmentAtoms") + tuple(
    f"fragmentFP{i}" for i in range(1, fragments.FINGERPRINT_RADII + 1)
)
FRAGMENTS_COLUMNS = (
    "keys1FragmentIndex",
    "keys2FragmentIndex",
    "valueFragmentIndex",
    "cutType",
    "moleculeIndex",
)
PAIRS_COLUMNS = (
    "value1FragmentIndex",
    "value1Atoms",
    "value2FragmentIndex",
    "value2Atoms",
    "cutType",
    "numberOfExamples",
    "examples",
)


def _text(value: str) -> str:
    """Make free text safe for a tab-delimited row."""
    return " ".join(value.replace("\t", " ").splitlines())


def _attribute(value: typing.Optional[float]) -> str:
    return "" if value is None else fields.format_number(value, 1)


def write(
    mmp_builder: builder.MMPBuilder,
    stream: typing.TextIO,
    date: typing.Optional[datetime.date] = None,
) -> None:
    """
    Write data set to a text stream.

    Enumeration is run first if the builder has not finished yet.

    Parameters
    ----------
    mmp_builder : matchedpairs.builder.MMPBuilder
        Builder holding the data set.
    stream : typing.TextIO
        Destination.
    date : typing.Optional[datetime.date] (default: None)
        Creation date written to the header, today if None.
    """
    mmp_builder.finish()
    if date is None:
        date = datetime.date.today()
    classifier = mmp_builder.classifier
    numeric = classifier.numeric_fields()

    values = [
        [classifier.format(i, row.field_data[i]) for i in numeric]
        for row in mmp_builder.rows
    ]
    data_fields = []
    for column, i in enumerate(numeric):
        numbers = [
            number
            for number in (fields.exact_number(v[column]) for v in values)
            if number is not None
        ]
        data_fields.append(classifier.field(i).with_percentiles(numbers))

    dictionary = mmp_builder.dictionary
    lines = stream.write

    lines("<matchedmolecularpairs-fileinfo>\n")
    lines(f'<version="{VERSION}">\n')
    lines(f'<date="{date.strftime("%d/%m/%Y")}">\n')
    lines(f'<dataset="{_text(mmp_builder.name)}">\n')
    lines(f"<moleculesrowcount={len(mmp_builder.rows)}>\n")
    lines(f"<mmpuniquefragmentsrowcount={len(dictionary)}>\n")
    lines(f"<mmpfragmentsrowcount={len(mmp_builder.records)}>\n")
    lines(f"<mmprowcount={len(mmp_builder.pairs)}>\n")
    lines(f'<keysminatoms="{mmp_builder.keys_min_atoms}">\n')
    lines("</matchedmolecularpairs-fileinfo>\n")

    lines("<molecules>\n")
    lines("<column properties>\n")
    lines('<columnName="moleculeIndex">\n')
    lines('<columnName="idcoordinates2D">\n')
    lines('<columnProperty="specialType\tidcoordinates2D">\n')
    lines('<columnProperty="parent\tmolecule">\n')
    lines('<columnName="molecule">\n')
    lines('<columnProperty="specialType\tidcode">\n')
    lines('<columnName="moleculeName">\n')
    for field in data_fields:
        lines(
            f'<columnName="{_text(field.name)}"'
            f' percentile5="{_attribute(field.percentile5)}"'
            f' percentile95="{_attribute(field.percentile95)}"'
            f' longName="{_text(field.long_name)}"'
            f' category="{_text(field.category)}">\n'
        )
    lines("</column properties>\n")
    lines("\t".join(MOLECULES_COLUMNS + tuple(f.name for f in data_fields)))
    lines("\n")
    for row, row_values in zip(mmp_builder.rows, values):
        lines(
            "\t".join(
                [
                    str(row.index),
                    _text(row.coordinates),
                    row.structure_id,
                    _text(row.name),
                ]
                + row_values
            )
        )
        lines("\n")
    lines("</molecules>\n")

    lines("<mmpUniqueFragments>\n")
    lines("<column properties>\n")
    for column in FRAGMENTS_UNIQUE_COLUMNS:
        lines(f'<columnName="{column}">\n')
    lines("</column properties>\n")
    lines("\t".join(FRAGMENTS_UNIQUE_COLUMNS) + "\n")
    for index, identifier in enumerate(dictionary):
        fingerprint = dictionary.fingerprint(index)
        lines(
            "\t".join(
                (identifier, str(dictionary.atom_count(index))) + fingerprint
            )
        )
        lines("\n")
    lines("</mmpUniqueFragments>\n")

    lines("<mmpFragments>\n")
    lines("<column properties>\n")
    for column in FRAGMENTS_COLUMNS:
        lines(f'<columnName="{column}">\n')
    lines("</column properties>\n")
    lines("\t".join(FRAGMENTS_COLUMNS) + "\n")
    mmp_builder.records.copy_to(stream)
    lines("</mmpFragments>\n")

    lines("<matchedMolecularPairs>\n")
    lines("<column properties>\n")
    for column in PAIRS_COLUMNS:
        lines(f'<columnName="{column}">\n')
    lines("</column properties>\n")
    lines("\t".join(PAIRS_COLUMNS) + "\n")
    mmp_builder.pairs.copy_to(stream)
    lines("</matchedMolecularPairs>\n")

    logger.info(
        "Wrote data set %r: %s molecules, %s fragments, %s records, %s pairs",
        mmp_builder.name,
        len(mmp_builder.rows),
        len(dictionary),
        len(mmp_builder.records),
        len(mmp_builder.pairs),
    )


def write_file(
    mmp_builder: builder.MMPBuilder,
    path: typing.Union[str, os.PathLike],
    date: typing.Optional[datetime.date] = None,
) -> None:
    """Write data set to a file, see `write`."""
    with open(path, "w", encoding="utf-8", newline="\n") as fout:
        write(mmp_builder, fout, date)
