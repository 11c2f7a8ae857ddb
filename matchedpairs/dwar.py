"""
Contains exports of query results as DataWarrior-style text tables.

Each export consists of a file info header, column properties, one
tab-delimited table and an optional view configuration, which is appended
verbatim.
"""

import collections.abc
import typing

from matchedpairs import fields, query

DWAR_VERSION = "3.1"


def _document(
    columns: collections.abc.Sequence[tuple[str, collections.abc.Sequence[str]]],
    header: collections.abc.Sequence[str],
    rows: collections.abc.Sequence[collections.abc.Sequence[object]],
    ui_config: str,
) -> str:
    # columns: (column name, column property lines)
    out = [
        "<datawarrior-fileinfo>",
        f'<version="{DWAR_VERSION}">',
        f'<rowcount="{len(rows)}">',
        "</datawarrior-fileinfo>",
        "<column properties>",
    ]
    for name, properties in columns:
        out.append(f'<columnName="{name}">')
        out.extend(f'<columnProperty="{p}">' for p in properties)
    out.append("</column properties>")
    out.append("\t".join(header))
    out.extend("\t".join(_cell(v) for v in row) for row in rows)
    return "\n".join(out) + "\n" + ui_config


def _cell(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float):
        return fields.format_number(value)
    return str(value)


def _structure_columns(suffix: str = "") -> list[tuple[str, list[str]]]:
    structure = f"Structure{suffix}"
    return [
        (structure, ["specialType\tidcode"]),
        (
            f"idcoordinates2D{suffix}",
            ["specialType\tidcoordinates2D", f"parent\t{structure}"],
        ),
    ]


def _fields(
    engine: query.QueryEngine, names: collections.abc.Iterable[str]
) -> list[tuple[int, fields.DataField]]:
    # unknown names are left out
    found = []
    for name in names:
        i = engine.data.field_index(name)
        if i is not None:
            found.append((i, engine.data.data_fields[i]))
    return found


def chemical_space_dwar(
    engine: query.QueryEngine,
    keys: collections.abc.Sequence[str],
    data_field: typing.Optional[str] = None,
    ui_config: str = "",
) -> str:
    """
    Export the chemical space of a key-set.

    Parameters
    ----------
    engine : matchedpairs.query.QueryEngine
    keys : collections.abc.Sequence[str]
        Identifiers of one or two keys.
    data_field : typing.Optional[str] (default: None)
        Name or long name of a field whose values are added as a column.
    ui_config : str (default: "")
        View configuration appended after the table.

    Returns
    -------
    str
    """
    selected = _fields(engine, () if data_field is None else (data_field,))
    header = ["Structure", "idcoordinates2D", "Name"]
    header.extend(field.name for _, field in selected)
    rows = [
        [entry.structure_id, entry.coordinates, entry.name]
        + [entry.values[i] for i, _ in selected]
        for entry in engine.chemical_space(keys)
    ]
    return _document(_structure_columns(), header, rows, ui_config)


def pairs_dwar(
    engine: query.QueryEngine,
    keys: collections.abc.Sequence[str],
    value1: str,
    value2: str,
    molecule_id: typing.Optional[str] = None,
    properties: collections.abc.Sequence[str] = (),
    ui_config: str = "",
) -> str:
    """
    Export the examples of one transformation side by side.

    Every example yields one row holding both molecules, the example
    similarity and, for each requested property, both values and their
    difference.

    Parameters
    ----------
    engine : matchedpairs.query.QueryEngine
    keys : collections.abc.Sequence[str]
        Identifiers of one or two keys.
    value1 : str
        Identifier of the replaced value.
    value2 : str
        Identifier of the replacing value.
    molecule_id : typing.Optional[str] (default: None)
        Structure of the query molecule.
    properties : collections.abc.Sequence[str] (default: ())
        Names of the fields to export.
    ui_config : str (default: "")
        View configuration appended after the table.

    Returns
    -------
    str
    """
    selected = _fields(engine, properties)
    header = [
        "Structure (1)",
        "idcoordinates2D (1)",
        "Structure (2)",
        "idcoordinates2D (2)",
        "Name (1)",
        "Name (2)",
        "Similarity",
    ]
    for _, field in selected:
        header.extend(
            (f"{field.name} (1)", f"{field.name} (2)", f"{field.name} (delta)")
        )
    rows = []
    for transformation in engine.transformations(
        keys, value1, molecule_id
    ):
        if transformation.value2 != value2:
            continue
        for example in transformation.examples:
            first, second = example.molecule1, example.molecule2
            row: list[object] = [
                first.structure_id,
                first.coordinates,
                second.structure_id,
                second.coordinates,
                first.name,
                second.name,
                example.similarity,
            ]
            for i, _ in selected:
                delta = None
                if first.numbers[i] is not None and second.numbers[i] is not None:
                    delta = second.numbers[i] - first.numbers[i]
                row.extend((first.values[i], second.values[i], delta))
            rows.append(row)
    columns = _structure_columns(" (1)") + _structure_columns(" (2)")
    return _document(columns, header, rows, ui_config)


def transformations_dwar(
    engine: query.QueryEngine,
    keys: collections.abc.Sequence[str],
    value1: str,
    molecule_id: typing.Optional[str] = None,
    min_delta: typing.Optional[int] = None,
    max_delta: typing.Optional[int] = None,
    environment_size: int = 0,
    properties: collections.abc.Sequence[str] = (),
    ui_config: str = "",
) -> str:
    """
    Export the transformations of a value with their statistics.

    Parameters
    ----------
    engine : matchedpairs.query.QueryEngine
    keys : collections.abc.Sequence[str]
        Identifiers of one or two keys.
    value1 : str
        Identifier of the replaced value.
    molecule_id : typing.Optional[str] (default: None)
        Structure of the query molecule.
    min_delta : typing.Optional[int] (default: None)
        Minimum heavy atom change of the replacement.
    max_delta : typing.Optional[int] (default: None)
        Maximum heavy atom change of the replacement.
    environment_size : int (default: 0)
        Similarity threshold of the exported statistics, 0 to 5.
    properties : collections.abc.Sequence[str] (default: ())
        Names of the fields whose statistics are exported.
    ui_config : str (default: "")
        View configuration appended after the table.

    Returns
    -------
    str
    """
    if not 0 <= environment_size < query.SIMILARITY_IDENTICAL:
        raise ValueError(f"Invalid environment size {environment_size}")
    selected = _fields(engine, properties)
    header = [
        "Transformation",
        "Product",
        "DeltaAtoms",
        "Structure",
        "idcoordinates2D",
        "Name",
        "Exists",
        "Examples",
    ]
    for _, field in selected:
        header.extend(
            (f"{field.name} Avg", f"{field.name} SD", f"{field.name} n")
        )
    rows = []
    for transformation in engine.transformations(
        keys, value1, molecule_id, min_delta, max_delta
    ):
        target = transformation.examples[0].molecule2
        row: list[object] = [
            f"{transformation.value1}>>{transformation.value2}",
            transformation.value2,
            transformation.delta_atoms,
            target.structure_id,
            target.coordinates,
            transformation.examples[0].molecule1.name,
            transformation.target_exists,
            transformation.n_examples,
        ]
        for i, _ in selected:
            statistics = transformation.statistics[i].thresholds[
                environment_size
            ]
            row.extend((statistics.average, statistics.sd, statistics.n))
        rows.append(row)
    columns = [
        ("Transformation", ["specialType\trxncode"]),
        ("Product", ["specialType\tidcode"]),
    ] + _structure_columns()
    return _document(columns, header, rows, ui_config)
