"""Command line interface to build and query matched molecular pair files."""

import argparse
import dataclasses
import json
import logging
import os
import typing

from matchedpairs import engine, query
from matchedpairs.exceptions import MMPError

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def _cmd_build(args: argparse.Namespace) -> int:
    mmp_engine = engine.create_engine(
        keys_min_atoms=args.keys_min_atoms,
        value_max_atoms=args.value_max_atoms,
        np=args.np,
        hydrogen_variants=args.hydrogen_variants,
    )
    name = args.name or os.path.splitext(os.path.basename(args.input))[0]
    if args.input.lower().endswith((".sdf", ".sd")):
        source = mmp_engine.source.sdf(args.input)
    else:
        source = mmp_engine.source.table(
            args.input,
            smiles_column=args.smiles_column,
            name_column=args.name_column,
        )
    with mmp_engine.new_builder(name) as mmp_builder:
        mmp_builder.add_source(source)
        mmp_builder.finish()
        mmp_engine.write(mmp_builder, args.output)
    print(
        f"build_done dataset={name} molecules={mmp_builder.molecule_count} "
        f"fragments={len(mmp_builder.dictionary)} "
        f"pairs={len(mmp_builder.pairs)}"
    )
    return 0


def _cmd_query(args: argparse.Namespace) -> int:
    mmp_engine = engine.create_engine()
    engine_query = mmp_engine.query(args.file)
    if args.value is None:
        entries = engine_query.chemical_space(args.keys)
        result: typing.Any = {
            "chemical_space_size": engine_query.chemical_space_size(args.keys),
            "molecules": [
                {"name": e.name, "structure": e.structure_id} for e in entries
            ],
        }
        print(json.dumps(result, indent=1))
        return 0
    print(
        engine_query.transformations_json(
            args.keys,
            args.value,
            molecule_id=args.molecule,
            min_delta=args.min_delta,
            max_delta=args.max_delta,
            sort_by=args.sort_by,
        )
    )
    return 0


def _cmd_info(args: argparse.Namespace) -> int:
    engine_query = engine.create_engine().query(args.file)
    result = engine_query.describe()
    result["fields"] = [
        dataclasses.asdict(field) for field in engine_query.data_fields()
    ]
    print(json.dumps(result, indent=1))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="matchedpairs",
        description="Matched molecular pair data sets",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log debug messages"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_build = sub.add_parser("build", help="Build data set file from molecules")
    p_build.add_argument("input", help="SD file or delimited SMILES table")
    p_build.add_argument("output", help="Data set file to write")
    p_build.add_argument("--name", default="", help="Data set name")
    p_build.add_argument("--keys-min-atoms", type=int, default=4)
    p_build.add_argument("--value-max-atoms", type=int, default=None)
    p_build.add_argument("--np", type=int, default=1)
    p_build.add_argument("--hydrogen-variants", action="store_true")
    p_build.add_argument("--smiles-column", default="smiles")
    p_build.add_argument("--name-column", default="name")
    p_build.set_defaults(func=_cmd_build)

    p_query = sub.add_parser("query", help="Query a data set file")
    p_query.add_argument("file", help="Data set file")
    p_query.add_argument(
        "--keys",
        action="append",
        required=True,
        help="Key identifier, twice for double cuts",
    )
    p_query.add_argument("--value", default=None, help="Value identifier")
    p_query.add_argument("--molecule", default=None, help="Query structure")
    p_query.add_argument("--min-delta", type=int, default=None)
    p_query.add_argument("--max-delta", type=int, default=None)
    p_query.add_argument(
        "--sort-by",
        choices=(query.SORT_BY_EXAMPLES, query.SORT_BY_SIMILARITY),
        default=query.SORT_BY_EXAMPLES,
    )
    p_query.set_defaults(func=_cmd_query)

    p_info = sub.add_parser("info", help="Describe a data set file")
    p_info.add_argument("file", help="Data set file")
    p_info.set_defaults(func=_cmd_info)

    return parser


def main(argv: typing.Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)
    try:
        return int(args.func(args))
    except (MMPError, OSError, ValueError) as exc:
        logger.error("Command failed: %s", exc, exc_info=args.verbose)
        return 1
