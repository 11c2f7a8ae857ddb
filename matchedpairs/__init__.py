"""Matched molecular pair data sets: fragmentation, enumeration and queries."""

__all__ = [
    "builder",
    "create_engine",
    "dataset",
    "datatypes",
    "dwar",
    "engine",
    "enumerator",
    "exceptions",
    "fields",
    "fragmenter",
    "fragments",
    "graph",
    "interfaces",
    "pairindex",
    "properties",
    "query",
    "reader",
    "services",
    "sources",
    "utils",
    "writer",
]

from matchedpairs.engine import create_engine

from . import (
    builder,
    dataset,
    datatypes,
    dwar,
    engine,
    enumerator,
    exceptions,
    fields,
    fragmenter,
    fragments,
    graph,
    interfaces,
    pairindex,
    properties,
    query,
    reader,
    services,
    sources,
    utils,
    writer,
)
