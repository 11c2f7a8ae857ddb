"""Test tutorial exercises."""

import os
import tempfile

import matchedpairs as mp


def test_tutorial_1():
    engine = mp.create_engine()
    source = engine.source.records(
        [
            ("toluene", "Cc1ccccc1", ["1.0"]),
            ("ethylbenzene", "CCc1ccccc1", ["2.0"]),
            ("chlorobenzene", "Clc1ccccc1", ["1.5"]),
            ("anisole", "COc1ccccc1", ["1.2"]),
        ],
        field_names=["logD"],
    )
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "benzenes.mmp")
        with engine.new_builder("benzenes") as builder:
            builder.add_source(source)
            builder.finish()
            engine.write(builder, path)

        query = engine.query(path)
        canonicalizer = engine.canonicalizer
        phenyl = canonicalizer.canonicalize(canonicalizer.parse("[1*]c1ccccc1"))
        methyl = canonicalizer.canonicalize(canonicalizer.parse("[1*]C"))

        assert query.describe()["molecules"] == 4
        assert query.chemical_space_size([phenyl]) == 4
        value2s = [t.value2 for t in query.transformations([phenyl], methyl)]
        assert len(value2s) == len(set(value2s))
        assert canonicalizer.canonicalize(
            canonicalizer.parse("[1*]OC")
        ) in value2s
