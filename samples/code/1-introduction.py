import matchedpairs as mp

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

with engine.new_builder("benzenes") as builder:
    builder.add_source(source)
    print(builder.finish(), "matched pairs")
    engine.write(builder, "benzenes.mmp")
