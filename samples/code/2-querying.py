import matchedpairs as mp

engine = mp.create_engine()
query = engine.query("benzenes.mmp")
print(query.describe())


def fragment(smiles):
    canonicalizer = engine.canonicalizer
    return canonicalizer.canonicalize(canonicalizer.parse(smiles))


keys = [fragment("[1*]c1ccccc1")]
methyl = fragment("[1*]C")
print(query.chemical_space_size(keys), "molecules share the phenyl key")

for transformation in query.transformations(keys, methyl):
    logd = transformation.statistics[0].thresholds[0]
    print(
        f"{transformation.value1}>>{transformation.value2}",
        transformation.n_examples,
        logd.average,
    )

print(mp.dwar.transformations_dwar(query, keys, methyl, properties=["logD"]))
