"""Shared fixtures for matched molecular pair tests."""

import datetime
import io

import networkx as nx
from pytest import fixture

import matchedpairs as mp
from matchedpairs.exceptions import InvalidMoleculeError

BENZENES = [
    ("toluene", "Cc1ccccc1", ["1.0", "92.14"]),
    ("ethylbenzene", "CCc1ccccc1", ["2.0", "106.17"]),
    ("chlorobenzene", "Clc1ccccc1", ["1.5", "112.56"]),
]
BENZENE_FIELDS = ("logD", "Calculated\tmw\tMolecular weight")


@fixture(scope="session")
def canonicalizer():
    return mp.datatypes.RDKitCanonicalizer()


@fixture(scope="session")
def canonical(canonicalizer):
    """Return function giving the identifier of a SMILES string."""

    def _canonical(smiles: str) -> str:
        return canonicalizer.canonicalize(canonicalizer.parse(smiles))

    return _canonical


@fixture(scope="session")
def engine():
    return mp.create_engine()


@fixture
def benzene_builder(engine):
    with engine.new_builder("benzenes") as mmp_builder:
        mmp_builder.add_source(engine.source.records(BENZENES, BENZENE_FIELDS))
        yield mmp_builder


@fixture
def benzene_text(benzene_builder):
    stream = io.StringIO()
    mp.writer.write(benzene_builder, stream, datetime.date(2024, 1, 31))
    return stream.getvalue()


@fixture
def benzene_query(engine, benzene_text):
    return engine.query(
        mp.reader.read(io.StringIO(benzene_text), engine.canonicalizer)
    )


class HashCanonicalizer(mp.interfaces.Canonicalizer):
    """Deterministic canonicalizer built on Weisfeiler-Lehman graph hashes."""

    __slots__ = ("_graphs",)

    def __init__(self) -> None:
        self._graphs: dict[str, mp.graph.MolGraph] = {}

    @staticmethod
    def _labeled(molecule, hydrogens=True):
        g = nx.Graph()
        for i, atom in enumerate(molecule.atoms):
            g.add_node(
                i,
                label=(
                    f"{atom.element}:{atom.aromatic}:"
                    f"{atom.hydrogens if hydrogens else 0}:"
                    f"{atom.charge}:{atom.isotope}:{atom.rgroup}"
                ),
            )
        for bond in molecule.bonds:
            g.add_edge(bond.begin, bond.end, order=str(int(bond.order)))
        return g

    def _hash(self, molecule, hydrogens=True):
        return nx.weisfeiler_lehman_graph_hash(
            self._labeled(molecule, hydrogens),
            node_attr="label",
            edge_attr="order",
            iterations=max(len(molecule), 1),
        )

    def canonicalize(self, molecule):
        identifier = self._hash(molecule)
        self._graphs.setdefault(identifier, molecule)
        return identifier

    def canonicalize_query(self, molecule):
        return "q" + self._hash(molecule, hydrogens=False)

    def parse(self, identifier):
        try:
            return self._graphs[identifier]
        except KeyError as err:
            raise InvalidMoleculeError(identifier) from err

    def rank_atoms(self, molecule):
        hashes = nx.weisfeiler_lehman_subgraph_hashes(
            self._labeled(molecule),
            node_attr="label",
            edge_attr="order",
            iterations=max(len(molecule), 1),
        )
        final = [hashes[i][-1] for i in range(len(molecule))]
        ranks = {h: rank for rank, h in enumerate(sorted(set(final)))}
        return tuple(ranks[h] for h in final)


@fixture
def hash_canonicalizer():
    return HashCanonicalizer()
