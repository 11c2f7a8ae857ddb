"""Contains an immutable atom/bond arena and the cut plans applied to it."""

import collections.abc
import dataclasses
import enum
import typing

import networkx as nx

MARKER = "*"
HYDROGEN = "H"


class BondOrder(enum.IntEnum):
    SINGLE = 1
    DOUBLE = 2
    TRIPLE = 3
    AROMATIC = 4


@typing.final
@dataclasses.dataclass(frozen=True, slots=True)
class Atom:
    """
    Atom of a hydrogen-suppressed molecule graph.

    Attributes
    ----------
    element : str
        Element symbol, "*" for R-group markers.
    aromatic : bool
        Atom is part of an aromatic system.
    hydrogens : int
        Number of attached (implicit) hydrogens.
    charge : int
        Formal charge.
    isotope : int
        Mass number, 0 if unspecified.
    rgroup : int
        R-group label of a marker atom, 0 for regular atoms.
    """

    element: str
    aromatic: bool = False
    hydrogens: int = 0
    charge: int = 0
    isotope: int = 0
    rgroup: int = 0

    @classmethod
    def marker(cls, label: int) -> "Atom":
        return cls(MARKER, rgroup=label)

    @property
    def is_marker(self) -> bool:
        return self.rgroup > 0

    @property
    def is_heavy(self) -> bool:
        return self.rgroup == 0 and self.element != HYDROGEN


@typing.final
@dataclasses.dataclass(frozen=True, slots=True)
class Bond:
    begin: int
    end: int
    order: BondOrder = BondOrder.SINGLE

    def other(self, atom: int) -> int:
        if atom == self.begin:
            return self.end
        if atom == self.end:
            return self.begin
        raise ValueError(f"Atom {atom} is not part of bond {self}")


class Piece(typing.NamedTuple):
    """
    Fragment produced by a cut plan.

    Attributes
    ----------
    graph : MolGraph
        Fragment graph; marker atoms follow the original atoms.
    origin : tuple[int, ...]
        Index in the parent molecule of each non-marker atom of the fragment.
    """

    graph: "MolGraph"
    origin: tuple[int, ...]


@typing.final
@dataclasses.dataclass(frozen=True, slots=True)
class MolGraph:
    """
    Immutable arena of atoms and bonds addressed by index.

    Every editing operation returns a new graph, the receiver is never
    modified.

    Attributes
    ----------
    atoms : tuple[Atom, ...]
    bonds : tuple[Bond, ...]
    """

    atoms: tuple[Atom, ...]
    bonds: tuple[Bond, ...] = ()

    def __len__(self) -> int:
        return len(self.atoms)

    def to_networkx(self) -> nx.Graph:
        """Return graph of atom indices, edges labeled with bond index."""
        g = nx.Graph()
        g.add_nodes_from(range(len(self.atoms)))
        g.add_edges_from(
            (bond.begin, bond.end, {"index": i})
            for i, bond in enumerate(self.bonds)
        )
        return g

    @property
    def heavy_atom_count(self) -> int:
        return sum(1 for atom in self.atoms if atom.is_heavy)

    def markers(self) -> tuple[int, ...]:
        """Return indices of R-group markers, ordered by label."""
        return tuple(
            sorted(
                (i for i, atom in enumerate(self.atoms) if atom.is_marker),
                key=lambda i: (self.atoms[i].rgroup, i),
            )
        )

    def marker(self, label: int) -> int:
        for i, atom in enumerate(self.atoms):
            if atom.rgroup == label:
                return i
        raise KeyError(f"No R-group marker #{label}")

    def neighbors(self, atom: int) -> list[int]:
        return [
            bond.other(atom)
            for bond in self.bonds
            if bond.begin == atom or bond.end == atom
        ]

    def attachment(self, label: int) -> tuple[int, BondOrder]:
        """Return atom bonded to marker #label and the order of that bond."""
        marker = self.marker(label)
        for bond in self.bonds:
            if bond.begin == marker or bond.end == marker:
                return bond.other(marker), bond.order
        raise ValueError(f"R-group marker #{label} is not attached")

    def rotatable_bonds(self) -> tuple[int, ...]:
        """
        Return indices of acyclic single bonds between heavy atoms.

        Returns
        -------
        tuple[int, ...]
            Bond indices, in bond order.
        """
        bridges = {frozenset(edge) for edge in nx.bridges(self.to_networkx())}
        return tuple(
            i
            for i, bond in enumerate(self.bonds)
            if bond.order == BondOrder.SINGLE
            and frozenset((bond.begin, bond.end)) in bridges
            and self.atoms[bond.begin].is_heavy
            and self.atoms[bond.end].is_heavy
        )

    def cut(
        self, bond_indices: collections.abc.Sequence[int]
    ) -> tuple[Piece, ...]:
        """
        Break bonds and cap both broken ends with R-group markers.

        The n-th bond of `bond_indices` is capped with markers labeled n on
        both sides.

        Parameters
        ----------
        bond_indices : collections.abc.Sequence[int]
            Bonds to break.

        Returns
        -------
        tuple[Piece, ...]
            Connected fragments, ordered by lowest parent atom index.
        """
        removed = set(bond_indices)
        g = nx.Graph()
        g.add_nodes_from(range(len(self.atoms)))
        g.add_edges_from(
            (bond.begin, bond.end)
            for i, bond in enumerate(self.bonds)
            if i not in removed
        )
        components = sorted(
            (sorted(component) for component in nx.connected_components(g)),
            key=lambda component: component[0],
        )
        pieces = []
        for component in components:
            remap = {old: new for new, old in enumerate(component)}
            atoms = [self.atoms[i] for i in component]
            bonds = [
                Bond(remap[bond.begin], remap[bond.end], bond.order)
                for i, bond in enumerate(self.bonds)
                if i not in removed and bond.begin in remap
            ]
            for label, bond_index in enumerate(bond_indices, start=1):
                bond = self.bonds[bond_index]
                for end in (bond.begin, bond.end):
                    if end in remap:
                        atoms.append(Atom.marker(label))
                        bonds.append(Bond(remap[end], len(atoms) - 1, bond.order))
            pieces.append(
                Piece(MolGraph(tuple(atoms), tuple(bonds)), tuple(component))
            )
        return tuple(pieces)

    def relabel_markers(
        self, mapping: collections.abc.Mapping[int, int]
    ) -> "MolGraph":
        """Return copy with marker labels replaced according to mapping."""
        return MolGraph(
            tuple(
                Atom.marker(mapping.get(atom.rgroup, atom.rgroup))
                if atom.is_marker
                else atom
                for atom in self.atoms
            ),
            self.bonds,
        )

    def subgraph(
        self, atom_indices: collections.abc.Iterable[int]
    ) -> "MolGraph":
        """Return induced subgraph, atoms kept in their original order."""
        kept = sorted(set(atom_indices))
        remap = {old: new for new, old in enumerate(kept)}
        return MolGraph(
            tuple(self.atoms[i] for i in kept),
            tuple(
                Bond(remap[bond.begin], remap[bond.end], bond.order)
                for bond in self.bonds
                if bond.begin in remap and bond.end in remap
            ),
        )

    def remove_atoms(
        self, atom_indices: collections.abc.Iterable[int]
    ) -> "MolGraph":
        removed = set(atom_indices)
        return self.subgraph(
            i for i in range(len(self.atoms)) if i not in removed
        )

    def hydrogenated(self) -> "MolGraph":
        """Return copy with every R-group marker replaced by hydrogen."""
        markers = set(self.markers())
        extra = [0] * len(self.atoms)
        for bond in self.bonds:
            if bond.begin in markers and bond.end not in markers:
                extra[bond.end] += 1
            elif bond.end in markers and bond.begin not in markers:
                extra[bond.begin] += 1
        capped = MolGraph(
            tuple(
                dataclasses.replace(atom, hydrogens=atom.hydrogens + n)
                if n
                else atom
                for atom, n in zip(self.atoms, extra)
            ),
            self.bonds,
        )
        return capped.remove_atoms(markers)

    def without_hydrogens(self) -> "MolGraph":
        """Return copy with all hydrogen counts cleared."""
        return MolGraph(
            tuple(
                dataclasses.replace(atom, hydrogens=0) if atom.hydrogens else atom
                for atom in self.atoms
            ),
            self.bonds,
        )

    def fold_hydrogens(self) -> "MolGraph":
        """Return copy with plain hydrogen atoms merged into heavy neighbors."""
        counts = [0] * len(self.atoms)
        folded = []
        for i, atom in enumerate(self.atoms):
            if atom.element != HYDROGEN or atom.isotope or atom.charge:
                continue
            neighbors = self.neighbors(i)
            if len(neighbors) == 1 and self.atoms[neighbors[0]].is_heavy:
                counts[neighbors[0]] += 1
                folded.append(i)
        if not folded:
            return self
        merged = MolGraph(
            tuple(
                dataclasses.replace(atom, hydrogens=atom.hydrogens + n)
                if n
                else atom
                for atom, n in zip(self.atoms, counts)
            ),
            self.bonds,
        )
        return merged.remove_atoms(folded)

    def hydrogen_variants(
        self, label: int = 1
    ) -> collections.abc.Iterator["MolGraph"]:
        """
        Yield copies with one hydrogen replaced by an R-group marker.

        One variant is produced per hydrogen-bearing heavy atom, in atom
        order; symmetry-equivalent variants are not collapsed here.
        """
        n = len(self.atoms)
        for i, atom in enumerate(self.atoms):
            if not atom.is_heavy or atom.hydrogens < 1:
                continue
            atoms = list(self.atoms)
            atoms[i] = dataclasses.replace(atom, hydrogens=atom.hydrogens - 1)
            atoms.append(Atom.marker(label))
            yield MolGraph(tuple(atoms), self.bonds + (Bond(i, n),))

    def distances(
        self, roots: collections.abc.Iterable[int], cutoff: int
    ) -> dict[int, int]:
        """Return graph distance of every atom within cutoff of any root."""
        return dict(
            nx.multi_source_dijkstra_path_length(
                self.to_networkx(), set(roots), cutoff=cutoff
            )
        )

    def largest_component(self) -> "MolGraph":
        """Return connected component with the most heavy atoms."""
        components = sorted(
            (sorted(c) for c in nx.connected_components(self.to_networkx())),
            key=lambda component: component[0],
        )
        if len(components) <= 1:
            return self
        best = max(
            components,
            key=lambda c: sum(1 for i in c if self.atoms[i].is_heavy),
        )
        return self.subgraph(best)


def hydrogen_fragment() -> MolGraph:
    """Return the R-H fragment, the value of an unsubstituted position."""
    return MolGraph((Atom.marker(1), Atom(HYDROGEN)), (Bond(0, 1),))


def graft(value: MolGraph, keys: collections.abc.Sequence[MolGraph]) -> MolGraph:
    """
    Join a value fragment to its key fragments.

    Marker #n of the value is fused with the single marker of the n-th key:
    both markers are dropped and their attachment atoms bonded directly.

    Parameters
    ----------
    value : MolGraph
        Fragment carrying one marker per key.
    keys : collections.abc.Sequence[MolGraph]
        Fragments carrying one marker each.

    Returns
    -------
    MolGraph
        Hydrogen-suppressed joined molecule.
    """
    value_markers = value.markers()
    if len(value_markers) != len(keys):
        raise ValueError(
            f"Value has {len(value_markers)} attachment points, "
            f"{len(keys)} keys given"
        )
    atoms = list(value.atoms)
    bonds = list(value.bonds)
    dropped = set(value_markers)
    for key in keys:
        key_markers = key.markers()
        if len(key_markers) != 1:
            raise ValueError("Each key must carry exactly one R-group marker")
        offset = len(atoms)
        atoms.extend(key.atoms)
        bonds.extend(
            Bond(bond.begin + offset, bond.end + offset, bond.order)
            for bond in key.bonds
        )
        dropped.add(key_markers[0] + offset)
    for n, key in enumerate(keys, start=1):
        value_atom, order = value.attachment(
            value.atoms[value_markers[n - 1]].rgroup
        )
        key_atom, _ = key.attachment(key.atoms[key.markers()[0]].rgroup)
        offset = len(value.atoms) + sum(len(k.atoms) for k in keys[: n - 1])
        bonds.append(Bond(value_atom, key_atom + offset, order))
    joined = MolGraph(tuple(atoms), tuple(bonds)).remove_atoms(dropped)
    return joined.fold_hydrogens()
