"""Contains the fragmenter which cuts molecules into key/value records."""

import collections.abc
import dataclasses
import itertools
import logging
import typing

from matchedpairs import fragments, graph, interfaces

logger = logging.getLogger(__name__)

KEYS_MIN_ATOMS = 4


@typing.final
@dataclasses.dataclass(frozen=True, slots=True)
class CleanFragment:
    """
    Single-cut fragment of a molecule and its hydrogen-capped form.

    Attributes
    ----------
    fragment : str
        Canonical identifier of the fragment with R-group marker #1.
    hydrogen_form : str
        Canonical identifier of the fragment with the marker replaced by
        hydrogen.
    atoms : int
        Heavy atom count of the fragment.
    """

    fragment: str
    hydrogen_form: str
    atoms: int


@typing.final
@dataclasses.dataclass(frozen=True, slots=True)
class FragmentationResult:
    records: tuple[interfaces.FragmentationRecord, ...]
    clean_fragments: tuple[CleanFragment, ...]


class Fragmenter:
    """
    Cuts molecules at rotatable bonds into key/value records.

    Parameters
    ----------
    dictionary : matchedpairs.fragments.FragmentDictionary
        Dictionary in which fragment identifiers are interned.
    keys_min_atoms : int (default: 4)
        Minimum heavy atom count of a fragment used as a key.
    value_max_atoms : typing.Optional[int] (default: None)
        Maximum heavy atom count of a fragment used as a value, no limit if
        None.
    double_cuts : bool (default: True)
        Also cut every pair of rotatable bonds.
    """

    __slots__ = (
        "_dictionary",
        "_canonicalizer",
        "_keys_min_atoms",
        "_value_max_atoms",
        "_double_cuts",
    )

    def __init__(
        self,
        dictionary: fragments.FragmentDictionary,
        keys_min_atoms: int = KEYS_MIN_ATOMS,
        value_max_atoms: typing.Optional[int] = None,
        double_cuts: bool = True,
    ) -> None:
        self._dictionary = dictionary
        self._canonicalizer = dictionary.canonicalizer
        self._keys_min_atoms = keys_min_atoms
        self._value_max_atoms = value_max_atoms
        self._double_cuts = double_cuts

    @property
    def keys_min_atoms(self) -> int:
        return self._keys_min_atoms

    @property
    def value_max_atoms(self) -> typing.Optional[int]:
        return self._value_max_atoms

    def _key_ok(self, atoms: int) -> bool:
        return atoms >= self._keys_min_atoms

    def _value_ok(self, atoms: int) -> bool:
        return self._value_max_atoms is None or atoms <= self._value_max_atoms

    def fragment(
        self, molecule: graph.MolGraph, index: interfaces.MolIndex
    ) -> FragmentationResult:
        """
        Produce all single- and double-cut records of a molecule.

        Every cut yields its own records, so symmetry-equivalent bonds give
        repeated records which count as separate observations.

        Parameters
        ----------
        molecule : matchedpairs.graph.MolGraph
            Hydrogen-suppressed molecule.
        index : matchedpairs.interfaces.MolIndex
            Index of the molecule, stored in each record.

        Returns
        -------
        FragmentationResult
        """
        rotatable = molecule.rotatable_bonds()
        clean: list[CleanFragment] = []
        found = list(self._single_cuts(molecule, rotatable, clean))
        if self._double_cuts:
            found.extend(self._double_cuts_of(molecule, rotatable))
        records = tuple(
            interfaces.FragmentationRecord(keys, value, index)
            for keys, value in found
        )
        logger.debug(
            "Molecule %s: %s rotatable bonds, %s records",
            index,
            len(rotatable),
            len(records),
        )
        return FragmentationResult(records, tuple(clean))

    def _single_cuts(
        self,
        molecule: graph.MolGraph,
        rotatable: collections.abc.Sequence[int],
        clean: list[CleanFragment],
    ) -> collections.abc.Iterator[
        tuple[interfaces.KeySet, interfaces.FragIndex]
    ]:
        canonicalize = self._canonicalizer.canonicalize
        for bond_index in rotatable:
            pieces = molecule.cut((bond_index,))
            if len(pieces) != 2:
                continue
            begin = molecule.bonds[bond_index].begin
            if begin in pieces[0].origin:
                key, value = pieces[0].graph, pieces[1].graph
            else:
                key, value = pieces[1].graph, pieces[0].graph
            key_atoms = key.heavy_atom_count
            value_atoms = value.heavy_atom_count
            key_id = canonicalize(key)
            value_id = canonicalize(value)
            for frag, frag_id, atoms in (
                (key, key_id, key_atoms),
                (value, value_id, value_atoms),
            ):
                clean.append(
                    CleanFragment(
                        frag_id, canonicalize(frag.hydrogenated()), atoms
                    )
                )
            if self._key_ok(key_atoms) and self._value_ok(value_atoms):
                yield (
                    interfaces.KeySet(self._dictionary.intern(key_id, key_atoms)),
                    self._dictionary.intern(value_id, value_atoms),
                )
            if self._key_ok(value_atoms) and self._value_ok(key_atoms):
                yield (
                    interfaces.KeySet(
                        self._dictionary.intern(value_id, value_atoms)
                    ),
                    self._dictionary.intern(key_id, key_atoms),
                )

    def _double_cuts_of(
        self,
        molecule: graph.MolGraph,
        rotatable: collections.abc.Sequence[int],
    ) -> collections.abc.Iterator[
        tuple[interfaces.KeySet, interfaces.FragIndex]
    ]:
        for first, second in itertools.combinations(rotatable, 2):
            cut = self.double_cut(molecule, first, second)
            if cut is not None:
                yield cut

    def double_cut(
        self, molecule: graph.MolGraph, first: int, second: int
    ) -> typing.Optional[tuple[interfaces.KeySet, interfaces.FragIndex]]:
        """
        Cut two bonds and return the canonically ordered record.

        The middle fragment, holding both R-group markers, is the value.
        Keys are ordered by the canonical rank of the marker they attach to
        inside the value, and the value markers are relabeled to match, so
        the record does not depend on the order the bonds are given in.

        Parameters
        ----------
        molecule : matchedpairs.graph.MolGraph
        first : int
            Index of first bond to cut.
        second : int
            Index of second bond to cut.

        Returns
        -------
        typing.Optional[tuple[matchedpairs.interfaces.KeySet,
                              matchedpairs.interfaces.FragIndex]]
            Key-set and value index, None if the cut yields no usable record.
        """
        pieces = molecule.cut((first, second))
        if len(pieces) != 3:
            return None
        middle = [p.graph for p in pieces if len(p.graph.markers()) == 2]
        ends = [p.graph for p in pieces if len(p.graph.markers()) == 1]
        if len(middle) != 1 or len(ends) != 2:
            return None
        value = middle[0]
        if ends[0].atoms[ends[0].markers()[0]].rgroup == 1:
            key_1, key_2 = ends
        else:
            key_2, key_1 = ends
        key_1_atoms = key_1.heavy_atom_count
        key_2_atoms = key_2.heavy_atom_count
        value_atoms = value.heavy_atom_count
        if not (
            self._key_ok(key_1_atoms)
            and self._key_ok(key_2_atoms)
            and self._value_ok(value_atoms)
        ):
            return None

        canonicalize = self._canonicalizer.canonicalize
        key_1_id = canonicalize(key_1)
        key_2_id = canonicalize(key_2.relabel_markers({2: 1}))
        ranks = self._canonicalizer.rank_atoms(value.relabel_markers({2: 1}))
        rank_1 = ranks[value.marker(1)]
        rank_2 = ranks[value.marker(2)]
        if rank_1 < rank_2 or (rank_1 == rank_2 and key_1_id <= key_2_id):
            key_ids = ((key_1_id, key_1_atoms), (key_2_id, key_2_atoms))
            value_id = canonicalize(value)
        else:
            key_ids = ((key_2_id, key_2_atoms), (key_1_id, key_1_atoms))
            value_id = canonicalize(value.relabel_markers({1: 2, 2: 1}))
        keys = interfaces.KeySet(
            self._dictionary.intern(*key_ids[0]),
            self._dictionary.intern(*key_ids[1]),
        )
        return keys, self._dictionary.intern(value_id, value_atoms)

    def hydrogen_variants(
        self, molecule: graph.MolGraph, index: interfaces.MolIndex
    ) -> tuple[interfaces.FragmentationRecord, ...]:
        """
        Produce one R-H record per unique hydrogen substitution site.

        Each hydrogen-bearing atom in turn has one hydrogen replaced by
        R-group marker #1; symmetry-equivalent sites canonicalize to the
        same variant and yield a single record.

        Parameters
        ----------
        molecule : matchedpairs.graph.MolGraph
        index : matchedpairs.interfaces.MolIndex

        Returns
        -------
        tuple[matchedpairs.interfaces.FragmentationRecord, ...]
            Records with key = variant and value = R-H.
        """
        atoms = molecule.heavy_atom_count
        variants: dict[str, None] = {}
        for variant in molecule.hydrogen_variants():
            variants[self._canonicalizer.canonicalize(variant)] = None
        return tuple(
            interfaces.FragmentationRecord(
                interfaces.KeySet(self._dictionary.intern(variant, atoms)),
                self._dictionary.hydrogen,
                index,
            )
            for variant in variants
        )
