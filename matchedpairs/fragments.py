"""Contains the canonical fragment dictionary."""

import collections.abc
import typing

from matchedpairs import graph, interfaces

FINGERPRINT_RADII = 5


class FragmentDictionary:
    """
    Canonical identifier to index map of fragments.

    Index 0 is always the R-H fragment.  Heavy atom counts and rooted
    fingerprints are stored alongside each identifier; fingerprints are
    computed on first request unless supplied when a persisted data set is
    loaded.

    Parameters
    ----------
    canonicalizer : matchedpairs.interfaces.Canonicalizer
        Oracle used to parse identifiers and canonicalize fingerprint spheres.
    seed : bool (default: True)
        Add the R-H fragment at index 0.  Disabled when fragments are loaded
        from a persisted data set, which stores its own R-H entry.
    """

    __slots__ = (
        "_canonicalizer",
        "_ids",
        "_map",
        "_atoms",
        "_fingerprints",
    )

    def __init__(
        self, canonicalizer: interfaces.Canonicalizer, seed: bool = True
    ) -> None:
        self._canonicalizer = canonicalizer
        self._ids: list[str] = []
        self._map: dict[str, interfaces.FragIndex] = {}
        self._atoms: list[typing.Optional[int]] = []
        self._fingerprints: list[typing.Optional[tuple[str, ...]]] = []
        if seed:
            self.intern(canonicalizer.canonicalize(graph.hydrogen_fragment()), 0)

    @property
    def canonicalizer(self) -> interfaces.Canonicalizer:
        return self._canonicalizer

    @property
    def hydrogen(self) -> interfaces.FragIndex:
        """Index of the R-H fragment."""
        return interfaces.FragIndex(0)

    def intern(
        self, identifier: str, atoms: typing.Optional[int] = None
    ) -> interfaces.FragIndex:
        """
        Return index of fragment, adding it if not yet known.

        Parameters
        ----------
        identifier : str
            Canonical identifier of the fragment.
        atoms : typing.Optional[int] (default: None)
            Heavy atom count, computed from the identifier when omitted.

        Returns
        -------
        matchedpairs.interfaces.FragIndex
            Index of fragment; identical identifiers share one index.
        """
        # if already in dictionary, return existing index
        if identifier in self._map:
            return self._map[identifier]
        index = interfaces.FragIndex(len(self._ids))
        self._ids.append(identifier)
        self._map[identifier] = index
        self._atoms.append(atoms)
        self._fingerprints.append(None)
        return index

    def load(
        self,
        identifier: str,
        atoms: int,
        fingerprint: collections.abc.Sequence[str],
    ) -> interfaces.FragIndex:
        """
        Add fragment read from a persisted data set.

        Fragments are loaded in index order.

        Parameters
        ----------
        identifier : str
        atoms : int
        fingerprint : collections.abc.Sequence[str]
            Stored rooted fingerprint, one identifier per radius.

        Returns
        -------
        matchedpairs.interfaces.FragIndex
        """
        if len(fingerprint) != FINGERPRINT_RADII:
            raise ValueError(
                f"Fingerprint of {identifier!r} has {len(fingerprint)} "
                f"spheres, expected {FINGERPRINT_RADII}"
            )
        if identifier in self._map:
            raise ValueError(f"Duplicate fragment identifier {identifier!r}")
        index = self.intern(identifier, atoms)
        self._fingerprints[index] = tuple(fingerprint)
        return index

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._map

    def __getitem__(self, index: int) -> str:
        return self._ids[index]

    def __iter__(self) -> collections.abc.Iterator[str]:
        return iter(self._ids)

    def get(self, identifier: str) -> typing.Optional[interfaces.FragIndex]:
        """Return index of identifier, or None if not in dictionary."""
        return self._map.get(identifier)

    def atom_count(self, index: int) -> int:
        atoms = self._atoms[index]
        if atoms is None:
            atoms = self._canonicalizer.parse(self._ids[index]).heavy_atom_count
            self._atoms[index] = atoms
        return atoms

    def fingerprint(self, index: int) -> tuple[str, ...]:
        """
        Return rooted fingerprint of fragment.

        Parameters
        ----------
        index : int
            Fragment index.

        Returns
        -------
        tuple[str, ...]
            Canonical query identifiers of the spheres of radius 1 to 5
            around the R-group markers.
        """
        fingerprint = self._fingerprints[index]
        if fingerprint is None:
            fingerprint = self.fingerprint_of(self._ids[index])
            self._fingerprints[index] = fingerprint
        return fingerprint

    def fingerprint_of(self, identifier: str) -> tuple[str, ...]:
        """Compute rooted fingerprint of any fragment identifier."""
        fragment = self._canonicalizer.parse(identifier)
        return rooted_fingerprint(fragment, self._canonicalizer)


def rooted_fingerprint(
    fragment: graph.MolGraph, canonicalizer: interfaces.Canonicalizer
) -> tuple[str, ...]:
    """
    Compute canonical identifiers of spheres grown from R-group markers.

    Sphere r holds every atom within r bonds of a marker.  Hydrogen counts
    are dropped and aromaticity is kept as a query feature.

    Parameters
    ----------
    fragment : matchedpairs.graph.MolGraph
        Fragment holding at least one R-group marker.
    canonicalizer : matchedpairs.interfaces.Canonicalizer

    Returns
    -------
    tuple[str, ...]
        One identifier per radius, radius 1 first.
    """
    distances = fragment.distances(fragment.markers(), FINGERPRINT_RADII)
    query = fragment.without_hydrogens()
    return tuple(
        canonicalizer.canonicalize_query(
            query.subgraph(i for i, d in distances.items() if d <= radius)
        )
        for radius in range(1, FINGERPRINT_RADII + 1)
    )
