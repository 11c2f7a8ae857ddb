"""Contains the key-set to value observation index."""

import collections.abc
import typing

from matchedpairs import fragments, interfaces

Observation = tuple[interfaces.FragIndex, interfaces.MolIndex]
Bucket = dict[interfaces.KeySet, list[Observation]]


class PairIndex:
    """
    Observations of (value, molecule) grouped by key-set and value size.

    Buckets are keyed by the heavy atom count of the value; within a bucket
    each key-set maps to its observations in insertion order.

    Parameters
    ----------
    dictionary : matchedpairs.fragments.FragmentDictionary
        Dictionary providing value heavy atom counts.
    """

    __slots__ = ("_dictionary", "_buckets", "_size")

    def __init__(self, dictionary: fragments.FragmentDictionary) -> None:
        self._dictionary = dictionary
        self._buckets: dict[int, Bucket] = {}
        self._size = 0

    def add(self, record: interfaces.FragmentationRecord) -> None:
        """Insert observation of a fragmentation record."""
        atoms = self._dictionary.atom_count(record.value)
        bucket = self._buckets.setdefault(atoms, {})
        bucket.setdefault(record.keys, []).append(
            (record.value, record.molecule)
        )
        self._size += 1

    def add_hydrogen(
        self, keys: interfaces.KeySet, molecule: interfaces.MolIndex
    ) -> bool:
        """
        Insert R-H observation unless the last entry of keys is already R-H.

        Parameters
        ----------
        keys : matchedpairs.interfaces.KeySet
        molecule : matchedpairs.interfaces.MolIndex

        Returns
        -------
        bool
            True if the observation was inserted.
        """
        hydrogen = self._dictionary.hydrogen
        entries = self._buckets.setdefault(0, {}).setdefault(keys, [])
        if entries and entries[-1][0] == hydrogen:
            return False
        entries.append((hydrogen, molecule))
        self._size += 1
        return True

    def bucket(self, atoms: int) -> collections.abc.Mapping[
        interfaces.KeySet, collections.abc.Sequence[Observation]
    ]:
        """Return observations of values with given heavy atom count."""
        return self._buckets.get(atoms, {})

    def lookup(self, keys: interfaces.KeySet) -> list[Observation]:
        """Return observations of a key-set across all value sizes."""
        found: list[Observation] = []
        for atoms in sorted(self._buckets):
            found.extend(self._buckets[atoms].get(keys, ()))
        return found

    @property
    def max_value_atoms(self) -> int:
        """Largest heavy atom count of an observed value, -1 if empty."""
        return max(
            (atoms for atoms, bucket in self._buckets.items() if bucket),
            default=-1,
        )

    def sizes(self) -> list[int]:
        return sorted(self._buckets)

    def buckets(self) -> dict[int, Bucket]:
        """Return shallow copy of all buckets, keyed by value size."""
        return dict(self._buckets)

    def __len__(self) -> int:
        return self._size

    def __contains__(self, keys: typing.Any) -> bool:
        return any(keys in bucket for bucket in self._buckets.values())
