"""Contains the matched molecular pair enumerator."""

import collections.abc
import dataclasses
import itertools
import logging
import typing
from multiprocessing import Pool

from matchedpairs import interfaces, pairindex, utils

logger = logging.getLogger(__name__)


@typing.final
@dataclasses.dataclass(frozen=True, slots=True, order=True)
class PairKey:
    """
    Identity of a matched molecular pair.

    Attributes
    ----------
    value1 : FragIndex
        Value of the first molecule.
    value1_atoms : int
        Heavy atom count of value1.
    value2 : FragIndex
        Value of the second molecule.
    value2_atoms : int
        Heavy atom count of value2.
    cut_type : CutType
        Number of keys shared by the molecules.
    """

    value1: interfaces.FragIndex
    value1_atoms: int
    value2: interfaces.FragIndex
    value2_atoms: int
    cut_type: interfaces.CutType


@typing.final
@dataclasses.dataclass(frozen=True, slots=True)
class PairExample:
    molecule1: interfaces.MolIndex
    molecule2: interfaces.MolIndex
    keys: interfaces.KeySet


@typing.final
@dataclasses.dataclass(frozen=True, slots=True)
class MatchedPair:
    """
    Transformation value1 -> value2 and the molecule pairs showing it.

    Attributes
    ----------
    key : PairKey
    examples : tuple[PairExample, ...]
        Molecule pairs, in enumeration order.
    """

    key: PairKey
    examples: tuple[PairExample, ...]

    @property
    def value1(self) -> interfaces.FragIndex:
        return self.key.value1

    @property
    def value2(self) -> interfaces.FragIndex:
        return self.key.value2

    def row(self) -> tuple[object, ...]:
        """Return fields of the persisted pairs row."""
        key = self.key
        return (
            key.value1,
            key.value1_atoms,
            key.value2,
            key.value2_atoms,
            int(key.cut_type),
            len(self.examples),
            "|".join(
                f"{example.molecule1},{example.molecule2}"
                for example in self.examples
            ),
        )


_Grouped = dict[tuple[int, int, int, int], list[tuple[int, int, typing.Any]]]


def _group(
    buckets: collections.abc.Mapping[int, collections.abc.Mapping],
    size_a: int,
    size_b: int,
) -> _Grouped:
    grouped: _Grouped = {}
    bucket_a = buckets.get(size_a)
    bucket_b = buckets.get(size_b)
    if not bucket_a or not bucket_b:
        return grouped
    if size_a == size_b:
        for keys, entries in bucket_a.items():
            for (v1, m1), (v2, m2) in itertools.combinations(entries, 2):
                # a fragment is never paired with itself
                if v1 == v2:
                    continue
                grouped.setdefault((v1, size_a, v2, size_a), []).append(
                    (m1, m2, keys)
                )
                grouped.setdefault((v2, size_a, v1, size_a), []).append(
                    (m2, m1, keys)
                )
        return grouped
    for keys, entries_a in bucket_a.items():
        entries_b = bucket_b.get(keys)
        if not entries_b:
            continue
        for v1, m1 in entries_a:
            for v2, m2 in entries_b:
                grouped.setdefault((v1, size_a, v2, size_b), []).append(
                    (m1, m2, keys)
                )
    return grouped


def enumerate_combination(
    buckets: collections.abc.Mapping[int, pairindex.Bucket],
    size_a: int,
    size_b: int,
) -> list[MatchedPair]:
    """
    Enumerate pairs between the value size buckets size_a and size_b.

    For distinct sizes every observation of bucket A is crossed with every
    observation of bucket B sharing its key-set.  For equal sizes every
    unordered pair of observations of a key-set is emitted in both
    directions, skipping pairs of identical values.

    Parameters
    ----------
    buckets : collections.abc.Mapping[int, matchedpairs.pairindex.Bucket]
        Buckets of a pair index, keyed by value heavy atom count.
    size_a : int
        Heavy atom count of value1.
    size_b : int
        Heavy atom count of value2.

    Returns
    -------
    list[MatchedPair]
        Pairs in order of first emission.
    """
    return _to_pairs(_group(buckets, size_a, size_b))


def _to_pairs(grouped: _Grouped) -> list[MatchedPair]:
    pairs = []
    for (v1, a, v2, b), examples in grouped.items():
        key = PairKey(
            interfaces.FragIndex(v1),
            a,
            interfaces.FragIndex(v2),
            b,
            interfaces.CutType(len(examples[0][2])),
        )
        pairs.append(
            MatchedPair(
                key,
                tuple(
                    PairExample(
                        interfaces.MolIndex(m1),
                        interfaces.MolIndex(m2),
                        keys
                        if isinstance(keys, interfaces.KeySet)
                        else interfaces.KeySet.of(keys),
                    )
                    for m1, m2, keys in examples
                ),
            )
        )
    return pairs


# bucket snapshot of a worker process, set once by the pool initializer
_worker_buckets: dict = {}


def _init_worker(buckets: dict) -> None:
    global _worker_buckets
    _worker_buckets = buckets


def _enumerate_worker(combination: tuple[int, int]) -> _Grouped:
    return _group(_worker_buckets, *combination)


class Enumerator:
    """
    Sweeps all value size combinations of a pair index.

    Parameters
    ----------
    index : matchedpairs.pairindex.PairIndex
        Populated pair index.
    np : int (default: 1)
        Number of processes.  Each process enumerates a disjoint set of size
        combinations; results are merged in combination order, so output
        does not depend on np.
    """

    __slots__ = ("_index", "_np")

    def __init__(self, index: pairindex.PairIndex, np: int = 1) -> None:
        if np < 1:
            raise ValueError("Must have number of processes greater than 0.")
        self._index = index
        self._np = np

    def combinations(self) -> list[tuple[int, int]]:
        """
        Return every (size_a, size_b) with both sizes up to the maximum.

        Bucket 0 only holds R-H, so (0, 0) can never form a pair and is left
        out.
        """
        sizes = range(self._index.max_value_atoms + 1)
        return [
            combination
            for combination in itertools.product(sizes, sizes)
            if combination != (0, 0)
        ]

    def __iter__(self) -> collections.abc.Iterator[MatchedPair]:
        combinations = self.combinations()
        if self._np == 1:
            buckets = self._index.buckets()
            for size_a, size_b in combinations:
                yield from enumerate_combination(buckets, size_a, size_b)
            return

        # workers receive plain tuples as key-sets
        plain = {
            atoms: {tuple(keys): entries for keys, entries in bucket.items()}
            for atoms, bucket in self._index.buckets().items()
        }
        with Pool(
            self._np, initializer=_init_worker, initargs=(plain,)
        ) as pool:
            for grouped in pool.imap(_enumerate_worker, combinations):
                yield from _to_pairs(grouped)

    def run(self, store: utils.RowSpool) -> int:
        """
        Enumerate all pairs into a row spool.

        Parameters
        ----------
        store : matchedpairs.utils.RowSpool
            Destination of persisted pairs rows.

        Returns
        -------
        int
            Number of pairs written.
        """
        count = 0
        for pair in self:
            store.append(pair.row())
            count += 1
        logger.info(
            "Enumerated %s matched pairs over %s size combinations",
            count,
            len(self.combinations()),
        )
        return count

