"""Contains classes which define abstract interfaces and shared datatypes."""

import abc
import collections.abc
import dataclasses
import enum
import typing

if typing.TYPE_CHECKING:
    from matchedpairs import builder, dataset, fragments, fragmenter, graph
    from matchedpairs import query, services


FragIndex = typing.NewType("FragIndex", int)
MolIndex = typing.NewType("MolIndex", int)


class CutType(enum.IntEnum):
    """Number of rotatable bonds broken to produce a fragmentation record."""

    SINGLE = 1
    DOUBLE = 2


@typing.final
@dataclasses.dataclass(frozen=True, slots=True)
class KeySet:
    """
    Ordered set of one or two key fragment indices.

    Keys of a double cut are stored in the canonical order assigned by the
    fragmenter, so that (first, second) and (second, first) never both occur
    for the same physical cut.

    Attributes
    ----------
    first : FragIndex
        Index of key attached to R-group marker #1.
    second : typing.Optional[FragIndex]
        Index of key attached to R-group marker #2, None for single cuts.
    """

    first: FragIndex
    second: typing.Optional[FragIndex] = None

    @classmethod
    def of(cls, indices: collections.abc.Sequence[int]) -> "KeySet":
        """
        Create key-set from a sequence of one or two fragment indices.

        Parameters
        ----------
        indices : collections.abc.Sequence[int]
            Fragment indices in canonical key order.

        Returns
        -------
        KeySet
        """
        if len(indices) == 1:
            return cls(FragIndex(indices[0]))
        if len(indices) == 2:
            return cls(FragIndex(indices[0]), FragIndex(indices[1]))
        raise ValueError(
            f"A key-set holds one or two fragments, got {len(indices)}"
        )

    @property
    def cut_type(self) -> CutType:
        if self.second is None:
            return CutType.SINGLE
        return CutType.DOUBLE

    def __iter__(self) -> collections.abc.Iterator[FragIndex]:
        yield self.first
        if self.second is not None:
            yield self.second

    def __len__(self) -> int:
        return 1 if self.second is None else 2

    def __str__(self) -> str:
        return "\t".join(str(i) for i in self)


@typing.final
@dataclasses.dataclass(frozen=True, slots=True)
class FragmentationRecord:
    """
    Single key/value observation of a molecule.

    Attributes
    ----------
    keys : KeySet
        Constant part(s) of the molecule.
    value : FragIndex
        Variable part of the molecule.
    molecule : MolIndex
        Index of unique molecule the record was produced from.
    """

    keys: KeySet
    value: FragIndex
    molecule: MolIndex

    @property
    def cut_type(self) -> CutType:
        return self.keys.cut_type


class Canonicalizer(abc.ABC):
    """
    Interface representing a canonical structure ID oracle.

    Classes implementing this interface translate molecule graphs to and from
    canonical string identifiers.  Identifiers must be invariant under atom
    renumbering and stable across process runs, and R-group markers with
    custom labels must survive a round trip through an identifier.
    """

    __slots__ = ()

    @abc.abstractmethod
    def canonicalize(self, molecule: "graph.MolGraph") -> str:
        """
        Return canonical identifier of molecule graph.

        Parameters
        ----------
        molecule : matchedpairs.graph.MolGraph
            Molecule or fragment, R-group markers included.

        Returns
        -------
        str
            Canonical identifier.
        """

    @abc.abstractmethod
    def canonicalize_query(self, molecule: "graph.MolGraph") -> str:
        """
        Return canonical identifier of a substructure query.

        Hydrogen counts are ignored and aromaticity is kept as an atom
        feature, so the identifier may describe an incomplete ring system.

        Parameters
        ----------
        molecule : matchedpairs.graph.MolGraph
            Subgraph of a fragment.

        Returns
        -------
        str
            Canonical identifier of query.
        """

    @abc.abstractmethod
    def parse(self, identifier: str) -> "graph.MolGraph":
        """
        Regenerate molecule graph from canonical identifier.

        Parameters
        ----------
        identifier : str
            Identifier produced by canonicalize.

        Returns
        -------
        matchedpairs.graph.MolGraph

        Raises
        ------
        matchedpairs.exceptions.InvalidMoleculeError
            If identifier cannot be parsed.
        """

    @abc.abstractmethod
    def rank_atoms(self, molecule: "graph.MolGraph") -> tuple[int, ...]:
        """
        Return canonical traversal rank of every atom.

        Symmetry-equivalent atoms receive equal ranks.

        Parameters
        ----------
        molecule : matchedpairs.graph.MolGraph
            Molecule or fragment.

        Returns
        -------
        tuple[int, ...]
            Rank of each atom, in atom order.
        """


class MoleculeRecord(abc.ABC):
    """
    Interface representing one row of an input collection.

    Attributes
    ----------
    structure_id : str
        Canonical identifier of the structure.
    coordinates : str
        Encoded 2D coordinates, empty if unavailable.
    name : str
        Display name of the row.
    field_data : collections.abc.Sequence[str]
        Raw field values, in the order of the source field names.
    molecule : matchedpairs.graph.MolGraph
        Hydrogen-suppressed molecule graph used for fragmentation.
    """

    __slots__ = ()

    @property
    @abc.abstractmethod
    def structure_id(self) -> str: ...

    @property
    @abc.abstractmethod
    def coordinates(self) -> str: ...

    @property
    @abc.abstractmethod
    def name(self) -> str: ...

    @property
    @abc.abstractmethod
    def field_data(self) -> collections.abc.Sequence[str]: ...

    @property
    @abc.abstractmethod
    def molecule(self) -> "graph.MolGraph": ...


class MoleculeSource(abc.ABC):
    """
    Interface representing an input collection of molecule records.

    Unparsable rows are skipped by implementations, never yielded.
    """

    __slots__ = ()

    @property
    @abc.abstractmethod
    def field_names(self) -> tuple[str, ...]:
        """Names of the fields held by each record, in order."""

    @abc.abstractmethod
    def __iter__(self) -> collections.abc.Iterator[MoleculeRecord]: ...


class PropertyCalculator(abc.ABC):
    """
    Interface representing named molecular property functions.

    Used to fill in data of molecules which are not part of a data set.
    """

    __slots__ = ()

    @abc.abstractmethod
    def supports(self, name: str) -> bool:
        """Return True if a property with this name can be calculated."""

    @abc.abstractmethod
    def __call__(self, name: str, structure_id: str) -> typing.Optional[float]:
        """
        Calculate named property of structure.

        Parameters
        ----------
        name : str
            Property (field) name.
        structure_id : str
            Canonical identifier of the structure.

        Returns
        -------
        typing.Optional[float]
            Property value, or None if unsupported or not calculable.
        """


@typing.final
class SourceTypes(typing.NamedTuple):
    """
    Container class which provides initializers for input sources.

    Attributes
    ----------
    records : collections.abc.Callable[..., MoleculeSource]
        In-memory (name, SMILES, values) rows.
    sdf : collections.abc.Callable[..., MoleculeSource]
        SD file.
    table : collections.abc.Callable[..., MoleculeSource]
        Delimited text table holding a SMILES column.
    """

    records: collections.abc.Callable[..., MoleculeSource]
    sdf: collections.abc.Callable[..., MoleculeSource]
    table: collections.abc.Callable[..., MoleculeSource]


class MMPEngine(abc.ABC):
    """
    Interface representing an object configuration engine/factory.

    Classes implementing this interface determine which canonicalizer and
    size thresholds are used by all objects they construct.
    """

    __slots__ = ()

    @property
    @abc.abstractmethod
    def keys_min_atoms(self) -> int:
        """Minimum heavy atom count of a fragment used as a key."""

    @property
    @abc.abstractmethod
    def value_max_atoms(self) -> typing.Optional[int]:
        """Maximum heavy atom count of a fragment used as a value."""

    @property
    @abc.abstractmethod
    def np(self) -> int:
        """
        Return number of processes of engine configuration.

        Returns
        -------
        int
            Integer representing number of processes used for enumeration.
        """

    @property
    @abc.abstractmethod
    def canonicalizer(self) -> Canonicalizer:
        """Canonical identifier oracle shared by constructed objects."""

    @property
    @abc.abstractmethod
    def source(self) -> SourceTypes:
        """
        Get table of input source initializers.

        Returns
        -------
        SourceTypes
        """

    @abc.abstractmethod
    def new_dictionary(self) -> "fragments.FragmentDictionary": ...

    @abc.abstractmethod
    def fragmenter(
        self, dictionary: "fragments.FragmentDictionary"
    ) -> "fragmenter.Fragmenter": ...

    @abc.abstractmethod
    def new_builder(self, dataset_name: str) -> "builder.MMPBuilder": ...

    @abc.abstractmethod
    def read(self, path) -> "dataset.MMPDataset": ...

    @abc.abstractmethod
    def write(self, mmp_builder: "builder.MMPBuilder", path) -> None: ...

    @abc.abstractmethod
    def query(
        self,
        data: typing.Union["dataset.MMPDataset", "builder.MMPBuilder", str],
    ) -> "query.QueryEngine": ...

    @abc.abstractmethod
    def new_services(self) -> "services.MMPServices": ...
