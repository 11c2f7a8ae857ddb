"""Contains classes which define and implement dependency-injection engines."""

import io
import os
import typing

from matchedpairs import (
    builder,
    dataset,
    datatypes,
    fragmenter,
    fragments,
    interfaces,
    properties,
    query,
    reader,
    services,
    sources,
    writer,
)


def create_engine(
    keys_min_atoms: int = fragmenter.KEYS_MIN_ATOMS,
    value_max_atoms: typing.Optional[int] = None,
    np: int = 1,
    hydrogen_variants: bool = False,
    canonicalizer: typing.Optional[interfaces.Canonicalizer] = None,
) -> interfaces.MMPEngine:
    """
    Initialize and return an MMPEngine based on configuration parameters.

    Parameters
    ----------
    keys_min_atoms : int (default: 4)
        Minimum heavy atom count of a fragment used as a key.
    value_max_atoms : typing.Optional[int] (default: None)
        Maximum heavy atom count of a fragment used as a value, no limit if
        None.
    np : int (default: 1)
        Number of processes to be used for pair enumeration.
    hydrogen_variants : bool (default: False)
        Generate R-H records from whole-molecule hydrogen variants instead of
        the data set level hydrogen replacement pass.
    canonicalizer : typing.Optional[matchedpairs.interfaces.Canonicalizer]
        (default: None)
        Canonical identifier oracle, RDKit canonical SMILES if None.
    """
    if keys_min_atoms < 1:
        raise ValueError("Minimum key size must be greater than 0.")
    if value_max_atoms is not None and value_max_atoms < 0:
        raise ValueError("Maximum value size must not be negative.")
    if np < 1:
        raise ValueError("Must have number of processes greater than 0.")
    if canonicalizer is None:
        canonicalizer = datatypes.RDKitCanonicalizer()
    return MMPEngineBasic(
        keys_min_atoms=keys_min_atoms,
        value_max_atoms=value_max_atoms,
        np=np,
        hydrogen_variants=hydrogen_variants,
        canonicalizer=canonicalizer,
    )


class _source_init(typing.NamedTuple):
    engine: interfaces.MMPEngine
    sourcetype: typing.Callable[..., interfaces.MoleculeSource]

    def __call__(self, *args, **kwargs) -> interfaces.MoleculeSource:
        """
        Create input source which uses the engine's canonicalizer.

        Arguments are passed on to the source class.
        """
        return self.sourcetype(
            *args, canonicalizer=self.engine.canonicalizer, **kwargs
        )


class MMPEngineBasic(interfaces.MMPEngine):
    """
    Implements MMPEngine class.

    Default for module.

    Parameters
    ----------
    keys_min_atoms : int (default: 4)
        Minimum heavy atom count of a fragment used as a key.
    value_max_atoms : typing.Optional[int] (default: None)
        Maximum heavy atom count of a fragment used as a value.
    np : int (default: 1)
        Number of processes to be used for pair enumeration.
    hydrogen_variants : bool (default: False)
        Use whole-molecule hydrogen variants for R-H records.
    canonicalizer : typing.Optional[matchedpairs.interfaces.Canonicalizer]
        (default: None)
        Canonical identifier oracle, RDKit canonical SMILES if None.
    """

    __slots__ = (
        "_keys_min_atoms",
        "_value_max_atoms",
        "_np",
        "_hydrogen_variants",
        "_canonicalizer",
        "_calculator",
    )

    def __init__(
        self,
        keys_min_atoms: int = fragmenter.KEYS_MIN_ATOMS,
        value_max_atoms: typing.Optional[int] = None,
        np: int = 1,
        hydrogen_variants: bool = False,
        canonicalizer: typing.Optional[interfaces.Canonicalizer] = None,
    ):
        if canonicalizer is None:
            canonicalizer = datatypes.RDKitCanonicalizer()
        self._keys_min_atoms = keys_min_atoms
        self._value_max_atoms = value_max_atoms
        self._np = np
        self._hydrogen_variants = hydrogen_variants
        self._canonicalizer = canonicalizer
        # descriptors can only be calculated from SMILES identifiers
        match canonicalizer:
            case datatypes.RDKitCanonicalizer():
                self._calculator: typing.Optional[
                    interfaces.PropertyCalculator
                ] = properties.RDKitPropertyCalculator()
            case _:
                self._calculator = None

    @property
    def keys_min_atoms(self) -> int:
        return self._keys_min_atoms

    @property
    def value_max_atoms(self) -> typing.Optional[int]:
        return self._value_max_atoms

    @property
    def np(self) -> int:
        return self._np

    @property
    def hydrogen_variants(self) -> bool:
        return self._hydrogen_variants

    @property
    def canonicalizer(self) -> interfaces.Canonicalizer:
        return self._canonicalizer

    @property
    def source(self) -> interfaces.SourceTypes:
        return interfaces.SourceTypes(
            _source_init(self, sources.RecordListSource),
            _source_init(self, sources.SDFileSource),
            _source_init(self, sources.TableSource),
        )

    def new_dictionary(self) -> fragments.FragmentDictionary:
        return fragments.FragmentDictionary(self._canonicalizer)

    def fragmenter(
        self, dictionary: fragments.FragmentDictionary
    ) -> fragmenter.Fragmenter:
        return fragmenter.Fragmenter(
            dictionary, self._keys_min_atoms, self._value_max_atoms
        )

    def new_builder(self, dataset_name: str) -> builder.MMPBuilder:
        return builder.MMPBuilder(
            dataset_name,
            self._canonicalizer,
            keys_min_atoms=self._keys_min_atoms,
            value_max_atoms=self._value_max_atoms,
            hydrogen_variants=self._hydrogen_variants,
            np=self._np,
        )

    def read(
        self, path: typing.Union[str, os.PathLike]
    ) -> dataset.MMPDataset:
        return reader.read_file(path, self._canonicalizer)

    def write(
        self,
        mmp_builder: builder.MMPBuilder,
        path: typing.Union[str, os.PathLike],
    ) -> None:
        writer.write_file(mmp_builder, path)

    def query(
        self,
        data: typing.Union[
            dataset.MMPDataset, builder.MMPBuilder, str, os.PathLike
        ],
    ) -> query.QueryEngine:
        """
        Create query engine of a data set.

        Parameters
        ----------
        data : typing.Union[matchedpairs.dataset.MMPDataset,
                            matchedpairs.builder.MMPBuilder, str, os.PathLike]
            Loaded data set, builder, or path of a data set file.  A builder
            is passed through the persisted format, so queries give the same
            results as on the written file.

        Returns
        -------
        matchedpairs.query.QueryEngine
        """
        match data:
            case dataset.MMPDataset():
                loaded = data
            case builder.MMPBuilder():
                stream = io.StringIO()
                writer.write(data, stream)
                stream.seek(0)
                loaded = reader.read(stream, self._canonicalizer)
            case _:
                loaded = self.read(data)
        return query.QueryEngine(loaded, self._calculator)

    def new_services(self) -> services.MMPServices:
        return services.MMPServices(self)
