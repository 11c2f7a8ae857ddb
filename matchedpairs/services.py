"""Contains the registry serving queries on several loaded data sets."""

import collections.abc
import logging
import os
import threading
import typing

from matchedpairs import dataset, dwar, fields, interfaces, query
from matchedpairs.exceptions import UnknownDatasetError

logger = logging.getLogger(__name__)


class MMPServices:
    """
    Query engines of loaded data sets, addressed by data set name.

    Lookups on names which are not registered give empty results; use
    `engine_for` to fail on unknown names instead.

    Parameters
    ----------
    engine : matchedpairs.interfaces.MMPEngine
        Configuration used to load data sets.
    """

    __slots__ = ("_engine", "_engines", "_lock")

    def __init__(self, engine: interfaces.MMPEngine) -> None:
        self._engine = engine
        self._engines: dict[str, query.QueryEngine] = {}
        self._lock = threading.Lock()

    def load(self, path: typing.Union[str, os.PathLike]) -> str:
        """
        Read a data set file and register it under its name.

        Returns
        -------
        str
            Name of the data set.
        """
        return self.register(self._engine.query(self._engine.read(path)))

    def register(self, engine: query.QueryEngine) -> str:
        """Register query engine, replacing any engine of the same name."""
        with self._lock:
            if engine.name in self._engines:
                logger.info("Replacing data set %r", engine.name)
            self._engines[engine.name] = engine
        return engine.name

    def datasets(self) -> list[str]:
        with self._lock:
            return list(self._engines)

    def engine_for(self, name: str) -> query.QueryEngine:
        """
        Return query engine of a data set.

        Raises
        ------
        matchedpairs.exceptions.UnknownDatasetError
            If no data set is registered under name.
        """
        found = self._get(name)
        if found is None:
            raise UnknownDatasetError(name)
        return found

    def _get(self, name: str) -> typing.Optional[query.QueryEngine]:
        with self._lock:
            return self._engines.get(name)

    def chemical_space_size(
        self, name: str, keys: collections.abc.Sequence[str]
    ) -> int:
        found = self._get(name)
        return 0 if found is None else found.chemical_space_size(keys)

    def chemical_space(
        self, name: str, keys: collections.abc.Sequence[str]
    ) -> list[dataset.MoleculeEntry]:
        found = self._get(name)
        return [] if found is None else found.chemical_space(keys)

    def chemical_space_dwar(
        self,
        name: str,
        keys: collections.abc.Sequence[str],
        data_field: typing.Optional[str] = None,
        ui_config: str = "",
    ) -> typing.Optional[str]:
        found = self._get(name)
        if found is None:
            return None
        return dwar.chemical_space_dwar(found, keys, data_field, ui_config)

    def pairs_dwar(
        self,
        name: str,
        keys: collections.abc.Sequence[str],
        value1: str,
        value2: str,
        molecule_id: typing.Optional[str] = None,
        properties: collections.abc.Sequence[str] = (),
        ui_config: str = "",
    ) -> typing.Optional[str]:
        found = self._get(name)
        if found is None:
            return None
        return dwar.pairs_dwar(
            found, keys, value1, value2, molecule_id, properties, ui_config
        )

    def transformations_size(
        self,
        name: str,
        value1: str,
        min_delta: typing.Optional[int] = None,
        max_delta: typing.Optional[int] = None,
    ) -> int:
        found = self._get(name)
        if found is None:
            return 0
        return found.transformations_size(value1, min_delta, max_delta)

    def transformations(
        self,
        name: str,
        keys: collections.abc.Sequence[str],
        value1: str,
        molecule_id: typing.Optional[str] = None,
        min_delta: typing.Optional[int] = None,
        max_delta: typing.Optional[int] = None,
        sort_by: str = query.SORT_BY_EXAMPLES,
    ) -> list[query.Transformation]:
        found = self._get(name)
        if found is None:
            return []
        return found.transformations(
            keys, value1, molecule_id, min_delta, max_delta, sort_by
        )

    def transformations_table(
        self,
        name: str,
        keys: collections.abc.Sequence[str],
        value1: str,
        min_delta: typing.Optional[int] = None,
        max_delta: typing.Optional[int] = None,
    ) -> list[tuple[str, str, int, bool]]:
        found = self._get(name)
        if found is None:
            return []
        return found.transformations_table(keys, value1, min_delta, max_delta)

    def transformations_json(
        self,
        name: str,
        keys: collections.abc.Sequence[str],
        value1: str,
        molecule_id: typing.Optional[str] = None,
        min_delta: typing.Optional[int] = None,
        max_delta: typing.Optional[int] = None,
        sort_by: str = query.SORT_BY_EXAMPLES,
    ) -> typing.Optional[str]:
        found = self._get(name)
        if found is None:
            return None
        return found.transformations_json(
            keys, value1, molecule_id, min_delta, max_delta, sort_by
        )

    def transformations_dwar(
        self,
        name: str,
        keys: collections.abc.Sequence[str],
        value1: str,
        molecule_id: typing.Optional[str] = None,
        min_delta: typing.Optional[int] = None,
        max_delta: typing.Optional[int] = None,
        environment_size: int = 0,
        properties: collections.abc.Sequence[str] = (),
        ui_config: str = "",
    ) -> typing.Optional[str]:
        found = self._get(name)
        if found is None:
            return None
        return dwar.transformations_dwar(
            found,
            keys,
            value1,
            molecule_id,
            min_delta,
            max_delta,
            environment_size,
            properties,
            ui_config,
        )

    def structure_id_from_name(
        self, name: str, molecule_name: str
    ) -> typing.Optional[str]:
        found = self._get(name)
        if found is None:
            return None
        return found.structure_id_from_name(molecule_name)

    def data_fields(self, name: str) -> tuple[fields.DataField, ...]:
        found = self._get(name)
        return () if found is None else found.data_fields()

    def describe(
        self, names: typing.Optional[collections.abc.Iterable[str]] = None
    ) -> list[dict[str, typing.Any]]:
        """Describe the named data sets, all registered ones if None."""
        if names is None:
            names = self.datasets()
        described = []
        for name in names:
            found = self._get(name)
            if found is not None:
                described.append(found.describe())
        return described
