"""Contains named molecular property calculators built on RDKit."""

import collections.abc
import typing

import rdkit.Chem
import rdkit.Chem.Crippen
import rdkit.Chem.Descriptors
import rdkit.Chem.Lipinski
import rdkit.Chem.rdchem
import rdkit.Chem.rdMolDescriptors
import rdkit.Chem.rdmolfiles
import rdkit.Chem.rdmolops

from matchedpairs import interfaces

_Calculator = collections.abc.Callable[[rdkit.Chem.rdchem.Mol], float]


def _stereocenters(mol: rdkit.Chem.rdchem.Mol) -> float:
    return len(rdkit.Chem.FindMolChiralCenters(mol, includeUnassigned=True))


CALCULATORS: dict[str, _Calculator] = {
    "mw": rdkit.Chem.Descriptors.MolWt,
    "logp": rdkit.Chem.Crippen.MolLogP,
    "acceptors": rdkit.Chem.Lipinski.NumHAcceptors,
    "donors": rdkit.Chem.Lipinski.NumHDonors,
    "psa": rdkit.Chem.rdMolDescriptors.CalcTPSA,
    "heavy_atoms": lambda mol: mol.GetNumHeavyAtoms(),
    "rotatable_bonds": rdkit.Chem.rdMolDescriptors.CalcNumRotatableBonds,
    "rings": rdkit.Chem.rdMolDescriptors.CalcNumRings,
    "aromatic_rings": rdkit.Chem.rdMolDescriptors.CalcNumAromaticRings,
    "stereocenters": _stereocenters,
    "fsp3": rdkit.Chem.rdMolDescriptors.CalcFractionCSP3,
    "charge": rdkit.Chem.rdmolops.GetFormalCharge,
}

ALIASES = {
    "clogp": "logp",
    "tpsa": "psa",
    "hba": "acceptors",
    "hbd": "donors",
    "molweight": "mw",
    "molecularweight": "mw",
}


def normalize_name(name: str) -> str:
    """Fold property name to lower case without whitespace or underscores."""
    return "".join(name.lower().split()).replace("_", "")


@typing.final
class RDKitPropertyCalculator(interfaces.PropertyCalculator):
    """
    Calculates RDKit descriptors selected by field name.

    Field names are matched case-insensitively, ignoring whitespace and
    underscores, against the calculator names and their aliases.
    """

    __slots__ = ("_calculators",)

    def __init__(self) -> None:
        self._calculators: dict[str, _Calculator] = {
            normalize_name(name): function
            for name, function in CALCULATORS.items()
        }
        for alias, name in ALIASES.items():
            self._calculators[alias] = CALCULATORS[name]

    def supports(self, name: str) -> bool:
        return normalize_name(name) in self._calculators

    def __call__(self, name: str, structure_id: str) -> typing.Optional[float]:
        function = self._calculators.get(normalize_name(name))
        if function is None:
            return None
        mol = rdkit.Chem.rdmolfiles.MolFromSmiles(structure_id)
        if mol is None:
            return None
        return float(function(mol))
