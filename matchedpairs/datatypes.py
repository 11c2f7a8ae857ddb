"""Contains classes which implement interfaces on top of RDKit."""

import collections.abc
import typing

import rdkit
import rdkit.Chem
import rdkit.Chem.rdchem
import rdkit.Chem.rdmolfiles
import rdkit.Chem.rdmolops

from matchedpairs import graph, interfaces
from matchedpairs.exceptions import InvalidMoleculeError

_TO_RDKIT_BOND = {
    graph.BondOrder.SINGLE: rdkit.Chem.rdchem.BondType.SINGLE,
    graph.BondOrder.DOUBLE: rdkit.Chem.rdchem.BondType.DOUBLE,
    graph.BondOrder.TRIPLE: rdkit.Chem.rdchem.BondType.TRIPLE,
    graph.BondOrder.AROMATIC: rdkit.Chem.rdchem.BondType.AROMATIC,
}
_FROM_RDKIT_BOND = {value: key for key, value in _TO_RDKIT_BOND.items()}


def graph_from_rdkit(mol: rdkit.Chem.rdchem.Mol) -> graph.MolGraph:
    """
    Convert RDKit molecule to a molecule graph.

    Dummy atoms become R-group markers labeled by their isotope.

    Parameters
    ----------
    mol : rdkit.Chem.rdchem.Mol
        Molecule with computed implicit valences.

    Returns
    -------
    matchedpairs.graph.MolGraph
    """
    atoms = []
    for atom in mol.GetAtoms():
        if atom.GetAtomicNum() == 0:
            atoms.append(graph.Atom.marker(atom.GetIsotope() or 1))
            continue
        atoms.append(
            graph.Atom(
                element=atom.GetSymbol(),
                aromatic=atom.GetIsAromatic(),
                hydrogens=atom.GetTotalNumHs(),
                charge=atom.GetFormalCharge(),
                isotope=atom.GetIsotope(),
            )
        )
    bonds = []
    for bond in mol.GetBonds():
        try:
            order = _FROM_RDKIT_BOND[bond.GetBondType()]
        except KeyError as err:
            raise InvalidMoleculeError(
                f"Unsupported bond type {bond.GetBondType()}"
            ) from err
        bonds.append(
            graph.Bond(bond.GetBeginAtomIdx(), bond.GetEndAtomIdx(), order)
        )
    return graph.MolGraph(tuple(atoms), tuple(bonds))


def graph_to_rdkit(
    molecule: graph.MolGraph, hydrogens: bool = True
) -> rdkit.Chem.rdchem.Mol:
    """
    Convert molecule graph to an unsanitized RDKit molecule.

    Aromatic flags and hydrogen counts are copied as given; no perception is
    run, so incomplete aromatic systems are kept intact.

    Parameters
    ----------
    molecule : matchedpairs.graph.MolGraph
        Graph to convert.
    hydrogens : bool (default: True)
        Copy hydrogen counts.  Disabled for substructure queries.

    Returns
    -------
    rdkit.Chem.rdchem.Mol
    """
    rwmol = rdkit.Chem.rdchem.RWMol()
    for atom in molecule.atoms:
        if atom.is_marker:
            rdatom = rdkit.Chem.rdchem.Atom(0)
            rdatom.SetIsotope(atom.rgroup)
        else:
            rdatom = rdkit.Chem.rdchem.Atom(atom.element)
            rdatom.SetIsotope(atom.isotope)
            rdatom.SetFormalCharge(atom.charge)
            rdatom.SetIsAromatic(atom.aromatic)
            rdatom.SetNumExplicitHs(atom.hydrogens if hydrogens else 0)
        rdatom.SetNoImplicit(True)
        rwmol.AddAtom(rdatom)
    for bond in molecule.bonds:
        rwmol.AddBond(bond.begin, bond.end, _TO_RDKIT_BOND[bond.order])
        if bond.order == graph.BondOrder.AROMATIC:
            rwmol.GetBondBetweenAtoms(bond.begin, bond.end).SetIsAromatic(True)
    mol = rwmol.GetMol()
    mol.UpdatePropertyCache(strict=False)
    rdkit.Chem.rdmolops.FastFindRings(mol)
    return mol


@typing.final
class RDKitCanonicalizer(interfaces.Canonicalizer):
    """
    Canonical identifier oracle producing RDKit canonical SMILES.

    R-group markers are written as isotope-labeled dummy atoms ("[1*]",
    "[2*]").  Stereochemistry is not part of the molecule graph and is
    therefore not encoded.
    """

    __slots__ = ()

    def canonicalize(self, molecule: graph.MolGraph) -> str:
        try:
            return rdkit.Chem.rdmolfiles.MolToSmiles(graph_to_rdkit(molecule))
        except RuntimeError as err:
            raise InvalidMoleculeError(str(err)) from err

    def canonicalize_query(self, molecule: graph.MolGraph) -> str:
        try:
            return rdkit.Chem.rdmolfiles.MolToSmiles(
                graph_to_rdkit(molecule, hydrogens=False)
            )
        except RuntimeError as err:
            raise InvalidMoleculeError(str(err)) from err

    def parse(self, identifier: str) -> graph.MolGraph:
        params = rdkit.Chem.rdmolfiles.SmilesParserParams()
        params.removeHs = False
        mol = rdkit.Chem.rdmolfiles.MolFromSmiles(identifier, params)
        if mol is None:
            raise InvalidMoleculeError(f"Cannot parse identifier {identifier!r}")
        return graph_from_rdkit(mol)

    def rank_atoms(self, molecule: graph.MolGraph) -> tuple[int, ...]:
        return tuple(
            rdkit.Chem.rdmolfiles.CanonicalRankAtoms(
                graph_to_rdkit(molecule), breakTies=False
            )
        )

    def output_order(self, molecule: graph.MolGraph) -> list[int]:
        """Return atom indices in the order they appear in the identifier."""
        mol = graph_to_rdkit(molecule)
        rdkit.Chem.rdmolfiles.MolToSmiles(mol)
        order = mol.GetProp("_smilesAtomOutputOrder")
        return [int(i) for i in order.strip("[]").split(",") if i]


@typing.final
class MoleculeRecordBasic(interfaces.MoleculeRecord):
    """
    Implements MoleculeRecord interface as a plain container.

    Parameters
    ----------
    structure_id : str
    coordinates : str
    name : str
    field_data : collections.abc.Sequence[str]
    molecule : matchedpairs.graph.MolGraph
    """

    __slots__ = (
        "_structure_id",
        "_coordinates",
        "_name",
        "_field_data",
        "_molecule",
    )

    def __init__(
        self,
        structure_id: str,
        coordinates: str,
        name: str,
        field_data: collections.abc.Sequence[str],
        molecule: graph.MolGraph,
    ) -> None:
        self._structure_id = structure_id
        self._coordinates = coordinates
        self._name = name
        self._field_data = tuple(field_data)
        self._molecule = molecule

    @classmethod
    def from_rdkit(
        cls,
        mol: rdkit.Chem.rdchem.Mol,
        name: str,
        field_data: collections.abc.Sequence[str],
        canonicalizer: interfaces.Canonicalizer,
    ) -> "MoleculeRecordBasic":
        """
        Create record from a sanitized RDKit molecule.

        Only the largest connected component is kept and explicit hydrogens
        are removed.

        Parameters
        ----------
        mol : rdkit.Chem.rdchem.Mol
            Parsed molecule.
        name : str
            Row name.
        field_data : collections.abc.Sequence[str]
            Raw field values.
        canonicalizer : matchedpairs.interfaces.Canonicalizer
            Oracle used to produce the structure ID.

        Returns
        -------
        MoleculeRecordBasic

        Raises
        ------
        matchedpairs.exceptions.InvalidMoleculeError
            If the molecule has no atoms or cannot be converted.
        """
        if mol.GetNumAtoms() == 0:
            raise InvalidMoleculeError(f"Molecule {name!r} has no atoms")
        frags = rdkit.Chem.rdmolops.GetMolFrags(mol, asMols=True)
        largest = max(frags, key=lambda frag: frag.GetNumHeavyAtoms())
        try:
            largest = rdkit.Chem.rdmolops.RemoveHs(largest)
        except (RuntimeError, ValueError) as err:
            raise InvalidMoleculeError(
                f"Cannot remove hydrogens from {name!r}"
            ) from err
        molecule = graph_from_rdkit(largest)
        coordinates = ""
        if largest.GetNumConformers() and isinstance(
            canonicalizer, RDKitCanonicalizer
        ):
            conformer = largest.GetConformer()
            coordinates = " ".join(
                "{:.4f},{:.4f}".format(
                    conformer.GetAtomPosition(i).x,
                    conformer.GetAtomPosition(i).y,
                )
                for i in canonicalizer.output_order(molecule)
            )
        return cls(
            canonicalizer.canonicalize(molecule),
            coordinates,
            name,
            field_data,
            molecule,
        )

    @property
    def structure_id(self) -> str:
        return self._structure_id

    @property
    def coordinates(self) -> str:
        return self._coordinates

    @property
    def name(self) -> str:
        return self._name

    @property
    def field_data(self) -> tuple[str, ...]:
        return self._field_data

    @property
    def molecule(self) -> graph.MolGraph:
        return self._molecule

    def __repr__(self) -> str:
        return f"MoleculeRecordBasic({self._name!r}, {self._structure_id!r})"
