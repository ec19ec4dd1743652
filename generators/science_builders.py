"""
science_builders.py

Chemistry and biology diagrams built from the reference tables in
`core.science_data`: Bohr-model atoms, ball-and-stick molecules, labelled
cells and DNA ladders.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from core.errors import ExtractionError
from core.science_data import (
    BOND_NAMES,
    CELL_ORGANELLES,
    DNA_COMPLEMENTS,
    MOLECULES,
    lookup_element,
    shell_capacity,
)
from core.settings import DiagramSettings
from formatting.text_cleaner import format_number as fmt
from schemas.diagram import (
    AtomData,
    BasePair,
    CellData,
    ChemicalBond,
    DiagramState,
    DiagramType,
    DNAData,
    ElectronShell,
    ElementInfo,
    MoleculeAtom,
    MoleculeData,
    Organelle,
    Point,
    StepConfigEntry,
)

logger = logging.getLogger(__name__)

# Filling order is exact for the first twenty elements.
SUBSHELLS = (("1s", 2), ("2s", 2), ("2p", 6), ("3s", 2), ("3p", 6), ("4s", 2))
SUPERSCRIPTS = str.maketrans("0123456789", "⁰¹²³⁴⁵⁶⁷⁸⁹")

DEFAULT_DNA_STRAND = "ATGCGTAC"


def electron_configuration(electrons: int) -> str:
    """11 -> "1s² 2s² 2p⁶ 3s¹"."""
    parts: List[str] = []
    remaining = electrons
    for name, capacity in SUBSHELLS:
        if remaining <= 0:
            break
        filled = min(capacity, remaining)
        parts.append(f"{name}{str(filled).translate(SUPERSCRIPTS)}")
        remaining -= filled
    return " ".join(parts)


def build_atom_diagram(
    symbol: str,
    question_text: str,
    settings: Optional[DiagramSettings] = None,
) -> DiagramState:
    """Nucleus first, then one shell per step, then the configuration notation."""
    element = lookup_element(symbol)
    if element is None:
        raise ExtractionError(f"Unknown element {symbol!r}")

    shells = [
        ElectronShell(n=n, electrons=count, max_electrons=shell_capacity(n))
        for n, count in enumerate(element["shells"], start=1)
    ]
    info = ElementInfo(
        atomic_number=element["atomic_number"],
        symbol=element["symbol"],
        name=element["name"],
        atomic_mass=element["atomic_mass"],
        neutrons=element["neutrons"],
        shells=shells,
    )
    config = electron_configuration(info.atomic_number)
    valence = shells[-1].electrons

    step_config = [StepConfigEntry(
        step=0,
        step_label=f"Nucleus of {info.name}: {info.atomic_number} protons and {info.neutrons} neutrons",
        show_calculation=f"neutrons = {round(info.atomic_mass)} - {info.atomic_number} = {info.neutrons}",
        visible_elements=["nucleus"],
        highlight_elements=["nucleus"],
    )]
    for shell in shells:
        step_config.append(StepConfigEntry(
            step=len(step_config),
            step_label=f"Shell {shell.n} holds {shell.electrons} electron{'s' if shell.electrons != 1 else ''}",
            show_calculation=f"capacity 2n² = {shell.max_electrons}",
            visible_elements=["nucleus"] + [f"shell-{n}" for n in range(1, shell.n + 1)],
            highlight_elements=[f"shell-{shell.n}"],
        ))
    step_config.append(StepConfigEntry(
        step=len(step_config),
        step_label=f"{info.symbol} has {valence} valence electron{'s' if valence != 1 else ''}",
        show_calculation=f"{info.symbol}: {config}",
        visible_elements=["nucleus"] + [f"shell-{s.n}" for s in shells] + ["configuration"],
        highlight_elements=[f"shell-{shells[-1].n}"],
    ))

    data = AtomData(element=info, electron_config=config, valence_electrons=valence)
    return DiagramState.build(DiagramType.ATOM, data, step_config)


def build_molecule_diagram(
    formula: str,
    question_text: str,
    settings: Optional[DiagramSettings] = None,
) -> DiagramState:
    """Atoms appear one at a time, then the bonds between them."""
    molecule = MOLECULES.get(formula)
    if molecule is None:
        raise ExtractionError(f"No structure on file for {formula!r}")

    atoms = [
        MoleculeAtom(symbol=symbol, position=Point(x=x, y=y), lone_pairs=lone_pairs)
        for symbol, x, y, lone_pairs in molecule["atoms"]
    ]
    bonds = [ChemicalBond(from_atom=a, to_atom=b, order=order) for a, b, order in molecule["bonds"]]

    step_config: List[StepConfigEntry] = []
    for index, atom in enumerate(atoms):
        pairs = f" with {atom.lone_pairs} lone pair{'s' if atom.lone_pairs != 1 else ''}" if atom.lone_pairs else ""
        step_config.append(StepConfigEntry(
            step=index,
            step_label=f"Place {atom.symbol}{pairs}",
            visible_elements=[f"atom-{i}" for i in range(index + 1)],
            highlight_elements=[f"atom-{index}"],
        ))

    atom_ids = [f"atom-{i}" for i in range(len(atoms))]
    for index, bond in enumerate(bonds):
        left, right = atoms[bond.from_atom].symbol, atoms[bond.to_atom].symbol
        step_config.append(StepConfigEntry(
            step=len(step_config),
            step_label=f"{left}–{right} {BOND_NAMES[bond.order]} bond",
            visible_elements=atom_ids + [f"bond-{i}" for i in range(index + 1)],
            highlight_elements=[f"bond-{index}"],
        ))

    shape = molecule["geometry"]
    if molecule["bond_angle"] is not None:
        shape += f", bond angle {fmt(molecule['bond_angle'])}°"
    last = step_config[-1]
    step_config[-1] = last.model_copy(update={"show_calculation": f"{formula}: {shape}"})

    data = MoleculeData(
        name=molecule["name"],
        formula=formula,
        atoms=atoms,
        bonds=bonds,
        geometry=molecule["geometry"],
        bond_angle=molecule["bond_angle"],
    )
    return DiagramState.build(DiagramType.MOLECULE, data, step_config)


def build_cell_diagram(
    cell_type: str,
    question_text: str,
    settings: Optional[DiagramSettings] = None,
) -> DiagramState:
    rows = CELL_ORGANELLES.get(cell_type)
    if rows is None:
        raise ExtractionError(f"Unknown cell type {cell_type!r}")

    organelles = [
        Organelle(type=kind, label=label, function=function, position=Point(x=x, y=y))
        for kind, label, function, x, y in rows
    ]
    step_config = [StepConfigEntry(
        step=0,
        step_label=f"Outline of a{'n' if cell_type == 'animal' else ''} {cell_type} cell",
        visible_elements=["outline"],
    )]
    for index, organelle in enumerate(organelles):
        step_config.append(StepConfigEntry(
            step=len(step_config),
            step_label=f"{organelle.label}: {organelle.function}",
            visible_elements=["outline"] + [o.type for o in organelles[: index + 1]],
            highlight_elements=[organelle.type],
        ))

    data = CellData(cell_type=cell_type, organelles=organelles)
    return DiagramState.build(DiagramType.CELL, data, step_config)


def build_dna_diagram(
    sequence: Optional[str],
    question_text: str,
    settings: Optional[DiagramSettings] = None,
) -> DiagramState:
    """Sugar-phosphate backbone, then base pairs top to bottom (A-T, G-C)."""
    strand = (sequence or DEFAULT_DNA_STRAND).upper()
    if not strand or any(base not in DNA_COMPLEMENTS for base in strand):
        raise ExtractionError(f"Not a DNA strand: {strand!r}")

    complement = "".join(DNA_COMPLEMENTS[base] for base in strand)
    pairs = [
        BasePair(left=base, right=DNA_COMPLEMENTS[base], position=index)
        for index, base in enumerate(strand)
    ]

    step_config = [StepConfigEntry(
        step=0,
        step_label="Draw the two sugar-phosphate backbones",
        visible_elements=["backbone"],
    )]
    for pair in pairs:
        step_config.append(StepConfigEntry(
            step=len(step_config),
            step_label=f"{pair.left} pairs with {pair.right}",
            visible_elements=["backbone"] + [f"pair-{i}" for i in range(pair.position + 1)],
            highlight_elements=[f"pair-{pair.position}"],
        ))
    last = step_config[-1]
    step_config[-1] = last.model_copy(update={"show_calculation": f"{strand} → {complement}"})

    data = DNAData(sequence=strand, complement=complement, base_pairs=pairs)
    logger.debug("[dna] %s -> %s", strand, complement)
    return DiagramState.build(DiagramType.DNA, data, step_config)
