"""
Tests for generators.science_builders.

Test Coverage:
- Electron configuration notation
- Bohr atom steps (nucleus, shells, configuration)
- Molecule atoms, bonds and geometry
- Cell organelle reveal
- DNA complement and default strand
"""

import pytest

from core.errors import ExtractionError
from generators.science_builders import (
    DEFAULT_DNA_STRAND,
    build_atom_diagram,
    build_cell_diagram,
    build_dna_diagram,
    build_molecule_diagram,
    electron_configuration,
)
from schemas.diagram import DiagramType


@pytest.mark.parametrize("electrons, expected", [
    (1, "1s¹"),
    (6, "1s² 2s² 2p²"),
    (11, "1s² 2s² 2p⁶ 3s¹"),
    (20, "1s² 2s² 2p⁶ 3s² 3p⁶ 4s²"),
])
def test_electron_configuration(electrons, expected):
    assert electron_configuration(electrons) == expected


def test_atom_sodium(settings):
    diagram = build_atom_diagram("Na", "", settings)
    data = diagram.data

    assert diagram.type == DiagramType.ATOM
    assert diagram.total_steps == 5
    assert data["element"]["neutrons"] == 12
    assert [shell["electrons"] for shell in data["element"]["shells"]] == [2, 8, 1]
    assert data["valenceElectrons"] == 1
    assert diagram.final_calculation == "Na: 1s² 2s² 2p⁶ 3s¹"


def test_atom_accepts_name(settings):
    diagram = build_atom_diagram("carbon", "", settings)

    assert diagram.data["element"]["symbol"] == "C"
    assert diagram.data["valenceElectrons"] == 4


def test_atom_unknown_element(settings):
    with pytest.raises(ExtractionError, match="Unknown element"):
        build_atom_diagram("Xx", "", settings)


def test_molecule_water(settings):
    diagram = build_molecule_diagram("H2O", "", settings)
    data = diagram.data

    assert len(data["atoms"]) == 3
    assert len(data["bonds"]) == 2
    assert diagram.total_steps == 5
    assert diagram.final_calculation == "H2O: bent, bond angle 104.5°"


def test_molecule_without_bond_angle(settings):
    diagram = build_molecule_diagram("N2", "", settings)

    assert diagram.data["bonds"][0]["order"] == 3
    assert diagram.final_calculation == "N2: linear"


def test_molecule_not_on_file(settings):
    with pytest.raises(ExtractionError):
        build_molecule_diagram("C6H12O6", "", settings)


def test_cell_reveals_one_organelle_per_step(settings):
    diagram = build_cell_diagram("plant", "", settings)
    organelles = diagram.data["organelles"]

    assert diagram.total_steps == len(organelles) + 1
    assert diagram.step_config[0].step_label == "Outline of a plant cell"
    assert diagram.step_config[-1].visible_elements == ["outline"] + [o["type"] for o in organelles]
    assert "chloroplast" in {o["type"] for o in organelles}


def test_cell_unknown_type(settings):
    with pytest.raises(ExtractionError):
        build_cell_diagram("fungus", "", settings)


def test_dna_complement(settings):
    diagram = build_dna_diagram("ATGC", "", settings)

    assert diagram.data["complement"] == "TACG"
    assert diagram.total_steps == 5
    assert diagram.final_calculation == "ATGC → TACG"


def test_dna_default_strand(settings):
    diagram = build_dna_diagram("", "", settings)

    assert diagram.data["sequence"] == DEFAULT_DNA_STRAND
    assert diagram.total_steps == len(DEFAULT_DNA_STRAND) + 1


def test_dna_rejects_non_bases(settings):
    with pytest.raises(ExtractionError):
        build_dna_diagram("AUGC", "", settings)
