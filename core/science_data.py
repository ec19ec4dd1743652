"""
science_data.py

Reference tables for the chemistry and biology builders: the first twenty
elements with their Bohr-model shell filling, a small library of molecules
students meet in introductory chemistry, and the organelle sets drawn for each
cell type. Everything here is read-only.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

# (atomic_number, symbol, name, atomic_mass, shells)
_ELEMENT_ROWS = (
    (1, "H", "Hydrogen", 1.008, (1,)),
    (2, "He", "Helium", 4.003, (2,)),
    (3, "Li", "Lithium", 6.94, (2, 1)),
    (4, "Be", "Beryllium", 9.012, (2, 2)),
    (5, "B", "Boron", 10.81, (2, 3)),
    (6, "C", "Carbon", 12.011, (2, 4)),
    (7, "N", "Nitrogen", 14.007, (2, 5)),
    (8, "O", "Oxygen", 15.999, (2, 6)),
    (9, "F", "Fluorine", 18.998, (2, 7)),
    (10, "Ne", "Neon", 20.180, (2, 8)),
    (11, "Na", "Sodium", 22.990, (2, 8, 1)),
    (12, "Mg", "Magnesium", 24.305, (2, 8, 2)),
    (13, "Al", "Aluminium", 26.982, (2, 8, 3)),
    (14, "Si", "Silicon", 28.085, (2, 8, 4)),
    (15, "P", "Phosphorus", 30.974, (2, 8, 5)),
    (16, "S", "Sulfur", 32.06, (2, 8, 6)),
    (17, "Cl", "Chlorine", 35.45, (2, 8, 7)),
    (18, "Ar", "Argon", 39.948, (2, 8, 8)),
    (19, "K", "Potassium", 39.098, (2, 8, 8, 1)),
    (20, "Ca", "Calcium", 40.078, (2, 8, 8, 2)),
)

ELEMENTS: Mapping[str, dict] = MappingProxyType({
    symbol: {
        "atomic_number": number,
        "symbol": symbol,
        "name": name,
        "atomic_mass": mass,
        "neutrons": round(mass) - number,
        "shells": shells,
    }
    for number, symbol, name, mass, shells in _ELEMENT_ROWS
})

ELEMENT_NAMES: Mapping[str, str] = MappingProxyType({
    **{row["name"].lower(): symbol for symbol, row in ELEMENTS.items()},
    "aluminum": "Al",
})

ELEMENT_BY_NUMBER: Mapping[int, str] = MappingProxyType({
    row["atomic_number"]: symbol for symbol, row in ELEMENTS.items()
})


def shell_capacity(n: int) -> int:
    """Maximum electrons in shell n (2n²)."""
    return 2 * n * n


def lookup_element(key: str) -> Optional[dict]:
    """Resolve a symbol ("Na"), name ("sodium") or atomic number ("11")."""
    key = key.strip()
    if key in ELEMENTS:
        return ELEMENTS[key]
    if key.lower() in ELEMENT_NAMES:
        return ELEMENTS[ELEMENT_NAMES[key.lower()]]
    if key.isdigit() and int(key) in ELEMENT_BY_NUMBER:
        return ELEMENTS[ELEMENT_BY_NUMBER[int(key)]]
    return None


# =============================================================================
# MOLECULES
# =============================================================================

# atoms: (symbol, x, y, lone_pairs); bonds: (from, to, order)
MOLECULES: Mapping[str, dict] = MappingProxyType({
    "H2O": {
        "name": "Water",
        "atoms": (("O", 0.0, 0.0, 2), ("H", -0.8, -0.6, 0), ("H", 0.8, -0.6, 0)),
        "bonds": ((0, 1, 1), (0, 2, 1)),
        "geometry": "bent",
        "bond_angle": 104.5,
    },
    "CO2": {
        "name": "Carbon dioxide",
        "atoms": (("C", 0.0, 0.0, 0), ("O", -1.2, 0.0, 2), ("O", 1.2, 0.0, 2)),
        "bonds": ((0, 1, 2), (0, 2, 2)),
        "geometry": "linear",
        "bond_angle": 180.0,
    },
    "CH4": {
        "name": "Methane",
        "atoms": (
            ("C", 0.0, 0.0, 0),
            ("H", 0.0, 1.0, 0),
            ("H", -0.95, -0.35, 0),
            ("H", 0.95, -0.35, 0),
            ("H", 0.0, -0.9, 0),
        ),
        "bonds": ((0, 1, 1), (0, 2, 1), (0, 3, 1), (0, 4, 1)),
        "geometry": "tetrahedral",
        "bond_angle": 109.5,
    },
    "NH3": {
        "name": "Ammonia",
        "atoms": (("N", 0.0, 0.2, 1), ("H", -0.9, -0.4, 0), ("H", 0.9, -0.4, 0), ("H", 0.0, -0.8, 0)),
        "bonds": ((0, 1, 1), (0, 2, 1), (0, 3, 1)),
        "geometry": "trigonal pyramidal",
        "bond_angle": 107.0,
    },
    "O2": {
        "name": "Oxygen",
        "atoms": (("O", -0.6, 0.0, 2), ("O", 0.6, 0.0, 2)),
        "bonds": ((0, 1, 2),),
        "geometry": "linear",
        "bond_angle": None,
    },
    "N2": {
        "name": "Nitrogen",
        "atoms": (("N", -0.55, 0.0, 1), ("N", 0.55, 0.0, 1)),
        "bonds": ((0, 1, 3),),
        "geometry": "linear",
        "bond_angle": None,
    },
    "H2": {
        "name": "Hydrogen",
        "atoms": (("H", -0.4, 0.0, 0), ("H", 0.4, 0.0, 0)),
        "bonds": ((0, 1, 1),),
        "geometry": "linear",
        "bond_angle": None,
    },
    "HCl": {
        "name": "Hydrogen chloride",
        "atoms": (("H", -0.7, 0.0, 0), ("Cl", 0.7, 0.0, 3)),
        "bonds": ((0, 1, 1),),
        "geometry": "linear",
        "bond_angle": None,
    },
})

MOLECULE_NAMES: Mapping[str, str] = MappingProxyType({
    "water": "H2O",
    "carbon dioxide": "CO2",
    "methane": "CH4",
    "ammonia": "NH3",
    "oxygen gas": "O2",
    "nitrogen gas": "N2",
    "hydrogen gas": "H2",
    "hydrogen chloride": "HCl",
    "hydrochloric acid": "HCl",
})

BOND_NAMES: Mapping[int, str] = MappingProxyType({1: "single", 2: "double", 3: "triple"})


# =============================================================================
# CELLS
# =============================================================================

# (type, label, function, x, y)
_ANIMAL = (
    ("cell_membrane", "Cell membrane", "Controls what enters and leaves the cell", 0.5, 0.02),
    ("cytoplasm", "Cytoplasm", "Jelly-like fluid where most reactions happen", 0.3, 0.7),
    ("nucleus", "Nucleus", "Holds DNA and controls the cell's activities", 0.5, 0.5),
    ("mitochondria", "Mitochondria", "Release energy through respiration", 0.75, 0.35),
    ("ribosome", "Ribosomes", "Build proteins", 0.25, 0.3),
    ("endoplasmic_reticulum_rough", "Rough ER", "Transports proteins made by ribosomes", 0.62, 0.68),
    ("golgi_apparatus", "Golgi apparatus", "Packages and ships proteins", 0.35, 0.82),
    ("lysosome", "Lysosome", "Breaks down waste with enzymes", 0.8, 0.7),
)

_PLANT = (
    ("cell_wall", "Cell wall", "Cellulose layer that supports the cell", 0.5, 0.0),
    ("cell_membrane", "Cell membrane", "Controls what enters and leaves the cell", 0.5, 0.04),
    ("cytoplasm", "Cytoplasm", "Jelly-like fluid where most reactions happen", 0.2, 0.8),
    ("nucleus", "Nucleus", "Holds DNA and controls the cell's activities", 0.25, 0.3),
    ("vacuole", "Vacuole", "Stores cell sap and keeps the cell firm", 0.55, 0.55),
    ("chloroplast", "Chloroplasts", "Absorb light for photosynthesis", 0.85, 0.25),
    ("mitochondria", "Mitochondria", "Release energy through respiration", 0.8, 0.8),
    ("ribosome", "Ribosomes", "Build proteins", 0.15, 0.55),
)

_BACTERIA = (
    ("cell_wall", "Cell wall", "Rigid outer layer that protects the cell", 0.5, 0.0),
    ("cell_membrane", "Cell membrane", "Controls what enters and leaves the cell", 0.5, 0.05),
    ("cytoplasm", "Cytoplasm", "Fluid where the cell's reactions happen", 0.3, 0.6),
    ("chromatin", "Nucleoid DNA", "Single loop of DNA, not inside a nucleus", 0.5, 0.5),
    ("ribosome", "Ribosomes", "Build proteins", 0.7, 0.4),
    ("flagellum", "Flagellum", "Tail that moves the cell", 1.0, 0.5),
)

CELL_ORGANELLES: Mapping[str, Tuple[tuple, ...]] = MappingProxyType({
    "animal": _ANIMAL,
    "plant": _PLANT,
    "bacteria": _BACTERIA,
})

DNA_COMPLEMENTS: Mapping[str, str] = MappingProxyType({"A": "T", "T": "A", "G": "C", "C": "G"})

MAX_BASE_PAIRS = 12


def describe_tables() -> Dict[str, int]:
    """Row counts, handy for the health endpoint."""
    return {
        "elements": len(ELEMENTS),
        "molecules": len(MOLECULES),
        "cell_types": len(CELL_ORGANELLES),
    }
