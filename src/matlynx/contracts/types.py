"""
Enumerations shared by records, forms and the route gate.
"""

from enum import Enum


class UserRole(str, Enum):
    """Marketplace roles. Fixed at registration."""

    DEALER = "dealer"
    CONTRACTOR = "contractor"

    def __str__(self) -> str:
        return self.value


class MaterialUnit(str, Enum):
    """Units a material can be listed in."""

    BAGS = "bags"
    KG = "kg"
    TON = "ton"
    PIECES = "pieces"
    CUBIC_METER = "cubic_meter"
    SQ_FT = "sq_ft"

    def __str__(self) -> str:
        return self.value


UNIT_LABELS: dict[MaterialUnit, str] = {
    MaterialUnit.BAGS: "Bags",
    MaterialUnit.KG: "Kg",
    MaterialUnit.TON: "Tons",
    MaterialUnit.PIECES: "Pieces",
    MaterialUnit.CUBIC_METER: "Cubic Meters",
    MaterialUnit.SQ_FT: "Sq. Ft.",
}
