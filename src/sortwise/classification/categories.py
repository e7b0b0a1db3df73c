"""
Canonical waste category vocabulary.

Callers normalise every label here before handing opinions to the decision
engine, which itself compares labels verbatim.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from sortwise.domain.exceptions import UnknownCategoryError


class WasteCategory(str, Enum):
    PLASTIC = "plastic"
    METAL = "metal"
    PAPER = "paper"
    CARDBOARD = "cardboard"
    GLASS = "glass"
    BATTERY = "battery"
    AUTOMOBILE = "automobile"
    ORGANIC = "organic"
    E_WASTE = "e-waste"
    LIGHTBULB = "lightbulb"
    CLOTHING = "clothing"
    TRASH = "trash"


@dataclass(frozen=True)
class CategoryInfo:
    group: str
    recyclable: bool
    difficulty: str          # "easy" | "medium" | "hard"
    instruction: str


CATEGORY_INFO: Dict[WasteCategory, CategoryInfo] = {
    WasteCategory.PLASTIC: CategoryInfo("plastic", True, "medium", "Put in plastic recycling bin"),
    WasteCategory.METAL: CategoryInfo("metal", True, "easy", "Put in metal recycling bin"),
    WasteCategory.PAPER: CategoryInfo("paper", True, "easy", "Put in paper recycling bin"),
    WasteCategory.CARDBOARD: CategoryInfo("paper", True, "easy", "Put in cardboard recycling bin"),
    WasteCategory.GLASS: CategoryInfo("glass", True, "medium", "Put in glass recycling bin"),
    WasteCategory.BATTERY: CategoryInfo("battery", True, "hard", "Take to a battery collection point"),
    WasteCategory.AUTOMOBILE: CategoryInfo("automobile", True, "hard", "Take to an automotive recycling facility"),
    WasteCategory.ORGANIC: CategoryInfo("organic", False, "easy", "Put in compost bin"),
    WasteCategory.E_WASTE: CategoryInfo("electronics", True, "hard", "Take to an e-waste drop-off"),
    WasteCategory.LIGHTBULB: CategoryInfo("lightbulb", True, "medium", "Take to a light bulb collection point"),
    WasteCategory.CLOTHING: CategoryInfo("textile", True, "hard", "Donate or use a textile bank"),
    WasteCategory.TRASH: CategoryInfo("trash", False, "easy", "Put in general waste bin"),
}

# lookup keys are already folded by _fold()
_SYNONYMS: Dict[str, WasteCategory] = {
    "plastics": WasteCategory.PLASTIC,
    "metals": WasteCategory.METAL,
    "papers": WasteCategory.PAPER,
    "white glass": WasteCategory.GLASS,
    "green glass": WasteCategory.GLASS,
    "brown glass": WasteCategory.GLASS,
    "batteries": WasteCategory.BATTERY,
    "automobiles": WasteCategory.AUTOMOBILE,
    "biological": WasteCategory.ORGANIC,
    "e": WasteCategory.E_WASTE,
    "ewaste": WasteCategory.E_WASTE,
    "electronic": WasteCategory.E_WASTE,
    "electronics": WasteCategory.E_WASTE,
    "light bulb": WasteCategory.LIGHTBULB,
    "light bulbs": WasteCategory.LIGHTBULB,
    "lightbulbs": WasteCategory.LIGHTBULB,
    "clothes": WasteCategory.CLOTHING,
    "textile": WasteCategory.CLOTHING,
    "general": WasteCategory.TRASH,
}

_SEPARATORS = re.compile(r"[\s_\-]+")
_WASTE_SUFFIX = re.compile(r"\s+wastes?$")


def _fold(raw: str) -> str:
    key = _SEPARATORS.sub(" ", raw.casefold()).strip()
    key = _WASTE_SUFFIX.sub("", key).strip()
    return key


def _lookup() -> Dict[str, WasteCategory]:
    table = {_fold(c.value): c for c in WasteCategory}
    table.update(_SYNONYMS)
    return table


_LOOKUP = _lookup()


def normalize_label(raw: Optional[str]) -> Optional[WasteCategory]:
    """
    Map a free-form label onto WasteCategory.

    Blank input gives None. Unknown labels raise UnknownCategoryError.
    """
    if raw is None:
        return None
    if isinstance(raw, WasteCategory):
        return raw
    key = _fold(str(raw))
    if not key:
        return None
    try:
        return _LOOKUP[key]
    except KeyError:
        raise UnknownCategoryError(str(raw), known=[c.value for c in WasteCategory]) from None


def canonical_label(raw: Optional[str]) -> Optional[str]:
    category = normalize_label(raw)
    return category.value if category is not None else None


def category_info(label: Optional[str]) -> Optional[CategoryInfo]:
    """Metadata for a label, or None when it is blank or outside the vocabulary."""
    try:
        category = normalize_label(label)
    except UnknownCategoryError:
        return None
    return CATEGORY_INFO.get(category) if category is not None else None
