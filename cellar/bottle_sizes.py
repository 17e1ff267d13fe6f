"""Wine bottle formats and size-aware search terms."""

import re

from cellar.models import BottleSize

STANDARD = "standard"

BOTTLE_SIZES: tuple[BottleSize, ...] = (
    BottleSize(id="piccolo", display_name="Piccolo / Split", volume_label="187.5ml",
               volume_ml=187.5, standard_bottle_equivalent=0.25,
               description="Quarter bottle, single glass serving"),
    BottleSize(id="half", display_name="Half / Demi", volume_label="375ml",
               volume_ml=375, standard_bottle_equivalent=0.5,
               description="Half bottle"),
    BottleSize(id=STANDARD, display_name="Standard", volume_label="750ml",
               volume_ml=750, standard_bottle_equivalent=1,
               description="Regular bottle"),
    BottleSize(id="magnum", display_name="Magnum", volume_label="1.5L",
               volume_ml=1500, standard_bottle_equivalent=2,
               description="2 standard bottles"),
    BottleSize(id="double_magnum", display_name="Double Magnum / Jeroboam", volume_label="3L",
               volume_ml=3000, standard_bottle_equivalent=4,
               description="4 standard bottles (Jeroboam for Bordeaux)"),
    BottleSize(id="rehoboam", display_name="Rehoboam", volume_label="4.5L",
               volume_ml=4500, standard_bottle_equivalent=6,
               description="6 standard bottles"),
    BottleSize(id="imperial", display_name="Imperial / Methuselah", volume_label="6L",
               volume_ml=6000, standard_bottle_equivalent=8,
               description="8 standard bottles (Methuselah for Champagne)"),
    BottleSize(id="salmanazar", display_name="Salmanazar", volume_label="9L",
               volume_ml=9000, standard_bottle_equivalent=12,
               description="12 standard bottles (1 case)"),
    BottleSize(id="balthazar", display_name="Balthazar", volume_label="12L",
               volume_ml=12000, standard_bottle_equivalent=16,
               description="16 standard bottles"),
    BottleSize(id="nebuchadnezzar", display_name="Nebuchadnezzar", volume_label="15L",
               volume_ml=15000, standard_bottle_equivalent=20,
               description="20 standard bottles"),
    BottleSize(id="solomon", display_name="Solomon", volume_label="18L",
               volume_ml=18000, standard_bottle_equivalent=24,
               description="24 standard bottles (2 cases)"),
    BottleSize(id="melchizedek", display_name="Melchizedek / Midas", volume_label="30L",
               volume_ml=30000, standard_bottle_equivalent=40,
               description="40 standard bottles"),
)

_BY_ID = {size.id: size for size in BOTTLE_SIZES}

# Marketplace-friendly phrasing for the common large and small formats
_SEARCH_TERMS = {
    "half": "half bottle 375ml",
    "magnum": "magnum 1.5L",
    "double_magnum": "double magnum 3L",
    "imperial": "imperial 6L",
}

# Named formats, longest names first so "double magnum" wins over "magnum"
_NAME_PATTERNS = (
    (r"\bdouble[\s-]*magnum\b|\bjeroboam\b", "double_magnum"),
    (r"\bmagnum\b", "magnum"),
    (r"\brehoboam\b", "rehoboam"),
    (r"\bimperial\b|\bmethuselah\b", "imperial"),
    (r"\bsalmanazar\b", "salmanazar"),
    (r"\bbalthazar\b", "balthazar"),
    (r"\bnebuchadnezzar\b", "nebuchadnezzar"),
    (r"\bsolomon\b", "solomon"),
    (r"\bmelchizedek\b|\bmidas\b", "melchizedek"),
    (r"\bpiccolo\b|\bsplit\b", "piccolo"),
    (r"\bhalf[\s-]*bottle\b|\bdemi\b", "half"),
)

_VOLUME_RE = re.compile(r"(\d+(?:[.,]\d+)?)\s*(ml|cl|l)\b", re.I)


def lookup(size_id: str | None) -> BottleSize | None:
    """Get a bottle size by id, None for unknown ids."""
    if not size_id:
        return None
    return _BY_ID.get(size_id)


def default_bottle_size() -> BottleSize:
    return _BY_ID[STANDARD]


def is_standard(size_id: str | None) -> bool:
    size = lookup(size_id)
    return size is None or size.id == STANDARD


def format_bottle_size(size_id: str | None) -> str:
    """Display string such as 'Magnum (1.5L)'."""
    size = lookup(size_id)
    if not size:
        return "750ml"
    return f"{size.display_name} ({size.volume_label})"


def search_modifier(size_id: str | None) -> str:
    """Phrase appended to a marketplace search, empty for standard bottles."""
    size = lookup(size_id)
    if not size or size.id == STANDARD:
        return ""
    return _SEARCH_TERMS.get(size.id, f"{size.display_name} {size.volume_label}")


def _size_for_volume(volume_ml: float) -> str | None:
    for size in BOTTLE_SIZES:
        if abs(size.volume_ml - volume_ml) < 1:
            return size.id
    # 187ml splits are usually printed without the half milliliter
    if abs(volume_ml - 187) < 1:
        return "piccolo"
    return None


def detect_bottle_size(text: str | None) -> str:
    """
    Guess the bottle size id from free text such as a label or deal title.

    Named formats win over volumes; an explicit volume that matches a known
    format is used otherwise. Falls back to the standard bottle.
    """
    if not text:
        return STANDARD

    lowered = text.lower()
    for pattern, size_id in _NAME_PATTERNS:
        if re.search(pattern, lowered):
            return size_id

    for m in _VOLUME_RE.finditer(lowered):
        value = float(m.group(1).replace(",", "."))
        unit = m.group(2)
        if unit == "l":
            value *= 1000
        elif unit == "cl":
            value *= 10
        size_id = _size_for_volume(value)
        if size_id:
            return size_id

    return STANDARD
