"""Static keyword and tag tables for heuristic campsite type scoring.

Terms are matched as substrings of the lowercased name and address, so Thai
terms are listed as written and English terms in lowercase. Distinctive terms
carry more weight than generic ones such as "resort".
"""

from types import MappingProxyType
from typing import Mapping, Tuple

from ..models.classification import CampsiteType

KEYWORD_WEIGHTS: Mapping[CampsiteType, Tuple[Tuple[str, int], ...]] = MappingProxyType(
    {
        CampsiteType.CAMPING: (
            ("camping", 2),
            ("campground", 2),
            ("campsite", 2),
            ("แคมป์ปิ้ง", 2),
            ("ลานกางเต็นท์", 2),
            ("tent site", 1),
        ),
        CampsiteType.GLAMPING: (
            ("glamping", 3),
            ("แกลมปิ้ง", 3),
            ("แกรมปิ้ง", 3),
            ("luxury tent", 2),
            ("resort tent", 2),
        ),
        CampsiteType.TENTED_RESORT: (
            ("tented resort", 3),
            ("tent resort", 3),
            ("รีสอร์ทเต็นท์", 3),
            ("resort", 1),
            ("รีสอร์ท", 1),
        ),
        CampsiteType.BUNGALOW: (
            ("bungalow", 3),
            ("บังกะโล", 3),
            ("cabin", 2),
            ("cottage", 2),
            ("บ้านพัก", 1),
        ),
    }
)

TAG_WEIGHTS: Mapping[str, Tuple[CampsiteType, int]] = MappingProxyType(
    {
        "campground": (CampsiteType.CAMPING, 2),
        "rv_park": (CampsiteType.CAMPING, 1),
        "glamping_site": (CampsiteType.GLAMPING, 3),
        "resort": (CampsiteType.TENTED_RESORT, 1),
        "resort_hotel": (CampsiteType.TENTED_RESORT, 1),
        "camping_cabin": (CampsiteType.BUNGALOW, 2),
    }
)

# Lodging tags say "somewhere to sleep" without saying what kind; price decides.
LODGING_TAGS = frozenset({"lodging", "inn"})
LODGING_TAG_WEIGHT = 1
UPSCALE_LODGING_PRICE_LEVEL = 3

# Campground-leaning listings at this price tier are staged/luxury experiences.
HIGH_PRICE_LEVEL = 4

# Ties go to the type with more keyword evidence, then to earlier entries.
TIE_BREAK_ORDER: Tuple[CampsiteType, ...] = (
    CampsiteType.GLAMPING,
    CampsiteType.BUNGALOW,
    CampsiteType.TENTED_RESORT,
    CampsiteType.CAMPING,
)

KEYWORD_CONFIDENCE: Mapping[CampsiteType, float] = MappingProxyType(
    {
        CampsiteType.CAMPING: 0.95,
        CampsiteType.GLAMPING: 0.95,
        CampsiteType.TENTED_RESORT: 0.9,
        CampsiteType.BUNGALOW: 0.95,
    }
)
AMBIGUOUS_KEYWORD_CONFIDENCE = 0.6
PRICE_SHIFT_CONFIDENCE = 0.7
TAG_ONLY_CONFIDENCE = 0.5
DEFAULT_CONFIDENCE = 0.3
DEFAULT_TYPE = CampsiteType.CAMPING
