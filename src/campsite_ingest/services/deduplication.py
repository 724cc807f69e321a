"""Duplicate detection of imported places against existing campsites."""

import logging
import math
import re
from typing import Iterable, List, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field

from ..models.place import PlaceDetails

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
NAME_MATCH_THRESHOLD = 0.6
SIMILAR_THRESHOLD = 0.8
DUPLICATE_THRESHOLD = 0.8
LOCATION_RADIUS_KM = 0.5
LOCATION_BASE_SCORE = 0.6
LOCATION_BOOST = 0.2

PHONE_STRIP_PATTERN = re.compile(r"[\s\-()]")


class ExistingCampsite(BaseModel):
    """An active campsite already in the catalogue"""

    campsite_id: str
    name: str
    address: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    phone: Optional[str] = None
    website: Optional[str] = None


class SimilarCampsite(BaseModel):
    """An existing campsite that resembles the imported place"""

    campsite_id: str
    name: str
    similarity_score: float = Field(..., ge=0.0, le=1.0)
    distance_km: float = 0.0
    address: str = ""


class DuplicateDetection(BaseModel):
    """Outcome of comparing one place against the catalogue"""

    is_duplicate: bool = False
    duplicate_of_campsite_id: Optional[str] = None
    similarity_score: float = 0.0
    similar_campsites: List[SimilarCampsite] = Field(default_factory=list)


def string_similarity(first: str, second: str) -> float:
    """Rough similarity of two strings in [0, 1].

    Equal strings score 1, containment 0.8, otherwise the share of characters
    of the first string that also occur in the second.
    """
    s1 = first.lower().strip()
    s2 = second.lower().strip()

    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0
    if s1 in s2 or s2 in s1:
        return 0.8

    matches = sum(1 for char in s1 if char in s2)
    return matches / max(len(s1), len(s2))


def haversine_distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two coordinates in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def normalize_phone(phone: str) -> str:
    return PHONE_STRIP_PATTERN.sub("", phone)


def normalize_website(url: str) -> str:
    """Reduce a URL to lowercase host and path without scheme or www prefix."""
    stripped = url.strip()
    try:
        parsed = urlparse(stripped)
    except ValueError:
        # e.g. an unbalanced "[" in the host
        parsed = None
    if parsed is not None and parsed.netloc:
        normalized = f"{parsed.netloc}{parsed.path}"
    else:
        normalized = re.sub(r"^https?://", "", stripped, flags=re.IGNORECASE)
    normalized = normalized.lower()
    if normalized.startswith("www."):
        normalized = normalized[len("www.") :]
    return normalized


def _loosely_equal(first: str, second: str) -> bool:
    if not first or not second:
        return False
    return first == second or first in second or second in first


class DeduplicationService:
    """Detects whether an imported place is already in the campsite catalogue."""

    def __init__(self, existing_campsites: Iterable[ExistingCampsite] = ()):
        self.existing_campsites = list(existing_campsites)

    def _distance_km(self, place: PlaceDetails, campsite: ExistingCampsite) -> Optional[float]:
        if None in (place.latitude, place.longitude, campsite.latitude, campsite.longitude):
            return None
        return haversine_distance_km(
            place.latitude, place.longitude, campsite.latitude, campsite.longitude
        )

    def calculate_similarity(
        self, place: PlaceDetails, campsite: ExistingCampsite, distance_km: Optional[float]
    ) -> float:
        """Weighted similarity: name 40%, address 30%, proximity 30%."""
        score = string_similarity(place.name, campsite.name) * 0.4
        score += string_similarity(place.formatted_address, campsite.address) * 0.3

        if distance_km is not None:
            if distance_km < 0.1:
                score += 0.3
            elif distance_km < 0.5:
                score += 0.15

        return min(1.0, score)

    def detect_duplicate(self, place: PlaceDetails) -> DuplicateDetection:
        """Compare a place against every existing campsite.

        Args:
            place: The imported Google Places record

        Returns:
            The similar campsites, best first, and whether the best one is a duplicate
        """
        similar = {}

        def upsert(campsite: ExistingCampsite, score: float, distance_km: Optional[float]):
            similar[campsite.campsite_id] = SimilarCampsite(
                campsite_id=campsite.campsite_id,
                name=campsite.name,
                similarity_score=score,
                distance_km=distance_km or 0.0,
                address=campsite.address,
            )

        place_phone = normalize_phone(place.formatted_phone_number or "")
        place_website = normalize_website(place.website) if place.website else ""

        for campsite in self.existing_campsites:
            distance_km = self._distance_km(place, campsite)

            # Name
            if string_similarity(place.name, campsite.name) >= NAME_MATCH_THRESHOLD:
                score = self.calculate_similarity(place, campsite, distance_km)
                if score > SIMILAR_THRESHOLD:
                    upsert(campsite, score, distance_km)

            # Location
            if distance_km is not None and distance_km <= LOCATION_RADIUS_KM:
                existing = similar.get(campsite.campsite_id)
                if existing:
                    boosted = min(1.0, existing.similarity_score + LOCATION_BOOST)
                    upsert(campsite, boosted, distance_km)
                else:
                    upsert(campsite, LOCATION_BASE_SCORE, distance_km)

            # Phone and website are strong identifiers
            if place_phone and campsite.phone:
                if _loosely_equal(place_phone, normalize_phone(campsite.phone)):
                    upsert(campsite, 1.0, distance_km)
            if place_website and campsite.website:
                if _loosely_equal(place_website, normalize_website(campsite.website)):
                    upsert(campsite, 1.0, distance_km)

        similar_campsites = sorted(
            similar.values(), key=lambda s: s.similarity_score, reverse=True
        )
        detection = DuplicateDetection(similar_campsites=similar_campsites)
        if similar_campsites:
            best = similar_campsites[0]
            detection.similarity_score = best.similarity_score
            if best.similarity_score > DUPLICATE_THRESHOLD:
                detection.is_duplicate = True
                detection.duplicate_of_campsite_id = best.campsite_id

        if detection.is_duplicate:
            logger.info(
                f"Place {place.place_id} looks like a duplicate of campsite "
                f"{detection.duplicate_of_campsite_id} (score {detection.similarity_score:.2f})"
            )
        return detection
