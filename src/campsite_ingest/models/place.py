"""Place-related models for the campsite import pipeline."""

from typing import Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PlacePhoto(BaseModel):
    """Google Places photo model"""

    photo_reference: str
    height: Optional[int] = None
    width: Optional[int] = None
    html_attributions: List[str] = Field(default_factory=list)


class PlaceGeometry(BaseModel):
    """Google Places geometry; only the location is used"""

    location: Dict[str, float]


class PlaceDetails(BaseModel):
    """Google Places details model as stored in the raw import table"""

    model_config = ConfigDict(extra="ignore")

    place_id: str
    name: str
    formatted_address: str = ""
    geometry: Optional[PlaceGeometry] = None
    types: List[str] = Field(default_factory=list)
    price_level: Optional[int] = Field(None, ge=0, le=4)
    rating: Optional[float] = Field(None, ge=0, le=5)
    user_ratings_total: Optional[int] = Field(None, ge=0)
    photos: Optional[List[PlacePhoto]] = None
    formatted_phone_number: Optional[str] = None
    website: Optional[str] = None
    business_status: Optional[str] = None

    @property
    def latitude(self) -> Optional[float]:
        if self.geometry is None:
            return None
        return self.geometry.location.get("lat")

    @property
    def longitude(self) -> Optional[float]:
        if self.geometry is None:
            return None
        return self.geometry.location.get("lng")


class PlaceCandidate(BaseModel):
    """Classifier input built from a raw place record.

    Text fields may be Thai, English or both. Numeric signals are optional;
    absent values contribute nothing to the heuristic score.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    formatted_address: str = ""
    category_tags: FrozenSet[str] = Field(default_factory=frozenset)
    price_level: Optional[int] = Field(None, ge=0, le=4)
    rating: Optional[float] = Field(None, ge=0, le=5)
    photo_count: int = Field(0, ge=0)
    user_ratings_total: Optional[int] = Field(None, ge=0)

    @classmethod
    def from_place_details(cls, details: PlaceDetails) -> "PlaceCandidate":
        """Build a classifier input from a Google Places details record."""
        return cls(
            name=details.name,
            formatted_address=details.formatted_address,
            category_tags=frozenset(details.types),
            price_level=details.price_level,
            rating=details.rating,
            photo_count=len(details.photos or []),
            user_ratings_total=details.user_ratings_total,
        )
