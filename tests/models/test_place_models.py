"""Unit tests for place models using pytest."""
import pytest
from pydantic import ValidationError

from campsite_ingest.models.place import PlaceCandidate, PlaceDetails


@pytest.fixture
def sample_place_details():
    """Create a sample Google Places details record for testing."""
    return PlaceDetails.model_validate(
        {
            "place_id": "ChIJ_test_place",
            "name": "Sunset Camping Ground",
            "formatted_address": "123 Mountain Road, Chiang Mai",
            "geometry": {"location": {"lat": 18.7883, "lng": 98.9853}},
            "types": ["campground", "point_of_interest"],
            "price_level": 1,
            "rating": 4.5,
            "user_ratings_total": 150,
            "photos": [
                {"photo_reference": "photo1", "height": 600, "width": 800},
                {"photo_reference": "photo2"},
            ],
            "icon": "https://maps.gstatic.com/icon.png",
        }
    )


def test_place_details_ignores_unknown_fields(sample_place_details):
    assert not hasattr(sample_place_details, "icon")
    assert sample_place_details.latitude == 18.7883
    assert sample_place_details.longitude == 98.9853


def test_place_details_without_geometry():
    details = PlaceDetails(place_id="p1", name="No Location Camp")

    assert details.latitude is None
    assert details.longitude is None
    assert details.types == []


def test_candidate_from_place_details(sample_place_details):
    candidate = PlaceCandidate.from_place_details(sample_place_details)

    assert candidate.name == "Sunset Camping Ground"
    assert candidate.formatted_address == "123 Mountain Road, Chiang Mai"
    assert candidate.category_tags == frozenset({"campground", "point_of_interest"})
    assert candidate.price_level == 1
    assert candidate.rating == 4.5
    assert candidate.photo_count == 2
    assert candidate.user_ratings_total == 150


def test_candidate_defaults():
    candidate = PlaceCandidate(name="ลานกางเต็นท์")

    assert candidate.formatted_address == ""
    assert candidate.category_tags == frozenset()
    assert candidate.price_level is None
    assert candidate.photo_count == 0


@pytest.mark.parametrize(
    "field,value",
    [("price_level", 5), ("rating", 5.5), ("photo_count", -1), ("user_ratings_total", -3)],
)
def test_candidate_rejects_out_of_range_signals(field, value):
    with pytest.raises(ValidationError):
        PlaceCandidate(name="Test", **{field: value})
