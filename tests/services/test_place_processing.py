"""Unit tests for the place processing pipeline using pytest."""

import threading
from unittest.mock import MagicMock

import pytest

from campsite_ingest.models.classification import CampsiteType, ClassificationResult
from campsite_ingest.models.place import PlaceDetails
from campsite_ingest.services.deduplication import (
    DeduplicationService,
    DuplicateDetection,
    ExistingCampsite,
    SimilarCampsite,
)
from campsite_ingest.services.place_processing import (
    DEFAULT_PROVINCE_ID,
    ImportCandidateStatus,
    PlaceProcessingService,
    ProcessingInProgressError,
    RawPlaceRecord,
    calculate_confidence,
    generate_validation_warnings,
)
from campsite_ingest.services.type_classifier import TypeClassifierService


@pytest.fixture
def sample_raw_record():
    """Create a sample raw place record for testing."""
    return {
        "id": "raw-1",
        "place_id": "ChIJ_sunset",
        "raw_data": {
            "place_id": "ChIJ_sunset",
            "name": "Sunset Camping Ground",
            "formatted_address": "123 Mountain Road, Chiang Mai",
            "geometry": {"location": {"lat": 18.7883, "lng": 98.9853}},
            "types": ["campground"],
            "price_level": 1,
            "rating": 4.5,
            "user_ratings_total": 150,
            "formatted_phone_number": "081 234 5678",
            "website": "https://sunsetcamp.example.com",
            "business_status": "OPERATIONAL",
        },
    }


@pytest.fixture
def processing_service():
    """Processing service with a keyword-only classifier and an empty catalogue."""
    return PlaceProcessingService(classifier=TypeClassifierService(ai_client=None))


def test_process_place(processing_service, sample_raw_record):
    record = RawPlaceRecord.model_validate(sample_raw_record)

    processed = processing_service.process_place(record, province_id=50)

    assert processed.raw_place_id == "raw-1"
    assert processed.place_id == "ChIJ_sunset"
    assert processed.name == "Sunset Camping Ground"
    assert processed.suggested_type_id == CampsiteType.CAMPING.value
    assert processed.suggested_province_id == 50
    assert processed.confidence_score == 0.95
    assert not processed.is_duplicate
    assert processed.validation_warnings == []
    assert processed.processed_data["location"] == {"lat": 18.7883, "lng": 98.9853}
    assert processed.processed_data["business_status"] == "OPERATIONAL"


def test_process_place_defaults_to_bangkok(processing_service, sample_raw_record):
    processed = processing_service.process_place(RawPlaceRecord.model_validate(sample_raw_record))

    assert processed.suggested_province_id == DEFAULT_PROVINCE_ID


def test_process_places_counts_invalid_records(processing_service, sample_raw_record):
    invalid = {"id": "raw-2", "place_id": "x", "raw_data": {"name": "Missing place id"}}

    summary = processing_service.process_places([sample_raw_record, invalid])

    assert summary.successful == 1
    assert summary.failed == 1
    assert len(summary.candidates) == 1
    candidate = summary.candidates[0]
    assert candidate["google_place_raw_id"] == "raw-1"
    assert candidate["suggested_type_id"] == 1
    assert candidate["status"] == ImportCandidateStatus.PENDING.value


def make_raw_record(record_id, name, website):
    return {
        "id": record_id,
        "place_id": f"ChIJ_{record_id}",
        "raw_data": {
            "place_id": f"ChIJ_{record_id}",
            "name": name,
            "formatted_address": "Chiang Mai",
            "types": ["campground"],
            "website": website,
        },
    }


def test_process_places_tolerates_unparseable_website():
    existing = ExistingCampsite(
        campsite_id="c1", name="Riverside", website="https://riverside.example.com"
    )
    service = PlaceProcessingService(
        classifier=TypeClassifierService(ai_client=None),
        deduplicator=DeduplicationService([existing]),
    )
    records = [
        make_raw_record("raw-1", "Hilltop Camping", "https://hilltop.example.com"),
        make_raw_record("raw-2", "Bracket Camping", "http://[campsite"),
        make_raw_record("raw-3", "Lakeside Camping", "https://lakeside.example.com"),
    ]

    summary = service.process_places(records)

    assert summary.successful == 3
    assert summary.failed == 0


def test_process_places_isolates_failing_record(caplog):
    classifier = MagicMock(spec=TypeClassifierService)

    def classify(candidate):
        if candidate.name == "Broken Camping":
            raise ValueError("Invalid IPv6 URL")
        return ClassificationResult.of(CampsiteType.CAMPING, 0.95)

    classifier.classify_type.side_effect = classify
    service = PlaceProcessingService(classifier=classifier)
    records = [
        make_raw_record("raw-1", "Hilltop Camping", "https://hilltop.example.com"),
        make_raw_record("raw-2", "Broken Camping", "http://[campsite"),
        make_raw_record("raw-3", "Lakeside Camping", "https://lakeside.example.com"),
    ]

    summary = service.process_places(records)

    assert summary.successful == 2
    assert summary.failed == 1
    assert [c["google_place_raw_id"] for c in summary.candidates] == ["raw-1", "raw-3"]
    assert "Failed to process place ChIJ_raw-2" in caplog.text
    assert not service.is_processing


def test_duplicate_is_rejected(sample_raw_record):
    existing = ExistingCampsite(campsite_id="c1", name="Other", phone="0812345678")
    service = PlaceProcessingService(
        classifier=TypeClassifierService(ai_client=None),
        deduplicator=DeduplicationService([existing]),
    )

    summary = service.process_places([sample_raw_record])

    candidate = summary.candidates[0]
    assert candidate["is_duplicate"] is True
    assert candidate["duplicate_of_campsite_id"] == "c1"
    assert candidate["status"] == ImportCandidateStatus.REJECTED.value
    assert candidate["validation_warnings"] == ["1 similar campsite(s) found"]


def test_process_places_rejects_concurrent_batches(sample_raw_record):
    started = threading.Event()
    release = threading.Event()
    classifier = MagicMock(spec=TypeClassifierService)

    def slow_classify(candidate):
        started.set()
        release.wait(timeout=5)
        return ClassificationResult.of(CampsiteType.CAMPING, 0.95)

    classifier.classify_type.side_effect = slow_classify
    service = PlaceProcessingService(classifier=classifier)

    worker = threading.Thread(target=service.process_places, args=([sample_raw_record],))
    worker.start()
    try:
        assert started.wait(timeout=5)
        assert service.is_processing
        with pytest.raises(ProcessingInProgressError):
            service.process_places([sample_raw_record])
    finally:
        release.set()
        worker.join(timeout=5)

    assert not service.is_processing


@pytest.mark.parametrize(
    "detection,expected",
    [
        (DuplicateDetection(), 0.6),
        (DuplicateDetection(is_duplicate=True, similarity_score=1.0), 0.9),
        (DuplicateDetection(similarity_score=0.6), 0.48),
        (DuplicateDetection(similarity_score=0.5), 0.6),
    ],
)
def test_calculate_confidence(detection, expected):
    classification = ClassificationResult.of(CampsiteType.CAMPING, 0.6)

    assert calculate_confidence(detection, classification) == expected


def test_generate_validation_warnings():
    details = PlaceDetails(place_id="p1", name="Bare Camp", rating=2.5)
    detection = DuplicateDetection(
        similar_campsites=[
            SimilarCampsite(campsite_id="a", name="A", similarity_score=0.6),
            SimilarCampsite(campsite_id="b", name="B", similarity_score=0.6),
        ]
    )

    warnings = generate_validation_warnings(details, detection)

    assert warnings == [
        "Missing phone number",
        "Missing website",
        "Low or missing rating",
        "2 similar campsite(s) found",
    ]
