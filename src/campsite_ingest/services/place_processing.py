"""Turns raw Google Places records into import candidates for admin review.

Each record goes through duplicate detection and type classification; the
results are folded into an overall confidence score, a list of validation
warnings and a suggested candidate status.
"""

import logging
import threading
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field, ValidationError

from ..models.classification import ClassificationResult
from ..models.place import PlaceCandidate, PlaceDetails
from .deduplication import DeduplicationService, DuplicateDetection
from .type_classifier import TypeClassifierService

logger = logging.getLogger(__name__)

DEFAULT_PROVINCE_ID = 1  # Bangkok
LOW_RATING_THRESHOLD = 3.0
SIMILARITY_PENALTY_THRESHOLD = 0.5
SIMILARITY_PENALTY_FACTOR = 0.8
DUPLICATE_MIN_CONFIDENCE = 0.9


class ImportCandidateStatus(str, Enum):
    """Review status of an import candidate"""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    IMPORTED = "imported"


class RawPlaceRecord(BaseModel):
    """A fetched Google Places record awaiting processing"""

    id: str
    place_id: str
    raw_data: PlaceDetails


class ProcessedPlace(BaseModel):
    """Processing outcome for one raw place"""

    raw_place_id: str
    place_id: str
    name: str
    address: str
    confidence_score: float = Field(..., ge=0.0, le=1.0)
    is_duplicate: bool
    duplicate_of_campsite_id: Optional[str] = None
    suggested_province_id: int
    suggested_type_id: int
    validation_warnings: List[str] = Field(default_factory=list)
    processed_data: Dict[str, Any] = Field(default_factory=dict)


class ProcessingSummary(BaseModel):
    """Counts and candidates produced by a batch run"""

    successful: int = 0
    failed: int = 0
    candidates: List[Dict[str, Any]] = Field(default_factory=list)


class ProcessingInProgressError(RuntimeError):
    """Raised when a batch is started while another one is still running."""


def calculate_confidence(
    duplicate_detection: DuplicateDetection, classification: ClassificationResult
) -> float:
    """Combine classification confidence with the duplicate check.

    A confirmed duplicate is a confident outcome in itself; a near match
    lowers confidence so a reviewer looks closer.
    """
    confidence = classification.confidence

    if duplicate_detection.is_duplicate:
        confidence = max(DUPLICATE_MIN_CONFIDENCE, confidence)
    elif duplicate_detection.similarity_score > SIMILARITY_PENALTY_THRESHOLD:
        confidence = confidence * SIMILARITY_PENALTY_FACTOR

    return round(confidence, 2)


def generate_validation_warnings(
    details: PlaceDetails, duplicate_detection: DuplicateDetection
) -> List[str]:
    warnings = []

    if not details.formatted_phone_number:
        warnings.append("Missing phone number")
    if not details.website:
        warnings.append("Missing website")
    if not details.rating or details.rating < LOW_RATING_THRESHOLD:
        warnings.append("Low or missing rating")

    similar_count = len(duplicate_detection.similar_campsites)
    if similar_count > 0:
        warnings.append(f"{similar_count} similar campsite(s) found")

    return warnings


def determine_status(processed: ProcessedPlace) -> ImportCandidateStatus:
    if processed.is_duplicate:
        return ImportCandidateStatus.REJECTED
    return ImportCandidateStatus.PENDING


def to_import_candidate(processed: ProcessedPlace) -> Dict[str, Any]:
    """Build the import candidate row for a processed place."""
    return {
        "google_place_raw_id": processed.raw_place_id,
        "place_id": processed.place_id,
        "name": processed.name,
        "address": processed.address,
        "confidence_score": processed.confidence_score,
        "is_duplicate": processed.is_duplicate,
        "duplicate_of_campsite_id": processed.duplicate_of_campsite_id,
        "suggested_province_id": processed.suggested_province_id,
        "suggested_type_id": processed.suggested_type_id,
        "processed_data": processed.processed_data,
        "validation_warnings": processed.validation_warnings,
        "status": determine_status(processed).value,
    }


class PlaceProcessingService:
    """Runs raw places through duplicate detection and type classification."""

    def __init__(
        self,
        classifier: TypeClassifierService,
        deduplicator: Optional[DeduplicationService] = None,
    ):
        self.classifier = classifier
        self.deduplicator = deduplicator or DeduplicationService()
        self._lock = threading.Lock()

    @property
    def is_processing(self) -> bool:
        return self._lock.locked()

    def process_place(
        self, record: RawPlaceRecord, province_id: Optional[int] = None
    ) -> ProcessedPlace:
        """Process a single raw place.

        Args:
            record: The raw place record
            province_id: Province resolved by the caller; defaults to Bangkok

        Returns:
            The processed place
        """
        details = record.raw_data
        logger.debug(f"Processing place {record.place_id} ({details.name})")

        duplicate_detection = self.deduplicator.detect_duplicate(details)
        classification = self.classifier.classify_type(PlaceCandidate.from_place_details(details))

        processed = ProcessedPlace(
            raw_place_id=record.id,
            place_id=record.place_id,
            name=details.name,
            address=details.formatted_address,
            confidence_score=calculate_confidence(duplicate_detection, classification),
            is_duplicate=duplicate_detection.is_duplicate,
            duplicate_of_campsite_id=duplicate_detection.duplicate_of_campsite_id,
            suggested_province_id=province_id or DEFAULT_PROVINCE_ID,
            suggested_type_id=classification.type_id,
            validation_warnings=generate_validation_warnings(details, duplicate_detection),
            processed_data={
                "rating": details.rating,
                "user_ratings_total": details.user_ratings_total,
                "phone": details.formatted_phone_number,
                "website": details.website,
                "location": details.geometry.location if details.geometry else None,
                "types": details.types,
                "business_status": details.business_status,
            },
        )

        logger.info(
            f"Place processed successfully: {details.name} "
            f"(confidence {processed.confidence_score}, duplicate {processed.is_duplicate})"
        )
        return processed

    def process_places(self, records: Iterable[Dict[str, Any]]) -> ProcessingSummary:
        """Process a batch of raw place records.

        Invalid records and records whose processing raises are counted as
        failed and skipped.

        Raises:
            ProcessingInProgressError: If another batch is running on this service
        """
        if not self._lock.acquire(blocking=False):
            raise ProcessingInProgressError("Place processing is already running")

        summary = ProcessingSummary()
        try:
            records = list(records)
            logger.info(f"Starting place processing for {len(records)} records")

            for raw in records:
                try:
                    record = RawPlaceRecord.model_validate(raw)
                except ValidationError as e:
                    summary.failed += 1
                    raw_id = raw.get("id") if isinstance(raw, dict) else None
                    logger.error(f"Invalid raw place record {raw_id}: {e}")
                    continue

                try:
                    processed = self.process_place(record)
                except Exception:
                    summary.failed += 1
                    logger.exception(f"Failed to process place {record.place_id} ({record.id})")
                    continue

                summary.candidates.append(to_import_candidate(processed))
                summary.successful += 1

            logger.info(
                f"Place processing completed: {summary.successful} successful, "
                f"{summary.failed} failed"
            )
            return summary
        finally:
            self._lock.release()
