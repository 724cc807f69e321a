"""Classification models for campsite type assignment."""

from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CampsiteType(int, Enum):
    """Fixed campsite taxonomy. Values are the persisted type ids."""

    CAMPING = 1
    GLAMPING = 2
    TENTED_RESORT = 3
    BUNGALOW = 4

    @property
    def display_name(self) -> str:
        return CAMPSITE_TYPE_NAMES[self]

    @classmethod
    def from_name(cls, name: str) -> "CampsiteType":
        """Resolve a canonical label (case-insensitive) to its type.

        Raises:
            ValueError: If the label is not one of the four canonical names
        """
        normalized = name.strip().lower()
        for campsite_type, display_name in CAMPSITE_TYPE_NAMES.items():
            if display_name.lower() == normalized:
                return campsite_type
        raise ValueError(f"Unknown campsite type name: {name!r}")


CAMPSITE_TYPE_NAMES = {
    CampsiteType.CAMPING: "Camping",
    CampsiteType.GLAMPING: "Glamping",
    CampsiteType.TENTED_RESORT: "Tented Resort",
    CampsiteType.BUNGALOW: "Bungalow",
}


class ClassificationResult(BaseModel):
    """Campsite type assignment with the classifier's self-reported confidence"""

    model_config = ConfigDict(frozen=True)

    type_id: int = Field(..., description="Campsite type id (1-4)")
    type_name: str = Field(..., description="Canonical English label for type_id")
    confidence: float = Field(..., ge=0.0, le=1.0)

    @model_validator(mode="after")
    def check_type_pair(self) -> "ClassificationResult":
        """Ensure type_id and type_name come from the same taxonomy entry"""
        try:
            campsite_type = CampsiteType(self.type_id)
        except ValueError:
            raise ValueError(f"type_id must be one of 1-4, got {self.type_id}")
        if campsite_type.display_name != self.type_name:
            raise ValueError(
                f"type_name {self.type_name!r} does not match type_id {self.type_id} "
                f"({campsite_type.display_name!r})"
            )
        return self

    @property
    def campsite_type(self) -> CampsiteType:
        return CampsiteType(self.type_id)

    @classmethod
    def of(cls, campsite_type: CampsiteType, confidence: float) -> "ClassificationResult":
        """Build a result for a taxonomy entry, clamping confidence into [0, 1]."""
        return cls(
            type_id=campsite_type.value,
            type_name=campsite_type.display_name,
            confidence=min(1.0, max(0.0, float(confidence))),
        )


class AIFailureReason(str, Enum):
    """Why the AI stage did not produce a usable classification"""

    PROVIDER_UNAVAILABLE = "provider_unavailable"
    MALFORMED_RESPONSE = "malformed_response"
    MISSING_CREDENTIAL = "missing_credential"


class AIClassificationOk(BaseModel):
    """AI stage produced a validated classification"""

    model_config = ConfigDict(frozen=True)

    result: ClassificationResult


class AIClassificationErr(BaseModel):
    """AI stage failed; the caller keeps the heuristic result"""

    model_config = ConfigDict(frozen=True)

    reason: AIFailureReason
    detail: str = ""


AIClassificationOutcome = Union[AIClassificationOk, AIClassificationErr]
