"""Campsite type classification for imported Google Places records.

Classification runs in two stages. A keyword/tag heuristic always runs and
never fails. When its confidence is below the threshold and an AI client is
configured, a chat model is asked for a second opinion; any failure there
falls back to the heuristic result.
"""

import json
import logging
import math
import re
from functools import lru_cache
from typing import Dict, Optional

from ..models.classification import (
    AIClassificationErr,
    AIClassificationOk,
    AIClassificationOutcome,
    AIFailureReason,
    CampsiteType,
    ClassificationResult,
)
from ..models.place import PlaceCandidate
from ..utils.env import get_float_env
from ..utils.general_utils import get_openai_client
from .openai_client import ChatMessage, OpenAIClient
from .type_keywords import (
    AMBIGUOUS_KEYWORD_CONFIDENCE,
    DEFAULT_CONFIDENCE,
    DEFAULT_TYPE,
    HIGH_PRICE_LEVEL,
    KEYWORD_CONFIDENCE,
    KEYWORD_WEIGHTS,
    LODGING_TAG_WEIGHT,
    LODGING_TAGS,
    PRICE_SHIFT_CONFIDENCE,
    TAG_ONLY_CONFIDENCE,
    TAG_WEIGHTS,
    TIE_BREAK_ORDER,
    UPSCALE_LODGING_PRICE_LEVEL,
)

logger = logging.getLogger(__name__)

CLASSIFIER_CONFIDENCE_THRESHOLD = get_float_env("CLASSIFIER_CONFIDENCE_THRESHOLD", 0.7)

JSON_OBJECT_PATTERN = re.compile(r"\{[^{}]*\}", re.DOTALL)
WHITESPACE_PATTERN = re.compile(r"\s+")

TYPE_DESCRIPTIONS = {
    CampsiteType.CAMPING: "Basic camping sites, tents, minimal facilities",
    CampsiteType.GLAMPING: "Luxury camping with comfort amenities, AC, proper beds",
    CampsiteType.TENTED_RESORT: "Resort-style accommodation in tents, full facilities",
    CampsiteType.BUNGALOW: "Permanent structures, cabins, cottages",
}

SYSTEM_PROMPT = (
    "You classify Thai camping accommodations. "
    "Reply with a single JSON object and nothing else."
)


def normalize_text(*parts: Optional[str]) -> str:
    """Join text fields into one lowercased, whitespace-collapsed search string."""
    joined = " ".join(part for part in parts if part)
    return WHITESPACE_PATTERN.sub(" ", joined).strip().lower()


def _score_keywords(text: str) -> Dict[CampsiteType, int]:
    scores = {campsite_type: 0 for campsite_type in CampsiteType}
    if not text:
        return scores
    for campsite_type, terms in KEYWORD_WEIGHTS.items():
        scores[campsite_type] = sum(weight for term, weight in terms if term in text)
    return scores


def _score_tags(candidate: PlaceCandidate) -> Dict[CampsiteType, int]:
    scores = {campsite_type: 0 for campsite_type in CampsiteType}
    tags = {tag.strip().lower() for tag in candidate.category_tags}

    for tag in tags:
        if tag in TAG_WEIGHTS:
            campsite_type, weight = TAG_WEIGHTS[tag]
            scores[campsite_type] += weight

    if tags & LODGING_TAGS:
        price_level = candidate.price_level or 0
        if price_level >= UPSCALE_LODGING_PRICE_LEVEL:
            scores[CampsiteType.GLAMPING] += LODGING_TAG_WEIGHT
        else:
            scores[CampsiteType.BUNGALOW] += LODGING_TAG_WEIGHT

    return scores


def heuristic_classify(candidate: PlaceCandidate) -> ClassificationResult:
    """Classify a place from its text and tags without any network call.

    Args:
        candidate: The place to classify

    Returns:
        The best-scoring taxonomy entry. Inputs without any evidence get
        Camping with a low confidence.
    """
    text = normalize_text(candidate.name, candidate.formatted_address)
    keyword_scores = _score_keywords(text)
    tag_scores = _score_tags(candidate)
    totals = {t: keyword_scores[t] + tag_scores[t] for t in CampsiteType}

    # Equal totals go to keyword evidence, then to tie-break order since max()
    # keeps the first of equal keys
    def rank(campsite_type):
        return (totals[campsite_type], keyword_scores[campsite_type])

    winner = max(TIE_BREAK_ORDER, key=rank)
    if totals[winner] == 0:
        return ClassificationResult.of(DEFAULT_TYPE, DEFAULT_CONFIDENCE)

    runner_up = max(rank(t) for t in CampsiteType if t != winner)
    if keyword_scores[winner] > 0:
        if rank(winner) > runner_up:
            confidence = KEYWORD_CONFIDENCE[winner]
        else:
            confidence = AMBIGUOUS_KEYWORD_CONFIDENCE
    else:
        confidence = TAG_ONLY_CONFIDENCE

    if winner == CampsiteType.CAMPING and (candidate.price_level or 0) >= HIGH_PRICE_LEVEL:
        return ClassificationResult.of(
            CampsiteType.GLAMPING, min(PRICE_SHIFT_CONFIDENCE, confidence)
        )

    return ClassificationResult.of(winner, confidence)


def build_classification_prompt(
    candidate: PlaceCandidate, heuristic: Optional[ClassificationResult] = None
) -> str:
    """Build the prompt asking the model to pick one of the four campsite types."""
    tags = ", ".join(sorted(candidate.category_tags)) or "N/A"
    price_level = candidate.price_level if candidate.price_level is not None else "N/A"
    rating = candidate.rating if candidate.rating is not None else "N/A"
    type_lines = "\n".join(
        f"{t.value}. {t.display_name} - {TYPE_DESCRIPTIONS[t]}" for t in CampsiteType
    )

    prompt = f"""Analyze this camping site and classify it:

Name: {candidate.name}
Address: {candidate.formatted_address or "N/A"}
Types: {tags}
Price Level: {price_level} (0-4 scale)
Rating: {rating} (1-5)
Review Count: {candidate.user_ratings_total or 0}
Photo Count: {candidate.photo_count}

Available Types:
{type_lines}
"""
    if heuristic is not None:
        prompt += (
            f"\nA keyword-based guess was {heuristic.type_name} "
            f"with confidence {heuristic.confidence:.2f}; correct it if it is wrong.\n"
        )
    prompt += """
Respond with ONLY the type ID (1-4), type name, and confidence score (0-1) in this format:
{"typeId": 1, "typeName": "Camping", "confidence": 0.9}"""
    return prompt


def parse_ai_response(content: Optional[str]) -> AIClassificationOutcome:
    """Parse and validate a model reply.

    The reply is untrusted text: the first JSON object in it must carry an
    integer typeId in 1-4, the canonical typeName for that id and a
    confidence in [0, 1]. Anything else is reported as a malformed response.
    """

    def malformed(detail: str) -> AIClassificationErr:
        return AIClassificationErr(reason=AIFailureReason.MALFORMED_RESPONSE, detail=detail)

    match = JSON_OBJECT_PATTERN.search(content or "")
    if not match:
        return malformed("no JSON object in response")

    try:
        payload = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        return malformed(f"invalid JSON: {e}")

    type_id = payload.get("typeId")
    if isinstance(type_id, bool) or not isinstance(type_id, int):
        return malformed(f"typeId is not an integer: {type_id!r}")
    try:
        campsite_type = CampsiteType(type_id)
    except ValueError:
        return malformed(f"typeId out of range: {type_id}")

    type_name = payload.get("typeName")
    if not isinstance(type_name, str):
        return malformed(f"typeName is not a string: {type_name!r}")
    try:
        named_type = CampsiteType.from_name(type_name)
    except ValueError:
        return malformed(f"unknown typeName: {type_name!r}")
    if named_type != campsite_type:
        return malformed(f"typeName {type_name!r} does not match typeId {type_id}")

    confidence = payload.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        return malformed(f"confidence is not a number: {confidence!r}")
    if not math.isfinite(confidence) or not 0.0 <= confidence <= 1.0:
        return malformed(f"confidence out of range: {confidence}")

    return AIClassificationOk(result=ClassificationResult.of(campsite_type, confidence))


class TypeClassifierService:
    """Assigns a campsite type to a place, consulting an AI model when unsure."""

    def __init__(
        self,
        ai_client: Optional[OpenAIClient] = None,
        confidence_threshold: float = CLASSIFIER_CONFIDENCE_THRESHOLD,
    ):
        """Initialize the classifier.

        Args:
            ai_client: Client for the AI stage. None disables the AI stage.
            confidence_threshold: Heuristic confidence below which the AI stage runs
        """
        if not 0.0 <= confidence_threshold <= 1.0:
            raise ValueError(f"confidence_threshold must be in [0, 1], got {confidence_threshold}")
        self.ai_client = ai_client
        self.confidence_threshold = confidence_threshold

    @property
    def ai_enabled(self) -> bool:
        return self.ai_client is not None

    def ai_classify(
        self, candidate: PlaceCandidate, heuristic: Optional[ClassificationResult] = None
    ) -> AIClassificationOutcome:
        """Ask the AI model for a classification.

        Never raises: provider and parsing failures are returned as
        AIClassificationErr.
        """
        if self.ai_client is None:
            return AIClassificationErr(
                reason=AIFailureReason.MISSING_CREDENTIAL, detail="no AI client configured"
            )

        messages = [
            ChatMessage(role="system", content=SYSTEM_PROMPT),
            ChatMessage(role="user", content=build_classification_prompt(candidate, heuristic)),
        ]
        try:
            content = self.ai_client.generate_completion(messages)
        except Exception as e:
            return AIClassificationErr(
                reason=AIFailureReason.PROVIDER_UNAVAILABLE, detail=f"{type(e).__name__}: {e}"
            )

        return parse_ai_response(content)

    def classify_type(self, candidate: PlaceCandidate) -> ClassificationResult:
        """Classify a place into one of the four campsite types.

        Args:
            candidate: The place to classify

        Returns:
            The AI result when the heuristic was unsure and the AI stage
            succeeded, otherwise the heuristic result.
        """
        result = heuristic_classify(candidate)
        if result.confidence >= self.confidence_threshold:
            return result

        if not self.ai_enabled:
            logger.debug(
                f"Low keyword confidence {result.confidence} for {candidate.name!r}; "
                "AI classification disabled"
            )
            return result

        logger.info(
            f"Low confidence from keyword classification for {candidate.name!r} "
            f"({result.confidence}), trying AI classification"
        )
        outcome = self.ai_classify(candidate, result)

        if isinstance(outcome, AIClassificationOk):
            return outcome.result

        logger.warning(
            f"AI classification failed for {candidate.name!r} ({outcome.reason.value}: "
            f"{outcome.detail}), falling back to keyword result {result.type_name}"
        )
        return result


@lru_cache
def get_type_classifier() -> TypeClassifierService:
    """Get the process-wide classifier, configured from the environment."""
    return TypeClassifierService(ai_client=get_openai_client())


def classify_type(candidate: PlaceCandidate) -> ClassificationResult:
    """Classify a place with the process-wide classifier."""
    return get_type_classifier().classify_type(candidate)
