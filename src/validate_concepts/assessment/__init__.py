"""Optional natural-language assessment of concept alignment."""

from ..config import ValidationConfig
from ..source_extractor import SourceExtractor
from .base import (
    UNAVAILABLE_NOTE,
    AssessmentClient,
    AssessmentError,
    AssessmentParseError,
    AssessmentServiceError,
    UnavailableAssessmentClient,
)
from .openai_client import OpenAIAssessmentClient, parse_assessment

__all__ = [
    "UNAVAILABLE_NOTE",
    "AssessmentClient",
    "AssessmentError",
    "AssessmentParseError",
    "AssessmentServiceError",
    "OpenAIAssessmentClient",
    "UnavailableAssessmentClient",
    "build_assessment_client",
    "parse_assessment",
]


def build_assessment_client(config: ValidationConfig) -> AssessmentClient | None:
    """Create the assessment client a run should use.

    Returns:
        None when assessments are disabled, otherwise the network client
    """
    if not config.enable_assessment:
        return None

    return OpenAIAssessmentClient(
        api_key=config.assessment_credential,
        model=config.assessment_model,
        base_url=config.assessment_base_url,
        timeout=config.assessment_timeout,
        extractor=SourceExtractor(config.persistence_handle),
    )
