"""Assessment client interface, errors and the offline fallback."""

from abc import ABC, abstractmethod

from ..models import Assessment, ConceptSpecification, ImplementationModule

UNAVAILABLE_NOTE = "AI analysis unavailable"


class AssessmentClient(ABC):
    """Base class for natural-language assessment services.

    Implementations must never raise out of these methods: a failed or
    unreachable service still yields a usable answer.
    """

    @abstractmethod
    def assess(
        self,
        spec: ConceptSpecification,
        module: ImplementationModule,
        related_text: str | None = None,
    ) -> Assessment:
        """Review how well an implementation realizes its specification.

        Args:
            spec: Parsed specification
            module: Extracted implementation
            related_text: Synchronization code mentioning the concept

        Returns:
            Normalized Assessment (real or fallback)
        """
        pass

    @abstractmethod
    def assess_aspect(
        self, spec: ConceptSpecification, module: ImplementationModule, aspect: str
    ) -> str:
        """Answer a single-aspect question (purpose, actions, queries, state, independence).

        Returns:
            Free-text answer from the service
        """
        pass


class UnavailableAssessmentClient(AssessmentClient):
    """Deterministic stand-in used when the real service cannot answer."""

    def assess(
        self,
        spec: ConceptSpecification,
        module: ImplementationModule,
        related_text: str | None = None,
    ) -> Assessment:
        return Assessment(
            purpose_alignment_note=UNAVAILABLE_NOTE,
            implementation_quality_note=UNAVAILABLE_NOTE,
            issues=[],
            suggestions=["Enable AI analysis by providing a valid OpenAI API key"],
        )

    def assess_aspect(
        self, spec: ConceptSpecification, module: ImplementationModule, aspect: str
    ) -> str:
        return f"Failed to analyze {aspect}"


class AssessmentError(Exception):
    """Base exception for assessment errors."""

    pass


class AssessmentServiceError(AssessmentError):
    """The service could not be reached or returned an unusable response."""

    pass


class AssessmentParseError(AssessmentError):
    """The reply did not contain a decodable JSON object."""

    pass
