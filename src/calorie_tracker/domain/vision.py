"""Models and errors for food photo analysis."""

from pydantic import BaseModel, Field


class FoodAnalysis(BaseModel):
    """Description and single-serving calorie estimate for a photo."""

    description: str
    calories_per_serving: int = Field(gt=0)


class AnalysisError(Exception):
    """Base class for failures of the analysis pipeline."""

    user_message = "Failed to analyze the image. Please try again."

    def __str__(self) -> str:
        return self.user_message


class MissingCredentialError(AnalysisError):
    """No API key is configured for the selected provider."""

    user_message = "API key is missing. Please add your API key in Settings."


class InvalidImageDataError(AnalysisError):
    """The image payload is empty or unusable."""

    user_message = "The image data is invalid. Please try taking the photo again."


class AnalysisNetworkError(AnalysisError):
    """The provider could not be reached or timed out."""

    def __init__(self, underlying: Exception) -> None:
        super().__init__(underlying)
        self.underlying = underlying

    @property
    def user_message(self) -> str:  # type: ignore[override]
        detail = str(self.underlying) or type(self.underlying).__name__
        return f"Network error: {detail}. Please check your connection."


class AnalysisApiError(AnalysisError):
    """The provider answered with an error or no usable food estimate."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(status_code, message)
        self.status_code = status_code
        self.message = message

    @property
    def user_message(self) -> str:  # type: ignore[override]
        return f"API Error ({self.status_code}): {self.message}"


class InvalidAnalysisResponseError(AnalysisError):
    """The provider reply could not be decoded or parsed."""

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail)
        self.detail = detail

    @property
    def user_message(self) -> str:  # type: ignore[override]
        if self.detail:
            return self.detail
        return "The AI service returned an invalid response. Please try again."
