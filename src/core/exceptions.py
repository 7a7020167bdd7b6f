"""Errors that cross the boundary between the advisor core and its callers."""

from typing import Optional


class AdvisorError(RuntimeError):
    """Base class for errors the HTTP layer maps to a JSON response."""

    status_code: int = 500
    public_message: Optional[str] = None

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    @property
    def detail(self) -> str:
        return self.public_message or self.message


class AnalysisFailed(AdvisorError):
    """The model reply says no face could be analyzed. The message is shown to the user."""

    status_code = 422

    def __init__(self, message: str, raw_text: str = "") -> None:
        super().__init__(message)
        self.raw_text = raw_text


class UpstreamUnavailable(AdvisorError):
    """The analysis service could not be reached or answered badly."""

    status_code = 502
    public_message = "Failed to analyze image"


class MalformedInput(AdvisorError):
    """The uploaded payload is not a usable image. Raised before any network call."""

    status_code = 400
