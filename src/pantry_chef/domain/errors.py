"""Errors raised by the recommendation pipeline."""

from collections.abc import Sequence

from pantry_chef.domain.recipes import ParseFailure, RejectedRecipe


class RecommendationError(Exception):
    """Base class for failures surfaced to recommendation callers."""

    kind = "recommendation_failed"
    recovery_suggestion = "Please try again later."


class NoIngredientsError(RecommendationError):
    """No inventory was supplied for the recommendation."""

    kind = "no_ingredients"
    recovery_suggestion = "Add some ingredients to the pantry first."


class MissingCredentialError(RecommendationError):
    """No usable API credential is available."""

    kind = "missing_credential"
    recovery_suggestion = "Configure the language model API key in settings."


class NetworkError(RecommendationError):
    """Transport failure or non-success status that persisted across retries."""

    kind = "network"
    recovery_suggestion = "Check the network connection and retry."

    def __init__(self, last_error: BaseException | None, attempts: int) -> None:
        super().__init__(
            f"Chat completion failed after {attempts} attempt(s): {last_error}"
        )
        self.last_error = last_error
        self.attempts = attempts


class InvalidResponseError(RecommendationError):
    """The model responded but no usable recipe list could be recovered."""

    kind = "invalid_response"
    recovery_suggestion = (
        "Retry the request; if the problem persists, report the malformed payload."
    )

    def __init__(
        self,
        message: str,
        *,
        failure: ParseFailure | None = None,
        rejected: Sequence[RejectedRecipe] = (),
    ) -> None:
        super().__init__(message)
        self.failure = failure
        self.rejected = list(rejected)

    def detail(self) -> dict[str, object]:
        """Return structured diagnostics for logs and API responses."""
        return {
            "failure": self.failure.as_dict() if self.failure else None,
            "rejected": [
                {"index": item.index, "name": item.name, "reason": item.reason}
                for item in self.rejected
            ],
        }


class RecommendationCancelled(RecommendationError):
    """The caller's deadline expired before the recommendation finished."""

    kind = "cancelled"
    recovery_suggestion = "The request was cancelled; start it again when ready."


class ChatTransportError(Exception):
    """Retryable failure of a single chat completion attempt."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
