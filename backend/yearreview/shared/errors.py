"""
Error taxonomy shared by all providers.

Every error carries a short ``kind`` string, used by the review service to
report "unavailable, reason: <kind>" instead of an empty report.
"""

from typing import Optional


class YearReviewError(Exception):
    """Base error."""

    kind = "error"

    def __init__(self, message: str, provider: Optional[str] = None):
        self.provider = provider
        super().__init__(message)


# =============================================================================
# Credentials
# =============================================================================

class CredentialError(YearReviewError):
    """Credential cannot be used for API calls."""

    kind = "credential_error"


class CredentialExpiredError(CredentialError):
    """Credential expired and renewal failed or is impossible."""

    kind = "credential_expired"


class ReauthorizationRequiredError(CredentialError):
    """Static credential missing or rejected by the provider."""

    kind = "reauthorization_required"


class OAuthError(YearReviewError):
    """Token endpoint refused a renewal request."""

    kind = "oauth_error"


# =============================================================================
# Fetching
# =============================================================================

class ProviderFetchError(YearReviewError):
    """Non-success response (or transport failure) while fetching."""

    kind = "fetch_failed"

    def __init__(
        self,
        provider: str,
        resource: str,
        status: Optional[int] = None,
        detail: str = "",
        partial: bool = False,
    ):
        self.resource = resource
        self.status = status
        self.detail = detail
        self.partial = partial
        status_text = status if status is not None else "transport error"
        message = f"{provider} {resource}: {status_text}"
        if detail:
            message = f"{message} - {detail}"
        super().__init__(message, provider)

    def with_partial(self, partial: bool) -> "ProviderFetchError":
        """Copy of this error with the partial-results flag set."""
        error = type(self)(
            self.provider,
            self.resource,
            status=self.status,
            detail=self.detail,
            partial=partial,
        )
        error.__cause__ = self.__cause__
        return error


class ProviderRateLimitError(ProviderFetchError):
    """Rate limit still exceeded after backing off."""

    kind = "rate_limited"


class MalformedResponseError(YearReviewError):
    """Payload does not have the expected shape."""

    kind = "malformed_response"

    def __init__(self, provider: str, resource: str, detail: str, partial: bool = False):
        self.resource = resource
        self.detail = detail
        self.partial = partial
        super().__init__(f"{provider} {resource}: {detail}", provider)

    def with_partial(self, partial: bool) -> "MalformedResponseError":
        error = type(self)(self.provider, self.resource, self.detail, partial=partial)
        error.__cause__ = self.__cause__
        return error


# Errors that only cost one sub-resource (repository, channel, message)
SUB_RESOURCE_ERRORS = (ProviderFetchError, MalformedResponseError)
