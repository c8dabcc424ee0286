"""
Concierge error types.

Every error that can reach an API caller carries the HTTP status it maps to.
"""

from typing import Optional


class ConciergeError(Exception):
    """Base class for errors surfaced to the caller"""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InputValidationError(ConciergeError):
    """Request is missing data the pipeline needs (e.g. an empty prompt)"""

    status_code = 400


class ConfigurationError(ConciergeError):
    """No usable model or API key could be resolved for the user"""

    status_code = 400


class ProviderError(ConciergeError):
    """A language-model provider call failed (HTTP error, timeout, network)"""

    status_code = 500

    def __init__(self, provider: str, status: Optional[int], body: str):
        self.provider = provider
        self.status = status
        self.body = body
        if status is None:
            message = f"{provider} API error: {body}"
        else:
            message = f"{provider} API error {status}: {body}"
        super().__init__(message)
