from typing import Optional

import requests


class DemoBuilderError(Exception):
    """Base exception for the demo builder."""


class ValidationError(DemoBuilderError):
    """A required input is missing; raised before any external call."""


class NotFoundError(DemoBuilderError):
    """The referenced demo id does not exist in the record store."""


class GenerationError(DemoBuilderError):
    """The code-generation provider failed. Always fatal."""


class PersistenceError(DemoBuilderError):
    """The record store failed."""


class CommandError(DemoBuilderError):
    """A local git or deploy-CLI process failed or produced no usable output."""

    def __init__(self, message: str, command: str = "", output: str = ""):
        super().__init__(message)
        self.command = command
        self.output = output


class ProviderError(DemoBuilderError):
    """Non-2xx answer (or no answer) from GitHub or Vercel."""

    def __init__(self, message: str, provider: str = "", operation: str = "",
                 status: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.provider = provider
        self.operation = operation
        self.status = status
        self.body = body


class ProviderAuthError(ProviderError):
    pass


class ProviderNotFoundError(ProviderError):
    pass


class ProviderTransientError(ProviderError):
    """5xx, throttling or connection failure. Not retried by the clients."""


class ProviderUnknownError(ProviderError):
    pass


def check_response(response: requests.Response, provider: str, operation: str) -> requests.Response:
    """Return the response if it is 2xx, otherwise raise the matching ProviderError."""
    status = response.status_code
    if 200 <= status < 300:
        return response

    body = response.text or ""
    message = f"{provider} {operation} failed: {status} {body[:200]}"
    if status in (401, 403):
        error_cls = ProviderAuthError
    elif status == 404:
        error_cls = ProviderNotFoundError
    elif status == 429 or status >= 500:
        error_cls = ProviderTransientError
    else:
        error_cls = ProviderUnknownError
    raise error_cls(message, provider=provider, operation=operation, status=status, body=body)


def connection_error(exc: requests.RequestException, provider: str, operation: str) -> ProviderTransientError:
    """Wrap a requests transport failure."""
    return ProviderTransientError(
        f"{provider} {operation} failed: {exc}",
        provider=provider,
        operation=operation
    )
