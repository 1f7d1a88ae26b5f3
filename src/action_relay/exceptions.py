"""
Exceptions raised by action_relay.

``raise_for_status`` maps failed REST responses onto the ``SalesforceError``
hierarchy. Domain level failures (a create/update/delete that came back
unsuccessful, a descriptor that fails validation) have their own types so a
caller can tell them apart without reading remote error text.
"""

import json
from typing import Any

from httpx import Response

INVALID_SESSION_ID = "INVALID_SESSION_ID"


class SalesforceError(Exception):
    """Base Salesforce API exception"""

    message = "Unknown error occurred for {url_path}. Response content: {content}"

    def __init__(
        self,
        status_code: int,
        resource_name: str,
        url_path: str,
        method: str,
        content: str,
    ):
        self.status_code = status_code
        self.resource_name = resource_name
        self.url_path = url_path
        self.method = method
        self.content = content
        super().__init__(str(self))

    @classmethod
    def from_response(cls, response: Response, resource_name: str = ""):
        return cls(
            response.status_code,
            resource_name,
            response.url.path,
            response.request.method,
            response.text,
        )

    @property
    def errors(self) -> list[dict[str, Any]]:
        """The ``[{"errorCode": ..., "message": ...}]`` list from the body, if any."""
        try:
            body = json.loads(self.content)
        except (TypeError, ValueError):
            return []
        if isinstance(body, dict):
            body = [body]
        if not isinstance(body, list):
            return []
        return [item for item in body if isinstance(item, dict)]

    @property
    def error_codes(self) -> list[str]:
        return [
            str(code)
            for error in self.errors
            if (code := error.get("errorCode") or error.get("errorDetails"))
        ]

    def __str__(self):
        return (
            f"[{self.status_code}] "
            + self.message.format(
                url_path=self.url_path,
                content=self.content,
                resource_name=self.resource_name,
            )
        )

    def __repr__(self):
        return f"{type(self).__name__}({str(self)!r})"


class SalesforceMoreThanOneRecord(SalesforceError):
    """
    Error Code: 300
    The value returned when an external ID exists in more than one record. The
    response body contains the list of matching records.
    """

    message = "More than one record for {url_path}. Response content: {content}"


class SalesforceRecordNotModifiedSince(SalesforceError):
    """
    Error Code: 304
    The request content hasn't changed since a specified date and time.
    """

    message = "Requested record for {url_path} not modified since {if_modified_since}."

    def __init__(
        self,
        status_code: int,
        resource_name: str,
        url_path: str,
        method: str,
        content: str,
        if_modified_since: str | None = None,
    ):
        self.if_modified_since = if_modified_since
        super().__init__(status_code, resource_name, url_path, method, content)

    def __str__(self):
        return f"[{self.status_code}] " + self.message.format(
            url_path=self.url_path, if_modified_since=self.if_modified_since
        )


class SalesforceMalformedRequest(SalesforceError):
    """
    Error Code: 400
    The request couldn't be understood, usually because the JSON or XML body
    contains an error.
    """

    message = "Malformed request {url_path}. Response content: {content}"


class SalesforceUnauthorized(SalesforceError):
    """
    Error Code: 401
    Authentication was rejected for a reason other than an expired session.
    """

    message = "Unauthorized request to {url_path}. Response content: {content}"


class SalesforceExpiredSession(SalesforceUnauthorized):
    """
    Error Code: 401 (INVALID_SESSION_ID)
    The session ID or OAuth token used has expired or is invalid.
    """

    message = "Expired session for {url_path}. Response content: {content}"


class SalesforceRefusedRequest(SalesforceError):
    """
    Error Code: 403
    The request has been refused. Verify that the logged-in user has
    appropriate permissions.
    """

    message = "Request refused for {url_path}. Response content: {content}"


class SalesforceResourceNotFound(SalesforceError):
    """
    Error Code: 404
    The requested resource couldn't be found.
    """

    message = "Resource {resource_name} Not Found. Response content: {content}"

    def __str__(self):
        return (
            f"[{self.status_code}] {self.url_path} "
            + self.message.format(
                resource_name=self.resource_name, content=self.content
            )
        )


class SalesforceMethodNotAllowedForResource(SalesforceError):
    """
    Error Code: 405
    The method specified in the Request-Line isn't allowed for the resource.
    """

    message = "HTTP Method Not Allowed for {url_path}. Response content: {content}"


class SalesforceApiVersionIncompatible(SalesforceError):
    """
    Error Code: 409
    The request couldn't be completed due to a conflict with the current state
    of the resource.
    """

    message = "Conflict with current state of {url_path}. Response content: {content}"


class SalesforceResourceRemoved(SalesforceError):
    """
    Error Code: 410
    The requested resource has been retired or removed.
    """

    message = "Resource {url_path} has been removed. Response content: {content}"


class SalesforceUnsupportedFormat(SalesforceError):
    """
    Error Code: 415
    The entity in the request is in a format that's not supported by the
    specified method.
    """

    message = "Unsupported format for {url_path}. Response content: {content}"


class SalesforceServerError(SalesforceError):
    """
    Error Code: 500
    An error has occurred within Lightning Platform, so the request couldn't be
    completed.
    """

    message = "Internal server error for {url_path}. Response content: {content}"


class SalesforceServerUnavailable(SalesforceError):
    """
    Error Code: 503
    The server is unavailable to handle the request.
    """

    message = "Server unavailable for {url_path}. Response content: {content}"


class SalesforceGeneralError(SalesforceError):
    """
    A non-specific Salesforce error.
    """

    message = "Error Code {status}. Response content: {content}"

    def __str__(self):
        url_path = self.url_path
        if len(url_path) > 255:
            url_path = url_path[:252] + "..."
        return (
            f"[{self.status_code}] {self.method.upper()} {url_path} "
            + self.message.format(status=self.status_code, content=self.content)
        )


_STATUS_EXCEPTIONS: dict[int, type[SalesforceError]] = {
    300: SalesforceMoreThanOneRecord,
    400: SalesforceMalformedRequest,
    401: SalesforceUnauthorized,
    403: SalesforceRefusedRequest,
    404: SalesforceResourceNotFound,
    405: SalesforceMethodNotAllowedForResource,
    409: SalesforceApiVersionIncompatible,
    410: SalesforceResourceRemoved,
    415: SalesforceUnsupportedFormat,
    500: SalesforceServerError,
    503: SalesforceServerUnavailable,
}


def raise_for_status(response: Response, resource_name: str = ""):
    """Raise the ``SalesforceError`` matching a failed response. No-op on success."""
    if response.is_success:
        return

    status_code = response.status_code
    if status_code == 304:
        raise SalesforceRecordNotModifiedSince(
            status_code,
            resource_name,
            response.url.path,
            response.request.method,
            response.text,
            response.headers.get("If-Modified-Since"),
        )

    exc_type = _STATUS_EXCEPTIONS.get(status_code, SalesforceGeneralError)
    error = exc_type.from_response(response, resource_name)
    if status_code == 401 and INVALID_SESSION_ID in error.error_codes:
        raise SalesforceExpiredSession.from_response(response, resource_name)
    raise error


class SalesforceAuthenticationFailed(Exception):
    """
    Thrown to indicate that authentication with Salesforce failed.
    """

    def __init__(self, code: str | None, message: str | None):
        self.code = code
        self.message = message
        super().__init__(str(self))

    def __str__(self):
        return f"{self.code}: {self.message}"


class AuthRefreshError(SalesforceAuthenticationFailed):
    """The refresh token itself was rejected; the user has to log in again."""


class AuthMissingResponse(SalesforceAuthenticationFailed):
    """A login flow was resumed without the response it asked for."""

    def __init__(self, message: str = "No response received"):
        super().__init__(None, message)

    def __str__(self):
        return str(self.message)


class ResponseShapeError(ValueError):
    """A remote response did not decode into the expected structure."""

    def __init__(self, type_name: str, detail: str):
        self.type_name = type_name
        self.detail = detail
        super().__init__(f"Unexpected {type_name} response: {detail}")


class ValidationError(ValueError):
    """Input rejected before any remote call was made."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class RemoteCallFailed(Exception):
    """A create, update or delete call returned an unsuccessful result."""

    operation: str = "call"

    def __init__(
        self,
        object_type: str,
        record_id: str | None = None,
        errors: list[Any] | None = None,
    ):
        self.object_type = object_type
        self.record_id = record_id
        self.errors = list(errors or [])
        super().__init__(str(self))

    def __str__(self):
        target = self.object_type
        if self.record_id:
            target += f" {self.record_id}"
        text = f"{self.operation.capitalize()} failed for {target}"
        if self.errors:
            text += ": " + "; ".join(str(error) for error in self.errors)
        return text


class CreateFailed(RemoteCallFailed):
    operation = "create"


class UpdateFailed(RemoteCallFailed):
    operation = "update"


class DeleteFailed(RemoteCallFailed):
    operation = "delete"


class CredentialsNotFound(KeyError):
    """No credentials are stored for the requested principal."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(user_id)

    def __str__(self):
        return f"No credentials stored for user {self.user_id!r}"
