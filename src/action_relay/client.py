import typing
from typing import Any

from httpx import URL, Auth, Client, Request, Response
from typing_extensions import override

from .auth.types import Credentials
from .config import RelayConfig
from .exceptions import SalesforceError, raise_for_status
from .logger import getLogger
from .metrics import ApiUsage, parse_api_usage
from .models import QueryResult, SaveResult, UserInfo

LOGGER = getLogger("client")


class CredentialsAuth(Auth):
    """Sends the access token of one ``Credentials`` value as a bearer token."""

    def __init__(self, credentials: Credentials):
        self.credentials = credentials

    def auth_flow(
        self, request: Request
    ) -> typing.Generator[Request, Response, None]:
        request.headers["Authorization"] = f"Bearer {self.credentials.access_token}"
        yield request


class SalesforceClient(Client):
    """
    Salesforce REST and Tooling API client.

    The client holds no credentials. Every verb takes the ``Credentials`` of
    the principal it runs for and sends them with that request only, so one
    client may serve any number of principals and orgs at once.

    API base URLs come from the ``urls`` templates in the userinfo response,
    with ``{version}`` replaced by the configured API version. Userinfo is
    fetched once per instance URL.
    """

    api_usage: ApiUsage | None = None

    def __init__(
        self,
        config: RelayConfig,
        headers={"Accept": "application/json"},
        **kwargs,
    ):
        kwargs.setdefault("timeout", config.timeout)
        super().__init__(headers=headers, **kwargs)
        self.config = config
        self._userinfo: dict[str, UserInfo] = {}

    def __str__(self):
        return f"{type(self).__name__} (API {self.config.api_version})"

    @override
    def request(
        self,
        method: str,
        url: URL | str,
        resource_name: str = "",
        response_status_raise: bool = True,
        **kwargs,
    ) -> Response:
        response = super().request(method, url, **kwargs)

        # 401 always raises, so expired sessions reach the executor
        if response_status_raise or response.status_code == 401:
            raise_for_status(response, resource_name)

        sforce_limit_info = response.headers.get("Sforce-Limit-Info")
        if sforce_limit_info and isinstance(sforce_limit_info, str):
            self.api_usage = parse_api_usage(sforce_limit_info)
        return response

    def _send(
        self,
        credentials: Credentials,
        method: str,
        url: str,
        resource_name: str,
        **kwargs,
    ) -> Response:
        return self.request(
            method, url, resource_name, auth=CredentialsAuth(credentials), **kwargs
        )

    def get_user_info(self, credentials: Credentials) -> UserInfo:
        instance_url = credentials.instance_url.rstrip("/")
        userinfo = UserInfo.from_json(
            self._send(
                credentials, "GET", f"{instance_url}/services/oauth2/userinfo", "UserInfo"
            ).json()
        )
        self._userinfo[instance_url] = userinfo
        LOGGER.debug(
            "Resolved API URLs for %s (org %s)",
            userinfo.preferred_username,
            userinfo.organization_id,
        )
        return userinfo

    def user_info(self, credentials: Credentials) -> UserInfo:
        """Cached userinfo for the instance ``credentials`` belong to."""
        userinfo = self._userinfo.get(credentials.instance_url.rstrip("/"))
        return userinfo or self.get_user_info(credentials)

    def data_url(self, credentials: Credentials) -> str:
        return self.user_info(credentials).rest_url(self.config.api_version)

    def sobjects_url(self, credentials: Credentials) -> str:
        return self.user_info(credentials).sobjects_url(self.config.api_version)

    def tooling_url(self, credentials: Credentials) -> str:
        return f"{self.data_url(credentials)}/tooling"

    def tooling_sobjects_url(self, credentials: Credentials) -> str:
        return f"{self.tooling_url(credentials)}/sobjects"

    def _sobject_url(
        self,
        credentials: Credentials,
        object_type: str,
        tooling: bool,
        record_id: str | None = None,
    ) -> str:
        if tooling:
            base = self.tooling_sobjects_url(credentials)
        else:
            base = self.sobjects_url(credentials)
        url = f"{base}/{object_type}"
        if record_id:
            url += f"/{record_id}"
        return url

    def query(self, credentials: Credentials, soql: str, tooling: bool = False) -> QueryResult:
        """
        Run a SOQL query and return the first batch of results.

        Only the first batch is fetched; when ``done`` is false the rest of
        the records are behind ``next_records_url``.
        """
        base = self.tooling_url(credentials) if tooling else self.data_url(credentials)
        response = self._send(
            credentials, "GET", f"{base}/query", "Query", params={"q": soql}
        )
        result = QueryResult.from_json(response.json())
        if not result.done:
            LOGGER.warning(
                "Query returned %d of %d records; remaining batches are not fetched",
                len(result.records),
                result.total_size,
            )
        return result

    def create_record(
        self,
        credentials: Credentials,
        object_type: str,
        body: dict[str, Any],
        tooling: bool = False,
    ) -> SaveResult:
        response = self._send(
            credentials,
            "POST",
            self._sobject_url(credentials, object_type, tooling),
            object_type,
            response_status_raise=False,
            json=body,
        )
        if not response.is_success:
            return self._failed_save(response, object_type)
        return SaveResult.from_json(response.json())

    def update_record(
        self,
        credentials: Credentials,
        object_type: str,
        record_id: str,
        body: dict[str, Any],
        tooling: bool = False,
    ) -> SaveResult:
        response = self._send(
            credentials,
            "PATCH",
            self._sobject_url(credentials, object_type, tooling, record_id),
            object_type,
            response_status_raise=False,
            json=body,
        )
        if not response.is_success:
            return self._failed_save(response, object_type)
        # 204 No Content on success
        return SaveResult(success=True, id=record_id)

    def delete_record(
        self,
        credentials: Credentials,
        object_type: str,
        record_id: str,
        tooling: bool = False,
    ) -> bool:
        response = self._send(
            credentials,
            "DELETE",
            self._sobject_url(credentials, object_type, tooling, record_id),
            object_type,
            response_status_raise=False,
        )
        if not response.is_success:
            self._failed_save(response, object_type)
            return False
        return True

    @staticmethod
    def _failed_save(response: Response, object_type: str) -> SaveResult:
        error = SalesforceError.from_response(response, object_type)
        LOGGER.warning(
            "%s %s failed with status %d: %s",
            response.request.method,
            object_type,
            response.status_code,
            error.error_codes or response.reason_phrase,
        )
        return SaveResult(success=False, errors=error.errors or [response.text])


__all__ = ["CredentialsAuth", "SalesforceClient"]
