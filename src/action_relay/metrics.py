"""
Utility functions and types to assist in parsing API usage metadata
"""

from typing import NamedTuple
import re


class Usage(NamedTuple):
    used: int
    total: int


class PerAppUsage(NamedTuple):
    used: int
    total: int
    name: str


class ApiUsage(NamedTuple):
    api_usage: Usage | None = None
    per_app_api_usage: PerAppUsage | None = None

    @property
    def remaining(self) -> int | None:
        if self.api_usage is None:
            return None
        return self.api_usage.total - self.api_usage.used


_API_USAGE = re.compile(r"(?:^|[^-])api-usage=(?P<used>\d+)/(?P<total>\d+)")
_PER_APP_USAGE = re.compile(
    r"per-app-api-usage=(?P<used>\d+)/(?P<total>\d+)\(appName=(?P<name>[^)]+)\)"
)


def parse_api_usage(sforce_limit_info: str) -> ApiUsage:
    """
    Parse API usage and limits out of the Sforce-Limit-Info header
    Arguments:
    * sforce_limit_info: The value of response header 'Sforce-Limit-Info'
        Example 1: 'api-usage=18/5000'
        Example 2: 'api-usage=25/5000;
            per-app-api-usage=17/250(appName=sample-connected-app)'
    """
    api_usage = None
    per_app_api_usage = None

    if match := _API_USAGE.search(sforce_limit_info):
        api_usage = Usage(used=int(match["used"]), total=int(match["total"]))
    if match := _PER_APP_USAGE.search(sforce_limit_info):
        per_app_api_usage = PerAppUsage(
            used=int(match["used"]), total=int(match["total"]), name=match["name"]
        )
    return ApiUsage(api_usage, per_app_api_usage)
