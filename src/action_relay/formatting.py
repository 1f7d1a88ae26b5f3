"""Helpers for building SOQL text safely."""

_SOQL_ESCAPES = {
    "\\": "\\\\",
    "'": "\\'",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
}


def escape_soql_string(value: str) -> str:
    return "".join(_SOQL_ESCAPES.get(char, char) for char in value)


def quote_soql_value(value: str | bool | int | float | None) -> str:
    """Render a Python value as a SOQL literal."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return str(value)
    return "'" + escape_soql_string(value) + "'"


def quote_soql_like_prefix(prefix: str) -> str:
    """A quoted ``LIKE`` pattern matching anything that starts with ``prefix``."""
    escaped = escape_soql_string(prefix).replace("%", "\\%").replace("_", "\\_")
    return "'" + escaped + "%'"
