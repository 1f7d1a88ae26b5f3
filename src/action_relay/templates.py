"""Apex source generated for webhooks.

One shared class, ``ActionRelayWebhook``, performs the HTTP callout. Each
webhook is a trigger named ``ActionRelayTrigger<name>`` that serializes the
changed records and hands them to the class.

The trigger source must begin ``trigger <name> on <entity> (`` separated by
single spaces: the target entity of an existing webhook is read back as the
fourth space-delimited token of the trigger body.
"""

import re
from collections.abc import Iterable

from .exceptions import ValidationError

WEBHOOK_CLASS_NAME = "ActionRelayWebhook"
TRIGGER_NAME_PREFIX = "ActionRelayTrigger"

TRIGGER_EVENTS = frozenset(
    {
        "before insert",
        "before update",
        "before delete",
        "after insert",
        "after update",
        "after delete",
        "after undelete",
    }
)

_APEX_IDENTIFIER = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")


def apex_string(value: str) -> str:
    """Quote ``value`` as an Apex string literal."""
    escaped = (
        value.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f"'{escaped}'"


def check_identifier(field: str, value: str | None) -> str:
    if not value or not value.strip():
        raise ValidationError(field, "is required")
    if not _APEX_IDENTIFIER.match(value):
        raise ValidationError(field, f"{value!r} is not a valid Apex identifier")
    return value


def check_events(events: Iterable[str]) -> tuple[str, ...]:
    normalized = tuple(" ".join(event.lower().split()) for event in events)
    if not normalized:
        raise ValidationError("events", "at least one trigger event is required")
    unknown = [event for event in normalized if event not in TRIGGER_EVENTS]
    if unknown:
        raise ValidationError("events", f"unknown trigger events: {', '.join(unknown)}")
    return tuple(dict.fromkeys(normalized))


def trigger_name(name: str) -> str:
    return TRIGGER_NAME_PREFIX + name


def render_webhook_class() -> str:
    return f"""public class {WEBHOOK_CLASS_NAME} {{
    @future(callout=true)
    public static void send(String url, String payload) {{
        if (String.isBlank(url)) {{
            return;
        }}
        HttpRequest request = new HttpRequest();
        request.setEndpoint(url);
        request.setMethod('POST');
        request.setHeader('Content-Type', 'application/json');
        request.setBody(payload);
        HttpResponse response = new Http().send(request);
        if (response.getStatusCode() >= 300) {{
            System.debug(LoggingLevel.WARN, '{WEBHOOK_CLASS_NAME} callout failed: ' + response.getStatus());
        }}
    }}
}}
"""


def render_trigger(
    name: str,
    target_entity: str,
    url: str | None,
    events: Iterable[str],
) -> str:
    name = check_identifier("name", name)
    target_entity = check_identifier("target_entity", target_entity)
    event_list = ", ".join(check_events(events))
    return f"""trigger {trigger_name(name)} on {target_entity} ({event_list}) {{
    Map<String, Object> payload = new Map<String, Object>{{
        'webhook' => {apex_string(name)},
        'sobject' => {apex_string(target_entity)},
        'event' => String.valueOf(Trigger.operationType),
        'records' => Trigger.isDelete ? Trigger.old : Trigger.new
    }};
    {WEBHOOK_CLASS_NAME}.send({apex_string(url or "")}, JSON.serialize(payload));
}}
"""


_TRIGGER_HEADER = re.compile(r"^trigger\s+\S+\s+on\s+\S+\s*\(([^)]*)\)")
_SEND_CALL = re.compile(
    re.escape(WEBHOOK_CLASS_NAME) + r"\.send\(\s*'((?:[^'\\]|\\.)*)'"
)
_APEX_ESCAPE = re.compile(r"\\(.)")
_APEX_UNESCAPED = {"n": "\n", "r": "\r"}


def read_apex_string(literal: str) -> str:
    """Inverse of ``apex_string`` for the text between the quotes."""
    return _APEX_ESCAPE.sub(
        lambda match: _APEX_UNESCAPED.get(match.group(1), match.group(1)), literal
    )


def trigger_events(body: str) -> tuple[str, ...]:
    """Events in the trigger header, or ``()`` when the header has none."""
    match = _TRIGGER_HEADER.match(body)
    if match is None:
        return ()
    events = (" ".join(event.lower().split()) for event in match.group(1).split(","))
    return tuple(event for event in events if event)


def webhook_url(body: str) -> str | None:
    """The URL a generated trigger posts to, if its body still names one."""
    match = _SEND_CALL.search(body)
    if match is None:
        return None
    return read_apex_string(match.group(1)) or None
