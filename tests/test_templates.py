import pytest

from action_relay.exceptions import ValidationError
from action_relay.templates import (
    WEBHOOK_CLASS_NAME,
    apex_string,
    check_events,
    read_apex_string,
    render_trigger,
    render_webhook_class,
    trigger_events,
    trigger_name,
    webhook_url,
)


def test_trigger_header_keeps_entity_as_fourth_token():
    body = render_trigger("Foo", "Contact", "https://example.com/hook", ["after insert"])

    assert body.startswith("trigger ActionRelayTriggerFoo on Contact (after insert) {")
    tokens = body.split(" ")
    assert tokens[1] == trigger_name("Foo")
    assert tokens[3] == "Contact"


def test_trigger_calls_webhook_class():
    body = render_trigger("Foo", "Custom_Object__c", None, ("after insert", "after update"))

    assert "(after insert, after update)" in body
    assert f"{WEBHOOK_CLASS_NAME}.send('', JSON.serialize(payload));" in body
    assert "'sobject' => 'Custom_Object__c'" in body


def test_trigger_url_is_escaped():
    body = render_trigger("Foo", "Contact", "https://example.com/?q='x'", ["after insert"])

    assert "'https://example.com/?q=\\'x\\''" in body


@pytest.mark.parametrize(
    "name,entity,field",
    [
        ("", "Contact", "name"),
        ("Has Space", "Contact", "name"),
        ("1Foo", "Contact", "name"),
        ("Foo", "", "target_entity"),
        ("Foo", "Contact (after delete) {", "target_entity"),
    ],
)
def test_trigger_rejects_bad_identifiers(name, entity, field):
    with pytest.raises(ValidationError) as excinfo:
        render_trigger(name, entity, None, ["after insert"])

    assert excinfo.value.field == field


def test_check_events():
    assert check_events(["After  Insert", "after insert", "before delete"]) == (
        "after insert",
        "before delete",
    )
    with pytest.raises(ValidationError, match="at least one"):
        check_events([])
    with pytest.raises(ValidationError, match="during lunch"):
        check_events(["during lunch"])


def test_webhook_class():
    body = render_webhook_class()

    assert body.startswith(f"public class {WEBHOOK_CLASS_NAME} {{")
    assert "@future(callout=true)" in body
    assert "public static void send(String url, String payload)" in body


def test_apex_string():
    assert apex_string("plain") == "'plain'"
    assert apex_string("it's\n") == "'it\\'s\\n'"
    assert apex_string("back\\slash") == "'back\\\\slash'"


def test_read_apex_string_reverses_escaping():
    for value in ("plain", "it's\n", "back\\slash", "a\r\nb"):
        assert read_apex_string(apex_string(value)[1:-1]) == value


def test_trigger_events():
    body = render_trigger("Foo", "Contact", None, ("after delete", "after  undelete"))

    assert trigger_events(body) == ("after delete", "after undelete")
    assert trigger_events("trigger X on Contact (Before Insert, after update) {}") == (
        "before insert",
        "after update",
    )
    assert trigger_events("not a trigger") == ()


def test_webhook_url():
    body = render_trigger("Foo", "Contact", "https://example.com/h?q='x'", ("after insert",))

    assert webhook_url(body) == "https://example.com/h?q='x'"
    assert webhook_url(render_trigger("Foo", "Contact", None, ("after insert",))) is None
    assert webhook_url("trigger X on Contact (after insert) { }") is None
