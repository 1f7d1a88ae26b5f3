from action_relay.formatting import quote_soql_like_prefix, quote_soql_value


def test_quote_soql_string():
    assert quote_soql_value("hello") == "'hello'"
    assert quote_soql_value("it's") == "'it\\'s'"
    assert quote_soql_value('with "quotes"') == "'with \\\"quotes\\\"'"
    assert quote_soql_value("with \n newline") == "'with \\n newline'"
    assert quote_soql_value("with \t tab") == "'with \\t tab'"
    assert quote_soql_value("with \\ backslash") == "'with \\\\ backslash'"


def test_quote_soql_scalars():
    assert quote_soql_value(True) == "TRUE"
    assert quote_soql_value(False) == "FALSE"
    assert quote_soql_value(None) == "NULL"
    assert quote_soql_value(42) == "42"
    assert quote_soql_value(3.14) == "3.14"


def test_quote_soql_like_prefix():
    assert quote_soql_like_prefix("ActionRelayTrigger") == "'ActionRelayTrigger%'"
    assert quote_soql_like_prefix("50%_off") == "'50\\%\\_off%'"
