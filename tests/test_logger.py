from action_relay.logger import getLogger, pkg_root


def test_logger_creation():
    assert getLogger(None) == pkg_root
    assert getLogger("action_relay") == pkg_root

    child_logger = getLogger("test_child")
    assert child_logger.name == f"{pkg_root.name}.test_child"
    assert child_logger.parent == pkg_root


def test_logger_accepts_module_names():
    assert getLogger("action_relay.auth.store") is getLogger("auth.store")
