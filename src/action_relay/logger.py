import logging

pkg_root = logging.getLogger("action_relay")
pkg_root.addHandler(logging.NullHandler())


def getLogger(name: str | None) -> logging.Logger:
    """Child of the package logger. Accepts ``__name__`` or a short name."""
    if not name or name == pkg_root.name:
        return pkg_root
    if name.startswith(pkg_root.name + "."):
        name = name[len(pkg_root.name) + 1 :]
    return pkg_root.getChild(name)
