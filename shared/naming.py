"""Name derivation for CouchDB databases."""

import re

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALNUM = re.compile(r"[^A-Za-z0-9]+")


def snake_case(value: str) -> str:
    """``"Geodirect"`` → ``"geodirect"``, ``"MyGeo App"`` → ``"my_geo_app"``."""
    value = _CAMEL_BOUNDARY.sub(r"\1_\2", value)
    return _NON_ALNUM.sub("_", value).strip("_").lower()
