# src/api/params.py
# Request parameter binding for the probe endpoints
# Values come from the query string, or from a form body on POST.
# A missing or blank parameter takes its default.

import re

from flask import request

# Optional sign followed by ASCII digits; int() alone also takes "1_000" and
# non-ASCII digits
INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")

# Spellings accepted for boolean parameters (compared lowercase)
TRUE_VALUES = {"true", "1", "yes", "on"}
FALSE_VALUES = {"false", "0", "no", "off"}


class InvalidParameterError(ValueError):
    """A request parameter could not be converted to the expected type."""


def _raw(name):
    value = request.values.get(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def int_param(name, default):
    """
    Read an integer parameter.

    Any integer binds, negative ones included; what a negative number of
    seconds means is up to the probe.

    Args:
        name: parameter name, e.g. "holdSec"
        default: value used when the parameter is absent or blank

    Raises:
        InvalidParameterError: not a plain decimal integer
    """
    raw = _raw(name)
    if raw is None:
        return default

    if not INTEGER_PATTERN.fullmatch(raw):
        raise InvalidParameterError(f"{name} must be an integer, got {raw!r}")
    return int(raw)


def bool_param(name, default):
    """
    Read a boolean parameter (true/false, 1/0, yes/no, on/off).

    Raises:
        InvalidParameterError: unrecognized value
    """
    raw = _raw(name)
    if raw is None:
        return default

    lowered = raw.lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise InvalidParameterError(f"{name} must be a boolean, got {raw!r}")
