import re

_UNSAFE_RUN = re.compile(r"[^A-Za-z0-9]+")


def sanitize_identifier(raw: str) -> str:
    """
    Turn arbitrary header text into a safe column identifier.

    Runs of characters outside ``[A-Za-z0-9]`` (including ``-``, spaces and ``/``)
    collapse into a single underscore, the result is lower-cased and prefixed
    with one underscore so it can never clash with an SQL keyword.

    Examples:
        >>> sanitize_identifier("Unit Price (EUR)")
        '_unit_price_eur_'
        >>> sanitize_identifier("")
        '_'
    """
    name = _UNSAFE_RUN.sub("_", raw.strip()).lower()
    # A leading underscore is the prefix itself, so sanitizing twice is a no-op.
    return "_" + name.lstrip("_")
