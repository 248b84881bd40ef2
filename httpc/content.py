"""Content-Type parsing and charset negotiation."""

import codecs


def parse_content_type(value: str | None) -> tuple[str | None, dict[str, str]]:
    """Split a Content-Type header into its media type and parameters.

    >>> parse_content_type('text/html; charset="ISO-8859-1"')
    ('text/html', {'charset': 'ISO-8859-1'})
    """
    if not value:
        return None, {}
    media_type, *parts = value.split(";")
    params: dict[str, str] = {}
    for part in parts:
        key, sep, val = part.partition("=")
        if not sep:
            continue
        params[key.strip().lower()] = val.strip().strip('"')
    return media_type.strip().lower() or None, params


def get_charset(content_type: str | None, default: str) -> str:
    """Return the charset named by ``content_type``, or ``default``.

    Unknown charset names, and codecs that are not text encodings
    (``base64``, ``hex``, ``rot13``...), fall back to ``default``.
    """
    _, params = parse_content_type(content_type)
    charset = params.get("charset")
    if not charset:
        return default
    try:
        info = codecs.lookup(charset)
    except LookupError:
        return default
    if not getattr(info, "_is_text_encoding", True):
        return default
    return charset
