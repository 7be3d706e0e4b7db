"""Utility helpers for safe record access."""


def read_field(obj, key, default=None):
    """Safely read a field from a book mapping or a ``sqlite3.Row``.

    Args:
        obj: Mapping-like object, ``sqlite3.Row`` or anything supporting
            ``get`` or ``__getitem__``.
        key: Column/key to read.
        default: Value returned when the key is missing or the object is
            ``None``.
    """
    if obj is None:
        return default
    if hasattr(obj, "get"):
        return obj.get(key, default)
    try:
        return obj[key]
    except (KeyError, IndexError, TypeError):
        return default


def first_source_url(book):
    """Return the first non-empty source URL of a book, or ``None``."""
    for source in read_field(book, "sources") or []:
        url = read_field(source, "url") if not isinstance(source, str) else source
        if url and str(url).strip():
            return str(url).strip()
    return None
