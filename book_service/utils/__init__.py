"""
Utilities Package

Helpers shared by the catalog schemas and routers.
"""

import re

_ISBN_SEPARATORS = re.compile(r"[\s-]")


def normalize_isbn(isbn: str) -> str:
    """
    Strip hyphens and whitespace from an ISBN.

    "978-0-13-468599-1" and "9780134685991" name the same book, and books
    are stored and looked up by the normalised form.
    """
    return _ISBN_SEPARATORS.sub("", isbn).upper()
