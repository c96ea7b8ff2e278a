"""
Text and form encoding shared by the signing, verification and request code.

The platform builds its canonical strings with a form encoder that leaves only
letters, digits and ``-_.`` unescaped and writes spaces as ``+``.
"""

from __future__ import annotations

from typing import Any, Iterable, Tuple
from urllib.parse import quote_plus, urlencode

__all__ = ["form_quote", "form_urlencode", "format_float"]


def format_float(value: float) -> str:
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)


def form_quote(value: str, safe: str = "", encoding: Any = None, errors: Any = None) -> str:
    # quote_plus keeps "~" literal; the platform escapes it.
    return quote_plus(value, safe=safe, encoding=encoding, errors=errors).replace("~", "%7E")


def form_urlencode(pairs: Iterable[Tuple[str, Any]]) -> str:
    return urlencode(list(pairs), quote_via=form_quote)
