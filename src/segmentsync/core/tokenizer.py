"""Template tokenizer: split segment templates into literal and variable runs.

This is the only place that knows the placeholder syntax.  The renderer,
split-offset computation and the value extractor all work on its tokens.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Union

from segmentsync.core.models import Token, TokenKind


_PLACEHOLDER = re.compile(r"\{\{\s*([^}\s]+)\s*\}\}")


def tokenize(template: str) -> List[Token]:
    """Tokenize *template* into literal and ``{{name}}`` tokens.

    Unterminated or otherwise malformed braces are left as literal text.
    """
    src = str(template or "")
    tokens: List[Token] = []
    last = 0
    for m in _PLACEHOLDER.finditer(src):
        if m.start() > last:
            tokens.append(Token(TokenKind.LITERAL, last, m.start(), text=src[last:m.start()]))
        tokens.append(Token(TokenKind.VARIABLE, m.start(), m.end(), name=m.group(1)))
        last = m.end()
    if last < len(src):
        tokens.append(Token(TokenKind.LITERAL, last, len(src), text=src[last:]))
    return tokens


def variable_names_in(template: str) -> List[str]:
    """Placeholder names of a single template, duplicates removed."""
    return list(dict.fromkeys(t.name for t in tokenize(template) if t.is_variable))


def extract_variable_names(source: Union[str, Iterable[str]]) -> List[str]:
    """Unique placeholder names in a text or a list of lines.

    Names are returned in order of first appearance.
    """
    texts = [source] if isinstance(source, str) else list(source or [])
    names: List[str] = []
    for text in texts:
        names.extend(variable_names_in(str(text or "")))
    return list(dict.fromkeys(names))
