"""
camelCase aliases for token keys.

`main-title` becomes `mainTitle`, `HTMLParser` becomes `htmlParser` and
`foo2bar` becomes `foo2Bar`, so that class names written in kebab or snake
case are reachable as Python identifiers.
"""

import re
from typing import Final

from cssmodules.models.dataModel import TokenMapping

WORDS_RE: Final[re.Pattern[str]] = re.compile(
    r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|[0-9]+"
)


def camelize(key: str) -> str:
    words: list[str] = WORDS_RE.findall(key)
    if not words:
        return key
    return words[0].lower() + "".join(word.capitalize() for word in words[1:])


def camelCase_augment(tokens: TokenMapping) -> TokenMapping:
    """Return a new mapping holding camelCased duplicates of every key.

    Original keys take precedence when a camelCased key collides with one.

    Args:
        tokens: Token mapping produced by the pipeline

    Returns:
        TokenMapping: Camel keys and original keys side by side
    """
    augmented: TokenMapping = {camelize(key): value for key, value in tokens.items()}
    augmented.update(tokens)
    return augmented
