"""Small text helpers shared by the spec parser and the source extractor."""

_OPENERS = {"(": ")", "<": ">", "{": "}", "[": "]"}
_CLOSERS = {v: k for k, v in _OPENERS.items()}


def split_top_level(text: str, separators: str = ",") -> list[str]:
    """Split text on separators that are not nested in brackets.

    Args:
        text: Text to split (e.g. a parameter list)
        separators: Characters that separate items at nesting depth 0

    Returns:
        Stripped, non-empty pieces

    Example:
        >>> split_top_level("a: Map<K, V>, b: { x: 1, y: 2 }")
        ['a: Map<K, V>', 'b: { x: 1, y: 2 }']
    """
    pieces: list[str] = []
    depth = 0
    current: list[str] = []
    prev = ""

    for char in text:
        if char in _OPENERS:
            depth += 1
        elif char in _CLOSERS and not (char == ">" and prev == "="):
            depth = max(0, depth - 1)

        if char in separators and depth == 0:
            pieces.append("".join(current))
            current = []
        else:
            current.append(char)
        prev = char

    pieces.append("".join(current))
    return [p.strip() for p in pieces if p.strip()]


def split_name_type(pair: str) -> tuple[str, str]:
    """Split a 'name: type' pair on its first colon."""
    name, _, type_text = pair.partition(":")
    return name.strip(), type_text.strip()


def to_pascal_case(stem: str) -> str:
    """Turn a kebab/snake/camel file stem into PascalCase.

    Example:
        >>> to_pascal_case("industry-partner")
        'IndustryPartner'
        >>> to_pascal_case("industryPartner")
        'IndustryPartner'
    """
    parts = [p for p in stem.replace("-", "_").split("_") if p]
    return "".join(p[0].upper() + p[1:] for p in parts)
