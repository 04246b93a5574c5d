"""Entity normalization for markup that is about to be parsed as XML.

XML only knows five named entities. HTML-flavoured markup fed to the XML
parser commonly uses others (``&nbsp;``, ``&copy;``) or bare ampersands.
:func:`replace_entities` rewrites both into forms every XML parser accepts.
libxml2's HTML parser passes unknown references through silently, so
:func:`undefined_entities` finds them before an HTML parse.
"""

import re
from html.entities import name2codepoint
from typing import List

XML_ENTITIES = frozenset({"amp", "lt", "gt", "quot", "apos"})

_ENTITY_RE = re.compile(r"&(#[0-9]+;|#[xX][0-9a-fA-F]+;|[A-Za-z][A-Za-z0-9]*;)?")


def _replace(match: "re.Match[str]") -> str:
    reference = match.group(1)
    if reference is None:
        return "&amp;"
    if reference.startswith("#"):
        return "&" + reference
    name = reference[:-1]
    if name in XML_ENTITIES:
        return "&" + reference
    codepoint = name2codepoint.get(name)
    if codepoint is None:
        return "&amp;" + reference
    return f"&#{codepoint};"


def replace_entities(markup: str) -> str:
    """Convert named HTML entities to numeric references and escape bare ``&``.

    Examples:
        >>> replace_entities("<p>&copy; 2024 &amp; Tom & Jerry</p>")
        '<p>&#169; 2024 &amp; Tom &amp; Jerry</p>'
    """
    return _ENTITY_RE.sub(_replace, markup)


_SKIPPED_RE = re.compile(
    r"<!--.*?-->|<!\[CDATA\[.*?\]\]>|<(script|style)\b[^>]*>.*?</\1\s*>",
    re.DOTALL | re.IGNORECASE,
)
_NAMED_RE = re.compile(r"&([A-Za-z][A-Za-z0-9]*);")


def undefined_entities(markup: str) -> List[str]:
    """Names of entity references that neither XML nor HTML 4 defines.

    Comments, CDATA sections and script or style content are not scanned.

    Examples:
        >>> undefined_entities("<p>&nbsp;&foonator;<!-- &bar; --></p>")
        ['foonator']
    """
    names: List[str] = []
    for name in _NAMED_RE.findall(_SKIPPED_RE.sub("", markup)):
        if name not in XML_ENTITIES and name not in name2codepoint and name not in names:
            names.append(name)
    return names
