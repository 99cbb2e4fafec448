import re
import unicodedata

_UNSAFE_RE = re.compile(r"[^\w\s-]")
_SEPARATOR_RE = re.compile(r"[-\s_]+")


def slugify(text: str) -> str:
    """
    Turn a title into a URL-safe slug:
    - fold accents to ASCII and lowercase
    - drop punctuation
    - collapse whitespace/underscores/dashes into single '-'
    """
    text = unicodedata.normalize("NFKD", text or "").encode("ascii", "ignore").decode("ascii")
    text = _UNSAFE_RE.sub("", text.lower())
    text = _SEPARATOR_RE.sub("-", text)
    return text.strip("-")
