"""
Row clustering and header detection over positioned tokens.
"""
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple
import logging

from ..models.schema import Token

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 4
DEFAULT_PAGE_OFFSET = 1000


def page_y(token: Token, page_offset: float = DEFAULT_PAGE_OFFSET) -> float:
    """Vertical position with pages stacked so rows never span two pages."""
    return token.y + (token.page - 1) * page_offset


def cluster_rows(tokens: Iterable[Token], tolerance: float = DEFAULT_TOLERANCE,
                 margin_to_ignore: float = 0,
                 page_offset: float = DEFAULT_PAGE_OFFSET) -> Dict[float, List[Token]]:
    """
    Group tokens into table rows by vertical proximity.

    A token joins the first existing row (in creation order) whose key lies within
    ``tolerance`` of the token's y. Keys are fixed at the y of the token that
    created the row and never move towards later members.

    Args:
        tokens: Tokens from every page of interest
        tolerance: Maximum vertical distance to a row key
        margin_to_ignore: Tokens with x below this are page furniture
        page_offset: Vertical shift applied per page

    Returns:
        Mapping from row key to the row's tokens
    """
    rows: Dict[float, List[Token]] = {}

    for token in tokens:
        if token.x < margin_to_ignore:
            continue

        y = page_y(token, page_offset)
        found_key = None
        for key in rows:
            if abs(key - y) <= tolerance:
                found_key = key
                break

        if found_key is None:
            rows[y] = [token]
        else:
            rows[found_key].append(token)

    logger.debug(f"Clustered tokens into {len(rows)} rows")
    return rows


def iter_rows(rows: Dict[float, List[Token]]) -> Iterator[Tuple[float, List[Token]]]:
    """Yield rows top-to-bottom, page by page, each sorted left-to-right."""
    for key in sorted(rows):
        yield key, sorted(rows[key], key=lambda t: t.x)


def row_text(tokens: Sequence[Token]) -> str:
    """Lowercased, space-joined text of a row."""
    return ' '.join(token.text.lower() for token in tokens)


def is_header_row(tokens: Sequence[Token], keywords: Sequence[str]) -> bool:
    """True only when every keyword occurs in the row text."""
    if not keywords:
        return False
    text = row_text(tokens)
    return all(keyword.lower() in text for keyword in keywords)


def find_label(tokens: Sequence[Token], label: str) -> Tuple[int, Optional[Token]]:
    """
    Locate a header label within a row.

    A token matches when its lowercased text equals the label or ends with it
    as a separate word, so both ``Lanc.`` and ``Data Lanc.`` locate ``lanc.``.
    Alternative spellings are separated by ``|``, e.g. ``descrição|descricao``.

    Returns:
        (index, token) of the first match, or (-1, None)
    """
    alternatives = [alt.strip() for alt in label.lower().split('|') if alt.strip()]
    for index, token in enumerate(tokens):
        text = token.text.lower().strip()
        if any(text == alt or text.endswith(' ' + alt) for alt in alternatives):
            return index, token
    return -1, None
