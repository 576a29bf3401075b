"""
PDF loading and token extraction using pdfplumber.
"""
import re
import pdfplumber
from pathlib import Path
from typing import List
import logging

from ..models.schema import PageWindow, Token

logger = logging.getLogger(__name__)

LIGATURES = {
    'ﬁ': 'fi',
    'ﬂ': 'fl',
    'ﬀ': 'ff',
    'ﬃ': 'ffi',
    'ﬄ': 'ffl',
    'ﬆ': 'st',
    'ﬅ': 'st'
}


class PageData:
    """Represents a page with extracted tokens and metadata."""
    def __init__(self, page_num: int, width: float, height: float, tokens: List[Token]):
        self.page_num = page_num
        self.width = width
        self.height = height
        self.tokens = tokens

    @property
    def text(self) -> str:
        return ' '.join(token.text for token in self.tokens)

    def __repr__(self):
        return f"PageData(page_num={self.page_num}, tokens={len(self.tokens)})"


class PDFLoader:
    """Handles PDF loading and token extraction."""

    def __init__(self, pdf_path: Path):
        self.pdf_path = pdf_path
        self._pdf = None
        self._pages = []

    def load(self) -> List[PageData]:
        """Load PDF and extract tokens from all pages."""
        if self._pages:
            return self._pages

        try:
            self._pdf = pdfplumber.open(self.pdf_path)
            logger.info(f"Loaded PDF with {len(self._pdf.pages)} pages")

            for i, page in enumerate(self._pdf.pages, 1):
                words_data = page.extract_words(
                    x_tolerance=1,
                    y_tolerance=2,
                    keep_blank_chars=False,
                    use_text_flow=True
                )

                tokens = []
                for word_data in words_data:
                    text = normalize_token_text(word_data.get('text', ''))
                    if not text:
                        continue
                    x0 = word_data.get('x0', 0)
                    top = word_data.get('top', 0)
                    tokens.append(Token(
                        text=text,
                        x=x0,
                        y=top,
                        width=word_data.get('x1', x0) - x0,
                        height=word_data.get('bottom', top) - top,
                        page=i
                    ))

                self._pages.append(PageData(
                    page_num=i,
                    width=page.width,
                    height=page.height,
                    tokens=tokens
                ))
                logger.debug(f"Page {i}: {len(tokens)} tokens extracted")

            return self._pages

        except Exception as e:
            logger.error(f"Error loading PDF: {e}")
            raise

    def close(self):
        """Close the PDF file."""
        if self._pdf:
            self._pdf.close()
            self._pdf = None


def normalize_token_text(text: str) -> str:
    """Replace ligatures and collapse whitespace."""
    for ligature, replacement in LIGATURES.items():
        text = text.replace(ligature, replacement)
    return re.sub(r'\s+', ' ', text).strip()


def select_pages(pages: List[PageData], window: PageWindow) -> List[PageData]:
    """
    Keep the pages that hold the transaction table.

    Collection starts on the first page whose text matches ``start_regex`` and
    ends after the first collected page matching ``stop_regex``.

    Args:
        pages: All pages of the document
        window: Start and stop rules of the pattern

    Returns:
        Pages of interest, in document order
    """
    if not window.start_regex:
        return list(pages)

    start = re.compile(window.start_regex, re.IGNORECASE)
    stop = re.compile(window.stop_regex, re.IGNORECASE) if window.stop_regex else None

    selected = []
    collecting = False
    for page in pages:
        text = page.text
        if not collecting and start.search(text):
            collecting = True
            logger.debug(f"Transaction table starts on page {page.page_num}")

        if collecting:
            selected.append(page)
            if stop and stop.search(text):
                logger.debug(f"Transaction table ends on page {page.page_num}")
                break

    return selected


def load_tokens(pdf_path: Path, window: PageWindow) -> List[Token]:
    """
    Load the tokens of the pages of interest.

    Args:
        pdf_path: Path to PDF file
        window: Page selection rules

    Returns:
        Tokens in page order; empty when no page matched the window
    """
    loader = PDFLoader(pdf_path)
    try:
        pages = select_pages(loader.load(), window)
        return [token for page in pages for token in page.tokens]
    finally:
        loader.close()
