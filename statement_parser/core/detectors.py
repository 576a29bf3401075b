"""
Bank pattern registry and detection.
"""
import yaml
from pathlib import Path
from typing import Dict, List, Optional, Sequence
import logging

from pydantic import ValidationError

from ..models.schema import PatternConfig, Token
from .errors import UnknownPattern
from .layouts import LAYOUTS, BankLayout
from .loader import PDFLoader
from .tables import cluster_rows, iter_rows

logger = logging.getLogger(__name__)


class PatternRegistry:
    """Loads pattern templates and binds them to their layout implementation."""

    def __init__(self, templates_dir: Path = None):
        self.templates_dir = templates_dir or Path(__file__).parent.parent / "templates"
        self.patterns: Dict[str, BankLayout] = {}
        self._load_templates()

    def _load_templates(self):
        """Load all available pattern templates."""
        if not self.templates_dir.exists():
            logger.warning(f"Templates directory not found: {self.templates_dir}")
            return

        for yaml_file in sorted(self.templates_dir.glob("*.yaml")):
            try:
                with open(yaml_file, 'r', encoding='utf-8') as f:
                    config = PatternConfig.model_validate(yaml.safe_load(f))
            except (OSError, yaml.YAMLError, ValidationError) as e:
                logger.error(f"Error loading pattern {yaml_file}: {e}")
                continue

            layout_cls = LAYOUTS.get(config.layout)
            if layout_cls is None:
                logger.error(f"Pattern {config.pattern_id} names unknown layout: {config.layout}")
                continue

            self.patterns[config.pattern_id] = layout_cls(config)
            logger.debug(f"Loaded pattern: {config.pattern_id}")

    def get_pattern(self, pattern_id: str) -> BankLayout:
        """Get a pattern by ID, raising UnknownPattern when none is registered."""
        layout = self.patterns.get(pattern_id)
        if layout is None:
            raise UnknownPattern(f"Unknown pattern: {pattern_id}")
        return layout

    def list_patterns(self) -> List[str]:
        """List all available pattern IDs."""
        return list(self.patterns.keys())

    def match_tokens(self, tokens: Sequence[Token]) -> Optional[str]:
        """
        Find the first pattern whose header appears in the tokens.

        Args:
            tokens: Tokens from the whole document

        Returns:
            Pattern ID if a header row matched, None otherwise
        """
        for pattern_id, layout in self.patterns.items():
            config = layout.config
            rows = cluster_rows(tokens, config.row_tolerance,
                                config.margin_to_ignore, config.page_offset)
            for _, row in iter_rows(rows):
                if layout.is_header(row):
                    logger.info(f"Tokens match pattern: {pattern_id}")
                    return pattern_id

        logger.warning("No matching pattern found")
        return None

    def detect_pattern(self, pdf_path: Path) -> Optional[str]:
        """
        Detect which pattern matches the PDF.

        Args:
            pdf_path: Path to PDF file

        Returns:
            Pattern ID if found, None otherwise
        """
        loader = PDFLoader(pdf_path)
        try:
            pages = loader.load()
            if not pages:
                logger.error("No pages found in PDF")
                return None
            tokens = [token for page in pages for token in page.tokens]
            return self.match_tokens(tokens)
        finally:
            loader.close()


def get_pattern(pattern_id: str) -> BankLayout:
    """
    Convenience function to look up a registered pattern.

    Raises:
        UnknownPattern: when no template declares ``pattern_id``
    """
    return PatternRegistry().get_pattern(pattern_id)


def list_patterns() -> List[str]:
    return PatternRegistry().list_patterns()


def detect_pattern(pdf_path: Path) -> Optional[str]:
    """
    Convenience function to detect the pattern for a PDF.

    Args:
        pdf_path: Path to PDF file

    Returns:
        Pattern ID if found, None otherwise
    """
    return PatternRegistry().detect_pattern(pdf_path)
