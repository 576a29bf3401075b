"""
End-to-end parsing orchestration.

The scan walks rows top-to-bottom in two states. While seeking a header, every
row is tested against the pattern's header keywords; a match calibrates a
column layout and starts collecting. While collecting, each row is extracted
and validated until an end-of-block row discards the layout, after which the
next header must be found again.
"""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional
import logging

from ..models.schema import ColumnLayout, StatementData, Token, Transaction
from .detectors import PatternRegistry
from .errors import NoValidRows, StructureNotFound
from .layouts import BankLayout
from .loader import load_tokens
from .normalize import build_transaction
from .tables import cluster_rows, iter_rows

logger = logging.getLogger(__name__)


class ScanState(str, Enum):
    SEEKING_HEADER = "seeking_header"
    COLLECTING = "collecting"


@dataclass
class ScanStats:
    """Counters kept for one parse, used to explain failures."""
    rows_seen: int = 0
    headers_found: int = 0
    blocks_closed: int = 0
    rows_rejected: int = 0
    transactions: int = 0


def scan_rows(layout: BankLayout, tokens: Iterable[Token], stats: ScanStats = None) -> List[Transaction]:
    """
    Run the header/collect state machine over clustered rows.

    Args:
        layout: Bank pattern driving calibration and extraction
        tokens: Tokens of every page of interest
        stats: Optional counters filled while scanning

    Returns:
        Valid transactions in row order; may be empty
    """
    stats = stats if stats is not None else ScanStats()
    config = layout.config
    rows = cluster_rows(tokens, config.row_tolerance, config.margin_to_ignore, config.page_offset)

    columns: Optional[ColumnLayout] = None
    transactions: List[Transaction] = []

    for key, row in iter_rows(rows):
        stats.rows_seen += 1
        state = ScanState.SEEKING_HEADER if columns is None else ScanState.COLLECTING

        if state is ScanState.SEEKING_HEADER:
            if layout.is_header(row):
                columns = layout.calibrate(row)
                stats.headers_found += 1
                logger.debug(f"Header found at y={key:.1f}")
            continue

        fields = layout.extract_row(row, columns)

        if layout.is_end_of_block(fields):
            columns = None
            stats.blocks_closed += 1
            logger.debug(f"End of block at y={key:.1f}")
            continue

        reason = layout.check_row(fields)
        if reason:
            stats.rows_rejected += 1
            logger.debug(f"Row at y={key:.1f} skipped: {reason}")
            continue

        transactions.append(build_transaction(fields))

    stats.transactions = len(transactions)
    return transactions


def parse_tokens(tokens: Iterable[Token], pattern_id: str,
                 registry: PatternRegistry = None) -> List[Transaction]:
    """
    Parse positioned tokens into transactions.

    Args:
        tokens: Tokens of every page of interest
        pattern_id: Registered bank pattern to use
        registry: Pattern registry; the bundled templates by default

    Returns:
        Non-empty list of transactions in statement order

    Raises:
        UnknownPattern: no pattern registered under ``pattern_id``
        StructureNotFound: no header row anywhere in the tokens
        NoValidRows: a header matched but no row passed validation
    """
    registry = registry or PatternRegistry()
    layout = registry.get_pattern(pattern_id)
    return _parse_with_layout(layout, tokens)


def _parse_with_layout(layout: BankLayout, tokens: Iterable[Token]) -> List[Transaction]:
    stats = ScanStats()
    transactions = scan_rows(layout, tokens, stats)
    logger.debug(f"Scan finished for {layout.pattern_id}: {stats}")

    if not transactions:
        if stats.headers_found == 0:
            raise StructureNotFound(
                f"No row matched header keywords {layout.config.header_keywords}"
            )
        raise NoValidRows(
            f"{stats.headers_found} header(s) found but all {stats.rows_rejected} "
            f"candidate row(s) failed validation"
        )

    logger.info(f"Parsed {len(transactions)} transactions with pattern {layout.pattern_id}")
    return transactions


class StatementParser:
    """Main parser class that ties the token source to the row scan."""

    def __init__(self, pattern_id: str, verbose: bool = False, registry: PatternRegistry = None):
        self.pattern_id = pattern_id
        self.verbose = verbose

        if verbose:
            logging.basicConfig(level=logging.DEBUG)

        self.layout = (registry or PatternRegistry()).get_pattern(pattern_id)

    def parse_tokens(self, tokens: Iterable[Token]) -> StatementData:
        transactions = _parse_with_layout(self.layout, tokens)
        return StatementData(
            pattern_id=self.pattern_id,
            bank=self.layout.config.bank,
            transactions=transactions
        )

    def parse(self, pdf_path: Path) -> StatementData:
        """
        Parse a PDF file into structured data.

        Args:
            pdf_path: Path to PDF file

        Returns:
            StatementData object
        """
        tokens = load_tokens(pdf_path, self.layout.config.pages)
        if not tokens:
            raise StructureNotFound("Transaction table not found in PDF")
        return self.parse_tokens(tokens)


def parse_statement(pdf_path: Path, pattern_id: str, verbose: bool = False) -> StatementData:
    """
    Parse a bank statement PDF.

    Args:
        pdf_path: Path to PDF file
        pattern_id: Bank pattern to use
        verbose: Enable verbose logging

    Returns:
        StatementData object
    """
    parser = StatementParser(pattern_id, verbose)
    return parser.parse(pdf_path)
