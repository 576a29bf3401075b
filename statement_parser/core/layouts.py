"""
Per-bank table layouts: header calibration, row extraction and end-of-block rules.
"""
from abc import ABC, abstractmethod
import math
from typing import Dict, List, Optional, Sequence, Tuple, Type
import logging

from ..models.schema import ColumnBand, ColumnLayout, PatternConfig, Token
from .normalize import TRANSACTION_FIELDS, first_date, is_numeric_token, rejection_reason
from .tables import find_label, is_header_row

logger = logging.getLogger(__name__)


class BankLayout(ABC):
    """Behaviour shared by every bank pattern; subclasses supply calibration."""

    amount_fields: Tuple[str, ...] = ()
    signed_amounts = False

    def __init__(self, config: PatternConfig):
        self.config = config

    @property
    def pattern_id(self) -> str:
        return self.config.pattern_id

    @property
    def numeric_fields(self) -> Tuple[str, ...]:
        return self.amount_fields + ('balance',)

    def is_header(self, tokens: Sequence[Token]) -> bool:
        return is_header_row(tokens, self.config.header_keywords)

    @abstractmethod
    def calibrate(self, header: Sequence[Token]) -> ColumnLayout:
        """Build the column layout from a header row sorted by x."""

    def extract_row(self, tokens: Sequence[Token], layout: ColumnLayout) -> Dict[str, str]:
        """
        Assign a row's tokens to fields by band.

        Text fields are space-joined. Numeric fields keep only numeric-shaped
        tokens, concatenated as printed. Tokens outside every band are dropped.
        """
        fields = {name: '' for name in TRANSACTION_FIELDS}

        for token in tokens:
            name = layout.field_for(token.x)
            if name is None:
                continue
            if name in self.numeric_fields:
                if is_numeric_token(token.text, signed=self.signed_amounts):
                    fields[name] += token.text
            elif fields[name]:
                fields[name] += ' ' + token.text
            else:
                fields[name] = token.text

        fields['date'] = self.date_of(fields['date'])
        return fields

    def date_of(self, raw: str) -> str:
        return raw.strip()

    def is_end_of_block(self, fields: Dict[str, str]) -> bool:
        description = fields.get('description', '')
        return any(marker in description for marker in self.config.end_of_block_markers)

    def check_row(self, fields: Dict[str, str]) -> Optional[str]:
        """Reason to drop an extracted row, or None when it is a transaction."""
        return rejection_reason(fields, self.config, self.amount_fields, self.signed_amounts)


class ActivoBankLayout(BankLayout):
    """
    ActivoBank (Portugal) current account statements.

    Header: ``Data Lanc. | Data Valor | Descritivo | Debito | Credito | Saldo``.
    Amounts are right-aligned, so each numeric band runs from the right edge of
    the previous label to the right edge of its own. The two dates share one band
    and the posting date is kept.
    """

    amount_fields = ('debit', 'credit')

    def calibrate(self, header: Sequence[Token]) -> ColumnLayout:
        config = self.config
        debit_width = config.calibration.get('debit_width', 55)

        date_start = config.default_band('date').start
        date_end = config.default_band('date').end
        debit_start = config.default_band('debit').start
        debit_end = config.default_band('debit').end
        credit_end = config.default_band('credit').end
        balance_end = config.default_band('balance').end

        index, lanc = find_label(header, 'lanc.')
        if lanc is not None:
            date_start = math.floor(lanc.x)
            date_end = lanc.right
            # "Data" printed as its own word ahead of "Lanc."
            if index > 0 and header[index - 1].text.lower().strip() == 'data':
                date_start = math.floor(header[index - 1].x)

        _, valor = find_label(header, 'valor')
        if valor is not None:
            date_end = valor.right

        _, debito = find_label(header, 'debito')
        if debito is not None:
            debit_end = debito.right
            debit_start = math.floor(debit_end - debit_width)

        _, credito = find_label(header, 'credito')
        if credito is not None:
            credit_end = credito.right

        _, saldo = find_label(header, 'saldo')
        if saldo is not None:
            balance_end = saldo.right

        edges = _monotonic([date_start, date_end, debit_start, debit_end, credit_end, balance_end])
        names = ['date', 'description', 'debit', 'credit', 'balance']
        bands = {
            name: ColumnBand(start=edges[i], end=edges[i + 1])
            for i, name in enumerate(names)
        }
        logger.debug(f"ActivoBank layout calibrated: {_describe(bands)}")
        return ColumnLayout(bands=bands)

    def date_of(self, raw: str) -> str:
        return first_date(raw)


class SignedAmountLayout(BankLayout):
    """
    Generic layout with one signed amount column.

    Column labels come from the ``column_labels`` mapping of the pattern.
    Each band starts at its label and ends where the next label starts; the last
    band ends at its label's right edge plus ``tail``.
    """

    amount_fields = ('value',)
    signed_amounts = True

    def calibrate(self, header: Sequence[Token]) -> ColumnLayout:
        config = self.config
        tail = config.calibration.get('tail', 0)

        found: List[Tuple[str, Token]] = []
        missing: List[str] = []
        for field, label in config.column_labels.items():
            _, token = find_label(header, label)
            if token is None:
                missing.append(field)
            else:
                found.append((field, token))
        found.sort(key=lambda item: item[1].x)

        bands: Dict[str, ColumnBand] = {}
        for i, (field, token) in enumerate(found):
            start = math.floor(token.x)
            if i + 1 < len(found):
                end = math.floor(found[i + 1][1].x)
            else:
                end = token.right + tail
            bands[field] = ColumnBand(start=start, end=max(start, end))

        for field in missing:
            default = config.default_band(field)
            if default.empty or any(default.overlaps(band) for band in bands.values()):
                logger.debug(f"No usable band for column '{field}'")
                continue
            bands[field] = default

        logger.debug(f"Signed-amount layout calibrated: {_describe(bands)}")
        return ColumnLayout(bands=bands)


def _monotonic(edges: List[float]) -> List[float]:
    """Clamp edges so each is at least the previous one."""
    result = [edges[0]]
    for edge in edges[1:]:
        result.append(max(edge, result[-1]))
    return result


def _describe(bands: Dict[str, ColumnBand]) -> str:
    return ', '.join(f"{name}=[{band.start:.1f}, {band.end:.1f})" for name, band in bands.items())


LAYOUTS: Dict[str, Type[BankLayout]] = {
    'activobank': ActivoBankLayout,
    'signed_amount': SignedAmountLayout,
}
