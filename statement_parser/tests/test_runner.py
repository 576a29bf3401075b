"""
End-to-end tests of the header/collect scan over synthetic statements.
"""
import pytest

from ..core import runner
from ..core.detectors import PatternRegistry
from ..core.errors import (
    NO_TRANSACTIONS_MESSAGE,
    NoValidRows,
    StatementParseError,
    StructureNotFound,
    UnknownPattern,
)
from ..core.runner import ScanStats, StatementParser, parse_tokens, scan_rows
from ..models.schema import StatementData
from .factories import (
    activobank_header,
    activobank_row,
    carried_forward_row,
    signed_header,
    signed_row,
    token,
)


class TestScenarios:
    """Statement shapes the parser must handle."""

    def test_header_and_three_rows(self, single_page_tokens):
        transactions = parse_tokens(single_page_tokens, "activobank")

        assert [t.date for t in transactions] == ["11.03", "12.03", "14.03"]
        assert transactions[0].description == "COMPRA CONTINENTE"
        assert transactions[0].debit == "25.40"
        assert transactions[1].credit == "500.00"
        assert transactions[2].balance == "1,674.56"

    def test_non_numeric_balance_drops_row(self):
        tokens = (
            activobank_header(100)
            + activobank_row(120, "11.03", "COMPRA", debit="25.40", balance="1,234.56")
            + activobank_row(140, "12.03", "TRANSFERENCIA", credit="500.00", balance="EUR")
            + activobank_row(160, "14.03", "LEVANTAMENTO", debit="60.00", balance="1,174.56")
        )
        transactions = parse_tokens(tokens, "activobank")
        assert [t.date for t in transactions] == ["11.03", "14.03"]

    def test_two_pages_recalibrate(self):
        page_one = (
            activobank_header(100)
            + activobank_row(120, "11.03", "COMPRA", debit="25.40", balance="1,234.56")
            + activobank_row(140, "12.03", "TRANSFERENCIA", credit="500.00", balance="1,734.56")
            + carried_forward_row(700, "1,734.56")
        )
        # page two prints its table 20 units further right
        page_two = [
            token(t.text, t.x + 20, t.y, page=2, width=t.width) for t in activobank_header(60)
        ] + [
            token(t.text, t.x + 20, t.y, page=2, width=t.width)
            for t in activobank_row(80, "15.03", "PAGAMENTO SERVICOS", debit="34.00", balance="1,700.56")
        ]

        stats = ScanStats()
        layout = PatternRegistry().get_pattern("activobank")
        transactions = scan_rows(layout, page_one + page_two, stats)

        assert [t.date for t in transactions] == ["11.03", "12.03", "15.03"]
        assert transactions[2].description == "PAGAMENTO SERVICOS"
        assert transactions[2].debit == "34.00"
        assert stats.headers_found == 2
        assert stats.blocks_closed == 1

    def test_rows_after_end_of_block_wait_for_header(self):
        tokens = (
            activobank_header(100)
            + activobank_row(120, "11.03", "COMPRA", debit="25.40", balance="1,234.56")
            + carried_forward_row(140)
            + activobank_row(160, "12.03", "ORFA", debit="1.00", balance="1,233.56")
        )
        transactions = parse_tokens(tokens, "activobank")
        assert [t.description for t in transactions] == ["COMPRA"]

    def test_no_header_fails_with_structure_not_found(self):
        tokens = activobank_row(120, "11.03", "COMPRA", debit="25.40", balance="1,234.56")
        with pytest.raises(StructureNotFound):
            parse_tokens(tokens, "activobank")

    def test_partial_header_is_not_a_header(self):
        header = [t for t in activobank_header(100) if t.text != "Credito"]
        tokens = header + activobank_row(120, "11.03", "COMPRA", debit="25.40", balance="1,234.56")
        with pytest.raises(StructureNotFound):
            parse_tokens(tokens, "activobank")

    def test_bad_date_drops_row(self):
        tokens = (
            activobank_header(100)
            + activobank_row(120, "DE", "PRODUTO", debit="25.40", balance="1,234.56")
            + activobank_row(140, "12.03", "TRANSFERENCIA", credit="500.00", balance="1,734.56")
        )
        transactions = parse_tokens(tokens, "activobank")
        assert [t.date for t in transactions] == ["12.03"]

    def test_only_row_with_bad_date_fails_with_no_valid_rows(self):
        tokens = activobank_header(100) + activobank_row(120, "DE", "PRODUTO", debit="25.40", balance="1,234.56")
        with pytest.raises(NoValidRows):
            parse_tokens(tokens, "activobank")

    def test_signed_amount_statement(self):
        tokens = (
            signed_header(80)
            + signed_row(100, "05.03.2024", "PAGAMENTO SERVICOS", "-1.234,56", "2.500,00")
            + signed_row(120, "06.03.2024", "ORDENADO", "3.000,00", "5.500,00")
        )
        transactions = parse_tokens(tokens, "signed_amount")

        assert [t.value for t in transactions] == ["-1.234,56", "3.000,00"]
        assert all(t.debit == "" and t.credit == "" for t in transactions)

    def test_unaccented_signed_header(self):
        tokens = (
            signed_header(80, description="Descricao")
            + signed_row(100, "05.03.2024", "PAGAMENTO SERVICOS", "-1.234,56", "2.500,00")
        )
        transactions = parse_tokens(tokens, "signed_amount")

        assert len(transactions) == 1
        assert transactions[0].description == "PAGAMENTO SERVICOS"
        assert transactions[0].value == "-1.234,56"


class TestProperties:
    """Behaviour that holds for any input."""

    def test_parsing_is_deterministic(self, single_page_tokens):
        first = parse_tokens(single_page_tokens, "activobank")
        second = parse_tokens(single_page_tokens, "activobank")
        assert first == second

    def test_input_order_does_not_matter(self, single_page_tokens):
        forward = parse_tokens(single_page_tokens, "activobank")
        backward = parse_tokens(list(reversed(single_page_tokens)), "activobank")
        assert forward == backward

    def test_page_furniture_is_ignored(self, single_page_tokens):
        tokens = single_page_tokens + [token("1", 10, 120), token("REF", 10, 140)]
        transactions = parse_tokens(tokens, "activobank")
        assert len(transactions) == 3
        assert all("REF" not in t.description for t in transactions)


class TestErrors:
    """Failures share one message and keep their kind."""

    def test_unknown_pattern(self, single_page_tokens):
        with pytest.raises(UnknownPattern) as exc_info:
            parse_tokens(single_page_tokens, "nobank")
        assert exc_info.value.kind == "unknown_pattern"
        assert "nobank" in exc_info.value.detail

    def test_failures_look_the_same_to_callers(self):
        errors = [StructureNotFound("a"), NoValidRows("b"), UnknownPattern("c")]
        for error in errors:
            assert isinstance(error, StatementParseError)
            assert isinstance(error, ValueError)
            assert str(error) == NO_TRANSACTIONS_MESSAGE
        assert len({error.kind for error in errors}) == 3


class TestStatementParser:
    """Parser object wrapping the token source."""

    def test_parse_tokens_returns_statement_data(self, single_page_tokens):
        result = StatementParser("activobank").parse_tokens(single_page_tokens)

        assert isinstance(result, StatementData)
        assert result.pattern_id == "activobank"
        assert result.bank == "ActivoBank"
        assert len(result.transactions) == 3

    def test_unknown_pattern_on_construction(self):
        with pytest.raises(UnknownPattern):
            StatementParser("nobank")

    def test_pdf_without_table_pages(self, monkeypatch, tmp_path):
        monkeypatch.setattr(runner, "load_tokens", lambda pdf_path, window: [])
        with pytest.raises(StructureNotFound):
            StatementParser("activobank").parse(tmp_path / "statement.pdf")

    def test_parse_uses_pattern_page_window(self, monkeypatch, tmp_path, single_page_tokens):
        seen = {}

        def fake_load_tokens(pdf_path, window):
            seen["window"] = window
            return single_page_tokens

        monkeypatch.setattr(runner, "load_tokens", fake_load_tokens)
        result = runner.parse_statement(tmp_path / "statement.pdf", "activobank")

        assert len(result.transactions) == 3
        assert "saldo final" in seen["window"].stop_regex
