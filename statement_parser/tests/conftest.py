import pytest

from ..core.detectors import PatternRegistry
from .factories import activobank_header, activobank_row


@pytest.fixture(scope="session")
def registry():
    """Registry over the bundled pattern templates."""
    return PatternRegistry()


@pytest.fixture
def activobank(registry):
    return registry.get_pattern("activobank")


@pytest.fixture
def signed(registry):
    return registry.get_pattern("signed_amount")


@pytest.fixture
def single_page_tokens():
    """Header plus three well-formed rows on one page."""
    return (
        activobank_header(100)
        + activobank_row(120, "11.03", "COMPRA CONTINENTE", debit="25.40", balance="1,234.56")
        + activobank_row(140, "12.03", "TRANSFERENCIA", credit="500.00", balance="1,734.56")
        + activobank_row(160, "14.03", "LEVANTAMENTO", debit="60.00", balance="1,674.56")
    )
