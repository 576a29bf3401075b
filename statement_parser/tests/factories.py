"""
Synthetic token builders shaped like the statements the bundled patterns read.
"""
from typing import List

from ..models.schema import Token


def token(text: str, x: float, y: float, page: int = 1, width: float = None) -> Token:
    if width is None:
        width = 5.0 * len(text)
    return Token(text=text, x=x, y=y, width=width, height=8.0, page=page)


def words(text: str, x: float, y: float, page: int = 1) -> List[Token]:
    """Lay out space-separated words left to right starting at ``x``."""
    tokens = []
    for word in text.split():
        tokens.append(token(word, x, y, page))
        x += 5.0 * len(word) + 4
    return tokens


# ActivoBank header geometry; calibrates to
# date [60, 156) description [156, 355) debit [355, 410) credit [410, 502) balance [502, 585)
ACTIVOBANK_HEADER = [
    ("Data", 60, 20),
    ("Lanc.", 82, 22),
    ("Data", 110, 20),
    ("Valor", 132, 24),
    ("Descritivo", 170, 45),
    ("Debito", 380, 30),
    ("Credito", 470, 32),
    ("Saldo", 560, 25),
]


def activobank_header(y: float, page: int = 1) -> List[Token]:
    return [token(text, x, y, page, width) for text, x, width in ACTIVOBANK_HEADER]


def activobank_row(y: float, date: str, description: str, debit: str = "", credit: str = "",
                   balance: str = "", page: int = 1) -> List[Token]:
    tokens = [token(date, 62, y, page), token(date, 112, y, page)]
    tokens.extend(words(description, 170, y, page))
    if debit:
        tokens.append(token(debit, 370, y, page))
    if credit:
        tokens.append(token(credit, 450, y, page))
    if balance:
        tokens.append(token(balance, 530, y, page))
    return tokens


def carried_forward_row(y: float, balance: str = "1,000.00", page: int = 1) -> List[Token]:
    return words("A TRANSPORTAR", 170, y, page) + [token(balance, 530, y, page)]


# Signed-amount header geometry; calibrates to
# date [30, 90) description [90, 400) value [400, 490) balance [490, 545)
SIGNED_HEADER = [
    ("Data", 30, 20),
    ("Descrição", 90, 45),
    ("Montante", 400, 40),
    ("Saldo", 490, 25),
]


def signed_header(y: float, page: int = 1, description: str = "Descrição") -> List[Token]:
    """Signed-amount header; ``description`` swaps the printed label."""
    labels = [(description if text == "Descrição" else text, x, width) for text, x, width in SIGNED_HEADER]
    return [token(text, x, y, page, width) for text, x, width in labels]


def signed_row(y: float, date: str, description: str, value: str, balance: str,
               page: int = 1) -> List[Token]:
    tokens = [token(date, 32, y, page)]
    tokens.extend(words(description, 92, y, page))
    tokens.append(token(value, 405, y, page))
    tokens.append(token(balance, 495, y, page))
    return tokens
