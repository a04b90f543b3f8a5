"""
Declarative layouts for the supported bank statement formats.

Each layout lists its extraction strategies from strictest to loosest; the
statement parser runs them through the shared pipeline and keeps the first
non-empty result. Per-bank quirks live here as data.
"""

from dataclasses import dataclass
from typing import Optional

from ..models.records import StatementFormat
from ..utils.exceptions import ConfigurationError
from .pipeline import (
    AMOUNT,
    CURRENCY,
    DATE,
    DATE_SLASH,
    LOOSE_AMOUNT,
    SHORT_DATE,
    BlockStrategy,
    ExtractionStrategy,
    MultilineStrategy,
    RegexStrategy,
)
from .tabular import ColumnSpec, TabularLayout

# Lines that never continue a wrapped description
STOP_PREFIXES = (
    r"SALDO",
    r"Documento",
    r"FECHA",
    r"Cuenta",
    r"Titular",
    r"Divisa",
    r"Selecci[oó]n",
    r"P[aá]gina",
    r"IBAN",
)


@dataclass(frozen=True)
class StatementLayout:
    """
    Everything needed to extract one statement format.

    Attributes:
        statement_format: Format tag stamped on extracted records
        strategies: Text strategies in priority order
        preprocess: (pattern, replacement) pairs applied before extraction
        deny_patterns: Extra description patterns rejected for this format
        tabular: Column layout for spreadsheet exports, if supported
    """

    statement_format: StatementFormat
    strategies: tuple[ExtractionStrategy, ...] = ()
    preprocess: tuple[tuple[str, str], ...] = ()
    deny_patterns: tuple[str, ...] = ()
    tabular: Optional[TabularLayout] = None

    @property
    def supports_text(self) -> bool:
        return bool(self.strategies)

    @property
    def supports_tabular(self) -> bool:
        return self.tabular is not None


def _two_date_multiline(name: str) -> MultilineStrategy:
    """Wrapped-description fallback for layouts that start with the dates."""
    return MultilineStrategy(
        name,
        start=rf"^(?P<posting>{SHORT_DATE})(?:\s+(?P<value>{SHORT_DATE}))?(?:\s+(?P<description>.*))?$",
        end=(
            rf"^(?:(?P<description>.*?)\s+)?(?P<amount>{AMOUNT})\s*{CURRENCY}?"
            rf"(?:\s+(?P<balance>{AMOUNT})\s*{CURRENCY}?)?$"
        ),
        stop_prefixes=STOP_PREFIXES,
    )


STATEMENT_COLUMNS = (
    ColumnSpec("value", ("fecha valor", "f. valor", "data valor", "value date")),
    ColumnSpec(
        "posting",
        (
            "fecha",
            "fecha operación",
            "fecha contable",
            "f. operación",
            "f. contable",
            "data",
            "date",
            "booking date",
        ),
        required=True,
    ),
    ColumnSpec(
        "description",
        ("movimiento", "concepto", "descripción", "description", "detalle movimiento"),
        required=True,
    ),
    ColumnSpec("extra", ("más datos", "observaciones", "información adicional", "detalle")),
    ColumnSpec("amount", ("importe", "import", "amount", "cantidad"), required=True),
    ColumnSpec("balance", ("saldo", "balance")),
)


BBVA_LAYOUT = StatementLayout(
    statement_format=StatementFormat.BBVA,
    strategies=(
        # 31/12/2025 31/12/2025 CONCEPTO -3.572,32 EUR 21.158,15 EUR
        RegexStrategy(
            "two_dates_eur",
            rf"(?P<posting>{DATE_SLASH})\s+(?P<value>{DATE_SLASH})\s+(?P<description>.*?)\s+"
            rf"(?P<amount>{AMOUNT})\s*EUR(?:\s+(?P<balance>{AMOUNT})\s*EUR)?",
        ),
        RegexStrategy(
            "two_dates_loose",
            rf"(?P<posting>{DATE})\s+(?P<value>{DATE})\s+(?P<description>.+?)\s+"
            rf"(?P<amount>{LOOSE_AMOUNT})\s*{CURRENCY}?(?=\s|$)",
        ),
        _two_date_multiline("multiline"),
    ),
)

CAIXABANK_LAYOUT = StatementLayout(
    statement_format=StatementFormat.CAIXABANK,
    strategies=(
        # 15/01/2025 16/01/2025 PAGO TARJETA -50,00 EUR
        RegexStrategy(
            "two_dates",
            rf"(?P<posting>{DATE})\s+(?P<value>{DATE})\s+(?P<description>.+?)\s+"
            rf"(?P<amount>{AMOUNT})\s*{CURRENCY}?(?:[ \t]+(?P<balance>{AMOUNT})\s*{CURRENCY}?)?",
        ),
        # 15/01/2025 TRANSFERENCIA RECIBIDA -1.234,56 EUR 5.678,90 EUR
        RegexStrategy(
            "single_date",
            rf"(?P<date>{DATE})\s+(?P<description>.+?)\s+(?P<amount>{AMOUNT})\s*{CURRENCY}?"
            rf"(?:[ \t]+(?P<balance>{AMOUNT})\s*{CURRENCY}?)?",
        ),
        _two_date_multiline("multiline"),
    ),
    tabular=TabularLayout(
        columns=STATEMENT_COLUMNS,
        min_cells=4,
        # Fecha | Fecha valor | Movimiento | Más datos | Importe | Saldo
        positional={
            "posting": 0,
            "value": 1,
            "description": 2,
            "extra": 3,
            "amount": 4,
            "balance": 5,
        },
    ),
)

SABADELL_LAYOUT = StatementLayout(
    statement_format=StatementFormat.SABADELL,
    preprocess=(
        (r"FECHA\s+OPER\s+CONCEPTO\s+FECHA\s+VALOR\s+IMPORTE\s+SALDO\s*", "\n"),
    ),
    strategies=(
        # 31/10/2025 GASTOS REMESA 00810148037546 30/10/2025 -73,17 9.250,06
        RegexStrategy(
            "single_line",
            rf"(?P<posting>{DATE_SLASH})[ \t]+(?P<description>.+?)[ \t]+(?P<value>{DATE_SLASH})[ \t]+"
            rf"(?P<amount>{AMOUNT})[ \t]+(?P<balance>{AMOUNT})",
        ),
        MultilineStrategy(
            "multiline",
            start=rf"^(?P<posting>{DATE_SLASH})(?:\s+(?P<description>.*))?$",
            end=(
                rf"^(?:(?P<description>.*?)\s+)?(?P<value>{DATE_SLASH})\s+"
                rf"(?P<amount>{AMOUNT})\s+(?P<balance>{AMOUNT})$"
            ),
            stop_prefixes=STOP_PREFIXES,
        ),
    ),
    deny_patterns=(
        r"^FECHA\s+OPER",
        r"^CONCEPTO$",
        r"^IMPORTE$",
        r"^SALDO$",
        r"^FECHA\s+VALOR",
        r"^Documento\s+obtenido",
        r"^CONSULTA\s+DE\s+MOVIMIENTOS",
    ),
)

SANTANDER_LAYOUT = StatementLayout(
    statement_format=StatementFormat.SANTANDER,
    strategies=(
        # F. Valor <concept over several lines> -12,00 EUR 1.000,00 EUR
        # 02/01/2025
        # 03/01/2025
        BlockStrategy(
            "value_date_blocks",
            delimiter=r"F\.\s*Valor\s*",
            pattern=(
                rf"^(?P<description>[\s\S]+?)\s+(?P<amount>{AMOUNT})\s*EUR\s+"
                rf"(?P<balance>{AMOUNT})\s*EUR\s*(?P<posting>{SHORT_DATE})\s*(?P<value>{SHORT_DATE})"
            ),
        ),
        RegexStrategy(
            "two_dates",
            rf"(?P<posting>{SHORT_DATE})\s+(?P<value>{SHORT_DATE})\s+(?P<description>.+?)\s+"
            rf"(?P<amount>{AMOUNT})\s*EUR(?:[ \t]+(?P<balance>{AMOUNT})\s*EUR)?",
        ),
        _two_date_multiline("multiline"),
    ),
)

GENERIC_TABULAR_LAYOUT = StatementLayout(
    statement_format=StatementFormat.GENERIC_TABULAR,
    tabular=TabularLayout(columns=STATEMENT_COLUMNS, min_cells=3),
)


STATEMENT_LAYOUTS: dict[StatementFormat, StatementLayout] = {
    layout.statement_format: layout
    for layout in (
        BBVA_LAYOUT,
        CAIXABANK_LAYOUT,
        SABADELL_LAYOUT,
        SANTANDER_LAYOUT,
        GENERIC_TABULAR_LAYOUT,
    )
}


def get_layout(statement_format: StatementFormat) -> StatementLayout:
    """
    Look up the layout for a statement format.

    Raises:
        ConfigurationError: If the format has no registered layout
    """
    try:
        return STATEMENT_LAYOUTS[statement_format]
    except KeyError:
        raise ConfigurationError(f"No layout registered for format: {statement_format}") from None


def supported_statement_formats() -> list[StatementFormat]:
    """Formats with at least one extraction path."""
    return list(STATEMENT_LAYOUTS)
