import pytest

from bank_supplier_recon.config import ReconConfig

# Statement text as produced by the PDF reader, one string per page
caixabank_pages = [
    "CaixaBank\n"
    "Extracto de cuenta  ES12 2100 0000 0000 0000 0000\n"
    "Fecha Fecha valor Concepto Importe Saldo\n"
    "15/01/2025 16/01/2025 PAGO PROVEEDOR ACME SL -1.234,56 EUR 5.678,90 EUR\n"
    "17/01/2025 17/01/2025 RECIBO LUZ ENDESA -148,29 EUR 5.530,61 EUR\n",
    "Página 2\n"
    "20/01/2025 21/01/2025 TRANSFERENCIA BETA SERVICIOS -250,00 EUR 5.280,61 EUR\n",
]

bbva_text = (
    "BBVA  Consulta de movimientos\n"
    "F.CONTABLE F.VALOR CONCEPTO IMPORTE SALDO\n"
    "31/12/2025 31/12/2025 TRANSFERENCIA A PROVEEDOR -3.572,32 EUR 21.158,15 EUR\n"
    "30/12/2025 29/12/2025 ABONO CLIENTE GAMMA 1.200,00 EUR 24.730,47 EUR\n"
)

sabadell_wrapped_text = (
    "CONSULTA DE MOVIMIENTOS\n"
    "FECHA OPER CONCEPTO FECHA VALOR IMPORTE SALDO\n"
    "30/10/2025 TRANSFERENCIA A FAVOR DE\n"
    "PROVEEDOR DELTA SL\n"
    "30/10/2025 -500,00 9.323,23\n"
    "29/10/2025 RECIBO SEGURO\n"
    "ANUAL OFICINA\n"
    "28/10/2025 -73,17 9.823,23\n"
)

santander_text = (
    "Banco Santander  Movimientos de la cuenta\n"
    "F. Valor\n"
    "RECIBO TELEFONICA\n"
    "MOVILES ESPAÑA -45,50 EUR 1.954,50 EUR\n"
    "02/01/2025\n"
    "03/01/2025\n"
    "F. Valor\n"
    "TRANSFERENCIA RECIBIDA 1.000,00 EUR 2.954,50 EUR\n"
    "05/01/25\n"
    "05/01/25\n"
)

supplier_listing_text = (
    "LISTADO DE PROVEEDORES\n"
    "Fecha Código Nombre Documento Referencia Importe\n"
    "15/01/2025 4001 ACME SUMINISTROS SL 123/FC/2025 REF-01 1.234,56 Eur\n"
    "P 17/01/2025 4002 ENDESA ENERGIA SA 124/FC/2025 REF-02 148,29 Eur\n"
    "20/01/2025 4003 BETA SERVICIOS SL 125/FC/2025 REF-03 250,00 Eur\n"
)

caixabank_rows = [
    ["Extracto de cuenta", "", "", "", "", ""],
    ["Fecha", "Fecha valor", "Movimiento", "Más datos", "Importe", "Saldo"],
    ["15/01/2025", "16/01/2025", "PAGO PROVEEDOR", "ACME SL", "-1.234,56", "5.678,90"],
    ["2025-01-20 00:00:00", "2025-01-20 00:00:00", "TRANSFERENCIA", "", "-9467.18", "1000.00"],
    ["", "", "", "", "", ""],
    ["TOTAL", "", "", "", "-10.701,74", ""],
]

workbook_sheets = {
    "GENER": [
        ["", "GENER 2025", "", "", "", ""],
        ["Còdic", "Client/Previsió", "Data fra.", "Num. fra.", "Venciment", "IMPORT"],
        ["4001", "ACME SL", "01/10/2025", "F-001", "01/15/2025", "1.234,56"],
        ["4002", "BETA SA", "01/12/2025", "F-002", "", "250,00"],
        ["4003", "ZERO SL", "01/12/2025", "F-003", "", "0"],
        ["", "T O T A L S", "", "", "", "1.484,56"],
    ],
    "FEBRER": [
        ["Mes: FEBRER 2025", "", "", "", "", ""],
        ["Còdic", "Client/Previsió", "Data fra.", "Num. fra.", "Venciment", "IMPORT"],
        ["4005", "GAMMA SL", "02/03/2025", "F-010", "02/20/2025", "99,90"],
    ],
}


@pytest.fixture
def config():
    return ReconConfig()


@pytest.fixture
def caixabank_statement_pages():
    return list(caixabank_pages)


@pytest.fixture
def bbva_statement_text():
    return bbva_text


@pytest.fixture
def sabadell_statement_text():
    return sabadell_wrapped_text


@pytest.fixture
def santander_statement_text():
    return santander_text


@pytest.fixture
def supplier_listing():
    return supplier_listing_text


@pytest.fixture
def caixabank_sheet():
    return [list(row) for row in caixabank_rows]


@pytest.fixture
def supplier_workbook():
    return {name: [list(row) for row in rows] for name, rows in workbook_sheets.items()}
