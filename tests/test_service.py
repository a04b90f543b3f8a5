# tests/test_service.py

"""
Tests for batch orchestration with fake readers.
"""

import asyncio

import pytest

from bank_supplier_recon.config import MatchingOptions, ReconConfig
from bank_supplier_recon.models.records import StatementFormat
from bank_supplier_recon.service import ReconciliationService, SourceFile, gather_or_cancel
from bank_supplier_recon.utils.exceptions import (
    ConfigurationError,
    ExtractionError,
    FormatMismatchError,
    ReconciliationInputError,
)


class FakeTextExtractor:
    """Returns the file content as a single page."""

    def __init__(self):
        self.calls = 0

    async def extract_text(self, data):
        self.calls += 1
        await asyncio.sleep(0)
        return [data.decode("utf-8")]


class FailingExtractor:
    async def extract_text(self, data):
        raise ExtractionError("PDF library unavailable")


class SlowTextExtractor:
    """Empty files come back at once; other files take a while and are recorded when done."""

    def __init__(self, delay=0.2):
        self.delay = delay
        self.finished = []
        self.cancelled = []

    async def extract_text(self, data):
        if not data:
            return [""]
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled.append(data)
            raise
        self.finished.append(data)
        return [data.decode("utf-8")]


class FakeTabularReader:
    """Serves sheets registered per file name."""

    def __init__(self, workbooks):
        self.workbooks = workbooks

    async def read_sheets(self, data, file_name):
        return self.workbooks[file_name]


def text_file(name, text, statement_format=None):
    return SourceFile(name=name, content=text.encode("utf-8"), statement_format=statement_format)


def make_service(config=None, workbooks=None, pdf_extractor=None):
    return ReconciliationService(
        config=config,
        pdf_extractor=pdf_extractor or FakeTextExtractor(),
        text_extractor=FakeTextExtractor(),
        tabular_reader=FakeTabularReader(workbooks or {}),
    )


class TestParseFiles:
    """Per-side batch parsing."""

    def test_bank_files_in_order(self, caixabank_statement_pages, bbva_statement_text):
        service = make_service()
        sources = [
            text_file("caixa.pdf", "\n".join(caixabank_statement_pages)),
            text_file("bbva.txt", bbva_statement_text, StatementFormat.BBVA),
        ]

        records = asyncio.run(service.parse_bank_files(sources, StatementFormat.CAIXABANK))

        assert len(records) == 5
        assert [r.source_file for r in records] == ["caixa.pdf"] * 3 + ["bbva.txt"] * 2
        assert records[3].source_format is StatementFormat.BBVA

    def test_pdf_files_use_pdf_extractor(self, bbva_statement_text):
        pdf = FakeTextExtractor()
        service = make_service(pdf_extractor=pdf)

        asyncio.run(service.parse_bank_files([text_file("a.pdf", bbva_statement_text)], StatementFormat.BBVA))

        assert pdf.calls == 1
        assert service.text_extractor.calls == 0

    def test_spreadsheet_statement_uses_first_sheet(self, caixabank_sheet):
        service = make_service(workbooks={"caixa.xlsx": {"Movimientos": caixabank_sheet, "Otra": []}})
        source = SourceFile(name="caixa.xlsx", content=b"")

        records = asyncio.run(service.parse_bank_files([source], StatementFormat.CAIXABANK))
        assert len(records) == 2

    def test_workbook_ledger_with_selected_sheets(self, supplier_workbook):
        service = make_service(workbooks={"prev.xlsx": supplier_workbook})
        source = SourceFile(name="prev.xlsx", content=b"", selected_sheets=["GENER"])

        records = asyncio.run(service.parse_ledger_files([source]))

        assert [r.document for r in records] == ["F-001", "F-002"]

    def test_describe_workbook(self, supplier_workbook):
        service = make_service(workbooks={"prev.xlsx": supplier_workbook})
        summaries = asyncio.run(service.describe_workbook(SourceFile(name="prev.xlsx", content=b"")))
        assert [s.month for s in summaries] == ["GENER", "FEBRER"]

    def test_no_files(self):
        service = make_service()

        with pytest.raises(ReconciliationInputError):
            asyncio.run(service.parse_bank_files([], StatementFormat.BBVA))
        with pytest.raises(ReconciliationInputError):
            asyncio.run(service.parse_ledger_files([]))


class TestFailFast:
    """The first failing file aborts the batch and is named in the error."""

    def test_format_mismatch_names_the_file(self, bbva_statement_text):
        service = make_service()
        sources = [
            text_file("good.txt", bbva_statement_text),
            text_file("bad.txt", "Documento sin movimientos"),
        ]

        with pytest.raises(FormatMismatchError) as exc_info:
            asyncio.run(service.parse_bank_files(sources, StatementFormat.BBVA))

        assert exc_info.value.file_name == "bad.txt"

    def test_reader_errors_get_the_file_name(self, bbva_statement_text):
        service = make_service(pdf_extractor=FailingExtractor())

        with pytest.raises(ExtractionError) as exc_info:
            asyncio.run(service.parse_bank_files([text_file("x.pdf", bbva_statement_text)], StatementFormat.BBVA))

        assert exc_info.value.file_name == "x.pdf"
        assert str(exc_info.value).startswith("x.pdf: ")

    def test_unsupported_file_type(self, bbva_statement_text):
        service = make_service()

        with pytest.raises(ConfigurationError):
            asyncio.run(service.parse_bank_files([text_file("x.docx", bbva_statement_text)], StatementFormat.BBVA))

    def test_spreadsheet_for_text_only_format(self, caixabank_sheet):
        service = make_service(workbooks={"bbva.xlsx": {"S1": caixabank_sheet}})

        with pytest.raises(ConfigurationError) as exc_info:
            asyncio.run(
                service.parse_bank_files([SourceFile(name="bbva.xlsx", content=b"")], StatementFormat.BBVA)
            )
        assert exc_info.value.file_name == "bbva.xlsx"


    def test_failure_cancels_sibling_files(self, bbva_statement_text):
        extractor = SlowTextExtractor()
        service = ReconciliationService(text_extractor=extractor)
        sources = [text_file("empty.txt", ""), text_file("slow.txt", bbva_statement_text)]

        async def run_batch():
            with pytest.raises(ExtractionError) as exc_info:
                await service.parse_bank_files(sources, StatementFormat.BBVA)
            await asyncio.sleep(extractor.delay * 2)
            return exc_info.value

        error = asyncio.run(run_batch())

        assert error.file_name == "empty.txt"
        assert extractor.finished == []
        assert extractor.cancelled == [bbva_statement_text.encode("utf-8")]

    def test_ledger_failure_cancels_bank_side(self, bbva_statement_text):
        extractor = SlowTextExtractor()
        service = ReconciliationService(text_extractor=extractor)

        with pytest.raises(ExtractionError) as exc_info:
            asyncio.run(
                service.reconcile_files(
                    [text_file("bbva.txt", bbva_statement_text)],
                    [text_file("empty.txt", "")],
                    StatementFormat.BBVA,
                )
            )

        assert exc_info.value.file_name == "empty.txt"
        assert extractor.finished == []


class TestGatherOrCancel:
    """Concurrent runs that stop at the first failure."""

    def test_results_in_argument_order(self):
        async def value(result, delay):
            await asyncio.sleep(delay)
            return result

        results = asyncio.run(gather_or_cancel(value("a", 0.02), value("b", 0)))
        assert results == ["a", "b"]

    def test_earliest_error_in_argument_order(self):
        async def fail(message):
            raise ExtractionError(message)

        async def run():
            return await gather_or_cancel(fail("first"), fail("second"))

        with pytest.raises(ExtractionError, match="first"):
            asyncio.run(run())

    def test_nothing_to_run(self):
        assert asyncio.run(gather_or_cancel()) == []


class TestReconcileFiles:
    """End-to-end reconciliation through the service."""

    def test_reconcile(self, caixabank_statement_pages, supplier_listing):
        service = make_service()

        result = asyncio.run(
            service.reconcile_files(
                [text_file("caixa.txt", "\f".join(caixabank_statement_pages))],
                [text_file("proveedores.txt", supplier_listing)],
                StatementFormat.CAIXABANK,
            )
        )

        assert result.stats.bank_record_count == 3
        assert result.stats.supplier_record_count == 3
        assert result.stats.matched_count == 3
        assert [r.matched_document for r in result.records] == [
            "123/FC/2025",
            "124/FC/2025",
            "125/FC/2025",
        ]

    def test_matching_options_from_config(self, supplier_listing):
        config = ReconConfig(matching=MatchingOptions(amount_tolerance=0.001))
        service = make_service(config=config)
        statement = "15/01/2025 16/01/2025 PAGO PROVEEDOR ACME SL -1.234,57 EUR\n"

        result = asyncio.run(
            service.reconcile_files(
                [text_file("caixa.txt", statement)],
                [text_file("proveedores.txt", supplier_listing)],
                StatementFormat.CAIXABANK,
            )
        )

        assert result.stats.matched_count == 0

    def test_missing_ledger_files(self, bbva_statement_text):
        service = make_service()

        with pytest.raises(ReconciliationInputError):
            asyncio.run(
                service.reconcile_files([text_file("b.txt", bbva_statement_text)], [], StatementFormat.BBVA)
            )
