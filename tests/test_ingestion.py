"""Tests for Chase statement parsing and the import session."""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from budget_tracker.audit import AuditLogger
from budget_tracker.ingestion import (
    VENDOR_CATEGORY_MAP,
    StatementFormatError,
    StatementImport,
    categorize,
    clean_description,
    parse_statement,
    suggest_category,
)
from budget_tracker.ingestion.importer import (
    FORMAT_ERROR_MESSAGE,
    MISSING_CATEGORY_MESSAGE,
    NO_EXPENSES_MESSAGE,
)
from budget_tracker.ingestion.parser import (
    parse_amount,
    parse_statement_date,
    resolve_columns,
    split_csv_line,
)
from budget_tracker.models.audit import AuditEventType
from budget_tracker.models.budget import ImportOutcome, ImportStep
from budget_tracker.services.storage import InMemoryDocumentStore
from budget_tracker.sync import LedgerDocumentStore


CREDIT_CARD_CSV = (
    "Transaction Date,Post Date,Description,Category,Type,Amount,Memo\n"
    "01/05/2025,01/06/2025,TRADER JOES #552,Groceries,Sale,-45.20,\n"
    "01/07/2025,01/08/2025,PAYMENT THANK YOU,,Payment,500.00,\n"
    "01/09/2025,01/10/2025,SHELL OIL,Gas,Sale,-38.10,\n"
    "01/11/2025,01/12/2025,AMAZON RETURN,Shopping,Return,-12.00,\n"
    "02/02/2025,02/03/2025,LOCAL BAKERY,Shopping,Sale,-9.75,\n"
)

CHECKING_CSV = (
    "Details,Posting Date,Description,Amount,Type,Balance,Check or Slip #\n"
    'DEBIT,03/14/2025,"ACME, INC AUTOPAY",-120.00,ACH_DEBIT,880.00,,\n'
    "CREDIT,03/15/2025,PAYROLL,2500.00,ACH_CREDIT,3380.00,,\n"
)


class TestSplitCsvLine:

    def test_plain_cells_are_trimmed(self):
        assert split_csv_line(" a , b ,c") == ["a", "b", "c"]

    def test_quoted_comma_does_not_split(self):
        assert split_csv_line('x,"ACME, INC",-1.00') == ["x", "ACME, INC", "-1.00"]

    def test_trailing_empty_cell(self):
        assert split_csv_line("a,b,") == ["a", "b", ""]


class TestFieldParsing:

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("-45.20", Decimal("-45.20")),
            ('"12.5"', Decimal("12.5")),
            ("0", Decimal("0")),
            ("abc", None),
            ("", None),
            (None, None),
            ("NaN", None),
            ("Infinity", None),
        ],
    )
    def test_parse_amount(self, raw, expected):
        assert parse_amount(raw) == expected

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("01/05/2025", date(2025, 1, 5)),
            ("12/31/2024", date(2024, 12, 31)),
            ("2025-03-01", date(2025, 3, 1)),
            ("13/45/2025", None),
            ("yesterday", None),
            ("", None),
        ],
    )
    def test_parse_statement_date(self, raw, expected):
        assert parse_statement_date(raw) == expected

    def test_date_column_priority(self):
        """Test the card date wins over posting date and a generic date."""
        layout = resolve_columns("Date,Posting Date,Transaction Date,Description,Amount")
        assert layout.date == 2

        layout = resolve_columns("Date,Posting Date,Description,Amount")
        assert layout.date == 1

    def test_optional_columns(self):
        layout = resolve_columns("Date,Description,Amount")
        assert layout.category is None
        assert layout.type is None


class TestParseStatement:
    """Tests for whole-file parsing."""

    def test_single_expense_row(self):
        text = (
            "Transaction Date,Description,Amount,Category,Type\n"
            '01/05/2025,"Trader Joes",-45.20,Groceries,Sale'
        )
        [candidate] = parse_statement(text)
        assert candidate.date == date(2025, 1, 5)
        assert candidate.description == "Trader Joes"
        assert candidate.amount == 45.2
        assert candidate.category == "🛒 Groceries"
        assert candidate.source_category == "Groceries"

    def test_positive_amounts_produce_nothing(self):
        text = (
            "Transaction Date,Description,Amount,Category,Type\n"
            "01/05/2025,Refund,45.20,Groceries,Sale"
        )
        assert parse_statement(text) == []

    def test_credit_card_export(self):
        """Test payments, returns and credits are left out."""
        candidates = parse_statement(CREDIT_CARD_CSV, default_category="🏠 Rent/Mortgage")
        assert [c.description for c in candidates] == [
            "TRADER JOES #552",
            "SHELL OIL",
            "LOCAL BAKERY",
        ]
        assert [c.category for c in candidates] == [
            "🛒 Groceries",
            "🚗 Transport",
            "🏠 Rent/Mortgage",
        ]
        assert candidates[2].suggested_category is None
        assert candidates[2].was_auto_matched is False
        assert all(c.amount > 0 for c in candidates)

    def test_checking_export(self):
        [candidate] = parse_statement(CHECKING_CSV)
        assert candidate.date == date(2025, 3, 14)
        assert candidate.description == "ACME, INC AUTOPAY"
        assert candidate.amount == 120.0
        assert candidate.source_category is None
        assert candidate.category is None

    def test_bom_crlf_and_blank_lines(self):
        text = (
            "\ufeffTransaction Date,Description,Amount\r\n"
            "\r\n"
            "01/05/2025,Coffee,-3.50\r\n"
            "   \r\n"
        )
        [candidate] = parse_statement(text)
        assert candidate.description == "Coffee"
        assert candidate.amount == 3.5

    def test_preamble_before_header_is_ignored(self):
        text = (
            "Account summary\n"
            "Generated 2025-01-31\n"
            "Date,Description,Amount\n"
            "01/20/2025,Lunch,-14.00\n"
        )
        assert [c.description for c in parse_statement(text)] == ["Lunch"]

    def test_quoted_header(self):
        text = '"Transaction Date","Description","Amount"\n"01/05/2025","Tea","-2.00"'
        assert [c.amount for c in parse_statement(text)] == [2.0]

    def test_malformed_rows_are_skipped(self):
        """Test one bad row does not sink the file."""
        text = (
            "Transaction Date,Description,Amount\n"
            "01/05/2025,Bad amount,abc\n"
            "99/99/2025,Bad date,-5.00\n"
            "01/06/2025\n"
            "01/07/2025,Good,-7.00\n"
        )
        assert [c.description for c in parse_statement(text)] == ["Good"]

    def test_debit_with_unreadable_date_is_skipped(self):
        """Test a negative, non-excluded row is still dropped when its date is unreadable."""
        text = (
            "Transaction Date,Description,Amount,Category,Type\n"
            "02/30/2025,Leap day,-12.00,Groceries,Sale\n"
            "not a date,Typo,-3.00,Groceries,Sale\n"
            ",Blank,-4.00,Groceries,Sale\n"
            "02/28/2025,Kept,-5.00,Groceries,Sale\n"
        )
        candidates = parse_statement(text)
        assert [c.description for c in candidates] == ["Kept"]
        assert candidates[0].date == date(2025, 2, 28)

    def test_no_header_raises(self):
        with pytest.raises(StatementFormatError):
            parse_statement("just,some,text\n1,2,3")

    def test_empty_file_raises(self):
        with pytest.raises(StatementFormatError):
            parse_statement("")

    def test_missing_amount_column_raises(self):
        with pytest.raises(StatementFormatError, match="Amount"):
            parse_statement("Transaction Date,Description,Total\n01/05/2025,Tea,-2.00")

    def test_parsing_is_deterministic(self):
        assert parse_statement(CREDIT_CARD_CSV) == parse_statement(CREDIT_CARD_CSV)


class TestCategories:

    def test_every_mapped_label(self):
        for label, category in VENDOR_CATEGORY_MAP.items():
            assert suggest_category(label) == category

    def test_exact_match_only(self):
        assert suggest_category("groceries") is None
        assert suggest_category("Groceries ") is None
        assert suggest_category(None) is None

    def test_categorize_falls_back_to_default(self):
        assert categorize("Shopping", "Misc") == "Misc"
        assert categorize("Gas", "Misc") == "🚗 Transport"
        assert categorize("Shopping", None) is None

    def test_custom_mapping(self):
        assert suggest_category("Pets", {"Pets": "🐶 Dog"}) == "🐶 Dog"

    def test_mapping_is_read_only(self):
        with pytest.raises(TypeError):
            VENDOR_CATEGORY_MAP["Pets"] = "🐶 Dog"


class TestCleanDescription:

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("POS DEBIT WHOLE FOODS 02/23", "Whole Foods"),
            ("ORIG CO NAME:COMED CO ENTRY DESCR:UTIL PYMT SEC:PPD", "Comed"),
            ("AMAZON MKTPL 123456789012", "Amazon Mktpl"),
            ("NETFLIX.COM  WEB ID: 12345", "Netflix.Com"),
            ("Trader Joes", "Trader Joes"),
        ],
    )
    def test_noise_removed(self, raw, expected):
        assert clean_description(raw) == expected

    def test_falls_back_when_nothing_left(self):
        assert clean_description(" 123456789012 ") == "123456789012"

    def test_empty_values(self):
        assert clean_description(None) is None
        assert clean_description("") == ""


class RecordingStore:
    """Stands in for the ledger store and records merged batches."""

    def __init__(self):
        self.batches = []

    def merge_bulk_transactions(self, drafts):
        self.batches.append(list(drafts))


CATEGORIES = ["🏠 Rent/Mortgage", "🛒 Groceries", "🚗 Transport"]


class TestStatementImport:
    """Tests for the upload/review/confirm cycle."""

    def test_happy_path(self):
        audit = AuditLogger()
        session = StatementImport(CATEGORIES, audit_logger=audit)
        result = session.load(CREDIT_CARD_CSV)

        assert result.ok
        assert result.candidate_count == 3
        assert session.step == ImportStep.REVIEW
        # Unmapped rows start on the first category
        assert session.candidates[2].category == "🏠 Rent/Mortgage"

        session.override_category(2, "🛒 Groceries")
        store = RecordingStore()
        assert session.confirm(store) == 3

        [batch] = store.batches
        assert [d.category for d in batch] == ["🛒 Groceries", "🚗 Transport", "🛒 Groceries"]
        assert session.step == ImportStep.DONE
        assert session.imported_count == 3

        types = [event.event_type for event in audit.history]
        assert types == [AuditEventType.STATEMENT_PARSED, AuditEventType.IMPORT_COMMITTED]
        assert audit.history[1].details["months"] == ["February", "January"]
        assert audit.history[0].correlation_id == audit.history[1].correlation_id

    def test_format_error_stays_on_upload(self):
        session = StatementImport(CATEGORIES)
        result = session.load("not a statement")
        assert result.outcome == ImportOutcome.FORMAT_ERROR
        assert session.error == FORMAT_ERROR_MESSAGE
        assert session.step == ImportStep.UPLOAD
        assert session.candidates == []

    def test_no_expenses(self):
        audit = AuditLogger()
        session = StatementImport(CATEGORIES, audit_logger=audit)
        result = session.load(
            "Transaction Date,Description,Amount\n01/05/2025,Refund,45.20"
        )
        assert result.outcome == ImportOutcome.NO_EXPENSES
        assert session.error == NO_EXPENSES_MESSAGE
        assert session.step == ImportStep.UPLOAD
        assert audit.history[-1].event_type == AuditEventType.STATEMENT_REJECTED

    def test_nothing_written_before_confirm(self):
        store = RecordingStore()
        session = StatementImport(CATEGORIES)
        session.load(CREDIT_CARD_CSV)
        session.override_category(0, "🚗 Transport")
        assert store.batches == []

    def test_reload_clears_previous_error(self):
        session = StatementImport(CATEGORIES)
        session.load("garbage")
        assert session.error
        session.load(CREDIT_CARD_CSV)
        assert session.error is None
        assert session.step == ImportStep.REVIEW

    def test_load_bytes_handles_bom(self):
        session = StatementImport(CATEGORIES)
        result = session.load_bytes(("\ufeff" + CHECKING_CSV).encode("utf-8"))
        assert result.candidate_count == 1

    def test_missing_category_blocks_confirm(self):
        """Test a budget with no categories cannot fill in unmapped rows."""
        store = RecordingStore()
        session = StatementImport([])
        session.load(CHECKING_CSV)
        assert session.confirm(store) == 0
        assert session.error == MISSING_CATEGORY_MESSAGE
        assert session.step == ImportStep.REVIEW
        assert store.batches == []

    def test_override_rules(self):
        session = StatementImport(CATEGORIES)
        with pytest.raises(RuntimeError):
            session.override_category(0, "🛒 Groceries")
        session.load(CREDIT_CARD_CSV)
        with pytest.raises(ValueError):
            session.override_category(0, "Not a category")
        with pytest.raises(IndexError):
            session.override_category(10, "🛒 Groceries")

    def test_confirm_requires_review(self):
        with pytest.raises(RuntimeError):
            StatementImport(CATEGORIES).confirm(RecordingStore())

    def test_reset(self):
        session = StatementImport(CATEGORIES)
        first_id = session.correlation_id
        session.load(CREDIT_CARD_CSV)
        session.confirm(RecordingStore())
        session.reset()
        assert session.step == ImportStep.UPLOAD
        assert session.imported_count == 0
        assert session.correlation_id != first_id

    def test_status_message_follows_step(self):
        session = StatementImport(CATEGORIES)
        assert "Upload" in session.status_message
        session.load(CREDIT_CARD_CSV)
        assert session.status_message.startswith("3 expenses found")
        session.confirm(RecordingStore())
        assert session.status_message.startswith("3 transactions imported")


class TestImportIntoLedger:
    """Integration with the real ledger store."""

    def test_import_lands_in_each_month_and_is_pushed(self):
        async def scenario():
            remote = InMemoryDocumentStore()
            store = LedgerDocumentStore(
                remote, document_key="budget", debounce_seconds=0.01, saved_display_seconds=0.01
            )
            await store.start()
            session = StatementImport(store.document.categories)
            session.load(CREDIT_CARD_CSV)
            session.confirm(store)
            await store.flush()
            await store.stop()
            return store, remote

        store, remote = asyncio.run(scenario())

        january = store.document.monthly_data["January"].expenses
        february = store.document.monthly_data["February"].expenses
        assert [t.description for t in january] == ["SHELL OIL", "TRADER JOES #552"]
        assert [t.description for t in february] == ["LOCAL BAKERY"]
        assert len(remote.writes) == 1
        assert len(remote.get("budget")["monthlyData"]["January"]["expenses"]) == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
