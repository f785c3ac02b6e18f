"""Tests for date, amount and statement file parsing."""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from dateutil.relativedelta import relativedelta

from pjledger.utils.amount_parser import parse_amount
from pjledger.utils.date_parser import get_date_range, month_range, parse_date
from pjledger.utils.statement_reader import file_sha256, read_csv_statement


def test_parse_absolute_date():
    assert parse_date("2024-01-15") == date(2024, 1, 15)


def test_parse_dayfirst_date():
    assert parse_date("10/01/2024", dayfirst=True) == date(2024, 1, 10)
    assert parse_date("10/01/2024") == date(2024, 10, 1)


def test_parse_ofx_timestamp():
    assert parse_date("20240115120000[-3:BRT]") == date(2024, 1, 15)
    assert parse_date("20240115") == date(2024, 1, 15)


def test_parse_relative_dates():
    today = date.today()
    assert parse_date("today") == today
    assert parse_date("yesterday") == today - timedelta(days=1)
    assert parse_date("this month") == today.replace(day=1)
    assert parse_date("last month") == (today - relativedelta(months=1)).replace(day=1)


def test_parse_date_passes_dates_through():
    assert parse_date(date(2024, 2, 29)) == date(2024, 2, 29)


def test_parse_invalid_date():
    with pytest.raises(ValueError, match="Could not parse date"):
        parse_date("not a date")
    with pytest.raises(ValueError, match="Empty date"):
        parse_date("  ")


def test_month_range():
    assert month_range("2024-02") == (date(2024, 2, 1), date(2024, 2, 29))
    with pytest.raises(ValueError, match="Invalid month"):
        month_range("2024-13")


def test_get_date_range():
    today = date.today()
    assert get_date_range("this-month") == (today.replace(day=1), today)
    assert get_date_range("2023-12") == (date(2023, 12, 1), date(2023, 12, 31))
    start, end = get_date_range("last-year")
    assert start == date(today.year - 1, 1, 1)
    assert end == date(today.year - 1, 12, 31)
    with pytest.raises(ValueError, match="Unknown period"):
        get_date_range("someday")


@pytest.mark.parametrize(
    "text, expected",
    [
        ("123.45", "123.45"),
        ("-123.45", "-123.45"),
        ("$1,234.56", "1234.56"),
        ("R$ 1.234,56", "1234.56"),
        ("(50.00)", "-50.00"),
        ("89,90", "89.90"),
        ("+10", "10"),
        ("10-", "-10"),
    ],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == Decimal(expected)


def test_parse_amount_passes_numbers_through():
    assert parse_amount(Decimal("1.50")) == Decimal("1.50")
    assert parse_amount(3) == Decimal("3")


@pytest.mark.parametrize("text", ["", "abc", "NaN", "1.2.3,4,5x"])
def test_parse_amount_rejects_garbage(text):
    with pytest.raises(ValueError):
        parse_amount(text)


def test_read_csv_statement(tmp_path):
    path = tmp_path / "extrato.csv"
    path.write_text(
        "Data;Valor;Historico;FITID;Tipo\n"
        "01/03/2024;1200,00;PIX RECEBIDO;A1;CREDIT\n"
        "\n"
        "02/03/2024;-89,90;TARIFA;A2;DEBIT\n",
        encoding="utf-8",
    )

    sections = read_csv_statement(path, account_label="Operating", closing_balance=Decimal("5"))

    assert len(sections) == 1
    section = sections[0]
    assert section.account_id == "Operating"
    assert section.reported_closing_balance == Decimal("5")
    assert len(section.entries) == 2
    first = section.entries[0]
    assert first.date == "01/03/2024"
    assert first.amount == "1200,00"
    assert first.description == "PIX RECEBIDO"
    assert first.external_id == "A1"
    assert first.type_hint == "CREDIT"


def test_read_csv_statement_requires_date_and_amount(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("Description,Memo\nX,Y\n", encoding="utf-8")
    with pytest.raises(ValueError, match="missing required columns: date, amount"):
        read_csv_statement(path)


def test_read_csv_statement_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_csv_statement(tmp_path / "nope.csv")


def test_file_sha256_depends_on_content(tmp_path):
    a = tmp_path / "a.csv"
    b = tmp_path / "b.csv"
    a.write_text("Date,Amount\n2024-01-01,1\n")
    b.write_text("Date,Amount\n2024-01-01,2\n")
    assert file_sha256(a) != file_sha256(b)
    assert len(file_sha256(a)) == 64
