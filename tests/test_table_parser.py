"""Tests for statement table location and parsing."""

from decimal import Decimal

import pytest

from sec_analyzer.models import (
    CanonicalCategory as C,
    MetricSource,
    MetricUnit,
    ParsedTable,
    PeriodType,
    StatementType,
    TableRow,
)
from sec_analyzer.normalizer import normalize
from sec_analyzer.table_parser import (
    FALLBACK_PERIODS,
    convert_to_metrics,
    extract_periods,
    parse_cell_value,
    parse_financial_tables,
)


@pytest.mark.parametrize("cell, expected", [
    ("$1,234", Decimal(1234)),
    ("(56)", Decimal(-56)),
    ("$ (1,000.5)", Decimal("-1000.5")),
    ("12.5%", Decimal("12.5")),
    ("0", Decimal(0)),
])
def test_parse_cell_value(cell, expected):
    assert parse_cell_value(cell) == expected


@pytest.mark.parametrize("cell", ["-", "--", "\u2014", "", "   ", None, "n/a", "$"])
def test_parse_cell_value_not_reported(cell):
    assert parse_cell_value(cell) is None


def test_extract_periods_years():
    periods, columns = extract_periods("Year Ended December 31, | 2024 | 2023 | 2022\nRevenue | 1 | 2 | 3")
    assert periods == ("2024", "2023", "2022")
    assert columns == (0, 1, 2)


def test_extract_periods_oldest_first_is_reordered():
    periods, columns = extract_periods("As of | December 31, 2022 | December 31, 2023")
    assert periods == ("December 31, 2023", "December 31, 2022")
    assert columns == (1, 0)


def test_extract_periods_keeps_most_recent_four():
    periods, columns = extract_periods("Year | 2020 | 2021 | 2022 | 2023 | 2024")
    assert periods == ("2024", "2023", "2022", "2021")
    assert columns == (4, 3, 2, 1)


def test_extract_periods_fallback():
    assert extract_periods("no periods in here") == (FALLBACK_PERIODS, (0, 1))


def test_text_statements(ten_k_text):
    tables = parse_financial_tables(ten_k_text, "plain")
    by_type = {t.statement_type: t for t in tables}
    assert set(by_type) == {
        StatementType.INCOME_STATEMENT,
        StatementType.BALANCE_SHEET,
        StatementType.CASH_FLOW_STATEMENT,
    }

    income = by_type[StatementType.INCOME_STATEMENT]
    assert income.periods == ("2024", "2023", "2022")
    assert income.unit is MetricUnit.MILLIONS
    assert all(len(row.values) == len(income.periods) for row in income.rows)

    rows = {row.label: row for row in income.rows}
    assert rows["Total revenue"].values == (Decimal(1200), Decimal(1000), Decimal(900))
    assert rows["Total revenue"].category is C.REVENUE
    assert rows["Total revenue"].is_total
    assert rows["Interest expense"].values[0] == Decimal(-20)
    assert rows["Diluted earnings per share"].category is C.EPS_DILUTED

    balance = by_type[StatementType.BALANCE_SHEET]
    labels = [row.label for row in balance.rows]
    assert "Total liabilities and stockholders' equity" in labels
    equity_rows = [row for row in balance.rows if row.category is C.TOTAL_EQUITY]
    assert [row.label for row in equity_rows] == ["Total stockholders' equity"]


def test_html_statement(statement_html):
    tables = parse_financial_tables(statement_html, "html")
    assert len(tables) == 1
    table = tables[0]
    assert table.statement_type is StatementType.INCOME_STATEMENT
    assert table.periods == ("2024", "2023")
    assert table.unit is MetricUnit.THOUSANDS

    rows = {row.label: row for row in table.rows}
    assert rows["Net sales"].values == (Decimal(5000), Decimal(4000))
    assert rows["Net loss"].values == (Decimal(-56), None)
    assert rows["Operating income (loss)"].values == (Decimal(100), Decimal(-100))
    assert rows["Gross profit"].indent_level == 1


def test_missing_statements_are_absent():
    assert parse_financial_tables("Nothing financial here.", "plain") == []


def test_convert_to_metrics_scales_money_not_per_share(ten_k_text):
    metrics = convert_to_metrics(parse_financial_tables(ten_k_text, "plain"), PeriodType.ANNUAL)
    by_cat = {m.category: m for m in metrics}

    revenue = by_cat[C.REVENUE]
    assert revenue.raw_value == Decimal(1_200_000_000)
    assert revenue.yoy_change == Decimal("20.00")
    assert revenue.period == "2024"
    assert revenue.period_type is PeriodType.ANNUAL
    assert revenue.source is MetricSource.TABLE
    assert revenue.confidence == pytest.approx(0.95)

    eps = by_cat[C.EPS_DILUTED]
    assert eps.raw_value == Decimal("1.20")
    assert eps.unit is MetricUnit.PER_SHARE

    assert by_cat[C.CAPEX].raw_value == Decimal(-80_000_000)
    assert len(metrics) == len(by_cat)


def test_convert_to_metrics_skips_null_current_cell():
    table = ParsedTable(
        statement_type=StatementType.INCOME_STATEMENT,
        title="Statements of Operations",
        periods=("2024", "2023", "2022"),
        rows=(TableRow(label="Net income", values=(None, Decimal(10), Decimal(8)), category=C.NET_INCOME),),
        unit=MetricUnit.THOUSANDS,
    )
    (metric,) = convert_to_metrics([table])
    assert metric.raw_value == Decimal(10_000)
    assert metric.period == "2023"
    assert metric.yoy_change == Decimal("25.00")


def test_table_rows_must_align_with_periods():
    with pytest.raises(ValueError):
        ParsedTable(
            statement_type=StatementType.BALANCE_SHEET,
            title="Balance Sheets",
            periods=("2024", "2023"),
            rows=(TableRow(label="Total assets", values=(Decimal(1),)),),
        )


def test_to_frame(statement_html):
    frame = parse_financial_tables(statement_html, "html")[0].to_frame()
    assert list(frame.columns) == ["2024", "2023"]
    assert frame.loc["Net sales", "2024"] == 5000.0


def _income_html(*rows):
    return (
        "<p>CONSOLIDATED STATEMENTS OF OPERATIONS</p><p>(In millions)</p><table>"
        + "".join(rows)
        + "</table><p>" + "Amounts are unaudited. " * 30 + "</p>"
    )


def test_blank_cell_keeps_its_period():
    html = _income_html(
        "<tr><td></td><td>2024</td><td>2023</td></tr>",
        "<tr><td>Net sales</td><td>500</td><td>400</td></tr>",
        "<tr><td>Research and development</td><td></td><td>50</td></tr>",
        "<tr><td>Selling, general and administrative</td><td>70</td><td></td></tr>",
    )
    for fmt in ("html", "plain"):
        source = html if fmt == "html" else normalize(html, "html")
        (table,) = parse_financial_tables(source, fmt)
        rows = {row.label: row for row in table.rows}
        assert rows["Research and development"].values == (None, Decimal(50))
        assert rows["Selling, general and administrative"].values == (Decimal(70), None)


def test_spacer_cells_do_not_take_a_period():
    html = _income_html(
        "<tr><td></td><td colspan='2'>2024</td><td></td><td colspan='2'>2023</td></tr>",
        "<tr><td>Net sales</td><td>$</td><td>500</td><td></td><td>$</td><td>400</td></tr>",
        "<tr><td>Cost of sales</td><td></td><td>300</td><td></td><td></td><td>260</td></tr>",
    )
    (table,) = parse_financial_tables(html, "html")
    rows = {row.label: row for row in table.rows}
    assert rows["Net sales"].values == (Decimal(500), Decimal(400))
    assert rows["Cost of sales"].values == (Decimal(300), Decimal(260))


def test_oldest_first_columns_keep_most_recent_values():
    text = (
        "CONSOLIDATED STATEMENTS OF OPERATIONS\n"
        "(In millions)\n"
        "Year Ended December 31, | 2020 | 2021 | 2022 | 2023 | 2024\n"
        "Total revenue | 100 | 200 | 300 | 400 | 500\n"
        "Net income | 10 | 20 | 30 | 40 | 50\n"
        + "Amounts are unaudited.\n" * 30
    )
    (table,) = parse_financial_tables(text, "plain")
    assert table.periods == ("2024", "2023", "2022", "2021")
    rows = {row.label: row for row in table.rows}
    assert rows["Total revenue"].values == (Decimal(500), Decimal(400), Decimal(300), Decimal(200))
