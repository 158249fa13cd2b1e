import uuid
from datetime import datetime
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError, ProgrammingError

from soot.common.exceptions import ServiceUnavailableError
from soot.core.budget.months import (
    format_euro_from_cents,
    month_range_from_key,
    parse_month_key,
    recurring_occurrence_date,
    shift_month_key,
    start_of_month_from_key,
    to_month_key,
)
from soot.core.budget.service import recurring_rule_applies, summarize_month
from soot.core.schema_guard import budget_tables_guard, is_table_unavailable_error


def _rule(label="Loyer", amount=85000, type_="EXPENSE", day=5, start=datetime(2025, 1, 1), end=None):
    return SimpleNamespace(
        id=uuid.uuid4(),
        type=type_,
        label=label,
        amount_cents=amount,
        day_of_month=day,
        start_month=start,
        end_month=end,
        notes=None,
    )


def _entry(label, amount, type_="EXPENSE", occurred_on=datetime(2025, 3, 12, 12)):
    return SimpleNamespace(
        id=uuid.uuid4(),
        type=type_,
        source="MANUAL",
        label=label,
        amount_cents=amount,
        occurred_on=occurred_on,
        is_forecast=False,
        notes=None,
    )


# --- Month keys ---


@pytest.mark.parametrize("raw", [None, "", "2025-3", "2025-13", "2025-00", "0000-03", "march"])
def test_parse_month_key_rejects_invalid(raw):
    assert parse_month_key(raw) is None


def test_shift_month_key_crosses_years():
    assert shift_month_key("2025-01", -1) == "2024-12"
    assert shift_month_key("2024-12", 1) == "2025-01"


def test_shift_month_key_stops_at_calendar_edges():
    assert shift_month_key("0001-01", -1) == "0001-01"
    assert shift_month_key("9999-12", 1) == "9999-12"
    assert shift_month_key("9999-11", 5) == "9999-12"


def test_month_range_is_half_open():
    assert month_range_from_key("2024-02") == (datetime(2024, 2, 1), datetime(2024, 3, 1))


def test_last_representable_month_has_an_open_end():
    assert month_range_from_key("9999-12") == (datetime(9999, 12, 1), datetime.max)


def test_recurring_day_is_clamped_to_month_length():
    assert recurring_occurrence_date("2025-02", 31) == datetime(2025, 2, 28, 12)
    assert recurring_occurrence_date("2025-04", None) == datetime(2025, 4, 1, 12)


def test_format_euro():
    assert format_euro_from_cents(123456) == "1\u202f234,56\u00a0€"
    assert format_euro_from_cents(-5) == "-0,05\u00a0€"


# --- Monthly summary ---


def test_recurring_rule_bounds():
    rule = _rule(start=datetime(2025, 3, 1), end=datetime(2025, 6, 1))
    assert not recurring_rule_applies(rule, "2025-02")
    assert recurring_rule_applies(rule, "2025-03")
    assert recurring_rule_applies(rule, "2025-06")
    assert not recurring_rule_applies(rule, "2025-07")


def test_summarize_month_merges_entries_and_rules():
    summary = summarize_month(
        "2025-03",
        [_entry("Courses", 12050)],
        [_rule(), _rule("Salaire", 250000, type_="INCOME", day=28)],
        now=datetime(2025, 3, 15),
    )

    assert summary.previous_month == "2025-02"
    assert summary.next_month == "2025-04"
    assert [line.label for line in summary.lines] == ["Loyer", "Courses", "Salaire"]
    assert summary.income_cents == 250000
    assert summary.expense_cents == 97050
    assert summary.balance_cents == 152950
    loyer = summary.lines[0]
    assert loyer.persisted is False
    assert loyer.source == "RECURRING"
    assert loyer.is_forecast is False


def test_recurring_lines_in_future_months_are_forecasts():
    summary = summarize_month("2025-09", [], [_rule()], now=datetime(2025, 3, 15))
    assert summary.lines[0].is_forecast is True


# --- Missing tables ---


def test_table_unavailable_detection():
    missing = OperationalError("SELECT", {}, Exception("no such table: budget_entries"))
    assert is_table_unavailable_error(missing)
    assert is_table_unavailable_error(missing, hint="budget")
    assert not is_table_unavailable_error(missing, hint="tasks")
    assert not is_table_unavailable_error(ValueError("no such table"))

    locked = OperationalError("SELECT", {}, Exception("database is locked"))
    assert not is_table_unavailable_error(locked)


@pytest.mark.asyncio
async def test_budget_guard_translates_missing_tables():
    with pytest.raises(ServiceUnavailableError) as excinfo:
        async with budget_tables_guard():
            raise ProgrammingError(
                "SELECT", {}, Exception('relation "budget_entries" does not exist')
            )
    assert excinfo.value.status_code == 503


@pytest.mark.asyncio
async def test_budget_guard_lets_other_errors_through():
    with pytest.raises(OperationalError):
        async with budget_tables_guard():
            raise OperationalError("SELECT", {}, Exception("database is locked"))


# --- API ---


@pytest.mark.asyncio
async def test_budget_month_view(client, auth_headers):
    response = await client.post(
        "/api/v1/budgets/entries",
        headers=auth_headers,
        json={"type": "EXPENSE", "label": "Plombier", "amount_cents": 18000, "occurred_on": "2025-03-04"},
    )
    assert response.status_code == 201
    assert response.json()["source"] == "MANUAL"

    response = await client.post(
        "/api/v1/budgets/recurring",
        headers=auth_headers,
        json={"type": "INCOME", "label": "Salaire", "amount_cents": 300000, "day_of_month": 28, "start_month": "2025-01"},
    )
    assert response.status_code == 201
    assert response.json()["start_month"] == "2025-01"

    response = await client.get("/api/v1/budgets", headers=auth_headers, params={"month": "2025-03"})
    assert response.status_code == 200
    data = response.json()
    assert data["month"] == "2025-03"
    assert [line["label"] for line in data["lines"]] == ["Plombier", "Salaire"]
    assert data["balance_cents"] == 282000


@pytest.mark.asyncio
async def test_blank_label_is_rejected(client, auth_headers):
    response = await client.post(
        "/api/v1/budgets/entries",
        headers=auth_headers,
        json={"type": "EXPENSE", "label": "   ", "amount_cents": 500, "occurred_on": "2025-03-04"},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_month_view_with_year_zero_falls_back_to_current_month(client, auth_headers):
    response = await client.get("/api/v1/budgets", headers=auth_headers, params={"month": "0000-03"})
    assert response.status_code == 200
    assert response.json()["month"] == to_month_key(datetime.now())


@pytest.mark.asyncio
async def test_month_view_for_last_representable_month(client, auth_headers):
    response = await client.get("/api/v1/budgets", headers=auth_headers, params={"month": "9999-12"})
    assert response.status_code == 200
    data = response.json()
    assert data["previous_month"] == "9999-11"
    assert data["next_month"] == "9999-12"


@pytest.mark.asyncio
async def test_recurring_end_before_start_is_rejected(client, auth_headers):
    response = await client.post(
        "/api/v1/budgets/recurring",
        headers=auth_headers,
        json={
            "type": "EXPENSE",
            "label": "Assurance",
            "amount_cents": 4000,
            "start_month": "2025-06",
            "end_month": "2025-01",
        },
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Le mois de fin doit être postérieur au mois de début"}


@pytest.mark.asyncio
async def test_delete_entry_of_other_house_is_forbidden(client, auth_headers, outsider_headers):
    created = await client.post(
        "/api/v1/budgets/entries",
        headers=auth_headers,
        json={"type": "EXPENSE", "label": "Peinture", "amount_cents": 5000, "occurred_on": "2025-03-04"},
    )
    entry_id = created.json()["id"]

    response = await client.delete(f"/api/v1/budgets/entries/{entry_id}", headers=outsider_headers)
    assert response.status_code == 403

    response = await client.delete(f"/api/v1/budgets/entries/{entry_id}", headers=auth_headers)
    assert response.status_code == 200


def test_month_key_round_trip_lands_on_first_instant():
    moment = datetime(2024, 2, 29, 17, 45)
    assert start_of_month_from_key(parse_month_key(to_month_key(moment))) == datetime(2024, 2, 1)
