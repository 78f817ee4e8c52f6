from decimal import Decimal

import pytest
from sqlalchemy import event

from comandera.core.exceptions import NotFoundError
from comandera.services.price_resolver import resolve_prices


async def test_prices_are_fetched_in_one_query_per_entity(engine, session_factory, menu):
    statements = []

    def record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(engine.sync_engine, "before_cursor_execute", record)
    try:
        async with session_factory() as db:
            table = await resolve_prices(db, [1, 2, 1, 2], [9, 10, 9])
    finally:
        event.remove(engine.sync_engine, "before_cursor_execute", record)

    assert table.meal_price(1) == Decimal("50")
    assert table.meal_price(2) == Decimal("30")
    assert table.modifier_surcharge(9) == Decimal("10")
    assert table.modifier_surcharge(10) == Decimal("0")
    assert len([s for s in statements if "FROM meals" in s]) == 1
    assert len([s for s in statements if "FROM modifiers" in s]) == 1


async def test_missing_meal_is_named_in_error(session_factory, menu):
    async with session_factory() as db:
        with pytest.raises(NotFoundError) as exc_info:
            await resolve_prices(db, [1, 42], [])

    assert exc_info.value.code == "MEAL_NOT_FOUND"
    assert "42" in exc_info.value.detail


async def test_missing_modifier_fails_closed(session_factory, menu):
    async with session_factory() as db:
        with pytest.raises(NotFoundError) as exc_info:
            await resolve_prices(db, [1], [9, 77])

    assert exc_info.value.code == "MODIFIER_NOT_FOUND"
    assert "77" in exc_info.value.detail


async def test_empty_request_does_not_query(engine, session_factory):
    async with session_factory() as db:
        table = await resolve_prices(db, [], [])

    assert table.meals == {}
    assert table.modifiers == {}
