from datetime import datetime
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from src.app.use_cases.audit.get_audit_events_use_case import (
    GetAuditEventsUseCase,
    decode_cursor,
    encode_cursor,
)
from src.domain.entities import AuditEvent


def _event(action="login"):
    return AuditEvent(
        id=uuid4(), tenant_id="acme", actor="u-100", action=action,
        created_at=datetime(2026, 1, 15, 9, 0, 0),
    )


def test_cursor_points_at_event_position():
    event = _event()

    assert decode_cursor(encode_cursor(event)) == (event.created_at, event.id)


@pytest.mark.parametrize("cursor", ["", "bm9wZQ", "!!!", "MjAyNi0wMS0xNXx4"])
def test_garbage_cursor_decodes_to_none(cursor):
    assert decode_cursor(cursor) is None


@pytest.mark.asyncio
async def test_extra_row_produces_next_cursor(mock_uow):
    events = [_event() for _ in range(3)]
    mock_uow.audit_events.list_for_tenant = AsyncMock(return_value=events)

    result = await GetAuditEventsUseCase(mock_uow).execute("acme", "owner", limit=2)

    page = result.value
    assert [e.id for e in page.events] == [str(events[0].id), str(events[1].id)]
    assert decode_cursor(page.next_cursor) == (events[1].created_at, events[1].id)
    assert mock_uow.audit_events.list_for_tenant.await_args.kwargs["limit"] == 3


@pytest.mark.asyncio
async def test_non_admin_is_forbidden(mock_uow):
    result = await GetAuditEventsUseCase(mock_uow).execute("acme", "customer")

    assert result.error.code == "FORBIDDEN"
