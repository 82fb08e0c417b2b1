"""Tests for the single-row EditSession state machine."""

import asyncio
from datetime import date

import pytest

from kakeibo.models.ledger import TransactionType
from kakeibo.session import Editing, EditSession, Submitting, Viewing


@pytest.fixture
def session(client, store) -> EditSession:
    return EditSession(client, store)


async def loaded(store):
    await store.refresh()
    return store.get_transaction(1), store.get_transaction(2)


class TestTransitions:

    def test_starts_viewing(self, session):
        assert isinstance(session.state, Viewing)
        assert session.draft is None
        assert session.row_id is None
        assert session.is_editing() is False

    @pytest.mark.asyncio
    async def test_start_edit_seeds_draft(self, session, store):
        _, food = await loaded(store)

        session.start_edit(food)

        assert isinstance(session.state, Editing)
        assert session.row_id == 2
        assert session.draft.date == date(2024, 5, 3)
        assert session.draft.type == TransactionType.EXPENSE
        assert session.draft.category_id == 2
        assert session.draft.amount == 3200
        assert session.draft.memo == "スーパー"
        assert session.error is None

    @pytest.mark.asyncio
    async def test_start_edit_on_other_row_discards_draft(self, session, store):
        salary, food = await loaded(store)
        session.start_edit(salary)
        session.update_draft("memo", "下書き")

        session.start_edit(food)

        assert session.row_id == 2
        assert session.is_editing(1) is False
        assert session.draft.memo == "スーパー"

    @pytest.mark.asyncio
    async def test_update_draft_replaces_one_field(self, session, store):
        _, food = await loaded(store)
        session.start_edit(food)

        session.update_draft("amount", "4000")

        assert session.draft.amount == 4000
        assert session.draft.memo == "スーパー"
        assert session.row_id == 2

    @pytest.mark.asyncio
    async def test_invalid_draft_value_keeps_draft(self, session, store):
        _, food = await loaded(store)
        session.start_edit(food)

        with pytest.raises(ValueError):
            session.update_draft("amount", -1)

        assert session.draft.amount == 3200

    def test_update_draft_while_viewing_is_noop(self, session):
        session.update_draft("amount", 100)
        assert isinstance(session.state, Viewing)

    @pytest.mark.asyncio
    async def test_cancel_returns_to_viewing(self, session, store):
        salary, _ = await loaded(store)
        session.start_edit(salary)

        session.cancel()

        assert isinstance(session.state, Viewing)
        assert session.draft is None

    def test_cancel_while_viewing_is_noop(self, session):
        session.cancel()
        assert isinstance(session.state, Viewing)


class TestSubmit:

    @pytest.mark.asyncio
    async def test_successful_submit_refreshes_store(self, session, store, service):
        _, food = await loaded(store)
        session.start_edit(food)
        session.update_draft("amount", 4500)

        assert (await session.submit()).ok is True

        assert isinstance(session.state, Viewing)
        assert store.get_transaction(2).amount == -4500
        # the refresh is issued only after the update answered
        put_index = service.paths().index(("PUT", "/api/transactions/2"))
        assert ("GET", "/api/transactions") in service.paths()[put_index + 1:]

    @pytest.mark.asyncio
    async def test_outcome_carries_update_and_refresh(self, session, store):
        _, food = await loaded(store)
        session.start_edit(food)
        session.update_draft("memo", "まとめ買い")

        outcome = await session.submit()

        assert outcome.transaction.id == 2
        assert outcome.transaction.memo == "まとめ買い"
        assert outcome.refresh.ok is True
        assert outcome.error is None

    @pytest.mark.asyncio
    async def test_failed_refresh_after_update_is_reported(self, session, store, service):
        _, food = await loaded(store)
        session.start_edit(food)
        service.fail("GET", "/api/transactions", status=503)

        outcome = await session.submit()

        assert outcome.ok is True
        assert outcome.refresh.ok is False
        assert outcome.refresh.error == "収支データの取得に失敗しました: 503"
        assert isinstance(session.state, Viewing)

    @pytest.mark.asyncio
    async def test_failed_submit_keeps_draft_and_reports_error(self, session, store, service):
        _, food = await loaded(store)
        session.start_edit(food)
        session.update_draft("memo", "まとめ買い")
        draft_before = session.draft

        service.fail_with_error("PUT", "/api/transactions/2", 500, "収支の更新に失敗しました: db down")
        assert (await session.submit()).ok is False

        assert isinstance(session.state, Editing)
        assert session.row_id == 2
        assert session.draft == draft_before
        assert session.error == "収支の更新に失敗しました: db down"

    @pytest.mark.asyncio
    async def test_failed_submit_can_be_retried(self, session, store, service):
        _, food = await loaded(store)
        session.start_edit(food)
        service.disconnect("PUT", "/api/transactions/2")
        await session.submit()
        assert session.error

        service.clear_failures()
        assert (await session.submit()).ok is True
        assert isinstance(session.state, Viewing)

    @pytest.mark.asyncio
    async def test_submit_while_viewing_is_noop(self, session, service):
        assert (await session.submit()).ok is False
        assert service.requests == []

    @pytest.mark.asyncio
    async def test_double_submit_is_rejected(self, session, store, service):
        _, food = await loaded(store)
        session.start_edit(food)

        gate = service.hold_requests()
        service.request_seen.clear()
        first = asyncio.create_task(session.submit())
        await service.request_seen.wait()

        assert isinstance(session.state, Submitting)
        assert (await session.submit()).ok is False

        gate.set()
        assert (await first).ok is True
        assert service.paths().count(("PUT", "/api/transactions/2")) == 1

    @pytest.mark.asyncio
    async def test_start_edit_while_submitting_is_ignored(self, session, store, service):
        salary, food = await loaded(store)
        session.start_edit(food)

        gate = service.hold_requests()
        service.request_seen.clear()
        task = asyncio.create_task(session.submit())
        await service.request_seen.wait()

        session.start_edit(salary)
        assert session.row_id == 2
        assert session.is_submitting is True

        gate.set()
        await task


class TestNotifyDeleted:

    @pytest.mark.asyncio
    async def test_deleting_edited_row_ends_edit(self, session, store):
        _, food = await loaded(store)
        session.start_edit(food)

        session.notify_deleted(2)

        assert isinstance(session.state, Viewing)

    @pytest.mark.asyncio
    async def test_deleting_other_row_is_noop(self, session, store):
        _, food = await loaded(store)
        session.start_edit(food)

        session.notify_deleted(1)

        assert isinstance(session.state, Editing)
        assert session.row_id == 2

    @pytest.mark.asyncio
    async def test_deleted_while_submitting_stays_viewing(self, session, store, service):
        _, food = await loaded(store)
        session.start_edit(food)
        service.fail("PUT", "/api/transactions/2", status=404)

        gate = service.hold_requests()
        service.request_seen.clear()
        task = asyncio.create_task(session.submit())
        await service.request_seen.wait()

        session.notify_deleted(2)
        assert isinstance(session.state, Viewing)

        gate.set()
        assert (await task).ok is False
        # the late failure must not resurrect the edit
        assert isinstance(session.state, Viewing)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
