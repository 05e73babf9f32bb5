import pytest

from arcade_filemaker.batch import BatchExecutor
from arcade_filemaker.cancellation import CancellationToken
from arcade_filemaker.enums import BatchOperation
from arcade_filemaker.exceptions import FileMakerValidationError
from tests.fakes import FakeFileMakerClient


def _fails_on(name: str):
    return lambda method, field_data: field_data.get("Name") == name


class TestBatchExecutor:
    """Tests for BatchExecutor"""

    @pytest.mark.asyncio
    async def test_create_in_chunks(self):
        client = FakeFileMakerClient()
        executor = BatchExecutor(client, chunk_delay=0)
        items = [{"Name": f"Contact {n}"} for n in range(5)]

        report = await executor.run(BatchOperation.CREATE, "Contacts", items, chunk_size=2)

        assert report.total_records == 5
        assert report.total_chunks == 3
        assert [outcome.item_count for outcome in report.outcomes] == [2, 2, 1]
        assert all(outcome.success for outcome in report.outcomes)
        assert [row["Name"] for row in client.rows("Contacts")] == [i["Name"] for i in items]
        indexes = [item.index for outcome in report.outcomes for item in outcome.items]
        assert indexes == [0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_create_accepts_field_data_wrapper(self):
        client = FakeFileMakerClient()
        executor = BatchExecutor(client, chunk_delay=0)

        await executor.run("create", "Contacts", [{"fieldData": {"Name": "Ada"}}])

        assert client.rows("Contacts") == [{"Name": "Ada"}]

    @pytest.mark.asyncio
    async def test_failing_item_does_not_stop_later_chunks(self):
        client = FakeFileMakerClient(fail_if=_fails_on("bad"))
        executor = BatchExecutor(client, chunk_delay=0)
        items = [{"Name": "a"}, {"Name": "b"}, {"Name": "bad"}, {"Name": "c"}, {"Name": "d"}]

        report = await executor.run(BatchOperation.CREATE, "Contacts", items, chunk_size=2)

        first, second, third = report.outcomes
        assert first.success is True
        assert second.success is False
        assert len(second.errors) == 1
        assert "create_record rejected" in second.errors[0]
        assert second.items[0].success is False
        assert second.items[0].index == 2
        assert second.items[1].success is True
        assert third.success is True
        assert len(client.rows("Contacts")) == 4

        summary = report.to_dict()["summary"]
        assert summary == {"successful_chunks": 2, "failed_chunks": 1, "total_errors": 1}

    @pytest.mark.asyncio
    async def test_unsupported_operation_raises_before_any_call(self):
        client = FakeFileMakerClient()
        executor = BatchExecutor(client, chunk_delay=0)

        with pytest.raises(FileMakerValidationError):
            await executor.run("upsert", "Contacts", [{"Name": "Ada"}])

        assert client.calls == []

    @pytest.mark.asyncio
    async def test_update_and_delete(self):
        client = FakeFileMakerClient()
        first, second = client.seed("Contacts", [{"Name": "Ada"}, {"Name": "Grace"}])
        executor = BatchExecutor(client, chunk_delay=0)

        updated = await executor.run(
            BatchOperation.UPDATE,
            "Contacts",
            [{"recordId": first, "fieldData": {"Name": "Ada L."}}],
        )
        deleted = await executor.run(BatchOperation.DELETE, "Contacts", [{"record_id": second}])

        assert updated.outcomes[0].items[0].record_id == first
        assert deleted.outcomes[0].success is True
        assert client.rows("Contacts") == [{"Name": "Ada L."}]

    @pytest.mark.asyncio
    async def test_malformed_items_are_reported(self):
        client = FakeFileMakerClient()
        executor = BatchExecutor(client, chunk_delay=0)

        report = await executor.run(
            BatchOperation.UPDATE,
            "Contacts",
            [{"fieldData": {"Name": "no id"}}, "not an object", {"recordId": "99"}],
        )

        errors = report.outcomes[0].errors
        assert len(errors) == 3
        assert "recordId" in errors[0]
        assert "Expected an object" in errors[1]
        assert "fieldData" in errors[2]

    @pytest.mark.asyncio
    async def test_empty_input(self):
        report = await BatchExecutor(FakeFileMakerClient(), chunk_delay=0).run(
            BatchOperation.CREATE, "Contacts", []
        )

        assert report.total_chunks == 0
        assert report.outcomes == []

    @pytest.mark.asyncio
    async def test_cancel_stops_between_items(self):
        token = CancellationToken("run-1")
        client = FakeFileMakerClient()
        original_create = client.create_record

        async def create_then_cancel(layout, field_data):
            record_id = await original_create(layout, field_data)
            token.cancel()
            return record_id

        client.create_record = create_then_cancel
        executor = BatchExecutor(client, chunk_delay=0)
        items = [{"Name": str(n)} for n in range(4)]

        report = await executor.run(
            BatchOperation.CREATE, "Contacts", items, chunk_size=2, cancel_token=token
        )

        assert report.cancelled is True
        assert len(report.outcomes) == 1
        assert report.outcomes[0].success is False
        assert len(client.rows("Contacts")) == 1
