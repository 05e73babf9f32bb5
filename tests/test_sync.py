from datetime import timedelta, timezone

import pytest

from arcade_filemaker.cancellation import CancellationToken
from arcade_filemaker.enums import ConflictStrategy
from arcade_filemaker.pagination import Paginator
from arcade_filemaker.sync import SyncEngine, build_watermark_query
from tests.fakes import FakeFileMakerClient


def _engine(client: FakeFileMakerClient) -> SyncEngine:
    return SyncEngine(Paginator(client, page_delay=0), client, page_size=2)


class TestSyncEngine:
    """Tests for SyncEngine.run"""

    @pytest.mark.asyncio
    async def test_adds_and_updates_by_key(self):
        client = FakeFileMakerClient()
        client.seed(
            "Source",
            [
                {"Code": "A1", "Name": "Alpha"},
                {"Code": "B2", "Name": "Beta"},
                {"Code": "C3", "Name": "Gamma"},
            ],
        )
        (target_id,) = client.seed("Target", [{"Code": "B2", "Name": "Old beta"}])

        result = await _engine(client).run("Source", "Target", "Code")

        assert result.added == 2
        assert result.updated == 1
        assert result.total_processed == 3
        assert result.errors == []
        assert result.conflict_strategy == ConflictStrategy.SOURCE_WINS.value
        assert result.next_watermark is not None
        assert client.layouts["Target"][target_id].field_data["Name"] == "Beta"
        assert len(client.rows("Target")) == 3
        assert result.to_dict()["summary"]["success_rate"] == "100.00%"

    @pytest.mark.asyncio
    async def test_second_run_only_updates(self):
        client = FakeFileMakerClient()
        client.seed("Source", [{"Code": "A1", "Name": "Alpha"}])
        engine = _engine(client)

        await engine.run("Source", "Target", "Code")
        result = await engine.run("Source", "Target", "Code")

        assert (result.added, result.updated) == (0, 1)
        assert len(client.rows("Target")) == 1

    @pytest.mark.asyncio
    async def test_record_without_key_is_an_error(self):
        client = FakeFileMakerClient()
        client.seed("Source", [{"Code": "", "Name": "Blank"}, {"Code": "A1", "Name": "Alpha"}])

        result = await _engine(client).run("Source", "Target", "Code")

        assert result.total_processed == 2
        assert result.added == 1
        assert len(result.errors) == 1
        assert result.errors[0].record == {"Code": "", "Name": "Blank"}
        assert "Code" in result.errors[0].error

    @pytest.mark.asyncio
    async def test_target_write_failure_is_reported(self):
        client = FakeFileMakerClient(
            fail_if=lambda method, data: method == "create_record" and data.get("Code") == "X"
        )
        client.seed("Source", [{"Code": "X"}, {"Code": "Y"}])

        result = await _engine(client).run("Source", "Target", "Code")

        assert result.added == 1
        assert len(result.errors) == 1
        assert result.success_rate == "50.00%"

    @pytest.mark.asyncio
    async def test_watermark_filters_source(self):
        client = FakeFileMakerClient()
        client.seed("Source", [{"Code": "A1"}])

        await _engine(client).run(
            "Source", "Target", "Code", watermark="2024-05-01T12:00:00Z"
        )

        source_query = next(
            call[2] for call in client.calls if call[0] == "find_records" and call[1] == "Source"
        )
        assert source_query == {"ModificationTimestamp": ">05/01/2024 12:00:00"}

    @pytest.mark.asyncio
    async def test_incomplete_run_keeps_watermark(self):
        client = FakeFileMakerClient()
        client.seed("Source", [{"Code": "A1"}, {"Code": "B2"}, {"Code": "C3"}])
        engine = SyncEngine(Paginator(client, page_delay=0), client, page_size=2, page_ceiling=1)

        result = await engine.run("Source", "Target", "Code", watermark="2024-05-01T12:00:00Z")

        assert result.has_more is True
        assert result.total_processed == 2
        assert result.next_watermark == "2024-05-01T12:00:00Z"

    @pytest.mark.asyncio
    async def test_incomplete_first_run_has_no_watermark(self):
        client = FakeFileMakerClient()
        client.seed("Source", [{"Code": "A1"}, {"Code": "B2"}, {"Code": "C3"}])
        engine = SyncEngine(Paginator(client, page_delay=0), client, page_size=2, page_ceiling=1)

        result = await engine.run("Source", "Target", "Code")

        assert result.has_more is True
        assert result.next_watermark is None

    @pytest.mark.asyncio
    async def test_cancelled_run_keeps_watermark(self):
        client = FakeFileMakerClient()
        client.seed("Source", [{"Code": "A1"}])
        token = CancellationToken("sync-1")
        token.cancel()

        result = await _engine(client).run(
            "Source", "Target", "Code", watermark="2024-05-01T12:00:00Z", cancel_token=token
        )

        assert result.cancelled is True
        assert result.total_processed == 0
        assert result.next_watermark == "2024-05-01T12:00:00Z"


class TestWatermarkQuery:
    def test_none_without_watermark(self):
        assert build_watermark_query(None, "ModificationTimestamp") is None

    def test_converts_offset_to_utc(self):
        query = build_watermark_query("2024-05-01T14:30:00+02:00", "Modified")
        assert query == {"Modified": ">05/01/2024 12:30:00"}

    def test_renders_in_server_zone(self):
        eastern = timezone(timedelta(hours=-5))
        query = build_watermark_query("2024-05-01T12:00:00Z", "Modified", eastern)
        assert query == {"Modified": ">05/01/2024 07:00:00"}

    @pytest.mark.asyncio
    async def test_engine_uses_server_zone(self):
        client = FakeFileMakerClient()
        client.seed("Source", [{"Code": "A1"}])
        engine = SyncEngine(
            Paginator(client, page_delay=0),
            client,
            server_timezone=timezone(timedelta(hours=2)),
        )

        await engine.run("Source", "Target", "Code", watermark="2024-05-01T12:00:00Z")

        source_query = next(
            call[2] for call in client.calls if call[0] == "find_records" and call[1] == "Source"
        )
        assert source_query == {"ModificationTimestamp": ">05/01/2024 14:00:00"}
