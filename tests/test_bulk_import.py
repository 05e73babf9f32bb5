import pytest

from arcade_filemaker.bulk_import import BulkImporter
from arcade_filemaker.enums import DuplicatePolicy, ImportMode
from tests.fakes import FakeFileMakerClient


def _importer(client: FakeFileMakerClient, chunk_size: int = 50) -> BulkImporter:
    return BulkImporter(client, chunk_size=chunk_size, chunk_delay=0)


class TestCreateMode:
    @pytest.mark.asyncio
    async def test_failure_is_counted_and_kept(self):
        client = FakeFileMakerClient(fail_if=lambda method, data: data.get("Name") == "Broken")
        items = [{"Name": "Ada"}, {"Name": "Broken"}, {"Name": "Grace"}]

        result = await _importer(client, chunk_size=2).run("Contacts", items)

        assert (result.total, result.successful, result.failed, result.skipped) == (3, 2, 1, 0)
        assert result.errors[0].record == {"Name": "Broken"}
        assert "create_record rejected" in result.errors[0].error
        assert result.success_rate == "66.67%"
        assert result.failure_rate == "33.33%"
        assert [row["Name"] for row in client.rows("Contacts")] == ["Ada", "Grace"]

    @pytest.mark.asyncio
    async def test_field_mapping(self):
        client = FakeFileMakerClient()
        items = [{"email": "ada@example.com", "name": "Ada", "source": "crm"}]

        await _importer(client).run(
            "Contacts", items, field_mapping={"email": "Email", "name": "Full Name"}
        )

        assert client.rows("Contacts") == [{"Email": "ada@example.com", "Full Name": "Ada"}]

    @pytest.mark.asyncio
    async def test_non_object_item_fails(self):
        client = FakeFileMakerClient()

        result = await _importer(client).run("Contacts", [{"Name": "Ada"}, ["not", "a", "dict"]])

        assert result.successful == 1
        assert result.failed == 1
        assert result.errors[0].record == ["not", "a", "dict"]

    @pytest.mark.asyncio
    async def test_empty_import(self):
        result = await _importer(FakeFileMakerClient()).run("Contacts", [])

        assert (result.total, result.successful, result.failed, result.skipped) == (0, 0, 0, 0)
        assert result.to_dict()["summary"] == {"success_rate": "0.00%", "failure_rate": "0.00%"}


class TestUpdateOrCreateMode:
    @pytest.mark.asyncio
    async def test_repeat_import_updates_instead_of_duplicating(self):
        client = FakeFileMakerClient()
        items = [
            {"Email": "ada@example.com", "Name": "Ada"},
            {"Email": "grace@example.com", "Name": "Grace"},
        ]
        importer = _importer(client)

        for _ in range(2):
            result = await importer.run(
                "Contacts",
                items,
                mode=ImportMode.UPDATE_OR_CREATE,
                duplicate_policy=DuplicatePolicy.CREATE,
                key_fields=["Email"],
            )
            assert result.successful == 2

        assert len(client.rows("Contacts")) == 2
        updates = [call for call in client.calls if call[0] == "update_record"]
        assert len(updates) == 2

    @pytest.mark.asyncio
    async def test_update_policy_is_idempotent(self):
        client = FakeFileMakerClient()
        client.seed(
            "Contacts",
            [
                {"Email": "ada@example.com", "Name": "Ada"},
                {"Email": "grace@example.com", "Name": "Grace"},
            ],
        )
        items = [
            {"Email": "ada@example.com", "Name": "Ada Lovelace"},
            {"Email": "grace@example.com", "Name": "Grace Hopper"},
        ]
        importer = _importer(client)

        snapshots = []
        for _ in range(2):
            result = await importer.run(
                "Contacts",
                items,
                mode=ImportMode.UPDATE_OR_CREATE,
                duplicate_policy=DuplicatePolicy.UPDATE,
                key_fields=["Email"],
            )
            assert (result.successful, result.failed, result.skipped) == (2, 0, 0)
            snapshots.append([dict(row) for row in client.rows("Contacts")])

        assert snapshots[0] == snapshots[1] == items
        methods = {call[0] for call in client.calls}
        assert methods == {"find_records", "update_record"}
        assert len([call for call in client.calls if call[0] == "update_record"]) == 4

    @pytest.mark.asyncio
    async def test_match_updates_existing_record(self):
        client = FakeFileMakerClient()
        (record_id,) = client.seed("Contacts", [{"Email": "ada@example.com", "Name": "Ada"}])

        result = await _importer(client).run(
            "Contacts",
            [{"Email": "ada@example.com", "Name": "Ada Lovelace"}],
            mode=ImportMode.UPDATE_OR_CREATE,
            key_fields=["Email"],
        )

        assert result.successful == 1
        assert client.layouts["Contacts"][record_id].field_data["Name"] == "Ada Lovelace"

    @pytest.mark.parametrize("policy", [DuplicatePolicy.SKIP, DuplicatePolicy.UPDATE])
    @pytest.mark.asyncio
    async def test_no_match_is_skipped(self, policy):
        client = FakeFileMakerClient()

        result = await _importer(client).run(
            "Contacts",
            [{"Email": "new@example.com"}],
            mode=ImportMode.UPDATE_OR_CREATE,
            duplicate_policy=policy,
        )

        assert result.skipped == 1
        assert result.successful == 0
        assert client.rows("Contacts") == []

    @pytest.mark.asyncio
    async def test_missing_key_field_fails_the_record(self):
        client = FakeFileMakerClient()

        result = await _importer(client).run(
            "Contacts",
            [{"Name": "No email"}],
            mode=ImportMode.UPDATE_OR_CREATE,
            key_fields=["Email"],
        )

        assert result.failed == 1
        assert "Email" in result.errors[0].error
