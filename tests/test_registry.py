"""Tests for the file registry."""

import asyncio
import re
from datetime import datetime

import pytest

from contextvault.exceptions import NotFoundError, ValidationError
from contextvault.registry import FileMetadata, FileRegistry, FileStatus, RegistryState
from contextvault.storage import MemoryActorStorage, SQLiteActorStorage


class TestFileRegistry:
    """Tests for FileRegistry."""

    @pytest.mark.asyncio
    async def test_register(self, registry):
        """New entries start out processing."""
        document_id = await registry.register("notes.txt", "text/plain", 120)
        meta = await registry.get(document_id)

        assert re.fullmatch(r"file_1_\d+", document_id)
        assert meta.name == "notes.txt"
        assert meta.type == "text/plain"
        assert meta.total_size == 120
        assert meta.chunk_count == 0
        assert meta.status == FileStatus.PROCESSING
        assert meta.error is None
        assert isinstance(meta.uploaded_at, datetime)

    @pytest.mark.asyncio
    async def test_ids_are_unique(self, registry):
        ids = [await registry.register(f"f{i}.txt", "text/plain", 1) for i in range(20)]
        assert len(set(ids)) == 20

    @pytest.mark.asyncio
    async def test_concurrent_registers(self, registry):
        """Concurrent registrations never lose an entry."""
        ids = await asyncio.gather(*(
            registry.register(f"f{i}.txt", "text/plain", i) for i in range(25)
        ))

        assert len(set(ids)) == 25
        assert len(await registry.list()) == 25

    @pytest.mark.asyncio
    async def test_update_merges_fields(self, registry):
        document_id = await registry.register("a.txt", "text/plain", 10)
        updated = await registry.update(document_id, chunk_count=3, status=FileStatus.COMPLETED)

        assert updated.chunk_count == 3
        assert updated.status == FileStatus.COMPLETED
        assert updated.name == "a.txt"
        assert (await registry.get(document_id)).chunk_count == 3

    @pytest.mark.asyncio
    async def test_update_accepts_status_string(self, registry):
        document_id = await registry.register("a.txt", "text/plain", 10)
        updated = await registry.update(document_id, status="error", error="boom")

        assert updated.status == FileStatus.ERROR
        assert updated.error == "boom"

    @pytest.mark.asyncio
    async def test_update_unknown_document(self, registry):
        with pytest.raises(NotFoundError):
            await registry.update("file_404_0", chunk_count=1)

    @pytest.mark.asyncio
    async def test_update_rejects_id_change(self, registry):
        document_id = await registry.register("a.txt", "text/plain", 10)

        with pytest.raises(ValidationError):
            await registry.update(document_id, document_id="file_9_9")
        with pytest.raises(ValidationError):
            await registry.update(document_id, colour="blue")

    @pytest.mark.asyncio
    async def test_update_rejects_invalid_value(self, registry):
        document_id = await registry.register("a.txt", "text/plain", 10)

        with pytest.raises(ValidationError):
            await registry.update(document_id, status="archived")

    @pytest.mark.asyncio
    async def test_terminal_status_is_final(self, registry):
        """Status only moves forward out of processing."""
        document_id = await registry.register("a.txt", "text/plain", 10)
        await registry.update(document_id, status=FileStatus.COMPLETED)

        with pytest.raises(ValidationError):
            await registry.update(document_id, status=FileStatus.PROCESSING)
        with pytest.raises(ValidationError):
            await registry.update(document_id, status=FileStatus.ERROR)

        # other fields stay editable
        meta = await registry.update(document_id, chunk_count=7)
        assert meta.status == FileStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_get_unknown(self, registry):
        with pytest.raises(NotFoundError) as exc_info:
            await registry.get("file_404_0")
        assert exc_info.value.code == 404

    @pytest.mark.asyncio
    async def test_list_in_registration_order(self, registry):
        ids = [await registry.register(name, "text/plain", 1) for name in ["c", "a", "b"]]
        listed = await registry.list()

        assert [m.document_id for m in listed] == ids
        assert [m.name for m in listed] == ["c", "a", "b"]

    @pytest.mark.asyncio
    async def test_delete(self, registry):
        document_id = await registry.register("a.txt", "text/plain", 10)

        assert await registry.delete(document_id) is True
        assert await registry.delete(document_id) is False
        with pytest.raises(NotFoundError):
            await registry.get(document_id)

    @pytest.mark.asyncio
    async def test_state_stored_as_association_list(self):
        storage = MemoryActorStorage()
        registry = FileRegistry(storage)
        document_id = await registry.register("a.txt", "text/plain", 10)

        stored = await storage.get("state")
        assert stored["last_file_id"] == 1
        assert [pair[0] for pair in stored["files"]] == [document_id]

    @pytest.mark.asyncio
    async def test_counter_survives_restart(self, tmp_path):
        """A new registry on the same database never reissues an id."""
        db_path = str(tmp_path / "registry.db")

        first = FileRegistry(SQLiteActorStorage(db_path, actor="registry"))
        old_ids = {await first.register(f"f{i}.txt", "text/plain", 1) for i in range(3)}
        await first.delete(next(iter(old_ids)))

        second = FileRegistry(SQLiteActorStorage(db_path, actor="registry"))
        new_id = await second.register("g.txt", "text/plain", 1)

        assert new_id not in old_ids
        assert new_id.startswith("file_4_")
        assert len(await second.list()) == 3


class TestRegistryState:
    """Tests for RegistryState storage encoding."""

    def test_round_trip(self):
        state = RegistryState(
            files={"file_1_0": FileMetadata(document_id="file_1_0", name="a", type="text/plain")},
            last_file_id=1,
        )
        restored = RegistryState.from_storage(state.to_storage())

        assert list(restored.files) == ["file_1_0"]
        assert restored.last_file_id == 1

    def test_empty(self):
        assert RegistryState.from_storage(None).files == {}
        assert RegistryState.from_storage({}).last_file_id == 0
