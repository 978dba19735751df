"""Testes do registro de sessões em memória."""

from __future__ import annotations

from app.infra.stores.memory_stores import MemoryInstanceRegistry


class TestMemoryInstanceRegistry:
    """Testes do MemoryInstanceRegistry."""

    def test_put_and_lookup(self) -> None:
        registry = MemoryInstanceRegistry()

        session = registry.put("s1", "wa_1", "created")

        assert session.session_id == "s1"
        assert registry.find_instance_name("s1") == "wa_1"
        assert registry.find_session_id("wa_1") == "s1"
        assert len(registry) == 1

    def test_put_overwrites_never_duplicates(self) -> None:
        registry = MemoryInstanceRegistry()
        registry.put("s1", "wa_1", "created")

        registry.put("s1", "wa_2", "created")

        assert len(registry) == 1
        assert registry.find_instance_name("s1") == "wa_2"
        assert registry.find_session_id("wa_1") is None

    def test_unknown_lookups_return_none(self) -> None:
        registry = MemoryInstanceRegistry()
        assert registry.get("missing") is None
        assert registry.find_instance_name("missing") is None
        assert registry.find_session_id("wa_x") is None

    def test_update_status_by_instance(self) -> None:
        registry = MemoryInstanceRegistry()
        registry.put("s1", "wa_1", "created")

        assert registry.update_status("wa_1", "open") is True
        assert registry.update_status("wa_x", "open") is False
        assert registry.get("s1").status == "open"

    def test_remove(self) -> None:
        registry = MemoryInstanceRegistry()
        registry.put("s1", "wa_1", "created")

        assert registry.remove("s1") is True
        assert registry.remove("s1") is False
        assert registry.list_sessions() == []

    def test_session_serialization(self) -> None:
        registry = MemoryInstanceRegistry()
        registry.put("s1", "wa_1", "qr_issued")

        data = registry.list_sessions()[0].to_dict()

        assert data["sessionId"] == "s1"
        assert data["instanceName"] == "wa_1"
        assert data["status"] == "qr_issued"
        assert "createdAt" in data
