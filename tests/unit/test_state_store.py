"""Tests del State Store en memoria y en JSON."""

import json

import pytest

from orbita.core.errors import StoreCorrupt
from orbita.core.graph import ResourceKind
from orbita.core.runtime import ActualStateRecord, JsonStateStore, MemoryStateStore


def make_record(node_id="N1", provider_id="vpc-00000001", **extra):
    return ActualStateRecord(
        node_id=node_id,
        kind=extra.pop("kind", ResourceKind.NETWORK),
        provider_id=provider_id,
        applied=extra.pop("applied", {"cidr_block": "10.0.0.0/16"}),
        fingerprint=extra.pop("fingerprint", "abc123"),
        **extra,
    )


class TestMemoryStateStore:
    """Store en memoria."""

    def test_put_get_delete(self):
        """put persiste, delete quita."""
        store = MemoryStateStore()
        store.put("N1", make_record())

        assert store.get("N1").provider_id == "vpc-00000001"

        store.delete("N1")

        assert store.get("N1") is None
        assert store.saves == 2

    def test_load_returns_copy(self):
        """Modificar lo devuelto por load no afecta al store."""
        store = MemoryStateStore({"N1": make_record()})
        records = store.load()
        records.clear()

        assert "N1" in store.load()


class TestJsonStateStore:
    """Store persistido en archivo."""

    def test_missing_file_is_empty(self, tmp_path):
        """Sin archivo el estado está vacío."""
        assert JsonStateStore(tmp_path / "s.json").load() == {}

    def test_round_trip_between_instances(self, tmp_path):
        """Lo escrito por una instancia lo lee otra."""
        path = tmp_path / "s.json"
        JsonStateStore(path).put("N1", make_record(outputs={"status": "available"}, dependencies=["X"]))

        record = JsonStateStore(path).load()["N1"]

        assert record.kind == ResourceKind.NETWORK
        assert record.outputs == {"status": "available"}
        assert record.dependencies == ["X"]
        assert record.tainted is False

    def test_serial_increments_across_instances(self, tmp_path):
        """El serial continúa aunque la instancia nueva no haya hecho load."""
        path = tmp_path / "s.json"
        first = JsonStateStore(path)
        first.put("N1", make_record())
        first.put("N2", make_record("N2", "vpc-00000002"))

        second = JsonStateStore(path)
        second.save({})

        assert json.loads(path.read_text())["serial"] == 3
        assert json.loads(path.read_text())["resources"] == {}

    def test_no_temporary_files_left(self, tmp_path):
        """La escritura atómica no deja temporales."""
        store = JsonStateStore(tmp_path / "s.json")
        store.put("N1", make_record())
        store.delete("N1")

        assert [p.name for p in tmp_path.iterdir()] == ["s.json"]

    def test_corrupt_file_raises(self, tmp_path):
        """Un documento ilegible falla con StoreCorrupt."""
        path = tmp_path / "s.json"
        path.write_text("{no es json")

        with pytest.raises(StoreCorrupt):
            JsonStateStore(path).load()

    def test_invalid_record_raises(self, tmp_path):
        """Un registro que no valida también es corrupción."""
        path = tmp_path / "s.json"
        path.write_text(json.dumps({"version": 1, "serial": 1, "resources": {"N1": {"kind": "Network"}}}))

        with pytest.raises(StoreCorrupt):
            JsonStateStore(path).load()

    def test_corrupt_as_empty_keeps_backup(self, tmp_path):
        """En modo tolerante se aparta el archivo y se sigue con estado vacío."""
        path = tmp_path / "s.json"
        path.write_text("[]")

        store = JsonStateStore(path, treat_corrupt_as_empty=True)

        assert store.load() == {}
        assert (tmp_path / "s.json.corrupt").read_text() == "[]"
        assert not path.exists()

    @pytest.mark.parametrize("target", ["fsync", "dump"])
    def test_failed_write_keeps_previous_snapshot(self, tmp_path, monkeypatch, target):
        """Si la escritura falla queda el documento anterior, el mismo serial y ningún temporal."""
        path = tmp_path / "s.json"
        store = JsonStateStore(path)
        store.put("N1", make_record())
        before = path.read_text()

        def boom(*args, **kwargs):
            raise OSError("disco lleno")

        if target == "fsync":
            monkeypatch.setattr("orbita.core.runtime.state.os.fsync", boom)
        else:
            monkeypatch.setattr("orbita.core.runtime.state.json.dump", boom)

        with pytest.raises(OSError):
            store.put("N2", make_record("N2", "vpc-00000002"))

        assert path.read_text() == before
        assert store.serial == 1
        assert set(store.load()) == {"N1"}
        assert [p.name for p in tmp_path.iterdir()] == ["s.json"]
