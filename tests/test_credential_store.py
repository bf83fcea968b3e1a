from __future__ import annotations

import json
import os
import stat

import pytest

from tokenrelay.auth_token.store import (
    CredentialKind,
    CredentialStore,
    FileCredentialStore,
    MemoryCredentialStore,
    TieredCredentialStore,
)


def test_memory_store_get_set_clear():
    store = MemoryCredentialStore()
    assert store.get(CredentialKind.ACCESS) is None

    store.set(CredentialKind.ACCESS, "A1")
    store.set(CredentialKind.REFRESH, "R1")
    assert store.get(CredentialKind.ACCESS) == "A1"

    store.clear(CredentialKind.ACCESS)
    assert store.get(CredentialKind.ACCESS) is None
    assert store.get(CredentialKind.REFRESH) == "R1"

    store.clear_all()
    assert store.get(CredentialKind.REFRESH) is None


def test_memory_store_empty_value_clears():
    store = MemoryCredentialStore({CredentialKind.ACCESS: "A1"})
    store.set(CredentialKind.ACCESS, "")
    assert store.get(CredentialKind.ACCESS) is None


def test_kind_accepts_storage_key_strings():
    store = MemoryCredentialStore()
    store.set("access-token", "A1")  # type: ignore[arg-type]
    assert store.get(CredentialKind.ACCESS) == "A1"


def test_stores_satisfy_protocol(tmp_path):
    assert isinstance(MemoryCredentialStore(), CredentialStore)
    assert isinstance(FileCredentialStore(tmp_path / "c.json"), CredentialStore)


def test_file_store_persists_across_instances(tmp_path):
    path = tmp_path / "nested" / "credentials.json"
    FileCredentialStore(path).set(CredentialKind.REFRESH, "R1")

    reopened = FileCredentialStore(path)
    assert reopened.get(CredentialKind.REFRESH) == "R1"
    assert json.loads(path.read_text()) == {"refresh-token": "R1"}


def test_file_store_is_owner_only(tmp_path):
    path = tmp_path / "credentials.json"
    FileCredentialStore(path).set(CredentialKind.ACCESS, "A1")
    mode = stat.S_IMODE(os.stat(path).st_mode)
    assert mode == 0o600


def test_file_store_missing_or_corrupt_file_reads_empty(tmp_path):
    path = tmp_path / "credentials.json"
    store = FileCredentialStore(path)
    assert store.get(CredentialKind.ACCESS) is None

    path.write_text("{not json")
    assert store.get(CredentialKind.ACCESS) is None

    path.write_text('["a", "b"]')
    assert store.get(CredentialKind.ACCESS) is None


def test_file_store_clear_all_keeps_unrelated_keys(tmp_path):
    path = tmp_path / "credentials.json"
    path.write_text(json.dumps({"access-token": "A1", "refresh-token": "R1", "other": "x"}))
    store = FileCredentialStore(path)

    store.clear_all()

    assert json.loads(path.read_text()) == {"other": "x"}


def test_file_store_leaves_no_temp_files(tmp_path):
    store = FileCredentialStore(tmp_path / "credentials.json")
    store.set(CredentialKind.ACCESS, "A1")
    store.set(CredentialKind.REFRESH, "R1")
    store.clear(CredentialKind.ACCESS)
    assert sorted(p.name for p in tmp_path.iterdir()) == ["credentials.json"]


def test_file_store_rejects_bad_path_type():
    with pytest.raises(TypeError):
        FileCredentialStore(123)  # type: ignore[arg-type]


def test_tiered_store_routes_each_kind(tmp_path):
    session = MemoryCredentialStore()
    durable = FileCredentialStore(tmp_path / "credentials.json")
    store = TieredCredentialStore(
        {CredentialKind.ACCESS: session, CredentialKind.REFRESH: durable}
    )

    store.set(CredentialKind.ACCESS, "A1")
    store.set(CredentialKind.REFRESH, "R1")

    assert session.get(CredentialKind.ACCESS) == "A1"
    assert session.get(CredentialKind.REFRESH) is None
    assert durable.get(CredentialKind.REFRESH) == "R1"
    assert durable.get(CredentialKind.ACCESS) is None

    store.clear_all()
    assert store.get(CredentialKind.ACCESS) is None
    assert durable.get(CredentialKind.REFRESH) is None


def test_tiered_store_requires_every_kind():
    with pytest.raises(ValueError):
        TieredCredentialStore({CredentialKind.ACCESS: MemoryCredentialStore()})
