"""
Name: Credential Store Tests

Responsibilities:
  - FileCredentialStore: save/load/clear, 0600 permissions, missing file
  - InMemoryCredentialStore basics
"""

import os
import stat
import sys

import pytest

from rentalhub.client import FileCredentialStore, InMemoryCredentialStore

pytestmark = pytest.mark.unit


def test_file_store_round_trip(tmp_path):
    store = FileCredentialStore(tmp_path / "nested" / "token")
    assert store.load() is None

    store.save("tok-1")
    assert store.load() == "tok-1"

    store.save("tok-2")
    assert store.load() == "tok-2"
    assert not (tmp_path / "nested" / "token.tmp").exists()

    store.clear()
    assert store.load() is None
    store.clear()


@pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX permissions")
def test_file_store_is_private(tmp_path):
    store = FileCredentialStore(tmp_path / "token")
    store.save("tok-1")
    mode = stat.S_IMODE(os.stat(store.path).st_mode)
    assert mode == 0o600


def test_file_store_sees_external_changes(tmp_path):
    path = tmp_path / "token"
    store = FileCredentialStore(path)
    store.save("tok-1")

    path.write_text("tok-from-other-process\n", encoding="utf-8")
    assert store.load() == "tok-from-other-process"

    path.write_text("   ", encoding="utf-8")
    assert store.load() is None


def test_in_memory_store():
    store = InMemoryCredentialStore("seed")
    assert store.load() == "seed"
    store.save("tok")
    assert store.load() == "tok"
    store.clear()
    assert store.load() is None
