"""Tests for the local file slots and the YAML caches"""
from unittest.mock import Mock

import pytest
import yaml

from conftest import make_task
from worktree_tasks.models.task import TaskStatus
from worktree_tasks.services.cache_service import CacheService
from worktree_tasks.services.file_store import FileStore, StoreFiles


class TestFileStore:

    def test_created_on_first_use(self, temp_dir):
        store = FileStore("token", str(temp_dir / "nested" / "store"))
        assert store.path.exists()
        assert store.read() == ""

    def test_existing_content_kept(self, temp_dir):
        (temp_dir / "token").write_text("pk_1\n")
        store = FileStore("token", str(temp_dir))
        assert store.read() == "pk_1"

    def test_read_strips_one_trailing_newline(self, temp_dir):
        store = FileStore("slot", str(temp_dir))
        store.write("a\n\n")
        assert store.read() == "a\n"

    def test_write_overwrites(self, temp_dir):
        store = FileStore("slot", str(temp_dir))
        store.write("one")
        store.write("two")
        assert store.read() == "two"

    def test_append_adds_timestamped_lines(self, temp_dir):
        store = FileStore("error-log", str(temp_dir))
        store.append("first")
        store.append("second")
        lines = store.read().split("\n")
        assert len(lines) == 2
        assert lines[0].startswith("[")
        assert lines[0].endswith("] first")
        assert lines[1].endswith("] second")

    def test_store_files_layout(self, temp_dir):
        files = StoreFiles.open(str(temp_dir))
        assert files.token.path.name == "token"
        assert files.tasks.path.name == "tasks.yaml"
        assert files.statuses.path.name == "statuses.yaml"
        assert files.error.path.name == "error-log"


@pytest.fixture
def provider():
    return Mock()


@pytest.fixture
def cache(files, provider):
    return CacheService(files, provider)


class TestTaskCache:

    def test_empty_cache(self, cache):
        assert cache.load_tasks() == {}

    def test_save_and_load(self, cache, files):
        tasks = {"abc123": make_task("abc123", name="Fix login")}
        cache.save_tasks(tasks)

        assert isinstance(yaml.safe_load(files.tasks.read()), list)
        loaded = cache.load_tasks()
        assert loaded["abc123"].name == "Fix login"
        assert loaded["abc123"].list.id == "l1"

    def test_invalid_entries_skipped(self, cache, files):
        files.tasks.write(
            "- {id: a1, name: Good, status: {id: s1, label: open}, list: {id: l1, name: L}}\n"
            "- {id: a2}\n"
            "- just a string\n"
        )
        assert list(cache.load_tasks()) == ["a1"]

    def test_malformed_yaml(self, cache, files):
        files.tasks.write("- [unclosed")
        assert cache.load_tasks() == {}

    def test_not_a_list(self, cache, files):
        files.tasks.write("abc: 1\n")
        assert cache.load_tasks() == {}


class TestStatusCache:

    def test_fetch_on_miss_and_persist(self, cache, provider, files):
        provider.get_statuses.return_value = [TaskStatus(id="s1", label="open")]

        statuses = cache.load_or_fetch_statuses("l1")

        assert statuses == [TaskStatus(id="s1", label="open")]
        provider.get_statuses.assert_called_once_with("l1")
        assert yaml.safe_load(files.statuses.read()) == {"l1": [{"id": "s1", "label": "open"}]}

    def test_hit_does_not_fetch(self, cache, provider, files):
        files.statuses.write("l1:\n- {id: s1, label: open}\n")
        assert cache.load_or_fetch_statuses("l1")[0].label == "open"
        provider.get_statuses.assert_not_called()

    def test_other_lists_kept(self, cache, provider, files):
        files.statuses.write("l1:\n- {id: s1, label: open}\n")
        provider.get_statuses.return_value = [TaskStatus(id="s2", label="done")]

        cache.load_or_fetch_statuses("l2")

        assert set(cache.load_statuses()) == {"l1", "l2"}

    def test_malformed_cache_reset(self, cache, files):
        files.statuses.write("l1: [{id: s1}]\n")
        assert cache.load_statuses() == {}
        assert yaml.safe_load(files.statuses.read()) == {}

    def test_provider_error_propagates(self, cache, provider):
        provider.get_statuses.side_effect = RuntimeError("offline")
        with pytest.raises(RuntimeError):
            cache.load_or_fetch_statuses("l1")
