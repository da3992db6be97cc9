# tests/unit/test_listing_service.py
"""Unit tests for the listing service."""

import json
from datetime import timedelta

import yaml

from etcd2s3.models import Location, RetentionPolicy
from etcd2s3.services.listing_service import format_size, list_snapshots, render


class TestListSnapshots:
    """Tests for list_snapshots()."""

    def test_unified_status_newest_first(self, memory_store, make_record, now):
        local = memory_store(Location.LOCAL, [make_record("a", timedelta(hours=1))])
        remote = memory_store(
            Location.REMOTE,
            [
                make_record("a", timedelta(hours=1), location=Location.REMOTE),
                make_record("b", timedelta(days=30), location=Location.REMOTE),
            ],
        )

        rows = list_snapshots(local, remote, RetentionPolicy(keep_last=1), now=now)

        assert [(r.name, r.location, r.retention) for r in rows] == [
            ("a", "local", "keep"),
            ("a", "remote", "keep"),
            ("b", "remote", "delete"),
        ]

    def test_separate_evaluates_each_store(self, memory_store, make_record, now):
        local = memory_store(Location.LOCAL, [make_record("a", timedelta(hours=1))])
        remote = memory_store(Location.REMOTE, [make_record("b", timedelta(days=30), location=Location.REMOTE)])

        rows = list_snapshots(local, remote, RetentionPolicy(keep_last=1), now=now, unified=False)

        assert {r.name: r.retention for r in rows} == {"a": "keep", "b": "keep"}

    def test_unlistable_store_shows_empty(self, memory_store, make_record, now):
        local = memory_store(Location.LOCAL, [make_record("a")])
        remote = memory_store(Location.REMOTE, fail_listing=True)

        rows = list_snapshots(local, remote, RetentionPolicy(keep_last=1), now=now)

        assert [r.name for r in rows] == ["a"]

    def test_remote_only(self, memory_store, make_record, now):
        local = memory_store(Location.LOCAL, [make_record("a")])

        assert list_snapshots(local, None, RetentionPolicy(keep_last=1), now=now, include_local=False) == []


class TestRender:
    """Tests for output rendering."""

    def _rows(self, memory_store, make_record, now):
        local = memory_store(Location.LOCAL, [make_record("a.db.zst", timedelta(hours=1), size=2048)])
        return list_snapshots(local, None, RetentionPolicy(keep_last=1), now=now)

    def test_json(self, memory_store, make_record, now):
        data = json.loads(render(self._rows(memory_store, make_record, now), "json"))

        assert data[0]["name"] == "a.db.zst"
        assert data[0]["retention"] == "keep"
        assert data[0]["size"] == 2048

    def test_yaml(self, memory_store, make_record, now):
        data = yaml.safe_load(render(self._rows(memory_store, make_record, now), "yaml"))

        assert data[0]["location"] == "local"

    def test_table(self, memory_store, make_record, now):
        lines = render(self._rows(memory_store, make_record, now), "table").splitlines()

        assert lines[0].split() == ["NAME", "LOCATION", "SIZE", "MODIFIED", "RETENTION"]
        assert "2.0 KB" in lines[1]
        assert lines[1].endswith("keep")

    def test_format_size(self):
        assert format_size(512) == "512 B"
        assert format_size(2048) == "2.0 KB"
        assert format_size(5 * 1024**3) == "5.0 GB"
