"""Tests for collision-free fixture names."""
from teams_e2e.naming import slugify, unique_slug, unique_suffix, worker_id


def test_suffix_carries_the_worker_id(monkeypatch):
    monkeypatch.setenv("PYTEST_XDIST_WORKER", "gw3")
    assert worker_id() == "gw3"
    assert unique_suffix().startswith("gw3-")


def test_suffixes_are_unique():
    suffixes = {unique_suffix() for _ in range(500)}
    assert len(suffixes) == 500


def test_slugify():
    assert slugify("  TestOrg ") == "testorg"
    assert slugify("pro-user's Team") == "pro-user-s-team"
    assert slugify("!!!") == "item"


def test_unique_slug_keeps_a_readable_prefix():
    first, second = unique_slug("TestOrg"), unique_slug("TestOrg")
    assert first.startswith("testorg-")
    assert first != second
