"""Tests for querycount.config."""
import pytest

from querycount.config import Settings


def test_defaults():
    s = Settings()
    assert s.max_steps is None
    assert s.method == "backtrack"
    assert s.merge_policy == "agree"
    assert s.duplicates == "sum"
    assert s.processes == 1


def test_from_env():
    s = Settings.from_env({
        "QUERYCOUNT_MAX_STEPS": "500",
        "QUERYCOUNT_METHOD": "vf2",
        "QUERYCOUNT_MERGE_POLICY": "last",
        "QUERYCOUNT_DUPLICATES": "replace",
        "QUERYCOUNT_PROCESSES": "3",
    })
    assert s == Settings(max_steps=500, method="vf2", merge_policy="last",
                         duplicates="replace", processes=3)


def test_from_env_ignores_empty():
    assert Settings.from_env({"QUERYCOUNT_MAX_STEPS": ""}) == Settings()


def test_from_env_rejects_garbage():
    with pytest.raises(ValueError, match="QUERYCOUNT_MAX_STEPS"):
        Settings.from_env({"QUERYCOUNT_MAX_STEPS": "lots"})
    with pytest.raises(ValueError, match="method"):
        Settings.from_env({"QUERYCOUNT_METHOD": "nauty"})


def test_validation():
    with pytest.raises(ValueError):
        Settings(max_steps=0)
    with pytest.raises(ValueError):
        Settings(processes=0)
    with pytest.raises(ValueError):
        Settings(merge_policy="first")


def test_override_skips_none():
    s = Settings(max_steps=10).override(max_steps=None, method="vf2")
    assert s.max_steps == 10
    assert s.method == "vf2"
