from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional


METHODS = ("backtrack", "vf2")
MERGE_POLICIES = ("agree", "tree", "last")
DUPLICATE_POLICIES = ("sum", "replace")


def _choice(name: str, value: str, allowed: tuple[str, ...]) -> str:
    if value not in allowed:
        raise ValueError(
            f"{name} must be one of {', '.join(allowed)}; got {value!r}"
        )
    return value


def _positive_int(name: str, value: Optional[int]) -> Optional[int]:
    if value is not None and value < 1:
        raise ValueError(f"{name} must be a positive integer; got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    """
    Tunables for building stage graphs and aggregating counts.

    max_steps:    candidate pairings the oracle may examine per comparison
                  (None = unbounded).
    method:       oracle engine, "backtrack" or "vf2" (networkx).
    merge_policy: how a stage reached by several plan edges is resolved,
                  "agree" | "tree" | "last".
    duplicates:   repeated (stage, labels) records are "sum"med or the last
                  one "replace"s earlier ones.
    processes:    worker processes for aggregation (1 = in-process).
    """

    max_steps: Optional[int] = None
    method: str = "backtrack"
    merge_policy: str = "agree"
    duplicates: str = "sum"
    processes: int = 1

    def __post_init__(self) -> None:
        _positive_int("max_steps", self.max_steps)
        _positive_int("processes", self.processes)
        _choice("method", self.method, METHODS)
        _choice("merge_policy", self.merge_policy, MERGE_POLICIES)
        _choice("duplicates", self.duplicates, DUPLICATE_POLICIES)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Read QUERYCOUNT_* variables; unset variables keep their defaults."""
        env = os.environ if environ is None else environ
        kwargs: dict = {}
        if env.get("QUERYCOUNT_MAX_STEPS"):
            kwargs["max_steps"] = _env_int(env, "QUERYCOUNT_MAX_STEPS")
        if env.get("QUERYCOUNT_PROCESSES"):
            kwargs["processes"] = _env_int(env, "QUERYCOUNT_PROCESSES")
        if env.get("QUERYCOUNT_METHOD"):
            kwargs["method"] = env["QUERYCOUNT_METHOD"]
        if env.get("QUERYCOUNT_MERGE_POLICY"):
            kwargs["merge_policy"] = env["QUERYCOUNT_MERGE_POLICY"]
        if env.get("QUERYCOUNT_DUPLICATES"):
            kwargs["duplicates"] = env["QUERYCOUNT_DUPLICATES"]
        return cls(**kwargs)

    def override(self, **changes: object) -> "Settings":
        """Return a copy with the non-None *changes* applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def _env_int(env: Mapping[str, str], key: str) -> int:
    raw = env[key]
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer; got {raw!r}") from None
