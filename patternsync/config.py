from __future__ import annotations

import fnmatch
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

DEFAULT_SERVER = "https://github.com"
DEFAULT_CONFIG_FILE = "patternsync.toml"


class Scope(str, Enum):
    repo = "repo"
    org = "org"
    enterprise = "enterprise"


class PushProtectionMode(str, Enum):
    enable = "enable"
    disable = "disable"
    keep = "keep"
    unset = "unset"


@dataclass
class RunConfig:
    server: str = DEFAULT_SERVER
    target: str = ""
    scope: Scope = Scope.org
    patterns: list[Path] = field(default_factory=list)
    # Names or fnmatch globs; exclude wins over include.
    include: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    dry_run_threshold: int = 0
    dry_run_all_repos: bool = False
    dry_run_repo_list: list[str] = field(default_factory=list)
    dry_run_poll_interval: float = 5.0
    # None polls until the remote reports a terminal status.
    dry_run_max_polls: int | None = None
    push_protection: PushProtectionMode = PushProtectionMode.unset
    max_test_tries: int = 25
    force_submission: bool = False
    debug: bool = False
    headless: bool = True
    validate: bool = True
    state_path: Path = Path(".state")
    screenshot_dir: Path = Path(".")

    def url(self, *segments: str) -> str:
        """Build a URL under the target's settings root."""
        server = self.server.rstrip("/")
        if self.scope is Scope.repo:
            owner, _, repo = self.target.partition("/")
            if not owner or not repo or "/" in repo:
                raise ValueError(f"Invalid repository '{self.target}'. Use 'owner/repo'.")
            base = f"{server}/{owner}/{repo}"
        elif self.scope is Scope.org:
            base = f"{server}/organizations/{self.target}"
        elif self.scope is Scope.enterprise:
            base = f"{server}/enterprises/{self.target}"
        else:  # pragma: no cover
            raise ValueError(f"Unknown scope: {self.scope!r}")
        return "/".join([base.rstrip("/"), *(s.strip("/") for s in segments if s)])

    def selects(self, name: str) -> bool:
        return name_selected(name, include=self.include, exclude=self.exclude)


def name_selected(name: str, *, include: Iterable[str], exclude: Iterable[str]) -> bool:
    include = list(include)
    if any(fnmatch.fnmatchcase(name, pat) for pat in exclude):
        return False
    if include:
        return any(fnmatch.fnmatchcase(name, pat) for pat in include)
    return True


def detect_scope(target: str, scope: str | None) -> Scope:
    """A target with a slash is a repository; otherwise use the given scope (default org)."""
    if "/" in target:
        return Scope.repo
    if scope is None:
        return Scope.org
    try:
        return Scope(scope.strip().lower())
    except ValueError as exc:
        valid = ", ".join(s.value for s in Scope)
        raise ValueError(f"Invalid scope: {scope}. Valid scopes are: {valid}") from exc


def _read_toml(raw: str) -> dict | None:
    try:  # pragma: no cover
        import tomllib  # py311+

        return tomllib.loads(raw)
    except ModuleNotFoundError:  # pragma: no cover
        import tomli

        return tomli.loads(raw)


def load_config(
    config_path: Path | None,
    *,
    environ: Mapping[str, str] | None = None,
) -> RunConfig:
    """Load defaults from patternsync.toml and the environment. Missing config is not an error."""
    cfg = RunConfig()
    env = os.environ if environ is None else environ

    if config_path is None:
        config_path = Path(DEFAULT_CONFIG_FILE)
    if config_path.exists():
        data = _read_toml(config_path.read_text(encoding="utf-8")) or {}
        sync = data.get("sync", {})
        if isinstance(sync, dict):
            _apply_sync_table(cfg, sync)

    server = env.get("GITHUB_SERVER")
    if server:
        cfg.server = server.rstrip("/")

    threshold = env.get("DRY_RUN_THRESHOLD")
    if threshold:
        try:
            value = int(threshold)
        except ValueError:
            value = -1
        if value >= 0:
            cfg.dry_run_threshold = value

    return cfg


def _apply_sync_table(cfg: RunConfig, sync: dict) -> None:
    server = sync.get("server")
    if isinstance(server, str) and server:
        cfg.server = server.rstrip("/")

    threshold = sync.get("dry_run_threshold")
    if isinstance(threshold, int) and not isinstance(threshold, bool) and threshold >= 0:
        cfg.dry_run_threshold = threshold

    interval = sync.get("dry_run_poll_interval")
    if isinstance(interval, (int, float)) and interval > 0:
        cfg.dry_run_poll_interval = float(interval)

    max_polls = sync.get("dry_run_max_polls")
    if isinstance(max_polls, int) and max_polls > 0:
        cfg.dry_run_max_polls = max_polls

    tries = sync.get("max_test_tries")
    if isinstance(tries, int) and tries > 0:
        cfg.max_test_tries = tries

    repos = sync.get("dry_run_repo_list")
    if isinstance(repos, list):
        cfg.dry_run_repo_list = [str(x) for x in repos if x]

    all_repos = sync.get("dry_run_all_repos")
    if isinstance(all_repos, bool):
        cfg.dry_run_all_repos = all_repos

    for key in ("include", "exclude"):
        value = sync.get(key)
        if isinstance(value, list):
            setattr(cfg, key, [str(x) for x in value if x])

    mode = sync.get("push_protection")
    if isinstance(mode, str):
        try:
            cfg.push_protection = PushProtectionMode(mode.strip().lower())
        except ValueError:
            pass

    state_path = sync.get("state_path")
    if isinstance(state_path, str) and state_path:
        cfg.state_path = Path(state_path)

    screenshot_dir = sync.get("screenshot_dir")
    if isinstance(screenshot_dir, str) and screenshot_dir:
        cfg.screenshot_dir = Path(screenshot_dir)
