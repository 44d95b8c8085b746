"""Access gate built from gitignore-style rule files.

The gate is consulted before any tool touches a caller-supplied path. Rules
come from, in order:

1. the global ``.llmdevignore`` in the config directory (if present)
2. the local ``.llmdevignore`` in the working directory, or, only when that
   file is absent, the local ``.gitignore`` as a fallback
3. when no file contributed any rules, a small default set protecting
   secrets (``**/.env``, ``**/.env.*``, ``**/secrets.*``)

Security note: matching is advisory pattern matching, not an OS-enforced
boundary. It keeps an agent away from sensitive files it was told to avoid.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import Iterable, Optional, Sequence

import pathspec

from .errors import IgnoreRulesError

logger = logging.getLogger(__name__)

IGNORE_FILENAME = ".llmdevignore"
GITIGNORE_FILENAME = ".gitignore"

DEFAULT_IGNORE_PATTERNS = ("**/.env", "**/.env.*", "**/secrets.*")


@dataclass(frozen=True)
class IgnoreRuleSet:
    """Compiled, immutable ignore rules rooted at a base directory."""

    root: Path
    patterns: tuple[str, ...]
    sources: tuple[Path, ...] = ()
    has_explicit_rules: bool = False
    _spec: pathspec.GitIgnoreSpec = field(
        default_factory=lambda: pathspec.GitIgnoreSpec.from_lines([]),
        repr=False,
        compare=False,
    )

    def is_ignored(self, path: str | PurePath, is_dir: bool = False) -> bool:
        """Return True if the path is excluded by the rules.

        Pure function of the compiled rules: performs no filesystem access.
        """
        candidate = self._relative(PurePath(path))
        if not candidate:
            return False
        if is_dir:
            candidate += "/"
        return self._spec.match_file(candidate)

    def _relative(self, path: PurePath) -> str:
        if path.is_absolute():
            try:
                path = path.relative_to(self.root)
            except ValueError:
                # Outside the root: match against the path without its anchor
                return "/".join(path.parts[1:])
        return path.as_posix()


class AccessGate:
    """Answers whether a path is restricted by the ignore rules."""

    def __init__(self, rules: IgnoreRuleSet):
        self._rules = rules

    @property
    def rules(self) -> IgnoreRuleSet:
        return self._rules

    def is_ignored(self, path: str | PurePath) -> bool:
        return self._rules.is_ignored(path)

    @classmethod
    def from_patterns(cls, root: Path, patterns: Sequence[str]) -> "AccessGate":
        return cls(compile_rules(root, list(patterns), sources=(), explicit=True))

    @classmethod
    def load(cls, cwd: Path, config_dir: Optional[Path] = None) -> "AccessGate":
        return cls(build_ignore_rules(cwd, config_dir))


def compile_rules(
    root: Path,
    patterns: list[str],
    sources: Iterable[Path],
    explicit: bool,
) -> IgnoreRuleSet:
    """Compile patterns into an IgnoreRuleSet.

    Raises:
        IgnoreRulesError: If any pattern is invalid
    """
    try:
        spec = pathspec.GitIgnoreSpec.from_lines(patterns)
    except ValueError as e:
        raise IgnoreRulesError(str(root), str(e)) from e
    return IgnoreRuleSet(
        root=root,
        patterns=tuple(patterns),
        sources=tuple(sources),
        has_explicit_rules=explicit,
        _spec=spec,
    )


def _read_rule_file(path: Path) -> list[str]:
    try:
        return path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as e:
        raise IgnoreRulesError(str(path), str(e)) from e


def build_ignore_rules(cwd: Path, config_dir: Optional[Path] = None) -> IgnoreRuleSet:
    """Build the effective rule set for a working directory.

    Args:
        cwd: Project root; local rule files are looked up here
        config_dir: Directory holding the global rule file (created if missing)

    Returns:
        The compiled IgnoreRuleSet

    Raises:
        IgnoreRulesError: If a rule file cannot be read or compiled
    """
    patterns: list[str] = []
    sources: list[Path] = []

    if config_dir is not None:
        try:
            config_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.debug(f"Could not create config directory {config_dir}: {e}")
        global_path = config_dir / IGNORE_FILENAME
        if global_path.is_file():
            patterns.extend(_read_rule_file(global_path))
            sources.append(global_path)

    local_path = cwd / IGNORE_FILENAME
    if local_path.is_file():
        patterns.extend(_read_rule_file(local_path))
        sources.append(local_path)
    else:
        gitignore_path = cwd / GITIGNORE_FILENAME
        if gitignore_path.is_file():
            logger.debug(
                f"No {IGNORE_FILENAME} found, using {GITIGNORE_FILENAME} as fallback for ignore patterns"
            )
            patterns.extend(_read_rule_file(gitignore_path))
            sources.append(gitignore_path)

    if not sources:
        logger.debug("No ignore files found, installing default ignore patterns")
        return compile_rules(cwd, list(DEFAULT_IGNORE_PATTERNS), sources=(), explicit=False)

    return compile_rules(cwd, patterns, sources=sources, explicit=True)


__all__ = [
    "AccessGate",
    "DEFAULT_IGNORE_PATTERNS",
    "GITIGNORE_FILENAME",
    "IGNORE_FILENAME",
    "IgnoreRuleSet",
    "build_ignore_rules",
    "compile_rules",
]
