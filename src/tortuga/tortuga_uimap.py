"""
Provides the `UserInterfaceMapper` class for managing user-defined command
aliases ("sugar") in the TORTUGA language.

Learners can rename commands in their own words (for example `GO` for
`FORWARD`, or `AVANZA` in a Spanish classroom). The mapper owns the keyword
table handed to the parser.

Classes:
    - UserInterfaceMapper: Keyword table of alias → canonical command.
    - MappingError: A rejected alias configuration, with any conflicts.

Features:
    - Starts from the default keyword table (`FD`, `RT`, `COLOR`, ...)
    - Dict-mode (alias or alias group → command) and list-mode
      (positional alias groups aligned with `CANONICAL_COMMANDS`)
    - An alias may name only one command; clashes are listed, not applied
    - Alias files in JSON with comma-separated alias groups as keys
    - Listing of every alias, and of the ones added this session

Usage:
    >>> mapper = UserInterfaceMapper.from_canonical()
    >>> mapper.configure({"go": "FORWARD"})
    >>> parse_program("GO 10", mapper.token_map).commands
    [Command(FORWARD, value=10.0)]
"""

import json
from typing import Any

from tortuga.tortuga_constants import (
    CANONICAL_COMMAND_MAP,
    CANONICAL_COMMANDS,
    COMMENT_CHARS,
)
from tortuga.tortuga_parser import NUMBER_PATTERN


class MappingError(Exception):
    """Raised when an alias configuration is invalid or conflicts with existing aliases.

    Attributes:
        conflicts (list[str]): Conflicting alias descriptions.

    Example:
        raise MappingError("Alias collision(s) detected", ["'GO' → FORWARD vs BACK"])
    """

    def __init__(self, message: str, conflicts: list[str] | None = None):
        super().__init__(message)
        self.conflicts = conflicts or []


class UserInterfaceMapper:
    """Manages alias-to-command mappings.

    Attributes:
        token_map (dict[str, str]): Uppercase alias → canonical command. This is
            the keyword table passed to the parser.
        alias_report (dict[str, str]): Same mapping, kept for reporting.
    """

    def __init__(self) -> None:
        self.token_map: dict[str, str] = {}
        self.alias_report: dict[str, str] = {}

    def resolve(self, alias: str) -> str | None:
        """Returns the canonical command for `alias`, or None."""
        return self.token_map.get(alias.upper())

    def report(self, verbose: bool = False) -> str:
        """Formatted alias → command listing, one per line."""
        lines: list[str] = []
        for alias, sym in sorted(self.alias_report.items()):
            if verbose:
                idx = CANONICAL_COMMANDS.index(sym)
                lines.append(f"{alias:>12} → {sym:<8} (slot {idx})")
            else:
                lines.append(f"{alias:>12} → {sym}")
        return "\n".join(lines)

    def summary(self) -> dict[str, str]:
        return dict(self.alias_report)

    def _extract_aliases(self, entry: Any) -> list[str]:
        """Flattens a str / iterable / dict-keys entry into a list of aliases."""
        if entry is None:
            return []
        if isinstance(entry, str):
            return [entry]
        if isinstance(entry, (list, tuple, set)):
            aliases: list[str] = []
            for item in entry:
                aliases.extend(self._extract_aliases(item))
            return aliases
        if isinstance(entry, dict):
            return [str(k) for k in entry.keys()]
        return []

    @staticmethod
    def _check_alias(alias: str) -> str:
        word = alias.strip().upper()
        if (
            not word
            or any(ch.isspace() or ch in "[]" + COMMENT_CHARS for ch in word)
            or NUMBER_PATTERN.fullmatch(word)
        ):
            raise MappingError(f"Invalid alias: {alias!r}")
        return word

    @classmethod
    def from_canonical(cls) -> "UserInterfaceMapper":
        """Constructs a mapper preloaded with the default keyword table."""
        instance = cls()
        instance.configure(dict(CANONICAL_COMMAND_MAP))
        return instance

    def load_from_json(self, path: str) -> None:
        """
        Loads alias mappings from a JSON file and applies them via `configure`.

        Keys are comma-separated alias groups, values are canonical commands:
            {
                "go,walk": "FORWARD",
                "turn": "RIGHT"
            }

        Raises:
            MappingError: For an unreadable file, malformed JSON or a rejected alias.
        """
        try:
            with open(path, encoding="utf-8") as f:
                raw_cfg = json.load(f)
        except (OSError, ValueError) as e:
            raise MappingError(f"Failed to load sugar file: {e}") from e

        if not isinstance(raw_cfg, dict):
            raise MappingError("Sugar file must contain a JSON object")

        self.configure(
            {tuple(part.strip() for part in key.split(",")): sym for key, sym in raw_cfg.items()}
        )

    def configure(self, cfg: list[Any] | dict[Any, Any]) -> None:
        """
        Applies a new alias configuration.

        Supports two modes:
        - Dict mode: maps aliases (str, list, tuple, set) to a canonical command.
        - List mode: positional alias groups aligned with `CANONICAL_COMMANDS`.

        Nothing is applied unless the whole configuration is valid.

        Raises:
            MappingError: If a command name is unknown, an alias is malformed,
                an alias maps to two different commands, or the list is too long.
        """
        pairs: list[tuple[str, str]] = []

        if isinstance(cfg, dict):
            for alias_group, sym in cfg.items():
                if sym not in CANONICAL_COMMANDS:
                    raise MappingError(f"Unknown command name: {sym}")
                pairs.extend((alias, sym) for alias in self._extract_aliases(alias_group))
        elif isinstance(cfg, list):
            if len(cfg) > len(CANONICAL_COMMANDS):
                raise MappingError("Too many entries in list-mode config")
            for idx, entry in enumerate(cfg):
                sym = CANONICAL_COMMANDS[idx]
                pairs.extend((alias, sym) for alias in self._extract_aliases(entry))
        else:
            raise MappingError("Configuration must be either a list or a dict")

        new_token_map: dict[str, str] = {}
        conflicts: list[str] = []
        for raw_alias, sym in pairs:
            alias = self._check_alias(raw_alias)
            existing = new_token_map.get(alias, self.token_map.get(alias))
            if existing is not None and existing != sym:
                conflicts.append(f"'{alias}' → conflict between {existing} and {sym}")
            else:
                new_token_map[alias] = sym

        if conflicts:
            raise MappingError("Alias collision(s) detected", conflicts)

        self.token_map.update(new_token_map)
        self.alias_report.update(new_token_map)

    def session_diff(self) -> dict[str, str]:
        """Aliases added on top of the default keyword table."""
        return {
            alias: sym
            for alias, sym in self.token_map.items()
            if CANONICAL_COMMAND_MAP.get(alias) != sym
        }
