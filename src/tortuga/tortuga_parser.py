"""
TORTUGA Language Parser

Parses TORTUGA token streams into a command tree.

This module implements a small recursive-descent parser that turns the flat
token list produced by the lexer into `Command` nodes. `REPEAT` blocks are
matched with a bracket depth counter and their bodies are parsed recursively
by an independent parser over the bracketed token slice.

Supported Constructs
--------------------
- Value commands: `FORWARD n`, `BACK n`, `LEFT n`, `RIGHT n`, `COL n`
- Zero-argument commands: `PENUP`, `PENDOWN`, `CLEAR`
- Bounded repetition: `REPEAT n [ ... ]`, nestable
- Short aliases (`FD`, `BK`, `LT`, `RT`, `PU`, `PD`, `COLOR`) and any
  user-defined aliases passed in through the keyword table

Parser Behavior
---------------
- Never raises: every problem becomes a `ParseError` and scanning continues,
  so one pass reports as many diagnostics as possible.
- Unknown tokens are reported and skipped one at a time.
- An unterminated `[` consumes the remainder of the stream and reports once.
- Any unexpected internal fault is converted into a single synthetic error.
- Errors inside nested `REPEAT` bodies carry a single "Error inside REPEAT:"
  prefix however deep they occur.
- Bodies are parsed recursively, so nesting depth is bounded by the
  interpreter recursion limit (a few hundred levels). A deeper program is
  rejected with one "Unexpected error" diagnostic instead of crashing.

Entry Points
------------
- `Parser(tokens).parse()`: Parse a token list into a `ParsedProgram`.
- `parse(tokens)`: Functional shorthand for the above.
- `parse_program(text)`: Lex and parse program text in one step.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping, Sequence

from tortuga.tortuga_ast import Command, ParsedProgram, ParseError
from tortuga.tortuga_constants import (
    CANONICAL_COMMAND_MAP,
    NULLARY_COMMANDS,
    REPEAT_MAX,
    REPEAT_MIN,
    VALUE_COMMANDS,
)
from tortuga.tortuga_lexer import CharacterStream, Lexer, Token

logger = logging.getLogger(__name__)

NUMBER_PATTERN = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:E[+-]?\d+)?")
INNER_ERROR_PREFIX = "Error inside REPEAT: "


class Parser:
    """
    TORTUGA Parser Class

    Attributes
    ----------
    tokens : list[Token]
        The input token stream. Plain strings are wrapped into tokens.
    position : int
        Current index into the token stream.
    keywords : dict[str, str]
        Keyword table mapping every accepted spelling to its canonical command.
    errors : list[ParseError]
        Diagnostics collected so far.
    """

    def __init__(
        self,
        tokens: Sequence[Token | str],
        keywords: Mapping[str, str] | None = None,
    ) -> None:
        self.tokens: list[Token] = [
            tok if isinstance(tok, Token) else Token.from_text(tok) for tok in tokens
        ]
        self.position: int = 0
        self.keywords: dict[str, str] = dict(
            CANONICAL_COMMAND_MAP if keywords is None else keywords
        )
        self.errors: list[ParseError] = []

    def current(self) -> Token:
        return (
            self.tokens[self.position]
            if self.position < len(self.tokens)
            else Token("EOF", "EOF")
        )

    def advance(self) -> Token:
        self.position += 1
        return self.current()

    def error(self, message: str, tok: Token | None = None) -> None:
        line = tok.line if tok is not None and tok.line else None
        self.errors.append(ParseError(message, line))

    def is_keyword(self, tok: Token) -> bool:
        return tok.type == "WORD" and tok.value in self.keywords

    def number_value(self, tok: Token) -> float | None:
        """Returns the float value of a numeric token, or None."""
        if tok.type != "WORD" or not NUMBER_PATTERN.fullmatch(tok.value):
            return None
        value = float(tok.value)
        return value if math.isfinite(value) else None

    def skip_bad_argument(self) -> None:
        # A stray word in argument position belongs to the failed command;
        # keywords and brackets are left for the next scan.
        tok = self.current()
        if tok.type == "WORD" and not self.is_keyword(tok):
            self.advance()

    def parse(self) -> ParsedProgram:
        """Parse the full token stream and return the commands and errors."""
        commands: list[Command] = []
        try:
            while self.current().type != "EOF":
                node = self.parse_command()
                if node is not None:
                    commands.append(node)
        except Exception as e:
            logger.warning("internal parser fault", exc_info=True)
            self.error(f"Unexpected error: {e}", self.current())
        logger.debug(
            "parsed %d top-level commands, %d errors", len(commands), len(self.errors)
        )
        return ParsedProgram(commands, list(self.errors))

    def parse_command(self) -> Command | None:
        """Parse one command starting at the current token."""
        tok = self.current()
        if tok.type == "RBRACK":
            self.error("Unexpected ']' without matching '['", tok)
            self.advance()
            return None

        kind = self.keywords.get(tok.value) if tok.type == "WORD" else None
        if kind is None:
            self.error(f"Unknown command: {tok.value}", tok)
            self.advance()
            return None

        if kind in VALUE_COMMANDS:
            return self.parse_value_command(kind)
        if kind in NULLARY_COMMANDS:
            self.advance()
            return Command(kind, line=tok.line, col=tok.col)
        if kind == "REPEAT":
            return self.parse_repeat()
        raise ValueError(f"keyword {tok.value!r} maps to unknown command {kind!r}")

    def parse_value_command(self, kind: str) -> Command | None:
        """Parse a command that takes exactly one numeric argument."""
        tok = self.current()
        arg = self.advance()
        value = self.number_value(arg)
        if value is None:
            self.error(f"{kind} command requires a number", tok)
            self.skip_bad_argument()
            return None
        self.advance()
        return Command(kind, value, line=tok.line, col=tok.col)

    def collect_block(self) -> tuple[list[Token], bool]:
        """Consume a `[ ... ]` block and return its inner tokens.

        Returns:
            The tokens between the brackets and whether the closing `]` was found.
            An unterminated block consumes the rest of the stream.
        """
        self.advance()
        start = self.position
        depth = 1
        while self.current().type != "EOF":
            tok_type = self.current().type
            if tok_type == "LBRACK":
                depth += 1
            elif tok_type == "RBRACK":
                depth -= 1
                if depth == 0:
                    body = self.tokens[start : self.position]
                    self.advance()
                    return body, True
            self.advance()
        return self.tokens[start : self.position], False

    def parse_repeat(self) -> Command | None:
        """Parse `REPEAT count [ body ]`."""
        rep_tok = self.current()
        count_tok = self.advance()
        count = self.number_value(count_tok)
        if count is None:
            self.error("REPEAT command requires a count", rep_tok)
            self.skip_bad_argument()
            if self.current().type == "LBRACK":
                self.collect_block()
            return None
        self.advance()

        count_ok = count.is_integer() and REPEAT_MIN <= count <= REPEAT_MAX
        if not count_ok:
            self.error(
                f"REPEAT count must be a whole number between {REPEAT_MIN} and {REPEAT_MAX}",
                rep_tok,
            )
            if self.current().type == "LBRACK":
                self.collect_block()
            return None

        if self.current().type != "LBRACK":
            self.error("REPEAT requires '[' after the count", rep_tok)
            return None

        body, closed = self.collect_block()
        if not closed:
            self.error("REPEAT is missing a closing ']'", rep_tok)
            return None
        if not body:
            self.error("REPEAT body cannot be empty", rep_tok)
            return None

        inner = Parser(body, self.keywords).parse()
        if inner.errors:
            first = inner.errors[0]
            message = first.message
            if not message.startswith(INNER_ERROR_PREFIX):
                message = INNER_ERROR_PREFIX + message
            self.errors.append(ParseError(message, first.line))
            return None

        return Command(
            "REPEAT", int(count), inner.commands, line=rep_tok.line, col=rep_tok.col
        )


def parse(
    tokens: Sequence[Token | str], keywords: Mapping[str, str] | None = None
) -> ParsedProgram:
    return Parser(tokens, keywords).parse()


def parse_program(text: str, keywords: Mapping[str, str] | None = None) -> ParsedProgram:
    """Lex and parse program text in one step."""
    tokens = Lexer(CharacterStream(text)).tokens()
    return Parser(tokens, keywords).parse()
