"""
Lexical analyzer for the TORTUGA turtle-graphics language.

TORTUGA source is a sequence of words and square brackets. The lexer reads
program text character by character, drops comments and whitespace, and hands
the parser positioned tokens so that parse errors can name a source line.

Classes:
    CharacterStream: Cursor over program text that knows its line and column.
    Token: A word or bracket together with where it started.
    Lexer: Pulls tokens out of a CharacterStream one at a time.

Functions:
    tokenize(text): Returns the token values as plain uppercase strings.

Features:
    - Skips whitespace and line comments (`#` or `;` up to end of line)
    - Uppercases every word so keywords are case-insensitive
    - Emits `[` and `]` as standalone tokens even when glued to adjacent text
    - Never fails: malformed bracket nesting is left to the parser

Example:
    >>> tokenize("repeat 4 [fd 100 rt 90] # square")
    ['REPEAT', '4', '[', 'FD', '100', 'RT', '90', ']']
"""

from dataclasses import dataclass

from tortuga.tortuga_constants import COMMENT_CHARS

BRACKET_TYPES = {"[": "LBRACK", "]": "RBRACK"}


class CharacterStream:
    """
    Read-once cursor over TORTUGA program text.

    Attributes:
        source (str): Full program text.
        position (int): Offset of the next unread character.
        line (int): Line of the next unread character, starting at 1.
        column (int): Column of the next unread character, starting at 1.
    """

    def __init__(self, source: str, position: int = 0, line: int = 1, column: int = 1):
        self.source = source
        self.position = position
        self.line = line
        self.column = column

    def next(self) -> str:
        """
        Returns the next character and moves the cursor past it.

        Raises:
            EOFError: When the whole source has already been read.
        """
        if self.end_of_file():
            raise EOFError(f"read past end of program at line {self.line}")
        ch = self.source[self.position]
        self.position += 1
        if ch == "\n":
            self.line, self.column = self.line + 1, 1
        else:
            self.column += 1
        return ch

    def peek(self, offset: int = 0) -> str:
        """Character `offset` places ahead of the cursor, "" outside the source."""
        target = self.position + offset
        return self.source[target] if 0 <= target < len(self.source) else ""

    def end_of_file(self) -> bool:
        return self.position >= len(self.source)


@dataclass(frozen=True)
class Token:
    """A word or bracket read from the program.

    Attributes:
        type (str): 'WORD', 'LBRACK', 'RBRACK' or 'EOF'.
        value (str): Token text, uppercased for words.
        line (int): Source line of the first character, 0 when unknown.
        col (int): Source column of the first character, 0 when unknown.
    """

    type: str
    value: str
    line: int = 0
    col: int = 0

    @classmethod
    def from_text(cls, text: str) -> "Token":
        """Wrap an already split string, e.g. from `str.split()`."""
        value = text.upper()
        return cls(BRACKET_TYPES.get(value, "WORD"), value)

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value})"


def ends_word(ch: str) -> bool:
    return ch.isspace() or ch in BRACKET_TYPES or ch in COMMENT_CHARS


class Lexer:
    """Turns a CharacterStream into TORTUGA tokens.

    Attributes:
        stream (CharacterStream): Program text being read.
    """

    def __init__(self, stream: CharacterStream) -> None:
        self.stream = stream

    def skip_whitespace(self) -> None:
        """Moves past blanks and comments up to the next token."""
        stream = self.stream
        while not stream.end_of_file():
            ch = stream.peek()
            if ch in COMMENT_CHARS:
                self.skip_comment()
            elif ch.isspace():
                stream.next()
            else:
                return

    def skip_comment(self) -> None:
        """Drops everything up to, not including, the next newline."""
        stream = self.stream
        while stream.peek() not in ("", "\n"):
            stream.next()

    def read_word(self) -> str:
        chars: list[str] = []
        while not self.stream.end_of_file() and not ends_word(self.stream.peek()):
            chars.append(self.stream.next())
        return "".join(chars).upper()

    def next_token(self) -> Token:
        """Reads one token; at the end of the program every call returns EOF."""
        self.skip_whitespace()
        line, col = self.stream.line, self.stream.column
        if self.stream.end_of_file():
            return Token("EOF", "EOF", line, col)

        ch = self.stream.peek()
        if ch in BRACKET_TYPES:
            self.stream.next()
            return Token(BRACKET_TYPES[ch], ch, line, col)
        return Token("WORD", self.read_word(), line, col)

    def tokens(self) -> list[Token]:
        """All remaining tokens, without the trailing EOF."""
        found: list[Token] = []
        tok = self.next_token()
        while tok.type != "EOF":
            found.append(tok)
            tok = self.next_token()
        return found


def tokenize(text: str) -> list[str]:
    """Program text to a flat list of uppercase token strings."""
    return [tok.value for tok in Lexer(CharacterStream(text)).tokens()]


__all__ = ["CharacterStream", "Lexer", "Token", "tokenize"]
