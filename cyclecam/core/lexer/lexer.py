"""
Line tokenizer: turns one line of G-code text into a Command.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Optional

from ..cycle_model import Command
from .tokens import Token, TokenType


# Regex patterns for G-code tokens
class LexerPatterns:
    """Regular expression patterns for token recognition."""

    # Word (letter + signed decimal): G81, X100.5, Z-2, R.5
    WORD = re.compile(r"([A-Za-z])([+-]?(?:\d+\.?\d*|\.\d+))")

    # Operation number after the G letter: 81, 01, 38.2
    OPERATION_NUMBER = re.compile(r"\d+(?:\.\d*)?$")

    # Characters that end a malformed fragment
    STOP_CHARS = " \t\r\n(;"


def normalize_operation(number: str) -> str:
    """Canonical operation code for the digits after G ("01" -> "G1")."""
    integer, _, fraction = number.partition(".")
    code = f"G{int(integer)}"
    fraction = fraction.rstrip("0")
    return f"{code}.{fraction}" if fraction else code


@dataclass
class LexerError(Exception):
    """Lexer error with position information."""
    message: str
    column: int

    def __str__(self) -> str:
        return f"Lexer Error at C{self.column}: {self.message}"


class CommandLexer:
    """
    Single-line G-code lexer.
    Splits a line into operation, word, comment and malformed tokens.
    """

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.seen_operation = False

    @property
    def current_char(self) -> str | None:
        """Get current character or None at end of line."""
        if self.pos >= len(self.text):
            return None
        return self.text[self.pos]

    @property
    def column(self) -> int:
        return self.pos + 1

    def skip_whitespace(self) -> None:
        while self.current_char is not None and self.current_char.isspace():
            self.pos += 1

    def read_comment_paren(self) -> Token:
        """Read a parenthesized comment; an unclosed one runs to end of line."""
        start = self.pos
        end = self.text.find(")", start + 1)
        if end == -1:
            end = len(self.text) - 1
            content = self.text[start + 1:]
        else:
            content = self.text[start + 1:end]
        raw = self.text[start:end + 1]
        self.pos = end + 1
        return Token(TokenType.COMMENT, content.strip(), start + 1, raw)

    def read_comment_semi(self) -> Token:
        start = self.pos
        raw = self.text[start:]
        self.pos = len(self.text)
        return Token(TokenType.COMMENT_SEMI, raw[1:].strip(), start + 1, raw)

    def read_malformed(self) -> Token:
        """Consume text up to the next separator or readable word."""
        start = self.pos
        self.pos += 1
        while (
            self.current_char is not None
            and self.current_char not in LexerPatterns.STOP_CHARS
            and not LexerPatterns.WORD.match(self.text, self.pos)
        ):
            self.pos += 1
        raw = self.text[start:self.pos]
        return Token(TokenType.MALFORMED, raw, start + 1, raw)

    def read_word(self) -> Optional[Token]:
        match = LexerPatterns.WORD.match(self.text, self.pos)
        if not match:
            return None

        start = self.pos
        letter = match.group(1).upper()
        number = match.group(2)
        raw = match.group(0)

        if letter == "G":
            if not LexerPatterns.OPERATION_NUMBER.match(number):
                return None
            self.pos = match.end()
            token_type = (
                TokenType.EXTRA_OPERATION if self.seen_operation else TokenType.OPERATION
            )
            self.seen_operation = True
            return Token(token_type, normalize_operation(number), start + 1, raw)

        self.pos = match.end()
        return Token(TokenType.WORD, (letter, float(number)), start + 1, raw)

    def next_token(self) -> Token:
        """Get next token from the line."""
        self.skip_whitespace()

        char = self.current_char
        if char is None:
            return Token(TokenType.EOF, None, self.column, "")

        if char == "(":
            return self.read_comment_paren()
        if char == ";":
            return self.read_comment_semi()

        token = self.read_word()
        if token is not None:
            return token
        return self.read_malformed()

    def tokenize(self) -> list[Token]:
        """Tokenize the line and return the list of tokens (EOF last)."""
        return list(self)

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                break


def scan_line(line: str) -> list[Token]:
    """Convenience function returning the raw token stream of one line."""
    return CommandLexer(line).tokenize()


def tokenize_line(line: str, strict: bool = False) -> Command:
    """
    Parse one line into a Command.

    The first G word is the operation, every other letter/number pair is a
    parameter (the last occurrence of a letter wins) and the first
    parenthesized comment is kept. Unreadable fragments end up in
    ``Command.malformed``; with ``strict=True`` the first one raises
    LexerError instead.
    """
    operation = ""
    extra_operations: list[str] = []
    parameters: dict[str, float] = {}
    comment: Optional[str] = None
    semi_comment: Optional[str] = None
    malformed: list[str] = []

    for token in CommandLexer(line):
        if token.type == TokenType.OPERATION:
            operation = token.value
        elif token.type == TokenType.EXTRA_OPERATION:
            extra_operations.append(token.value)
        elif token.type == TokenType.WORD:
            letter, value = token.value
            parameters[letter] = value
        elif token.type == TokenType.COMMENT:
            if comment is None:
                comment = token.value
        elif token.type == TokenType.COMMENT_SEMI:
            semi_comment = token.value
        elif token.type == TokenType.MALFORMED:
            if strict:
                raise LexerError(f"Unreadable fragment '{token.raw}'", token.column)
            malformed.append(token.raw)

    return Command(
        operation=operation,
        parameters=parameters,
        comment=comment if comment is not None else semi_comment,
        extra_operations=tuple(extra_operations),
        malformed=tuple(malformed),
        raw=line,
    )
