"""
Lexer for the tag language

Scans tokens on demand at the current position, so the parser can save
a position and go back to it when an alternative fails.

Recognized syntax:
- Text outside tags: everything up to the next '<TAG ' or '</TAG '
- Tag delimiters: '<TAG ', '</TAG ', '/>' or '>', '+>'
- Parameters: "quoted text", numbers, bare words, [ ... ] lists
- Conditions: ( ) AND OR NOT && || ! TRUE FALSE == < <= > >= + - * /
"""

from enum import Enum
from dataclasses import dataclass
from typing import Dict, Optional, Pattern
import re
from bisect import bisect_left

from taglang.errors import ParseError


class TokenType(Enum):
    """Token types for the tag lexer."""
    # Literals
    TEXT = 'TEXT'
    QUOTED = 'QUOTED'
    NUMBER = 'NUMBER'               # parameter number, must end at a boundary
    EXPR_NUMBER = 'EXPR_NUMBER'     # number inside a condition
    IDENTIFIER = 'IDENTIFIER'
    WORD = 'WORD'                   # bare word parameter
    LIST_WORD = 'LIST_WORD'         # bare word inside [ ... ]

    # Delimiters
    TAG_OPEN = 'TAG_OPEN'           # <TAG
    TAG_CLOSE_OPEN = 'TAG_CLOSE_OPEN'  # </TAG
    TAG_END = 'TAG_END'             # /> or >
    TAG_END_MORE = 'TAG_END_MORE'   # +>
    COMMA = 'COMMA'                 # ,
    LPAREN = 'LPAREN'               # (
    RPAREN = 'RPAREN'               # )
    LBRACKET = 'LBRACKET'           # [
    RBRACKET = 'RBRACKET'           # ]

    # Comparison
    EQ = 'EQ'                       # ==
    LTE = 'LTE'                     # <=
    GTE = 'GTE'                     # >=
    LT = 'LT'                       # <
    GT = 'GT'                       # >

    # Boolean
    AND = 'AND'                     # AND, &&
    OR = 'OR'                       # OR, ||
    NOT = 'NOT'                     # NOT, !
    TRUE = 'TRUE'
    FALSE = 'FALSE'

    # Math operators
    PLUS = 'PLUS'                   # +
    MINUS = 'MINUS'                 # -
    MULTIPLY = 'MULTIPLY'           # *
    DIVIDE = 'DIVIDE'               # /

    # End of input
    EOF = 'EOF'


@dataclass
class Token:
    """A token produced by the lexer."""
    type: TokenType
    value: str
    position: int
    line: int = 1
    column: int = 1

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, pos={self.position})"


class LexerError(ParseError):
    """Error during lexing."""


def build_patterns(keyword: str) -> Dict[TokenType, Pattern]:
    """Compile the token patterns for a tag keyword (normally 'TAG')."""
    kw = re.escape(keyword)
    not_tag = rf'<(?!/?{kw}\s)'
    word_char = rf'[^\s<>,/+]|/(?!>)|\+(?!>)|{not_tag}'
    list_word_char = rf'[^\s<>,/+\]]|/(?!>)|\+(?!>)|{not_tag}'
    boundary = r'(?=[\s,\]<]|/?>|\+>|$)'

    return {
        TokenType.TAG_OPEN: re.compile(rf'<{kw}(?=\s)'),
        TokenType.TAG_CLOSE_OPEN: re.compile(rf'</{kw}(?=\s)'),
        TokenType.TAG_END: re.compile(r'/?>'),
        TokenType.TAG_END_MORE: re.compile(r'\+>'),
        TokenType.IDENTIFIER: re.compile(r'[A-Za-z_][A-Za-z0-9_]*'),
        TokenType.QUOTED: re.compile(r'"((?:\\.|[^"\\])*)"'),
        TokenType.NUMBER: re.compile(rf'-?\d+(?:\.\d+)?{boundary}'),
        TokenType.EXPR_NUMBER: re.compile(r'-?\d+(?:\.\d+)?(?![\w.])'),
        TokenType.WORD: re.compile(rf'(?:{word_char})+'),
        TokenType.LIST_WORD: re.compile(rf'(?:{list_word_char})+'),
        TokenType.COMMA: re.compile(r','),
        TokenType.LPAREN: re.compile(r'\('),
        TokenType.RPAREN: re.compile(r'\)'),
        TokenType.LBRACKET: re.compile(r'\['),
        TokenType.RBRACKET: re.compile(r'\]'),
        TokenType.EQ: re.compile(r'=='),
        TokenType.LTE: re.compile(r'<='),
        TokenType.GTE: re.compile(r'>='),
        TokenType.LT: re.compile(not_tag),
        TokenType.GT: re.compile(r'>'),
        TokenType.AND: re.compile(r'AND\b|&&'),
        TokenType.OR: re.compile(r'OR\b|\|\|'),
        TokenType.NOT: re.compile(r'NOT\b|!'),
        TokenType.TRUE: re.compile(r'(?i:true)\b'),
        TokenType.FALSE: re.compile(r'(?i:false)\b'),
        TokenType.PLUS: re.compile(r'\+'),
        TokenType.MINUS: re.compile(r'-'),
        TokenType.MULTIPLY: re.compile(r'\*'),
        TokenType.DIVIDE: re.compile(r'/'),
    }


_WHITESPACE = re.compile(r'\s+')
_ESCAPE = re.compile(r'\\(.)', re.DOTALL)


class Lexer:
    """
    Position-based scanner over one input string.

    Outside tags it collects TEXT; inside tags the parser asks for one
    token type at a time with ``match``. ``mark``/``reset`` let the
    parser backtrack.
    """

    def __init__(self, text: str, keyword: str = 'TAG'):
        self.text = text
        self.keyword = keyword
        self.pos = 0
        self.patterns = build_patterns(keyword)
        self._text_stop = re.compile(rf'</?{re.escape(keyword)}(?=\s)')
        self._newlines = [match.start() for match in re.finditer(r'\n', text)]

    def mark(self) -> int:
        return self.pos

    def reset(self, position: int):
        self.pos = position

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def line_column(self, position: int):
        """1-based line and column of a character offset."""
        index = bisect_left(self._newlines, position)
        last_newline = self._newlines[index - 1] if index else -1
        return index + 1, position - last_newline

    def skip_whitespace(self) -> bool:
        """Skip whitespace. Returns True if anything was skipped."""
        match = _WHITESPACE.match(self.text, self.pos)
        if match:
            self.pos = match.end()
            return True
        return False

    def peek(self, token_type: TokenType, skip_whitespace: bool = False) -> bool:
        start = self.pos
        token = self.match(token_type, skip_whitespace)
        self.pos = start
        return token is not None

    def match(self, token_type: TokenType, skip_whitespace: bool = False) -> Optional[Token]:
        """
        Consume a token of ``token_type`` at the current position.

        Returns None (and leaves the position unchanged) if there is none.
        """
        start = self.pos
        if skip_whitespace:
            self.skip_whitespace()

        match = self.patterns[token_type].match(self.text, self.pos)
        if not match:
            self.pos = start
            return None

        token = self._make_token(token_type, match.group(0), self.pos)
        if token_type == TokenType.QUOTED:
            token.value = _ESCAPE.sub(r'\1', match.group(1))
        self.pos = match.end()
        return token

    def read_text(self) -> Optional[Token]:
        """Consume literal text up to the next tag opening (or the end)."""
        if self.at_end():
            return None
        stop = self._text_stop.search(self.text, self.pos)
        end = stop.start() if stop else len(self.text)
        if end == self.pos:
            return None
        token = self._make_token(TokenType.TEXT, self.text[self.pos:end], self.pos)
        self.pos = end
        return token

    def error(self, message: str, position: Optional[int] = None) -> LexerError:
        if position is None:
            position = self.pos
        line, column = self.line_column(position)
        return LexerError(message, position, line, column)

    def describe(self, position: Optional[int] = None) -> str:
        """Short excerpt of the input at ``position`` for error messages."""
        if position is None:
            position = self.pos
        if position >= len(self.text):
            return 'end of input'
        excerpt = self.text[position:position + 20]
        return repr(excerpt)

    def _make_token(self, token_type: TokenType, value: str, position: int) -> Token:
        line, column = self.line_column(position)
        return Token(token_type, value, position, line, column)
