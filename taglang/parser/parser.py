"""
Parser for the tag language

Recursive descent over the on-demand lexer. Produces a DocumentNode for
full text, or a bare boolean expression for condition strings.

Supports:
- Short calls: <TAG get_param price />
- Long calls: <TAG get_param missing +> default text </TAG get_param>
- Conditionals: <TAG if /> cond <TAG then /> ... <TAG else /> ... <TAG end_if />
- Error boundaries: <TAG on_error replacement +> ... </TAG on_error>
- Conditions: NOT > AND > OR, comparisons over + - * / arithmetic
"""

from typing import List, Optional, Set, Tuple
import re

from taglang.config import Config
from taglang.errors import NestingDepthError, ParseError
from taglang.parser.lexer import Lexer, TokenType
from taglang.parser.ast import (
    TagNode,
    DocumentNode,
    TextNode,
    NumberNode,
    BoolNode,
    QuotedTextNode,
    ParamListNode,
    ShortTagCallNode,
    LongTagCallNode,
    IfThenNode,
    IfThenElseNode,
    ErrorBoundaryNode,
    BinaryArithNode,
    ComparisonNode,
    BinaryBoolNode,
    NotNode,
    MathOp,
    ComparisonOp,
    LogicalOp,
)


class TagParser:
    """
    Parser for tag syntax.

    A parser instance keeps no state between calls to ``parse``, but is
    not meant to be shared between threads while parsing.
    """

    ADDITIVE_OPS = {
        TokenType.PLUS: MathOp.ADD,
        TokenType.MINUS: MathOp.SUB,
    }

    MULTIPLICATIVE_OPS = {
        TokenType.MULTIPLY: MathOp.MUL,
        TokenType.DIVIDE: MathOp.DIV,
    }

    # Order matters: two-character operators first
    COMPARISON_OPS = (
        (TokenType.EQ, ComparisonOp.EQ),
        (TokenType.LTE, ComparisonOp.LTE),
        (TokenType.GTE, ComparisonOp.GTE),
        (TokenType.LT, ComparisonOp.LT),
        (TokenType.GT, ComparisonOp.GT),
    )

    CONTROL_WORDS = ('then', 'else', 'end_if')

    def __init__(self, config=None):
        self.config = config or Config
        self.keyword = self.config.TAG_KEYWORD
        self._lexer: Optional[Lexer] = None
        self._depth = 0
        self._furthest: Optional[ParseError] = None

    def parse(self, text: str) -> DocumentNode:
        """
        Parse text into a DocumentNode AST.

        Args:
            text: Text containing tags to parse

        Returns:
            DocumentNode with text and directive children

        Raises:
            ParseError: If the text is malformed
        """
        self._start(text)
        try:
            children = self._parse_sequence(stop_words=set(), stop_on_close=False)
            return DocumentNode(position=0, children=children)
        except ParseError as e:
            raise self._deepest(e) from None

    def parse_condition(self, text: str) -> TagNode:
        """
        Parse a condition using only the boolean-expression grammar.

        Raises:
            ParseError: If the text is empty or not a complete condition
        """
        self._start(text)
        try:
            if not text.strip():
                raise self._error("Empty condition")
            expr = self._parse_or()
            self._lexer.skip_whitespace()
            if not self._lexer.at_end():
                raise self._error(f"Unexpected {self._lexer.describe()} after condition")
            return expr
        except ParseError as e:
            raise self._deepest(e) from None

    def _start(self, text: str):
        self._lexer = Lexer(text, self.keyword)
        self._depth = 0
        self._furthest = None
        limit = self.config.MAX_INPUT_LENGTH
        if limit and len(text) > limit:
            raise self._lexer.error(
                f"Input is longer than the maximum of {limit} characters", limit
            )

    # ==================== Errors ====================

    def _error(self, message: str, position: Optional[int] = None) -> ParseError:
        """Build a ParseError and remember it if it is the deepest so far."""
        error = self._lexer.error(message, position)
        if self._furthest is None or error.position >= self._furthest.position:
            self._furthest = error
        return error

    def _deepest(self, error: ParseError) -> ParseError:
        # Backtracking can surface a shallow error; report the one that got furthest
        if isinstance(error, NestingDepthError):
            return error
        if self._furthest is not None and self._furthest.position > error.position:
            return self._furthest
        return error

    def _enter(self):
        self._depth += 1
        if self._depth > self.config.MAX_NESTING_DEPTH:
            position = self._lexer.pos
            line, column = self._lexer.line_column(position)
            self._depth -= 1
            raise NestingDepthError(
                f"Maximum nesting depth of {self.config.MAX_NESTING_DEPTH} exceeded",
                position, line, column,
            )

    def _leave(self):
        self._depth -= 1

    # ==================== Text and directives ====================

    def _parse_sequence(self, stop_words: Set[str], stop_on_close: bool) -> Tuple[TagNode, ...]:
        """
        Parse text and directives until one of ``stop_words`` opens, a
        closing tag appears (when ``stop_on_close``) or the input ends.
        """
        lexer = self._lexer
        nodes: List[TagNode] = []

        while True:
            if lexer.at_end():
                if stop_words or stop_on_close:
                    expected = ' or '.join(sorted(stop_words)) or 'a closing tag'
                    raise self._error(f"Unexpected end of input, expected {expected}")
                break

            if lexer.peek(TokenType.TAG_CLOSE_OPEN):
                if stop_on_close:
                    break
                raise self._error(f"Unexpected closing tag '</{self.keyword}'")

            if lexer.peek(TokenType.TAG_OPEN):
                if self._peek_directive_name() in stop_words:
                    break
                nodes.append(self._parse_directive())
                continue

            token = lexer.read_text()
            nodes.append(TextNode(position=token.position, text=token.value))

        return tuple(nodes)

    def _peek_directive_name(self) -> Optional[str]:
        start = self._lexer.mark()
        name = None
        if self._lexer.match(TokenType.TAG_OPEN):
            token = self._lexer.match(TokenType.IDENTIFIER, skip_whitespace=True)
            name = token.value if token else None
        self._lexer.reset(start)
        return name

    def _parse_directive(self) -> TagNode:
        """Parse one <TAG ...> construct: a call, an if block or an error boundary."""
        lexer = self._lexer
        open_token = lexer.match(TokenType.TAG_OPEN)
        if open_token is None:
            raise self._error(f"Expected '<{self.keyword}'")

        name_token = lexer.match(TokenType.IDENTIFIER, skip_whitespace=True)
        if name_token is None:
            raise self._error(f"Expected function name after '<{self.keyword}'")

        name = name_token.value
        if name in self.CONTROL_WORDS:
            raise self._error(f"Unexpected '{name}' outside of an if block", name_token.position)

        self._enter()
        try:
            if name == 'if':
                return self._parse_if(open_token.position)
            if name == 'on_error':
                return self._parse_error_boundary(open_token.position)
            return self._parse_call(name, open_token.position)
        finally:
            self._leave()

    def _parse_call(self, name: str, position: int) -> TagNode:
        lexer = self._lexer
        params1 = self._parse_param_list()

        if lexer.match(TokenType.TAG_END_MORE, skip_whitespace=True):
            params2 = self._parse_param_list()
            self._expect_close(name)
            return LongTagCallNode(position=position, name=name, params1=params1, params2=params2)

        if lexer.match(TokenType.TAG_END, skip_whitespace=True):
            return ShortTagCallNode(position=position, name=name, params=params1)

        raise self._error(
            f"Expected '/>' or '+>' to close tag '{name}', found {lexer.describe()}"
        )

    def _expect_close(self, name: str):
        """Consume '</TAG name>'."""
        lexer = self._lexer
        lexer.skip_whitespace()
        if not lexer.match(TokenType.TAG_CLOSE_OPEN):
            raise self._error(f"Expected '</{self.keyword} {name}>', found {lexer.describe()}")

        close_name = lexer.match(TokenType.IDENTIFIER, skip_whitespace=True)
        if close_name is None:
            raise self._error(f"Expected function name after '</{self.keyword}'")
        if close_name.value != name:
            raise self._error(
                f"Closing tag '{close_name.value}' does not match opening tag '{name}'",
                close_name.position,
            )

        if not lexer.match(TokenType.TAG_END, skip_whitespace=True):
            raise self._error(f"Expected '>' to end closing tag '{name}'")

    def _expect_control(self, word: str):
        """Consume '<TAG word />'."""
        lexer = self._lexer
        start = lexer.mark()
        if lexer.match(TokenType.TAG_OPEN):
            name = lexer.match(TokenType.IDENTIFIER, skip_whitespace=True)
            if name is not None and name.value == word:
                if lexer.match(TokenType.TAG_END, skip_whitespace=True):
                    return
                raise self._error(f"Expected '/>' after '{word}'")
        lexer.reset(start)
        raise self._error(f"Expected '<{self.keyword} {word} />', found {lexer.describe()}")

    def _parse_if(self, position: int) -> TagNode:
        lexer = self._lexer
        if not lexer.match(TokenType.TAG_END, skip_whitespace=True):
            raise self._error(f"Expected '/>' after 'if', found {lexer.describe()}")

        condition = self._parse_or()
        lexer.skip_whitespace()
        self._expect_control('then')

        then_branch = self._parse_sequence(stop_words={'else', 'end_if'}, stop_on_close=False)

        if self._peek_directive_name() == 'else':
            self._expect_control('else')
            else_branch = self._parse_sequence(stop_words={'end_if'}, stop_on_close=False)
            self._expect_control('end_if')
            return IfThenElseNode(
                position=position,
                condition=condition,
                then_branch=then_branch,
                else_branch=else_branch,
            )

        self._expect_control('end_if')
        return IfThenNode(position=position, condition=condition, then_branch=then_branch)

    def _parse_error_boundary(self, position: int) -> TagNode:
        lexer = self._lexer
        replacement = self._parse_param_list()
        if not lexer.match(TokenType.TAG_END_MORE, skip_whitespace=True):
            raise self._error(f"Expected '+>' after on_error replacement, found {lexer.describe()}")

        protected = self._parse_sequence(stop_words=set(), stop_on_close=True)
        self._expect_close('on_error')
        return ErrorBoundaryNode(position=position, replacement=replacement, protected=protected)

    # ==================== Parameters ====================

    def _parse_param_list(self) -> ParamListNode:
        """
        Parse parameters separated by commas and/or whitespace, optionally
        wrapped in [ ... ]. Stops before '/>', '>', '+>' or '</TAG'.
        """
        lexer = self._lexer
        lexer.skip_whitespace()
        position = lexer.mark()
        bracketed = lexer.match(TokenType.LBRACKET) is not None
        params: List[TagNode] = []

        while True:
            separated = lexer.skip_whitespace()

            if bracketed:
                if lexer.match(TokenType.RBRACKET):
                    break
            elif self._at_param_list_end():
                break

            if lexer.at_end():
                raise self._error("Unexpected end of input inside tag")

            if params:
                if lexer.match(TokenType.COMMA):
                    lexer.skip_whitespace()
                    separated = True
                    if lexer.peek(TokenType.COMMA):
                        raise self._error("Empty parameter between commas")
                if not separated:
                    raise self._error(f"Expected ',' or whitespace between parameters, found {lexer.describe()}")
                if not bracketed and self._at_param_list_end():
                    raise self._error("Expected parameter after ','")
            elif lexer.peek(TokenType.COMMA):
                raise self._error("Unexpected ',' before first parameter")

            params.append(self._parse_param(bracketed))

        return ParamListNode(position=position, params=tuple(params))

    def _at_param_list_end(self) -> bool:
        lexer = self._lexer
        return (
            lexer.at_end()
            or lexer.peek(TokenType.TAG_END_MORE)
            or lexer.peek(TokenType.TAG_END)
            or lexer.peek(TokenType.TAG_CLOSE_OPEN)
        )

    def _parse_param(self, bracketed: bool) -> TagNode:
        lexer = self._lexer

        token = lexer.match(TokenType.QUOTED)
        if token:
            return QuotedTextNode(position=token.position, parts=tuple(_split_words(token.value)))

        token = lexer.match(TokenType.NUMBER)
        if token:
            return NumberNode(position=token.position, value=_to_number(token.value), text=token.value)

        if lexer.peek(TokenType.TAG_OPEN):
            return self._parse_directive()

        token = lexer.match(TokenType.LIST_WORD if bracketed else TokenType.WORD)
        if token:
            return TextNode(position=token.position, text=token.value)

        raise self._error(f"Expected parameter, found {lexer.describe()}")

    # ==================== Conditions ====================

    def _parse_or(self) -> TagNode:
        """or_expr: and_expr (OR and_expr)*"""
        left = self._parse_and()
        while True:
            token = self._lexer.match(TokenType.OR, skip_whitespace=True)
            if token is None:
                return left
            right = self._parse_and()
            left = BinaryBoolNode(position=token.position, left=left, op=LogicalOp.OR, right=right)

    def _parse_and(self) -> TagNode:
        """and_expr: not_expr (AND not_expr)*"""
        left = self._parse_not()
        while True:
            token = self._lexer.match(TokenType.AND, skip_whitespace=True)
            if token is None:
                return left
            right = self._parse_not()
            left = BinaryBoolNode(position=token.position, left=left, op=LogicalOp.AND, right=right)

    def _parse_not(self) -> TagNode:
        """not_expr: NOT not_expr | bool_primary"""
        token = self._lexer.match(TokenType.NOT, skip_whitespace=True)
        if token:
            self._enter()
            try:
                return NotNode(position=token.position, expr=self._parse_not())
            finally:
                self._leave()
        return self._parse_bool_primary()

    def _parse_bool_primary(self) -> TagNode:
        """
        bool_primary: '(' or_expr ')' | comparison | TRUE | FALSE | tag

        Alternatives are tried in order; a failed one rewinds the lexer.
        """
        lexer = self._lexer
        lexer.skip_whitespace()
        start = lexer.mark()

        if lexer.match(TokenType.LPAREN):
            self._enter()
            try:
                expr = self._parse_or()
                if lexer.match(TokenType.RPAREN, skip_whitespace=True):
                    return expr
            except ParseError as e:
                if isinstance(e, NestingDepthError):
                    raise
            finally:
                self._leave()
            lexer.reset(start)

        try:
            return self._parse_comparison()
        except ParseError as e:
            if isinstance(e, NestingDepthError):
                raise
            lexer.reset(start)

        token = lexer.match(TokenType.TRUE)
        if token:
            return BoolNode(position=token.position, value=True)
        token = lexer.match(TokenType.FALSE)
        if token:
            return BoolNode(position=token.position, value=False)

        if lexer.peek(TokenType.TAG_OPEN):
            return self._parse_directive()

        raise self._error(f"Expected condition, found {lexer.describe()}")

    def _parse_comparison(self) -> TagNode:
        """comparison: additive op additive"""
        left = self._parse_additive()
        for token_type, op in self.COMPARISON_OPS:
            token = self._lexer.match(token_type, skip_whitespace=True)
            if token:
                right = self._parse_additive()
                return ComparisonNode(position=token.position, left=left, op=op, right=right)
        raise self._error(f"Expected comparison operator, found {self._lexer.describe()}")

    def _parse_additive(self) -> TagNode:
        """additive: multiplicative (('+' | '-') multiplicative)*"""
        left = self._parse_multiplicative()
        while True:
            token = self._match_any(self.ADDITIVE_OPS)
            if token is None:
                return left
            right = self._parse_multiplicative()
            left = BinaryArithNode(position=token.position, left=left, op=self.ADDITIVE_OPS[token.type], right=right)

    def _parse_multiplicative(self) -> TagNode:
        """multiplicative: factor (('*' | '/') factor)*"""
        left = self._parse_factor()
        while True:
            token = self._match_any(self.MULTIPLICATIVE_OPS)
            if token is None:
                return left
            right = self._parse_factor()
            left = BinaryArithNode(position=token.position, left=left, op=self.MULTIPLICATIVE_OPS[token.type], right=right)

    def _parse_factor(self) -> TagNode:
        """factor: number | tag | '(' additive ')'"""
        lexer = self._lexer
        lexer.skip_whitespace()

        token = lexer.match(TokenType.EXPR_NUMBER)
        if token:
            return NumberNode(position=token.position, value=_to_number(token.value), text=token.value)

        if lexer.peek(TokenType.TAG_OPEN):
            return self._parse_directive()

        if lexer.match(TokenType.LPAREN):
            self._enter()
            try:
                expr = self._parse_additive()
            finally:
                self._leave()
            if not lexer.match(TokenType.RPAREN, skip_whitespace=True):
                raise self._error(f"Expected ')', found {lexer.describe()}")
            return expr

        raise self._error(f"Expected number, tag or '(', found {lexer.describe()}")

    def _match_any(self, token_types):
        for token_type in token_types:
            token = self._lexer.match(token_type, skip_whitespace=True)
            if token:
                return token
        return None


def _split_words(value: str) -> List[str]:
    """Split quoted text on whitespace runs; joining with ' ' collapses them."""
    return re.split(r'\s+', value)


def _to_number(text: str) -> float:
    # float() has no digit limit; out-of-range literals become inf
    return float(text)
