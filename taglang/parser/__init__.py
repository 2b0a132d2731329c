from taglang.parser.lexer import Lexer, LexerError, Token, TokenType
from taglang.parser.parser import TagParser
from taglang.parser import ast

__all__ = ['Lexer', 'LexerError', 'Token', 'TokenType', 'TagParser', 'ast']
