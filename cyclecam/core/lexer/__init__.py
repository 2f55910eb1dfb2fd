"""
Line tokenizer for the canned-cycle G-code subset.
"""

from .tokens import (
    Token,
    TokenType,
    ModalGroup,
    G_CODE_MODAL_GROUPS,
    get_modal_group,
    operation_number,
)
from .lexer import (
    CommandLexer,
    LexerError,
    normalize_operation,
    scan_line,
    tokenize_line,
)

__all__ = [
    # Token types
    "Token",
    "TokenType",
    "ModalGroup",
    "G_CODE_MODAL_GROUPS",
    "get_modal_group",
    "operation_number",
    # Lexer
    "CommandLexer",
    "LexerError",
    "normalize_operation",
    "scan_line",
    "tokenize_line",
]
