"""
Statement construction APIs for querykit.
"""

from .statement import Statement, Token, TokenKind, is_identifier, join_statements
from .expressions import AND, MISSING, OR, Condition, Operator, Predicate, Quote
from .joins import Join, JoinType
from .builder import ASC, DESC, Action, Query

__all__ = [
    "Statement",
    "Token",
    "TokenKind",
    "is_identifier",
    "join_statements",
    "AND",
    "OR",
    "MISSING",
    "Condition",
    "Operator",
    "Predicate",
    "Quote",
    "Join",
    "JoinType",
    "ASC",
    "DESC",
    "Action",
    "Query",
]
