"""
Search indexing and query engine package.

This package provides the in-memory exact-match search stack:
- binary_tree: Ordered tree, balanced once after bulk loading
- tokenizer: Splits field values into typed tokens
- models: Match records (record + field provenance)
- index: Index builder and the frozen, queryable search index
"""

from zd_search.search.binary_tree import BinaryTree
from zd_search.search.index import SearchIndex, SearchIndexBuilder
from zd_search.search.models import Match, Record
from zd_search.search.tokenizer import Tokenizer, TokenType, token_type_of


__all__ = [
    "BinaryTree",
    "Match",
    "Record",
    "SearchIndex",
    "SearchIndexBuilder",
    "TokenType",
    "Tokenizer",
    "token_type_of",
]
