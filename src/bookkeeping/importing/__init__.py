"""
Statement Import Package

Converts parsed bank statements into accounts and uncategorized transactions.
"""

from .statement import (
    ImportResult,
    ParsedStatement,
    ParsedTransaction,
    account_id_hash,
    import_statement,
    mask_account_number,
)

__all__ = [
    "ImportResult",
    "ParsedStatement",
    "ParsedTransaction",
    "account_id_hash",
    "import_statement",
    "mask_account_number",
]
