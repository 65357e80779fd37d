"""
Identifier helpers shared by the sealing services.

Pure functions with no model imports, so they can be used anywhere
without circular imports.
"""

import secrets


def generate_prefixed_id(prefix: str, length=16):
    """
    Generate a random identifier tagged with what it identifies.

    Example:
        >>> generate_prefixed_id('qr')
        'qr_3f9c...'
    """
    return f"{prefix}_{secrets.token_hex(length)}"


def generate_transaction_id():
    """Fresh id tying together the audit entries written in one operation."""
    return generate_prefixed_id('txn', 12)
