from .bases import LedgerClient
from .evm import EVMLedgerClient

__all__ = [
    "LedgerClient",
    "EVMLedgerClient",
]
