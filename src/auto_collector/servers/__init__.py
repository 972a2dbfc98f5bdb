from .apps import AutoCollectorServer, build_ledger
from .flows import collection_response, gas_funding_response, parse_user_address

__all__ = [
    "AutoCollectorServer",
    "build_ledger",
    "collection_response",
    "gas_funding_response",
    "parse_user_address",
]
