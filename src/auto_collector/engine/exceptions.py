"""
Exception and Error Definitions Module

Defines the custom exception hierarchy for configuration loading, address
parsing and blockchain interactions. All exceptions inherit from
BaseException for unified exception handling.

Business outcomes (approval pending, zero balance, sufficient gas) are
never raised; they are returned as result models from the orchestrators.

Exception Hierarchy:
    BaseException (root)
    ├── ConfigurationError
    ├── RequestInputError
    │   └── InvalidAddressError
    └── BlockchainInteractionError
        └── TransactionExecutionError
"""


class BaseException(Exception):
    """
    Root exception class for all project-specific exceptions.

    All custom exceptions should inherit from this class to enable
    unified exception handling and centralized error processing.
    """
    pass


class ConfigurationError(BaseException):
    """
    Raised when configuration is missing or invalid.

    This includes scenarios such as:
    - Missing signing key, collector contract or destination wallet
    - Malformed address or private key in the environment
    - Non-numeric poll budget or interval

    The service must not start serving when this is raised.
    """
    pass


class RequestInputError(BaseException):
    """
    Raised when an HTTP request body is missing a field or cannot be parsed.

    Surfaced as HTTP 400 before the signing queue is acquired.
    """
    pass


class InvalidAddressError(RequestInputError):
    """
    Raised when a string cannot be parsed as an EVM address.

    Attributes:
        value: The rejected input
    """

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid address: {value!r}")


class BlockchainInteractionError(BaseException):
    """
    Raised when blockchain interaction (RPC call) fails.

    This includes scenarios such as:
    - RPC call timeout
    - Network connectivity issues
    - Invalid contract address
    - Contract call revert
    - Malformed node response

    The message is the underlying error text, unchanged.
    """
    pass


class TransactionExecutionError(BlockchainInteractionError):
    """
    Raised when building, signing or broadcasting a transaction fails.

    This includes scenarios such as:
    - Gas estimation revert
    - Insufficient signer balance for gas
    - Nonce conflicts reported by the node
    """
    pass
