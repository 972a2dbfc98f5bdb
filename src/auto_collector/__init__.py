"""
auto-collector: ERC-20 allowance collection and token-gated gas funding.

Users approve the collector contract off-band; the service then pulls their
whole token balance into the destination wallet on request, and tops up
native gas for token holders who cannot pay fees.
"""

__version__ = "0.1.0"
