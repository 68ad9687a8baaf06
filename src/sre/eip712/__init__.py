"""EIP-712 typed-data signing schemas and verification."""
