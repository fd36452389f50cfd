import re

_EVM_ADDRESS = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_valid_token_address(address: str) -> bool:
    """0x-prefixed, 20-byte hex address (checksum not enforced)."""
    return bool(_EVM_ADDRESS.match(address or ""))
