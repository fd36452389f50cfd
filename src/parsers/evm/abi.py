"""Minimal ABIs for the read-only calls the engine makes."""


def _view(name: str, outputs: list[str], inputs: list[str] | None = None) -> dict:
    return {
        "name": name,
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": f"a{i}", "type": t} for i, t in enumerate(inputs or [])],
        "outputs": [{"name": f"r{i}", "type": t} for i, t in enumerate(outputs)],
    }


ERC20_ABI = [
    _view("name", ["string"]),
    _view("symbol", ["string"]),
    _view("decimals", ["uint8"]),
    _view("totalSupply", ["uint256"]),
    _view("balanceOf", ["uint256"], ["address"]),
]

OWNABLE_ABI = [
    _view("owner", ["address"]),
    _view("getOwner", ["address"]),
]

V2_FACTORY_ABI = [_view("getPair", ["address"], ["address", "address"])]

V3_FACTORY_ABI = [_view("getPool", ["address"], ["address", "address", "uint24"])]

V2_PAIR_ABI = [
    _view("token0", ["address"]),
    _view("token1", ["address"]),
    _view("getReserves", ["uint112", "uint112", "uint32"]),
    _view("totalSupply", ["uint256"]),
]

V3_POOL_ABI = [
    _view("token0", ["address"]),
    _view("token1", ["address"]),
    _view("fee", ["uint24"]),
]
