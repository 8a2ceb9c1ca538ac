"""
Fixed-point unit conversion

Native amounts and token amounts are integers scaled by a decimal count
(18 for the base asset, ``decimals()`` for ERC-20 tokens). Gas prices are
quoted in gwei (1e9 wei).
"""

from decimal import Decimal
from typing import Union

ETH_DECIMALS = 18
GWEI_DECIMALS = 9

# Floats are rounded to this many digits before scaling up further
_FLOAT_PRECISION = 6


def float_to_fixed_point(amount: float, decimals: int) -> int:
    """
    Convert a float amount to an integer scaled by ``10**decimals``.

    Examples:
        float_to_fixed_point(1, 4) == 10000
        float_to_fixed_point(1.234, 4) == 12340
    """
    if decimals < _FLOAT_PRECISION:
        return int(round(amount * 10 ** decimals))
    scaled = int(round(amount * 10 ** _FLOAT_PRECISION))
    return scaled * 10 ** (decimals - _FLOAT_PRECISION)


def fixed_point_to_float(value: Union[int, str], decimals: int) -> float:
    """
    Convert a scaled integer back to a float.

    Examples:
        fixed_point_to_float(1100, 3) == 1.1
        fixed_point_to_float(1100, 2) == 11.0
        fixed_point_to_float(1100, 5) == 0.011
    """
    return float(Decimal(int(value)) / (Decimal(10) ** decimals))


def gwei_to_wei(gwei: float) -> int:
    return float_to_fixed_point(gwei, GWEI_DECIMALS)


def eth_to_wei(eth: float) -> int:
    return float_to_fixed_point(eth, ETH_DECIMALS)


def wei_to_gwei(wei: int) -> float:
    return fixed_point_to_float(wei, GWEI_DECIMALS)


def wei_to_eth(wei: int) -> float:
    return fixed_point_to_float(wei, ETH_DECIMALS)


def hex_to_int(value: Union[str, int, None]) -> int:
    """Parse a JSON-RPC quantity (``0x``-prefixed hex) into an int"""
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    if value in ("0x", ""):
        return 0
    return int(value, 16)
