from __future__ import annotations
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_EVEN

from cysic_sdk.config import DECIMALS


# Scales an integer amount of smallest units to a human-facing decimal string ("1.5", "0", "100")
def to_display(amount: int, decimals: int = DECIMALS) -> str:
  value = Decimal(int(amount)).scaleb(-decimals)
  if value == 0:
    return '0'
  return format(value.normalize(), 'f')


# Converts a human-facing amount to an integer of smallest units, rounded down
def from_display(amount, decimals: int = DECIMALS) -> int:
  value = Decimal(str(amount)).scaleb(decimals)
  return int(value.to_integral_value(rounding=ROUND_DOWN))


# Parses a cosmos Dec string into a Decimal
# gRPC carries Dec as the integer scaled by 10^18 without a point; REST carries it with the point
def parse_dec(value: str) -> Decimal:
  if not value:
    return Decimal(0)
  if '.' in value:
    return Decimal(value)
  return Decimal(value).scaleb(-DECIMALS)


# Rounds a cosmos Dec string to an integer, half to even like Dec.RoundInt
def dec_to_int(value: str) -> int:
  return int(parse_dec(value).to_integral_value(rounding=ROUND_HALF_EVEN))
