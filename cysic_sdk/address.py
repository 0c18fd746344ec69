from __future__ import annotations
import re
import logging

import bech32
from web3 import Web3

from cysic_sdk.config import BECH32_PREFIX_ACC_ADDR, BECH32_PREFIX_VAL_ADDR
from cysic_sdk.errors import InvalidAddress

logger = logging.getLogger(__name__)

# Length of an account identifier in bytes
ADDRESS_LENGTH = 20

HEX_ADDRESS_RE = re.compile(r'^(0x|0X)?[0-9a-fA-F]{40}$')


# Returns whether a string is a 20-byte hex address, with or without 0x
def is_hex_address(addr: str) -> bool:
  return bool(HEX_ADDRESS_RE.match(addr))


# Left-pads short input and keeps the trailing bytes of long input, like Ethereum's BytesToAddress
def normalize_bytes(raw: bytes) -> bytes:
  if len(raw) > ADDRESS_LENGTH:
    return raw[-ADDRESS_LENGTH:]
  return raw.rjust(ADDRESS_LENGTH, b'\x00')


# Encodes raw address bytes as bech32 with the given prefix
def bytes_to_bech32(raw: bytes, prefix: str) -> str:
  five_bit_r = bech32.convertbits(raw, 8, 5)
  return bech32.bech32_encode(prefix, five_bit_r)


# Decodes a bech32 string, checking that its prefix is the expected one
def bech32_to_bytes(addr: str, prefix: str) -> bytes:
  hrp, data = bech32.bech32_decode(addr)
  if hrp is None or data is None:
    raise InvalidAddress(f'invalid bech32 address: {addr!r}')
  if hrp != prefix:
    raise InvalidAddress(f'expected prefix {prefix!r}, got {hrp!r} in {addr!r}')
  raw = bech32.convertbits(data, 5, 8, False)
  if raw is None or len(raw) == 0:
    raise InvalidAddress(f'invalid bech32 payload: {addr!r}')
  return bytes(raw)


# Detects the encoding of an address string and returns its 20 raw bytes
# Validator prefix is checked before the account prefix since it starts with it
def address_bytes(addr: str, acc_prefix: str = BECH32_PREFIX_ACC_ADDR, val_prefix: str = BECH32_PREFIX_VAL_ADDR) -> bytes:
  if not addr:
    raise InvalidAddress('addr can\'t be empty')
  if is_hex_address(addr):
    return bytes.fromhex(addr[2:] if addr[:2].lower() == '0x' else addr)
  if addr.startswith(val_prefix):
    return normalize_bytes(bech32_to_bytes(addr, val_prefix))
  if addr.startswith(acc_prefix):
    return normalize_bytes(bech32_to_bytes(addr, acc_prefix))
  logger.error('unrecognized address format: %s', addr)
  raise InvalidAddress(f'expected a valid hex or bech32 address (acc prefix {acc_prefix}), got {addr!r}')


# Converts an address string to both its Ethereum hex and Cysic bech32 forms
def convert_address(addr: str, acc_prefix: str = BECH32_PREFIX_ACC_ADDR, val_prefix: str = BECH32_PREFIX_VAL_ADDR) -> tuple[str, str]:
  raw = address_bytes(addr, acc_prefix, val_prefix)
  return Web3.to_checksum_address(raw), bytes_to_bech32(raw, acc_prefix)


# Converts an address string to a Cysic account (bech32) address
def to_cysic_address(addr: str, acc_prefix: str = BECH32_PREFIX_ACC_ADDR, val_prefix: str = BECH32_PREFIX_VAL_ADDR) -> str:
  return bytes_to_bech32(address_bytes(addr, acc_prefix, val_prefix), acc_prefix)


# Converts an address string to an EIP-55 checksummed Ethereum address
def to_eth_address(addr: str, acc_prefix: str = BECH32_PREFIX_ACC_ADDR, val_prefix: str = BECH32_PREFIX_VAL_ADDR) -> str:
  return Web3.to_checksum_address(address_bytes(addr, acc_prefix, val_prefix))


# Converts an address string to a validator operator (valoper) address
def to_validator_address(addr: str, acc_prefix: str = BECH32_PREFIX_ACC_ADDR, val_prefix: str = BECH32_PREFIX_VAL_ADDR) -> str:
  return bytes_to_bech32(address_bytes(addr, acc_prefix, val_prefix), val_prefix)


# Hex form of a chain address
def chain_address_to_hex(addr: str) -> str:
  return to_eth_address(addr)


# Chain (bech32 account) form of a hex address
def hex_to_chain_address(addr: str) -> str:
  if not is_hex_address(addr):
    raise InvalidAddress(f'expected a valid hex address, got {addr!r}')
  return to_cysic_address(addr)


# Returns whether a string is a well-formed bech32 address with the given prefix
def is_bech32_address(addr: str, prefix: str) -> bool:
  try:
    bech32_to_bytes(addr, prefix)
  except InvalidAddress:
    return False
  return True
