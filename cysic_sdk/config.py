from __future__ import annotations
import json
from dataclasses import dataclass, replace
from functools import cache

# Path of the chain parameter file
CHAIN_LIST = 'chains.json'

# Defaults for the Cysic network
DEFAULT_GAS_LIMIT = 15_000_000
DECIMALS = 18
BECH32_PREFIX_ACC_ADDR = 'cysic'
BECH32_PREFIX_VAL_ADDR = 'cysicvaloper'
GOV_TOKEN = 'CGT'
PLATFORM_TOKEN = 'CYS'
ETH_SECP256K1_PUBKEY_TYPE = '/cysicmint.crypto.v1.ethsecp256k1.PubKey'
SECP256K1_PUBKEY_TYPE = '/cosmos.crypto.secp256k1.PubKey'


# Per-deployment parameters, fixed for the life of a client
@dataclass(frozen=True)
class ChainConfig:
  endpoint: str
  chain_id: str
  gas_coin: str
  gas_price: int
  gas_limit: int = DEFAULT_GAS_LIMIT
  acc_prefix: str = BECH32_PREFIX_ACC_ADDR
  val_prefix: str = BECH32_PREFIX_VAL_ADDR
  gov_token: str = GOV_TOKEN
  platform_token: str = PLATFORM_TOKEN
  decimals: int = DECIMALS
  pubkey_type_url: str = ETH_SECP256K1_PUBKEY_TYPE

  def __post_init__(self):
    if not self.endpoint:
      raise ValueError('endpoint cannot be empty')
    if not self.chain_id:
      raise ValueError('chain id cannot be empty')
    if not self.gas_coin:
      raise ValueError('gas coin cannot be empty')
    if self.gas_price < 0:
      raise ValueError('gas price cannot be negative')
    if self.gas_limit <= 0:
      raise ValueError('gas limit must be positive')

  # Returns a copy with a different gas limit
  def with_gas_limit(self, gas_limit: int) -> ChainConfig:
    return replace(self, gas_limit=gas_limit)

  # Builds a config from an entry of the chain parameter file
  @classmethod
  def from_chain_list(cls, chain: str, path: str = CHAIN_LIST) -> ChainConfig:
    info = chain_info(chain, path)
    return cls(
      endpoint=info['grpc'],
      chain_id=info['chainId'],
      gas_coin=info['gasCoin'],
      gas_price=int(info['gasPrice']),
      gas_limit=int(info.get('gasLimit', DEFAULT_GAS_LIMIT)),
      acc_prefix=info.get('prefix', BECH32_PREFIX_ACC_ADDR),
      val_prefix=info.get('validatorPrefix', BECH32_PREFIX_VAL_ADDR),
      gov_token=info.get('govToken', GOV_TOKEN),
      platform_token=info.get('platformToken', PLATFORM_TOKEN),
      decimals=int(info.get('decimals', DECIMALS)),
      pubkey_type_url=info.get('pubkeyType', ETH_SECP256K1_PUBKEY_TYPE),
    )


# Returns list of chains in config file
@cache
def chain_list(path: str = CHAIN_LIST, show_hidden: bool = False) -> list:
  with open(path) as f:
    chains = json.load(f)
  return [chain['chain'] for chain in chains if not (chain.get('hidden', False) and not show_hidden)]


# Returns specific config info for a given chain
@cache
def chain_info(chain: str, path: str = CHAIN_LIST) -> dict:
  with open(path) as f:
    chains = json.load(f)
  for c in chains:
    if c['chain'] == chain:
      return c
  raise KeyError(f'chain {chain} not found in {path}')
