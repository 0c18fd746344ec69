from __future__ import annotations
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

from cysic_sdk import interfaces
from cysic_sdk.address import is_bech32_address, is_hex_address
from cysic_sdk.config import BECH32_PREFIX_ACC_ADDR, BECH32_PREFIX_VAL_ADDR
from cysic_sdk.errors import MessageValidationError

DENOM_RE = re.compile(r'^[a-zA-Z][a-zA-Z0-9/:._-]{2,127}$')


@dataclass(frozen=True)
class Coin:
  denom: str
  amount: int

  def __str__(self) -> str:
    return f'{self.amount}{self.denom}'

  def validate(self) -> None:
    if not DENOM_RE.match(self.denom or ''):
      raise MessageValidationError(f'invalid denom: {self.denom!r}')
    if not isinstance(self.amount, int) or self.amount < 0:
      raise MessageValidationError(f'negative coin amount: {self}')

  def to_proto(self):
    coin = interfaces.Coin.Coin()
    coin.denom = self.denom
    coin.amount = str(self.amount)
    return coin

  @classmethod
  def from_proto(cls, coin) -> Coin:
    return cls(coin.denom, int(coin.amount or 0))


# Sums coins by denomination, dropping zero totals and sorting by denom like sdk.NewCoins
def sum_coins(coins) -> List[Coin]:
  totals = {}
  for coin in coins:
    totals[coin.denom] = totals.get(coin.denom, 0) + coin.amount
  return [Coin(denom, amount) for denom, amount in sorted(totals.items()) if amount != 0]


# Validates a coin set: valid denoms, strictly positive amounts, sorted and without duplicates
def validate_coins(coins, what: str = 'coins') -> None:
  if len(coins) == 0:
    raise MessageValidationError(f'{what} cannot be empty')
  for coin in coins:
    coin.validate()
    if coin.amount == 0:
      raise MessageValidationError(f'{what}: coin {coin.denom} amount is not positive')
  denoms = [coin.denom for coin in coins]
  if denoms != sorted(set(denoms)):
    raise MessageValidationError(f'{what}: denominations must be sorted and unique, got {denoms}')


def _check_acc(addr: str, what: str, prefix: str) -> None:
  if not is_bech32_address(addr or '', prefix):
    raise MessageValidationError(f'invalid {what} address ({addr!r})')


def _check_positive_amount(amount: str) -> None:
  try:
    value = int(amount)
  except (TypeError, ValueError):
    raise MessageValidationError(f'invalid amount: {amount!r}') from None
  if value <= 0:
    raise MessageValidationError('amount cannot be zero or negative')


class Msg(ABC):
  """
  A chain message that can validate itself and be packed into a transaction body.
  """
  type_url: str = ''

  @abstractmethod
  def validate_basic(self) -> None:
    ...

  @abstractmethod
  def to_proto(self):
    ...

  def pack(self):
    return interfaces.pack_msg(self.to_proto(), self.type_url)


@dataclass
class MsgSend(Msg):
  from_address: str
  to_address: str
  amount: List[Coin]
  prefix: str = BECH32_PREFIX_ACC_ADDR
  type_url = '/cosmos.bank.v1beta1.MsgSend'

  def validate_basic(self) -> None:
    _check_acc(self.from_address, 'from', self.prefix)
    _check_acc(self.to_address, 'to', self.prefix)
    validate_coins(self.amount, 'send amount')

  def to_proto(self):
    msg = interfaces.BankTx.MsgSend()
    msg.from_address = self.from_address
    msg.to_address = self.to_address
    msg.amount.extend([coin.to_proto() for coin in self.amount])
    return msg


@dataclass
class MultiSendEntry:
  address: str
  coins: List[Coin]


@dataclass
class MsgMultiSend(Msg):
  inputs: List[MultiSendEntry]
  outputs: List[MultiSendEntry]
  prefix: str = BECH32_PREFIX_ACC_ADDR
  type_url = '/cosmos.bank.v1beta1.MsgMultiSend'

  # Single-input multi-send whose input is the per-denomination sum of every output
  @classmethod
  def balanced(cls, sender: str, outputs: List[MultiSendEntry], prefix: str = BECH32_PREFIX_ACC_ADDR) -> MsgMultiSend:
    total = sum_coins(coin for output in outputs for coin in output.coins)
    return cls([MultiSendEntry(sender, total)], outputs, prefix)

  def validate_basic(self) -> None:
    if len(self.inputs) == 0:
      raise MessageValidationError('no inputs to send transaction')
    if len(self.inputs) > 1:
      raise MessageValidationError('multiple senders not allowed')
    if len(self.outputs) == 0:
      raise MessageValidationError('no outputs to send transaction')
    for entry in self.inputs:
      _check_acc(entry.address, 'input', self.prefix)
      validate_coins(entry.coins, 'input coins')
    for entry in self.outputs:
      _check_acc(entry.address, 'output', self.prefix)
      validate_coins(entry.coins, 'output coins')
    total_in = sum_coins(coin for entry in self.inputs for coin in entry.coins)
    total_out = sum_coins(coin for entry in self.outputs for coin in entry.coins)
    if total_in != total_out:
      raise MessageValidationError(f'sum inputs != sum outputs: {total_in} != {total_out}')

  def to_proto(self):
    msg = interfaces.BankTx.MsgMultiSend()
    for entry in self.inputs:
      msg.inputs.append(interfaces.Bank.Input(address=entry.address, coins=[coin.to_proto() for coin in entry.coins]))
    for entry in self.outputs:
      msg.outputs.append(interfaces.Bank.Output(address=entry.address, coins=[coin.to_proto() for coin in entry.coins]))
    return msg


@dataclass
class MsgDelegate(Msg):
  delegator_address: str
  validator_address: str
  amount: Coin
  acc_prefix: str = BECH32_PREFIX_ACC_ADDR
  val_prefix: str = BECH32_PREFIX_VAL_ADDR
  type_url = '/cosmos.staking.v1beta1.MsgDelegate'
  proto = interfaces.StakingTx.MsgDelegate

  def validate_basic(self) -> None:
    _check_acc(self.delegator_address, 'delegator', self.acc_prefix)
    _check_acc(self.validator_address, 'validator', self.val_prefix)
    self.amount.validate()
    if self.amount.amount == 0:
      raise MessageValidationError('invalid delegation amount')

  def to_proto(self):
    msg = self.proto()
    msg.delegator_address = self.delegator_address
    msg.validator_address = self.validator_address
    msg.amount.CopyFrom(self.amount.to_proto())
    return msg


@dataclass
class MsgUndelegate(MsgDelegate):
  type_url = '/cosmos.staking.v1beta1.MsgUndelegate'
  proto = interfaces.StakingTx.MsgUndelegate


@dataclass
class MsgWithdrawDelegatorReward(Msg):
  delegator_address: str
  validator_address: str
  acc_prefix: str = BECH32_PREFIX_ACC_ADDR
  val_prefix: str = BECH32_PREFIX_VAL_ADDR
  type_url = '/cosmos.distribution.v1beta1.MsgWithdrawDelegatorReward'

  def validate_basic(self) -> None:
    _check_acc(self.delegator_address, 'delegator', self.acc_prefix)
    _check_acc(self.validator_address, 'validator', self.val_prefix)

  def to_proto(self):
    msg = interfaces.DistributionTx.MsgWithdrawDelegatorReward()
    msg.delegator_address = self.delegator_address
    msg.validator_address = self.validator_address
    return msg


# Delegates a vote-escrow token from a worker (hex address) to a validator
@dataclass
class MsgDelegateVeToken(Msg):
  worker: str
  validator: str
  token: str
  amount: str
  type_url = '/cysicmint.delegate.v1.MsgDelegate'

  def validate_basic(self) -> None:
    if not is_hex_address(self.worker or ''):
      raise MessageValidationError('worker cannot be empty')
    if not self.validator:
      raise MessageValidationError('validator cannot be empty')
    if not self.token:
      raise MessageValidationError('token cannot be empty')
    if not self.amount:
      raise MessageValidationError('amount cannot be empty')

  def to_proto(self):
    return interfaces.MsgDelegateVeToken(
      worker=self.worker,
      validator=self.validator,
      token=self.token,
      amount=self.amount,
    )


@dataclass
class MsgExchangeToGovToken(Msg):
  sender: str
  amount: int
  prefix: str = BECH32_PREFIX_ACC_ADDR
  type_url = '/cysicmint.govtoken.v1.MsgExchangeToGovToken'
  proto = interfaces.MsgExchangeToGovToken

  def validate_basic(self) -> None:
    _check_acc(self.sender, 'sender', self.prefix)
    _check_positive_amount(self.amount)

  def to_proto(self):
    return self.proto(sender=self.sender, amount=str(self.amount))


@dataclass
class MsgExchangeToPlatformToken(MsgExchangeToGovToken):
  type_url = '/cysicmint.govtoken.v1.MsgExchangeToPlatformToken'
  proto = interfaces.MsgExchangeToPlatformToken
