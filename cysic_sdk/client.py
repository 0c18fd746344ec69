from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import grpc

from cysic_sdk.address import to_cysic_address, to_eth_address
from cysic_sdk.config import ChainConfig
from cysic_sdk.connector import Connector, rpc_error_message
from cysic_sdk.errors import AccountNotFound, InvalidParams, MessageValidationError
from cysic_sdk.interfaces import (
  Auth, AuthQuery, AuthQueryGrpc, BankQuery, BankQueryGrpc, DistributionQuery, DistributionQueryGrpc,
  EthAccount, Pagination, StakingQuery, StakingQueryGrpc, TxService, TxServiceGrpc,
  BASE_ACCOUNT_TYPE, ETH_ACCOUNT_TYPE,
)
from cysic_sdk.keys import Signer
from cysic_sdk.msgs import (
  Coin, Msg, MsgDelegate, MsgDelegateVeToken, MsgExchangeToGovToken, MsgExchangeToPlatformToken,
  MsgMultiSend, MsgSend, MsgUndelegate, MsgWithdrawDelegatorReward, MultiSendEntry, sum_coins,
)
from cysic_sdk.tx import Broadcaster, TxBuilder, TxStatus, effective_sequence, ensure_accepted, validate_msgs
from cysic_sdk.utils import dec_to_int, to_display

logger = logging.getLogger(__name__)


@dataclass
class AccountInfo:
  address: str
  account_number: int
  sequence: int
  pub_key: Optional[object] = None
  code_hash: str = ''


# Decodes the Any returned by the auth query into account number and sequence
def decode_account(account_any) -> AccountInfo:
  code_hash = ''
  if account_any.type_url == ETH_ACCOUNT_TYPE:
    eth_account = EthAccount()
    eth_account.ParseFromString(account_any.value)
    base_bytes = eth_account.base_account
    code_hash = eth_account.code_hash
  elif account_any.type_url == BASE_ACCOUNT_TYPE:
    base_bytes = account_any.value
  else:
    raise ValueError(f'unsupported account type: {account_any.type_url}')
  base = Auth.BaseAccount()
  base.ParseFromString(base_bytes)
  pub_key = base.pub_key if base.HasField('pub_key') else None
  return AccountInfo(base.address, base.account_number, base.sequence, pub_key, code_hash)


class Client:
  """
  Query and transaction facade for one chain endpoint.

  Every write follows the same path: build the message, validate it, look up
  the signer's account number and sequence, sign, broadcast in sync mode and
  return the transaction hash. A non-zero result code raises
  TransactionRejected. Nothing is retried except re-dialing a shut down
  channel.
  """

  def __init__(self, config: ChainConfig, connector: Connector = None):
    self.config = config
    self.connector = connector if connector is not None else Connector(config.endpoint)
    self.builder = TxBuilder(config)
    self.broadcaster = Broadcaster(self.connector)

  def __enter__(self) -> Client:
    return self

  def __exit__(self, *exc) -> None:
    self.close()

  def close(self) -> None:
    self.connector.close()

  def _to_cysic(self, addr: str) -> str:
    return to_cysic_address(addr, self.config.acc_prefix, self.config.val_prefix)

  # Accounts

  def get_account(self, signer: Signer) -> AccountInfo:
    return self.get_account_by_addr(signer.cosmos_address)

  def get_account_by_addr(self, addr: str) -> AccountInfo:
    cosmos_addr = self._to_cysic(addr)
    stub = self.connector.stub(AuthQueryGrpc.QueryStub)
    try:
      response = stub.Account(AuthQuery.QueryAccountRequest(address=cosmos_addr))
    except grpc.RpcError as e:
      code = getattr(e, 'code', None)
      if (callable(code) and code() == grpc.StatusCode.NOT_FOUND) or 'not found' in rpc_error_message(e):
        logger.error('account %s not exist', cosmos_addr)
        raise AccountNotFound(cosmos_addr) from e
      raise
    return decode_account(response.account)

  # Returns (account number, sequence) for a given address
  def get_account_number_and_sequence(self, addr: str) -> Tuple[int, int]:
    account = self.get_account_by_addr(addr)
    return account.account_number, account.sequence

  # Bank

  def get_balance_list(self, address: str) -> List[Coin]:
    target = self._to_cysic(address)
    stub = self.connector.stub(BankQueryGrpc.QueryStub)
    response = stub.AllBalances(BankQuery.QueryAllBalancesRequest(address=target))
    return [Coin.from_proto(coin) for coin in response.balances]

  # Returns the balance of one denomination, scaled to a human-facing decimal string
  def get_balance(self, address: str, denom: str) -> str:
    for coin in self.get_balance_list(address):
      if coin.denom == denom:
        return to_display(coin.amount, self.config.decimals)
    return '0'

  # Staking and distribution

  def get_validator(self, addr: str):
    stub = self.connector.stub(StakingQueryGrpc.QueryStub)
    response = stub.Validator(StakingQuery.QueryValidatorRequest(validator_addr=addr))
    return response.validator

  def get_validator_list(self, offset: int = 0, page_size: int = 100):
    stub = self.connector.stub(StakingQueryGrpc.QueryStub)
    pagination = Pagination.PageRequest(offset=offset, limit=page_size, count_total=True)
    response = stub.Validators(StakingQuery.QueryValidatorsRequest(status='', pagination=pagination))
    return list(response.validators), response.pagination.total

  # Delegated balances of an address grouped by validator, summed per denomination
  def query_delegator_delegations(self, delegator_address: str) -> Dict[str, List[Coin]]:
    target = self._to_cysic(delegator_address)
    stub = self.connector.stub(StakingQueryGrpc.QueryStub)
    response = stub.DelegatorDelegations(StakingQuery.QueryDelegatorDelegationsRequest(delegator_addr=target))
    grouped = {}
    for info in response.delegation_responses:
      validator = info.delegation.validator_address
      grouped.setdefault(validator, []).append(Coin.from_proto(info.balance))
    return {validator: sum_coins(coins) for validator, coins in grouped.items()}

  # Total pending rewards of an address per denomination, rounded to whole units
  def query_delegate_reward(self, delegator_address: str) -> List[Coin]:
    target = self._to_cysic(delegator_address)
    stub = self.connector.stub(DistributionQueryGrpc.QueryStub)
    response = stub.DelegationTotalRewards(DistributionQuery.QueryDelegationTotalRewardsRequest(delegator_address=target))
    return sum_coins(Coin(coin.denom, dec_to_int(coin.amount)) for coin in response.total)

  # Transactions

  def get_tx(self, txhash: str):
    stub = self.connector.stub(TxServiceGrpc.ServiceStub)
    return stub.GetTx(TxService.GetTxRequest(hash=txhash))

  def wait_tx_packed(self, txhash: str) -> TxStatus:
    return self.broadcaster.wait_for_inclusion(txhash)

  def build_and_broadcast(self, signer: Signer, msgs: List[Msg]) -> str:
    validate_msgs(msgs)
    self.connector.ensure_connected()

    account = self.get_account(signer)
    sequence = effective_sequence(account.sequence, signer.nonce)
    tx_bytes = self.builder.build(signer, msgs, account.account_number, sequence)

    result = self.broadcaster.broadcast(tx_bytes)
    return ensure_accepted(result)

  def broadcast_msg(self, signer: Signer, msg: Msg) -> str:
    if msg is None:
      raise MessageValidationError('msg is nil')
    return self.build_and_broadcast(signer, [msg])

  def send(self, signer: Signer, to_addr: str, denom: str, amount: int) -> str:
    msg = MsgSend(signer.cosmos_address, self._to_cysic(to_addr), [Coin(denom, amount)], self.config.acc_prefix)
    return self.broadcast_msg(signer, msg)

  # Sends the same amount of one denomination to every address
  def multi_send(self, signer: Signer, to_addr_list: List[str], denom: str, amount: int) -> str:
    if len(to_addr_list) == 0:
      raise InvalidParams('recipient list cannot be empty')
    outputs = [MultiSendEntry(self._to_cysic(to_addr), [Coin(denom, amount)]) for to_addr in to_addr_list]
    msg = MsgMultiSend.balanced(signer.cosmos_address, outputs, self.config.acc_prefix)
    return self.broadcast_msg(signer, msg)

  def multi_send_with_diff_amount(self, signer: Signer, to_addr_list: List[str], denom_list: List[str], amount_list: List[int]) -> str:
    """
    Sends a different coin to each address in one transaction.
    :param to_addr_list: recipients, hex or bech32
    :param denom_list: denomination for each recipient
    :param amount_list: amount for each recipient
    :return: transaction hash
    """
    if len(to_addr_list) != len(denom_list) or len(denom_list) != len(amount_list):
      raise InvalidParams(
        f'params length not equal, len(toAddr): {len(to_addr_list)}, len(coinList): {len(denom_list)}, len(amountList): {len(amount_list)}')
    if len(to_addr_list) == 0:
      raise InvalidParams('recipient list cannot be empty')
    outputs = [
      MultiSendEntry(self._to_cysic(to_addr), [Coin(denom, amount)])
      for to_addr, denom, amount in zip(to_addr_list, denom_list, amount_list)
    ]
    msg = MsgMultiSend.balanced(signer.cosmos_address, outputs, self.config.acc_prefix)
    return self.broadcast_msg(signer, msg)

  # Delegates governance tokens to a validator
  def delegate_cgt(self, signer: Signer, validator_address: str, amount: int) -> str:
    msg = MsgDelegate(signer.cosmos_address, validator_address, Coin(self.config.gov_token, amount), self.config.acc_prefix, self.config.val_prefix)
    return self.broadcast_msg(signer, msg)

  # Undelegates governance tokens from a validator
  def undelegate_cgt(self, signer: Signer, validator_address: str, amount: int) -> str:
    msg = MsgUndelegate(signer.cosmos_address, validator_address, Coin(self.config.gov_token, amount), self.config.acc_prefix, self.config.val_prefix)
    return self.broadcast_msg(signer, msg)

  # Delegates a vote-escrow token, with the signer's hex address as worker
  def delegate_ve_token(self, signer: Signer, validator_address: str, token: str, amount: int) -> str:
    msg = MsgDelegateVeToken(to_eth_address(signer.cosmos_address, self.config.acc_prefix, self.config.val_prefix), validator_address, token, str(amount))
    return self.broadcast_msg(signer, msg)

  def withdraw_delegator_reward(self, signer: Signer, validator_address: str) -> str:
    msg = MsgWithdrawDelegatorReward(signer.cosmos_address, validator_address, self.config.acc_prefix, self.config.val_prefix)
    return self.broadcast_msg(signer, msg)

  # Exchanges platform tokens for governance tokens
  def exchange_to_gov_token(self, signer: Signer, amount: int) -> str:
    return self.broadcast_msg(signer, MsgExchangeToGovToken(signer.cosmos_address, amount, self.config.acc_prefix))

  # Exchanges governance tokens for platform tokens
  def exchange_to_platform_token(self, signer: Signer, amount: int) -> str:
    return self.broadcast_msg(signer, MsgExchangeToPlatformToken(signer.cosmos_address, amount, self.config.acc_prefix))
