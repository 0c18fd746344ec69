from __future__ import annotations
import time
import hashlib
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_CEILING
from enum import Enum
from typing import List, Optional

import grpc
from eth_keys.exceptions import ValidationError
from google.protobuf.message import EncodeError

from cysic_sdk.interfaces import Signing, Tx, TxService, TxServiceGrpc
from cysic_sdk.config import ChainConfig
from cysic_sdk.connector import rpc_error_message
from cysic_sdk.errors import MessageValidationError, TransactionRejected, TxBuildError
from cysic_sdk.keys import ETH_SECP256K1, Signer
from cysic_sdk.msgs import Coin, Msg

logger = logging.getLogger(__name__)

SIGN_MODE = Signing.SIGN_MODE_DIRECT
BROADCAST_MODE = TxService.BROADCAST_MODE_SYNC

# Inclusion polling parameters
POLL_ATTEMPTS = 10
POLL_INTERVAL = 1

# Node errors that arrive as transport errors but are mempool admission results
# Mirrors cosmos-sdk client.CheckTendermintError
SDK_CODESPACE = 'sdk'
MEMPOOL_ERRORS = [
  ('tx already in mempool', 19),
  ('mempool is full', 20),
  ('tx too large', 21),
]


# Fee in smallest units of the gas coin: ceiling(gas price * gas limit)
def compute_fee(gas_price, gas_limit: int) -> int:
  fee = Decimal(str(gas_price)) * Decimal(gas_limit)
  return int(fee.to_integral_value(rounding=ROUND_CEILING))


# Sequence to sign with: the override only wins when it is strictly greater than the on-chain value
def effective_sequence(on_chain: int, override: int = 0) -> int:
  if override and override > on_chain:
    return override
  return on_chain


# Hash under which the node indexes a transaction
def tx_hash(tx_bytes: bytes) -> str:
  return hashlib.sha256(tx_bytes).hexdigest().upper()


# Raises the first validation error of a message batch
def validate_msgs(msgs: List[Msg]) -> None:
  if not msgs:
    raise MessageValidationError('no messages to send')
  for msg in msgs:
    if msg is None:
      raise MessageValidationError('msg is nil')
    try:
      msg.validate_basic()
    except MessageValidationError as e:
      logger.error('error when validate basic for msg: %s, err: %s', msg, e)
      raise


@dataclass
class UnsignedTx:
  body_bytes: bytes
  auth_info_bytes: bytes
  sign_bytes: bytes
  account_number: int
  sequence: int
  fee: Coin
  gas_limit: int


class TxBuilder:
  """
  Turns a signer and a list of messages into one signed, wire-ready transaction.

  Holds the chain parameters (chain id, gas coin, gas price and limit, pubkey
  type) and signs in direct mode only. Each client owns its own builder.
  """

  def __init__(self, config: ChainConfig):
    self.config = config

  def fee(self) -> Coin:
    return Coin(self.config.gas_coin, compute_fee(self.config.gas_price, self.config.gas_limit))

  def _pub_key_type(self, signer: Signer) -> Optional[str]:
    if signer.algorithm == ETH_SECP256K1:
      return self.config.pubkey_type_url
    return None

  # Internal method for protobuf object structure
  def _auth_info(self, signer: Signer, sequence: int, fee: Coin):
    auth_info = Tx.AuthInfo()
    signer_info = auth_info.signer_infos.add()
    signer_info.public_key.CopyFrom(signer.pub_key_any(self._pub_key_type(signer)))
    signer_info.mode_info.single.mode = SIGN_MODE
    signer_info.sequence = sequence
    auth_info.fee.amount.append(fee.to_proto())
    auth_info.fee.gas_limit = self.config.gas_limit
    auth_info.fee.payer = signer.cosmos_address
    return auth_info

  def build_sign_doc(self, signer: Signer, msgs: List[Msg], account_number: int, sequence: int) -> UnsignedTx:
    validate_msgs(msgs)

    try:
      body = Tx.TxBody()
      for msg in msgs:
        body.messages.append(msg.pack())
      body_bytes = body.SerializeToString()
    except (EncodeError, TypeError, ValueError) as e:
      logger.error('error when set msg, err: %s', e)
      raise TxBuildError('body', str(e)) from e

    fee = self.fee()
    auth_info_bytes = self._auth_info(signer, sequence, fee).SerializeToString()

    sign_doc = Tx.SignDoc()
    sign_doc.body_bytes = body_bytes
    sign_doc.auth_info_bytes = auth_info_bytes
    sign_doc.chain_id = self.config.chain_id
    sign_doc.account_number = account_number

    return UnsignedTx(
      body_bytes=body_bytes,
      auth_info_bytes=auth_info_bytes,
      sign_bytes=sign_doc.SerializeToString(),
      account_number=account_number,
      sequence=sequence,
      fee=fee,
      gas_limit=self.config.gas_limit,
    )

  # Attaches a single signature and encodes the transaction to wire bytes
  def sign_and_encode(self, signer: Signer, unsigned: UnsignedTx) -> bytes:
    try:
      signature = signer.sign(unsigned.sign_bytes)
    except (ValidationError, ValueError) as e:
      logger.error('error when sign msg, err: %s', e)
      raise TxBuildError('sign', str(e)) from e

    tx_raw = Tx.TxRaw()
    tx_raw.body_bytes = unsigned.body_bytes
    tx_raw.auth_info_bytes = unsigned.auth_info_bytes
    tx_raw.signatures.append(signature)
    try:
      return tx_raw.SerializeToString()
    except EncodeError as e:
      logger.error('error when get signed tx bytes, err: %s', e)
      raise TxBuildError('encode', str(e)) from e

  def build(self, signer: Signer, msgs: List[Msg], account_number: int, sequence: int) -> bytes:
    return self.sign_and_encode(signer, self.build_sign_doc(signer, msgs, account_number, sequence))


@dataclass
class BroadcastResult:
  tx_hash: str
  code: int
  raw_log: str
  codespace: str = ''

  @property
  def ok(self) -> bool:
    return self.code == 0


class TxState(Enum):
  INCLUDED = 'included'
  PENDING = 'pending'
  ERROR = 'error'


@dataclass
class TxStatus:
  tx_hash: str
  state: TxState
  height: int = 0
  code: int = 0
  raw_log: str = ''
  error: str = ''
  attempts: int = 0

  @property
  def included(self) -> bool:
    return self.state == TxState.INCLUDED



# Whether a gRPC error means the transaction is not indexed yet
def is_tx_not_found(err: grpc.RpcError) -> bool:
  code = getattr(err, 'code', None)
  if callable(code) and code() == grpc.StatusCode.NOT_FOUND:
    return True
  return 'tx not found' in rpc_error_message(err)


# Maps mempool admission errors reported over the transport to a result code, or None
def classify_broadcast_error(err: grpc.RpcError, tx_bytes: bytes) -> Optional[BroadcastResult]:
  message = rpc_error_message(err)
  for needle, code in MEMPOOL_ERRORS:
    if needle in message.lower():
      return BroadcastResult(tx_hash(tx_bytes), code, message, SDK_CODESPACE)
  return None


class Broadcaster:
  def __init__(self, connector):
    self.connector = connector

  # Submits signed bytes and returns once the node's admission check has finished
  def broadcast(self, tx_bytes: bytes) -> BroadcastResult:
    stub = self.connector.stub(TxServiceGrpc.ServiceStub)
    request = TxService.BroadcastTxRequest(tx_bytes=tx_bytes, mode=BROADCAST_MODE)
    try:
      response = stub.BroadcastTx(request)
    except grpc.RpcError as e:
      result = classify_broadcast_error(e, tx_bytes)
      if result is None:
        logger.error('error when broadcast tx, err: %s', rpc_error_message(e))
        raise
      logger.warning('broadcast rejected by mempool: %s', result.raw_log)
      return result
    tx_response = response.tx_response
    return BroadcastResult(tx_response.txhash, tx_response.code, tx_response.raw_log, tx_response.codespace)

  def wait_for_inclusion(self, txhash: str, attempts: int = POLL_ATTEMPTS, interval: float = POLL_INTERVAL) -> TxStatus:
    """
    Polls the node until the transaction is in a block, a terminal error occurs
    or the attempts run out. Running out of attempts yields a PENDING status;
    the transaction may still be included later.
    """
    stub = self.connector.stub(TxServiceGrpc.ServiceStub)
    for attempt in range(1, attempts + 1):
      try:
        response = stub.GetTx(TxService.GetTxRequest(hash=txhash))
      except grpc.RpcError as e:
        if is_tx_not_found(e):
          logger.info('wait tx %s packed (%d/%d)', txhash, attempt, attempts)
          time.sleep(interval)
          continue
        logger.error('error when get tx: %s, err: %s', txhash, rpc_error_message(e))
        return TxStatus(txhash, TxState.ERROR, error=rpc_error_message(e), attempts=attempt)

      tx_response = response.tx_response
      if tx_response.height != 0:
        return TxStatus(txhash, TxState.INCLUDED, tx_response.height, tx_response.code, tx_response.raw_log, attempts=attempt)
      time.sleep(interval)

    logger.warning('tx %s not packed after %d attempts', txhash, attempts)
    return TxStatus(txhash, TxState.PENDING, attempts=attempts)


# Raises TransactionRejected for a non-zero result code
def ensure_accepted(result: BroadcastResult) -> str:
  if not result.ok:
    logger.error('resp code not zero, log: %s', result.raw_log)
    raise TransactionRejected(result.code, result.raw_log, result.codespace, result.tx_hash)
  return result.tx_hash
