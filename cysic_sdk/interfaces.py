from __future__ import annotations

from google.protobuf import any_pb2 as Any
from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

# Interfaces compiled with protoc from the cosmos-sdk protobuf specifications
import cosmpy.protos.cosmos.auth.v1beta1.auth_pb2 as Auth
import cosmpy.protos.cosmos.auth.v1beta1.query_pb2 as AuthQuery
import cosmpy.protos.cosmos.auth.v1beta1.query_pb2_grpc as AuthQueryGrpc
import cosmpy.protos.cosmos.bank.v1beta1.bank_pb2 as Bank
import cosmpy.protos.cosmos.bank.v1beta1.query_pb2 as BankQuery
import cosmpy.protos.cosmos.bank.v1beta1.query_pb2_grpc as BankQueryGrpc
import cosmpy.protos.cosmos.bank.v1beta1.tx_pb2 as BankTx
import cosmpy.protos.cosmos.base.query.v1beta1.pagination_pb2 as Pagination
import cosmpy.protos.cosmos.base.v1beta1.coin_pb2 as Coin
import cosmpy.protos.cosmos.crypto.secp256k1.keys_pb2 as PubKey
import cosmpy.protos.cosmos.distribution.v1beta1.query_pb2 as DistributionQuery
import cosmpy.protos.cosmos.distribution.v1beta1.query_pb2_grpc as DistributionQueryGrpc
import cosmpy.protos.cosmos.distribution.v1beta1.tx_pb2 as DistributionTx
import cosmpy.protos.cosmos.staking.v1beta1.query_pb2 as StakingQuery
import cosmpy.protos.cosmos.staking.v1beta1.query_pb2_grpc as StakingQueryGrpc
import cosmpy.protos.cosmos.staking.v1beta1.tx_pb2 as StakingTx
import cosmpy.protos.cosmos.tx.signing.v1beta1.signing_pb2 as Signing
import cosmpy.protos.cosmos.tx.v1beta1.service_pb2 as TxService
import cosmpy.protos.cosmos.tx.v1beta1.service_pb2_grpc as TxServiceGrpc
import cosmpy.protos.cosmos.tx.v1beta1.tx_pb2 as Tx

__all__ = [
  'Any', 'Auth', 'AuthQuery', 'AuthQueryGrpc', 'Bank', 'BankQuery', 'BankQueryGrpc', 'BankTx',
  'Pagination', 'Coin', 'PubKey', 'DistributionQuery', 'DistributionQueryGrpc', 'DistributionTx',
  'StakingQuery', 'StakingQueryGrpc', 'StakingTx', 'Signing', 'TxService', 'TxServiceGrpc', 'Tx',
  'EthAccount', 'MsgDelegateVeToken', 'MsgExchangeToGovToken', 'MsgExchangeToPlatformToken',
  'ETH_ACCOUNT_TYPE', 'BASE_ACCOUNT_TYPE', 'pack_msg', 'pack_pubkey',
]

_STRING = descriptor_pb2.FieldDescriptorProto.TYPE_STRING
_BYTES = descriptor_pb2.FieldDescriptorProto.TYPE_BYTES
_OPTIONAL = descriptor_pb2.FieldDescriptorProto.LABEL_OPTIONAL

# Chain-specific messages that have no published python bindings: (file, package, {message: [(field, type)]})
# Field numbers follow declaration order. EthAccount embeds BaseAccount as field 1, which is
# wire-compatible with a bytes field and is decoded with Auth.BaseAccount afterwards.
_CHAIN_PROTOS = [
  ('cysicmint/types/v1/account.proto', 'cysicmint.types.v1', {
    'EthAccount': [('base_account', _BYTES), ('code_hash', _STRING)],
  }),
  ('cysicmint/delegate/v1/tx.proto', 'cysicmint.delegate.v1', {
    'MsgDelegate': [('worker', _STRING), ('validator', _STRING), ('token', _STRING), ('amount', _STRING)],
  }),
  ('cysicmint/govtoken/v1/tx.proto', 'cysicmint.govtoken.v1', {
    'MsgExchangeToGovToken': [('sender', _STRING), ('amount', _STRING)],
    'MsgExchangeToPlatformToken': [('sender', _STRING), ('amount', _STRING)],
  }),
]

_pool = descriptor_pool.DescriptorPool()


def _register(name: str, package: str, messages: dict) -> None:
  file_proto = descriptor_pb2.FileDescriptorProto(name=name, package=package, syntax='proto3')
  for message_name, fields in messages.items():
    message = file_proto.message_type.add(name=message_name)
    for number, (field_name, field_type) in enumerate(fields, start=1):
      message.field.add(name=field_name, number=number, type=field_type, label=_OPTIONAL, json_name=field_name)
  _pool.AddSerializedFile(file_proto.SerializeToString())


def _message_class(full_name: str):
  return message_factory.GetMessageClass(_pool.FindMessageTypeByName(full_name))


for _name, _package, _messages in _CHAIN_PROTOS:
  _register(_name, _package, _messages)

EthAccount = _message_class('cysicmint.types.v1.EthAccount')
MsgDelegateVeToken = _message_class('cysicmint.delegate.v1.MsgDelegate')
MsgExchangeToGovToken = _message_class('cysicmint.govtoken.v1.MsgExchangeToGovToken')
MsgExchangeToPlatformToken = _message_class('cysicmint.govtoken.v1.MsgExchangeToPlatformToken')

ETH_ACCOUNT_TYPE = '/cysicmint.types.v1.EthAccount'
BASE_ACCOUNT_TYPE = '/cosmos.auth.v1beta1.BaseAccount'


# Packs a message into an Any protobuf object
def pack_msg(msg, type_url: str):
  msg_any = Any.Any()
  msg_any.Pack(msg)
  msg_any.type_url = type_url
  return msg_any


# Packs a compressed secp256k1 public key into an Any protobuf object
def pack_pubkey(key: bytes, type_url: str):
  pubkey = PubKey.PubKey()
  pubkey.key = key
  return pack_msg(pubkey, type_url)
