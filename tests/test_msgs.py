import pytest

from cysic_sdk import interfaces
from cysic_sdk.address import to_validator_address
from cysic_sdk.errors import MessageValidationError
from cysic_sdk.msgs import (
  Coin, MsgDelegate, MsgDelegateVeToken, MsgExchangeToGovToken, MsgExchangeToPlatformToken, MsgMultiSend,
  MsgSend, MsgUndelegate, MsgWithdrawDelegatorReward, MultiSendEntry, sum_coins,
)


def test_sum_coins_groups_sorts_and_drops_zero():
  coins = [Coin('CYS', 2), Coin('CGT', 1), Coin('CYS', 3), Coin('ZZZ', 0)]
  assert sum_coins(coins) == [Coin('CGT', 1), Coin('CYS', 5)]


def test_coin_proto_uses_string_amount():
  proto = Coin('CYS', 10 ** 20).to_proto()
  assert proto.amount == '100000000000000000000'
  assert Coin.from_proto(proto) == Coin('CYS', 10 ** 20)


def test_send_validation(signer, other_signer):
  MsgSend(signer.cosmos_address, other_signer.cosmos_address, [Coin('CYS', 1)]).validate_basic()
  with pytest.raises(MessageValidationError):
    MsgSend(signer.cosmos_address, other_signer.cosmos_address, [Coin('CYS', 0)]).validate_basic()
  with pytest.raises(MessageValidationError):
    MsgSend(signer.cosmos_address, other_signer.eth_address, [Coin('CYS', 1)]).validate_basic()
  with pytest.raises(MessageValidationError):
    MsgSend(signer.cosmos_address, other_signer.cosmos_address, []).validate_basic()
  with pytest.raises(MessageValidationError):
    MsgSend(signer.cosmos_address, other_signer.cosmos_address, [Coin('1bad', 1)]).validate_basic()


def test_send_rejects_unsorted_coins(signer, other_signer):
  msg = MsgSend(signer.cosmos_address, other_signer.cosmos_address, [Coin('CYS', 1), Coin('CGT', 1)])
  with pytest.raises(MessageValidationError):
    msg.validate_basic()


def test_balanced_multi_send(signer, other_signer):
  outputs = [
    MultiSendEntry(other_signer.cosmos_address, [Coin('CYS', 5)]),
    MultiSendEntry(signer.cosmos_address, [Coin('CGT', 2)]),
    MultiSendEntry(other_signer.cosmos_address, [Coin('CYS', 7)]),
  ]
  msg = MsgMultiSend.balanced(signer.cosmos_address, outputs)
  msg.validate_basic()
  assert msg.inputs[0].coins == [Coin('CGT', 2), Coin('CYS', 12)]


def test_multi_send_totals_must_match(signer, other_signer):
  msg = MsgMultiSend(
    [MultiSendEntry(signer.cosmos_address, [Coin('CYS', 10)])],
    [MultiSendEntry(other_signer.cosmos_address, [Coin('CYS', 9)])],
  )
  with pytest.raises(MessageValidationError):
    msg.validate_basic()


def test_multi_send_single_sender_and_outputs(signer, other_signer):
  entry = MultiSendEntry(signer.cosmos_address, [Coin('CYS', 1)])
  with pytest.raises(MessageValidationError):
    MsgMultiSend([entry, entry], [entry]).validate_basic()
  with pytest.raises(MessageValidationError):
    MsgMultiSend([entry], []).validate_basic()
  with pytest.raises(MessageValidationError):
    MsgMultiSend([], [entry]).validate_basic()


def test_delegate_requires_validator_prefix(signer):
  valoper = to_validator_address(signer.eth_address)
  MsgDelegate(signer.cosmos_address, valoper, Coin('CGT', 1)).validate_basic()
  with pytest.raises(MessageValidationError):
    MsgDelegate(signer.cosmos_address, signer.cosmos_address, Coin('CGT', 1)).validate_basic()
  with pytest.raises(MessageValidationError):
    MsgUndelegate(signer.cosmos_address, valoper, Coin('CGT', 0)).validate_basic()


def test_undelegate_packs_with_its_own_type(signer):
  msg = MsgUndelegate(signer.cosmos_address, to_validator_address(signer.eth_address), Coin('CGT', 3))
  packed = msg.pack()
  assert packed.type_url == '/cosmos.staking.v1beta1.MsgUndelegate'
  decoded = interfaces.StakingTx.MsgUndelegate.FromString(packed.value)
  assert decoded.amount.amount == '3'


def test_withdraw_reward(signer):
  valoper = to_validator_address(signer.eth_address)
  MsgWithdrawDelegatorReward(signer.cosmos_address, valoper).validate_basic()
  with pytest.raises(MessageValidationError):
    MsgWithdrawDelegatorReward(signer.cosmos_address, '').validate_basic()


def test_delegate_ve_token(signer):
  valoper = to_validator_address(signer.eth_address)
  msg = MsgDelegateVeToken(signer.eth_address, valoper, 'veSCR', '1000')
  msg.validate_basic()
  packed = msg.pack()
  assert packed.type_url == '/cysicmint.delegate.v1.MsgDelegate'
  decoded = interfaces.MsgDelegateVeToken.FromString(packed.value)
  assert (decoded.worker, decoded.token, decoded.amount) == (signer.eth_address, 'veSCR', '1000')
  with pytest.raises(MessageValidationError):
    MsgDelegateVeToken(signer.cosmos_address, valoper, 'veSCR', '1000').validate_basic()
  with pytest.raises(MessageValidationError):
    MsgDelegateVeToken(signer.eth_address, valoper, '', '1000').validate_basic()


def test_exchange_messages(signer):
  MsgExchangeToGovToken(signer.cosmos_address, 5).validate_basic()
  with pytest.raises(MessageValidationError):
    MsgExchangeToGovToken(signer.cosmos_address, 0).validate_basic()
  with pytest.raises(MessageValidationError):
    MsgExchangeToPlatformToken(signer.eth_address, 5).validate_basic()
  packed = MsgExchangeToPlatformToken(signer.cosmos_address, 5).pack()
  assert packed.type_url == '/cysicmint.govtoken.v1.MsgExchangeToPlatformToken'
  assert interfaces.MsgExchangeToPlatformToken.FromString(packed.value).amount == '5'
