import hashlib

import ecdsa
import pytest
from eth_keys import keys
from web3 import Web3

from cysic_sdk.errors import KeyDerivationFailed, UnsupportedAlgorithm
from cysic_sdk.keys import SECP256K1, Signer, create_hd_path, verify_personal_signature

MNEMONIC = 'abandon abandon abandon abandon abandon abandon abandon abandon abandon abandon abandon about'


def test_create_hd_path():
  assert create_hd_path() == "m/44'/60'/0'/0/0"
  assert create_hd_path(1, 1, 1) == "m/44'/1'/1'/0/1"


def test_from_mnemonic_matches_known_ethereum_address():
  signer = Signer.from_mnemonic(MNEMONIC, '', create_hd_path())
  assert signer.eth_address == '0x9858EfFD232B4033E47d90003D41EC34EcaEda94'
  assert signer.cosmos_address.startswith('cysic1')
  assert len(signer.public_key) == 33


def test_passphrase_changes_the_key():
  plain = Signer.from_mnemonic(MNEMONIC, '', create_hd_path())
  protected = Signer.from_mnemonic(MNEMONIC, 'secret', create_hd_path())
  assert plain.eth_address != protected.eth_address


def test_unsupported_algorithm():
  with pytest.raises(UnsupportedAlgorithm):
    Signer.from_mnemonic(MNEMONIC, '', create_hd_path(), 'sr25519')


def test_malformed_mnemonic():
  with pytest.raises(KeyDerivationFailed):
    Signer.from_mnemonic('abandon abandon about', '', create_hd_path())


def test_unknown_mnemonic_word():
  with pytest.raises(KeyDerivationFailed):
    Signer.from_mnemonic(' '.join(['notaword'] * 12), '', create_hd_path())


def test_mnemonic_with_bad_checksum():
  with pytest.raises(KeyDerivationFailed):
    Signer.from_mnemonic(' '.join(['abandon'] * 12), '', create_hd_path())


def test_mnemonic_extra_whitespace_is_ignored():
  messy = '  ' + MNEMONIC.replace(' ', '   ') + '\n'
  assert Signer.from_mnemonic(messy, '', create_hd_path()).eth_address == '0x9858EfFD232B4033E47d90003D41EC34EcaEda94'


def test_malformed_hd_path():
  with pytest.raises(KeyDerivationFailed):
    Signer.from_mnemonic(MNEMONIC, '', "m/44'/x/0")


def test_raw_key_is_padded():
  short = Signer.from_raw_key(b'\x01\x02')
  assert short.private_key() == b'\x01\x02' + b'\x00' * 30


def test_raw_key_is_truncated():
  long = Signer.from_raw_key(b'\x05' * 40)
  assert long.private_key() == b'\x05' * 32


def test_zero_key_is_rejected():
  with pytest.raises(KeyDerivationFailed):
    Signer.from_raw_key(b'\x00' * 32)


def test_eth_address_derives_from_keccak_of_public_key(signer):
  expected = keys.PrivateKey(signer.private_key()).public_key.to_checksum_address()
  assert signer.eth_address == expected


def test_sign_is_recoverable(signer):
  data = b'sign doc bytes'
  signature = signer.sign(data)
  assert len(signature) == 65
  assert signature[64] in (0, 1)
  recovered = keys.Signature(signature).recover_public_key_from_msg_hash(bytes(Web3.keccak(data)))
  assert recovered.to_checksum_address() == signer.eth_address


def test_cosmos_secp256k1_signer():
  signer = Signer.from_mnemonic(MNEMONIC, '', create_hd_path(118), SECP256K1)
  data = b'sign doc bytes'
  signature = signer.sign(data)
  assert len(signature) == 64
  verifying_key = ecdsa.VerifyingKey.from_string(signer.public_key, curve=ecdsa.SECP256k1)
  assert verifying_key.verify(signature, data, hashfunc=hashlib.sha256)
  assert signer.pub_key_any().type_url == '/cosmos.crypto.secp256k1.PubKey'


def test_pub_key_any_defaults_to_ethsecp256k1(signer):
  packed = signer.pub_key_any()
  assert packed.type_url == '/cysicmint.crypto.v1.ethsecp256k1.PubKey'


def test_personal_sign_round_trip(signer):
  message = b'hello cysic'
  signature = signer.personal_sign(message)
  assert signer.verify_personal_signature(message, signature)
  assert verify_personal_signature(signer.cosmos_address, message, signature)


def test_personal_sign_accepts_legacy_v(signer):
  message = b'hello cysic'
  signature = bytearray(signer.personal_sign(message))
  signature[64] += 27
  legacy = bytes(signature)
  assert verify_personal_signature(signer.eth_address, message, legacy)
  assert legacy[64] >= 27


def test_personal_sign_wrong_address(signer, other_signer):
  signature = signer.personal_sign(b'hello cysic')
  assert not verify_personal_signature(other_signer.eth_address, b'hello cysic', signature)
  assert not verify_personal_signature(signer.eth_address, b'another message', signature)


def test_personal_sign_malformed_input(signer):
  signature = signer.personal_sign(b'hello cysic')
  assert not verify_personal_signature(signer.eth_address, b'hello cysic', signature[:64])
  assert not verify_personal_signature('not an address', b'hello cysic', signature)
