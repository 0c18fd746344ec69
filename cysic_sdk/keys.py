from __future__ import annotations
import re
import hashlib
import logging
import unicodedata

import ecdsa
import hdwallets
from bip_utils import Bip39Languages, Bip39MnemonicValidator
from Crypto.Hash import RIPEMD160
from eth_account.messages import defunct_hash_message
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError
from web3 import Web3

from cysic_sdk import interfaces
from cysic_sdk.address import bytes_to_bech32, to_eth_address
from cysic_sdk.config import BECH32_PREFIX_ACC_ADDR, ETH_SECP256K1_PUBKEY_TYPE, SECP256K1_PUBKEY_TYPE
from cysic_sdk.errors import InvalidAddress, KeyDerivationFailed, UnsupportedAlgorithm

logger = logging.getLogger(__name__)

# Constant parameter related to mnemonic -> wallet derivation
# Do not change
PBKDF2_ROUNDS = 2048
PRIV_KEY_SIZE = 32
SIGNATURE_SIZE = 65

ETH_SECP256K1 = 'eth_secp256k1'
SECP256K1 = 'secp256k1'
SUPPORTED_ALGORITHMS = (ETH_SECP256K1, SECP256K1)

# Default pubkey Any type for each algorithm
PUBKEY_TYPES = {
  ETH_SECP256K1: ETH_SECP256K1_PUBKEY_TYPE,
  SECP256K1: SECP256K1_PUBKEY_TYPE,
}

MNEMONIC_WORD_COUNTS = (12, 15, 18, 21, 24)
HD_PATH_RE = re.compile(r"^m(/\d+'?)+$")


# Builds a BIP-44 derivation path string
def create_hd_path(coin_type: int = 60, account: int = 0, index: int = 0) -> str:
  return f'm/44\'/{coin_type}\'/{account}\'/0/{index}'


# Converts a mnemonic phrase (with optional passphrase) to the corresponding binary seed
# Based on https://github.com/trezor/python-mnemonic/blob/master/src/mnemonic/mnemonic.py
def mnemonic_to_seed(mnemonic: str, passphrase: str = '') -> bytes:
  mnemonic_bytes = unicodedata.normalize('NFKD', mnemonic).encode('utf-8')
  passcode_bytes = unicodedata.normalize('NFKD', 'mnemonic' + passphrase).encode('utf-8')
  stretched = hashlib.pbkdf2_hmac('sha512', mnemonic_bytes, passcode_bytes, PBKDF2_ROUNDS)
  return stretched[:64]


# Converts a mnemonic to a private key, given a specific derivation path
# Based on https://github.com/hukkin/cosmospy/blob/master/src/cosmospy/_wallet.py
def mnemonic_to_privkey_from_derivation(mnemonic: str, derivation_path: str, passphrase: str = '') -> bytes:
  words = mnemonic.split()
  if len(words) not in MNEMONIC_WORD_COUNTS:
    raise KeyDerivationFailed(f'invalid mnemonic: expected {MNEMONIC_WORD_COUNTS} words, got {len(words)}')
  # Words must come from the BIP-39 English list and carry a valid checksum
  if not Bip39MnemonicValidator(Bip39Languages.ENGLISH).IsValid(' '.join(words)):
    logger.error('invalid mnemonic: unknown word or bad checksum')
    raise KeyDerivationFailed('invalid mnemonic: unknown word or bad checksum')
  if not HD_PATH_RE.match(derivation_path):
    raise KeyDerivationFailed(f'invalid hd path: {derivation_path!r}')
  binary_seed = mnemonic_to_seed(' '.join(words), passphrase)
  hd_wallet = hdwallets.BIP32.from_seed(binary_seed)
  try:
    return hd_wallet.get_privkey_from_path(derivation_path)
  except ValueError as e:
    raise KeyDerivationFailed(f'error when derive private key from {derivation_path}: {e}') from e


# Converts a private key to a compressed public key
# Based on https://github.com/hukkin/cosmospy/blob/master/src/cosmospy/_wallet.py
def privkey_to_pubkey(privkey: bytes) -> bytes:
  privkey_obj = ecdsa.SigningKey.from_string(privkey, curve=ecdsa.SECP256k1)
  pubkey_obj = privkey_obj.get_verifying_key()
  return pubkey_obj.to_string('compressed')


# Address bytes of a cosmos secp256k1 public key: ripemd160(sha256(pubkey))
def pubkey_to_address_bytes(pubkey: bytes) -> bytes:
  s = hashlib.sha256(pubkey).digest()
  return RIPEMD160.new(s).digest()


# Address bytes of an ethsecp256k1 key: last 20 bytes of keccak256(uncompressed pubkey)
def eth_privkey_to_address_bytes(privkey: bytes) -> bytes:
  return keys.PrivateKey(privkey).public_key.to_canonical_address()


# Checks that key material is a usable secp256k1 scalar
def _check_scalar(privkey: bytes) -> None:
  secexp = int.from_bytes(privkey, 'big')
  if not 0 < secexp < ecdsa.SECP256k1.order:
    raise KeyDerivationFailed('private key is out of the secp256k1 range')


# Hash that the personal_sign convention signs over
def personal_message_hash(message: bytes) -> bytes:
  return bytes(defunct_hash_message(primitive=message))


def verify_personal_signature(address: str, message: bytes, signature: bytes) -> bool:
  """
  Verifies an Ethereum personal_sign signature against a claimed address
  :param address: hex or bech32 address expected to have signed
  :param message: raw message bytes, before the personal message prefix
  :param signature: 65-byte r || s || v signature, v either {0, 1} or {27, 28}
  :return: True when the recovered address matches
  """
  sig = bytearray(signature)
  if len(sig) != SIGNATURE_SIZE:
    logger.warning('invalid signature length: %d', len(sig))
    return False
  if sig[64] >= 27:
    sig[64] -= 27

  try:
    expected = to_eth_address(address)
  except InvalidAddress as e:
    logger.warning('invalid address %s: %s', address, e)
    return False

  try:
    pubkey = keys.Signature(bytes(sig)).recover_public_key_from_msg_hash(personal_message_hash(message))
  except (BadSignature, ValidationError) as e:
    logger.warning('invalid signature, recover public key err: %s', e)
    return False

  return pubkey.to_checksum_address().lower() == expected.lower()


class Signer:
  """
  An in-memory identity able to sign transactions.

  `nonce` is an optional sequence override: when it is greater than the
  account's on-chain sequence, transactions are signed with it instead, which
  lets a caller submit several transactions before the first is confirmed.
  """

  def __init__(self, privkey: bytes, algorithm: str = ETH_SECP256K1, prefix: str = BECH32_PREFIX_ACC_ADDR):
    if algorithm not in SUPPORTED_ALGORITHMS:
      raise UnsupportedAlgorithm(f'unsupported signing algorithm: {algorithm}')
    _check_scalar(privkey)
    self._privkey = privkey
    self.algorithm = algorithm
    self.public_key = privkey_to_pubkey(privkey)
    if algorithm == ETH_SECP256K1:
      raw_address = eth_privkey_to_address_bytes(privkey)
    else:
      raw_address = pubkey_to_address_bytes(self.public_key)
    self.address_bytes = raw_address
    self.cosmos_address = bytes_to_bech32(raw_address, prefix)
    self.eth_address = Web3.to_checksum_address(raw_address)
    self.nonce = 0

  def __repr__(self) -> str:
    return f'Signer({self.eth_address}, {self.cosmos_address}, {self.algorithm})'

  # Creates a signer from raw key bytes, zero-padding or truncating them to 32 bytes
  @classmethod
  def from_raw_key(cls, raw: bytes, prefix: str = BECH32_PREFIX_ACC_ADDR) -> Signer:
    if len(raw) != PRIV_KEY_SIZE:
      logger.warning('private key is %d bytes, padding/truncating to %d', len(raw), PRIV_KEY_SIZE)
    privkey = bytes(raw[:PRIV_KEY_SIZE]).ljust(PRIV_KEY_SIZE, b'\x00')
    return cls(privkey, ETH_SECP256K1, prefix)

  # Creates a signer from a BIP-39 mnemonic, passphrase and HD path for a named algorithm
  @classmethod
  def from_mnemonic(cls, mnemonic: str, passphrase: str, hd_path: str, algorithm: str = ETH_SECP256K1, prefix: str = BECH32_PREFIX_ACC_ADDR) -> Signer:
    if algorithm not in SUPPORTED_ALGORITHMS:
      logger.error('error when new signing algo from string: %s', algorithm)
      raise UnsupportedAlgorithm(f'unsupported signing algorithm: {algorithm}')
    privkey = mnemonic_to_privkey_from_derivation(mnemonic, hd_path, passphrase)
    return cls(privkey, algorithm, prefix)

  # Raw private key bytes
  def private_key(self) -> bytes:
    return self._privkey

  # Signs bytes with the key algorithm's own digest (keccak256 or sha256)
  def sign(self, data: bytes) -> bytes:
    if self.algorithm == ETH_SECP256K1:
      digest = bytes(Web3.keccak(data))
      return keys.PrivateKey(self._privkey).sign_msg_hash(digest).to_bytes()
    privkey = ecdsa.SigningKey.from_string(self._privkey, curve=ecdsa.SECP256k1)
    return privkey.sign_deterministic(
      data,
      hashfunc=hashlib.sha256,
      sigencode=ecdsa.util.sigencode_string_canonize,
    )

  # Signs a message under the Ethereum personal message convention
  def personal_sign(self, message: bytes) -> bytes:
    return keys.PrivateKey(self._privkey).sign_msg_hash(personal_message_hash(message)).to_bytes()

  def verify_personal_signature(self, message: bytes, signature: bytes) -> bool:
    return verify_personal_signature(self.eth_address, message, signature)

  # Public key packed in an Any protobuf object
  def pub_key_any(self, type_url: str = None):
    if type_url is None:
      type_url = PUBKEY_TYPES[self.algorithm]
    return interfaces.pack_pubkey(self.public_key, type_url)
