from __future__ import annotations
import os
import base64
import logging

# Imports from pycrypto
from Crypto import Random
from Crypto.Cipher import AES
from Crypto.Hash import SHA256

logger = logging.getLogger(__name__)

# Default file holding the encrypted mnemonic
MNEMONIC = 'mnemonic.secret'


# AES encryption of a string
# Based on https://stackoverflow.com/a/44212550
def encrypt(key: str, source: str) -> str:
  key = SHA256.new(key.encode('utf-8')).digest()  # use SHA-256 over our key to get a proper-sized AES key
  source = source.encode('utf-8')
  iv = Random.new().read(AES.block_size)
  encryptor = AES.new(key, AES.MODE_CBC, iv)
  padding = AES.block_size - len(source) % AES.block_size
  source += bytes([padding]) * padding
  data = iv + encryptor.encrypt(source)  # store the IV at the beginning and encrypt
  return base64.b64encode(data).decode('utf-8')


# Decryption of an AES-encrypted string
def decrypt(key: str, source: str) -> str:
  key = SHA256.new(key.encode('utf-8')).digest()
  data = base64.b64decode(source.encode('utf-8'))
  if len(data) < 2 * AES.block_size or len(data) % AES.block_size != 0:
    raise ValueError('ciphertext is truncated')
  iv = data[:AES.block_size]
  decryptor = AES.new(key, AES.MODE_CBC, iv)
  plain = decryptor.decrypt(data[AES.block_size:])
  padding = plain[-1]
  if padding == 0 or padding > AES.block_size or plain[-padding:] != bytes([padding]) * padding:
    raise ValueError('invalid padding, wrong password?')
  return plain[:-padding].decode('utf-8')


# Encrypts a mnemonic phrase with a password and saves it to a file
def encrypt_mnemonic(key: str, mnemonic: str, path: str = MNEMONIC) -> None:
  mnemonic = ' '.join(mnemonic.lower().split())
  with open(path, 'w') as f:
    f.write(encrypt(key, mnemonic))
  logger.info('encrypted mnemonic saved to %s', path)


# Decrypts a saved mnemonic phrase given its password
def decrypt_mnemonic(key: str, path: str = MNEMONIC) -> str:
  if not os.path.exists(path):
    raise FileNotFoundError(f'encrypted mnemonic file {path} does not exist')
  with open(path) as f:
    return decrypt(key, f.read().strip())
