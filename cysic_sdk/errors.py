from __future__ import annotations


# Base class for every error raised by this library
class CysicError(Exception):
  pass


# Address string is empty, malformed or carries an unknown prefix
class InvalidAddress(CysicError, ValueError):
  pass


# Signing algorithm name is not one of the supported key types
class UnsupportedAlgorithm(CysicError, ValueError):
  pass


# Mnemonic, HD path or raw key material could not produce a keypair
class KeyDerivationFailed(CysicError):
  pass


# Caller supplied inconsistent arguments (e.g. list lengths differ)
class InvalidParams(CysicError, ValueError):
  pass


# A message failed its stateless validation
class MessageValidationError(CysicError, ValueError):
  pass


# The signer's address has no account on chain yet
class AccountNotFound(CysicError):
  def __init__(self, address: str):
    super().__init__(f'account {address} not exist')
    self.address = address


# Dialing the gRPC endpoint failed
class ConnectionFailed(CysicError):
  pass


class TxBuildError(CysicError):
  """
  Raised when one step of the build/sign/encode pipeline fails
  :param step: name of the failing step ('body', 'sign' or 'encode')
  """

  def __init__(self, step: str, message: str):
    super().__init__(f'{step}: {message}')
    self.step = step


# The node accepted the bytes but returned a non-zero result code
class TransactionRejected(CysicError):
  def __init__(self, code: int, raw_log: str, codespace: str = '', tx_hash: str = ''):
    super().__init__(f'transaction rejected with code {code} ({codespace}): {raw_log}')
    self.code = code
    self.raw_log = raw_log
    self.codespace = codespace
    self.tx_hash = tx_hash
