import pytest

from cysic_sdk import keystore

MNEMONIC = 'abandon abandon abandon abandon abandon abandon abandon abandon abandon abandon abandon about'


def test_encrypt_decrypt():
  secret = keystore.encrypt('password', MNEMONIC)
  assert secret != MNEMONIC
  assert keystore.decrypt('password', secret) == MNEMONIC


def test_encryption_is_salted_by_iv():
  assert keystore.encrypt('password', MNEMONIC) != keystore.encrypt('password', MNEMONIC)


def test_wrong_password():
  secret = keystore.encrypt('password', MNEMONIC)
  with pytest.raises(ValueError):
    keystore.decrypt('wrong', secret)


def test_mnemonic_file(tmp_path):
  path = str(tmp_path / 'mnemonic.secret')
  keystore.encrypt_mnemonic('password', '  Abandon ' + MNEMONIC[8:].upper() + '\n', path)
  assert keystore.decrypt_mnemonic('password', path) == MNEMONIC


def test_missing_mnemonic_file(tmp_path):
  with pytest.raises(FileNotFoundError):
    keystore.decrypt_mnemonic('password', str(tmp_path / 'missing'))
