from cysic_sdk.address import (
  convert_address, is_hex_address, to_cysic_address, to_eth_address, to_validator_address,
)
from cysic_sdk.client import AccountInfo, Client
from cysic_sdk.config import ChainConfig
from cysic_sdk.connector import Connector
from cysic_sdk.errors import (
  AccountNotFound, ConnectionFailed, CysicError, InvalidAddress, InvalidParams, KeyDerivationFailed,
  MessageValidationError, TransactionRejected, TxBuildError, UnsupportedAlgorithm,
)
from cysic_sdk.keys import Signer, create_hd_path, verify_personal_signature
from cysic_sdk.msgs import Coin
from cysic_sdk.tx import BroadcastResult, TxState, TxStatus
