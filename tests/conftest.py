import grpc
import pytest

from cysic_sdk import interfaces
from cysic_sdk.client import Client
from cysic_sdk.config import ChainConfig
from cysic_sdk.connector import GuardedStub
from cysic_sdk.interfaces import AuthQuery, Auth, TxService
from cysic_sdk.keys import Signer

PRIVKEY = bytes.fromhex('4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318')


class FakeRpcError(grpc.RpcError):
  def __init__(self, code, details):
    super().__init__(details)
    self._code = code
    self._details = details

  def code(self):
    return self._code

  def details(self):
    return self._details


class FakeConnector:
  """In-memory stand-in for Connector: returns fake services keyed by stub class"""

  def __init__(self):
    self.services = {}
    self.connect_calls = 0
    self.closed = False

  def ensure_connected(self):
    self.connect_calls += 1
    return self

  def stub(self, stub_cls):
    self.ensure_connected()
    return GuardedStub(self.services[stub_cls], 'localhost:9090')

  def close(self):
    self.closed = True


class FakeAuth:
  def __init__(self, account_number=7, sequence=3):
    self.account_number = account_number
    self.sequence = sequence
    self.error = None
    self.requests = []

  def Account(self, request):
    self.requests.append(request)
    if self.error is not None:
      raise self.error
    base = Auth.BaseAccount(address=request.address, account_number=self.account_number, sequence=self.sequence)
    eth = interfaces.EthAccount(base_account=base.SerializeToString(), code_hash='0xc5d2')
    account = interfaces.Any.Any(type_url=interfaces.ETH_ACCOUNT_TYPE, value=eth.SerializeToString())
    return AuthQuery.QueryAccountResponse(account=account)


class FakeTxService:
  def __init__(self):
    self.broadcasts = []
    self.code = 0
    self.raw_log = ''
    self.broadcast_error = None
    # Each GetTx call pops the next entry: an exception to raise or a height to report
    self.get_tx_results = []
    self.get_tx_calls = 0

  def BroadcastTx(self, request):
    self.broadcasts.append(request)
    if self.broadcast_error is not None:
      raise self.broadcast_error
    response = TxService.BroadcastTxResponse()
    response.tx_response.txhash = 'ABCDEF'
    response.tx_response.code = self.code
    response.tx_response.raw_log = self.raw_log
    if self.code != 0:
      response.tx_response.codespace = 'sdk'
    return response

  def GetTx(self, request):
    self.get_tx_calls += 1
    result = self.get_tx_results.pop(0) if self.get_tx_results else FakeRpcError(grpc.StatusCode.NOT_FOUND, 'tx not found')
    if isinstance(result, Exception):
      raise result
    response = TxService.GetTxResponse()
    response.tx_response.txhash = request.hash
    response.tx_response.height = result
    return response


@pytest.fixture
def config():
  return ChainConfig(endpoint='localhost:9090', chain_id='cysicmint_9001-1', gas_coin='CYS', gas_price=10, gas_limit=30_000_000)


@pytest.fixture
def signer():
  return Signer.from_raw_key(PRIVKEY)


@pytest.fixture
def other_signer():
  return Signer.from_raw_key(bytes.fromhex('11' * 32))


@pytest.fixture
def connector():
  fake = FakeConnector()
  fake.services[interfaces.AuthQueryGrpc.QueryStub] = FakeAuth()
  fake.services[interfaces.TxServiceGrpc.ServiceStub] = FakeTxService()
  return fake


@pytest.fixture
def client(config, connector):
  return Client(config, connector)


@pytest.fixture
def tx_service(connector):
  return connector.services[interfaces.TxServiceGrpc.ServiceStub]


@pytest.fixture
def auth(connector):
  return connector.services[interfaces.AuthQueryGrpc.QueryStub]


@pytest.fixture
def no_sleep(monkeypatch):
  sleeps = []
  monkeypatch.setattr('cysic_sdk.tx.time.sleep', sleeps.append)
  return sleeps
