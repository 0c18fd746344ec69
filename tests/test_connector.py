import grpc
import pytest

from cysic_sdk.connector import Connector, GuardedStub, rpc_error_message
from cysic_sdk.errors import ConnectionFailed

from tests.conftest import FakeRpcError


class FakeChannel:
  def __init__(self, target):
    self.target = target
    self.callbacks = []
    self.closed = False

  def subscribe(self, callback, try_to_connect=False):
    self.callbacks.append(callback)

  def unsubscribe(self, callback):
    self.callbacks.remove(callback)

  def close(self):
    self.closed = True


@pytest.fixture
def channels(monkeypatch):
  dialed = []

  def insecure_channel(target):
    dialed.append(FakeChannel(target))
    return dialed[-1]

  monkeypatch.setattr('cysic_sdk.connector.grpc.insecure_channel', insecure_channel)
  return dialed


def test_dials_lazily_and_reuses_channel(channels):
  connector = Connector('localhost:9090')
  assert not connector.connected
  assert channels == []
  first = connector.ensure_connected()
  assert connector.ensure_connected() is first
  assert len(channels) == 1
  assert first.target == 'localhost:9090'


def test_redials_after_shutdown(channels):
  connector = Connector('localhost:9090')
  first = connector.ensure_connected()
  first.callbacks[0](grpc.ChannelConnectivity.SHUTDOWN)
  assert not connector.connected
  second = connector.ensure_connected()
  assert second is not first
  assert first.callbacks == []
  assert connector.connected


def test_transient_failure_keeps_channel(channels):
  connector = Connector('localhost:9090')
  first = connector.ensure_connected()
  first.callbacks[0](grpc.ChannelConnectivity.TRANSIENT_FAILURE)
  assert connector.ensure_connected() is first


class FakeStub:
  def __init__(self, channel):
    self.channel = channel
    self.error = None

  def Ping(self, request):
    if self.error is not None:
      raise self.error
    return ('pong', request, self.channel)


def test_stub_is_bound_to_channel(channels):
  connector = Connector('localhost:9090')
  stub = connector.stub(FakeStub)
  assert stub.Ping('hi') == ('pong', 'hi', channels[0])
  assert stub.channel is channels[0]


def test_unavailable_endpoint_raises_connection_failed():
  unavailable = FakeRpcError(grpc.StatusCode.UNAVAILABLE, 'failed to connect to all addresses')
  stub = FakeStub(None)
  stub.error = unavailable
  with pytest.raises(ConnectionFailed) as info:
    GuardedStub(stub, 'localhost:1').Ping('hi')
  assert info.value.__cause__ is unavailable
  assert 'localhost:1' in str(info.value)


def test_other_rpc_errors_pass_through():
  stub = FakeStub(None)
  stub.error = FakeRpcError(grpc.StatusCode.INVALID_ARGUMENT, 'bad request')
  with pytest.raises(grpc.RpcError) as info:
    GuardedStub(stub, 'localhost:1').Ping('hi')
  assert info.value is stub.error


def test_rpc_error_message_prefers_details():
  assert rpc_error_message(FakeRpcError(grpc.StatusCode.INTERNAL, 'boom')) == 'boom'
  assert rpc_error_message(grpc.RpcError('no details')) == 'no details'


def test_close(channels):
  with Connector('localhost:9090') as connector:
    channel = connector.ensure_connected()
  assert channel.closed
  assert not connector.connected
  connector.close()


def test_dial_failure(monkeypatch):
  def insecure_channel(target):
    raise ValueError('bad target')

  monkeypatch.setattr('cysic_sdk.connector.grpc.insecure_channel', insecure_channel)
  with pytest.raises(ConnectionFailed):
    Connector('::::').ensure_connected()
