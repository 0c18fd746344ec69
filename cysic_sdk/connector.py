from __future__ import annotations
import logging
import threading

import grpc

from cysic_sdk.errors import ConnectionFailed

logger = logging.getLogger(__name__)


# Message of a gRPC error, preferring the server-supplied details
def rpc_error_message(err: grpc.RpcError) -> str:
  details = getattr(err, 'details', None)
  if callable(details) and details():
    return details()
  return str(err)


# Whether a gRPC error means the endpoint could not be reached
def is_unavailable(err: grpc.RpcError) -> bool:
  code = getattr(err, 'code', None)
  return callable(code) and code() == grpc.StatusCode.UNAVAILABLE


class GuardedStub:
  """
  Wraps a gRPC stub so that an unreachable endpoint surfaces as
  ConnectionFailed. A plaintext channel does not fail at dial time, the first
  RPC is where a dead endpoint shows up. Other RPC errors pass through.
  """

  def __init__(self, stub, endpoint: str):
    self._stub = stub
    self._endpoint = endpoint

  def __getattr__(self, name):
    method = getattr(self._stub, name)
    if not callable(method):
      return method

    def call(*args, **kwargs):
      try:
        return method(*args, **kwargs)
      except grpc.RpcError as e:
        if not is_unavailable(e):
          raise
        logger.error('grpc endpoint %s unavailable, method: %s, err: %s', self._endpoint, name, rpc_error_message(e))
        raise ConnectionFailed(f'endpoint {self._endpoint} unavailable: {rpc_error_message(e)}') from e

    return call


class Connector:
  """
  Owns one gRPC channel to a chain endpoint.

  The channel is dialed lazily and re-dialed when it has been shut down.
  Transport security is plaintext; the endpoint is expected to sit on a
  trusted network.
  """

  def __init__(self, endpoint: str):
    self.endpoint = endpoint
    self._channel = None
    self._state = None
    self._lock = threading.Lock()

  def __enter__(self) -> Connector:
    return self

  def __exit__(self, *exc) -> None:
    self.close()

  @property
  def connected(self) -> bool:
    return self._channel is not None and self._state != grpc.ChannelConnectivity.SHUTDOWN

  def _on_state_change(self, state) -> None:
    self._state = state

  def _dial(self):
    try:
      channel = grpc.insecure_channel(self.endpoint)
    except (ValueError, TypeError, RuntimeError) as e:
      logger.error('error when new grpc client, endpoint: %s, err: %s', self.endpoint, e)
      raise ConnectionFailed(f'could not dial {self.endpoint}: {e}') from e
    channel.subscribe(self._on_state_change, try_to_connect=False)
    return channel

  # Returns a usable channel, dialing a fresh one if there is none or it has shut down
  def ensure_connected(self):
    with self._lock:
      if self.connected:
        return self._channel
      if self._channel is not None:
        logger.info('grpc channel to %s is shut down, reconnecting', self.endpoint)
        self._channel.unsubscribe(self._on_state_change)
      self._state = None
      self._channel = self._dial()
      return self._channel

  # Returns a gRPC stub bound to the current channel, reporting UNAVAILABLE as ConnectionFailed
  def stub(self, stub_cls):
    return GuardedStub(stub_cls(self.ensure_connected()), self.endpoint)

  def close(self) -> None:
    with self._lock:
      if self._channel is None:
        return
      self._channel.unsubscribe(self._on_state_change)
      self._channel.close()
      self._channel = None
      self._state = grpc.ChannelConnectivity.SHUTDOWN
