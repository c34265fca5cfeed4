"""
UDP endpoint owned by a routing node.
"""

from __future__ import annotations

import logging
import socket
from typing import Optional, Tuple

from .message import MAX_SIZE

LOGGER = logging.getLogger(__name__)

# Must stay >= MAX_SIZE so no legal link-state datagram is truncated.
MAX_DATAGRAM_SIZE = max(65535, MAX_SIZE)


class TransportError(OSError):
  """Socket bind, send or receive failure."""


class UdpTransport:
  def __init__(self, port: int, host: str = "0.0.0.0") -> None:
    self.host = host
    self.port = port
    self.sock: Optional[socket.socket] = None

  def __enter__(self) -> "UdpTransport":
    self.bind()
    return self

  def __exit__(self, *exc_info: object) -> None:
    self.close()

  def bind(self) -> None:
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
      sock.bind((self.host, self.port))
    except (OSError, OverflowError) as exc:
      sock.close()
      raise TransportError(f"cannot bind UDP {self.host}:{self.port}: {exc}") from exc
    self.sock = sock
    # port 0 asks the OS for a free port
    self.port = sock.getsockname()[1]
    LOGGER.info("listening on udp %s:%s", self.host, self.port)

  def sendto(self, data: bytes, address: Tuple[str, int]) -> None:
    if self.sock is None:
      raise TransportError("socket is not bound")
    try:
      self.sock.sendto(data, address)
    except OSError as exc:
      raise TransportError(f"send to {address[0]}:{address[1]} failed: {exc}") from exc

  def receive(self) -> Optional[bytes]:
    """
    Read one datagram.  Returns ``None`` when nothing is actually pending.
    """
    if self.sock is None:
      raise TransportError("socket is not bound")
    try:
      data, _ = self.sock.recvfrom(MAX_DATAGRAM_SIZE)
    except BlockingIOError:
      return None
    except ConnectionError as exc:
      # ICMP unreachable from an earlier send on some platforms.
      LOGGER.debug("ignoring %s on receive", exc)
      return None
    except OSError as exc:
      raise TransportError(f"receive failed: {exc}") from exc
    return data

  def close(self) -> None:
    if self.sock is not None:
      try:
        self.sock.close()
      finally:
        self.sock = None
