"""
Shared helpers: fake transports and an in-memory datagram bus.
"""

from collections import deque
from typing import Dict, List, Tuple

import pytest

from lsrouter.events import EventLoop
from lsrouter.message import decode
from lsrouter.router import Router
from lsrouter.topology import NodeConfig, Topology
from lsrouter.transport import TransportError


class FakeTransport:
  """Records every datagram instead of sending it."""

  def __init__(self, port: int = 0, fail_ports=()) -> None:
    self.port = port
    self.sock = None
    self.sent: List[Tuple[bytes, Tuple[str, int]]] = []
    self.fail_ports = set(fail_ports)
    self.closed = False

  def bind(self) -> None:
    pass

  def sendto(self, data: bytes, address: Tuple[str, int]) -> None:
    if address[1] in self.fail_ports:
      raise TransportError(f"port {address[1]} unreachable")
    self.sent.append((data, address))

  def receive(self):
    return None

  def close(self) -> None:
    self.closed = True

  def messages(self):
    return [decode(data) for data, _ in self.sent]


class Bus:
  """
  Delivers datagrams between routers in FIFO order.

  Every queued datagram carries its relay depth: 0 for a fresh broadcast,
  parent depth + 1 for a relayed copy.
  """

  def __init__(self) -> None:
    self.routers: Dict[int, Router] = {}
    self.queue: deque = deque()
    self.delivered: List[Tuple[int, object, int]] = []
    self._depth = 0

  def transport(self, port: int) -> "BusTransport":
    return BusTransport(self, port)

  def attach(self, router: Router) -> None:
    self.routers[router.port] = router

  def inject(self, port: int, data: bytes, depth: int = 0) -> None:
    self.queue.append((port, data, depth))

  def drain(self, limit: int = 100000) -> int:
    steps = 0
    while self.queue:
      steps += 1
      if steps > limit:
        raise AssertionError("flood did not terminate")
      port, data, depth = self.queue.popleft()
      self.delivered.append((port, decode(data), depth))
      self._depth = depth + 1
      try:
        self.routers[port].on_receive(data)
      finally:
        self._depth = 0
    return steps


class BusTransport(FakeTransport):
  def __init__(self, bus: Bus, port: int) -> None:
    super().__init__(port)
    self.bus = bus

  def sendto(self, data: bytes, address: Tuple[str, int]) -> None:
    super().sendto(data, address)
    self.bus.inject(address[1], data, self.bus._depth)


def build_network(links: Dict[Tuple[int, int], int], nodes: int, base_port: int = 6000):
  """
  Build routers wired to a shared bus from undirected ``{(a, b): cost}`` links.
  """
  bus = Bus()
  neighbors: Dict[int, List[NodeConfig]] = {n: [] for n in range(nodes)}
  for (a, b), cost in sorted(links.items()):
    neighbors[a].append(NodeConfig(label=f"n{b}", node_id=b, cost=cost, port=base_port + b))
    neighbors[b].append(NodeConfig(label=f"n{a}", node_id=a, cost=cost, port=base_port + a))

  routers: Dict[int, Router] = {}
  for node_id in range(nodes):
    topology = Topology(nodes=nodes, neighbors=tuple(neighbors[node_id]))
    router = Router(
        node_id,
        base_port + node_id,
        topology,
        EventLoop(),
        transport=bus.transport(base_port + node_id),
        on_routes=lambda result: None,
    )
    bus.attach(router)
    routers[node_id] = router
  return bus, routers


@pytest.fixture
def triangle_topology() -> Topology:
  return Topology(
      nodes=3,
      neighbors=(
          NodeConfig(label="B", node_id=1, cost=4, port=5001),
          NodeConfig(label="C", node_id=2, cost=1, port=5002),
      ),
  )
