"""
链路状态路由节点的主体实现。

该实现负责：
1. 按固定周期向所有邻居广播本节点的链路状态向量；
2. 接收邻居发来的链路状态报文，记录并在跳数计数器未耗尽时继续泛洪；
3. 按固定周期在收齐全网向量后运行 Dijkstra，输出路由表。
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from . import timers
from .events import EventLoop, TimerHandle
from .message import FormatError, LinkStateMessage, decode, encode
from .spf import SpfResult, dijkstra, format_routing_table
from .state import RoutingState
from .topology import NodeConfig, Topology
from .transport import TransportError, UdpTransport

LOGGER = logging.getLogger(__name__)


def log_routing_table(result: SpfResult) -> None:
  for line in format_routing_table(result):
    LOGGER.info("%s", line)


class Router:
  """
  网络中的单个链路状态路由节点。
  """

  def __init__(
      self,
      node_id: int,
      port: int,
      topology: Topology,
      event_loop: EventLoop,
      *,
      peer_ip: str = timers.DEFAULT_PEER_IP,
      neighbor_update: float = timers.NEIGHBOR_UPDATE_INTERVAL,
      route_update: float = timers.ROUTE_UPDATE_INTERVAL,
      transport: Optional[UdpTransport] = None,
      on_routes: Optional[Callable[[SpfResult], None]] = None,
  ) -> None:
    self.node_id = node_id
    self.port = port
    self.topology = topology
    self.loop = event_loop
    self.peer_ip = peer_ip
    self.neighbor_update = neighbor_update
    self.route_update = route_update
    self.transport = transport
    self.on_routes = on_routes or log_routing_table

    self.state = RoutingState(node_id, topology)
    self.routes: Optional[SpfResult] = None
    self.stats: Dict[str, int] = {
        "received": 0,
        "dropped": 0,
        "relayed": 0,
        "sent": 0,
        "send_errors": 0,
    }

    self._timers: List[TimerHandle] = []
    self._socket_unregister: Optional[Callable[[], None]] = None

  # ---------------------------------------------------------------- lifecycle
  def bootstrap(self) -> None:
    LOGGER.debug("启动路由节点 %s", self.node_id)
    if self.transport is None:
      self.transport = UdpTransport(self.port)
    if self.transport.sock is None:
      self.transport.bind()
    self.port = self.transport.port
    if self.transport.sock is not None:
      self._socket_unregister = self.loop.register_socket(self.transport.sock, self._on_socket_readable)

    self._timers.append(self.loop.schedule(self.neighbor_update, self.on_broadcast_tick, repeat=True))
    self._timers.append(self.loop.schedule(self.route_update, self.on_route_tick, repeat=True))
    LOGGER.info(
        "节点 %s 已启动，端口=%s 邻居=%s 全网节点数=%s",
        self.node_id,
        self.port,
        [n.label for n in self.topology.neighbors],
        self.topology.nodes,
    )

  def shutdown(self) -> None:
    LOGGER.debug("关闭路由节点 %s，释放资源", self.node_id)
    for handle in self._timers:
      self.loop.cancel(handle)
    self._timers.clear()
    if self._socket_unregister:
      self._socket_unregister()
      self._socket_unregister = None
    if self.transport is not None:
      self.transport.close()

  # --------------------------------------------------------------- messaging
  def _on_socket_readable(self, _sock: object) -> None:
    """事件循环回调：读取一个数据报并交给泛洪处理。接收失败向上抛出。"""
    assert self.transport is not None
    data = self.transport.receive()
    if data is None:
      return
    self.on_receive(data)

  def on_receive(self, data: bytes) -> Optional[LinkStateMessage]:
    """
    处理收到的链路状态报文：记录向量，计数器为正时继续泛洪。

    计数器在向每个邻居发送前各减一，因此有 k 个邻居时每跳共减少 k。
    """
    self.stats["received"] += 1
    try:
      msg = decode(data)
    except FormatError as exc:
      self.stats["dropped"] += 1
      LOGGER.warning("收到非法报文，已丢弃: %s", exc)
      return None

    if msg.source_id == self.node_id:
      LOGGER.debug("收到自身发出的链路状态，counter=%s", msg.counter)
    elif not self.state.store(msg.source_id, msg.cost):
      self.stats["dropped"] += 1
      LOGGER.warning("报文源节点 %s 不在网络范围 [0, %s) 内，已丢弃", msg.source_id, self.topology.nodes)
      return None
    else:
      LOGGER.debug("记录节点 %s 的链路状态 %s，counter=%s", msg.source_id, msg.cost, msg.counter)

    if msg.counter > 0:
      for neighbor in self.topology.neighbors:
        msg.counter -= 1
        msg.dest_id = neighbor.node_id
        if self._send(neighbor, msg):
          self.stats["relayed"] += 1
    return msg

  def on_broadcast_tick(self) -> None:
    """向每个邻居发送本节点的链路状态向量，单个邻居失败不影响其余发送。"""
    cost = self.state.self_cost
    for neighbor in self.topology.neighbors:
      msg = LinkStateMessage(
          source_id=self.node_id,
          dest_id=neighbor.node_id,
          counter=self.topology.nodes,
          cost=cost,
      )
      if self._send(neighbor, msg):
        self.stats["sent"] += 1

  def _send(self, neighbor: NodeConfig, msg: LinkStateMessage) -> bool:
    if self.transport is None:
      LOGGER.warning("套接字尚未初始化，无法发送报文")
      return False
    try:
      self.transport.sendto(encode(msg), (self.peer_ip, neighbor.port))
    except (TransportError, FormatError) as exc:
      self.stats["send_errors"] += 1
      LOGGER.error("发送链路状态至邻居 %s (%s:%s) 失败: %s", neighbor.label, self.peer_ip, neighbor.port, exc)
      return False
    return True

  # -------------------------------------------------------------------- SPF
  def run_spf(self) -> Optional[SpfResult]:
    """收齐全网向量后运行 Dijkstra；否则不做任何修改并返回 None。"""
    table = self.state.snapshot()
    if table is None:
      LOGGER.debug("尚未收齐节点 %s 的链路状态，跳过本次路由计算", self.state.missing())
      return None
    result = dijkstra(table, self.node_id, self.topology.neighbor_ids())
    self.routes = result
    return result

  def on_route_tick(self) -> Optional[SpfResult]:
    result = self.run_spf()
    if result is not None:
      self.on_routes(result)
    return result

  # --------------------------------------------------------------- utilities
  def get_routes(self) -> Optional[SpfResult]:
    return self.routes

  def get_vectors(self) -> Dict[int, Optional[List[int]]]:
    return self.state.view()

  def get_neighbors(self) -> List[NodeConfig]:
    return list(self.topology.neighbors)
