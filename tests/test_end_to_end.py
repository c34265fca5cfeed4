"""
Three routers on a ring talking over real loopback UDP sockets.
"""

import socket
import threading
import time

from lsrouter.events import EventLoop
from lsrouter.router import Router
from lsrouter.topology import NodeConfig, Topology


def free_udp_ports(count):
  socks = []
  try:
    for _ in range(count):
      sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
      sock.bind(("127.0.0.1", 0))
      socks.append(sock)
    return [sock.getsockname()[1] for sock in socks]
  finally:
    for sock in socks:
      sock.close()


def test_three_node_ring_converges():
  ports = free_udp_ports(3)
  # 0-1 cost 4, 1-2 cost 2, 0-2 cost 1
  costs = {(0, 1): 4, (1, 2): 2, (0, 2): 1}

  def topology_for(node_id):
    neighbors = []
    for (a, b), cost in sorted(costs.items()):
      if node_id in (a, b):
        other = b if node_id == a else a
        neighbors.append(NodeConfig(label=f"n{other}", node_id=other, cost=cost, port=ports[other]))
    return Topology(nodes=3, neighbors=tuple(neighbors))

  results = {}
  done = threading.Event()
  lock = threading.Lock()

  def reporter(node_id):
    def report(result):
      with lock:
        results[node_id] = result
        if len(results) == 3:
          done.set()
    return report

  loops, routers, threads = [], [], []
  for node_id in range(3):
    loop = EventLoop()
    router = Router(
        node_id,
        ports[node_id],
        topology_for(node_id),
        loop,
        neighbor_update=0.05,
        route_update=0.2,
        on_routes=reporter(node_id),
    )
    router.bootstrap()
    loops.append(loop)
    routers.append(router)
    threads.append(threading.Thread(target=loop.run, name=f"router-{node_id}", daemon=True))

  for thread in threads:
    thread.start()
  try:
    assert done.wait(timeout=10), f"only {sorted(results)} reported routes"
  finally:
    for loop in loops:
      loop.stop()
    for thread in threads:
      thread.join(timeout=2)
    for router in routers:
      router.shutdown()

  assert results[0].dist == [0, 3, 1]
  assert results[1].dist == [3, 0, 2]
  assert results[2].dist == [1, 2, 0]
  assert results[0].prev == [0, 2, 0]
  for router in routers:
    assert router.stats["send_errors"] == 0
