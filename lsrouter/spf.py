"""
Shortest path computation over the collected link-state vectors.

The table passed in is indexed by node id; row ``w`` is the cost vector
advertised by node ``w`` and ``INFINITY`` marks a missing edge.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from .message import INFINITY

NO_PREDECESSOR = -1


@dataclass
class SpfResult:
  source: int
  dist: List[int]
  prev: List[int]

  def rows(self) -> Iterator[Tuple[int, int, int]]:
    for node_id, (distance, predecessor) in enumerate(zip(self.dist, self.prev)):
      yield node_id, distance, predecessor

  def next_hop(self, dest: int) -> Optional[int]:
    """
    Walk the predecessor chain back to the first hop after ``source``.
    """
    if dest == self.source or self.prev[dest] == NO_PREDECESSOR:
      return None
    hop = dest
    for _ in range(len(self.prev)):
      parent = self.prev[hop]
      if parent == self.source:
        return hop
      if parent == NO_PREDECESSOR:
        return None
      hop = parent
    return None


def dijkstra(
    table: Sequence[Sequence[int]],
    source: int,
    neighbor_ids: Iterable[int],
    *,
    infinity: int = INFINITY,
) -> SpfResult:
  """
  Run Dijkstra from ``source`` over a fully populated vector table.

  Direct neighbors are seeded from the source's own row.  Each of the
  ``n - 1`` passes settles the unsettled node with the smallest distance,
  scanning ids in increasing order so ties go to the lowest id.  When no
  unsettled node is reachable the node picked in the previous pass is reused;
  relaxing from it again changes nothing.
  """
  n = len(table)
  dist = [infinity] * n
  prev = [NO_PREDECESSOR] * n
  dist[source] = 0
  prev[source] = source
  settled = {source}

  own = table[source]
  for neighbor in neighbor_ids:
    dist[neighbor] = _edge(own, neighbor, infinity)
    prev[neighbor] = source

  w = source
  for _ in range(n - 1):
    best = infinity
    for v in range(n):
      if v not in settled and dist[v] < best:
        best = dist[v]
        w = v
    settled.add(w)

    row = table[w]
    for v in range(n):
      if v in settled:
        continue
      edge = _edge(row, v, infinity)
      if edge < infinity and dist[w] + edge < dist[v]:
        dist[v] = dist[w] + edge
        prev[v] = w

  return SpfResult(source=source, dist=dist, prev=prev)


def format_routing_table(result: SpfResult) -> List[str]:
  lines = ["Routing Info", "RouterID \t Distance \t Prev RouterID"]
  for node_id, distance, predecessor in result.rows():
    lines.append(f"{node_id}\t\t   {distance}\t\t\t{predecessor}")
  return lines


def _edge(row: Sequence[int], v: int, infinity: int) -> int:
  # Short vectors from peers with a smaller view of the network.
  return row[v] if v < len(row) else infinity
