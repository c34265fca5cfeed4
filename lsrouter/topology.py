"""
Topology loading for a single routing node.

A topology describes the network from one node's point of view: the total
number of nodes and the directly attached neighbors.  Two file formats are
accepted.  The plain text format used by the lab handouts::

  3
  B 1 4 5001
  C 2 1 5002

where the first line is the node count and every other line is
``<label> <id> <cost> <port>``.  Files ending in ``.yaml``/``.yml`` carry the
same information as a mapping, plus optional ``defaults`` for timers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import yaml

from .message import INFINITY, MAX_NODES


class ConfigError(ValueError):
  """Raised when a topology file is missing or malformed."""


@dataclass(frozen=True)
class NodeConfig:
  label: str
  node_id: int
  cost: int
  port: int


@dataclass(frozen=True)
class Topology:
  nodes: int
  neighbors: Tuple[NodeConfig, ...] = ()
  defaults: Dict[str, Any] = field(default_factory=dict, compare=False)

  @property
  def neighbor_count(self) -> int:
    return len(self.neighbors)

  def neighbor_ids(self) -> List[int]:
    return [n.node_id for n in self.neighbors]

  def get(self, node_id: int) -> Optional[NodeConfig]:
    for neighbor in self.neighbors:
      if neighbor.node_id == node_id:
        return neighbor
    return None

  def validate_self(self, node_id: int) -> None:
    """
    Check that ``node_id`` can own this topology.
    """
    if not 0 <= node_id < self.nodes:
      raise ConfigError(f"node id {node_id} outside of [0, {self.nodes})")
    if self.get(node_id) is not None:
      raise ConfigError(f"node {node_id} lists itself as a neighbor")


def load_topology(path: Path) -> Topology:
  path = Path(path)
  if not path.exists():
    raise ConfigError(f"topology file not found: {path}")
  try:
    text = path.read_text(encoding="utf-8")
  except OSError as exc:
    raise ConfigError(f"cannot read topology file {path}: {exc}") from exc

  if path.suffix.lower() in {".yaml", ".yml"}:
    try:
      data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
      raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    return topology_from_mapping(data)
  return parse_topology_text(text)


def parse_topology_text(text: str) -> Topology:
  lines = list(_clean_lines(text.splitlines()))
  if not lines:
    raise ConfigError("topology is empty")

  lineno, header = lines[0]
  if len(header.split()) != 1:
    raise ConfigError(f"line {lineno}: expected the node count alone")
  nodes = _parse_int("node count", header, lineno)

  neighbors: List[NodeConfig] = []
  for lineno, line in lines[1:]:
    parts = line.split()
    if len(parts) != 4:
      raise ConfigError(f"line {lineno}: expected '<label> <id> <cost> <port>', got {line!r}")
    label, raw_id, raw_cost, raw_port = parts
    neighbors.append(
        NodeConfig(
            label=label,
            node_id=_parse_int("neighbor id", raw_id, lineno),
            cost=_parse_int("cost", raw_cost, lineno),
            port=_parse_int("port", raw_port, lineno),
        )
    )
  return _build(nodes, neighbors, {})


def topology_from_mapping(data: Any) -> Topology:
  if not isinstance(data, dict):
    raise ConfigError("topology file must contain a mapping at the root")
  if "nodes" not in data:
    raise ConfigError("topology missing 'nodes'")
  nodes = _coerce_int("nodes", data["nodes"])

  entries = data.get("neighbors") or []
  if not isinstance(entries, list):
    raise ConfigError("'neighbors' must be a list")
  neighbors: List[NodeConfig] = []
  for idx, entry in enumerate(entries):
    if not isinstance(entry, dict):
      raise ConfigError(f"neighbors[{idx}] must be a mapping")
    missing = {"id", "cost", "port"} - set(entry)
    if missing:
      raise ConfigError(f"neighbors[{idx}] missing {', '.join(sorted(missing))}")
    node_id = _coerce_int(f"neighbors[{idx}].id", entry["id"])
    neighbors.append(
        NodeConfig(
            label=str(entry.get("label", node_id)),
            node_id=node_id,
            cost=_coerce_int(f"neighbors[{idx}].cost", entry["cost"]),
            port=_coerce_int(f"neighbors[{idx}].port", entry["port"]),
        )
    )

  defaults = data.get("defaults") or {}
  if not isinstance(defaults, dict):
    raise ConfigError("'defaults' must be a mapping")
  return _build(nodes, neighbors, dict(defaults))


# ------------------------------------------------------------------ helpers

def _clean_lines(raw: Iterable[str]) -> Iterable[Tuple[int, str]]:
  for lineno, line in enumerate(raw, start=1):
    line = line.split("#", 1)[0].strip()
    if line:
      yield lineno, line


def _parse_int(name: str, value: str, lineno: int) -> int:
  try:
    return int(value)
  except ValueError as exc:
    raise ConfigError(f"line {lineno}: {name} must be an integer, got {value!r}") from exc


def _coerce_int(name: str, value: Any) -> int:
  if isinstance(value, bool) or not isinstance(value, int):
    raise ConfigError(f"{name} must be an integer, got {value!r}")
  return value


def _build(nodes: int, neighbors: List[NodeConfig], defaults: Dict[str, Any]) -> Topology:
  if not 1 <= nodes <= MAX_NODES:
    raise ConfigError(f"node count must be within [1, {MAX_NODES}], got {nodes}")

  seen = set()
  for neighbor in neighbors:
    if not 0 <= neighbor.node_id < nodes:
      raise ConfigError(f"neighbor {neighbor.label} id {neighbor.node_id} outside of [0, {nodes})")
    if neighbor.node_id in seen:
      raise ConfigError(f"neighbor id {neighbor.node_id} listed twice")
    seen.add(neighbor.node_id)
    if not 0 <= neighbor.cost < INFINITY:
      raise ConfigError(f"neighbor {neighbor.label} cost must be within [0, {INFINITY})")
    if not 1 <= neighbor.port <= 65535:
      raise ConfigError(f"neighbor {neighbor.label} port {neighbor.port} is not a valid UDP port")

  return Topology(nodes=nodes, neighbors=tuple(neighbors), defaults=defaults)
