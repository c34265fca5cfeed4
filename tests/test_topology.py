"""
Tests for topology parsing and validation.
"""

import pytest

from lsrouter.message import MAX_NODES
from lsrouter.topology import ConfigError, NodeConfig, load_topology, parse_topology_text


def test_parse_text_topology():
  topo = parse_topology_text("3\nB 1 4 5001\nC 2 1 5002\n")

  assert topo.nodes == 3
  assert topo.neighbor_count == 2
  assert topo.neighbors[0] == NodeConfig(label="B", node_id=1, cost=4, port=5001)
  assert topo.neighbor_ids() == [1, 2]
  assert topo.get(2).port == 5002
  assert topo.get(0) is None


def test_parse_skips_blank_lines_and_comments():
  topo = parse_topology_text("# ring\n\n2\n\nB 1 3 6001  # only neighbor\n")
  assert topo.nodes == 2
  assert topo.neighbor_ids() == [1]


@pytest.mark.parametrize(
    "text",
    [
        "",
        "three\n",
        "3 4\n",
        "3\nB 1 4\n",
        "3\nB x 4 5001\n",
        "3\nB 3 4 5001\n",
        "3\nB 1 4 5001\nB 1 2 5002\n",
        "3\nB 1 -1 5001\n",
        "3\nB 1 999 5001\n",
        "3\nB 1 4 70000\n",
        "0\n",
        f"{MAX_NODES + 1}\n",
    ],
)
def test_malformed_text_topology(text):
  with pytest.raises(ConfigError):
    parse_topology_text(text)


def test_load_text_file(tmp_path):
  path = tmp_path / "node0.txt"
  path.write_text("2\nB 1 7 5001\n", encoding="utf-8")
  topo = load_topology(path)
  assert topo.neighbors == (NodeConfig("B", 1, 7, 5001),)


def test_load_yaml_file(tmp_path):
  path = tmp_path / "node2.yaml"
  path.write_text(
      "nodes: 3\n"
      "neighbors:\n"
      "  - {label: A, id: 0, cost: 1, port: 5000}\n"
      "  - {id: 1, cost: 2, port: 5001}\n"
      "defaults:\n"
      "  route_update_ms: 500\n",
      encoding="utf-8",
  )
  topo = load_topology(path)

  assert topo.nodes == 3
  assert topo.neighbor_ids() == [0, 1]
  assert topo.neighbors[1].label == "1"
  assert topo.defaults == {"route_update_ms": 500}


@pytest.mark.parametrize(
    "body",
    [
        "- 1\n- 2\n",
        "neighbors: []\n",
        "nodes: 3\nneighbors: {id: 1}\n",
        "nodes: 3\nneighbors:\n  - {id: 1, cost: 2}\n",
        "nodes: '3'\n",
        "nodes: 3\ndefaults: [1]\n",
        "nodes: [\n",
    ],
)
def test_malformed_yaml_topology(tmp_path, body):
  path = tmp_path / "bad.yml"
  path.write_text(body, encoding="utf-8")
  with pytest.raises(ConfigError):
    load_topology(path)


def test_missing_file(tmp_path):
  with pytest.raises(ConfigError):
    load_topology(tmp_path / "absent.txt")


def test_validate_self(triangle_topology):
  triangle_topology.validate_self(0)
  with pytest.raises(ConfigError):
    triangle_topology.validate_self(3)
  with pytest.raises(ConfigError):
    triangle_topology.validate_self(1)
