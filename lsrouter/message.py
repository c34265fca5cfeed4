"""
链路状态报文的二进制编解码工具。

报文采用固定布局，全部字段均为小端 4 字节整数，无对齐填充：

  offset 0  : source_id  （链路状态向量所属节点）
  offset 4  : dest_id    （当前转发的下一跳）
  offset 8  : counter    （剩余泛洪跳数）
  offset 12 : cost[0..n) （n = (总长度 - 12) / 4）
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Any, List

HEADER_SIZE = 12
MAX_NODES = 10
MAX_PAYLOAD_SIZE = 4 * MAX_NODES
MAX_SIZE = HEADER_SIZE + MAX_PAYLOAD_SIZE

# 表示“无直连链路 / 不可达”的哨兵值。
INFINITY = 999

_HEADER = struct.Struct("<iii")
_WORD = 4


class FormatError(ValueError):
  """报文过短、过长或字段非法时抛出，调用方应丢弃该报文。"""


@dataclass
class LinkStateMessage:
  source_id: int
  dest_id: int
  counter: int
  cost: List[int] = field(default_factory=list)

  def __post_init__(self) -> None:
    # 拷贝一份，避免与调用方共享同一个列表。
    self.cost = list(self.cost)

  def copy(self) -> "LinkStateMessage":
    return LinkStateMessage(self.source_id, self.dest_id, self.counter, self.cost)

  def dumps(self) -> bytes:
    """
    按固定布局编码为字节串，长度恰为 ``12 + 4 * len(cost)``。

    编码时不检查负载上限，由调用方保证节点数不超过 ``MAX_NODES``。
    """
    _ensure_int("source_id", self.source_id)
    _ensure_int("dest_id", self.dest_id)
    _ensure_int("counter", self.counter)
    for idx, value in enumerate(self.cost):
      _ensure_int(f"cost[{idx}]", value)

    words = [self.source_id, self.dest_id, self.counter, *self.cost]
    return struct.pack(f"<{len(words)}I", *(_wrap_uint32(w) for w in words))

  @classmethod
  def loads(cls, data: bytes, *, max_payload: int = MAX_PAYLOAD_SIZE) -> "LinkStateMessage":
    """
    从 UDP 载荷中恢复报文，包含头部缺失与负载超长的检查。
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
      raise FormatError("data must be bytes-like")
    raw = bytes(data)
    if len(raw) < HEADER_SIZE:
      raise FormatError("link state header missing")

    payload_size = len(raw) - HEADER_SIZE
    if payload_size > max_payload:
      raise FormatError(
          f"payload of {payload_size} bytes exceeds the maximum of {max_payload}"
      )
    if payload_size % _WORD:
      raise FormatError(f"payload of {payload_size} bytes is not a whole number of int32 words")

    source_id, dest_id, counter = _HEADER.unpack_from(raw, 0)
    count = payload_size // _WORD
    cost = list(struct.unpack_from(f"<{count}i", raw, HEADER_SIZE)) if count else []
    return cls(source_id=source_id, dest_id=dest_id, counter=counter, cost=cost)


def encode(message: LinkStateMessage) -> bytes:
  return message.dumps()


def decode(data: bytes, *, max_payload: int = MAX_PAYLOAD_SIZE) -> LinkStateMessage:
  return LinkStateMessage.loads(data, max_payload=max_payload)


# ------------------------------------------------------------------ helpers

def _ensure_int(name: str, value: Any) -> None:
  if isinstance(value, bool) or not isinstance(value, int):
    raise FormatError(f"{name} must be an integer, got {type(value).__name__}")


def _wrap_uint32(value: int) -> int:
  # 与 32 位补码截断一致：超出范围的值按低 32 位写入。
  return value & 0xFFFFFFFF
