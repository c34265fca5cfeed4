"""
链路状态路由节点使用的默认定时器（单位：秒）。

取值与课程实验的参考程序保持一致：每秒向邻居通告一次本地链路状态，
每 10 秒重新计算并打印一次路由表。可通过命令行或 YAML 拓扑中的
defaults 覆盖。
"""

NEIGHBOR_UPDATE_INTERVAL = 1.0   # 向邻居广播本地链路状态向量
ROUTE_UPDATE_INTERVAL = 10.0     # 运行 Dijkstra 并输出路由表
DEFAULT_PEER_IP = "127.0.0.1"    # 所有节点默认运行在同一台机器上
