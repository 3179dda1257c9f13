"""
输水滞后缓冲区
==============

长距离管道的输水时间建模为纯滞后 (FIFO延迟线):
每步把泵站出流压入队尾, 调蓄池入流取 ``delay_samples`` 步之前压入的值。

缓冲区物理长度在创建时固定; 运行中修改滞后只改变查找偏移。
偏移超出缓冲深度时视为无历史, 入流为0。
"""

from collections import deque
from typing import List


class TransportDelayBuffer:
    """
    纯滞后延迟线

    无失真: 输入序列延迟 ``delay_samples`` 步后逐位原样输出。
    """

    def __init__(self, capacity: int, delay_samples: int = None):
        """
        Parameters:
            capacity: 缓冲区长度 (步), round(管道滞后 / 步长)
            delay_samples: 查找偏移 (步), 默认等于 capacity
        """
        self.capacity = max(0, int(capacity))
        self.delay_samples = self.capacity if delay_samples is None else max(0, int(delay_samples))

        # 队首为最早压入的值
        self._buffer: deque = deque([0.0] * self.capacity, maxlen=self.capacity)

    def lookup(self, offset: int) -> float:
        """
        读取 offset 步之前压入的值

        offset=1 为上一步压入的值; 超出缓冲深度或 offset<=0 返回0。
        """
        if offset < 1 or offset > len(self._buffer):
            return 0.0
        return self._buffer[len(self._buffer) - offset]

    def push(self, value: float) -> float:
        """
        压入当前泵站出流, 返回本步到达调蓄池的流量

        Parameters:
            value: 当前泵站出流 (m³/s)

        Returns:
            滞后后的调蓄池入流 (m³/s)
        """
        if self.delay_samples == 0:
            delayed = value
        else:
            delayed = self.lookup(self.delay_samples)

        if self.capacity > 0:
            self._buffer.append(value)

        return delayed

    def future_inflows(self, steps: int, hold: float) -> List[float]:
        """
        未来 steps 步内将到达调蓄池的流量

        已在管道中的水按滞后顺序给出; 尚未泵出的部分按 hold 保持。

        Parameters:
            steps: 预测步数
            hold: 尚未泵出部分的假定出流

        Returns:
            长度为 steps 的入流序列
        """
        inflows = []
        for i in range(steps):
            offset = self.delay_samples - i
            inflows.append(self.lookup(offset) if offset >= 1 else hold)
        return inflows

    def set_delay(self, delay_samples: int):
        """修改查找偏移 (不改变缓冲区长度)"""
        self.delay_samples = max(0, int(delay_samples))

    def head(self) -> float:
        """下一步将到达调蓄池的流量"""
        return self.future_inflows(1, 0.0)[0]

    def values(self) -> List[float]:
        """缓冲区内容 (队首在前)"""
        return list(self._buffer)

    def reset(self):
        """清零"""
        self._buffer = deque([0.0] * self.capacity, maxlen=self.capacity)

    def __len__(self) -> int:
        return len(self._buffer)


__all__ = ['TransportDelayBuffer']
