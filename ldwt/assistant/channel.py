"""
助手解耦通道
============

诊断助手是单向消费者, 可能很慢或失败, 因此:
- TelemetryChannel: 有界快照通道, 满时丢弃最旧快照, 发布端永不阻塞
- AssistantRelay: 在工作线程中调用助手, 收集流式文本; 失败只通过日志与回调上报,
  不会阻塞或改变仿真步
"""

import logging
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Iterable, List, Optional

from ..simulation.state import StateSnapshot
from .context import AssistantContext, build_prompt, system_instruction


logger = logging.getLogger('LDWT.Assistant')

SERVICE_UNAVAILABLE = "系统错误：AI 服务暂时不可用"


class TelemetryChannel:
    """有界快照通道 (丢弃最旧)"""

    def __init__(self, maxlen: int = 100):
        self._buffer: deque = deque(maxlen=max(1, maxlen))
        self._lock = threading.Lock()
        self.dropped = 0

    def publish(self, snapshot: StateSnapshot):
        """发布快照, 可直接作为 RealtimeRunner 的订阅回调"""
        with self._lock:
            if len(self._buffer) == self._buffer.maxlen:
                self.dropped += 1
            self._buffer.append(snapshot)

    def latest(self) -> Optional[StateSnapshot]:
        with self._lock:
            return self._buffer[-1] if self._buffer else None

    def drain(self) -> List[StateSnapshot]:
        """取出全部快照"""
        with self._lock:
            items = list(self._buffer)
            self._buffer.clear()
        return items

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)


class DiagnosticAssistant:
    """
    诊断助手接口

    子类实现 ``stream``, 按块返回叙述文本。
    """

    def stream(self, instruction: str, prompt: str) -> Iterable[str]:
        raise NotImplementedError


class AssistantRelay:
    """
    助手中继

    所有助手调用都在独立线程池中执行, 调用方拿到 Future 立即返回。
    """

    def __init__(self, assistant: DiagnosticAssistant,
                 on_chunk: Callable[[str], None] = None,
                 on_error: Callable[[str], None] = None,
                 max_workers: int = 1):
        self.assistant = assistant
        self.on_chunk = on_chunk
        self.on_error = on_error
        self._executor = ThreadPoolExecutor(max_workers=max_workers,
                                            thread_name_prefix="ldwt-assistant")

    def ask(self, context: AssistantContext, question: str) -> Future:
        """
        提交提问

        Returns:
            Future, 结果为完整叙述文本; 助手失败时为固定错误提示
        """
        instruction = system_instruction(context)
        prompt = build_prompt(context, question)
        return self._executor.submit(self._consume, instruction, prompt)

    def _consume(self, instruction: str, prompt: str) -> str:
        chunks = []
        try:
            for chunk in self.assistant.stream(instruction, prompt):
                if not chunk:
                    continue
                chunks.append(chunk)
                if self.on_chunk is not None:
                    self.on_chunk(chunk)
        except Exception as e:
            logger.error(f"诊断助手调用失败: {e}")
            if self.on_error is not None:
                self.on_error(SERVICE_UNAVAILABLE)
            return SERVICE_UNAVAILABLE
        return "".join(chunks)

    def shutdown(self, wait: bool = True):
        self._executor.shutdown(wait=wait)


__all__ = [
    'SERVICE_UNAVAILABLE',
    'TelemetryChannel',
    'DiagnosticAssistant',
    'AssistantRelay',
]
