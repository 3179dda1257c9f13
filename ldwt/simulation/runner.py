"""
实时运行器
==========

按墙钟节拍驱动仿真引擎:
- 每个节拍周期推进一步 (实时节奏, 不追求最快)
- 暂停/恢复/重置等指令经队列提交, 在节拍边界执行, 不会在步中途生效
- 每步结束发布只读快照, 订阅者异常不影响仿真
"""

import logging
import queue
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from .engine import SimulationEngine, SimulationStatus
from .state import StateSnapshot, TelemetryRecord


logger = logging.getLogger('LDWT.Runner')


@dataclass
class RunnerStats:
    """运行统计"""
    ticks: int = 0                   # 已推进步数
    overruns: int = 0                # 超出节拍周期的步数
    max_tick_ms: float = 0.0         # 单步最大耗时 (ms)
    commands: int = 0                # 已执行指令数
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return len(self.errors) == 0


class RealtimeRunner:
    """
    实时节拍运行器

    引擎只在运行器线程内被访问; 其他线程通过 ``submit`` 提交指令。
    """

    def __init__(self, engine: SimulationEngine, period: float = None):
        """
        Parameters:
            engine: 仿真引擎
            period: 节拍周期 (s), 默认等于仿真步长
        """
        self.engine = engine
        self.period = engine.settings.dt if period is None else max(0.0, period)
        self.stats = RunnerStats()

        self._commands: queue.Queue = queue.Queue()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._active = threading.Event()
        self._command_lock = threading.Lock()
        self._lock = threading.Lock()
        self._snapshot: Optional[StateSnapshot] = engine.snapshot()
        self._subscribers: List[Callable[[StateSnapshot], None]] = []

    # ==========================================
    # 订阅
    # ==========================================

    def subscribe(self, callback: Callable[[StateSnapshot], None]):
        """订阅每步快照"""
        self._subscribers.append(callback)

    def latest_snapshot(self) -> Optional[StateSnapshot]:
        """最近一次发布的快照 (线程安全)"""
        with self._lock:
            return self._snapshot

    @property
    def is_running(self) -> bool:
        return self._active.is_set()

    # ==========================================
    # 指令
    # ==========================================

    def submit(self, command: Callable[[SimulationEngine], Any]) -> Future:
        """
        提交指令

        运行器线程存活时在下一个节拍边界执行, 否则在调用线程立即执行。

        Returns:
            Future, 结果为指令返回值
        """
        future = Future()
        with self._command_lock:
            if self.is_running:
                self._commands.put((command, future))
                return future
        self._execute(command, future)
        self._publish(self.engine.snapshot())
        return future

    def pause(self) -> Future:
        return self.submit(lambda engine: engine.pause())

    def resume(self) -> Future:
        return self.submit(lambda engine: engine.resume())

    def reset(self) -> Future:
        return self.submit(lambda engine: engine.reset())

    def _execute(self, command: Callable, future: Future):
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = command(self.engine)
        except Exception as e:
            logger.error(f"指令执行失败: {e}")
            future.set_exception(e)
        else:
            future.set_result(result)
        self.stats.commands += 1

    def _drain_commands(self) -> int:
        count = 0
        while True:
            try:
                command, future = self._commands.get_nowait()
            except queue.Empty:
                return count
            self._execute(command, future)
            count += 1

    # ==========================================
    # 运行控制
    # ==========================================

    def start(self):
        """在后台线程启动实时循环"""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self.engine.resume()
        self._active.set()
        self._thread = threading.Thread(target=self._loop, name="ldwt-runner", daemon=True)
        self._thread.start()
        logger.info(f"实时运行器已启动 (节拍 {self.period * 1000:.0f} ms)")

    def stop(self, timeout: float = None):
        """停止循环并等待线程退出"""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        # 线程退出后残留的指令在调用线程执行
        self._drain_commands()
        logger.info(f"实时运行器已停止 (共 {self.stats.ticks} 步)")

    def run_for(self, seconds: float) -> List[TelemetryRecord]:
        """
        在调用线程内按实时节拍运行指定仿真时长

        运行期间引擎被暂停或重置时提前返回。

        Returns:
            本次运行产生的遥测记录
        """
        if self.is_running:
            raise RuntimeError("runner thread already active")
        self._stop_event.clear()
        self.engine.resume()
        self._active.set()
        records: List[TelemetryRecord] = []
        self._loop(max_ticks=int(round(seconds / self.engine.settings.dt)), records=records)
        return records

    def _loop(self, max_ticks: int = None, records: List[TelemetryRecord] = None):
        try:
            self._run_ticks(max_ticks, records)
        finally:
            with self._command_lock:
                self._active.clear()
            # 循环结束前最后一步之后提交的指令
            if self._drain_commands():
                self._publish(self.engine.snapshot())

    def _run_ticks(self, max_ticks: int, records: Optional[List[TelemetryRecord]]):
        ticks = 0
        deadline = time.monotonic()

        while not self._stop_event.is_set():
            self._drain_commands()

            if max_ticks is not None and self.engine.status != SimulationStatus.RUNNING:
                break

            if self.engine.status == SimulationStatus.RUNNING:
                started = time.monotonic()
                try:
                    record = self.engine.step()
                except Exception as e:
                    self.stats.errors.append(f"Simulation error at t={self.engine.time:.1f}: {e}")
                    logger.exception("仿真步执行失败")
                    self.engine.status = SimulationStatus.PAUSED
                    break

                elapsed_ms = (time.monotonic() - started) * 1000
                self.stats.ticks += 1
                self.stats.max_tick_ms = max(self.stats.max_tick_ms, elapsed_ms)
                if records is not None:
                    records.append(record)
                self._publish(self.engine.snapshot())

                ticks += 1
                if max_ticks is not None and ticks >= max_ticks:
                    break

            deadline += self.period
            remaining = deadline - time.monotonic()
            if remaining > 0:
                self._stop_event.wait(remaining)
            else:
                self.stats.overruns += 1
                deadline = time.monotonic()

    def _publish(self, snapshot: StateSnapshot):
        with self._lock:
            self._snapshot = snapshot
        for callback in self._subscribers:
            try:
                callback(snapshot)
            except Exception as e:
                logger.warning(f"快照订阅者异常: {e}")


__all__ = ['RunnerStats', 'RealtimeRunner']
