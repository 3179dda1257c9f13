"""
实时运行器测试
"""

import os
import sys
import time

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from ldwt.simulation.engine import SimulationEngine, SimulationStatus
from ldwt.simulation.runner import RealtimeRunner


def wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return False


class TestRunFor:
    """调用线程内运行测试"""

    def test_run_for_ticks(self):
        """按仿真时长推进"""
        engine = SimulationEngine(seed=0)
        runner = RealtimeRunner(engine, period=0.0)
        records = runner.run_for(1.0)
        assert len(records) == 10
        assert engine.time == pytest.approx(1.0)
        assert runner.stats.ticks == 10
        assert runner.stats.success

    def test_real_time_pacing(self):
        """按节拍周期实时推进, 不追求最快"""
        engine = SimulationEngine(seed=0)
        runner = RealtimeRunner(engine, period=0.01)
        started = time.monotonic()
        runner.run_for(1.0)
        assert time.monotonic() - started >= 0.08

    def test_snapshot_published(self):
        """每步发布快照"""
        engine = SimulationEngine(seed=0)
        runner = RealtimeRunner(engine, period=0.0)
        snapshots = []
        runner.subscribe(snapshots.append)
        runner.run_for(0.5)
        assert len(snapshots) == 5
        assert runner.latest_snapshot().time == pytest.approx(0.5)

    def test_subscriber_error_does_not_stop(self):
        """订阅者异常不影响仿真"""
        engine = SimulationEngine(seed=0)
        runner = RealtimeRunner(engine, period=0.0)

        def broken(snapshot):
            raise RuntimeError("display failed")

        runner.subscribe(broken)
        assert len(runner.run_for(0.5)) == 5
        assert runner.stats.success

    def test_step_error_recorded(self):
        """仿真步异常记录到统计并停止循环"""
        engine = SimulationEngine(seed=0)

        def failing_step():
            raise RuntimeError("boom")

        engine.step = failing_step
        runner = RealtimeRunner(engine, period=0.0)
        records = runner.run_for(1.0)

        assert records == []
        assert len(runner.stats.errors) == 1
        assert "boom" in runner.stats.errors[0]
        assert engine.status == SimulationStatus.PAUSED

    def test_submit_when_idle_runs_immediately(self):
        """循环未运行时指令立即执行"""
        engine = SimulationEngine(seed=0)
        runner = RealtimeRunner(engine)
        future = runner.submit(lambda e: e.run(3))
        assert len(future.result()) == 3
        assert runner.latest_snapshot().time == pytest.approx(0.3)


class TestBackgroundLoop:
    """后台线程运行测试"""

    def test_pause_resume_reset(self):
        """暂停/恢复/重置在节拍边界执行"""
        engine = SimulationEngine(seed=0)
        runner = RealtimeRunner(engine, period=0.001)
        runner.start()
        try:
            assert wait_until(lambda: engine.time > 0.5)

            runner.pause().result(timeout=2.0)
            paused_at = engine.time
            time.sleep(0.05)
            assert engine.time == paused_at
            assert engine.status == SimulationStatus.PAUSED
            assert runner.latest_snapshot().time == paused_at

            runner.reset().result(timeout=2.0)
            assert engine.time == 0.0
            assert engine.state.water_level == 295.0

            runner.resume().result(timeout=2.0)
            assert wait_until(lambda: engine.time > 0.2)
        finally:
            runner.stop(timeout=2.0)

        assert not runner.is_running
        assert runner.stats.success

    def test_command_errors_reach_future(self):
        """指令异常通过 Future 返回, 不中断循环"""
        engine = SimulationEngine(seed=0)
        runner = RealtimeRunner(engine, period=0.001)
        runner.start()
        try:
            future = runner.submit(lambda e: e.set_fault('valve', True, 1.0))
            with pytest.raises(KeyError):
                future.result(timeout=2.0)
            before = engine.time
            assert wait_until(lambda: engine.time > before)
        finally:
            runner.stop(timeout=2.0)


class TestCommandsDuringRunFor:
    """run_for 期间提交的指令测试"""

    def test_command_on_final_tick_is_executed(self):
        """最后一步时提交的指令在 run_for 返回前执行"""
        engine = SimulationEngine(seed=0)
        runner = RealtimeRunner(engine, period=0.0)
        futures = []

        def submit_on_last_tick(snapshot):
            if engine.state.tick == 3:
                futures.append(runner.submit(lambda e: e.set_setpoint(300.0)))

        runner.subscribe(submit_on_last_tick)
        records = runner.run_for(0.3)

        assert len(records) == 3
        assert len(futures) == 1
        assert futures[0].done()
        assert engine.state.setpoint_pattern.base == 300.0
        assert engine.step().target == 300.0

    def test_pause_ends_run_for(self):
        """运行中暂停时 run_for 提前返回"""
        engine = SimulationEngine(seed=0)
        runner = RealtimeRunner(engine, period=0.0)
        futures = []

        def pause_on_second_tick(snapshot):
            if engine.state.tick == 2:
                futures.append(runner.pause())

        runner.subscribe(pause_on_second_tick)
        records = runner.run_for(1.0)

        assert len(records) == 2
        assert futures[0].done()
        assert engine.status == SimulationStatus.PAUSED
        assert not runner.is_running
