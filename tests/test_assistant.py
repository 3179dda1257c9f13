"""
诊断助手边界测试
"""

import os
import sys
import threading

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from ldwt.assistant import (
    SERVICE_UNAVAILABLE, AssistantRelay, DiagnosticAssistant, TelemetryChannel,
    build_context, build_prompt, format_telemetry, system_instruction,
)
from ldwt.config.settings import ParadigmType
from ldwt.simulation.engine import SimulationEngine
from ldwt.simulation.runner import RealtimeRunner


class EchoAssistant(DiagnosticAssistant):
    """按块回显"""

    def __init__(self):
        self.prompts = []

    def stream(self, instruction, prompt):
        self.prompts.append((instruction, prompt))
        yield "水位"
        yield ""
        yield "正常"


class BrokenAssistant(DiagnosticAssistant):
    def stream(self, instruction, prompt):
        yield "部分"
        raise ConnectionError("network down")


class BlockingAssistant(DiagnosticAssistant):
    def __init__(self):
        self.release = threading.Event()

    def stream(self, instruction, prompt):
        self.release.wait(5.0)
        yield "完成"


class TestContext:
    """上下文构造测试"""

    def test_telemetry_text(self):
        """遥测文本包含范式、状态与故障"""
        engine = SimulationEngine(paradigm=ParadigmType.TRADITIONAL, seed=0)
        engine.set_fault('leakage', True, 20.0)
        engine.run(10)

        context = build_context(engine)
        text = format_telemetry(context)

        assert "仿真时间: 1.0s" in text
        assert "[设计范式: 传统设计范式]" in text
        assert "控制算法: PID" in text
        assert "泄漏: YES" in text
        assert "传感器: NORMAL" in text
        assert "Kp: 5" in text
        assert context.state.time == pytest.approx(1.0)

    def test_recent_events_included(self):
        """近期操作事件"""
        engine = SimulationEngine(seed=0)
        engine.deploy_paradigm(ParadigmType.MODERN)
        text = format_telemetry(build_context(engine))
        assert "已部署【现代设计范式】" in text

    def test_system_instruction(self):
        """范式背景说明"""
        engine = SimulationEngine(paradigm=ParadigmType.MODERN, seed=0)
        instruction = system_instruction(build_context(engine))
        assert "【现代设计范式】" in instruction
        assert "15m²" in instruction

    def test_prompt(self):
        """遥测 + 提问"""
        context = build_context(SimulationEngine(seed=0))
        prompt = build_prompt(context, "水位为什么下降?")
        assert prompt.endswith("用户: 水位为什么下降?")


class TestTelemetryChannel:
    """快照通道测试"""

    def test_drop_oldest(self):
        """满时丢弃最旧快照"""
        channel = TelemetryChannel(maxlen=3)
        engine = SimulationEngine(seed=0)
        for _ in range(5):
            engine.step()
            channel.publish(engine.snapshot())

        assert len(channel) == 3
        assert channel.dropped == 2
        assert channel.latest().time == pytest.approx(0.5)
        drained = channel.drain()
        assert [s.time for s in drained] == pytest.approx([0.3, 0.4, 0.5])
        assert len(channel) == 0

    def test_runner_subscription(self):
        """作为运行器订阅者"""
        engine = SimulationEngine(seed=0)
        runner = RealtimeRunner(engine, period=0.0)
        channel = TelemetryChannel(maxlen=10)
        runner.subscribe(channel.publish)
        runner.run_for(2.0)
        assert len(channel) == 10
        assert channel.dropped == 10


class TestAssistantRelay:
    """助手中继测试"""

    def test_collects_chunks(self):
        """收集流式文本"""
        assistant = EchoAssistant()
        chunks = []
        relay = AssistantRelay(assistant, on_chunk=chunks.append)
        try:
            context = build_context(SimulationEngine(seed=0))
            assert relay.ask(context, "状态?").result(timeout=2.0) == "水位正常"
        finally:
            relay.shutdown()
        assert chunks == ["水位", "正常"]
        instruction, prompt = assistant.prompts[0]
        assert "改良设计范式" in instruction
        assert "用户: 状态?" in prompt

    def test_failure_reported_not_raised(self):
        """助手失败只上报, 不抛出"""
        errors = []
        relay = AssistantRelay(BrokenAssistant(), on_error=errors.append)
        try:
            engine = SimulationEngine(seed=0)
            result = relay.ask(build_context(engine), "状态?").result(timeout=2.0)
        finally:
            relay.shutdown()
        assert result == SERVICE_UNAVAILABLE
        assert errors == [SERVICE_UNAVAILABLE]
        # 仿真不受影响
        assert len(engine.run(5)) == 5

    def test_does_not_block_simulation(self):
        """慢助手不阻塞仿真步进"""
        assistant = BlockingAssistant()
        relay = AssistantRelay(assistant)
        engine = SimulationEngine(seed=0)
        try:
            future = relay.ask(build_context(engine), "状态?")
            engine.run(50)
            assert not future.done()
            assistant.release.set()
            assert future.result(timeout=5.0) == "完成"
        finally:
            assistant.release.set()
            relay.shutdown()
        assert engine.time == pytest.approx(5.0)
