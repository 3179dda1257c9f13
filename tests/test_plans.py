"""
预案调度测试
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from ldwt.config.validation import ConfigurationError
from ldwt.core.disturbance import DisturbanceConfig, DisturbanceType
from ldwt.simulation.engine import SimulationEngine
from ldwt.simulation.plans import (
    ActionType, ChangeDisturbance, ChangeSetpoint, PatternScope,
    PlanScheduler, PlanStatus, PlanStep,
)


SINE = DisturbanceConfig(type=DisturbanceType.SINE, base=50.0, amplitude=20.0, frequency=0.2)


class TestPlanScheduler:
    """调度器测试"""

    def test_ordering_with_ties(self):
        """按触发时间升序, 同时刻按加入顺序"""
        scheduler = PlanScheduler()
        scheduler.schedule(PlanStep(5.0, ChangeSetpoint(1.0), id="a"))
        scheduler.schedule(PlanStep(2.0, ChangeSetpoint(2.0), id="b"))
        scheduler.schedule(PlanStep(5.0, ChangeSetpoint(3.0), id="c"))
        scheduler.schedule(PlanStep(1.0, ChangeSetpoint(4.0), id="d"))

        fired = scheduler.fire_due(5.0, lambda plan: None)
        assert [p.id for p in fired] == ["d", "b", "a", "c"]

    def test_fires_exactly_once(self):
        """每个预案只触发一次"""
        scheduler = PlanScheduler()
        scheduler.schedule(PlanStep(1.0, ChangeSetpoint(300.0)))
        applied = []

        scheduler.fire_due(1.0, applied.append)
        scheduler.fire_due(2.0, applied.append)
        scheduler.fire_due(3.0, applied.append)

        assert len(applied) == 1
        assert applied[0].status == PlanStatus.COMPLETED
        assert applied[0].fired_at == 1.0

    def test_active_during_apply(self):
        """载荷应用期间处于 active 状态"""
        scheduler = PlanScheduler()
        plan = scheduler.schedule(PlanStep(0.5, ChangeSetpoint(300.0)))
        seen = []
        scheduler.fire_due(1.0, lambda p: seen.append(p.status))
        assert seen == [PlanStatus.ACTIVE]
        assert plan.status == PlanStatus.COMPLETED

    def test_not_due(self):
        """未到期的预案保持 pending"""
        scheduler = PlanScheduler()
        plan = scheduler.schedule(PlanStep(10.0, ChangeSetpoint(300.0)))
        assert scheduler.fire_due(9.9, lambda p: None) == []
        assert plan.is_pending
        assert scheduler.next_trigger_time() == 10.0

    def test_cancel(self):
        """取消待触发预案"""
        scheduler = PlanScheduler()
        plan = scheduler.schedule(PlanStep(10.0, ChangeSetpoint(300.0)))
        assert scheduler.cancel(plan.id)
        assert not scheduler.cancel(plan.id)
        assert len(scheduler) == 0

    def test_schedule_after(self):
        """相对时间调度与默认描述"""
        scheduler = PlanScheduler()
        plan = scheduler.schedule_after(3.0, 5.0, ChangeDisturbance(SINE))
        assert plan.trigger_time == 8.0
        assert plan.action_type == ActionType.CHANGE_DISTURBANCE
        assert plan.description.startswith("5秒后切换负载模式")

    def test_non_finite_trigger_rejected(self):
        """非有限触发时间被拒绝"""
        scheduler = PlanScheduler()
        with pytest.raises(ConfigurationError):
            scheduler.schedule(PlanStep(float('inf'), ChangeSetpoint(300.0)))
        with pytest.raises(ConfigurationError):
            scheduler.schedule_after(0.0, -1.0, ChangeSetpoint(300.0))

    def test_plan_dict_round_trip(self):
        """预案字典往返保留载荷类型"""
        plan = PlanStep(4.0, ChangeDisturbance(SINE, scope=PatternScope.TARGET),
                        description="切换设定值")
        restored = PlanStep.from_dict(plan.to_dict())
        assert restored.id == plan.id
        assert isinstance(restored.payload, ChangeDisturbance)
        assert restored.payload.scope == PatternScope.TARGET
        assert restored.payload.config == SINE


class TestPlansInEngine:
    """引擎中的预案触发测试"""

    def test_plan_fires_at_first_tick_at_trigger(self):
        """t=10.0 的预案在 t<10 时保持 pending, 在首个 t>=10 的步中完成且只应用一次"""
        engine = SimulationEngine(seed=0)
        plan = engine.add_plan(PlanStep(10.0, ChangeSetpoint(300.0)))

        fired_events = []
        engine.register_callback('on_event', fired_events.append)

        while engine.time < 10.0 - 1e-9:
            record = engine.step()
            if record.t < 10.0:
                assert plan.status == PlanStatus.PENDING
                assert record.target == 295.0

        assert record.t == pytest.approx(10.0)
        assert plan.status == PlanStatus.COMPLETED
        # 同一步即生效
        assert record.target == 300.0

        engine.run(50)
        assert plan.status == PlanStatus.COMPLETED
        assert len([e for e in fired_events if e.category == 'plan']) == 1

    def test_demand_plan(self):
        """切换需求波形"""
        engine = SimulationEngine(seed=0)
        engine.schedule_plan(1.0, ChangeDisturbance(DisturbanceConfig.constant(80.0)))
        records = engine.run(10)
        assert records[-1].flow_out == 80.0
        assert records[0].flow_out == 50.0

    def test_target_pattern_plan(self):
        """切换设定值波形"""
        engine = SimulationEngine(seed=0)
        engine.schedule_plan(0.5, ChangeDisturbance(DisturbanceConfig.constant(290.0),
                                                    scope=PatternScope.TARGET))
        records = engine.run(5)
        assert records[-1].target == 290.0
        assert "设定值" in engine.events[-1].message


class TestCompletedRecord:
    """已完成预案记录测试"""

    def test_completed_record_is_bounded(self):
        """完成记录容量有限, 只保留最近完成的预案"""
        scheduler = PlanScheduler(completed_size=3)
        for i in range(5):
            scheduler.schedule(PlanStep(float(i + 1), ChangeSetpoint(300.0), id=f"p{i}"))

        fired = scheduler.fire_due(5.0, lambda plan: None)

        assert len(fired) == 5
        assert scheduler.pending() == []
        assert [p.id for p in scheduler.completed] == ["p2", "p3", "p4"]
        assert len(scheduler) == 3

    def test_completed_plan_cannot_be_cancelled(self):
        scheduler = PlanScheduler()
        plan = scheduler.schedule(PlanStep(1.0, ChangeSetpoint(300.0)))
        scheduler.fire_due(1.0, lambda p: None)
        assert not scheduler.cancel(plan.id)
        assert list(scheduler.completed) == [plan]

    def test_restored_completed_plan_not_fired(self):
        """以 completed 状态加入的预案直接进入完成记录"""
        scheduler = PlanScheduler()
        plan = PlanStep(1.0, ChangeSetpoint(300.0), status=PlanStatus.COMPLETED, fired_at=1.0)
        scheduler.schedule(plan)
        assert scheduler.fire_due(10.0, lambda p: None) == []
        assert scheduler.pending() == []
        assert scheduler.all_plans() == [plan]

    def test_engine_queue_stays_bounded(self):
        """长时间每步加入预案, 队列长度不随累计预案数增长"""
        engine = SimulationEngine(seed=0)
        for i in range(2000):
            engine.schedule_plan(0.0, ChangeSetpoint(290.0 + i % 10))
            engine.step()

        history_size = engine.settings.plan_history_size
        assert len(engine.plans.completed) == history_size
        assert engine.plans.pending() == []
        assert len(engine.plans) == history_size
        assert len(engine.telemetry()) == 600
