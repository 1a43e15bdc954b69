from decimal import Decimal

import pytest

from mortgage_ie.engine.errors import DrawdownMismatchError
from mortgage_ie.engine.self_build import (
    DrawdownSchedule,
    drawdown_difference,
    is_drawdown_total_valid,
)
from mortgage_ie.models.self_build import (
    ConstructionRepaymentType,
    DrawdownStage,
    SelfBuildConfig,
    SelfBuildPhase,
)


def _config(repayment=ConstructionRepaymentType.INTEREST_ONLY, io_months=0, stages=None):
    return SelfBuildConfig(
        enabled=True,
        construction_repayment_type=repayment,
        interest_only_months=io_months,
        drawdown_stages=stages or [
            DrawdownStage(month=1, amount=Decimal("100000"), label="Site"),
            DrawdownStage(month=4, amount=Decimal("100000"), label="Roof"),
            DrawdownStage(month=8, amount=Decimal("100000"), label="Finish"),
        ],
    )


class TestDrawdownValidation:
    def test_total_matches(self):
        assert is_drawdown_total_valid(_config(), Decimal("300000"))
        assert drawdown_difference(_config(), Decimal("300000")) == Decimal("0")

    def test_under_drawn(self):
        assert drawdown_difference(_config(), Decimal("310000")) == Decimal("10000")
        with pytest.raises(DrawdownMismatchError):
            DrawdownSchedule.from_config(_config(), Decimal("310000"))

    def test_months_must_not_decrease(self):
        stages = [
            DrawdownStage(month=5, amount=Decimal("150000")),
            DrawdownStage(month=2, amount=Decimal("150000")),
        ]
        with pytest.raises(DrawdownMismatchError):
            DrawdownSchedule.from_config(_config(stages=stages), Decimal("300000"))

    def test_inactive_without_stages(self):
        assert not SelfBuildConfig(enabled=True).is_active
        assert not SelfBuildConfig(enabled=False, drawdown_stages=_config().drawdown_stages).is_active


class TestDrawdownSchedule:
    def test_cumulative(self):
        schedule = DrawdownSchedule.from_config(_config(), Decimal("300000"))
        assert schedule.drawdown_for_month(4) == Decimal("100000")
        assert schedule.drawdown_for_month(5) == Decimal("0")
        assert schedule.cumulative_drawn(7) == Decimal("200000")
        assert schedule.final_drawdown_month == 8

    def test_same_month_stages_summed(self):
        stages = [
            DrawdownStage(month=1, amount=Decimal("100000")),
            DrawdownStage(month=1, amount=Decimal("200000")),
        ]
        schedule = DrawdownSchedule.from_config(_config(stages=stages), Decimal("300000"))
        assert schedule.drawdown_for_month(1) == Decimal("300000")

    def test_phases(self):
        schedule = DrawdownSchedule.from_config(_config(io_months=6), Decimal("300000"))
        assert schedule.phase(8) == SelfBuildPhase.CONSTRUCTION
        assert schedule.phase(9) == SelfBuildPhase.INTEREST_ONLY
        assert schedule.phase(14) == SelfBuildPhase.INTEREST_ONLY
        assert schedule.phase(15) == SelfBuildPhase.REPAYMENT

    def test_interest_only_construction(self):
        schedule = DrawdownSchedule.from_config(_config(io_months=6), Decimal("300000"))
        assert schedule.is_interest_only(3)
        assert schedule.is_interest_only(14)
        assert not schedule.is_interest_only(15)

    def test_capital_during_construction(self):
        schedule = DrawdownSchedule.from_config(
            _config(ConstructionRepaymentType.INTEREST_AND_CAPITAL, io_months=6), Decimal("300000")
        )
        assert not schedule.is_interest_only(3)
        assert schedule.is_interest_only(9)

    def test_stages_with_cumulative(self):
        schedule = DrawdownSchedule.from_config(_config(), Decimal("300000"))
        resolved = schedule.stages_with_cumulative()
        assert [s.cumulative_drawn for s in resolved] == [
            Decimal("100000"), Decimal("200000"), Decimal("300000")
        ]
        assert resolved[-1].remaining_to_draw == Decimal("0")
