"""Self-build drawdown schedule and phase classification.

Funds are released in stages during construction. Until the final
drawdown the loan is in construction; then interest-only for the
configured trailing months; then full repayment.
"""

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal

from mortgage_ie.engine.errors import DrawdownMismatchError
from mortgage_ie.models.self_build import (
    ConstructionRepaymentType,
    DrawdownStage,
    SelfBuildConfig,
    SelfBuildPhase,
)

ONE_CENT = Decimal("0.01")


@dataclass(frozen=True)
class ResolvedDrawdownStage:
    stage: DrawdownStage
    cumulative_drawn: Decimal
    remaining_to_draw: Decimal
    total_approved: Decimal


def drawdown_difference(config: SelfBuildConfig, mortgage_amount: Decimal) -> Decimal:
    """Positive when under-drawn, negative when over-drawn."""
    return mortgage_amount - sum((s.amount for s in config.drawdown_stages), Decimal("0"))


def is_drawdown_total_valid(config: SelfBuildConfig, mortgage_amount: Decimal) -> bool:
    return abs(drawdown_difference(config, mortgage_amount)) < ONE_CENT


class DrawdownSchedule:
    """Per-month drawdowns for one self-build mortgage.

    Built with from_config, which validates before any simulation runs.
    """

    def __init__(self, config: SelfBuildConfig, by_month: dict[int, Decimal]):
        self.config = config
        self._by_month = by_month
        self.final_drawdown_month = max(by_month) if by_month else 0
        self.interest_only_end_month = self.final_drawdown_month + config.interest_only_months

    @classmethod
    def from_config(cls, config: SelfBuildConfig, mortgage_amount: Decimal) -> "DrawdownSchedule":
        stages = config.drawdown_stages
        for prev, stage in zip(stages, stages[1:]):
            if stage.month < prev.month:
                raise DrawdownMismatchError(
                    f"Drawdown months must be non-decreasing: month {stage.month} follows {prev.month}"
                )
        for stage in stages:
            if stage.month < 1 or stage.amount <= 0:
                raise DrawdownMismatchError(
                    f"Drawdown stage at month {stage.month} must have a positive amount in month >= 1"
                )

        difference = drawdown_difference(config, mortgage_amount)
        if abs(difference) >= ONE_CENT:
            raise DrawdownMismatchError(
                f"Drawdown stages total {mortgage_amount - difference}, "
                f"expected {mortgage_amount} (difference {difference})"
            )

        by_month: dict[int, Decimal] = defaultdict(Decimal)
        for stage in stages:
            by_month[stage.month] += stage.amount
        return cls(config, dict(by_month))

    def drawdown_for_month(self, month: int) -> Decimal:
        return self._by_month.get(month, Decimal("0"))

    def cumulative_drawn(self, month: int) -> Decimal:
        return sum((a for m, a in self._by_month.items() if m <= month), Decimal("0"))

    def phase(self, month: int) -> SelfBuildPhase:
        if month <= self.final_drawdown_month:
            return SelfBuildPhase.CONSTRUCTION
        if month <= self.interest_only_end_month:
            return SelfBuildPhase.INTEREST_ONLY
        return SelfBuildPhase.REPAYMENT

    def is_interest_only(self, month: int) -> bool:
        phase = self.phase(month)
        if self.config.construction_repayment_type == ConstructionRepaymentType.INTEREST_AND_CAPITAL:
            return phase == SelfBuildPhase.INTEREST_ONLY
        return phase != SelfBuildPhase.REPAYMENT

    def stages_with_cumulative(self) -> list[ResolvedDrawdownStage]:
        ordered = sorted(self.config.drawdown_stages, key=lambda s: s.month)
        total = sum((s.amount for s in ordered), Decimal("0"))
        resolved = []
        drawn = Decimal("0")
        for stage in ordered:
            drawn += stage.amount
            resolved.append(ResolvedDrawdownStage(stage, drawn, total - drawn, total))
        return resolved
