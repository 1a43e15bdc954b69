from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class ConstructionRepaymentType(Enum):
    INTEREST_ONLY = "interest_only"
    INTEREST_AND_CAPITAL = "interest_and_capital"


class SelfBuildPhase(Enum):
    CONSTRUCTION = "construction"
    INTEREST_ONLY = "interest_only"
    REPAYMENT = "repayment"


@dataclass(frozen=True)
class DrawdownStage:
    month: int
    amount: Decimal
    id: str | None = None
    label: str | None = None


@dataclass(frozen=True)
class SelfBuildConfig:
    enabled: bool = False
    construction_repayment_type: ConstructionRepaymentType = ConstructionRepaymentType.INTEREST_ONLY
    interest_only_months: int = 0  # Trailing months after the final drawdown
    drawdown_stages: list[DrawdownStage] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.enabled and bool(self.drawdown_stages)
