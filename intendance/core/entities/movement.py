"""Stock movement entities."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class MovementKind(str, Enum):
    """Types of stock movements."""

    SUPPLY = "APPROVISIONNEMENT"
    WITHDRAWAL = "RETRAIT"

    @property
    def sign(self) -> str:
        return "+" if self is MovementKind.SUPPLY else "-"

    @property
    def icon(self) -> str:
        return "⬆️" if self is MovementKind.SUPPLY else "⬇️"

    def apply(self, quantity: int, amount: int) -> int:
        """Balance after moving `amount` units from `quantity`."""
        if self is MovementKind.SUPPLY:
            return quantity + amount
        return quantity - amount


class MovementRecord(BaseModel):
    """One quantity change of a stock item. Never mutated once persisted."""

    model_config = ConfigDict(frozen=True)

    id: int | None = None
    stock_id: int  # FK → stocks.id
    kind: MovementKind
    amount: int = Field(gt=0)
    description: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)
    actor: str
    quantity_before: int = Field(ge=0)
    quantity_after: int = Field(ge=0)

    @model_validator(mode="after")
    def check_balance(self) -> "MovementRecord":
        expected = self.kind.apply(self.quantity_before, self.amount)
        if self.quantity_after != expected:
            raise ValueError(
                f"quantity_after {self.quantity_after} does not match "
                f"{self.kind.value} of {self.amount} from {self.quantity_before}"
            )
        return self

    @property
    def signed_amount(self) -> str:
        return f"{self.kind.sign}{self.amount}"

    @property
    def formatted_timestamp(self) -> str:
        return self.timestamp.strftime(TIMESTAMP_FORMAT)

    def __str__(self) -> str:
        return (
            f"{self.formatted_timestamp} {self.kind.icon}: "
            f"{self.signed_amount} ({self.description})"
        )
