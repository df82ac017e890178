"""Stock item entity and status thresholds."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class StockStatus(str, Enum):
    """Severity codes for stock levels."""

    VERT = "VERT"
    ORANGE = "ORANGE"
    ROUGE = "ROUGE"
    VIOLET = "VIOLET"


STATUS_LABELS: dict[str, str] = {
    StockStatus.VERT.value: "Normal",
    StockStatus.ORANGE.value: "Attention",
    StockStatus.ROUGE.value: "Faible",
    StockStatus.VIOLET.value: "Critique",
}
UNKNOWN_STATUS_LABEL = "Inconnu"


def status_label(code: str | None) -> str:
    """Human label for a status code; unknown codes render as 'Inconnu'."""
    if code is None:
        return UNKNOWN_STATUS_LABEL
    return STATUS_LABELS.get(code, UNKNOWN_STATUS_LABEL)


def compute_status(
    quantity: int,
    critical_value: int,
    critical_ratio: float = 1.0,
    alert_ratio: float = 1.2,
    attention_ratio: float = 1.5,
) -> StockStatus:
    """
    Derive the severity of a stock level from its critical threshold.

    The ratio quantity / critical_value is compared against the three
    ratios in ascending order. A non-positive threshold means the item
    is not monitored and is always VERT.
    """
    if critical_value <= 0:
        return StockStatus.VERT

    ratio = quantity / critical_value
    if ratio < critical_ratio:
        return StockStatus.VIOLET
    if ratio < alert_ratio:
        return StockStatus.ROUGE
    if ratio < attention_ratio:
        return StockStatus.ORANGE
    return StockStatus.VERT


class StockItem(BaseModel):
    """Equipment stock line with its current on-hand quantity."""

    id: int | None = None
    designation: str
    quantity: int = Field(default=0, ge=0)
    state: str = ""  # physical condition ("etat")
    description: str = ""
    critical_value: int = 0
    status: str = StockStatus.VERT.value
    created_at: datetime = Field(default_factory=datetime.now)
    initial_quantity: int = 0

    @property
    def status_label(self) -> str:
        return status_label(self.status)

    @property
    def is_critical(self) -> bool:
        return self.status == StockStatus.VIOLET.value

    @property
    def is_low(self) -> bool:
        return self.status == StockStatus.ROUGE.value
