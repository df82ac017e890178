"""Core domain entities."""

from intendance.core.entities.audit import (
    ConnectionAction,
    ConnectionRecord,
    ConnectionStatus,
    ModificationRecord,
    ModificationType,
)
from intendance.core.entities.equipment_card import EquipmentCard
from intendance.core.entities.movement import MovementKind, MovementRecord
from intendance.core.entities.stock import (
    STATUS_LABELS,
    StockItem,
    StockStatus,
    compute_status,
    status_label,
)

__all__ = [
    # Stock entities
    "StockItem",
    "StockStatus",
    "STATUS_LABELS",
    "compute_status",
    "status_label",
    # Movement entities
    "MovementKind",
    "MovementRecord",
    # Reports
    "EquipmentCard",
    # Audit entities
    "ConnectionAction",
    "ConnectionStatus",
    "ConnectionRecord",
    "ModificationType",
    "ModificationRecord",
]
