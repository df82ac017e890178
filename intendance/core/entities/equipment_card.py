"""Equipment card: a stock item reconciled against its movement history."""

from datetime import datetime

from pydantic import BaseModel, Field

from intendance.core.entities.movement import MovementKind, MovementRecord
from intendance.core.entities.stock import StockItem

CREATION_DATE_FORMAT = "%d/%m/%Y %H:%M"


class EquipmentCard(BaseModel):
    """
    Read-only snapshot of a stock item and its movements (newest first).

    Totals are recomputed from the movements on every access. A mismatch
    between the replayed quantity and the stored one is a discrepancy; it
    is reported, never corrected. `degraded` is set when part of the card
    could not be read and defaults were used instead.
    """

    stock: StockItem
    created_at: datetime
    initial_quantity: int = 0
    movements: list[MovementRecord] = Field(default_factory=list)
    degraded: bool = False
    warnings: list[str] = Field(default_factory=list)

    @property
    def total_supplied(self) -> int:
        return sum(m.amount for m in self.movements if m.kind is MovementKind.SUPPLY)

    @property
    def total_withdrawn(self) -> int:
        return sum(
            m.amount for m in self.movements if m.kind is MovementKind.WITHDRAWAL
        )

    @property
    def computed_quantity(self) -> int:
        return self.initial_quantity + self.total_supplied - self.total_withdrawn

    @property
    def movement_count(self) -> int:
        return len(self.movements)

    @property
    def has_discrepancy(self) -> bool:
        return self.computed_quantity != self.stock.quantity

    @property
    def formatted_created_at(self) -> str:
        return self.created_at.strftime(CREATION_DATE_FORMAT)

    def generate_summary(self) -> str:
        """Render the card as plain text."""
        lines = [
            "=== FICHE ÉQUIPEMENT ===",
            f"Désignation: {self.stock.designation}",
            f"Date de création: {self.formatted_created_at}",
            f"Quantité initiale: {self.initial_quantity}",
            f"État: {self.stock.state}",
            f"Seuil critique: {self.stock.critical_value}",
            f"Statut actuel: {self.stock.status_label}",
            "",
            f"=== MOUVEMENTS ({self.movement_count} au total) ===",
            f"Total approvisionnements: +{self.total_supplied}",
            f"Total retraits: -{self.total_withdrawn}",
            f"Quantité calculée: {self.computed_quantity}",
            f"Quantité actuelle: {self.stock.quantity}",
        ]
        if self.has_discrepancy:
            lines.append("⚠️ ATTENTION: Discordance détectée!")

        lines.append("")
        lines.append("=== HISTORIQUE DES MOUVEMENTS ===")
        for m in self.movements:
            lines.append(
                f"{m.formatted_timestamp} - {m.kind.icon} {m.kind.value} "
                f"{m.signed_amount} ({m.quantity_before} → {m.quantity_after}) "
                f"- {m.description} ({m.actor})"
            )

        return "\n".join(lines) + "\n"
