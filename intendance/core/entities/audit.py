"""Audit history entities (connections and modifications)."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ConnectionAction(str, Enum):
    LOGIN = "Connexion"
    LOGOUT = "Déconnexion"


class ConnectionStatus(str, Enum):
    SUCCESS = "Succès"
    FAILURE = "Échec"


class ModificationType(str, Enum):
    """Kind of change recorded in the modification history."""

    CREATION = "Création"
    UPDATE = "Mise à jour"
    DELETION = "Suppression"


class ConnectionRecord(BaseModel):
    """A login or logout attempt."""

    id: int | None = None
    date: datetime = Field(default_factory=datetime.now)
    user: str
    action: ConnectionAction
    status: ConnectionStatus


class ModificationRecord(BaseModel):
    """A change made to a table, with the actor who made it."""

    id: int | None = None
    date: datetime = Field(default_factory=datetime.now)
    table: str
    type: ModificationType
    user: str
    details: str = ""
