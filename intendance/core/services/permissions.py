"""
Service permissions.

Maps each service to the tables it may work on. The maps are frozen at
construction and the instance is injected where access must be checked.
"""

from collections.abc import Iterable, Mapping
from types import MappingProxyType

PERSONNEL_KEY = "matricule"
DEFAULT_PRIMARY_KEY = "id"

COMMON_TABLES: tuple[str, ...] = (
    "identite_personnelle",
    "identite_sociale",
    "identite_culturelle",
    "grade_actuel",
    "formation_actuelle",
    "specialite",
)

SERVICE_TABLES: dict[str, tuple[str, ...]] = {
    "Logistique": (
        "parametres_corporels",
        "dotation_particuliere_config",
        "dotation_particuliere",
        "dotation_20_mai",
        "maintenance",
        "stocks",
    ),
    "Opérations": (
        "operation",
        "punition",
        "langue",
        "infos_specifiques_general",
        "personnel_naviguant",
    ),
    "Ressources Humaines": (
        "ecole_civile",
        "ecole_formation_initiale",
        "ecole_militaire",
        "personnel_naviguant",
        "medaille",
        "punition",
        "decoration",
        "infos_specifiques_general",
        "historique_postes",
        "historique_grades",
    ),
}

# Tables keyed by the personnel identifier; every other table has its own id
PERSONNEL_KEYED_TABLES: tuple[str, ...] = (
    "identite_personnelle",
    "identite_sociale",
    "identite_culturelle",
    "grade_actuel",
    "formation_actuelle",
    "specialite",
    "parametres_corporels",
    "dotation_particuliere_config",
    "infos_specifiques_general",
    "personnel_naviguant",
)

TABLE_DESCRIPTIONS: dict[str, str] = {
    "identite_personnelle": "Identité Personnelle",
    "identite_sociale": "Identité Sociale",
    "identite_culturelle": "Identité Culturelle",
    "grade_actuel": "Grade Actuel",
    "formation_actuelle": "Formation Actuelle",
    "specialite": "Spécialités",
    "parametres_corporels": "Paramètres Corporels",
    "dotation_particuliere_config": "Configuration Dotations",
    "dotation_particuliere": "Dotations Particulières",
    "dotation_20_mai": "Dotations 20 Mai",
    "maintenance": "Maintenances",
    "stocks": "Stocks",
    "operation": "Opérations",
    "punition": "Punitions",
    "langue": "Langues",
    "infos_specifiques_general": "Infos Spécifiques Général",
    "personnel_naviguant": "Personnel Naviguant",
    "ecole_civile": "Écoles Civiles",
    "ecole_formation_initiale": "École Formation Initiale",
    "ecole_militaire": "Écoles Militaires",
    "medaille": "Médailles",
    "decoration": "Décorations",
    "historique_postes": "Historique des Postes",
    "historique_grades": "Historique des Grades",
}


class ServicePermissions:
    """Read-only view over the service→table configuration."""

    def __init__(
        self,
        common_tables: Iterable[str],
        service_tables: Mapping[str, Iterable[str]],
        primary_keys: Mapping[str, str],
        descriptions: Mapping[str, str],
    ) -> None:
        self._common = frozenset(common_tables)
        self._service_tables = MappingProxyType(
            {service: frozenset(tables) for service, tables in service_tables.items()}
        )
        self._primary_keys = MappingProxyType(dict(primary_keys))
        self._descriptions = MappingProxyType(dict(descriptions))

    @property
    def services(self) -> list[str]:
        return sorted(self._service_tables)

    def tables_for_service(self, service: str | None) -> list[str]:
        """Common tables plus the service's own, sorted."""
        tables = set(self._common)
        if service is not None:
            tables |= self._service_tables.get(service, frozenset())
        return sorted(tables)

    def has_access(self, service: str | None, table: str) -> bool:
        if table in self._common:
            return True
        if service is None:
            return False
        return table in self._service_tables.get(service, frozenset())

    def primary_key_column(self, table: str) -> str:
        return self._primary_keys.get(table, DEFAULT_PRIMARY_KEY)

    def requires_personnel_grouping(self, table: str) -> bool:
        """
        True when rows of `table` are events keyed by their own id.

        Such tables hold several rows per person, so statistics must group
        them by the personnel identifier they carry as a plain column.
        """
        return self.primary_key_column(table) != PERSONNEL_KEY

    def table_description(self, table: str) -> str:
        return self._descriptions.get(table, table)


def default_permissions() -> ServicePermissions:
    """Build the permissions of the standard service layout."""
    return ServicePermissions(
        common_tables=COMMON_TABLES,
        service_tables=SERVICE_TABLES,
        primary_keys={table: PERSONNEL_KEY for table in PERSONNEL_KEYED_TABLES},
        descriptions=TABLE_DESCRIPTIONS,
    )
