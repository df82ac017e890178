"""User session: the actor stamped on movements and audit entries."""

from intendance.config import get_logger
from intendance.core.entities.audit import ConnectionAction, ConnectionStatus
from intendance.core.exceptions import AccessDeniedError
from intendance.core.interfaces.audit_log import IAuditLog
from intendance.core.interfaces.identity import IIdentityProvider
from intendance.core.services.permissions import ServicePermissions, default_permissions

logger = get_logger(__name__)

ANONYMOUS_USER = "Unknown"


class UserSession(IIdentityProvider):
    """Logged-in user and service; logins and logouts go to the connection history."""

    def __init__(
        self,
        audit_log: IAuditLog,
        permissions: ServicePermissions | None = None,
        anonymous_user: str = ANONYMOUS_USER,
    ) -> None:
        self._audit_log = audit_log
        self._permissions = permissions or default_permissions()
        self._anonymous_user = anonymous_user
        self._user = anonymous_user
        self._service: str | None = None

    @property
    def current_user(self) -> str:
        return self._user

    @property
    def service(self) -> str | None:
        return self._service

    @property
    def is_authenticated(self) -> bool:
        return self._user != self._anonymous_user

    async def login(self, username: str, service: str | None = None) -> None:
        self._user = username
        self._service = service
        await self._audit_log.log_connection(
            username, ConnectionAction.LOGIN, ConnectionStatus.SUCCESS
        )
        logger.info("user_logged_in", user=username, service=service)

    async def record_failed_login(self, username: str) -> None:
        await self._audit_log.log_connection(
            username, ConnectionAction.LOGIN, ConnectionStatus.FAILURE
        )
        logger.warning("user_login_failed", user=username)

    async def logout(self) -> None:
        await self._audit_log.log_connection(
            self._user, ConnectionAction.LOGOUT, ConnectionStatus.SUCCESS
        )
        logger.info("user_logged_out", user=self._user)
        self._user = self._anonymous_user
        self._service = None

    def accessible_tables(self) -> list[str]:
        return self._permissions.tables_for_service(self._service)

    def can_access(self, table: str) -> bool:
        return self._permissions.has_access(self._service, table)

    def require_access(self, table: str) -> None:
        """Raise AccessDeniedError unless the session's service may use `table`."""
        if not self.can_access(table):
            raise AccessDeniedError(self._service, table)
