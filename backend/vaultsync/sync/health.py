"""Chroma availability probe and tenant/database provisioning"""

import logging

import httpx

from ..config import get_settings
from ..errors import ProvisioningError
from ..models import HealthStatus

logger = logging.getLogger(__name__)


class ChromaHealthProbe:
    """Talks to the Chroma v2 REST API"""

    def __init__(
        self,
        base_url: str | None = None,
        tenant: str | None = None,
        database: str | None = None,
        collection_name: str | None = None,
        client: httpx.Client | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.chroma_url).rstrip("/")
        self.tenant = tenant or settings.chroma_tenant
        self.database = database or settings.chroma_database
        self.collection_name = collection_name or settings.collection_name
        self.client = client or httpx.Client(
            base_url=self.base_url,
            timeout=settings.health_timeout,
        )

    @property
    def _tenant_path(self) -> str:
        return f"/api/v2/tenants/{self.tenant}"

    @property
    def _database_path(self) -> str:
        return f"{self._tenant_path}/databases/{self.database}"

    def check_health(self) -> HealthStatus:
        """
        Heartbeat, then make sure the collection is reachable.

        A missing collection still counts as healthy; it is created on first
        use.
        """
        try:
            response = self.client.get("/api/v2/heartbeat")
            if response.status_code != 200:
                logger.warning("Heartbeat failed: HTTP %d", response.status_code)
                return HealthStatus.UNHEALTHY

            response = self.client.get(
                f"{self._database_path}/collections/{self.collection_name}"
            )
        except httpx.HTTPError as e:
            logger.error("Health check failed: %s", e)
            return HealthStatus.UNHEALTHY

        if response.status_code in (200, 404):
            logger.debug("Chroma is healthy (collection status %d)", response.status_code)
            return HealthStatus.HEALTHY

        logger.warning("Collection check failed: HTTP %d", response.status_code)
        return HealthStatus.UNHEALTHY

    def ensure_tenant(self):
        self._ensure(
            label=f"tenant '{self.tenant}'",
            check_path=self._tenant_path,
            create_path="/api/v2/tenants",
            name=self.tenant,
        )

    def ensure_database(self):
        self._ensure(
            label=f"database '{self.database}' in tenant '{self.tenant}'",
            check_path=self._database_path,
            create_path=f"{self._tenant_path}/databases",
            name=self.database,
        )

    def ensure_tenant_and_database(self):
        """
        Verify or create the tenant, then the database.

        Raises:
            ProvisioningError: any check or create step failed
        """
        logger.info("Ensuring Chroma tenant and database exist...")
        self.ensure_tenant()
        self.ensure_database()
        logger.info("Tenant and database verification complete")

    def _ensure(self, label: str, check_path: str, create_path: str, name: str):
        try:
            response = self.client.get(check_path)
            if response.status_code == 200:
                logger.info("%s already exists", label.capitalize())
                return
            if response.status_code != 404:
                raise ProvisioningError(
                    f"Failed to check {label}: HTTP {response.status_code} - {response.text}"
                )

            logger.info("%s does not exist. Creating...", label.capitalize())
            response = self.client.post(create_path, json={"name": name})
            if response.status_code not in (200, 201):
                raise ProvisioningError(
                    f"Failed to create {label}: HTTP {response.status_code} - {response.text}"
                )
            logger.info("%s created", label.capitalize())
        except httpx.HTTPError as e:
            raise ProvisioningError(f"Failed to ensure {label}: {e}") from e

    def close(self):
        self.client.close()
