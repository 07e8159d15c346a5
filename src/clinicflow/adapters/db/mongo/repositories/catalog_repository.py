"""
MongoDB implementation of ServiceCatalogRepository.
"""

from typing import List, Optional

from clinicflow.application.ports.repositories.catalog_repo import ServiceCatalogRepository
from clinicflow.domain.entities.catalog import Service

from ..models.scheduling_m import ServiceMongo


class MongoServiceCatalogRepository(ServiceCatalogRepository):
    """MongoDB implementation of ServiceCatalogRepository."""

    async def find_by_id(self, service_id: str) -> Optional[Service]:
        """Find a service by ID."""
        service_mongo = await ServiceMongo.find_one(ServiceMongo.service_id == service_id)
        if not service_mongo:
            return None
        return self._mongo_to_domain(service_mongo)

    async def find_active(self) -> List[Service]:
        """List bookable services ordered by name."""
        services_mongo = await ServiceMongo.find({"is_active": True}).sort("+name").to_list()
        return [self._mongo_to_domain(s) for s in services_mongo]

    @staticmethod
    def _mongo_to_domain(service_mongo: ServiceMongo) -> Service:
        return Service(
            id=service_mongo.service_id,
            name=service_mongo.name,
            base_price=service_mongo.base_price,
            default_sessions=service_mongo.default_sessions,
            is_active=service_mongo.is_active,
        )
