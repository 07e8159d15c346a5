#!/usr/bin/env python3
"""
Seed the service catalog for Clinic-Flow.

Services are matched by name, so running the script twice is safe.

Usage:
    python scripts/seed_services.py
    python scripts/seed_services.py --dry-run
"""

import argparse
import asyncio
import sys
import uuid

# Add the src directory to the Python path
sys.path.insert(0, 'src')

from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from clinicflow.adapters.db.mongo.models.scheduling_m import DOCUMENT_MODELS, ServiceMongo
from clinicflow.core.config import get_settings


SERVICES = [
    {"name": "Micropigmentación de Cejas", "base_price": 350.00, "default_sessions": 2},
    {"name": "Micropigmentación de Labios", "base_price": 400.00, "default_sessions": 2},
    {"name": "Micropigmentación de Ojos (Delineado)", "base_price": 300.00, "default_sessions": 2},
    {"name": "Dermopigmentación Capilar", "base_price": 500.00, "default_sessions": 3},
    {"name": "Corrección de Cicatrices", "base_price": 450.00, "default_sessions": 3},
    {"name": "Retoque de Cejas", "base_price": 150.00, "default_sessions": 1},
    {"name": "Retoque de Labios", "base_price": 180.00, "default_sessions": 1},
    {"name": "Eliminación con Láser", "base_price": 250.00, "default_sessions": 4},
    {"name": "Consulta Inicial", "base_price": 50.00, "default_sessions": 1},
]


async def seed(dry_run: bool = False) -> int:
    """Insert missing services and return how many were created."""
    settings = get_settings()
    client = AsyncIOMotorClient(settings.database.uri)
    created = 0
    try:
        await init_beanie(
            database=client[settings.database.db_name], document_models=DOCUMENT_MODELS
        )
        print("Seeding services...")
        for service in SERVICES:
            existing = await ServiceMongo.find_one(ServiceMongo.name == service["name"])
            if existing:
                print(f"- Skipped: {service['name']} (already exists)")
                continue
            if not dry_run:
                await ServiceMongo(service_id=uuid.uuid4().hex, is_active=True, **service).insert()
            created += 1
            print(f"✓ Created: {service['name']}")

        total = await ServiceMongo.find_all().count()
        print(f"\nSeeding complete! Total services in database: {total}")
    finally:
        client.close()
    return created


def main():
    parser = argparse.ArgumentParser(description="Seed the Clinic-Flow service catalog")
    parser.add_argument("--dry-run", action="store_true", help="Report what would be created")
    args = parser.parse_args()

    try:
        asyncio.run(seed(dry_run=args.dry_run))
    except Exception as e:
        print(f"❌ Error seeding services: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
