"""
OXA CRM - Seed Demo Data (dev/staging only)
Charge le jeu de démo (clients, catalogue, devis, commandes, factures) dans MongoDB.
Run: cd backend && python scripts/seed_demo_data.py
Reset: python scripts/seed_demo_data.py --reset
"""

import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import config
from services.data_source import DataSource, MongoDataSource
from services.demo_data import build_fixtures


async def reset(ds: DataSource, collections):
    """Supprime les documents de démo (mêmes ids)"""
    for name, docs in collections.items():
        ids = [d["id"] for d in docs]
        if ids:
            deleted = await ds.delete(name, {"id": {"$in": ids}})
            print(f"  {name}: {deleted} supprimé(s)")


async def seed(ds: DataSource, collections) -> int:
    """Insère les documents absents, retourne le nombre d'insertions"""
    inserted = 0
    for name, docs in collections.items():
        for doc in docs:
            if await ds.find_one(name, {"id": doc["id"]}):
                continue
            await ds.insert(name, dict(doc))
            inserted += 1
        print(f"  {name}: {len(docs)} document(s)")
    return inserted


async def main():
    if not config.MONGO_URL:
        print("MONGO_URL non défini (backend/.env)")
        sys.exit(1)

    ds = MongoDataSource(config.MONGO_URL, config.DB_NAME)
    collections = build_fixtures()

    await reset(ds, collections)
    if "--reset" in sys.argv:
        print("Reset complete. Run without --reset to re-seed.")
    else:
        count = await seed(ds, collections)
        await ds.ensure_indexes()
        print(f"\n{count} documents de démo insérés dans {config.DB_NAME}")

    ds.close()


if __name__ == "__main__":
    asyncio.run(main())
