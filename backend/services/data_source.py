"""
OXA CRM - Source de données

Deux implémentations de la même interface:
- MongoDataSource   : base distante (motor)
- FixtureDataSource : données de démo en mémoire (pas de base configurée)

Le choix est fait une seule fois à partir de la configuration
(config.DATA_SOURCE). Les services ne connaissent que l'interface.

Requêtes: dict d'égalités, avec les opérateurs $in, $ne, $lt, $lte, $gt, $gte.
Tri: liste de (champ, 1|-1), comme motor.
"""

import copy
import logging
from typing import Optional, List, Dict, Any, Tuple

from motor.motor_asyncio import AsyncIOMotorClient

import config

logger = logging.getLogger("data_source")

Query = Dict[str, Any]
Sort = List[Tuple[str, int]]


class DataSource:
    """Interface commune"""
    name = "abstract"

    async def find(self, collection: str, query: Optional[Query] = None,
                   sort: Optional[Sort] = None, limit: int = 1000) -> List[dict]:
        raise NotImplementedError

    async def find_one(self, collection: str, query: Query) -> Optional[dict]:
        raise NotImplementedError

    async def insert(self, collection: str, doc: dict) -> dict:
        raise NotImplementedError

    async def update(self, collection: str, query: Query, fields: dict) -> int:
        raise NotImplementedError

    async def delete(self, collection: str, query: Query) -> int:
        raise NotImplementedError

    async def count(self, collection: str, query: Optional[Query] = None) -> int:
        raise NotImplementedError

    async def ensure_indexes(self):
        pass

    def close(self):
        pass


# ════════════════════════════════════════════════════════════════════════
# MONGO
# ════════════════════════════════════════════════════════════════════════

class MongoDataSource(DataSource):
    name = "mongo"

    def __init__(self, mongo_url: str, db_name: str):
        self.client = AsyncIOMotorClient(mongo_url)
        self.db = self.client[db_name]
        logger.info(f"Using MongoDB database: {db_name}")

    async def find(self, collection, query=None, sort=None, limit=1000):
        cursor = self.db[collection].find(query or {}, {"_id": 0})
        if sort:
            cursor = cursor.sort(sort)
        return await cursor.to_list(limit)

    async def find_one(self, collection, query):
        return await self.db[collection].find_one(query, {"_id": 0})

    async def insert(self, collection, doc):
        await self.db[collection].insert_one(doc)
        doc.pop("_id", None)
        return doc

    async def update(self, collection, query, fields):
        result = await self.db[collection].update_many(query, {"$set": fields})
        return result.matched_count

    async def delete(self, collection, query):
        result = await self.db[collection].delete_many(query)
        return result.deleted_count

    async def count(self, collection, query=None):
        return await self.db[collection].count_documents(query or {})

    async def ensure_indexes(self):
        await self.db.clients.create_index("id", unique=True)
        await self.db.clients.create_index("siret")
        await self.db.prospects.create_index("statut")
        await self.db.articles.create_index("type")
        await self.db.devis.create_index("id", unique=True)
        await self.db.devis.create_index("client_id")
        await self.db.devis.create_index([("statut", 1), ("date_validite", 1)])
        await self.db.commandes.create_index("devis_id")
        await self.db.factures.create_index([("statut", 1), ("date_echeance", 1)])
        await self.db.event_log.create_index("created_at")
        logger.info("Index MongoDB créés")

    def close(self):
        self.client.close()


# ════════════════════════════════════════════════════════════════════════
# FIXTURES (mode démo)
# ════════════════════════════════════════════════════════════════════════

def _match_value(value: Any, condition: Any) -> bool:
    if not isinstance(condition, dict):
        return value == condition

    for op, expected in condition.items():
        if op == "$in":
            if value not in expected:
                return False
        elif op == "$ne":
            if value == expected:
                return False
        elif op in ("$lt", "$lte", "$gt", "$gte"):
            if value is None:
                return False
            if op == "$lt" and not value < expected:
                return False
            if op == "$lte" and not value <= expected:
                return False
            if op == "$gt" and not value > expected:
                return False
            if op == "$gte" and not value >= expected:
                return False
        else:
            raise ValueError(f"Opérateur non supporté: {op}")
    return True


def matches(doc: dict, query: Optional[Query]) -> bool:
    """Vrai si le document satisfait la requête"""
    for field, condition in (query or {}).items():
        if not _match_value(doc.get(field), condition):
            return False
    return True


def text_search(docs: List[dict], text: Optional[str], fields: List[str]) -> List[dict]:
    """Recherche plein texte insensible à la casse sur quelques champs"""
    if not text:
        return docs
    needle = text.lower()
    return [
        d for d in docs
        if any(needle in str(d.get(f) or "").lower() for f in fields)
    ]


class FixtureDataSource(DataSource):
    name = "fixture"

    def __init__(self, seed: bool = True):
        from services.demo_data import build_fixtures
        self.collections: Dict[str, List[dict]] = build_fixtures() if seed else {}
        logger.info("Using in-memory demo data (no database configured)")

    def _docs(self, collection: str) -> List[dict]:
        return self.collections.setdefault(collection, [])

    async def find(self, collection, query=None, sort=None, limit=1000):
        docs = [d for d in self._docs(collection) if matches(d, query)]
        for field, direction in reversed(sort or []):
            docs.sort(key=lambda d: (d.get(field) is not None, d.get(field)),
                      reverse=direction < 0)
        return copy.deepcopy(docs[:limit])

    async def find_one(self, collection, query):
        for doc in self._docs(collection):
            if matches(doc, query):
                return copy.deepcopy(doc)
        return None

    async def insert(self, collection, doc):
        self._docs(collection).append(copy.deepcopy(doc))
        return doc

    async def update(self, collection, query, fields):
        updated = 0
        for doc in self._docs(collection):
            if matches(doc, query):
                doc.update(copy.deepcopy(fields))
                updated += 1
        return updated

    async def delete(self, collection, query):
        docs = self._docs(collection)
        kept = [d for d in docs if not matches(d, query)]
        self.collections[collection] = kept
        return len(docs) - len(kept)

    async def count(self, collection, query=None):
        return sum(1 for d in self._docs(collection) if matches(d, query))


# ════════════════════════════════════════════════════════════════════════
# SÉLECTION
# ════════════════════════════════════════════════════════════════════════

_data_source: Optional[DataSource] = None


def create_data_source(kind: str = None) -> DataSource:
    kind = (kind or config.DATA_SOURCE).lower()
    if kind == "mongo":
        if not config.MONGO_URL:
            raise ValueError("DATA_SOURCE=mongo mais MONGO_URL n'est pas défini")
        return MongoDataSource(config.MONGO_URL, config.DB_NAME)
    if kind == "fixture":
        return FixtureDataSource()
    raise ValueError(f"DATA_SOURCE invalide: {kind}. Doit être mongo ou fixture")


def get_data_source() -> DataSource:
    """Source de données du process (créée au premier appel)"""
    global _data_source
    if _data_source is None:
        _data_source = create_data_source()
    return _data_source


def set_data_source(source: Optional[DataSource]):
    """Remplace la source courante (tests, scripts)"""
    global _data_source
    _data_source = source
