"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  OXA CRM - Routes Catalogue                                                  ║
║                                                                              ║
║  /catalogue/articles     : articles vendus (marge calculée à la lecture)     ║
║  /catalogue/fournisseurs : fournisseurs des articles                         ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from fastapi import APIRouter, HTTPException
from typing import Optional

from config import generate_id, now_iso
from models import (
    ArticleCreate,
    ArticleUpdate,
    QuickArticleCreate,
    FournisseurCreate,
    FournisseurUpdate,
)
from services.data_source import get_data_source, text_search
from services.pricing import compute_margin_percent, compute_margin_amount, estimate_purchase_price

router = APIRouter(prefix="/catalogue", tags=["Catalogue"])


def with_margin(article: dict) -> dict:
    """Ajoute marge_percent / marge_montant à un article"""
    sell = article.get("prix_vente", 0.0)
    buy = article.get("prix_achat", 0.0)
    article["marge_percent"] = round(compute_margin_percent(sell, buy), 2)
    article["marge_montant"] = round(compute_margin_amount(sell, buy), 2)
    return article


# ════════════════════════════════════════════════════════════════════════
# ARTICLES
# ════════════════════════════════════════════════════════════════════════

@router.get("/articles")
async def list_articles(
    type: Optional[str] = None,
    actif: Optional[bool] = None,
    search: Optional[str] = None,
):
    """Liste des articles (filtres type, actif, recherche texte)"""
    query = {}
    if type:
        query["type"] = type
    if actif is not None:
        query["actif"] = actif

    articles = await get_data_source().find("articles", query, sort=[("nom", 1)])
    articles = text_search(articles, search, ["nom", "description", "reference_fournisseur"])
    return {"articles": [with_margin(a) for a in articles], "count": len(articles)}


@router.get("/articles/{article_id}")
async def get_article(article_id: str):
    article = await get_data_source().find_one("articles", {"id": article_id})
    if not article:
        raise HTTPException(status_code=404, detail="Article non trouvé")
    return with_margin(article)


@router.post("/articles")
async def create_article(data: ArticleCreate):
    ds = get_data_source()
    if data.fournisseur_id and not await ds.find_one("fournisseurs", {"id": data.fournisseur_id}):
        raise HTTPException(status_code=404, detail="Fournisseur non trouvé")

    article = {
        "id": generate_id(),
        **data.model_dump(mode="json"),
        "created_at": now_iso(),
        "updated_at": now_iso(),
    }
    await ds.insert("articles", article)
    return {"success": True, "article": with_margin(dict(article))}


@router.post("/articles/quick")
async def quick_create_article(data: QuickArticleCreate):
    """Création rapide depuis une ligne de devis (prix d'achat estimé)"""
    article = {
        "id": generate_id(),
        "nom": data.designation,
        "description": "",
        "type": "service",
        "prix_achat": estimate_purchase_price(data.prix),
        "prix_vente": data.prix,
        "tva": 20.0,
        "unite": "unité",
        "fournisseur_id": None,
        "reference_fournisseur": "",
        "actif": True,
        "created_at": now_iso(),
        "updated_at": now_iso(),
    }
    await get_data_source().insert("articles", article)
    return {"success": True, "article": with_margin(dict(article))}


@router.put("/articles/{article_id}")
async def update_article(article_id: str, data: ArticleUpdate):
    ds = get_data_source()
    article = await ds.find_one("articles", {"id": article_id})
    if not article:
        raise HTTPException(status_code=404, detail="Article non trouvé")

    update_data = {k: v for k, v in data.model_dump(mode="json").items() if v is not None}
    if not update_data:
        raise HTTPException(status_code=400, detail="Aucune donnée à mettre à jour")
    update_data["updated_at"] = now_iso()

    await ds.update("articles", {"id": article_id}, update_data)
    return {"success": True, "article": with_margin({**article, **update_data})}


@router.delete("/articles/{article_id}")
async def delete_article(article_id: str):
    deleted = await get_data_source().delete("articles", {"id": article_id})
    if not deleted:
        raise HTTPException(status_code=404, detail="Article non trouvé")
    return {"success": True}


# ════════════════════════════════════════════════════════════════════════
# FOURNISSEURS
# ════════════════════════════════════════════════════════════════════════

@router.get("/fournisseurs")
async def list_fournisseurs(actif: Optional[bool] = None, search: Optional[str] = None):
    query = {}
    if actif is not None:
        query["actif"] = actif
    fournisseurs = await get_data_source().find("fournisseurs", query, sort=[("entreprise", 1)])
    fournisseurs = text_search(fournisseurs, search, ["nom", "entreprise", "ville"])
    return {"fournisseurs": fournisseurs, "count": len(fournisseurs)}


@router.get("/fournisseurs/{fournisseur_id}")
async def get_fournisseur(fournisseur_id: str):
    ds = get_data_source()
    fournisseur = await ds.find_one("fournisseurs", {"id": fournisseur_id})
    if not fournisseur:
        raise HTTPException(status_code=404, detail="Fournisseur non trouvé")
    fournisseur["articles_count"] = await ds.count("articles", {"fournisseur_id": fournisseur_id})
    return fournisseur


@router.post("/fournisseurs")
async def create_fournisseur(data: FournisseurCreate):
    fournisseur = {
        "id": generate_id(),
        **data.model_dump(),
        "created_at": now_iso(),
        "updated_at": now_iso(),
    }
    await get_data_source().insert("fournisseurs", fournisseur)
    return {"success": True, "fournisseur": fournisseur}


@router.put("/fournisseurs/{fournisseur_id}")
async def update_fournisseur(fournisseur_id: str, data: FournisseurUpdate):
    ds = get_data_source()
    fournisseur = await ds.find_one("fournisseurs", {"id": fournisseur_id})
    if not fournisseur:
        raise HTTPException(status_code=404, detail="Fournisseur non trouvé")

    update_data = {k: v for k, v in data.model_dump().items() if v is not None}
    if not update_data:
        raise HTTPException(status_code=400, detail="Aucune donnée à mettre à jour")
    update_data["updated_at"] = now_iso()

    await ds.update("fournisseurs", {"id": fournisseur_id}, update_data)
    return {"success": True, "fournisseur": {**fournisseur, **update_data}}


@router.delete("/fournisseurs/{fournisseur_id}")
async def delete_fournisseur(fournisseur_id: str):
    ds = get_data_source()
    if await ds.count("articles", {"fournisseur_id": fournisseur_id}):
        raise HTTPException(status_code=400, detail="Fournisseur lié à des articles, suppression impossible")

    deleted = await ds.delete("fournisseurs", {"id": fournisseur_id})
    if not deleted:
        raise HTTPException(status_code=404, detail="Fournisseur non trouvé")
    return {"success": True}
