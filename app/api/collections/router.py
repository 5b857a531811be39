from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_current_actor
from app.db.session import get_db
from app.schemas.paging import CollectionList, PageEnvelope, PageRequest

from .service import list_collections_service, query_collection_service

router = APIRouter()


@router.get("/collections", response_model=CollectionList)
def list_collections(actor: dict = Depends(get_current_actor)):
    return list_collections_service(actor)


@router.patch("/{collection}", response_model=PageEnvelope)
def query_collection(
    collection: str,
    body: PageRequest,
    db: Session = Depends(get_db),
    actor: dict = Depends(get_current_actor),
):
    return query_collection_service(collection, body, db, actor)
