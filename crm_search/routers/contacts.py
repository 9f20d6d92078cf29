"""
routers/contacts.py — Contact Search Routes

Business Rules:
- Query parameters accept camelCase (pageSize, sortBy) or snake_case names
- Malformed filter values are dropped, never rejected (see schemas/contacts.py)
- Store failures surface as 503 via the CrmSearchError handler in main.py

Called by: main.py (router mount)
Depends on: dependencies, schemas/contacts.py, services/contact_search.py
"""

from fastapi import APIRouter, Depends, Request

from ..dependencies import get_searcher
from ..schemas.contacts import ContactSearchRequest, SearchResult
from ..services.contact_search import ContactSearcher

router = APIRouter(tags=["contacts"])


@router.get("/api/contacts/search", response_model=SearchResult)
def search_contacts(request: Request, searcher: ContactSearcher = Depends(get_searcher)):
    search = ContactSearchRequest.model_validate(dict(request.query_params))
    return searcher.search(search)


@router.post("/api/contacts/search", response_model=SearchResult)
def search_contacts_body(
    body: ContactSearchRequest, searcher: ContactSearcher = Depends(get_searcher)
):
    return searcher.search(body)
