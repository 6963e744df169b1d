"""
Fetch Routes - Named URL list and raw data fetch
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..dependencies import get_app_state, AppState

router = APIRouter(tags=["fetch"])


class UrlRequest(BaseModel):
    url: str


@router.get("/urls")
def get_urls(state: AppState = Depends(get_app_state)):
    """Get all named URLs."""
    return {"urls": state.urls.to_dict()}


@router.put("/urls/{name}")
def set_url(name: str, req: UrlRequest, state: AppState = Depends(get_app_state)):
    """Add or replace a named URL."""
    if not req.url.strip():
        raise HTTPException(status_code=400, detail="URL must not be empty")
    state.urls.set(name, req.url.strip())
    return {"success": True, "name": name, "url": state.urls.get(name)}


@router.delete("/urls/{name}")
def delete_url(name: str, state: AppState = Depends(get_app_state)):
    """Delete a named URL."""
    if not state.urls.delete(name):
        raise HTTPException(status_code=404, detail=f"No URL named '{name}'")
    return {"success": True}


@router.get("/fetch/{name}")
def fetch_named(name: str, state: AppState = Depends(get_app_state)):
    """
    Fetch the raw response body of a named URL.

    Failures are reported in the body, not as HTTP errors.
    """
    url = state.urls.get(name)
    if not url:
        return {"success": False, "message": f"No URL named '{name}' in the URL list"}

    state.last_problem = None
    body = state.fetcher.get_raw(url)
    if body is None:
        return {"success": False, "message": state.last_problem or "Fetch failed"}

    return {"success": True, "url": url, "body": body}
