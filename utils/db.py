# utils/db.py

"""
Supabase database utilities:
CRUD operations (fetch, insert, upsert, update, delete),
storage upload and helper wrappers.
"""

import logging

import pandas as pd
import requests

from settings.constants import REQUEST_TIMEOUT, SUPABASE_URL
from utils.auth import get_auth_headers
from utils.errors import AuthError, ConnectionFailedError, SupabaseError

logger = logging.getLogger(__name__)


def _rest_url(table: str) -> str:
    return f"{SUPABASE_URL}/rest/v1/{table}"


def _require_headers(headers=None, prefer=None) -> dict:
    headers = dict(headers or get_auth_headers() or {})
    if not headers:
        raise AuthError("Sessão expirada. Faça login novamente.")
    if prefer:
        headers["Prefer"] = prefer
    return headers


def _query_params(filters=None, select="*", order=None, limit=None) -> list:
    """
    PostgREST query string. filters maps column -> "op.value",
    or column -> list of them (e.g. a gte/lte range on one column).
    """
    params = [("select", select)]
    for column, condition in (filters or {}).items():
        conditions = condition if isinstance(condition, (list, tuple)) else [condition]
        params.extend((column, c) for c in conditions)
    if order:
        params.append(("order", order if isinstance(order, str) else ",".join(order)))
    if limit:
        params.append(("limit", str(limit)))
    return params


def _send(method, action: str, url: str, **kwargs) -> requests.Response:
    """Run one HTTP call; network failures become ConnectionFailedError."""
    try:
        return method(url, **kwargs)
    except requests.RequestException as e:
        logger.error("Network error %s: %s", action, e)
        raise ConnectionFailedError(f"Sem conexão com o servidor ao {action}. Tente novamente.") from e


def check_response(r: requests.Response, action: str):
    """Return the decoded body, or raise SupabaseError for a failed call."""
    if r.status_code >= 300:
        logger.error("Error %s: %s %s", action, r.status_code, r.text)
        raise SupabaseError(f"Erro ao {action}: {r.text}", r.status_code, r.text)
    if not r.content:
        return []
    return r.json()


def fetch_rows(table: str, filters=None, select="*", order=None, limit=None, headers=None) -> list:
    """GET rows as a list of dicts. Raises SupabaseError on failure."""
    action = f"buscar {table}"
    r = _send(
        requests.get, action, _rest_url(table),
        headers=_require_headers(headers),
        params=_query_params(filters, select, order, limit),
        timeout=REQUEST_TIMEOUT,
    )
    return check_response(r, action) or []


def fetch_table(table: str, filters=None, select="*", order=None) -> pd.DataFrame:
    """
    Generic fetch for any Supabase table.
    Returns DataFrame or empty DF.
    """
    headers = get_auth_headers()
    if not headers:
        return pd.DataFrame()

    try:
        rows = fetch_rows(table, filters, select, order, headers=headers)
    except SupabaseError as e:
        logger.error("fetch_table(%s) failed: %s", table, e)
        return pd.DataFrame()

    return pd.DataFrame(rows)


def db_insert(table: str, payload, headers=None) -> requests.Response:
    """POST insert row(s); the created rows come back in the body."""
    return _send(
        requests.post, f"inserir em {table}", _rest_url(table),
        headers=_require_headers(headers, prefer="return=representation"),
        json=payload,
        timeout=REQUEST_TIMEOUT,
    )


def db_upsert(table: str, payload, on_conflict=None, headers=None) -> requests.Response:
    """POST upsert row(s), merging on the `on_conflict` columns."""
    params = {"on_conflict": on_conflict} if on_conflict else None
    return _send(
        requests.post, f"salvar em {table}", _rest_url(table),
        headers=_require_headers(headers, prefer="resolution=merge-duplicates,return=representation"),
        params=params,
        json=payload,
        timeout=REQUEST_TIMEOUT,
    )


def db_update(table: str, where: str, payload: dict, headers=None) -> requests.Response:
    """PATCH update row(s). Example: where='id=eq.123'"""
    url = f"{_rest_url(table)}?{where}"
    return _send(
        requests.patch, f"atualizar {table}", url,
        headers=_require_headers(headers, prefer="return=representation"),
        json=payload,
        timeout=REQUEST_TIMEOUT,
    )


def db_delete(table: str, where: str, headers=None) -> requests.Response:
    """DELETE row(s)."""
    url = f"{_rest_url(table)}?{where}"
    return _send(
        requests.delete, f"excluir de {table}", url,
        headers=_require_headers(headers),
        timeout=REQUEST_TIMEOUT,
    )


def upload_file(bucket: str, path: str, payload: bytes, content_type: str, headers=None) -> str:
    """Upload to Supabase Storage (overwriting) and return the public URL."""
    upload_headers = _require_headers(headers)
    upload_headers["Content-Type"] = content_type or "application/octet-stream"
    upload_headers["x-upsert"] = "true"

    r = _send(
        requests.post, f"enviar arquivo {path}", f"{SUPABASE_URL}/storage/v1/object/{bucket}/{path}",
        headers=upload_headers,
        data=payload,
        timeout=REQUEST_TIMEOUT,
    )
    check_response(r, f"enviar arquivo {path}")
    return f"{SUPABASE_URL}/storage/v1/object/public/{bucket}/{path}"
