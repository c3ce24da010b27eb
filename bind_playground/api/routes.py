"""
FastAPI routes – the playground's API surface.

Every engine failure is turned into an HTTPException whose `detail` is a
message fit for display; nothing here lets an error take the process down.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bind_playground.api.dependencies import Playground, get_db, get_playground
from bind_playground.bundle.reducer import (
    AddResource,
    ClearBundle,
    RemoveResource,
    UpdateResource,
)
from bind_playground.bundle.session import BundleImportError
from bind_playground.bundle.utils import build_reference, get_resources_by_type
from bind_playground.config import settings
from bind_playground.exchange.client import ExchangeError
from bind_playground.exchange.crypto import CryptoError
from bind_playground.exchange.directory import extract_issuer_slug
from bind_playground.exchange.keys import KeyImportError, generate_key_pair, import_private_key
from bind_playground.exchange.pipeline import PipelineInputError, run_exchange
from bind_playground.schemas.api import (
    BundleResponse,
    DirectoryStatusResponse,
    ExchangeRecordResponse,
    ExchangeRunRequest,
    ExchangeRunResponse,
    HealthResponse,
    ImportBundleRequest,
    ImportKeyRequest,
    IssuerRequest,
    IssuerResponse,
    KeyPairResponse,
    ReferenceResponse,
    SchemaListResponse,
    ValidationResponse,
    ValidationWarningResponse,
)
from bind_playground.schemas.fields import describe_fields
from bind_playground.schemas.initial_values import build_initial_values
from bind_playground.schemas.resolver import resolve_root_ref
from bind_playground.services.history import list_exchanges, record_exchange
from bind_playground.services.terminology import TerminologyError
from bind_playground.services.validation import validate_bundle

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@router.get("/health", response_model=HealthResponse)
def health_check(db: Session = Depends(get_db), playground: Playground = Depends(get_playground)):
    """Basic health endpoint – verifies DB connectivity."""
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except SQLAlchemyError:
        db_status = "disconnected"
    return HealthResponse(
        status="healthy",
        environment=settings.ENVIRONMENT,
        database=db_status,
        schemas=len(playground.registry.all_names()),
    )


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

def _root_definition(playground: Playground, name: str) -> tuple[dict, dict]:
    schema = playground.registry.get_schema(name)
    root = resolve_root_ref(schema) if schema else None
    if root is None:
        raise HTTPException(status_code=404, detail=f'Unknown schema "{name}"')
    return schema, root.definition


@router.get("/schemas", response_model=SchemaListResponse)
def list_schemas(playground: Playground = Depends(get_playground)):
    return SchemaListResponse(
        resources=playground.registry.resource_names(),
        supporting=playground.registry.supporting_names(),
    )


@router.get("/schemas/{name}")
def get_schema(name: str, playground: Playground = Depends(get_playground)):
    schema, _ = _root_definition(playground, name)
    return schema


@router.get("/schemas/{name}/initial")
def get_initial_values(name: str, playground: Playground = Depends(get_playground)):
    """Empty, fully-shaped value tree to seed a new resource form."""
    schema, definition = _root_definition(playground, name)
    return build_initial_values(definition, schema)


@router.get("/schemas/{name}/fields")
def get_form_fields(name: str, playground: Playground = Depends(get_playground)):
    schema, definition = _root_definition(playground, name)
    return [descriptor.to_dict() for descriptor in describe_fields(definition, schema)]


# ---------------------------------------------------------------------------
# Bundle
# ---------------------------------------------------------------------------

def _bundle_response(playground: Playground) -> BundleResponse:
    bundle = playground.bundle.bundle
    return BundleResponse(
        bundle=bundle,
        count=len(bundle.get("entry", [])),
        summary=playground.bundle.summary(),
    )


def _require_resource(resource: dict[str, Any]) -> dict[str, Any]:
    if not isinstance(resource.get("resourceType"), str) or not resource["resourceType"]:
        raise HTTPException(status_code=422, detail='Resource must have a "resourceType"')
    return resource


def _require_index(playground: Playground, index: int) -> None:
    if not 0 <= index < len(playground.bundle.bundle.get("entry", [])):
        raise HTTPException(status_code=404, detail=f"No entry at index {index}")


@router.get("/bundle", response_model=BundleResponse)
def get_bundle(playground: Playground = Depends(get_playground)):
    return _bundle_response(playground)


@router.get("/bundle/summary", response_model=dict[str, int])
def get_bundle_summary(playground: Playground = Depends(get_playground)):
    return playground.bundle.summary()


@router.get("/bundle/references", response_model=list[ReferenceResponse])
def list_references(resource_type: str | None = None, playground: Playground = Depends(get_playground)):
    """Reference targets for Reference fields, optionally filtered by type."""
    bundle = playground.bundle.bundle
    if resource_type:
        entries = get_resources_by_type(bundle, resource_type)
    else:
        entries = [
            e
            for e in bundle.get("entry", [])
            if isinstance(e, dict) and isinstance(e.get("resource"), dict)
        ]
    return [ReferenceResponse(**build_reference(e["resource"])) for e in entries]


@router.post("/bundle/resources", response_model=BundleResponse, status_code=201)
def add_resource(resource: dict[str, Any], playground: Playground = Depends(get_playground)):
    playground.bundle.dispatch(AddResource(_require_resource(resource)))
    return _bundle_response(playground)


@router.put("/bundle/resources/{index}", response_model=BundleResponse)
def update_resource(
    index: int,
    resource: dict[str, Any],
    playground: Playground = Depends(get_playground),
):
    _require_index(playground, index)
    playground.bundle.dispatch(UpdateResource(index, _require_resource(resource)))
    return _bundle_response(playground)


@router.delete("/bundle/resources/{index}", response_model=BundleResponse)
def remove_resource(index: int, playground: Playground = Depends(get_playground)):
    _require_index(playground, index)
    playground.bundle.dispatch(RemoveResource(index))
    return _bundle_response(playground)


@router.post("/bundle/import", response_model=BundleResponse)
def import_bundle(request: ImportBundleRequest, playground: Playground = Depends(get_playground)):
    try:
        playground.bundle.import_json(request.content)
    except BundleImportError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _bundle_response(playground)


@router.delete("/bundle", response_model=BundleResponse)
def clear_bundle(playground: Playground = Depends(get_playground)):
    playground.bundle.dispatch(ClearBundle())
    return _bundle_response(playground)


@router.get("/bundle/validate", response_model=ValidationResponse)
def validate_current_bundle(playground: Playground = Depends(get_playground)):
    warnings = validate_bundle(playground.bundle.bundle, playground.registry)
    return ValidationResponse(
        valid=not warnings,
        warnings=[ValidationWarningResponse(**w.to_dict()) for w in warnings],
    )


# ---------------------------------------------------------------------------
# Identity: signing key and issuer
# ---------------------------------------------------------------------------

def _key_response(playground: Playground) -> KeyPairResponse:
    pair = playground.key_pair
    return KeyPairResponse(kid=pair.kid, publicKey=pair.public_key)


@router.get("/keys", response_model=KeyPairResponse)
def get_key_pair(playground: Playground = Depends(get_playground)):
    if playground.key_pair is None:
        raise HTTPException(status_code=404, detail="No signing key has been generated or imported")
    return _key_response(playground)


@router.post("/keys/generate", response_model=KeyPairResponse, status_code=201)
async def generate_keys(playground: Playground = Depends(get_playground)):
    playground.set_key_pair(generate_key_pair())
    playground.refresh_directory_status()
    return _key_response(playground)


@router.post("/keys/import", response_model=KeyPairResponse, status_code=201)
async def import_keys(request: ImportKeyRequest, playground: Playground = Depends(get_playground)):
    try:
        pair = import_private_key(request.jwk)
    except KeyImportError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    playground.set_key_pair(pair)
    playground.refresh_directory_status()
    return _key_response(playground)


def _issuer_response(playground: Playground) -> IssuerResponse:
    return IssuerResponse(
        issuer=playground.issuer,
        slug=extract_issuer_slug(playground.issuer),
        directory=DirectoryStatusResponse(**playground.lookup.status.to_dict()),
    )


@router.get("/issuer", response_model=IssuerResponse)
def get_issuer(playground: Playground = Depends(get_playground)):
    return _issuer_response(playground)


@router.put("/issuer", response_model=IssuerResponse)
async def set_issuer(request: IssuerRequest, playground: Playground = Depends(get_playground)):
    playground.set_issuer(request.issuer)
    playground.refresh_directory_status()
    return _issuer_response(playground)


@router.get("/issuer/directory", response_model=DirectoryStatusResponse)
async def get_directory_status(wait: bool = False, playground: Playground = Depends(get_playground)):
    """Trust status of the issuer; `wait` blocks until a pending lookup settles."""
    status = await playground.lookup.wait() if wait else playground.lookup.status
    return DirectoryStatusResponse(**status.to_dict())


# ---------------------------------------------------------------------------
# Exchange
# ---------------------------------------------------------------------------

def _failure_status(exc: BaseException | None) -> int:
    if isinstance(exc, PipelineInputError):
        return 400
    if isinstance(exc, CryptoError):
        return 422
    if isinstance(exc, ExchangeError):
        return 502
    return 500


@router.post("/exchange", response_model=ExchangeRunResponse)
async def create_exchange(
    request: ExchangeRunRequest,
    db: Session = Depends(get_db),
    playground: Playground = Depends(get_playground),
):
    """
    Validate, sign, encrypt, prove and (unless `submit` is false) send the
    Bundle, returning the bindx:// link for the recipient.
    """
    bundle = request.bundle if request.bundle is not None else playground.bundle.bundle
    outcome = await run_exchange(
        bundle,
        playground.key_pair,
        playground.issuer,
        registry=playground.registry,
        client=playground.exchange,
        label=request.label,
        passcode=request.passcode,
        expiry_hours=request.expiry_hours,
        submit_to_exchange=request.submit,
    )

    if not outcome.ok:
        raise HTTPException(
            status_code=_failure_status(outcome.exception),
            detail=f"{outcome.failed_stage} failed: {outcome.error}",
        )

    result = ExchangeRunResponse(
        status=outcome.status,
        warnings=[ValidationWarningResponse(**w.to_dict()) for w in outcome.warnings],
        jws=outcome.jws,
        jwe=outcome.jwe,
        proof=outcome.proof,
        link=outcome.link,
    )
    if outcome.response is not None:
        response = outcome.response
        try:
            record_exchange(db, response=response, kid=playground.key_pair.kid, label=request.label)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.warning("Exchange %s not added to history: %s", response.url, exc)
        result.url = response.url
        result.exp = response.exp
        result.flag = response.flag
        result.passcode = response.passcode
        result.trusted = response.trusted
        result.iss = response.iss
    return result


@router.get("/exchange/history", response_model=list[ExchangeRecordResponse])
def exchange_history(limit: int = 50, db: Session = Depends(get_db)):
    return list_exchanges(db, limit=limit)


# ---------------------------------------------------------------------------
# Terminology
# ---------------------------------------------------------------------------

def _terminology_failure(exc: TerminologyError) -> HTTPException:
    return HTTPException(status_code=404 if exc.status_code == 404 else 502, detail=str(exc))


@router.get("/terminology")
async def list_code_systems(playground: Playground = Depends(get_playground)):
    try:
        return await playground.terminology.list_systems()
    except TerminologyError as exc:
        raise _terminology_failure(exc)


@router.get("/terminology/search")
async def search_terminology(q: str = "", playground: Playground = Depends(get_playground)):
    try:
        return await playground.terminology.search(q)
    except TerminologyError as exc:
        raise _terminology_failure(exc)


@router.get("/terminology/{system_id}")
async def get_code_system(system_id: str, playground: Playground = Depends(get_playground)):
    try:
        return await playground.terminology.get_system(system_id)
    except TerminologyError as exc:
        raise _terminology_failure(exc)
