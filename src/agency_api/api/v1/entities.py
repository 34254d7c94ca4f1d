"""
HTTP routes for the entity collections.

`build_entity_router(schema)` produces the five routes of one entity; the
application mounts one router per registry entry:

    GET    /<path>          list every record (bare JSON array)
    POST   /<path>          create
    PUT    /<path>/{key}    full update
    PATCH  /<path>/{key}    partial update
    DELETE /<path>/{key}    delete

Bodies are taken as raw JSON and handed to the repository, which validates
them against the registry. Violations and store failures are raised as
exceptions and rendered by `error_handlers`.
"""

from typing import Any, Callable

from fastapi import APIRouter, Body, Depends, Path, Request

from agency_api.db.gateway import PersistenceGateway, QueryResult
from agency_api.repositories.entity_repository import EntityRepository
from agency_api.schemas.entities import get_record_model
from agency_api.schemas.registry import REGISTRY, EntitySchema

_BODY_DESCRIPTION = "JSON object keyed by column name."


def get_gateway(request: Request) -> PersistenceGateway:
    return request.app.state.gateway


def _repository_dependency(schema: EntitySchema) -> Callable[[PersistenceGateway], EntityRepository]:
    def get_repository(gateway: PersistenceGateway = Depends(get_gateway)) -> EntityRepository:
        return EntityRepository(schema, gateway)

    return get_repository


def _envelope(message: str, result: QueryResult) -> dict[str, Any]:
    return {"success": True, "message": message, "result": result.to_payload()}


def build_entity_router(schema: EntitySchema) -> APIRouter:
    router = APIRouter(prefix=schema.path, tags=[schema.label])
    get_repository = _repository_dependency(schema)
    record_model = get_record_model(schema.kind)
    key_description = f"{schema.primary_key.name} of the {schema.label.lower()}"

    @router.get("", response_model=list[record_model], summary=f"List {schema.label} records")
    async def list_records(repo: EntityRepository = Depends(get_repository)):
        return await repo.list_all()

    @router.post("", summary=f"Create {schema.label}")
    async def create_record(
        payload: Any = Body(default=None, description=_BODY_DESCRIPTION),
        repo: EntityRepository = Depends(get_repository),
    ):
        result = await repo.create(_body_or_empty(payload))
        return _envelope(f"{schema.label} added", result)

    @router.patch("/{key}", summary=f"Update some fields of {schema.label}")
    async def patch_record(
        key: str = Path(..., description=key_description),
        payload: Any = Body(default=None, description=_BODY_DESCRIPTION),
        repo: EntityRepository = Depends(get_repository),
    ):
        result = await repo.patch(key, _body_or_empty(payload))
        return _envelope(f"{schema.label} updated", result)

    @router.put("/{key}", summary=f"Replace {schema.label}")
    async def replace_record(
        key: str = Path(..., description=key_description),
        payload: Any = Body(default=None, description=_BODY_DESCRIPTION),
        repo: EntityRepository = Depends(get_repository),
    ):
        result = await repo.replace(key, _body_or_empty(payload))
        return _envelope(f"{schema.label} fully updated", result)

    @router.delete("/{key}", summary=f"Delete {schema.label}")
    async def delete_record(
        key: str = Path(..., description=key_description),
        repo: EntityRepository = Depends(get_repository),
    ):
        result = await repo.delete(key)
        return _envelope(f"{schema.label} deleted", result)

    return router


def _body_or_empty(payload: Any) -> Any:
    # A request without a body is treated as an empty object
    return {} if payload is None else payload


def build_entity_routers() -> list[APIRouter]:
    return [build_entity_router(schema) for schema in REGISTRY.values()]


__all__ = ["build_entity_router", "build_entity_routers", "get_gateway"]
