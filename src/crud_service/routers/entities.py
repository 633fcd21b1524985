from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, Path, status

from ..models import ID_MAX, ID_MIN
from ..policy import HTTP_STATUS, EntityAdapter, Result
from ..schemas import SCHEMAS, ErrorOut


def _unwrap(result: Result) -> Any:
    """Return the payload of a successful result or raise the mapped HTTPException."""
    if not result.ok:
        raise HTTPException(status_code=HTTP_STATUS[result.outcome], detail=result.message)
    return result.payload


# PUBLIC_INTERFACE
def build_router(adapter: EntityAdapter) -> APIRouter:
    """
    Build the REST collection for the adapter's entity kind:

    - POST   /{plural}        create, 201
    - GET    /{plural}        list, newest first
    - GET    /{plural}/{id}   get, 404 if absent
    - PUT    /{plural}/{id}   partial update, omitted keys are left unchanged
    - DELETE /{plural}/{id}   204, 404 if absent
    """
    kind = adapter.kind
    schemas = SCHEMAS[kind.name]
    create_schema, update_schema, out_schema = schemas.create, schemas.update, schemas.out
    label = kind.label

    router = APIRouter(prefix=f"/{kind.plural}", tags=[kind.plural])

    def _get_adapter() -> EntityAdapter:
        """
        Dependency returning the adapter this router was built for.
        """
        return adapter

    not_found = {"model": ErrorOut, "description": f"{label} not found"}
    internal = {"model": ErrorOut, "description": "Internal storage error"}
    conflict = {"model": ErrorOut, "description": f"{label} violates a uniqueness constraint"}

    @router.post(
        "",
        name=f"create_{kind.name}",
        response_model=out_schema,
        status_code=status.HTTP_201_CREATED,
        summary=f"Create {label}",
        responses={409: conflict, 500: internal},
    )
    def create_entity(payload: create_schema, entities: EntityAdapter = Depends(_get_adapter)):  # type: ignore[valid-type]
        return _unwrap(entities.create(payload.model_dump()))

    @router.get(
        "",
        name=f"list_{kind.plural}",
        response_model=List[out_schema],  # type: ignore[valid-type]
        summary=f"List {kind.plural.capitalize()}",
        description=f"Return every {kind.name}, most recently created first.",
        responses={500: internal},
    )
    def list_entities(entities: EntityAdapter = Depends(_get_adapter)):
        return _unwrap(entities.list())

    @router.get(
        "/{entity_id}",
        name=f"get_{kind.name}",
        response_model=out_schema,
        summary=f"Get {label}",
        responses={404: not_found, 500: internal},
    )
    def get_entity(
        entity_id: int = Path(..., ge=ID_MIN, le=ID_MAX),
        entities: EntityAdapter = Depends(_get_adapter),
    ):
        return _unwrap(entities.get(entity_id))

    @router.put(
        "/{entity_id}",
        name=f"update_{kind.name}",
        response_model=out_schema,
        summary=f"Update {label}",
        description="Partially update fields. Omitted or null fields keep their stored value.",
        responses={404: not_found, 409: conflict, 500: internal},
    )
    def update_entity(
        payload: update_schema,  # type: ignore[valid-type]
        entity_id: int = Path(..., ge=ID_MIN, le=ID_MAX),
        entities: EntityAdapter = Depends(_get_adapter),
    ):
        return _unwrap(entities.update(entity_id, payload.model_dump(exclude_unset=True)))

    @router.delete(
        "/{entity_id}",
        name=f"delete_{kind.name}",
        status_code=status.HTTP_204_NO_CONTENT,
        summary=f"Delete {label}",
        responses={404: not_found, 500: internal},
    )
    def delete_entity(
        entity_id: int = Path(..., ge=ID_MIN, le=ID_MAX),
        entities: EntityAdapter = Depends(_get_adapter),
    ) -> None:
        _unwrap(entities.delete(entity_id))
        return None

    return router
