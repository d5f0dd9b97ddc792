import asyncio
import logging
from typing import Any, Dict, List, Optional, Union
from pydantic import ValidationError
from sqlalchemy import and_, inspect as sa_inspect, or_
from sqlalchemy.orm import selectinload
from sqlalchemy.sql import Select, select
from parkes.errors import RestError
from parkes.repositories.pagination import build_find_all_query, paginate
from parkes.schemas.options import ForeignKey, Include, ParkesOptions, ScopeModel
from parkes.schemas.response import Page
from parkes.utils.hooks import hook
from parkes.utils.inflection import column_key_name, model_name, param_name
from parkes.utils.params import merge_query_params

logger = logging.getLogger(__name__)

DELETED = "DELETED"

# Hooks fired by the handler around each write. Controllers proxy these
# onto themselves, see ParkesController.
RECORD_HOOKS = ["before_create_record", "before_update_record", "before_destroy_record"]


class RestHandler:
    """
    Create, read, update and destroy helpers for one model.

    Sits between a controller and the ORM, turning the shape of a request
    (route params, query string, body) into queries against the model with
    the default includes applied.

    scope_models lets a request scope an index by a related model. Each
    entry names a model to join; when the request carries a parameter for
    that model, the index is inner joined against the matching row:

        rest = RestHandler("post", {"models": models, "scope_models": ["user"]})

        # GET /posts?user=<uuid> or GET /users/<uuid>/posts becomes
        select(Post).join(Post.user.and_(User.uuid == "<uuid>"))

    The join is only added when the parameter is present.
    """

    def __init__(self, name: str, options: Union[ParkesOptions, Dict[str, Any]]):
        if not name:
            raise ValueError("You must pass a model name to RestHandler constructor")
        if isinstance(options, dict):
            if not options.get("models"):
                raise ValueError(
                    "You must supply options.models to the RestHandler constructor"
                )
            options = ParkesOptions(**options)

        self.options = options
        self.models = options.models
        self.name = name if name in self.models else model_name(name)
        self.param = param_name(self.name)
        self.model_class = self.models.get(self.name)
        if self.model_class is None:
            raise ValueError(f"Model {self.name} cannot be found in options.models")
        if not options.destroy_on_delete and not hasattr(self.model_class, "status"):
            raise ValueError(
                f"Model {self.name} needs a status column when destroy_on_delete is off"
            )
        if options.allow_merge and not hasattr(self.model_class, "find_upsert"):
            raise ValueError(
                f"Model {self.name} needs a find_upsert classmethod when allow_merge is on"
            )

        columns = self.model_class.__table__.columns
        if "search" in options.model_fields_set:
            self._check_options_columns("search", options.search)
            self.search = list(options.search)
        else:
            # The default search field only applies to models that have it
            self.search = [field for field in options.search if field in columns]
        self._check_options_columns("filter_attributes", options.filter_attributes)
        self.adapter = options.adapter

    def _check_options_columns(self, option: str, fields: List[str]) -> None:
        columns = self.model_class.__table__.columns
        unknown = [field for field in fields if field not in columns]
        if unknown:
            raise ValueError(
                f"options.{option} names fields {self.name} does not have: {', '.join(unknown)}"
            )

    def _model(self, name: str):
        model = self.models.get(name) or self.models.get(model_name(name))
        if model is None:
            raise ValueError(f"Model {name} cannot be found in options.models")
        return model

    def _session(self):
        if self.adapter is None:
            raise ValueError(f"RestHandler for {self.name} has no options.adapter")
        return self.adapter.getSession()

    def block_restricted_keys(self, ctx, new_record: Dict[str, Any]) -> List[str]:
        """
        Called by update and create to prevent attempted mass assignment to
        restricted fields, eg password, uuid. Raises naming the bad fields.
        """
        bad_fields = [k for k in self.options.restricted if k in new_record]
        if bad_fields:
            logger.warning(
                f"Rejected write to restricted fields of {self.name}: {bad_fields}"
            )
            raise RestError(
                status=400,
                message=f"You may not update the fields: {', '.join(bad_fields)}",
                code="restricted field",
            )
        return bad_fields

    def _scope(self, scope: Union[str, ScopeModel]) -> ScopeModel:
        if isinstance(scope, str):
            return ScopeModel(name=scope)
        return scope

    def _scope_param(self, scope: ScopeModel) -> str:
        return scope.param or param_name(scope.name)

    def scopes_present(self, ctx) -> List[str]:
        """
        Names of the configured scope models the request filters by. An
        empty value does not filter, so it does not count as a scope.
        """
        all_params = merge_query_params(ctx)
        present = []
        for scope in map(self._scope, self.options.scope_models):
            if all_params.get(self._scope_param(scope)):
                present.append(self._scope_param(scope))
        return present

    def where_by_alias(self, key: Any, model=None):
        """Where clause finding a model by its alias or public id"""
        model = model if model is not None else self.model_class
        if hasattr(model, "where_by_alias"):
            return model.where_by_alias(key)
        return getattr(model, self.options.resource_id_column) == key

    def _not_deleted(self, model=None):
        model = model if model is not None else self.model_class
        return model.status != DELETED

    async def map_foreign_key_to_id(
        self,
        record: Dict[str, Any],
        foreign_keys: Optional[List[Union[str, ForeignKey]]] = None,
    ) -> Dict[str, Any]:
        """
        Used by create or update to map public foreign keys to ids.
        NOTE record is changed in place.

            await rest.map_foreign_key_to_id(record, ["campaign"])

        looks up the Campaign whose uuid is record["campaign_uuid"], sets
        record["campaign_id"] to its id and removes record["campaign_uuid"].
        Use ForeignKey(model_name="Profile", attribute="parent") when the
        attribute is not named after the model.
        """
        if foreign_keys is None:
            foreign_keys = self.options.foreign_keys

        lookups = []
        for foreign in foreign_keys:
            if isinstance(foreign, str):
                foreign = ForeignKey(model_name=model_name(foreign), attribute=foreign)

            id_key = column_key_name(foreign.attribute, "id")
            key = column_key_name(foreign.attribute, self.options.resource_id_column)

            if record.get(key):
                lookups.append(self._resolve_foreign_key(record, foreign, key, id_key))

        # Fetch in parallel
        await asyncio.gather(*lookups)
        return record

    async def _resolve_foreign_key(self, record, foreign: ForeignKey, key: str, id_key: str):
        model = self._model(foreign.model_name)
        query = select(model).where(self.where_by_alias(record[key], model))
        async with self._session() as session:
            found = (await session.execute(query)).scalars().first()
        if found is None:
            raise RestError(
                status=404,
                code="not found",
                message=f"Could not find {foreign.attribute} with {self.options.resource_id_column} {record[key]}",
            )
        record[id_key] = found.id
        del record[key]

    def build_filter_includes(self, ctx, scope_models) -> List[Include]:
        """
        Creates a list of includes that will filter the index query based
        on query or params provided by the user (params take precedence)
        """
        all_params = merge_query_params(ctx)
        includes = []

        for scope in map(self._scope, scope_models):
            value = all_params.get(self._scope_param(scope))
            if value:
                model = self._model(scope.name)
                includes.append(
                    Include(
                        model=model,
                        as_=scope.as_,
                        where=self.where_by_alias(value, model),
                        required=True,
                        key=value,
                    )
                )

        return includes

    def filter_includes(self, ctx) -> List[Include]:
        return self.build_filter_includes(ctx, self.options.scope_models)

    async def find_related(self, include: Include):
        """The row a filter include points at, None when there is none"""
        query = select(include.model)
        if include.where is not None:
            query = query.where(include.where)
        async with self._session() as session:
            return (await session.execute(query)).scalars().first()

    def _normalize_includes(self, includes) -> List[Include]:
        relationships = sa_inspect(self.model_class).relationships
        normalized = []
        for include in includes:
            if isinstance(include, str):
                if include not in relationships:
                    raise ValueError(f"{self.name} has no relationship {include}")
                include = Include(model=relationships[include].mapper.class_, as_=include)
            normalized.append(include)
        return normalized

    def _relationship_for(self, include: Include):
        relationships = sa_inspect(self.model_class).relationships
        if include.as_ is not None:
            if include.as_ not in relationships:
                raise ValueError(f"{self.name} has no relationship {include.as_}")
            return getattr(self.model_class, include.as_)
        for relation in relationships:
            if relation.mapper.class_ is include.model:
                return getattr(self.model_class, relation.key)
        raise ValueError(
            f"{self.name} has no relationship to {getattr(include.model, '__name__', include.model)}"
        )

    def _apply_includes(self, query: Select, includes: List[Include]) -> Select:
        for include in includes:
            attribute = self._relationship_for(include)
            if include.required or include.where is not None:
                target = attribute if include.where is None else attribute.and_(include.where)
                query = query.join(target, isouter=not include.required)
            query = query.options(selectinload(attribute))
        return query

    def _coerce(self, attribute: str, value: Any) -> Any:
        # Query string values arrive as text
        column = self.model_class.__table__.columns[attribute]
        try:
            python_type = column.type.python_type
        except NotImplementedError:
            return value
        if not isinstance(value, str) or python_type is str:
            return value
        try:
            if python_type is bool:
                return value.lower() in ("1", "true", "yes")
            return python_type(value)
        except (TypeError, ValueError):
            raise RestError(
                status=400,
                code="invalid filter",
                message=f"{value} is not a valid value for {attribute}",
            )

    def _check_columns(self, values: Dict[str, Any]) -> Dict[str, Any]:
        columns = self.model_class.__table__.columns
        unknown = [k for k in values if k not in columns]
        if unknown:
            raise RestError(
                status=400,
                code="unknown field",
                message=f"{self.name} has no fields: {', '.join(unknown)}",
            )
        return values

    def _validate(self, schema, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return schema.model_validate(payload).model_dump(exclude_unset=True)
        except ValidationError as e:
            raise RestError(
                status=400,
                code="invalid data",
                message="; ".join(
                    f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                    for err in e.errors()
                ),
            )

    async def _valid_create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if self.options.create_schema is not None:
            return self._validate(self.options.create_schema, payload)
        valid = await hook(self.model_class, "valid_create", payload)
        return payload if valid is None else valid

    async def _valid_update(self, record, payload: Dict[str, Any]) -> Dict[str, Any]:
        if self.options.update_schema is not None:
            return self._validate(self.options.update_schema, payload)
        valid = await hook(record, "valid_update", payload)
        return payload if valid is None else valid

    def _payload(self, ctx) -> Dict[str, Any]:
        new_record = ctx.body.get("data")
        if not new_record:
            raise RestError(
                status=400,
                code="empty body",
                message="The data attribute in the body must not be empty",
            )
        if not isinstance(new_record, dict):
            raise RestError(
                status=400,
                code="invalid body",
                message="The data attribute in the body must be an object",
            )
        self.block_restricted_keys(ctx, new_record)
        # Leave the request body untouched
        return dict(new_record)

    async def find(self, ctx, include=None, where=None):
        key = ctx.params.get(self.param)
        query = select(self.model_class).where(self.where_by_alias(key))

        for clause in where or []:
            query = query.where(clause)
        if not self.options.destroy_on_delete:
            query = query.where(self._not_deleted())

        includes = self._normalize_includes(
            self.options.include if include is None else include
        )
        query = self._apply_includes(query, includes)

        async with self._session() as session:
            data = (await session.execute(query)).scalars().first()

        if data is None:
            raise RestError(
                status=404,
                code="not found",
                message=f"Resource {self.name} with {self.options.resource_id_column} {key} was not found",
            )

        return data

    async def show(self, ctx):
        return await self.find(ctx)

    async def index(self, ctx, include=None, where=None, skip_paginate=False) -> Page:
        includes = self._normalize_includes(
            self.options.include if include is None else include
        )
        includes = merge_includes(includes, self.filter_includes(ctx))

        conditions = list(where or [])

        # basic search text fields
        text = ctx.query.get("q")
        if text:
            if not self.search:
                raise RestError(
                    status=400,
                    code="invalid search",
                    message=f"{self.name} cannot be searched",
                )
            fields = [getattr(self.model_class, field) for field in self.search]
            conditions.append(or_(*[field.ilike(f"%{text}%") for field in fields]))

        # equality filters from the query string
        for attribute in self.options.filter_attributes:
            if attribute in ctx.query:
                conditions.append(
                    getattr(self.model_class, attribute)
                    == self._coerce(attribute, ctx.query[attribute])
                )

        # If records aren't deleted from the DB, then filter out "DELETED" records
        if not self.options.destroy_on_delete:
            conditions.append(self._not_deleted())

        query = self._apply_includes(select(self.model_class), includes)
        if conditions:
            query = query.where(and_(*conditions))
        query = build_find_all_query(ctx, query, self.model_class)

        logger.debug(
            f"{self.name} index with includes {includes} and {len(conditions)} conditions"
        )

        async with self._session() as session:
            if skip_paginate:
                result = await session.execute(query)
                return Page(collection=list(result.scalars().unique().all()))
            return await paginate(ctx, session, query, self.options.default_page_length)

    async def create(self, ctx):
        new_record = self._payload(ctx)

        # If merge is requested, see if we can do an update
        if self.options.allow_merge and ctx.body.get("merge"):
            async with self._session() as session:
                existing = await hook(self.model_class, "find_upsert", session, new_record)
            if existing is not None:
                return await self.update(ctx, existing)

        await self.map_foreign_key_to_id(new_record)
        valid = self._check_columns(await self._valid_create(new_record))
        await hook(self, "before_create_record", ctx, valid)

        async with self._session() as session:
            record = self.model_class(**valid)
            session.add(record)
            await session.flush()

        logger.info(f"Created {self.name} {getattr(record, 'id', None)}")
        return record

    async def update(self, ctx, record):
        new_record = self._payload(ctx)

        await self.map_foreign_key_to_id(new_record)
        valid = self._check_columns(await self._valid_update(record, new_record))
        await hook(self, "before_update_record", ctx, record, valid)

        async with self._session() as session:
            session.add(record)
            for key, value in valid.items():
                setattr(record, key, value)
            await session.flush()

        return record

    async def destroy(self, ctx, record):
        await hook(self, "before_destroy_record", ctx, record)

        async with self._session() as session:
            session.add(record)
            if self.options.destroy_on_delete:
                await session.delete(record)
            else:
                record.status = DELETED

        logger.info(f"Destroyed {self.name} {getattr(record, 'id', None)}")
        return record

    remove = destroy


def merge_includes(includes: List[Include], new_includes: List[Include]) -> List[Include]:
    """
    Merge our includes with default includes
    (our includes take precedence)
    """
    merged = list(includes)

    for include in new_includes:
        original = next((o for o in merged if o.model is include.model), None)
        if original is not None:
            merged.remove(original)
            # If an include for that model already exists, merge the two
            include = original.merge(include)
        merged.append(include)

    return merged
