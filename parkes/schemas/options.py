from typing import Any, Callable, Dict, List, Optional, Type, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from parkes.config import general

# Restrict updating these attributes by default
DEFAULT_RESTRICTED = [
    "id",
    "uuid",
    "password",
    "permission",
    "internal",
    "private_key",
    "public_key",
    "user_id",
    "organisation_id",
]


class Include:
    """
    A relation join for an ORM query.

    model    -- the related model class
    as_      -- the relationship attribute on the queried model, looked up by
                target class when None
    where    -- an optional SQLAlchemy clause the related row must satisfy
    required -- inner join when True, outer join otherwise
    key      -- the request value the where clause was built from
    """

    model: Any = None
    as_: Optional[str] = None
    where: Any = None
    required: bool = False
    key: Any = None

    def __init__(self, model=None, as_=None, where=None, required=False, key=None):
        self.model = model
        self.as_ = as_
        self.where = where
        self.required = required
        self.key = key

    def merge(self, other: "Include") -> "Include":
        # Fields set on other win
        return Include(
            model=other.model if other.model is not None else self.model,
            as_=other.as_ if other.as_ is not None else self.as_,
            where=other.where if other.where is not None else self.where,
            required=other.required or self.required,
            key=other.key if other.key is not None else self.key,
        )

    def __repr__(self) -> str:
        name = getattr(self.model, "__name__", self.model)
        return f"Include(model={name}, as_={self.as_!r}, required={self.required})"


class ScopeModel(BaseModel):
    """
    A scope model that does not follow the naming conventions.

        ScopeModel(name="User", param="author", as_="author")

    scopes an index by /posts?author=<uuid> through Post.author.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    param: Optional[str] = None
    as_: Optional[str] = None


class ForeignKey(BaseModel):
    """Maps <attribute>_<id column> in a payload to <attribute>_id via model_name"""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_name: str
    attribute: str


class ParkesOptions(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    models: Dict[str, Any]
    adapter: Any = None
    authorize: Union[Callable[..., Any], bool, None] = None
    include: List[Union[str, Include]] = []
    restricted: List[str] = []
    scope_models: List[Union[str, ScopeModel]] = []
    search: List[str] = ["name"]
    filter_attributes: List[str] = []
    foreign_keys: List[Union[str, ForeignKey]] = []
    resource_id_column: str = Field(default_factory=lambda: general.RESOURCE_ID_COLUMN)
    default_page_length: int = Field(
        default_factory=lambda: general.DEFAULT_PAGE_LENGTH, gt=0
    )
    destroy_on_delete: bool = True
    allow_merge: bool = False
    create_schema: Optional[Type[BaseModel]] = None
    update_schema: Optional[Type[BaseModel]] = None

    @field_validator("models", mode="before")
    @classmethod
    def index_models(cls, v: Any) -> Any:
        # A list of model classes is keyed by class name
        if isinstance(v, (list, tuple)):
            return {model.__name__: model for model in v}
        return v

    @model_validator(mode="before")
    @classmethod
    def default_restricted(cls, values: Any) -> Any:
        # If restricted is unset, default it to the defaults plus the id column
        if isinstance(values, dict) and values.get("restricted") is None:
            values = dict(values)
            id_column = values.get("resource_id_column") or general.RESOURCE_ID_COLUMN
            restricted = list(DEFAULT_RESTRICTED)
            if id_column not in restricted:
                restricted.append(id_column)
            values["restricted"] = restricted
        return values
