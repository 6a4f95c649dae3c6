"""
Base Repository - Generic data access object over a SQLAlchemy session
Adds magic finders/removers, bulk persistence with optional auto-flush,
pagination and event listener suppression on top of the session.
"""

from typing import TypeVar, Generic, List, Optional, Dict, Any, Type, Callable, Iterable, Mapping, Union
from sqlalchemy.orm import Session, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import desc, asc, false, or_
from decimal import Decimal
from enum import Enum
from uuid import UUID
import logging

from repositories.events import EventManager, EventsMixin
from repositories.exceptions import (
    InvalidCriteriaError,
    InvalidObjectError,
    MagicMethodArgumentError,
    NoResultsError,
    ObjectFactoryError,
    UnknownFieldError,
    describe_type,
)
from repositories.magic_methods import resolve_magic_method
from repositories.metadata import ClassMetadata
from repositories.pagination import (
    PaginationParams,
    PaginatedResult,
    Paginator,
    PaginatorMixin,
    QueryAdapter,
)

logger = logging.getLogger(__name__)

# Type variable for model classes
T = TypeVar('T')

Criteria = Mapping[str, Any]
IDENTIFIER_TYPES = (str, bytes, int, float, Decimal, UUID, tuple)
OrderBy = Optional[Mapping[str, Union['SortOrder', str]]]

__all__ = [
    'BaseRepository',
    'PaginationParams',
    'PaginatedResult',
    'SortOrder',
]


class SortOrder(Enum):
    """Sort order options"""
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: Union['SortOrder', str]) -> 'SortOrder':
        """Accept a SortOrder or a case-insensitive "asc"/"desc" string"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f'Invalid sort order "{value}". Use "asc" or "desc"')


class BaseRepository(EventsMixin, PaginatorMixin, Generic[T]):
    """
    Generic repository for a single mapped class.

    Besides the explicit finders, field based finders and removers are
    resolved dynamically from the called name:

        repository.find_by_email('a@b.com')
        repository.find_one_by_phone_or_get_new('+15551234567')
        repository.remove_by_status('archived', flush=True)
        repository.count_by_status('active')

    Persistence operations accept a single object or any iterable of objects
    and flush when asked to, or always when auto_flush is on.
    """

    def __init__(self, session: Session, model_class: Type[T],
                 event_manager: Optional[EventManager] = None,
                 auto_flush: bool = False,
                 items_per_page: int = 10,
                 object_factory: Optional[Callable[[], T]] = None):
        """
        Initialize repository with database session and model class.

        Args:
            session: SQLAlchemy database session
            model_class: The model class this repository manages
            event_manager: Listener registry, defaults to one targeting model_class
            auto_flush: Flush after every add/remove
            items_per_page: Default page size for find_paginated_by
            object_factory: Callable building new instances, defaults to model_class()
        """
        self.session = session
        self.model_class = model_class
        self.auto_flush = auto_flush
        self.items_per_page = items_per_page
        self.object_factory = object_factory
        self._class_metadata: Optional[ClassMetadata] = None
        self._init_events(event_manager if event_manager is not None else EventManager(model_class))

    def get_class_name(self) -> str:
        """Fully qualified name of the managed class"""
        return f"{self.model_class.__module__}.{self.model_class.__qualname__}"

    @property
    def class_metadata(self) -> ClassMetadata:
        if self._class_metadata is None:
            self._class_metadata = ClassMetadata(self.model_class)
        return self._class_metadata

    def flush(self) -> None:
        """Flush pending changes without committing."""
        self.session.flush()

    # New Objects

    def get_new(self) -> T:
        """
        Get a new instance of the managed class from the object factory.

        Raises:
            ObjectFactoryError: If the factory returns something else
        """
        factory = self.object_factory or self.model_class
        entity = factory()

        if not self._can_be_managed(entity):
            raise ObjectFactoryError(
                f'Object factory must return an instance of {self.get_class_name()}. '
                f'"{describe_type(entity)}" returned'
            )

        return entity

    def find_one_by_or_get_new(self, criteria: Criteria) -> T:
        """Find one entity by criteria, or get a new one when none matches"""
        entity = self.find_one_by(criteria)
        if entity is None:
            entity = self.get_new()
        return entity

    # READ Operations

    def find(self, entity_id: Any) -> Optional[T]:
        """
        Get entity by primary key.

        Args:
            entity_id: Primary key value (a tuple for composite keys)

        Returns:
            Entity instance or None if not found
        """
        return self.session.get(self.model_class, entity_id)

    def find_all(self) -> List[T]:
        return self.session.query(self.model_class).all()

    def find_by(self, criteria: Criteria, order_by: OrderBy = None,
                limit: Optional[int] = None, offset: Optional[int] = None) -> List[T]:
        """
        Find entities matching criteria.

        Args:
            criteria: Field-value pairs; lists mean IN, None means IS NULL
            order_by: Field to SortOrder (or "asc"/"desc") mapping
            limit: Maximum number of results
            offset: Number of results to skip

        Returns:
            List of matching entities
        """
        query = self._apply_order(self._build_query(criteria), order_by)
        if offset is not None:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def find_one_by(self, criteria: Criteria, order_by: OrderBy = None) -> Optional[T]:
        """Find the first entity matching criteria, or None"""
        return self._apply_order(self._build_query(criteria), order_by).first()

    def find_paginated_by(self, criteria: Union[Criteria, Query], order_by: OrderBy = None,
                          items_per_page: Optional[int] = None) -> Paginator:
        """
        Find entities matching criteria, page by page.

        Args:
            criteria: Field-value pairs, or a Query built beforehand
            order_by: Field to SortOrder mapping, applied on top of the query
            items_per_page: Page size, defaults to the repository's

        Returns:
            Paginator over the matching entities

        Raises:
            InvalidCriteriaError: If criteria is neither a mapping nor a Query
        """
        query = self._apply_order(self._criteria_query(criteria), order_by)
        if items_per_page is None:
            items_per_page = self.items_per_page
        return self.get_paginator(QueryAdapter(query), items_per_page)

    def find_paginated_by_or_fail(self, criteria: Union[Criteria, Query], order_by: OrderBy = None,
                                  items_per_page: Optional[int] = None) -> Paginator:
        """
        Same as find_paginated_by, but nothing found is an error.

        Raises:
            NoResultsError: If no entity matches
        """
        paginator = self.find_paginated_by(criteria, order_by, items_per_page)
        if paginator.page_count == 0:
            raise NoResultsError('find_paginated_by did not return any results')
        return paginator

    def count_all(self) -> int:
        return self.count_by({})

    def count_by(self, criteria: Union[Criteria, Query]) -> int:
        """Count entities matching criteria (a mapping or a Query)"""
        return self._criteria_query(criteria).order_by(None).count()

    # Persistence Operations

    def add(self, objects: Union[T, Iterable[T]], flush: bool = False) -> None:
        """Add one or many entities to the session"""
        self._run_session_action('add', objects, flush)

    def remove(self, objects: Any, flush: bool = False) -> None:
        """
        Remove one or many entities.

        Args:
            objects: Entity, iterable of entities, or a primary key to look up
            flush: Flush right away
        """
        if self._is_identifier(objects):
            objects = self.find(objects)

        self._run_session_action('delete', objects, flush)

    def remove_all(self, flush: bool = False) -> None:
        self._run_session_action('delete', self.find_all(), flush)

    def remove_by(self, criteria: Criteria, flush: bool = False) -> None:
        self._run_session_action('delete', self.find_by(criteria), flush)

    def remove_one_by(self, criteria: Criteria, flush: bool = False) -> None:
        self._run_session_action('delete', self.find_one_by(criteria), flush)

    def refresh(self, objects: Union[T, Iterable[T]]) -> None:
        """Reload entities from the database; never flushes"""
        auto_flush = self.auto_flush
        self.auto_flush = False
        try:
            self._run_session_action('refresh', objects, False)
        finally:
            self.auto_flush = auto_flush

    def detach(self, objects: Union[T, Iterable[T]]) -> None:
        """Expunge entities from the session; never flushes"""
        auto_flush = self.auto_flush
        self.auto_flush = False
        try:
            self._run_session_action('expunge', objects, False)
        finally:
            self.auto_flush = auto_flush

    # Magic Methods

    def __getattr__(self, name: str) -> Callable[..., Any]:
        # Only reached for names that aren't regular attributes
        if name.startswith('_'):
            raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")

        magic_method = resolve_magic_method(name)

        def call_magic_method(*args, **kwargs):
            if not args:
                raise MagicMethodArgumentError(
                    f'You need to call {self.get_class_name()}.{name} with a parameter'
                )
            return self._call_supported_method(magic_method.base_method, magic_method.field, args, kwargs)

        call_magic_method.__name__ = name
        return call_magic_method

    def _call_supported_method(self, method: str, field: str, args: tuple, kwargs: Dict[str, Any]) -> Any:
        """
        Dispatch a magic call to its base method.

        Raises:
            UnknownFieldError: If field is not mapped on the managed class
        """
        if not self.class_metadata.has_property(field):
            raise UnknownFieldError(
                f'Invalid call to {self.get_class_name()}.{method}. Field "{field}" does not exist'
            )

        return getattr(self, method)({field: args[0]}, *args[1:], **kwargs)

    # Helper Methods

    def _run_session_action(self, action: str, objects: Any, flush: bool) -> None:
        """
        Run a session method on every object.

        Args:
            action: Session method name (add, delete, refresh, expunge)
            objects: Single object, None, or iterable of objects
            flush: Flush afterwards

        Raises:
            InvalidObjectError: If an object is not of the managed class
        """
        if not self._is_collection(objects):
            objects = [objects]
        objects = [entity for entity in objects if entity is not None]

        session_action = getattr(self.session, action)
        for entity in objects:
            if not self._can_be_managed(entity):
                raise InvalidObjectError(
                    f'Managed object must be a {self.get_class_name()}. "{describe_type(entity)}" given'
                )
            session_action(entity)

        self._flush_objects(objects, flush)

    def _flush_objects(self, objects: List[T], flush: bool) -> None:
        if not (flush or self.auto_flush):
            return

        try:
            self.session.flush()
            logger.debug(f"Flushed {len(objects)} {self.model_class.__name__} entities")
        except SQLAlchemyError as e:
            logger.error(f"Error flushing {self.model_class.__name__}: {e}")
            raise

    def _can_be_managed(self, entity: Any) -> bool:
        return isinstance(entity, self.model_class)

    def _is_collection(self, objects: Any) -> bool:
        if isinstance(objects, (str, bytes, Mapping)) or self._can_be_managed(objects):
            return False
        try:
            iter(objects)
        except TypeError:
            return False
        return True

    def _is_identifier(self, objects: Any) -> bool:
        # Tuples are composite primary keys, never collections of entities
        return isinstance(objects, IDENTIFIER_TYPES)

    def _criteria_query(self, criteria: Union[Criteria, Query]) -> Query:
        if isinstance(criteria, Query):
            return criteria
        if isinstance(criteria, Mapping):
            return self._build_query(criteria)
        raise InvalidCriteriaError(
            f'Criteria must be a dict of field values or a sqlalchemy.orm.Query. '
            f'"{describe_type(criteria)}" given'
        )

    def _get_field(self, name: str) -> Any:
        if not self.class_metadata.has_property(name):
            raise UnknownFieldError(
                f'Field "{name}" does not exist on {self.get_class_name()}'
            )
        return getattr(self.model_class, name)

    def _build_query(self, criteria: Optional[Criteria] = None) -> Query:
        """
        Build a query with filters.

        Args:
            criteria: Dictionary of filters to apply

        Returns:
            SQLAlchemy Query object
        """
        query = self.session.query(self.model_class)

        for field, value in (criteria or {}).items():
            column = self._get_field(field)
            if self.class_metadata.has_association(field):
                query = query.filter(self._association_filter(field, column, value))
            elif isinstance(value, (list, tuple, set, frozenset)):
                # Handle IN clause
                query = query.filter(column.in_(list(value)))
            elif value is None:
                # Handle NULL check
                query = query.filter(column.is_(None))
            else:
                # Handle equality
                query = query.filter(column == value)

        return query

    def _association_filter(self, field: str, column: Any, value: Any) -> Any:
        """
        Filter on a relationship.

        Collections match when they contain the related object (any of them
        for a list of objects, an empty collection for None). Relationships
        have no IN operator, so a list becomes an OR of single comparisons.
        """
        is_collection = self.class_metadata.is_collection_association(field)

        if isinstance(value, (list, tuple, set, frozenset)):
            if not value:
                return false()
            if is_collection:
                return or_(*[column.contains(related) for related in value])
            return or_(*[column == related for related in value])

        if is_collection:
            return ~column.any() if value is None else column.contains(value)
        # Many-to-one == None renders IS NULL on the foreign key
        return column == value

    def _apply_order(self, query: Query, order_by: OrderBy) -> Query:
        for field, order in (order_by or {}).items():
            column = self._get_field(field)
            query = query.order_by(desc(column) if SortOrder.parse(order) == SortOrder.DESC else asc(column))
        return query

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.model_class.__name__}>"
