"""
Repository Layer - Data Access Abstraction
Generic SQLAlchemy repositories with magic finders, bulk persistence,
pagination and event listener suppression
"""

from .base_repository import (
    BaseRepository,
    PaginationParams,
    PaginatedResult,
    SortOrder
)
from .events import EventManager, EventSubscriber, Listener
from .exceptions import (
    RepositoryError,
    UndefinedMethodError,
    MagicMethodArgumentError,
    UnknownFieldError,
    InvalidObjectError,
    ObjectFactoryError,
    InvalidCriteriaError,
    InvalidListenerError,
    InvalidSubscriberError,
    NoResultsError
)
from .factory import RepositoryFactory
from .metadata import ClassMetadata
from .pagination import Paginator, QueryAdapter, SequenceAdapter

__all__ = [
    'BaseRepository',
    'PaginationParams',
    'PaginatedResult',
    'SortOrder',
    'EventManager',
    'EventSubscriber',
    'Listener',
    'RepositoryError',
    'UndefinedMethodError',
    'MagicMethodArgumentError',
    'UnknownFieldError',
    'InvalidObjectError',
    'ObjectFactoryError',
    'InvalidCriteriaError',
    'InvalidListenerError',
    'InvalidSubscriberError',
    'NoResultsError',
    'RepositoryFactory',
    'ClassMetadata',
    'Paginator',
    'QueryAdapter',
    'SequenceAdapter'
]
