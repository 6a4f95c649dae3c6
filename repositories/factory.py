"""
Repository Factory - Builds and caches repositories for a session
"""

from typing import Any, Dict, Optional, Type
from sqlalchemy.orm import Session
import logging

from repositories.base_repository import BaseRepository
from repositories.events import EventManager

logger = logging.getLogger(__name__)

TRUE_STRINGS = ("1", "true", "yes", "on")


def as_bool(value: Any) -> bool:
    """Config flag to bool; strings such as "false" or "0" are false"""
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return bool(value)


class RepositoryFactory:
    """
    One repository per model class for a session.

    The repository class is picked from repository_classes, then from the
    model's __repository_class__ attribute, then BaseRepository. Event
    managers are per model class and can be shared between factories, so
    listeners registered once stay visible to every repository of the class.
    """

    def __init__(self, session: Session,
                 auto_flush: bool = False,
                 items_per_page: int = 10,
                 repository_classes: Optional[Dict[Type, Type[BaseRepository]]] = None,
                 event_managers: Optional[Dict[Any, EventManager]] = None):
        self.session = session
        self.auto_flush = auto_flush
        self.items_per_page = items_per_page
        self.repository_classes = dict(repository_classes or {})
        self.event_managers = event_managers if event_managers is not None else {}
        self._repositories: Dict[Type, BaseRepository] = {}

    @classmethod
    def from_config(cls, session: Session, config: Any, **kwargs) -> 'RepositoryFactory':
        """
        Build a factory from a config object or mapping.

        Reads REPOSITORY_AUTO_FLUSH and REPOSITORY_ITEMS_PER_PAGE.
        """
        if isinstance(config, dict):
            get = config.get
        else:
            def get(key, default=None):
                return getattr(config, key, default)

        return cls(
            session,
            auto_flush=as_bool(get('REPOSITORY_AUTO_FLUSH', False)),
            items_per_page=int(get('REPOSITORY_ITEMS_PER_PAGE', 10)),
            **kwargs
        )

    def get_event_manager(self, target: Any) -> EventManager:
        if target not in self.event_managers:
            self.event_managers[target] = EventManager(target)
        return self.event_managers[target]

    def get_repository_class(self, model_class: Type) -> Type[BaseRepository]:
        if model_class in self.repository_classes:
            return self.repository_classes[model_class]
        return getattr(model_class, '__repository_class__', None) or BaseRepository

    def get_repository(self, model_class: Type) -> BaseRepository:
        """
        Get the repository for a model class, building it on first use.

        Args:
            model_class: Mapped class

        Returns:
            Repository bound to this factory's session
        """
        if model_class not in self._repositories:
            repository_class = self.get_repository_class(model_class)
            self._repositories[model_class] = repository_class(
                self.session,
                model_class,
                event_manager=self.get_event_manager(model_class),
                auto_flush=self.auto_flush,
                items_per_page=self.items_per_page
            )
            logger.debug(f"Created {repository_class.__name__} for {model_class.__name__}")

        return self._repositories[model_class]

    def clear(self) -> None:
        """Forget cached repositories; event managers are kept"""
        self._repositories.clear()
