# extensions.py

from typing import Dict, Optional, Type
from flask import Flask, current_app, g
from flask_sqlalchemy import SQLAlchemy

from logging_config import get_logger
from repositories.base_repository import BaseRepository
from repositories.events import EventManager
from repositories.factory import RepositoryFactory

logger = get_logger(__name__)

# This is the single source of truth for the db object.
# It's initialized here, but not yet connected to a Flask app.
db = SQLAlchemy()


class RepositoryManager:
    """
    Flask extension handing out repositories bound to db.session.

    A RepositoryFactory is built once per app context; event managers live
    on the extension so listeners survive across requests.
    """

    def __init__(self, app: Optional[Flask] = None, db: Optional[SQLAlchemy] = None):
        self.db = db
        self.repository_classes: Dict[Type, Type[BaseRepository]] = {}
        self.event_managers: Dict[object, EventManager] = {}
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """Register the extension and its configuration defaults"""
        app.config.setdefault('REPOSITORY_AUTO_FLUSH', False)
        app.config.setdefault('REPOSITORY_ITEMS_PER_PAGE', 10)
        app.extensions['repositories'] = self
        logger.info(
            "Repository manager initialized",
            app=app.name,
            auto_flush=app.config['REPOSITORY_AUTO_FLUSH'],
            items_per_page=app.config['REPOSITORY_ITEMS_PER_PAGE']
        )

    def register(self, model_class: Type, repository_class: Type[BaseRepository]) -> None:
        """Use a custom repository class for a model"""
        self.repository_classes[model_class] = repository_class

    def get_event_manager(self, model_class: Type) -> EventManager:
        if model_class not in self.event_managers:
            self.event_managers[model_class] = EventManager(model_class)
        return self.event_managers[model_class]

    def get_factory(self) -> RepositoryFactory:
        """Repository factory for the current app context"""
        # Keyed by extension instance, several managers may share an app context
        factories = g.setdefault('repository_factories', {})
        if self not in factories:
            factories[self] = RepositoryFactory.from_config(
                (self.db if self.db is not None else db).session,
                current_app.config,
                repository_classes=self.repository_classes,
                event_managers=self.event_managers
            )
            logger.debug("Repository factory created for app context")
        return factories[self]

    def get_repository(self, model_class: Type) -> BaseRepository:
        return self.get_factory().get_repository(model_class)


repository_manager = RepositoryManager(db=db)
