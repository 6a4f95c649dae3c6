"""
Class Metadata - Field and association lookups for mapped classes
"""

from typing import List, Type

from sqlalchemy import inspect


class ClassMetadata:
    """Thin wrapper over the SQLAlchemy mapper of a model class"""

    def __init__(self, model_class: Type):
        # Raises NoInspectionAvailable for classes that aren't mapped
        self.model_class = model_class
        self.mapper = inspect(model_class)

    @property
    def class_name(self) -> str:
        return f"{self.model_class.__module__}.{self.model_class.__qualname__}"

    @property
    def field_names(self) -> List[str]:
        """Names of mapped column attributes"""
        return [attr.key for attr in self.mapper.column_attrs]

    @property
    def association_names(self) -> List[str]:
        """Names of relationships"""
        return [rel.key for rel in self.mapper.relationships]

    def has_field(self, name: str) -> bool:
        return name in self.field_names

    def has_association(self, name: str) -> bool:
        return name in self.association_names

    def is_collection_association(self, name: str) -> bool:
        """True for one-to-many and many-to-many relationships"""
        return self.has_association(name) and self.mapper.relationships[name].uselist

    def has_property(self, name: str) -> bool:
        """Check if name is either a mapped field or an association"""
        return self.has_field(name) or self.has_association(name)
