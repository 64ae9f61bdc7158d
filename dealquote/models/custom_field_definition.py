"""CustomFieldDefinition model for per-entity custom form fields."""
import enum
import uuid
from sqlalchemy import Column, String, Integer, Boolean, DateTime, JSON, UniqueConstraint
from sqlalchemy.sql import func
from dealquote.database import Base
from dealquote.exceptions import ValidationError


class CustomFieldEntityType(enum.Enum):
    """Entities that can carry custom fields."""
    DEAL = "DEAL"
    LEAD = "LEAD"
    ORGANIZATION = "ORGANIZATION"
    PERSON = "PERSON"

    @classmethod
    def parse(cls, value, field='entity_type'):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValidationError(field, f"unknown entity type '{value}'")


class CustomFieldType(enum.Enum):
    """Supported custom field types."""
    TEXT = "TEXT"
    TEXT_AREA = "TEXT_AREA"
    NUMBER = "NUMBER"
    BOOLEAN = "BOOLEAN"
    DATE = "DATE"
    DROPDOWN = "DROPDOWN"
    MULTI_SELECT = "MULTI_SELECT"

    @classmethod
    def parse(cls, value, field='field_type'):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValidationError(field, f"unknown field type '{value}'")

    @property
    def has_options(self):
        return self in (CustomFieldType.DROPDOWN, CustomFieldType.MULTI_SELECT)


class CustomFieldDefinition(Base):
    """
    Custom field definition.

    ``field_name`` is the stable key under which entity values are stored and
    is unique per entity type. Field name and type cannot change after
    creation; deactivating a definition hides it without losing values.
    """

    __tablename__ = 'custom_field_definition'
    __table_args__ = (
        UniqueConstraint('entity_type', 'field_name', name='uq_custom_field_entity_name'),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    entity_type = Column(String(20), nullable=False)
    field_name = Column(String(100), nullable=False)
    field_label = Column(String(255), nullable=False)
    field_type = Column(String(20), nullable=False)
    is_required = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    display_order = Column(Integer, nullable=False, default=0)
    dropdown_options = Column(JSON, nullable=True)  # [{value, label}]
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<CustomFieldDefinition(id='{self.id}', entity='{self.entity_type}', name='{self.field_name}', type='{self.field_type}')>"

    @property
    def option_values(self):
        return {opt['value'] for opt in (self.dropdown_options or [])}

    def to_dict(self):
        return {
            'id': self.id,
            'entity_type': self.entity_type,
            'field_name': self.field_name,
            'field_label': self.field_label,
            'field_type': self.field_type,
            'is_required': self.is_required,
            'is_active': self.is_active,
            'display_order': self.display_order,
            'dropdown_options': self.dropdown_options,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
