"""EntityTypeConfigRecord SQLAlchemy model

One row per originating-entity type. Holds the field paths used to find the
recipient and the upload limits applied on the portal.
"""

from sqlalchemy import CheckConstraint, Column, Text, Boolean, Integer, BigInteger

from .base import Base, PortableJSONB, TimestampMixin


class EntityTypeConfigRecord(TimestampMixin, Base):
    """Administrative configuration for one originating-entity type.

    Field paths are dot-separated relationship traversals (e.g.
    "contact.email"). They are stored verbatim and parsed at resolution time.
    """
    __tablename__ = "entity_type_config"
    __table_args__ = (
        CheckConstraint("default_expiration_days > 0", name="ck_entity_type_config_expiration"),
        CheckConstraint("max_file_size_bytes > 0", name="ck_entity_type_config_max_size"),
        CheckConstraint("max_files_per_upload > 0", name="ck_entity_type_config_max_files"),
    )

    type_id = Column(Text, primary_key=True)
    is_active = Column(Boolean, nullable=False, default=True)
    recipient_email_path = Column(Text, nullable=True)
    recipient_name_path = Column(Text, nullable=True)
    recipient_ref_path = Column(Text, nullable=True)
    default_expiration_days = Column(Integer, nullable=False, default=7)
    max_file_size_bytes = Column(BigInteger, nullable=False, default=5 * 1024 * 1024)
    max_files_per_upload = Column(Integer, nullable=False, default=10)
    allowed_extensions = Column(PortableJSONB, nullable=False, default=list)
    quick_action_label = Column(Text, nullable=True)
    notification_template_id = Column(Text, nullable=True)
