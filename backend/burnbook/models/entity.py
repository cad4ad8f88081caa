"""实体模型（公司/产品/功能）"""
import enum
import uuid

from sqlalchemy import Column, String, DateTime, Enum, Text, JSON, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship

from burnbook.database import Base
from burnbook.utils.timeutils import utcnow


class EntityType(str, enum.Enum):
    """实体类型枚举"""
    COMPANY = "company"
    PRODUCT = "product"
    FEATURE = "feature"


class Entity(Base):
    """被追踪实体表，(normalized_name, entity_type) 唯一"""
    __tablename__ = "entities"
    __table_args__ = (
        UniqueConstraint("normalized_name", "entity_type", name="uq_entity_normalized_name_type"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    normalized_name = Column(String(255), nullable=False, index=True)
    entity_type = Column(Enum(EntityType), nullable=False, index=True)

    description = Column(Text, nullable=True)
    aliases = Column(JSON, default=list)

    created_at = Column(DateTime, default=utcnow)

    sentiments = relationship("SentimentRecord", back_populates="entity", cascade="all, delete-orphan")
