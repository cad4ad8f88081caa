"""Reddit帖子模型"""
import enum
import uuid

from sqlalchemy import Column, String, Integer, DateTime, Enum, Text, Uuid
from sqlalchemy.orm import relationship

from burnbook.database import Base
from burnbook.utils.timeutils import utcnow


class PostKind(str, enum.Enum):
    """内容类型枚举"""
    POST = "post"
    COMMENT = "comment"


class Post(Base):
    """Reddit帖子/评论表，reddit_id 为冲突键"""
    __tablename__ = "reddit_posts"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    reddit_id = Column(String(32), nullable=False, unique=True, index=True)

    subreddit = Column(String(255), nullable=False, default="")
    title = Column(String(500), nullable=True)
    body = Column(Text, nullable=True)
    author = Column(String(255), nullable=True)
    url = Column(String(1000), nullable=False)
    post_type = Column(Enum(PostKind), nullable=False, default=PostKind.POST)

    score = Column(Integer, default=0)
    num_comments = Column(Integer, default=0)

    created_utc = Column(DateTime, nullable=True)
    ingested_at = Column(DateTime, default=utcnow, nullable=False)

    sentiments = relationship("SentimentRecord", back_populates="post", cascade="all, delete-orphan")
