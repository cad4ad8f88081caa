"""时间工具"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """当前UTC时间（naive，与数据库DateTime列保持一致）"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
