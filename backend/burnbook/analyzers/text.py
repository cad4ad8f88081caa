"""文本预处理：构建待分析文本"""
from typing import Optional

from burnbook.collectors.base import FetchedPost

MIN_TEXT_LENGTH = 10


def build_analysis_text(post: FetchedPost, min_length: int = MIN_TEXT_LENGTH) -> Optional[str]:
    """标题与正文以单个空格拼接，过短时返回 None（跳过分析，不算错误）"""
    parts = [p.strip() for p in (post.title, post.body) if p and p.strip()]
    text = " ".join(parts)
    if len(text) < min_length:
        return None
    return text
