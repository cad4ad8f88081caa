"""查询上下文数据结构"""
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass
class SummaryRow:
    """单个实体的情感汇总"""
    entity_id: object
    entity_name: str
    entity_type: str
    total_mentions: int = 0
    positive_count: int = 0
    negative_count: int = 0
    neutral_count: int = 0
    mixed_count: int = 0
    avg_sentiment_score: float = 0.0
    avg_confidence: float = 0.0


@dataclass
class SampleRecord:
    """最近分析的一条 (帖子, 实体) 情感记录"""
    post_id: str
    entity_name: str
    entity_type: str
    sentiment: str
    sentiment_score: float
    confidence: float
    title: Optional[str] = None
    body: Optional[str] = None
    subreddit: str = ""
    analyzed_at: Optional[datetime] = None


@dataclass
class AggregateStats:
    total_mentions: int = 0
    positive_percent: int = 0
    negative_percent: int = 0
    neutral_percent: int = 0


@dataclass
class QueryContext:
    summary: List[SummaryRow] = field(default_factory=list)
    samples: List[SampleRecord] = field(default_factory=list)

    def stats(self) -> AggregateStats:
        return aggregate_stats(self.summary)


def _percent(count: int, total: int) -> int:
    if total <= 0:
        return 0
    # 四舍五入（半数向上）
    return int(math.floor(count * 100 / total + 0.5))


def aggregate_stats(rows: List[SummaryRow]) -> AggregateStats:
    """汇总所有实体的提及数与情感占比，总数为0时占比全为0"""
    total = sum(r.total_mentions for r in rows)
    positive = sum(r.positive_count for r in rows)
    negative = sum(r.negative_count for r in rows)
    neutral = sum(r.neutral_count for r in rows)
    return AggregateStats(
        total_mentions=total,
        positive_percent=_percent(positive, total),
        negative_percent=_percent(negative, total),
        neutral_percent=_percent(neutral, total),
    )
