"""问答生成器"""
from abc import ABC, abstractmethod
from typing import List, Optional

from burnbook.analyzers.base import run_with_fallback
from burnbook.analyzers.context import QueryContext, SummaryRow
from burnbook.analyzers.llm_client import LLMClient
from burnbook.exceptions import ProviderUnavailable
from prompts.analysis_prompts import ANSWER_SYSTEM_PROMPT, build_answer_user_prompt

SENTIMENT_KEYWORDS = ("sentiment", "feel", "think")
FEATURE_KEYWORDS = ("feature", "request")
PRODUCT_KEYWORDS = ("product", "compare")


class AnswerGenerator(ABC):
    """问答能力接口"""

    @abstractmethod
    async def generate(self, question: str, context: QueryContext) -> str:
        pass


class LLMAnswerGenerator(AnswerGenerator):
    def __init__(self, llm: Optional[LLMClient] = None):
        self.llm = llm or LLMClient()

    def _build_prompt(self, question: str, context: QueryContext) -> str:
        summary_lines = [
            f"{s.entity_name} ({s.entity_type}): {s.total_mentions} mentions, "
            f"{s.positive_count} positive, {s.negative_count} negative"
            for s in context.summary
        ]
        post_lines = []
        for record in context.samples:
            body = (record.body or "")[:200]
            post_lines.append(
                f'- [{record.sentiment}] {record.entity_name or "Unknown"}: "{record.title or ""} {body}"'
            )
        return build_answer_user_prompt(question, summary_lines, post_lines)

    async def generate(self, question: str, context: QueryContext) -> str:
        if not self.llm.is_configured:
            raise ProviderUnavailable("LLM answer provider is not configured")

        messages = [
            {"role": "system", "content": ANSWER_SYSTEM_PROMPT},
            {"role": "user", "content": self._build_prompt(question, context)},
        ]
        try:
            answer = await self.llm.chat(messages, temperature=0.7, max_tokens=500)
        except Exception as e:
            raise ProviderUnavailable(f"LLM answer request failed: {e}") from e

        answer = (answer or "").strip()
        if not answer:
            raise ProviderUnavailable("LLM returned an empty answer")
        return answer


class TemplateAnswerGenerator(AnswerGenerator):
    """按问题中的关键词类别选择模板，插入汇总占比；永不失败"""

    async def generate(self, question: str, context: QueryContext) -> str:
        return self.generate_sync(question, context)

    def generate_sync(self, question: str, context: QueryContext) -> str:
        lower_question = (question or "").lower()
        stats = context.stats()

        if stats.total_mentions == 0:
            return (
                "There is no analyzed sentiment data yet, so I can't answer this question. "
                "Submit a Reddit URL for analysis and ask again once the ingestion job completes."
            )

        if any(k in lower_question for k in SENTIMENT_KEYWORDS):
            return self._sentiment_overview(stats)

        if any(k in lower_question for k in FEATURE_KEYWORDS):
            features = [s for s in context.summary if s.entity_type == "feature"]
            if features:
                return self._feature_focus(features)

        if any(k in lower_question for k in PRODUCT_KEYWORDS):
            products = [s for s in context.summary if s.entity_type == "product"]
            if products:
                return self._product_comparison(products)

        return self._generic_overview(stats, context.summary)

    def _sentiment_overview(self, stats) -> str:
        tone = "mostly positive" if stats.positive_percent > stats.negative_percent else "mixed"
        if stats.positive_percent > 60:
            recommendation = (
                "Users are generally satisfied. Continue the current direction and consider "
                "highlighting these positive aspects in marketing."
            )
        else:
            recommendation = (
                "There are opportunities for improvement. Consider addressing the negative "
                "feedback themes in your next sprint."
            )
        return (
            f"Based on the analyzed Reddit posts, the overall sentiment is {tone}.\n\n"
            f"**Key Insights:**\n"
            f"- {stats.positive_percent}% of mentions are positive\n"
            f"- {stats.negative_percent}% of mentions are negative\n"
            f"- Total mentions analyzed: {stats.total_mentions}\n\n"
            f"**Recommendations:**\n{recommendation}"
        )

    def _feature_focus(self, features: List[SummaryRow]) -> str:
        lines = "\n".join(
            f"- {f.entity_name}: {f.total_mentions} mentions "
            f"({f.positive_count} positive, {f.negative_count} negative)"
            for f in features
        )
        return (
            "Based on Reddit discussions, here are the feature-related insights:\n\n"
            f"**Most Discussed Features:**\n{lines}\n\n"
            "**Recommendation:** Focus on improving features with high mention counts "
            "but lower positive ratios."
        )

    def _product_comparison(self, products: List[SummaryRow]) -> str:
        lines = "\n".join(
            f"**{p.entity_name}:** {p.total_mentions} mentions, "
            f"sentiment score: {round(p.avg_sentiment_score * 100)}%"
            for p in products
        )
        return (
            f"**Product Sentiment Analysis:**\n\n{lines}\n\n"
            f"**Key Takeaway:** {products[0].entity_name} has the most engagement. "
            "Monitor trends over time for actionable insights."
        )

    def _generic_overview(self, stats, summary: List[SummaryRow]) -> str:
        top = "\n".join(
            f"- {s.entity_name} ({s.entity_type}): {s.total_mentions} mentions"
            for s in summary[:3]
        )
        return (
            f"Based on {stats.total_mentions} analyzed Reddit mentions:\n\n"
            f"**Sentiment Overview:**\n"
            f"- Positive: {stats.positive_percent}%\n"
            f"- Negative: {stats.negative_percent}%\n"
            f"- Neutral: {stats.neutral_percent}%\n\n"
            f"**Top Entities Discussed:**\n{top}\n\n"
            "For more specific insights, try asking about:\n"
            '- "What do users think about [specific feature]?"\n'
            '- "Compare sentiment across products"\n'
            '- "What features are users requesting?"'
        )


class FallbackAnswerGenerator(AnswerGenerator):
    def __init__(
        self,
        primary: Optional[AnswerGenerator] = None,
        fallback: Optional[AnswerGenerator] = None,
    ):
        self.primary = primary or LLMAnswerGenerator()
        self.fallback = fallback or TemplateAnswerGenerator()

    async def generate(self, question: str, context: QueryContext) -> str:
        return await run_with_fallback(
            "answer",
            lambda: self.primary.generate(question, context),
            lambda: self.fallback.generate(question, context),
        )
