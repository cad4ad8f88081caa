"""initial burnbook schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

post_kind = sa.Enum("POST", "COMMENT", name="postkind")
entity_type = sa.Enum("COMPANY", "PRODUCT", "FEATURE", name="entitytype")
sentiment_label = sa.Enum("POSITIVE", "NEGATIVE", "NEUTRAL", "MIXED", name="sentimentlabel")
job_status = sa.Enum("PENDING", "PROCESSING", "COMPLETED", "FAILED", name="jobstatus")


def upgrade() -> None:
    op.create_table(
        "reddit_posts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("reddit_id", sa.String(32), nullable=False),
        sa.Column("subreddit", sa.String(255), nullable=False, server_default=""),
        sa.Column("title", sa.String(500), nullable=True),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("author", sa.String(255), nullable=True),
        sa.Column("url", sa.String(1000), nullable=False),
        sa.Column("post_type", post_kind, nullable=False),
        sa.Column("score", sa.Integer(), nullable=True),
        sa.Column("num_comments", sa.Integer(), nullable=True),
        sa.Column("created_utc", sa.DateTime(), nullable=True),
        sa.Column("ingested_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_reddit_posts_reddit_id", "reddit_posts", ["reddit_id"], unique=True)

    op.create_table(
        "entities",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("normalized_name", sa.String(255), nullable=False),
        sa.Column("entity_type", entity_type, nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("aliases", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("normalized_name", "entity_type", name="uq_entity_normalized_name_type"),
    )
    op.create_index("ix_entities_normalized_name", "entities", ["normalized_name"])
    op.create_index("ix_entities_entity_type", "entities", ["entity_type"])

    op.create_table(
        "sentiment_analysis",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("post_id", sa.Uuid(), sa.ForeignKey("reddit_posts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("entity_id", sa.Uuid(), sa.ForeignKey("entities.id", ondelete="CASCADE"), nullable=False),
        sa.Column("sentiment", sentiment_label, nullable=False),
        sa.Column("confidence", sa.Float(), nullable=False),
        sa.Column("sentiment_score", sa.Float(), nullable=False),
        sa.Column("key_phrases", sa.JSON(), nullable=True),
        sa.Column("analysis_metadata", sa.JSON(), nullable=True),
        sa.Column("analyzed_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("post_id", "entity_id", name="uq_sentiment_post_entity"),
    )
    op.create_index("ix_sentiment_analysis_post_id", "sentiment_analysis", ["post_id"])
    op.create_index("ix_sentiment_analysis_entity_id", "sentiment_analysis", ["entity_id"])
    op.create_index("ix_sentiment_analysis_analyzed_at", "sentiment_analysis", ["analyzed_at"])

    op.create_table(
        "sentiment_summary",
        sa.Column("entity_id", sa.Uuid(), sa.ForeignKey("entities.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("entity_name", sa.String(255), nullable=False),
        sa.Column("entity_type", entity_type, nullable=False),
        sa.Column("total_mentions", sa.Integer(), nullable=False),
        sa.Column("positive_count", sa.Integer(), nullable=False),
        sa.Column("negative_count", sa.Integer(), nullable=False),
        sa.Column("neutral_count", sa.Integer(), nullable=False),
        sa.Column("mixed_count", sa.Integer(), nullable=False),
        sa.Column("avg_sentiment_score", sa.Float(), nullable=False),
        sa.Column("avg_confidence", sa.Float(), nullable=False),
        sa.Column("refreshed_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_sentiment_summary_entity_type", "sentiment_summary", ["entity_type"])

    op.create_table(
        "ingestion_jobs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("url", sa.String(1000), nullable=False),
        sa.Column("status", job_status, nullable=False),
        sa.Column("posts_found", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("posts_analyzed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_ingestion_jobs_status", "ingestion_jobs", ["status"])

    op.create_table(
        "nl_queries",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("answer", sa.Text(), nullable=True),
        sa.Column("context_entities", sa.JSON(), nullable=True),
        sa.Column("sources", sa.JSON(), nullable=True),
        sa.Column("response_time_ms", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_nl_queries_created_at", "nl_queries", ["created_at"])


def downgrade() -> None:
    op.drop_table("nl_queries")
    op.drop_table("ingestion_jobs")
    op.drop_table("sentiment_summary")
    op.drop_table("sentiment_analysis")
    op.drop_table("entities")
    op.drop_table("reddit_posts")
    for enum_type in (job_status, sentiment_label, entity_type, post_kind):
        enum_type.drop(op.get_bind(), checkfirst=True)
