"""Table definitions for the two bill collections.

Only used to bootstrap a fresh database (``CREATE TABLE IF NOT EXISTS``); the
repositories talk to these tables through plain SQL.
"""

import sqlalchemy as sa
from sqlalchemy.dialects import mysql

metadata = sa.MetaData()

# MySQL DATETIME defaults to whole seconds; keep microseconds so that two
# updates within one second still produce distinct timestamps.
Timestamp = sa.DateTime().with_variant(mysql.DATETIME(fsp=6), "mysql")
Money = sa.Numeric(10, 2)


def _bill_columns() -> list[sa.Column]:
    return [
        sa.Column("estimate_no", sa.String(50), nullable=False),
        sa.Column("customer_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("customer_phone", sa.String(50), nullable=False, server_default=""),
        sa.Column("bill_date", sa.Date, nullable=True),
        sa.Column("items", sa.JSON, nullable=True),
        sa.Column("sub_total", Money, nullable=False, server_default="0"),
        sa.Column("discount", Money, nullable=False, server_default="0"),
        sa.Column("grand_total", Money, nullable=False, server_default="0"),
        sa.Column("received", Money, nullable=False, server_default="0"),
        sa.Column("balance", Money, nullable=False, server_default="0"),
        sa.Column("amount_words", sa.String(255), nullable=False, server_default=""),
        sa.Column("user_id", sa.String(100), nullable=False),
    ]


bills = sa.Table(
    "bills",
    metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    *_bill_columns(),
    sa.Column("created_at", Timestamp, nullable=False),
    sa.Column("updated_at", Timestamp, nullable=False),
    sa.Index("ix_bills_user_estimate", "user_id", "estimate_no"),
)

deleted_bills = sa.Table(
    "deleted_bills",
    metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("original_bill_id", sa.Integer, nullable=True),
    *_bill_columns(),
    sa.Column("created_at", Timestamp, nullable=True),
    sa.Column("deleted_at", Timestamp, nullable=False),
    sa.Index("ix_deleted_bills_user_deleted", "user_id", "deleted_at"),
)
