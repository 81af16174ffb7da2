"""Balance summary package."""

from prismsplit.queries.summaries import group_summaries, member_balances

__all__ = ["group_summaries", "member_balances"]
