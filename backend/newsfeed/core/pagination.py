"""
Partitioning and paging of the merged record set.
"""
from __future__ import annotations

import math
from typing import Dict, List, Optional

from newsfeed.schemas import Kind, PageObject, Record


def filter_records(
    records: List[Record],
    kind: Optional[Kind] = None,
    category: Optional[str] = None,
) -> List[Record]:
    """
    Filter records by kind and category.

    Args:
        records: Records to filter (not modified)
        kind: "news" or "social"; None keeps both
        category: Category name; None or "all" keeps every category

    Returns:
        Matching records in their original order
    """
    return [
        record
        for record in records
        if (kind is None or record.kind == kind)
        and (not category or category == "all" or record.category == category)
    ]


def partition(records: List[Record]) -> Dict[str, List[Record]]:
    """Split records into ``news`` and ``social`` groups, preserving order."""
    groups: Dict[str, List[Record]] = {"news": [], "social": []}
    for record in records:
        groups[record.kind].append(record)
    return groups


def paginate(records: List[Record], page: int = 1, page_size: int = 10) -> PageObject:
    """
    Slice one page out of a record list.

    Args:
        records: Full (already filtered) record list
        page: 1-based page number; pages past the end are empty
        page_size: Items per page

    Returns:
        PageObject with the page items and paging metadata

    Raises:
        ValueError: If page or page_size is below 1
    """
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")

    total = len(records)
    total_pages = math.ceil(total / page_size)
    start = (page - 1) * page_size

    return PageObject(
        items=records[start:start + page_size],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        has_next_page=page < total_pages,
        has_prev_page=page > 1,
    )
