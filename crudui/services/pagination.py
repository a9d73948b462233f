# crudui/services/pagination.py
import math
from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class PageInfo:
    page: int
    page_size: Optional[int]
    total_records: int

    @property
    def total_pages(self) -> int:
        if not self.page_size:
            return 1 if self.total_records else 0
        return math.ceil(self.total_records / self.page_size)

    @property
    def offset(self) -> int:
        if not self.page_size:
            return 0
        return (self.page - 1) * self.page_size

    @property
    def start_record(self) -> int:
        if self.total_records == 0 or self.offset >= self.total_records:
            return 0
        return self.offset + 1

    @property
    def end_record(self) -> int:
        if self.start_record == 0:
            return 0
        if not self.page_size:
            return self.total_records
        return min(self.page * self.page_size, self.total_records)

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def page_window(info: PageInfo, radius: int = 2) -> List[Optional[int]]:
    """
    Page numbers to link, with None marking an ellipsis gap.

    The window is the current page +/- radius, always framed by the first and
    last page: for page 5 of 10 this gives [1, None, 3, 4, 5, 6, 7, None, 10].
    """
    total = info.total_pages
    if total <= 1:
        return []

    current = min(max(info.page, 1), total)
    start = max(1, current - radius)
    end = min(total, current + radius)

    pages: List[Optional[int]] = []
    if start > 1:
        pages.append(1)
        if start > 2:
            pages.append(None)
    pages.extend(range(start, end + 1))
    if end < total:
        if end < total - 1:
            pages.append(None)
        pages.append(total)
    return pages
