"""
可用性索引 - 判断资源在某区间内是否已被占用
纯查询，无副作用
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from resortpms.exceptions import InvalidDateRange
from resortpms.services.reservation_repository import ReservationRepository
from resortpms.services.reservation_utils import Instant, parse_instant


@dataclass
class ReservationConflict:
    """冲突预订摘要"""
    reservation_id: str
    resource_id: str
    check_in: datetime
    check_out: datetime
    guest_name: str


def resolve_interval(check_in: Instant, check_out: Instant) -> Tuple[datetime, datetime]:
    """解析并校验区间，非法时抛出 InvalidDateRange"""
    start = parse_instant(check_in)
    end = parse_instant(check_out)
    if start is None or end is None or end <= start:
        raise InvalidDateRange()
    return start, end


class AvailabilityService:
    """可用性服务"""

    def __init__(self, repository: ReservationRepository):
        self.repository = repository

    def find_conflicts(
        self,
        resource_id: str,
        check_in: Instant,
        check_out: Instant,
        exclude_id: Optional[str] = None
    ) -> List[ReservationConflict]:
        """查找与请求区间重叠的未取消预订；exclude_id 对应的预订不计入"""
        start, end = resolve_interval(check_in, check_out)
        conflicts = self.repository.find_conflicts(resource_id, start, end, exclude_id)
        return [
            ReservationConflict(
                reservation_id=r.id,
                resource_id=r.resource_id,
                check_in=r.check_in,
                check_out=r.check_out,
                guest_name=r.guest_name
            )
            for r in conflicts
        ]

    def is_available(
        self,
        resource_id: str,
        check_in: Instant,
        check_out: Instant,
        exclude_id: Optional[str] = None
    ) -> bool:
        return not self.find_conflicts(resource_id, check_in, check_out, exclude_id)
