"""
资源级互斥锁

冲突检查与随后的写入必须作为一个原子单元执行，否则两个并发请求
可能同时看到"无冲突"而造成重复预订。

- 进程内：每个 resource_id 一把 threading.Lock
- PostgreSQL：额外获取事务级 advisory lock，多进程部署同样串行化
"""
from contextlib import contextmanager
from typing import Dict, Iterator
import logging
import threading

from sqlalchemy import text
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class ResourceLockRegistry:
    """
    按资源 ID 分配互斥锁

    锁在进程生命周期内保留，不会回收；资源目录是有限集合（房间、桌位、场地），
    锁表大小以资源数量为上限。
    """

    def __init__(self):
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def get_lock(self, resource_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(resource_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[resource_id] = lock
            return lock

    @contextmanager
    def hold(self, db: Session, resource_id: str) -> Iterator[None]:
        """
        在冲突检查 + 写入期间持有资源锁

        块内抛出异常时回滚会话（释放数据库侧锁）后重新抛出。
        """
        lock = self.get_lock(resource_id)
        with lock:
            try:
                if db.get_bind().dialect.name == "postgresql":
                    db.execute(
                        text("SELECT pg_advisory_xact_lock(hashtext(:resource_id))"),
                        {"resource_id": resource_id},
                    )
                yield
            except Exception:
                db.rollback()
                raise

    def clear(self) -> None:
        """清空锁表（用于测试）"""
        with self._registry_lock:
            self._locks.clear()


# 全局资源锁注册表
resource_locks = ResourceLockRegistry()
