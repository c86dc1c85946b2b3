"""
Pytest 配置和共享 fixtures
"""
import os

# 应用导入前指定测试数据库，避免在工作目录生成 sqlite 文件
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from datetime import datetime
from random import Random
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from resortpms.database import Base, get_db
from resortpms.engine.audit import audit_engine
from resortpms.engine.event_bus import event_bus
from resortpms.models import ontology  # noqa
from resortpms.models.ontology import ReservationType
from resortpms.models.schemas import ReservationCreate
from resortpms.services.reservation_service import ReservationService
from resortpms.services.resource_lock import ResourceLockRegistry

# 测试时钟：2026-02-03 10:00 UTC
FIXED_NOW = datetime(2026, 2, 3, 10, 0, 0)


@pytest.fixture(scope="function")
def db_engine():
    """创建内存数据库引擎"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """创建数据库会话"""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def clean_event_bus():
    """每个测试使用干净的事件总线与审计日志"""
    event_bus.clear_subscribers()
    event_bus.clear_history()
    audit_engine.clear()
    yield
    event_bus.clear_subscribers()
    event_bus.clear_history()
    audit_engine.clear()


@pytest.fixture
def clock():
    """可调整的固定时钟"""
    class _Clock:
        now = FIXED_NOW

        def __call__(self):
            return self.now

    return _Clock()


@pytest.fixture
def service(db_session, clock):
    """使用固定时钟、固定随机种子的预订服务"""
    return ReservationService(
        db_session,
        clock=clock,
        rng=Random(20260201),
        locks=ResourceLockRegistry(),
    )


@pytest.fixture
def reservation_input():
    """room-101, 2026-02-01 14:00 -> 2026-02-05 11:00"""
    def _make(**overrides):
        data = {
            "type": ReservationType.ROOM,
            "guest_id": "guest-123",
            "guest_name": "John Doe",
            "guest_email": "john@example.com",
            "guest_phone": "+1234567890",
            "resource_id": "room-101",
            "resource_name": "Deluxe Suite 101",
            "check_in": "2026-02-01T14:00:00Z",
            "check_out": "2026-02-05T11:00:00Z",
            "guest_count": 2,
            "special_requests": "Late check-in",
            "notes": "VIP guest",
            "total_amount": 800,
            "deposit_amount": 200,
            "booked_by": "staff-1",
        }
        data.update(overrides)
        return ReservationCreate(**data)
    return _make


@pytest.fixture
def client(db_session):
    """创建测试客户端"""
    from resortpms.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
