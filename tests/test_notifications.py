"""Tests for queueing appointment emails on arq."""

import asyncio
import time
from datetime import date

import pytest
from arq.connections import RedisSettings

from autoshop import worker
from autoshop.domain.appointments.notifications import EMAIL_TASK_NAME, ArqAppointmentNotifier
from autoshop.domain.appointments.schemas import AppointmentEmailPayload, InvoiceDetails


def make_payload(**overrides) -> AppointmentEmailPayload:
    data = {
        "to": "jane@example.com",
        "customer_name": "Jane Driver",
        "confirmation_number": "ABCD2345",
        "appointment_date": date(2030, 3, 4),
        "appointment_time": "09:00",
        "services": ["Oil Change"],
        "action": "booking",
    }
    data.update(overrides)
    return AppointmentEmailPayload(**data)


class FakeJob:
    job_id = "job-1"


class FakePool:
    def __init__(self):
        self.enqueued = []
        self.closed = False

    async def enqueue_job(self, name, *args):
        self.enqueued.append((name, args))
        return FakeJob()

    async def close(self):
        self.closed = True


class TestArqAppointmentNotifier:
    @pytest.mark.asyncio
    async def test_enqueues_json_payload(self, monkeypatch) -> None:
        pool = FakePool()

        async def fake_create_pool(settings):
            return pool

        monkeypatch.setattr(worker, "create_pool", fake_create_pool)
        invoice = InvoiceDetails(subtotal=40, taxes=6, total_cost=46)

        await ArqAppointmentNotifier(RedisSettings()).notify(make_payload(action="complete", invoice=invoice))

        name, args = pool.enqueued[0]
        assert name == EMAIL_TASK_NAME
        assert args[0]["appointment_date"] == "2030-03-04"
        assert args[0]["invoice"]["total_cost"] == 46.0
        assert pool.closed

    @pytest.mark.asyncio
    async def test_unreachable_redis_is_swallowed(self, monkeypatch) -> None:
        async def refuse(settings):
            raise ConnectionError("Connection refused")

        monkeypatch.setattr(worker, "create_pool", refuse)

        await ArqAppointmentNotifier(RedisSettings()).notify(make_payload())

    @pytest.mark.asyncio
    async def test_hanging_redis_gives_up_after_timeout(self, monkeypatch) -> None:
        """Pool creation that never answers is abandoned after the enqueue timeout."""

        async def hang(settings):
            await asyncio.sleep(30)

        monkeypatch.setattr(worker, "create_pool", hang)
        monkeypatch.setattr(worker, "ENQUEUE_TIMEOUT", 0.05)

        started = time.monotonic()
        await ArqAppointmentNotifier(RedisSettings()).notify(make_payload())

        assert time.monotonic() - started < 1.0

    @pytest.mark.asyncio
    async def test_pool_closed_when_enqueue_fails(self, monkeypatch) -> None:
        pool = FakePool()

        async def broken_enqueue(name, *args):
            raise TimeoutError("enqueue timed out")

        pool.enqueue_job = broken_enqueue

        async def fake_create_pool(settings):
            return pool

        monkeypatch.setattr(worker, "create_pool", fake_create_pool)

        await ArqAppointmentNotifier(RedisSettings()).notify(make_payload())
        assert pool.closed


def test_unknown_action_rejected() -> None:
    with pytest.raises(ValueError):
        make_payload(action="reminder")
