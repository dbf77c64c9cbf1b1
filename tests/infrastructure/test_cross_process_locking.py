"""Submissions from separate processes sharing one data directory."""

import json
import multiprocessing
import threading

import pytest

from tms.domain.model.order import Order, OrderStatus, RESERVING_STATUSES
from tms.domain.model.value_objects import Money, SupplyKey, Tier
from tms.infrastructure.persistence.file_lock import FileKeyLockRegistry, FileLock
from tms.infrastructure.persistence.json_order_repository import JsonOrderRepository
from tests.process_workers import submit_when_released

LAVAL_EVAL = SupplyKey("Laval", "QC", Tier.EVALUATED)
CLIENTS = [f"client-{i}" for i in range(6)]


@pytest.fixture
def data_dir(tmp_path):
    candidates = [{"id": "e1", "city": "Laval", "province": "QC", "evaluation_completed": True}]
    (tmp_path / "candidates.json").write_text(json.dumps(candidates), encoding="utf-8")
    return tmp_path


def _drafts(data_dir) -> dict[str, int]:
    repo = JsonOrderRepository(data_dir / "orders.json")
    ids = {}
    for client_id in CLIENTS:
        order = Order.create(client_id)
        order.add_item(LAVAL_EVAL, 1, Money.of("33.00"))
        repo.save(order)
        ids[client_id] = order.id
    return ids


class TestCrossProcessSubmission:

    def test_last_candidate_goes_to_exactly_one_process(self, data_dir):
        ids = _drafts(data_dir)
        ctx = multiprocessing.get_context("spawn")
        barrier = ctx.Barrier(len(CLIENTS))
        results = ctx.Queue()
        processes = [
            ctx.Process(
                target=submit_when_released,
                args=(str(data_dir), client_id, ids[client_id], barrier, results),
            )
            for client_id in CLIENTS
        ]
        for p in processes:
            p.start()
        outcomes = dict(results.get(timeout=60) for _ in processes)
        for p in processes:
            p.join(timeout=60)

        assert sorted(outcomes.values()) == ["ok"] + ["short"] * (len(CLIENTS) - 1)

        repo = JsonOrderRepository(data_dir / "orders.json")
        submitted = repo.list(status=OrderStatus.SUBMITTED)
        assert len(submitted) == 1
        assert outcomes[submitted[0].client_id] == "ok"
        assert repo.reserved_quantity(LAVAL_EVAL, RESERVING_STATUSES) == 1
        assert len(repo.list()) == len(CLIENTS)


class TestFileLock:

    def test_reentrant_for_owner(self, tmp_path):
        lock = FileLock(tmp_path / ".x.lock")
        with lock:
            with lock:
                pass
        assert (tmp_path / ".x.lock").exists()

    def test_second_handle_waits_for_release(self, tmp_path):
        path = tmp_path / ".x.lock"
        holder, waiter = FileLock(path), FileLock(path)
        acquired = threading.Event()

        def take():
            with waiter:
                acquired.set()

        holder.acquire()
        thread = threading.Thread(target=take)
        thread.start()
        assert not acquired.wait(timeout=0.2)
        holder.release()
        assert acquired.wait(timeout=5)
        thread.join()

    def test_registry_reuses_one_lock_per_pool(self, tmp_path):
        registry = FileKeyLockRegistry(tmp_path / ".locks")
        same = SupplyKey("laval", "qc", Tier.EVALUATED)
        assert registry.lock_for(LAVAL_EVAL) is registry.lock_for(same)
        assert registry.lock_for(LAVAL_EVAL) is not registry.lock_for(
            SupplyKey("Laval", "QC", Tier.CV_ONLY)
        )
