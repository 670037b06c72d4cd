"""
Tests for job record normalization and the in-memory job store
"""

import pytest

from galaksio.x402.broker import (
    BrokerJobStatus,
    InMemoryJobStore,
    JobRecord,
    apply_status_update,
)


class TestFromBrokerResponse:
    def test_run(self):
        body = {
            "jobId": "job-1",
            "status": "completed",
            "result": {"stdout": "hi\n", "stderr": "", "exitCode": 0, "executionTime": 1200},
        }
        record = JobRecord.from_broker_response("run", body)

        assert record.kind == "run"
        assert record.broker_job_id == "job-1"
        assert record.status == "completed"
        assert record.stdout == "hi\n"
        assert record.stderr is None
        assert record.exit_code == 0
        assert record.execution_time_ms == 1200
        assert record.raw_result == body

    def test_run_output_fallback(self):
        body = {"jobId": "job-2", "status": "completed", "result": {"output": "42"}}
        assert JobRecord.from_broker_response("run", body).stdout == "42"

    def test_store(self):
        body = {
            "jobId": "job-3",
            "status": "completed",
            "result": {"cid": "bafy", "url": "https://ipfs.io/ipfs/bafy", "provider": "ipfs", "size": 11},
        }
        record = JobRecord.from_broker_response("store", body)

        assert record.tx_id == "bafy"
        assert record.url == "https://ipfs.io/ipfs/bafy"
        assert record.provider == "ipfs"
        assert record.size == 11
        assert record.stdout is None

    def test_missing_result(self):
        record = JobRecord.from_broker_response("run", {"jobId": "job-4", "status": "queued"})
        assert record.stdout is None
        assert record.exit_code is None


class TestApplyStatusUpdate:
    @pytest.fixture
    def record(self):
        return JobRecord.from_broker_response("run", {"jobId": "job-1", "status": "running"})

    def test_nested_result(self, record):
        status = BrokerJobStatus(
            id="job-1",
            status="completed",
            provider="modal",
            result={"result": {"result": {"output": "done", "success": True, "execution_time": 1.5}}},
        )
        updated = apply_status_update(record, status)

        assert updated.status == "completed"
        assert updated.provider == "modal"
        assert updated.stdout == "done"
        assert updated.exit_code == 0
        assert updated.execution_time_ms == 1500
        assert updated.raw_status["id"] == "job-1"
        assert record.status == "running"

    def test_single_level_result(self, record):
        status = BrokerJobStatus(
            id="job-1",
            status="failed",
            result={"result": {"stderr": "boom", "success": False}},
        )
        updated = apply_status_update(record, status)

        assert updated.stderr == "boom"
        assert updated.exit_code == 1

    def test_flat_result(self, record):
        status = BrokerJobStatus(
            id="job-1",
            status="completed",
            result={"stdout": "ok", "exitCode": 3, "executionTime": 250},
        )
        updated = apply_status_update(record, status)

        assert updated.stdout == "ok"
        assert updated.exit_code == 3
        assert updated.execution_time_ms == 250

    def test_succeeded_status_means_zero_exit(self, record):
        status = BrokerJobStatus(id="job-1", status="completed", result={"status": "succeeded"})
        assert apply_status_update(record, status).exit_code == 0

    def test_storage_fields(self):
        record = JobRecord.from_broker_response("store", {"jobId": "job-5", "status": "queued"})
        status = BrokerJobStatus(
            id="job-5",
            status="completed",
            result={"cid": "bafy", "url": "https://ipfs.io/ipfs/bafy", "size": 7},
        )
        updated = apply_status_update(record, status)

        assert updated.tx_id == "bafy"
        assert updated.url == "https://ipfs.io/ipfs/bafy"
        assert updated.size == 7

    def test_status_without_result(self, record):
        updated = apply_status_update(record, BrokerJobStatus(id="job-1", status="queued"))

        assert updated.status == "queued"
        assert updated.stdout is None

    def test_status_from_wire(self, record):
        status = BrokerJobStatus(
            **{"id": "job-1", "status": "running", "createdAt": "2025-12-09T04:48:09Z"}
        )
        assert apply_status_update(record, status).raw_status["createdAt"] == "2025-12-09T04:48:09Z"


class TestInMemoryJobStore:
    @pytest.mark.anyio
    async def test_save_get_list(self):
        store = InMemoryJobStore()
        run = JobRecord.from_broker_response("run", {"jobId": "r1", "status": "completed"})
        stored = JobRecord.from_broker_response("store", {"jobId": "s1", "status": "completed"})

        await store.save(run)
        await store.save(stored)

        assert await store.get("r1") is run
        assert await store.get("missing") is None
        assert await store.list(kind="store") == [stored]
        assert len(await store.list()) == 2

    @pytest.mark.anyio
    async def test_list_newest_first(self):
        store = InMemoryJobStore()
        older = JobRecord(kind="run", broker_job_id="a", status="completed", created_at=1.0)
        newer = JobRecord(kind="run", broker_job_id="b", status="completed", created_at=2.0)
        await store.save(older)
        await store.save(newer)

        assert [r.broker_job_id for r in await store.list()] == ["b", "a"]
        assert len(await store.list(limit=1)) == 1
