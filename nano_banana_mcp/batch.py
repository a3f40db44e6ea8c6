from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence

from loguru import logger

from .executor import TaskExecutor
from .schema import BatchReport, BatchResultRecord, TaskDescriptor
from .shard.enums import BatchStatus

ProgressCallback = Callable[[int, int], Awaitable[None]]


class BatchRunner:
    """Runs tasks one after another through a TaskExecutor.

    Tasks run strictly in input order so a task can read files written by
    earlier ones. A failing task is recorded and the batch moves on. The
    executor lock is held for the whole run, so a shutdown waiting on it
    lets the batch finish and report.
    """

    def __init__(self, executor: TaskExecutor) -> None:
        self.executor = executor

    async def _run_one(self, index: int, task: TaskDescriptor) -> BatchResultRecord:
        try:
            result = await self.executor.execute_locked(task)
        except Exception as e:
            logger.exception(f"Batch task {index} raised {type(e).__name__}")
            return BatchResultRecord(index=index, prompt=task.prompt, status=BatchStatus.FAILED, error=str(e) or type(e).__name__)

        if result.is_error:
            logger.warning(f"Batch task {index} failed: {result.message}")
            return BatchResultRecord(index=index, prompt=task.prompt, status=BatchStatus.FAILED, error=result.message)

        return BatchResultRecord(
            index=index,
            prompt=task.prompt,
            status=BatchStatus.SUCCESS,
            output=result.message or None,
            image_count=len(result.images),
        )

    async def run(self, tasks: Sequence[TaskDescriptor], progress: ProgressCallback | None = None) -> BatchReport:
        if not tasks:
            raise ValueError("At least one task is required")

        total = len(tasks)
        records: list[BatchResultRecord] = []
        async with self.executor.lock:
            for index, task in enumerate(tasks, start=1):
                logger.info(f"Running batch task {index}/{total}")
                records.append(await self._run_one(index, task))
                if progress is not None:
                    await progress(index, total)

        report = BatchReport.from_records(records)
        logger.info(f"Batch finished: {report.succeeded} succeeded, {report.failed} failed")
        return report


__all__ = ["BatchRunner", "ProgressCallback"]
