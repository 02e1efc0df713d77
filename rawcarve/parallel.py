"""
Parallel Carving Engine — multiprocessing-based catalog scanning.

❌ Python threads → GIL blocks true parallelism for CPU-bound work.
✅ multiprocessing → one process per group of catalog entries.

Architecture:
  • Split the catalog indices across N worker processes.
  • Each worker maps the medium read-only on its own (nothing large is
    pickled) and carves only its assigned entries into a private list.
  • Results come back through a multiprocessing Queue.
  • The coordinator re-orders them by catalog index, so the output is
    identical to a sequential carve().
"""

import os
import time
import queue
import logging
import multiprocessing as mp
from multiprocessing import Queue, Process
from dataclasses import dataclass, field
from typing import Optional

from .signatures import FILE_SIGNATURES
from .scanner import CandidateRecord, carve_descriptor, carve
from .mmap_reader import open_medium

logger = logging.getLogger(__name__)

# Seconds between liveness checks while waiting on worker results
POLL_INTERVAL = 0.5


@dataclass
class WorkerResult:
    """Result from a single worker process."""
    worker_id: int
    # (descriptor_index, offset, length); descriptors stay in the coordinator
    records: list = field(default_factory=list)
    bytes_scanned: int = 0
    elapsed: float = 0.0
    error: Optional[BaseException] = None


@dataclass
class ParallelScanConfig:
    """Configuration for parallel scanning."""
    num_workers: int = 0            # 0 = auto-detect
    max_workers: int = 8
    use_mmap: bool = True


def optimal_worker_count(catalog_size: int, config: ParallelScanConfig) -> int:
    """
    Determine the number of worker processes.

    Rules:
      • At least 1 worker.
      • Never more workers than catalog entries.
      • Never exceed CPU count or max_workers.
    """
    if catalog_size <= 0:
        return 1
    if config.num_workers > 0:
        return max(1, min(config.num_workers, config.max_workers, catalog_size))
    cpu_count = os.cpu_count() or 2
    return max(1, min(cpu_count, config.max_workers, catalog_size))


def split_catalog_for_workers(catalog_size: int, num_workers: int) -> list[list[int]]:
    """Deal catalog indices round-robin; empty assignments are dropped."""
    if num_workers <= 1:
        return [list(range(catalog_size))]
    assignments: list[list[int]] = [[] for _ in range(num_workers)]
    for index in range(catalog_size):
        assignments[index % num_workers].append(index)
    return [a for a in assignments if a]


def _worker_scan(
    worker_id: int,
    path: str,
    indices: list[int],
    catalog: tuple,
    use_mmap: bool,
    result_queue: Queue,
):
    """
    Worker process: carve the assigned catalog entries and push one result.

    Any exception is shipped back to the coordinator, which re-raises it.
    """
    start_time = time.time()
    try:
        records = []
        with open_medium(path, use_mmap=use_mmap) as reader:
            data = reader.buffer
            for index in indices:
                for rec in carve_descriptor(data, index, catalog[index]):
                    records.append((rec.descriptor_index, rec.offset, rec.length))
            scanned = reader.size
        result_queue.put(WorkerResult(
            worker_id=worker_id,
            records=records,
            bytes_scanned=scanned,
            elapsed=time.time() - start_time,
        ))
    except Exception as e:
        logger.error("Worker %d failed: %s", worker_id, e, exc_info=True)
        result_queue.put(WorkerResult(
            worker_id=worker_id,
            elapsed=time.time() - start_time,
            error=e,
        ))


def carve_file_parallel(
    path: str,
    catalog=FILE_SIGNATURES,
    config: Optional[ParallelScanConfig] = None,
) -> list[CandidateRecord]:
    """Carve the medium at `path` using worker processes.

    Returns the same ordered records as carve() over the whole file.
    """
    config = config or ParallelScanConfig()
    catalog = tuple(catalog)
    num_workers = optimal_worker_count(len(catalog), config)

    if num_workers <= 1:
        with open_medium(path, use_mmap=config.use_mmap) as reader:
            return carve(reader.buffer, catalog)

    assignments = split_catalog_for_workers(len(catalog), num_workers)
    logger.info("Parallel carve of %s: %d workers, %d signatures",
                path, len(assignments), len(catalog))

    result_queue: Queue = mp.Queue()
    workers = []
    for worker_id, indices in enumerate(assignments):
        p = Process(
            target=_worker_scan,
            args=(worker_id, path, indices, catalog, config.use_mmap, result_queue),
            daemon=True,
        )
        p.start()
        workers.append(p)

    # Drain before join: a worker blocks on exit until its queue data is read
    results: dict[int, WorkerResult] = {}
    try:
        _collect_results(workers, result_queue, results)
    finally:
        if len(results) < len(workers):
            for p in workers:
                if p.is_alive():
                    p.terminate()
        for p in workers:
            p.join()

    for worker_id in sorted(results):
        res = results[worker_id]
        if res.error is not None:
            raise res.error
        logger.debug("Worker %d: %d candidate(s), %d bytes in %.2fs",
                     res.worker_id, len(res.records), res.bytes_scanned, res.elapsed)

    by_index: dict[int, list[tuple]] = {}
    for res in results.values():
        for index, offset, length in res.records:
            by_index.setdefault(index, []).append((offset, length))

    merged = []
    for index, sig in enumerate(catalog):
        for offset, length in sorted(by_index.get(index, [])):
            merged.append(CandidateRecord(index, offset, length, sig))
    return merged


def _collect_results(workers: list, result_queue: Queue, results: dict):
    """
    Read one WorkerResult per worker into `results` (keyed by worker id).

    A worker that exits without reporting (killed, os._exit, a result that
    failed to pickle) raises RuntimeError instead of blocking forever.
    """
    while len(results) < len(workers):
        try:
            res = result_queue.get(timeout=POLL_INTERVAL)
        except queue.Empty:
            pass
        else:
            results[res.worker_id] = res
            continue

        dead = [wid for wid, p in enumerate(workers)
                if wid not in results and not p.is_alive()]
        if not dead:
            continue
        # A worker may have flushed its result just before exiting
        while True:
            try:
                res = result_queue.get_nowait()
            except queue.Empty:
                break
            results[res.worker_id] = res
        for wid in dead:
            if wid not in results:
                raise RuntimeError(
                    f"Worker {wid} exited with code {workers[wid].exitcode} "
                    f"without a result")
