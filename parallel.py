# parallel.py
import logging
import multiprocessing
from os import cpu_count

from tqdm import tqdm

logger = logging.getLogger(__name__)


def default_worker_count():
    """Half the available cores plus one, never less than one."""
    workers = int((cpu_count() or 1) / 2) + 1
    return max(workers, 1)


def split_evenly(items, parts):
    """Splits a sequence into at most `parts` contiguous, non-empty chunks of near-equal size."""
    items = list(items)
    if not items:
        return []
    parts = max(1, min(parts, len(items)))
    size, remainder = divmod(len(items), parts)
    chunks = []
    start = 0
    for i in range(parts):
        end = start + size + (1 if i < remainder else 0)
        chunks.append(items[start:end])
        start = end
    return chunks


# Needs to be defined at the top level so it can be pickled for processes
def _call(packed):
    func, args = packed
    return func(*args)


def run_pool(func, tasks_args, workers, desc, initializer=None, initargs=()):
    """
    Runs func(*args) for every tuple in tasks_args and returns the results in task order.

    With more than one worker the tasks are distributed over a multiprocessing.Pool;
    `initializer(*initargs)` runs once per worker process, which is how read-only
    shared state (dictionary, vectors) reaches the workers. With a single worker
    everything runs in the calling process.
    """
    if not tasks_args:
        return []

    if workers <= 1 or len(tasks_args) == 1:
        if initializer is not None:
            initializer(*initargs)
        return [func(*args) for args in tqdm(tasks_args, desc=desc)]

    num_processes = min(workers, len(tasks_args))
    logger.info("Distributing %d tasks to %d worker processes (%s)", len(tasks_args), num_processes, desc)
    pool = multiprocessing.Pool(processes=num_processes, initializer=initializer, initargs=initargs)
    try:
        packed = [(func, args) for args in tasks_args]
        results = list(tqdm(pool.imap(_call, packed), total=len(packed), desc=desc))
        pool.close()
        pool.join()
    except KeyboardInterrupt:
        logger.warning("KeyboardInterrupt! Terminating workers...")
        pool.terminate()
        pool.join()
        raise
    except Exception:
        pool.terminate()
        pool.join()
        raise
    return results
