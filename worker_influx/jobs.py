"""Job records and metric field extraction.

A job record carries the lifecycle timestamps a worker collects while running
a job (epoch seconds):

- enqueue_time: when the job was pushed (payload "queue_time", optional)
- pop_time: when a worker dequeued it
- start_time: when execution began (before the fork)
- end_time: when execution finished

job_fields() turns those timestamps into the field set of one metric point.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

_LOG = logging.getLogger(__name__)

Timestamp = Union[int, float]


@dataclass
class JobRecord:
    """Job state as seen by the lifecycle hooks.

    Example:
        job = JobRecord.from_payload(
            "emails",
            {"class": "SendWelcome", "id": "4f18a7", "queue_time": 1552480650},
            pop_time=1552481650,
        )
    """

    queue: str
    class_name: str
    job_id: Optional[str] = None
    enqueue_time: Optional[Timestamp] = None
    pop_time: Optional[Timestamp] = None
    start_time: Optional[Timestamp] = None
    end_time: Optional[Timestamp] = None

    @classmethod
    def from_payload(cls, queue: str, payload: Mapping[str, Any], **timestamps: Optional[Timestamp]) -> JobRecord:
        """Build a record from a resque-style payload.

        Args:
            queue: Queue the job was popped from
            payload: Job payload with "class", "id" and optional "queue_time"
            **timestamps: pop_time, start_time and end_time if already known

        Returns:
            JobRecord
        """
        return cls(
            queue=queue,
            class_name=payload["class"],
            job_id=payload.get("id"),
            enqueue_time=payload.get("queue_time"),
            **timestamps,
        )


def job_fields(job: Any, error: Optional[BaseException | str] = None) -> dict[str, Any]:
    """Compute metric fields from a job's lifecycle timestamps.

    Values that are missing on the job are left out, together with anything
    derived from them. execution_time is not clamped: a negative value means
    the job record itself is inconsistent.

    Args:
        job: JobRecord or any object with the same attributes
        error: Failure raised by the job (failed path only)

    Returns:
        Field mapping in emission order
    """
    start_time = getattr(job, "start_time", None)
    end_time = getattr(job, "end_time", None)
    pop_time = getattr(job, "pop_time", None)
    enqueue_time = getattr(job, "enqueue_time", None)
    job_id = getattr(job, "job_id", None)

    fields: dict[str, Any] = {}

    if start_time is not None:
        fields["start_time"] = start_time
    if end_time is not None:
        fields["end_time"] = end_time
    if pop_time is not None:
        fields["pop_time"] = pop_time

    if start_time is not None and end_time is not None:
        fields["execution_time"] = end_time - start_time
    else:
        _LOG.debug("Job %s has no start/end time, execution_time omitted", job_id)

    if pop_time is not None and enqueue_time is not None:
        fields["queue_time"] = pop_time - enqueue_time

    if job_id is not None:
        fields["job_id"] = job_id

    if error is not None:
        fields["error"] = str(error)

    return fields
