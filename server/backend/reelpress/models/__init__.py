# In-memory data models - compression jobs and their status values

from .job import ALLOWED_TRANSITIONS, CompressionJob, JobStatus
