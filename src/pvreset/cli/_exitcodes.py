"""Process exit codes used by the pvreset CLI."""

SUCCESS = 0
GENERAL_ERROR = 1
USAGE_ERROR = 2
DATABASE_ERROR = 3
CORRUPT_RECORD = 4
DEADLINE_EXCEEDED = 5
WRITE_ERROR = 6
