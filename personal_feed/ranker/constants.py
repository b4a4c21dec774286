"""Constants for the ranking pipeline."""

# Source name assigned to stories whose source is missing or blank.
UNKNOWN_SOURCE = "unknown"

# Drop reasons recorded by the constraint filter.
DROP_DUPLICATE_ID = "duplicate_id"
DROP_DUPLICATE_TITLE = "duplicate_title"
DROP_PER_SOURCE_MAX = "per_source_max"
DROP_BLOCKED_SOURCE = "blocked_source"

# Number of score breakdowns logged after each run.
TOP_BREAKDOWN_COUNT = 5

# Score bounds for final results.
MIN_FINAL_SCORE = 1.0
MAX_FINAL_SCORE = 100.0
