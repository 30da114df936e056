"""
Useful constants.
"""

import re

# Time partition columns, excluded from view fingerprints and present in every cache
TIME_PARTITION_COLUMNS = ("date", "_date", "hour", "_hour")

# Placeholders bound by the extraction scheduler
START_DATE = "[START_DATE]"
END_DATE = "[END_DATE]"
START_HOUR = "[START_HOUR]"
END_HOUR = "[END_HOUR]"

# Alias of the log source (fast view or cache table) in view queries
LOG_ALIAS = "log"

# Addressable log views are named logs_<log type>_<tenant id>
VIEW_ID_PREFIX = "logs"
VIEW_ID_PATTERN = re.compile(r"^logs_([a-z]+)_(\d+)$")

CACHE_TABLE_PREFIX = "log_view_"
