"""Shared constants."""

# Pagination
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Consultation id prefix, e.g. CONS-1718000000000-k3j9x2a1q
CONSULTATION_ID_PREFIX = "CONS"
