# directory -- listing query/aggregation core
#
# Modules:
#   filters       -- ListingFilter snapshot + FilterState (generation counter, setters)
#   query_builder -- ListingFilter -> ReadRequest / ReferenceRequest (pure)
#   records       -- typed Business / Product / Market / Category records
#   enrichment    -- reference-table joins with fallback labels
#   store         -- DirectoryStore interface (read-only)
#   memory_store  -- dict-backed DirectoryStore
#   loader        -- fetch lifecycle (Idle / Loading / Ready / Failed)
#   presenter     -- FetchState -> one renderable ListingView
#   errors        -- store error taxonomy + classification
#   vision        -- image description / embedding client (visual search)
#   similarity    -- cosine-similarity ranking

from .errors import DirectoryError, StoreErrorKind, classify_store_error
from .filters import ALL, FilterState, ListingFilter
from .loader import (
    BUSINESS_LISTING,
    PRODUCT_LISTING,
    FetchState,
    FetchStatus,
    ListingDefinition,
    ListingLoader,
)
from .presenter import ListingView, ViewKind, present

__all__ = [
    'ALL',
    'BUSINESS_LISTING',
    'PRODUCT_LISTING',
    'DirectoryError',
    'FetchState',
    'FetchStatus',
    'FilterState',
    'ListingDefinition',
    'ListingFilter',
    'ListingLoader',
    'ListingView',
    'StoreErrorKind',
    'ViewKind',
    'classify_store_error',
    'present',
]
