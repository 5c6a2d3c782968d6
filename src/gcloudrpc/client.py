from .loader import ServiceDescriptor
from .options import CallOptions, ClientConfig, RetryPolicy
from .paging import ItemStream, Page, PagedQuery, PaginationMode, paginate, paginated
from .service import SANDBOXED, GrpcService, LogicalRequest

__all__ = [
    "SANDBOXED",
    "CallOptions",
    "ClientConfig",
    "GrpcService",
    "ItemStream",
    "LogicalRequest",
    "Page",
    "PagedQuery",
    "PaginationMode",
    "RetryPolicy",
    "ServiceDescriptor",
    "paginate",
    "paginated",
]
