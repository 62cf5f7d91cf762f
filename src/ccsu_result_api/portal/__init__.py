from .client import ResultPortalClient
from .selectors import PortalSelectors

__all__ = ["ResultPortalClient", "PortalSelectors"]
