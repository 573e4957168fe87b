"""GitHub fetching: cursor pagination and change collection."""

from .github import ChangeCollector, build_github_client
from .pagination import paginate

__all__ = ["ChangeCollector", "build_github_client", "paginate"]
