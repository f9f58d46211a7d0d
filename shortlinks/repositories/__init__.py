"""
Repository layer.

The contracts live in ``base``; ``memory`` and ``sql`` implement them and
``factory`` picks one at startup.
"""

from shortlinks.repositories.base import (
    CategoryRepository,
    URLRepository,
    UserRepository,
)
from shortlinks.repositories.factory import (
    Repositories,
    create_memory_repositories,
    create_repositories,
)

__all__ = [
    "CategoryRepository",
    "Repositories",
    "URLRepository",
    "UserRepository",
    "create_memory_repositories",
    "create_repositories",
]
