# =============================================================================
# wedding_core/services/__init__.py
# Service Wiring for the Wedding Client
# =============================================================================
"""
Service Layer for the Wedding Client

Pages never construct clients or caches themselves; they ask for the
session's service bundle.

Usage Example:
-------------
    from wedding_core.services import get_services
    from wedding_core.state import bind, use_media_by_album

    services = get_services()

    # Mutations go through the resource APIs
    services.albums.create("Reception", is_public=True)

    # Reads are live bindings
    media = bind("album_media", lambda: use_media_by_album(services.realtime, album_id))
    state = media.snapshot()

Testing:
-------
    services = build_services(settings, database=FakeDatabase(), store=MemoryStore(),
                              session=MagicMock())
"""

from .container import (
    AppServices,
    build_services,
    get_firestore_database,
    get_services,
)

__all__ = [
    "AppServices",
    "build_services",
    "get_firestore_database",
    "get_services",
]
