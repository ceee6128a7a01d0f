# Admin routers (category writes)
from .routes.admin import admin_routers

# Public routers (tree reads)
from .routes.public import public_routers

__all__ = ["admin_routers", "public_routers"]
