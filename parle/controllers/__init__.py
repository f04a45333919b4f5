"""FastAPI routers acting as controllers in the MVC architecture."""

from . import transcripts, upload

__all__ = ["transcripts", "upload"]
