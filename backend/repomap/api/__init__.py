from repomap.api.routes import router

__all__ = ["router"]
