from livequiz.api.ws.routes import router

__all__ = ["router"]
