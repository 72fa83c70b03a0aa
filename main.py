from calnotify.main import app

__all__ = ["app"]
