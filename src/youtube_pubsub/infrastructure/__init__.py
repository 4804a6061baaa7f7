"""Infrastructure adapters: configuration, storage, YouTube, WebSub and HTTP."""
