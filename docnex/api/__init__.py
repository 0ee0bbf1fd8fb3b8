"""HTTP API: routers, error handlers and shared dependencies."""
