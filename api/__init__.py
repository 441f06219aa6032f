"""api/ -- FastAPI application, transport models, and versioned routers."""
