"""HTTP server package — FastAPI app and its request/response models."""
