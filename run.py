import uvicorn
import os

if __name__ == "__main__":
    # Auto-reload only during local development
    reload = os.getenv("ENVIRONMENT", "development") != "production"

    uvicorn.run(
        "app.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", 3001)),
        reload=reload,
        timeout_graceful_shutdown=30
    )
