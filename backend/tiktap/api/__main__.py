"""API server entry point for python -m tiktap.api"""
import uvicorn
from tiktap.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "tiktap.api.app:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=False,
    )
