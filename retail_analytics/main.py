"""
FastAPI Production Application

Main entry point for the Retail Analytics API.
"""

from retail_analytics.config import get_settings
from retail_analytics.serving.api import create_api_app

settings = get_settings()

app = create_api_app()


def main():
    """Console entry point: serve the API with Uvicorn."""
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
