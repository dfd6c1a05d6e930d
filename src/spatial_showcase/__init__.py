def main() -> None:
    """Entry point for the application.

    Starts the API server with uvicorn.
    """
    from spatial_showcase.api.main import main as api_main

    api_main()
