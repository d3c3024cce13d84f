import uvicorn

from shared.core.logging_config import uvicorn_log_config

if __name__ == "__main__":
    try:
        uvicorn.run(
            "hotel_service.app.main:app",
            host="0.0.0.0",
            port=8002,
            reload=True,
            log_config=uvicorn_log_config(),
        )
    except KeyboardInterrupt:
        print("\nShutting down server...")
