"""
Start the Sanitizer API server

This script starts the FastAPI server with appropriate configuration.
"""

import uvicorn


def main():
    """Start the API server"""

    print("="*80)
    print("ochart Sanitizer API")
    print("="*80)
    print()
    print("Starting server...")
    print("  Host: 0.0.0.0")
    print("  Port: 8002")
    print()
    print("API Documentation:")
    print("  Swagger UI: http://localhost:8002/docs")
    print("  ReDoc: http://localhost:8002/redoc")
    print()
    print("Sanitize Endpoint:")
    print("  POST http://localhost:8002/sanitize")
    print()
    print("Press CTRL+C to stop")
    print("="*80)
    print()

    uvicorn.run(
        "ochart.sanitizer.api:app",
        host="0.0.0.0",
        port=8002,
        reload=True,
        log_level="info"
    )


if __name__ == "__main__":
    main()
