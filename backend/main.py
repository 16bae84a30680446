"""
Main entry point for the Career Compass backend

Starts the FastAPI server with uvicorn.
"""
import argparse

from roadmap.config import HOST, PORT


def main():
    parser = argparse.ArgumentParser(description="Career Compass API server")
    parser.add_argument("--host", default=HOST, help="Interface to bind")
    parser.add_argument("--port", type=int, default=PORT, help="Port for API server")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    args = parser.parse_args()

    print(f"Starting Career Compass API server on {args.host}:{args.port}")
    import uvicorn
    uvicorn.run(
        "api_server:app",
        host=args.host,
        port=args.port,
        reload=args.reload
    )


if __name__ == "__main__":
    main()
