#!/usr/bin/env python3
"""
Entry point for the Portal API.

Usage:
    python run.py

Environment Variables:
    FLASK_ENV: development or production (default: development)
    PORT: Port to run on (default: 5000)
    See portal/config.py for the rest. A .env file is loaded if present.
"""
import os

from dotenv import load_dotenv


def run_portal():
    """Run the portal API."""
    load_dotenv()
    from portal.app import create_app

    app = create_app()
    port = int(os.getenv('PORT', 5000))
    debug = os.getenv('FLASK_ENV', 'development') == 'development'

    print(f"Starting Portal API on port {port}...")
    app.run(host='0.0.0.0', port=port, debug=debug, threaded=True)


if __name__ == '__main__':
    run_portal()
