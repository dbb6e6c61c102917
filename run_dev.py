#!/usr/bin/env python3
"""Development server runner for LCMS."""

import os
import sys
from pathlib import Path

from dotenv import load_dotenv


def setup_environment():
    """Load .env and set development defaults."""
    project_root = Path(__file__).parent
    env_file = project_root / '.env'
    if env_file.exists():
        load_dotenv(env_file)
        print(f"✓ Loaded environment from {env_file}")
    else:
        print(f"⚠️ No .env file found at {env_file}")

    os.environ.setdefault('FLASK_APP', 'lcms')
    os.environ.setdefault('FLASK_DEBUG', '1')
    # Plain HTTP locally
    os.environ.setdefault('SESSION_COOKIE_SECURE', 'false')


def run_development_server():
    """Run the Flask development server."""
    from lcms import create_app

    app = create_app()

    print("\n" + "=" * 60)
    print("🚀 Starting LCMS Development Server")
    print("=" * 60)
    print(f"Database: {app.config['SQLALCHEMY_DATABASE_URI']}")
    print("\n📱 API available at:")
    print("   • http://localhost:5000/api/v1/standings")
    print("\n🛠️ To create demo data, run in another terminal:")
    print("   flask user create --email admin@example.com --password password123 --role admin")
    print("   flask seed demo")
    print("\n⏹️ Press Ctrl+C to stop the server")
    print("=" * 60)

    app.run(host='0.0.0.0', port=5000, debug=True, use_reloader=True)


def main():
    """Main function to set up and run the development server."""
    print("League & Cup Management System - Development Setup")
    print("=" * 60)

    setup_environment()

    try:
        run_development_server()
    except KeyboardInterrupt:
        print("\n\n🛑 Development server stopped by user")
    except Exception as e:
        print(f"\n❌ Unexpected error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
