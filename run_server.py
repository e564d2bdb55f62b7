#!/usr/bin/env python3
"""
Recipe Search - HTTP Mode

Runs the recipe search API with uvicorn from a source checkout.

Usage:
    python run_server.py --port 8000
    python run_server.py --host 127.0.0.1 --reload

Environment Variables:
    SPOONACULAR_API_KEY: Spoonacular credential (provider skipped when unset)
    EDAMAM_APP_ID / EDAMAM_APP_KEY: Edamam credentials
    THEMEALDB_API_KEY: TheMealDB key (default: public test key "1")
    RECIPE_PROVIDERS: Comma-separated provider order
    RECIPE_API_HOST / RECIPE_API_PORT: Bind address (default: 0.0.0.0:8000)
"""

import os
import sys

# Add src to path for development
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "src"))

from recipe_search.api.server import main

if __name__ == "__main__":
    main()
