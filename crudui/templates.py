# crudui/templates.py
from datetime import datetime
from pathlib import Path

from fastapi.templating import Jinja2Templates

from crudui.utils.cache_utils import cache_manager

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
STATIC_DIR = Path(__file__).resolve().parent / "static"

# Create a single templates instance for the entire application
templates = Jinja2Templates(directory=str(TEMPLATE_DIR))

# Add current_year as a global variable
templates.env.globals["current_year"] = datetime.now().year


def versioned_static(base_path: str, path: str) -> str:
    """URL of a bundled asset under <base_path>/static with the cache-busting version"""
    return cache_manager.versioned_url(f"{base_path}/static/{path}")


templates.env.globals["versioned_static"] = versioned_static
