"""
Configuration subsystem for the present engine.

Static configuration is loaded from environment variables (with .env
support) at import time and exposed through the `Config` class.

Usage
-----
```python
from src.core.config import Config

db_url = Config.DATABASE_URL
page_size = Config.PRESENT_COUNT_PER_PAGE

if Config.is_production():
    logger.info("Running in production mode")
```
"""

from src.core.config.config import Config, Environment

__all__ = [
    "Config",
    "Environment",
]
